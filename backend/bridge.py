"""
Hand-off from relay callbacks (any thread) to the backend event loop
"""

import asyncio
import logging
import threading
from typing import AsyncIterator, Protocol

from deeplink import DeepLinkRelay

logger = logging.getLogger(__name__)


class DisconnectAware(Protocol):
  async def is_disconnected(self) -> bool: ...


class QueueSubscriber:
  """Relay subscriber that queues URIs on an asyncio loop.

  The relay calls subscribers synchronously from whatever thread delivered
  the deep link, so the put is scheduled onto the owning loop. URIs stay in
  `undelivered()` until the stream marks them sent.
  """

  def __init__(self, loop: asyncio.AbstractEventLoop):
    self.loop = loop
    self.queue: asyncio.Queue[str] = asyncio.Queue()
    self._lock = threading.Lock()
    self._undelivered: list[str] = []

  def __call__(self, uri: str) -> None:
    with self._lock:
      self._undelivered.append(uri)
    self.loop.call_soon_threadsafe(self.queue.put_nowait, uri)

  def mark_sent(self, uri: str) -> None:
    with self._lock:
      self._undelivered.remove(uri)

  def undelivered(self) -> list[str]:
    with self._lock:
      return list(self._undelivered)


def format_sse(data: str, event: str | None = None) -> str:
  """Encode one server-sent event frame"""
  lines = [f"event: {event}"] if event else []
  lines.extend(f"data: {line}" for line in data.splitlines() or [""])
  return "\n".join(lines) + "\n\n"


async def oauth_event_stream(
  relay: DeepLinkRelay,
  request: DisconnectAware,
  keepalive: float = 15.0,
) -> AsyncIterator[str]:
  """
  Stream redirect URIs to one listener as server-sent events

  Attaching flushes a URI buffered before the listener connected. The
  subscriber is detached when the client goes away or the generator is
  closed; a URI handed to this stream but never sent goes back to the relay.

  Args:
      relay: Relay to attach to
      request: Object reporting client disconnects (the Starlette request)
      keepalive: Seconds of silence before a keepalive comment is sent
  """
  subscriber = QueueSubscriber(asyncio.get_running_loop())
  relay.attach(subscriber)
  logger.info("OAuth event stream opened")
  try:
    while True:
      if await request.is_disconnected():
        break
      try:
        uri = await asyncio.wait_for(subscriber.queue.get(), timeout=keepalive)
      except asyncio.TimeoutError:
        yield ": keepalive\n\n"
        continue
      subscriber.mark_sent(uri)
      yield format_sse(uri)
  finally:
    relay.detach(subscriber)
    unsent = subscriber.undelivered()
    if unsent:
      logger.info("Returning unsent redirect URI to the relay")
      relay.requeue(unsent[-1])
    logger.info("OAuth event stream closed")
