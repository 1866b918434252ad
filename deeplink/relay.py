"""Single-slot relay between OS deep-link callbacks and one subscriber."""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from typing import Callable, Optional

from .uri_filter import CallbackUriFilter

logger = logging.getLogger(__name__)

Subscriber = Callable[[str], None]


class StreamHandler(ABC):
  """Listener side of an event channel"""

  @abstractmethod
  def attach(self, subscriber: Subscriber) -> None:
    """Start delivering events to `subscriber`."""
    raise NotImplementedError

  @abstractmethod
  def detach(self, subscriber: Optional[Subscriber] = None) -> None:
    """Stop delivering events."""
    raise NotImplementedError


class DeepLinkRelay(StreamHandler):
  """Forwards matching redirect URIs to the attached subscriber.

  While nobody is listening the most recent matching URI is kept; a newer
  one replaces it. Attaching flushes it exactly once.

  Callbacks may come from the Android UI thread while the subscriber lives
  on the backend event loop, so every state change and delivery happens
  under one re-entrant lock. Subscribers must not block; they may call back
  into the relay.
  """

  def __init__(self, uri_filter: CallbackUriFilter | None = None):
    self.uri_filter = uri_filter or CallbackUriFilter()
    self._lock = threading.RLock()
    self._subscriber: Optional[Subscriber] = None
    self._pending_uri: Optional[str] = None

  @property
  def pending_uri(self) -> Optional[str]:
    with self._lock:
      return self._pending_uri

  @property
  def has_subscriber(self) -> bool:
    with self._lock:
      return self._subscriber is not None

  def on_uri_received(self, uri: Optional[str]) -> bool:
    """Handle a URI opened by the OS.

    Returns:
      True if the URI matched the callback filter (delivered or buffered),
      False if it was ignored
    """
    logger.debug("Received URI: %s", uri)
    if not self.uri_filter.matches(uri):
      logger.debug("Ignoring unrelated deep link: %s", self.uri_filter.describe(uri))
      return False

    with self._lock:
      if self._subscriber is not None:
        logger.info("Sending OAuth callback to listener")
        self._subscriber(uri)
        return True

      if self._pending_uri is not None:
        logger.info("Replacing undelivered redirect URI")
      else:
        logger.info("No listener attached, buffering redirect URI")
      self._pending_uri = uri
    return True

  def attach(self, subscriber: Subscriber) -> None:
    with self._lock:
      self._subscriber = subscriber
      logger.debug("Listener attached")
      if self._pending_uri is not None:
        pending, self._pending_uri = self._pending_uri, None
        logger.info("Flushing buffered redirect URI to new listener")
        subscriber(pending)

  def detach(self, subscriber: Optional[Subscriber] = None) -> None:
    """Clear the active subscriber.

    Passing the subscriber that is detaching makes this a no-op when a newer
    listener has already replaced it.
    """
    with self._lock:
      if subscriber is not None and self._subscriber is not subscriber:
        return
      self._subscriber = None
    logger.debug("Listener detached")

  def requeue(self, uri: str) -> None:
    """Give back an accepted URI a listener failed to consume.

    Goes to the current subscriber if there is one; otherwise it becomes the
    pending URI unless a newer one is already waiting.
    """
    with self._lock:
      if self._subscriber is not None:
        self._subscriber(uri)
      elif self._pending_uri is None:
        self._pending_uri = uri
      else:
        logger.info("Dropping requeued redirect URI; a newer one is pending")
