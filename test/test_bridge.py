"""Tests for the relay -> event loop bridge and the SSE stream"""

import asyncio
import threading
from unittest.mock import AsyncMock, MagicMock

import pytest

from backend.bridge import QueueSubscriber, format_sse, oauth_event_stream
from deeplink import DeepLinkRelay

CALLBACK = "songbuddy://callback?code=abc"


def connected_request():
  request = MagicMock()
  request.is_disconnected = AsyncMock(return_value=False)
  return request


def test_format_sse():
  assert format_sse(CALLBACK) == f"data: {CALLBACK}\n\n"
  assert format_sse("a\nb", event="oauth") == "event: oauth\ndata: a\ndata: b\n\n"
  assert format_sse("") == "data: \n\n"


@pytest.mark.asyncio
async def test_queue_subscriber_accepts_other_threads():
  """URIs delivered from a foreign thread land on the loop's queue"""
  subscriber = QueueSubscriber(asyncio.get_running_loop())

  thread = threading.Thread(target=subscriber, args=(CALLBACK,))
  thread.start()
  thread.join()

  uri = await asyncio.wait_for(subscriber.queue.get(), timeout=1)
  assert uri == CALLBACK


@pytest.mark.asyncio
async def test_stream_flushes_pending_uri_first():
  relay = DeepLinkRelay()
  relay.on_uri_received(CALLBACK)

  stream = oauth_event_stream(relay, connected_request(), keepalive=1)
  first = await asyncio.wait_for(stream.__anext__(), timeout=1)

  assert first == f"data: {CALLBACK}\n\n"
  assert relay.pending_uri is None
  assert relay.has_subscriber

  await stream.aclose()
  assert not relay.has_subscriber


@pytest.mark.asyncio
async def test_stream_delivers_live_uri():
  relay = DeepLinkRelay()
  stream = oauth_event_stream(relay, connected_request(), keepalive=1)

  next_frame = asyncio.ensure_future(stream.__anext__())
  await asyncio.sleep(0)
  assert relay.has_subscriber

  relay.on_uri_received("songbuddy://callback?code=xyz")
  frame = await asyncio.wait_for(next_frame, timeout=1)

  assert frame == "data: songbuddy://callback?code=xyz\n\n"
  await stream.aclose()


@pytest.mark.asyncio
async def test_stream_sends_keepalive_when_idle():
  relay = DeepLinkRelay()
  stream = oauth_event_stream(relay, connected_request(), keepalive=0.01)

  frame = await asyncio.wait_for(stream.__anext__(), timeout=1)

  assert frame == ": keepalive\n\n"
  await stream.aclose()


@pytest.mark.asyncio
async def test_stream_stops_on_disconnect_and_later_uris_buffer():
  relay = DeepLinkRelay()
  request = MagicMock()
  request.is_disconnected = AsyncMock(return_value=True)

  frames = [frame async for frame in oauth_event_stream(relay, request)]

  assert frames == []
  assert not relay.has_subscriber
  relay.on_uri_received(CALLBACK)
  assert relay.pending_uri == CALLBACK


@pytest.mark.asyncio
async def test_closing_old_stream_keeps_new_listener():
  relay = DeepLinkRelay()
  old = oauth_event_stream(relay, connected_request(), keepalive=0.01)
  await old.__anext__()

  new = oauth_event_stream(relay, connected_request(), keepalive=0.01)
  await new.__anext__()

  await old.aclose()
  assert relay.has_subscriber

  await new.aclose()
  assert not relay.has_subscriber


@pytest.mark.asyncio
async def test_flushed_uri_returns_to_relay_when_client_already_gone():
  relay = DeepLinkRelay()
  relay.on_uri_received(CALLBACK)
  request = MagicMock()
  request.is_disconnected = AsyncMock(return_value=True)

  frames = [frame async for frame in oauth_event_stream(relay, request)]

  assert frames == []
  assert relay.pending_uri == CALLBACK


@pytest.mark.asyncio
async def test_unsent_uri_returns_to_relay_when_stream_cancelled():
  relay = DeepLinkRelay()
  stream = oauth_event_stream(relay, connected_request(), keepalive=1)
  next_frame = asyncio.ensure_future(stream.__anext__())
  await asyncio.sleep(0)

  relay.on_uri_received(CALLBACK)
  next_frame.cancel()
  with pytest.raises(asyncio.CancelledError):
    await next_frame

  assert not relay.has_subscriber
  assert relay.pending_uri == CALLBACK


@pytest.mark.asyncio
async def test_sent_uri_is_not_returned_to_relay():
  relay = DeepLinkRelay()
  relay.on_uri_received(CALLBACK)
  stream = oauth_event_stream(relay, connected_request(), keepalive=1)

  await asyncio.wait_for(stream.__anext__(), timeout=1)
  await stream.aclose()

  assert relay.pending_uri is None


def test_queue_subscriber_tracks_unsent():
  loop = MagicMock()
  subscriber = QueueSubscriber(loop)

  subscriber("songbuddy://callback?code=1")
  subscriber("songbuddy://callback?code=2")
  subscriber.mark_sent("songbuddy://callback?code=1")

  assert subscriber.undelivered() == ["songbuddy://callback?code=2"]
  assert loop.call_soon_threadsafe.call_count == 2
