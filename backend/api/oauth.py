"""OAuth redirect event channel endpoints"""

import ipaddress
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from backend.bridge import oauth_event_stream
from backend.config import AppConfig
from backend.exceptions import AppError
from deeplink import DeepLinkRelay

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/oauth", tags=["oauth"])


class RelayStatus(BaseModel):
  channel: str
  subscribed: bool
  pending: bool


class RedirectRequest(BaseModel):
  uri: str


class RedirectResponse(BaseModel):
  accepted: bool


def _relay(request: Request) -> DeepLinkRelay:
  relay = getattr(request.app.state, "relay", None)
  if relay is None:
    raise AppError(
      description="Deep link relay is not configured",
      name="RELAY_NOT_CONFIGURED",
      source="deeplink",
    )
  return relay


def require_loopback(request: Request) -> None:
  """Only processes on this machine may hand over redirects."""
  host = request.client.host if request.client else ""
  try:
    is_loopback = ipaddress.ip_address(host).is_loopback
  except ValueError:
    is_loopback = False
  if not is_loopback:
    raise AppError(
      description=f"Redirect hand-off refused for non-local client {host!r}",
      name="REDIRECT_NOT_LOCAL",
      source="access",
    )


@router.get("/events")
async def oauth_events(request: Request) -> StreamingResponse:
  """Server-sent events carrying each accepted redirect URI, unmodified.

  Only one listener is served; a new connection takes over from the old one.
  """
  relay = _relay(request)
  return StreamingResponse(
    oauth_event_stream(relay, request, keepalive=AppConfig.SSE_KEEPALIVE_SECONDS),
    media_type="text/event-stream",
    headers={"Cache-Control": "no-cache"},
  )


@router.post(
  "/redirect",
  response_model=RedirectResponse,
  dependencies=[Depends(require_loopback)],
)
async def oauth_redirect(body: RedirectRequest, request: Request) -> RedirectResponse:
  """Accept a redirect URI from a second launch of the app.

  On Linux the desktop entry starts a new process per link; that process
  forwards the link here instead of starting another window.
  """
  relay = _relay(request)
  accepted = relay.on_uri_received(body.uri)
  logger.info("Redirect handed over by another launch (accepted=%s)", accepted)
  return RedirectResponse(accepted=accepted)


@router.get("/status", response_model=RelayStatus)
async def oauth_status(request: Request) -> RelayStatus:
  relay = _relay(request)
  return RelayStatus(
    channel=request.app.state.settings.deep_link.event_channel,
    subscribed=relay.has_subscriber,
    pending=relay.pending_uri is not None,
  )
