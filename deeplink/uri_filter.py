"""Scheme/host matching for OAuth redirect deep links."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import urlsplit

DEFAULT_SCHEME = "songbuddy"
DEFAULT_CALLBACK_HOST = "callback"
EVENT_CHANNEL = "songbuddy/oauth"


def _scheme_and_host(uri: Any) -> Optional[tuple[str, str]]:
  """Scheme and host exactly as written, or None when `uri` is not a URL.

  `urlsplit` lower-cases the scheme and `.hostname` lower-cases the host,
  so both are taken from the raw text instead.
  """
  if not isinstance(uri, str) or not uri:
    return None
  try:
    parts = urlsplit(uri)
  except ValueError:
    return None
  scheme, sep, _ = uri.partition(":")
  if not sep or scheme.lower() != parts.scheme:
    return None
  host = parts.netloc.rpartition("@")[2]
  if not host.startswith("["):
    host = host.partition(":")[0]
  return scheme, host


@dataclass(frozen=True)
class CallbackUriFilter:
  """Accepts only `<scheme>://<host>...` URIs.

  Scheme and host are compared exactly; `SONGBUDDY://CALLBACK` is not the
  callback URI.
  """

  scheme: str = DEFAULT_SCHEME
  host: str = DEFAULT_CALLBACK_HOST

  def matches(self, uri: Any) -> bool:
    found = _scheme_and_host(uri)
    return found is not None and found == (self.scheme, self.host)

  def describe(self, uri: Any) -> str:
    """Short `scheme://host` form for log lines."""
    found = _scheme_and_host(uri)
    if found is None:
      return repr(uri)
    return f"{found[0]}://{found[1]}"

  @property
  def example(self) -> str:
    return f"{self.scheme}://{self.host}"
