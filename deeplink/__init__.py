"""Deep-link capture and delivery.

Platform code feeds redirect URIs into a `DeepLinkRelay`; the app layer
attaches a single subscriber to receive them.
"""

from .relay import DeepLinkRelay, StreamHandler, Subscriber
from .uri_filter import (
  DEFAULT_CALLBACK_HOST,
  DEFAULT_SCHEME,
  EVENT_CHANNEL,
  CallbackUriFilter,
)

__all__ = [
  "CallbackUriFilter",
  "DEFAULT_CALLBACK_HOST",
  "DEFAULT_SCHEME",
  "DeepLinkRelay",
  "EVENT_CHANNEL",
  "StreamHandler",
  "Subscriber",
]
