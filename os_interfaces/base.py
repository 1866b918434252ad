"""Abstract base classes for OS-specific interfaces"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Literal

from deeplink import CallbackUriFilter, DeepLinkRelay

Importance = Literal["min", "low", "default", "high"]


@dataclass
class NotificationChannelConfig:
  id: str = "currently_playing_sync"
  name: str = "SongBuddy Sync"
  description: str = "Background sync for currently playing music"
  importance: Importance = "low"
  show_badge: bool = False
  lights: bool = False
  vibration: bool = False
  sound: bool = False


class NotificationChannelManager(ABC):
  """Abstract base class for notification channels"""

  @abstractmethod
  def create_channel(self, config: NotificationChannelConfig) -> bool:
    """Register a notification channel with the OS.

    Safe to call on every start; re-creating an existing channel updates it.

    Args:
      config: Channel id, user-visible name and behaviour flags

    Returns:
      True if the channel was registered, False if the platform has no
      channels to register
    """
    raise NotImplementedError

  @abstractmethod
  async def notify(self, channel_id: str, title: str, body: str) -> None:
    """Post a notification on a channel created earlier

    Raises:
      AppError: if the channel was never created
    """
    raise NotImplementedError


class DeepLinkRegistrar(ABC):
  """Abstract base class for URI scheme registration"""

  @abstractmethod
  def register(self, uri_filter: CallbackUriFilter) -> bool:
    """Make the OS route `scheme://host` links to this app.

    Returns:
      True if the scheme is routed to the app
    """
    raise NotImplementedError


class DeepLinkSource(ABC):
  """Abstract base class for OS deep-link delivery"""

  @abstractmethod
  def start(self, relay: DeepLinkRelay) -> None:
    """Feed URIs opened by the OS into `relay` from now on."""
    raise NotImplementedError

  @abstractmethod
  def stop(self) -> None:
    raise NotImplementedError


@dataclass
class OSImplementations:
  """Platform implementations injected by the entrypoints."""

  notification_channel_manager_cls: Callable[..., NotificationChannelManager]
  deep_link_registrar_cls: Callable[..., DeepLinkRegistrar]
  deep_link_source_cls: Callable[..., DeepLinkSource]

  def notification_channel_manager(self, *args, **kwargs) -> NotificationChannelManager:
    return self.notification_channel_manager_cls(*args, **kwargs)

  def deep_link_registrar(self, *args, **kwargs) -> DeepLinkRegistrar:
    return self.deep_link_registrar_cls(*args, **kwargs)

  def deep_link_source(self, *args, **kwargs) -> DeepLinkSource:
    return self.deep_link_source_cls(*args, **kwargs)
