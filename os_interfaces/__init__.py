"""OS interface module - platform-specific implementations

Since we build separate executables for each platform,
import the appropriate implementation directly in the entry points:
- entrypoints/songbuddy_app_linux.py imports from os_interfaces.linux
- entrypoints/songbuddy_app_android.py imports from os_interfaces.android
"""

from .base import (
  DeepLinkRegistrar,
  DeepLinkSource,
  NotificationChannelConfig,
  NotificationChannelManager,
  OSImplementations,
)

__all__ = [
  "DeepLinkRegistrar",
  "DeepLinkSource",
  "NotificationChannelConfig",
  "NotificationChannelManager",
  "OSImplementations",
]
