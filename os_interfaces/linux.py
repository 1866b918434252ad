"""Linux-specific implementations of OS interfaces"""

import logging
import shlex
import subprocess
import sys
from pathlib import Path
from typing import Optional, Sequence

from desktop_notifier import DesktopNotifier
from platformdirs import user_data_dir

from backend.exceptions import AppError
from deeplink import CallbackUriFilter, DeepLinkRelay
from .base import (
  DeepLinkRegistrar,
  DeepLinkSource,
  NotificationChannelConfig,
  NotificationChannelManager,
)

logger = logging.getLogger(__name__)


class LinuxNotificationChannelManager(NotificationChannelManager):
  """Linux notifications using desktop-notifier.

  Freedesktop notifications have no channels; each channel maps to its own
  notifier named after the channel.
  """

  def __init__(self):
    self.notifiers: dict[str, DesktopNotifier] = {}

  def create_channel(self, config: NotificationChannelConfig) -> bool:
    if config.id not in self.notifiers:
      self.notifiers[config.id] = DesktopNotifier(app_name=config.name)
      logger.info(f"Notification channel registered: {config.id}")
    return True

  async def notify(self, channel_id: str, title: str, body: str) -> None:
    notifier = self.notifiers.get(channel_id)
    if notifier is None:
      raise AppError(
        description=f"Notification channel '{channel_id}' was never created",
        name="NOTIFICATION_CHANNEL_UNKNOWN",
        source="notifications",
      )
    try:
      await notifier.send(title=title, message=body)
      logger.info(f"Notification sent: {title}")
    except Exception as e:
      logger.error(f"Failed to send notification: {e}")


class LinuxDeepLinkRegistrar(DeepLinkRegistrar):
  """Registers the scheme through an xdg desktop entry and xdg-mime"""

  def __init__(self, app_name: str, command: Optional[Sequence[str]] = None):
    self.app_name = app_name
    self.command = list(command or [sys.executable, "-m", "entrypoints.songbuddy_app_linux"])

  # ---- helpers ----
  def _applications_dir(self) -> Path:
    return Path(user_data_dir()) / "applications"

  def _desktop_file_name(self) -> str:
    return f"{self.app_name}-url-handler.desktop"

  def _desktop_entry(self, scheme: str) -> str:
    exec_line = " ".join(shlex.quote(part) for part in self.command)
    return (
      "[Desktop Entry]\n"
      "Type=Application\n"
      f"Name={self.app_name}\n"
      f"Exec={exec_line} %u\n"
      "Terminal=false\n"
      "NoDisplay=true\n"
      f"MimeType=x-scheme-handler/{scheme};\n"
    )

  def _write_entry(self, name: str, content: str) -> Path:
    d = self._applications_dir()
    d.mkdir(parents=True, exist_ok=True)
    p = d / name
    if p.exists() and p.read_text() == content:
      logger.info("Desktop entry %s already up to date", p)
      return p
    p.write_text(content)
    return p

  # ---- public API ----
  def register(self, uri_filter: CallbackUriFilter) -> bool:
    scheme = uri_filter.scheme
    name = self._desktop_file_name()
    try:
      path = self._write_entry(name, self._desktop_entry(scheme))
      subprocess.run(
        ["xdg-mime", "default", name, f"x-scheme-handler/{scheme}"],
        check=True,
        capture_output=True,
      )
    except FileNotFoundError:
      logger.error("xdg-mime not found; cannot register %s:// handler", scheme)
      return False
    except (OSError, subprocess.CalledProcessError) as e:
      logger.error(f"Failed to register {scheme}:// handler: {e}")
      return False

    logger.info(f"Registered {scheme}:// handler via {path}")
    return True


class LinuxDeepLinkSource(DeepLinkSource):
  """URIs handed over on the command line (the desktop entry's %u)"""

  def __init__(self, argv: Optional[Sequence[str]] = None):
    self.argv = list(sys.argv[1:] if argv is None else argv)

  def start(self, relay: DeepLinkRelay) -> None:
    for arg in self.argv:
      relay.on_uri_received(arg)

  def stop(self) -> None:
    pass
