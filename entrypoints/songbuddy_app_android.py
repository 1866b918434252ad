"""Android entrypoint for the packaged SongBuddy app.

Injects Android OS interfaces into the shared pywebview+backend bootstrap.
"""

from __future__ import annotations

import os
from pathlib import Path

from entrypoints.songbuddy_app_core import run_pywebview_app
from os_interfaces.base import OSImplementations
from os_interfaces.android import (
  AndroidDeepLinkRegistrar,
  AndroidDeepLinkSource,
  AndroidNotificationChannelManager,
)

# On Android we rely on runtime-provided assets; in practice this may be set via env.
FRONTEND_PATH = Path(
  os.environ.get(
    "SONGBUDDY_FRONTEND_PATH", "/data/user/0/com.songbuddy.app/files/frontend"
  )
)


def main() -> None:
  os_impl = OSImplementations(
    notification_channel_manager_cls=AndroidNotificationChannelManager,
    deep_link_registrar_cls=AndroidDeepLinkRegistrar,
    deep_link_source_cls=AndroidDeepLinkSource,
  )
  run_pywebview_app(frontend_path=FRONTEND_PATH, os_impl=os_impl)


if __name__ == "__main__":
  main()
