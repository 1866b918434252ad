"""Linux entrypoint for the SongBuddy app (pywebview shell + backend).

Also the handler the desktop entry launches for songbuddy:// links; the
link arrives as the first argument. When the app is already running the
link is handed to it and this process exits.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from backend.config import APP_NAME, AppConfig
from entrypoints.songbuddy_app_core import (
  forward_to_running_instance,
  run_pywebview_app,
)
from os_interfaces.base import OSImplementations
from os_interfaces.linux import (
  LinuxDeepLinkRegistrar,
  LinuxDeepLinkSource,
  LinuxNotificationChannelManager,
)

logger = logging.getLogger(__name__)

# Desktop build substitutes this path; in dev SONGBUDDY_FRONTEND_PATH overrides it.
FRONTEND_PATH = Path(AppConfig.FRONTEND_PATH or "@FRONTEND_PATH@")


def main(argv: list[str] | None = None) -> None:
  args = sys.argv[1:] if argv is None else argv
  if forward_to_running_instance(args):
    logger.info("SongBuddy is already running; exiting")
    return

  os_impl = OSImplementations(
    notification_channel_manager_cls=LinuxNotificationChannelManager,
    deep_link_registrar_cls=LinuxDeepLinkRegistrar,
    deep_link_source_cls=LinuxDeepLinkSource,
  )
  run_pywebview_app(
    frontend_path=FRONTEND_PATH,
    os_impl=os_impl,
    registrar_args=(APP_NAME,),
    source_args=(args,),
  )


if __name__ == "__main__":
  main()
