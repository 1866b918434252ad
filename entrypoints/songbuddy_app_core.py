"""Platform-agnostic pywebview app bootstrap.

The platform-specific entrypoints (Linux/Android) import this module and
provide the correct OS-interface implementations.

Contract:
- Inputs: an os-interface bundle `os_impl` and the loaded settings.
- Behavior: wires the deep link relay to the OS, starts the FastAPI backend
  that exposes the OAuth event stream, and opens a webview.
"""

from __future__ import annotations

import json
import logging
import os
import sys
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from urllib.error import URLError
from urllib.request import ProxyHandler, Request, build_opener

import uvicorn
import webview

from backend.config import SERVICE_NAME, AppConfig, AppSettings, load_settings
from deeplink import DeepLinkRelay
from os_interfaces.base import DeepLinkSource, OSImplementations

logging.basicConfig(
  level=logging.DEBUG if AppConfig.WEBVIEW_DEBUG else AppConfig.LOG_LEVEL,
  format=AppConfig.LOG_FORMAT,
)
logger = logging.getLogger(__name__)

# loopback requests must never go through an http_proxy from the environment
_local_opener = build_opener(ProxyHandler({}))


@dataclass
class PlatformWiring:
  relay: DeepLinkRelay
  source: DeepLinkSource
  scheme_registered: bool
  channel_created: bool


def bootstrap(
  os_impl: OSImplementations,
  settings: AppSettings,
  *,
  registrar_args: tuple = (),
  source_args: tuple = (),
) -> PlatformWiring:
  """Construct the relay once and hand it to the platform callback sites."""
  uri_filter = settings.deep_link.uri_filter()
  relay = DeepLinkRelay(uri_filter)

  channel_created = os_impl.notification_channel_manager().create_channel(
    settings.sync_channel
  )
  scheme_registered = os_impl.deep_link_registrar(*registrar_args).register(uri_filter)
  if not scheme_registered:
    logger.warning("%s links may not reach the app", uri_filter.example)

  source = os_impl.deep_link_source(*source_args)
  source.start(relay)

  return PlatformWiring(
    relay=relay,
    source=source,
    scheme_registered=scheme_registered,
    channel_created=channel_created,
  )


def _start_backend_server(
  relay: DeepLinkRelay, settings: AppSettings, frontend_path: Path
) -> None:
  try:
    logger.info("Starting FastAPI backend on %s:%s", AppConfig.HOST, AppConfig.PORT)

    from backend.main import create_app

    app = create_app(relay, settings, frontend_path=frontend_path)

    uvicorn.run(
      app,
      host=AppConfig.HOST,
      port=AppConfig.PORT,
      log_level="info",
      access_log=False,
    )
  except Exception:
    logger.exception("Failed to start backend server")
    sys.exit(1)


def _wait_for_backend(timeout: int = 10) -> bool:
  url = f"http://{AppConfig.HOST}:{AppConfig.PORT}/health"
  start_time = time.time()

  logger.info("Waiting for backend to be ready...")
  while time.time() - start_time < timeout:
    try:
      with _local_opener.open(url, timeout=1) as response:
        if response.status == 200:
          logger.info("Backend is ready!")
          return True
    except (URLError, OSError):
      time.sleep(0.1)

  logger.error("Backend failed to start within %s seconds", timeout)
  return False


def forward_to_running_instance(
  uris: list[str],
  host: str | None = None,
  port: int | None = None,
) -> bool:
  """Hand `uris` to an already running backend.

  Returns:
    True if another instance answered (the caller should exit), False if
    this process should start the app itself
  """
  base = f"http://{host or AppConfig.HOST}:{port or AppConfig.PORT}"
  try:
    with _local_opener.open(f"{base}/health", timeout=1) as response:
      health = json.load(response)
  except (URLError, OSError, ValueError):
    return False
  if not isinstance(health, dict) or health.get("service") != SERVICE_NAME:
    logger.warning("Port in use by something other than %s", SERVICE_NAME)
    return False

  for uri in uris:
    request = Request(
      f"{base}/api/oauth/redirect",
      data=json.dumps({"uri": uri}).encode(),
      headers={"Content-Type": "application/json"},
      method="POST",
    )
    try:
      with _local_opener.open(request, timeout=2) as response:
        accepted = json.load(response)["accepted"]
      logger.info("Forwarded link to running instance (accepted=%s)", accepted)
    except (URLError, OSError, ValueError, KeyError) as e:
      logger.error(f"Failed to forward link to running instance: {e}")
  return True


def _create_window() -> None:
  cache_bust = int(time.time())
  webview.create_window(
    title="SongBuddy",
    url=f"http://{AppConfig.HOST}:{AppConfig.PORT}?v={cache_bust}",
    width=420,
    height=820,
    resizable=True,
    fullscreen=False,
    min_size=(360, 640),
  )


def run_pywebview_app(
  *,
  frontend_path: Path,
  os_impl: OSImplementations,
  registrar_args: tuple = (),
  source_args: tuple = (),
) -> None:
  logger.info("Starting SongBuddy shell...")

  if not frontend_path.exists():
    raise FileNotFoundError(f"Frontend path does not exist: {frontend_path}")

  settings = load_settings()
  wiring = bootstrap(
    os_impl, settings, registrar_args=registrar_args, source_args=source_args
  )

  backend_thread = threading.Thread(
    target=_start_backend_server,
    args=(wiring.relay, settings, frontend_path),
    daemon=True,
    name="FastAPI-Backend",
  )
  backend_thread.start()

  if not _wait_for_backend():
    raise RuntimeError("Backend failed to start")

  _create_window()

  logger.info("Starting pywebview...")
  webview.start(debug=AppConfig.WEBVIEW_DEBUG, private_mode=False)

  wiring.source.stop()
  logger.info("SongBuddy window closed. Exiting...")
  os._exit(0)
