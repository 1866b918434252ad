"""
SongBuddy shell backend - FastAPI server for the webview UI
"""

from contextlib import asynccontextmanager
import logging
from pathlib import Path
from typing import Optional

from asgi_correlation_id import CorrelationIdFilter
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException

from backend.api.oauth import router as oauth_router
from backend.config import SERVICE_NAME, AppConfig, AppSettings
from backend.middleware import (
  ErrorHandlingMiddleware,
  http_exception_handler,
  setup_logging_middleware,
)
from deeplink import DeepLinkRelay

logger = logging.getLogger(__name__)


def _install_correlation_filter() -> None:
  for handler in logging.root.handlers:
    if not any(isinstance(f, CorrelationIdFilter) for f in handler.filters):
      handler.addFilter(CorrelationIdFilter(uuid_length=4))


def resolve_frontend_file(frontend_path: Path, full_path: str) -> Optional[Path]:
  """File under `frontend_path` named by a request path, or None.

  Paths resolving outside the frontend directory (`..`, symlinks) count as
  missing.
  """
  root = frontend_path.resolve()
  file_path = (root / full_path).resolve()
  if not file_path.is_relative_to(root) or not file_path.is_file():
    return None
  return file_path


def _mount_frontend(app: FastAPI, frontend_path: Path) -> None:
  logger.info(f"Serving frontend from: {frontend_path}")

  if (frontend_path / "assets").is_dir():
    app.mount("/assets", StaticFiles(directory=frontend_path / "assets"), name="assets")

  # Catch-all route for SPA - must be last
  @app.get("/{full_path:path}")
  async def serve_frontend(full_path: str):
    """Serve frontend files, fallback to index.html for SPA routing"""
    file_path = resolve_frontend_file(frontend_path, full_path)
    if file_path is not None:
      return FileResponse(file_path)

    response = FileResponse(frontend_path / "index.html")
    response.headers["Cache-Control"] = "no-cache, no-store, must-revalidate"
    return response


def create_app(
  relay: DeepLinkRelay,
  settings: Optional[AppSettings] = None,
  frontend_path: Optional[Path] = None,
) -> FastAPI:
  """
  Build the backend for one relay instance

  Args:
    relay: The process-wide deep link relay
    settings: Loaded app settings (defaults if omitted)
    frontend_path: Bundled web UI to serve; API-only when None
  """
  settings = settings or AppSettings()
  _install_correlation_filter()

  @asynccontextmanager
  async def lifespan(app: FastAPI):
    logger.info("Starting SongBuddy backend...")
    yield
    # the listener is gone with the server; later redirects get buffered
    relay.detach()
    logger.info("Shutting down SongBuddy backend...")

  app = FastAPI(
    title="SongBuddy",
    description="Platform shell: OAuth deep links and notifications",
    version="0.1.0",
    lifespan=lifespan,
    exception_handlers={HTTPException: http_exception_handler},
  )
  app.state.relay = relay
  app.state.settings = settings

  # innermost
  app.add_middleware(ErrorHandlingMiddleware)

  app.add_middleware(
    CORSMiddleware,
    allow_origins=[
      f"http://{AppConfig.HOST}:{AppConfig.PORT}",
      f"http://localhost:{AppConfig.PORT}",
    ],
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
  )

  # outermost
  setup_logging_middleware(app)

  app.include_router(oauth_router)

  @app.get("/health")
  async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": SERVICE_NAME, "version": "0.1.0"}

  if frontend_path is not None and frontend_path.exists():
    _mount_frontend(app, frontend_path)
  else:
    logger.warning("Frontend directory not found or not set. API-only mode.")

    @app.get("/")
    async def root():
      """Root endpoint - API only mode"""
      return {"message": "SongBuddy API", "version": "0.1.0"}

  return app
