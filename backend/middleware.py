"""
Middleware for error handling and request logging
"""

import time
import logging
import traceback

from fastapi import Request
from starlette.exceptions import HTTPException
from fastapi.responses import JSONResponse
from starlette.types import ASGIApp, Receive, Scope, Send
from asgi_correlation_id import CorrelationIdMiddleware
from backend.exceptions import AppError, get_status_code

logger = logging.getLogger(__name__)


class ErrorHandlingMiddleware:
  def __init__(self, app: ASGIApp):
    self.app = app

  async def __call__(self, scope: Scope, receive: Receive, send: Send):
    if scope["type"] != "http":
      await self.app(scope, receive, send)
      return

    response_started = False

    async def send_wrapper(message):
      nonlocal response_started
      if message["type"] == "http.response.start":
        response_started = True
      await send(message)

    try:
      await self.app(scope, receive, send_wrapper)
    except Exception as e:
      response = error_handler(e)
      if not response_started:
        await response(scope, receive, send_wrapper)
      else:
        # event stream already open; nothing left to report to
        logger.error("Error after response started: %s", e)


def error_handler(exc: Exception) -> JSONResponse:
  """
  Handle errors consistently
  Converts all exceptions to AppError format for uniform error responses.
  """
  match exc:
    case AppError() as e:
      logger.error(f"[{e.source}] {e.name}: {e.description}")
      return JSONResponse(
        status_code=get_status_code(e.source),
        content=e.to_response().model_dump(),
      )

    case HTTPException() as e:
      logger.warning(f"HTTP error {e.status_code}: {e.detail}")
      app_error = AppError(
        description=str(e.detail),
        name=f"HTTP_{e.status_code}",
        source="http",
      )
      return JSONResponse(
        status_code=e.status_code,
        content=app_error.to_response().model_dump(),
      )

    case ValueError() as e:
      logger.error(f"Validation error: {e}")
      app_error = AppError(
        description=str(e),
        name="VALIDATION_ERROR",
        source="validation",
        caused_by=f"{e.__class__.__name__}: {str(e)}",
      )
      return JSONResponse(
        status_code=400,
        content=app_error.to_response().model_dump(),
      )

    case Exception() as e:
      logger.error(f"Unhandled error: {e}", exc_info=True)
      tb = traceback.format_exc()

      app_error = AppError(
        description=str(e),
        name="INTERNAL_ERROR",
        source="unknown",
        caused_by=f"{e.__class__.__name__}: {str(e)}\n\nTraceback:\n{tb}",
      )
      return JSONResponse(
        status_code=500,
        content=app_error.to_response().model_dump(),
      )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
  """Give router errors (404, 405) the same body as AppError responses"""
  return error_handler(exc)


class LoggingMiddleware:
  def __init__(self, app: ASGIApp):
    self.app = app

  async def __call__(self, scope: Scope, receive: Receive, send: Send):
    if scope["type"] != "http":
      await self.app(scope, receive, send)
      return

    start_time = time.time()
    method = scope["method"]
    path = scope["path"]
    query_string = scope["query_string"].decode()
    client = (scope.get("client") or ("unknown", 0))[0]

    logger.info(
      f"Request: {method} {path}{'?' + query_string if query_string else ''} "
      f"from {client}"
    )

    status_code = None

    async def send_wrapper(message):
      nonlocal status_code
      if message["type"] == "http.response.start":
        status_code = message["status"]
      await send(message)

    await self.app(scope, receive, send_wrapper)

    duration = time.time() - start_time
    logger.info(f"Response: {status_code} for {method} {path} (took {duration:.3f}s)")


def setup_logging_middleware(app):
  """
  Set up request logging middleware

  Args:
    app: FastAPI application instance
  """
  # Logging should be outermost to log all requests
  app.add_middleware(LoggingMiddleware)

  app.add_middleware(CorrelationIdMiddleware)

  logger.info("Middleware configured successfully")
