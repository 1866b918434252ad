"""
Custom exceptions for the SongBuddy shell
"""

from typing import Literal, Optional, cast
from pydantic import BaseModel, Field


# All possible error sources in the application
ErrorSource = Literal[
  "validation",  # Request validation errors
  "config",  # Settings file / environment errors
  "deeplink",  # Deep-link relay and event stream
  "access",  # Requests from clients that may not use an endpoint
  "notifications",  # Notification channel subsystem
  "platform",  # OS integration (scheme registration, intents)
  "backend",  # General backend API errors
  "http",  # HTTP protocol errors
  "unknown",  # Uncategorized errors
]


def get_status_code(source: ErrorSource) -> int:
  """Determine HTTP status code based on error source"""
  if source == "validation":
    return 400  # Bad Request
  elif source == "access":
    return 403  # Forbidden
  elif source == "deeplink":
    return 503  # Relay not available yet
  elif source in [
    "http",
    "config",
    "notifications",
    "platform",
    "backend",
    "unknown",
  ]:
    return 500  # Internal Server Error
  else:
    return 500


class ErrorResponse(BaseModel):
  """Standardized error response model"""

  description: str = Field(..., description="Human-readable error message")
  name: str = Field(..., description="Unique error identifier")
  source: ErrorSource = Field(..., description="Where the error originated")
  caused_by: Optional[str] = Field(
    None, description="Original error details if this is a chained error"
  )


class AppError(Exception):
  """
  Custom exception class for SongBuddy application errors.
  All errors should be converted to this format for consistent handling.
  """

  def __init__(
    self,
    description: str,
    name: str,
    source: ErrorSource,
    caused_by: Optional[str] = None,
  ):
    """
    Initialize an application error

    Args:
        description: Human-readable error message
        name: Unique error identifier (e.g., "CONFIG_INVALID")
        source: Where the error originated from
        caused_by: Original error details if this wraps another error
    """
    self.description: str = description
    self.name: str = name
    self.source: ErrorSource = source
    self.caused_by: Optional[str] = caused_by
    super().__init__(description)

  def to_response(self) -> ErrorResponse:
    """Convert to ErrorResponse model for API responses"""
    return ErrorResponse(
      description=self.description,
      name=self.name,
      source=cast(ErrorSource, self.source),
      caused_by=self.caused_by,
    )

  @classmethod
  def from_exception(
    cls,
    e: Exception,
    name: str,
    source: ErrorSource,
    context: Optional[str] = None,
  ) -> "AppError":
    """
    Create an AppError from an existing exception

    Args:
        e: The original exception
        name: Error identifier for this error
        source: Where this error originated
        context: Additional context to prepend to the description

    Returns:
        AppError with original exception details preserved
    """
    original_msg = str(e)
    description = f"{context}: {original_msg}" if context else original_msg

    return cls(
      description=description,
      name=name,
      source=source,
      caused_by=f"{e.__class__.__name__}: {original_msg}",
    )
