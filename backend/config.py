"""
Configuration module for the SongBuddy shell
Environment settings plus the YAML settings file in the user config dir
"""

import os
import re
import logging
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv
from platformdirs import user_config_dir
from pydantic import BaseModel, Field, ValidationError, field_validator

from backend.exceptions import AppError
from deeplink import (
  DEFAULT_CALLBACK_HOST,
  DEFAULT_SCHEME,
  EVENT_CHANNEL,
  CallbackUriFilter,
)
from os_interfaces.base import NotificationChannelConfig

logger = logging.getLogger(__name__)

# Load environment variables from .env file
load_dotenv()

APP_NAME = "songbuddy"
SETTINGS_FILE_NAME = "songbuddy.yaml"
SERVICE_NAME = "songbuddy-backend"

# RFC 3986: ALPHA *( ALPHA / DIGIT / "+" / "-" / "." )
_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*$")


class DeepLinkSettings(BaseModel):
  """Which redirect URIs the relay accepts"""

  scheme: str = DEFAULT_SCHEME
  callback_host: str = DEFAULT_CALLBACK_HOST
  event_channel: str = EVENT_CHANNEL

  @field_validator("scheme")
  @classmethod
  def validate_scheme(cls, v: str) -> str:
    if not _SCHEME_RE.match(v):
      raise ValueError(f"Invalid URI scheme: {v!r}")
    return v

  @field_validator("callback_host")
  @classmethod
  def validate_host(cls, v: str) -> str:
    if not v or any(c in v for c in "/?#@: "):
      raise ValueError(f"Invalid callback host: {v!r}")
    return v

  def uri_filter(self) -> CallbackUriFilter:
    return CallbackUriFilter(scheme=self.scheme, host=self.callback_host)


class AppSettings(BaseModel):
  """Complete settings file"""

  deep_link: DeepLinkSettings = Field(default_factory=DeepLinkSettings)
  sync_channel: NotificationChannelConfig = Field(
    default_factory=NotificationChannelConfig
  )


def default_settings_path() -> Path:
  """Settings file location; SONGBUDDY_CONFIG overrides it."""
  override = os.getenv("SONGBUDDY_CONFIG")
  if override:
    return Path(override)
  return Path(user_config_dir(APP_NAME)) / SETTINGS_FILE_NAME


def load_settings(config_path: Optional[Path | str] = None) -> AppSettings:
  """
  Load app settings from YAML, falling back to defaults

  Args:
      config_path: Settings file; defaults to default_settings_path()

  Returns:
      AppSettings (defaults when the file does not exist)

  Raises:
      AppError: If the file is malformed or does not match the schema
  """
  path = Path(config_path) if config_path else default_settings_path()

  if not path.exists():
    logger.debug(f"No settings file at {path}, using defaults")
    return AppSettings()

  try:
    with open(path, "r") as f:
      raw = yaml.safe_load(f) or {}
    settings = AppSettings.model_validate(raw)
  except (yaml.YAMLError, ValidationError) as e:
    raise AppError.from_exception(
      e,
      name="CONFIG_INVALID",
      source="config",
      context=f"Invalid settings file {path}",
    ) from e

  logger.info(f"Loaded settings from {path}")
  return settings


# Configuration class for other settings
class AppConfig:
  """Application configuration settings"""

  # Server settings (the backend only listens on loopback for the webview)
  HOST = os.getenv("HOST", "127.0.0.1")
  PORT = int(os.getenv("PORT", "8000"))

  # Shell settings
  WEBVIEW_DEBUG = os.getenv("SONGBUDDY_WEBVIEW_DEBUG", "").strip().lower() in {
    "1",
    "true",
  }
  FRONTEND_PATH = os.getenv("SONGBUDDY_FRONTEND_PATH")

  # Event stream settings
  SSE_KEEPALIVE_SECONDS = float(os.getenv("SSE_KEEPALIVE_SECONDS", "15"))

  # Logging
  LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
  LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
