"""Tests for settings loading"""

import pytest

from backend.config import AppSettings, default_settings_path, load_settings
from backend.exceptions import AppError
from deeplink import CallbackUriFilter


def test_missing_file_gives_defaults(tmp_path):
  settings = load_settings(tmp_path / "nope.yaml")

  assert settings == AppSettings()
  assert settings.deep_link.uri_filter() == CallbackUriFilter("songbuddy", "callback")
  assert settings.deep_link.event_channel == "songbuddy/oauth"
  assert settings.sync_channel.id == "currently_playing_sync"
  assert settings.sync_channel.importance == "low"


def test_yaml_overrides(tmp_path):
  config_file = tmp_path / "songbuddy.yaml"
  config_file.write_text(
    """
deep_link:
  scheme: SongBuddyDev
  callback_host: oauth
sync_channel:
  name: SongBuddy Dev Sync
  importance: default
"""
  )

  settings = load_settings(config_file)

  assert settings.deep_link.scheme == "SongBuddyDev"
  assert settings.deep_link.callback_host == "oauth"
  assert settings.sync_channel.name == "SongBuddy Dev Sync"
  assert settings.sync_channel.importance == "default"
  # untouched fields keep their defaults
  assert settings.sync_channel.id == "currently_playing_sync"
  assert settings.sync_channel.vibration is False


def test_empty_file_gives_defaults(tmp_path):
  config_file = tmp_path / "songbuddy.yaml"
  config_file.write_text("")
  assert load_settings(config_file) == AppSettings()


@pytest.mark.parametrize(
  "content",
  [
    "deep_link:\n  scheme: '1bad'\n",
    "deep_link:\n  callback_host: 'a/b'\n",
    "sync_channel:\n  importance: loud\n",
    "deep_link: [unclosed\n",
  ],
)
def test_invalid_file_raises_app_error(tmp_path, content):
  config_file = tmp_path / "songbuddy.yaml"
  config_file.write_text(content)

  with pytest.raises(AppError) as exc_info:
    load_settings(config_file)

  assert exc_info.value.name == "CONFIG_INVALID"
  assert exc_info.value.source == "config"
  assert str(config_file) in exc_info.value.description


def test_env_overrides_settings_path(tmp_path, monkeypatch):
  config_file = tmp_path / "custom.yaml"
  monkeypatch.setenv("SONGBUDDY_CONFIG", str(config_file))
  assert default_settings_path() == config_file

  config_file.write_text("deep_link:\n  scheme: other\n")
  assert load_settings().deep_link.scheme == "other"
