"""Android-specific implementations of OS interfaces."""

from __future__ import annotations

import logging
import random
from typing import Callable, Optional

from jnius import PythonJavaClass, autoclass, java_method  # type: ignore

from backend.exceptions import AppError
from deeplink import CallbackUriFilter, DeepLinkRelay
from .base import (
  DeepLinkRegistrar,
  DeepLinkSource,
  NotificationChannelConfig,
  NotificationChannelManager,
)

logger = logging.getLogger(__name__)


# --- PyJNIus handles ---
PythonActivity = autoclass("org.kivy.android.PythonActivity")
Intent = autoclass("android.content.Intent")
Uri = autoclass("android.net.Uri")
NotificationManagerJava = autoclass("android.app.NotificationManager")
NotificationChannel = autoclass("android.app.NotificationChannel")
BuildVersion = autoclass("android.os.Build$VERSION")
NotificationCompatBuilder = autoclass("androidx.core.app.NotificationCompat$Builder")
NotificationCompat = autoclass("androidx.core.app.NotificationCompat")
AndroidRDrawable = autoclass("android.R$drawable")
Context = autoclass("android.content.Context")

# NotificationChannel needs API 26 (Android O)
CHANNELS_MIN_SDK = 26


def _context():
  return PythonActivity.mActivity.getApplicationContext()


def _importance(name: str) -> int:
  return {
    "min": NotificationManagerJava.IMPORTANCE_MIN,
    "low": NotificationManagerJava.IMPORTANCE_LOW,
    "default": NotificationManagerJava.IMPORTANCE_DEFAULT,
    "high": NotificationManagerJava.IMPORTANCE_HIGH,
  }[name]


def _intent_uri(intent) -> Optional[str]:
  if intent is None:
    return None
  data = intent.getData()
  if data is None:
    return None
  return data.toString()


class _NewIntentListener(PythonJavaClass):
  __javainterfaces__ = ["org/kivy/android/PythonActivity$NewIntentListener"]
  __javacontext__ = "app"

  def __init__(self, on_intent: Callable):
    super().__init__()
    self.on_intent = on_intent

  @java_method("(Landroid/content/Intent;)V")
  def onNewIntent(self, intent):
    try:
      self.on_intent(intent)
    except Exception:  # pragma: no cover - must not raise into the JVM
      logger.exception("Deep link callback failed")


class AndroidNotificationChannelManager(NotificationChannelManager):
  """Android notification channels via NotificationManager."""

  def __init__(self):
    self.ctx = _context()
    self.manager = self.ctx.getSystemService(Context.NOTIFICATION_SERVICE)
    self.channels: set[str] = set()

  def create_channel(self, config: NotificationChannelConfig) -> bool:
    if BuildVersion.SDK_INT < CHANNELS_MIN_SDK:
      logger.debug("SDK %s has no notification channels", BuildVersion.SDK_INT)
      return False

    channel = NotificationChannel(config.id, config.name, _importance(config.importance))
    channel.setDescription(config.description)
    channel.setShowBadge(config.show_badge)
    channel.enableLights(config.lights)
    channel.enableVibration(config.vibration)
    if not config.sound:
      channel.setSound(None, None)

    self.manager.createNotificationChannel(channel)
    self.channels.add(config.id)
    logger.info("Notification channel %s created", config.id)
    return True

  async def notify(self, channel_id: str, title: str, body: str) -> None:
    if BuildVersion.SDK_INT >= CHANNELS_MIN_SDK and channel_id not in self.channels:
      raise AppError(
        description=f"Notification channel '{channel_id}' was never created",
        name="NOTIFICATION_CHANNEL_UNKNOWN",
        source="notifications",
      )

    notification_id = random.randint(10_000, 99_999)
    icon = self.ctx.getApplicationInfo().icon or AndroidRDrawable.ic_dialog_info
    builder = (
      NotificationCompatBuilder(self.ctx, channel_id)
      .setSmallIcon(icon)
      .setContentTitle(title)
      .setContentText(body)
      .setAutoCancel(True)
      .setPriority(NotificationCompat.PRIORITY_LOW)
    )
    self.manager.notify(notification_id, builder.build())
    logger.info("Notification %s posted on %s", notification_id, channel_id)


class AndroidDeepLinkRegistrar(DeepLinkRegistrar):
  """Checks that the manifest routes the callback scheme to this package.

  Android schemes are declared statically with an intent filter in the
  manifest (buildozer `android.manifest.intent_filters`); there is nothing
  to register at runtime.
  """

  def __init__(self):
    self.ctx = _context()

  def register(self, uri_filter: CallbackUriFilter) -> bool:
    intent = Intent(Intent.ACTION_VIEW, Uri.parse(uri_filter.example))
    intent.setPackage(self.ctx.getPackageName())
    matches = self.ctx.getPackageManager().queryIntentActivities(intent, 0)
    if matches is None or matches.size() == 0:
      logger.warning(
        "No activity handles %s; add an intent filter to the manifest",
        uri_filter.example,
      )
      return False
    logger.info("Deep link %s routed to %s", uri_filter.example, self.ctx.getPackageName())
    return True


class AndroidDeepLinkSource(DeepLinkSource):
  """Delivers VIEW intents (launch intent and onNewIntent) to the relay."""

  def __init__(self):
    self.activity = PythonActivity.mActivity
    self._listener: _NewIntentListener | None = None

  def start(self, relay: DeepLinkRelay) -> None:
    self._listener = _NewIntentListener(lambda intent: self.handle_intent(relay, intent))
    self.activity.registerNewIntentListener(self._listener)

    launch_intent = self.activity.getIntent()
    if self.handle_intent(relay, launch_intent):
      # consumed; a later getIntent() must not replay the redirect
      launch_intent.setData(None)

  def stop(self) -> None:
    if self._listener is not None:
      self.activity.unregisterNewIntentListener(self._listener)
      self._listener = None

  def handle_intent(self, relay: DeepLinkRelay, intent) -> bool:
    uri = _intent_uri(intent)
    logger.debug("handle_intent called with: %s", uri)
    if uri is None:
      return False
    return relay.on_uri_received(uri)
