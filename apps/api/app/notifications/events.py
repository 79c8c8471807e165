from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.ext.asyncio import async_sessionmaker

from app.config import Settings
from app.metrics import RuntimeMetrics
from app.notifications.preferences import Channel, PreferenceBucket, PreferenceFlags, PreferenceResolver, bucket_for
from app.notifications.recorder import NotificationRecorder, with_deep_link
from app.push.dispatcher import PushDispatcher
from app.push.service import DeliveryClient, PushMessage, VapidConfig, WebPushDeliveryClient
from app.push.subscriptions import SubscriptionStore

logger = logging.getLogger(__name__)

DEFAULT_PUSH_URL = "/Notifications"


def delivery_tag(event_type: str, payload: dict[str, Any] | None) -> str:
  """Collapse key for the device: same tag replaces the previous alert."""
  raw = payload or {}
  tag = raw.get("tag")
  if tag:
    return str(tag)
  metric = raw.get("metric")
  if metric:
    return f"{event_type}:{metric}"
  return event_type


class Notifier:
  """Routes one domain event to the in-app inbox and/or web push.

  The two channels are independent: a failed insert never suppresses push,
  and a skipped or failed push never undoes the in-app record. ``notify``
  does not raise.
  """

  def __init__(
    self,
    *,
    resolver: PreferenceResolver,
    recorder: NotificationRecorder,
    dispatcher: PushDispatcher,
  ) -> None:
    self.resolver = resolver
    self.recorder = recorder
    self.dispatcher = dispatcher

  async def _flags(self, user_id: int, bucket: PreferenceBucket) -> PreferenceFlags:
    if bucket == PreferenceBucket.OTHER:
      return PreferenceFlags()
    return await self.resolver.load_flags(user_id)

  async def notify(
    self,
    user_id: int,
    type: str,
    title: str,
    body: str,
    payload: dict[str, Any] | None = None,
    push_url: str = DEFAULT_PUSH_URL,
  ) -> None:
    bucket = bucket_for(type)
    data = with_deep_link(payload, push_url)
    try:
      flags = await self._flags(user_id, bucket)
    except Exception as e:
      logger.warning("preference lookup failed user=%s type=%s: %s", user_id, type, e)
      flags = PreferenceFlags()

    if flags.enabled(bucket, Channel.IN_APP):
      try:
        await self.recorder.record(user_id=user_id, type=type, title=title, body=body, payload=data, url=push_url)
      except Exception as e:
        logger.warning("in-app record failed user=%s type=%s: %s", user_id, type, e)

    if not flags.enabled(bucket, Channel.PUSH):
      return

    msg = PushMessage(title=title, body=body, url=push_url, tag=delivery_tag(type, payload), data=data)
    try:
      await self.dispatcher.dispatch(user_id, msg)
    except Exception as e:
      logger.warning("push dispatch failed user=%s type=%s: %s", user_id, type, e)


def build_notifier(
  sessions: async_sessionmaker,
  s: Settings,
  *,
  client: DeliveryClient | None = None,
  metrics: RuntimeMetrics | None = None,
) -> Notifier:
  vapid = VapidConfig.from_settings(s)
  store = SubscriptionStore(sessions)
  dispatcher = PushDispatcher(
    store=store,
    client=client or WebPushDeliveryClient(vapid),
    vapid=vapid,
    ttl_seconds=s.push_ttl_seconds,
    urgency=s.push_urgency,
    default_url=s.push_default_url,
    metrics=metrics,
  )
  return Notifier(
    resolver=PreferenceResolver(sessions),
    recorder=NotificationRecorder(sessions),
    dispatcher=dispatcher,
  )
