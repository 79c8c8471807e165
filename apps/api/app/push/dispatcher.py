from __future__ import annotations

import asyncio
import logging
from enum import Enum

from app.metrics import RuntimeMetrics, runtime_metrics
from app.models import PushSubscription
from app.push.service import DeliveryClient, DeliveryError, Endpoint, PushMessage, VapidConfig
from app.push.subscriptions import SubscriptionStore

logger = logging.getLogger(__name__)


class DeliveryOutcome(str, Enum):
  DELIVERED = "delivered"
  TRANSIENT_FAILURE = "transient_failure"
  PERMANENT_FAILURE = "permanent_failure"
  CONFIG_MISMATCH = "config_mismatch"


GONE_STATUSES = frozenset({404, 410})
AUTH_STATUSES = frozenset({401, 403})


def classify_status(status_code: int | None) -> DeliveryOutcome:
  code = int(status_code or 0)
  if code in GONE_STATUSES:
    return DeliveryOutcome.PERMANENT_FAILURE
  if code in AUTH_STATUSES:
    return DeliveryOutcome.CONFIG_MISMATCH
  return DeliveryOutcome.TRANSIENT_FAILURE


class PushDispatcher:
  """Fans one message out to every endpoint a user has registered.

  Best-effort: nothing here raises to the caller. Endpoints the push service
  reports as gone (404/410) are evicted inline, so the registry cleans itself
  up as a side effect of sending.
  """

  def __init__(
    self,
    *,
    store: SubscriptionStore,
    client: DeliveryClient,
    vapid: VapidConfig,
    ttl_seconds: int = 60,
    urgency: str = "high",
    default_url: str = "/Notifications",
    metrics: RuntimeMetrics | None = None,
  ) -> None:
    self._store = store
    self._client = client
    self._vapid = vapid
    self._ttl_seconds = int(ttl_seconds)
    self._urgency = urgency
    self._default_url = default_url
    self._metrics = metrics or runtime_metrics
    self._enabled = vapid.configured
    self._announced = False

  @property
  def enabled(self) -> bool:
    return self._enabled

  @property
  def store(self) -> SubscriptionStore:
    return self._store

  @property
  def vapid(self) -> VapidConfig:
    return self._vapid

  @property
  def metrics(self) -> RuntimeMetrics:
    return self._metrics

  def _announce_once(self) -> None:
    if self._announced:
      return
    self._announced = True
    if self._enabled:
      logger.info("[push] VAPID configured subject=%s", self._vapid.subject)
    else:
      logger.warning("[push] VAPID keys missing; push disabled in this environment")

  async def dispatch(self, user_id: int, message: PushMessage) -> list[DeliveryOutcome]:
    try:
      self._announce_once()
      if not self._enabled:
        self._metrics.observe_push_skipped()
        return []

      subs = await self._store.list(user_id)
      logger.info("[push] user=%s subs=%s", user_id, len(subs))
      if not subs:
        return []

      payload = message.serialize(default_url=self._default_url)
      return list(await asyncio.gather(*(self._deliver_one(user_id, s, payload) for s in subs)))
    except Exception as e:
      logger.warning("[push] dispatch crashed user=%s: %s", user_id, e)
      return []

  async def _deliver_one(self, user_id: int, sub: PushSubscription, payload: str) -> DeliveryOutcome:
    endpoint = Endpoint(endpoint=sub.endpoint, p256dh=sub.p256dh, auth=sub.auth)
    try:
      await self._client.send(endpoint, payload, ttl_seconds=self._ttl_seconds, urgency=self._urgency)
    except Exception as e:
      status = e.status_code if isinstance(e, DeliveryError) else 0
      body = e.body if isinstance(e, DeliveryError) else ""
      outcome = classify_status(status)
      logger.warning(
        "[push] FAIL user=%s sub_id=%s status=%s outcome=%s msg=%s body=%s",
        user_id,
        sub.id,
        status,
        outcome.value,
        e,
        body,
      )
      evicted = False
      if outcome == DeliveryOutcome.PERMANENT_FAILURE:
        evicted = await self._evict(sub.id)
      elif outcome == DeliveryOutcome.CONFIG_MISMATCH:
        logger.warning("[push] status %s suggests VAPID key mismatch or invalid authorization sub_id=%s", status, sub.id)
      self._metrics.observe_push_outcome(outcome.value, evicted=evicted)
      return outcome

    logger.debug("[push] ok user=%s sub_id=%s", user_id, sub.id)
    self._metrics.observe_push_outcome(DeliveryOutcome.DELIVERED.value)
    return DeliveryOutcome.DELIVERED

  async def _evict(self, subscription_id: int) -> bool:
    try:
      await self._store.evict(subscription_id)
    except Exception as e:
      logger.warning("[push] failed to delete stale sub_id=%s: %s", subscription_id, e)
      return False
    logger.info("[push] deleted stale sub_id=%s", subscription_id)
    return True
