from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from app.deps import get_current_user_id, get_notifier, get_subscription_store
from app.notifications.events import Notifier
from app.push.subscriptions import SubscriptionStore
from app.schemas import DeletedOut, PushSubscribeIn, PushUnsubscribeIn, VapidPublicKeyOut

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/push", tags=["push"])


@router.get("/vapid-public-key", response_model=VapidPublicKeyOut)
async def vapid_public_key(notifier: Notifier = Depends(get_notifier)) -> VapidPublicKeyOut:
  vapid = notifier.dispatcher.vapid
  return VapidPublicKeyOut(publicKey=vapid.public_key, configured=vapid.configured)


@router.post("/subscribe")
async def subscribe(
  payload: PushSubscribeIn,
  user_id: int = Depends(get_current_user_id),
  store: SubscriptionStore = Depends(get_subscription_store),
) -> dict:
  endpoint = payload.endpoint.strip()
  p256dh = payload.keys.p256dh.strip()
  auth = payload.keys.auth.strip()
  if not endpoint or not p256dh or not auth:
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="invalid subscription")
  await store.upsert(user_id=user_id, endpoint=endpoint, p256dh=p256dh, auth=auth)
  logger.info("[push] subscribed user=%s", user_id)
  return {"ok": True}


@router.post("/unsubscribe", response_model=DeletedOut)
async def unsubscribe(
  payload: PushUnsubscribeIn,
  user_id: int = Depends(get_current_user_id),
  store: SubscriptionStore = Depends(get_subscription_store),
) -> DeletedOut:
  endpoint = payload.endpoint.strip()
  if not endpoint:
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="missing endpoint")
  deleted = await store.remove(user_id=user_id, endpoint=endpoint)
  return DeletedOut(ok=True, deleted=deleted)
