from __future__ import annotations

from fastapi import HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.notifications.events import Notifier
from app.push.subscriptions import SubscriptionStore


async def get_db(request: Request) -> AsyncSession:
  async with request.app.state.sessions() as session:
    yield session


def get_notifier(request: Request) -> Notifier:
  return request.app.state.notifier


def get_subscription_store(request: Request) -> SubscriptionStore:
  return request.app.state.notifier.dispatcher.store


async def get_current_user_id(request: Request) -> int:
  # Authentication happens upstream; it leaves the resolved user id on request.state.
  raw = getattr(request.state, "user_id", None)
  try:
    user_id = int(raw) if raw is not None else 0
  except (TypeError, ValueError):
    user_id = 0
  if not user_id:
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="unauthorized")
  return user_id
