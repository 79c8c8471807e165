from __future__ import annotations

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import async_sessionmaker

from app.db import dialect_insert
from app.models import PushSubscription


class SubscriptionStore:
  """Per-user registry of web-push endpoints.

  Endpoints are globally unique. Re-registering an endpoint that belongs to
  another user moves it to the caller (last write wins), which is what a
  browser does when a different account signs in on a shared device.
  """

  def __init__(self, sessions: async_sessionmaker) -> None:
    self._sessions = sessions

  async def upsert(self, *, user_id: int, endpoint: str, p256dh: str, auth: str) -> None:
    async with self._sessions() as db:
      insert = dialect_insert(db)
      stmt = insert(PushSubscription).values(user_id=user_id, endpoint=endpoint, p256dh=p256dh, auth=auth)
      stmt = stmt.on_conflict_do_update(
        index_elements=["endpoint"],
        set_={"user_id": user_id, "p256dh": p256dh, "auth": auth},
      )
      await db.execute(stmt)
      await db.commit()

  async def remove(self, *, user_id: int, endpoint: str) -> int:
    async with self._sessions() as db:
      res = await db.execute(
        delete(PushSubscription).where(PushSubscription.user_id == user_id, PushSubscription.endpoint == endpoint)
      )
      await db.commit()
      return int(res.rowcount or 0)

  async def list(self, user_id: int) -> list[PushSubscription]:
    async with self._sessions() as db:
      res = await db.execute(
        select(PushSubscription)
        .where(PushSubscription.user_id == user_id)
        .order_by(PushSubscription.created_at.desc(), PushSubscription.id.desc())
      )
      return list(res.scalars().all())

  async def evict(self, subscription_id: int) -> int:
    async with self._sessions() as db:
      res = await db.execute(delete(PushSubscription).where(PushSubscription.id == subscription_id))
      await db.commit()
      return int(res.rowcount or 0)
