from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.deps import get_current_user_id, get_db
from app.models import InAppNotification
from app.schemas import DeletedOut, InAppNotificationListOut, InAppNotificationOut

router = APIRouter(prefix="/notifications", tags=["notifications"])


def _out(n: InAppNotification) -> InAppNotificationOut:
  return InAppNotificationOut(
    id=n.id,
    type=n.type,
    title=n.title,
    body=n.body,
    payload=dict(n.payload_json or {}),
    createdAt=n.created_at,
    readAt=n.read_at,
  )


@router.get("", response_model=InAppNotificationListOut)
async def list_notifications(
  unread: bool = False,
  limit: int = 50,
  user_id: int = Depends(get_current_user_id),
  db: AsyncSession = Depends(get_db),
) -> InAppNotificationListOut:
  limit = max(1, min(int(limit or 50), 200))
  stmt = select(InAppNotification).where(InAppNotification.user_id == user_id)
  if unread:
    stmt = stmt.where(InAppNotification.read_at.is_(None))
  stmt = stmt.order_by(InAppNotification.created_at.desc(), InAppNotification.id.desc()).limit(limit)
  res = await db.execute(stmt)
  return InAppNotificationListOut(items=[_out(n) for n in res.scalars().all()])


@router.get("/unread-count")
async def unread_count(
  user_id: int = Depends(get_current_user_id),
  db: AsyncSession = Depends(get_db),
) -> dict:
  res = await db.execute(
    select(func.count()).select_from(InAppNotification).where(InAppNotification.user_id == user_id, InAppNotification.read_at.is_(None))
  )
  return {"count": int(res.scalar_one() or 0)}


@router.post("/read-all")
async def mark_all_read(
  user_id: int = Depends(get_current_user_id),
  db: AsyncSession = Depends(get_db),
) -> dict:
  now = datetime.now(timezone.utc)
  await db.execute(update(InAppNotification).where(InAppNotification.user_id == user_id, InAppNotification.read_at.is_(None)).values(read_at=now))
  await db.commit()
  return {"ok": True}


@router.post("/clear-read", response_model=DeletedOut)
async def clear_read(
  user_id: int = Depends(get_current_user_id),
  db: AsyncSession = Depends(get_db),
) -> DeletedOut:
  res = await db.execute(delete(InAppNotification).where(InAppNotification.user_id == user_id, InAppNotification.read_at.isnot(None)))
  await db.commit()
  return DeletedOut(deleted=int(res.rowcount or 0))


@router.post("/clear-all", response_model=DeletedOut)
async def clear_all(
  user_id: int = Depends(get_current_user_id),
  db: AsyncSession = Depends(get_db),
) -> DeletedOut:
  res = await db.execute(delete(InAppNotification).where(InAppNotification.user_id == user_id))
  await db.commit()
  return DeletedOut(deleted=int(res.rowcount or 0))


@router.post("/{notification_id}/read")
async def mark_read(
  notification_id: int,
  user_id: int = Depends(get_current_user_id),
  db: AsyncSession = Depends(get_db),
) -> dict:
  if notification_id <= 0:
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="bad id")
  now = datetime.now(timezone.utc)
  await db.execute(update(InAppNotification).where(InAppNotification.id == notification_id, InAppNotification.user_id == user_id).values(read_at=now))
  await db.commit()
  return {"ok": True}


@router.delete("/{notification_id}", response_model=DeletedOut)
async def delete_notification(
  notification_id: int,
  user_id: int = Depends(get_current_user_id),
  db: AsyncSession = Depends(get_db),
) -> DeletedOut:
  if notification_id <= 0:
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="bad id")
  res = await db.execute(delete(InAppNotification).where(InAppNotification.id == notification_id, InAppNotification.user_id == user_id))
  await db.commit()
  return DeletedOut(deleted=int(res.rowcount or 0))
