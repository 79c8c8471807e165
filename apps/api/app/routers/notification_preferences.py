from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db import dialect_insert
from app.deps import get_current_user_id, get_db
from app.models import NotificationPreference, utcnow
from app.notifications.preferences import FLAG_FIELDS, PreferenceFlags, flags_from_row
from app.schemas import NotificationPreferencesIn, NotificationPreferencesOut

router = APIRouter(prefix="/notification-preferences", tags=["notifications"])


async def _load_row(db: AsyncSession, user_id: int) -> NotificationPreference | None:
  res = await db.execute(select(NotificationPreference).where(NotificationPreference.user_id == user_id).limit(1))
  return res.scalars().first()


async def _write_flags(db: AsyncSession, user_id: int, flags: PreferenceFlags, *, overwrite: bool) -> None:
  # New writes always use the document shape, which then wins over any legacy columns.
  insert = dialect_insert(db)
  doc = flags.as_dict()
  stmt = insert(NotificationPreference).values(user_id=user_id, prefs_json=doc)
  if overwrite:
    stmt = stmt.on_conflict_do_update(index_elements=["user_id"], set_={"prefs_json": doc, "updated_at": utcnow()})
  else:
    stmt = stmt.on_conflict_do_nothing(index_elements=["user_id"])
  await db.execute(stmt)


@router.get("/me", response_model=NotificationPreferencesOut)
async def get_my_preferences(
  user_id: int = Depends(get_current_user_id),
  db: AsyncSession = Depends(get_db),
) -> NotificationPreferencesOut:
  row = await _load_row(db, user_id)
  if row is None:
    await _write_flags(db, user_id, PreferenceFlags(), overwrite=False)
    await db.commit()
    row = await _load_row(db, user_id)
  return NotificationPreferencesOut(**flags_from_row(row).as_dict())


@router.patch("/me", response_model=NotificationPreferencesOut)
async def update_my_preferences(
  payload: NotificationPreferencesIn,
  user_id: int = Depends(get_current_user_id),
  db: AsyncSession = Depends(get_db),
) -> NotificationPreferencesOut:
  fields_set = getattr(payload, "model_fields_set", set())
  changes = {k: bool(getattr(payload, k)) for k in FLAG_FIELDS if k in fields_set and getattr(payload, k) is not None}
  if not changes:
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No valid fields")

  current = flags_from_row(await _load_row(db, user_id)).as_dict()
  current.update(changes)
  flags = PreferenceFlags(**current)
  await _write_flags(db, user_id, flags, overwrite=True)
  await db.commit()
  return NotificationPreferencesOut(**flags.as_dict())
