"""Per-user channel preferences.

Preference rows come in two shapes: a ``prefs_json`` document with named
boolean fields, or the older discrete boolean columns. Both are folded into a
single :class:`PreferenceFlags` here so nothing downstream has to care which
one a given user has.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker

from app.models import NotificationPreference

logger = logging.getLogger(__name__)


class PreferenceBucket(str, Enum):
  MILESTONES = "milestones"
  CREW_REQUESTS = "crew_requests"
  OTHER = "other"


class Channel(str, Enum):
  IN_APP = "in_app"
  PUSH = "push"


_DEFAULTS = {Channel.IN_APP: True, Channel.PUSH: False}

# Buckets whose flags are stored; OTHER is never configurable.
GATED_BUCKETS = (PreferenceBucket.MILESTONES, PreferenceBucket.CREW_REQUESTS)

FLAG_FIELDS = tuple(f"{channel.value}_{bucket.value}" for channel in Channel for bucket in GATED_BUCKETS)


def bucket_for(event_type: str | None) -> PreferenceBucket:
  et = str(event_type or "")
  if et == "milestone_broken":
    return PreferenceBucket.MILESTONES
  if et.startswith("connection_"):
    return PreferenceBucket.CREW_REQUESTS
  return PreferenceBucket.OTHER


def flag_name(bucket: PreferenceBucket, channel: Channel) -> str:
  return f"{channel.value}_{bucket.value}"


@dataclass(frozen=True)
class PreferenceFlags:
  in_app_milestones: bool = True
  in_app_crew_requests: bool = True
  push_milestones: bool = False
  push_crew_requests: bool = False

  def enabled(self, bucket: PreferenceBucket, channel: Channel) -> bool:
    if bucket == PreferenceBucket.OTHER:
      return True
    return bool(getattr(self, flag_name(bucket, channel)))

  def as_dict(self) -> dict[str, bool]:
    return {name: bool(getattr(self, name)) for name in FLAG_FIELDS}


def _default_for(name: str) -> bool:
  return _DEFAULTS[Channel.PUSH] if name.startswith("push_") else _DEFAULTS[Channel.IN_APP]


def flags_from_row(row: NotificationPreference | None) -> PreferenceFlags:
  """Normalize either storage shape into canonical flags."""
  if row is None:
    return PreferenceFlags()

  doc: Any = row.prefs_json
  values: dict[str, bool] = {}
  # A document without any known flag carries no choices; the columns decide.
  if isinstance(doc, dict) and any(name in doc for name in FLAG_FIELDS):
    for name in FLAG_FIELDS:
      v = doc.get(name)
      values[name] = v if isinstance(v, bool) else _default_for(name)
  else:
    for name in FLAG_FIELDS:
      v = getattr(row, name, None)
      values[name] = bool(v) if v is not None else _default_for(name)
  return PreferenceFlags(**values)


class PreferenceResolver:
  def __init__(self, sessions: async_sessionmaker) -> None:
    self._sessions = sessions

  async def load_flags(self, user_id: int) -> PreferenceFlags:
    # The preference table may be missing entirely on environments that
    # have not been migrated yet; any failure here means "use defaults".
    try:
      async with self._sessions() as db:
        res = await db.execute(select(NotificationPreference).where(NotificationPreference.user_id == user_id).limit(1))
        row = res.scalars().first()
    except Exception as e:
      logger.warning("notification preferences unavailable for user=%s, using defaults: %s", user_id, e)
      return PreferenceFlags()
    return flags_from_row(row)

  async def resolve_enabled(self, user_id: int, bucket: PreferenceBucket, channel: Channel) -> bool:
    if bucket == PreferenceBucket.OTHER:
      return True
    flags = await self.load_flags(user_id)
    return flags.enabled(bucket, channel)
