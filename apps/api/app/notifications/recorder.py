from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.ext.asyncio import async_sessionmaker

from app.models import InAppNotification

logger = logging.getLogger(__name__)


def with_deep_link(payload: dict[str, Any] | None, url: str) -> dict[str, Any]:
  out = dict(payload or {})
  out["url"] = url
  return out


class NotificationRecorder:
  def __init__(self, sessions: async_sessionmaker) -> None:
    self._sessions = sessions

  async def record(
    self,
    *,
    user_id: int,
    type: str,
    title: str,
    body: str,
    payload: dict[str, Any] | None,
    url: str,
  ) -> bool:
    """Persist one in-app notification. Returns False instead of raising."""
    try:
      async with self._sessions() as db:
        db.add(
          InAppNotification(
            user_id=user_id,
            type=type,
            title=title,
            body=body,
            payload_json=with_deep_link(payload, url),
          )
        )
        await db.commit()
    except Exception as e:
      logger.warning("in-app notification insert failed user=%s type=%s: %s", user_id, type, e)
      return False
    return True
