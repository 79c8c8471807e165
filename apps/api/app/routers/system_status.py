from __future__ import annotations

from fastapi import APIRouter, Depends

from app.config import settings
from app.deps import get_notifier
from app.metrics import runtime_metrics
from app.notifications.events import Notifier

router = APIRouter(prefix="/system", tags=["system"])


@router.get("/status")
async def get_system_status(notifier: Notifier = Depends(get_notifier)) -> dict:
  api = runtime_metrics.snapshot()
  api.pop("push", None)
  push = notifier.dispatcher.metrics.snapshot()["push"]
  push["configured"] = notifier.dispatcher.enabled
  return {
    "version": settings.app_version,
    "buildSha": settings.build_sha,
    "startedAt": runtime_metrics.started_at,
    "api": api,
    "push": push,
  }
