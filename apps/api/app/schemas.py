from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class PushKeysIn(BaseModel):
  p256dh: str = ""
  auth: str = ""


class PushSubscribeIn(BaseModel):
  # Shape of the browser's PushSubscription.toJSON(); expirationTime etc. are ignored.
  model_config = ConfigDict(extra="ignore")

  endpoint: str = ""
  keys: PushKeysIn = Field(default_factory=PushKeysIn)


class PushUnsubscribeIn(BaseModel):
  endpoint: str = ""


class VapidPublicKeyOut(BaseModel):
  publicKey: str
  configured: bool


class InAppNotificationOut(BaseModel):
  id: int
  type: str
  title: str | None = None
  body: str | None = None
  payload: dict[str, Any] = Field(default_factory=dict)
  createdAt: datetime
  readAt: datetime | None = None


class InAppNotificationListOut(BaseModel):
  items: list[InAppNotificationOut]


class NotificationPreferencesOut(BaseModel):
  in_app_milestones: bool = True
  in_app_crew_requests: bool = True
  push_milestones: bool = False
  push_crew_requests: bool = False


class NotificationPreferencesIn(BaseModel):
  in_app_milestones: bool | None = None
  in_app_crew_requests: bool | None = None
  push_milestones: bool | None = None
  push_crew_requests: bool | None = None


class DeletedOut(BaseModel):
  ok: bool = True
  deleted: int = 0
