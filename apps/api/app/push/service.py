from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from typing import Any, Protocol

from pywebpush import WebPushException, webpush

from app.config import Settings

DEFAULT_VAPID_SUBJECT = "mailto:no-reply@spectatore.com"


@dataclass(frozen=True)
class VapidConfig:
  subject: str
  public_key: str
  private_key: str

  @property
  def configured(self) -> bool:
    return bool(self.public_key and self.private_key)

  @classmethod
  def from_settings(cls, s: Settings) -> "VapidConfig":
    return cls(
      subject=(s.vapid_subject or "").strip() or DEFAULT_VAPID_SUBJECT,
      public_key=(s.vapid_public_key or "").strip(),
      private_key=(s.vapid_private_key or "").strip(),
    )


@dataclass(frozen=True)
class PushMessage:
  title: str
  body: str
  url: str | None = None
  tag: str | None = None
  data: dict[str, Any] = field(default_factory=dict)

  def serialize(self, *, default_url: str = "/Notifications") -> str:
    doc: dict[str, Any] = {"title": self.title, "body": self.body, "url": self.url or default_url}
    if self.tag:
      doc["tag"] = self.tag
    if self.data:
      doc["data"] = self.data
    return json.dumps(doc, default=str)


@dataclass(frozen=True)
class Endpoint:
  endpoint: str
  p256dh: str
  auth: str

  def subscription_info(self) -> dict[str, Any]:
    return {"endpoint": self.endpoint, "keys": {"p256dh": self.p256dh, "auth": self.auth}}


class DeliveryError(Exception):
  def __init__(self, message: str, *, status_code: int = 0, body: str = "") -> None:
    super().__init__(message)
    self.message = message
    self.status_code = int(status_code or 0)
    self.body = body


class DeliveryClient(Protocol):
  async def send(self, endpoint: Endpoint, payload: str, *, ttl_seconds: int, urgency: str) -> None: ...


class WebPushDeliveryClient:
  """Signs and sends one message to one endpoint with VAPID."""

  def __init__(self, vapid: VapidConfig, *, timeout: float = 15) -> None:
    self._vapid = vapid
    self._timeout = timeout

  async def send(self, endpoint: Endpoint, payload: str, *, ttl_seconds: int, urgency: str) -> None:
    def _send_sync() -> None:
      try:
        webpush(
          subscription_info=endpoint.subscription_info(),
          data=payload,
          vapid_private_key=self._vapid.private_key,
          # pywebpush fills in aud/exp on the dict it is given
          vapid_claims={"sub": self._vapid.subject},
          ttl=ttl_seconds,
          headers={"Urgency": urgency},
          timeout=self._timeout,
        )
      except WebPushException as e:
        resp = getattr(e, "response", None)
        status = int(getattr(resp, "status_code", 0) or 0)
        body = str(getattr(resp, "text", "") or "")
        raise DeliveryError(str(getattr(e, "message", e)), status_code=status, body=body) from e
      except Exception as e:
        raise DeliveryError(str(e)) from e

    await asyncio.to_thread(_send_sync)
