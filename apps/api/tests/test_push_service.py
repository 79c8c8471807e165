from __future__ import annotations

import json

import pytest
from pywebpush import WebPushException

import app.push.service as push_service
from app.push.service import DEFAULT_VAPID_SUBJECT, DeliveryError, Endpoint, PushMessage, VapidConfig, WebPushDeliveryClient
from conftest import VAPID_PRIVATE, VAPID_PUBLIC, make_settings

pytestmark = pytest.mark.anyio

VAPID = VapidConfig(subject="mailto:ops@example.com", public_key=VAPID_PUBLIC, private_key=VAPID_PRIVATE)
DEVICE = Endpoint(endpoint="https://push.example/device", p256dh="BKey", auth="secret")


class _Response:
  def __init__(self, status_code: int, text: str) -> None:
    self.status_code = status_code
    self.text = text


async def test_send_passes_subscription_and_delivery_options(monkeypatch):
  calls: list[dict] = []
  monkeypatch.setattr(push_service, "webpush", lambda **kwargs: calls.append(kwargs))

  client = WebPushDeliveryClient(VAPID, timeout=5)
  await client.send(DEVICE, '{"title": "t"}', ttl_seconds=60, urgency="high")

  assert len(calls) == 1
  call = calls[0]
  assert call["subscription_info"] == {"endpoint": DEVICE.endpoint, "keys": {"p256dh": "BKey", "auth": "secret"}}
  assert call["data"] == '{"title": "t"}'
  assert call["vapid_private_key"] == VAPID_PRIVATE
  assert call["vapid_claims"] == {"sub": "mailto:ops@example.com"}
  assert call["ttl"] == 60
  assert call["headers"] == {"Urgency": "high"}
  assert call["timeout"] == 5


async def test_send_maps_push_service_status_and_body(monkeypatch):
  def _gone(**kwargs):
    raise WebPushException("Push failed: 410 Gone", response=_Response(410, "gone"))

  monkeypatch.setattr(push_service, "webpush", _gone)

  with pytest.raises(DeliveryError) as exc:
    await WebPushDeliveryClient(VAPID).send(DEVICE, "{}", ttl_seconds=60, urgency="high")
  assert exc.value.status_code == 410
  assert exc.value.body == "gone"


async def test_send_without_response_or_unexpected_error_has_no_status(monkeypatch):
  def _no_response(**kwargs):
    raise WebPushException("connection reset")

  monkeypatch.setattr(push_service, "webpush", _no_response)
  with pytest.raises(DeliveryError) as exc:
    await WebPushDeliveryClient(VAPID).send(DEVICE, "{}", ttl_seconds=60, urgency="high")
  assert exc.value.status_code == 0
  assert exc.value.body == ""

  def _boom(**kwargs):
    raise RuntimeError("socket closed")

  monkeypatch.setattr(push_service, "webpush", _boom)
  with pytest.raises(DeliveryError) as exc:
    await WebPushDeliveryClient(VAPID).send(DEVICE, "{}", ttl_seconds=60, urgency="high")
  assert exc.value.status_code == 0
  assert "socket closed" in str(exc.value)


@pytest.mark.parametrize("subject", ["", "   "])
def test_blank_subject_falls_back_to_default(subject):
  vapid = VapidConfig.from_settings(make_settings(vapid_subject=subject))
  assert vapid.subject == DEFAULT_VAPID_SUBJECT
  assert vapid.configured is True


def test_vapid_from_settings_strips_values():
  vapid = VapidConfig.from_settings(
    make_settings(vapid_subject=" mailto:ops@example.com ", vapid_public_key=f" {VAPID_PUBLIC} ", vapid_private_key="")
  )
  assert vapid.subject == "mailto:ops@example.com"
  assert vapid.public_key == VAPID_PUBLIC
  assert vapid.configured is False


def test_message_serialization_omits_empty_tag_and_data():
  doc = json.loads(PushMessage(title="Hi", body="there").serialize(default_url="/Notifications"))
  assert doc == {"title": "Hi", "body": "there", "url": "/Notifications"}

  doc = json.loads(PushMessage(title="Hi", body="there", url="/m/1", tag="x", data={"k": 1}).serialize())
  assert doc == {"title": "Hi", "body": "there", "url": "/m/1", "tag": "x", "data": {"k": 1}}
