from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest
from fastapi import HTTPException, Request
from httpx import ASGITransport, AsyncClient

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
  sys.path.insert(0, str(ROOT))

# Never point the module-level engine at a real server while testing.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

from app.db import make_engine, make_sessionmaker
from app.deps import get_current_user_id
from app.main import app
from app.metrics import RuntimeMetrics
from app.models import Base, NotificationPreference, PushSubscription
from app.notifications.events import Notifier, build_notifier
from app.config import Settings
from app.push.service import DeliveryError, Endpoint

VAPID_PUBLIC = "BPublicKeyForTestsOnly"
VAPID_PRIVATE = "PrivateKeyForTestsOnly"


@pytest.fixture(scope="session")
def anyio_backend() -> str:
  return "asyncio"


class FakeDeliveryClient:
  """Records every send; endpoints listed in ``failures`` raise instead."""

  def __init__(self) -> None:
    self.sent: list[dict] = []
    self.failures: dict[str, Exception] = {}

  def fail(self, endpoint: str, status_code: int, message: str = "push failed") -> None:
    self.failures[endpoint] = DeliveryError(message, status_code=status_code, body=f"status {status_code}")

  async def send(self, endpoint: Endpoint, payload: str, *, ttl_seconds: int, urgency: str) -> None:
    self.sent.append({"endpoint": endpoint.endpoint, "payload": payload, "ttl": ttl_seconds, "urgency": urgency})
    err = self.failures.get(endpoint.endpoint)
    if err is not None:
      raise err


def make_settings(**overrides) -> Settings:
  values = {
    "database_url": "sqlite+aiosqlite://",
    "vapid_public_key": VAPID_PUBLIC,
    "vapid_private_key": VAPID_PRIVATE,
  }
  values.update(overrides)
  return Settings(_env_file=None, **values)


@pytest.fixture
async def engine(tmp_path):
  eng = make_engine(f"sqlite+aiosqlite:///{tmp_path / 'notify_test.db'}")
  async with eng.begin() as conn:
    await conn.run_sync(Base.metadata.create_all)
  yield eng
  await eng.dispose()


@pytest.fixture
def sessions(engine):
  return make_sessionmaker(engine)


@pytest.fixture
def delivery() -> FakeDeliveryClient:
  return FakeDeliveryClient()


@pytest.fixture
def metrics() -> RuntimeMetrics:
  return RuntimeMetrics()


@pytest.fixture
def notifier(sessions, delivery, metrics) -> Notifier:
  return build_notifier(sessions, make_settings(), client=delivery, metrics=metrics)


async def _user_from_header(request: Request) -> int:
  raw = request.headers.get("x-user-id")
  if not raw:
    raise HTTPException(status_code=401, detail="unauthorized")
  return int(raw)


@pytest.fixture
async def client(sessions, notifier) -> AsyncClient:
  prev_sessions = getattr(app.state, "sessions", None)
  prev_notifier = getattr(app.state, "notifier", None)
  app.state.sessions = sessions
  app.state.notifier = notifier
  app.dependency_overrides[get_current_user_id] = _user_from_header
  transport = ASGITransport(app=app)
  async with AsyncClient(transport=transport, base_url="http://localhost") as c:
    yield c
  app.dependency_overrides.pop(get_current_user_id, None)
  app.state.sessions = prev_sessions
  app.state.notifier = prev_notifier


def as_user(user_id: int) -> dict[str, str]:
  return {"x-user-id": str(user_id)}


async def add_subscription(sessions, *, user_id: int, endpoint: str, p256dh: str = "p256dh-key", auth: str = "auth-key") -> int:
  async with sessions() as db:
    sub = PushSubscription(user_id=user_id, endpoint=endpoint, p256dh=p256dh, auth=auth)
    db.add(sub)
    await db.commit()
    return sub.id


async def set_preferences(sessions, *, user_id: int, prefs_json: dict | None = None, **columns) -> None:
  async with sessions() as db:
    db.add(NotificationPreference(user_id=user_id, prefs_json=prefs_json, **columns))
    await db.commit()
