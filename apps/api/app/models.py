from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
  return datetime.now(timezone.utc)


# JSONB on Postgres, plain JSON elsewhere (sqlite in tests).
JsonDoc = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
  pass


class InAppNotification(Base):
  __tablename__ = "notifications"

  id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
  user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
  type: Mapped[str] = mapped_column(String, nullable=False)
  title: Mapped[str | None] = mapped_column(String, nullable=True)
  body: Mapped[str | None] = mapped_column(Text, nullable=True)
  payload_json: Mapped[dict[str, Any]] = mapped_column(JsonDoc, nullable=False, default=dict)
  read_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
  created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)


class NotificationPreference(Base):
  __tablename__ = "notification_preferences"

  id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
  user_id: Mapped[int] = mapped_column(Integer, nullable=False, unique=True, index=True)
  # Document shape; authoritative whenever it is not NULL.
  prefs_json: Mapped[dict[str, Any] | None] = mapped_column(JsonDoc, nullable=True)
  # Legacy discrete-column shape.
  in_app_milestones: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
  in_app_crew_requests: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
  push_milestones: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
  push_crew_requests: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
  updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class PushSubscription(Base):
  __tablename__ = "push_subscriptions"

  id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
  user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
  endpoint: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
  p256dh: Mapped[str] = mapped_column(Text, nullable=False)
  auth: Mapped[str] = mapped_column(Text, nullable=False)
  created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
