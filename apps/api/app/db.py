from __future__ import annotations

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from app.config import settings


def make_engine(url: str) -> AsyncEngine:
  return create_async_engine(url, pool_pre_ping=True)


def make_sessionmaker(bind: AsyncEngine) -> async_sessionmaker:
  return async_sessionmaker(bind=bind, expire_on_commit=False)


engine = make_engine(settings.database_url)
SessionLocal = make_sessionmaker(engine)


def dialect_insert(db: AsyncSession):
  """``insert`` construct with ON CONFLICT support for the session's backend."""
  if db.get_bind().dialect.name == "sqlite":
    return sqlite.insert
  return postgresql.insert
