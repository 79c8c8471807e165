from __future__ import annotations

import logging
from time import monotonic

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.trustedhost import TrustedHostMiddleware

from app.config import settings
from app.db import SessionLocal
from app.metrics import runtime_metrics
from app.notifications.events import build_notifier
from app.routers.notification_preferences import router as notification_preferences_router
from app.routers.notifications import router as notifications_router
from app.routers.push import router as push_router
from app.routers.system_status import router as system_status_router

logging.basicConfig(
  level=getattr(logging, str(settings.log_level or "INFO").upper(), logging.INFO),
  format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
  title="Spectatore Notifications API",
  version="0.1.0",
  docs_url="/docs" if settings.api_docs_enabled else None,
  redoc_url="/redoc" if settings.api_docs_enabled else None,
  openapi_url="/openapi.json" if settings.api_docs_enabled else None,
)

# Built once per process: VAPID configuration is read here and never re-evaluated.
app.state.sessions = SessionLocal
app.state.notifier = build_notifier(SessionLocal, settings)

app.add_middleware(
  CORSMiddleware,
  allow_origins=settings.cors_origin_list(),
  allow_credentials=True,
  allow_methods=["*"],
  allow_headers=["*"],
)
app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.trusted_host_list())

app.include_router(push_router)
app.include_router(notifications_router)
app.include_router(notification_preferences_router)
app.include_router(system_status_router)


@app.middleware("http")
async def _request_metrics_middleware(request, call_next):
  start = monotonic()
  response = await call_next(request)
  elapsed_ms = (monotonic() - start) * 1000.0
  runtime_metrics.observe_request(response.status_code, elapsed_ms)
  response.headers.setdefault("X-Content-Type-Options", "nosniff")
  response.headers.setdefault("X-Frame-Options", "DENY")
  response.headers.setdefault("Referrer-Policy", "strict-origin-when-cross-origin")
  return response


@app.get("/health")
async def health() -> dict:
  return {"ok": True}


@app.get("/version")
async def version() -> dict:
  return {"version": settings.app_version, "buildSha": settings.build_sha}
