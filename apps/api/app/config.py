from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
  model_config = SettingsConfigDict(env_file=".env", extra="ignore")

  database_url: str = "postgresql+asyncpg://spectatore:spectatore@db:5432/spectatore"
  app_version: str = "v2026-10-01+push-prefs"
  build_sha: str = "dev"
  api_docs_enabled: bool = True
  log_level: str = "INFO"

  cors_origins: str = "http://localhost:5173,http://127.0.0.1:5173"
  trusted_hosts: str = "localhost,127.0.0.1,0.0.0.0,api,web,test"

  vapid_subject: str = "mailto:no-reply@spectatore.com"
  vapid_public_key: str = ""
  vapid_private_key: str = ""
  push_ttl_seconds: int = 60  # how long the push service may hold an undelivered message
  push_urgency: str = "high"  # very-low | low | normal | high
  push_default_url: str = "/Notifications"

  def cors_origin_list(self) -> list[str]:
    return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

  def trusted_host_list(self) -> list[str]:
    return [h.strip() for h in self.trusted_hosts.split(",") if h.strip()]


settings = Settings()
