from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
  model_config = SettingsConfigDict(env_file=".env", extra="ignore")

  database_url: str = "postgresql+asyncpg://worktrack:worktrack@db:5432/worktrack"
  app_version: str = "v2026-10-19"
  frontend_url: str = "http://localhost:5173"
  log_level: str = "INFO"

  # Local calendar used for streak/period day boundaries.
  timezone: str = "UTC"
  default_period_days: int = 30
  max_period_days: int = 365

  reminder_scheduler_enabled: bool = True
  reminder_interval_seconds: int = 3600
  reminder_startup_delay_seconds: int = 5
  reminder_window_hours: int = 24
  reminder_email_timeout_seconds: float = 15.0
  reminder_max_concurrency: int = 8

  smtp_host: str | None = None
  smtp_port: int = 587
  smtp_username: str | None = None
  smtp_password: str | None = None
  smtp_starttls: bool = True
  mail_from: str = "Work Track <no-reply@worktrack.local>"

  public_email_domains: str = (
    "gmail.com,googlemail.com,yahoo.com,hotmail.com,outlook.com,live.com,msn.com,"
    "icloud.com,me.com,aol.com,protonmail.com,proton.me,mail.com,gmx.com,yandex.com,zoho.com"
  )

  def public_email_domain_set(self) -> set[str]:
    return {d.strip().lower() for d in self.public_email_domains.split(",") if d.strip()}


settings = Settings()
