from __future__ import annotations

import logging

from fastapi import FastAPI

from worktrack.config import settings
from worktrack.reminders.scheduler import ReminderScheduler, run_reminder_scan
from worktrack.routers.productivity import router as productivity_router
from worktrack.routers.reminders import router as reminders_router

logger = logging.getLogger(__name__)

app = FastAPI(title="Work Track API", version="0.1.0")

app.include_router(productivity_router)
app.include_router(reminders_router)

app.state.reminder_scheduler = ReminderScheduler(
  run_reminder_scan,
  interval_seconds=settings.reminder_interval_seconds,
  startup_delay_seconds=settings.reminder_startup_delay_seconds,
)


@app.get("/health")
async def health() -> dict:
  return {"ok": True}


@app.get("/version")
async def version() -> dict:
  return {"version": settings.app_version}


def _is_test_db() -> bool:
  db_name = settings.database_url.rsplit("/", 1)[-1]
  return "test" in db_name


def configure_logging() -> None:
  level = getattr(logging, str(settings.log_level or "INFO").upper(), logging.INFO)
  logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


@app.on_event("startup")
async def _startup() -> None:
  configure_logging()
  if _is_test_db():
    return
  if not settings.reminder_scheduler_enabled:
    logger.info("Reminder scheduler disabled via settings (REMINDER_SCHEDULER_ENABLED=false)")
    return
  app.state.reminder_scheduler.start()


@app.on_event("shutdown")
async def _shutdown() -> None:
  await app.state.reminder_scheduler.stop()
