from __future__ import annotations

from datetime import datetime, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from worktrack.config import settings
from worktrack.db import SessionLocal
from worktrack.models import User, utcnow
from worktrack.reminders.scheduler import ReminderScheduler

USER_ID_HEADER = "X-User-Id"


async def get_db() -> AsyncSession:
  async with SessionLocal() as session:
    yield session


async def get_current_user(
  db: AsyncSession = Depends(get_db),
  user_id: str | None = Header(default=None, alias=USER_ID_HEADER),
) -> User:
  # Identity is established upstream; this only resolves the forwarded user id.
  if not user_id:
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
  u = await db.get(User, user_id.strip())
  if not u:
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
  return u


async def require_admin(user: User = Depends(get_current_user)) -> User:
  if user.role != "admin":
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied. Admin only.")
  return user


def get_clock_now() -> datetime:
  return utcnow()


def get_local_tz() -> tzinfo:
  try:
    return ZoneInfo(settings.timezone or "UTC")
  except (ZoneInfoNotFoundError, ValueError):
    return ZoneInfo("UTC")


def get_reminder_scheduler(request: Request) -> ReminderScheduler:
  return request.app.state.reminder_scheduler
