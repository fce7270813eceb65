from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from worktrack.deps import get_db, get_reminder_scheduler, require_admin
from worktrack.models import User
from worktrack.reminders.scheduler import ReminderScheduler
from worktrack.reminders.service import ReminderNotAllowedError, TaskNotFoundError, build_scanner
from worktrack.schemas import ReminderTriggerOut, SendReminderOut, reminder_scan_out

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tasks", tags=["reminders"])


@router.post("/reminders/trigger", response_model=ReminderTriggerOut)
async def trigger_reminders(
  admin: User = Depends(require_admin),
  scheduler: ReminderScheduler = Depends(get_reminder_scheduler),
) -> ReminderTriggerOut:
  logger.info("Manual reminder check requested by %s", admin.id)
  try:
    result = await scheduler.trigger_once()
  except Exception as e:
    logger.exception("Manual reminder check failed")
    raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Reminder check failed") from e
  return ReminderTriggerOut(message="Reminder check triggered successfully", result=reminder_scan_out(result))


@router.post("/{task_id}/send-reminder", response_model=SendReminderOut)
async def send_task_reminder(
  task_id: str,
  admin: User = Depends(require_admin),
  db: AsyncSession = Depends(get_db),
) -> SendReminderOut:
  scanner = build_scanner(db)
  try:
    sent_count = await scanner.send_for_task(task_id, sender_id=admin.id)
  except TaskNotFoundError:
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")
  except ReminderNotAllowedError as e:
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
  return SendReminderOut(message=f"Reminder sent to {sent_count} user(s)", sentCount=sent_count)
