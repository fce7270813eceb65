from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from worktrack.config import Settings, settings
from worktrack.domain import Assignee, TaskSnapshot
from worktrack.models import utcnow
from worktrack.notifications.email import EmailSender, email_sender_for
from worktrack.notifications.inapp import NOTIFICATION_TYPE_REMINDER, NotificationDispatcher, SqlNotificationDispatcher
from worktrack.repository import SqlTaskRepository, TaskRepository

logger = logging.getLogger(__name__)


class TaskNotFoundError(LookupError):
  pass


class ReminderNotAllowedError(ValueError):
  pass


@dataclass(frozen=True)
class ScanResult:
  tasks_processed: int = 0
  tasks_reminded: int = 0
  notifications_sent: int = 0
  failed_attempts: int = 0


@dataclass(frozen=True)
class DeliveryOutcome:
  user_id: str
  success: bool
  error: str | None = None


class ReminderScanner:
  """
  Due-date reminders for tasks approaching their deadline.

  scan_once() is the scheduled pass: it picks up open tasks due within the
  window whose reminder guard is unset, claims each one by setting the guard,
  then notifies every assignee. The claim is released again when no email
  went out. send_for_task() is the manual path and never reads or writes the
  guard.
  """

  def __init__(
    self,
    repo: TaskRepository,
    dispatcher: NotificationDispatcher,
    email_sender: EmailSender,
    *,
    clock: Callable[[], datetime] = utcnow,
    window: timedelta = timedelta(hours=24),
    email_timeout: float = 15.0,
    max_concurrency: int = 8,
    frontend_url: str = "http://localhost:5173",
  ) -> None:
    self.repo = repo
    self.dispatcher = dispatcher
    self.email_sender = email_sender
    self.clock = clock
    self.window = window
    self.email_timeout = email_timeout
    self.max_concurrency = max(1, int(max_concurrency))
    self.frontend_url = frontend_url.rstrip("/")

  def task_url(self, task_id: str) -> str:
    return f"{self.frontend_url}/user/task-details/{task_id}"

  async def scan_once(self) -> ScanResult:
    now = self.clock()
    tasks = await self.repo.find_due_within_window(now, now + self.window)
    logger.info("Found %d tasks needing reminders", len(tasks))

    hours = int(self.window.total_seconds() // 3600)
    reminded = 0
    sent = 0
    failed = 0
    for task in tasks:
      # The claim is committed before any delivery so other scans skip the task.
      claimed = await self.repo.mark_reminder_sent(task.id, now)
      await self.repo.commit()
      if not claimed:
        logger.info("Task %s already claimed by another scan", task.id)
        continue

      outcomes = await self._fan_out(
        task,
        title="Task Due Soon",
        message=f'"{task.title}" is due in less than {hours} hours!',
      )
      ok = sum(1 for o in outcomes if o.success)
      failures = [o for o in outcomes if not o.success]
      sent += ok
      failed += len(failures)
      if failures:
        logger.warning(
          "Task %s: %d of %d reminder deliveries failed (%s)",
          task.id,
          len(failures),
          len(outcomes),
          ", ".join(f"{o.user_id}: {o.error}" for o in failures),
        )
      if ok:
        reminded += 1
        logger.info('Sent %d reminders for task: "%s"', ok, task.title)
      else:
        await self.repo.clear_reminder_sent(task.id, now)
      await self.repo.commit()

    return ScanResult(tasks_processed=len(tasks), tasks_reminded=reminded, notifications_sent=sent, failed_attempts=failed)

  async def send_for_task(self, task_id: str, *, sender_id: str | None = None) -> int:
    task = await self.repo.get_task(task_id)
    if task is None:
      raise TaskNotFoundError(task_id)
    if task.is_completed:
      raise ReminderNotAllowedError("Cannot send reminder for completed task")

    outcomes = await self._fan_out(
      task,
      title="Task Reminder",
      message=f'Reminder: "{task.title}" needs your attention!',
      sender_id=sender_id,
    )
    await self.repo.commit()
    return sum(1 for o in outcomes if o.success)

  async def _fan_out(
    self,
    task: TaskSnapshot,
    *,
    title: str,
    message: str,
    sender_id: str | None = None,
  ) -> list[DeliveryOutcome]:
    recipients = [a for a in task.assignees if a.email]
    if not recipients:
      return []
    sem = asyncio.Semaphore(self.max_concurrency)

    async def deliver(a: Assignee) -> DeliveryOutcome:
      async with sem:
        return await self._deliver(task, a, title=title, message=message, sender_id=sender_id)

    return list(await asyncio.gather(*(deliver(a) for a in recipients)))

  async def _deliver(
    self,
    task: TaskSnapshot,
    a: Assignee,
    *,
    title: str,
    message: str,
    sender_id: str | None,
  ) -> DeliveryOutcome:
    email = a.email or ""
    try:
      await self.dispatcher.create_in_app(
        a.id,
        type=NOTIFICATION_TYPE_REMINDER,
        title=title,
        message=message,
        task_id=task.id,
        sender_id=sender_id,
      )
      ok = await asyncio.wait_for(
        self.email_sender.send_due_date_reminder(
          email,
          a.name,
          task.title,
          task.due_date,
          task.priority,
          self.task_url(task.id),
        ),
        timeout=self.email_timeout,
      )
    except asyncio.TimeoutError:
      logger.warning("Reminder email to %s timed out after %.1fs", email, self.email_timeout)
      return DeliveryOutcome(user_id=a.id, success=False, error="timeout")
    except Exception as e:
      logger.warning("Failed to send reminder to %s: %s", email, e)
      return DeliveryOutcome(user_id=a.id, success=False, error=str(e))
    if not ok:
      return DeliveryOutcome(user_id=a.id, success=False, error="send failed")
    return DeliveryOutcome(user_id=a.id, success=True)


def build_scanner(
  db: AsyncSession,
  *,
  cfg: Settings = settings,
  clock: Callable[[], datetime] = utcnow,
  email_sender: EmailSender | None = None,
) -> ReminderScanner:
  return ReminderScanner(
    SqlTaskRepository(db),
    SqlNotificationDispatcher(db),
    email_sender or email_sender_for(cfg),
    clock=clock,
    window=timedelta(hours=cfg.reminder_window_hours),
    email_timeout=float(cfg.reminder_email_timeout_seconds),
    max_concurrency=cfg.reminder_max_concurrency,
    frontend_url=cfg.frontend_url,
  )
