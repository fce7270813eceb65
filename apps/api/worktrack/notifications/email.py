from __future__ import annotations

import asyncio
import logging
import smtplib
from dataclasses import dataclass
from datetime import datetime
from email.message import EmailMessage
from typing import Protocol

from worktrack.config import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DueDateReminderEmail:
  to: str
  recipient_name: str
  task_title: str
  due_date: datetime | None
  priority: str
  task_url: str

  @property
  def subject(self) -> str:
    return f'Reminder: "{self.task_title}" needs your attention - Work Track'

  def body(self) -> str:
    due = self.due_date.strftime("%Y-%m-%d %H:%M UTC") if self.due_date else "no due date"
    return (
      f"Hi {self.recipient_name},\n\n"
      "Just a quick heads up about an upcoming task that needs your attention!\n\n"
      f"Task: {self.task_title}\n"
      f"Due: {due}\n"
      f"Priority: {self.priority}\n\n"
      "Make sure to complete this task before the deadline to stay on track.\n"
      f"View task details: {self.task_url}\n\n"
      "This is an automated reminder. Please do not reply.\n"
    )


class EmailSender(Protocol):
  async def send_due_date_reminder(
    self,
    email: str,
    name: str,
    task_title: str,
    due_date: datetime | None,
    priority: str,
    task_url: str,
  ) -> bool: ...


class LocalEmailSender:
  """Logs instead of sending; used when no SMTP host is configured."""

  async def send_due_date_reminder(
    self,
    email: str,
    name: str,
    task_title: str,
    due_date: datetime | None,
    priority: str,
    task_url: str,
  ) -> bool:
    msg = DueDateReminderEmail(email, name, task_title, due_date, priority, task_url)
    logger.info("Due date reminder (local) to %s: %s", email, msg.subject)
    return True


class SmtpEmailSender:
  def __init__(
    self,
    *,
    host: str,
    port: int = 587,
    username: str | None = None,
    password: str | None = None,
    from_addr: str,
    starttls: bool = True,
    timeout: float = 15.0,
  ) -> None:
    self.host = host
    self.port = port
    self.username = username
    self.password = password
    self.from_addr = from_addr
    self.starttls = starttls
    self.timeout = timeout

  def _send_sync(self, msg: DueDateReminderEmail) -> None:
    m = EmailMessage()
    m["Subject"] = msg.subject
    m["From"] = self.from_addr
    m["To"] = msg.to
    m.set_content(msg.body())
    with smtplib.SMTP(host=self.host, port=self.port, timeout=self.timeout) as s:
      s.ehlo()
      if self.starttls:
        s.starttls()
        s.ehlo()
      if self.username and self.password:
        s.login(self.username, self.password)
      s.send_message(m)

  async def send_due_date_reminder(
    self,
    email: str,
    name: str,
    task_title: str,
    due_date: datetime | None,
    priority: str,
    task_url: str,
  ) -> bool:
    msg = DueDateReminderEmail(email, name, task_title, due_date, priority, task_url)
    try:
      await asyncio.to_thread(self._send_sync, msg)
    except (smtplib.SMTPException, OSError) as e:
      logger.warning("Due date reminder to %s failed: %s", email, e)
      return False
    logger.info("Due date reminder sent to %s for task: %s", email, task_title)
    return True


def email_sender_for(cfg: Settings) -> EmailSender:
  host = (cfg.smtp_host or "").strip()
  if not host:
    return LocalEmailSender()
  return SmtpEmailSender(
    host=host,
    port=int(cfg.smtp_port or 587),
    username=(cfg.smtp_username or "").strip() or None,
    password=cfg.smtp_password or None,
    from_addr=cfg.mail_from,
    starttls=bool(cfg.smtp_starttls),
    timeout=float(cfg.reminder_email_timeout_seconds),
  )
