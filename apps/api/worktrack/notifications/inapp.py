from __future__ import annotations

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from worktrack.models import InAppNotification, utcnow

NOTIFICATION_TYPE_REMINDER = "reminder"


class NotificationDispatcher(Protocol):
  async def create_in_app(
    self,
    recipient_id: str,
    *,
    type: str,
    title: str,
    message: str,
    task_id: str | None = None,
    sender_id: str | None = None,
  ) -> None: ...


class SqlNotificationDispatcher:
  """
  Stages in-app notification rows on the caller's session.

  Nothing is flushed here, so concurrent coroutines sharing one session can
  call it; rows land when the caller commits.
  """

  def __init__(self, db: AsyncSession) -> None:
    self.db = db

  async def create_in_app(
    self,
    recipient_id: str,
    *,
    type: str,
    title: str,
    message: str,
    task_id: str | None = None,
    sender_id: str | None = None,
  ) -> None:
    self.db.add(
      InAppNotification(
        recipient_id=recipient_id,
        sender_id=sender_id,
        type=type,
        title=title,
        message=message,
        task_id=task_id,
        created_at=utcnow(),
      )
    )
