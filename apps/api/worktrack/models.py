from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, String, Table, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.types import TypeDecorator

TASK_STATUS_PENDING = "Pending"
TASK_STATUS_IN_PROGRESS = "In Progress"
TASK_STATUS_COMPLETED = "Completed"
TASK_STATUSES = (TASK_STATUS_PENDING, TASK_STATUS_IN_PROGRESS, TASK_STATUS_COMPLETED)
TASK_PRIORITIES = ("Low", "Medium", "High")


def utcnow() -> datetime:
  return datetime.now(timezone.utc)


def _uuid() -> str:
  return str(uuid.uuid4())


class UTCDateTime(TypeDecorator):
  """Timezone-aware UTC datetimes, also on drivers that hand back naive values (sqlite)."""

  impl = DateTime(timezone=True)
  cache_ok = True

  def process_bind_param(self, value: datetime | None, dialect: Any) -> datetime | None:
    if value is None:
      return None
    if value.tzinfo is None:
      return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)

  def process_result_value(self, value: datetime | None, dialect: Any) -> datetime | None:
    if value is None:
      return None
    if value.tzinfo is None:
      return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class Base(DeclarativeBase):
  pass


task_assignees = Table(
  "task_assignees",
  Base.metadata,
  Column("task_id", String(36), ForeignKey("tasks.id", ondelete="CASCADE"), primary_key=True),
  Column("user_id", String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)


class User(Base):
  __tablename__ = "users"

  id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
  email: Mapped[str] = mapped_column(String, nullable=False, unique=True, index=True)
  name: Mapped[str] = mapped_column(String, nullable=False)
  role: Mapped[str] = mapped_column(String, nullable=False, default="member")
  created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow, nullable=False)


class Task(Base):
  __tablename__ = "tasks"

  id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
  title: Mapped[str] = mapped_column(String, nullable=False)
  description: Mapped[str] = mapped_column(Text, nullable=False, default="")
  status: Mapped[str] = mapped_column(String, nullable=False, default=TASK_STATUS_PENDING, index=True)
  priority: Mapped[str] = mapped_column(String, nullable=False, default="Medium")
  due_date: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True, index=True)
  todo_checklist: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
  reminder_sent: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
  reminder_sent_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
  created_by: Mapped[str | None] = mapped_column(String(36), ForeignKey("users.id"), nullable=True)
  created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow, nullable=False)
  updated_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow, onupdate=utcnow, nullable=False)

  assignees: Mapped[list[User]] = relationship(secondary=task_assignees, lazy="selectin")


class InAppNotification(Base):
  __tablename__ = "inapp_notifications"

  id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
  recipient_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), nullable=False, index=True)
  sender_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("users.id"), nullable=True)
  type: Mapped[str] = mapped_column(String, nullable=False)
  title: Mapped[str] = mapped_column(String, nullable=False)
  message: Mapped[str] = mapped_column(Text, nullable=False)
  task_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("tasks.id", ondelete="CASCADE"), nullable=True)
  read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
  created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow, nullable=False)
