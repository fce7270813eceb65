from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from worktrack.models import TASK_STATUS_COMPLETED


@dataclass(frozen=True)
class ChecklistItem:
  text: str
  completed: bool = False


@dataclass(frozen=True)
class Assignee:
  id: str
  name: str
  email: str | None = None


@dataclass(frozen=True)
class UserRef:
  id: str
  name: str
  email: str
  role: str = "member"

  @property
  def is_admin(self) -> bool:
    return self.role == "admin"


@dataclass(frozen=True)
class TaskSnapshot:
  """Read-only view of a task as the analytics and reminder code sees it."""

  id: str
  title: str
  status: str
  priority: str
  created_at: datetime
  updated_at: datetime
  due_date: datetime | None = None
  checklist: tuple[ChecklistItem, ...] = ()
  assignees: tuple[Assignee, ...] = ()
  reminder_sent: bool = False
  reminder_sent_at: datetime | None = None

  @property
  def is_completed(self) -> bool:
    return self.status == TASK_STATUS_COMPLETED

  @property
  def completed_at(self) -> datetime | None:
    # updated_at stands in for the completion time; no separate timestamp is tracked.
    return self.updated_at if self.is_completed else None


@dataclass(frozen=True)
class ChecklistTotals:
  total: int = 0
  completed: int = 0

  @classmethod
  def of(cls, tasks: list[TaskSnapshot] | tuple[TaskSnapshot, ...]) -> ChecklistTotals:
    total = 0
    completed = 0
    for t in tasks:
      if not t.checklist:
        continue
      total += len(t.checklist)
      completed += sum(1 for item in t.checklist if item.completed)
    return cls(total=total, completed=completed)
