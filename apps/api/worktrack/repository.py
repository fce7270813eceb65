from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import Protocol

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from worktrack.domain import Assignee, ChecklistItem, TaskSnapshot
from worktrack.models import TASK_STATUS_COMPLETED, Task, task_assignees


class TaskRepository(Protocol):
  async def find_by_assignee(self, user_id: str) -> list[TaskSnapshot]: ...

  async def find_by_assignees(self, user_ids: Iterable[str]) -> dict[str, list[TaskSnapshot]]: ...

  async def find_due_within_window(
    self,
    not_before: datetime,
    not_after: datetime,
    *,
    excluding_completed: bool = True,
    excluding_reminded: bool = True,
  ) -> list[TaskSnapshot]: ...

  async def get_task(self, task_id: str) -> TaskSnapshot | None: ...

  async def mark_reminder_sent(self, task_id: str, sent_at: datetime) -> bool: ...

  async def clear_reminder_sent(self, task_id: str, sent_at: datetime) -> bool: ...

  async def commit(self) -> None: ...


def _checklist(raw: list | None) -> tuple[ChecklistItem, ...]:
  items: list[ChecklistItem] = []
  for entry in raw or []:
    if not isinstance(entry, dict):
      continue
    items.append(ChecklistItem(text=str(entry.get("text") or ""), completed=bool(entry.get("completed"))))
  return tuple(items)


def task_snapshot(t: Task) -> TaskSnapshot:
  return TaskSnapshot(
    id=t.id,
    title=t.title,
    status=t.status,
    priority=t.priority,
    created_at=t.created_at,
    updated_at=t.updated_at,
    due_date=t.due_date,
    checklist=_checklist(t.todo_checklist),
    assignees=tuple(Assignee(id=u.id, name=u.name, email=u.email) for u in t.assignees),
    reminder_sent=bool(t.reminder_sent),
    reminder_sent_at=t.reminder_sent_at,
  )


class SqlTaskRepository:
  def __init__(self, db: AsyncSession) -> None:
    self.db = db

  async def find_by_assignee(self, user_id: str) -> list[TaskSnapshot]:
    res = await self.db.execute(
      select(Task)
      .join(task_assignees, task_assignees.c.task_id == Task.id)
      .where(task_assignees.c.user_id == user_id)
      .order_by(Task.created_at.asc())
    )
    return [task_snapshot(t) for t in res.scalars().unique().all()]

  async def find_by_assignees(self, user_ids: Iterable[str]) -> dict[str, list[TaskSnapshot]]:
    ids = list(dict.fromkeys(user_ids))
    out: dict[str, list[TaskSnapshot]] = {uid: [] for uid in ids}
    if not ids:
      return out
    res = await self.db.execute(
      select(task_assignees.c.user_id, Task)
      .join(Task, Task.id == task_assignees.c.task_id)
      .where(task_assignees.c.user_id.in_(ids))
      .order_by(Task.created_at.asc())
    )
    for user_id, t in res.all():
      out[user_id].append(task_snapshot(t))
    return out

  async def find_due_within_window(
    self,
    not_before: datetime,
    not_after: datetime,
    *,
    excluding_completed: bool = True,
    excluding_reminded: bool = True,
  ) -> list[TaskSnapshot]:
    q = select(Task).where(Task.due_date.is_not(None), Task.due_date > not_before, Task.due_date <= not_after)
    if excluding_completed:
      q = q.where(Task.status != TASK_STATUS_COMPLETED)
    if excluding_reminded:
      q = q.where(or_(Task.reminder_sent.is_(None), Task.reminder_sent.is_(False)))
    res = await self.db.execute(q.order_by(Task.due_date.asc()))
    return [task_snapshot(t) for t in res.scalars().all()]

  async def get_task(self, task_id: str) -> TaskSnapshot | None:
    t = await self.db.get(Task, task_id)
    return task_snapshot(t) if t else None

  async def mark_reminder_sent(self, task_id: str, sent_at: datetime) -> bool:
    # Conditional write: only one scan can claim the task.
    res = await self.db.execute(
      update(Task)
      .where(Task.id == task_id, or_(Task.reminder_sent.is_(None), Task.reminder_sent.is_(False)))
      .values(reminder_sent=True, reminder_sent_at=sent_at, updated_at=Task.updated_at)
      .execution_options(synchronize_session=False)
    )
    return res.rowcount == 1

  async def clear_reminder_sent(self, task_id: str, sent_at: datetime) -> bool:
    # Releases only the claim taken at sent_at.
    res = await self.db.execute(
      update(Task)
      .where(Task.id == task_id, Task.reminder_sent.is_(True), Task.reminder_sent_at == sent_at)
      .values(reminder_sent=False, reminder_sent_at=None, updated_at=Task.updated_at)
      .execution_options(synchronize_session=False)
    )
    return res.rowcount == 1

  async def commit(self) -> None:
    await self.db.commit()
