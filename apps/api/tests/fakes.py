from __future__ import annotations

import asyncio
import dataclasses
import itertools
from collections.abc import Iterable
from datetime import datetime, timedelta, timezone

from worktrack.domain import Assignee, ChecklistItem, TaskSnapshot

NOW = datetime(2026, 3, 10, 12, 0, 0, tzinfo=timezone.utc)

_ids = itertools.count(1)


def snap(
  *,
  status: str = "Pending",
  priority: str = "Medium",
  title: str | None = None,
  created_at: datetime | None = None,
  updated_at: datetime | None = None,
  due_date: datetime | None = None,
  checklist: Iterable[bool] = (),
  assignees: Iterable[Assignee] = (),
  reminder_sent: bool = False,
  id: str | None = None,
) -> TaskSnapshot:
  tid = id or f"task-{next(_ids)}"
  created = created_at or (NOW - timedelta(days=20))
  return TaskSnapshot(
    id=tid,
    title=title or f"Task {tid}",
    status=status,
    priority=priority,
    created_at=created,
    updated_at=updated_at or created,
    due_date=due_date,
    checklist=tuple(ChecklistItem(text=f"item {i}", completed=c) for i, c in enumerate(checklist)),
    assignees=tuple(assignees),
    reminder_sent=reminder_sent,
  )


def done(days_ago: float, **kw) -> TaskSnapshot:
  return snap(status="Completed", updated_at=NOW - timedelta(days=days_ago), **kw)


class InMemoryTaskRepository:
  def __init__(self, tasks: Iterable[TaskSnapshot] = ()) -> None:
    self.tasks: dict[str, TaskSnapshot] = {t.id: t for t in tasks}
    self.commits = 0
    self.fail_queries = False

  def _check(self) -> None:
    if self.fail_queries:
      raise ConnectionError("task store unreachable")

  async def find_by_assignee(self, user_id: str) -> list[TaskSnapshot]:
    self._check()
    return [t for t in self.tasks.values() if any(a.id == user_id for a in t.assignees)]

  async def find_by_assignees(self, user_ids: Iterable[str]) -> dict[str, list[TaskSnapshot]]:
    self._check()
    return {uid: await self.find_by_assignee(uid) for uid in user_ids}

  async def find_due_within_window(
    self,
    not_before: datetime,
    not_after: datetime,
    *,
    excluding_completed: bool = True,
    excluding_reminded: bool = True,
  ) -> list[TaskSnapshot]:
    self._check()
    out = []
    for t in self.tasks.values():
      if t.due_date is None or not (not_before < t.due_date <= not_after):
        continue
      if excluding_completed and t.is_completed:
        continue
      if excluding_reminded and t.reminder_sent:
        continue
      out.append(t)
    return out

  async def get_task(self, task_id: str) -> TaskSnapshot | None:
    self._check()
    return self.tasks.get(task_id)

  async def mark_reminder_sent(self, task_id: str, sent_at: datetime) -> bool:
    t = self.tasks[task_id]
    if t.reminder_sent:
      return False
    self.tasks[task_id] = dataclasses.replace(t, reminder_sent=True, reminder_sent_at=sent_at)
    return True

  async def clear_reminder_sent(self, task_id: str, sent_at: datetime) -> bool:
    t = self.tasks[task_id]
    if not t.reminder_sent or t.reminder_sent_at != sent_at:
      return False
    self.tasks[task_id] = dataclasses.replace(t, reminder_sent=False, reminder_sent_at=None)
    return True

  async def commit(self) -> None:
    self.commits += 1


class RecordingDispatcher:
  def __init__(self) -> None:
    self.created: list[dict] = []

  async def create_in_app(self, recipient_id: str, **kw) -> None:
    self.created.append({"recipient_id": recipient_id, **kw})


class FakeEmailSender:
  def __init__(self, *, failing: Iterable[str] = (), raising: Iterable[str] = (), slow: Iterable[str] = ()) -> None:
    self.failing = set(failing)
    self.raising = set(raising)
    self.slow = set(slow)
    self.sent: list[dict] = []

  async def send_due_date_reminder(self, email, name, task_title, due_date, priority, task_url) -> bool:
    if email in self.slow:
      await asyncio.sleep(10)
    if email in self.raising:
      raise ConnectionRefusedError("smtp down")
    if email in self.failing:
      return False
    self.sent.append({"email": email, "name": name, "title": task_title, "priority": priority, "url": task_url})
    return True
