from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timezone, tzinfo

from worktrack.analytics.scoring import ProductivitySnapshot, score_tasks
from worktrack.analytics.team import TeamProductivityReport, aggregate_team
from worktrack.config import settings
from worktrack.domain import UserRef
from worktrack.repository import TaskRepository


def normalize_period(raw: object, *, default: int | None = None, maximum: int | None = None) -> int:
  fallback = int(default if default is not None else settings.default_period_days)
  cap = int(maximum if maximum is not None else settings.max_period_days)
  try:
    days = int(str(raw).strip())
  except (TypeError, ValueError):
    return fallback
  if days <= 0:
    return fallback
  return min(days, cap)


async def get_productivity_stats(
  repo: TaskRepository,
  user_id: str,
  *,
  period_days: int,
  now: datetime,
  tz: tzinfo = timezone.utc,
) -> ProductivitySnapshot:
  tasks = await repo.find_by_assignee(user_id)
  return score_tasks(tasks, period_days=period_days, now=now, tz=tz)


async def get_team_productivity_stats(
  repo: TaskRepository,
  members: Sequence[UserRef],
  *,
  period_days: int,
  now: datetime,
  tz: tzinfo = timezone.utc,
) -> TeamProductivityReport:
  # One query for the whole team; scoring then runs over the in-memory snapshot.
  by_member = await repo.find_by_assignees(m.id for m in members if not m.is_admin)
  return aggregate_team(
    members,
    lambda user_id: by_member.get(user_id, []),
    period_days=period_days,
    now=now,
    tz=tz,
  )
