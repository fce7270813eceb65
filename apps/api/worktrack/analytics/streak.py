from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime, timedelta, timezone, tzinfo

from worktrack.domain import TaskSnapshot

# Upper bound on days walked back.
MAX_STREAK_DAYS = 365


def local_day(ts: datetime, tz: tzinfo = timezone.utc) -> date:
  return ts.astimezone(tz).date()


def completion_days(tasks: Iterable[TaskSnapshot], tz: tzinfo = timezone.utc) -> set[date]:
  days: set[date] = set()
  for t in tasks:
    done_at = t.completed_at
    if done_at is not None:
      days.add(local_day(done_at, tz))
  return days


def compute_streak(tasks: Iterable[TaskSnapshot], as_of: datetime, tz: tzinfo = timezone.utc) -> int:
  """
  Count consecutive local calendar days, ending on as_of's day, with at least one completion.

  A day with no completion stops the walk, including today: a run that ended
  yesterday yields 0.
  """
  days = completion_days(tasks, tz)
  if not days:
    return 0

  check = local_day(as_of, tz)
  streak = 0
  while streak < MAX_STREAK_DAYS:
    if check not in days:
      break
    streak += 1
    check -= timedelta(days=1)
  return streak
