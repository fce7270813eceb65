from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone, tzinfo

from worktrack.analytics.streak import compute_streak, local_day
from worktrack.domain import ChecklistTotals, TaskSnapshot
from worktrack.models import TASK_PRIORITIES, TASK_STATUS_IN_PROGRESS, TASK_STATUS_PENDING

VOLUME_POINTS = 20.0
VOLUME_SATURATION_TASKS = 10
COMPLETION_POINTS = 25.0
ON_TIME_FACTOR = 0.25
STREAK_POINTS = 15.0
STREAK_SATURATION_DAYS = 7
CHECKLIST_FACTOR = 0.15

_GRADES = ((90, "A+"), (80, "A"), (70, "B+"), (60, "B"), (50, "C+"), (40, "C"), (30, "D"))
SCORE_BANDS = (
  ("Excellent", 80, 100),
  ("Good", 60, 79),
  ("Average", 40, 59),
  ("Below Average", 20, 39),
  ("Needs Improvement", 0, 19),
)


def round_half_up(value: float) -> int:
  return int(math.floor(value + 0.5))


def percent(part: int, whole: int) -> int:
  if whole <= 0:
    return 0
  return round_half_up(part / whole * 100)


def grade_for_score(score: int) -> str:
  for floor, grade in _GRADES:
    if score >= floor:
      return grade
  return "F"


def score_band(score: int) -> str:
  for name, low, high in SCORE_BANDS:
    if low <= score <= high:
      return name
  return SCORE_BANDS[-1][0]


def start_of_local_day(day: date, tz: tzinfo) -> datetime:
  return datetime.combine(day, time.min, tzinfo=tz)


def period_start(now: datetime, period_days: int, tz: tzinfo = timezone.utc) -> datetime:
  return start_of_local_day(local_day(now, tz) - timedelta(days=period_days), tz)


@dataclass(frozen=True)
class ScoreWeights:
  volume: float = 0.0
  completion: float = 0.0
  on_time: float = 0.0
  streak: float = 0.0
  checklist: float = 0.0

  @property
  def total(self) -> float:
    return self.volume + self.completion + self.on_time + self.streak + self.checklist

  def score(self) -> int:
    return max(0, min(100, round_half_up(self.total)))


@dataclass(frozen=True)
class WeeklyBucket:
  week: str
  week_start: date
  completed: int
  created: int


@dataclass(frozen=True)
class ProductivitySnapshot:
  period_days: int
  total_tasks: int = 0
  completed_tasks: int = 0
  pending_tasks: int = 0
  in_progress_tasks: int = 0
  overdue_tasks: int = 0
  completion_rate: float = 0.0
  on_time_rate: int = 0
  checklist_total: int = 0
  checklist_completed: int = 0
  checklist_rate: int = 0
  current_streak: int = 0
  completed_in_period: int = 0
  created_in_period: int = 0
  avg_completion_days: int = 0
  completed_by_priority: dict[str, int] = field(default_factory=lambda: {p: 0 for p in reversed(TASK_PRIORITIES)})
  weekly_trend: tuple[WeeklyBucket, ...] = ()
  weights: ScoreWeights = field(default_factory=ScoreWeights)
  score: int = 0

  @property
  def grade(self) -> str:
    return grade_for_score(self.score)


def score_weights(
  *,
  total_tasks: int,
  completed_tasks: int,
  on_time_rate: int,
  streak: int,
  checklist_rate: int,
) -> ScoreWeights:
  return ScoreWeights(
    volume=min(total_tasks / VOLUME_SATURATION_TASKS, 1) * VOLUME_POINTS,
    completion=(completed_tasks / max(total_tasks, 1)) * COMPLETION_POINTS,
    on_time=on_time_rate * ON_TIME_FACTOR,
    streak=min(streak / STREAK_SATURATION_DAYS, 1) * STREAK_POINTS,
    checklist=checklist_rate * CHECKLIST_FACTOR,
  )


def on_time_rate(tasks: Sequence[TaskSnapshot]) -> int:
  completed = [t for t in tasks if t.is_completed]
  on_time = sum(1 for t in completed if t.due_date is not None and t.updated_at <= t.due_date)
  return percent(on_time, len(completed))


def overdue_count(tasks: Sequence[TaskSnapshot], now: datetime) -> int:
  return sum(1 for t in tasks if not t.is_completed and t.due_date is not None and t.due_date < now)


def weekly_trend(
  tasks: Sequence[TaskSnapshot],
  *,
  period_days: int,
  now: datetime,
  tz: tzinfo = timezone.utc,
) -> tuple[WeeklyBucket, ...]:
  """Completions and creations per 7-day bucket ending today, oldest bucket first."""
  weeks = math.ceil(period_days / 7)
  today = local_day(now, tz)
  buckets: list[WeeklyBucket] = []
  for i in range(weeks):
    last_day = today - timedelta(days=i * 7)
    first_day = last_day - timedelta(days=6)
    lo = start_of_local_day(first_day, tz)
    hi = start_of_local_day(last_day + timedelta(days=1), tz)
    buckets.append(
      WeeklyBucket(
        week=f"Week {weeks - i}",
        week_start=first_day,
        completed=sum(1 for t in tasks if t.is_completed and lo <= t.updated_at < hi),
        created=sum(1 for t in tasks if lo <= t.created_at < hi),
      )
    )
  buckets.reverse()
  return tuple(buckets)


def _avg_completion_days(tasks: Sequence[TaskSnapshot]) -> int:
  spans = [(t.updated_at - t.created_at).total_seconds() for t in tasks if t.is_completed]
  if not spans:
    return 0
  return round_half_up(sum(spans) / len(spans) / 86400)


def score_tasks(
  tasks: Sequence[TaskSnapshot],
  *,
  period_days: int,
  now: datetime,
  tz: tzinfo = timezone.utc,
) -> ProductivitySnapshot:
  """
  Compute a user's productivity snapshot from their assigned tasks.

  All-time metrics (score, on-time rate, checklist rate, streak) use every
  task; the period metrics only look at [local midnight period_days ago, now].
  An empty task list yields the zero snapshot.
  """
  if not tasks:
    return ProductivitySnapshot(
      period_days=period_days,
      weekly_trend=weekly_trend((), period_days=period_days, now=now, tz=tz),
    )

  total = len(tasks)
  completed = [t for t in tasks if t.is_completed]
  rate = on_time_rate(tasks)
  checklist = ChecklistTotals.of(tasks)
  checklist_rate = percent(checklist.completed, checklist.total)
  streak = compute_streak(tasks, now, tz)
  weights = score_weights(
    total_tasks=total,
    completed_tasks=len(completed),
    on_time_rate=rate,
    streak=streak,
    checklist_rate=checklist_rate,
  )

  start = period_start(now, period_days, tz)
  completed_in_period = [t for t in completed if start <= t.updated_at <= now]
  by_priority = {p: 0 for p in reversed(TASK_PRIORITIES)}
  for t in completed_in_period:
    if t.priority in by_priority:
      by_priority[t.priority] += 1

  return ProductivitySnapshot(
    period_days=period_days,
    total_tasks=total,
    completed_tasks=len(completed),
    pending_tasks=sum(1 for t in tasks if t.status == TASK_STATUS_PENDING),
    in_progress_tasks=sum(1 for t in tasks if t.status == TASK_STATUS_IN_PROGRESS),
    overdue_tasks=overdue_count(tasks, now),
    completion_rate=len(completed) / total,
    on_time_rate=rate,
    checklist_total=checklist.total,
    checklist_completed=checklist.completed,
    checklist_rate=checklist_rate,
    current_streak=streak,
    completed_in_period=len(completed_in_period),
    created_in_period=sum(1 for t in tasks if start <= t.created_at <= now),
    avg_completion_days=_avg_completion_days(tasks),
    completed_by_priority=by_priority,
    weekly_trend=weekly_trend(tasks, period_days=period_days, now=now, tz=tz),
    weights=weights,
    score=weights.score(),
  )
