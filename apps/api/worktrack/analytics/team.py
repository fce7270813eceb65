from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone, tzinfo

from worktrack.analytics.scoring import SCORE_BANDS, ProductivitySnapshot, round_half_up, score_band, score_tasks
from worktrack.domain import TaskSnapshot, UserRef

TaskLookup = Callable[[str], Sequence[TaskSnapshot]]


@dataclass(frozen=True)
class MemberProductivity:
  user: UserRef
  stats: ProductivitySnapshot

  @property
  def score(self) -> int:
    return self.stats.score


@dataclass(frozen=True)
class TeamAverage:
  avg_productivity_score: int = 0
  avg_on_time_rate: int = 0
  total_completed: int = 0
  total_overdue: int = 0


@dataclass(frozen=True)
class TeamProductivityReport:
  period_days: int
  members: tuple[MemberProductivity, ...] = ()
  team_average: TeamAverage = field(default_factory=TeamAverage)
  score_distribution: dict[str, int] = field(default_factory=lambda: {name: 0 for name, _, _ in SCORE_BANDS})

  @property
  def team_size(self) -> int:
    return len(self.members)

  @property
  def top_performer(self) -> MemberProductivity | None:
    return self.members[0] if self.members else None

  @property
  def lowest_performer(self) -> MemberProductivity | None:
    return self.members[-1] if self.members else None


def _team_average(members: Sequence[MemberProductivity]) -> TeamAverage:
  if not members:
    return TeamAverage()
  n = len(members)
  return TeamAverage(
    avg_productivity_score=round_half_up(sum(m.stats.score for m in members) / n),
    avg_on_time_rate=round_half_up(sum(m.stats.on_time_rate for m in members) / n),
    total_completed=sum(m.stats.completed_in_period for m in members),
    total_overdue=sum(m.stats.overdue_tasks for m in members),
  )


def aggregate_team(
  members: Sequence[UserRef],
  task_lookup: TaskLookup,
  *,
  period_days: int,
  now: datetime,
  tz: tzinfo = timezone.utc,
) -> TeamProductivityReport:
  """
  Score every non-admin member and rank them by score, highest first.

  Ties keep the order members were given in. Callers are expected to have
  already scoped members to one organization domain.
  """
  scored = [
    MemberProductivity(user=m, stats=score_tasks(task_lookup(m.id), period_days=period_days, now=now, tz=tz))
    for m in members
    if not m.is_admin
  ]
  ranked = sorted(scored, key=lambda m: m.score, reverse=True)

  distribution = {name: 0 for name, _, _ in SCORE_BANDS}
  for m in ranked:
    distribution[score_band(m.score)] += 1

  return TeamProductivityReport(
    period_days=period_days,
    members=tuple(ranked),
    team_average=_team_average(ranked),
    score_distribution=distribution,
  )
