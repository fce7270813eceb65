from __future__ import annotations

from datetime import date

from pydantic import BaseModel

from worktrack.analytics.scoring import ProductivitySnapshot
from worktrack.analytics.team import MemberProductivity, TeamProductivityReport
from worktrack.domain import UserRef
from worktrack.reminders.service import ScanResult


class UserOut(BaseModel):
  id: str
  name: str
  email: str


class SummaryOut(BaseModel):
  totalTasks: int
  completedTasks: int
  pendingTasks: int
  inProgressTasks: int
  overdueTasks: int
  productivityScore: int
  grade: str


class PeriodStatsOut(BaseModel):
  tasksCompleted: int
  tasksCreated: int
  avgCompletionTime: int
  onTimeRate: int
  currentStreak: int
  completionRate: float


class ChecklistStatsOut(BaseModel):
  total: int
  completed: int
  rate: int


class WeeklyTrendOut(BaseModel):
  week: str
  weekStart: date
  completed: int
  created: int


class ScoreBreakdownOut(BaseModel):
  volume: float
  completion: float
  onTime: float
  streak: float
  checklist: float


class ProductivityStatsOut(BaseModel):
  period: int
  summary: SummaryOut
  periodStats: PeriodStatsOut
  completedByPriority: dict[str, int]
  checklistStats: ChecklistStatsOut
  scoreBreakdown: ScoreBreakdownOut
  weeklyTrend: list[WeeklyTrendOut]


class TeamMemberOut(BaseModel):
  user: UserOut
  totalTasks: int
  completedTasks: int
  completedInPeriod: int
  pendingTasks: int
  inProgressTasks: int
  overdueTasks: int
  onTimeRate: int
  currentStreak: int
  productivityScore: int
  grade: str


class TeamAverageOut(BaseModel):
  avgProductivityScore: int
  totalCompleted: int
  avgOnTimeRate: int
  totalOverdue: int


class TeamProductivityOut(BaseModel):
  period: int
  teamSize: int
  teamAverage: TeamAverageOut
  scoreDistribution: dict[str, int]
  members: list[TeamMemberOut]


class ReminderScanOut(BaseModel):
  tasksProcessed: int
  tasksReminded: int
  notificationsSent: int
  failedAttempts: int


class ReminderTriggerOut(BaseModel):
  message: str
  result: ReminderScanOut


class SendReminderOut(BaseModel):
  message: str
  sentCount: int


def user_out(u: UserRef) -> UserOut:
  return UserOut(id=u.id, name=u.name, email=u.email)


def productivity_stats_out(s: ProductivitySnapshot) -> ProductivityStatsOut:
  return ProductivityStatsOut(
    period=s.period_days,
    summary=SummaryOut(
      totalTasks=s.total_tasks,
      completedTasks=s.completed_tasks,
      pendingTasks=s.pending_tasks,
      inProgressTasks=s.in_progress_tasks,
      overdueTasks=s.overdue_tasks,
      productivityScore=s.score,
      grade=s.grade,
    ),
    periodStats=PeriodStatsOut(
      tasksCompleted=s.completed_in_period,
      tasksCreated=s.created_in_period,
      avgCompletionTime=s.avg_completion_days,
      onTimeRate=s.on_time_rate,
      currentStreak=s.current_streak,
      completionRate=round(s.completion_rate, 4),
    ),
    completedByPriority=dict(s.completed_by_priority),
    checklistStats=ChecklistStatsOut(total=s.checklist_total, completed=s.checklist_completed, rate=s.checklist_rate),
    scoreBreakdown=ScoreBreakdownOut(
      volume=round(s.weights.volume, 2),
      completion=round(s.weights.completion, 2),
      onTime=round(s.weights.on_time, 2),
      streak=round(s.weights.streak, 2),
      checklist=round(s.weights.checklist, 2),
    ),
    weeklyTrend=[WeeklyTrendOut(week=w.week, weekStart=w.week_start, completed=w.completed, created=w.created) for w in s.weekly_trend],
  )


def team_member_out(m: MemberProductivity) -> TeamMemberOut:
  s = m.stats
  return TeamMemberOut(
    user=user_out(m.user),
    totalTasks=s.total_tasks,
    completedTasks=s.completed_tasks,
    completedInPeriod=s.completed_in_period,
    pendingTasks=s.pending_tasks,
    inProgressTasks=s.in_progress_tasks,
    overdueTasks=s.overdue_tasks,
    onTimeRate=s.on_time_rate,
    currentStreak=s.current_streak,
    productivityScore=s.score,
    grade=s.grade,
  )


def team_productivity_out(r: TeamProductivityReport) -> TeamProductivityOut:
  avg = r.team_average
  return TeamProductivityOut(
    period=r.period_days,
    teamSize=r.team_size,
    teamAverage=TeamAverageOut(
      avgProductivityScore=avg.avg_productivity_score,
      totalCompleted=avg.total_completed,
      avgOnTimeRate=avg.avg_on_time_rate,
      totalOverdue=avg.total_overdue,
    ),
    scoreDistribution=dict(r.score_distribution),
    members=[team_member_out(m) for m in r.members],
  )


def reminder_scan_out(r: ScanResult) -> ReminderScanOut:
  return ReminderScanOut(
    tasksProcessed=r.tasks_processed,
    tasksReminded=r.tasks_reminded,
    notificationsSent=r.notifications_sent,
    failedAttempts=r.failed_attempts,
  )
