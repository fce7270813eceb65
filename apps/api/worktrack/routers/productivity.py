from __future__ import annotations

from datetime import datetime, tzinfo

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from worktrack.analytics.service import get_productivity_stats, get_team_productivity_stats, normalize_period
from worktrack.deps import get_clock_now, get_current_user, get_db, get_local_tz, require_admin
from worktrack.models import User
from worktrack.org import get_org_domain, is_public_domain, list_org_members
from worktrack.repository import SqlTaskRepository
from worktrack.schemas import ProductivityStatsOut, TeamProductivityOut, productivity_stats_out, team_productivity_out

router = APIRouter(prefix="/tasks", tags=["productivity"])


@router.get("/productivity-stats", response_model=ProductivityStatsOut)
async def productivity_stats(
  period: str | None = None,
  userId: str | None = None,
  user: User = Depends(get_current_user),
  db: AsyncSession = Depends(get_db),
  now: datetime = Depends(get_clock_now),
  tz: tzinfo = Depends(get_local_tz),
) -> ProductivityStatsOut:
  target_id = user.id
  if userId and user.role == "admin":
    target_id = userId
  snapshot = await get_productivity_stats(
    SqlTaskRepository(db),
    target_id,
    period_days=normalize_period(period),
    now=now,
    tz=tz,
  )
  return productivity_stats_out(snapshot)


@router.get("/team-productivity-stats", response_model=TeamProductivityOut)
async def team_productivity_stats(
  period: str | None = None,
  admin: User = Depends(require_admin),
  db: AsyncSession = Depends(get_db),
  now: datetime = Depends(get_clock_now),
  tz: tzinfo = Depends(get_local_tz),
) -> TeamProductivityOut:
  domain = get_org_domain(admin.email)
  if is_public_domain(domain):
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access restricted for public domains.")
  members = await list_org_members(db, domain)
  report = await get_team_productivity_stats(
    SqlTaskRepository(db),
    members,
    period_days=normalize_period(period),
    now=now,
    tz=tz,
  )
  return team_productivity_out(report)
