from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient

from conftest import as_user, make_task, make_user
from worktrack.deps import get_clock_now
from worktrack.main import app

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def fixed_now():
  app.dependency_overrides[get_clock_now] = lambda: NOW
  return NOW


async def _seed_team() -> dict[str, str]:
  boss = await make_user("boss@acme.io", role="admin")
  ann = await make_user("ann@acme.io")
  bob = await make_user("bob@acme.io")
  await make_user("eve@other.io")
  created = NOW - timedelta(days=5)
  await make_task(
    title="today",
    status="Completed",
    priority="High",
    assignee_ids=[ann],
    created_at=created,
    updated_at=NOW - timedelta(hours=1),
    due_date=NOW + timedelta(days=1),
  )
  await make_task(
    title="yesterday",
    status="Completed",
    assignee_ids=[ann],
    created_at=created,
    updated_at=NOW - timedelta(days=1),
    due_date=NOW + timedelta(days=1),
  )
  await make_task(title="late", assignee_ids=[ann], created_at=created, due_date=NOW - timedelta(days=1))
  return {"boss": boss, "ann": ann, "bob": bob}


@pytest.mark.anyio
async def test_my_productivity_stats(client: AsyncClient, fixed_now) -> None:
  ids = await _seed_team()

  res = await client.get("/tasks/productivity-stats", headers=as_user(ids["ann"]))
  assert res.status_code == 200, res.text
  body = res.json()
  assert body["period"] == 30
  assert body["summary"]["totalTasks"] == 3
  assert body["summary"]["completedTasks"] == 2
  assert body["summary"]["overdueTasks"] == 1
  assert body["summary"]["productivityScore"] == 52
  assert body["periodStats"]["currentStreak"] == 2
  assert body["periodStats"]["onTimeRate"] == 100
  assert body["periodStats"]["tasksCompleted"] == 2
  assert body["periodStats"]["tasksCreated"] == 3
  assert body["completedByPriority"] == {"High": 1, "Medium": 1, "Low": 0}
  assert len(body["weeklyTrend"]) == 5
  assert body["weeklyTrend"][-1]["completed"] == 2

  week = await client.get("/tasks/productivity-stats", params={"period": "7"}, headers=as_user(ids["ann"]))
  assert week.status_code == 200, week.text
  assert week.json()["period"] == 7
  assert len(week.json()["weeklyTrend"]) == 1


@pytest.mark.anyio
async def test_user_id_param_is_admin_only(client: AsyncClient, fixed_now) -> None:
  ids = await _seed_team()

  own = await client.get("/tasks/productivity-stats", params={"userId": ids["ann"]}, headers=as_user(ids["bob"]))
  assert own.status_code == 200, own.text
  assert own.json()["summary"]["totalTasks"] == 0
  assert own.json()["summary"]["productivityScore"] == 0

  other = await client.get("/tasks/productivity-stats", params={"userId": ids["ann"]}, headers=as_user(ids["boss"]))
  assert other.status_code == 200, other.text
  assert other.json()["summary"]["totalTasks"] == 3


@pytest.mark.anyio
async def test_invalid_period_falls_back_to_default(client: AsyncClient, fixed_now) -> None:
  ids = await _seed_team()
  res = await client.get("/tasks/productivity-stats", params={"period": "abc"}, headers=as_user(ids["ann"]))
  assert res.status_code == 200, res.text
  assert res.json()["period"] == 30


@pytest.mark.anyio
async def test_productivity_stats_require_a_caller(client: AsyncClient) -> None:
  res = await client.get("/tasks/productivity-stats")
  assert res.status_code == 401, res.text
  unknown = await client.get("/tasks/productivity-stats", headers=as_user("does-not-exist"))
  assert unknown.status_code == 401, unknown.text


@pytest.mark.anyio
async def test_team_productivity_ranks_org_members(client: AsyncClient, fixed_now) -> None:
  ids = await _seed_team()

  res = await client.get("/tasks/team-productivity-stats", headers=as_user(ids["boss"]))
  assert res.status_code == 200, res.text
  body = res.json()
  assert body["teamSize"] == 2
  assert [m["user"]["email"] for m in body["members"]] == ["ann@acme.io", "bob@acme.io"]
  assert [m["productivityScore"] for m in body["members"]] == [52, 0]
  assert body["teamAverage"] == {"avgProductivityScore": 26, "totalCompleted": 2, "avgOnTimeRate": 50, "totalOverdue": 1}
  assert body["scoreDistribution"]["Average"] == 1
  assert body["scoreDistribution"]["Needs Improvement"] == 1


@pytest.mark.anyio
async def test_team_productivity_access_rules(client: AsyncClient, fixed_now) -> None:
  ids = await _seed_team()
  public_admin = await make_user("someone@gmail.com", role="admin")

  member = await client.get("/tasks/team-productivity-stats", headers=as_user(ids["ann"]))
  assert member.status_code == 403, member.text

  public = await client.get("/tasks/team-productivity-stats", headers=as_user(public_admin))
  assert public.status_code == 403, public.text
  assert "public" in public.text.lower()


@pytest.mark.anyio
async def test_team_without_members_returns_zeroes(client: AsyncClient, fixed_now) -> None:
  boss = await make_user("boss@solo.io", role="admin")
  res = await client.get("/tasks/team-productivity-stats", params={"period": "14"}, headers=as_user(boss))
  assert res.status_code == 200, res.text
  body = res.json()
  assert body["period"] == 14
  assert body["teamSize"] == 0
  assert body["members"] == []
  assert body["teamAverage"]["avgProductivityScore"] == 0
