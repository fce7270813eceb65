from __future__ import annotations

import os
import sys
import tempfile
from datetime import datetime
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
  sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{Path(tempfile.gettempdir()) / 'worktrack_test.db'}")
os.environ.setdefault("REMINDER_SCHEDULER_ENABLED", "false")
os.environ.setdefault("SMTP_HOST", "")

import pytest
from httpx import ASGITransport, AsyncClient

from worktrack.config import settings
from worktrack.db import SessionLocal, engine
from worktrack.main import app
from worktrack.models import Base, Task, User


@pytest.fixture(scope="session")
def anyio_backend() -> str:
  return "asyncio"


@pytest.fixture
async def db_schema(anyio_backend):
  db_name = settings.database_url.rsplit("/", 1)[-1]
  if "test" not in db_name:
    raise RuntimeError(
      "Refusing to run destructive tests against non-test DB. "
      "Set DATABASE_URL to a *_test database (e.g. sqlite+aiosqlite:///worktrack_test.db)."
    )
  async with engine.begin() as conn:
    await conn.run_sync(Base.metadata.drop_all)
    await conn.run_sync(Base.metadata.create_all)
  yield
  app.dependency_overrides.clear()
  await engine.dispose()


@pytest.fixture
async def client(db_schema) -> AsyncClient:
  transport = ASGITransport(app=app)
  async with AsyncClient(transport=transport, base_url="http://localhost") as c:
    yield c


def as_user(user_id: str) -> dict[str, str]:
  return {"X-User-Id": user_id}


async def make_user(email: str, *, name: str | None = None, role: str = "member") -> str:
  async with SessionLocal() as db:
    u = User(email=email, name=name or email.split("@", 1)[0].title(), role=role)
    db.add(u)
    await db.commit()
    return u.id


async def make_task(
  *,
  title: str = "Task",
  status: str = "Pending",
  priority: str = "Medium",
  assignee_ids: list[str] | None = None,
  due_date: datetime | None = None,
  created_at: datetime | None = None,
  updated_at: datetime | None = None,
  checklist: list[bool] | None = None,
  reminder_sent: bool = False,
) -> str:
  async with SessionLocal() as db:
    assignees = [await db.get(User, uid) for uid in (assignee_ids or [])]
    t = Task(
      title=title,
      status=status,
      priority=priority,
      due_date=due_date,
      todo_checklist=[{"text": f"step {i}", "completed": c} for i, c in enumerate(checklist or [])],
      reminder_sent=reminder_sent,
      assignees=[u for u in assignees if u is not None],
    )
    if created_at is not None:
      t.created_at = created_at
    if updated_at is not None:
      t.updated_at = updated_at
    elif created_at is not None:
      t.updated_at = created_at
    db.add(t)
    await db.commit()
    return t.id
