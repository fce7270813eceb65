from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from worktrack.config import settings
from worktrack.domain import UserRef
from worktrack.models import User


def get_org_domain(email: str | None) -> str:
  s = (email or "").strip().lower()
  if "@" not in s:
    return ""
  return s.rsplit("@", 1)[1]


def is_public_domain(domain: str | None) -> bool:
  d = (domain or "").strip().lower()
  if not d:
    return True
  return d in settings.public_email_domain_set()


def user_ref(u: User) -> UserRef:
  return UserRef(id=u.id, name=u.name, email=u.email, role=u.role)


async def list_org_members(db: AsyncSession, domain: str) -> list[UserRef]:
  d = (domain or "").strip().lower()
  if not d:
    return []
  res = await db.execute(
    select(User)
    .where(func.lower(User.email).endswith(f"@{d}", autoescape=True), User.role != "admin")
    .order_by(User.created_at.asc())
  )
  return [user_ref(u) for u in res.scalars().all()]
