"""Thin data-access helpers on top of SQLAlchemy async sessions.

Each repository is instantiated with a scoped AsyncSession and provides
typed CRUD for one domain aggregate.  Every query on user-owned rows is
scoped by ``user_id``; business logic stays in the service layer.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from growthlab.goals.refs import GoalRef
from growthlab.storage.models import (
    AuthSession,
    Context,
    Experiment,
    ExperimentStatus,
    Goal,
    User,
)


# ── identity ──────────────────────────────────────────────────────────────


class IdentityRepo:
    def __init__(self, s: AsyncSession) -> None:
        self._s = s

    async def create_user(self, email: str, display_name: str = "") -> User:
        u = User(email=email, display_name=display_name)
        self._s.add(u)
        await self._s.flush()
        return u

    async def get_user_by_email(self, email: str) -> User | None:
        return await self._s.scalar(select(User).where(User.email == email))

    async def add_session(self, token: str, user_id: str, expires_at: datetime | None) -> AuthSession:
        row = AuthSession(token=token, user_id=user_id, expires_at=expires_at)
        self._s.add(row)
        await self._s.flush()
        return row

    async def resolve_session(self, token: str, now: datetime) -> User | None:
        stmt = (
            select(User)
            .join(AuthSession, AuthSession.user_id == User.id)
            .where(and_(
                AuthSession.token == token,
                or_(AuthSession.expires_at.is_(None), AuthSession.expires_at > now),
            ))
        )
        return await self._s.scalar(stmt)


# ── goals ─────────────────────────────────────────────────────────────────


class GoalRepo:
    def __init__(self, s: AsyncSession) -> None:
        self._s = s

    async def create(self, goal: Goal) -> Goal:
        self._s.add(goal)
        await self._s.flush()
        return goal

    async def get(self, user_id: str, ref: GoalRef) -> Goal | None:
        if ref.id is not None:
            cond = Goal.id == ref.id
        else:
            cond = Goal.public_id == ref.public_id
        return await self._s.scalar(select(Goal).where(and_(Goal.user_id == user_id, cond)))

    async def get_by_id(self, user_id: str, goal_id: int) -> Goal | None:
        return await self.get(user_id, GoalRef(id=goal_id))

    async def list_for_user(self, user_id: str, limit: int = 200) -> list[Goal]:
        stmt = (
            select(Goal)
            .where(Goal.user_id == user_id)
            .order_by(Goal.created_at.desc(), Goal.id.desc())
            .limit(limit)
        )
        return list(await self._s.scalars(stmt))

    async def flush(self) -> None:
        await self._s.flush()


# ── contexts ──────────────────────────────────────────────────────────────


class ContextRepo:
    def __init__(self, s: AsyncSession) -> None:
        self._s = s

    async def create(self, ctx: Context) -> Context:
        self._s.add(ctx)
        await self._s.flush()
        return ctx

    async def get(self, user_id: str, context_id: int) -> Context | None:
        return await self._s.scalar(
            select(Context).where(and_(Context.user_id == user_id, Context.id == context_id))
        )

    async def latest_for_goal(self, user_id: str, goal_id: int) -> Context | None:
        stmt = (
            select(Context)
            .where(and_(Context.user_id == user_id, Context.goal_id == goal_id))
            .order_by(Context.created_at.desc(), Context.id.desc())
            .limit(1)
        )
        return await self._s.scalar(stmt)

    async def flush(self) -> None:
        await self._s.flush()


# ── experiments ───────────────────────────────────────────────────────────


class ExperimentRepo:
    def __init__(self, s: AsyncSession) -> None:
        self._s = s

    async def create_many(self, rows: Iterable[Experiment]) -> list[Experiment]:
        rows = list(rows)
        self._s.add_all(rows)
        await self._s.flush()
        return rows

    async def get(self, user_id: str, experiment_id: int) -> Experiment | None:
        return await self._s.scalar(
            select(Experiment).where(and_(Experiment.user_id == user_id, Experiment.id == experiment_id))
        )

    async def list_for_user(
        self,
        user_id: str,
        statuses: Iterable[ExperimentStatus] | None = None,
        goal_id: int | None = None,
        limit: int = 500,
    ) -> list[Experiment]:
        stmt = select(Experiment).where(Experiment.user_id == user_id)
        if statuses is not None:
            stmt = stmt.where(Experiment.status.in_(list(statuses)))
        if goal_id is not None:
            stmt = stmt.where(Experiment.goal_id == goal_id)
        stmt = stmt.order_by(Experiment.created_at.desc(), Experiment.id.desc()).limit(limit)
        return list(await self._s.scalars(stmt))

    async def count_by_status(self, user_id: str, status: ExperimentStatus) -> int:
        stmt = select(func.count(Experiment.id)).where(
            and_(Experiment.user_id == user_id, Experiment.status == status)
        )
        return int(await self._s.scalar(stmt) or 0)

    async def flush(self) -> None:
        await self._s.flush()
