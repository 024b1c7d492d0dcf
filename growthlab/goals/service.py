"""GoalService — create and look up growth goals."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from growthlab.errors import NotFoundError, ValidationError
from growthlab.goals.refs import GoalRef
from growthlab.identity.service import CurrentUser
from growthlab.storage.models import Goal
from growthlab.storage.repository import GoalRepo
from growthlab.utils.numbers import parse_optional_number


class GoalService:
    def __init__(self, session: AsyncSession) -> None:
        self._repo = GoalRepo(session)

    async def create(
        self,
        user: CurrentUser,
        title: str | None,
        description: str | None = None,
        target_metric: str | None = None,
        target_value: object = None,
        platform: str | None = None,
    ) -> Goal:
        title = (title or "").strip()
        if not title:
            raise ValidationError("Título da meta é obrigatório")
        try:
            value = parse_optional_number(target_value)
        except ValueError as exc:
            raise ValidationError("Informe um valor numérico para o valor alvo.") from exc

        goal = Goal(
            user_id=user.user_id,
            title=title,
            description=(description or "").strip(),
            target_metric=(target_metric or "").strip(),
            target_value=value,
            platform=(platform or "").strip() or None,
            current_cycle=0,
        )
        return await self._repo.create(goal)

    async def list_goals(self, user: CurrentUser) -> list[Goal]:
        return await self._repo.list_for_user(user.user_id)

    async def get(self, user: CurrentUser, ref: GoalRef) -> Goal:
        goal = await self._repo.get(user.user_id, ref)
        if goal is None:
            raise NotFoundError(f"Meta não encontrada: {ref}")
        return goal
