"""ExperimentService — listing, starting and editing experiments."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from growthlab.errors import NotFoundError, ValidationError
from growthlab.goals.refs import GoalRef
from growthlab.identity.service import CurrentUser
from growthlab.storage.models import Experiment, ExperimentStatus
from growthlab.storage.repository import ExperimentRepo, GoalRepo


def _blank_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


class ExperimentService:
    def __init__(self, session: AsyncSession) -> None:
        self._repo = ExperimentRepo(session)
        self._goals = GoalRepo(session)

    async def get(self, user: CurrentUser, experiment_id: int) -> Experiment:
        exp = await self._repo.get(user.user_id, experiment_id)
        if exp is None:
            raise NotFoundError("Experimento não encontrado")
        return exp

    async def list_experiments(
        self,
        user: CurrentUser,
        status: ExperimentStatus | None = None,
        goal_ref: GoalRef | None = None,
    ) -> list[Experiment]:
        """The caller's experiments, newest first. An unknown goal matches nothing."""
        goal_id: int | None = None
        if goal_ref is not None:
            goal = await self._goals.get(user.user_id, goal_ref)
            if goal is None:
                return []
            goal_id = goal.id
        statuses = [status] if status is not None else None
        return await self._repo.list_for_user(user.user_id, statuses=statuses, goal_id=goal_id)

    async def start(self, user: CurrentUser, experiment_id: int) -> Experiment:
        """backlog → em_execucao. Status never moves backwards."""
        exp = await self.get(user, experiment_id)
        if exp.status != ExperimentStatus.BACKLOG:
            raise ValidationError(
                f"Só experimentos do backlog podem ser iniciados (status atual: {exp.status.value})."
            )
        exp.status = ExperimentStatus.RUNNING
        await self._repo.flush()
        return exp

    async def update_card(
        self,
        user: CurrentUser,
        experiment_id: int,
        fields: dict[str, str | None],
    ) -> Experiment:
        """Edit hypothesis / variable / expected result / cutoff line of an open experiment.

        Only keys present in ``fields`` are touched; blank strings clear the value.
        The expected result is mirrored into ``target_value``.
        """
        exp = await self.get(user, experiment_id)
        if exp.status == ExperimentStatus.COMPLETED:
            raise ValidationError("Experimentos concluídos não podem ser editados.")

        if "hypothesis" in fields:
            exp.hypothesis = _blank_to_none(fields["hypothesis"]) or ""
        if "variable" in fields:
            exp.variable = _blank_to_none(fields["variable"]) or ""
        if "expected_result" in fields:
            target = _blank_to_none(fields["expected_result"])
            exp.expected_result = target
            exp.target_value = target
        if "cutoff_line" in fields:
            exp.cutoff_line = _blank_to_none(fields["cutoff_line"])
        await self._repo.flush()
        return exp
