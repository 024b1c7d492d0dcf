"""DashboardService — read model for the home page."""

from __future__ import annotations

from dataclasses import dataclass, field

from sqlalchemy.ext.asyncio import AsyncSession

from growthlab.identity.service import CurrentUser
from growthlab.storage.models import Experiment, ExperimentResult, ExperimentStatus, Goal
from growthlab.storage.repository import ExperimentRepo, GoalRepo
from growthlab.utils.numbers import lenient_number


@dataclass(frozen=True, slots=True)
class GoalProgress:
    goal_id: int | None
    achieved: int = 0
    total: int = 0
    average_target: float = 0.0
    pct: float = 0.0


@dataclass
class Dashboard:
    running: list[Experiment] = field(default_factory=list)
    backlog_count: int = 0
    running_count: int = 0
    goals: list[Goal] = field(default_factory=list)
    latest_goal: Goal | None = None
    progress: GoalProgress | None = None


def goal_progress(goal: Goal, experiments: list[Experiment]) -> GoalProgress:
    """Share of the goal's started experiments that succeeded, plus their average target."""
    linked = [e for e in experiments if e.goal_id == goal.id]
    if not linked:
        return GoalProgress(goal_id=goal.id)

    targets = [
        n for n in (lenient_number(e.target_value or e.expected_result) for e in linked)
        if n is not None and n > 0
    ]
    average = sum(targets) / len(targets) if targets else 0.0
    achieved = sum(1 for e in linked if e.result == ExperimentResult.SUCCESS)
    pct = min(100.0, max(0.0, achieved / len(linked) * 100))
    return GoalProgress(
        goal_id=goal.id,
        achieved=achieved,
        total=len(linked),
        average_target=round(average, 2),
        pct=pct,
    )


class DashboardService:
    def __init__(self, session: AsyncSession) -> None:
        self._experiments = ExperimentRepo(session)
        self._goals = GoalRepo(session)

    async def overview(self, user: CurrentUser) -> Dashboard:
        # One session serialises these reads; they are independent of each other.
        running = await self._experiments.list_for_user(user.user_id, statuses=[ExperimentStatus.RUNNING])
        backlog_count = await self._experiments.count_by_status(user.user_id, ExperimentStatus.BACKLOG)
        running_count = await self._experiments.count_by_status(user.user_id, ExperimentStatus.RUNNING)
        goals = await self._goals.list_for_user(user.user_id)
        started = await self._experiments.list_for_user(
            user.user_id, statuses=[ExperimentStatus.RUNNING, ExperimentStatus.COMPLETED],
        )

        latest = goals[0] if goals else None
        return Dashboard(
            running=running,
            backlog_count=backlog_count,
            running_count=running_count,
            goals=goals,
            latest_goal=latest,
            progress=goal_progress(latest, started) if latest is not None else None,
        )
