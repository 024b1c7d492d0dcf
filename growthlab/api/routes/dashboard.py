"""Dashboard API – running experiments, counters and goal progress."""

from __future__ import annotations

from fastapi import APIRouter
from pydantic import BaseModel

from growthlab.api.deps import CurrentUserDep, SessionDep
from growthlab.api.schemas import ExperimentOut, GoalOut
from growthlab.dashboard.service import DashboardService

router = APIRouter()


class ProgressOut(BaseModel):
    goal_id: int | None
    achieved: int
    total: int
    average_target: float
    pct: float


class DashboardOut(BaseModel):
    running: list[ExperimentOut]
    backlog_count: int
    running_count: int
    goals: list[GoalOut]
    latest_goal: GoalOut | None
    progress: ProgressOut | None


@router.get("/dashboard", response_model=DashboardOut)
async def dashboard(user: CurrentUserDep, session: SessionDep) -> DashboardOut:
    d = await DashboardService(session).overview(user)
    p = d.progress
    return DashboardOut(
        running=[ExperimentOut.model_validate(e) for e in d.running],
        backlog_count=d.backlog_count,
        running_count=d.running_count,
        goals=[GoalOut.model_validate(g) for g in d.goals],
        latest_goal=GoalOut.model_validate(d.latest_goal) if d.latest_goal is not None else None,
        progress=ProgressOut(
            goal_id=p.goal_id,
            achieved=p.achieved,
            total=p.total,
            average_target=p.average_target,
            pct=p.pct,
        ) if p is not None else None,
    )
