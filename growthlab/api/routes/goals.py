"""Goals API – create, list and fetch goals."""

from __future__ import annotations

from fastapi import APIRouter
from pydantic import BaseModel

from growthlab.api.deps import CurrentUserDep, SessionDep, parse_goal_ref
from growthlab.api.schemas import GoalOut
from growthlab.errors import ValidationError
from growthlab.goals.service import GoalService

router = APIRouter()


class CreateGoalRequest(BaseModel):
    title: str | None = None
    description: str | None = None
    target_metric: str | None = None
    target_value: float | str | None = None
    platform: str | None = None


class GoalResponse(BaseModel):
    success: bool = True
    goal: GoalOut


@router.post("", response_model=GoalResponse)
async def create_goal(body: CreateGoalRequest, user: CurrentUserDep, session: SessionDep) -> GoalResponse:
    goal = await GoalService(session).create(
        user,
        title=body.title,
        description=body.description,
        target_metric=body.target_metric,
        target_value=body.target_value,
        platform=body.platform,
    )
    return GoalResponse(goal=GoalOut.model_validate(goal))


@router.get("", response_model=list[GoalOut])
async def list_goals(user: CurrentUserDep, session: SessionDep) -> list[GoalOut]:
    goals = await GoalService(session).list_goals(user)
    return [GoalOut.model_validate(g) for g in goals]


@router.get("/{goal_ref}", response_model=GoalOut)
async def get_goal(goal_ref: str, user: CurrentUserDep, session: SessionDep) -> GoalOut:
    ref = parse_goal_ref(goal_ref)
    if ref is None:
        raise ValidationError("goal_id é obrigatório")
    goal = await GoalService(session).get(user, ref)
    return GoalOut.model_validate(goal)
