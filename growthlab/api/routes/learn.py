"""Learning API – next-priority recommendation for a completed experiment."""

from __future__ import annotations

from fastapi import APIRouter
from pydantic import BaseModel

from growthlab.api.deps import CurrentUserDep, LLMDep, SessionDep
from growthlab.api.schemas import ExperimentOut
from growthlab.learning.service import LearningService

router = APIRouter()


class LearnRequest(BaseModel):
    experimentId: int | None = None


class LearnResponse(BaseModel):
    success: bool = True
    recommendation: str
    experiment: ExperimentOut


@router.post("/learn", response_model=LearnResponse)
async def learn(body: LearnRequest, user: CurrentUserDep, session: SessionDep, llm: LLMDep) -> LearnResponse:
    recommendation, exp = await LearningService(session, llm).recommend(user, body.experimentId)
    return LearnResponse(recommendation=recommendation, experiment=ExperimentOut.model_validate(exp))
