"""Diagnosis API – free text → structured analysis stored on a context."""

from __future__ import annotations

from fastapi import APIRouter
from pydantic import BaseModel

from growthlab.api.deps import CurrentUserDep, LLMDep, SessionDep
from growthlab.api.schemas import ContextOut
from growthlab.diagnosis.service import DiagnosisRequest, DiagnosisService
from growthlab.goals.refs import GoalRefField

router = APIRouter()


class DiagnoseRequest(BaseModel):
    text: str | None = None
    contextId: int | None = None
    current_goal: str | None = None
    goal_id: GoalRefField = None


class DiagnoseResponse(BaseModel):
    success: bool = True
    structuredAnalysis: str
    context: ContextOut


@router.post("/diagnose", response_model=DiagnoseResponse)
async def diagnose(
    body: DiagnoseRequest,
    user: CurrentUserDep,
    session: SessionDep,
    llm: LLMDep,
) -> DiagnoseResponse:
    svc = DiagnosisService(session, llm)
    outcome = await svc.diagnose(user, DiagnosisRequest(
        text=body.text,
        context_id=body.contextId,
        current_goal=body.current_goal,
        goal_ref=body.goal_id,
    ))
    return DiagnoseResponse(
        structuredAnalysis=outcome.structured_analysis,
        context=ContextOut.model_validate(outcome.context),
    )
