"""Experiments API – generate, list, start, edit, record results, advance cycles."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel

from growthlab.api.deps import CurrentUserDep, LLMDep, SessionDep, parse_goal_ref
from growthlab.api.schemas import ExperimentOut
from growthlab.cycles.advancer import CycleAdvancer
from growthlab.experiments.generator import ExperimentGenerator, GenerationRequest
from growthlab.experiments.results import ResultRecorder
from growthlab.experiments.service import ExperimentService
from growthlab.goals.refs import GoalRefField
from growthlab.storage.models import ExperimentStatus

router = APIRouter()


# ── schemas ──────────────────────────────────────────────────────────────


class GenerateRequest(BaseModel):
    structuredAnalysis: Any = None
    targetMetric: str | None = None
    contextId: int | None = None
    goal_id: GoalRefField = None


class GenerateResponse(BaseModel):
    success: bool = True
    experiments: list[ExperimentOut]


class ExperimentResponse(BaseModel):
    success: bool = True
    experiment: ExperimentOut


class CardUpdateRequest(BaseModel):
    hypothesis: str | None = None
    variable: str | None = None
    expected_result: str | None = None
    cutoff_line: str | None = None


class ResultRequest(BaseModel):
    final_value: float | str | None = None
    result: str | None = None
    learnings: str | None = None


class NextCycleRequest(BaseModel):
    learnings: str | None = None


class NextCycleResponse(BaseModel):
    success: bool = True
    cycle: int
    summary: str
    prompt: str
    redirect: str
    goal_id: int | None
    goal_title: str
    context_id: int | None


# ── routes ───────────────────────────────────────────────────────────────


@router.post("/generate-experiments", response_model=GenerateResponse)
async def generate_experiments(
    body: GenerateRequest,
    user: CurrentUserDep,
    session: SessionDep,
    llm: LLMDep,
) -> GenerateResponse:
    gen = ExperimentGenerator(session, llm)
    saved = await gen.generate(user, GenerationRequest(
        structured_analysis=body.structuredAnalysis,
        target_metric=body.targetMetric,
        context_id=body.contextId,
        goal_ref=body.goal_id,
    ))
    return GenerateResponse(experiments=[ExperimentOut.model_validate(e) for e in saved])


@router.get("/experiments", response_model=list[ExperimentOut])
async def list_experiments(
    user: CurrentUserDep,
    session: SessionDep,
    status: ExperimentStatus | None = None,
    goal_id: str | None = None,
) -> list[ExperimentOut]:
    rows = await ExperimentService(session).list_experiments(
        user, status=status, goal_ref=parse_goal_ref(goal_id),
    )
    return [ExperimentOut.model_validate(e) for e in rows]


@router.get("/experiments/{experiment_id}", response_model=ExperimentOut)
async def get_experiment(experiment_id: int, user: CurrentUserDep, session: SessionDep) -> ExperimentOut:
    exp = await ExperimentService(session).get(user, experiment_id)
    return ExperimentOut.model_validate(exp)


@router.post("/experiments/{experiment_id}/start", response_model=ExperimentResponse)
async def start_experiment(experiment_id: int, user: CurrentUserDep, session: SessionDep) -> ExperimentResponse:
    exp = await ExperimentService(session).start(user, experiment_id)
    return ExperimentResponse(experiment=ExperimentOut.model_validate(exp))


@router.patch("/experiments/{experiment_id}", response_model=ExperimentResponse)
async def update_experiment(
    experiment_id: int,
    body: CardUpdateRequest,
    user: CurrentUserDep,
    session: SessionDep,
) -> ExperimentResponse:
    exp = await ExperimentService(session).update_card(
        user, experiment_id, body.model_dump(exclude_unset=True),
    )
    return ExperimentResponse(experiment=ExperimentOut.model_validate(exp))


@router.post("/experiments/{experiment_id}/result", response_model=ExperimentResponse)
async def record_result(
    experiment_id: int,
    body: ResultRequest,
    user: CurrentUserDep,
    session: SessionDep,
) -> ExperimentResponse:
    exp = await ResultRecorder(session).record(
        user,
        experiment_id,
        final_value=body.final_value,
        result=body.result,
        learnings=body.learnings,
    )
    return ExperimentResponse(experiment=ExperimentOut.model_validate(exp))


@router.post("/experiments/{experiment_id}/next-cycle", response_model=NextCycleResponse)
async def next_cycle(
    experiment_id: int,
    user: CurrentUserDep,
    session: SessionDep,
    body: NextCycleRequest | None = None,
) -> NextCycleResponse:
    adv = await CycleAdvancer(session).advance(
        user, experiment_id, learnings=body.learnings if body is not None else None,
    )
    return NextCycleResponse(
        cycle=adv.cycle,
        summary=adv.summary,
        prompt=adv.prompt,
        redirect=adv.redirect,
        goal_id=adv.goal_id,
        goal_title=adv.goal_title,
        context_id=adv.context_id,
    )
