"""DiagnosisService — turn free-text context into a structured analysis.

One model call per request. The analysis is persisted on a Context row:
either an existing one (``context_id``, e.g. a retry) or a new one whose
``raw_input`` is the submitted text.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from loguru import logger
from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from growthlab.diagnosis.prompts import build_user_content, system_prompt_for_cycle
from growthlab.errors import NotFoundError, UpstreamError, ValidationError
from growthlab.goals.refs import GoalRef
from growthlab.identity.service import CurrentUser
from growthlab.providers.base import LLMProvider, require_provider
from growthlab.storage.models import Context, Goal
from growthlab.storage.repository import ContextRepo, GoalRepo


class DiagnosisAnalysis(BaseModel):
    """Minimum shape of the model's analysis; everything else is kept as-is."""

    model_config = ConfigDict(extra="allow")

    strategic_overview: str


@dataclass(frozen=True, slots=True)
class DiagnosisRequest:
    text: str | None
    context_id: int | None = None
    current_goal: str | None = None
    goal_ref: GoalRef | None = None


@dataclass(frozen=True, slots=True)
class DiagnosisOutcome:
    structured_analysis: str  # JSON text as returned by the model
    analysis: dict[str, Any]
    context: Context
    current_cycle: int


def parse_analysis(content: str) -> dict[str, Any]:
    """Decode the model reply; it must be a JSON object with a string ``strategic_overview``."""
    try:
        payload = json.loads(content)
    except json.JSONDecodeError as exc:
        raise UpstreamError(f"Resposta do modelo não é um JSON válido: {exc}") from exc
    try:
        DiagnosisAnalysis.model_validate(payload)
    except PydanticValidationError as exc:
        raise UpstreamError('Análise do modelo sem o campo "strategic_overview".') from exc
    return payload


class DiagnosisService:
    def __init__(self, session: AsyncSession, provider: LLMProvider | None) -> None:
        self._goals = GoalRepo(session)
        self._contexts = ContextRepo(session)
        self._provider = provider

    async def diagnose(self, user: CurrentUser, req: DiagnosisRequest) -> DiagnosisOutcome:
        text = req.text if isinstance(req.text, str) else ""
        if not text.strip():
            raise ValidationError("Texto é obrigatório")
        provider = require_provider(self._provider)

        goal: Goal | None = None
        current_cycle = 0
        previous_summary: str | None = None
        if req.goal_ref is not None:
            goal = await self._goals.get(user.user_id, req.goal_ref)
            if goal is None:
                raise NotFoundError(f"Meta não encontrada: {req.goal_ref}")
            current_cycle = int(goal.current_cycle or 0)
            latest = await self._contexts.latest_for_goal(user.user_id, goal.id)
            if latest is not None and latest.summary:
                previous_summary = latest.summary

        target: Context | None = None
        if req.context_id is not None:
            target = await self._contexts.get(user.user_id, req.context_id)
            if target is None:
                raise NotFoundError(f"Contexto não encontrado: {req.context_id}")

        messages = [
            {"role": "system", "content": system_prompt_for_cycle(current_cycle)},
            {"role": "user", "content": build_user_content(text, current_cycle, previous_summary)},
        ]
        response = await provider.chat(messages, json_mode=True)
        content = (response.content or "").strip()
        if not content:
            raise UpstreamError("Erro ao gerar análise do modelo")
        analysis = parse_analysis(content)

        if target is not None:
            target.structured_analysis = analysis
            if req.current_goal is not None:
                target.current_goal = req.current_goal
            if goal is not None:
                target.goal_id = goal.id
            await self._contexts.flush()
            ctx = target
        else:
            ctx = await self._contexts.create(Context(
                user_id=user.user_id,
                goal_id=goal.id if goal is not None else None,
                raw_input=text,
                structured_analysis=analysis,
                current_goal=req.current_goal,
            ))

        logger.info(
            f"Diagnosis stored on context {ctx.id} "
            f"(goal={goal.id if goal else None}, cycle={current_cycle}, "
            f"with_summary={previous_summary is not None and current_cycle > 0})"
        )
        return DiagnosisOutcome(
            structured_analysis=content,
            analysis=analysis,
            context=ctx,
            current_cycle=current_cycle,
        )
