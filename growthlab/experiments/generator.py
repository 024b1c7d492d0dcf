"""ExperimentGenerator — structured analysis → backlog of experiments."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from growthlab.errors import NotFoundError, UpstreamError, ValidationError
from growthlab.experiments.prompts import build_system_prompt, build_user_content
from growthlab.experiments.proposals import (
    MAX_EXPERIMENTS,
    ExperimentProposal,
    parse_proposals,
    suggested_cutoff,
)
from growthlab.goals.refs import GoalRef
from growthlab.identity.service import CurrentUser
from growthlab.providers.base import LLMProvider, require_provider
from growthlab.storage.models import Context, Experiment, ExperimentStatus, Goal
from growthlab.storage.repository import ContextRepo, ExperimentRepo, GoalRepo


@dataclass(frozen=True, slots=True)
class GenerationRequest:
    structured_analysis: Any
    target_metric: str | None = None
    context_id: int | None = None
    goal_ref: GoalRef | None = None


def decode_analysis(raw: Any) -> Any:
    """Accept the analysis as a JSON value or as JSON text (as /diagnose returns it)."""
    if isinstance(raw, str):
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            return raw
    return raw


def _proposal_to_row(
    p: ExperimentProposal,
    user_id: str,
    goal_id: int,
    context_id: int | None,
) -> Experiment:
    target = p.target or None
    return Experiment(
        user_id=user_id,
        goal_id=goal_id,
        context_id=context_id,
        title=p.title,
        hypothesis=p.hypothesis,
        variable=p.metric,
        expected_result=target,
        target_value=target,
        cutoff_line=p.cutoff_line or suggested_cutoff(target),
        ice_score=p.ice_score,
        status=ExperimentStatus.BACKLOG,
    )


class ExperimentGenerator:
    def __init__(self, session: AsyncSession, provider: LLMProvider | None) -> None:
        self._goals = GoalRepo(session)
        self._contexts = ContextRepo(session)
        self._experiments = ExperimentRepo(session)
        self._provider = provider

    async def _resolve_goal(
        self, user: CurrentUser, req: GenerationRequest,
    ) -> tuple[Goal, Context | None]:
        """Goal from the body first, then from the context's stored goal."""
        context: Context | None = None
        if req.context_id is not None:
            context = await self._contexts.get(user.user_id, req.context_id)
            if context is None:
                raise NotFoundError(f"Contexto não encontrado: {req.context_id}")

        ref = req.goal_ref
        if ref is None and context is not None and context.goal_id is not None:
            ref = GoalRef(id=context.goal_id)
        if ref is None:
            raise ValidationError(
                "É obrigatório informar uma meta (goal_id). "
                "Selecione uma Meta Global no Diagnóstico antes de gerar experimentos."
            )

        goal = await self._goals.get(user.user_id, ref)
        if goal is None:
            raise NotFoundError(f"Meta não encontrada: {ref}")
        return goal, context

    async def generate(self, user: CurrentUser, req: GenerationRequest) -> list[Experiment]:
        analysis = decode_analysis(req.structured_analysis)
        if analysis is None or (isinstance(analysis, str) and not analysis.strip()):
            raise ValidationError("Análise estruturada é obrigatória")

        goal, context = await self._resolve_goal(user, req)
        provider = require_provider(self._provider)

        system_prompt = build_system_prompt(
            goal_title=goal.title,
            metric=goal.target_metric or req.target_metric,
            platform=goal.platform,
        )
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": build_user_content(analysis)},
        ]
        response = await provider.chat(messages, json_mode=True)
        content = (response.content or "").strip()
        if not content:
            raise UpstreamError("Erro ao gerar experimentos do modelo")
        try:
            payload = json.loads(content)
        except json.JSONDecodeError as exc:
            raise UpstreamError(f"Resposta do modelo não é um JSON válido: {exc}") from exc

        parsed = parse_proposals(payload)
        proposals = parsed.proposals[:MAX_EXPERIMENTS]
        context_id = context.id if context is not None else None
        rows = [_proposal_to_row(p, user.user_id, goal.id, context_id) for p in proposals]
        saved = await self._experiments.create_many(rows)
        logger.info(
            f"Generated {len(saved)} backlog experiments for goal {goal.id} "
            f"(context={context_id}, shape={parsed.shape})"
        )
        return saved
