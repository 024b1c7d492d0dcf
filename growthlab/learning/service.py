"""LearningService — next-priority recommendation for a completed experiment."""

from __future__ import annotations

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from growthlab.errors import NotFoundError, UpstreamError, ValidationError
from growthlab.identity.service import CurrentUser
from growthlab.providers.base import LLMProvider, require_provider
from growthlab.storage.models import Experiment, ExperimentResult, ExperimentStatus
from growthlab.storage.repository import ExperimentRepo

ADVISOR_PERSONA = (
    "Você é um consultor estratégico especializado em análise de experimentos "
    "e priorização de ações para negócios."
)


def result_label(result: ExperimentResult | None) -> str:
    return "Sucesso" if result == ExperimentResult.SUCCESS else "Falha"


def _fmt(value: object) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def describe_experiment(exp: Experiment) -> str:
    lines: list[str] = []
    if exp.hypothesis:
        lines.append(f"Hipótese: {exp.hypothesis}")
    if exp.variable:
        lines.append(f"Variável: {exp.variable}")
    if exp.current_value is not None:
        lines.append(f"Valor Atual: {exp.current_value}")
    if exp.expected_result is not None:
        lines.append(f"Resultado Esperado: {exp.expected_result}")
    if exp.final_value is not None:
        lines.append(f"Valor Final Alcançado: {_fmt(exp.final_value)}")
    if exp.result is not None:
        lines.append(f"Resultado: {result_label(exp.result)}")
    if exp.learnings:
        lines.append(f"Aprendizados: {exp.learnings}")
    return "\n".join(lines)


def build_learning_prompt(exp: Experiment) -> str:
    question = (
        f"O experimento teve o resultado {result_label(exp.result)}. Com base nisso, qual deve ser "
        "a próxima grande prioridade para este negócio? Responda de forma clara e objetiva, "
        "focando em ações práticas."
    )
    return f"Detalhes do experimento:\n{describe_experiment(exp)}\n\n{question}"


class LearningService:
    def __init__(self, session: AsyncSession, provider: LLMProvider | None) -> None:
        self._repo = ExperimentRepo(session)
        self._provider = provider

    async def recommend(self, user: CurrentUser, experiment_id: int | None) -> tuple[str, Experiment]:
        if experiment_id is None:
            raise ValidationError("ID do experimento é obrigatório")
        provider = require_provider(self._provider)

        exp = await self._repo.get(user.user_id, experiment_id)
        if exp is None:
            raise NotFoundError("Experimento não encontrado")
        if exp.status != ExperimentStatus.COMPLETED:
            raise ValidationError("Experimento ainda não foi completado")

        messages = [
            {"role": "system", "content": ADVISOR_PERSONA},
            {"role": "user", "content": build_learning_prompt(exp)},
        ]
        response = await provider.chat(messages)
        recommendation = (response.content or "").strip()
        if not recommendation:
            raise UpstreamError("Erro ao gerar recomendação do modelo")

        exp.recommendation = recommendation
        await self._repo.flush()
        logger.info(f"Stored recommendation on experiment {exp.id} ({len(recommendation)} chars)")
        return recommendation, exp
