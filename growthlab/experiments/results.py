"""ResultRecorder — close a running experiment with its outcome."""

from __future__ import annotations

from typing import Any

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from growthlab.errors import NotFoundError, ValidationError
from growthlab.identity.service import CurrentUser
from growthlab.storage.models import Experiment, ExperimentResult, ExperimentStatus
from growthlab.storage.repository import ExperimentRepo
from growthlab.utils.numbers import parse_optional_number

_VERDICTS: dict[str, ExperimentResult] = {
    "sucesso": ExperimentResult.SUCCESS,
    "success": ExperimentResult.SUCCESS,
    "falha": ExperimentResult.FAILURE,
    "failure": ExperimentResult.FAILURE,
}


def parse_verdict(raw: Any) -> ExperimentResult:
    key = raw.strip().lower() if isinstance(raw, str) else ""
    verdict = _VERDICTS.get(key)
    if verdict is None:
        raise ValidationError("Selecione o Status Final: SUCESSO ou FALHA.")
    return verdict


def parse_final_value(raw: Any) -> float | None:
    try:
        return parse_optional_number(raw)
    except ValueError as exc:
        raise ValidationError("Informe um valor numérico para o Resultado Quantitativo.") from exc


class ResultRecorder:
    def __init__(self, session: AsyncSession) -> None:
        self._repo = ExperimentRepo(session)

    async def record(
        self,
        user: CurrentUser,
        experiment_id: int,
        final_value: Any,
        result: Any,
        learnings: str | None,
    ) -> Experiment:
        """Validate everything first; the experiment is only touched once all inputs are good."""
        value = parse_final_value(final_value)
        verdict = parse_verdict(result)
        lesson = (learnings or "").strip()
        if not lesson:
            raise ValidationError("O que aprendemos com este teste? Preencha o campo de aprendizado.")

        exp = await self._repo.get(user.user_id, experiment_id)
        if exp is None:
            raise NotFoundError("Experimento não encontrado")
        if exp.status != ExperimentStatus.RUNNING:
            raise ValidationError(
                f"Só é possível registrar resultado de experimentos em execução (status atual: {exp.status.value})."
            )

        exp.status = ExperimentStatus.COMPLETED
        exp.final_value = value
        exp.result = verdict
        exp.learnings = lesson
        await self._repo.flush()
        logger.info(f"Experiment {exp.id} completed: result={verdict.value}, final_value={value}")
        return exp
