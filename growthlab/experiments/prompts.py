"""Prompts for experiment generation."""

from __future__ import annotations

import json
from typing import Any

from growthlab.experiments.proposals import MAX_EXPERIMENTS

PERSONA = (
    "Você é um estrategista de Growth brasileiro. Responda obrigatoriamente em português do Brasil. "
    "Todos os campos de título, hipótese e resultado esperado devem ser traduzidos e adaptados culturalmente."
)

OUTPUT_CONTRACT = (
    f"Com base no contexto estruturado e na métrica selecionada, gere exatamente {MAX_EXPERIMENTS} "
    "experimentos de growth. Responda obrigatoriamente com um objeto JSON contendo um array chamado "
    f'"experiments" com exatamente {MAX_EXPERIMENTS} objetos. Cada objeto deve conter os campos: '
    '"title" (título curto), "hypothesis" (hipótese testável), "metric" (métrica ou variável medida), '
    '"target" (resultado esperado, ex: "+20%"), "cutoff_line" (resultado mínimo aceitável abaixo do '
    'qual o experimento é considerado falha) e "ice_score" (número de 1 a 10, média de impacto, '
    "confiança e facilidade). Não inclua nenhum texto fora do JSON."
)


def build_system_prompt(
    goal_title: str = "",
    metric: str | None = None,
    platform: str | None = None,
) -> str:
    task = OUTPUT_CONTRACT
    if goal_title:
        task += f' A meta em foco é: "{goal_title}".'
    if metric:
        task += f" A métrica alvo é: {metric}. Use esta métrica para orientar as hipóteses e resultados esperados."
    if platform:
        task += f" Os experimentos devem ser executáveis na plataforma: {platform}."
    return f"{PERSONA}\n\n{task}"


def build_user_content(structured_analysis: Any) -> str:
    return f"Contexto estruturado:\n{json.dumps(structured_analysis, ensure_ascii=False, indent=2)}"
