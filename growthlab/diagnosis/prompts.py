"""Prompts for the diagnosis step."""

from __future__ import annotations

_COMMON_HEAD = (
    "Analise o contexto enviado. Identifique variáveis, métricas e gargalos.\n"
)

_COMMON_TAIL = (
    "Atue como um mentor: valide se o caminho escolhido faz sentido estatístico "
    "ou prático e dê dicas objetivas."
)

FIRST_CYCLE_SYSTEM_PROMPT = (
    _COMMON_HEAD
    + 'Retorne um JSON estruturado que inclua sua análise E um campo obrigatório "strategic_overview" (string).\n'
    + "Lógica para strategic_overview (Ciclo 0): analise apenas as informações iniciais. "
    "Se o texto for curto ou vago, sugira caminhos concretos "
    '(ex: "Faltam dados sobre métricas atuais", "Detalhe o resultado esperado").\n'
    + _COMMON_TAIL
)

NEXT_CYCLE_SYSTEM_PROMPT = (
    _COMMON_HEAD
    + 'Você receberá o "summary" do ciclo anterior (contexto, hipótese testada e lições aprendidas). '
    "Compare o que foi aprendido com as novas intenções do contexto atual.\n"
    + 'Retorne um JSON estruturado que inclua sua análise E um campo obrigatório "strategic_overview" (string).\n'
    + "Lógica para strategic_overview (Ciclo > 0): leia o summary do banco e as novas informações. "
    "Compare o que foi aprendido no teste passado com o que estamos tentando agora.\n"
    + _COMMON_TAIL
)


def system_prompt_for_cycle(current_cycle: int) -> str:
    return FIRST_CYCLE_SYSTEM_PROMPT if current_cycle == 0 else NEXT_CYCLE_SYSTEM_PROMPT


def build_user_content(text: str, current_cycle: int, previous_summary: str | None) -> str:
    """User message for the model. The previous summary is only used after cycle 0."""
    if current_cycle == 0 or not previous_summary:
        return text
    return (
        f"[Summary do ciclo anterior]\n{previous_summary}\n\n"
        f"[Contexto atual para análise]\n{text}"
    )
