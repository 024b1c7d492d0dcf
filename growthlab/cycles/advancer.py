"""CycleAdvancer — close a cycle and seed the next diagnosis.

Composes a summary (original context, tested hypothesis, learnings), stores
it on the experiment's context (or on a new context of its goal), bumps the
goal's ``current_cycle`` and builds the prompt the next diagnosis starts
from.

There is no de-duplication: advancing twice from the same experiment
increments the cycle twice.
"""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import quote

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from growthlab.errors import NotFoundError, ValidationError
from growthlab.identity.service import CurrentUser
from growthlab.storage.models import Context, ExperimentStatus
from growthlab.storage.repository import ContextRepo, ExperimentRepo, GoalRepo

PLACEHOLDER = "—"
DIAGNOSIS_PATH = "/diagnostico"
DEFAULT_GOAL_TITLE = "Meta"


def compose_summary(original_context: str | None, hypothesis: str | None, learnings: str | None) -> str:
    return "\n\n".join([
        "[Contexto Original]",
        (original_context or "").strip() or PLACEHOLDER,
        "[Hipótese Testada]",
        (hypothesis or "").strip() or PLACEHOLDER,
        "[Lições Aprendidas]",
        (learnings or "").strip() or PLACEHOLDER,
    ])


def build_cycle_prompt(cycle: int, summary: str) -> str:
    return (
        f"Este é o ciclo {cycle}. No ciclo anterior aprendemos que {summary}. "
        "Com base nisso, como devemos ajustar a estratégia agora?"
    )


def diagnosis_redirect(prompt: str) -> str:
    return f"{DIAGNOSIS_PATH}?prompt={quote(prompt, safe='')}"


@dataclass(frozen=True, slots=True)
class CycleAdvance:
    cycle: int
    summary: str
    prompt: str
    redirect: str
    goal_id: int | None
    goal_title: str
    context_id: int | None


class CycleAdvancer:
    def __init__(self, session: AsyncSession) -> None:
        self._experiments = ExperimentRepo(session)
        self._contexts = ContextRepo(session)
        self._goals = GoalRepo(session)

    async def advance(
        self,
        user: CurrentUser,
        experiment_id: int,
        learnings: str | None = None,
    ) -> CycleAdvance:
        exp = await self._experiments.get(user.user_id, experiment_id)
        if exp is None:
            raise NotFoundError("Experimento não encontrado")
        if exp.status == ExperimentStatus.BACKLOG:
            raise ValidationError("Inicie e conclua o experimento antes de gerar um novo ciclo.")

        lesson = (learnings or "").strip() or (exp.learnings or "")

        context: Context | None = None
        if exp.context_id is not None:
            context = await self._contexts.get(user.user_id, exp.context_id)
        original = context.raw_input if context is not None else None
        summary = compose_summary(original, exp.hypothesis, lesson)

        context_id: int | None = None
        if context is not None:
            context.summary = summary
            await self._contexts.flush()
            context_id = context.id
        elif exp.goal_id is not None:
            created = await self._contexts.create(Context(
                user_id=user.user_id,
                goal_id=exp.goal_id,
                raw_input=None,
                summary=summary,
            ))
            context_id = created.id
        else:
            logger.info(f"Experiment {exp.id} has no context or goal; summary not stored")

        goal_title = DEFAULT_GOAL_TITLE
        current_cycle = 0
        goal = None
        if exp.goal_id is not None:
            goal = await self._goals.get_by_id(user.user_id, exp.goal_id)
        if goal is not None:
            goal_title = goal.title or DEFAULT_GOAL_TITLE
            current_cycle = int(goal.current_cycle or 0)
        new_cycle = current_cycle + 1
        if goal is not None:
            goal.current_cycle = new_cycle
            await self._goals.flush()

        prompt = build_cycle_prompt(new_cycle, summary)
        logger.info(f"Advanced goal {exp.goal_id} to cycle {new_cycle} from experiment {exp.id}")
        return CycleAdvance(
            cycle=new_cycle,
            summary=summary,
            prompt=prompt,
            redirect=diagnosis_redirect(prompt),
            goal_id=exp.goal_id,
            goal_title=goal_title,
            context_id=context_id,
        )
