"""Shared FastAPI dependencies."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from growthlab.errors import AuthenticationError, ValidationError
from growthlab.goals.refs import GoalRef
from growthlab.identity.service import CurrentUser, SessionService
from growthlab.identity.session_gate import extract_token
from growthlab.providers.base import LLMProvider
from growthlab.providers.litellm_provider import LiteLLMProvider
from growthlab.settings import get_settings
from growthlab.storage.database import get_session

SessionDep = Annotated[AsyncSession, Depends(get_session, scope="function")]


async def get_current_user(request: Request, session: SessionDep) -> CurrentUser:
    """Resolve the caller for this request; 401 when there is no valid session."""
    token = extract_token(request, get_settings().session_cookie_name)
    user = await SessionService(session).resolve(token)
    if user is None:
        raise AuthenticationError("Não autorizado. Faça login para continuar.")
    return user


def get_llm_provider() -> LLMProvider | None:
    """The configured model provider, or None when no API key is set.

    Services raise the configuration error themselves so that input
    validation still answers first.
    """
    s = get_settings()
    if not s.llm_configured:
        return None
    return LiteLLMProvider(
        api_key=s.llm_api_key,
        api_base=s.llm_api_base or None,
        default_model=s.llm_model,
    )


CurrentUserDep = Annotated[CurrentUser, Depends(get_current_user, scope="function")]


def parse_goal_ref(raw: str | None) -> GoalRef | None:
    """Goal reference from a path or query string; malformed values are a 400."""
    try:
        return GoalRef.parse(raw)
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc


LLMDep = Annotated[LLMProvider | None, Depends(get_llm_provider)]
