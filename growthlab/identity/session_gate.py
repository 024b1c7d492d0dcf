"""Route protection for page paths.

API routes enforce authentication through the ``CurrentUserDep``
dependency (401). Page paths are guarded here instead: unauthenticated
visitors are redirected to the login page and authenticated visitors of the
login page are sent home.
"""

from __future__ import annotations

from fastapi import Request
from fastapi.responses import RedirectResponse
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from growthlab.identity.service import CurrentUser, SessionService
from growthlab.settings import get_settings
from growthlab.storage.database import session_scope

PROTECTED_PATHS: tuple[str, ...] = (
    "/",
    "/diagnostico",
    "/gerar-experimentos",
    "/novo-objetivo",
    "/registrar-resultado",
)
LOGIN_PATH = "/login"
HOME_PATH = "/"


def is_protected_path(path: str) -> bool:
    """``/`` matches only itself; the other prefixes also cover sub-paths."""
    return any(path == p or (p != "/" and path.startswith(p + "/")) for p in PROTECTED_PATHS)


def extract_token(request: Request, cookie_name: str) -> str | None:
    """Session token from the session cookie or an ``Authorization: Bearer`` header."""
    auth = request.headers.get("authorization", "")
    scheme, _, value = auth.partition(" ")
    if scheme.lower() == "bearer" and value.strip():
        return value.strip()
    return request.cookies.get(cookie_name) or None


async def resolve_request_user(request: Request) -> CurrentUser | None:
    settings = get_settings()
    token = extract_token(request, settings.session_cookie_name)
    if token is None:
        return None
    async with session_scope() as session:
        return await SessionService(session).resolve(token)


class SessionGateMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path
        is_login = path == LOGIN_PATH
        if not (is_login or is_protected_path(path)):
            return await call_next(request)

        # Without a database there is nothing to check sessions against.
        if not get_settings().database_configured:
            return await call_next(request)

        user = await resolve_request_user(request)
        if is_login and user is not None:
            return RedirectResponse(url=HOME_PATH, status_code=307)
        if not is_login and user is None:
            logger.debug(f"Unauthenticated access to {path}, redirecting to {LOGIN_PATH}")
            return RedirectResponse(url=LOGIN_PATH, status_code=307)
        return await call_next(request)
