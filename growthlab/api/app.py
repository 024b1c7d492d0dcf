"""FastAPI application factory with lifespan for growthlab."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from growthlab import __version__
from growthlab.errors import GrowthLabError
from growthlab.identity.session_gate import SessionGateMiddleware
from growthlab.settings import get_settings
from growthlab.storage.database import create_all_tables, dispose_engine


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup: ensure DB schema. Shutdown: dispose engine."""
    settings = get_settings()
    if settings.database_configured:
        await create_all_tables()
    else:
        logger.warning("Database not configured; data routes will answer 500")
    yield
    await dispose_engine()


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(GrowthLabError)
    async def _app_error(request: Request, exc: GrowthLabError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return _error(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def _invalid_request(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        first = errors[0] if errors else {}
        where = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        detail = first.get("msg", "requisição inválida")
        return _error(400, f"Requisição inválida ({where}): {detail}" if where else f"Requisição inválida: {detail}")

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def _unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.opt(exception=exc).error(f"{request.method} {request.url.path} crashed: {exc}")
        return _error(500, str(exc) or "Erro interno")


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(
        title=settings.app_name,
        version=__version__,
        lifespan=lifespan,
    )
    _register_error_handlers(app)
    app.add_middleware(SessionGateMiddleware)

    # ── mount routers ──
    from growthlab.api.routes import dashboard, diagnose, experiments, goals, health, learn

    app.include_router(health.router, tags=["health"])
    app.include_router(goals.router, prefix="/goals", tags=["goals"])
    app.include_router(diagnose.router, tags=["diagnosis"])
    app.include_router(experiments.router, tags=["experiments"])
    app.include_router(learn.router, tags=["learning"])
    app.include_router(dashboard.router, tags=["dashboard"])

    return app
