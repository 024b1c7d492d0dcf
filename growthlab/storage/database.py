"""Async database engine & session factory."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from growthlab.errors import ConfigurationError, UpstreamError
from growthlab.settings import GrowthLabSettings, get_settings
from growthlab.storage.models import Base

# Module-level singleton (created on first call to get_engine / get_session_factory)
_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_engine(settings: GrowthLabSettings | None = None) -> AsyncEngine:
    global _engine
    if _engine is None:
        s = settings or get_settings()
        if not s.database_configured:
            raise ConfigurationError("Configuração do banco de dados ausente.")
        kwargs: dict = {"echo": s.debug, "pool_pre_ping": True}
        if not s.database_url.startswith("sqlite"):
            kwargs["pool_recycle"] = 1800
        _engine = create_async_engine(s.database_url, **kwargs)
    return _engine


def get_session_factory(settings: GrowthLabSettings | None = None) -> async_sessionmaker[AsyncSession]:
    global _session_factory
    if _session_factory is None:
        engine = get_engine(settings)
        _session_factory = async_sessionmaker(bind=engine, expire_on_commit=False)
    return _session_factory


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """One unit of work: commit when the block succeeds, roll back when it raises.

    Database failures, including a failed commit, surface as ``UpstreamError``.
    """
    factory = get_session_factory()
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except SQLAlchemyError as exc:
            await session.rollback()
            logger.error(f"Database unit of work failed: {exc}")
            raise UpstreamError(str(exc)) from exc
        except Exception:
            await session.rollback()
            raise


async def get_session() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency: one unit of work per request.

    Must be declared with ``scope="function"`` so the commit finishes before
    the response is sent.
    """
    async with session_scope() as session:
        yield session


async def create_all_tables() -> None:
    engine = get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine() -> None:
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _session_factory = None
