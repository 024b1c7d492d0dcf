"""Liveness probe."""

from __future__ import annotations

from fastapi import APIRouter

from growthlab.settings import get_settings

router = APIRouter()


@router.get("/health")
async def health() -> dict[str, object]:
    s = get_settings()
    return {
        "status": "ok",
        "database_configured": s.database_configured,
        "llm_configured": s.llm_configured,
    }
