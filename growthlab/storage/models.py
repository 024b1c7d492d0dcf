"""SQLAlchemy ORM models – all tables for growthlab."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from enum import Enum as PyEnum

from sqlalchemy import (
    JSON,
    DateTime,
    Enum as SqlEnum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.ext.asyncio import AsyncAttrs
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


# ---------------------------------------------------------------------------
# helpers
# ---------------------------------------------------------------------------


def _uuid() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


def _enum_values(enum_cls: type[PyEnum]) -> list[str]:
    return [m.value for m in enum_cls]


# ---------------------------------------------------------------------------
# enums
# ---------------------------------------------------------------------------


class ExperimentStatus(str, PyEnum):
    BACKLOG = "backlog"
    RUNNING = "em_execucao"
    COMPLETED = "concluido"


class ExperimentResult(str, PyEnum):
    SUCCESS = "sucesso"
    FAILURE = "falha"


# ---------------------------------------------------------------------------
# base
# ---------------------------------------------------------------------------


class Base(AsyncAttrs, DeclarativeBase):
    pass


# ---------------------------------------------------------------------------
# identity
# ---------------------------------------------------------------------------


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    display_name: Mapped[str] = mapped_column(String(255), default="")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    sessions: Mapped[list[AuthSession]] = relationship(back_populates="user")


class AuthSession(Base):
    """Opaque session token issued by the identity provider (or the CLI)."""

    __tablename__ = "auth_sessions"

    token: Mapped[str] = mapped_column(String(128), primary_key=True)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id"), index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    user: Mapped[User] = relationship(back_populates="sessions")


# ---------------------------------------------------------------------------
# goals
# ---------------------------------------------------------------------------


class Goal(Base):
    __tablename__ = "goals"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    public_id: Mapped[str] = mapped_column(String(36), unique=True, index=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id"), index=True)
    title: Mapped[str] = mapped_column(String(255))
    description: Mapped[str] = mapped_column(Text, default="")
    target_metric: Mapped[str] = mapped_column(String(255), default="")
    target_value: Mapped[float | None] = mapped_column(Float, nullable=True)
    platform: Mapped[str | None] = mapped_column(String(64), nullable=True)
    # Only the cycle advancer moves this, one step at a time.
    current_cycle: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)


# ---------------------------------------------------------------------------
# contexts (free-text input + AI analysis + cross-cycle summary)
# ---------------------------------------------------------------------------


class Context(Base):
    __tablename__ = "contexts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id"), index=True)
    goal_id: Mapped[int | None] = mapped_column(ForeignKey("goals.id"), nullable=True, index=True)
    raw_input: Mapped[str | None] = mapped_column(Text, nullable=True)
    structured_analysis: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    current_goal: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        Index("ix_contexts_goal_created", "goal_id", "created_at"),
    )


# ---------------------------------------------------------------------------
# experiments
# ---------------------------------------------------------------------------


class Experiment(Base):
    __tablename__ = "experiments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id"), index=True)
    goal_id: Mapped[int | None] = mapped_column(ForeignKey("goals.id"), nullable=True, index=True)
    context_id: Mapped[int | None] = mapped_column(ForeignKey("contexts.id"), nullable=True, index=True)

    title: Mapped[str] = mapped_column(String(255), default="")
    hypothesis: Mapped[str] = mapped_column(Text, default="")
    variable: Mapped[str] = mapped_column(String(255), default="")
    current_value: Mapped[str | None] = mapped_column(String(255), nullable=True)
    expected_result: Mapped[str | None] = mapped_column(String(255), nullable=True)
    target_value: Mapped[str | None] = mapped_column(String(255), nullable=True)
    cutoff_line: Mapped[str | None] = mapped_column(String(255), nullable=True)
    ice_score: Mapped[float | None] = mapped_column(Float, nullable=True)

    status: Mapped[ExperimentStatus] = mapped_column(
        SqlEnum(ExperimentStatus, values_callable=_enum_values, native_enum=False, length=32),
        default=ExperimentStatus.BACKLOG,
        index=True,
    )
    # Written once, together with the transition to COMPLETED.
    final_value: Mapped[float | None] = mapped_column(Float, nullable=True)
    result: Mapped[ExperimentResult | None] = mapped_column(
        SqlEnum(ExperimentResult, values_callable=_enum_values, native_enum=False, length=16),
        nullable=True,
    )
    learnings: Mapped[str | None] = mapped_column(Text, nullable=True)
    recommendation: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        Index("ix_experiments_user_status", "user_id", "status"),
    )
