"""Wire schemas. Field names match the storage columns."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict

from growthlab.storage.models import ExperimentResult, ExperimentStatus


class _Row(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class GoalOut(_Row):
    id: int
    public_id: str
    user_id: str
    title: str
    description: str
    target_metric: str
    target_value: float | None
    platform: str | None
    current_cycle: int
    created_at: datetime


class ContextOut(_Row):
    id: int
    user_id: str
    goal_id: int | None
    raw_input: str | None
    structured_analysis: Any | None
    summary: str | None
    current_goal: str | None
    created_at: datetime


class ExperimentOut(_Row):
    id: int
    user_id: str
    goal_id: int | None
    context_id: int | None
    title: str
    hypothesis: str
    variable: str
    current_value: str | None
    expected_result: str | None
    target_value: str | None
    cutoff_line: str | None
    ice_score: float | None
    status: ExperimentStatus
    final_value: float | None
    result: ExperimentResult | None
    learnings: str | None
    recommendation: str | None
    created_at: datetime
