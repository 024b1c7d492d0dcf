"""Parsing of the model's experiment proposals.

The documented contract is ``{"experiments": [5 × proposal]}``. Replies
that match it parse as ``strict``. Anything else goes through one of the
normalisation shapes below and is logged, so drift in the model output
shows up in the logs instead of being silently absorbed.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Literal

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

MAX_EXPERIMENTS = 5

BatchShape = Literal["strict", "experiments_key", "bare_array", "object_values", "unrecognised"]

_NUMBER_RE = re.compile(r"([+-]?\d+(?:[.,]\d+)?)\s*%?")


def format_number(value: float) -> str:
    """Plain decimal text for a number: integral values lose the ``.0``, others keep every digit."""
    if value.is_integer():
        return str(int(value))
    return repr(value)


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, int | float):
        return format_number(value) if isinstance(value, float) else str(value)
    return json.dumps(value, ensure_ascii=False)


class ExperimentProposal(BaseModel):
    """One proposal, lenient: missing fields become empty."""

    model_config = ConfigDict(extra="ignore")

    title: str = ""
    hypothesis: str = ""
    metric: str = ""
    target: str = ""
    cutoff_line: str = ""
    ice_score: float | None = None

    @field_validator("title", "hypothesis", "metric", "target", "cutoff_line", mode="before")
    @classmethod
    def _coerce_text(cls, v: Any) -> str:
        return _as_text(v)

    @field_validator("ice_score", mode="before")
    @classmethod
    def _coerce_score(cls, v: Any) -> float | None:
        if v is None or isinstance(v, bool):
            return None
        if isinstance(v, int | float):
            return float(v)
        if isinstance(v, str):
            try:
                return float(v.strip().replace(",", "."))
            except ValueError:
                return None
        return None


class ContractProposal(ExperimentProposal):
    """A proposal that carries every field of the contract."""

    title: str
    hypothesis: str
    metric: str
    target: str
    cutoff_line: str
    ice_score: float


class ExperimentBatch(BaseModel):
    experiments: list[ContractProposal] = Field(min_length=MAX_EXPERIMENTS, max_length=MAX_EXPERIMENTS)


@dataclass
class ParsedBatch:
    """Proposals plus the shape they were recovered from."""

    shape: BatchShape
    proposals: list[ExperimentProposal] = field(default_factory=list)
    dropped: int = 0

    @property
    def normalised(self) -> bool:
        return self.shape != "strict"


def parse_proposals(payload: Any) -> ParsedBatch:
    try:
        batch = ExperimentBatch.model_validate(payload)
    except PydanticValidationError:
        pass
    else:
        return ParsedBatch(
            shape="strict",
            proposals=[ExperimentProposal.model_validate(p.model_dump()) for p in batch.experiments],
        )

    shape: BatchShape
    if isinstance(payload, dict) and isinstance(payload.get("experiments"), list):
        shape, entries = "experiments_key", payload["experiments"]
    elif isinstance(payload, list):
        shape, entries = "bare_array", payload
    elif isinstance(payload, dict):
        shape, entries = "object_values", list(payload.values())
    else:
        shape, entries = "unrecognised", []

    proposals = [ExperimentProposal.model_validate(e) for e in entries if isinstance(e, dict)]
    parsed = ParsedBatch(shape=shape, proposals=proposals, dropped=len(entries) - len(proposals))
    logger.warning(
        f"Experiment proposals normalised via '{shape}': "
        f"{len(proposals)} usable, {parsed.dropped} dropped"
    )
    return parsed


def suggested_cutoff(expected: str | None) -> str | None:
    """Half of the numeric part of an expected result (``+20%`` → ``10%``)."""
    if not expected:
        return None
    s = expected.strip()
    m = _NUMBER_RE.search(s)
    if m is None:
        return None
    try:
        num = float(m.group(1).replace(",", "."))
    except ValueError:
        return None
    half = format_number(num * 0.5)
    return f"{half}%" if "%" in s else half
