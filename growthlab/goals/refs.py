"""Goal identifiers accepted at the HTTP boundary.

A goal is addressable either by its integer ``id`` or by its UUID
``public_id``. Callers may send a bare JSON integer, a digit string, a UUID
string, or an explicitly tagged object (``{"id": 42}`` /
``{"public_id": "..."}``). The kind is decided by parsing, never by string
length.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Annotated, Any

from pydantic import BeforeValidator


@dataclass(frozen=True, slots=True)
class GoalRef:
    id: int | None = None
    public_id: str | None = None

    def __post_init__(self) -> None:
        if (self.id is None) == (self.public_id is None):
            raise ValueError("GoalRef needs exactly one of id / public_id")

    def __str__(self) -> str:
        return str(self.id) if self.id is not None else str(self.public_id)

    @classmethod
    def parse(cls, raw: Any) -> GoalRef | None:
        """Parse a wire value. Empty values give None; malformed ones raise ValueError."""
        if raw is None or isinstance(raw, GoalRef):
            return raw
        if isinstance(raw, bool):
            raise ValueError("goal_id must be an integer or a UUID")
        if isinstance(raw, int):
            return cls._from_int(raw)
        if isinstance(raw, dict):
            return cls._from_tagged(raw)
        if isinstance(raw, str):
            s = raw.strip()
            if not s:
                return None
            if s.isascii() and s.isdigit():
                return cls._from_int(int(s))
            return cls._from_uuid(s)
        raise ValueError("goal_id must be an integer or a UUID")

    @classmethod
    def _from_int(cls, value: int) -> GoalRef:
        if value <= 0:
            raise ValueError("goal_id must be a positive integer")
        return cls(id=value)

    @classmethod
    def _from_uuid(cls, value: str) -> GoalRef:
        try:
            return cls(public_id=str(uuid.UUID(value)))
        except ValueError as exc:
            raise ValueError(f"goal_id is neither an integer nor a UUID: {value!r}") from exc

    @classmethod
    def _from_tagged(cls, raw: dict) -> GoalRef:
        if set(raw) == {"id"}:
            value = raw["id"]
            if isinstance(value, bool) or not isinstance(value, int | str):
                raise ValueError("goal_id.id must be an integer")
            return cls._from_int(int(value))
        if set(raw) == {"public_id"}:
            return cls._from_uuid(str(raw["public_id"]))
        raise ValueError("tagged goal_id must carry exactly one of 'id' or 'public_id'")


GoalRefField = Annotated[GoalRef | None, BeforeValidator(GoalRef.parse)]
