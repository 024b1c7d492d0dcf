"""Parsing of user-supplied numeric values."""

from __future__ import annotations

import math
import re
from typing import Any

# Plain decimals only: optional sign, digits, one "." or "," (pt-BR) separator.
_DECIMAL_RE = re.compile(r"[+-]?(?:\d+(?:[.,]\d*)?|[.,]\d+)")


def parse_optional_number(raw: Any) -> float | None:
    """Parse a form value into a float.

    ``None`` and blank strings mean "no value". Raises ValueError for
    anything that is not a finite plain decimal number; exponents,
    underscores and ``nan``/``inf`` spellings are rejected.
    """
    if raw is None:
        return None
    if isinstance(raw, bool):
        raise ValueError(f"not a number: {raw!r}")
    if isinstance(raw, int | float):
        value = float(raw)
    elif isinstance(raw, str):
        s = raw.strip()
        if not s:
            return None
        if _DECIMAL_RE.fullmatch(s) is None:
            raise ValueError(f"not a number: {raw!r}")
        value = float(s.replace(",", "."))
    else:
        raise ValueError(f"not a number: {raw!r}")
    if not math.isfinite(value):
        raise ValueError(f"not a finite number: {raw!r}")
    return value


def lenient_number(raw: Any) -> float | None:
    """Like ``parse_optional_number`` but returns None instead of raising."""
    try:
        return parse_optional_number(raw)
    except ValueError:
        return None
