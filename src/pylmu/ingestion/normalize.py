"""Normalization helpers.

Centralizes lenient parsing and placeholder handling for raw telemetry.
Every helper here accepts arbitrary JSON values and never raises.
"""

from __future__ import annotations

import math
from typing import Any


def safe_float(value: Any) -> float | None:
    """Coerce *value* to a finite float, or ``None``."""
    if value is None or value == "" or isinstance(value, (dict, list)):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(result):
        return None
    return result


def safe_int(value: Any) -> int | None:
    parsed = safe_float(value)
    if parsed is None:
        return None
    return int(parsed)


def safe_str(value: Any) -> str | None:
    if value is None or isinstance(value, (dict, list)):
        return None
    text = str(value)
    return text if text else None


def safe_bool(value: Any) -> bool:
    """Interpret JSON booleans, ``0``/``1`` and ``"true"``/``"false"``."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    parsed = safe_float(value)
    return bool(parsed)


def safe_list(value: Any) -> list[Any]:
    return list(value) if isinstance(value, (list, tuple)) else []


def positive_or_none(value: float | None) -> float | None:
    """Zero and negative times mean "not yet set" in the simulator's payloads."""
    if value is None or value <= 0:
        return None
    return value


def non_negative_or_zero(value: Any) -> int:
    parsed = safe_int(value)
    if parsed is None:
        return 0
    return 0 if parsed < 0 else parsed


def split_or_none(later: float | None, earlier: float | None) -> float | None:
    """Per-sector time from two cumulative split times.

    Returns ``None`` unless both splits are set and the difference is positive.
    """
    if later is None or earlier is None or later <= 0 or earlier <= 0:
        return None
    return positive_or_none(later - earlier)
