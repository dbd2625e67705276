"""Tolerant coercion helpers for upstream values."""

import math
from typing import Any


def parse_finite_float(value: Any) -> float | None:
    """Parse number-like input into a finite float, or None when invalid."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        result = float(value)
    elif isinstance(value, str):
        raw = value.strip()
        if not raw:
            return None
        try:
            result = float(raw)
        except ValueError:
            return None
    else:
        return None
    return result if math.isfinite(result) else None


def safe_float(value: Any, default: float = 0.0) -> float:
    """Parse number-like input into a finite float.

    Booleans, empty strings, non-numeric text, NaN and infinities all map to
    default.

    Examples:
        >>> safe_float("12.5")
        12.5
        >>> safe_float("N/A")
        0.0
        >>> safe_float(float("nan"))
        0.0
    """
    result = parse_finite_float(value)
    return default if result is None else result


def safe_str(value: Any) -> str | None:
    """Return a stripped non-empty string, or None."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        value = str(value)
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


def short_id(user_id: str | None) -> str:
    """Truncate an opaque user id for log output."""
    if not user_id:
        return "<none>"
    return user_id[:8] + "..." if len(user_id) > 8 else user_id
