"""
Guarded arithmetic for scoring.

Every value that reaches a clamp or a rounding step passes through these
helpers so that NaN, Infinity, None, booleans and numeric-looking strings
from heterogeneous extracted data never propagate into a score.
"""

from __future__ import annotations

import math
from typing import Any


def to_number(value: Any, default: float = 0.0) -> float:
    """
    Coerce an extracted field to a finite float.

    Accepts int/float and numeric strings (commas stripped). Booleans,
    None, containers, unparseable strings and non-finite values return default.
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return default
    elif isinstance(value, str):
        text = value.strip().replace(",", "")
        if not text:
            return default
        try:
            number = float(text)
        except ValueError:
            return default
    else:
        return default
    return number if math.isfinite(number) else default


def to_optional_number(value: Any) -> float | None:
    """Like to_number but returns None for missing or non-numeric values."""
    number = to_number(value, default=math.nan)
    return None if math.isnan(number) else number


def finite(value: float, default: float = 0.0) -> float:
    """Return value if it is a finite number, else default."""
    if isinstance(value, (int, float)) and math.isfinite(value):
        return float(value)
    return default


def safe_ratio(numerator: float, denominator: float, default: float = 0.0) -> float:
    """numerator / denominator, or default when the denominator is zero or the result is not finite."""
    if not denominator:
        return default
    return finite(numerator / denominator, default)


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    """Clamp to [low, high]; non-finite input collapses to low."""
    return max(low, min(high, finite(value, low)))


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (product rounding); non-finite -> 0."""
    return int(math.floor(finite(value) + 0.5))


def bounded_score(value: float, low: int = 0, high: int = 100) -> int:
    """Round half-up then clamp to an integer score."""
    return int(clamp(round_half_up(value), low, high))


def format_amount(value: float) -> str:
    """Thousands-separated amount with at most two decimals: 50000 -> '50,000', 1234.5 -> '1,234.5'."""
    text = f"{finite(value):,.2f}"
    return text.rstrip("0").rstrip(".")
