"""Core shared helpers: exceptions, guarded arithmetic and calendar math."""

from backend_credibility.core.dates import months_before, utc_now
from backend_credibility.core.exceptions import CredibilityError, InvalidSnapshotError
from backend_credibility.core.numeric import (
    bounded_score,
    clamp,
    finite,
    format_amount,
    round_half_up,
    safe_ratio,
    to_number,
    to_optional_number,
)

__all__ = [
    "CredibilityError",
    "InvalidSnapshotError",
    "bounded_score",
    "clamp",
    "finite",
    "format_amount",
    "months_before",
    "round_half_up",
    "safe_ratio",
    "to_number",
    "to_optional_number",
    "utc_now",
]
