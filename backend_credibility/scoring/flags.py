"""
Explanatory flags attached to layer scores.

Flags never change a layer score directly; they explain it and feed the
confidence level and improvement actions.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class FlagType(str, Enum):
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"
    POSITIVE = "positive"


# Flag types that count as issues for confidence and action generation
ISSUE_FLAG_TYPES = (FlagType.WARNING, FlagType.CRITICAL)


@dataclass(frozen=True)
class ScoreFlag:
    """Evidence / stability flag; impact is the informational score effect."""

    type: FlagType
    code: str
    message: str
    impact: float = 0

    @property
    def is_issue(self) -> bool:
        return self.type in ISSUE_FLAG_TYPES

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "code": self.code,
            "message": self.message,
            "impact": self.impact,
        }


@dataclass(frozen=True)
class ComplianceFlag:
    """Compliance flag; carries a recommendation instead of an impact."""

    type: FlagType
    code: str
    message: str
    recommendation: str

    @property
    def is_issue(self) -> bool:
        return self.type in ISSUE_FLAG_TYPES

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "code": self.code,
            "message": self.message,
            "recommendation": self.recommendation,
        }
