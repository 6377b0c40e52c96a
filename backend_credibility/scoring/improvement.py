"""Improvement actions: ranked next steps derived from layer gaps and tier state."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from backend_credibility.scoring.compliance import ComplianceReadinessScore
from backend_credibility.scoring.evidence import EvidenceQualityScore
from backend_credibility.scoring.flags import FlagType
from backend_credibility.scoring.stability import StabilityGrowthScore
from backend_credibility.scoring.trust_tier import TrustTier, TrustTierInfo

LOW_BACKED_RATIO = 50
LOW_CONTINUITY = 60
LOW_CASHFLOW = 50


class ActionPriority(str, Enum):
    IMMEDIATE = "immediate"
    SHORT_TERM = "short_term"
    MEDIUM_TERM = "medium_term"


class ActionCategory(str, Enum):
    EVIDENCE = "evidence"
    STABILITY = "stability"
    COMPLIANCE = "compliance"
    VERIFICATION = "verification"


class ActionEffort(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


PRIORITY_ORDER = {
    ActionPriority.IMMEDIATE: 0,
    ActionPriority.SHORT_TERM: 1,
    ActionPriority.MEDIUM_TERM: 2,
}


@dataclass(frozen=True)
class ImprovementAction:
    priority: ActionPriority
    category: ActionCategory
    title: str
    description: str
    potential_gain: float
    effort: ActionEffort

    def to_dict(self) -> dict[str, Any]:
        return {
            "priority": self.priority.value,
            "category": self.category.value,
            "title": self.title,
            "description": self.description,
            "potentialGain": self.potential_gain,
            "effort": self.effort.value,
        }


def generate_improvement_actions(
    evidence: EvidenceQualityScore,
    stability: StabilityGrowthScore,
    compliance: ComplianceReadinessScore,
    trust_tier: TrustTierInfo,
) -> list[ImprovementAction]:
    """
    Collect actions from each layer, sorted by priority then potential gain.

    The sort is stable, so equal-ranked actions keep generation order.
    """
    actions: list[ImprovementAction] = []

    if evidence.document_backed_ratio < LOW_BACKED_RATIO:
        actions.append(
            ImprovementAction(
                ActionPriority.IMMEDIATE,
                ActionCategory.EVIDENCE,
                "Add Supporting Documents",
                "Upload invoices, receipts, or bank statements to back your entries",
                20,
                ActionEffort.LOW,
            )
        )
    if evidence.continuity_score < LOW_CONTINUITY:
        actions.append(
            ImprovementAction(
                ActionPriority.SHORT_TERM,
                ActionCategory.EVIDENCE,
                "Build Financial History",
                "Upload documents from the past 6 months for better continuity",
                15,
                ActionEffort.MEDIUM,
            )
        )
    if stability.cashflow_health < LOW_CASHFLOW:
        actions.append(
            ImprovementAction(
                ActionPriority.IMMEDIATE,
                ActionCategory.STABILITY,
                "Improve Cashflow Position",
                "Focus on collecting receivables and managing expenses",
                15,
                ActionEffort.HIGH,
            )
        )

    for flag in compliance.flags:
        if not flag.is_issue:
            continue
        actions.append(
            ImprovementAction(
                ActionPriority.IMMEDIATE if flag.type is FlagType.CRITICAL else ActionPriority.SHORT_TERM,
                ActionCategory.COMPLIANCE,
                flag.message,
                flag.recommendation,
                10,
                ActionEffort.MEDIUM,
            )
        )

    if trust_tier.next_tier_requirements and trust_tier.tier < TrustTier.VERIFIED:
        effort = ActionEffort.HIGH if trust_tier.tier is TrustTier.BANK_SUPPORTED else ActionEffort.MEDIUM
        for step in trust_tier.next_tier_requirements:
            actions.append(
                ImprovementAction(
                    ActionPriority.MEDIUM_TERM,
                    ActionCategory.VERIFICATION,
                    f"Advance to Tier {int(trust_tier.tier) + 1}",
                    step,
                    25,
                    effort,
                )
            )

    return sorted(actions, key=lambda a: (PRIORITY_ORDER[a.priority], -a.potential_gain))
