"""
Lender eligibility matching against a business's credibility profile.

Six criteria are checked (score, tier, anomaly count, document volume,
business age, estimated monthly revenue); a business is eligible only
when all six match.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from backend_credibility.config import DEFAULT_CURRENCY
from backend_credibility.core.numeric import format_amount, round_half_up
from backend_credibility.credibility_logging import get_logger
from backend_credibility.documents.decoder import parse_timestamp
from backend_credibility.scoring.engine import CredibilityScore

logger = get_logger(__name__)

TOTAL_CRITERIA = 6
DAYS_PER_MONTH = 30
# Monthly revenue is estimated from the stability score until real figures are shared
REVENUE_PER_STABILITY_POINT = 10_000
DOCUMENTS_PER_REQUIRED_TYPE = 2


@dataclass(frozen=True)
class SMEProfile:
    business_name: str
    credibility_score: int
    trust_tier: int
    evidence_quality_score: int = 0
    stability_score: int = 0
    compliance_score: int = 0
    anomaly_count: int = 0
    total_documents: int = 0
    established_date: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "business_name": self.business_name,
            "credibility_score": self.credibility_score,
            "trust_tier": self.trust_tier,
            "evidence_quality_score": self.evidence_quality_score,
            "stability_score": self.stability_score,
            "compliance_score": self.compliance_score,
            "anomaly_count": self.anomaly_count,
            "total_documents": self.total_documents,
            "established_date": self.established_date.isoformat() if self.established_date else None,
        }


@dataclass(frozen=True)
class EligibilityCriteria:
    name: str
    min_credibility_score: float = 0
    min_trust_tier: int = 0
    required_document_types: tuple[str, ...] = ()
    min_monthly_revenue: float = 0
    min_business_age_months: int = 0
    max_anomaly_count: int = 0


@dataclass(frozen=True)
class EligibilityResult:
    criteria_name: str
    eligible: bool
    match_percentage: int
    missing_requirements: tuple[str, ...] = field(default=())

    def to_dict(self) -> dict[str, Any]:
        return {
            "criteriaName": self.criteria_name,
            "eligible": self.eligible,
            "matchPercentage": self.match_percentage,
            "missingRequirements": list(self.missing_requirements),
        }


def profile_from_score(
    score: CredibilityScore,
    business_name: str,
    established_date: Any = None,
) -> SMEProfile:
    """Flatten a CredibilityScore into the public marketplace profile."""
    return SMEProfile(
        business_name=business_name,
        credibility_score=score.total_score,
        trust_tier=int(score.trust_tier.tier),
        evidence_quality_score=score.evidence_quality.score,
        stability_score=score.stability_growth.score,
        compliance_score=score.compliance_readiness.score,
        anomaly_count=len(score.anomalies),
        total_documents=score.data_points,
        established_date=parse_timestamp(established_date),
    )


def business_age_months(established: datetime, now: datetime) -> int:
    """Whole 30-day months between establishment and now."""
    days = (now - established).total_seconds() / 86400
    return math.floor(days / DAYS_PER_MONTH)


def check_eligibility(
    profile: SMEProfile,
    criteria: EligibilityCriteria,
    now: datetime,
    currency: str = DEFAULT_CURRENCY,
) -> EligibilityResult:
    missing: list[str] = []
    matched = 0

    if profile.credibility_score >= criteria.min_credibility_score:
        matched += 1
    else:
        missing.append(f"Credibility score: {profile.credibility_score}/{format_amount(criteria.min_credibility_score)}")

    if profile.trust_tier >= criteria.min_trust_tier:
        matched += 1
    else:
        missing.append(f"Trust tier: {profile.trust_tier}/{criteria.min_trust_tier}")

    if profile.anomaly_count <= criteria.max_anomaly_count:
        matched += 1
    else:
        missing.append(f"Anomalies: {profile.anomaly_count} (max {criteria.max_anomaly_count})")

    if profile.total_documents >= len(criteria.required_document_types) * DOCUMENTS_PER_REQUIRED_TYPE:
        matched += 1
    else:
        missing.append(f"Required documents: {', '.join(criteria.required_document_types)}")

    if profile.established_date is not None:
        age = business_age_months(profile.established_date, now)
        if age >= criteria.min_business_age_months:
            matched += 1
        else:
            missing.append(f"Business age: {age}/{criteria.min_business_age_months} months")
    else:
        missing.append(f"Business age: Not specified ({criteria.min_business_age_months} months required)")

    estimated_revenue = profile.stability_score * REVENUE_PER_STABILITY_POINT
    if estimated_revenue >= criteria.min_monthly_revenue:
        matched += 1
    else:
        missing.append(
            f"Monthly revenue: {currency} {format_amount(estimated_revenue)}/{format_amount(criteria.min_monthly_revenue)}"
        )

    percentage = round_half_up(matched / TOTAL_CRITERIA * 100)
    return EligibilityResult(
        criteria_name=criteria.name,
        eligible=percentage == 100,
        match_percentage=percentage,
        missing_requirements=tuple(missing),
    )


def rank_matches(
    profile: SMEProfile,
    criteria_list: Sequence[EligibilityCriteria],
    now: datetime,
    currency: str = DEFAULT_CURRENCY,
) -> list[EligibilityResult]:
    """Evaluate every criteria set; eligible first, then by match percentage."""
    results = [check_eligibility(profile, c, now, currency) for c in criteria_list]
    results.sort(key=lambda r: (not r.eligible, -r.match_percentage))
    logger.debug(
        "eligibility_ranked",
        business_name=profile.business_name,
        criteria_count=len(results),
        eligible_count=sum(1 for r in results if r.eligible),
    )
    return results


def rank_profiles(
    profiles: Sequence[SMEProfile],
    criteria: EligibilityCriteria,
    now: datetime,
    currency: str = DEFAULT_CURRENCY,
) -> list[tuple[SMEProfile, EligibilityResult]]:
    """Lender view: businesses for one criteria set, eligible first, then match %, then score."""
    scored = [(p, check_eligibility(p, criteria, now, currency)) for p in profiles]
    scored.sort(key=lambda pr: (not pr[1].eligible, -pr[1].match_percentage, -pr[0].credibility_score))
    return scored
