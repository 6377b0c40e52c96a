"""Marketplace eligibility matching on top of the credibility score."""

from backend_credibility.marketplace.eligibility import (
    EligibilityCriteria,
    EligibilityResult,
    SMEProfile,
    business_age_months,
    check_eligibility,
    profile_from_score,
    rank_matches,
    rank_profiles,
)

__all__ = [
    "EligibilityCriteria",
    "EligibilityResult",
    "SMEProfile",
    "business_age_months",
    "check_eligibility",
    "profile_from_score",
    "rank_matches",
    "rank_profiles",
]
