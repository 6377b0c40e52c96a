"""
FastAPI router: credibility score, advisory context, projections and
marketplace eligibility.

Stateless: every request carries the full document/proof snapshot and is
scored from scratch. Malformed snapshots surface as InvalidSnapshotError,
which the app maps to HTTP 422. The currency label is read from the
environment once, when this module is imported.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel, Field

from backend_credibility.advisory import build_advisory_context
from backend_credibility.config import get_currency_label
from backend_credibility.credibility_logging import business_context, get_logger
from backend_credibility.documents import Document, decode_snapshot
from backend_credibility.marketplace import EligibilityCriteria, profile_from_score, rank_matches
from backend_credibility.projections import GrowthScenario, ProjectionConfig, calculate_projections
from backend_credibility.scoring import CredibilityScore, ScoringConfig, score_credibility

logger = get_logger(__name__)

CURRENCY = get_currency_label()
SCORING_CONFIG = ScoringConfig.for_currency(CURRENCY)

router = APIRouter(tags=["credibility"])


class SnapshotRequest(BaseModel):
    """Document/proof rows as stored; rows are validated by the decoder, not here."""

    documents: list[Any] = Field(default_factory=list, description="Document rows with extracted_data")
    proofs: list[Any] = Field(default_factory=list, description="Verification proof rows")
    now: datetime | None = Field(None, description="Reference time (ISO 8601); defaults to server UTC now")


class CriteriaModel(BaseModel):
    name: str = Field(..., min_length=1, max_length=256)
    min_credibility_score: float = Field(0, ge=0, le=100)
    min_trust_tier: int = Field(0, ge=0, le=3)
    required_document_types: list[str] = Field(default_factory=list)
    min_monthly_revenue: float = Field(0, ge=0)
    min_business_age_months: int = Field(0, ge=0)
    max_anomaly_count: int = Field(0, ge=0)

    def to_criteria(self) -> EligibilityCriteria:
        return EligibilityCriteria(
            name=self.name,
            min_credibility_score=self.min_credibility_score,
            min_trust_tier=self.min_trust_tier,
            required_document_types=tuple(self.required_document_types),
            min_monthly_revenue=self.min_monthly_revenue,
            min_business_age_months=self.min_business_age_months,
            max_anomaly_count=self.max_anomaly_count,
        )


class EligibilityRequest(SnapshotRequest):
    business_name: str = Field(..., min_length=1, max_length=256)
    established_date: str | None = Field(None, description="ISO date the business was established")
    criteria: list[CriteriaModel] = Field(default_factory=list)


class EligibilityResponse(BaseModel):
    profile: dict[str, Any]
    results: list[dict[str, Any]]


class ProjectionRequest(SnapshotRequest):
    business_name: str = Field("", max_length=256)
    projection_months: int = Field(12, ge=1, le=120)
    growth_scenario: GrowthScenario = GrowthScenario.MODERATE
    loan_amount: float | None = Field(None, ge=0, allow_inf_nan=False)
    interest_rate: float | None = Field(None, ge=0, le=100, allow_inf_nan=False, description="Annual rate, percent")
    loan_term_months: int | None = Field(None, ge=0, le=600)

    def to_config(self) -> ProjectionConfig:
        return ProjectionConfig(
            business_name=self.business_name,
            projection_months=self.projection_months,
            growth_scenario=self.growth_scenario,
            loan_amount=self.loan_amount,
            interest_rate=self.interest_rate,
            loan_term_months=self.loan_term_months,
        )


def _score(body: SnapshotRequest) -> tuple[CredibilityScore, list[Document]]:
    documents, proofs = decode_snapshot(body.documents, body.proofs)
    return score_credibility(documents, proofs, body.now, config=SCORING_CONFIG), documents


@router.post("/credibility/score")
def score(body: SnapshotRequest) -> dict[str, Any]:
    """Score a business snapshot; returns the camelCase CredibilityScore."""
    result, _ = _score(body)
    return result.to_dict()


@router.post("/credibility/advisory-context")
def advisory_context(body: SnapshotRequest) -> dict[str, Any]:
    """Flattened score fields for the chat advisor."""
    result, documents = _score(body)
    return build_advisory_context(result, result.metrics, documents)


@router.post("/credibility/projections")
def projections(body: ProjectionRequest) -> dict[str, Any]:
    """Forward revenue/expense projection from the snapshot's monthly metrics."""
    result, _ = _score(body)
    projection = calculate_projections(result.metrics, body.to_config(), result.last_calculated)
    return projection.to_dict()


@router.post("/marketplace/eligibility", response_model=EligibilityResponse)
def eligibility(body: EligibilityRequest) -> EligibilityResponse:
    """Score the snapshot, then rank the given lender criteria (eligible first)."""
    with business_context(body.business_name):
        result, _ = _score(body)
        profile = profile_from_score(result, body.business_name, body.established_date)
        ranked = rank_matches(
            profile,
            [c.to_criteria() for c in body.criteria],
            result.last_calculated,
            CURRENCY,
        )
        logger.info(
            "eligibility_checked",
            criteria_count=len(ranked),
            eligible_count=sum(1 for r in ranked if r.eligible),
        )
    return EligibilityResponse(profile=profile.to_dict(), results=[r.to_dict() for r in ranked])
