"""
Credibility engine: combines every layer into one CredibilityScore.

score_credibility is a pure function of (documents, proofs, now): no I/O
(environment included; the currency label arrives through ScoringConfig),
no caching and no module-level mutable state. ``now`` is captured once per
call and threaded through every time-dependent check, so two calls with
the same inputs produce equal results.

    totalScore = clamp(round(((stability + compliance) / 2) * (evidence / 100)
                             - sum(anomaly.confidenceReduction)), 0, 100)
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from backend_credibility.core.dates import utc_now
from backend_credibility.core.numeric import bounded_score, finite
from backend_credibility.credibility_logging import get_logger
from backend_credibility.documents.decoder import decode_snapshot
from backend_credibility.documents.models import Document, VerificationProof
from backend_credibility.scoring.aggregator import FinancialMetrics, aggregate_financials
from backend_credibility.scoring.anomaly import (
    AnomalyAlert,
    AnomalyConfig,
    detect_anomalies,
    total_confidence_reduction,
)
from backend_credibility.scoring.compliance import (
    ComplianceConfig,
    ComplianceReadinessScore,
    score_compliance_readiness,
)
from backend_credibility.scoring.evidence import EvidenceConfig, EvidenceQualityScore, score_evidence_quality
from backend_credibility.scoring.improvement import ImprovementAction, generate_improvement_actions
from backend_credibility.scoring.reconciliation import ReconciliationConfig, ReconciliationResult, reconcile_sources
from backend_credibility.scoring.stability import StabilityConfig, StabilityGrowthScore, score_stability_growth
from backend_credibility.scoring.trust_tier import TierConfig, TrustTierInfo, evaluate_trust_tier

logger = get_logger(__name__)

HIGH_CONFIDENCE_MIN = 70
MEDIUM_CONFIDENCE_MIN = 40
EVIDENCE_ISSUE_PENALTY = 10
RECONCILIATION_GAP_WEIGHT = 0.2


class ConfidenceLevel(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class ScoringConfig:
    """Per-layer thresholds; every default is the product policy value."""

    evidence: EvidenceConfig = field(default_factory=EvidenceConfig)
    stability: StabilityConfig = field(default_factory=StabilityConfig)
    compliance: ComplianceConfig = field(default_factory=ComplianceConfig)
    anomaly: AnomalyConfig = field(default_factory=AnomalyConfig)
    reconciliation: ReconciliationConfig = field(default_factory=ReconciliationConfig)
    tier: TierConfig = field(default_factory=TierConfig)

    @classmethod
    def for_currency(cls, currency: str) -> ScoringConfig:
        """Policy defaults with every user-facing amount labelled in ``currency``."""
        return cls(
            anomaly=AnomalyConfig(currency=currency),
            reconciliation=ReconciliationConfig(currency=currency),
        )


@dataclass(frozen=True)
class CredibilityScore:
    """
    Engine output: a fresh snapshot with no persisted identity.

    metrics is the FinancialMetrics the layers were computed from; it is
    kept for downstream consumers (advisory context) and is not part of
    the serialized score.
    """

    total_score: int
    confidence_level: ConfidenceLevel
    trust_tier: TrustTierInfo
    evidence_quality: EvidenceQualityScore
    stability_growth: StabilityGrowthScore
    compliance_readiness: ComplianceReadinessScore
    anomalies: tuple[AnomalyAlert, ...]
    cross_source_reconciliation: ReconciliationResult
    improvement_actions: tuple[ImprovementAction, ...]
    last_calculated: datetime
    data_points: int
    metrics: FinancialMetrics = field(default_factory=FinancialMetrics, compare=False, repr=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalScore": self.total_score,
            "confidenceLevel": self.confidence_level.value,
            "trustTier": self.trust_tier.to_dict(),
            "evidenceQuality": self.evidence_quality.to_dict(),
            "stabilityGrowth": self.stability_growth.to_dict(),
            "complianceReadiness": self.compliance_readiness.to_dict(),
            "anomalies": [a.to_dict() for a in self.anomalies],
            "crossSourceReconciliation": self.cross_source_reconciliation.to_dict(),
            "improvementActions": [a.to_dict() for a in self.improvement_actions],
            "lastCalculated": self.last_calculated.isoformat(),
            "dataPoints": self.data_points,
        }


def combine_layers(
    evidence_score: float,
    stability_score: float,
    compliance_score: float,
    anomaly_penalty: float,
) -> int:
    """Evidence caps the layer average multiplicatively; anomalies subtract after the cap."""
    layer_average = (stability_score + compliance_score) / 2
    raw = layer_average * (evidence_score / 100) - anomaly_penalty
    return bounded_score(finite(raw))


def confidence_level(
    alerts: Sequence[AnomalyAlert],
    evidence: EvidenceQualityScore,
    reconciliation: ReconciliationResult,
) -> ConfidenceLevel:
    confidence = (
        100
        - total_confidence_reduction(alerts)
        - evidence.issue_count * EVIDENCE_ISSUE_PENALTY
        - (100 - reconciliation.reconciliation_score) * RECONCILIATION_GAP_WEIGHT
    )
    if confidence >= HIGH_CONFIDENCE_MIN:
        return ConfidenceLevel.HIGH
    if confidence >= MEDIUM_CONFIDENCE_MIN:
        return ConfidenceLevel.MEDIUM
    return ConfidenceLevel.LOW


def _as_utc(now: datetime | None) -> datetime:
    if now is None:
        return utc_now()
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now.astimezone(timezone.utc)


def score_credibility(
    documents: Sequence[Document],
    proofs: Sequence[VerificationProof] = (),
    now: datetime | None = None,
    *,
    config: ScoringConfig | None = None,
) -> CredibilityScore:
    """
    Compute the full credibility score for one business snapshot.

    Never raises on data problems: empty or malformed input degrades to
    low scores with explanatory flags.

    Args:
        documents: Decoded documents (see documents.decode_snapshot).
        proofs: Verification proofs; only status, expiry and tx_hash are read.
        now: Reference time; defaults to the current UTC time, captured once.
        config: Per-layer thresholds; defaults to product policy.
    """
    cfg = config or ScoringConfig()
    moment = _as_utc(now)

    metrics = aggregate_financials(documents)
    evidence = score_evidence_quality(documents, metrics, cfg.evidence)
    stability = score_stability_growth(metrics, cfg.stability)
    compliance = score_compliance_readiness(documents, metrics, moment, cfg.compliance)
    alerts = detect_anomalies(documents, metrics, moment, cfg.anomaly)
    reconciliation = reconcile_sources(documents, cfg.reconciliation)
    tier = evaluate_trust_tier(
        documents,
        proofs,
        evidence.score,
        alerts,
        reconciliation.reconciliation_score,
        moment,
        cfg.tier,
    )

    total = combine_layers(evidence.score, stability.score, compliance.score, total_confidence_reduction(alerts))
    confidence = confidence_level(alerts, evidence, reconciliation)
    actions = generate_improvement_actions(evidence, stability, compliance, tier)

    result = CredibilityScore(
        total_score=total,
        confidence_level=confidence,
        trust_tier=tier,
        evidence_quality=evidence,
        stability_growth=stability,
        compliance_readiness=compliance,
        anomalies=tuple(alerts),
        cross_source_reconciliation=reconciliation,
        improvement_actions=tuple(actions),
        last_calculated=moment,
        data_points=len(documents),
        metrics=metrics,
    )
    logger.info(
        "credibility_scored",
        total_score=total,
        confidence_level=confidence.value,
        trust_tier=int(tier.tier),
        evidence_score=evidence.score,
        stability_score=stability.score,
        compliance_score=compliance.score,
        anomaly_count=len(alerts),
        document_count=len(documents),
    )
    return result


def score_snapshot(
    documents: Any,
    proofs: Any = None,
    now: datetime | None = None,
    *,
    config: ScoringConfig | None = None,
) -> CredibilityScore:
    """
    Decode raw document/proof rows and score them.

    Raises InvalidSnapshotError if the rows are not lists of mappings.
    """
    docs, decoded_proofs = decode_snapshot(documents, proofs)
    return score_credibility(docs, decoded_proofs, now, config=config)
