"""Credibility scoring engine: layer scorers, anomaly rules, trust tiers and the entry point."""

from backend_credibility.scoring.aggregator import (
    CategoryAmount,
    FinancialMetrics,
    MonthlyPoint,
    aggregate_financials,
)
from backend_credibility.scoring.anomaly import (
    AnomalyAlert,
    AnomalyCategory,
    AnomalyConfig,
    AnomalySeverity,
    AnomalyType,
    detect_anomalies,
)
from backend_credibility.scoring.compliance import (
    ComplianceConfig,
    ComplianceReadinessScore,
    score_compliance_readiness,
)
from backend_credibility.scoring.engine import (
    ConfidenceLevel,
    CredibilityScore,
    ScoringConfig,
    score_credibility,
    score_snapshot,
)
from backend_credibility.scoring.evidence import EvidenceConfig, EvidenceQualityScore, score_evidence_quality
from backend_credibility.scoring.flags import ComplianceFlag, FlagType, ScoreFlag
from backend_credibility.scoring.improvement import ImprovementAction, generate_improvement_actions
from backend_credibility.scoring.reconciliation import (
    ReconciliationConfig,
    ReconciliationResult,
    reconcile_sources,
)
from backend_credibility.scoring.stability import StabilityConfig, StabilityGrowthScore, score_stability_growth
from backend_credibility.scoring.trust_tier import (
    TierConfig,
    TierRequirement,
    TrustTier,
    TrustTierInfo,
    VerificationStrength,
    evaluate_trust_tier,
)

__all__ = [
    "AnomalyAlert",
    "AnomalyCategory",
    "AnomalyConfig",
    "AnomalySeverity",
    "AnomalyType",
    "CategoryAmount",
    "ComplianceConfig",
    "ComplianceFlag",
    "ComplianceReadinessScore",
    "ConfidenceLevel",
    "CredibilityScore",
    "EvidenceConfig",
    "EvidenceQualityScore",
    "FinancialMetrics",
    "FlagType",
    "ImprovementAction",
    "MonthlyPoint",
    "ReconciliationConfig",
    "ReconciliationResult",
    "ScoreFlag",
    "ScoringConfig",
    "StabilityConfig",
    "StabilityGrowthScore",
    "TierConfig",
    "TierRequirement",
    "TrustTier",
    "TrustTierInfo",
    "VerificationStrength",
    "aggregate_financials",
    "detect_anomalies",
    "evaluate_trust_tier",
    "generate_improvement_actions",
    "reconcile_sources",
    "score_compliance_readiness",
    "score_credibility",
    "score_evidence_quality",
    "score_snapshot",
    "score_stability_growth",
]
