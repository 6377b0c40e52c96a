"""
Trust tier engine: Self-Declared -> Document-Backed -> Bank-Supported -> Verified.

Tier selection is a first-match cascade evaluated top-down (resolve_tier).
The requirement checklist for the matched tier and its progress are a
separate derivation (build_requirements / tier_progress) so that the
display view never influences which tier is selected. Tiers are not
sticky: a business can drop a tier when its documents change.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum, IntEnum
from typing import Any

from backend_credibility.core.numeric import round_half_up, safe_ratio
from backend_credibility.credibility_logging import get_logger
from backend_credibility.documents.models import Document, DocumentType, VerificationProof
from backend_credibility.scoring.anomaly import AnomalyAlert, AnomalySeverity, count_by_severity

logger = get_logger(__name__)


class TrustTier(IntEnum):
    SELF_DECLARED = 0
    DOCUMENT_BACKED = 1
    BANK_SUPPORTED = 2
    VERIFIED = 3


class VerificationStrength(str, Enum):
    WEAK = "weak"
    MODERATE = "moderate"
    STRONG = "strong"
    VERIFIED = "verified"


TIER_LABELS = {
    TrustTier.SELF_DECLARED: "Self-Declared",
    TrustTier.DOCUMENT_BACKED: "Document-Backed",
    TrustTier.BANK_SUPPORTED: "Bank-Supported",
    TrustTier.VERIFIED: "Verified",
}

TIER_DESCRIPTIONS = {
    TrustTier.SELF_DECLARED: "Manual entries only, lowest credibility weight",
    TrustTier.DOCUMENT_BACKED: "Evidence supported by invoices, receipts, and documents",
    TrustTier.BANK_SUPPORTED: "Evidence corroborated by bank statements",
    TrustTier.VERIFIED: "Human/lender attestation with blockchain verification",
}

TIER_ACHIEVEMENTS = {
    TrustTier.SELF_DECLARED: ("Account created", "Basic data entered"),
    TrustTier.DOCUMENT_BACKED: ("Invoices or receipts uploaded", "Basic consistency verified"),
    TrustTier.BANK_SUPPORTED: (
        "Bank statements uploaded",
        "Document consistency verified",
        "Cross-source reconciliation",
    ),
    TrustTier.VERIFIED: (
        "Document-backed evidence",
        "Bank statement corroboration",
        "Verifier attestation",
        "Blockchain anchoring",
    ),
}

NEXT_TIER_STEPS = {
    TrustTier.SELF_DECLARED: (
        "Upload supporting documents (invoices, receipts)",
        "Add at least 3 months of financial records",
    ),
    TrustTier.DOCUMENT_BACKED: (
        "Upload bank statements for corroboration",
        "Achieve 60%+ evidence quality score",
    ),
    TrustTier.BANK_SUPPORTED: (
        "Request verification from a lender or partner",
        "Complete blockchain attestation",
    ),
}


@dataclass(frozen=True)
class TierConfig:
    document_backed_min_evidence: float = 40
    bank_supported_min_evidence: float = 60
    bank_supported_min_reconciliation: float = 70

    target_invoices: int = 5
    target_months: int = 3

    critical_penalty: float = 30
    high_penalty: float = 15
    medium_penalty: float = 5

    strong_min_antifraud: float = 80
    moderate_min_antifraud: float = 60


@dataclass(frozen=True)
class TierRequirement:
    id: str
    label: str
    description: str
    completed: bool
    weight: float
    progress: float | None = None
    """Partial progress 0-100; None when the requirement is binary."""

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "label": self.label,
            "description": self.description,
            "completed": self.completed,
            "weight": self.weight,
        }
        if self.progress is not None:
            out["progress"] = self.progress
        return out


@dataclass(frozen=True)
class TrustTierInfo:
    tier: TrustTier
    label: str
    description: str
    requirements: tuple[str, ...]
    detailed_requirements: tuple[TierRequirement, ...]
    tier_progress: int
    antifraud_score: int
    verification_strength: VerificationStrength
    next_tier_requirements: tuple[str, ...] | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "tier": int(self.tier),
            "label": self.label,
            "description": self.description,
            "requirements": list(self.requirements),
            "detailedRequirements": [r.to_dict() for r in self.detailed_requirements],
            "tierProgress": self.tier_progress,
            "antifraudScore": self.antifraud_score,
            "verificationStrength": self.verification_strength.value,
        }
        if self.next_tier_requirements is not None:
            out["nextTierRequirements"] = list(self.next_tier_requirements)
        return out


@dataclass(frozen=True)
class TierSignals:
    """Everything the cascade and the checklists read, computed once."""

    processed_bank_statements: int
    processed_invoices: int
    processed_backed_documents: int
    """Processed documents that are not manual entries."""
    months_with_data: int
    active_proofs: int
    anchored_proofs: int
    critical_anomalies: int
    high_anomalies: int
    evidence_score: float
    reconciliation_score: float
    antifraud_score: int


def antifraud_score(alerts: Sequence[AnomalyAlert], config: TierConfig | None = None) -> int:
    """100 minus 30 per critical, 15 per high and 5 per medium alert, floored at 0."""
    cfg = config or TierConfig()
    counts = count_by_severity(alerts)
    raw = (
        100
        - counts[AnomalySeverity.CRITICAL] * cfg.critical_penalty
        - counts[AnomalySeverity.HIGH] * cfg.high_penalty
        - counts[AnomalySeverity.MEDIUM] * cfg.medium_penalty
    )
    return int(max(0, raw))


def collect_signals(
    documents: Sequence[Document],
    proofs: Sequence[VerificationProof],
    evidence_score: float,
    alerts: Sequence[AnomalyAlert],
    reconciliation_score: float,
    now: datetime,
    config: TierConfig | None = None,
) -> TierSignals:
    processed = [d for d in documents if d.is_processed]
    counts = count_by_severity(alerts)
    return TierSignals(
        processed_bank_statements=sum(1 for d in processed if d.document_type is DocumentType.BANK_STATEMENT),
        processed_invoices=sum(1 for d in processed if d.document_type is DocumentType.INVOICE),
        processed_backed_documents=sum(1 for d in processed if not d.is_manual),
        months_with_data=len({d.created_month for d in documents if d.created_month}),
        active_proofs=sum(1 for p in proofs if p.is_active(now)),
        anchored_proofs=sum(1 for p in proofs if p.is_anchored(now)),
        critical_anomalies=counts[AnomalySeverity.CRITICAL],
        high_anomalies=counts[AnomalySeverity.HIGH],
        evidence_score=evidence_score,
        reconciliation_score=reconciliation_score,
        antifraud_score=antifraud_score(alerts, config),
    )


def resolve_tier(signals: TierSignals, config: TierConfig | None = None) -> TrustTier:
    """First satisfied tier, evaluated from Verified down to Self-Declared."""
    cfg = config or TierConfig()
    if signals.anchored_proofs >= 1:
        return TrustTier.VERIFIED
    if (
        signals.processed_bank_statements >= 1
        and signals.evidence_score >= cfg.bank_supported_min_evidence
        and signals.reconciliation_score >= cfg.bank_supported_min_reconciliation
    ):
        return TrustTier.BANK_SUPPORTED
    if signals.processed_backed_documents >= 1 and signals.evidence_score >= cfg.document_backed_min_evidence:
        return TrustTier.DOCUMENT_BACKED
    return TrustTier.SELF_DECLARED


def _self_declared_checklist(s: TierSignals, cfg: TierConfig) -> list[TierRequirement]:
    ev_target = cfg.document_backed_min_evidence
    return [
        TierRequirement(
            "account_created",
            "Account Created",
            "Register and create your business profile",
            completed=True,
            weight=10,
        ),
        TierRequirement(
            "first_document",
            "Upload First Document",
            "Add at least one invoice, receipt, or bank statement",
            completed=s.processed_backed_documents >= 1,
            weight=30,
            progress=min(100.0, s.processed_backed_documents * 100.0),
        ),
        TierRequirement(
            "three_months_data",
            "3 Months of Records",
            "Provide at least 3 months of financial history",
            completed=s.months_with_data >= cfg.target_months,
            weight=30,
            progress=min(100.0, s.months_with_data / cfg.target_months * 100),
        ),
        TierRequirement(
            "evidence_score_40",
            "Evidence Quality 40%+",
            "Achieve minimum evidence quality score",
            completed=s.evidence_score >= ev_target,
            weight=30,
            progress=min(100.0, s.evidence_score / ev_target * 100),
        ),
    ]


def _document_backed_checklist(s: TierSignals, cfg: TierConfig) -> list[TierRequirement]:
    ev_target = cfg.bank_supported_min_evidence
    has_bank = s.processed_bank_statements >= 1
    return [
        TierRequirement(
            "invoices_uploaded",
            "Sales Invoices",
            "Upload at least 5 sales invoices",
            completed=s.processed_invoices >= cfg.target_invoices,
            weight=25,
            progress=min(100.0, s.processed_invoices / cfg.target_invoices * 100),
        ),
        TierRequirement(
            "bank_statement",
            "Bank Statement",
            "Upload at least one bank statement for corroboration",
            completed=has_bank,
            weight=35,
            progress=100.0 if has_bank else 0.0,
        ),
        TierRequirement(
            "reconciliation_pass",
            "Reconciliation Check",
            "Cross-source data must match with 70%+ accuracy",
            completed=s.reconciliation_score >= cfg.bank_supported_min_reconciliation,
            weight=25,
            progress=float(s.reconciliation_score),
        ),
        TierRequirement(
            "evidence_score_60",
            "Evidence Quality 60%+",
            "Achieve higher evidence quality score",
            completed=s.evidence_score >= ev_target,
            weight=15,
            progress=min(100.0, s.evidence_score / ev_target * 100),
        ),
    ]


def _bank_supported_checklist(s: TierSignals, cfg: TierConfig) -> list[TierRequirement]:
    has_proof = s.active_proofs >= 1
    anchored = s.anchored_proofs >= 1
    return [
        TierRequirement(
            "clean_antifraud",
            "Clean Anti-Fraud Check",
            "Pass all anti-fraud checks with no critical issues",
            completed=s.critical_anomalies == 0 and s.high_anomalies == 0,
            weight=30,
            progress=float(s.antifraud_score),
        ),
        TierRequirement(
            "verification_request",
            "Request Verification",
            "Issue a credential to a lender or partner for verification",
            completed=has_proof,
            weight=25,
            progress=100.0 if has_proof else 0.0,
        ),
        TierRequirement(
            "human_verification",
            "Human Attestation",
            "A verifier must review and attest to your data",
            completed=anchored,
            weight=25,
            progress=100.0 if anchored else 0.0,
        ),
        TierRequirement(
            "blockchain_anchor",
            "Blockchain Anchoring",
            "Verification anchored on blockchain for tamper-proof record",
            completed=anchored,
            weight=20,
            progress=100.0 if anchored else 0.0,
        ),
    ]


_CHECKLISTS = {
    TrustTier.SELF_DECLARED: _self_declared_checklist,
    TrustTier.DOCUMENT_BACKED: _document_backed_checklist,
    TrustTier.BANK_SUPPORTED: _bank_supported_checklist,
}


def build_requirements(tier: TrustTier, signals: TierSignals, config: TierConfig | None = None) -> list[TierRequirement]:
    """
    Checklist shown for a tier: the gates towards the next tier.

    Verified reuses the Bank-Supported checklist with every item completed.
    """
    cfg = config or TierConfig()
    if tier is TrustTier.VERIFIED:
        return [replace(r, completed=True) for r in _bank_supported_checklist(signals, cfg)]
    return _CHECKLISTS[tier](signals, cfg)


def tier_progress(requirements: Sequence[TierRequirement]) -> int:
    """Weighted share of the checklist done; completed items count as 100."""
    total_weight = sum(r.weight for r in requirements)
    done = sum(r.weight * (100 if r.completed else (r.progress or 0)) / 100 for r in requirements)
    return round_half_up(safe_ratio(done, total_weight) * 100)


def verification_strength(tier: TrustTier, antifraud: float, config: TierConfig | None = None) -> VerificationStrength:
    cfg = config or TierConfig()
    if tier is TrustTier.VERIFIED:
        return VerificationStrength.VERIFIED
    if tier is TrustTier.BANK_SUPPORTED and antifraud >= cfg.strong_min_antifraud:
        return VerificationStrength.STRONG
    if tier >= TrustTier.DOCUMENT_BACKED and antifraud >= cfg.moderate_min_antifraud:
        return VerificationStrength.MODERATE
    return VerificationStrength.WEAK


def evaluate_trust_tier(
    documents: Sequence[Document],
    proofs: Sequence[VerificationProof],
    evidence_score: float,
    alerts: Sequence[AnomalyAlert],
    reconciliation_score: float,
    now: datetime,
    config: TierConfig | None = None,
) -> TrustTierInfo:
    """Select the tier, then derive its checklist, progress and strength."""
    cfg = config or TierConfig()
    signals = collect_signals(documents, proofs, evidence_score, alerts, reconciliation_score, now, cfg)
    tier = resolve_tier(signals, cfg)
    requirements = build_requirements(tier, signals, cfg)
    progress = 100 if tier is TrustTier.VERIFIED else tier_progress(requirements)

    info = TrustTierInfo(
        tier=tier,
        label=TIER_LABELS[tier],
        description=TIER_DESCRIPTIONS[tier],
        requirements=TIER_ACHIEVEMENTS[tier],
        detailed_requirements=tuple(requirements),
        tier_progress=progress,
        antifraud_score=signals.antifraud_score,
        verification_strength=verification_strength(tier, signals.antifraud_score, cfg),
        next_tier_requirements=NEXT_TIER_STEPS.get(tier),
    )
    logger.debug(
        "trust_tier_resolved",
        tier=int(tier),
        tier_progress=progress,
        antifraud_score=signals.antifraud_score,
        anchored_proofs=signals.anchored_proofs,
    )
    return info
