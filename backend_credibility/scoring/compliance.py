"""
Compliance readiness layer: regulatory posture of the document set.

Document completeness against the required (invoice, bank statement,
receipt) and recommended (P&L, balance sheet, tax document) sets, risk
patterns against the NPR 50 lakh VAT registration threshold, filing
timeliness over the last three calendar months and an advisory
placeholder.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from backend_credibility.core.dates import months_before
from backend_credibility.core.numeric import bounded_score
from backend_credibility.credibility_logging import get_logger
from backend_credibility.documents.models import Document, DocumentType
from backend_credibility.scoring.aggregator import FinancialMetrics
from backend_credibility.scoring.flags import ComplianceFlag, FlagType

logger = get_logger(__name__)

ADVISORY_PLACEHOLDER = 50.0

REQUIRED_DOCUMENT_TYPES = (DocumentType.INVOICE, DocumentType.BANK_STATEMENT, DocumentType.RECEIPT)
RECOMMENDED_DOCUMENT_TYPES = (DocumentType.PROFIT_LOSS, DocumentType.BALANCE_SHEET, DocumentType.TAX_DOCUMENT)

MISSING_INVOICES = "MISSING_INVOICES"
MISSING_BANK_STATEMENTS = "MISSING_BANK_STATEMENTS"
VAT_COMPLIANCE_RISK = "VAT_COMPLIANCE_RISK"
EXPENSE_ANOMALY = "EXPENSE_ANOMALY"


@dataclass(frozen=True)
class ComplianceConfig:
    required_weight: float = 70
    recommended_weight: float = 30

    risk_baseline: float = 80
    vat_threshold: float = 5_000_000
    vat_penalty: float = 30
    expense_overrun_ratio: float = 1.5
    expense_overrun_penalty: float = 20

    timeliness_window_months: int = 3
    timeliness_multiplier: float = 150

    completeness_weight: float = 0.4
    risk_weight: float = 0.3
    timeliness_weight: float = 0.2
    advisory_weight: float = 0.1


@dataclass(frozen=True)
class ComplianceReadinessScore:
    score: int
    document_completeness: float
    risk_patterns: float
    timeliness_score: float
    advisory_completion: float
    flags: tuple[ComplianceFlag, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "documentCompleteness": self.document_completeness,
            "riskPatterns": self.risk_patterns,
            "timelinessScore": self.timeliness_score,
            "advisoryCompletion": self.advisory_completion,
            "flags": [f.to_dict() for f in self.flags],
        }


def advisory_completion(documents: Sequence[Document]) -> float:
    """
    Advisory placeholder.

    Completed advisory actions are not tracked yet; a fixed 50.
    """
    return ADVISORY_PLACEHOLDER


def recent_document_count(documents: Sequence[Document], now: datetime, months: int = 3) -> int:
    """Documents uploaded strictly after ``now`` minus ``months`` calendar months."""
    cutoff = months_before(now, months)
    return sum(1 for d in documents if d.created_at is not None and d.created_at > cutoff)


def score_compliance_readiness(
    documents: Sequence[Document],
    metrics: FinancialMetrics,
    now: datetime,
    config: ComplianceConfig | None = None,
) -> ComplianceReadinessScore:
    """Rate document completeness, risk patterns and filing timeliness."""
    cfg = config or ComplianceConfig()
    flags: list[ComplianceFlag] = []
    present = {d.document_type for d in documents}

    required = sum(1 for t in REQUIRED_DOCUMENT_TYPES if t in present)
    recommended = sum(1 for t in RECOMMENDED_DOCUMENT_TYPES if t in present)
    completeness = (
        required / len(REQUIRED_DOCUMENT_TYPES) * cfg.required_weight
        + recommended / len(RECOMMENDED_DOCUMENT_TYPES) * cfg.recommended_weight
    )
    if DocumentType.INVOICE not in present:
        flags.append(
            ComplianceFlag(
                FlagType.WARNING,
                MISSING_INVOICES,
                "No sales invoices uploaded",
                "Upload sales invoices to prove revenue",
            )
        )
    if DocumentType.BANK_STATEMENT not in present:
        flags.append(
            ComplianceFlag(
                FlagType.WARNING,
                MISSING_BANK_STATEMENTS,
                "No bank statements uploaded",
                "Add bank statements for Tier 2 verification",
            )
        )

    risk = cfg.risk_baseline
    if metrics.total_revenue > cfg.vat_threshold and metrics.vat_collected == 0:
        risk -= cfg.vat_penalty
        flags.append(
            ComplianceFlag(
                FlagType.CRITICAL,
                VAT_COMPLIANCE_RISK,
                "Revenue exceeds NPR 50L threshold but no VAT collected",
                "Ensure VAT registration and proper collection",
            )
        )
    if metrics.total_expenses > metrics.total_revenue * cfg.expense_overrun_ratio:
        risk -= cfg.expense_overrun_penalty
        flags.append(
            ComplianceFlag(
                FlagType.WARNING,
                EXPENSE_ANOMALY,
                "Expenses significantly exceed revenue",
                "Review expense categorization and documentation",
            )
        )
    risk = max(0.0, risk)

    recent = recent_document_count(documents, now, cfg.timeliness_window_months)
    timeliness = min(100.0, recent / max(1, len(documents)) * cfg.timeliness_multiplier)

    advisory = advisory_completion(documents)
    score = bounded_score(
        completeness * cfg.completeness_weight
        + risk * cfg.risk_weight
        + timeliness * cfg.timeliness_weight
        + advisory * cfg.advisory_weight
    )
    logger.debug(
        "compliance_readiness_scored",
        score=score,
        document_completeness=completeness,
        risk_patterns=risk,
        recent_documents=recent,
        flags=[f.code for f in flags],
    )
    return ComplianceReadinessScore(
        score=score,
        document_completeness=completeness,
        risk_patterns=risk,
        timeliness_score=timeliness,
        advisory_completion=advisory,
        flags=tuple(flags),
    )
