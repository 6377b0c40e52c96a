"""
Evidence quality layer: how well-substantiated the business data is.

Four weighted components: document-backed ratio (bank > invoice/receipt >
manual), filename consistency, monthly continuity and processing coverage.
Document-type gates use the stored document_type.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from backend_credibility.core.numeric import bounded_score, clamp, safe_ratio
from backend_credibility.credibility_logging import get_logger
from backend_credibility.documents.models import Document, DocumentType
from backend_credibility.scoring.aggregator import FinancialMetrics
from backend_credibility.scoring.flags import FlagType, ScoreFlag

logger = get_logger(__name__)

NO_DOCUMENTS = "NO_DOCUMENTS"
HIGH_MANUAL_RATIO = "HIGH_MANUAL_RATIO"
DUPLICATE_FILES = "DUPLICATE_FILES"
LIMITED_HISTORY = "LIMITED_HISTORY"


@dataclass(frozen=True)
class EvidenceConfig:
    bank_statement_weight: float = 3.0
    invoice_weight: float = 2.0
    receipt_weight: float = 2.0
    manual_weight: float = 0.5
    max_weight_per_document: float = 3.0

    manual_ratio_threshold: float = 0.5
    manual_ratio_impact: float = 15

    consistency_baseline: float = 80
    duplicate_penalty: float = 20
    duplicate_unique_ratio: float = 0.9
    duplicate_impact: float = 10

    full_continuity_months: int = 6
    limited_history_months: int = 3
    limited_history_impact: float = 5

    backed_ratio_weight: float = 0.6
    consistency_weight: float = 0.2
    continuity_weight: float = 0.15
    metadata_weight: float = 0.05


@dataclass(frozen=True)
class EvidenceQualityScore:
    score: int
    document_backed_ratio: float
    consistency_score: float
    continuity_score: float
    metadata_score: float
    flags: tuple[ScoreFlag, ...] = field(default=())

    @property
    def issue_count(self) -> int:
        """Critical or warning flags."""
        return sum(1 for f in self.flags if f.is_issue)

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "documentBackedRatio": self.document_backed_ratio,
            "consistencyScore": self.consistency_score,
            "continuityScore": self.continuity_score,
            "metadataScore": self.metadata_score,
            "flags": [f.to_dict() for f in self.flags],
        }


def _backed_ratio(documents: Sequence[Document], cfg: EvidenceConfig) -> tuple[float, int]:
    """Weighted document-backed ratio (0-100) and the manual entry count."""
    counts = {t: 0 for t in (DocumentType.BANK_STATEMENT, DocumentType.INVOICE, DocumentType.RECEIPT)}
    manual = 0
    for doc in documents:
        if doc.document_type in counts:
            counts[doc.document_type] += 1
        if doc.is_manual:
            manual += 1
    weighted = (
        counts[DocumentType.BANK_STATEMENT] * cfg.bank_statement_weight
        + counts[DocumentType.INVOICE] * cfg.invoice_weight
        + counts[DocumentType.RECEIPT] * cfg.receipt_weight
        + manual * cfg.manual_weight
    )
    ratio = clamp(safe_ratio(weighted, len(documents) * cfg.max_weight_per_document) * 100)
    return ratio, manual


def _has_duplicate_names(documents: Sequence[Document], cfg: EvidenceConfig) -> bool:
    names = [d.file_name.lower() for d in documents if d.file_name]
    return len(set(names)) < len(names) * cfg.duplicate_unique_ratio


def score_evidence_quality(
    documents: Sequence[Document],
    metrics: FinancialMetrics | None = None,
    config: EvidenceConfig | None = None,
) -> EvidenceQualityScore:
    """
    Rate how well the data is backed by real documents.

    Zero documents short-circuits to score 0 with a single critical
    NO_DOCUMENTS flag. metrics is accepted for call-site symmetry with
    the other layers; the evidence layer reads documents only.
    """
    cfg = config or EvidenceConfig()
    if not documents:
        return EvidenceQualityScore(
            score=0,
            document_backed_ratio=0,
            consistency_score=0,
            continuity_score=0,
            metadata_score=0,
            flags=(ScoreFlag(FlagType.CRITICAL, NO_DOCUMENTS, "No documents uploaded", 100),),
        )

    flags: list[ScoreFlag] = []
    total = len(documents)

    backed_ratio, manual = _backed_ratio(documents, cfg)
    if manual > total * cfg.manual_ratio_threshold:
        flags.append(
            ScoreFlag(
                FlagType.WARNING,
                HIGH_MANUAL_RATIO,
                "Over 50% of entries are manual - add supporting documents",
                cfg.manual_ratio_impact,
            )
        )

    consistency = cfg.consistency_baseline
    if _has_duplicate_names(documents, cfg):
        consistency -= cfg.duplicate_penalty
        flags.append(
            ScoreFlag(FlagType.WARNING, DUPLICATE_FILES, "Potential duplicate files detected", cfg.duplicate_impact)
        )
    consistency = max(0.0, consistency)

    months = {d.created_month for d in documents if d.created_month}
    continuity = min(100.0, len(months) / cfg.full_continuity_months * 100)
    if len(months) < cfg.limited_history_months:
        flags.append(
            ScoreFlag(
                FlagType.INFO,
                LIMITED_HISTORY,
                "Less than 3 months of financial history",
                cfg.limited_history_impact,
            )
        )

    processed = sum(1 for d in documents if d.is_processed)
    metadata = safe_ratio(processed, total) * 100

    score = bounded_score(
        backed_ratio * cfg.backed_ratio_weight
        + consistency * cfg.consistency_weight
        + continuity * cfg.continuity_weight
        + metadata * cfg.metadata_weight
    )
    logger.debug(
        "evidence_quality_scored",
        score=score,
        document_backed_ratio=backed_ratio,
        manual_entries=manual,
        months_with_data=len(months),
        flags=[f.code for f in flags],
    )
    return EvidenceQualityScore(
        score=score,
        document_backed_ratio=backed_ratio,
        consistency_score=consistency,
        continuity_score=continuity,
        metadata_score=metadata,
        flags=tuple(flags),
    )
