"""
Cross-source reconciliation: invoices vs bank credits, receipts vs bank debits.

A pair is only compared when both sides have a positive total. Each pair
whose relative discrepancy exceeds 30% costs 25 points.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from backend_credibility.config import DEFAULT_CURRENCY
from backend_credibility.core.numeric import finite, format_amount
from backend_credibility.credibility_logging import get_logger
from backend_credibility.documents.models import BankStatementData, Document, DocumentType

logger = get_logger(__name__)


@dataclass(frozen=True)
class ReconciliationConfig:
    max_discrepancy: float = 0.3
    mismatch_penalty: float = 25
    currency: str = DEFAULT_CURRENCY


@dataclass(frozen=True)
class ReconciliationResult:
    passed: bool
    mismatches: tuple[str, ...]
    reconciliation_score: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "passed": self.passed,
            "mismatches": list(self.mismatches),
            "reconciliationScore": self.reconciliation_score,
        }


def relative_discrepancy(a: float, b: float) -> float:
    """|a - b| / max(a, b); 0 unless both sides are positive."""
    if a <= 0 or b <= 0:
        return 0.0
    return abs(a - b) / max(a, b)


def _total_amount(documents: Sequence[Document], document_type: DocumentType) -> float:
    return finite(sum(d.extracted.total_amount for d in documents if d.document_type is document_type))


def _bank_totals(documents: Sequence[Document]) -> tuple[float, float]:
    credits = debits = 0.0
    for doc in documents:
        if doc.document_type is DocumentType.BANK_STATEMENT and isinstance(doc.extracted, BankStatementData):
            credits += doc.extracted.total_credits
            debits += doc.extracted.total_debits
    return finite(credits), finite(debits)


def reconcile_sources(
    documents: Sequence[Document],
    config: ReconciliationConfig | None = None,
) -> ReconciliationResult:
    """Compare independently derived totals across document sources."""
    cfg = config or ReconciliationConfig()
    contributing = [d for d in documents if d.contributes]
    invoices = _total_amount(contributing, DocumentType.INVOICE)
    receipts = _total_amount(contributing, DocumentType.RECEIPT)
    credits, debits = _bank_totals(contributing)

    mismatches: list[str] = []
    if relative_discrepancy(invoices, credits) > cfg.max_discrepancy:
        mismatches.append(
            f"Invoice total ({cfg.currency} {format_amount(invoices)}) differs significantly "
            f"from bank deposits ({cfg.currency} {format_amount(credits)})"
        )
    if relative_discrepancy(receipts, debits) > cfg.max_discrepancy:
        mismatches.append(
            f"Receipt total ({cfg.currency} {format_amount(receipts)}) differs significantly "
            f"from bank payments ({cfg.currency} {format_amount(debits)})"
        )

    score = int(max(0, 100 - len(mismatches) * cfg.mismatch_penalty))
    logger.debug(
        "sources_reconciled",
        invoice_total=invoices,
        bank_credits=credits,
        receipt_total=receipts,
        bank_debits=debits,
        mismatch_count=len(mismatches),
        reconciliation_score=score,
    )
    return ReconciliationResult(passed=not mismatches, mismatches=tuple(mismatches), reconciliation_score=score)
