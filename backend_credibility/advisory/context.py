"""
Advisory context: flattens a credibility score into the fields the chat
advisor is primed with.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from backend_credibility.documents.models import Document, DocumentType
from backend_credibility.scoring.aggregator import FinancialMetrics
from backend_credibility.scoring.engine import CredibilityScore

TOP_ACTIONS = 3
VAT_FILE_MARKERS = ("vat", "pan")


def has_vat_documents(documents: Sequence[Document]) -> bool:
    """Tax documents, or files whose name mentions VAT or PAN registration."""
    for doc in documents:
        if doc.document_type is DocumentType.TAX_DOCUMENT:
            return True
        name = doc.file_name.lower()
        if any(marker in name for marker in VAT_FILE_MARKERS):
            return True
    return False


def build_advisory_context(
    score: CredibilityScore,
    metrics: FinancialMetrics,
    documents: Sequence[Document],
) -> dict[str, Any]:
    return {
        "score": score.total_score,
        "tier": int(score.trust_tier.tier),
        "tierLabel": score.trust_tier.label,
        "documentCount": len(documents),
        "anomalyCount": len(score.anomalies),
        "hasVatDocs": has_vat_documents(documents),
        "hasBankStatements": any(d.document_type is DocumentType.BANK_STATEMENT for d in documents),
        "monthsOfData": len({d.created_month for d in documents if d.created_month}),
        "financialHealth": metrics.financial_health_score,
        "evidenceQuality": score.evidence_quality.score,
        "stabilityGrowth": score.stability_growth.score,
        "complianceReadiness": score.compliance_readiness.score,
        "netProfit": metrics.net_profit,
        "profitMargin": metrics.profit_margin,
        "topImprovementActions": [a.title for a in score.improvement_actions[:TOP_ACTIONS]],
    }
