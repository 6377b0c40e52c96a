"""
Rule-based anomaly detection over a business document corpus.

Flags fabricated-looking data: revenue spikes, round and repeated amounts,
future-dated documents, bulk upload velocity, month-end invoice clustering,
near-identical file sizes and unrealistic expense ratios. Fully explainable:
every alert carries its data points, detection method and a recommendation.
No ML; thresholds are configurable and each rule runs independently.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable

from backend_credibility.config import DEFAULT_CURRENCY
from backend_credibility.core.numeric import format_amount, round_half_up, safe_ratio
from backend_credibility.credibility_logging import get_logger
from backend_credibility.documents.decoder import parse_timestamp
from backend_credibility.documents.models import Document, DocumentType
from backend_credibility.scoring.aggregator import FinancialMetrics

logger = get_logger(__name__)


class AnomalySeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class AnomalyType(str, Enum):
    REVENUE_SPIKE = "REVENUE_SPIKE"
    ROUND_NUMBERS = "ROUND_NUMBERS"
    REPEATED_AMOUNTS = "REPEATED_AMOUNTS"
    DATE_INCONSISTENCY = "DATE_INCONSISTENCY"
    VELOCITY_ANOMALY = "VELOCITY_ANOMALY"
    TIMING_MISMATCH = "TIMING_MISMATCH"
    METADATA_SUSPICIOUS = "METADATA_SUSPICIOUS"
    PATTERN_ANOMALY = "PATTERN_ANOMALY"


class AnomalyCategory(str, Enum):
    BEHAVIORAL = "behavioral"
    DATA_QUALITY = "data_quality"
    CROSS_VALIDATION = "cross_validation"
    TIMING = "timing"


@dataclass(frozen=True)
class AnomalyAlert:
    """
    Single explainable anomaly alert.

    confidence_reduction is subtracted from the total score and from the
    confidence level; alerts never suppress each other.
    """

    severity: AnomalySeverity
    type: AnomalyType
    category: AnomalyCategory
    description: str
    data_points: tuple[str, ...]
    """Human-readable evidence (actual values behind the alert)."""
    confidence_reduction: float
    recommendation: str
    detection_method: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "severity": self.severity.value,
            "type": self.type.value,
            "category": self.category.value,
            "description": self.description,
            "dataPoints": list(self.data_points),
            "confidenceReduction": self.confidence_reduction,
            "recommendation": self.recommendation,
            "detectionMethod": self.detection_method,
        }


@dataclass(frozen=True)
class AnomalyConfig:
    """
    Thresholds and confidence reductions for each rule.

    Defaults are product policy; tests assert against them directly.
    Amounts are in NPR.
    """

    # Revenue spike: latest month above multiple x mean of earlier months.
    spike_min_months: int = 3
    spike_multiple: float = 3.0
    spike_reduction: float = 15

    # Round numbers: share of documents whose amount is a multiple of round_unit.
    round_unit: float = 10_000
    round_share: float = 0.5
    round_min_documents: int = 3
    round_reduction: float = 10

    # Repeated amounts: one amount seen more than repeat_count times.
    repeat_count: int = 2
    repeat_min_documents: int = 5
    repeat_reduction: float = 5

    date_reduction: float = 25

    # Velocity: many uploads within a short window.
    velocity_min_documents: int = 10
    velocity_burst_documents: int = 20
    velocity_window_hours: float = 1.0
    velocity_reduction: float = 8

    # Timing: invoices clustered at month end.
    timing_min_invoices: int = 5
    timing_month_end_day: int = 28
    timing_share: float = 0.7
    timing_reduction: float = 5

    # Metadata: file sizes grouped to size_bucket bytes.
    size_bucket: int = 100
    size_group_members: int = 3
    size_group_count: int = 2
    metadata_min_documents: int = 10
    metadata_reduction: float = 5

    # Pattern: expense / revenue ratio outside realistic bounds.
    low_expense_ratio: float = 0.3
    low_expense_min_revenue: float = 500_000
    low_expense_reduction: float = 8
    high_expense_ratio: float = 1.5
    high_expense_min_revenue: float = 100_000
    high_expense_reduction: float = 12

    currency: str = DEFAULT_CURRENCY


@dataclass(frozen=True)
class AnomalyContext:
    """Inputs shared by every rule; all_documents drives count gates."""

    all_documents: Sequence[Document]
    documents: Sequence[Document]
    """Contributing documents (processed, decodable); amounts and dates come from here."""
    metrics: FinancialMetrics
    now: datetime


def _money(cfg: AnomalyConfig, value: float) -> str:
    return f"{cfg.currency} {format_amount(value)}"


def _check_revenue_spike(ctx: AnomalyContext, cfg: AnomalyConfig) -> AnomalyAlert | None:
    """Latest month's income above 3x the mean of all earlier months."""
    months = ctx.metrics.monthly_data
    if len(months) < cfg.spike_min_months:
        return None
    last = months[-1].income
    previous = [m.income for m in months[:-1]]
    avg_previous = safe_ratio(sum(previous), len(previous))
    if last <= avg_previous * cfg.spike_multiple:
        return None
    return AnomalyAlert(
        severity=AnomalySeverity.HIGH,
        type=AnomalyType.REVENUE_SPIKE,
        category=AnomalyCategory.BEHAVIORAL,
        description="Sudden 3x+ revenue spike in latest month - may indicate inflated figures",
        data_points=(f"Current: {_money(cfg, last)}", f"Average: {_money(cfg, avg_previous)}"),
        confidence_reduction=cfg.spike_reduction,
        recommendation="Provide supporting documents (contracts, invoices) for the revenue increase",
        detection_method="Statistical deviation analysis",
    )


def _check_round_numbers(ctx: AnomalyContext, cfg: AnomalyConfig) -> AnomalyAlert | None:
    total = len(ctx.all_documents)
    if total <= cfg.round_min_documents:
        return None
    round_docs = sum(
        1 for d in ctx.documents if d.extracted.primary_amount > 0 and d.extracted.primary_amount % cfg.round_unit == 0
    )
    if round_docs <= total * cfg.round_share:
        return None
    return AnomalyAlert(
        severity=AnomalySeverity.MEDIUM,
        type=AnomalyType.ROUND_NUMBERS,
        category=AnomalyCategory.DATA_QUALITY,
        description="Over 50% of amounts are suspiciously round - typical of fabricated entries",
        data_points=(f"{round_docs} of {total} documents have round amounts",),
        confidence_reduction=cfg.round_reduction,
        recommendation="Upload original invoices/receipts with actual transaction amounts",
        detection_method="Round number frequency analysis",
    )


def _check_repeated_amounts(ctx: AnomalyContext, cfg: AnomalyConfig) -> AnomalyAlert | None:
    """Template detection: one exact total_amount repeated across many documents."""
    if len(ctx.all_documents) <= cfg.repeat_min_documents:
        return None
    counts = Counter(d.extracted.total_amount for d in ctx.documents if d.extracted.total_amount > 0)
    repeated = sorted((amount, n) for amount, n in counts.items() if n > cfg.repeat_count)
    if not repeated:
        return None
    return AnomalyAlert(
        severity=AnomalySeverity.LOW,
        type=AnomalyType.REPEATED_AMOUNTS,
        category=AnomalyCategory.DATA_QUALITY,
        description="Multiple documents with identical amounts - possible template-based entries",
        data_points=tuple(f"{_money(cfg, amount)} appears {n} times" for amount, n in repeated),
        confidence_reduction=cfg.repeat_reduction,
        recommendation="Verify these are legitimate recurring transactions",
        detection_method="Duplicate amount clustering",
    )


def _check_future_dates(ctx: AnomalyContext, cfg: AnomalyConfig) -> AnomalyAlert | None:
    """Any document dated strictly after now; no document-count gate."""
    future = []
    for doc in ctx.documents:
        raw = doc.extracted.document_date
        dated = parse_timestamp(raw)
        if dated is not None and dated > ctx.now:
            future.append(f"{doc.file_name}: dated {raw}")
    if not future:
        return None
    return AnomalyAlert(
        severity=AnomalySeverity.CRITICAL,
        type=AnomalyType.DATE_INCONSISTENCY,
        category=AnomalyCategory.TIMING,
        description="Documents dated in the future - clear indication of fabrication",
        data_points=tuple(future),
        confidence_reduction=cfg.date_reduction,
        recommendation="Remove or correct future-dated documents immediately",
        detection_method="Temporal validation",
    )


def _check_velocity(ctx: AnomalyContext, cfg: AnomalyConfig) -> AnomalyAlert | None:
    """Bulk upload: the whole corpus created within one hour."""
    total = len(ctx.all_documents)
    times = [d.created_at for d in ctx.all_documents if d.created_at is not None]
    if len(times) < cfg.velocity_min_documents:
        return None
    hours = (max(times) - min(times)).total_seconds() / 3600
    if hours >= cfg.velocity_window_hours or total < cfg.velocity_burst_documents:
        return None
    return AnomalyAlert(
        severity=AnomalySeverity.MEDIUM,
        type=AnomalyType.VELOCITY_ANOMALY,
        category=AnomalyCategory.BEHAVIORAL,
        description="Large volume of documents uploaded in very short time - unusual pattern",
        data_points=(f"{total} documents in {hours:.1f} hours",),
        confidence_reduction=cfg.velocity_reduction,
        recommendation="This is flagged for review - provide explanation if legitimate bulk upload",
        detection_method="Upload velocity analysis",
    )


def _check_month_end_invoices(ctx: AnomalyContext, cfg: AnomalyConfig) -> AnomalyAlert | None:
    invoice_count = sum(1 for d in ctx.all_documents if d.document_type is DocumentType.INVOICE)
    has_bank = any(d.document_type is DocumentType.BANK_STATEMENT for d in ctx.all_documents)
    if invoice_count <= cfg.timing_min_invoices or not has_bank:
        return None
    dates = [
        d.extracted.date or d.extracted.invoice_date
        for d in ctx.documents
        if d.document_type is DocumentType.INVOICE and (d.extracted.date or d.extracted.invoice_date)
    ]
    month_end = 0
    for raw in dates:
        parsed = parse_timestamp(raw)
        if parsed is not None and parsed.day >= cfg.timing_month_end_day:
            month_end += 1
    if month_end <= len(dates) * cfg.timing_share:
        return None
    return AnomalyAlert(
        severity=AnomalySeverity.LOW,
        type=AnomalyType.TIMING_MISMATCH,
        category=AnomalyCategory.TIMING,
        description="Most invoices dated at month-end - unusual for normal business operations",
        data_points=(f"{month_end} of {len(dates)} invoices dated after 28th",),
        confidence_reduction=cfg.timing_reduction,
        recommendation="This pattern is noted - ensure invoices reflect actual transaction dates",
        detection_method="Date distribution analysis",
    )


def _check_file_sizes(ctx: AnomalyContext, cfg: AnomalyConfig) -> AnomalyAlert | None:
    """Several groups of near-identical file sizes (modified copies of a template)."""
    if len(ctx.all_documents) <= cfg.metadata_min_documents:
        return None
    buckets = Counter(
        round_half_up(d.file_size / cfg.size_bucket) * cfg.size_bucket
        for d in ctx.all_documents
        if d.file_size is not None
    )
    groups = [size for size, n in buckets.items() if n > cfg.size_group_members]
    if len(groups) <= cfg.size_group_count:
        return None
    return AnomalyAlert(
        severity=AnomalySeverity.LOW,
        type=AnomalyType.METADATA_SUSPICIOUS,
        category=AnomalyCategory.DATA_QUALITY,
        description="Multiple files with nearly identical sizes - possible template modifications",
        data_points=(f"{len(groups)} groups of similar-sized files detected",),
        confidence_reduction=cfg.metadata_reduction,
        recommendation="Ensure documents are unique and not modified copies",
        detection_method="File metadata analysis",
    )


def _check_unrealistic_margin(ctx: AnomalyContext, cfg: AnomalyConfig) -> AnomalyAlert | None:
    """Expenses under 30% of a large revenue: likely underreported expenses."""
    revenue = ctx.metrics.total_revenue
    if revenue <= 0:
        return None
    ratio = ctx.metrics.total_expenses / revenue
    if ratio >= cfg.low_expense_ratio or revenue <= cfg.low_expense_min_revenue:
        return None
    return AnomalyAlert(
        severity=AnomalySeverity.MEDIUM,
        type=AnomalyType.PATTERN_ANOMALY,
        category=AnomalyCategory.BEHAVIORAL,
        description="Unusually high profit margins (>70%) - may indicate underreported expenses",
        data_points=(f"Expense ratio: {ratio * 100:.1f}%", "Expected: 40-80% for most businesses"),
        confidence_reduction=cfg.low_expense_reduction,
        recommendation="Upload expense receipts and invoices to verify expense reporting",
        detection_method="Financial ratio analysis",
    )


def _check_unrealistic_loss(ctx: AnomalyContext, cfg: AnomalyConfig) -> AnomalyAlert | None:
    revenue = ctx.metrics.total_revenue
    if revenue <= 0:
        return None
    ratio = ctx.metrics.total_expenses / revenue
    if ratio <= cfg.high_expense_ratio or revenue <= cfg.high_expense_min_revenue:
        return None
    return AnomalyAlert(
        severity=AnomalySeverity.HIGH,
        type=AnomalyType.PATTERN_ANOMALY,
        category=AnomalyCategory.BEHAVIORAL,
        description="Expenses 50%+ higher than revenue - unusual unless in startup/investment phase",
        data_points=(
            f"Expenses: {_money(cfg, ctx.metrics.total_expenses)}",
            f"Revenue: {_money(cfg, revenue)}",
        ),
        confidence_reduction=cfg.high_expense_reduction,
        recommendation="Provide explanation or documentation for the expense-to-revenue imbalance",
        detection_method="Financial ratio analysis",
    )


ANOMALY_RULES: tuple[Callable[[AnomalyContext, AnomalyConfig], AnomalyAlert | None], ...] = (
    _check_revenue_spike,
    _check_round_numbers,
    _check_repeated_amounts,
    _check_future_dates,
    _check_velocity,
    _check_month_end_invoices,
    _check_file_sizes,
    _check_unrealistic_margin,
    _check_unrealistic_loss,
)


def detect_anomalies(
    documents: Sequence[Document],
    metrics: FinancialMetrics,
    now: datetime,
    config: AnomalyConfig | None = None,
) -> list[AnomalyAlert]:
    """
    Run all anomaly rules over a document corpus.

    Each rule is independent: a rule that raises is logged and skipped,
    the others still run. Alerts are returned in rule order.

    Args:
        documents: Full document list (count gates use every document).
        metrics: FinancialMetrics aggregated from the same documents.
        now: Reference time for future-date checks.
        config: Thresholds for each rule; uses defaults if None.
    """
    cfg = config or AnomalyConfig()
    ctx = AnomalyContext(
        all_documents=documents,
        documents=[d for d in documents if d.contributes],
        metrics=metrics,
        now=now,
    )
    alerts: list[AnomalyAlert] = []

    for check in ANOMALY_RULES:
        try:
            alert = check(ctx, cfg)
            if alert is not None:
                alerts.append(alert)
        except Exception as e:
            logger.warning(
                "anomaly_rule_failed",
                rule=check.__name__,
                error=str(e),
            )

    if alerts:
        logger.debug(
            "anomalies_detected",
            types=[a.type.value for a in alerts],
            total_reduction=total_confidence_reduction(alerts),
        )
    return alerts


def total_confidence_reduction(alerts: Sequence[AnomalyAlert]) -> float:
    return sum(a.confidence_reduction for a in alerts)


def count_by_severity(alerts: Sequence[AnomalyAlert]) -> dict[AnomalySeverity, int]:
    counts = Counter(a.severity for a in alerts)
    return {s: counts.get(s, 0) for s in AnomalySeverity}
