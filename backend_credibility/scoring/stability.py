"""
Stability & growth layer: financial health trends from monthly metrics.

Reads FinancialMetrics only. Revenue stability uses the population
coefficient of variation of monthly income; growth compares the latest
three months against the months before them.
"""

from __future__ import annotations

import math
import statistics
from dataclasses import dataclass
from typing import Any

from backend_credibility.core.numeric import bounded_score, clamp, finite, safe_ratio
from backend_credibility.credibility_logging import get_logger
from backend_credibility.scoring.aggregator import FinancialMetrics
from backend_credibility.scoring.flags import FlagType, ScoreFlag

logger = get_logger(__name__)

SEASONALITY_PLACEHOLDER = 70.0
EMPTY_SEASONALITY_PLACEHOLDER = 50.0
NEUTRAL_GROWTH = 50.0

NO_MONTHLY_DATA = "NO_MONTHLY_DATA"
HIGH_REVENUE_VOLATILITY = "HIGH_REVENUE_VOLATILITY"
NEGATIVE_CASHFLOW = "NEGATIVE_CASHFLOW"
HEALTHY_MARGINS = "HEALTHY_MARGINS"
HIGH_EXPENSE_RATIO = "HIGH_EXPENSE_RATIO"
STRONG_GROWTH = "STRONG_GROWTH"
DECLINING_REVENUE = "DECLINING_REVENUE"


@dataclass(frozen=True)
class StabilityConfig:
    volatility_threshold: float = 0.5
    healthy_margin_ratio: float = 0.2
    expense_ratio_threshold: float = 0.9
    expense_ratio_multiplier: float = 80
    growth_window_months: int = 3
    strong_growth_rate: float = 0.2
    declining_growth_rate: float = -0.2

    stability_weight: float = 0.25
    cashflow_weight: float = 0.25
    expense_weight: float = 0.2
    growth_weight: float = 0.2
    seasonality_weight: float = 0.1


@dataclass(frozen=True)
class StabilityGrowthScore:
    score: int
    revenue_stability: float
    cashflow_health: float
    expense_discipline: float
    growth_trend: float
    seasonality_handling: float
    flags: tuple[ScoreFlag, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "revenueStability": self.revenue_stability,
            "cashflowHealth": self.cashflow_health,
            "expenseDiscipline": self.expense_discipline,
            "growthTrend": self.growth_trend,
            "seasonalityHandling": self.seasonality_handling,
            "flags": [f.to_dict() for f in self.flags],
        }


def seasonality_handling(metrics: FinancialMetrics) -> float:
    """
    Seasonality placeholder.

    Not derived from Nepali fiscal-calendar patterns (Dashain/Tihar); a
    fixed 70 until a real seasonal model exists.
    """
    return SEASONALITY_PLACEHOLDER


def _scaled(values: list[float]) -> list[float] | None:
    """Values divided by their largest magnitude; None if any value is not finite."""
    if not all(isinstance(v, (int, float)) and math.isfinite(v) for v in values):
        return None
    scale = max((abs(v) for v in values), default=0.0)
    if scale == 0:
        return [0.0] * len(values)
    return [v / scale for v in values]


def coefficient_of_variation(values: list[float]) -> float:
    """Population stddev / mean; 0 when the mean is not positive, there are no values or one is not finite."""
    scaled = _scaled(values)
    if not scaled:
        return 0.0
    mean = statistics.fmean(scaled)
    if mean <= 0:
        return 0.0
    return finite(statistics.pstdev(scaled) / mean)


def growth_rate(incomes: list[float], window: int = 3) -> float | None:
    """
    Relative change of the latest window's mean income over the earlier months.

    None when there are fewer than ``window`` months, the earlier mean is 0
    or an income is not finite. With exactly ``window`` months the first
    month serves as the baseline.
    """
    if len(incomes) < window:
        return None
    scaled = _scaled(incomes)
    if scaled is None:
        return None
    recent = scaled[-window:]
    older = scaled[: max(1, len(scaled) - window)]
    older_avg = statistics.fmean(older)
    if older_avg <= 0:
        return None
    return finite((statistics.fmean(recent) - older_avg) / older_avg)


def score_stability_growth(
    metrics: FinancialMetrics,
    config: StabilityConfig | None = None,
) -> StabilityGrowthScore:
    """Rate revenue stability, cashflow, expense discipline and growth."""
    cfg = config or StabilityConfig()
    if not metrics.monthly_data:
        return StabilityGrowthScore(
            score=0,
            revenue_stability=0,
            cashflow_health=0,
            expense_discipline=0,
            growth_trend=0,
            seasonality_handling=EMPTY_SEASONALITY_PLACEHOLDER,
            flags=(ScoreFlag(FlagType.WARNING, NO_MONTHLY_DATA, "No monthly data available", 0),),
        )

    flags: list[ScoreFlag] = []
    incomes = [m.income for m in metrics.monthly_data]

    cov = coefficient_of_variation(incomes)
    revenue_stability = clamp(100 - cov * 100)
    if cov > cfg.volatility_threshold:
        flags.append(
            ScoreFlag(
                FlagType.WARNING,
                HIGH_REVENUE_VOLATILITY,
                "Revenue shows high month-to-month volatility",
                -10,
            )
        )

    net_cashflow = metrics.total_revenue - metrics.total_expenses
    cashflow_ratio = safe_ratio(net_cashflow, metrics.total_revenue)
    cashflow_health = clamp(50 + cashflow_ratio * 100)
    if net_cashflow < 0:
        flags.append(ScoreFlag(FlagType.CRITICAL, NEGATIVE_CASHFLOW, "Business is operating at a loss", -25))
    elif cashflow_ratio > cfg.healthy_margin_ratio:
        flags.append(ScoreFlag(FlagType.POSITIVE, HEALTHY_MARGINS, "Healthy profit margins detected", 5))

    # Ratio is 1 without revenue
    expense_ratio = safe_ratio(metrics.total_expenses, metrics.total_revenue, default=1.0)
    expense_discipline = clamp(100 - expense_ratio * cfg.expense_ratio_multiplier)
    if expense_ratio > cfg.expense_ratio_threshold:
        flags.append(ScoreFlag(FlagType.WARNING, HIGH_EXPENSE_RATIO, "Expenses exceed 90% of revenue", -10))

    growth_trend = NEUTRAL_GROWTH
    rate = growth_rate(incomes, cfg.growth_window_months)
    if rate is not None:
        growth_trend = clamp(50 + rate * 100)
        if rate > cfg.strong_growth_rate:
            flags.append(ScoreFlag(FlagType.POSITIVE, STRONG_GROWTH, "Strong revenue growth trend detected", 10))
        elif rate < cfg.declining_growth_rate:
            flags.append(ScoreFlag(FlagType.WARNING, DECLINING_REVENUE, "Revenue shows declining trend", -15))

    seasonality = seasonality_handling(metrics)
    score = bounded_score(
        revenue_stability * cfg.stability_weight
        + cashflow_health * cfg.cashflow_weight
        + expense_discipline * cfg.expense_weight
        + growth_trend * cfg.growth_weight
        + seasonality * cfg.seasonality_weight
    )
    logger.debug(
        "stability_growth_scored",
        score=score,
        coefficient_of_variation=cov,
        growth_rate=rate,
        flags=[f.code for f in flags],
    )
    return StabilityGrowthScore(
        score=score,
        revenue_stability=revenue_stability,
        cashflow_health=cashflow_health,
        expense_discipline=expense_discipline,
        growth_trend=growth_trend,
        seasonality_handling=seasonality,
        flags=tuple(flags),
    )
