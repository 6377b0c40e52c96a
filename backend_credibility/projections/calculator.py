"""
Forward financial projections from aggregated monthly metrics.

Revenue and expenses compound monthly from a recent-months baseline. The
scenario's annual growth is converted to a monthly rate and blended with
the business's own month-over-month trend, then bounded so a handful of
noisy months cannot project runaway growth. An optional loan adds its
EMI to every month's expenses and yields a debt service coverage ratio.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from backend_credibility.core.dates import utc_now
from backend_credibility.core.numeric import finite, round_half_up, safe_ratio
from backend_credibility.credibility_logging import get_logger
from backend_credibility.scoring.aggregator import MONTH_LABELS, FinancialMetrics

logger = get_logger(__name__)

BASELINE_MONTHS = 3
TREND_MIN_MONTHS = 4
TREND_MONTHLY_CAP = 0.2
SCENARIO_WEIGHT = 0.7
TREND_WEIGHT = 0.3
MIN_MONTHLY_GROWTH = -0.05
MAX_MONTHLY_GROWTH = 0.03

MAX_PROJECTION_MONTHS = 120
MAX_INTEREST_RATE = 100
MAX_LOAN_TERM_MONTHS = 600


class GrowthScenario(str, Enum):
    CONSERVATIVE = "conservative"
    MODERATE = "moderate"
    OPTIMISTIC = "optimistic"


# Annual (revenue, expense) growth per scenario
ANNUAL_GROWTH_RATES: dict[GrowthScenario, tuple[float, float]] = {
    GrowthScenario.CONSERVATIVE: (0.05, 0.04),
    GrowthScenario.MODERATE: (0.10, 0.07),
    GrowthScenario.OPTIMISTIC: (0.18, 0.10),
}


@dataclass(frozen=True)
class ProjectionConfig:
    """
    What to project and under which assumptions.

    The loan only affects the projection when amount, interest_rate and
    term_months are all set and non-zero.
    """

    business_name: str = ""
    projection_months: int = 12
    growth_scenario: GrowthScenario = GrowthScenario.MODERATE
    loan_amount: float | None = None
    interest_rate: float | None = None
    """Annual interest rate in percent."""
    loan_term_months: int | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "growth_scenario", GrowthScenario(self.growth_scenario))
        if not 1 <= self.projection_months <= MAX_PROJECTION_MONTHS:
            raise ValueError(f"projection_months must be between 1 and {MAX_PROJECTION_MONTHS}")
        if self.loan_amount is not None and not 0 <= finite(self.loan_amount, -1.0):
            raise ValueError("loan_amount must be a finite non-negative number")
        if self.interest_rate is not None and not 0 <= finite(self.interest_rate, -1.0) <= MAX_INTEREST_RATE:
            raise ValueError(f"interest_rate must be between 0 and {MAX_INTEREST_RATE}")
        if self.loan_term_months is not None and not 0 <= self.loan_term_months <= MAX_LOAN_TERM_MONTHS:
            raise ValueError(f"loan_term_months must be between 0 and {MAX_LOAN_TERM_MONTHS}")


@dataclass(frozen=True)
class ProjectedMonth:
    month: str
    """Label such as "Jul '24"."""
    revenue: int
    expenses: int
    profit: int
    cumulative_profit: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "month": self.month,
            "revenue": self.revenue,
            "expenses": self.expenses,
            "profit": self.profit,
            "cumulativeProfit": self.cumulative_profit,
        }


@dataclass(frozen=True)
class ProjectionResult:
    projected_months: tuple[ProjectedMonth, ...]
    average_monthly_revenue: int
    average_monthly_expenses: int
    projected_annual_revenue: int
    projected_annual_profit: int
    growth_rate: float
    """Effective annual revenue growth, percent."""
    break_even_month: int | None = None
    debt_service_coverage_ratio: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "projectedMonths": [m.to_dict() for m in self.projected_months],
            "averageMonthlyRevenue": self.average_monthly_revenue,
            "averageMonthlyExpenses": self.average_monthly_expenses,
            "projectedAnnualRevenue": self.projected_annual_revenue,
            "projectedAnnualProfit": self.projected_annual_profit,
            "growthRate": self.growth_rate,
            "breakEvenMonth": self.break_even_month,
            "debtServiceCoverageRatio": self.debt_service_coverage_ratio,
        }


def annual_to_monthly(annual_rate: float) -> float:
    """Monthly compound rate equivalent to ``annual_rate``."""
    return (1 + annual_rate) ** (1 / 12) - 1


def loan_emi(amount: float | None, annual_rate_pct: float | None, term_months: int | None) -> float:
    """Equated monthly instalment; 0 unless amount, rate and term are all non-zero."""
    if not (amount and annual_rate_pct and term_months):
        return 0.0
    r = annual_rate_pct / 100 / 12
    factor = (1 + r) ** term_months
    if factor == 1:
        # Rate below float resolution: straight-line repayment
        return finite(amount / term_months)
    return finite(amount * r * factor / (factor - 1))


def historical_trend(incomes: list[float]) -> float:
    """
    Mean month-over-month income growth, each step capped at +/-20%.

    0 with fewer than four months or when no month has a positive predecessor.
    """
    if len(incomes) < TREND_MIN_MONTHS:
        return 0.0
    steps = [
        max(-TREND_MONTHLY_CAP, min(TREND_MONTHLY_CAP, (cur - prev) / prev))
        for prev, cur in zip(incomes, incomes[1:])
        if prev > 0
    ]
    return safe_ratio(sum(steps), len(steps))


def effective_monthly_growth(scenario: GrowthScenario, incomes: list[float]) -> float:
    revenue_annual, _ = ANNUAL_GROWTH_RATES[scenario]
    blended = annual_to_monthly(revenue_annual) * SCENARIO_WEIGHT + historical_trend(incomes) * TREND_WEIGHT
    return max(MIN_MONTHLY_GROWTH, min(MAX_MONTHLY_GROWTH, blended))


def _baseline(metrics: FinancialMetrics) -> tuple[float, float]:
    months = metrics.monthly_data
    if len(months) >= BASELINE_MONTHS:
        recent = months[-BASELINE_MONTHS:]
        return (
            finite(sum(m.income for m in recent) / BASELINE_MONTHS),
            finite(sum(m.expenses for m in recent) / BASELINE_MONTHS),
        )
    span = max(len(months), 1)
    return metrics.total_revenue / span, metrics.total_expenses / span


def _month_label(start: datetime, offset: int) -> str:
    index = start.year * 12 + start.month - 1 + offset
    year, month = divmod(index, 12)
    return f"{MONTH_LABELS[month]} '{year % 100:02d}"


def calculate_projections(
    metrics: FinancialMetrics,
    config: ProjectionConfig,
    now: datetime | None = None,
) -> ProjectionResult:
    """
    Project monthly revenue, expenses and profit starting the month after ``now``.

    Month values are rounded half-up; totals and averages are taken over
    the rounded months.
    """
    moment = now or utc_now()
    _, expense_annual = ANNUAL_GROWTH_RATES[config.growth_scenario]
    expense_growth = annual_to_monthly(expense_annual)
    revenue_growth = effective_monthly_growth(config.growth_scenario, [m.income for m in metrics.monthly_data])
    emi = loan_emi(config.loan_amount, config.interest_rate, config.loan_term_months)

    revenue, expenses = _baseline(metrics)
    cumulative = 0.0
    months: list[ProjectedMonth] = []
    for i in range(config.projection_months):
        if i > 0:
            revenue *= 1 + revenue_growth
            expenses *= 1 + expense_growth
        outgoing = expenses + emi
        profit = revenue - outgoing
        cumulative += profit
        months.append(
            ProjectedMonth(
                month=_month_label(moment, i + 1),
                revenue=round_half_up(revenue),
                expenses=round_half_up(outgoing),
                profit=round_half_up(profit),
                cumulative_profit=round_half_up(cumulative),
            )
        )

    count = config.projection_months
    total_revenue = finite(sum(float(m.revenue) for m in months))
    total_expenses = finite(sum(float(m.expenses) for m in months))

    dscr = None
    if emi > 0:
        dscr = finite(sum(m.profit + emi for m in months) / count / emi)

    break_even = next((i + 1 for i, m in enumerate(months) if m.cumulative_profit > 0), None)

    result = ProjectionResult(
        projected_months=tuple(months),
        average_monthly_revenue=round_half_up(total_revenue / count),
        average_monthly_expenses=round_half_up(total_expenses / count),
        projected_annual_revenue=round_half_up(total_revenue / count * 12),
        projected_annual_profit=round_half_up((total_revenue - total_expenses) / count * 12),
        growth_rate=((1 + revenue_growth) ** 12 - 1) * 100,
        break_even_month=break_even,
        debt_service_coverage_ratio=dscr,
    )
    logger.info(
        "projections_calculated",
        business_name=config.business_name,
        scenario=config.growth_scenario.value,
        projection_months=count,
        monthly_growth=revenue_growth,
        monthly_emi=emi,
        break_even_month=break_even,
    )
    return result
