"""
Tests for forward financial projections.

Metrics are built directly; ``now`` is fixed so month labels are stable.
"""

from __future__ import annotations

import pytest


def _metrics(incomes, expenses=None):
    from backend_credibility.scoring import FinancialMetrics, MonthlyPoint

    expenses = expenses or [0.0] * len(incomes)
    points = tuple(
        MonthlyPoint(key=f"2024-{i + 1:02d}", label="", income=inc, expenses=exp)
        for i, (inc, exp) in enumerate(zip(incomes, expenses))
    )
    return FinancialMetrics(total_revenue=sum(incomes), total_expenses=sum(expenses), monthly_data=points)


def test_flat_business_conservative(now):
    from backend_credibility.projections import GrowthScenario, ProjectionConfig, calculate_projections

    config = ProjectionConfig(projection_months=6, growth_scenario=GrowthScenario.CONSERVATIVE)
    result = calculate_projections(_metrics([100_000] * 3, [60_000] * 3), config, now)

    assert [m.month for m in result.projected_months] == [
        "Jul '24",
        "Aug '24",
        "Sep '24",
        "Oct '24",
        "Nov '24",
        "Dec '24",
    ]
    first, second = result.projected_months[:2]
    assert (first.revenue, first.expenses, first.profit, first.cumulative_profit) == (100_000, 60_000, 40_000, 40_000)
    assert (second.revenue, second.expenses) == (100_285, 60_196)
    assert result.break_even_month == 1
    assert result.debt_service_coverage_ratio is None

    monthly = (1.05 ** (1 / 12) - 1) * 0.7
    assert result.growth_rate == pytest.approx(((1 + monthly) ** 12 - 1) * 100)
    assert result.average_monthly_revenue == round(sum(m.revenue for m in result.projected_months) / 6)


def test_labels_roll_over_the_year():
    from datetime import datetime, timezone

    from backend_credibility.projections import ProjectionConfig, calculate_projections

    moment = datetime(2024, 11, 30, tzinfo=timezone.utc)
    result = calculate_projections(_metrics([1_000] * 3), ProjectionConfig(projection_months=3), moment)
    assert [m.month for m in result.projected_months] == ["Dec '24", "Jan '25", "Feb '25"]


def test_loan_emi():
    from backend_credibility.projections import loan_emi

    assert loan_emi(1_200_000, 12, 12) == pytest.approx(106_618.55, abs=0.01)
    assert loan_emi(1_200_000, 0, 12) == 0
    assert loan_emi(None, 12, 12) == 0
    assert loan_emi(1_200_000, 12, 0) == 0
    assert loan_emi(1_200, 1e-300, 12) == pytest.approx(100)


def test_loan_adds_emi_and_coverage(now):
    from backend_credibility.projections import ProjectionConfig, calculate_projections

    config = ProjectionConfig(projection_months=12, loan_amount=1_200_000, interest_rate=12, loan_term_months=12)
    result = calculate_projections(_metrics([200_000] * 3, [50_000] * 3), config, now)
    assert result.projected_months[0].expenses == 156_619
    assert 1.3 < result.debt_service_coverage_ratio < 1.6


def test_historical_trend():
    from backend_credibility.projections import historical_trend

    assert historical_trend([100, 110, 121]) == 0
    assert historical_trend([100, 300, 100, 100]) == pytest.approx(0)
    assert historical_trend([0, 100, 110, 121]) == pytest.approx(0.1)
    assert historical_trend([0, 0, 0, 0]) == 0


def test_growth_is_capped_both_ways():
    from backend_credibility.projections import GrowthScenario
    from backend_credibility.projections.calculator import effective_monthly_growth

    assert effective_monthly_growth(GrowthScenario.OPTIMISTIC, [100_000, 110_000, 121_000, 133_100]) == 0.03
    assert effective_monthly_growth(GrowthScenario.CONSERVATIVE, [100, 50, 25, 12.5]) == -0.05


def test_loss_making_business_never_breaks_even(now):
    from backend_credibility.projections import ProjectionConfig, calculate_projections

    result = calculate_projections(_metrics([10_000] * 4, [30_000] * 4), ProjectionConfig(), now)
    assert result.break_even_month is None
    assert result.projected_annual_profit < 0


def test_short_history_uses_totals(now):
    from backend_credibility.projections import ProjectionConfig, calculate_projections
    from backend_credibility.scoring import FinancialMetrics

    one_month = calculate_projections(_metrics([50_000], [20_000]), ProjectionConfig(projection_months=1), now)
    assert one_month.projected_months[0].revenue == 50_000
    no_months = calculate_projections(
        FinancialMetrics(total_revenue=40_000, total_expenses=10_000), ProjectionConfig(projection_months=1), now
    )
    assert no_months.projected_months[0].profit == 30_000


def test_extreme_metrics_stay_finite(now):
    from backend_credibility.projections import GrowthScenario, ProjectionConfig, calculate_projections

    config = ProjectionConfig(projection_months=24, growth_scenario=GrowthScenario.OPTIMISTIC)
    result = calculate_projections(_metrics([1.7e308] * 3, [0.0] * 3), config, now)
    assert len(result.projected_months) == 24
    result.to_dict()


@pytest.mark.parametrize(
    "kwargs",
    [
        {"projection_months": 0},
        {"projection_months": 121},
        {"interest_rate": 150},
        {"loan_amount": -1},
        {"loan_amount": float("nan")},
        {"loan_term_months": 601},
        {"growth_scenario": "wild"},
    ],
)
def test_config_validation(kwargs):
    from backend_credibility.projections import ProjectionConfig

    with pytest.raises(ValueError):
        ProjectionConfig(**kwargs)


def test_to_dict_is_camel_case(now):
    from backend_credibility.projections import ProjectionConfig, calculate_projections

    payload = calculate_projections(_metrics([1_000] * 3), ProjectionConfig(projection_months=2), now).to_dict()
    assert set(payload) == {
        "projectedMonths",
        "averageMonthlyRevenue",
        "averageMonthlyExpenses",
        "projectedAnnualRevenue",
        "projectedAnnualProfit",
        "growthRate",
        "breakEvenMonth",
        "debtServiceCoverageRatio",
    }
    assert set(payload["projectedMonths"][0]) == {"month", "revenue", "expenses", "profit", "cumulativeProfit"}


def test_scenario_accepts_plain_strings():
    from backend_credibility.projections import GrowthScenario, ProjectionConfig

    assert ProjectionConfig(growth_scenario="optimistic").growth_scenario is GrowthScenario.OPTIMISTIC
