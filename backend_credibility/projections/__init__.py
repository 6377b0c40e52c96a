"""Financial projections (revenue, expenses, loan coverage) from aggregated metrics."""

from backend_credibility.projections.calculator import (
    ANNUAL_GROWTH_RATES,
    GrowthScenario,
    ProjectedMonth,
    ProjectionConfig,
    ProjectionResult,
    annual_to_monthly,
    calculate_projections,
    historical_trend,
    loan_emi,
)

__all__ = [
    "ANNUAL_GROWTH_RATES",
    "GrowthScenario",
    "ProjectedMonth",
    "ProjectionConfig",
    "ProjectionResult",
    "annual_to_monthly",
    "calculate_projections",
    "historical_trend",
    "loan_emi",
]
