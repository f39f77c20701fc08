"""Calculator services."""

from .calendar import (
    add_months,
    add_working_days,
    add_years,
    count_working_days,
    day_of_month,
    days_in_month,
    difference_between,
    is_weekend,
    is_working_day,
    month_fraction,
    next_working_day,
    previous_working_day,
    tenure_breakdown,
    working_days_in_month,
)
from .workhours import calculate_end_time, monthly_hours, weekly_hours
from .payroll import (
    SOLVER_DAMPING,
    SOLVER_MAX_ITERATIONS,
    SOLVER_TOLERANCE,
    calculate_hourly_rate,
    calculate_overtime,
    compute_payroll,
    contributory_wage,
    get_gosi_rates,
    profile_from_residency,
    resolve_contribution_profile,
    solve_net_to_gross,
)
from .eos import (
    SAUDI_LABOR_LAW,
    AccrualSchedule,
    FactorTier,
    FullEntitlement,
    SeparationRules,
    TieredFactorCurve,
    available_jurisdictions,
    compute_eos_settlement,
    get_separation_rules,
    register_separation_rules,
)

__all__ = [
    "add_months",
    "add_working_days",
    "add_years",
    "count_working_days",
    "day_of_month",
    "days_in_month",
    "difference_between",
    "is_weekend",
    "is_working_day",
    "month_fraction",
    "next_working_day",
    "previous_working_day",
    "tenure_breakdown",
    "working_days_in_month",
    "calculate_end_time",
    "monthly_hours",
    "weekly_hours",
    "SOLVER_DAMPING",
    "SOLVER_MAX_ITERATIONS",
    "SOLVER_TOLERANCE",
    "calculate_hourly_rate",
    "calculate_overtime",
    "compute_payroll",
    "contributory_wage",
    "get_gosi_rates",
    "profile_from_residency",
    "resolve_contribution_profile",
    "solve_net_to_gross",
    "SAUDI_LABOR_LAW",
    "AccrualSchedule",
    "FactorTier",
    "FullEntitlement",
    "SeparationRules",
    "TieredFactorCurve",
    "available_jurisdictions",
    "compute_eos_settlement",
    "get_separation_rules",
    "register_separation_rules",
]
