"""Models package."""

from .calendar import (
    WeekendType,
    WeekendDefinition,
    SAUDI_WEEKEND,
    WESTERN_WEEKEND,
    DateRange,
    TenureBreakdown,
    WorkingDayCount,
    DateDifference,
)
from .payroll import (
    PayrollMode,
    HousingMode,
    ContributionBase,
    GosiProfile,
    Residency,
    ContributionProfile,
    CompensationComponents,
    OvertimeInput,
    PayrollInput,
    MonthlyFigures,
    PeriodFigures,
    HourlyFigures,
    ToDateInsurance,
    InsuranceAllocation,
    SolverReport,
    PayrollResult,
)
from .eos import (
    SeparationType,
    LaborArticle,
    EosBaseType,
    EosInput,
    EosBreakdown,
    EosResult,
)

__all__ = [
    "WeekendType",
    "WeekendDefinition",
    "SAUDI_WEEKEND",
    "WESTERN_WEEKEND",
    "DateRange",
    "TenureBreakdown",
    "WorkingDayCount",
    "DateDifference",
    "PayrollMode",
    "HousingMode",
    "ContributionBase",
    "GosiProfile",
    "Residency",
    "ContributionProfile",
    "CompensationComponents",
    "OvertimeInput",
    "PayrollInput",
    "MonthlyFigures",
    "PeriodFigures",
    "HourlyFigures",
    "ToDateInsurance",
    "InsuranceAllocation",
    "SolverReport",
    "PayrollResult",
    "SeparationType",
    "LaborArticle",
    "EosBaseType",
    "EosInput",
    "EosBreakdown",
    "EosResult",
]
