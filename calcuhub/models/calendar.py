"""Models for calendar arithmetic: weekends, date ranges and tenure."""

from datetime import date
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from calcuhub.models.coercion import coerce_enum, to_date


class WeekendType(str, Enum):
    """Named weekend policy."""
    FRI_SAT = "fri_sat"  # Saudi Arabia since 2013
    SAT_SUN = "sat_sun"
    FRI = "fri"
    SAT = "sat"
    SUN = "sun"
    CUSTOM = "custom"


# Python weekday numbers: Monday=0 ... Sunday=6
FRIDAY = 4
SATURDAY = 5
SUNDAY = 6

DAYS_PER_YEAR_APPROX = Decimal("365.25")
DAYS_PER_MONTH_APPROX = Decimal("30.44")

WEEKEND_DAYS: dict[WeekendType, frozenset[int]] = {
    WeekendType.FRI_SAT: frozenset({FRIDAY, SATURDAY}),
    WeekendType.SAT_SUN: frozenset({SATURDAY, SUNDAY}),
    WeekendType.FRI: frozenset({FRIDAY}),
    WeekendType.SAT: frozenset({SATURDAY}),
    WeekendType.SUN: frozenset({SUNDAY}),
}


class WeekendDefinition(BaseModel):
    """Weekend policy resolved to a set of weekday indices (Monday=0)."""

    model_config = ConfigDict(frozen=True)

    type: WeekendType = Field(
        default=WeekendType.FRI_SAT,
        description="Named policy, or custom to use custom_days"
    )
    custom_days: frozenset[int] = Field(
        default_factory=frozenset,
        description="Weekday numbers (Monday=0 ... Sunday=6) when type=custom"
    )

    @field_validator("type", mode="before")
    @classmethod
    def _known_type(cls, v):
        return coerce_enum(WeekendType, v, WeekendType.FRI_SAT)

    @field_validator("custom_days", mode="before")
    @classmethod
    def _valid_days(cls, v):
        if not v:
            return frozenset()
        days = set()
        for day in v:
            try:
                number = int(day)
            except (TypeError, ValueError):
                continue
            if 0 <= number <= 6:
                days.add(number)
        return frozenset(days)

    @property
    def days(self) -> frozenset[int]:
        if self.type == WeekendType.CUSTOM:
            return self.custom_days
        return WEEKEND_DAYS[self.type]

    @classmethod
    def of(cls, days) -> "WeekendDefinition":
        """Build a custom weekend from explicit weekday numbers."""
        return cls(type=WeekendType.CUSTOM, custom_days=days)


SAUDI_WEEKEND = WeekendDefinition(type=WeekendType.FRI_SAT)
WESTERN_WEEKEND = WeekendDefinition(type=WeekendType.SAT_SUN)


class DateRange(BaseModel):
    """Pair of calendar dates, datetimes are normalized to midnight."""

    model_config = ConfigDict(frozen=True)

    start: date = Field(..., description="First day of the range")
    end: date = Field(..., description="Last day of the range")

    @field_validator("start", "end", mode="before")
    @classmethod
    def _midnight(cls, v):
        return to_date(v)

    @property
    def is_inverted(self) -> bool:
        return self.end < self.start

    @property
    def days(self) -> int:
        """Elapsed days, zero when the range is inverted."""
        return max(0, (self.end - self.start).days)


class TenureBreakdown(BaseModel):
    """Elapsed employment expressed in calendar units."""

    years: int = Field(default=0, ge=0, description="Whole years")
    months: int = Field(default=0, ge=0, description="Remainder months")
    days: int = Field(default=0, ge=0, description="Remainder days")
    total_days: int = Field(default=0, ge=0, description="Total elapsed days")
    total_weeks: int = Field(default=0, ge=0, description="Total elapsed whole weeks")

    @property
    def years_approx(self) -> Decimal:
        """Coarse fractional years (days / 365.25), for tier lookups only."""
        return Decimal(self.total_days) / DAYS_PER_YEAR_APPROX

    @property
    def service_years(self) -> Decimal:
        """Fractional tenure: years + months/12 + days/365."""
        return (
            Decimal(self.years)
            + Decimal(self.months) / Decimal("12")
            + Decimal(self.days) / Decimal("365")
        )


class WorkingDayCount(BaseModel):
    """Classification of every day of an inclusive range."""

    working_days: int = Field(default=0, description="Days neither weekend nor holiday")
    weekend_days: int = Field(default=0, description="Days falling on the weekend")
    holiday_days: int = Field(default=0, description="Holidays not already counted as weekend")

    @property
    def calendar_days(self) -> int:
        return self.working_days + self.weekend_days + self.holiday_days


class DateDifference(BaseModel):
    """Result of difference_between."""

    milliseconds: int = Field(..., description="Elapsed milliseconds (clamped at zero)")
    seconds: int = Field(..., description="Whole elapsed seconds")
    minutes: int = Field(..., description="Whole elapsed minutes")
    hours: int = Field(..., description="Whole elapsed hours")
    days: int = Field(..., description="Whole elapsed days")
    weeks: int = Field(..., description="Whole elapsed weeks")
    approx_years: int = Field(..., description="days / 365.25, floored")
    approx_months: int = Field(..., description="days / 30.44, floored")
    working_days: int = Field(..., description="Working days in the inclusive date range")
    weekend_days: int = Field(..., description="Weekend days in the inclusive date range")
    holiday_days: int = Field(default=0, description="Holidays excluded from working days")
    tenure: TenureBreakdown = Field(..., description="Years / months / days breakdown")
