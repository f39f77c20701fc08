"""Models for the salary calculator (gross/net and GOSI contributions)."""

from datetime import date
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field, field_validator

from calcuhub.config import engine_settings
from calcuhub.models.coercion import (
    coerce_enum,
    non_negative,
    optional_non_negative,
    percentage,
    to_date,
)


class PayrollMode(str, Enum):
    """Direction of the conversion."""
    GROSS_TO_NET = "gross2net"
    NET_TO_GROSS = "net2gross"


class HousingMode(str, Enum):
    """How the housing allowance is derived from the basic wage."""
    PERCENT = "percent"
    FIXED = "fixed"


class ContributionBase(str, Enum):
    """Wage base the insurance percentages apply to."""
    CAPPED_BASIC_HOUSING = "gosi"  # basic + housing, capped at GOSI_CAP
    GROSS = "gross"
    BASIC = "basic"


class GosiProfile(str, Enum):
    """Named GOSI contribution profile."""
    SAUDI_STANDARD = "saudi-standard"  # 10% / 12%, contracts since July 2024 reform
    SAUDI_LEGACY = "saudi-legacy"  # 9.75% / 11.75%
    NON_SAUDI = "non-saudi"  # occupational hazards only (employer 2%)
    CUSTOM = "custom"


class Residency(str, Enum):
    """Legacy residency switch, used when no GOSI profile is given."""
    SAUDI = "saudi"
    EXPAT = "expat"


class ContributionProfile(BaseModel):
    """Resolved social insurance rates and base policy."""

    employee_rate_pct: Decimal = Field(default=Decimal("0"), description="Employee share in %")
    employer_rate_pct: Decimal = Field(default=Decimal("0"), description="Employer share in %")
    base: ContributionBase = Field(
        default=ContributionBase.CAPPED_BASIC_HOUSING,
        description="Contribution base policy"
    )
    cap: Decimal = Field(
        default_factory=lambda: engine_settings.GOSI_CAP,
        description="Statutory ceiling of the capped basic+housing base"
    )

    @field_validator("employee_rate_pct", "employer_rate_pct", mode="before")
    @classmethod
    def _rates(cls, v, info):
        return percentage(cls, v, info)

    @field_validator("cap", mode="before")
    @classmethod
    def _cap(cls, v, info):
        return non_negative(cls, v, info)


class CompensationComponents(BaseModel):
    """Monthly wage components, all in the same currency."""

    basic: Decimal = Field(default=Decimal("0"), description="Basic monthly wage")
    housing_mode: HousingMode = Field(default=HousingMode.PERCENT, description="percent or fixed")
    housing_percent: Decimal = Field(default=Decimal("25"), description="Housing as % of basic")
    housing_fixed: Decimal = Field(default=Decimal("0"), description="Fixed housing amount")
    transport: Decimal = Field(default=Decimal("0"), description="Transport allowance")
    other_allowances: Decimal = Field(default=Decimal("0"), description="Other monthly allowances")

    @field_validator("basic", "housing_fixed", "transport", "other_allowances", mode="before")
    @classmethod
    def _amounts(cls, v, info):
        return non_negative(cls, v, info)

    @field_validator("housing_percent", mode="before")
    @classmethod
    def _housing_percent(cls, v, info):
        return non_negative(cls, v, info)

    @field_validator("housing_mode", mode="before")
    @classmethod
    def _housing_mode(cls, v):
        return coerce_enum(HousingMode, v, HousingMode.PERCENT)

    def housing_for(self, basic: Decimal) -> Decimal:
        """Housing allowance for a given basic wage."""
        if self.housing_mode == HousingMode.PERCENT:
            return basic * self.housing_percent / Decimal("100")
        return self.housing_fixed

    def gross_for(self, basic: Decimal) -> Decimal:
        """Gross monthly wage for a given basic wage."""
        return basic + self.housing_for(basic) + self.transport + self.other_allowances


class OvertimeInput(BaseModel):
    """Overtime worked in the month."""

    enabled: bool = Field(default=False, description="Include overtime in the result")
    hours: Decimal = Field(default=Decimal("0"), description="Overtime hours in the month")
    multiplier: Decimal = Field(
        default_factory=lambda: engine_settings.OVERTIME_MULTIPLIER,
        description="Premium applied to the hourly gross rate (1.5 = 150%)"
    )

    @field_validator("hours", mode="before")
    @classmethod
    def _hours(cls, v, info):
        return non_negative(cls, v, info)

    @field_validator("multiplier", mode="before")
    @classmethod
    def _multiplier(cls, v, info):
        # 0 means "not set" on the calculator form
        parsed = non_negative(cls, v, info)
        if parsed == 0:
            return engine_settings.OVERTIME_MULTIPLIER
        return parsed


class PayrollInput(CompensationComponents):
    """Input of the salary calculator."""

    mode: PayrollMode = Field(default=PayrollMode.GROSS_TO_NET, description="gross2net or net2gross")

    # Rates
    gosi_profile: GosiProfile | None = Field(
        default=None,
        description="Named GOSI profile, preferred over residency"
    )
    residency: Residency = Field(default=Residency.SAUDI, description="Legacy residency switch")
    employee_rate_pct: Decimal = Field(
        default=Decimal("9.75"),
        description="Employee insurance % (used without profile or with the custom profile)"
    )
    employer_rate_pct: Decimal = Field(
        default=Decimal("11.75"),
        description="Employer insurance % (used without profile or with the custom profile)"
    )
    contribution_base: ContributionBase = Field(
        default=ContributionBase.CAPPED_BASIC_HOUSING,
        description="gosi (capped basic+housing), gross or basic"
    )
    contribution_cap: Decimal | None = Field(
        default=None,
        description="Override of the GOSI ceiling (defaults to GOSI_CAP)"
    )

    # Deductions
    other_deduction_pct: Decimal = Field(default=Decimal("0"), description="Other deductions in % of gross")
    flat_deduction: Decimal = Field(default=Decimal("0"), description="Flat monthly deduction")

    # Rates breakdown
    month_divisor: Decimal = Field(
        default_factory=lambda: engine_settings.DEFAULT_MONTH_DIVISOR,
        description="Days per month for daily rates"
    )
    hours_per_day: Decimal = Field(
        default_factory=lambda: engine_settings.DEFAULT_HOURS_PER_DAY,
        description="Working hours per day for hourly rates"
    )

    # Month to date
    prorate_to_date: bool = Field(default=False, description="Prorate contributions to the current day of month")
    as_of: date | None = Field(default=None, description="Reference date for proration (defaults to today)")

    # Net to gross
    target_net: Decimal | None = Field(
        default=None,
        description="Desired net in net2gross mode (falls back to basic)"
    )
    assumed_basic: Decimal = Field(default=Decimal("0"), description="Starting basic for the net2gross solver")

    # Direct gross
    gross_override: Decimal | None = Field(
        default=None,
        description="Known gross, the basic is back-solved from it"
    )

    overtime: OvertimeInput = Field(default_factory=OvertimeInput, description="Overtime worked")

    @field_validator(
        "flat_deduction", "assumed_basic", "month_divisor", "hours_per_day", mode="before"
    )
    @classmethod
    def _payroll_amounts(cls, v, info):
        return non_negative(cls, v, info)

    @field_validator("employee_rate_pct", "employer_rate_pct", "other_deduction_pct", mode="before")
    @classmethod
    def _percentages(cls, v, info):
        return percentage(cls, v, info)

    @field_validator("target_net", "gross_override", "contribution_cap", mode="before")
    @classmethod
    def _optional_amounts(cls, v):
        return optional_non_negative(v)

    @field_validator("mode", mode="before")
    @classmethod
    def _mode(cls, v):
        return coerce_enum(PayrollMode, v, PayrollMode.GROSS_TO_NET)

    @field_validator("gosi_profile", mode="before")
    @classmethod
    def _profile(cls, v):
        if v is None or v == "":
            return None
        return coerce_enum(GosiProfile, v, None)

    @field_validator("residency", mode="before")
    @classmethod
    def _residency(cls, v):
        return coerce_enum(Residency, v, Residency.SAUDI)

    @field_validator("contribution_base", mode="before")
    @classmethod
    def _base(cls, v):
        return coerce_enum(ContributionBase, v, ContributionBase.CAPPED_BASIC_HOUSING)

    @field_validator("overtime", mode="before")
    @classmethod
    def _overtime(cls, v):
        return OvertimeInput() if v is None else v

    @field_validator("as_of", mode="before")
    @classmethod
    def _as_of(cls, v):
        return to_date(v)


class MonthlyFigures(BaseModel):
    """Monthly amounts."""

    gross: Decimal = Field(..., description="Gross monthly wage")
    net: Decimal = Field(..., description="Net monthly wage, floored at zero")
    insurance_employee: Decimal = Field(..., description="Employee insurance contribution")
    insurance_employer: Decimal = Field(..., description="Employer insurance contribution")
    other_deduction: Decimal = Field(..., description="Other deductions (% of gross)")
    flat_deduction: Decimal = Field(..., description="Flat deduction")
    overtime: Decimal = Field(default=Decimal("0"), description="Overtime pay")
    gross_with_overtime: Decimal = Field(..., description="Gross including overtime")
    net_with_overtime: Decimal = Field(..., description="Net including overtime (overtime is not insured)")


class PeriodFigures(BaseModel):
    """Gross and net for a period other than the month."""

    gross: Decimal
    net: Decimal


class HourlyFigures(PeriodFigures):
    """Hourly gross and net, plus the overtime rate."""

    overtime_rate: Decimal = Field(default=Decimal("0"), description="Hourly overtime rate")


class ToDateInsurance(BaseModel):
    """Contributions prorated to the reference day of the month."""

    insurance_employee: Decimal
    insurance_employer: Decimal
    factor: Decimal = Field(..., description="day / days in month, 1 without proration")


class InsuranceAllocation(BaseModel):
    """Employee insurance spread across the wage components (gross base only)."""

    basic: Decimal = Decimal("0")
    housing: Decimal = Decimal("0")
    transport: Decimal = Decimal("0")
    other: Decimal = Decimal("0")

    @property
    def total(self) -> Decimal:
        return self.basic + self.housing + self.transport + self.other


class SolverReport(BaseModel):
    """Outcome of the net to gross fixed point iteration."""

    target_net: Decimal = Field(..., description="Net the solver aimed for")
    iterations: int = Field(..., description="Rounds actually run")
    converged: bool = Field(..., description="Residual fell under the tolerance")
    residual: Decimal = Field(..., description="Last target - computed net")


class PayrollResult(BaseModel):
    """Result of the salary calculator."""

    mode: PayrollMode
    monthly: MonthlyFigures
    yearly: PeriodFigures
    daily: PeriodFigures
    hourly: HourlyFigures
    to_date: ToDateInsurance
    allocation: InsuranceAllocation = Field(default_factory=InsuranceAllocation)

    # Calculation details
    resolved_basic: Decimal = Field(..., description="Basic wage the contributions were computed on")
    housing: Decimal = Field(..., description="Housing allowance for the resolved basic")
    contribution_base: Decimal = Field(..., description="Wage base the rates were applied to")
    profile: ContributionProfile = Field(..., description="Rates and base policy applied")
    solver: SolverReport | None = Field(default=None, description="Set in net2gross mode")
