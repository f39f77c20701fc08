"""Models for the end of service (EOS) settlement calculator."""

from datetime import date
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field, field_validator

from calcuhub.config import engine_settings
from calcuhub.models.calendar import TenureBreakdown
from calcuhub.models.coercion import coerce_enum, non_negative, to_date
from calcuhub.models.payroll import HousingMode


class SeparationType(str, Enum):
    """How the employment ended."""
    ARTICLE_84 = "article84"  # Employer termination / end of contract, full EOS
    ARTICLE_85 = "article85"  # Employee resignation, prorated by tenure
    EMPLOYER_TERMINATION = "employerTermination"
    EMPLOYEE_RESIGNATION = "employeeResignation"
    MUTUAL_AGREEMENT = "mutualAgreement"
    RETIREMENT = "retirement"
    DEATH = "death"
    DISABILITY = "disability"
    FORCE_MAJEURE = "forceMajeure"
    PROBATION_END = "probationEnd"
    CONTRACT_END = "contractEnd"
    CONSTRUCTIVE_DISMISSAL = "constructiveDismissal"
    REDUNDANCY = "redundancy"
    TRANSFER_OF_BUSINESS = "transferOfBusiness"


# Values sent by older calculator forms
SEPARATION_ALIASES: dict[str, SeparationType] = {
    "termination": SeparationType.EMPLOYER_TERMINATION,
    "resignation": SeparationType.EMPLOYEE_RESIGNATION,
}


class LaborArticle(str, Enum):
    """Article of the labor law governing the entitlement."""
    ARTICLE_84 = "article84"
    ARTICLE_85 = "article85"


class EosBaseType(str, Enum):
    """Wage the entitlement is computed on."""
    BASIC = "basic"
    BASIC_PLUS_HOUSING = "basic_plus_housing"


class EosInput(BaseModel):
    """Input of the end of service calculator."""

    # Dates
    start: date = Field(..., description="First day of employment")
    end: date = Field(..., description="Last day of employment")

    # Wage
    basic: Decimal = Field(default=Decimal("0"), description="Last basic monthly wage")
    housing_mode: HousingMode = Field(default=HousingMode.PERCENT, description="percent or fixed")
    housing_percent: Decimal = Field(default=Decimal("25"), description="Housing as % of basic")
    housing_fixed: Decimal = Field(default=Decimal("0"), description="Fixed housing amount")
    other_allowances: Decimal = Field(
        default=Decimal("0"),
        description="Regular allowances added to the wage with basic_plus_housing"
    )
    base_type: EosBaseType = Field(
        default=EosBaseType.BASIC_PLUS_HOUSING,
        description="basic, or basic + housing + regular allowances"
    )
    month_divisor: Decimal = Field(
        default_factory=lambda: engine_settings.DEFAULT_MONTH_DIVISOR,
        description="Days per month for the daily wage"
    )

    # Separation
    separation: SeparationType = Field(
        default=SeparationType.EMPLOYER_TERMINATION,
        description="How the employment ended"
    )

    # Adjustments
    leave_days: Decimal = Field(default=Decimal("0"), description="Unused leave days to encash")
    extras: Decimal = Field(default=Decimal("0"), description="Extra credits owed to the employee")
    deductions: Decimal = Field(default=Decimal("0"), description="Amounts owed by the employee")

    @field_validator("start", "end", mode="before")
    @classmethod
    def _midnight(cls, v):
        return to_date(v)

    @field_validator(
        "basic",
        "housing_percent",
        "housing_fixed",
        "other_allowances",
        "month_divisor",
        "leave_days",
        "extras",
        "deductions",
        mode="before",
    )
    @classmethod
    def _amounts(cls, v, info):
        return non_negative(cls, v, info)

    @field_validator("housing_mode", mode="before")
    @classmethod
    def _housing_mode(cls, v):
        return coerce_enum(HousingMode, v, HousingMode.PERCENT)

    @field_validator("base_type", mode="before")
    @classmethod
    def _base_type(cls, v):
        return coerce_enum(EosBaseType, v, EosBaseType.BASIC_PLUS_HOUSING)

    @field_validator("separation", mode="before")
    @classmethod
    def _separation(cls, v):
        if isinstance(v, str) and v in SEPARATION_ALIASES:
            return SEPARATION_ALIASES[v]
        return coerce_enum(SeparationType, v, SeparationType.EMPLOYER_TERMINATION)

    @property
    def housing(self) -> Decimal:
        if self.housing_mode == HousingMode.PERCENT:
            return self.basic * self.housing_percent / Decimal("100")
        return self.housing_fixed


class EosBreakdown(BaseModel):
    """Split of the raw entitlement between the two accrual tiers."""

    first_tier_months: Decimal = Field(..., description="Months accrued in the first five years")
    first_tier_amount: Decimal = Field(..., description="Amount accrued in the first five years")
    second_tier_months: Decimal = Field(..., description="Months accrued beyond five years")
    second_tier_amount: Decimal = Field(..., description="Amount accrued beyond five years")
    factor_label: str = Field(..., description="Human readable separation factor")


class EosResult(BaseModel):
    """Result of the end of service calculator."""

    tenure: TenureBreakdown = Field(..., description="Service duration")
    service_years: Decimal = Field(..., description="Fractional tenure used for accrual")

    # Wage
    base_monthly: Decimal = Field(..., description="Monthly wage the entitlement is computed on")
    daily_wage: Decimal = Field(..., description="base_monthly / divisor")

    # Entitlement
    raw_months: Decimal = Field(..., description="Uncapped entitlement in months of wage")
    raw_amount: Decimal = Field(..., description="raw_months x base_monthly")
    separation: SeparationType = Field(..., description="Separation type requested")
    article: LaborArticle = Field(..., description="Article governing the entitlement")
    factor: Decimal = Field(..., description="Separation factor applied to the raw amount")
    entitlement_months: Decimal = Field(..., description="raw_months x factor")
    final_amount: Decimal = Field(..., description="Payable end of service award")

    # Adjustments
    leave_encashment: Decimal = Field(..., description="leave_days x daily_wage")
    extras: Decimal = Field(default=Decimal("0"), description="Extra credits")
    deductions: Decimal = Field(default=Decimal("0"), description="Debits")
    total: Decimal = Field(..., description="final + leave + extras - deductions")

    breakdown: EosBreakdown
