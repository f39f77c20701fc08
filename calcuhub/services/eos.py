"""
End of service (EOS) settlement calculator.

Default rules follow the Saudi Labor Law:

- Article 84 (employer termination, end of contract):
  full entitlement regardless of tenure.
- Article 85 (employee resignation):
  less than 2 years: nothing, 2 to 5 years: 1/3, 5 to 10 years: 2/3,
  10 years and more: full entitlement.
- Accrual: half a month of wage per year for the first five years, a full
  month per year beyond, partial years pro rata.

The accrual schedule and the separation factor curves are held by a
SeparationRules object so another jurisdiction can be registered without
touching the accrual math.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from types import MappingProxyType
from typing import NamedTuple, Protocol

from calcuhub.config import engine_settings
from calcuhub.exceptions import DuplicateJurisdictionError, UnknownJurisdictionError
from calcuhub.logging_config import get_logger
from calcuhub.models.eos import (
    EosBaseType,
    EosBreakdown,
    EosInput,
    EosResult,
    LaborArticle,
    SeparationType,
)
from calcuhub.services.calendar import tenure_breakdown

logger = get_logger("services.eos")

ZERO = Decimal("0")
ONE = Decimal("1")
CENT = Decimal("0.01")
FOUR_PLACES = Decimal("0.0001")

# Accrual (months of wage per year of service)
FIRST_TIER_YEARS = Decimal("5")
FIRST_TIER_MONTHS_PER_YEAR = Decimal("0.5")
SECOND_TIER_MONTHS_PER_YEAR = Decimal("1")

# Article 85 thresholds (years of service)
RESIGNATION_MIN_YEARS = Decimal("2")
RESIGNATION_MIDDLE_YEARS = Decimal("5")
RESIGNATION_FULL_YEARS = Decimal("10")
ONE_THIRD = ONE / Decimal("3")
TWO_THIRDS = Decimal("2") / Decimal("3")

PROBATION_YEARS = Decimal("1")


class SeparationFactor(NamedTuple):
    factor: Decimal
    label: str


class FactorCurve(Protocol):
    """Separation factor as a function of the fractional tenure."""

    def __call__(self, service_years: Decimal) -> SeparationFactor: ...


@dataclass(frozen=True)
class AccrualSchedule:
    """Two tier accrual of the raw entitlement, in months of wage."""

    first_tier_years: Decimal = FIRST_TIER_YEARS
    first_tier_rate: Decimal = FIRST_TIER_MONTHS_PER_YEAR
    second_tier_rate: Decimal = SECOND_TIER_MONTHS_PER_YEAR

    def accrue(self, service_years: Decimal) -> tuple[Decimal, Decimal]:
        """Months accrued in the first tier and beyond it."""
        years = max(ZERO, service_years)
        first = min(self.first_tier_years, years) * self.first_tier_rate
        second = max(ZERO, years - self.first_tier_years) * self.second_tier_rate
        return first, second


@dataclass(frozen=True)
class FullEntitlement:
    """Factor 1 whatever the tenure."""

    label: str = "100%"

    def __call__(self, service_years: Decimal) -> SeparationFactor:
        return SeparationFactor(ONE, self.label)


@dataclass(frozen=True)
class FactorTier:
    min_years: Decimal
    factor: Decimal
    label: str


@dataclass(frozen=True)
class TieredFactorCurve:
    """
    Step function of the tenure.

    The highest tier whose min_years is reached applies, below the first tier
    the factor is zero.
    """

    tiers: tuple[FactorTier, ...]
    below_label: str = "0%"

    def __call__(self, service_years: Decimal) -> SeparationFactor:
        for tier in sorted(self.tiers, key=lambda t: t.min_years, reverse=True):
            if service_years >= tier.min_years:
                return SeparationFactor(tier.factor, tier.label)
        return SeparationFactor(ZERO, self.below_label)


def _probation_end(service_years: Decimal) -> SeparationFactor | None:
    """No award when the contract ends during the first year."""
    if service_years < PROBATION_YEARS:
        return SeparationFactor(ZERO, "0% (probation)")
    return None


@dataclass(frozen=True)
class SeparationRules:
    """Accrual schedule and separation factors of one jurisdiction."""

    name: str
    accrual: AccrualSchedule
    article_mapping: Mapping[SeparationType, LaborArticle]
    curves: Mapping[LaborArticle, FactorCurve]
    special_cases: Mapping[SeparationType, Callable[[Decimal], SeparationFactor | None]] = field(
        default_factory=dict
    )
    default_article: LaborArticle = LaborArticle.ARTICLE_84

    def article_for(self, separation: SeparationType) -> LaborArticle:
        return self.article_mapping.get(separation, self.default_article)

    def factor_for(
        self,
        separation: SeparationType,
        service_years: Decimal,
    ) -> tuple[LaborArticle, SeparationFactor]:
        """Governing article and factor for a separation after service_years."""
        article = self.article_for(separation)
        special = self.special_cases.get(separation)
        if special is not None:
            outcome = special(service_years)
            if outcome is not None:
                return article, outcome
        return article, self.curves[article](service_years)


SAUDI_ARTICLE_MAPPING: Mapping[SeparationType, LaborArticle] = MappingProxyType({
    SeparationType.ARTICLE_84: LaborArticle.ARTICLE_84,
    SeparationType.ARTICLE_85: LaborArticle.ARTICLE_85,
    SeparationType.EMPLOYER_TERMINATION: LaborArticle.ARTICLE_84,
    SeparationType.EMPLOYEE_RESIGNATION: LaborArticle.ARTICLE_85,
    SeparationType.MUTUAL_AGREEMENT: LaborArticle.ARTICLE_84,
    SeparationType.RETIREMENT: LaborArticle.ARTICLE_84,
    SeparationType.DEATH: LaborArticle.ARTICLE_84,
    SeparationType.DISABILITY: LaborArticle.ARTICLE_84,
    SeparationType.FORCE_MAJEURE: LaborArticle.ARTICLE_84,
    SeparationType.PROBATION_END: LaborArticle.ARTICLE_85,
    SeparationType.CONTRACT_END: LaborArticle.ARTICLE_84,
    SeparationType.CONSTRUCTIVE_DISMISSAL: LaborArticle.ARTICLE_84,
    SeparationType.REDUNDANCY: LaborArticle.ARTICLE_84,
    SeparationType.TRANSFER_OF_BUSINESS: LaborArticle.ARTICLE_84,
})

SAUDI_RESIGNATION_CURVE = TieredFactorCurve(
    tiers=(
        FactorTier(RESIGNATION_MIN_YEARS, ONE_THIRD, "1/3 (2-5 years)"),
        FactorTier(RESIGNATION_MIDDLE_YEARS, TWO_THIRDS, "2/3 (5-10 years)"),
        FactorTier(RESIGNATION_FULL_YEARS, ONE, "100% (10+ years)"),
    ),
    below_label="0% (< 2 years)",
)

SAUDI_LABOR_LAW = SeparationRules(
    name="saudi_labor_law",
    accrual=AccrualSchedule(),
    article_mapping=SAUDI_ARTICLE_MAPPING,
    curves=MappingProxyType({
        LaborArticle.ARTICLE_84: FullEntitlement(),
        LaborArticle.ARTICLE_85: SAUDI_RESIGNATION_CURVE,
    }),
    special_cases=MappingProxyType({
        SeparationType.PROBATION_END: _probation_end,
    }),
)

_RULES: dict[str, SeparationRules] = {SAUDI_LABOR_LAW.name: SAUDI_LABOR_LAW}


def register_separation_rules(rules: SeparationRules, replace: bool = False) -> None:
    """Make a jurisdiction available by name."""
    if rules.name in _RULES and not replace:
        raise DuplicateJurisdictionError(rules.name)
    _RULES[rules.name] = rules


def get_separation_rules(name: str | None = None) -> SeparationRules:
    """Rules registered under name (DEFAULT_JURISDICTION when omitted)."""
    key = name or engine_settings.DEFAULT_JURISDICTION
    try:
        return _RULES[key]
    except KeyError:
        raise UnknownJurisdictionError(key, sorted(_RULES)) from None


def available_jurisdictions() -> list[str]:
    return sorted(_RULES)


def _round(value: Decimal, places: Decimal = CENT) -> Decimal:
    return value.quantize(places, rounding=ROUND_HALF_UP)


def _base_monthly(data: EosInput) -> Decimal:
    """Wage the award is computed on."""
    if data.base_type == EosBaseType.BASIC:
        return data.basic
    return data.basic + data.housing + data.other_allowances


def compute_eos_settlement(data: EosInput, rules: SeparationRules | None = None) -> EosResult:
    """
    Compute the end of service settlement.

    1. Tenure from the employment dates (an inverted range gives zero tenure)
    2. Base monthly wage: basic, or basic + housing + regular allowances
    3. Daily wage = base monthly / divisor (floored at 1)
    4. Raw entitlement months from the accrual schedule, raw amount = months x wage
    5. Separation factor from the jurisdiction rules
    6. Total = raw amount x factor + leave encashment + extras - deductions
    """
    if rules is None:
        rules = get_separation_rules()

    tenure = tenure_breakdown(data.start, data.end)
    service_years = tenure.service_years

    base_monthly = _base_monthly(data)
    daily_wage = base_monthly / max(ONE, data.month_divisor)

    first_months, second_months = rules.accrual.accrue(service_years)
    raw_months = first_months + second_months
    raw_amount = raw_months * base_monthly

    article, separation_factor = rules.factor_for(data.separation, service_years)
    factor = separation_factor.factor

    entitlement_months = raw_months * factor
    final_amount = raw_amount * factor
    leave_encashment = data.leave_days * daily_wage
    total = final_amount + leave_encashment + data.extras - data.deductions

    result = EosResult(
        tenure=tenure,
        service_years=_round(service_years, FOUR_PLACES),
        base_monthly=_round(base_monthly),
        daily_wage=_round(daily_wage),
        raw_months=_round(raw_months, FOUR_PLACES),
        raw_amount=_round(raw_amount),
        separation=data.separation,
        article=article,
        factor=_round(factor, FOUR_PLACES),
        entitlement_months=_round(entitlement_months, FOUR_PLACES),
        final_amount=_round(final_amount),
        leave_encashment=_round(leave_encashment),
        extras=_round(data.extras),
        deductions=_round(data.deductions),
        total=_round(total),
        breakdown=EosBreakdown(
            first_tier_months=_round(first_months, FOUR_PLACES),
            first_tier_amount=_round(first_months * base_monthly),
            second_tier_months=_round(second_months, FOUR_PLACES),
            second_tier_amount=_round(second_months * base_monthly),
            factor_label=separation_factor.label,
        ),
    )

    logger.debug("eos_computed", extra={
        "jurisdiction": rules.name,
        "separation": data.separation.value,
        "article": article.value,
        "service_years": result.service_years,
        "total": result.total,
    })

    return result
