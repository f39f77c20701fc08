"""Salary calculator: gross/net conversion under the GOSI contribution model."""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import NamedTuple

from calcuhub.config import engine_settings
from calcuhub.logging_config import get_logger
from calcuhub.models.payroll import (
    CompensationComponents,
    ContributionBase,
    ContributionProfile,
    GosiProfile,
    HourlyFigures,
    HousingMode,
    InsuranceAllocation,
    MonthlyFigures,
    PayrollInput,
    PayrollMode,
    PayrollResult,
    PeriodFigures,
    Residency,
    SolverReport,
    ToDateInsurance,
)
from calcuhub.services.calendar import month_fraction

logger = get_logger("services.payroll")

# Net to gross fixed point iteration
SOLVER_MAX_ITERATIONS = 30
SOLVER_DAMPING = Decimal("0.6")
SOLVER_TOLERANCE = Decimal("0.01")

MONTHS_PER_YEAR = 12
ZERO = Decimal("0")
ONE = Decimal("1")
HUNDRED = Decimal("100")
CENT = Decimal("0.01")

# (employee %, employer %, label)
GOSI_PROFILES: dict[GosiProfile, tuple[Decimal, Decimal, str]] = {
    GosiProfile.SAUDI_STANDARD: (Decimal("10"), Decimal("12"), "Saudi (Standard 10%)"),
    GosiProfile.SAUDI_LEGACY: (Decimal("9.75"), Decimal("11.75"), "Saudi (Legacy 9.75%)"),
    GosiProfile.NON_SAUDI: (Decimal("0"), Decimal("2"), "Non-Saudi"),
    GosiProfile.CUSTOM: (Decimal("0"), Decimal("0"), "Custom"),
}


class OvertimePay(NamedTuple):
    amount: Decimal
    rate: Decimal


def _round(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def get_gosi_rates(
    profile: GosiProfile,
    custom_employee_pct: Decimal | None = None,
    custom_employer_pct: Decimal | None = None,
) -> tuple[Decimal, Decimal]:
    """Employee and employer rates (%) of a profile. Custom uses the given rates."""
    if profile == GosiProfile.CUSTOM:
        return (custom_employee_pct or ZERO, custom_employer_pct or ZERO)
    employee, employer, _ = GOSI_PROFILES[profile]
    return employee, employer


def profile_from_residency(residency: Residency) -> GosiProfile:
    """Profile implied by the legacy residency switch."""
    if residency == Residency.EXPAT:
        return GosiProfile.NON_SAUDI
    return GosiProfile.SAUDI_LEGACY


def resolve_contribution_profile(data: PayrollInput) -> ContributionProfile:
    """
    Rates and base policy applied to a payroll input.

    - A named profile wins, custom takes the rates given on the input
    - Without profile, saudi residency keeps the rates of the input and
      expat residency switches to the non-saudi profile
    """
    if data.gosi_profile is not None:
        employee, employer = get_gosi_rates(
            data.gosi_profile, data.employee_rate_pct, data.employer_rate_pct
        )
    elif data.residency == Residency.EXPAT:
        employee, employer = get_gosi_rates(GosiProfile.NON_SAUDI)
    else:
        employee, employer = data.employee_rate_pct, data.employer_rate_pct

    cap = data.contribution_cap if data.contribution_cap is not None else engine_settings.GOSI_CAP

    return ContributionProfile(
        employee_rate_pct=employee,
        employer_rate_pct=employer,
        base=data.contribution_base,
        cap=cap,
    )


def contributory_wage(basic: Decimal, housing: Decimal, cap: Decimal | None = None) -> Decimal:
    """GOSI contributory wage: basic + housing, capped."""
    if cap is None:
        cap = engine_settings.GOSI_CAP
    return min(basic + housing, cap)


def _contribution_base(
    profile: ContributionProfile,
    basic: Decimal,
    housing: Decimal,
    gross: Decimal,
) -> Decimal:
    if profile.base == ContributionBase.CAPPED_BASIC_HOUSING:
        return contributory_wage(basic, housing, profile.cap)
    if profile.base == ContributionBase.BASIC:
        return basic
    return gross


def back_solve_basic(components: CompensationComponents, gross: Decimal) -> Decimal:
    """
    Basic wage implied by a known gross.

    - Percent housing: (gross - transport - other) / (1 + housing%)
    - Fixed housing: gross - housing - transport - other
    """
    rest = gross - components.transport - components.other_allowances
    if components.housing_mode == HousingMode.PERCENT:
        inferred = rest / (ONE + components.housing_percent / HUNDRED)
    else:
        inferred = rest - components.housing_fixed
    return max(ZERO, inferred)


def solve_net_to_gross(
    data: PayrollInput,
    profile: ContributionProfile,
    target_net: Decimal,
) -> tuple[Decimal, Decimal, SolverReport]:
    """
    Find the gross that yields target_net.

    Damped fixed point on the basic wage: each round derives housing, gross,
    contribution and net from the guessed basic, then moves the guess by
    SOLVER_DAMPING x (target - net). Stops when the residual is under
    SOLVER_TOLERANCE or after SOLVER_MAX_ITERATIONS rounds, in which case the
    last guess is returned.

    Returns (gross, basic, report).
    """
    guess_basic = max(data.assumed_basic, ONE)
    guess_gross = ZERO
    residual = target_net
    iterations = 0

    for _ in range(SOLVER_MAX_ITERATIONS):
        iterations += 1
        guess_housing = data.housing_for(guess_basic)
        guess_gross = data.gross_for(guess_basic)
        base = _contribution_base(profile, guess_basic, guess_housing, guess_gross)
        employee_insurance = base * profile.employee_rate_pct / HUNDRED
        other_deduction = guess_gross * data.other_deduction_pct / HUNDRED
        net = guess_gross - employee_insurance - other_deduction - data.flat_deduction

        residual = target_net - net
        guess_basic += residual * SOLVER_DAMPING
        if abs(residual) < SOLVER_TOLERANCE:
            break

    converged = abs(residual) < SOLVER_TOLERANCE
    if not converged:
        logger.warning("net_to_gross_not_converged", extra={
            "target_net": target_net,
            "iterations": iterations,
            "residual": residual,
        })

    report = SolverReport(
        target_net=_round(target_net),
        iterations=iterations,
        converged=converged,
        residual=residual.quantize(Decimal("0.0001"), rounding=ROUND_HALF_UP),
    )
    return max(ZERO, guess_gross), max(ZERO, guess_basic), report


def calculate_hourly_rate(
    monthly_salary: Decimal,
    working_days: Decimal | None = None,
    hours_per_day: Decimal | None = None,
) -> Decimal:
    """Hourly rate of a monthly salary (divisors floored at 1)."""
    if working_days is None:
        working_days = engine_settings.DEFAULT_MONTH_DIVISOR
    if hours_per_day is None:
        hours_per_day = engine_settings.DEFAULT_HOURS_PER_DAY
    return monthly_salary / max(ONE, working_days) / max(ONE, hours_per_day)


def calculate_overtime(
    hourly_rate: Decimal,
    hours: Decimal,
    multiplier: Decimal | None = None,
) -> OvertimePay:
    """Overtime pay: hourly rate x multiplier x hours."""
    if multiplier is None:
        multiplier = engine_settings.OVERTIME_MULTIPLIER
    rate = hourly_rate * multiplier
    return OvertimePay(amount=rate * max(ZERO, hours), rate=rate)


def _allocate_insurance(
    data: PayrollInput,
    basic: Decimal,
    housing: Decimal,
    employee_insurance: Decimal,
) -> InsuranceAllocation:
    """
    Spread the employee insurance across the wage components, pro rata.

    Each share is rounded and the rounding remainder goes to the largest
    component so the shares add up to the rounded insurance.
    """
    parts = {
        "basic": basic,
        "housing": housing,
        "transport": data.transport,
        "other": data.other_allowances,
    }
    total = sum(parts.values(), ZERO)
    if total <= 0:
        return InsuranceAllocation()

    shares = {name: _round(employee_insurance * value / total) for name, value in parts.items()}
    largest = max(parts, key=lambda name: parts[name])
    shares[largest] += _round(employee_insurance) - sum(shares.values(), ZERO)
    return InsuranceAllocation(**shares)


def compute_payroll(data: PayrollInput, today: date | None = None) -> PayrollResult:
    """
    Run the salary calculator.

    Gross is resolved first:
    - gross_override > 0: gross is given and the basic is back-solved from it
    - net2gross: fixed point iteration on the basic towards the target net
    - gross2net: basic + housing + transport + other allowances

    Then contributions, deductions, net, daily/hourly rates, overtime,
    month to date contributions and the insurance allocation are derived.

    `today` (or `data.as_of`) is the reference date of the month to date
    proration. The system date is only read when proration is requested and
    neither is given.
    """
    profile = resolve_contribution_profile(data)
    solver: SolverReport | None = None
    basic = data.basic

    if data.gross_override is not None and data.gross_override > 0:
        gross = data.gross_override
        basic = back_solve_basic(data, gross)
    elif data.mode == PayrollMode.NET_TO_GROSS:
        target_net = data.target_net if data.target_net is not None else data.basic
        gross, basic, solver = solve_net_to_gross(data, profile, target_net)
    else:
        gross = data.gross_for(basic)

    housing = data.housing_for(basic)
    base = _contribution_base(profile, basic, housing, gross)

    insurance_employee = base * profile.employee_rate_pct / HUNDRED
    insurance_employer = base * profile.employer_rate_pct / HUNDRED
    other_deduction = gross * data.other_deduction_pct / HUNDRED
    net = max(ZERO, gross - insurance_employee - other_deduction - data.flat_deduction)

    # Daily and hourly rates
    divisor = max(ONE, data.month_divisor)
    hours_per_day = max(ONE, data.hours_per_day)
    daily_gross = gross / divisor
    daily_net = net / divisor
    hourly_gross = daily_gross / hours_per_day
    hourly_net = daily_net / hours_per_day

    # Overtime (not subject to insurance)
    overtime = OvertimePay(amount=ZERO, rate=ZERO)
    if data.overtime.enabled and data.overtime.hours > 0:
        overtime = calculate_overtime(hourly_gross, data.overtime.hours, data.overtime.multiplier)

    # Month to date
    factor = ONE
    if data.prorate_to_date:
        reference = data.as_of or today or date.today()
        factor = month_fraction(reference)

    allocation = InsuranceAllocation()
    if profile.base == ContributionBase.GROSS and gross > 0 and insurance_employee > 0:
        allocation = _allocate_insurance(data, basic, housing, insurance_employee)

    result = PayrollResult(
        mode=data.mode,
        monthly=MonthlyFigures(
            gross=_round(gross),
            net=_round(net),
            insurance_employee=_round(insurance_employee),
            insurance_employer=_round(insurance_employer),
            other_deduction=_round(other_deduction),
            flat_deduction=_round(data.flat_deduction),
            overtime=_round(overtime.amount),
            gross_with_overtime=_round(gross + overtime.amount),
            net_with_overtime=_round(net + overtime.amount),
        ),
        yearly=PeriodFigures(
            gross=_round(gross * MONTHS_PER_YEAR),
            net=_round(net * MONTHS_PER_YEAR),
        ),
        daily=PeriodFigures(gross=_round(daily_gross), net=_round(daily_net)),
        hourly=HourlyFigures(
            gross=_round(hourly_gross),
            net=_round(hourly_net),
            overtime_rate=_round(overtime.rate),
        ),
        to_date=ToDateInsurance(
            insurance_employee=_round(insurance_employee * factor),
            insurance_employer=_round(insurance_employer * factor),
            factor=factor.quantize(Decimal("0.0001"), rounding=ROUND_HALF_UP),
        ),
        allocation=allocation,
        resolved_basic=_round(basic),
        housing=_round(housing),
        contribution_base=_round(base),
        profile=profile,
        solver=solver,
    )

    logger.debug("payroll_computed", extra={
        "mode": data.mode.value,
        "gross": result.monthly.gross,
        "net": result.monthly.net,
        "insurance_employee": result.monthly.insurance_employee,
    })

    return result
