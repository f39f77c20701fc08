"""
Tests for the salary calculator.

Tests cover:
- Gross to net under the GOSI capped basic + housing base
- Contribution profiles, residency and base policies
- The net to gross solver (constants, convergence, non convergence)
- Gross override back-solving
- Daily/hourly rates, overtime and month to date proration
- Insurance allocation across wage components
- Input coercion
"""

import logging
from datetime import date
from decimal import Decimal

import pytest

from calcuhub.models import ContributionBase, GosiProfile, PayrollInput, Residency
from calcuhub.services.payroll import (
    SOLVER_DAMPING,
    SOLVER_MAX_ITERATIONS,
    SOLVER_TOLERANCE,
    back_solve_basic,
    calculate_hourly_rate,
    calculate_overtime,
    compute_payroll,
    contributory_wage,
    get_gosi_rates,
    profile_from_residency,
)


class TestGrossToNet:
    """Tests for the default gross2net mode."""

    def test_standard_saudi_salary(self, payroll_input):
        """Basic 10,000 with 25% housing under the legacy 9.75% rate."""
        result = compute_payroll(payroll_input(basic=Decimal("10000")))

        assert result.housing == Decimal("2500.00")
        assert result.monthly.gross == Decimal("12500.00")
        assert result.monthly.insurance_employee == Decimal("1218.75")
        assert result.monthly.insurance_employer == Decimal("1468.75")
        assert result.monthly.net == Decimal("11281.25")
        assert result.yearly.gross == Decimal("150000.00")
        assert result.yearly.net == Decimal("135375.00")
        assert result.solver is None

    def test_contribution_base_is_capped(self, payroll_input):
        """Basic + housing above 45,000 contributes on 45,000 only."""
        result = compute_payroll(payroll_input(basic=Decimal("50000")))

        assert result.contribution_base == Decimal("45000.00")
        assert result.monthly.insurance_employee == Decimal("4387.50")
        assert result.monthly.insurance_employer == Decimal("5287.50")

    def test_transport_not_contributory(self, payroll_input):
        """Transport and other allowances enter gross, not the GOSI base."""
        result = compute_payroll(payroll_input(
            basic=Decimal("10000"),
            transport=Decimal("500"),
            other_allowances=Decimal("1000"),
        ))

        assert result.monthly.gross == Decimal("14000.00")
        assert result.contribution_base == Decimal("12500.00")
        assert result.monthly.insurance_employee == Decimal("1218.75")

    def test_fixed_housing(self, payroll_input):
        result = compute_payroll(payroll_input(
            basic=Decimal("8000"),
            housing_mode="fixed",
            housing_fixed=Decimal("2000"),
            transport=Decimal("500"),
            other_allowances=Decimal("300"),
        ))

        assert result.monthly.gross == Decimal("10800.00")
        assert result.monthly.insurance_employee == Decimal("975.00")

    def test_other_and_flat_deductions(self, payroll_input):
        result = compute_payroll(payroll_input(
            basic=Decimal("10000"),
            other_deduction_pct=Decimal("2"),
            flat_deduction=Decimal("500"),
        ))

        assert result.monthly.other_deduction == Decimal("250.00")
        assert result.monthly.flat_deduction == Decimal("500.00")
        assert result.monthly.net == Decimal("10531.25")

    def test_net_never_negative(self, payroll_input):
        result = compute_payroll(payroll_input(
            basic=Decimal("3000"),
            flat_deduction=Decimal("100000"),
        ))

        assert result.monthly.net == Decimal("0.00")

    def test_zero_salary(self, payroll_input):
        result = compute_payroll(payroll_input(basic=Decimal("0")))

        assert result.monthly.gross == Decimal("0.00")
        assert result.monthly.net == Decimal("0.00")
        assert result.allocation.total == Decimal("0")

    def test_idempotent(self, payroll_input):
        """The same input gives the same output."""
        data = payroll_input(basic=Decimal("7321.45"), transport=Decimal("612.5"))

        assert compute_payroll(data) == compute_payroll(data)

    def test_monotonic_in_basic(self, payroll_input):
        """Gross and net never decrease when the basic grows, across the cap."""
        previous = None
        for basic in range(0, 60001, 2500):
            result = compute_payroll(payroll_input(
                basic=Decimal(basic),
                transport=Decimal("400"),
                other_deduction_pct=Decimal("1.5"),
            ))
            if previous is not None:
                assert result.monthly.gross >= previous.monthly.gross
                assert result.monthly.net >= previous.monthly.net
            previous = result


class TestContributionProfiles:
    """Tests for profiles, residency and base policies."""

    def test_named_profile_rates(self):
        assert get_gosi_rates(GosiProfile.SAUDI_STANDARD) == (Decimal("10"), Decimal("12"))
        assert get_gosi_rates(GosiProfile.SAUDI_LEGACY) == (Decimal("9.75"), Decimal("11.75"))
        assert get_gosi_rates(GosiProfile.NON_SAUDI) == (Decimal("0"), Decimal("2"))

    def test_custom_profile_uses_given_rates(self):
        assert get_gosi_rates(GosiProfile.CUSTOM, Decimal("5"), Decimal("8")) == (
            Decimal("5"),
            Decimal("8"),
        )
        assert get_gosi_rates(GosiProfile.CUSTOM) == (Decimal("0"), Decimal("0"))

    def test_standard_profile(self, payroll_input):
        result = compute_payroll(payroll_input(
            basic=Decimal("10000"),
            gosi_profile="saudi-standard",
        ))

        assert result.monthly.insurance_employee == Decimal("1250.00")
        assert result.monthly.insurance_employer == Decimal("1500.00")

    def test_profile_names_accept_underscores(self, payroll_input):
        data = payroll_input(gosi_profile="saudi_standard")

        assert data.gosi_profile == GosiProfile.SAUDI_STANDARD

    def test_profile_wins_over_input_rates(self, payroll_input):
        result = compute_payroll(payroll_input(
            basic=Decimal("10000"),
            gosi_profile="non-saudi",
            employee_rate_pct=Decimal("9.75"),
        ))

        assert result.profile.employee_rate_pct == Decimal("0")
        assert result.monthly.insurance_employer == Decimal("250.00")

    def test_custom_profile(self, payroll_input):
        result = compute_payroll(payroll_input(
            basic=Decimal("10000"),
            gosi_profile="custom",
            employee_rate_pct=Decimal("5"),
            employer_rate_pct=Decimal("8"),
        ))

        assert result.monthly.insurance_employee == Decimal("625.00")
        assert result.monthly.insurance_employer == Decimal("1000.00")

    def test_expat_residency_without_profile(self, payroll_input):
        """Expats pay no employee share, net equals gross."""
        result = compute_payroll(payroll_input(
            basic=Decimal("10000"),
            transport=Decimal("500"),
            residency="expat",
        ))

        assert result.monthly.insurance_employee == Decimal("0.00")
        assert result.monthly.net == result.monthly.gross == Decimal("13000.00")
        assert result.monthly.insurance_employer == Decimal("250.00")

    def test_profile_from_residency(self):
        assert profile_from_residency(Residency.EXPAT) == GosiProfile.NON_SAUDI
        assert profile_from_residency(Residency.SAUDI) == GosiProfile.SAUDI_LEGACY

    def test_basic_only_base(self, payroll_input):
        result = compute_payroll(payroll_input(basic=Decimal("10000"), contribution_base="basic"))

        assert result.contribution_base == Decimal("10000.00")
        assert result.monthly.insurance_employee == Decimal("975.00")

    @pytest.mark.parametrize("raw, expected", [
        ("capped_basic_housing", ContributionBase.CAPPED_BASIC_HOUSING),
        ("GOSI", ContributionBase.CAPPED_BASIC_HOUSING),
        ("Gross", ContributionBase.GROSS),
        ("basic", ContributionBase.BASIC),
    ])
    def test_base_policy_spellings(self, payroll_input, raw, expected):
        assert payroll_input(contribution_base=raw).contribution_base == expected

    def test_capped_policy_by_name_caps_the_base(self, payroll_input):
        result = compute_payroll(payroll_input(
            basic=Decimal("50000"),
            contribution_base="capped_basic_housing",
        ))

        assert result.contribution_base == Decimal("45000.00")

    @pytest.mark.parametrize("raw", ["saudi_standard", "SAUDI-STANDARD", "SaudiStandard"])
    def test_profile_spellings(self, payroll_input, raw):
        assert payroll_input(gosi_profile=raw).gosi_profile == GosiProfile.SAUDI_STANDARD

    def test_gross_base_is_not_capped(self, payroll_input):
        result = compute_payroll(payroll_input(basic=Decimal("50000"), contribution_base="gross"))

        assert result.contribution_base == Decimal("62500.00")

    def test_cap_override(self, payroll_input):
        result = compute_payroll(payroll_input(
            basic=Decimal("20000"),
            contribution_cap=Decimal("20000"),
        ))

        assert result.contribution_base == Decimal("20000.00")
        assert result.profile.cap == Decimal("20000")

    def test_contributory_wage(self):
        assert contributory_wage(Decimal("10000"), Decimal("2500")) == Decimal("12500")
        assert contributory_wage(Decimal("36000"), Decimal("9000")) == Decimal("45000")
        assert contributory_wage(Decimal("50000"), Decimal("12500")) == Decimal("45000")
        assert contributory_wage(Decimal("50000"), Decimal("0"), Decimal("30000")) == Decimal("30000")


class TestInsuranceAllocation:
    """Tests for the pro rata allocation under the gross base."""

    def test_allocation_sums_to_employee_insurance(self, payroll_input):
        result = compute_payroll(payroll_input(
            basic=Decimal("10000"),
            transport=Decimal("500"),
            other_allowances=Decimal("1000"),
            contribution_base="gross",
        ))

        assert result.monthly.insurance_employee == Decimal("1365.00")
        assert result.allocation.basic == Decimal("975.00")
        assert result.allocation.housing == Decimal("243.75")
        assert result.allocation.transport == Decimal("48.75")
        assert result.allocation.other == Decimal("97.50")
        assert result.allocation.total == result.monthly.insurance_employee

    def test_rounding_remainder_kept_in_total(self, payroll_input):
        """Shares still add up when they do not divide evenly."""
        result = compute_payroll(payroll_input(
            basic=Decimal("3333.33"),
            transport=Decimal("777.77"),
            other_allowances=Decimal("111.11"),
            contribution_base="gross",
        ))

        assert result.allocation.total == result.monthly.insurance_employee

    def test_no_allocation_under_gosi_base(self, payroll_input):
        result = compute_payroll(payroll_input(basic=Decimal("10000")))

        assert result.allocation.total == Decimal("0")


class TestNetToGross:
    """Tests for the net to gross solver."""

    def test_solver_constants(self):
        assert SOLVER_MAX_ITERATIONS == 30
        assert SOLVER_DAMPING == Decimal("0.6")
        assert SOLVER_TOLERANCE == Decimal("0.01")

    def test_reaches_target_net(self, payroll_input):
        result = compute_payroll(payroll_input(
            mode="net2gross",
            target_net=Decimal("10000"),
            assumed_basic=Decimal("8000"),
        ))

        assert result.solver is not None
        assert result.solver.converged
        assert result.solver.iterations <= SOLVER_MAX_ITERATIONS
        assert abs(result.monthly.net - Decimal("10000")) <= Decimal("0.05")
        assert result.monthly.gross > result.monthly.net

    def test_round_trip_recovers_gross(self, payroll_input):
        """gross -> net -> gross lands within 1.0 of the starting gross."""
        forward = compute_payroll(payroll_input(
            basic=Decimal("7000"),
            transport=Decimal("800"),
            other_allowances=Decimal("500"),
        ))

        backward = compute_payroll(payroll_input(
            mode="net2gross",
            target_net=forward.monthly.net,
            transport=Decimal("800"),
            other_allowances=Decimal("500"),
        ))

        assert abs(backward.monthly.gross - forward.monthly.gross) <= Decimal("1.0")

    def test_round_trip_through_override(self, payroll_input):
        """The solved gross fed back as gross_override gives the same net."""
        solved = compute_payroll(payroll_input(
            mode="net2gross",
            target_net=Decimal("9196.88"),
            transport=Decimal("800"),
            other_allowances=Decimal("500"),
        ))

        replayed = compute_payroll(payroll_input(
            gross_override=solved.monthly.gross,
            transport=Decimal("800"),
            other_allowances=Decimal("500"),
        ))

        assert replayed.monthly.gross == solved.monthly.gross
        assert abs(replayed.monthly.net - solved.monthly.net) <= Decimal("1.0")
        assert abs(replayed.monthly.net - Decimal("9196.88")) <= Decimal("1.0")

    def test_mode_name_spellings(self, payroll_input):
        assert payroll_input(mode="net_to_gross").mode.value == "net2gross"
        assert payroll_input(mode="NET2GROSS").mode.value == "net2gross"

    def test_exact_guess_stops_after_one_round(self, payroll_input):
        """No employee share and no housing: net equals basic."""
        result = compute_payroll(payroll_input(
            mode="net2gross",
            gosi_profile="non-saudi",
            housing_mode="fixed",
            target_net=Decimal("5000"),
            assumed_basic=Decimal("5000"),
        ))

        assert result.solver.iterations == 1
        assert result.monthly.gross == Decimal("5000.00")

    def test_target_defaults_to_basic(self, payroll_input):
        result = compute_payroll(payroll_input(mode="net2gross", basic=Decimal("6000")))

        assert result.solver.target_net == Decimal("6000.00")
        assert abs(result.monthly.net - Decimal("6000")) <= Decimal("0.05")

    def test_non_convergence_returns_last_guess(self, payroll_input, caplog):
        """A diverging iteration stops after the last round without raising."""
        data = payroll_input(
            mode="net2gross",
            housing_percent=Decimal("300"),
            target_net=Decimal("20000"),
            assumed_basic=Decimal("1"),
        )

        with caplog.at_level(logging.WARNING, logger="calcuhub"):
            result = compute_payroll(data)

        assert result.solver.converged is False
        assert result.solver.iterations == SOLVER_MAX_ITERATIONS
        assert result.monthly.gross >= 0
        assert any(r.getMessage() == "net_to_gross_not_converged" for r in caplog.records)


class TestGrossOverride:
    """Tests for a known gross."""

    def test_zero_contribution_net_equals_gross(self, payroll_input):
        result = compute_payroll(payroll_input(
            gosi_profile="non-saudi",
            gross_override=Decimal("12345.67"),
        ))

        assert result.monthly.gross == Decimal("12345.67")
        assert result.monthly.net == Decimal("12345.67")

    def test_basic_back_solved_from_percent_housing(self, payroll_input):
        result = compute_payroll(payroll_input(
            gross_override=Decimal("13000"),
            transport=Decimal("500"),
        ))

        assert result.resolved_basic == Decimal("10000.00")
        assert result.housing == Decimal("2500.00")
        assert result.monthly.insurance_employee == Decimal("1218.75")

    def test_override_wins_over_mode(self, payroll_input):
        result = compute_payroll(payroll_input(
            mode="net2gross",
            target_net=Decimal("1"),
            gross_override=Decimal("12500"),
        ))

        assert result.monthly.gross == Decimal("12500.00")
        assert result.solver is None

    def test_zero_override_is_ignored(self, payroll_input):
        result = compute_payroll(payroll_input(basic=Decimal("10000"), gross_override=0))

        assert result.monthly.gross == Decimal("12500.00")

    def test_back_solve_fixed_housing(self, payroll_input):
        data = payroll_input(
            housing_mode="fixed",
            housing_fixed=Decimal("2000"),
            transport=Decimal("500"),
        )

        assert back_solve_basic(data, Decimal("10500")) == Decimal("8000")
        assert back_solve_basic(data, Decimal("1000")) == Decimal("0")


class TestRatesAndOvertime:
    """Tests for daily/hourly rates and overtime."""

    def test_daily_and_hourly(self, payroll_input):
        result = compute_payroll(payroll_input(basic=Decimal("9000"), housing_percent=Decimal("0")))

        assert result.daily.gross == Decimal("300.00")
        assert result.hourly.gross == Decimal("37.50")

    def test_zero_divisors_floored_at_one(self, payroll_input):
        result = compute_payroll(payroll_input(
            basic=Decimal("8000"),
            month_divisor=0,
            hours_per_day=0,
        ))

        assert result.daily.gross == result.monthly.gross
        assert result.hourly.gross == result.monthly.gross

    def test_overtime_added_uninsured(self, payroll_input):
        result = compute_payroll(payroll_input(
            basic=Decimal("6000"),
            transport=Decimal("500"),
            overtime={"enabled": True, "hours": 10},
        ))

        assert result.monthly.gross == Decimal("8000.00")
        assert result.hourly.overtime_rate == Decimal("50.00")
        assert result.monthly.overtime == Decimal("500.00")
        assert result.monthly.gross_with_overtime == Decimal("8500.00")
        assert result.monthly.insurance_employee == Decimal("731.25")
        assert result.monthly.net_with_overtime == Decimal("7768.75")

    def test_overtime_disabled(self, payroll_input):
        result = compute_payroll(payroll_input(
            basic=Decimal("6000"),
            overtime={"enabled": False, "hours": 10},
        ))

        assert result.monthly.overtime == Decimal("0.00")

    def test_zero_multiplier_uses_default(self, payroll_input):
        data = payroll_input(overtime={"enabled": True, "hours": 1, "multiplier": 0})

        assert data.overtime.multiplier == Decimal("1.5")

    def test_hourly_rate_helper(self):
        assert calculate_hourly_rate(Decimal("9000"), Decimal("30"), Decimal("8")) == Decimal("37.5")
        assert calculate_hourly_rate(Decimal("9000")) == Decimal("37.5")
        assert calculate_hourly_rate(Decimal("100"), Decimal("0"), Decimal("0")) == Decimal("100")

    def test_overtime_helper(self):
        pay = calculate_overtime(Decimal("37.5"), Decimal("10"), Decimal("1.5"))

        assert pay.rate == Decimal("56.25")
        assert pay.amount == Decimal("562.5")


class TestMonthToDate:
    """Tests for month to date proration."""

    def test_no_proration_by_default(self, payroll_input):
        result = compute_payroll(payroll_input(basic=Decimal("10000")))

        assert result.to_date.factor == Decimal("1.0000")
        assert result.to_date.insurance_employee == result.monthly.insurance_employee

    def test_prorated_with_as_of(self, payroll_input):
        """10 February 2024 is 10/29 of the month."""
        result = compute_payroll(payroll_input(
            basic=Decimal("10000"),
            prorate_to_date=True,
            as_of=date(2024, 2, 10),
        ))

        assert result.to_date.factor == Decimal("0.3448")
        assert result.to_date.insurance_employee == Decimal("420.26")
        assert result.to_date.insurance_employer == Decimal("506.47")

    def test_injected_today(self, payroll_input):
        data = payroll_input(basic=Decimal("10000"), prorate_to_date=True)

        result = compute_payroll(data, today=date(2024, 4, 15))

        assert result.to_date.factor == Decimal("0.5000")
        assert result.to_date.insurance_employee == Decimal("609.38")

    def test_as_of_wins_over_today(self, payroll_input):
        data = payroll_input(
            basic=Decimal("10000"),
            prorate_to_date=True,
            as_of="2025-01-31T10:00:00Z",
        )

        result = compute_payroll(data, today=date(2025, 1, 1))

        assert result.to_date.factor == Decimal("1.0000")


class TestPayrollCoercion:
    """Malformed inputs are coerced, never rejected."""

    @pytest.mark.parametrize("raw", [-500, None, "abc", "", float("nan")])
    def test_bad_amounts_become_zero(self, raw):
        data = PayrollInput(basic=raw)

        assert data.basic == Decimal("0")

    def test_formatted_strings(self):
        data = PayrollInput(basic="12,500.50", transport=" 300 ")

        assert data.basic == Decimal("12500.50")
        assert data.transport == Decimal("300")

    def test_missing_percent_keeps_default(self):
        data = PayrollInput(housing_percent=None, employee_rate_pct="n/a")

        assert data.housing_percent == Decimal("25")
        assert data.employee_rate_pct == Decimal("9.75")

    def test_rates_capped_at_hundred(self):
        data = PayrollInput(employee_rate_pct=150, other_deduction_pct=-3)

        assert data.employee_rate_pct == Decimal("100")
        assert data.other_deduction_pct == Decimal("0")

    def test_unknown_enums_use_defaults(self):
        data = PayrollInput(
            mode="sideways",
            housing_mode="?",
            contribution_base="total",
            residency="mars",
            gosi_profile="unknown",
        )

        assert data.mode.value == "gross2net"
        assert data.housing_mode.value == "percent"
        assert data.contribution_base == ContributionBase.CAPPED_BASIC_HOUSING
        assert data.residency == Residency.SAUDI
        assert data.gosi_profile is None

    def test_negative_optional_amounts(self):
        data = PayrollInput(gross_override=-10, target_net="abc")

        assert data.gross_override == Decimal("0")
        assert data.target_net is None
