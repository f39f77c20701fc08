"""
Pytest fixtures for the calculator test suite.

Provides:
- Factories for payroll and end of service inputs with calculator defaults
- A clean calcuhub logging configuration around each test
"""

from datetime import date
from decimal import Decimal

import pytest

from calcuhub.logging_config import reset_logging
from calcuhub.models import EosInput, PayrollInput


@pytest.fixture
def payroll_input():
    """Build a PayrollInput like the salary calculator form does by default."""

    def _make(**overrides) -> PayrollInput:
        values = {
            "mode": "gross2net",
            "basic": Decimal("5000"),
            "housing_mode": "percent",
            "housing_percent": Decimal("25"),
            "housing_fixed": Decimal("0"),
            "transport": Decimal("0"),
            "other_allowances": Decimal("0"),
            "employee_rate_pct": Decimal("9.75"),
            "employer_rate_pct": Decimal("11.75"),
            "contribution_base": "gosi",
            "month_divisor": Decimal("30"),
            "hours_per_day": Decimal("8"),
        }
        values.update(overrides)
        return PayrollInput(**values)

    return _make


@pytest.fixture
def eos_input():
    """Build an EosInput on a 10,000 basic wage, basic only."""

    def _make(**overrides) -> EosInput:
        values = {
            "start": date(2020, 1, 1),
            "end": date(2023, 1, 1),
            "basic": Decimal("10000"),
            "housing_mode": "fixed",
            "housing_fixed": Decimal("0"),
            "base_type": "basic",
            "month_divisor": Decimal("30"),
            "separation": "employerTermination",
        }
        values.update(overrides)
        return EosInput(**values)

    return _make


@pytest.fixture(autouse=True)
def _clean_logging():
    reset_logging()
    yield
    reset_logging()
