"""Compensation and tenure settlement engine of the calcu-hub calculators."""

from calcuhub.services import compute_eos_settlement, compute_payroll, difference_between

__all__ = [
    "compute_eos_settlement",
    "compute_payroll",
    "difference_between",
]
