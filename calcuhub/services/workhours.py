"""Work hours calculator: exit time of a shift and weekly/monthly hours."""

import re
from decimal import ROUND_HALF_UP, Decimal

from calcuhub.models.coercion import parse_decimal

INVALID_TIME = "--:--"
MINUTES_PER_DAY = 24 * 60
WEEKS_PER_MONTH = Decimal("4.33")

_HHMM = re.compile(r"^(\d{2}):(\d{2})$")


def _rounded_minutes(value) -> int:
    parsed = parse_decimal(value)
    if parsed is None or parsed < 0:
        return 0
    return int(parsed.to_integral_value(rounding=ROUND_HALF_UP))


def calculate_end_time(
    start_hhmm: str,
    target_hours,
    break_minutes=0,
    break_paid: bool = False,
) -> str:
    """
    Exit time of a shift, as HH:MM.

    - The target hours are converted to whole minutes
    - A paid break is added to the span, an unpaid one is not
    - The result wraps past midnight

    A start time that is not HH:MM gives INVALID_TIME.
    """
    match = _HHMM.match(start_hhmm or "")
    if not match:
        return INVALID_TIME

    hours, minutes = int(match.group(1)), int(match.group(2))
    start = hours * 60 + minutes

    work = _rounded_minutes((parse_decimal(target_hours) or Decimal("0")) * 60)
    pause = _rounded_minutes(break_minutes)
    added = work + pause if break_paid else work

    end = (start + added) % MINUTES_PER_DAY
    return f"{end // 60:02d}:{end % 60:02d}"


def weekly_hours(hours_per_day, days_per_week) -> Decimal:
    """Hours worked in a week."""
    hours = parse_decimal(hours_per_day) or Decimal("0")
    days = parse_decimal(days_per_week) or Decimal("0")
    return max(Decimal("0"), hours) * max(Decimal("0"), days)


def monthly_hours(hours_per_week) -> Decimal:
    """Hours worked in an average month (4.33 weeks)."""
    hours = parse_decimal(hours_per_week) or Decimal("0")
    return (max(Decimal("0"), hours) * WEEKS_PER_MONTH).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
