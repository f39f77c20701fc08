"""Calendar arithmetic: date differences, tenure and working days."""

from calendar import monthrange
from collections.abc import Iterable
from datetime import UTC, date, datetime, time, timedelta
from decimal import ROUND_FLOOR, Decimal

from calcuhub.logging_config import get_logger
from calcuhub.models.calendar import (
    DAYS_PER_MONTH_APPROX,
    DAYS_PER_YEAR_APPROX,
    SAUDI_WEEKEND,
    DateDifference,
    DateRange,
    TenureBreakdown,
    WeekendDefinition,
    WorkingDayCount,
)
from calcuhub.models.coercion import to_date

logger = get_logger("services.calendar")

ONE_DAY = timedelta(days=1)


def _as_date(value: date | datetime | str) -> date:
    normalized = to_date(value)
    if isinstance(normalized, str):
        return date.fromisoformat(normalized)
    return normalized


def _as_datetime(value: date | datetime | str) -> datetime:
    if isinstance(value, str):
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time())


def _date_range(
    start: date | datetime | str | DateRange,
    end: date | datetime | str | None,
) -> DateRange:
    if isinstance(start, DateRange):
        return start
    return DateRange(start=_as_date(start), end=_as_date(end))


def _holiday_set(holidays: Iterable[date | datetime | str] | None) -> frozenset[date]:
    if not holidays:
        return frozenset()
    return frozenset(_as_date(h) for h in holidays)


def days_in_month(d: date) -> int:
    """Number of days in the month of d."""
    return monthrange(d.year, d.month)[1]


def day_of_month(d: date) -> int:
    return d.day


def month_fraction(d: date) -> Decimal:
    """Elapsed fraction of the month at day d (day / days in month)."""
    return Decimal(d.day) / Decimal(days_in_month(d))


def _days_in_previous_month(d: date) -> int:
    return (d.replace(day=1) - ONE_DAY).day


def tenure_breakdown(
    start: date | datetime | str | DateRange,
    end: date | datetime | str | None = None,
) -> TenureBreakdown:
    """
    Elapsed time between two dates in whole years, months and days.

    Takes the two endpoints, or a DateRange as the only argument.

    - Days are borrowed from the month immediately preceding the end date
    - Months are borrowed from the year when still negative
    - An inverted range gives zero tenure
    """
    period = _date_range(start, end)
    if period.is_inverted or period.days == 0:
        return TenureBreakdown()

    start_date, end_date = period.start, period.end
    years = end_date.year - start_date.year
    months = end_date.month - start_date.month
    days = end_date.day - start_date.day

    if days < 0:
        months -= 1
        days += _days_in_previous_month(end_date)

    if months < 0:
        years -= 1
        months += 12

    total_days = period.days

    return TenureBreakdown(
        years=max(0, years),
        months=max(0, months),
        days=max(0, days),
        total_days=total_days,
        total_weeks=total_days // 7,
    )


def count_working_days(
    start: date | datetime | str | DateRange,
    end: date | datetime | str | None = None,
    weekend: WeekendDefinition | None = None,
    holidays: Iterable[date | datetime | str] | None = None,
) -> WorkingDayCount:
    """
    Classify every day of the inclusive range [start, end] (or of a DateRange).

    A day on the weekend is a weekend day even when it is also a holiday.
    """
    weekend_days = (weekend or SAUDI_WEEKEND).days
    holiday_dates = _holiday_set(holidays)

    period = _date_range(start, end)
    working = weekend_count = holiday_count = 0
    current = period.start

    while current <= period.end:
        if current.weekday() in weekend_days:
            weekend_count += 1
        elif current in holiday_dates:
            holiday_count += 1
        else:
            working += 1
        current += ONE_DAY

    return WorkingDayCount(
        working_days=working,
        weekend_days=weekend_count,
        holiday_days=holiday_count,
    )


def difference_between(
    a: date | datetime | str,
    b: date | datetime | str,
    weekend: WeekendDefinition | None = None,
    holidays: Iterable[date | datetime | str] | None = None,
) -> DateDifference:
    """
    Elapsed time, working days and tenure between a and b.

    b is expected to be after a. A negative span is clamped to zero elapsed
    time and zero tenure, it is not rejected.
    """
    start = _as_datetime(a)
    end = _as_datetime(b)

    # Naive datetimes are read as UTC when compared with aware ones
    if (start.tzinfo is None) != (end.tzinfo is None):
        if start.tzinfo is None:
            start = start.replace(tzinfo=UTC)
        else:
            end = end.replace(tzinfo=UTC)

    milliseconds = max(0, (end - start) // timedelta(milliseconds=1))
    seconds = milliseconds // 1000
    minutes = seconds // 60
    hours = minutes // 60
    days = hours // 24

    counts = count_working_days(start.date(), end.date(), weekend, holidays)
    tenure = tenure_breakdown(start.date(), end.date())

    result = DateDifference(
        milliseconds=milliseconds,
        seconds=seconds,
        minutes=minutes,
        hours=hours,
        days=days,
        weeks=days // 7,
        approx_years=int((Decimal(days) / DAYS_PER_YEAR_APPROX).to_integral_value(ROUND_FLOOR)),
        approx_months=int((Decimal(days) / DAYS_PER_MONTH_APPROX).to_integral_value(ROUND_FLOOR)),
        working_days=counts.working_days,
        weekend_days=counts.weekend_days,
        holiday_days=counts.holiday_days,
        tenure=tenure,
    )

    logger.debug("date_difference_computed", extra={
        "start": start,
        "end": end,
        "days": days,
        "working_days": counts.working_days,
    })

    return result


def is_weekend(d: date, weekend: WeekendDefinition | None = None) -> bool:
    return d.weekday() in (weekend or SAUDI_WEEKEND).days


def is_working_day(
    d: date,
    weekend: WeekendDefinition | None = None,
    holidays: Iterable[date | datetime | str] | None = None,
) -> bool:
    """Neither a weekend day nor a holiday."""
    if is_weekend(d, weekend):
        return False
    return _as_date(d) not in _holiday_set(holidays)


def _has_working_weekday(weekend: WeekendDefinition | None) -> bool:
    return len((weekend or SAUDI_WEEKEND).days) < 7


def add_working_days(
    d: date,
    days: int,
    weekend: WeekendDefinition | None = None,
    holidays: Iterable[date | datetime | str] | None = None,
) -> date:
    """
    Move d by a number of working days (negative moves backwards).

    Weekend days and holidays are skipped. When the weekend covers the whole
    week there is no working day to land on and d is returned unchanged.
    """
    if not _has_working_weekday(weekend):
        return d

    weekend_days = (weekend or SAUDI_WEEKEND).days
    holiday_dates = _holiday_set(holidays)
    step = ONE_DAY if days >= 0 else -ONE_DAY
    remaining = abs(days)
    result = d

    while remaining > 0:
        result += step
        if result.weekday() not in weekend_days and result not in holiday_dates:
            remaining -= 1

    return result


def next_working_day(
    d: date,
    weekend: WeekendDefinition | None = None,
    holidays: Iterable[date | datetime | str] | None = None,
) -> date:
    return add_working_days(d, 1, weekend, holidays)


def previous_working_day(
    d: date,
    weekend: WeekendDefinition | None = None,
    holidays: Iterable[date | datetime | str] | None = None,
) -> date:
    return add_working_days(d, -1, weekend, holidays)


def working_days_in_month(
    year: int,
    month: int,
    weekend: WeekendDefinition | None = None,
    holidays: Iterable[date | datetime | str] | None = None,
) -> int:
    """Working days of a calendar month (month is 1-12)."""
    first = date(year, month, 1)
    last = first.replace(day=days_in_month(first))
    return count_working_days(first, last, weekend, holidays).working_days


def add_months(d: date, months: int) -> date:
    """Add calendar months, clamping to the last day of the target month."""
    index = d.year * 12 + (d.month - 1) + months
    year, month = divmod(index, 12)
    target = date(year, month + 1, 1)
    return target.replace(day=min(d.day, days_in_month(target)))


def add_years(d: date, years: int) -> date:
    """Add calendar years, 29 February becomes 28 February off leap years."""
    return add_months(d, years * 12)
