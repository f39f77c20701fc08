"""Coercion helpers shared by the input models.

The calculators are estimators: a missing, blank or negative amount must never
reject the whole request. These helpers run as ``mode="before"`` validators.
"""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from pydantic import ValidationInfo


def parse_decimal(value: Any) -> Decimal | None:
    """Parse a value into a finite Decimal, return None when impossible."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    try:
        if isinstance(value, str):
            cleaned = value.strip().replace(" ", "").replace(",", "").replace("\xa0", "")
            if not cleaned:
                return None
            parsed = Decimal(cleaned)
        else:
            parsed = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return None
    return parsed if parsed.is_finite() else None


def _field_default(info: ValidationInfo, model_fields: dict) -> Decimal:
    field = model_fields.get(info.field_name) if info.field_name else None
    if field is None or field.is_required():
        return Decimal("0")
    if field.default_factory is not None:
        return field.default_factory()
    default = field.get_default()
    return default if default is not None else Decimal("0")


def non_negative(cls, value: Any, info: ValidationInfo) -> Decimal | None:
    """None/unparsable -> field default, negative -> 0."""
    parsed = parse_decimal(value)
    if parsed is None:
        return _field_default(info, cls.model_fields)
    return max(Decimal("0"), parsed)


def percentage(cls, value: Any, info: ValidationInfo) -> Decimal:
    """Like non_negative, then capped at 100."""
    parsed = non_negative(cls, value, info)
    return min(Decimal("100"), parsed)


def optional_non_negative(value: Any) -> Decimal | None:
    """None/unparsable stays None, negative -> 0."""
    parsed = parse_decimal(value)
    if parsed is None:
        return None
    return max(Decimal("0"), parsed)


def to_date(value: Any) -> Any:
    """Normalize datetimes to their calendar date (midnight)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str) and "T" in value:
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
        except ValueError:
            return value
    return value


def _spelling_key(text: str) -> str:
    return text.replace("_", "").replace("-", "").replace(" ", "").lower()


def coerce_enum(enum_cls, value: Any, default):
    """
    Map a wire value onto an enum member.

    Values and member names match regardless of case and of ``_`` / ``-``
    separators (``employee_resignation``, ``employeeResignation`` and
    ``EMPLOYEE_RESIGNATION`` are the same member). Unknown values give the
    default instead of failing.
    """
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        pass
    if not isinstance(value, str):
        return default
    key = _spelling_key(value)
    for member in enum_cls:
        if key in (_spelling_key(str(member.value)), _spelling_key(member.name)):
            return member
    return default
