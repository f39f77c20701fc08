"""
Typed exceptions for the calcuhub engine.

The calculators never raise for numeric or date input: amounts are coerced and
inverted ranges clamp to zero. The errors below cover lookups that sit outside
that domain, such as asking for separation rules that were never registered.

    CalcuhubError (base)
    |
    +-- RulesError
        +-- UnknownJurisdictionError
        +-- DuplicateJurisdictionError
"""


class CalcuhubError(Exception):
    """Base exception for the engine. Carries a machine-readable code."""

    code: str = "CALCUHUB_ERROR"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class RulesError(CalcuhubError):
    """Errors related to the separation rules registry."""

    code: str = "RULES_ERROR"


class UnknownJurisdictionError(RulesError):
    """No separation rules are registered under the requested name."""

    code: str = "UNKNOWN_JURISDICTION"

    def __init__(self, name: str, available: list[str]):
        self.name = name
        self.available = available
        super().__init__(
            f"Unknown jurisdiction {name!r}. Available: {', '.join(available) or 'none'}"
        )


class DuplicateJurisdictionError(RulesError):
    """A set of separation rules is already registered under that name."""

    code: str = "DUPLICATE_JURISDICTION"

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Jurisdiction {name!r} is already registered")
