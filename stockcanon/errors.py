"""Exceptions raised by the location and quantity canonicalization helpers."""

from __future__ import annotations


class CanonicalizationError(ValueError):
    """Base class for location and quantity canonicalization failures."""


class LocationParseError(CanonicalizationError):
    """Raised by strict helpers when a location code cannot be interpreted."""

    def __init__(self, code: str | None):
        self.code = code
        super().__init__(f"Unrecognized location code: {code!r}")


class LocationRangeError(CanonicalizationError):
    """Raised when a row, level, or position falls outside the warehouse grid."""


class QuantityRangeError(CanonicalizationError):
    """Raised for negative or non-integer quantities and rates."""


class MissingRateError(CanonicalizationError):
    """Raised when a conversion rate is needed but none was supplied."""


class ConversionDivisionError(CanonicalizationError, ZeroDivisionError):
    """Raised when a flat quantity cannot be decomposed because a rate is zero or missing."""


class InvalidConversionRateError(CanonicalizationError):
    """Raised when a conversion rate record fails validation before it is saved."""

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "Invalid conversion rate")
