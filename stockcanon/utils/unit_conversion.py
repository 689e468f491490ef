"""Three-level packaging arithmetic.

Stock is counted at up to three packaging levels: an outer unit (level 1, for
example a case), a middle unit (level 2, a box) and the loose unit (level 3, a
piece). A :class:`ConversionRate` says how many loose units each of the two
upper levels holds. Rates belong to a product and are looked up by the caller;
nothing here reads a database or falls back to a default rate on its own.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Mapping, Optional

from stockcanon.errors import (
    ConversionDivisionError,
    MissingRateError,
    QuantityRangeError,
)


DEFAULT_BASE_UNIT_NAME = "piece"
UNIT_LEVELS = (1, 2, 3)
QUANTITY_KEYS = ("level1", "level2", "level3")
RATE_KEYS = ("level1_rate", "level2_rate", "level1_name", "level2_name", "level3_name")

LEVEL1_RATE_WARNING_THRESHOLD = 10_000
LEVEL2_RATE_WARNING_THRESHOLD = 1_000


def _coerce_count(name: str, value: Any) -> int:
    if isinstance(value, bool):
        raise QuantityRangeError(f"{name} must be an integer, got {value!r}")
    # Numeric database columns come back as Decimal.
    if isinstance(value, Decimal):
        if not value.is_finite() or value != value.to_integral_value():
            raise QuantityRangeError(f"{name} must be a whole number, got {value!r}")
        value = int(value)
    elif isinstance(value, float):
        if not value.is_integer():
            raise QuantityRangeError(f"{name} must be a whole number, got {value!r}")
        value = int(value)
    if not isinstance(value, int):
        raise QuantityRangeError(f"{name} must be an integer, got {value!r}")
    if value < 0:
        raise QuantityRangeError(f"{name} must not be negative, got {value}")
    return value


def _coerce_optional_count(name: str, value: Any) -> Optional[int]:
    if value is None:
        return None
    return _coerce_count(name, value)


@dataclass(frozen=True)
class QuantityTriple:
    level1: int = 0
    level2: int = 0
    level3: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "level1", _coerce_count("level1", self.level1))
        object.__setattr__(self, "level2", _coerce_count("level2", self.level2))
        object.__setattr__(self, "level3", _coerce_count("level3", self.level3))

    @classmethod
    def from_record(
        cls, record: Mapping[str, Any], *, prefix: str = "unit_level"
    ) -> "QuantityTriple":
        """Build a triple from a row such as ``{"unit_level1_quantity": 2, ...}``.

        Missing or null quantity columns count as zero.
        """

        def _read(level: int) -> int:
            value = record.get(f"{prefix}{level}_quantity")
            return 0 if value is None else value

        return cls(level1=_read(1), level2=_read(2), level3=_read(3))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "QuantityTriple":
        """Inverse of :meth:`to_dict`; missing or null levels count as zero."""

        values = {key: data.get(key) for key in QUANTITY_KEYS}
        return cls(**{key: 0 if value is None else value for key, value in values.items()})

    def as_tuple(self) -> tuple[int, int, int]:
        return (self.level1, self.level2, self.level3)

    def to_dict(self) -> dict[str, int]:
        return {"level1": self.level1, "level2": self.level2, "level3": self.level3}


@dataclass(frozen=True)
class ConversionRate:
    """Per-product multipliers; ``None`` means the rate is not known."""

    level1_rate: Optional[int] = None
    level2_rate: Optional[int] = None
    level1_name: Optional[str] = field(default=None, compare=False)
    level2_name: Optional[str] = field(default=None, compare=False)
    level3_name: Optional[str] = field(default=None, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "level1_rate", _coerce_optional_count("level1_rate", self.level1_rate)
        )
        object.__setattr__(
            self, "level2_rate", _coerce_optional_count("level2_rate", self.level2_rate)
        )
        for attribute in ("level1_name", "level2_name", "level3_name"):
            value = getattr(self, attribute)
            if value is not None:
                object.__setattr__(self, attribute, str(value).strip() or None)

    @classmethod
    def from_record(
        cls, record: Mapping[str, Any], *, prefix: str = "unit_level"
    ) -> "ConversionRate":
        return cls(
            level1_rate=record.get(f"{prefix}1_rate"),
            level2_rate=record.get(f"{prefix}2_rate"),
            level1_name=record.get(f"{prefix}1_name") or None,
            level2_name=record.get(f"{prefix}2_name") or None,
            level3_name=record.get(f"{prefix}3_name") or None,
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ConversionRate":
        """Inverse of :meth:`to_dict`."""

        return cls(**{key: data.get(key) for key in RATE_KEYS})

    @property
    def is_complete(self) -> bool:
        return bool(self.level1_rate) and bool(self.level2_rate)

    def to_dict(self) -> dict[str, Any]:
        return {
            "level1_rate": self.level1_rate,
            "level2_rate": self.level2_rate,
            "level1_name": self.level1_name,
            "level2_name": self.level2_name,
            "level3_name": self.level3_name,
        }


@dataclass
class RateValidation:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def _resolve_rate(
    attribute: str,
    rate: Optional[ConversionRate],
    fallback: Optional[ConversionRate],
) -> Optional[int]:
    value = getattr(rate, attribute) if rate is not None else None
    if value is None and fallback is not None:
        value = getattr(fallback, attribute)
    return value


def to_flat_units(
    quantity: QuantityTriple,
    rate: Optional[ConversionRate],
    *,
    fallback: Optional[ConversionRate] = None,
) -> int:
    """Return ``level1 * level1_rate + level2 * level2_rate + level3``.

    ``rate`` may be ``None`` when no rate was found for the product. Missing
    rates are taken from ``fallback``; a level that holds stock but has no rate
    from either source raises :class:`MissingRateError`.
    """

    total = quantity.level3
    for level, count in ((1, quantity.level1), (2, quantity.level2)):
        if count == 0:
            continue
        level_rate = _resolve_rate(f"level{level}_rate", rate, fallback)
        if level_rate is None:
            raise MissingRateError(
                f"No level {level} conversion rate available for {count} level {level} units"
            )
        total += count * level_rate
    return total


def to_triple(flat_units: int, rate: Optional[ConversionRate]) -> QuantityTriple:
    """Split a loose-unit total into the fewest outer and middle units."""

    level1_rate = rate.level1_rate if rate is not None else None
    level2_rate = rate.level2_rate if rate is not None else None
    if not level1_rate or not level2_rate:
        raise ConversionDivisionError(
            "Both level 1 and level 2 conversion rates must be positive to "
            f"decompose a quantity (got {level1_rate!r} and {level2_rate!r})"
        )
    flat_units = _coerce_count("flat_units", flat_units)

    level1, remainder = divmod(flat_units, level1_rate)
    level2, level3 = divmod(remainder, level2_rate)
    return QuantityTriple(level1=level1, level2=level2, level3=level3)


def _level_multiplier(level: int, rate: Optional[ConversionRate]) -> int:
    if level not in UNIT_LEVELS:
        raise QuantityRangeError(f"Unit level must be 1, 2 or 3, got {level!r}")
    if level == 3:
        return 1
    value = getattr(rate, f"level{level}_rate") if rate is not None else None
    if value is None:
        raise MissingRateError(f"No level {level} conversion rate available")
    return value


def convert_units(
    quantity: int,
    from_level: int,
    to_level: int,
    rate: Optional[ConversionRate],
) -> int:
    """Re-express ``quantity`` units of ``from_level`` as whole ``to_level`` units."""

    quantity = _coerce_count("quantity", quantity)
    base_quantity = quantity * _level_multiplier(from_level, rate)
    divisor = _level_multiplier(to_level, rate)
    if divisor == 0:
        raise ConversionDivisionError(
            f"Level {to_level} conversion rate is zero; cannot convert into it"
        )
    return base_quantity // divisor


def format_units_display(
    quantity: QuantityTriple, rate: Optional[ConversionRate] = None
) -> str:
    parts: list[str] = []
    level1_name = rate.level1_name if rate is not None else None
    level2_name = rate.level2_name if rate is not None else None
    level3_name = (rate.level3_name if rate is not None else None) or DEFAULT_BASE_UNIT_NAME

    if quantity.level1 > 0 and level1_name:
        parts.append(f"{quantity.level1} {level1_name}")
    if quantity.level2 > 0 and level2_name:
        parts.append(f"{quantity.level2} {level2_name}")
    if quantity.level3 > 0:
        parts.append(f"{quantity.level3} {level3_name}")

    return " + ".join(parts) if parts else "0"


def validate_rate(rate: ConversionRate) -> RateValidation:
    result = RateValidation()

    if rate.level1_rate is not None:
        if rate.level1_rate <= 0:
            result.errors.append("Level 1 conversion rate must be a positive integer.")
        elif rate.level1_rate > LEVEL1_RATE_WARNING_THRESHOLD:
            result.warnings.append(
                f"Level 1 conversion rate is unusually high (>{LEVEL1_RATE_WARNING_THRESHOLD:,})."
            )

    if rate.level2_rate is not None:
        if rate.level2_rate <= 0:
            result.errors.append("Level 2 conversion rate must be a positive integer.")
        elif rate.level2_rate > LEVEL2_RATE_WARNING_THRESHOLD:
            result.warnings.append(
                f"Level 2 conversion rate is unusually high (>{LEVEL2_RATE_WARNING_THRESHOLD:,})."
            )

    if rate.level1_rate and rate.level2_rate and rate.level1_rate < rate.level2_rate:
        result.errors.append(
            "Level 1 conversion rate must be greater than or equal to the level 2 rate."
        )

    for level, name in (
        (1, rate.level1_name),
        (2, rate.level2_name),
        (3, rate.level3_name),
    ):
        if name is not None and len(name.strip()) < 2:
            result.errors.append(f"Level {level} unit name must be at least 2 characters.")

    return result
