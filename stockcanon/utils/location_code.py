"""Warehouse slot codes.

Slots are addressed by a row letter (``A``-``N``), a shelf level (``1``-``4``)
and a position along the row (``1``-``20``). The canonical text form is
``{ROW}{LEVEL}/{POSITION}``, for example ``A1/1`` or ``N4/20``.

Older records and scanners produce several other spellings. They are accepted
in this order:

1. canonical: ``A1/1`` (the position may carry leading zeros, ``A1/01``)
2. separated triplet: ``A/1/01``, ``A-1-1``, ``a.2.15``, ``B 3 07``
3. concatenated digits: ``A11``, ``A101``, ``A120``

In the concatenated form the level is always exactly one digit and everything
after it is the position, so ``A101`` is level 1, position 1.
"""

from __future__ import annotations

from dataclasses import dataclass
import re
from typing import Iterator, Optional

from stockcanon.errors import LocationParseError, LocationRangeError


ROWS = "ABCDEFGHIJKLMN"
MIN_LEVEL = 1
MAX_LEVEL = 4
MIN_POSITION = 1
MAX_POSITION = 20

_SEPARATOR = r"(?:[/\-.]|\s+)"

_GRAMMARS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^([A-Za-z])(\d)/(\d+)$", re.ASCII),
    re.compile(rf"^([A-Za-z]){_SEPARATOR}(\d){_SEPARATOR}(\d+)$", re.ASCII),
    re.compile(r"^([A-Za-z])(\d)(\d{1,2})$", re.ASCII),
)


@dataclass(frozen=True)
class LocationCode:
    row: str
    level: int
    position: int

    @property
    def code(self) -> str:
        return f"{self.row}{self.level}/{self.position}"

    def __str__(self) -> str:
        return self.code

    def to_dict(self) -> dict[str, object]:
        return {"row": self.row, "level": self.level, "position": self.position}


class NormalizationStatus:
    NORMALIZED = "normalized"
    CANONICAL = "canonical"
    INVALID = "invalid"

    ALL_STATUSES = [NORMALIZED, CANONICAL, INVALID]


@dataclass(frozen=True)
class NormalizationResult:
    """Outcome of normalizing a location code.

    ``value`` is what :func:`normalize_location_code` would return. ``status``
    tells callers whether the value was rewritten, was already canonical, or was
    passed through unchanged because it could not be parsed.
    """

    input: Optional[str]
    value: Optional[str]
    status: str
    location: Optional[LocationCode]

    @property
    def is_valid(self) -> bool:
        return self.status != NormalizationStatus.INVALID

    @property
    def changed(self) -> bool:
        return self.status == NormalizationStatus.NORMALIZED

    def unwrap(self) -> str:
        if self.location is None:
            raise LocationParseError(self.input)
        return self.location.code


def _in_domain(row: str, level: int, position: int) -> bool:
    return (
        row in ROWS
        and MIN_LEVEL <= level <= MAX_LEVEL
        and MIN_POSITION <= position <= MAX_POSITION
    )


def parse_location_code(code: str | None) -> Optional[LocationCode]:
    """Return the slot addressed by ``code`` or ``None`` if it is not a valid slot."""

    if not code:
        return None

    cleaned = str(code).strip()
    for pattern in _GRAMMARS:
        match = pattern.match(cleaned)
        if not match:
            continue
        row_raw, level_raw, position_raw = match.groups()
        row = row_raw.upper()
        level = int(level_raw)
        position = int(position_raw)
        if not _in_domain(row, level, position):
            return None
        return LocationCode(row=row, level=level, position=position)
    return None


def is_valid_location_code(code: str | None) -> bool:
    return parse_location_code(code) is not None


def format_location_code(row: str, level: int, position: int) -> str:
    if not isinstance(row, str) or len(row) != 1:
        raise LocationRangeError(f"Row must be a single letter A-N, got {row!r}")
    normalized_row = row.upper()
    if normalized_row not in ROWS:
        raise LocationRangeError(f"Row must be a single letter A-N, got {row!r}")
    if isinstance(level, bool) or not isinstance(level, int):
        raise LocationRangeError(f"Level must be an integer, got {level!r}")
    if not MIN_LEVEL <= level <= MAX_LEVEL:
        raise LocationRangeError(
            f"Level must be between {MIN_LEVEL} and {MAX_LEVEL}, got {level}"
        )
    if isinstance(position, bool) or not isinstance(position, int):
        raise LocationRangeError(f"Position must be an integer, got {position!r}")
    if not MIN_POSITION <= position <= MAX_POSITION:
        raise LocationRangeError(
            f"Position must be between {MIN_POSITION} and {MAX_POSITION}, got {position}"
        )
    return f"{normalized_row}{level}/{position}"


def normalize_location_result(code: str | None) -> NormalizationResult:
    location = parse_location_code(code)
    if location is None:
        return NormalizationResult(
            input=code,
            value=code,
            status=NormalizationStatus.INVALID,
            location=None,
        )

    canonical = format_location_code(location.row, location.level, location.position)
    status = (
        NormalizationStatus.CANONICAL
        if code == canonical
        else NormalizationStatus.NORMALIZED
    )
    return NormalizationResult(
        input=code, value=canonical, status=status, location=location
    )


def normalize_location_code(code: str | None) -> str | None:
    """Return the canonical form of ``code``, or ``code`` unchanged if it is not a slot."""

    return normalize_location_result(code).value


def display_location_code(code: str | None) -> str | None:
    return normalize_location_code(code)


def normalize_location_strict(code: str | None) -> str:
    return normalize_location_result(code).unwrap()


def locations_equal(first: str | None, second: str | None) -> bool:
    first_location = parse_location_code(first)
    second_location = parse_location_code(second)
    if first_location is None or second_location is None:
        return False
    return first_location == second_location


def iter_all_location_codes() -> Iterator[str]:
    for row in ROWS:
        for level in range(MIN_LEVEL, MAX_LEVEL + 1):
            for position in range(MIN_POSITION, MAX_POSITION + 1):
                yield format_location_code(row, level, position)
