from __future__ import annotations

from dataclasses import dataclass
import re
from typing import Optional

from stockcanon.errors import LocationRangeError
from stockcanon.utils.location_code import (
    LocationCode,
    format_location_code,
    parse_location_code,
)


DEFAULT_WAREHOUSE_CODE = "MAIN"

_WAREHOUSE_PREFIX_PATTERN = re.compile(r"^\s*([A-Za-z0-9]+)-(.+?)\s*$", re.ASCII)
_WAREHOUSE_CODE_PATTERN = re.compile(r"^[A-Za-z0-9]+$", re.ASCII)


@dataclass(frozen=True)
class WarehouseLocation:
    warehouse_code: str
    location: LocationCode

    @property
    def code(self) -> str:
        if self.warehouse_code == DEFAULT_WAREHOUSE_CODE:
            return self.location.code
        return f"{self.warehouse_code}-{self.location.code}"

    def __str__(self) -> str:
        return self.code


def _normalize_warehouse_code(value: str | None) -> str:
    if not isinstance(value, str) or not _WAREHOUSE_CODE_PATTERN.match(value.strip()):
        raise LocationRangeError(
            f"Warehouse code must be letters and digits only, got {value!r}"
        )
    return value.strip().upper()


def parse_warehouse_location(code: str | None) -> Optional[WarehouseLocation]:
    """Parse ``WH001-A1/1`` style codes; a bare slot belongs to the main warehouse.

    The bare slot grammars win over the prefix, so ``A-1-1`` is slot ``A1/1``
    in the main warehouse rather than slot ``1-1`` in warehouse ``A``.
    """

    if not code:
        return None

    location = parse_location_code(code)
    if location is not None:
        return WarehouseLocation(warehouse_code=DEFAULT_WAREHOUSE_CODE, location=location)

    match = _WAREHOUSE_PREFIX_PATTERN.match(str(code))
    if not match:
        return None

    warehouse_raw, slot_raw = match.groups()
    location = parse_location_code(slot_raw)
    if location is None:
        return None
    return WarehouseLocation(warehouse_code=warehouse_raw.upper(), location=location)


def format_warehouse_location(
    warehouse_code: str, row: str, level: int, position: int
) -> str:
    warehouse = _normalize_warehouse_code(warehouse_code)
    slot = format_location_code(row, level, position)
    if warehouse == DEFAULT_WAREHOUSE_CODE:
        return slot
    return f"{warehouse}-{slot}"


def normalize_warehouse_location(code: str | None) -> str | None:
    parsed = parse_warehouse_location(code)
    if parsed is None:
        return code
    return parsed.code


def extract_warehouse_code(code: str | None) -> str:
    parsed = parse_warehouse_location(code)
    return parsed.warehouse_code if parsed is not None else DEFAULT_WAREHOUSE_CODE
