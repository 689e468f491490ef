from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError

from stockcanon.extensions import db
from stockcanon.models import Location
from stockcanon.utils.location_code import (
    NormalizationStatus,
    normalize_location_result,
    normalize_location_strict,
    parse_location_code,
)


logger = logging.getLogger(__name__)


class DuplicateLocationError(ValueError):
    """Raised when a canonical location code is already stored."""


@dataclass
class LocationNormalizationSummary:
    changed: list[tuple[str, str]] = field(default_factory=list)
    unchanged: int = 0
    invalid: list[str] = field(default_factory=list)
    conflicts: list[tuple[str, str]] = field(default_factory=list)
    dry_run: bool = False

    def to_dict(self) -> dict[str, object]:
        return {
            "changed": len(self.changed),
            "unchanged": self.unchanged,
            "invalid": len(self.invalid),
            "conflicts": len(self.conflicts),
            "dry_run": self.dry_run,
        }


def _location_by_code(canonical: str) -> Optional[Location]:
    return Location.query.filter_by(code=canonical).first()


def find_location(code: str | None) -> Optional[Location]:
    location = parse_location_code(code)
    if location is None:
        return None
    return _location_by_code(location.code)


def save_location(code: str | None, description: str | None = None) -> Location:
    """Store a slot under its canonical code.

    Raises :class:`~stockcanon.errors.LocationParseError` for codes that are not
    valid slots and :class:`DuplicateLocationError` if the slot already exists,
    including when a concurrent writer inserts it between the lookup and the
    commit.
    """

    canonical = normalize_location_strict(code)
    if _location_by_code(canonical) is not None:
        raise DuplicateLocationError(f"Location {canonical} already exists.")

    location = Location(code=canonical, description=(description or "").strip() or None)
    db.session.add(location)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        logger.warning("Location %s was created concurrently; rejecting %r", canonical, code)
        raise DuplicateLocationError(f"Location {canonical} already exists.") from None
    logger.info("Created location %s from input %r", canonical, code)
    return location


def normalize_stored_locations(
    *, dry_run: bool = False, batch_size: int = 500
) -> LocationNormalizationSummary:
    """Rewrite stored location codes to canonical form.

    Codes that cannot be parsed are left alone. A legacy code whose canonical
    form is already taken by another row is reported as a conflict and left
    alone as well.
    """

    summary = LocationNormalizationSummary(dry_run=dry_run)
    locations = Location.query.order_by(Location.id).all()
    taken = {location.code for location in locations}
    pending = 0

    for location in locations:
        result = normalize_location_result(location.code)
        if result.status == NormalizationStatus.INVALID:
            summary.invalid.append(location.code)
            continue
        if result.status == NormalizationStatus.CANONICAL:
            summary.unchanged += 1
            continue

        if result.value in taken:
            summary.conflicts.append((location.code, result.value))
            logger.warning(
                "Skipped location %r: canonical code %s is already in use",
                location.code,
                result.value,
            )
            continue

        taken.discard(location.code)
        taken.add(result.value)
        summary.changed.append((location.code, result.value))
        if dry_run:
            continue

        location.code = result.value
        pending += 1
        if pending >= batch_size:
            db.session.commit()
            pending = 0

    if dry_run:
        db.session.rollback()
    elif pending:
        db.session.commit()

    logger.info(
        "Location normalization%s: %s changed, %s unchanged, %s invalid, %s conflicts",
        " (dry run)" if dry_run else "",
        len(summary.changed),
        summary.unchanged,
        len(summary.invalid),
        len(summary.conflicts),
    )
    return summary
