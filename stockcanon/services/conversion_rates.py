"""Lookup and maintenance of per-product packaging conversion rates.

This is the only place that reads rates from the database. The conversion
arithmetic in :mod:`stockcanon.utils.unit_conversion` receives the rates as
plain values and never performs lookups itself.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable, Optional

from stockcanon.errors import InvalidConversionRateError
from stockcanon.extensions import db
from stockcanon.models import ProductConversionRate
from stockcanon.utils.unit_conversion import (
    ConversionRate,
    RateValidation,
    validate_rate,
)


logger = logging.getLogger(__name__)

_SKU_PATTERN = re.compile(r"^[A-Za-z0-9-]+$")


def normalize_sku(sku: str | None) -> str | None:
    if sku is None:
        return None
    normalized = str(sku).strip()
    return normalized or None


def get_conversion_rate_record(sku: str | None) -> Optional[ProductConversionRate]:
    normalized = normalize_sku(sku)
    if normalized is None:
        return None
    return ProductConversionRate.query.filter_by(sku=normalized).first()


def get_conversion_rate(sku: str | None) -> Optional[ConversionRate]:
    """Return the stored rate for ``sku`` or ``None`` when no rate is on file."""

    record = get_conversion_rate_record(sku)
    if record is None:
        logger.info("No conversion rate on file for SKU %s", normalize_sku(sku))
        return None
    return record.to_rate()


def get_conversion_rates(skus: Iterable[str]) -> dict[str, ConversionRate]:
    normalized = {sku for sku in (normalize_sku(value) for value in skus) if sku}
    if not normalized:
        return {}

    records = ProductConversionRate.query.filter(
        ProductConversionRate.sku.in_(normalized)
    ).all()
    return {record.sku: record.to_rate() for record in records}


def validate_rate_record(sku: str | None, rate: ConversionRate) -> RateValidation:
    result = RateValidation()
    normalized = normalize_sku(sku)
    if normalized is None:
        result.errors.append("SKU is required.")
    elif not _SKU_PATTERN.match(normalized):
        result.warnings.append("SKU should contain only letters, digits, and hyphens.")

    rate_result = validate_rate(rate)
    result.errors.extend(rate_result.errors)
    result.warnings.extend(rate_result.warnings)
    return result


def save_conversion_rate(
    sku: str | None,
    rate: ConversionRate,
    *,
    product_name: str | None = None,
) -> tuple[ProductConversionRate, RateValidation]:
    """Create or update the rate for ``sku`` after validating it.

    Raises :class:`InvalidConversionRateError` without touching the database when
    validation reports errors. Warnings are logged and returned to the caller.
    """

    validation = validate_rate_record(sku, rate)
    if not validation.is_valid:
        raise InvalidConversionRateError(validation.errors)

    normalized = normalize_sku(sku)
    record = get_conversion_rate_record(normalized)
    created = record is None
    if record is None:
        record = ProductConversionRate(sku=normalized)
        db.session.add(record)

    record.apply_rate(rate)
    if product_name is not None:
        record.product_name = product_name.strip() or None

    db.session.commit()

    if validation.warnings:
        logger.warning(
            "Saved conversion rate for %s with warnings: %s",
            normalized,
            "; ".join(validation.warnings),
        )
    logger.info(
        "%s conversion rate for %s (level1=%s, level2=%s)",
        "Created" if created else "Updated",
        normalized,
        rate.level1_rate,
        rate.level2_rate,
    )
    return record, validation


def delete_conversion_rate(sku: str | None) -> bool:
    normalized = normalize_sku(sku)
    record = get_conversion_rate_record(normalized)
    if record is None:
        return False

    db.session.delete(record)
    db.session.commit()
    logger.info("Deleted conversion rate for %s", normalized)
    return True
