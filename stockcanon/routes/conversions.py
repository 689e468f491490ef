from __future__ import annotations

from flask import Blueprint, jsonify, request

from stockcanon.errors import InvalidConversionRateError, QuantityRangeError
from stockcanon.services.conversion_rates import (
    delete_conversion_rate,
    get_conversion_rate,
    get_conversion_rate_record,
    normalize_sku,
    save_conversion_rate,
)
from stockcanon.utils.unit_conversion import (
    QUANTITY_KEYS,
    RATE_KEYS,
    ConversionRate,
    QuantityTriple,
    format_units_display,
    to_flat_units,
    to_triple,
)


bp = Blueprint("conversions", __name__, url_prefix="/conversions")

# Column-style keys, as stored on ``product_conversion_rate`` rows.
RECORD_QUANTITY_KEYS = tuple(f"unit_level{level}_quantity" for level in (1, 2, 3))
RECORD_RATE_KEYS = tuple(f"unit_{key}" for key in RATE_KEYS)


def _json_payload() -> dict:
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def _present(data: dict, keys) -> list[str]:
    return [key for key in keys if key in data]


def _quantity_from_payload(payload: dict) -> QuantityTriple:
    """Read ``level1``/``level2``/``level3`` or the ``unit_level*_quantity`` columns."""

    plain = _present(payload, QUANTITY_KEYS)
    columns = _present(payload, RECORD_QUANTITY_KEYS)
    if plain and columns:
        raise QuantityRangeError(
            "Send quantities as level1/level2/level3 or as unit_level*_quantity, "
            f"not both (got {', '.join(plain + columns)})"
        )
    if not plain and not columns:
        raise QuantityRangeError("Request must include at least one of level1, level2 or level3")
    if plain:
        return QuantityTriple.from_dict(payload)
    return QuantityTriple.from_record(payload)


def _rate_from_mapping(data: dict) -> ConversionRate:
    """Read ``level1_rate``/``level2_rate`` or the ``unit_level*_rate`` columns."""

    plain = _present(data, RATE_KEYS)
    columns = _present(data, RECORD_RATE_KEYS)
    if plain and columns:
        raise InvalidConversionRateError(
            [
                "Send rates as level1_rate/level2_rate or as unit_level*_rate, "
                f"not both (got {', '.join(plain + columns)})"
            ]
        )
    if plain:
        return ConversionRate.from_dict(data)
    return ConversionRate.from_record(data)


def _resolve_rate(payload: dict) -> tuple[ConversionRate | None, str | None]:
    """Pick the rate for a conversion request.

    An inline ``rate`` object wins over a ``sku`` lookup. Returns the rate and
    where it came from (``"payload"``, ``"sku"`` or ``None``).
    """

    inline = payload.get("rate")
    if isinstance(inline, dict):
        return _rate_from_mapping(inline), "payload"

    sku = normalize_sku(payload.get("sku"))
    if sku:
        rate = get_conversion_rate(sku)
        return rate, "sku" if rate is not None else None
    return None, None


@bp.get("/api/rates/<path:sku>")
def get_rate_api(sku):
    record = get_conversion_rate_record(sku)
    if record is None:
        return jsonify({"error": "Conversion rate not found"}), 404
    return jsonify(record.to_dict())


@bp.put("/api/rates/<path:sku>")
def save_rate_api(sku):
    payload = _json_payload()
    rate = _rate_from_mapping(payload)
    product_name = payload.get("product_name")
    if product_name is not None and not isinstance(product_name, str):
        return jsonify({"error": "product_name must be text"}), 400

    record, validation = save_conversion_rate(sku, rate, product_name=product_name)
    response = record.to_dict()
    response["warnings"] = validation.warnings
    return jsonify(response)


@bp.delete("/api/rates/<path:sku>")
def delete_rate_api(sku):
    if not delete_conversion_rate(sku):
        return jsonify({"error": "Conversion rate not found"}), 404
    return "", 204


@bp.post("/api/flatten")
def flatten_api():
    payload = _json_payload()
    quantity = _quantity_from_payload(payload)
    rate, rate_source = _resolve_rate(payload)

    fallback = None
    if isinstance(payload.get("fallback"), dict):
        fallback = _rate_from_mapping(payload["fallback"])

    flat_units = to_flat_units(quantity, rate, fallback=fallback)
    return jsonify(
        {
            "quantity": quantity.to_dict(),
            "flat_units": flat_units,
            "rate_source": rate_source,
        }
    )


@bp.post("/api/decompose")
def decompose_api():
    payload = _json_payload()
    rate, rate_source = _resolve_rate(payload)
    quantity = to_triple(payload.get("flat_units"), rate)
    return jsonify(
        {
            "flat_units": payload.get("flat_units"),
            "quantity": quantity.to_dict(),
            "display": format_units_display(quantity, rate),
            "rate_source": rate_source,
        }
    )
