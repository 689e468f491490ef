from __future__ import annotations

from flask import Blueprint, jsonify, request

from stockcanon.services.locations import (
    DuplicateLocationError,
    find_location,
    save_location,
)
from stockcanon.utils.location_code import (
    is_valid_location_code,
    normalize_location_result,
)
from stockcanon.utils.warehouse_location import parse_warehouse_location


bp = Blueprint("locations", __name__, url_prefix="/locations")

MAX_CODE_LENGTH = 64


def _code_argument():
    code = request.args.get("code")
    if code is None:
        return None, (jsonify({"error": "code is required"}), 400)
    if len(code) > MAX_CODE_LENGTH:
        return None, (
            jsonify({"error": f"code must be {MAX_CODE_LENGTH} characters or fewer."}),
            400,
        )
    return code, None


@bp.get("/api/normalize")
def normalize_api():
    """Normalize a scanned or typed slot code.

    Unrecognized codes are echoed back with ``status`` set to ``invalid`` rather
    than rejected, so label rendering can fall back to the raw text. Codes with
    a warehouse prefix (``WH2-A1/1``) are only recognized in the
    ``warehouse_*`` fields.
    """

    code, error_response = _code_argument()
    if error_response is not None:
        return error_response

    result = normalize_location_result(code)
    payload = {
        "input": result.input,
        "value": result.value,
        "status": result.status,
        "valid": result.is_valid,
        "location": result.location.to_dict() if result.location else None,
    }

    warehouse = parse_warehouse_location(code)
    if warehouse is not None:
        payload["warehouse_code"] = warehouse.warehouse_code
        payload["warehouse_value"] = warehouse.code

    return jsonify(payload)


@bp.get("/api/validate")
def validate_api():
    code, error_response = _code_argument()
    if error_response is not None:
        return error_response
    return jsonify({"code": code, "valid": is_valid_location_code(code)})


@bp.get("/api/locations/lookup")
def lookup_location_api():
    code, error_response = _code_argument()
    if error_response is not None:
        return error_response

    location = find_location(code)
    if location is None:
        return jsonify({"error": "Location not found"}), 404
    return jsonify(location.to_dict())


@bp.post("/api/locations")
def create_location_api():
    payload = request.get_json(silent=True) or {}
    code = payload.get("code")
    if not isinstance(code, str) or not code.strip():
        return jsonify({"error": "code is required"}), 400

    description = payload.get("description")
    if description is not None and not isinstance(description, str):
        return jsonify({"error": "description must be text"}), 400

    try:
        location = save_location(code, description)
    except DuplicateLocationError as exc:
        return jsonify({"error": str(exc)}), 409

    return jsonify(location.to_dict()), 201
