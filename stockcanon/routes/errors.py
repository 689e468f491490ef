from __future__ import annotations

import traceback

from flask import Blueprint, current_app, jsonify, request
from werkzeug.exceptions import HTTPException

from stockcanon.errors import CanonicalizationError, InvalidConversionRateError

bp = Blueprint("errors", __name__)


def _format_stacktrace(error: BaseException | None) -> str:
    if error is None:
        return ""

    return "".join(traceback.format_exception(type(error), error, error.__traceback__))


@bp.app_errorhandler(CanonicalizationError)
def handle_canonicalization_error(error: CanonicalizationError):
    current_app.logger.warning(
        "Rejected %s %s: %s", request.method, request.path, error
    )
    payload: dict[str, object] = {"error": str(error)}
    if isinstance(error, InvalidConversionRateError):
        payload["errors"] = error.errors
    return jsonify(payload), 400


@bp.app_errorhandler(Exception)
def handle_exception(error: Exception):
    # Allow HTTP errors that are not 500 to propagate to their default handlers.
    if isinstance(error, HTTPException) and error.code != 500:
        return error

    root_error: BaseException | None = getattr(error, "original_exception", None)
    if root_error is None or not isinstance(root_error, BaseException):
        root_error = error

    error_message = "Internal Server Error"
    if isinstance(error, HTTPException) and error.description:
        error_message = error.description
    else:
        error_message = str(error) or error_message

    current_app.logger.exception("Unhandled exception", exc_info=error)

    payload: dict[str, object] = {
        "error": error_message,
        "endpoint": request.endpoint,
        "path": request.path,
    }
    if current_app.debug:
        payload["stacktrace"] = _format_stacktrace(root_error)
    return jsonify(payload), 500
