from __future__ import annotations

import dataclasses
import logging
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any

from flask import Flask, jsonify, request

from ..core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from ..core.exceptions import DomainError, PersistenceError, ValidationError

logger = logging.getLogger(__name__)


def to_json(value: Any) -> Any:
    """Convert domain objects into JSON-friendly primitives."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_json(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M:%S")
    if isinstance(value, date):
        return value.strftime("%Y-%m-%d")
    if isinstance(value, time):
        return value.strftime("%H:%M:%S")
    if isinstance(value, dict):
        return {k: to_json(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json(v) for v in value]
    return value


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def page_args() -> tuple[int, int]:
    """Return (limit, offset) from ?page=&limit= query args."""
    try:
        page = max(int(request.args.get("page", 1)), 1)
        limit = int(request.args.get("limit", DEFAULT_PAGE_SIZE))
    except ValueError:
        raise ValidationError("page and limit must be integers")
    limit = min(max(limit, 1), MAX_PAGE_SIZE)
    return limit, (page - 1) * limit


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(e: DomainError):
        if isinstance(e, PersistenceError):
            logger.error("persistence failure: %s", e, exc_info=e)
        payload = {"error": str(e), "type": e.error_type}
        field = getattr(e, "field", None)
        if field:
            payload["field"] = field
        return jsonify(payload), e.status_code

    @app.errorhandler(404)
    def handle_not_found(_e):
        return jsonify({"error": "Resource not found", "type": "not_found"}), 404

    @app.errorhandler(405)
    def handle_method_not_allowed(_e):
        return jsonify({"error": "Method not allowed", "type": "method_not_allowed"}), 405
