"""JSON helpers shared by the Flask controllers."""

from __future__ import annotations

from dataclasses import asdict, is_dataclass
from datetime import date, datetime, time
from enum import Enum
from typing import Any, Optional

import structlog
from flask import Flask, jsonify, request

from ..core.exceptions import (
    AlreadyMappedError,
    DomainError,
    FeatureDisabledError,
    InvalidStateError,
    NoneAvailableError,
    NotFoundError,
    PromotionNotEligibleError,
    ValidationError,
)
from .datetime_utils import parse_iso_date

logger = structlog.get_logger(__name__)

_STATUS_BY_ERROR = (
    (NotFoundError, 404),
    (ValidationError, 400),
    (AlreadyMappedError, 409),
    (InvalidStateError, 409),
    (NoneAvailableError, 409),
    (PromotionNotEligibleError, 409),
    (FeatureDisabledError, 409),
)


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, time):
        return value.strftime("%H:%M")
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


def to_plain(obj: Any) -> Any:
    """Dataclass (or list of them) to JSON-ready primitives."""
    if isinstance(obj, (list, tuple)):
        return [to_plain(o) for o in obj]
    if is_dataclass(obj) and not isinstance(obj, type):
        return _plain(asdict(obj))
    return _plain(obj)


def json_body() -> dict[str, Any]:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("JSON body must be an object")
    return data


def required(data: dict[str, Any], key: str) -> Any:
    value = data.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"{key} is required")
    return value


def optional_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    try:
        return parse_iso_date(value)
    except ValueError as exc:
        raise ValidationError(f"Invalid date: {value}") from exc


def optional_datetime(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError as exc:
        raise ValidationError(f"Invalid datetime: {value}") from exc


def status_for(exc: DomainError) -> int:
    for cls, status in _STATUS_BY_ERROR:
        if isinstance(exc, cls):
            return status
    return 400


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(exc: DomainError):
        status = status_for(exc)
        logger.info("request_rejected", error_type=type(exc).__name__, status=status, error=str(exc))
        return jsonify({"success": False, "error": type(exc).__name__, "message": str(exc)}), status
