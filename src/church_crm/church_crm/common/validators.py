from __future__ import annotations

from ..core.exceptions import ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_positive(value: int, field_name: str) -> int:
    if value is None or int(value) < 1:
        raise ValidationError(f"{field_name} must be at least 1")
    return int(value)


def require_non_negative(value: int, field_name: str) -> int:
    if value is None or int(value) < 0:
        raise ValidationError(f"{field_name} must not be negative")
    return int(value)


def require_percentage(value: float, field_name: str) -> float:
    if value is None or not 0 <= float(value) <= 100:
        raise ValidationError(f"{field_name} must be between 0 and 100")
    return float(value)
