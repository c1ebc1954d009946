from __future__ import annotations

from datetime import date, time
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional, Type, TypeVar

from ..core.exceptions import ValidationError
from .datetime_utils import parse_clock_time, parse_iso_date

E = TypeVar("E", bound=Enum)


def require_non_empty(value: Optional[str], field_name: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"{field_name} is required", field=field_name)
    return str(value).strip()


def require_min_length(value: str, field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters", field=field_name)
    return value


def optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    v = str(value).strip()
    return v or None


def require_int(value: Any, field_name: str) -> int:
    if value is None or value == "":
        raise ValidationError(f"{field_name} is required", field=field_name)
    try:
        out = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer", field=field_name)
    if out <= 0:
        raise ValidationError(f"{field_name} must be positive", field=field_name)
    return out


def optional_int(value: Any, field_name: str) -> Optional[int]:
    if value is None or value == "":
        return None
    return require_int(value, field_name)


def optional_decimal(value: Any, field_name: str, *, default: Optional[Decimal] = None) -> Optional[Decimal]:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a number", field=field_name)
    try:
        out = Decimal(str(value))
    except InvalidOperation:
        raise ValidationError(f"{field_name} must be a number", field=field_name)
    if not out.is_finite():
        raise ValidationError(f"{field_name} must be a number", field=field_name)
    return out


def require_non_negative(value: Optional[Decimal], field_name: str) -> Optional[Decimal]:
    if value is not None and value < 0:
        raise ValidationError(f"{field_name} cannot be negative", field=field_name)
    return value


def optional_bool(value: Any, *, default: bool = False) -> bool:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


def require_date(value: Any, field_name: str) -> date:
    if isinstance(value, date):
        return value
    if not value:
        raise ValidationError(f"{field_name} is required", field=field_name)
    try:
        return parse_iso_date(str(value))
    except ValueError:
        raise ValidationError(f"{field_name} must be a date (YYYY-MM-DD)", field=field_name)


def optional_date(value: Any, field_name: str) -> Optional[date]:
    if value is None or value == "":
        return None
    return require_date(value, field_name)


def optional_time(value: Any, field_name: str) -> Optional[time]:
    if value is None or value == "":
        return None
    if isinstance(value, time):
        return value
    try:
        return parse_clock_time(str(value))
    except ValueError:
        raise ValidationError(f"{field_name} must be a time (HH:MM:SS)", field=field_name)


def require_choice(value: Any, enum_cls: Type[E], field_name: str) -> E:
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(f"{field_name} must be one of: {allowed}", field=field_name)


def optional_choice(value: Any, enum_cls: Type[E], field_name: str, *, default: Optional[E] = None) -> Optional[E]:
    if value is None or value == "":
        return default
    return require_choice(value, enum_cls, field_name)


def optional_non_negative_int(value: Any, field_name: str, *, default: Optional[int] = None) -> Optional[int]:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be an integer", field=field_name)
    try:
        out = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer", field=field_name)
    if out < 0:
        raise ValidationError(f"{field_name} cannot be negative", field=field_name)
    return out
