from __future__ import annotations

from typing import Any

from ..core.exceptions import ValidationError


def require_non_empty(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} 값이 올바르지 않습니다")
    return value.strip()


def require_positive_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} 값이 올바르지 않습니다")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} 값이 올바르지 않습니다")
    if number <= 0:
        raise ValidationError(f"{field_name} 값은 1 이상이어야 합니다")
    return number

