from __future__ import annotations

from typing import Sequence

from ..core.exceptions import ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"حقل {field_name} مطلوب")
    return str(value).strip()


def require_min_length(value: str, field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} يجب ألا تقل عن {min_len} أحرف")
    return value


def require_max_items(values: Sequence, field_name: str, max_items: int) -> Sequence:
    if len(values) > max_items:
        raise ValidationError(f"{field_name}: الحد الأقصى {max_items}")
    return values
