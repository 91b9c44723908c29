from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Callable

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import DeclarativeMeta

from .errors import ValidationError


MOBILE_NUMBER_PATTERN = re.compile(r"[0-9]{10}")
_INT_PATTERN = re.compile(r"[+-]?[0-9]+")

# Integer columns are 32-bit on PostgreSQL
MAX_INT_VALUE = 2_147_483_647


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: JSON keys clients are allowed to set (security boundary)
    - required_on_create: JSON keys required for POST
    - field_map: JSON key -> column key, for keys that differ
    - converters: JSON key -> callable producing the column value (bypasses column coercion)
    """
    writable_fields: set[str]
    required_on_create: set[str] = field(default_factory=set)
    field_map: dict[str, str] = field(default_factory=dict)
    converters: dict[str, Callable[[Any], Any]] = field(default_factory=dict)


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _check_range(value: int, field: str) -> int:
    if abs(value) > MAX_INT_VALUE:
        raise ValidationError(f"{field} is out of range")
    return value


def parse_int(value: Any, *, field: str) -> int:
    """
    Strict integer parsing for JSON and form input.

    Accepts ints and plain ASCII digit strings ("12", "-3") within the 32-bit
    column range. Rejects bools, floats, "12.0", "1e3" and blanks.
    """
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    if isinstance(value, int):
        return _check_range(value, field)
    if isinstance(value, float):
        raise ValidationError(f"{field} must be an integer, not a decimal")
    if isinstance(value, str) and _INT_PATTERN.fullmatch(value.strip()):
        return _check_range(int(value.strip()), field)
    raise ValidationError(f"{field} must be an integer")


def parse_positive_int(value: Any, *, field: str) -> int:
    if value is None:
        raise ValidationError(f"{field} is required")
    parsed = parse_int(value, field=field)
    if parsed <= 0:
        raise ValidationError(f"{field} must be a positive integer")
    return parsed


def parse_non_negative_int(value: Any, *, field: str) -> int:
    parsed = parse_int(value, field=field)
    if parsed < 0:
        raise ValidationError(f"{field} must be >= 0")
    return parsed


def require_text(value: Any, *, field: str, max_length: int | None = None) -> str:
    if value is None or isinstance(value, (dict, list)):
        raise ValidationError(f"{field} is required")
    text = str(value).strip()
    if not text:
        raise ValidationError(f"{field} is required")
    if max_length and len(text) > max_length:
        raise ValidationError(f"{field} exceeds max length {max_length}")
    return text


def validate_mobile_number(value: Any) -> str:
    """Mobile numbers are exactly ten digits, nothing else."""
    number = require_text(value, field="mobileNumber")
    if not MOBILE_NUMBER_PATTERN.fullmatch(number):
        raise ValidationError("mobileNumber must be exactly 10 digits")
    return number


def _coerce_value(col, value: Any, label: str):
    coltype = col.type

    if value is None:
        return None

    if isinstance(coltype, Integer):
        return parse_int(value, field=label)

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        if isinstance(value, (dict, list)):
            raise ValidationError(f"{label} must be a string")
        return str(value).strip()

    # Default: leave as-is
    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict keyed by column name.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        missing = sorted(
            f for f in policy.required_on_create
            if payload.get(f) is None or (isinstance(payload.get(f), str) and not payload[f].strip())
        )
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if policy.field_map.get(k, k) not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        key = policy.field_map.get(k, k)
        col = cols[key]

        # NULL handling
        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[key] = None
            continue

        if k in policy.converters:
            patch[key] = policy.converters[k](raw)
            continue

        val = _coerce_value(col, raw, k)

        # Blank string check for non-nullable text fields
        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[key] = val

    return patch
