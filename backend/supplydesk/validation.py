from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

from sqlalchemy import Boolean, DateTime, Integer, Numeric, String, Text
from sqlalchemy.orm import DeclarativeMeta

from supplydesk.time_utils import parse_iso_datetime


# Upper bound for any single money value: 9,999,999,999.99 fits Numeric(12, 2)
MAX_AMOUNT = Decimal("9999999999.99")
CENT = Decimal("0.01")
# SQLite INTEGER is a signed 64-bit value
MAX_INT = 2**63 - 1


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """400-level business rule conflict (e.g., duplicate category name)."""


class NotFoundError(LookupError):
    """404-level: entity missing or not visible to the caller."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: JSON keys clients are allowed to set (security boundary)
    - required_on_create: JSON keys required for POST
    - aliases: JSON key -> model column key (camelCase bodies, snake_case columns)
    """
    writable_fields: set[str]
    required_on_create: set[str] = field(default_factory=set)
    aliases: dict[str, str] = field(default_factory=dict)


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def parse_int(value: Any, name: str) -> int:
    """Strict integer parsing: ints and plain digit strings only."""
    parsed = _coerce_int(value, name)
    if not -MAX_INT <= parsed <= MAX_INT:
        raise ValidationError(f"{name} is out of range")
    return parsed


def _coerce_int(value: Any, name: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{name} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value.is_integer():
            return int(value)
        raise ValidationError(f"{name} must be an integer, not a decimal")
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{name} must be an integer")
        if "e" in stripped.lower() or "." in stripped:
            raise ValidationError(f"{name} must be a plain integer")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{name} must be an integer")
    raise ValidationError(f"{name} must be an integer")


def parse_positive_int(value: Any, name: str) -> int:
    if value is None or value == "":
        raise ValidationError(f"{name} is required")
    parsed = parse_int(value, name)
    if parsed <= 0:
        raise ValidationError(f"{name} must be greater than 0")
    return parsed


def parse_non_negative_int(value: Any, name: str) -> int:
    parsed = parse_int(value, name)
    if parsed < 0:
        raise ValidationError(f"{name} must be >= 0")
    return parsed


def parse_amount(value: Any, name: str, *, positive: bool = False) -> Decimal:
    """Parse a money value to a 2-place Decimal."""
    if value is None or value == "" or isinstance(value, bool):
        raise ValidationError(f"{name} is required")
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{name} must be a number")
    if not amount.is_finite():
        raise ValidationError(f"{name} must be a number")
    amount = amount.quantize(CENT, rounding=ROUND_HALF_UP)
    if positive and amount <= 0:
        raise ValidationError(f"{name} must be greater than 0")
    if amount < 0:
        raise ValidationError(f"{name} must be >= 0")
    if amount > MAX_AMOUNT:
        raise ValidationError(f"{name} cannot exceed {MAX_AMOUNT}")
    return amount


def parse_datetime_field(value: Any, name: str) -> datetime:
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        raise ValidationError(f"{name} must be an ISO-8601 date")
    try:
        dt = parse_iso_datetime(value)
    except ValueError:
        raise ValidationError(f"{name} must be an ISO-8601 date")
    if dt is None:
        raise ValidationError(f"{name} is required")
    return dt


def json_object(payload: Any) -> dict:
    """Request body as a dict; a missing or unparsable body reads as {}."""
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    return payload


def parse_text(value: Any, name: str) -> str:
    """Non-blank string, stripped."""
    if not isinstance(value, str):
        raise ValidationError(f"{name} must be a string")
    stripped = value.strip()
    if not stripped:
        raise ValidationError(f"{name} cannot be blank")
    return stripped


def require_fields(payload: dict, *names: str) -> None:
    """Reject payloads missing any of names (None and blank strings count as missing)."""
    missing = [
        n for n in names
        if payload.get(n) is None or (isinstance(payload.get(n), str) and not payload[n].strip())
    ]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")


def _coerce_value(col, value: Any, name: str):
    coltype = col.type

    if value is None:
        return None

    if isinstance(coltype, Integer):
        return parse_int(value, name)

    if isinstance(coltype, Numeric):
        return parse_amount(value, name)

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        raise ValidationError(f"{name} must be a boolean")

    if isinstance(coltype, DateTime):
        return parse_datetime_field(value, name)

    if isinstance(coltype, (String, Text)):
        return str(value).strip()

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

    Keys outside writable_fields are ignored.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        require_fields(payload, *sorted(policy.required_on_create))

    cols = _columns_by_key(model)
    patch: dict = {}

    for key, raw in payload.items():
        if key not in policy.writable_fields:
            continue
        col_key = policy.aliases.get(key, key)
        col = cols[col_key]

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{key} cannot be null")
            patch[col_key] = None
            continue

        val = _coerce_value(col, raw, key)

        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{key} cannot be blank")

        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{key} exceeds max length {col.type.length}")

        patch[col_key] = val

    return patch


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    if patch.get("quantity") is not None and patch["quantity"] < 0:
        raise ValidationError("quantity must be >= 0")
    if patch.get("min_stock") is not None and patch["min_stock"] < 0:
        raise ValidationError("minStock must be >= 0")
    max_stock = patch.get("max_stock")
    if max_stock is not None and patch.get("min_stock") is not None and max_stock <= patch["min_stock"]:
        raise ValidationError("maxStock must be greater than minStock")


def to_number(value: Decimal | int | float | None) -> float:
    """Money column -> plain JSON number."""
    if value is None:
        return 0.0
    return float(value)


def to_decimal(value: Any) -> Decimal:
    """Normalize aggregate results (SQLite may hand back floats) to Decimal."""
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)
