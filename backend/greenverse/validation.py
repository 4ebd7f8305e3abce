from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy import Boolean, Date, DateTime, Integer, Numeric, String, Text
from sqlalchemy.orm import DeclarativeMeta

from .errors import InvalidInput
from .money import to_cents
from .time_utils import parse_iso_date


# Upper bound of the 32-bit INTEGER columns (quantity, stock, capacity, cents)
INT_MAX = 2**31 - 1


class ValidationError(InvalidInput):
    """400-level input problem."""


def _in_int_range(value: int, field: str) -> int:
    if not -INT_MAX - 1 <= value <= INT_MAX:
        raise ValidationError(f"{field} is too large")
    return value


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    - choices: per-field closed sets of accepted string values
    - ignore_unknown: drop keys outside writable_fields instead of rejecting
    """
    writable_fields: frozenset[str]
    required_on_create: frozenset[str] = frozenset()
    choices: dict[str, frozenset[str]] | None = None
    ignore_unknown: bool = False


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def _coerce_value(col, value: Any):
    coltype = col.type

    # Integers - strict validation to reject floats and scientific notation
    if isinstance(coltype, Integer):
        if isinstance(value, int) and not isinstance(value, bool):
            return _in_int_range(value, col.key)
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped:
                raise ValidationError(f"{col.key} must be an integer")
            if "e" in stripped.lower():
                raise ValidationError(f"{col.key} must be a plain integer (scientific notation not allowed)")
            if "." in stripped:
                raise ValidationError(f"{col.key} must be an integer (no decimals)")
            try:
                number = int(stripped)
            except ValueError:
                raise ValidationError(f"{col.key} must be an integer")
            return _in_int_range(number, col.key)
        if isinstance(value, float):
            raise ValidationError(f"{col.key} must be an integer, not a decimal")
        raise ValidationError(f"{col.key} must be an integer")

    if isinstance(coltype, Numeric):
        if isinstance(value, bool):
            raise ValidationError(f"{col.key} must be a number")
        try:
            number = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            raise ValidationError(f"{col.key} must be a number")
        if not number.is_finite():
            raise ValidationError(f"{col.key} must be a number")
        return number

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        return bool(value)

    if isinstance(coltype, DateTime):
        if isinstance(value, datetime):
            return value
        raise ValidationError(f"{col.key} must be a datetime")

    if isinstance(coltype, Date):
        try:
            return parse_iso_date(value, col.key)
        except InvalidInput as exc:
            raise ValidationError(exc.message)

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
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        missing = sorted(f for f in policy.required_on_create if _is_blank(payload.get(f)))
        if missing:
            raise ValidationError(
                f"Missing required fields: {', '.join(missing)}",
            )

    cols = _columns_by_key(model)
    choices = policy.choices or {}
    patch: dict = {}

    for k, raw in payload.items():
        if k not in policy.writable_fields or k not in cols:
            if policy.ignore_unknown:
                continue
            raise ValidationError(f"Field not allowed: {k}")

        col = cols[k]

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        if k in choices and val not in choices[k]:
            raise ValidationError(f"{k} must be one of: {', '.join(sorted(choices[k]))}")

        patch[k] = val

    return patch


def positive_int(value, field: str) -> int:
    """Accept 3 or "3"; reject 0, negatives, floats with a fraction, bools."""
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a positive integer")
    if isinstance(value, float):
        if not value.is_integer():
            raise ValidationError(f"{field} must be a positive integer")
        value = int(value)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped.isdigit():
            raise ValidationError(f"{field} must be a positive integer")
        value = int(stripped)
    if not isinstance(value, int) or value <= 0:
        raise ValidationError(f"{field} must be a positive integer")
    return _in_int_range(value, field)


def apply_price(payload: dict, *, required: bool) -> dict:
    """
    Normalize the product price into price_cents.

    Clients send either price_cents (integer) or price (decimal). The
    returned payload carries only price_cents.
    """
    payload = dict(payload)
    price = payload.pop("price", None)
    if "price_cents" in payload and payload["price_cents"] is not None:
        if price is not None:
            raise ValidationError("Send either price or price_cents, not both")
        return payload
    if price is not None:
        payload["price_cents"] = to_cents(price, "price")
    elif required:
        raise ValidationError("Missing required fields: price")
    return payload


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    if patch.get("price_cents") is not None and patch["price_cents"] < 0:
        raise ValidationError("price_cents must be >= 0")
    if patch.get("stock") is not None and patch["stock"] < 0:
        raise ValidationError("stock must be >= 0")


def enforce_rules_cluster(patch: dict) -> None:
    if patch.get("capacity") is not None and patch["capacity"] <= 0:
        raise ValidationError("capacity must be > 0")


def enforce_rules_material(patch: dict) -> None:
    if patch.get("quantity") is not None and patch["quantity"] <= 0:
        raise ValidationError("quantity must be > 0")
    if patch.get("cost_per_unit_cents") is not None and patch["cost_per_unit_cents"] < 0:
        raise ValidationError("cost_per_unit must be >= 0")
