# Overview: Input coercion, domain constants and the shared error bases mapped to HTTP statuses.

from __future__ import annotations

import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy import Integer, Numeric, String


# Maximum price: $99,999,999.99 (8 integer digits, 2 decimal places)
MAX_PRICE_CENTS = 9_999_999_999

SKU_PATTERN = re.compile(r"^[A-Z0-9-]+$")
SKU_MAX_LENGTH = 50

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

MOVEMENT_TYPES = ("IN", "OUT")
MOVEMENT_REASONS = ("PURCHASE", "SALE", "ADJUSTMENT", "RETURN", "INITIAL_STOCK")
SUPPLIER_STATUSES = ("ACTIVE", "INACTIVE", "BLOCKED", "PENDING_APPROVAL")
SUPPLIER_TYPES = ("DOMESTIC", "INTERNATIONAL")

MIN_RATING = Decimal("1.00")
MAX_RATING = Decimal("5.00")


class ValidationError(ValueError):
    """Malformed or out-of-range input (HTTP 400)."""


class NotFoundError(LookupError):
    """Referenced record is missing or soft-deleted (HTTP 404)."""


class ConflictError(ValueError):
    """Identifying key already taken by an active record (HTTP 409)."""


class BusinessRuleError(ValueError):
    """Well-formed request that would break a stock rule (HTTP 422)."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Which JSON body keys a route accepts for a model.

    - writable_fields: column keys clients may set (security boundary)
    - required_on_create: keys that must be present and non-empty
    - choices: enumerated columns, compared case-insensitively
    - extra_fields: non-column keys the route reads itself (e.g. price)
    """
    writable_fields: frozenset[str]
    required_on_create: frozenset[str] = frozenset()
    choices: dict[str, tuple[str, ...]] = field(default_factory=dict)
    extra_fields: frozenset[str] = frozenset()


def coerce_int(name: str, value: Any) -> int:
    """Accept ints and plain integer strings; bools, floats and '1e3' are rejected."""
    if isinstance(value, bool) or isinstance(value, float):
        raise ValidationError(f"{name} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and re.fullmatch(r"[+-]?\d+", value.strip()):
        return int(value.strip())
    raise ValidationError(f"{name} must be an integer")


def coerce_decimal(name: str, value: Any) -> Decimal:
    if isinstance(value, bool):
        raise ValidationError(f"{name} must be a number")
    if isinstance(value, Decimal):
        dec = value
    elif isinstance(value, (int, float, str)):
        try:
            # str() keeps floats like 19.99 from turning into 19.989999...
            dec = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValidationError(f"{name} must be a number")
    else:
        raise ValidationError(f"{name} must be a number")
    if not dec.is_finite():
        raise ValidationError(f"{name} must be a number")
    return dec


def _coerce_column(column, value: Any):
    if isinstance(column.type, Integer):
        return coerce_int(column.key, value)
    if isinstance(column.type, Numeric):
        return coerce_decimal(column.key, value)
    if isinstance(column.type, String):
        if isinstance(value, (dict, list)):
            raise ValidationError(f"{column.key} must be a string")
        text = str(value).strip()
        if not text and not column.nullable:
            raise ValidationError(f"{column.key} cannot be blank")
        if column.type.length and len(text) > column.type.length:
            raise ValidationError(f"{column.key} exceeds max length {column.type.length}")
        return text
    return value


def validate_payload(*, model, payload: dict, policy: ModelValidationPolicy, partial: bool) -> dict:
    """
    Turn a JSON body into keyword values for a service call.

    Column types drive the coercion. Any key outside writable_fields and
    extra_fields is rejected; extra_fields are left for the caller. With
    partial=False every key in policy.required_on_create must be present.
    """
    if not isinstance(payload, dict):
        raise ValidationError("JSON object body required")

    if not partial:
        missing = sorted(k for k in policy.required_on_create if payload.get(k) in (None, ""))
        if missing:
            raise ValidationError(f"missing required fields: {', '.join(missing)}")

    columns = model.__mapper__.columns
    for key in payload:
        if key in policy.extra_fields:
            continue
        if key not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {key}")
        if key not in columns:
            raise ValidationError(f"Unknown field: {key}")

    patch: dict = {}
    for key in policy.writable_fields & payload.keys():
        column = columns[key]
        raw = payload[key]
        if raw is None:
            if not column.nullable:
                raise ValidationError(f"{key} cannot be null")
            patch[key] = None
            continue

        value = _coerce_column(column, raw)
        allowed = policy.choices.get(key)
        if allowed is not None:
            value = value.upper()
            if value not in allowed:
                raise ValidationError(f"{key} must be one of {', '.join(allowed)}")
        patch[key] = value
    return patch


def normalize_sku(sku: Any) -> str:
    if sku is None or not str(sku).strip():
        raise ValidationError("sku is required")
    value = str(sku).strip()
    if len(value) > SKU_MAX_LENGTH:
        raise ValidationError(f"sku exceeds max length {SKU_MAX_LENGTH}")
    if not SKU_PATTERN.match(value):
        raise ValidationError("sku must contain only uppercase letters, numbers, and hyphens")
    return value


def parse_price_cents(price: Any) -> int:
    """Convert a decimal price (at most 2 decimal places) to integer cents."""
    if price is None:
        raise ValidationError("price is required")
    dec = coerce_decimal("price", price)
    if dec <= 0:
        raise ValidationError("price must be greater than 0")
    try:
        quantized = dec.quantize(Decimal("0.01"))
    except InvalidOperation:
        raise ValidationError("price must have at most 8 integer digits")
    if dec != quantized:
        raise ValidationError("price must have at most 2 decimal places")
    cents = int(quantized * 100)
    if cents > MAX_PRICE_CENTS:
        raise ValidationError("price must have at most 8 integer digits")
    return cents


def cents_to_decimal(cents: int | None) -> Decimal | None:
    if cents is None:
        return None
    return (Decimal(cents) / 100).quantize(Decimal("0.01"))


def parse_rating(rating: Any) -> Decimal | None:
    if rating is None:
        return None
    dec = coerce_decimal("rating", rating)
    if dec < MIN_RATING or dec > MAX_RATING:
        raise ValidationError("rating must be between 1.0 and 5.0")
    if dec != dec.quantize(Decimal("0.01")):
        raise ValidationError("rating must have at most 2 decimal places")
    return dec.quantize(Decimal("0.01"))


def require_non_negative(name: str, value: Any) -> int:
    number = coerce_int(name, value)
    if number < 0:
        raise ValidationError(f"{name} cannot be negative")
    return number


def require_choice(name: str, value: Any, allowed: tuple[str, ...]) -> str:
    if value is None:
        raise ValidationError(f"{name} is required")
    text = str(value).strip().upper()
    if text not in allowed:
        raise ValidationError(f"{name} must be one of {', '.join(allowed)}")
    return text


def require_text(name: str, value: Any, *, max_length: int) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{name} is required")
    text = str(value).strip()
    if len(text) > max_length:
        raise ValidationError(f"{name} exceeds max length {max_length}")
    return text


def optional_text(name: str, value: Any, *, max_length: int) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    if len(text) > max_length:
        raise ValidationError(f"{name} exceeds max length {max_length}")
    return text


def parse_id_list(name: str, values: Any, *, required: bool) -> list[int]:
    """Validate a list of integer ids; duplicates are collapsed, order kept."""
    if values is None:
        values = []
    if not isinstance(values, (list, tuple, set)):
        raise ValidationError(f"{name} must be a list")
    ids: list[int] = []
    for raw in values:
        value = coerce_int(name, raw)
        if value not in ids:
            ids.append(value)
    if required and not ids:
        raise ValidationError(f"at least one entry is required in {name}")
    return ids
