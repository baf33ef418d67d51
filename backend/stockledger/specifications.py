# Overview: Composable search predicates for products, suppliers and stock movements.

"""
Specifications

A Specification wraps a pure function `model -> SQL boolean clause`.
Specifications compose with & (AND), | (OR) and ~ (NOT), and are applied to a
query with `spec.apply(query, Model)`.

Every criterion builder is total: a missing value (None, or an empty /
whitespace-only string) produces ALWAYS, the always-true specification, so a
search with a blank filter is identical to a search without it.

Search entry points (product_search, supplier_search, movement_search) always
AND in the active-only constraint where the model has one.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_CEILING, ROUND_FLOOR
from typing import Any, Callable

from sqlalchemy import and_, func, not_, or_, true

from .validation import coerce_decimal


class Specification:
    __slots__ = ("_build",)

    def __init__(self, build: Callable[[Any], Any]):
        self._build = build

    def to_clause(self, model):
        return self._build(model)

    def apply(self, query, model):
        return query.filter(self.to_clause(model))

    def and_(self, other: "Specification") -> "Specification":
        return Specification(lambda m: and_(self.to_clause(m), other.to_clause(m)))

    def or_(self, other: "Specification") -> "Specification":
        return Specification(lambda m: or_(self.to_clause(m), other.to_clause(m)))

    def __and__(self, other: "Specification") -> "Specification":
        return self.and_(other)

    def __or__(self, other: "Specification") -> "Specification":
        return self.or_(other)

    def __invert__(self) -> "Specification":
        return Specification(lambda m: not_(self.to_clause(m)))

    @classmethod
    def all_of(cls, *specs: "Specification") -> "Specification":
        if not specs:
            return ALWAYS
        return cls(lambda m: and_(*(s.to_clause(m) for s in specs)))

    @classmethod
    def any_of(cls, *specs: "Specification") -> "Specification":
        if not specs:
            return ALWAYS
        return cls(lambda m: or_(*(s.to_clause(m) for s in specs)))


ALWAYS = Specification(lambda m: true())


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def _like_pattern(value: str) -> str:
    escaped = value.lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


# --- generic criteria ------------------------------------------------------


def is_active() -> Specification:
    return Specification(lambda m: m.is_active.is_(True))


def contains_ci(attr: str, value: str | None) -> Specification:
    """Case-insensitive substring match."""
    if is_blank(value):
        return ALWAYS
    pattern = _like_pattern(value.strip())
    return Specification(lambda m: func.lower(getattr(m, attr)).like(pattern, escape="\\"))


def equals(attr: str, value: Any) -> Specification:
    if is_blank(value):
        return ALWAYS
    if isinstance(value, str):
        value = value.strip()
    return Specification(lambda m: getattr(m, attr) == value)


def equals_ci(attr: str, value: str | None) -> Specification:
    if is_blank(value):
        return ALWAYS
    target = value.strip().upper()
    return Specification(lambda m: func.upper(getattr(m, attr)) == target)


def between(attr: str, low: Any = None, high: Any = None) -> Specification:
    """Inclusive range; either bound may be omitted."""
    if low is None and high is None:
        return ALWAYS
    if low is not None and high is not None:
        return Specification(lambda m: getattr(m, attr).between(low, high))
    if low is not None:
        return Specification(lambda m: getattr(m, attr) >= low)
    return Specification(lambda m: getattr(m, attr) <= high)


# --- product criteria ------------------------------------------------------


def has_name(name: str | None) -> Specification:
    return contains_ci("name", name)


def has_category(category: str | None) -> Specification:
    return equals("category", category)


def has_sku(sku: str | None) -> Specification:
    return contains_ci("sku", sku)


def has_description(description: str | None) -> Specification:
    return contains_ci("description", description)


def _to_cents(value: Any, rounding: str) -> int | None:
    if is_blank(value):
        return None
    dec = coerce_decimal("price", value)
    return int((dec * 100).to_integral_value(rounding=rounding))


def has_price_between(min_price: Any = None, max_price: Any = None) -> Specification:
    # Bounds arrive as decimal prices; storage is integer cents.
    return between(
        "price_cents",
        _to_cents(min_price, ROUND_CEILING),
        _to_cents(max_price, ROUND_FLOOR),
    )


def has_stock_between(min_stock: int | None = None, max_stock: int | None = None) -> Specification:
    return between("stock_quantity", min_stock, max_stock)


def is_low_stock(flag: bool | None = True) -> Specification:
    if flag is not True:
        return ALWAYS
    return Specification(lambda m: m.stock_quantity <= m.min_stock_level)


@dataclass(frozen=True)
class ProductFilters:
    name: str | None = None
    category: str | None = None
    sku: str | None = None
    description: str | None = None
    min_price: Decimal | None = None
    max_price: Decimal | None = None
    min_stock: int | None = None
    max_stock: int | None = None
    low_stock: bool | None = None


def product_search(filters: ProductFilters | None = None) -> Specification:
    f = filters or ProductFilters()
    return Specification.all_of(
        is_active(),
        has_name(f.name),
        has_category(f.category),
        has_sku(f.sku),
        has_description(f.description),
        has_price_between(f.min_price, f.max_price),
        has_stock_between(f.min_stock, f.max_stock),
        is_low_stock(f.low_stock),
    )


# --- supplier criteria -----------------------------------------------------


@dataclass(frozen=True)
class SupplierFilters:
    name: str | None = None
    email: str | None = None
    city: str | None = None
    country: str | None = None
    status: str | None = None
    supplier_type: str | None = None
    min_rating: Decimal | None = None
    max_rating: Decimal | None = None
    min_delivery_days: int | None = None
    max_delivery_days: int | None = None


def supplier_search(filters: SupplierFilters | None = None) -> Specification:
    f = filters or SupplierFilters()
    return Specification.all_of(
        is_active(),
        contains_ci("name", f.name),
        contains_ci("email", f.email),
        contains_ci("city", f.city),
        equals_ci("country", f.country),
        equals("status", f.status),
        equals("supplier_type", f.supplier_type),
        between("rating", f.min_rating, f.max_rating),
        between("average_delivery_days", f.min_delivery_days, f.max_delivery_days),
    )


# --- movement criteria -----------------------------------------------------


@dataclass(frozen=True)
class MovementFilters:
    product_id: int | None = None
    movement_type: str | None = None
    reason: str | None = None
    created_by: str | None = None
    created_from: datetime | None = None
    created_to: datetime | None = None


def movement_search(filters: MovementFilters | None = None) -> Specification:
    f = filters or MovementFilters()
    return Specification.all_of(
        equals("product_id", f.product_id),
        equals("movement_type", f.movement_type),
        equals("reason", f.reason),
        equals("created_by", f.created_by),
        between("created_at", f.created_from, f.created_to),
    )
