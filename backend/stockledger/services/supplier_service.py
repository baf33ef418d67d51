# Overview: Service-layer operations for suppliers; encapsulates business logic and database work.

"""
Supplier Service

Suppliers are associated with products many-to-many (product_suppliers).
Associations are never created implicitly: every supplier id is checked to
exist and be active before it is linked to a product.

business_id is optional but unique among active suppliers; a soft-deleted
supplier releases its business_id the same way a product releases its SKU.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Product, Supplier, product_suppliers
from ..specifications import SupplierFilters, is_active, supplier_search
from ..time_utils import utcnow
from ..validation import (
    ConflictError,
    EMAIL_PATTERN,
    NotFoundError,
    SUPPLIER_STATUSES,
    SUPPLIER_TYPES,
    ValidationError,
    coerce_int,
    optional_text,
    parse_rating,
    require_choice,
    require_text,
)
from .concurrency import run_with_retry
from .pagination import Page, paginate
from .uniqueness_service import business_id_in_use, retire_supplier

logger = logging.getLogger(__name__)


class SupplierNotFoundError(NotFoundError):
    def __init__(self, supplier_id):
        self.supplier_id = supplier_id
        super().__init__(f"Supplier not found: {supplier_id}")


class DuplicateBusinessIdError(ConflictError):
    def __init__(self, business_id: str):
        self.business_id = business_id
        super().__init__(f"Business ID already exists: {business_id}")


def _clean_fields(fields: dict) -> dict:
    """Validate supplier attributes shared by create and update."""
    email = require_text("email", fields.get("email"), max_length=100)
    if not EMAIL_PATTERN.match(email):
        raise ValidationError("email must be valid")

    address = fields.get("address") or {}
    if not isinstance(address, dict):
        raise ValidationError("address must be an object")

    delivery_days = fields.get("average_delivery_days")
    if delivery_days is not None:
        delivery_days = coerce_int("average_delivery_days", delivery_days)
        if delivery_days < 1:
            raise ValidationError("average_delivery_days must be at least 1")

    supplier_type = fields.get("supplier_type")
    if supplier_type is not None:
        supplier_type = require_choice("supplier_type", supplier_type, SUPPLIER_TYPES)

    return {
        "name": require_text("name", fields.get("name"), max_length=150),
        "business_id": optional_text("business_id", fields.get("business_id"), max_length=50),
        "email": email,
        "phone": require_text("phone", fields.get("phone"), max_length=20),
        "contact_person": optional_text("contact_person", fields.get("contact_person"), max_length=100),
        "street_address": optional_text("street_address", address.get("street_address"), max_length=200),
        "city": optional_text("city", address.get("city"), max_length=50),
        "state_province": optional_text("state_province", address.get("state_province"), max_length=50),
        "postal_code": optional_text("postal_code", address.get("postal_code"), max_length=20),
        "country": optional_text("country", address.get("country"), max_length=3),
        "payment_terms": optional_text("payment_terms", fields.get("payment_terms"), max_length=100),
        "average_delivery_days": delivery_days,
        "supplier_type": supplier_type,
        "notes": optional_text("notes", fields.get("notes"), max_length=1000),
        "rating": parse_rating(fields.get("rating")),
    }


def _commit_supplier(business_id: str | None) -> None:
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        if business_id is not None and "business_id" in str(exc.orig).lower():
            raise DuplicateBusinessIdError(business_id) from exc
        raise


def load_active_supplier(supplier_id) -> Supplier:
    supplier = db.session.get(Supplier, supplier_id)
    if supplier is None or not supplier.is_active:
        raise SupplierNotFoundError(supplier_id)
    return supplier


def resolve_active_suppliers(supplier_ids: list[int]) -> list[Supplier]:
    """Load every supplier in supplier_ids; the first missing id raises SupplierNotFoundError."""
    if not supplier_ids:
        return []
    found = {
        s.id: s
        for s in db.session.query(Supplier)
        .filter(Supplier.id.in_(supplier_ids), Supplier.is_active.is_(True))
        .all()
    }
    for supplier_id in supplier_ids:
        if supplier_id not in found:
            raise SupplierNotFoundError(supplier_id)
    return [found[i] for i in supplier_ids]


def create_supplier(*, status: str | None = None, **fields) -> Supplier:
    """
    Create a supplier.

    Raises:
        ValidationError: malformed input
        DuplicateBusinessIdError: business_id used by another active supplier
    """
    values = _clean_fields(fields)
    values["status"] = require_choice("status", status or "ACTIVE", SUPPLIER_STATUSES)

    def _op():
        if business_id_in_use(values["business_id"]):
            raise DuplicateBusinessIdError(values["business_id"])

        now = utcnow()
        supplier = Supplier(is_active=True, created_at=now, updated_at=now, **values)
        db.session.add(supplier)
        _commit_supplier(values["business_id"])
        return supplier

    supplier = run_with_retry(_op)
    logger.info("Created supplier id=%s name=%s", supplier.id, supplier.name)
    return supplier


def get_supplier(supplier_id) -> Supplier:
    return load_active_supplier(coerce_int("supplier_id", supplier_id))


def list_suppliers(*, page: int | None = None, per_page: int | None = None) -> Page:
    query = is_active().apply(db.session.query(Supplier), Supplier)
    query = query.order_by(Supplier.created_at.desc(), Supplier.id.desc())
    return paginate(query, page, per_page)


def search_suppliers(
    filters: SupplierFilters | None = None,
    *,
    page: int | None = None,
    per_page: int | None = None,
) -> Page:
    query = supplier_search(filters).apply(db.session.query(Supplier), Supplier)
    query = query.order_by(Supplier.created_at.desc(), Supplier.id.desc())
    return paginate(query, page, per_page)


def update_supplier(*, supplier_id, status: str, **fields) -> Supplier:
    supplier_id = coerce_int("supplier_id", supplier_id)
    values = _clean_fields(fields)
    values["status"] = require_choice("status", status, SUPPLIER_STATUSES)

    def _op():
        supplier = load_active_supplier(supplier_id)

        new_business_id = values["business_id"]
        if (
            new_business_id is not None
            and new_business_id != supplier.business_id
            and business_id_in_use(new_business_id, exclude_supplier_id=supplier.id)
        ):
            raise DuplicateBusinessIdError(new_business_id)

        for key, value in values.items():
            setattr(supplier, key, value)
        supplier.updated_at = utcnow()
        _commit_supplier(new_business_id)
        return supplier

    supplier = run_with_retry(_op)
    logger.info("Updated supplier id=%s", supplier.id)
    return supplier


def delete_supplier(*, supplier_id) -> Supplier:
    """Soft-delete a supplier; existing product links are kept for history."""
    supplier_id = coerce_int("supplier_id", supplier_id)

    def _op():
        supplier = load_active_supplier(supplier_id)
        retire_supplier(supplier)
        db.session.commit()
        return supplier

    supplier = run_with_retry(_op)
    logger.info("Soft-deleted supplier id=%s", supplier.id)
    return supplier


def list_supplier_products(supplier_id, *, page: int | None = None, per_page: int | None = None) -> Page:
    """Active products linked to an active supplier."""
    supplier = load_active_supplier(coerce_int("supplier_id", supplier_id))
    query = (
        db.session.query(Product)
        .join(product_suppliers, product_suppliers.c.product_id == Product.id)
        .filter(product_suppliers.c.supplier_id == supplier.id)
    )
    query = is_active().apply(query, Product)
    query = query.order_by(Product.created_at.desc(), Product.id.desc())
    return paginate(query, page, per_page)
