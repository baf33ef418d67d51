# Overview: Active-scoped uniqueness checks and key retirement for soft-deleted records.

"""
Soft-Delete & Uniqueness

Identifying keys (Product.sku, Supplier.business_id) only have to be unique
among ACTIVE rows. A soft-deleted row keeps its original key in a side column
(original_sku / original_business_id) and its live key is rewritten to a
tombstone value, so the original key is free for a new record.
"""

from __future__ import annotations

import secrets
import time

from ..extensions import db
from ..models import Product, Supplier
from ..time_utils import utcnow

TOMBSTONE_MARKER = "_deleted_"


def sku_in_use(sku: str, *, exclude_product_id: int | None = None) -> bool:
    """True if an active product other than exclude_product_id uses this SKU."""
    q = db.session.query(Product.id).filter(
        Product.sku == sku,
        Product.is_active.is_(True),
    )
    if exclude_product_id is not None:
        q = q.filter(Product.id != exclude_product_id)
    return db.session.query(q.exists()).scalar()


def business_id_in_use(business_id: str | None, *, exclude_supplier_id: int | None = None) -> bool:
    if business_id is None:
        return False
    q = db.session.query(Supplier.id).filter(
        Supplier.business_id == business_id,
        Supplier.is_active.is_(True),
    )
    if exclude_supplier_id is not None:
        q = q.filter(Supplier.id != exclude_supplier_id)
    return db.session.query(q.exists()).scalar()


def tombstone_key(key: str) -> str:
    """Unique replacement for a retired key: <key>_deleted_<epoch ms>_<token>."""
    stamp = time.time_ns() // 1_000_000
    return f"{key}{TOMBSTONE_MARKER}{stamp}_{secrets.token_hex(4)}"


def is_tombstone(key: str | None) -> bool:
    return bool(key) and TOMBSTONE_MARKER in key


def retire_product(product: Product) -> None:
    """
    Mark a product inactive and free its SKU.

    Caller is responsible for the stock gate and for committing.
    """
    now = utcnow()
    product.deleted_at = now
    product.updated_at = now
    product.is_active = False
    if product.original_sku is None:
        product.original_sku = product.sku
    product.sku = tombstone_key(product.original_sku)


def retire_supplier(supplier: Supplier) -> None:
    now = utcnow()
    supplier.deleted_at = now
    supplier.updated_at = now
    supplier.is_active = False
    if supplier.business_id is not None:
        if supplier.original_business_id is None:
            supplier.original_business_id = supplier.business_id
        supplier.business_id = tombstone_key(supplier.original_business_id)
