# backend/stockledger/services/products_service.py
"""
Products Service

Product lifecycle on top of the stock ledger:
- create_product persists the product and its INITIAL_STOCK movement in one
  transaction
- update_product changes descriptive fields only; stock is never touched here
- delete_product is a soft delete gated on zero stock, and frees the SKU
"""
from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Product, Supplier
from ..specifications import ProductFilters, is_active, is_low_stock, product_search
from ..time_utils import utcnow
from ..validation import (
    BusinessRuleError,
    ConflictError,
    coerce_int,
    normalize_sku,
    optional_text,
    parse_id_list,
    parse_price_cents,
    require_non_negative,
    require_text,
)
from .concurrency import run_with_retry
from .pagination import Page, paginate
from .stock_service import ProductNotFoundError, load_active_product, record_initial_stock
from .supplier_service import SupplierNotFoundError, resolve_active_suppliers
from .uniqueness_service import retire_product, sku_in_use

logger = logging.getLogger(__name__)


class DuplicateSkuError(ConflictError):
    def __init__(self, sku: str):
        self.sku = sku
        super().__init__(f"SKU already exists: {sku}")


class InvalidStockLevelError(BusinessRuleError):
    def __init__(self, stock_quantity: int, min_stock_level: int):
        self.stock_quantity = stock_quantity
        self.min_stock_level = min_stock_level
        super().__init__(
            f"Stock quantity ({stock_quantity}) cannot be below minimum stock level ({min_stock_level})"
        )


class ProductHasStockError(BusinessRuleError):
    def __init__(self, sku: str, stock_quantity: int):
        self.sku = sku
        self.stock_quantity = stock_quantity
        super().__init__(
            f"Cannot delete product {sku}: {stock_quantity} units still in stock"
        )


def _validate_stock_level(stock_quantity: int, min_stock_level: int) -> None:
    if stock_quantity < min_stock_level:
        raise InvalidStockLevelError(stock_quantity, min_stock_level)


def _is_sku_index_violation(exc: IntegrityError) -> bool:
    text = str(exc.orig).lower()
    return "sku" in text or "uq_products_active_sku" in text


def _write_or_duplicate(sku: str, write) -> None:
    """
    Run `write` (flushes and the commit), mapping a hit on the active-SKU
    index to DuplicateSkuError. A concurrent writer can claim the SKU
    between sku_in_use and the INSERT; only the index sees that.
    """
    try:
        write()
    except IntegrityError as exc:
        db.session.rollback()
        if _is_sku_index_violation(exc):
            raise DuplicateSkuError(sku) from exc
        raise


def create_product(
    *,
    name: str,
    sku: str,
    price,
    description: str | None = None,
    initial_stock_quantity=0,
    min_stock_level=0,
    category: str | None = None,
    supplier_ids=None,
    actor: str | None = None,
) -> Product:
    """
    Create a product and record its initial stock.

    Raises:
        ValidationError: malformed input
        InvalidStockLevelError: initial stock below min_stock_level
        DuplicateSkuError: SKU used by another active product
        SupplierNotFoundError: any supplier id missing or inactive
    """
    name = require_text("name", name, max_length=100)
    description = optional_text("description", description, max_length=500)
    sku = normalize_sku(sku)
    price_cents = parse_price_cents(price)
    initial = require_non_negative("stock_quantity", 0 if initial_stock_quantity is None else initial_stock_quantity)
    minimum = require_non_negative("min_stock_level", 0 if min_stock_level is None else min_stock_level)
    category = optional_text("category", category, max_length=50)
    supplier_ids = parse_id_list("supplier_ids", supplier_ids, required=False)

    def _op():
        _validate_stock_level(initial, minimum)

        if sku_in_use(sku):
            raise DuplicateSkuError(sku)

        suppliers = resolve_active_suppliers(supplier_ids)

        now = utcnow()
        product = Product(
            name=name,
            description=description,
            sku=sku,
            price_cents=price_cents,
            stock_quantity=0,
            min_stock_level=minimum,
            category=category,
            is_active=True,
            created_at=now,
            updated_at=now,
        )
        product.suppliers = suppliers
        db.session.add(product)

        def _write():
            db.session.flush()  # product.id is needed by the ledger append
            record_initial_stock(product, initial, actor=actor)
            db.session.commit()

        _write_or_duplicate(sku, _write)
        return product

    try:
        product = run_with_retry(_op)
    except (InvalidStockLevelError, DuplicateSkuError, SupplierNotFoundError) as exc:
        logger.warning("Rejected product creation sku=%s: %s", sku, exc)
        raise

    logger.info("Created product id=%s sku=%s initial_stock=%d", product.id, product.sku, initial)
    return product


def get_product(product_id) -> Product:
    return load_active_product(coerce_int("product_id", product_id))


def get_product_by_sku(sku: str) -> Product:
    if sku is None or not str(sku).strip():
        raise ProductNotFoundError(sku)
    product = (
        db.session.query(Product)
        .filter(Product.sku == str(sku).strip(), Product.is_active.is_(True))
        .first()
    )
    if product is None:
        raise ProductNotFoundError(sku)
    return product


def list_products(*, page: int | None = None, per_page: int | None = None) -> Page:
    query = is_active().apply(db.session.query(Product), Product)
    query = query.order_by(Product.created_at.desc(), Product.id.desc())
    return paginate(query, page, per_page)


def search_products(
    filters: ProductFilters | None = None,
    *,
    page: int | None = None,
    per_page: int | None = None,
) -> Page:
    """Active products matching every supplied filter; blank filters are ignored."""
    query = product_search(filters).apply(db.session.query(Product), Product)
    query = query.order_by(Product.created_at.desc(), Product.id.desc())
    return paginate(query, page, per_page)


def list_low_stock_products(*, page: int | None = None, per_page: int | None = None) -> Page:
    spec = is_active() & is_low_stock(True)
    query = spec.apply(db.session.query(Product), Product)
    query = query.order_by(Product.stock_quantity.asc(), Product.id.asc())
    return paginate(query, page, per_page)


def update_product(
    *,
    product_id,
    name: str,
    sku: str,
    price,
    min_stock_level,
    description: str | None = None,
    category: str | None = None,
) -> Product:
    """
    Replace a product's descriptive fields.

    stock_quantity, is_active, original_sku and created_at are never changed
    here; min_stock_level is checked against the current stock.
    """
    product_id = coerce_int("product_id", product_id)
    name = require_text("name", name, max_length=100)
    description = optional_text("description", description, max_length=500)
    sku = normalize_sku(sku)
    price_cents = parse_price_cents(price)
    minimum = require_non_negative("min_stock_level", min_stock_level)
    category = optional_text("category", category, max_length=50)

    def _op():
        product = load_active_product(product_id, lock=True)

        if sku != product.sku and sku_in_use(sku, exclude_product_id=product.id):
            raise DuplicateSkuError(sku)

        _validate_stock_level(product.stock_quantity, minimum)

        product.name = name
        product.description = description
        product.sku = sku
        product.price_cents = price_cents
        product.min_stock_level = minimum
        product.category = category
        product.updated_at = utcnow()

        _write_or_duplicate(sku, db.session.commit)
        return product

    try:
        product = run_with_retry(_op)
    except (InvalidStockLevelError, DuplicateSkuError) as exc:
        logger.warning("Rejected update of product %s: %s", product_id, exc)
        raise

    logger.info("Updated product id=%s sku=%s", product.id, product.sku)
    return product


def update_product_suppliers(*, product_id, supplier_ids) -> Product:
    """Replace the supplier set of an active product (at least one supplier)."""
    product_id = coerce_int("product_id", product_id)
    supplier_ids = parse_id_list("supplier_ids", supplier_ids, required=True)

    def _op():
        product = load_active_product(product_id, lock=True)
        product.suppliers = resolve_active_suppliers(supplier_ids)
        product.updated_at = utcnow()
        db.session.commit()
        return product

    product = run_with_retry(_op)
    logger.info("Product id=%s now supplied by %s", product.id, supplier_ids)
    return product


def delete_product(*, product_id) -> Product:
    """
    Soft-delete a product.

    Stock must be drawn down to zero through OUT movements first. The SKU is
    retired (original kept in original_sku) so it can be reused.
    """
    product_id = coerce_int("product_id", product_id)

    def _op():
        product = load_active_product(product_id, lock=True)

        current = product.stock_quantity or 0
        if current != 0:
            raise ProductHasStockError(product.sku, current)

        retire_product(product)
        db.session.commit()
        return product

    try:
        product = run_with_retry(_op)
    except ProductHasStockError as exc:
        logger.warning("Rejected delete of product %s: %s", product_id, exc)
        raise

    logger.info("Soft-deleted product id=%s sku=%s", product.id, product.original_sku)
    return product
