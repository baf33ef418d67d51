# Overview: Stock ledger engine; the only code path that changes Product.stock_quantity.

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from flask import current_app

from ..extensions import db
from ..models import Product, StockMovement
from ..specifications import MovementFilters, equals, movement_search
from ..time_utils import utcnow
from ..validation import (
    BusinessRuleError,
    MOVEMENT_REASONS,
    MOVEMENT_TYPES,
    NotFoundError,
    ValidationError,
    coerce_int,
    optional_text,
    require_choice,
)
from .concurrency import lock_for_update, run_with_retry
from .pagination import Page, paginate

"""
Stock Ledger Invariants (authoritative)

Ledger model:
- Every change to Product.stock_quantity is accompanied by exactly one
  StockMovement row, written in the same DB transaction.
- Movements are append-only; they are never updated or deleted.
- Chronological order of a product's movements is (created_at, id).

Chain:
- movement.previous_stock == new_stock of the preceding movement (0 for the first).
- IN:  new_stock = previous_stock + quantity
- OUT: new_stock = previous_stock - quantity, rejected if it would go below 0.
- Product.stock_quantity == new_stock of the latest movement.

Concurrency:
- The product row is read with SELECT ... FOR UPDATE and carries version_id,
  so two writers on the same product are serialized; a stale write raises
  StaleDataError and the whole operation is retried from a fresh read.
"""

logger = logging.getLogger(__name__)

INITIAL_STOCK_REFERENCE = "Initial stock on product creation"
INITIAL_STOCK_NOTES = "Initial stock set during product creation"


class ProductNotFoundError(NotFoundError):
    def __init__(self, key):
        self.key = key
        super().__init__(f"Product not found: {key}")


class InsufficientStockError(BusinessRuleError):
    def __init__(self, sku: str, available: int, requested: int):
        self.sku = sku
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient stock for product {sku}: available {available}, requested {requested}"
        )


def load_active_product(product_id, *, lock: bool = False) -> Product:
    """Fetch an active product or raise ProductNotFoundError."""
    query = db.session.query(Product).filter(Product.id == product_id)
    if lock:
        query = lock_for_update(query)
    product = query.first()
    if product is None or not product.is_active:
        raise ProductNotFoundError(product_id)
    return product


def _resolve_actor(actor: str | None) -> str:
    name = optional_text("actor", actor, max_length=100)
    return name or current_app.config.get("DEFAULT_ACTOR", "system")


def _append_movement(
    product: Product,
    *,
    movement_type: str,
    quantity: int,
    reason: str,
    reference: str | None,
    notes: str | None,
    actor: str,
) -> StockMovement:
    """Core ledger step without locking, retry, or commit."""
    previous = product.stock_quantity or 0

    if movement_type == "IN":
        new_stock = previous + quantity
    else:
        new_stock = previous - quantity
        if new_stock < 0:
            raise InsufficientStockError(product.sku, previous, quantity)

    now = utcnow()
    movement = StockMovement(
        product_id=product.id,
        movement_type=movement_type,
        quantity=quantity,
        previous_stock=previous,
        new_stock=new_stock,
        reason=reason,
        reference=reference,
        notes=notes,
        created_by=actor,
        created_at=now,
    )
    product.stock_quantity = new_stock
    product.updated_at = now

    db.session.add(movement)
    db.session.flush()
    return movement


def record_initial_stock(product: Product, quantity: int, *, actor: str | None = None) -> StockMovement | None:
    """
    Append the INITIAL_STOCK movement for a freshly created product.

    Runs inside the caller's transaction (no commit). A zero quantity is
    recorded unless RECORD_ZERO_INITIAL_STOCK is disabled.
    """
    if quantity == 0 and not current_app.config.get("RECORD_ZERO_INITIAL_STOCK", True):
        return None
    if (product.stock_quantity or 0) != 0:
        raise BusinessRuleError("initial stock can only be recorded on an empty ledger")

    return _append_movement(
        product,
        movement_type="IN",
        quantity=quantity,
        reason="INITIAL_STOCK",
        reference=INITIAL_STOCK_REFERENCE,
        notes=INITIAL_STOCK_NOTES,
        actor=_resolve_actor(actor),
    )


def apply_movement(
    *,
    product_id,
    movement_type: str,
    quantity,
    reason: str,
    reference: str | None = None,
    notes: str | None = None,
    actor: str | None = None,
) -> StockMovement:
    """
    Record an IN/OUT movement and update the product's stock atomically.

    Raises:
        ValidationError: non-positive quantity, unknown type/reason, or
            reason INITIAL_STOCK (only product creation records that)
        ProductNotFoundError: product missing or inactive
        InsufficientStockError: OUT larger than current stock
    """
    product_id = coerce_int("product_id", product_id)
    movement_type = require_choice("movement_type", movement_type, MOVEMENT_TYPES)
    reason = require_choice("reason", reason, MOVEMENT_REASONS)
    if reason == "INITIAL_STOCK":
        raise ValidationError("INITIAL_STOCK movements are only recorded at product creation")
    quantity = coerce_int("quantity", quantity)
    if quantity <= 0:
        raise ValidationError("quantity must be greater than 0")
    reference = optional_text("reference", reference, max_length=100)
    notes = optional_text("notes", notes, max_length=500)
    actor = _resolve_actor(actor)

    def _op():
        product = load_active_product(product_id, lock=True)
        movement = _append_movement(
            product,
            movement_type=movement_type,
            quantity=quantity,
            reason=reason,
            reference=reference,
            notes=notes,
            actor=actor,
        )
        db.session.commit()
        return movement

    try:
        movement = run_with_retry(_op)
    except InsufficientStockError as exc:
        logger.warning("Rejected %s movement on product %s: %s", movement_type, product_id, exc)
        raise

    logger.info(
        "Applied %s %s x%d to product %s (%d -> %d) by %s",
        movement.reason,
        movement.movement_type,
        movement.quantity,
        movement.product_id,
        movement.previous_stock,
        movement.new_stock,
        movement.created_by,
    )
    return movement


def list_movements(
    filters: MovementFilters | None = None,
    *,
    page: int | None = None,
    per_page: int | None = None,
) -> Page:
    """All movements, most recent first."""
    query = movement_search(filters).apply(db.session.query(StockMovement), StockMovement)
    query = query.order_by(StockMovement.created_at.desc(), StockMovement.id.desc())
    return paginate(query, page, per_page)


def list_movements_for_product(product_id, *, page: int | None = None, per_page: int | None = None) -> Page:
    product = load_active_product(product_id)
    query = equals("product_id", product.id).apply(db.session.query(StockMovement), StockMovement)
    query = query.order_by(StockMovement.created_at.desc(), StockMovement.id.desc())
    return paginate(query, page, per_page)


def get_ledger(product_id: int) -> list[StockMovement]:
    """A product's movements in chronological order."""
    return (
        db.session.query(StockMovement)
        .filter(StockMovement.product_id == product_id)
        .order_by(StockMovement.created_at.asc(), StockMovement.id.asc())
        .all()
    )


@dataclass
class LedgerReport:
    product_id: int
    sku: str
    stock_quantity: int
    movement_count: int = 0
    breaks: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.breaks

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "sku": self.sku,
            "stock_quantity": self.stock_quantity,
            "movement_count": self.movement_count,
            "ok": self.ok,
            "breaks": list(self.breaks),
        }


def verify_ledger(product_id) -> LedgerReport:
    """
    Walk a product's ledger and report every broken link. Read only.

    Inactive products are included; their history must stay consistent too.
    """
    product = db.session.get(Product, coerce_int("product_id", product_id))
    if product is None:
        raise ProductNotFoundError(product_id)
    return _verify_product(product)


def _verify_product(product: Product) -> LedgerReport:
    report = LedgerReport(
        product_id=product.id,
        sku=product.display_sku,
        stock_quantity=product.stock_quantity,
    )
    expected_previous = 0
    for movement in get_ledger(product.id):
        report.movement_count += 1
        if movement.previous_stock != expected_previous:
            report.breaks.append(
                f"movement {movement.id}: previous_stock {movement.previous_stock} "
                f"!= expected {expected_previous}"
            )
        delta = movement.quantity if movement.movement_type == "IN" else -movement.quantity
        if movement.new_stock != movement.previous_stock + delta:
            report.breaks.append(
                f"movement {movement.id}: {movement.movement_type} {movement.quantity} "
                f"from {movement.previous_stock} does not give {movement.new_stock}"
            )
        expected_previous = movement.new_stock

    if product.stock_quantity != expected_previous:
        report.breaks.append(
            f"stock_quantity {product.stock_quantity} != last new_stock {expected_previous}"
        )
    return report


def verify_all_ledgers() -> list[LedgerReport]:
    products = db.session.query(Product).order_by(Product.id.asc()).all()
    return [_verify_product(p) for p in products]
