# Overview: Flask API routes for stock movements; the write path for product stock.

from flask import Blueprint, request

from ..models import StockMovement
from ..services import stock_service
from ..specifications import MovementFilters
from ..validation import (
    MOVEMENT_REASONS,
    MOVEMENT_TYPES,
    ModelValidationPolicy,
    validate_payload,
)
from .params import current_actor, datetime_arg, int_arg, page_args, str_arg

MOVEMENT_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"product_id", "movement_type", "quantity", "reason", "reference", "notes"}),
    required_on_create=frozenset({"product_id", "movement_type", "quantity", "reason"}),
    choices={"movement_type": MOVEMENT_TYPES, "reason": MOVEMENT_REASONS},
)

stock_movements_bp = Blueprint("stock_movements", __name__, url_prefix="/api/v1/stock-movements")


@stock_movements_bp.post("")
def create_stock_movement_route():
    """
    Record an IN/OUT movement for a product.

    Body: product_id, movement_type (IN|OUT), quantity (> 0), reason,
    reference?, notes?. The acting user comes from the X-Actor header.
    """
    payload = request.get_json(silent=True) or {}
    patch = validate_payload(model=StockMovement, payload=payload, policy=MOVEMENT_POLICY, partial=False)

    movement = stock_service.apply_movement(
        product_id=patch["product_id"],
        movement_type=patch["movement_type"],
        quantity=patch["quantity"],
        reason=patch["reason"],
        reference=patch.get("reference"),
        notes=patch.get("notes"),
        actor=current_actor(),
    )
    return movement.to_dict(), 201


@stock_movements_bp.get("")
def list_stock_movements_route():
    """
    Most recent first. Optional filters: product_id, movement_type, reason,
    created_by, created_from, created_to (ISO-8601, inclusive).
    """
    filters = MovementFilters(
        product_id=int_arg("product_id"),
        movement_type=str_arg("movement_type"),
        reason=str_arg("reason"),
        created_by=str_arg("created_by"),
        created_from=datetime_arg("created_from"),
        created_to=datetime_arg("created_to"),
    )
    page = stock_service.list_movements(filters, **page_args())
    return page.to_dict()
