from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class StockMovement(db.Model):
    """
    One entry of a product's stock ledger.

    Append-only: rows are inserted by services/stock_service.py and never
    updated or deleted. Chronological order is (created_at, id).
    """
    __tablename__ = "stock_movements"

    id = db.Column(db.Integer, primary_key=True)

    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    movement_type = db.Column(db.String(8), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    previous_stock = db.Column(db.Integer, nullable=False)
    new_stock = db.Column(db.Integer, nullable=False)

    reason = db.Column(db.String(32), nullable=False, index=True)
    reference = db.Column(db.String(100), nullable=True)
    notes = db.Column(db.String(500), nullable=True)

    created_by = db.Column(db.String(100), nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, index=True)

    product = db.relationship("Product")

    __table_args__ = (
        db.Index("ix_stock_movements_product_created", "product_id", "created_at", "id"),
        db.CheckConstraint("quantity >= 0", name="ck_stock_movements_quantity_non_negative"),
        db.CheckConstraint("previous_stock >= 0", name="ck_stock_movements_previous_non_negative"),
        db.CheckConstraint("new_stock >= 0", name="ck_stock_movements_new_non_negative"),
        db.CheckConstraint("movement_type IN ('IN', 'OUT')", name="ck_stock_movements_type"),
    )

    def __repr__(self) -> str:
        return (
            f"<StockMovement id={self.id} product_id={self.product_id} "
            f"{self.movement_type} {self.quantity} {self.previous_stock}->{self.new_stock}>"
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "movement_type": self.movement_type,
            "quantity": self.quantity,
            "previous_stock": self.previous_stock,
            "new_stock": self.new_stock,
            "reason": self.reason,
            "reference": self.reference,
            "notes": self.notes,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
        }
