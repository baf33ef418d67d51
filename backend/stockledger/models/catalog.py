from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z
from ..validation import cents_to_decimal


product_suppliers = db.Table(
    "product_suppliers",
    db.Column("product_id", db.Integer, db.ForeignKey("products.id"), primary_key=True),
    db.Column("supplier_id", db.Integer, db.ForeignKey("suppliers.id"), primary_key=True),
)


class Product(db.Model):
    """
    Product master data plus the cached on-hand quantity.

    STOCK DESIGN DECISION:
    stock_quantity is a denormalized value owned by the stock ledger.
    - It always equals new_stock of the latest StockMovement for the product.
    - Only services/stock_service.py writes it, together with a movement row.
    - low_stock is derived (stock_quantity <= min_stock_level) and never stored.

    SKU LIFECYCLE:
    - sku is unique among active products (partial unique index below).
    - On soft delete the live sku is rewritten to a tombstone and the
      human-facing code is kept in original_sku, so the code can be reused.
    """
    __tablename__ = "products"

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(100), nullable=False)
    description = db.Column(db.String(500), nullable=True)

    sku = db.Column(db.String(100), nullable=False, index=True)
    original_sku = db.Column(db.String(50), nullable=True)

    # Authoritative storage in cents; API renders a 2-decimal price
    price_cents = db.Column(db.BigInteger, nullable=False)

    stock_quantity = db.Column(db.Integer, nullable=False, default=0)
    min_stock_level = db.Column(db.Integer, nullable=False, default=0)
    category = db.Column(db.String(50), nullable=True, index=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime, nullable=False)
    updated_at = db.Column(db.DateTime, nullable=False)
    deleted_at = db.Column(db.DateTime, nullable=True)

    suppliers = db.relationship(
        "Supplier",
        secondary=product_suppliers,
        back_populates="products",
        lazy="selectin",
        order_by="Supplier.id",
    )

    __table_args__ = (
        db.Index(
            "uq_products_active_sku",
            "sku",
            unique=True,
            sqlite_where=db.text("is_active = 1"),
            postgresql_where=db.text("is_active"),
        ),
        db.Index("ix_products_active_name", "is_active", "name"),
        db.CheckConstraint("stock_quantity >= 0", name="ck_products_stock_non_negative"),
        db.CheckConstraint("min_stock_level >= 0", name="ck_products_min_stock_non_negative"),
        db.CheckConstraint("price_cents > 0", name="ck_products_price_positive"),
    )
    __mapper_args__ = {"version_id_col": version_id}

    @property
    def low_stock(self) -> bool:
        return (self.stock_quantity or 0) <= (self.min_stock_level or 0)

    @property
    def display_sku(self) -> str:
        """Human-facing SKU; soft-deleted rows report the code they were created with."""
        return self.original_sku or self.sku

    @property
    def price(self):
        return cents_to_decimal(self.price_cents)

    def __repr__(self) -> str:
        return f"<Product id={self.id} sku={self.sku!r} stock={self.stock_quantity}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "sku": self.display_sku,
            "stored_sku": self.sku,
            "original_sku": self.original_sku,
            "price": str(self.price) if self.price_cents is not None else None,
            "price_cents": self.price_cents,
            "stock_quantity": self.stock_quantity,
            "min_stock_level": self.min_stock_level,
            "low_stock": self.low_stock,
            "category": self.category,
            "is_active": self.is_active,
            "suppliers": [{"id": s.id, "name": s.name} for s in self.suppliers],
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "deleted_at": to_utc_z(self.deleted_at),
        }


class Supplier(db.Model):
    """
    Supplier master data.

    The address is embedded as plain columns (no lifecycle of its own) and
    rendered as a nested object.
    business_id follows the same soft-delete lifecycle as Product.sku.
    """
    __tablename__ = "suppliers"

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(150), nullable=False)
    business_id = db.Column(db.String(100), nullable=True, index=True)
    original_business_id = db.Column(db.String(50), nullable=True)

    status = db.Column(db.String(32), nullable=False, default="ACTIVE", index=True)

    email = db.Column(db.String(100), nullable=False)
    phone = db.Column(db.String(20), nullable=False)
    contact_person = db.Column(db.String(100), nullable=True)

    street_address = db.Column(db.String(200), nullable=True)
    city = db.Column(db.String(50), nullable=True)
    state_province = db.Column(db.String(50), nullable=True)
    postal_code = db.Column(db.String(20), nullable=True)
    country = db.Column(db.String(3), nullable=True)

    payment_terms = db.Column(db.String(100), nullable=True)
    average_delivery_days = db.Column(db.Integer, nullable=True)
    supplier_type = db.Column(db.String(32), nullable=True)
    notes = db.Column(db.String(1000), nullable=True)
    rating = db.Column(db.Numeric(3, 2), nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime, nullable=False)
    updated_at = db.Column(db.DateTime, nullable=False)
    deleted_at = db.Column(db.DateTime, nullable=True)

    products = db.relationship(
        "Product",
        secondary=product_suppliers,
        back_populates="suppliers",
        lazy="select",
    )

    __table_args__ = (
        db.Index(
            "uq_suppliers_active_business_id",
            "business_id",
            unique=True,
            sqlite_where=db.text("is_active = 1 AND business_id IS NOT NULL"),
            postgresql_where=db.text("is_active AND business_id IS NOT NULL"),
        ),
    )

    ADDRESS_FIELDS = ("street_address", "city", "state_province", "postal_code", "country")

    @property
    def address(self) -> dict | None:
        parts = {f: getattr(self, f) for f in self.ADDRESS_FIELDS}
        if all(v is None for v in parts.values()):
            return None
        return parts

    def __repr__(self) -> str:
        return f"<Supplier id={self.id} name={self.name!r} business_id={self.business_id!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "business_id": self.original_business_id or self.business_id,
            "status": self.status,
            "email": self.email,
            "phone": self.phone,
            "contact_person": self.contact_person,
            "address": self.address,
            "payment_terms": self.payment_terms,
            "average_delivery_days": self.average_delivery_days,
            "supplier_type": self.supplier_type,
            "notes": self.notes,
            "rating": str(self.rating) if self.rating is not None else None,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "deleted_at": to_utc_z(self.deleted_at),
        }
