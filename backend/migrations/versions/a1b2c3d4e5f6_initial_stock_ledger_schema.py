"""Initial stock ledger schema

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2026-10-19 09:00:00.000000

Creates products, suppliers, the product_suppliers join table and the
append-only stock_movements ledger.

SKU and business ID uniqueness is scoped to active rows through partial
unique indexes, so soft-deleted rows never block reuse of their keys.
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "a1b2c3d4e5f6"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "suppliers",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=150), nullable=False),
        sa.Column("business_id", sa.String(length=100), nullable=True),
        sa.Column("original_business_id", sa.String(length=50), nullable=True),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("email", sa.String(length=100), nullable=False),
        sa.Column("phone", sa.String(length=20), nullable=False),
        sa.Column("contact_person", sa.String(length=100), nullable=True),
        sa.Column("street_address", sa.String(length=200), nullable=True),
        sa.Column("city", sa.String(length=50), nullable=True),
        sa.Column("state_province", sa.String(length=50), nullable=True),
        sa.Column("postal_code", sa.String(length=20), nullable=True),
        sa.Column("country", sa.String(length=3), nullable=True),
        sa.Column("payment_terms", sa.String(length=100), nullable=True),
        sa.Column("average_delivery_days", sa.Integer(), nullable=True),
        sa.Column("supplier_type", sa.String(length=32), nullable=True),
        sa.Column("notes", sa.String(length=1000), nullable=True),
        sa.Column("rating", sa.Numeric(precision=3, scale=2), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("suppliers", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_suppliers_business_id"), ["business_id"], unique=False)
        batch_op.create_index(batch_op.f("ix_suppliers_status"), ["status"], unique=False)
        batch_op.create_index(
            "uq_suppliers_active_business_id",
            ["business_id"],
            unique=True,
            sqlite_where=sa.text("is_active = 1 AND business_id IS NOT NULL"),
            postgresql_where=sa.text("is_active AND business_id IS NOT NULL"),
        )

    op.create_table(
        "products",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("description", sa.String(length=500), nullable=True),
        sa.Column("sku", sa.String(length=100), nullable=False),
        sa.Column("original_sku", sa.String(length=50), nullable=True),
        sa.Column("price_cents", sa.BigInteger(), nullable=False),
        sa.Column("stock_quantity", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("min_stock_level", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("category", sa.String(length=50), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("version_id", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
        sa.CheckConstraint("stock_quantity >= 0", name="ck_products_stock_non_negative"),
        sa.CheckConstraint("min_stock_level >= 0", name="ck_products_min_stock_non_negative"),
        sa.CheckConstraint("price_cents > 0", name="ck_products_price_positive"),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("products", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_products_sku"), ["sku"], unique=False)
        batch_op.create_index(batch_op.f("ix_products_category"), ["category"], unique=False)
        batch_op.create_index("ix_products_active_name", ["is_active", "name"], unique=False)
        batch_op.create_index(
            "uq_products_active_sku",
            ["sku"],
            unique=True,
            sqlite_where=sa.text("is_active = 1"),
            postgresql_where=sa.text("is_active"),
        )

    op.create_table(
        "product_suppliers",
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("supplier_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"]),
        sa.ForeignKeyConstraint(["supplier_id"], ["suppliers.id"]),
        sa.PrimaryKeyConstraint("product_id", "supplier_id"),
    )

    op.create_table(
        "stock_movements",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("movement_type", sa.String(length=8), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("previous_stock", sa.Integer(), nullable=False),
        sa.Column("new_stock", sa.Integer(), nullable=False),
        sa.Column("reason", sa.String(length=32), nullable=False),
        sa.Column("reference", sa.String(length=100), nullable=True),
        sa.Column("notes", sa.String(length=500), nullable=True),
        sa.Column("created_by", sa.String(length=100), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("quantity >= 0", name="ck_stock_movements_quantity_non_negative"),
        sa.CheckConstraint("previous_stock >= 0", name="ck_stock_movements_previous_non_negative"),
        sa.CheckConstraint("new_stock >= 0", name="ck_stock_movements_new_non_negative"),
        sa.CheckConstraint("movement_type IN ('IN', 'OUT')", name="ck_stock_movements_type"),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("stock_movements", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_stock_movements_product_id"), ["product_id"], unique=False)
        batch_op.create_index(batch_op.f("ix_stock_movements_reason"), ["reason"], unique=False)
        batch_op.create_index(batch_op.f("ix_stock_movements_created_at"), ["created_at"], unique=False)
        batch_op.create_index(
            "ix_stock_movements_product_created",
            ["product_id", "created_at", "id"],
            unique=False,
        )


def downgrade():
    with op.batch_alter_table("stock_movements", schema=None) as batch_op:
        batch_op.drop_index("ix_stock_movements_product_created")
        batch_op.drop_index(batch_op.f("ix_stock_movements_created_at"))
        batch_op.drop_index(batch_op.f("ix_stock_movements_reason"))
        batch_op.drop_index(batch_op.f("ix_stock_movements_product_id"))
    op.drop_table("stock_movements")

    op.drop_table("product_suppliers")

    with op.batch_alter_table("products", schema=None) as batch_op:
        batch_op.drop_index("uq_products_active_sku")
        batch_op.drop_index("ix_products_active_name")
        batch_op.drop_index(batch_op.f("ix_products_category"))
        batch_op.drop_index(batch_op.f("ix_products_sku"))
    op.drop_table("products")

    with op.batch_alter_table("suppliers", schema=None) as batch_op:
        batch_op.drop_index("uq_suppliers_active_business_id")
        batch_op.drop_index(batch_op.f("ix_suppliers_status"))
        batch_op.drop_index(batch_op.f("ix_suppliers_business_id"))
    op.drop_table("suppliers")
