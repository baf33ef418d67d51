# Overview: Flask API routes for products; parses input and returns JSON responses.

# backend/stockledger/routes/products.py
"""
Product routes.

Stock is never written through these endpoints directly: a product's
quantity changes only through its initial stock (POST) and through
/api/v1/stock-movements.
"""
from flask import Blueprint, request

from ..models import Product
from ..services import products_service, stock_service
from ..specifications import ProductFilters
from ..validation import ModelValidationPolicy, validate_payload
from .params import bool_arg, current_actor, decimal_arg, int_arg, page_args, str_arg

PRODUCT_CREATE_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"name", "description", "sku", "stock_quantity", "min_stock_level", "category"}),
    required_on_create=frozenset({"name", "sku"}),
    extra_fields=frozenset({"price", "supplier_ids"}),
)

PRODUCT_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"name", "description", "sku", "min_stock_level", "category"}),
    required_on_create=frozenset({"name", "sku", "min_stock_level"}),
    extra_fields=frozenset({"price"}),
)

products_bp = Blueprint("products", __name__, url_prefix="/api/v1/products")


@products_bp.post("")
def create_product_route():
    """
    Create a product and record its initial stock movement.

    Body: name, sku, price, description?, stock_quantity?, min_stock_level?,
    category?, supplier_ids?
    """
    payload = request.get_json(silent=True) or {}
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_CREATE_POLICY, partial=False)

    product = products_service.create_product(
        name=patch["name"],
        description=patch.get("description"),
        sku=patch["sku"],
        price=payload.get("price"),
        initial_stock_quantity=patch.get("stock_quantity"),
        min_stock_level=patch.get("min_stock_level"),
        category=patch.get("category"),
        supplier_ids=payload.get("supplier_ids"),
        actor=current_actor(),
    )
    return product.to_dict(), 201


@products_bp.get("")
def list_products_route():
    page = products_service.list_products(**page_args())
    return page.to_dict()


@products_bp.get("/search")
def search_products_route():
    """
    Query params (all optional): name, category, sku, description,
    min_price, max_price, min_stock, max_stock, low_stock, page, per_page
    """
    filters = ProductFilters(
        name=str_arg("name"),
        category=str_arg("category"),
        sku=str_arg("sku"),
        description=str_arg("description"),
        min_price=decimal_arg("min_price"),
        max_price=decimal_arg("max_price"),
        min_stock=int_arg("min_stock"),
        max_stock=int_arg("max_stock"),
        low_stock=bool_arg("low_stock"),
    )
    page = products_service.search_products(filters, **page_args())
    return page.to_dict()


@products_bp.get("/low-stock")
def low_stock_products_route():
    page = products_service.list_low_stock_products(**page_args())
    return page.to_dict()


@products_bp.get("/<int:product_id>")
def get_product_route(product_id: int):
    return products_service.get_product(product_id).to_dict()


@products_bp.get("/sku/<string:sku>")
def get_product_by_sku_route(sku: str):
    return products_service.get_product_by_sku(sku).to_dict()


@products_bp.put("/<int:product_id>")
def update_product_route(product_id: int):
    payload = request.get_json(silent=True) or {}
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_UPDATE_POLICY, partial=False)

    product = products_service.update_product(
        product_id=product_id,
        name=patch["name"],
        description=patch.get("description"),
        sku=patch["sku"],
        price=payload.get("price"),
        min_stock_level=patch["min_stock_level"],
        category=patch.get("category"),
    )
    return product.to_dict(), 200


@products_bp.delete("/<int:product_id>")
def delete_product_route(product_id: int):
    products_service.delete_product(product_id=product_id)
    return "", 204


@products_bp.put("/<int:product_id>/suppliers")
def update_product_suppliers_route(product_id: int):
    payload = request.get_json(silent=True) or {}
    product = products_service.update_product_suppliers(
        product_id=product_id,
        supplier_ids=payload.get("supplier_ids"),
    )
    return product.to_dict(), 200


@products_bp.get("/<int:product_id>/stock-movements")
def product_stock_movements_route(product_id: int):
    page = stock_service.list_movements_for_product(product_id, **page_args())
    return page.to_dict()


@products_bp.get("/<int:product_id>/ledger/verify")
def verify_product_ledger_route(product_id: int):
    report = stock_service.verify_ledger(product_id)
    return report.to_dict(), 200
