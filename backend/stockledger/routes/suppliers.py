# Overview: Flask API routes for supplier operations; parses input and returns JSON responses.

from flask import Blueprint, request

from ..models import Supplier
from ..services import supplier_service
from ..specifications import SupplierFilters
from ..validation import (
    SUPPLIER_STATUSES,
    SUPPLIER_TYPES,
    ModelValidationPolicy,
    validate_payload,
)
from .params import decimal_arg, int_arg, page_args, str_arg

SUPPLIER_FIELDS = frozenset({
    "name",
    "business_id",
    "status",
    "email",
    "phone",
    "contact_person",
    "payment_terms",
    "average_delivery_days",
    "supplier_type",
    "notes",
    "rating",
})

SUPPLIER_CREATE_POLICY = ModelValidationPolicy(
    writable_fields=SUPPLIER_FIELDS,
    required_on_create=frozenset({"name", "email", "phone"}),
    choices={"status": SUPPLIER_STATUSES, "supplier_type": SUPPLIER_TYPES},
    extra_fields=frozenset({"address"}),
)

SUPPLIER_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields=SUPPLIER_FIELDS,
    required_on_create=frozenset({"name", "email", "phone", "status"}),
    choices={"status": SUPPLIER_STATUSES, "supplier_type": SUPPLIER_TYPES},
    extra_fields=frozenset({"address"}),
)

suppliers_bp = Blueprint("suppliers", __name__, url_prefix="/api/v1/suppliers")


@suppliers_bp.post("")
def create_supplier_route():
    payload = request.get_json(silent=True) or {}
    patch = validate_payload(model=Supplier, payload=payload, policy=SUPPLIER_CREATE_POLICY, partial=False)
    supplier = supplier_service.create_supplier(address=payload.get("address"), **patch)
    return supplier.to_dict(), 201


@suppliers_bp.get("")
def list_suppliers_route():
    return supplier_service.list_suppliers(**page_args()).to_dict()


@suppliers_bp.get("/search")
def search_suppliers_route():
    """
    Query params (all optional): name, email, city, country, status,
    supplier_type, min_rating, max_rating, min_delivery_days,
    max_delivery_days, page, per_page
    """
    filters = SupplierFilters(
        name=str_arg("name"),
        email=str_arg("email"),
        city=str_arg("city"),
        country=str_arg("country"),
        status=str_arg("status"),
        supplier_type=str_arg("supplier_type"),
        min_rating=decimal_arg("min_rating"),
        max_rating=decimal_arg("max_rating"),
        min_delivery_days=int_arg("min_delivery_days"),
        max_delivery_days=int_arg("max_delivery_days"),
    )
    return supplier_service.search_suppliers(filters, **page_args()).to_dict()


@suppliers_bp.get("/<int:supplier_id>")
def get_supplier_route(supplier_id: int):
    return supplier_service.get_supplier(supplier_id).to_dict()


@suppliers_bp.put("/<int:supplier_id>")
def update_supplier_route(supplier_id: int):
    payload = request.get_json(silent=True) or {}
    patch = validate_payload(model=Supplier, payload=payload, policy=SUPPLIER_UPDATE_POLICY, partial=False)
    supplier = supplier_service.update_supplier(
        supplier_id=supplier_id,
        address=payload.get("address"),
        **patch,
    )
    return supplier.to_dict(), 200


@suppliers_bp.delete("/<int:supplier_id>")
def delete_supplier_route(supplier_id: int):
    supplier_service.delete_supplier(supplier_id=supplier_id)
    return "", 204


@suppliers_bp.get("/<int:supplier_id>/products")
def supplier_products_route(supplier_id: int):
    return supplier_service.list_supplier_products(supplier_id, **page_args()).to_dict()
