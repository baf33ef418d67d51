import pytest

from stockledger.models import Product, StockMovement
from stockledger.validation import ModelValidationPolicy, ValidationError, validate_payload

POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"name", "sku", "min_stock_level", "nickname"}),
    required_on_create=frozenset({"name"}),
    extra_fields=frozenset({"price"}),
)


def test_writable_columns_are_coerced_and_extras_left_alone():
    patch = validate_payload(
        model=Product,
        payload={"name": "  Drill ", "min_stock_level": "4", "price": "9.99"},
        policy=POLICY,
        partial=False,
    )
    assert patch == {"name": "Drill", "min_stock_level": 4}


def test_non_writable_field_is_rejected():
    with pytest.raises(ValidationError, match="Field not allowed: stock_quantity"):
        validate_payload(model=Product, payload={"name": "x", "stock_quantity": 5}, policy=POLICY, partial=False)


def test_writable_key_without_column_is_rejected():
    with pytest.raises(ValidationError, match="Unknown field: nickname"):
        validate_payload(model=Product, payload={"name": "x", "nickname": "y"}, policy=POLICY, partial=False)


def test_choices_are_case_insensitive():
    policy = ModelValidationPolicy(
        writable_fields=frozenset({"movement_type"}),
        choices={"movement_type": ("IN", "OUT")},
    )
    assert validate_payload(model=StockMovement, payload={"movement_type": "out"}, policy=policy, partial=True) == {
        "movement_type": "OUT",
    }
    with pytest.raises(ValidationError):
        validate_payload(model=StockMovement, payload={"movement_type": "up"}, policy=policy, partial=True)
