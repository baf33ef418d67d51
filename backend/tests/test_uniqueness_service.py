from stockledger.services import products_service, supplier_service
from stockledger.services.uniqueness_service import (
    business_id_in_use,
    is_tombstone,
    sku_in_use,
    tombstone_key,
)


def test_tombstone_keys_are_unique_and_recognizable():
    first = tombstone_key('SKU-1')
    second = tombstone_key('SKU-1')
    assert first != second
    assert first.startswith('SKU-1_deleted_')
    assert is_tombstone(first)
    assert not is_tombstone('SKU-1')
    assert not is_tombstone(None)


def test_sku_in_use_only_counts_active(make_product):
    product = make_product(sku='UNQ-1', initial_stock_quantity=0, min_stock_level=0)
    assert sku_in_use('UNQ-1')
    assert not sku_in_use('UNQ-1', exclude_product_id=product.id)

    products_service.delete_product(product_id=product.id)
    assert not sku_in_use('UNQ-1')


def test_sku_can_be_retired_more_than_once(make_product):
    for _ in range(3):
        product = make_product(sku='CYCLE-1', initial_stock_quantity=0, min_stock_level=0)
        products_service.delete_product(product_id=product.id)
    assert not sku_in_use('CYCLE-1')


def test_business_id_in_use(supplier):
    assert business_id_in_use('ACME-001')
    assert not business_id_in_use(None)
    assert not business_id_in_use('ACME-001', exclude_supplier_id=supplier.id)

    supplier_service.delete_supplier(supplier_id=supplier.id)
    assert not business_id_in_use('ACME-001')
