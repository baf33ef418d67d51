"""
HTTP surface tests: status codes, envelopes and error bodies.
"""

import pytest


@pytest.fixture
def api(client, db_session):
    return client


def _create_supplier(api, **overrides):
    body = {'name': 'Bolt Co', 'email': 'sales@bolt.example', 'phone': '555-0101'}
    body.update(overrides)
    return api.post('/api/v1/suppliers', json=body)


def _create_product(api, **overrides):
    body = {
        'name': 'Widget',
        'sku': 'WID-001',
        'price': '9.99',
        'stock_quantity': 10,
        'min_stock_level': 5,
        'category': 'Parts',
    }
    body.update(overrides)
    return api.post('/api/v1/products', json=body, headers={'X-Actor': 'api-user'})


class TestSystem:
    def test_health(self, api):
        resp = api.get('/api/v1/health')
        assert resp.status_code == 200
        assert resp.get_json()['checks']['database']['status'] == 'healthy'

    def test_unknown_route_is_json_404(self, api):
        resp = api.get('/api/v1/nothing-here')
        assert resp.status_code == 404
        assert resp.get_json()['status'] == 404


class TestProductRoutes:
    def test_create_product(self, api):
        supplier_id = _create_supplier(api).get_json()['id']
        resp = _create_product(api, supplier_ids=[supplier_id])
        assert resp.status_code == 201
        data = resp.get_json()
        assert data['sku'] == 'WID-001'
        assert data['price'] == '9.99'
        assert data['stock_quantity'] == 10
        assert data['low_stock'] is False
        assert data['suppliers'][0]['id'] == supplier_id

        movements = api.get(f"/api/v1/products/{data['id']}/stock-movements").get_json()
        assert movements['count'] == 1
        assert movements['items'][0]['reason'] == 'INITIAL_STOCK'
        assert movements['items'][0]['created_by'] == 'api-user'

    def test_create_missing_fields_is_400(self, api):
        resp = api.post('/api/v1/products', json={'price': '1.00'})
        assert resp.status_code == 400
        body = resp.get_json()
        assert body['error'] == 'Validation'
        assert 'name' in body['message']

    def test_create_below_minimum_is_422(self, api):
        resp = _create_product(api, stock_quantity=1, min_stock_level=5)
        assert resp.status_code == 422
        assert resp.get_json()['error'] == 'InvalidStockLevel'

    def test_duplicate_sku_is_409(self, api):
        assert _create_product(api).status_code == 201
        resp = _create_product(api)
        assert resp.status_code == 409
        assert resp.get_json()['error'] == 'DuplicateSku'

    def test_unknown_supplier_is_404(self, api):
        resp = _create_product(api, supplier_ids=[999])
        assert resp.status_code == 404
        assert resp.get_json()['error'] == 'SupplierNotFound'

    def test_get_list_and_sku_lookup(self, api):
        product_id = _create_product(api).get_json()['id']

        assert api.get(f'/api/v1/products/{product_id}').status_code == 200
        assert api.get('/api/v1/products/sku/WID-001').get_json()['id'] == product_id
        assert api.get('/api/v1/products/4040').status_code == 404

        listing = api.get('/api/v1/products?page=1&per_page=5').get_json()
        assert listing['pagination']['total'] == 1
        assert listing['pagination']['per_page'] == 5
        assert listing['pagination']['has_next'] is False

    def test_bad_paging_is_400(self, api):
        assert api.get('/api/v1/products?page=0').status_code == 400
        assert api.get('/api/v1/products?per_page=abc').status_code == 400

    def test_search_and_low_stock(self, api):
        _create_product(api, sku='LOW-1', name='Low Widget', stock_quantity=2, min_stock_level=2)
        _create_product(api, sku='HIGH-1', name='High Widget', stock_quantity=50, min_stock_level=2)

        found = api.get('/api/v1/products/search?name=low&category=').get_json()
        assert [p['sku'] for p in found['items']] == ['LOW-1']

        flagged = api.get('/api/v1/products/search?low_stock=true').get_json()
        assert [p['sku'] for p in flagged['items']] == ['LOW-1']

        low = api.get('/api/v1/products/low-stock').get_json()
        assert [p['sku'] for p in low['items']] == ['LOW-1']

        assert api.get('/api/v1/products/search?min_price=cheap').status_code == 400

    def test_update_product(self, api):
        product_id = _create_product(api).get_json()['id']
        resp = api.put(f'/api/v1/products/{product_id}', json={
            'name': 'Widget v2', 'sku': 'WID-002', 'price': '11.00', 'min_stock_level': 3,
        })
        assert resp.status_code == 200
        data = resp.get_json()
        assert data['sku'] == 'WID-002'
        assert data['price'] == '11.00'
        assert data['stock_quantity'] == 10

    def test_stock_cannot_be_written_through_product_routes(self, api):
        product_id = _create_product(api).get_json()['id']
        resp = api.put(f'/api/v1/products/{product_id}', json={
            'name': 'Widget', 'sku': 'WID-001', 'price': '9.99', 'min_stock_level': 5,
            'stock_quantity': 999,
        })
        assert resp.status_code == 400
        assert resp.get_json()['message'] == 'Field not allowed: stock_quantity'
        assert api.get(f'/api/v1/products/{product_id}').get_json()['stock_quantity'] == 10

    def test_unknown_body_field_is_400(self, api):
        resp = _create_product(api, colour='red')
        assert resp.status_code == 400
        assert resp.get_json()['message'] == 'Field not allowed: colour'

    def test_update_suppliers(self, api):
        product_id = _create_product(api).get_json()['id']
        supplier_id = _create_supplier(api).get_json()['id']

        resp = api.put(f'/api/v1/products/{product_id}/suppliers', json={'supplier_ids': [supplier_id]})
        assert resp.status_code == 200
        assert [s['id'] for s in resp.get_json()['suppliers']] == [supplier_id]

        assert api.put(f'/api/v1/products/{product_id}/suppliers', json={'supplier_ids': []}).status_code == 400

    def test_delete_requires_zero_stock(self, api):
        product_id = _create_product(api).get_json()['id']

        resp = api.delete(f'/api/v1/products/{product_id}')
        assert resp.status_code == 422
        assert resp.get_json()['error'] == 'ProductHasStock'

        api.post('/api/v1/stock-movements', json={
            'product_id': product_id, 'movement_type': 'OUT', 'quantity': 10, 'reason': 'ADJUSTMENT',
        })
        assert api.delete(f'/api/v1/products/{product_id}').status_code == 204
        assert api.get(f'/api/v1/products/{product_id}').status_code == 404

        # The SKU is free again
        assert _create_product(api).status_code == 201

    def test_verify_ledger_route(self, api):
        product_id = _create_product(api).get_json()['id']
        report = api.get(f'/api/v1/products/{product_id}/ledger/verify').get_json()
        assert report['ok'] is True
        assert report['movement_count'] == 1


class TestStockMovementRoutes:
    def test_ledger_scenario(self, api):
        product_id = _create_product(api).get_json()['id']

        resp = api.post('/api/v1/stock-movements', json={
            'product_id': product_id, 'movement_type': 'IN', 'quantity': 25,
            'reason': 'PURCHASE', 'reference': 'PO-7',
        }, headers={'X-Actor': 'receiver'})
        assert resp.status_code == 201
        data = resp.get_json()
        assert (data['previous_stock'], data['new_stock']) == (10, 35)
        assert data['created_by'] == 'receiver'

        resp = api.post('/api/v1/stock-movements', json={
            'product_id': product_id, 'movement_type': 'OUT', 'quantity': 20, 'reason': 'SALE',
        })
        assert resp.get_json()['new_stock'] == 15
        assert resp.get_json()['created_by'] == 'system'

        resp = api.post('/api/v1/stock-movements', json={
            'product_id': product_id, 'movement_type': 'OUT', 'quantity': 30, 'reason': 'SALE',
        })
        assert resp.status_code == 422
        assert resp.get_json()['error'] == 'InsufficientStock'

        assert api.get(f'/api/v1/products/{product_id}').get_json()['stock_quantity'] == 15

    @pytest.mark.parametrize('body', [
        {'movement_type': 'IN', 'quantity': 0, 'reason': 'PURCHASE'},
        {'movement_type': 'IN', 'quantity': -3, 'reason': 'PURCHASE'},
        {'movement_type': 'IN', 'quantity': 1.5, 'reason': 'PURCHASE'},
        {'movement_type': 'UP', 'quantity': 1, 'reason': 'PURCHASE'},
        {'movement_type': 'IN', 'quantity': 1, 'reason': 'INITIAL_STOCK'},
        {'movement_type': 'IN', 'reason': 'PURCHASE'},
    ])
    def test_invalid_movement_is_400(self, api, body):
        product_id = _create_product(api).get_json()['id']
        resp = api.post('/api/v1/stock-movements', json={'product_id': product_id, **body})
        assert resp.status_code == 400

    def test_unknown_product_is_404(self, api):
        resp = api.post('/api/v1/stock-movements', json={
            'product_id': 31337, 'movement_type': 'IN', 'quantity': 1, 'reason': 'PURCHASE',
        })
        assert resp.status_code == 404
        assert resp.get_json()['error'] == 'ProductNotFound'

    def test_list_with_filters(self, api):
        product_id = _create_product(api).get_json()['id']
        api.post('/api/v1/stock-movements', json={
            'product_id': product_id, 'movement_type': 'OUT', 'quantity': 1, 'reason': 'SALE',
        })

        listing = api.get('/api/v1/stock-movements').get_json()
        assert listing['pagination']['total'] == 2
        assert listing['items'][0]['reason'] == 'SALE'

        sales = api.get('/api/v1/stock-movements?reason=SALE&created_by=').get_json()
        assert sales['count'] == 1

        window = api.get('/api/v1/stock-movements?created_from=2000-01-01T00:00:00Z').get_json()
        assert window['count'] == 2

        assert api.get('/api/v1/stock-movements?created_from=yesterday').status_code == 400


class TestSupplierRoutes:
    def test_supplier_crud(self, api):
        resp = _create_supplier(api, business_id='BOLT-1', address={'city': 'Austin', 'country': 'USA'},
                                rating='4.25')
        assert resp.status_code == 201
        supplier = resp.get_json()
        assert supplier['address']['city'] == 'Austin'
        assert supplier['rating'] == '4.25'

        assert _create_supplier(api, business_id='BOLT-1').status_code == 409

        resp = api.put(f"/api/v1/suppliers/{supplier['id']}", json={
            'name': 'Bolt Company', 'email': 'hello@bolt.example', 'phone': '555-0102', 'status': 'INACTIVE',
        })
        assert resp.status_code == 200
        assert resp.get_json()['status'] == 'INACTIVE'

        found = api.get('/api/v1/suppliers/search?name=bolt').get_json()
        assert found['count'] == 1

        assert api.delete(f"/api/v1/suppliers/{supplier['id']}").status_code == 204
        assert api.get(f"/api/v1/suppliers/{supplier['id']}").status_code == 404

    def test_invalid_supplier_is_400(self, api):
        assert _create_supplier(api, email='nope').status_code == 400
        assert _create_supplier(api, status='DORMANT').status_code == 400

    def test_supplier_products(self, api):
        supplier_id = _create_supplier(api).get_json()['id']
        _create_product(api, supplier_ids=[supplier_id])
        _create_product(api, sku='OTHER-1')

        listing = api.get(f'/api/v1/suppliers/{supplier_id}/products').get_json()
        assert [p['sku'] for p in listing['items']] == ['WID-001']
