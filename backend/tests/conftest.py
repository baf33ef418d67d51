"""
Pytest fixtures for stockledger tests.

Provides the Flask app on an in-memory SQLite database, a per-test table
wipe, and factories for suppliers and products built through the services.
"""

import itertools

import pytest

from stockledger import create_app
from stockledger.extensions import db
from stockledger.services import products_service, supplier_service


TEST_CONFIG = {
    'TESTING': True,
    'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
    'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    'RETRY_BACKOFF_SECONDS': 0.0,
    'LOG_LEVEL': 'WARNING',
}


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TEST_CONFIG)

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    app.config['RECORD_ZERO_INITIAL_STOCK'] = True
    # Clear all data but keep schema
    meta = db.metadata
    for table in reversed(meta.sorted_tables):
        db.session.execute(table.delete())
    db.session.commit()
    # SQLite reuses ids after the wipe; drop objects left over from earlier tests
    db.session.expunge_all()

    yield db.session

    # Cleanup after test
    db.session.rollback()


_counter = itertools.count(1)


@pytest.fixture(scope='function')
def make_supplier(db_session):
    """Factory: create an active supplier, overriding any field."""
    def _make(**overrides):
        n = next(_counter)
        fields = {
            'name': f'Supplier {n}',
            'email': f'supplier{n}@example.com',
            'phone': '+1-555-0100',
        }
        fields.update(overrides)
        return supplier_service.create_supplier(**fields)
    return _make


@pytest.fixture(scope='function')
def supplier(make_supplier):
    return make_supplier(
        name='Acme Industrial',
        business_id='ACME-001',
        address={'city': 'San Francisco', 'country': 'USA'},
        supplier_type='DOMESTIC',
        rating='4.50',
        average_delivery_days=3,
    )


@pytest.fixture(scope='function')
def make_product(db_session, supplier):
    """Factory: create an active product through the ledger engine."""
    def _make(**overrides):
        n = next(_counter)
        fields = {
            'name': f'Product {n}',
            'sku': f'SKU-{n:04d}',
            'price': '19.99',
            'initial_stock_quantity': 10,
            'min_stock_level': 5,
            'category': 'Hardware',
            'supplier_ids': [supplier.id],
            'actor': 'tester',
        }
        fields.update(overrides)
        return products_service.create_product(**fields)
    return _make


@pytest.fixture(scope='function')
def product(make_product):
    return make_product(name='Cordless Drill', sku='DRILL-001', initial_stock_quantity=10, min_stock_level=5)
