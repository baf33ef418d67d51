"""
Concurrent ledger writes against a file-backed SQLite database.

Each worker thread runs in its own app context, so it gets its own session
and connection; conflicts surface as StaleDataError / OperationalError and
are retried by the ledger service.
"""

import threading

import pytest

from stockledger import create_app
from stockledger.extensions import db
from stockledger.services import products_service, stock_service
from stockledger.services.stock_service import InsufficientStockError


@pytest.fixture
def file_app(tmp_path):
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'ledger.sqlite3'}",
        'RETRY_ATTEMPTS': 10,
        'RETRY_BACKOFF_SECONDS': 0.01,
        'LOG_LEVEL': 'WARNING',
    })
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.session.remove()
        db.engine.dispose()


def _create_product(app, initial):
    with app.app_context():
        product = products_service.create_product(
            name='Contended Item', sku='HOT-1', price='5.00', initial_stock_quantity=initial,
        )
        return product.id


def _run_workers(app, count, work):
    barrier = threading.Barrier(count)
    results = [None] * count

    def runner(index):
        with app.app_context():
            barrier.wait()
            try:
                results[index] = work()
            except Exception as exc:  # collected and asserted by the caller
                results[index] = exc
            finally:
                db.session.remove()

    threads = [threading.Thread(target=runner, args=(i,)) for i in range(count)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)
    return results


def test_two_outs_cannot_oversell(file_app):
    product_id = _create_product(file_app, initial=10)

    results = _run_workers(
        file_app,
        2,
        lambda: stock_service.apply_movement(
            product_id=product_id, movement_type='OUT', quantity=8, reason='SALE',
        ).new_stock,
    )

    successes = [r for r in results if isinstance(r, int)]
    failures = [r for r in results if isinstance(r, InsufficientStockError)]
    assert successes == [2]
    assert len(failures) == 1

    with file_app.app_context():
        assert products_service.get_product(product_id).stock_quantity == 2
        report = stock_service.verify_ledger(product_id)
        assert report.ok, report.breaks
        assert report.movement_count == 2


def test_concurrent_ins_are_all_recorded(file_app):
    product_id = _create_product(file_app, initial=10)
    workers = 4

    results = _run_workers(
        file_app,
        workers,
        lambda: stock_service.apply_movement(
            product_id=product_id, movement_type='IN', quantity=1, reason='PURCHASE',
        ).new_stock,
    )

    assert all(isinstance(r, int) for r in results), results
    assert sorted(results) == list(range(11, 11 + workers))

    with file_app.app_context():
        assert products_service.get_product(product_id).stock_quantity == 10 + workers
        assert stock_service.verify_ledger(product_id).ok
