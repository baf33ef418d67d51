# Overview: Flask CLI command groups for database bootstrap and ledger auditing.

# backend/stockledger/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to stockledger (PowerShell: $env:FLASK_APP="stockledger").
# - Use: python -m flask <group> <command> [options]
#
# Schema:
# - python -m flask db upgrade
#   Apply Alembic migrations (Flask-Migrate).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Ledger audit:
# - python -m flask ledger verify [--product-id 1]
#   Check the previous_stock -> new_stock chain of one or all products.
#   Exits with status 1 if any break is found.
# - python -m flask ledger low-stock
#   List active products at or below their minimum stock level.

import click
from flask.cli import with_appcontext

from .extensions import db
from .services import products_service, stock_service


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Confirm destructive reset.')
@with_appcontext
def reset_db(yes):
    """DEV/TEST only: drop and recreate all tables."""
    if not yes:
        click.echo('Refusing to reset without --yes.')
        raise SystemExit(1)
    db.drop_all()
    db.create_all()
    click.echo('Database reset complete.')


@click.group('ledger')
def ledger_group():
    """Stock ledger audit commands."""


@ledger_group.command('verify')
@click.option('--product-id', type=int, default=None, help='Only verify this product.')
@with_appcontext
def verify_ledger(product_id):
    """Verify the movement chain against stock_quantity."""
    if product_id is not None:
        reports = [stock_service.verify_ledger(product_id)]
    else:
        reports = stock_service.verify_all_ledgers()

    broken = 0
    for report in reports:
        if report.ok:
            click.echo(f'OK     product {report.product_id} ({report.sku}): '
                       f'{report.movement_count} movements, stock {report.stock_quantity}')
            continue
        broken += 1
        click.echo(f'BROKEN product {report.product_id} ({report.sku}):')
        for line in report.breaks:
            click.echo(f'  - {line}')

    click.echo(f'{len(reports)} product(s) checked, {broken} with breaks.')
    if broken:
        raise SystemExit(1)


@ledger_group.command('low-stock')
@click.option('--per-page', type=int, default=100)
@with_appcontext
def low_stock(per_page):
    """List active products at or below their minimum stock level."""
    page = products_service.list_low_stock_products(page=1, per_page=per_page)
    if not page.items:
        click.echo('No low-stock products.')
        return
    for product in page.items:
        click.echo(f'{product.id}\t{product.sku}\t{product.stock_quantity}/{product.min_stock_level}\t{product.name}')
    if page.has_next:
        click.echo(f'... {page.total - len(page.items)} more')


def register_commands(app):
    app.cli.add_command(system_group)
    app.cli.add_command(ledger_group)
