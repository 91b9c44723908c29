# Overview: Flask CLI command groups for bootstrap and inspection.

# backend/billing/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Create all tables (idempotent). Prefer "flask db upgrade" where migrations are used.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask system sequences
#   Show the productId and billNumber counters.
#
# Catalog inspection:
# - python -m flask products list
# - python -m flask products low-stock
# - python -m flask products add --name "Chips" --localized-name "சிப்ஸ்" --price 10 --stock 5
#
# Bills:
# - python -m flask bills show BILL-2026-000001

import click
from flask.cli import with_appcontext

from .extensions import db
from .errors import BillingError
from .services import ledger_service, products_service, sequence_service


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Tables created.")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete.")


@system_group.command('sequences')
@with_appcontext
def show_sequences():
    """Show the last value handed out by each counter."""
    counters = [c.to_dict() for c in sequence_service.list_sequences()]
    if not counters:
        click.echo("No counters yet.")
        return
    for counter in counters:
        click.echo(f"{counter['name']:<16} {counter['sequence']:>8}  {counter['updatedAt']}")


@click.group('products')
def products_group():
    """Catalog inspection commands."""


def _print_products(products):
    if not products:
        click.echo("No products.")
        return
    click.echo(f"{'ID':>5}  {'Name':<24} {'Localized':<24} {'Price':>10} {'Stock':>6} {'Min':>4}")
    click.echo("-" * 80)
    for p in products:
        click.echo(
            f"{p.id:>5}  {p.name[:24]:<24} {p.localized_name[:24]:<24} "
            f"{p.price_cents / 100:>10.2f} {p.stock:>6} {p.min_stock_level:>4}"
        )


@products_group.command('list')
@with_appcontext
def list_products_cli():
    """List all products."""
    _print_products(products_service.list_products())


@products_group.command('low-stock')
@with_appcontext
def low_stock_cli():
    """List products below their minimum stock level."""
    _print_products(products_service.list_low_stock_products())


@products_group.command('add')
@click.option('--name', required=True, help='Product name')
@click.option('--localized-name', required=True, help='Name printed on bills')
@click.option('--price', required=True, help='Unit price, e.g. 10 or 12.50')
@click.option('--stock', type=int, default=0, show_default=True, help='Opening stock')
@with_appcontext
def add_product_cli(name, localized_name, price, stock):
    """Create a product and optionally receive opening stock."""
    try:
        product = products_service.create_product(
            {"name": name, "localizedName": localized_name, "price": price}
        )
        if stock:
            product = products_service.adjust_stock(product.id, stock)
    except BillingError as e:
        raise click.ClickException(e.message)
    click.echo(f"PASS Created product {product.id}: {product.name} (stock {product.stock})")


@click.group('bills')
def bills_group():
    """Bill inspection commands."""


@bills_group.command('show')
@click.argument('bill_number')
@with_appcontext
def show_bill_cli(bill_number):
    """Print a bill."""
    bill = ledger_service.get_bill_by_number(bill_number)
    if bill is None:
        raise click.ClickException(f"Bill {bill_number} not found")

    click.echo(f"{bill.bill_number}  {bill.customer_name} ({bill.mobile_number})  {bill.created_at:%Y-%m-%d %H:%M}")
    click.echo("-" * 60)
    for item in bill.items:
        click.echo(
            f"{item.product_id:>5}  {item.localized_name[:24]:<24} "
            f"{item.quantity:>4} x {item.unit_price_cents / 100:>8.2f} = {item.line_total_cents / 100:>10.2f}"
        )
    click.echo("-" * 60)
    click.echo(f"{'Total':>48} {bill.grand_total_cents / 100:>10.2f}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(products_group)
    app.cli.add_command(bills_group)
