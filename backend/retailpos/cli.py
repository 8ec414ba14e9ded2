# Overview: Flask CLI command groups for bootstrap and seeding.

# backend/retailpos/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create any missing tables.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Seeding:
# - python -m flask users create --username cashier --name "Front Cashier"
# - python -m flask customers create --name "Jane Doe" --email jane@example.com
# - python -m flask catalog add-product --name "Widget" --sku W-1 --price 12.50 --tax-rate 8.25 --stock 40
#
# Inspection:
# - python -m flask catalog low-stock

import click
from flask.cli import with_appcontext

from .errors import InvalidInput
from .extensions import db
from .money import format_cents
from .services import customer_service, products_service, user_service
from .services.stock_service import low_stock_products


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Database schema ready.")


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


# =============================================================================
# USERS
# =============================================================================

@click.group('users')
def users_group():
    """Acting user (cashier) commands."""


@users_group.command('create')
@click.option('--username', prompt=True, help='Login-style handle, unique')
@click.option('--name', prompt=True, help='Display name')
@with_appcontext
def create_user_cli(username, name):
    try:
        user = user_service.create_user(username, name)
    except InvalidInput as e:
        click.echo(f"FAIL {e}")
        raise SystemExit(1)
    click.echo(f"PASS Created user: {user.username} (ID: {user.id})")


# =============================================================================
# CUSTOMERS
# =============================================================================

@click.group('customers')
def customers_group():
    """Customer seeding commands."""


@customers_group.command('create')
@click.option('--name', required=True, help='Customer name')
@click.option('--email', default=None, help='Email (unique)')
@click.option('--phone', default=None, help='Phone number')
@with_appcontext
def create_customer_cli(name, email, phone):
    try:
        customer = customer_service.create_customer(name, email=email, phone=phone)
    except InvalidInput as e:
        click.echo(f"FAIL {e}")
        raise SystemExit(1)
    click.echo(f"PASS Created customer: {customer.name} (ID: {customer.id})")


# =============================================================================
# CATALOG
# =============================================================================

@click.group('catalog')
def catalog_group():
    """Product seeding and stock inspection."""


@catalog_group.command('add-product')
@click.option('--name', required=True, help='Product name')
@click.option('--sku', required=True, help='SKU (unique)')
@click.option('--price', required=True, help='Unit price, e.g. 12.50')
@click.option('--tax-rate', default='0', show_default=True, help='Tax percent, e.g. 8.25')
@click.option('--cost-price', default=None, help='Unit cost, e.g. 7.10')
@click.option('--stock', 'stock_quantity', type=int, default=0, show_default=True, help='Initial on-hand quantity')
@click.option('--no-track-stock', is_flag=True, help='Sell without stock checks')
@click.option('--min-stock', 'min_stock_level', type=int, default=5, show_default=True)
@click.option('--max-stock', 'max_stock_level', type=int, default=None)
@click.option('--barcode', default=None)
@with_appcontext
def add_product_cli(name, sku, price, tax_rate, cost_price, stock_quantity, no_track_stock,
                    min_stock_level, max_stock_level, barcode):
    try:
        product = products_service.create_product(
            name=name,
            sku=sku,
            price=price,
            tax_rate=tax_rate,
            cost_price=cost_price,
            track_stock=not no_track_stock,
            stock_quantity=stock_quantity,
            min_stock_level=min_stock_level,
            max_stock_level=max_stock_level,
            barcode=barcode,
        )
    except InvalidInput as e:
        click.echo(f"FAIL {e}")
        raise SystemExit(1)

    stock = product.stock_quantity if product.track_stock else "untracked"
    click.echo(
        f"PASS Created product: {product.name} ({product.sku}, ID: {product.id}) "
        f"price {format_cents(product.price_cents)} stock {stock}"
    )


@catalog_group.command('low-stock')
@click.option('--limit', type=int, default=None, help='Max rows')
@with_appcontext
def low_stock_cli(limit):
    """List tracked products at or below their minimum stock level."""
    products = low_stock_products(limit)
    if not products:
        click.echo("No low-stock products.")
        return

    click.echo("\n" + "="*70)
    click.echo(f"{'ID':<5} {'SKU':<16} {'Name':<30} {'Stock':<7} {'Min'}")
    click.echo("="*70)
    for p in products:
        click.echo(f"{p.id:<5} {p.sku:<16} {p.name[:30]:<30} {p.stock_quantity:<7} {p.min_stock_level}")
    click.echo("="*70 + "\n")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(customers_group)
    app.cli.add_command(catalog_group)
