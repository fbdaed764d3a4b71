# Overview: Flask CLI command groups for bootstrap, inspection and upstream sync.

# backend/warehouse/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create all tables that do not exist yet.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask system seed-demo
#   Idempotent demo catalog: products, customers, raw materials and recipes.
#
# Production planning:
# - python -m flask production calculate --product-id 1 --quantity 50
#   Feasibility, bottlenecks and cost for a product's active recipe.
#
# Bills:
# - python -m flask bills list --limit 20
#   Most recent saved bills.
#
# Upstream reference data:
# - python -m flask sync pull [--base-url http://host:5000/api]
#   Fetch products, customers, raw materials and recipes and upsert them locally.

from decimal import Decimal

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .models import Customer, Product, RawMaterial
from .money import to_cents
from .services import bills_service, recipes_service
from .services.production_service import ProductionError
from .services.reference_data import UpstreamClient
from .services.sync_service import import_reference_data


DEMO_PRODUCTS = [
    # sku, name, category, price, stock, reorder level
    ("CHR-001", "Oak Dining Chair", "Furniture", "2499.00", 40, 10),
    ("TBL-001", "Oak Dining Table", "Furniture", "12999.00", 8, 3),
    ("SHF-001", "Pine Bookshelf", "Furniture", "5499.00", 15, 5),
    ("CSH-001", "Cotton Cushion", "Soft Furnishing", "349.00", 120, 30),
]

DEMO_CUSTOMERS = [
    ("Asha Traders", "asha@example.com", "+91 98100 00001", "12 MG Road, Pune"),
    ("Blue Oak Interiors", "orders@blueoak.example.com", "+91 98100 00002", "4 Residency Road, Bengaluru"),
]

DEMO_MATERIALS = [
    # code, name, category, stock, unit, cost per unit, reorder level, supplier
    ("RM-OAK", "Oak Plank", "Wood", 300.0, "kg", 180.0, 80.0, "Timberline Supplies"),
    ("RM-PINE", "Pine Plank", "Wood", 150.0, "kg", 95.0, 50.0, "Timberline Supplies"),
    ("RM-SCR", "Wood Screws", "Hardware", 2000.0, "pcs", 1.5, 500.0, "FastFix"),
    ("RM-VRN", "Varnish", "Finishing", 25.0, "l", 420.0, 10.0, "ColourCraft"),
]

DEMO_RECIPES = {
    # product sku -> (hours per unit, complexity, [(material code, qty per unit, wastage %)])
    "CHR-001": (2.5, "Medium", [("RM-OAK", 6.0, 10.0), ("RM-SCR", 16, 5.0), ("RM-VRN", 0.2, 0.0)]),
    "TBL-001": (8.0, "High", [("RM-OAK", 35.0, 12.0), ("RM-SCR", 40, 5.0), ("RM-VRN", 0.8, 0.0)]),
    "SHF-001": (4.0, "Low", [("RM-PINE", 18.0, 8.0), ("RM-SCR", 24, 5.0)]),
}


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Database schema ready")


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

    click.echo("PASS Database reset complete")


@system_group.command('seed-demo')
@with_appcontext
def seed_demo():
    """Insert the demo catalog. Existing rows (by SKU, email or code) are left alone."""
    created = 0

    for sku, name, category, price, stock, reorder in DEMO_PRODUCTS:
        if db.session.query(Product).filter_by(sku=sku).first():
            continue
        db.session.add(Product(
            sku=sku,
            name=name,
            category=category,
            price_cents=to_cents(Decimal(price)),
            current_stock=stock,
            reorder_level=reorder,
        ))
        created += 1

    for name, email, phone, address in DEMO_CUSTOMERS:
        if db.session.query(Customer).filter_by(email=email).first():
            continue
        db.session.add(Customer(name=name, email=email, phone=phone, address=address))
        created += 1

    for code, name, category, stock, unit, cost, reorder, supplier in DEMO_MATERIALS:
        if db.session.query(RawMaterial).filter_by(code=code).first():
            continue
        db.session.add(RawMaterial(
            code=code,
            name=name,
            category=category,
            current_stock=stock,
            unit=unit,
            cost_per_unit=cost,
            reorder_level=reorder,
            supplier_name=supplier,
        ))
        created += 1

    db.session.commit()

    materials = {m.code: m.id for m in db.session.query(RawMaterial).all()}
    for sku, (hours, complexity, lines) in DEMO_RECIPES.items():
        product = db.session.query(Product).filter_by(sku=sku).first()
        if product is None or product.recipes:
            continue
        recipes_service.add_recipe(
            product_id=product.id,
            materials=[
                {"material_id": materials[code], "required_quantity": qty, "wastage_percent": wastage}
                for code, qty, wastage in lines
            ],
            estimated_time_hours=hours,
            complexity=complexity,
        )
        created += 1

    click.echo(f"PASS Demo data seeded ({created} new rows)")


@click.group('production')
def production_group():
    """Production planning commands."""


@production_group.command('calculate')
@click.option('--product-id', type=int, required=True, help='Product with an active recipe')
@click.option('--quantity', type=int, required=True, help='Units to produce')
@with_appcontext
def calculate_cli(product_id, quantity):
    """Show production feasibility for a product."""
    try:
        result = recipes_service.calculate_for_product(product_id, quantity)
    except ProductionError as e:
        click.echo(f"FAIL {e}")
        raise SystemExit(1)

    status = "FEASIBLE" if result.feasible else "NOT FEASIBLE"
    click.echo("\n" + "="*80)
    click.echo(f"{result.product_name}: {status}")
    click.echo(f"Requested: {result.requested_quantity}  Possible: {result.possible_quantity}")
    click.echo(f"Total cost: {result.total_cost:.2f}  Estimated time: {result.estimated_time:.1f} h")
    click.echo("="*80)
    click.echo(f"{'Material':<25} {'Required':>12} {'Available':>12} {'Shortage':>12} {'Unit':<6}")
    for m in result.material_breakdown:
        click.echo(
            f"{m.material_name:<25} {m.required:>12.2f} {m.available:>12.2f} "
            f"{m.shortage:>12.2f} {m.unit:<6}"
        )
    for bottleneck in result.bottlenecks:
        click.echo(f"WARN {bottleneck}")
    click.echo("="*80 + "\n")


@click.group('bills')
def bills_group():
    """Bill inspection commands."""


@bills_group.command('list')
@click.option('--limit', type=int, default=20, help='Number of bills to show')
@with_appcontext
def list_bills_cli(limit):
    """List the most recent bills."""
    bills = bills_service.list_bills(page=1, per_page=limit)["items"]

    if not bills:
        click.echo("No bills found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'Number':<14} {'Created':<22} {'Customer':<25} {'Items':>6} {'Total':>12}")
    click.echo("="*80)
    for bill in bills:
        click.echo(
            f"{bill['bill_number']:<14} {bill['created_at']:<22} {(bill['customer_name'] or '-'):<25} "
            f"{bill['item_count']:>6} {bill['total_amount']:>12.2f}"
        )
    click.echo("="*80 + "\n")


@click.group('sync')
def sync_group():
    """Upstream reference data commands."""


@sync_group.command('pull')
@click.option('--base-url', default=None, help='Upstream API base URL (defaults to UPSTREAM_API_URL)')
@with_appcontext
def sync_pull(base_url):
    """Fetch reference data from the upstream API and upsert it locally."""
    base_url = base_url or current_app.config["UPSTREAM_API_URL"]
    timeout = current_app.config["UPSTREAM_TIMEOUT"]

    with UpstreamClient(base_url, timeout=timeout) as client:
        result = client.fetch_all()

    for warning in result.warnings:
        click.echo(f"WARN {warning}")

    snapshot = current_app.extensions["reference_snapshot"]
    if not snapshot.apply(result):
        click.echo("SKIP A newer fetch was already applied")
        return

    report = import_reference_data(result)
    for kind, count in sorted(report.created.items()):
        click.echo(f"PASS created {count} {kind}")
    for kind, count in sorted(report.updated.items()):
        click.echo(f"PASS updated {count} {kind}")
    for reason in report.skipped:
        click.echo(f"SKIP {reason}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(production_group)
    app.cli.add_command(bills_group)
    app.cli.add_command(sync_group)
