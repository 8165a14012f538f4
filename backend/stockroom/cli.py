# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/stockroom/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init
#   Idempotent: create tables and the default admin (admin@stockapp.com).
# - python -m flask system seed --yes
#   DEV only: wipe all data and load demo users, stock items, inventory and requests.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Users:
# - python -m flask users list
# - python -m flask users create --name "Sydney Store Manager" --email sydney@stockapp.com --role store-manager --store Sydney --password "Password123!"
#
# Permissions:
# - python -m flask perms list [--role warehouse-manager]

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import InventoryEntry, SessionToken, StockItem, StockRequest, StockRequestItem, User
from .permissions import (
    DEFAULT_ROLE_PERMISSIONS,
    Role,
    get_all_permission_codes,
    get_permission_definition,
    parse_role,
)
from .services import inventory_service, request_service, user_service
from .services.user_service import PasswordValidationError
from .validation import ConflictError, ValidationError


DEFAULT_ADMIN_EMAIL = "admin@stockapp.com"
DEFAULT_PASSWORD = "Password123!"

DEMO_USERS = [
    ("Admin User", DEFAULT_ADMIN_EMAIL, Role.ADMIN, None),
    ("Warehouse Manager", "warehouse@stockapp.com", Role.WAREHOUSE_MANAGER, None),
    ("Sydney Store Manager", "sydney@stockapp.com", Role.STORE_MANAGER, "Sydney"),
    ("Melbourne Store Manager", "melbourne@stockapp.com", Role.STORE_MANAGER, "Melbourne"),
]

# (name, sku, barcode, initial quantity)
DEMO_ITEMS = [
    ("iPhone 15 Pro", "IPH15P-256", "0194253401234", 64),
    ("Samsung Galaxy S24", "SGS24-128", "8806095300123", 48),
    ("MacBook Air M3", "MBA-M3-13", "0195949123456", 25),
    ('iPad Pro 12.9"', "IPD-PRO-129", "0194252987654", 31),
    ("AirPods Pro 2", "APP-2ND", "0194253397254", 120),
    ("Apple Watch Series 9", "AWS9-45MM", "0194253771234", 57),
    ("Dell XPS 13", "DXP13-I7", "0884116412345", 22),
    ("Sony WH-1000XM5", "SWH-1000XM5", "4548736132580", 73),
]


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Create tables and the default admin account.

    Safe to run repeatedly: existing tables and users are left alone.

    SECURITY: Change the admin password immediately in production!
    """
    click.echo("START Initializing stockroom...")
    db.create_all()
    click.echo("PASS Tables ready")

    if user_service.get_user_by_email(DEFAULT_ADMIN_EMAIL):
        click.echo(f"WARN  User '{DEFAULT_ADMIN_EMAIL}' already exists, skipping...")
    else:
        user_service.create_user(
            name="Admin User",
            email=DEFAULT_ADMIN_EMAIL,
            role=Role.ADMIN.value,
            password=DEFAULT_PASSWORD,
        )
        click.echo(f"PASS Created admin: {DEFAULT_ADMIN_EMAIL} / {DEFAULT_PASSWORD}")

    click.echo("DONE Stockroom initialized")


def _wipe_all() -> None:
    # Children first; request numbers are never reused so the sequence row stays
    db.session.query(StockRequestItem).delete()
    db.session.query(StockRequest).delete()
    db.session.query(InventoryEntry).delete()
    db.session.query(StockItem).delete()
    db.session.query(SessionToken).delete()
    db.session.query(User).delete()
    db.session.commit()


@system_group.command('seed')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def seed_system(yes):
    """
    DEV ONLY: wipe everything and load demo data.

    Users (password "Password123!"): admin, warehouse manager, and the
    Sydney and Melbourne store managers. Eight electronics items with stock,
    one pending Sydney request and one accepted Melbourne request.
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    db.create_all()
    _wipe_all()
    click.echo("DELETE  Existing data cleared")

    users = {}
    for name, email, role, store in DEMO_USERS:
        users[email] = user_service.create_user(
            name=name,
            email=email,
            role=role.value,
            store_location=store,
            password=DEFAULT_PASSWORD,
        )
        click.echo(f"PASS Created user: {name} ({email})")

    items = []
    for name, sku, barcode, qty in DEMO_ITEMS:
        item = inventory_service.create_product(
            name=name, sku=sku, barcode=barcode, initial_quantity=qty,
        )
        items.append(item)
    click.echo(f"PASS Created {len(items)} stock items with inventory")

    sydney = users["sydney@stockapp.com"]
    melbourne = users["melbourne@stockapp.com"]
    warehouse = users["warehouse@stockapp.com"]

    request_service.create_request(
        store_location="Sydney",
        items=[
            {"itemId": items[0].id, "requestedQuantity": 10},
            {"itemId": items[4].id, "requestedQuantity": 15},
        ],
        comments="Urgent restock needed for weekend sale",
        actor=sydney,
    )
    monthly = request_service.create_request(
        store_location="Melbourne",
        items=[
            {"itemId": items[1].id, "requestedQuantity": 8},
            {"itemId": items[6].id, "requestedQuantity": 5},
        ],
        comments="Regular monthly restock",
        actor=melbourne,
    )
    request_service.accept_request(monthly.id, actor=warehouse)
    click.echo("PASS Created 2 sample requests (1 pending, 1 accepted)")

    click.echo("\nDemo Credentials (password for all: Password123!):")
    for name, email, role, store in DEMO_USERS:
        suffix = f" [{store}]" if store else ""
        click.echo(f"   {role.value:<18} -> {email}{suffix}")
    click.echo("")


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

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


# =============================================================================
# USER MANAGEMENT COMMANDS
# =============================================================================

@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--name', prompt=True, help='Display name')
@click.option('--email', prompt=True, help='Email address')
@click.option('--role', type=click.Choice([r.value for r in Role]), prompt=True, help='Role')
@click.option('--store', 'store_location', default=None, help='Store location (store managers only)')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@with_appcontext
def create_user_cli(name, email, role, store_location, password):
    """
    Create a new user.

    Store managers need --store. Passwords must be at least
    MIN_PASSWORD_LENGTH characters.
    """
    try:
        user = user_service.create_user(
            name=name,
            email=email,
            role=role,
            store_location=store_location,
            password=password,
        )
        click.echo(f"PASS Created user: {user.name} ({user.email}) with role '{user.role}'")
        if user.store_location:
            click.echo(f"     Store: {user.store_location}")
        click.echo("SECURITY Password securely hashed with bcrypt")

    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {str(e)}")
    except (ValidationError, ConflictError) as e:
        click.echo(f"FAIL Failed to create user: {str(e)}")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with their roles."""
    users = user_service.list_users()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*100)
    click.echo(f"{'ID':<5} {'Name':<28} {'Email':<32} {'Role':<18} {'Store'}")
    click.echo("="*100)

    for user in users:
        click.echo(
            f"{user.id:<5} {user.name:<28} {user.email:<32} {user.role:<18} {user.store_location or '-'}"
        )

    click.echo("="*100 + "\n")


# =============================================================================
# PERMISSION INSPECTION
# =============================================================================

@click.group('perms')
def perms_group():
    """Permission inspection commands."""


@perms_group.command('list')
@click.option('--role', help='Filter by role name')
def list_permissions_cli(role):
    """List all permissions, or the ones granted to a role."""
    if role:
        try:
            codes = sorted(DEFAULT_ROLE_PERMISSIONS[parse_role(role)])
        except ValueError as e:
            click.echo(f"FAIL {e}")
            return
        title = f"Permissions for role: {role.upper()}"
    else:
        codes = get_all_permission_codes()
        title = "All Permissions"

    click.echo(f"\n{'='*80}")
    click.echo(title)
    click.echo(f"{'='*80}\n")

    click.echo(f"{'Code':<30} {'Name':<35} {'Category'}")
    click.echo("-"*80)

    for code in codes:
        perm = get_permission_definition(code)
        click.echo(f"{perm['code']:<30} {perm['name']:<35} {perm['category']}")

    click.echo(f"\n Total: {len(codes)} permissions\n")


def register_commands(app):
    """Register all CLI command groups with the Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(perms_group)
