# Overview: Flask CLI command groups for bootstrap and user/token management.

# backend/stockroom/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: creates tables and seeds status taxonomy and transaction types.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Users and tokens:
# - python -m flask users list
#   List all users with active status.
# - python -m flask users create --email owner@example.com --full-name "Shop Owner"
#   Create a user (prompts if options are omitted).
# - python -m flask users issue-token --email owner@example.com [--ttl-hours 24]
#   Issue a bearer token; printed once, stored hashed.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import User
from .services import session_service
from .services.ledger_service import seed_transaction_types
from .services.status_service import seed_status_taxonomy


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Initialize the inventory system.

    Creates:
    - All tables (if missing)
    - Status categories and types for orders, returns and notifications
    - The transaction type catalogue used by the ledger

    Safe to run repeatedly.
    """
    click.echo("START Initializing Stockroom...")

    db.create_all()

    statuses = seed_status_taxonomy(db.session)
    tx_types = seed_transaction_types(db.session)
    db.session.commit()

    click.echo(f"PASS Status taxonomy ready ({statuses} rows created)")
    click.echo(f"PASS Transaction types ready ({tx_types} rows created)")
    click.echo("DONE Stockroom initialized. Create a user with: python -m flask users create")


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


@click.group('users')
def users_group():
    """User inspection and token commands."""


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users."""
    users = db.session.query(User).order_by(User.id).all()
    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*70)
    click.echo(f"{'ID':<5} {'Email':<35} {'Name':<20} {'Active'}")
    click.echo("="*70)
    for user in users:
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<5} {user.email:<35} {(user.full_name or '-'):<20} {active_str}")
    click.echo("="*70 + "\n")


@users_group.command('create')
@click.option('--email', prompt=True, help='Email address (unique)')
@click.option('--full-name', default=None, help='Display name')
@with_appcontext
def create_user(email, full_name):
    """Create a user (inventory owner)."""
    email = email.strip().lower()
    if db.session.query(User).filter_by(email=email).first():
        click.echo(f"FAIL User {email} already exists")
        raise SystemExit(1)

    user = User(email=email, full_name=full_name, is_active=True)
    db.session.add(user)
    db.session.commit()
    click.echo(f"PASS Created user {user.email} (ID: {user.id})")


@users_group.command('issue-token')
@click.option('--email', prompt=True, help='Email of the user')
@click.option('--ttl-hours', type=int, default=None, help='Token lifetime (default SESSION_TTL_HOURS)')
@with_appcontext
def issue_token(email, ttl_hours):
    """Issue a bearer token for a user. The plaintext is shown once."""
    user = db.session.query(User).filter_by(email=email.strip().lower()).first()
    if not user:
        click.echo(f"FAIL User {email} not found")
        raise SystemExit(1)

    try:
        session, token = session_service.create_session(user.id, ttl_hours=ttl_hours)
    except ValueError as e:
        click.echo(f"FAIL {e}")
        raise SystemExit(1)

    click.echo(f"PASS Token for {user.email} (expires {session.expires_at.isoformat()}Z):")
    click.echo(token)


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
