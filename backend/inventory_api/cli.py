# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/inventory_api/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: creates tables and the default superadmin/admin/staff users.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# User inspection/bootstrap:
# - python -m flask users list
#   List users with role and active status.
# - python -m flask users create --username jane --email jane@example.com --password "Password123!" --role staff
#   Create a user (prompts if options are omitted).
#
# Sales maintenance:
# - python -m flask sales retry-restorations
#   Re-apply stock restorations that failed when a sale was cancelled.
#
# Session maintenance:
# - python -m flask sessions cleanup
#   Delete expired/revoked sessions older than 30 days.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import User
from .models.auth import ROLES
from .services import sales_service, session_service, user_service
from .validation import ConflictError, ValidationError


DEFAULT_PASSWORD = "Password123!"

DEFAULT_USERS = [
    ("superadmin", "superadmin@inventory.local", "Super Admin", "super_admin"),
    ("admin", "admin@inventory.local", "Admin", "admin"),
    ("staff", "staff@inventory.local", "Staff", "staff"),
]


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Create tables (if missing) and default users.

    All default passwords are "Password123!". Change them in production.
    """
    click.echo("START Initializing inventory system...")
    db.create_all()
    click.echo("PASS Tables ready")

    for username, email, full_name, role in DEFAULT_USERS:
        existing = db.session.query(User).filter_by(username=username).first()
        if existing:
            click.echo(f"WARN  User '{username}' already exists, skipping...")
            continue
        try:
            user_service.create_user({
                "username": username,
                "email": email,
                "full_name": full_name,
                "role": role,
                "password": DEFAULT_PASSWORD,
            })
            click.echo(f"PASS Created user: {username} ({email}) with role '{role}'")
        except (ValidationError, ConflictError) as e:
            click.echo(f"FAIL Failed to create user '{username}': {e}")

    click.echo("\nDefault Credentials (CHANGE IN PRODUCTION!):")
    for username, email, _full_name, _role in DEFAULT_USERS:
        click.echo(f"   {username:<10} -> {email:<28} / {DEFAULT_PASSWORD}")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Confirm destructive reset')
@with_appcontext
def reset_db(yes):
    """DEV/TEST only: drop and recreate all tables."""
    if not yes:
        click.echo("Refusing to reset without --yes")
        raise SystemExit(1)
    db.drop_all()
    db.create_all()
    click.echo("PASS Database reset")


@click.group('users')
def users_group():
    """User inspection and bootstrap."""


@users_group.command('list')
@with_appcontext
def list_users():
    users = db.session.query(User).order_by(User.id.asc()).all()
    if not users:
        click.echo("No users found")
        return
    for u in users:
        state = "deleted" if u.deleted_at else ("active" if u.is_active else "inactive")
        click.echo(f"{u.id:>4}  {u.username:<20} {u.email:<32} {u.role:<12} {state}")


@users_group.command('create')
@click.option('--username', prompt=True)
@click.option('--email', prompt=True)
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@click.option('--full-name', default=None)
@click.option('--role', type=click.Choice(ROLES), default='staff', show_default=True)
@with_appcontext
def create_user_command(username, email, password, full_name, role):
    try:
        user = user_service.create_user({
            "username": username,
            "email": email,
            "full_name": full_name,
            "role": role,
            "password": password,
        })
    except (ValidationError, ConflictError) as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Created user {user.username} (ID: {user.id}, role: {user.role})")


@click.group('sales')
def sales_group():
    """Sales maintenance."""


@sales_group.command('retry-restorations')
@with_appcontext
def retry_restorations():
    result = sales_service.retry_pending_restorations()
    click.echo(f"Applied: {result['applied']}  Still pending: {result['pending']}")


@click.group('sessions')
def sessions_group():
    """Session maintenance."""


@sessions_group.command('cleanup')
@with_appcontext
def cleanup_sessions():
    deleted = session_service.cleanup_expired_sessions()
    click.echo(f"Deleted {deleted} expired/revoked sessions")


def register_commands(app):
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(sales_group)
    app.cli.add_command(sessions_group)
