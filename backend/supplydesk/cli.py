# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/supplydesk/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Create all tables (if missing) and load demo data.
# - python -m flask system seed
#   Idempotent demo data: 2 companies, 4 categories, admin/director/user accounts, 4 products.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask system wipe --yes
#   Delete every row from every table, keeping the schema.
# - python -m flask system check-orders
#   Verify order lifecycle timestamp columns exist and report the order count.
#
# User inspection/bootstrap:
# - python -m flask users list [--company-id 1]
# - python -m flask users create --name "Ada" --email ada@example.com --password "password123" --role USER --company-id 1
#
# Maintenance:
# - python -m flask maintenance cleanup-sessions --retention-days 30
# - python -m flask maintenance cleanup-security-events --retention-days 90

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Company, User, ROLES, ROLE_USER
from .services import auth_service, maintenance_service, seed_service, session_service
from .validation import ConflictError, ValidationError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """Create missing tables and load demo data."""
    click.echo("START Initializing SupplyDesk...")
    db.create_all()
    click.echo("PASS Schema ready")
    created = seed_service.seed_demo_data()
    _echo_seed_result(created)
    click.echo(f"\nDemo accounts use password: {seed_service.DEMO_PASSWORD}")


@system_group.command('seed')
@with_appcontext
def seed_command():
    """Load demo data (safe to re-run)."""
    created = seed_service.seed_demo_data()
    _echo_seed_result(created)


def _echo_seed_result(created: dict) -> None:
    for entity, count in created.items():
        click.echo(f"PASS {entity}: {count} created")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Confirm dropping all tables.')
@with_appcontext
def reset_db(yes):
    """DEV/TEST only: drop and recreate all tables."""
    if not yes and not click.confirm("This will DELETE ALL DATA. Continue?"):
        click.echo("Aborted.")
        return
    db.drop_all()
    db.create_all()
    click.echo("PASS Database reset")


@system_group.command('wipe')
@click.option('--yes', is_flag=True, help='Confirm deleting all rows.')
@with_appcontext
def wipe(yes):
    """Delete every row, children before parents. Schema is kept."""
    if not yes and not click.confirm("This will delete every row in every table. Continue?"):
        click.echo("Aborted.")
        return
    counts = maintenance_service.wipe_all_data()
    for table, count in counts.items():
        if count:
            click.echo(f"  {table}: {count} deleted")
    click.echo(f"PASS Wiped {sum(counts.values())} rows")


@system_group.command('check-orders')
@with_appcontext
def check_orders():
    """Verify the order lifecycle columns and report the order count."""
    result = maintenance_service.check_order_schema()
    if result["missingColumns"]:
        click.echo(f"FAIL Missing order columns: {', '.join(result['missingColumns'])}")
        click.echo("Run `flask db upgrade` to apply migrations.")
        raise click.exceptions.Exit(1)
    click.echo("PASS Order timestamp columns present")
    click.echo(f"Orders in database: {result['orderCount']}")


@click.group('users')
def users_group():
    """User inspection and bootstrap."""


@users_group.command('list')
@click.option('--company-id', type=int, default=None)
@with_appcontext
def list_users(company_id):
    query = db.session.query(User).order_by(User.id.asc())
    if company_id is not None:
        query = query.filter(User.company_id == company_id)
    users = query.all()
    if not users:
        click.echo("No users found")
        return
    for u in users:
        status = "active" if u.is_active else "inactive"
        click.echo(f"{u.id:>4}  {u.email:<32} {u.role:<17} company={u.company_id} {status}")


@users_group.command('create')
@click.option('--name', prompt=True)
@click.option('--email', prompt=True)
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@click.option('--role', type=click.Choice(ROLES), default=ROLE_USER, show_default=True)
@click.option('--company-id', type=int, default=None)
@with_appcontext
def create_user_command(name, email, password, role, company_id):
    if company_id is not None and db.session.get(Company, company_id) is None:
        raise click.ClickException(f"Company {company_id} not found")
    try:
        user = auth_service.create_user(
            name=name, email=email, password=password, role=role, company_id=company_id
        )
    except (ValidationError, ConflictError) as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Created {user.role} {user.email} (ID: {user.id})")


@click.group('maintenance')
def maintenance_group():
    """Maintenance commands."""


@maintenance_group.command('cleanup-sessions')
@click.option('--retention-days', type=int, default=30, show_default=True)
@with_appcontext
def cleanup_sessions(retention_days):
    deleted = session_service.cleanup_expired_sessions(retention_days=retention_days)
    click.echo(f"PASS Deleted {deleted} expired or revoked sessions")


@maintenance_group.command('cleanup-security-events')
@click.option('--retention-days', type=int, default=90, show_default=True)
@with_appcontext
def cleanup_security_events(retention_days):
    deleted = maintenance_service.cleanup_security_events(retention_days=retention_days)
    click.echo(f"PASS Deleted {deleted} security events")


def register_commands(app):
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(maintenance_group)
