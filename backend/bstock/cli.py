# Overview: Flask CLI command groups for bootstrap and inspection.

# backend/bstock/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init
#   Create all tables (if missing) and seed the plan catalog. Idempotent.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Plans:
# - python -m flask plans seed
#   Create missing catalog plans (free, growth, pro).
# - python -m flask plans list
#   List plans with their limits.
#
# Organizations:
# - python -m flask orgs list
#   List organizations with plan and usage.
# - python -m flask orgs set-plan --org "Acme" --plan growth
#   Switch an organization's plan without payment (support tool).

import click
from flask.cli import with_appcontext

from .errors import BStockError
from .extensions import db
from .models import Organization
from .services import plan_service


def _limit(value) -> str:
    return "unlimited" if value is None else str(value)


@click.group('system')
def system_group():
    """System bootstrap commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """Create tables and seed the plan catalog."""
    click.echo("START Initializing BStock...")
    db.create_all()
    click.echo("PASS Tables ready")

    plans = plan_service.seed_plans(db.session)
    click.echo(f"PASS Plans ready: {', '.join(p.name for p in plans)}")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Confirm destructive reset')
@with_appcontext
def reset_db(yes):
    """DEV/TEST only: drop and recreate all tables."""
    if not yes:
        click.echo("FAIL Refusing to reset without --yes")
        return
    db.drop_all()
    db.create_all()
    plan_service.seed_plans(db.session)
    click.echo("PASS Database reset and plans seeded")


@click.group('plans')
def plans_group():
    """Plan catalog commands."""


@plans_group.command('seed')
@with_appcontext
def seed_plans_cli():
    """Create missing catalog plans. Existing plans are left unchanged."""
    plans = plan_service.seed_plans(db.session)
    click.echo(f"PASS {len(plans)} plans in catalog")


@plans_group.command('list')
@with_appcontext
def list_plans_cli():
    """List plans with their limits."""
    plans = plan_service.list_plans(db.session)
    if not plans:
        click.echo("No plans found. Run: flask plans seed")
        return

    click.echo("\n" + "="*72)
    click.echo(f"{'Name':<10} {'Price':>10} {'Products':>10} {'Users':>10} {'Locations':>10} {'Analytics':>10}")
    click.echo("="*72)
    for plan in plans:
        click.echo(
            f"{plan.name:<10} {plan.price_monthly_cents / 100:>10.2f} "
            f"{_limit(plan.product_limit):>10} {_limit(plan.user_limit):>10} "
            f"{_limit(plan.location_limit):>10} {'Yes' if plan.analytics_enabled else 'No':>10}"
        )
    click.echo("="*72 + "\n")


@click.group('orgs')
def orgs_group():
    """Organization (tenant) commands."""


@orgs_group.command('list')
@with_appcontext
def list_orgs():
    """List all organizations with plan and usage."""
    orgs = db.session.query(Organization).order_by(Organization.created_at.asc()).all()

    if not orgs:
        click.echo("No organizations found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'Name':<30} {'Plan':<10} {'Status':<10} {'Products':<12} {'Users'}")
    click.echo("="*80)

    for org in orgs:
        subscription = plan_service.get_subscription(db.session, org.id)
        plan_name = subscription.plan.name if subscription else "-"
        status = subscription.status if subscription else "-"
        try:
            usage = plan_service.get_usage(db.session, org.id)
            products = f"{usage['products']['current']}/{_limit(usage['products']['limit'])}"
            users = f"{usage['users']['current']}/{_limit(usage['users']['limit'])}"
        except BStockError:
            products = users = "-"

        click.echo(f"{org.name:<30} {plan_name:<10} {status:<10} {products:<12} {users}")

    click.echo("="*80 + "\n")


@orgs_group.command('set-plan')
@click.option('--org', 'org_name', required=True, help='Organization name')
@click.option('--plan', 'plan_name', required=True, help='Plan name')
@with_appcontext
def set_plan_cli(org_name, plan_name):
    """Switch an organization's plan without payment."""
    org = db.session.query(Organization).filter_by(name=org_name).first()
    if not org:
        click.echo(f"FAIL Organization '{org_name}' not found")
        return

    # Release the lookup's read transaction before the locked write
    db.session.commit()
    try:
        plan_service.set_plan_by_name(db.session, org.id, plan_name)
    except BStockError as e:
        click.echo(f"FAIL {e.message}")
        return

    click.echo(f"PASS {org_name} is now on plan {plan_name}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(plans_group)
    app.cli.add_command(orgs_group)
