# Overview: Flask CLI command group for bootstrap, inspection, and backfill.

# backend/beanlink/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask sync <command> [options]
#
# - python -m flask sync init-db
#   Create any missing tables (idempotent). Use `flask db upgrade` where migrations are managed.
# - python -m flask sync reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask sync collections
#   List the collection names accepted under /sync/<kind>.
# - python -m flask sync stats
#   Row counts per collection.
# - python -m flask sync registrations [--limit 20]
#   Most recently synced terminal registrations.
# - python -m flask sync load bills ./bills.json
#   Backfill a JSON array (or {"records": [...]}) through the batch upsert.

import json

import click
from flask.cli import with_appcontext

from .extensions import db
from .services import sync_service
from .services.sync_schemas import SCHEMAS


@click.group('sync')
def sync_group():
    """Sync store bootstrap and inspection commands."""


@sync_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    click.echo("BUILD  Creating missing tables...")
    db.create_all()
    click.echo("PASS Database ready.")


@sync_group.command('reset-db')
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


@sync_group.command('collections')
def list_collections():
    """List collection names and their natural keys."""
    for name, schema in sorted(SCHEMAS.items()):
        scope = "mid" if schema.merchant_scoped else "global"
        key = ", ".join(schema.natural_key_columns)
        click.echo(f"{name:<14} key=({key}) scope={scope}")


@sync_group.command('stats')
@with_appcontext
def stats():
    """Row counts per collection."""
    counts = sync_service.collection_counts()

    click.echo("\n" + "="*40)
    click.echo(f"{'Collection':<20} {'Rows':>10}")
    click.echo("="*40)
    for name, count in sorted(counts.items()):
        click.echo(f"{name:<20} {count:>10}")
    click.echo("="*40 + "\n")


@sync_group.command('registrations')
@click.option('--limit', default=20, show_default=True, help='Max rows to show')
@with_appcontext
def list_registrations(limit):
    """List terminal registrations, most recently synced first."""
    rows = sync_service.list_rows("registration")[:limit]

    if not rows:
        click.echo("No registrations found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'MID':<6} {'Hostname':<30} {'Business':<25} {'Updated'}")
    click.echo("="*80)
    for row in rows:
        click.echo(
            f"{row['mid']:<6} {row['hostname']:<30} {(row['business_name'] or '-'):<25} {row['updated_at']}"
        )
    click.echo("="*80 + "\n")


@sync_group.command('load')
@click.argument('kind')
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@with_appcontext
def load_file(kind, path):
    """Backfill records from a JSON file through the batch upsert."""
    with open(path, encoding="utf-8") as fh:
        try:
            body = json.load(fh)
        except ValueError as e:
            raise click.ClickException(f"{path} is not valid JSON: {e}")

    try:
        result = sync_service.upsert_batch(kind, body)
    except ValueError as e:
        raise click.ClickException(str(e))

    click.echo(f"PASS {len(result.succeeded)} records synced into {result.kind}")
    for failure in result.failed:
        click.echo(f"FAIL record {failure['index']}: {failure['error']} (key={failure['key']})")
    if not result.success:
        raise SystemExit(1)


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(sync_group)
