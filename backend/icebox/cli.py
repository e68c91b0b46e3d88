# Overview: Flask CLI command groups for inspection and maintenance.

# backend/icebox/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# Cash ledger:
# - python -m flask ledger balance
#   Print the current register balance.
# - python -m flask ledger check
#   Recompute the balance from zero; exits 1 on any inconsistency.
#
# Workers:
# - python -m flask workers recompute [--worker-id 3] [--apply]
#   Rebuild debt / total sales / last sale from settled trips and payments; report drift.
#
# System:
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).

import click
from flask.cli import with_appcontext

from .extensions import db
from .services import cash_service, maintenance_service


def _cents(value: int) -> str:
    sign = "-" if value < 0 else ""
    value = abs(value)
    return f"{sign}{value // 100}.{value % 100:02d}"


@click.group('ledger')
def ledger_group():
    """Cash ledger inspection."""


@ledger_group.command('balance')
@with_appcontext
def ledger_balance():
    """Print the current balance."""
    click.echo(f"Balance: {_cents(cash_service.get_current_balance())}")


@ledger_group.command('check')
@with_appcontext
def ledger_check():
    """Verify the ledger: sum of amounts == latest balance == head balance."""
    info = cash_service.consistency_check()
    click.echo(f"Entries: {info.entry_count}")
    click.echo(f"Current balance: {_cents(info.current_balance_cents)}")
    click.echo(f"Calculated balance: {_cents(info.calculated_balance_cents)}")

    if info.is_consistent:
        click.echo("PASS Ledger is consistent")
        return

    for problem in info.problems:
        click.echo(f"FAIL {problem}", err=True)
    raise SystemExit(1)


@click.group('workers')
def workers_group():
    """Worker aggregate maintenance."""


@workers_group.command('recompute')
@click.option('--worker-id', type=int, default=None, help='Only this worker')
@click.option('--apply', is_flag=True, help='Write the recomputed values')
@with_appcontext
def workers_recompute(worker_id, apply):
    """Compare stored worker aggregates with values rebuilt from settled trips."""
    drifts = maintenance_service.recompute_worker_aggregates(worker_id=worker_id, apply=apply)
    if not drifts:
        click.echo("PASS No drift found")
        return

    for drift in drifts:
        click.echo(
            f"Worker {drift.worker_id}: "
            f"debt {_cents(drift.stored.current_debt_cents)} -> {_cents(drift.recomputed.current_debt_cents)}, "
            f"sales {drift.stored.total_sales} -> {drift.recomputed.total_sales}"
        )
    if apply:
        click.echo(f"PASS Updated {len(drifts)} worker(s)")
    else:
        click.echo(f"WARN {len(drifts)} worker(s) drifted. Re-run with --apply to fix.")


@click.group('system')
def system_group():
    """System repair commands."""


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


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(ledger_group)
    app.cli.add_command(workers_group)
    app.cli.add_command(system_group)
