# cli.py
"""Operator commands, registered on the app as ``flask sacco ...``."""
from datetime import date

import click
from flask.cli import AppGroup

from extensions import db
from periods import ledger
from savings.models import SavingsEntry, SavingsTarget
from shareout.models import ShareoutDecision
from utils.audit_logger import log_audit_action
from utils.reminder_service import send_overdue_reminders
from utils.transactions import atomic

sacco_cli = AppGroup("sacco", help="SACCO operator commands.")


@sacco_cli.command("periods-check")
@click.option("--org", "organization_id", type=int, required=True)
@click.option("--year", type=int, default=None, help="Defaults to the current year.")
@click.option("--fix", is_flag=True, help="Create missing quarters and activate the current one.")
def periods_check(organization_id, year, fix):
    """Report (and optionally repair) the quarters of a year."""
    today = date.today()
    year = year or today.year

    periods = {p.quarter_number: p for p in ledger.list_periods(organization_id, year)}
    for q in range(1, ledger.QUARTERS_PER_YEAR + 1):
        p = periods.get(q)
        status = "missing" if p is None else ("active" if p.is_active else "inactive")
        click.echo(f"Q{q} {year}: {status}")

    if not fix:
        return

    created = ledger.ensure_year(organization_id, year)
    click.echo(f"created {len(created)} quarter(s)")

    active = ledger.current_active(organization_id)
    if year == today.year and (active is None or not active.contains(today)):
        current = ledger.period_for_date(organization_id, today)
        if current and not current.is_completed:
            ledger.activate(organization_id, current.id)
            click.echo(f"activated {current.name}")


@sacco_cli.command("reset-yearly-data")
@click.option("--org", "organization_id", type=int, required=True)
@click.option("--year", type=int, required=True)
@click.confirmation_option(prompt="This deletes savings targets, entries and share-out decisions. Continue?")
def reset_yearly_data(organization_id, year):
    """Remove a year's savings data so it can be re-entered."""
    period_ids = [p.id for p in ledger.list_periods(organization_id, year)]
    if not period_ids:
        click.echo(f"no periods for {year}")
        return

    with atomic():
        counts = {}
        for model in (ShareoutDecision, SavingsEntry, SavingsTarget):
            counts[model.__tablename__] = model.query.filter(
                model.organization_id == organization_id,
                model.period_id.in_(period_ids),
            ).delete(synchronize_session=False)
        log_audit_action(organization_id, None, "savings.reset_year", "savings_entries", None,
                         old={"year": year, **counts})

    for table, n in counts.items():
        click.echo(f"{table}: {n} deleted")


@sacco_cli.command("send-overdue-reminders")
@click.option("--org", "organization_id", type=int, required=True)
def overdue_reminders(organization_id):
    sent = send_overdue_reminders(organization_id)
    click.echo(f"sent {len(sent)} reminder(s)")


def register_cli(app):
    app.cli.add_command(sacco_cli)
    # keep db importable from `flask shell`
    app.shell_context_processor(lambda: {"db": db})
