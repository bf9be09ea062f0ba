"""Meter reading commands."""

import click
from propledger.cli.date_filters import parse_date_option
from propledger.cli.error_handling import domain_errors
from propledger.domain.reading import UtilityReadingService


@click.group()
def reading_group():
    """Record and list meter readings."""
    pass


@reading_group.command("add")
@click.argument("lease_utility_id", metavar="LEASE_UTILITY_ID")
@click.argument("value", metavar="VALUE")
@click.option("--date", "date_str", default="today", show_default=True, help="Reading date")
@click.pass_context
def add_reading(ctx, lease_utility_id: str, value: str, date_str: str):
    """Record a meter reading.

    Examples:
        propledger reading add lu-7 10452.5 --date 2024-03-31
    """
    data = {
        "lease_utility_id": lease_utility_id,
        "reading_value": value,
        "reading_date": parse_date_option(ctx, date_str, "date"),
    }
    with domain_errors(ctx):
        reading = UtilityReadingService(ctx.obj["db"]).create_reading(data)
    click.echo(f"Recorded reading {reading.reading_value} on {reading.reading_date} (ID: {reading.id})")


@reading_group.command("list")
@click.argument("lease_utility_id", metavar="LEASE_UTILITY_ID")
@click.pass_context
def list_readings(ctx, lease_utility_id: str):
    """List readings of a lease utility, oldest first."""
    service = UtilityReadingService(ctx.obj["db"])
    readings = service.list_readings(lease_utility_id)
    if not readings:
        click.echo("No readings found.")
        return

    for r in readings:
        click.echo(f"{r.reading_date} | {r.reading_value}")
    usage = service.get_usage(lease_utility_id)
    if usage is not None:
        click.echo(f"Latest usage: {usage}")


def register_commands(cli):
    """Register reading commands with main CLI."""
    cli.add_command(reading_group, name="reading")
