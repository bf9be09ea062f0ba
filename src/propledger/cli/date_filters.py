"""CLI helpers for date range resolution."""

from datetime import date

import click

from propledger.utils.date_parser import get_date_range, parse_date


def parse_date_option(ctx: click.Context, value: str, label: str) -> date:
    """Parse a date option, or exit with a CLI error."""
    try:
        return parse_date(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label}: {e}", err=True)
        ctx.exit(1)


def resolve_cli_date_range(
    ctx,
    *,
    start_date: str | None,
    end_date: str | None,
    period: str | None,
) -> tuple[date | None, date | None]:
    """Resolve a date range from a named period or explicit bounds."""
    if period and (start_date or end_date):
        click.echo(
            "Error: --period cannot be combined with --start-date or --end-date.",
            err=True,
        )
        ctx.exit(1)

    if period:
        try:
            return get_date_range(period)
        except ValueError as e:
            click.echo(f"Error: {e}", err=True)
            ctx.exit(1)

    start = parse_date_option(ctx, start_date, "start date") if start_date else None
    end = parse_date_option(ctx, end_date, "end date") if end_date else None
    return start, end
