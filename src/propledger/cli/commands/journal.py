"""Journal commands."""

import click
from propledger.cli.date_filters import parse_date_option, resolve_cli_date_range
from propledger.cli.error_handling import domain_errors
from propledger.domain.entities import JournalEntry, JournalLineInput, PostJournalEntryInput
from propledger.domain.journal import JournalService
from propledger.domain.money import ZERO
from propledger.utils.amount_parser import parse_amount

ORG_OPTION = click.option("--org", "organization_id", required=True, help="Organization ID")


def parse_line(text: str) -> JournalLineInput:
    """Parse a CODE:DEBIT:CREDIT line option; an empty side means zero."""
    parts = text.split(":")
    if len(parts) != 3 or not parts[0].strip():
        raise ValueError(f"Invalid line '{text}': expected CODE:DEBIT:CREDIT")
    code, debit, credit = (part.strip() for part in parts)
    return JournalLineInput(
        account_code=code,
        debit=parse_amount(debit) if debit else ZERO,
        credit=parse_amount(credit) if credit else ZERO,
    )


def echo_entry(entry: JournalEntry) -> None:
    header = f"Entry {entry.id} | {entry.transaction_date} | {entry.description}"
    if entry.reference:
        header += f" | ref {entry.reference}"
    if entry.reverses_entry_id is not None:
        header += f" | reverses {entry.reverses_entry_id}"
    click.echo(header)
    for line in entry.lines:
        debit = f"{line.debit:,.2f}" if line.debit else ""
        credit = f"{line.credit:,.2f}" if line.credit else ""
        click.echo(f"    {line.account_code:6s} {debit:>14s} {credit:>14s}  {line.description or ''}")


@click.group()
def journal_group():
    """Post and inspect journal entries."""
    pass


@journal_group.command("post")
@ORG_OPTION
@click.option("--date", "date_str", default="today", show_default=True, help="Transaction date")
@click.option("--description", required=True, help="Entry description")
@click.option("--reference", help="External reference")
@click.option(
    "--line",
    "lines",
    multiple=True,
    required=True,
    help="Line as CODE:DEBIT:CREDIT (repeatable)",
)
@click.pass_context
def post_entry(ctx, organization_id: str, date_str: str, description: str, reference, lines):
    """Post a balanced journal entry.

    Examples:
        propledger journal post --org org-1 --description "Rent" \\
            --line 1000:1500: --line 4000::1500
    """
    entry_date = parse_date_option(ctx, date_str, "date")

    with domain_errors(ctx):
        request = PostJournalEntryInput(
            organization_id=organization_id,
            date=entry_date,
            description=description,
            reference=reference,
            lines=tuple(parse_line(text) for text in lines),
        )
        entry = JournalService(ctx.obj["db"]).post(request)

    click.echo(f"Posted entry {entry.id} (${entry.total_debit:,.2f})")


@journal_group.command("list")
@ORG_OPTION
@click.option("--start-date", help="Earliest transaction date")
@click.option("--end-date", help="Latest transaction date")
@click.option("--period", help="this-month, last-month, this-quarter, this-year or last-year")
@click.pass_context
def list_entries(ctx, organization_id: str, start_date, end_date, period):
    """List journal entries."""
    start, end = resolve_cli_date_range(
        ctx, start_date=start_date, end_date=end_date, period=period
    )

    with domain_errors(ctx):
        entries = JournalService(ctx.obj["db"]).list_entries(organization_id, start, end)

    if not entries:
        click.echo("No journal entries found.")
        return
    for entry in entries:
        echo_entry(entry)


@journal_group.command("show")
@click.argument("entry_id", type=int)
@click.pass_context
def show_entry(ctx, entry_id: int):
    """Show one journal entry with its lines."""
    with domain_errors(ctx):
        entry = JournalService(ctx.obj["db"]).require_entry(entry_id)
    echo_entry(entry)


@journal_group.command("reverse")
@ORG_OPTION
@click.argument("entry_id", type=int)
@click.option("--date", "date_str", help="Date of the reversal (defaults to today)")
@click.option("--description", help="Description of the reversal")
@click.pass_context
def reverse_entry(ctx, organization_id: str, entry_id: int, date_str, description):
    """Reverse a posted entry by posting its mirror image."""
    entry_date = parse_date_option(ctx, date_str, "date") if date_str else None

    with domain_errors(ctx):
        entry = JournalService(ctx.obj["db"]).reverse_entry(
            organization_id, entry_id, date=entry_date, description=description
        )
    click.echo(f"Posted reversal {entry.id} of entry {entry_id}")


def register_commands(cli):
    """Register journal commands with main CLI."""
    cli.add_command(journal_group, name="journal")
