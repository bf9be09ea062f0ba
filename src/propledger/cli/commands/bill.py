"""Utility bill commands."""

from decimal import Decimal, InvalidOperation

import click
from propledger.cli.date_filters import parse_date_option
from propledger.cli.error_handling import domain_errors
from propledger.domain.entities import (
    UnitSplitContext,
    UtilityBill,
    UtilityBillStatus,
    UtilityImportMethod,
    UtilitySplitMethod,
)
from propledger.domain.utility_bill import UtilityBillService
from propledger.utils.amount_parser import parse_amount


def build_contexts(
    split_method: UtilitySplitMethod,
    units: tuple[str, ...],
    lease_utilities: tuple[str, ...] = (),
) -> list[UnitSplitContext]:
    """Turn UNIT[:VALUE] options into split contexts.

    VALUE is read according to the split method: square footage, occupant
    count, meter usage or ratio. ``lease_utilities`` holds UNIT:LEASE_UTILITY_ID
    pairs used to derive meter usage from readings.
    """
    meters = {}
    for text in lease_utilities:
        unit_id, _, lease_utility_id = text.partition(":")
        if not unit_id or not lease_utility_id:
            raise ValueError(f"Invalid meter '{text}': expected UNIT:LEASE_UTILITY_ID")
        meters[unit_id] = lease_utility_id

    contexts = []
    for text in units:
        unit_id, _, raw = text.partition(":")
        if not unit_id:
            raise ValueError(f"Invalid unit '{text}': expected UNIT[:VALUE]")
        value = None
        if raw:
            try:
                value = Decimal(raw)
            except InvalidOperation as e:
                raise ValueError(f"Invalid value '{raw}' for unit {unit_id}") from e

        fields = {}
        if split_method == UtilitySplitMethod.SQ_FOOTAGE:
            fields["sq_footage"] = value
        elif split_method == UtilitySplitMethod.OCCUPANCY_BASED:
            fields["occupant_count"] = int(value) if value is not None else None
        elif split_method == UtilitySplitMethod.SUB_METERED:
            fields["meter_usage"] = value
            fields["lease_utility_id"] = meters.get(unit_id)
        elif split_method == UtilitySplitMethod.CUSTOM_RATIO:
            fields["custom_ratio"] = value
        contexts.append(UnitSplitContext(unit_id=unit_id, **fields))
    return contexts


def echo_bill(bill: UtilityBill) -> None:
    click.echo(f"Bill {bill.id}: {bill.provider_name} | property {bill.property_id}")
    click.echo(f"  Amount:       ${bill.total_amount:,.2f}")
    click.echo(f"  Bill date:    {bill.bill_date}   Due: {bill.due_date}")
    click.echo(f"  Status:       {bill.status.value}")
    click.echo(f"  Split method: {bill.split_method.value}")
    if bill.journal_entry_id is not None:
        click.echo(f"  Journal:      entry {bill.journal_entry_id}")
        click.echo(f"  Hash:         {bill.allocation_hash}")


@click.group()
def bill_group():
    """Manage utility bills."""
    pass


@bill_group.command("create")
@click.option("--org", "organization_id", required=True, help="Organization ID")
@click.option("--property", "property_id", required=True, help="Property ID")
@click.option("--provider", "provider_name", required=True, help="Utility provider")
@click.option("--amount", required=True, help="Bill total, e.g. 245.10")
@click.option("--bill-date", default="today", show_default=True, help="Bill date")
@click.option("--due-date", required=True, help="Due date")
@click.option(
    "--split",
    "split_method",
    required=True,
    type=click.Choice([m.value for m in UtilitySplitMethod], case_sensitive=False),
    help="How the bill is split across units",
)
@click.option(
    "--import-method",
    default=UtilityImportMethod.MANUAL_ENTRY.value,
    show_default=True,
    type=click.Choice([m.value for m in UtilityImportMethod], case_sensitive=False),
)
@click.option("--file-url", help="Link to the bill document")
@click.pass_context
def create_bill(
    ctx,
    organization_id,
    property_id,
    provider_name,
    amount,
    bill_date,
    due_date,
    split_method,
    import_method,
    file_url,
):
    """Record a utility bill as DRAFT.

    Examples:
        propledger bill create --org org-1 --property prop-1 --provider "City Water" \\
            --amount 300.00 --due-date "in 30 days" --split EQUAL
    """
    data = {
        "organization_id": organization_id,
        "property_id": property_id,
        "provider_name": provider_name,
        "bill_date": parse_date_option(ctx, bill_date, "bill date"),
        "due_date": parse_date_option(ctx, due_date, "due date"),
        "split_method": split_method.upper(),
        "import_method": import_method.upper(),
        "file_url": file_url,
    }

    with domain_errors(ctx):
        data["total_amount"] = parse_amount(amount)
        bill = UtilityBillService(ctx.obj["db"]).create_bill(data)
    click.echo(f"Created bill {bill.id} (${bill.total_amount:,.2f}, {bill.status.value})")


@bill_group.command("show")
@click.argument("bill_id", type=int)
@click.pass_context
def show_bill(ctx, bill_id: int):
    """Show a bill and its allocations."""
    service = UtilityBillService(ctx.obj["db"])

    with domain_errors(ctx):
        bill = service.require_bill(bill_id)
    echo_bill(bill)

    allocations = service.get_allocations(bill_id)
    if allocations:
        click.echo("  Allocations:")
        for alloc in allocations:
            click.echo(
                f"    {alloc.unit_id:12s} ${alloc.amount:>10,.2f}  {alloc.percentage * 100:7.3f}%"
            )


@bill_group.command("list")
@click.option("--org", "organization_id", required=True, help="Organization ID")
@click.option(
    "--status",
    type=click.Choice([s.value for s in UtilityBillStatus], case_sensitive=False),
    help="Only bills in this status",
)
@click.pass_context
def list_bills(ctx, organization_id: str, status):
    """List bills of an organization."""
    bills = UtilityBillService(ctx.obj["db"]).list_bills(
        organization_id, UtilityBillStatus(status.upper()) if status else None
    )
    if not bills:
        click.echo("No bills found.")
        return

    for bill in bills:
        click.echo(
            f"{bill.id:4d} | {bill.bill_date} | {bill.provider_name:20s} | "
            f"${bill.total_amount:>10,.2f} | {bill.status.value}"
        )


@bill_group.command("allocate")
@click.argument("bill_id", type=int)
@click.option("--unit", "units", multiple=True, required=True, help="UNIT[:VALUE] (repeatable)")
@click.option(
    "--meter",
    "meters",
    multiple=True,
    help="UNIT:LEASE_UTILITY_ID to derive usage from readings (SUB_METERED)",
)
@click.pass_context
def allocate_bill(ctx, bill_id: int, units, meters):
    """Split a DRAFT bill across units.

    Examples:
        propledger bill allocate 1 --unit A --unit B
        propledger bill allocate 2 --unit A:650 --unit B:900
    """
    service = UtilityBillService(ctx.obj["db"])

    with domain_errors(ctx):
        bill = service.require_bill(bill_id)
        contexts = build_contexts(bill.split_method, units, meters)
        allocations = service.allocate_bill(bill_id, contexts)

    click.echo(f"Allocated bill {bill_id} across {len(allocations)} units:")
    for alloc in allocations:
        click.echo(f"  {alloc.unit_id:12s} ${alloc.amount:>10,.2f}")


@bill_group.command("approve")
@click.argument("bill_id", type=int)
@click.pass_context
def approve_bill(ctx, bill_id: int):
    """Approve an allocated bill."""
    with domain_errors(ctx):
        bill = UtilityBillService(ctx.obj["db"]).approve_bill(bill_id)
    click.echo(f"Approved bill {bill.id}")


@bill_group.command("post")
@click.argument("bill_id", type=int)
@click.option("--org", "organization_id", required=True, help="Organization ID")
@click.pass_context
def post_bill(ctx, bill_id: int, organization_id: str):
    """Post an approved bill to the ledger."""
    with domain_errors(ctx):
        entry = UtilityBillService(ctx.obj["db"]).post_bill(bill_id, organization_id)
    click.echo(f"Posted bill {bill_id} as journal entry {entry.id}")


def register_commands(cli):
    """Register bill commands with main CLI."""
    cli.add_command(bill_group, name="bill")
