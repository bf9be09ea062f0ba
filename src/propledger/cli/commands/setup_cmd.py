"""Financial setup command."""

import click
from propledger.cli.error_handling import domain_errors
from propledger.domain.chart import ChartOfAccountsService


@click.command("setup")
@click.argument("organization_id", metavar="ORG_ID")
@click.argument("org_name", metavar="ORG_NAME")
@click.pass_context
def setup(ctx, organization_id: str, org_name: str):
    """Set up financials for an organization.

    Creates the financial entity and the standard chart of accounts. Running
    it again for the same organization changes nothing.

    Examples:
        propledger setup org-1 "Maple Street Rentals"
    """
    service = ChartOfAccountsService(ctx.obj["db"])

    with domain_errors(ctx):
        existing = service.get_entity(organization_id)
        entity = service.setup_financials(organization_id, org_name)

    if existing is not None:
        click.echo(f"Financials already set up for {organization_id}: '{entity.name}' (ID: {entity.id})")
        return

    accounts = service.list_accounts(organization_id)
    click.echo(f"Created '{entity.name}' (ID: {entity.id}) with {len(accounts)} accounts")


def register_commands(cli):
    """Register setup command with main CLI."""
    cli.add_command(setup)
