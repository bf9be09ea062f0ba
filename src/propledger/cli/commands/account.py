"""Chart of accounts commands."""

import click
from propledger.cli.error_handling import domain_errors
from propledger.domain.chart import ChartOfAccountsService
from propledger.domain.entities import AccountType
from propledger.domain.journal import JournalService

ORG_OPTION = click.option("--org", "organization_id", required=True, help="Organization ID")


@click.group()
def account_group():
    """Manage the chart of accounts."""
    pass


@account_group.command("list")
@ORG_OPTION
@click.pass_context
def list_accounts(ctx, organization_id: str):
    """List the accounts of an organization."""
    service = ChartOfAccountsService(ctx.obj["db"])

    with domain_errors(ctx):
        accounts = service.list_accounts(organization_id)

    click.echo("\nAccounts:")
    click.echo("-" * 60)
    for acc in accounts:
        marker = " (system)" if acc.is_system else ""
        click.echo(f"{acc.code:6s} | {acc.name:28s} | {acc.account_type.value:9s}{marker}")


@account_group.command("create")
@ORG_OPTION
@click.argument("code", metavar="CODE")
@click.argument("name", metavar="NAME")
@click.option(
    "--type",
    "account_type",
    required=True,
    type=click.Choice([t.value for t in AccountType], case_sensitive=False),
    help="Account type",
)
@click.pass_context
def create_account(ctx, organization_id: str, code: str, name: str, account_type: str):
    """Create an account.

    Examples:
        propledger account create --org org-1 5400 "Landscaping" --type EXPENSE
    """
    service = ChartOfAccountsService(ctx.obj["db"])

    with domain_errors(ctx):
        account = service.create_account(
            organization_id, code, name, AccountType(account_type.upper())
        )
    click.echo(f"Created account {account.code} '{account.name}' (ID: {account.id})")


@account_group.command("delete")
@ORG_OPTION
@click.argument("code", metavar="CODE")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_account(ctx, organization_id: str, code: str, yes: bool):
    """Delete an unused, non-system account."""
    service = ChartOfAccountsService(ctx.obj["db"])

    with domain_errors(ctx):
        account = service.require_account(organization_id, code)

    if not yes and not click.confirm(f"Are you sure you want to delete account {code} '{account.name}'?"):
        click.echo("Deletion cancelled.")
        return

    with domain_errors(ctx):
        service.delete_account(organization_id, code)
    click.echo(f"Deleted account {code} '{account.name}'")


@account_group.command("balance")
@ORG_OPTION
@click.argument("code", metavar="CODE")
@click.pass_context
def account_balance(ctx, organization_id: str, code: str):
    """Show the balance of one account."""
    db = ctx.obj["db"]

    with domain_errors(ctx):
        account = ChartOfAccountsService(db).require_account(organization_id, code)
        balance = JournalService(db).get_account_balance(organization_id, code)
    click.echo(f"{account.code} {account.name}: ${balance:,.2f}")


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
