"""Financial summary command."""

import click
from propledger.cli.error_handling import domain_errors
from propledger.domain.journal import JournalService


def _money(value) -> str:
    return f"${value:,.2f}" if value != 0 else "-"


@click.command("summary")
@click.option("--org", "organization_id", required=True, help="Organization ID")
@click.option("--trial-balance", is_flag=True, help="Also print every account balance")
@click.pass_context
def summary(ctx, organization_id: str, trial_balance: bool):
    """Show headline balances of an organization.

    Examples:
        propledger summary --org org-1
        propledger summary --org org-1 --trial-balance
    """
    service = JournalService(ctx.obj["db"])
    result = service.get_financial_summary(organization_id)

    rows = [
        ("Cash in Bank", result.cash_in_bank),
        ("Accounts Receivable", result.accounts_receivable),
        ("Accounts Payable", result.accounts_payable),
        ("Rental Income", result.rental_income),
        ("Utility Expense", result.utility_expense),
    ]
    click.echo(f"\nFinancial summary for {organization_id}")
    click.echo("=" * 60)
    for label, value in rows:
        click.echo(f"{label:<40} {_money(value):>19}")
    click.echo("-" * 60)
    click.echo(f"{'Net Operating Income':<40} {_money(result.net_operating_income):>19}")

    if not trial_balance:
        return

    with domain_errors(ctx):
        balances = service.get_trial_balance(organization_id)
    click.echo("\nTrial balance")
    click.echo("=" * 60)
    for b in balances:
        click.echo(f"{b.account_code:6s} {b.account_name:<28s} {_money(b.total_debit):>12} {_money(b.total_credit):>12}")


def register_commands(cli):
    """Register summary command with main CLI."""
    cli.add_command(summary)
