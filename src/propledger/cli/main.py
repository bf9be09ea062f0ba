"""Main CLI entry point."""

import click
from propledger.database.factories import DB_PATH_ENV, create_sqlite_database
from propledger.logging_config import configure_logging

# Import and register all commands at module level
from propledger.cli.commands import (
    setup_cmd,
    account,
    journal,
    bill,
    reading,
    summary,
)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help=f"Path to database file (overrides {DB_PATH_ENV} environment variable)",
    envvar=DB_PATH_ENV,
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    show_default=True,
    envvar="PROPLEDGER_LOG_LEVEL",
    help="Level of the JSON log lines written to stderr",
)
@click.pass_context
def cli(ctx, db_path: str | None, log_level: str):
    """Propledger - Property management ledger.

    Double-entry books per organization, with utility bills allocated across
    units and posted to the ledger.
    """
    ctx.ensure_object(dict)

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        configure_logging(level=log_level)
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.call_on_close(db.disconnect)


# Register all commands
setup_cmd.register_commands(cli)
account.register_commands(cli)
journal.register_commands(cli)
bill.register_commands(cli)
reading.register_commands(cli)
summary.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
