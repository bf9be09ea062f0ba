"""CLI error handling helpers."""

from contextlib import contextmanager
from typing import Iterator

import click

from propledger.domain.errors import DomainError, InvalidInputError


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    click.echo(f"Error: {error}", err=True)
    if isinstance(error, InvalidInputError) and len(error.issues) > 1:
        for issue in error.issues[1:]:
            click.echo(f"  {issue}", err=True)
    ctx.exit(1)


@contextmanager
def domain_errors(ctx: click.Context) -> Iterator[None]:
    """Turn any DomainError (or parse ValueError) raised in the block into a CLI error."""
    try:
        yield
    except ValueError as e:
        handle_domain_error(ctx, e)
