"""CLI entry points for mentionlink.

Provides command-line tools for resolving mentions, reviewing recorded
matches and issuing API tokens.
"""

import click

from .. import __version__
from ..logging import setup_logging
from .resolve import cli as resolve_cli


@click.group()
@click.version_option(version=__version__, prog_name="mentionlink")
def main():
    """mentionlink - resolve transcript mentions to contacts."""
    setup_logging()


@main.command(name="token")
@click.option("--owner-id", type=str, required=True, help="Owner the token acts as")
@click.option("--hours", type=int, default=None, help="Lifetime (defaults to JWT_EXPIRATION_HOURS)")
def issue_token(owner_id: str, hours: int | None):
    """Print a bearer token for calling the API as an owner."""
    from datetime import timedelta

    from ..api.auth import issue_token as sign

    click.echo(sign(owner_id, ttl=timedelta(hours=hours) if hours else None))


main.add_command(resolve_cli, name="resolve")


if __name__ == "__main__":
    main()
