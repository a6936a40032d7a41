"""CLI commands for mention resolution and review.

Usage:
    mentionlink resolve match --owner-id ID --source-contact-id ID --mentions FILE
    mentionlink resolve list --owner-id ID --source-contact-id ID [--status STATUS]
    mentionlink resolve review MENTION_ID --owner-id ID --action ACTION
"""

import asyncio
import json
import sys

import click

MATCH_TYPE_COLORS = {
    "EXACT": "green",
    "FUZZY": "yellow",
    "NONE": "red",
}


@click.group(name="resolve")
def cli():
    """Mention resolution and review commands."""
    pass


def _load_json_list(path: str, label: str) -> list:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get(label, [])
    if not isinstance(data, list):
        raise click.BadParameter(f"{path} must contain a list of {label}")
    return data


class _StaticContacts:
    """Contact source backed by a JSON file instead of the database."""

    def __init__(self, contacts):
        self._contacts = tuple(contacts)

    async def fetch_candidates(self, owner_id: str, exclude_contact_id: str):
        return tuple(c for c in self._contacts if c.id != exclude_contact_id)


@cli.command(name="match")
@click.option("--owner-id", type=str, required=True, help="User who owns the contacts")
@click.option(
    "--source-contact-id",
    type=str,
    required=True,
    help="Contact being enriched (never matched)",
)
@click.option(
    "--mentions",
    "mentions_file",
    type=click.Path(exists=True, dir_okay=False),
    required=True,
    help="JSON file with a list of mentions",
)
@click.option(
    "--contacts",
    "contacts_file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Resolve against contacts from a JSON file instead of the database (implies --dry-run)",
)
@click.option(
    "--dry-run",
    is_flag=True,
    help="Resolve without recording mentions for review",
)
@click.option("--verbose", "-v", is_flag=True, help="Show alternative matches")
def match_mentions(
    owner_id: str,
    source_contact_id: str,
    mentions_file: str,
    contacts_file: str | None,
    dry_run: bool,
    verbose: bool,
):
    """Resolve a file of mentions to contacts.

    Examples:

        # Resolve and record for review
        mentionlink resolve match --owner-id u1 --source-contact-id c1 --mentions mentions.json

        # Try it out against a local contact export
        mentionlink resolve match --owner-id u1 --source-contact-id c1 \\
            --mentions mentions.json --contacts contacts.json -v
    """
    from ..resolution import (
        CandidateContact,
        MatchingConfig,
        MentionInput,
        MentionMatchingService,
    )

    mentions = [
        MentionInput.model_validate(m) for m in _load_json_list(mentions_file, "mentions")
    ]

    kwargs = {"config": MatchingConfig.from_settings()}
    if contacts_file:
        contacts = [
            CandidateContact.model_validate(c)
            for c in _load_json_list(contacts_file, "contacts")
        ]
        kwargs["contacts"] = _StaticContacts(contacts)
        dry_run = True

    async def _match():
        service = MentionMatchingService(**kwargs)
        return await service.match_mentions(
            mentions,
            source_contact_id=source_contact_id,
            owner_id=owner_id,
            persist=not dry_run,
        )

    try:
        results = asyncio.run(_match())
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(f"\nMention Matches ({len(results)})")
    click.echo("=" * 70)

    for result in results:
        click.echo(f"\n{result.name} ({result.normalized_name})")
        click.echo("  Match: ", nl=False)
        click.secho(
            result.match_type.value,
            fg=MATCH_TYPE_COLORS.get(result.match_type.value, "white"),
        )
        click.echo(f"  Confidence: {result.confidence:.2f}")

        if result.matched_contact:
            contact = result.matched_contact
            click.echo(f"  Contact: {contact.first_name} {contact.last_name or ''} ({contact.id})")
        for reason in result.match_reasons:
            click.echo(f"    - {reason}")

        if verbose and result.alternative_matches:
            click.echo("  Alternatives:")
            for alt in result.alternative_matches:
                click.echo(
                    f"    {alt.contact.first_name} {alt.contact.last_name or ''} "
                    f"({alt.contact.id}): {alt.confidence:.2f}"
                )

        if result.resolution_error:
            click.secho(f"  Error: {result.resolution_error}", fg="red")
        for warning in result.warnings:
            click.secho(f"  Warning: {warning}", fg="yellow")
        if result.mention_id:
            click.echo(f"  Mention ID: {result.mention_id}")

    click.echo("\n" + "=" * 70)
    if dry_run:
        click.echo("Dry run - nothing was recorded")


@cli.command(name="list")
@click.option("--owner-id", type=str, required=True, help="User who owns the mentions")
@click.option("--source-contact-id", type=str, required=True, help="Enriched contact")
@click.option(
    "--status",
    type=click.Choice(["PENDING", "CONFIRMED", "REJECTED"], case_sensitive=False),
    default=None,
    help="Filter by review status",
)
@click.option("--limit", type=int, default=20, help="Maximum mentions to show")
def list_mentions(
    owner_id: str,
    source_contact_id: str,
    status: str | None,
    limit: int,
):
    """List mentions recorded for a contact.

    Example:

        mentionlink resolve list --owner-id u1 --source-contact-id c1 --status pending
    """
    from ..resolution import MentionStatus, MentionStore

    async def _list():
        store = MentionStore()
        return await store.list_for_source(
            owner_id=owner_id,
            source_contact_id=source_contact_id,
            status=MentionStatus(status.upper()) if status else None,
            limit=limit,
        )

    try:
        mentions, total = asyncio.run(_list())
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if not mentions:
        click.echo("No mentions found matching the criteria.")
        return

    click.echo(f"\nMentions ({len(mentions)} of {total})")
    click.echo("=" * 70)

    for mention in mentions:
        click.echo(f"\nMention: {mention.id}")
        click.echo(f"  Name: {mention.name}")
        click.echo(f"  Status: {mention.status.value}")
        click.echo(f"  Match: {mention.match_type.value} ({mention.confidence:.2f})")
        if mention.mentioned_contact_id:
            click.echo(f"  Contact: {mention.mentioned_contact_id}")

    click.echo("\n" + "=" * 70)
    click.echo("Use 'mentionlink resolve review <mention_id> --action <action>' to review")


@cli.command(name="review")
@click.argument("mention_id")
@click.option("--owner-id", type=str, required=True, help="User who owns the mention")
@click.option(
    "--action",
    type=click.Choice(["confirm", "reject"]),
    required=True,
    help="Review decision",
)
@click.option(
    "--contact-id",
    type=str,
    default=None,
    help="Confirm against this contact instead of the resolver's pick",
)
def review_mention(
    mention_id: str,
    owner_id: str,
    action: str,
    contact_id: str | None,
):
    """Confirm or reject a pending mention.

    Examples:

        mentionlink resolve review m123 --owner-id u1 --action confirm

        # Link to one of the alternatives instead
        mentionlink resolve review m123 --owner-id u1 --action confirm --contact-id c42
    """
    from ..resolution import MentionLinkError, MentionStore, ReviewAction

    async def _review():
        store = MentionStore()
        return await store.review(
            mention_id,
            owner_id=owner_id,
            action=ReviewAction(action),
            mentioned_contact_id=contact_id,
        )

    try:
        mention = asyncio.run(_review())
    except MentionLinkError as e:
        click.echo(f"Cannot review mention: {e}", err=True)
        sys.exit(1)
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo("\nMention reviewed successfully!")
    click.echo(f"  Mention ID: {mention.id}")
    click.echo(f"  Contact: {mention.mentioned_contact_id or '-'}")
    click.echo("  Status: ", nl=False)
    click.secho(mention.status.value, fg="green")
