"""Persistence of mention audit records.

Every resolved mention is written as its own PENDING row so a reviewer
can later confirm or reject the link. Rows are append-only: a second
enrichment pass over the same transcript creates new rows rather than
updating earlier ones.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import uuid4

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from ..db import transaction
from ..logging import get_context_logger
from .contacts import ContactRepository
from .errors import (
    InvalidMentionLinkError,
    InvalidTransitionError,
    MentionNotFoundError,
    PersistenceFailedError,
)
from .models import AlternativeMatch, MatchType, Mention, MentionMatch, MentionStatus

logger = get_context_logger(__name__)


class ReviewAction(str, Enum):
    """Reviewer decisions on a pending mention."""

    CONFIRM = "confirm"
    REJECT = "reject"


_ACTION_STATUS = {
    ReviewAction.CONFIRM: MentionStatus.CONFIRMED,
    ReviewAction.REJECT: MentionStatus.REJECTED,
}


def _load_json(value: Any) -> Any:
    # asyncpg hands JSONB back as text unless a codec is registered
    if isinstance(value, str):
        return json.loads(value)
    return value


class MentionStore:
    """Stores and reviews mention audit records."""

    def __init__(
        self,
        session_factory=transaction,
        contacts: ContactRepository | None = None,
    ):
        """Initialize the store.

        Args:
            session_factory: Callable returning an async session context
                manager (``transaction`` by default)
            contacts: Repository used to check ownership on review
        """
        self._session_factory = session_factory
        self._contacts = contacts or ContactRepository(session_factory)

    async def persist(
        self,
        match: MentionMatch,
        source_contact_id: str,
        owner_id: str,
    ) -> str:
        """Write one PENDING audit record for a resolved mention.

        Args:
            match: Resolver output
            source_contact_id: Contact being enriched
            owner_id: Acting user

        Returns:
            ID of the new record

        Raises:
            InvalidMentionLinkError: If the match points at the source contact
            PersistenceFailedError: If the database write fails
        """
        mentioned_contact_id = match.matched_contact.id if match.matched_contact else None
        if mentioned_contact_id is not None and mentioned_contact_id == source_contact_id:
            raise InvalidMentionLinkError(
                f"Mention {match.normalized_name!r} cannot link to its own source contact"
            )

        mention_id = str(uuid4())
        now = datetime.now(timezone.utc)

        try:
            async with self._session_factory() as db:
                query = text("""
                    INSERT INTO contact_mentions (
                        id, created_at, updated_at, user_id, source_contact_id,
                        mentioned_contact_id, mentioned_name, normalized_name,
                        extracted_context, inferred_fields, match_type,
                        match_confidence, match_reasons, alternative_matches,
                        resolution_error, status
                    ) VALUES (
                        :id, :created_at, :updated_at, :user_id, :source_contact_id,
                        :mentioned_contact_id, :mentioned_name, :normalized_name,
                        :extracted_context, CAST(:inferred_fields AS jsonb), :match_type,
                        :match_confidence, CAST(:match_reasons AS jsonb),
                        CAST(:alternative_matches AS jsonb),
                        :resolution_error, :status
                    )
                """)
                await db.execute(
                    query,
                    {
                        "id": mention_id,
                        "created_at": now,
                        "updated_at": now,
                        "user_id": owner_id,
                        "source_contact_id": source_contact_id,
                        "mentioned_contact_id": mentioned_contact_id,
                        "mentioned_name": match.name,
                        "normalized_name": match.normalized_name,
                        "extracted_context": match.context,
                        "inferred_fields": (
                            json.dumps(match.inferred_details)
                            if match.inferred_details is not None
                            else None
                        ),
                        "match_type": match.match_type.value,
                        "match_confidence": match.confidence,
                        "match_reasons": json.dumps(match.match_reasons),
                        "alternative_matches": json.dumps(
                            [alt.model_dump(by_alias=True) for alt in match.alternative_matches]
                        ),
                        "resolution_error": match.resolution_error,
                        "status": MentionStatus.PENDING.value,
                    },
                )
        except (SQLAlchemyError, OSError) as e:
            # asyncpg connect refusals and timeouts arrive as OSError
            raise PersistenceFailedError(
                f"Failed to save mention {match.normalized_name!r}: {e}"
            ) from e

        return mention_id

    async def get(self, mention_id: str, owner_id: str) -> Mention | None:
        """Get one mention, scoped to its owner."""
        async with self._session_factory() as db:
            query = text("""
                SELECT * FROM contact_mentions
                WHERE id = :mention_id AND user_id = :owner_id
            """)
            result = await db.execute(
                query, {"mention_id": mention_id, "owner_id": owner_id}
            )
            row = result.mappings().first()

        return self._row_to_mention(row) if row else None

    async def list_for_source(
        self,
        owner_id: str,
        source_contact_id: str,
        status: MentionStatus | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Mention], int]:
        """List mentions recorded for a source contact, newest first.

        Returns:
            Tuple of (page of mentions, total matching rows)
        """
        filters = ["user_id = :owner_id", "source_contact_id = :source_contact_id"]
        params: dict[str, Any] = {
            "owner_id": owner_id,
            "source_contact_id": source_contact_id,
            "limit": limit,
            "offset": offset,
        }
        if status:
            filters.append("status = :status")
            params["status"] = status.value

        where_clause = " AND ".join(filters)

        async with self._session_factory() as db:
            count_result = await db.execute(
                text(f"SELECT COUNT(*) FROM contact_mentions WHERE {where_clause}"),
                params,
            )
            total = count_result.scalar_one()

            result = await db.execute(
                text(f"""
                    SELECT * FROM contact_mentions
                    WHERE {where_clause}
                    ORDER BY created_at DESC, id ASC
                    LIMIT :limit OFFSET :offset
                """),
                params,
            )
            rows = result.mappings().all()

        return [self._row_to_mention(row) for row in rows], total

    async def review(
        self,
        mention_id: str,
        owner_id: str,
        action: ReviewAction,
        mentioned_contact_id: str | None = None,
    ) -> Mention:
        """Apply a reviewer decision to a pending mention.

        Confirming may re-point the mention at a different contact (for
        example one of the alternatives); rejecting keeps the resolver's
        pick for the audit trail.

        Raises:
            MentionNotFoundError: Unknown mention for this owner
            InvalidTransitionError: Mention already reviewed
            InvalidMentionLinkError: Replacement contact is the source
                contact or not owned by the reviewer
        """
        action = ReviewAction(action)
        existing = await self.get(mention_id, owner_id)
        if existing is None:
            raise MentionNotFoundError(mention_id)
        if existing.status != MentionStatus.PENDING:
            raise InvalidTransitionError(
                f"Mention {mention_id} is already {existing.status.value}"
            )

        target_id = existing.mentioned_contact_id
        if action == ReviewAction.CONFIRM and mentioned_contact_id:
            if mentioned_contact_id == existing.source_contact_id:
                raise InvalidMentionLinkError(
                    "A mention cannot be linked to its own source contact"
                )
            if not await self._contacts.owns_contact(owner_id, mentioned_contact_id):
                raise InvalidMentionLinkError(
                    f"Contact {mentioned_contact_id} is not available to this user"
                )
            target_id = mentioned_contact_id

        new_status = _ACTION_STATUS[action]
        now = datetime.now(timezone.utc)

        async with self._session_factory() as db:
            # Guard on status so two concurrent reviews cannot both win
            query = text("""
                UPDATE contact_mentions
                SET status = :status,
                    mentioned_contact_id = :mentioned_contact_id,
                    reviewed_at = :reviewed_at,
                    updated_at = :updated_at
                WHERE id = :mention_id
                  AND user_id = :owner_id
                  AND status = 'PENDING'
                RETURNING *
            """)
            result = await db.execute(
                query,
                {
                    "status": new_status.value,
                    "mentioned_contact_id": target_id,
                    "reviewed_at": now,
                    "updated_at": now,
                    "mention_id": mention_id,
                    "owner_id": owner_id,
                },
            )
            row = result.mappings().first()

        if row is None:
            raise InvalidTransitionError(f"Mention {mention_id} was reviewed concurrently")

        logger.info(
            f"Mention {mention_id} {new_status.value.lower()}",
            extra={"owner_id": owner_id, "mentioned_contact_id": target_id},
        )
        return self._row_to_mention(row)

    def _row_to_mention(self, row) -> Mention:
        inferred = _load_json(row["inferred_fields"])
        reasons = _load_json(row["match_reasons"]) or []
        alternatives = _load_json(row["alternative_matches"]) or []

        return Mention(
            id=str(row["id"]),
            owner_id=str(row["user_id"]),
            source_contact_id=str(row["source_contact_id"]),
            mentioned_contact_id=(
                str(row["mentioned_contact_id"]) if row["mentioned_contact_id"] else None
            ),
            name=row["mentioned_name"],
            normalized_name=row["normalized_name"],
            context=row["extracted_context"],
            inferred_details=inferred,
            match_type=MatchType(row["match_type"]),
            confidence=float(row["match_confidence"]),
            match_reasons=reasons,
            alternative_matches=[AlternativeMatch.model_validate(a) for a in alternatives],
            resolution_error=row["resolution_error"],
            status=MentionStatus(row["status"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            reviewed_at=row["reviewed_at"],
        )
