"""Read-only access to the owner's contact book.

The contacts table belongs to the CRM; this module only reads the
fields the resolver needs.
"""

from sqlalchemy import text

from ..db import transaction
from ..logging import get_context_logger
from .models import CandidateContact

logger = get_context_logger(__name__)


class ContactRepository:
    """Loads candidate contacts for mention resolution."""

    def __init__(self, session_factory=transaction):
        """Initialize the repository.

        Args:
            session_factory: Callable returning an async session context
                manager (``transaction`` by default)
        """
        self._session_factory = session_factory

    async def fetch_candidates(
        self,
        owner_id: str,
        exclude_contact_id: str,
    ) -> tuple[CandidateContact, ...]:
        """Fetch every contact the owner has, except the source contact.

        Returned as a tuple: the snapshot is shared read-only by all
        mention resolutions in a batch.
        """
        async with self._session_factory() as db:
            query = text("""
                SELECT id, first_name, last_name, title, company,
                       primary_email, enrichment_score
                FROM contacts
                WHERE user_id = :owner_id
                  AND id <> :exclude_id
                ORDER BY created_at ASC, id ASC
            """)
            result = await db.execute(
                query,
                {"owner_id": owner_id, "exclude_id": exclude_contact_id},
            )
            rows = result.mappings().all()

        contacts = tuple(
            CandidateContact(
                id=str(row["id"]),
                first_name=row["first_name"] or "",
                last_name=row["last_name"],
                title=row["title"],
                company=row["company"],
                primary_email=row["primary_email"],
                enrichment_score=row["enrichment_score"] or 0,
            )
            for row in rows
            if str(row["id"]) != exclude_contact_id
        )

        logger.debug(
            f"Loaded {len(contacts)} candidate contact(s)",
            extra={"owner_id": owner_id, "source_contact_id": exclude_contact_id},
        )
        return contacts

    async def owns_contact(self, owner_id: str, contact_id: str) -> bool:
        """Check that a contact exists and belongs to the owner."""
        async with self._session_factory() as db:
            query = text("""
                SELECT 1 FROM contacts
                WHERE id = :contact_id AND user_id = :owner_id
            """)
            result = await db.execute(
                query, {"contact_id": contact_id, "owner_id": owner_id}
            )
            return result.first() is not None
