"""Batch orchestration for mention matching.

One request = one batch:
1. Load the owner's contacts once (source contact excluded)
2. Resolve every mention independently, bounded fan-out
3. Persist one PENDING audit row per mention, bounded fan-out
4. Return results in input order

Failures are contained to the mention they happen in:
- a resolution failure degrades that mention to NONE with
  ``resolution_error`` set
- a persistence failure leaves ``mention_id`` empty and adds a warning
"""

import asyncio
import time
from collections import Counter
from collections.abc import Sequence

from ..logging import get_context_logger, log_batch_complete
from .contacts import ContactRepository
from .errors import MentionLinkError, ResolutionFailedError
from .models import (
    CandidateContact,
    MatchingConfig,
    MentionInput,
    MentionMatch,
    MentionMatchResult,
)
from .resolver import MatchResolver
from .store import MentionStore

logger = get_context_logger(__name__)

RESOLUTION_FAILED_MESSAGE = "Resolution failed; retry to match this mention"
PERSISTENCE_FAILED_WARNING = "Mention could not be saved for review"


class MentionMatchingService:
    """Resolves and records a batch of mentions for one source contact."""

    def __init__(
        self,
        contacts: ContactRepository | None = None,
        store: MentionStore | None = None,
        resolver: MatchResolver | None = None,
        config: MatchingConfig | None = None,
    ):
        self.config = config or (resolver.config if resolver else MatchingConfig.from_settings())
        self.contacts = contacts or ContactRepository()
        self.store = store or MentionStore(contacts=self.contacts)
        self.resolver = resolver or MatchResolver(self.config)

    async def match_mentions(
        self,
        mentions: Sequence[MentionInput],
        source_contact_id: str,
        owner_id: str,
        persist: bool = True,
    ) -> list[MentionMatchResult]:
        """Resolve a batch of mentions and record them for review.

        Args:
            mentions: Mentions extracted from the source contact's transcript
            source_contact_id: Contact being enriched
            owner_id: Acting user
            persist: Write audit rows (False for dry runs)

        Returns:
            One result per mention, in input order
        """
        if not mentions:
            return []

        started = time.perf_counter()
        snapshot = await self.contacts.fetch_candidates(owner_id, source_contact_id)
        snapshot = tuple(c for c in snapshot if c.id != source_contact_id)

        semaphore = asyncio.Semaphore(self.config.max_concurrency)

        matches = await asyncio.gather(
            *(
                self._resolve_one(index, mention, snapshot, semaphore)
                for index, mention in enumerate(mentions)
            )
        )

        if persist:
            results = await asyncio.gather(
                *(
                    self._persist_one(index, match, source_contact_id, owner_id, semaphore)
                    for index, match in enumerate(matches)
                )
            )
        else:
            results = [MentionMatchResult(**match.model_dump()) for match in matches]

        counts = Counter(r.match_type.value for r in results)
        failed = sum(1 for r in results if r.resolution_error)
        if failed:
            counts["FAILED"] = failed
        log_batch_complete(
            owner_id=owner_id,
            source_contact_id=source_contact_id,
            total=len(results),
            counts=dict(counts),
            persisted=sum(1 for r in results if r.mention_id),
            duration_ms=(time.perf_counter() - started) * 1000,
        )
        return list(results)

    async def _resolve_one(
        self,
        index: int,
        mention: MentionInput,
        snapshot: tuple[CandidateContact, ...],
        semaphore: asyncio.Semaphore,
    ) -> MentionMatch:
        async with semaphore:
            try:
                return await asyncio.to_thread(self.resolver.resolve, mention, snapshot)
            except Exception as e:
                error = ResolutionFailedError(index, mention.normalized_name, e)
                logger.warning(
                    str(error),
                    exc_info=True,
                    extra={"mention_index": index, "event": "resolution_failed"},
                )
                return self.resolver.no_match(mention, error=RESOLUTION_FAILED_MESSAGE)

    async def _persist_one(
        self,
        index: int,
        match: MentionMatch,
        source_contact_id: str,
        owner_id: str,
        semaphore: asyncio.Semaphore,
    ) -> MentionMatchResult:
        async with semaphore:
            try:
                mention_id = await self.store.persist(match, source_contact_id, owner_id)
            except Exception as e:
                logger.error(
                    f"Persistence failed for mention {index}: {e}",
                    exc_info=not isinstance(e, MentionLinkError),
                    extra={
                        "mention_index": index,
                        "normalized_name": match.normalized_name,
                        "event": "persistence_failed",
                    },
                )
                return MentionMatchResult(
                    **match.model_dump(),
                    mention_id=None,
                    warnings=[PERSISTENCE_FAILED_WARNING],
                )

        return MentionMatchResult(**match.model_dump(), mention_id=mention_id)
