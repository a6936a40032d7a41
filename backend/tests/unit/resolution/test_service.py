"""Unit tests for MentionMatchingService.

Tests batch orchestration: ordering, source exclusion and per-mention
failure handling, with the contact repository and store mocked out.

Run with: pytest tests/unit/resolution/test_service.py -v
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from fixtures.mentions import make_contact, make_mention
from mentionlink.resolution.errors import PersistenceFailedError
from mentionlink.resolution.models import MatchingConfig, MatchType
from mentionlink.resolution.resolver import MatchResolver
from mentionlink.resolution.service import (
    PERSISTENCE_FAILED_WARNING,
    RESOLUTION_FAILED_MESSAGE,
    MentionMatchingService,
)


class FlakyResolver(MatchResolver):
    """Resolver that blows up on one particular mention."""

    def resolve(self, mention, contacts):
        if mention.normalized_name == "boom":
            raise RuntimeError("similarity backend down")
        return super().resolve(mention, contacts)


def _contacts_repo(contacts):
    repo = MagicMock()
    repo.fetch_candidates = AsyncMock(return_value=tuple(contacts))
    return repo


def _store(fail_for: str | None = None, error: Exception | None = None):
    async def persist(match, source_contact_id, owner_id):
        if match.normalized_name == fail_for:
            raise error or PersistenceFailedError("connection reset")
        return f"id-{match.normalized_name}"

    store = MagicMock()
    store.persist = AsyncMock(side_effect=persist)
    return store


def _service(contacts, store=None, resolver=None):
    config = MatchingConfig(max_concurrency=2)
    return MentionMatchingService(
        contacts=_contacts_repo(contacts),
        store=store or _store(),
        resolver=resolver or MatchResolver(config),
        config=config,
    )


class TestMatchMentions:
    """Tests for the batch flow."""

    @pytest.mark.asyncio
    async def test_results_keep_input_order(self, contact_book):
        service = _service(contact_book)
        mentions = [
            make_mention("sarah chen"),
            make_mention("xq"),
            make_mention("michael"),
            make_mention("sara chen"),
        ]

        results = await service.match_mentions(mentions, "c-src", "user-1")

        assert [r.normalized_name for r in results] == [
            "sarah chen",
            "xq",
            "michael",
            "sara chen",
        ]
        assert [r.match_type for r in results] == [
            MatchType.EXACT,
            MatchType.NONE,
            MatchType.EXACT,
            MatchType.FUZZY,
        ]
        assert [r.mention_id for r in results] == [
            "id-sarah chen",
            "id-xq",
            "id-michael",
            "id-sara chen",
        ]

    @pytest.mark.asyncio
    async def test_contacts_fetched_once(self, contact_book):
        service = _service(contact_book)

        await service.match_mentions(
            [make_mention("sarah chen"), make_mention("michael")], "c-src", "user-1"
        )

        service.contacts.fetch_candidates.assert_awaited_once_with("user-1", "c-src")

    @pytest.mark.asyncio
    async def test_source_contact_never_matched(self):
        """Even if the repository returns it, the source is dropped."""
        contacts = [
            make_contact("c-src", "Scott", "Source"),
            make_contact("c-lee", "Scott", "Lee"),
        ]
        service = _service(contacts)

        results = await service.match_mentions([make_mention("scott")], "c-src", "user-1")

        assert results[0].match_type == MatchType.EXACT
        assert results[0].matched_contact.id == "c-lee"

    @pytest.mark.asyncio
    async def test_empty_batch_skips_work(self, contact_book):
        service = _service(contact_book)

        results = await service.match_mentions([], "c-src", "user-1")

        assert results == []
        service.contacts.fetch_candidates.assert_not_awaited()
        service.store.persist.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_dry_run_does_not_persist(self, contact_book):
        service = _service(contact_book)

        results = await service.match_mentions(
            [make_mention("sarah chen")], "c-src", "user-1", persist=False
        )

        assert results[0].match_type == MatchType.EXACT
        assert results[0].mention_id is None
        assert results[0].warnings == []
        service.store.persist.assert_not_awaited()


class TestFailureContainment:
    """Tests for per-mention failures."""

    @pytest.mark.asyncio
    async def test_resolution_failure_degrades_to_none(self, contact_book):
        service = _service(contact_book, resolver=FlakyResolver(MatchingConfig()))

        results = await service.match_mentions(
            [make_mention("sarah chen"), make_mention("boom")], "c-src", "user-1"
        )

        assert results[0].match_type == MatchType.EXACT
        assert results[0].resolution_error is None

        failed = results[1]
        assert failed.match_type == MatchType.NONE
        assert failed.confidence == 0.0
        assert failed.matched_contact is None
        assert failed.resolution_error == RESOLUTION_FAILED_MESSAGE
        # Still recorded so the reviewer can see it
        assert failed.mention_id == "id-boom"
        assert service.store.persist.await_count == 2

    @pytest.mark.asyncio
    async def test_persistence_failure_adds_warning(self, contact_book):
        service = _service(contact_book, store=_store(fail_for="michael"))

        results = await service.match_mentions(
            [make_mention("sarah chen"), make_mention("michael")], "c-src", "user-1"
        )

        assert results[0].mention_id == "id-sarah chen"
        assert results[0].warnings == []

        assert results[1].match_type == MatchType.EXACT
        assert results[1].matched_contact.id == "c-2"
        assert results[1].mention_id is None
        assert results[1].warnings == [PERSISTENCE_FAILED_WARNING]

    @pytest.mark.asyncio
    async def test_connection_refused_on_one_write(self, contact_book):
        """A raw driver error on one write keeps every resolution."""
        store = _store(
            fail_for="michael",
            error=ConnectionRefusedError(111, "Connect call failed"),
        )
        service = _service(contact_book, store=store)

        results = await service.match_mentions(
            [make_mention("sarah chen"), make_mention("michael")], "c-src", "user-1"
        )

        assert [r.normalized_name for r in results] == ["sarah chen", "michael"]
        assert results[0].mention_id == "id-sarah chen"
        assert results[1].match_type == MatchType.EXACT
        assert results[1].matched_contact.id == "c-2"
        assert results[1].mention_id is None
        assert results[1].warnings == [PERSISTENCE_FAILED_WARNING]

    @pytest.mark.asyncio
    async def test_unexpected_write_error_keeps_order(self, contact_book):
        service = _service(
            contact_book,
            store=_store(fail_for="xq", error=RuntimeError("pool exhausted")),
        )
        mentions = [
            make_mention("sarah chen"),
            make_mention("xq"),
            make_mention("sara chen"),
        ]

        results = await service.match_mentions(mentions, "c-src", "user-1")

        assert [r.normalized_name for r in results] == ["sarah chen", "xq", "sara chen"]
        assert [r.match_type for r in results] == [
            MatchType.EXACT,
            MatchType.NONE,
            MatchType.FUZZY,
        ]
        assert [r.mention_id for r in results] == ["id-sarah chen", None, "id-sara chen"]
        assert results[1].warnings == [PERSISTENCE_FAILED_WARNING]

    @pytest.mark.asyncio
    async def test_contact_fetch_failure_propagates(self):
        repo = MagicMock()
        repo.fetch_candidates = AsyncMock(side_effect=RuntimeError("database unavailable"))
        service = MentionMatchingService(
            contacts=repo, store=_store(), config=MatchingConfig()
        )

        with pytest.raises(RuntimeError):
            await service.match_mentions([make_mention("sarah chen")], "c-src", "user-1")
