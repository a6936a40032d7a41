"""Unit tests for the mention API endpoints.

The matching service and store are replaced through FastAPI dependency
overrides, so no database is needed.

Run with: pytest tests/unit/api/test_mentions_api.py -v
"""

import pytest
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

from fastapi.testclient import TestClient

from fixtures.mentions import FakeSessionFactory, make_mention_row
from main import app
from mentionlink.api.auth import Owner, get_current_owner, issue_token
from mentionlink.api.mentions import get_matching_service, get_mention_store
from mentionlink.resolution import (
    ContactSummary,
    InvalidMentionLinkError,
    InvalidTransitionError,
    MatchType,
    MentionMatchResult,
    MentionNotFoundError,
    MentionStatus,
    MentionStore,
)

OWNER = Owner(id="user-1")


def _mention_payload(normalized_name="scott", **overrides):
    payload = {
        "name": normalized_name.title(),
        "normalizedName": normalized_name,
        "context": "Scott from Stripe talked pricing",
    }
    payload.update(overrides)
    return payload


def _stored_mention(**overrides):
    store = MentionStore(session_factory=FakeSessionFactory())
    return store._row_to_mention(make_mention_row(**overrides))


@pytest.fixture
def service():
    service = MagicMock()
    service.match_mentions = AsyncMock(
        return_value=[
            MentionMatchResult(
                name="Scott",
                normalized_name="scott",
                context="Scott from Stripe talked pricing",
                match_type=MatchType.EXACT,
                confidence=1.0,
                matched_contact=ContactSummary(id="c-lee", first_name="Scott", last_name="Lee"),
                match_reasons=["Name: 100% match", "Company: Stripe"],
                mention_id="m-1",
            )
        ]
    )
    return service


@pytest.fixture
def store():
    store = MagicMock()
    store.list_for_source = AsyncMock(return_value=([_stored_mention()], 1))
    store.review = AsyncMock(return_value=_stored_mention(status="CONFIRMED"))
    return store


@pytest.fixture
def client(service, store):
    app.dependency_overrides[get_matching_service] = lambda: service
    app.dependency_overrides[get_mention_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def authed_client(client):
    app.dependency_overrides[get_current_owner] = lambda: OWNER
    return client


class TestAuthentication:
    """Tests for bearer authentication."""

    def test_missing_token(self, client, service):
        response = client.post(
            "/api/v1/contacts/match-mentions",
            json={"mentions": [_mention_payload()], "sourceContactId": "c-src"},
        )

        assert response.status_code == 401
        assert response.json()["error_code"] == "UNAUTHORIZED"
        assert response.headers["cache-control"] == "no-store"
        service.match_mentions.assert_not_awaited()

    def test_invalid_token(self, client):
        response = client.get(
            "/api/v1/contacts/c-src/mentions",
            headers={"Authorization": "Bearer not-a-jwt"},
        )

        assert response.status_code == 401

    def test_token_identifies_owner(self, client, service):
        token = issue_token("user-7")

        response = client.post(
            "/api/v1/contacts/match-mentions",
            json={"mentions": [_mention_payload()], "sourceContactId": "c-src"},
            headers={"Authorization": f"Bearer {token}"},
        )

        assert response.status_code == 200
        assert service.match_mentions.await_args.kwargs["owner_id"] == "user-7"

    def test_expired_token(self, client, service):
        token = issue_token("user-7", ttl=timedelta(minutes=-5))

        response = client.post(
            "/api/v1/contacts/match-mentions",
            json={"mentions": [_mention_payload()], "sourceContactId": "c-src"},
            headers={"Authorization": f"Bearer {token}"},
        )

        assert response.status_code == 401
        assert response.json()["error"] == "Token has expired"
        service.match_mentions.assert_not_awaited()


class TestMatchMentions:
    """Tests for POST /contacts/match-mentions."""

    def test_success(self, authed_client, service):
        response = authed_client.post(
            "/api/v1/contacts/match-mentions",
            json={"mentions": [_mention_payload()], "sourceContactId": "c-src"},
        )

        assert response.status_code == 200
        assert response.headers["cache-control"] == "no-store"

        match = response.json()["matches"][0]
        assert match["normalizedName"] == "scott"
        assert match["matchType"] == "EXACT"
        assert match["matchedContact"]["firstName"] == "Scott"
        assert match["matchReasons"] == ["Name: 100% match", "Company: Stripe"]
        assert match["alternativeMatches"] == []
        assert match["mentionId"] == "m-1"

        kwargs = service.match_mentions.await_args.kwargs
        assert kwargs == {"source_contact_id": "c-src", "owner_id": "user-1"}

    def test_empty_mentions(self, authed_client, service):
        response = authed_client.post(
            "/api/v1/contacts/match-mentions",
            json={"mentions": [], "sourceContactId": "c-src"},
        )

        assert response.status_code == 200
        assert response.json() == {"matches": []}
        service.match_mentions.assert_not_awaited()

    def test_missing_source_contact(self, authed_client, service):
        response = authed_client.post(
            "/api/v1/contacts/match-mentions",
            json={"mentions": [_mention_payload()]},
        )

        assert response.status_code == 422
        assert response.json()["error_code"] == "VALIDATION_ERROR"
        service.match_mentions.assert_not_awaited()

    @pytest.mark.parametrize(
        "overrides",
        [
            {"normalizedName": "x" * 101},
            {"normalizedName": "   "},
            {"context": "c" * 1001},
        ],
    )
    def test_invalid_mention(self, authed_client, service, overrides):
        response = authed_client.post(
            "/api/v1/contacts/match-mentions",
            json={"mentions": [_mention_payload(**overrides)], "sourceContactId": "c-src"},
        )

        assert response.status_code == 422
        assert response.json()["details"]
        service.match_mentions.assert_not_awaited()

    def test_too_many_mentions(self, authed_client, service):
        mentions = [_mention_payload(f"person {i}") for i in range(51)]

        response = authed_client.post(
            "/api/v1/contacts/match-mentions",
            json={"mentions": mentions, "sourceContactId": "c-src"},
        )

        assert response.status_code == 422
        assert response.json()["error"] == "Too many mentions"
        service.match_mentions.assert_not_awaited()


class TestListMentions:
    """Tests for GET /contacts/{id}/mentions."""

    def test_list(self, authed_client, store):
        response = authed_client.get("/api/v1/contacts/c-src/mentions?status=PENDING")

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["limit"] == 20
        assert data["offset"] == 0
        assert data["results"][0]["sourceContactId"] == "c-src"
        assert data["results"][0]["status"] == "PENDING"

        store.list_for_source.assert_awaited_once_with(
            owner_id="user-1",
            source_contact_id="c-src",
            status=MentionStatus.PENDING,
            limit=20,
            offset=0,
        )

    def test_limit_bounds(self, authed_client):
        assert authed_client.get("/api/v1/contacts/c-src/mentions?limit=0").status_code == 422
        assert authed_client.get("/api/v1/contacts/c-src/mentions?limit=101").status_code == 422


class TestReviewMention:
    """Tests for PATCH /mentions/{id}."""

    def test_confirm(self, authed_client, store):
        response = authed_client.patch(
            "/api/v1/mentions/m-1",
            json={"action": "confirm", "mentionedContactId": "c-lee"},
        )

        assert response.status_code == 200
        assert response.json()["status"] == "CONFIRMED"
        assert store.review.await_args.kwargs["mentioned_contact_id"] == "c-lee"

    def test_unknown_action(self, authed_client, store):
        response = authed_client.patch("/api/v1/mentions/m-1", json={"action": "merge"})

        assert response.status_code == 422
        store.review.assert_not_awaited()

    @pytest.mark.parametrize(
        "error,status_code,error_code",
        [
            (MentionNotFoundError("m-1"), 404, "NOT_FOUND"),
            (InvalidTransitionError("Mention m-1 is already CONFIRMED"), 409, "CONFLICT"),
            (InvalidMentionLinkError("not available"), 422, "VALIDATION_ERROR"),
        ],
    )
    def test_store_errors(self, authed_client, store, error, status_code, error_code):
        store.review.side_effect = error

        response = authed_client.patch("/api/v1/mentions/m-1", json={"action": "reject"})

        assert response.status_code == status_code
        assert response.json()["error_code"] == error_code
        assert response.headers["x-error-code"] == error_code


class TestHealth:
    """Tests for health endpoints."""

    def test_live(self, client):
        response = client.get("/health/live")

        assert response.status_code == 200
        assert response.json() == {"status": "alive"}
        assert response.headers["cache-control"] == "no-store"
