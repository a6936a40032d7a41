"""Shared fixtures for mentionlink tests.

Nothing here needs a running database: sessions are AsyncMocks handed
out by a fake session factory.
"""

import pytest

from fixtures.mentions import FakeSessionFactory, make_contact
from mentionlink.resolution.models import CandidateContact


@pytest.fixture
def scott_contacts() -> list[CandidateContact]:
    """Two contacts sharing a first name, Stripe-Scott first."""
    return [
        make_contact(
            "c-lee",
            "Scott",
            "Lee",
            company="Stripe",
            primary_email="scott@stripe.com",
        ),
        make_contact("c-kim", "Scott", "Kim", company="Acme"),
    ]


@pytest.fixture
def contact_book() -> list[CandidateContact]:
    return [
        make_contact("c-1", "Sarah", "Chen", company="Figma", primary_email="sarah@figma.com"),
        make_contact("c-2", "Michael", "Torres", company="Acme Corp"),
        make_contact("c-3", "Priya", "Patel", primary_email="priya@notion.so"),
        make_contact("c-4", "David", None),
    ]


@pytest.fixture
def session_factory() -> FakeSessionFactory:
    return FakeSessionFactory()
