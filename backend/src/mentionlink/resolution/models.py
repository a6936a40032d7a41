"""Data models for mention resolution.

Field names are snake_case in Python and camelCase on the wire, matching
the contract the enrichment UI already speaks.
"""

from datetime import datetime
from enum import Enum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, StringConstraints
from pydantic.alias_generators import to_camel

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class CamelModel(BaseModel):
    """Base model serialized with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MatchType(str, Enum):
    """How a mention was linked to a contact."""

    EXACT = "EXACT"
    FUZZY = "FUZZY"
    NONE = "NONE"


class MentionStatus(str, Enum):
    """Review status of a persisted mention."""

    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    REJECTED = "REJECTED"


class MatchingConfig(BaseModel):
    """Tunable weights and limits for the resolver."""

    name_weight: float = Field(default=0.5, ge=0.0, le=1.0)
    company_weight: float = Field(default=0.3, ge=0.0, le=1.0)
    domain_weight: float = Field(default=0.2, ge=0.0, le=1.0)
    fuzzy_floor: float = Field(default=0.3, ge=0.0, lt=1.0)
    max_fuzzy_candidates: int = Field(default=10, ge=1)
    max_concurrency: int = Field(default=8, ge=1)

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_settings(cls, settings=None) -> "MatchingConfig":
        """Build from application settings (environment driven)."""
        if settings is None:
            from ..config import get_settings

            settings = get_settings()
        return cls(
            name_weight=settings.match_name_weight,
            company_weight=settings.match_company_weight,
            domain_weight=settings.match_domain_weight,
            fuzzy_floor=settings.match_fuzzy_floor,
            max_fuzzy_candidates=settings.match_max_fuzzy_candidates,
            max_concurrency=settings.match_max_concurrency,
        )


# =========================
# Contacts
# =========================


class CandidateContact(CamelModel):
    """A contact the mention could refer to.

    Read-only snapshot of the owner's contact book; never the source
    contact of the run it belongs to.
    """

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    id: str
    first_name: str
    last_name: str | None = None
    title: str | None = None
    company: str | None = None
    primary_email: str | None = None
    enrichment_score: int = 0

    @property
    def full_name(self) -> str:
        """First and last name joined, lowercased and trimmed."""
        return f"{self.first_name} {self.last_name or ''}".lower().strip()

    def summary(self) -> "ContactSummary":
        return ContactSummary(
            id=self.id,
            first_name=self.first_name,
            last_name=self.last_name,
            title=self.title,
            company=self.company,
            enrichment_score=self.enrichment_score,
        )


class ContactSummary(CamelModel):
    """Contact fields returned alongside a match."""

    id: str
    first_name: str
    last_name: str | None = None
    title: str | None = None
    company: str | None = None
    enrichment_score: int = 0


# =========================
# Mentions
# =========================


class MentionInput(CamelModel):
    """A person reference produced by the transcript extractor."""

    name: NonEmptyStr = Field(..., max_length=200)
    normalized_name: NonEmptyStr = Field(..., max_length=100)
    context: NonEmptyStr = Field(..., max_length=1000)
    inferred_details: dict[str, str] | None = None


class ScoredCandidate(BaseModel):
    """A candidate with its composite confidence and the reasons behind it."""

    candidate: CandidateContact
    score: float = Field(..., ge=0.0, le=1.0)
    reasons: list[str] = Field(default_factory=list)


class AlternativeMatch(CamelModel):
    """A runner-up candidate shown to the reviewer."""

    contact: ContactSummary
    confidence: float = Field(..., ge=0.0, le=1.0)
    reasons: list[str] = Field(default_factory=list)


class MentionMatch(CamelModel):
    """Resolver output for one mention."""

    name: str
    normalized_name: str
    context: str
    inferred_details: dict[str, str] | None = None
    match_type: MatchType
    confidence: float = Field(..., ge=0.0, le=1.0)
    matched_contact: ContactSummary | None = None
    match_reasons: list[str] = Field(default_factory=list)
    alternative_matches: list[AlternativeMatch] = Field(default_factory=list)
    resolution_error: str | None = Field(
        default=None,
        description="Set when resolving this mention failed and it degraded to NONE",
    )


class Mention(CamelModel):
    """Persisted audit record of one resolved mention."""

    id: str
    owner_id: str
    source_contact_id: str
    mentioned_contact_id: str | None = None
    name: str
    normalized_name: str
    context: str
    inferred_details: dict[str, str] | None = None
    match_type: MatchType
    confidence: float
    match_reasons: list[str] = Field(default_factory=list)
    alternative_matches: list[AlternativeMatch] = Field(default_factory=list)
    resolution_error: str | None = None
    status: MentionStatus = MentionStatus.PENDING
    created_at: datetime
    updated_at: datetime
    reviewed_at: datetime | None = None


class MentionMatchResult(MentionMatch):
    """A resolved mention annotated with its audit record."""

    mention_id: str | None = None
    warnings: list[str] = Field(default_factory=list)
