"""Mention resolution engine for mentionlink.

Links people mentioned in an enrichment transcript to existing contacts
using exact and fuzzy name matching plus context corroboration.
"""

from .candidates import CandidateGenerator, CandidateSet, FuzzyCandidate
from .contacts import ContactRepository
from .errors import (
    InvalidMentionLinkError,
    InvalidTransitionError,
    MentionLinkError,
    MentionNotFoundError,
    PersistenceFailedError,
    ResolutionFailedError,
)
from .models import (
    AlternativeMatch,
    CandidateContact,
    ContactSummary,
    MatchingConfig,
    MatchType,
    Mention,
    MentionInput,
    MentionMatch,
    MentionMatchResult,
    MentionStatus,
    ScoredCandidate,
)
from .resolver import MatchResolver
from .scoring import ContextScorer
from .service import MentionMatchingService
from .similarity import RapidFuzzSimilarity, SimilarityBackend, name_similarity
from .store import MentionStore, ReviewAction

__all__ = [
    "AlternativeMatch",
    "CandidateContact",
    "CandidateGenerator",
    "CandidateSet",
    "ContactRepository",
    "ContactSummary",
    "ContextScorer",
    "FuzzyCandidate",
    "InvalidMentionLinkError",
    "InvalidTransitionError",
    "MatchResolver",
    "MatchType",
    "MatchingConfig",
    "Mention",
    "MentionInput",
    "MentionLinkError",
    "MentionMatch",
    "MentionMatchResult",
    "MentionMatchingService",
    "MentionNotFoundError",
    "MentionStatus",
    "MentionStore",
    "PersistenceFailedError",
    "RapidFuzzSimilarity",
    "ResolutionFailedError",
    "ReviewAction",
    "ScoredCandidate",
    "SimilarityBackend",
    "name_similarity",
]
