"""Candidate generation for a single mention.

Two stages:
1. Exact: the normalized mention equals a contact's full name or first
   name (case-insensitive). The first such contact in input order wins
   and the fuzzy stage is skipped.
2. Fuzzy: every contact is scored by name similarity; those strictly
   above the floor are kept, best first, capped at ``max_candidates``.

The output is either one exact candidate or a (possibly empty) fuzzy
list, never both.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field

from .models import CandidateContact
from .similarity import RapidFuzzSimilarity, SimilarityBackend

DEFAULT_FUZZY_FLOOR = 0.3
DEFAULT_MAX_CANDIDATES = 10


@dataclass(frozen=True)
class FuzzyCandidate:
    """A contact surfaced by approximate name similarity."""

    contact: CandidateContact
    similarity: float


@dataclass
class CandidateSet:
    """Result of candidate generation."""

    exact: CandidateContact | None = None
    fuzzy: list[FuzzyCandidate] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return self.exact is None and not self.fuzzy


class CandidateGenerator:
    """Produces candidate contacts for a mention."""

    def __init__(
        self,
        similarity: SimilarityBackend | None = None,
        fuzzy_floor: float = DEFAULT_FUZZY_FLOOR,
        max_candidates: int = DEFAULT_MAX_CANDIDATES,
    ):
        """Initialize the generator.

        Args:
            similarity: Name similarity backend (RapidFuzz by default)
            fuzzy_floor: Similarity a fuzzy candidate must exceed
            max_candidates: Maximum fuzzy candidates kept
        """
        self.similarity = similarity or RapidFuzzSimilarity()
        self.fuzzy_floor = fuzzy_floor
        self.max_candidates = max_candidates

    def generate(
        self,
        normalized_name: str,
        contacts: Sequence[CandidateContact],
    ) -> CandidateSet:
        """Find candidates for a normalized mention name."""
        search_name = normalized_name.lower().strip()

        exact = self.find_exact(search_name, contacts)
        if exact is not None:
            return CandidateSet(exact=exact)

        return CandidateSet(fuzzy=self.find_fuzzy(search_name, contacts))

    def find_exact(
        self,
        search_name: str,
        contacts: Sequence[CandidateContact],
    ) -> CandidateContact | None:
        for contact in contacts:
            if search_name == contact.full_name or search_name == contact.first_name.lower():
                return contact
        return None

    def find_fuzzy(
        self,
        search_name: str,
        contacts: Sequence[CandidateContact],
    ) -> list[FuzzyCandidate]:
        scored = []
        for contact in contacts:
            target = f"{contact.first_name} {contact.last_name or ''}".lower()
            score = self.similarity.similarity(search_name, target)
            if score > self.fuzzy_floor:
                scored.append(FuzzyCandidate(contact=contact, similarity=score))

        # sorted() is stable with reverse=True, so ties keep input order
        scored = sorted(scored, key=lambda c: c.similarity, reverse=True)
        return scored[: self.max_candidates]
