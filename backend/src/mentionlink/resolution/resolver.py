"""Mention resolver combining candidate generation and context scoring.

Resolution flow for one mention:
1. Exact name match -> EXACT, confidence 1.0, no alternatives
2. Fuzzy candidates -> FUZZY, best composite score wins, the rest
   become alternatives (descending)
3. Nothing above the similarity floor -> NONE

"No match" is an outcome, not an error; the resolver only raises when
something actually breaks (e.g. the similarity backend).
"""

from collections.abc import Sequence

from ..logging import log_resolution_event
from .candidates import CandidateGenerator
from .models import (
    AlternativeMatch,
    CandidateContact,
    MatchingConfig,
    MatchType,
    MentionInput,
    MentionMatch,
    ScoredCandidate,
)
from .scoring import ContextScorer
from .similarity import SimilarityBackend


class MatchResolver:
    """Resolves mentions to contacts.

    Stateless apart from its configuration, so one instance can serve
    concurrent resolutions over a shared read-only contact snapshot.
    """

    def __init__(
        self,
        config: MatchingConfig | None = None,
        similarity: SimilarityBackend | None = None,
    ):
        """Initialize the resolver.

        Args:
            config: Weights, fuzzy floor and candidate cap
            similarity: Name similarity backend (RapidFuzz by default)
        """
        self.config = config or MatchingConfig()
        self.generator = CandidateGenerator(
            similarity=similarity,
            fuzzy_floor=self.config.fuzzy_floor,
            max_candidates=self.config.max_fuzzy_candidates,
        )
        self.scorer = ContextScorer.from_config(self.config)

    def resolve(
        self,
        mention: MentionInput,
        contacts: Sequence[CandidateContact],
    ) -> MentionMatch:
        """Resolve one mention against the owner's contacts.

        Args:
            mention: Extracted mention
            contacts: Candidate contacts (source contact already excluded)

        Returns:
            MentionMatch describing the outcome
        """
        candidates = self.generator.generate(mention.normalized_name, contacts)

        if candidates.exact is not None:
            result = self._exact_match(mention, candidates.exact)
        elif candidates.fuzzy:
            scored = [
                self.scorer.score(fc.contact, mention.context, fc.similarity)
                for fc in candidates.fuzzy
            ]
            result = self._fuzzy_match(mention, scored)
        else:
            result = self.no_match(mention)

        log_resolution_event(
            normalized_name=mention.normalized_name,
            match_type=result.match_type.value,
            matched_contact=result.matched_contact.id if result.matched_contact else None,
            confidence=result.confidence,
            candidate_count=(
                len(result.alternative_matches) + 1 if result.matched_contact else 0
            ),
        )
        return result

    def _exact_match(
        self,
        mention: MentionInput,
        contact: CandidateContact,
    ) -> MentionMatch:
        # Context is still scored so the reviewer sees the corroboration,
        # but an exact name match is always full confidence
        scored = self.scorer.score(contact, mention.context, 1.0)
        return self._build(
            mention,
            match_type=MatchType.EXACT,
            confidence=1.0,
            best=scored,
            alternatives=[],
        )

    def _fuzzy_match(
        self,
        mention: MentionInput,
        scored: list[ScoredCandidate],
    ) -> MentionMatch:
        # Stable sort: equal scores keep the similarity order from generation
        ranked = sorted(scored, key=lambda s: s.score, reverse=True)
        best, rest = ranked[0], ranked[1:]
        return self._build(
            mention,
            match_type=MatchType.FUZZY,
            confidence=best.score,
            best=best,
            alternatives=[
                AlternativeMatch(
                    contact=s.candidate.summary(),
                    confidence=s.score,
                    reasons=s.reasons,
                )
                for s in rest
            ],
        )

    def _build(
        self,
        mention: MentionInput,
        match_type: MatchType,
        confidence: float,
        best: ScoredCandidate,
        alternatives: list[AlternativeMatch],
    ) -> MentionMatch:
        return MentionMatch(
            name=mention.name,
            normalized_name=mention.normalized_name,
            context=mention.context,
            inferred_details=mention.inferred_details,
            match_type=match_type,
            confidence=confidence,
            matched_contact=best.candidate.summary(),
            match_reasons=best.reasons,
            alternative_matches=alternatives,
        )

    @staticmethod
    def no_match(mention: MentionInput, error: str | None = None) -> MentionMatch:
        """NONE outcome for a mention, optionally flagged as a failure."""
        return MentionMatch(
            name=mention.name,
            normalized_name=mention.normalized_name,
            context=mention.context,
            inferred_details=mention.inferred_details,
            match_type=MatchType.NONE,
            confidence=0.0,
            matched_contact=None,
            match_reasons=[],
            alternative_matches=[],
            resolution_error=error,
        )
