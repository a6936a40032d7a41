"""Context scoring for mention candidates.

Combines a candidate's name similarity with corroborating evidence found
in the text surrounding the mention:

- Name similarity contributes up to ``name_weight`` (0.5)
- Company named in the context adds ``company_weight`` (0.3)
- Email domain named in the context adds ``domain_weight`` (0.2)

Two contacts sharing a first name get the same name score; whichever one's
company or email domain shows up in the transcript wins.
"""

import math

from .models import CandidateContact, MatchingConfig, ScoredCandidate


def format_percent(value: float) -> int:
    """Round a [0, 1] score to a whole percentage, halves rounding up."""
    return math.floor(value * 100 + 0.5)


class ContextScorer:
    """Scores a candidate against a mention's surrounding text."""

    # Default confidence weights for the three signals
    NAME_WEIGHT = 0.5
    COMPANY_WEIGHT = 0.3
    DOMAIN_WEIGHT = 0.2

    def __init__(
        self,
        name_weight: float = NAME_WEIGHT,
        company_weight: float = COMPANY_WEIGHT,
        domain_weight: float = DOMAIN_WEIGHT,
    ):
        self.name_weight = name_weight
        self.company_weight = company_weight
        self.domain_weight = domain_weight

    @classmethod
    def from_config(cls, config: MatchingConfig) -> "ContextScorer":
        return cls(
            name_weight=config.name_weight,
            company_weight=config.company_weight,
            domain_weight=config.domain_weight,
        )

    def score(
        self,
        candidate: CandidateContact,
        context: str,
        name_similarity: float,
    ) -> ScoredCandidate:
        """Score one candidate.

        Args:
            candidate: Contact being considered
            context: Transcript text around the mention
            name_similarity: Raw name similarity in [0, 1]

        Returns:
            ScoredCandidate with the clamped composite score and reasons
        """
        haystack = (context or "").lower()
        reasons = [f"Name: {format_percent(name_similarity)}% match"]
        score = name_similarity * self.name_weight

        company = (candidate.company or "").strip()
        if company and company.lower() in haystack:
            score += self.company_weight
            reasons.append(f"Company: {candidate.company}")

        domain = self.email_domain(candidate.primary_email)
        if domain and domain in haystack:
            score += self.domain_weight
            reasons.append(f"Domain: @{domain}")

        return ScoredCandidate(
            candidate=candidate,
            score=max(0.0, min(score, 1.0)),
            reasons=reasons,
        )

    @staticmethod
    def email_domain(email: str | None) -> str | None:
        """Lowercased domain part of an email address, if any."""
        if not email or "@" not in email:
            return None
        domain = email.rsplit("@", 1)[1].strip().lower()
        return domain or None
