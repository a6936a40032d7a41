"""Name similarity scoring.

Similarity is computed in-process with RapidFuzz rather than by a
database text-search extension, so candidate generation has no storage
dependency. Any backend can be swapped in as long as it honours the
contract below.

Contract for ``similarity(a, b)``:
- result is in [0, 1]
- symmetric
- 1.0 exactly when both names normalize to the same string
- never increases as the edit distance between the names grows
"""

from typing import Protocol

from rapidfuzz import fuzz
from rapidfuzz.utils import default_process


class SimilarityBackend(Protocol):
    """Anything that can score how close two names are."""

    def similarity(self, a: str, b: str) -> float: ...


def normalize_name(name: str) -> str:
    """Lowercase, drop punctuation and collapse whitespace."""
    if not name:
        return ""
    return " ".join(default_process(name).split())


class RapidFuzzSimilarity:
    """Indel-ratio similarity over normalized names.

    Indel ratio is ``1 - distance / (len(a) + len(b))`` which keeps the
    score symmetric and monotone in edit distance. Token-set scorers are
    deliberately avoided: they return 1.0 for "scott" vs "scott lee",
    which would break the exact-iff-equal property.
    """

    def similarity(self, a: str, b: str) -> float:
        left = normalize_name(a)
        right = normalize_name(b)

        if left == right:
            return 1.0
        if not left or not right:
            return 0.0

        return fuzz.ratio(left, right) / 100.0


_default_backend = RapidFuzzSimilarity()


def name_similarity(a: str, b: str) -> float:
    """Score two names with the default backend."""
    return _default_backend.similarity(a, b)
