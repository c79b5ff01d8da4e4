"""
Set similarity between shingle sets.

Two signals are used, in fixed precedence:

1. Jaccard similarity ``|A ∩ B| / |A ∪ B|``; wins when it exceeds the threshold.
2. Subset containment: how much of the smaller set appears in the larger one.
   It only applies when the smaller set is itself substantial (at least
   ``min_shingles`` shingles and at least ``min_size_ratio`` of the larger set),
   so a short block quoted on a long page is not reported. Containment at or
   above the threshold is mapped linearly into ``[threshold, 0.95]``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import AbstractSet, Optional, Tuple

from siteprobe.protocols import DetectionMethod

SUBSET_CEILING = 0.95
SUBSET_SPAN = 0.10
# Below this ratio the overlap is template noise whatever min_size_ratio says
EXTREME_SIZE_RATIO = 0.01


@dataclass(frozen=True)
class Match:
    similarity: float
    method: DetectionMethod


def jaccard(a: AbstractSet[str], b: AbstractSet[str]) -> float:
    """Jaccard index; 1.0 for two empty sets, 0.0 when only one is empty."""
    if not a and not b:
        return 1.0
    if not a or not b:
        return 0.0
    intersection = len(a & b)
    union = len(a) + len(b) - intersection
    return intersection / union


class SimilarityEngine:
    """Classifies a pair of shingle sets as a near-duplicate or not."""

    def __init__(self, threshold: float = 0.85, min_shingles: int = 10, min_size_ratio: float = 0.6) -> None:
        if not 0.0 < threshold < 1.0:
            raise ValueError("threshold must be between 0 and 1")
        self.threshold = threshold
        self.min_shingles = min_shingles
        self.min_size_ratio = min_size_ratio

    def containment(self, smaller: AbstractSet[str], larger: AbstractSet[str]) -> Optional[float]:
        """
        Fraction of ``smaller`` found in ``larger``, or None when the pair is
        not eligible for subset detection.
        """
        if not smaller or not larger:
            return None
        if len(smaller) < self.min_shingles:
            return None

        size_ratio = len(smaller) / len(larger)
        if size_ratio < self.min_size_ratio or size_ratio < EXTREME_SIZE_RATIO:
            return None

        return len(smaller & larger) / len(smaller)

    def subset_similarity(self, containment: float) -> Optional[float]:
        """Map a containment ratio into the subset similarity band."""
        if containment < self.threshold:
            return None
        scaled = self.threshold + (containment - self.threshold) * (SUBSET_SPAN / (1.0 - self.threshold))
        return min(scaled, SUBSET_CEILING)

    def compare(self, a: AbstractSet[str], b: AbstractSet[str]) -> Optional[Match]:
        """
        Classify the pair, or return None when neither signal fires.

        The result does not depend on argument order: swapping ``a`` and
        ``b`` yields the same similarity with the subset label mirrored.
        """
        score = jaccard(a, b)
        if score > self.threshold:
            return Match(score, DetectionMethod.JACCARD)

        smaller, larger, a_is_smaller = self._order_by_size(a, b)
        containment = self.containment(smaller, larger)
        if containment is None:
            return None

        similarity = self.subset_similarity(containment)
        if similarity is None:
            return None

        method = DetectionMethod.SUBSET_A_IN_B if a_is_smaller else DetectionMethod.SUBSET_B_IN_A
        return Match(similarity, method)

    def is_duplicate(self, match: Optional[Match]) -> bool:
        return match is not None and match.similarity > self.threshold

    @staticmethod
    def _order_by_size(
        a: AbstractSet[str], b: AbstractSet[str]
    ) -> Tuple[AbstractSet[str], AbstractSet[str], bool]:
        if len(a) != len(b):
            return (a, b, True) if len(a) < len(b) else (b, a, False)
        # Equal sizes: the side holding the smallest differing shingle is contained
        difference = a ^ b
        if not difference or min(difference) in a:
            return a, b, True
        return b, a, False
