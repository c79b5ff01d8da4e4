"""
Shingle indexing for near-duplicate detection.

Text is canonicalised (lowercased, punctuation replaced by spaces, whitespace
collapsed) and turned into the set of contiguous n-token windows. Pages too
short to produce a meaningful set are rejected up front so they can never be
compared.
"""

from __future__ import annotations

import re
from typing import FrozenSet, List, Optional

import structlog

logger = structlog.get_logger(__name__)

_NON_WORD = re.compile(r"[^\w\s]")

ShingleSet = FrozenSet[str]


def tokenize(text: str) -> List[str]:
    """Canonical token stream of ``text``."""
    if not text:
        return []
    return _NON_WORD.sub(" ", text.lower()).split()


def word_count(text: str) -> int:
    return len(tokenize(text))


class ShingleIndexer:
    """Builds shingle sets, enforcing the minimum word and shingle counts."""

    def __init__(self, shingle_size: int = 3, min_words: int = 50, min_shingles: int = 10) -> None:
        if shingle_size < 1:
            raise ValueError("shingle_size must be positive")
        self.shingle_size = shingle_size
        self.min_words = min_words
        self.min_shingles = min_shingles

    def shingles(self, tokens: List[str]) -> ShingleSet:
        """All distinct windows of ``shingle_size`` tokens, with no thresholds applied."""
        n = self.shingle_size
        if len(tokens) < n:
            return frozenset()
        return frozenset(" ".join(tokens[i : i + n]) for i in range(len(tokens) - n + 1))

    def index(self, text: str) -> Optional[ShingleSet]:
        """
        Shingle set for ``text``, or None when the text has fewer than
        ``min_words`` tokens or yields fewer than ``min_shingles`` shingles.
        """
        tokens = tokenize(text)
        if len(tokens) < self.min_words:
            return None

        shingle_set = self.shingles(tokens)
        if len(shingle_set) < self.min_shingles:
            logger.debug("Too few shingles", shingles=len(shingle_set), min_shingles=self.min_shingles)
            return None
        return shingle_set
