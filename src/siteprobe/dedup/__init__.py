"""Near-duplicate content detection with shingles, Jaccard and subset containment."""

from .analyzer import DuplicateContentAnalyzer, to_percent
from .shingles import ShingleIndexer, ShingleSet, tokenize, word_count
from .similarity import Match, SimilarityEngine, jaccard

__all__ = [
    "DuplicateContentAnalyzer",
    "Match",
    "ShingleIndexer",
    "ShingleSet",
    "SimilarityEngine",
    "jaccard",
    "to_percent",
    "tokenize",
    "word_count",
]
