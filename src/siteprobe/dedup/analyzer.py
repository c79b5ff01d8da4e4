"""
Pairwise near-duplicate scan over a crawled page set.
"""

from __future__ import annotations

import math
import time
from dataclasses import dataclass
from typing import List, Optional, Sequence

import structlog

from siteprobe.config.config import AuditConfig
from siteprobe.observability import increment
from siteprobe.protocols import DuplicateAnalysis, DuplicatePair, Page

from .shingles import ShingleIndexer, ShingleSet, word_count
from .similarity import SimilarityEngine

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class IndexedPage:
    page: Page
    shingles: ShingleSet

    @property
    def title(self) -> str:
        return self.page.title or self.page.url or "Untitled"


def to_percent(similarity: float) -> int:
    """Round half up to an integer percentage."""
    return int(math.floor(similarity * 100 + 0.5))


class DuplicateContentAnalyzer:
    """
    Filters, indexes and compares every pair of pages.

    Pages with empty text or fewer than ``min_words`` words are dropped before
    counting ``pages_scanned``; pages that pass the word filter but produce too
    few shingles are scanned but never compared. Comparison is exhaustive over
    all unordered pairs, in input order.
    """

    def __init__(
        self,
        config: AuditConfig,
        indexer: Optional[ShingleIndexer] = None,
        engine: Optional[SimilarityEngine] = None,
    ) -> None:
        self.config = config
        self.indexer = indexer or ShingleIndexer(
            shingle_size=config.shingle_size,
            min_words=config.min_words,
            min_shingles=config.min_shingles,
        )
        self.engine = engine or SimilarityEngine(
            threshold=config.duplicate_threshold,
            min_shingles=config.min_shingles,
            min_size_ratio=config.min_size_ratio,
        )

    def analyze(self, pages: Sequence[Page]) -> DuplicateAnalysis:
        start = time.perf_counter()

        candidates = [page for page in pages if page.text and page.text.strip()]
        scanned = [page for page in candidates if word_count(page.text) >= self.config.min_words]
        skipped = len(candidates) - len(scanned)
        if skipped:
            logger.info("Skipped pages with insufficient content", skipped=skipped, min_words=self.config.min_words)

        if len(scanned) < 2:
            return DuplicateAnalysis(pages_scanned=len(scanned))

        indexed: List[IndexedPage] = []
        for page in scanned:
            shingles = self.indexer.index(page.text)
            if shingles is None:
                logger.debug("Page excluded from comparison", url=page.url)
                continue
            indexed.append(IndexedPage(page, shingles))

        if len(indexed) < 2:
            return DuplicateAnalysis(pages_scanned=len(scanned))

        pairs: List[DuplicatePair] = []
        for i, first in enumerate(indexed):
            for second in indexed[i + 1 :]:
                match = self.engine.compare(first.shingles, second.shingles)
                if not self.engine.is_duplicate(match):
                    continue
                assert match is not None
                pair = DuplicatePair(
                    url_a=first.page.url,
                    url_b=second.page.url,
                    similarity_percent=to_percent(match.similarity),
                    method=match.method,
                    title_a=first.title,
                    title_b=second.title,
                )
                pairs.append(pair)
                increment("duplicate_pairs_total", labels={"method": match.method.value})
                logger.info(
                    "Found duplicate content",
                    url_a=pair.url_a,
                    url_b=pair.url_b,
                    similarity=pair.similarity_percent,
                    method=match.method.value,
                )

        logger.info(
            "Duplicate scan completed",
            pages_scanned=len(scanned),
            pages_compared=len(indexed),
            duplicates_found=len(pairs),
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
        )
        return DuplicateAnalysis(pages_scanned=len(scanned), duplicates_found=len(pairs), results=tuple(pairs))
