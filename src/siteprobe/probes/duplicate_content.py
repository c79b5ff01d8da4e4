"""
Near-duplicate content across the crawled site.
"""

from __future__ import annotations

import asyncio

import structlog

from siteprobe.crawler.site_crawler import harvest_pages
from siteprobe.dedup.analyzer import DuplicateContentAnalyzer
from siteprobe.protocols import DuplicateAnalysis, ProbeKind, SiteCrawler

from .base import Probe, ProbeContext

logger = structlog.get_logger(__name__)


class DuplicateContentProbe(Probe):
    """
    Crawls the site and compares every pair of pages.

    An incomplete crawl is not a failure: the pages collected so far are
    analysed, and an empty crawl reports zero duplicates.
    """

    kind = ProbeKind.DUPLICATE_CONTENT

    def __init__(self, crawler: SiteCrawler) -> None:
        self.crawler = crawler

    def default(self) -> DuplicateAnalysis:
        return DuplicateAnalysis()

    async def run(self, context: ProbeContext) -> DuplicateAnalysis:
        pages, failure = await harvest_pages(self.crawler, context.url, context.config)
        if failure is not None:
            logger.info(
                "Analysing partial crawl",
                reason=type(failure).__name__,
                pages=len(pages),
            )
        if not pages:
            return DuplicateAnalysis()

        analyzer = DuplicateContentAnalyzer(context.config)
        return await asyncio.to_thread(analyzer.analyze, pages)
