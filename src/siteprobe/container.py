"""
Builds the audit collaborators from configuration and owns their lifecycle.
"""

from __future__ import annotations

from typing import List, Optional

import structlog

from siteprobe.analysis.llm_client import ChatCompletionsAnalyzer
from siteprobe.config import Config
from siteprobe.crawler.http_client import HttpClient
from siteprobe.crawler.page_fetcher import HttpPageFetcher
from siteprobe.crawler.site_crawler import CrawlServiceClient
from siteprobe.observability import configure_logging, start_metrics_server
from siteprobe.orchestrator import AuditOrchestrator
from siteprobe.probes import (
    AuditSummaryProbe,
    ContentQualityProbe,
    DuplicateContentProbe,
    FilesProbe,
    PerformanceProbe,
    Probe,
    StructuredDataProbe,
    UrlVariantsProbe,
)
from siteprobe.protocols import TextAnalyzer


class AuditContainer:
    """
    Wires one shared HttpClient into every HTTP-backed collaborator.

    Use as an async context manager; the orchestrator is available once the
    container is initialized.
    """

    def __init__(self, config: Config) -> None:
        self.config = config
        self.logger = structlog.get_logger(self.__class__.__name__)
        self.http_client: Optional[HttpClient] = None
        self._orchestrator: Optional[AuditOrchestrator] = None

    @property
    def orchestrator(self) -> AuditOrchestrator:
        if self._orchestrator is None:
            raise RuntimeError("Container not initialized. Call initialize() first.")
        return self._orchestrator

    def _analyzer(self, client: HttpClient) -> Optional[TextAnalyzer]:
        if not self.config.llm.api_key:
            self.logger.warning("No text analysis API key configured, heuristic analysis will be used")
            return None
        return ChatCompletionsAnalyzer(client, self.config.llm)

    def build_probes(self, client: HttpClient, analyzer: Optional[TextAnalyzer]) -> List[Probe]:
        return [
            PerformanceProbe(client, self.config.pagespeed),
            FilesProbe(client),
            StructuredDataProbe(),
            UrlVariantsProbe(client),
            ContentQualityProbe(client, analyzer, self.config.llm),
            DuplicateContentProbe(CrawlServiceClient(client, self.config.crawl_service)),
        ]

    async def initialize(self) -> None:
        if self._orchestrator is not None:
            return
        configure_logging(self.config.monitoring)
        start_metrics_server(self.config.monitoring)

        client = HttpClient(self.config.http)
        await client.initialize()
        self.http_client = client

        analyzer = self._analyzer(client)
        self._orchestrator = AuditOrchestrator(
            fetcher=HttpPageFetcher(client),
            probes=self.build_probes(client, analyzer),
            summary_probe=AuditSummaryProbe(analyzer, self.config.llm),
        )
        self.logger.info(
            "Audit container initialized",
            pagespeed=bool(self.config.pagespeed.api_key),
            crawl_service=bool(self.config.crawl_service.api_key),
            text_analysis=analyzer is not None,
        )

    async def close(self) -> None:
        if self.http_client is not None:
            await self.http_client.close()
            self.http_client = None
        self._orchestrator = None

    async def __aenter__(self) -> AuditContainer:
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
