"""
Well-known files: robots.txt and sitemap.xml analysis plus llms.txt presence.
"""

from __future__ import annotations

import asyncio
from typing import Optional, Union
from urllib.parse import urljoin

import structlog

from siteprobe.crawler.http_client import HttpClient
from siteprobe.crawler.page_fetcher import decode_body
from siteprobe.metadata.robots_analyzer import analyze_robots_txt
from siteprobe.metadata.sitemap_analyzer import analyze_sitemap
from siteprobe.protocols import FilesSection, ProbeKind, RobotsTxtAnalysis, SitemapAnalysis

from .base import Probe, ProbeContext

logger = structlog.get_logger(__name__)


class FilesProbe(Probe):
    kind = ProbeKind.FILES

    def __init__(self, client: HttpClient) -> None:
        self.client = client

    def default(self) -> FilesSection:
        return FilesSection()

    async def _download(self, url: str, *, as_text: bool = True) -> Optional[Union[str, bytes]]:
        """Body of ``url``; None when it answered non-2xx or not at all."""
        response = await self.client.fetch(url)
        if response.status == 0:
            logger.warning("File unreachable, treating as absent", url=url, error=response.error)
            return None
        if not response.ok:
            logger.info("File not found", url=url, status=response.status)
            return None
        return decode_body(response) if as_text else response.body

    async def robots(self, base_url: str) -> RobotsTxtAnalysis:
        content = await self._download(f"{base_url}/robots.txt")
        return analyze_robots_txt(content if isinstance(content, str) else None)

    async def sitemap(self, url: str) -> SitemapAnalysis:
        return analyze_sitemap(await self._download(urljoin(url, "/sitemap.xml"), as_text=False))

    async def run(self, context: ProbeContext) -> FilesSection:
        robots, sitemap, llms_present = await asyncio.gather(
            self.robots(context.base_url),
            self.sitemap(context.url),
            self.client.exists(f"{context.base_url}/llms.txt"),
        )
        logger.info(
            "Files analysed",
            robots_score=robots.score,
            sitemap_score=sitemap.score,
            sitemap_urls=sitemap.url_count,
            llms_txt=llms_present,
        )
        return FilesSection(robots_txt=robots, sitemap=sitemap, llms_txt_present=llms_present)
