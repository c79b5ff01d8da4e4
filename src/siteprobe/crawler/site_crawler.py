"""
Multi-page crawl service client (Firecrawl-compatible REST API).

A crawl is a submit-then-poll job: ``start`` returns a job id, ``status``
reports progress and, once completed, the scraped pages. ``harvest_pages``
drives the job under the bounded polling policy and always returns a page
list, empty when nothing could be collected.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

import structlog

from siteprobe.config.config import AuditConfig, CrawlServiceConfig
from siteprobe.dedup.shingles import word_count
from siteprobe.errors import CollaboratorError, ConfigurationError, SiteProbeError
from siteprobe.protocols import CrawlState, CrawlStatus, Page, SiteCrawler
from siteprobe.recovery import Abort, Aborted, Done, Err, Pending, PollFailure, PollStep, poll_until

from .http_client import CrawlerResponse, HttpClient

logger = structlog.get_logger(__name__)

SERVICE = "crawl-service"


def _error_message(response: CrawlerResponse) -> str:
    if response.status == 0:
        return response.error or "no response"
    detail = ""
    try:
        payload = response.json()
        if isinstance(payload, dict):
            detail = str(payload.get("error") or payload.get("message") or "")
    except ValueError:
        detail = response.text[:200]

    if response.status == 401:
        return "Unauthorized - invalid API key"
    if response.status == 402:
        return "Payment required - check the subscription"
    if response.status == 429:
        return "Rate limit exceeded"
    if response.status >= 500:
        return f"Server error ({response.status}) - {detail or 'unexpected server error'}"
    return f"HTTP {response.status}: {detail}"


def parse_documents(data: Any) -> Tuple[Page, ...]:
    """Convert crawl documents into pages; documents without a URL are dropped."""
    if not isinstance(data, list):
        return ()
    pages: List[Page] = []
    for doc in data:
        if not isinstance(doc, dict):
            continue
        metadata = doc.get("metadata") or {}
        url = metadata.get("url") or metadata.get("sourceURL")
        if not url:
            continue
        text = doc.get("markdown") or doc.get("content") or ""
        pages.append(Page(url=url, text=text, title=metadata.get("title") or None, word_count=word_count(text)))
    return tuple(pages)


class CrawlServiceClient:
    """SiteCrawler backed by the shared HTTP client."""

    def __init__(self, client: HttpClient, config: CrawlServiceConfig) -> None:
        self.client = client
        self.config = config

    def _headers(self) -> Dict[str, str]:
        if not self.config.api_key:
            raise ConfigurationError("Crawl service API key is not configured")
        return {"Authorization": f"Bearer {self.config.api_key}", "Content-Type": "application/json"}

    async def start(self, url: str, limit: int) -> str:
        if not 1 <= limit <= 100:
            raise ValueError("Limit must be between 1 and 100")

        response = await self.client.request(
            "POST",
            f"{self.config.base_url.rstrip('/')}/crawl",
            headers=self._headers(),
            json_body={"url": url, "limit": limit, "scrapeOptions": {"formats": ["markdown"]}},
            timeout=self.config.timeout,
        )
        if not response.ok:
            raise CollaboratorError(SERVICE, _error_message(response), status=response.status)

        payload = response.json()
        if not payload.get("success") or not payload.get("id"):
            raise CollaboratorError(SERVICE, payload.get("error") or "Failed to start crawl job")

        logger.info("Crawl job started", url=url, limit=limit, job_id=payload["id"])
        return str(payload["id"])

    async def status(self, job_id: str) -> CrawlStatus:
        response = await self.client.request(
            "GET",
            f"{self.config.base_url.rstrip('/')}/crawl/{job_id}",
            headers=self._headers(),
            timeout=self.config.timeout,
            max_retries=0,
        )
        if not response.ok:
            raise CollaboratorError(SERVICE, _error_message(response), status=response.status)

        payload = response.json()
        return CrawlStatus(
            state=CrawlState.parse(payload.get("status")),
            pages=parse_documents(payload.get("data")),
            error=payload.get("error") or payload.get("message"),
        )


async def harvest_pages(crawler: SiteCrawler, url: str, config: AuditConfig) -> Tuple[List[Page], Optional[PollFailure]]:
    """
    Run a crawl job to completion under the bounded polling policy.

    Returns the pages and, when the job did not complete, the reason. When
    the job cannot be started, times out, exhausts its error budget or fails,
    the pages seen so far (possibly none) are returned.
    """
    try:
        job_id = await crawler.start(url, config.crawl_page_limit)
    except (SiteProbeError, ValueError) as e:
        logger.warning("Crawl job could not be started", url=url, error=str(e))
        return [], Aborted(reason=str(e))

    async def check() -> PollStep[Tuple[Page, ...]]:
        status = await crawler.status(job_id)
        if status.state is CrawlState.COMPLETED:
            return Done(status.pages)
        if status.state is CrawlState.FAILED:
            return Abort(status.error or "Crawl failed", status.pages or None)
        if status.state is CrawlState.UNKNOWN:
            logger.warning("Unknown crawl status, continuing to poll", job_id=job_id)
        return Pending(status.pages or None)

    result = await poll_until(
        check,
        interval=config.crawl_poll_interval_ms / 1000.0,
        hard_deadline=config.crawl_timeout_ms / 1000.0,
        max_consecutive_errors=config.crawl_max_consecutive_errors,
        error_backoff=config.crawl_error_backoff_ms / 1000.0,
    )

    if isinstance(result, Err):
        failure = result.error
        pages = list(failure.partial or ())
        logger.warning(
            "Crawl did not complete, using partial page set",
            job_id=job_id,
            failure=type(failure).__name__,
            pages=len(pages),
        )
        return pages, failure

    pages = list(result.value)
    logger.info("Crawl completed", job_id=job_id, pages=len(pages))
    return pages, None
