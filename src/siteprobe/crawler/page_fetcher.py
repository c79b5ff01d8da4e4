"""
Primary page retrieval over the shared HTTP client.
"""

from __future__ import annotations

import re

import structlog

from siteprobe.errors import CollaboratorError
from siteprobe.protocols import FetchedPage

from .http_client import CrawlerResponse, HttpClient

logger = structlog.get_logger(__name__)

_CHARSET = re.compile(r"charset=([\w-]+)", re.IGNORECASE)


def decode_body(response: CrawlerResponse) -> str:
    """Decode a response body using the declared charset, falling back to UTF-8."""
    content_type = response.headers.get("Content-Type") or response.headers.get("content-type") or ""
    match = _CHARSET.search(content_type)
    encoding = match.group(1) if match else "utf-8"
    try:
        return response.body.decode(encoding, errors="replace")
    except LookupError:
        return response.body.decode("utf-8", errors="replace")


class HttpPageFetcher:
    """PageFetcher backed by ``HttpClient``."""

    def __init__(self, client: HttpClient) -> None:
        self.client = client

    async def fetch(self, url: str) -> FetchedPage:
        response = await self.client.fetch(url)
        if response.status == 0:
            raise CollaboratorError("page", response.error or "no response", status=0)
        if not response.ok:
            raise CollaboratorError("page", f"HTTP {response.status}", status=response.status)

        logger.info(
            "Fetched primary page",
            url=url,
            final_url=response.final_url,
            status=response.status,
            bytes=len(response.body),
            attempts=response.attempts,
        )
        return FetchedPage(
            url=url,
            final_url=response.final_url,
            status=response.status,
            html=decode_body(response),
            headers=response.headers,
        )
