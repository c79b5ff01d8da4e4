"""
Shared HTTP client with per-domain concurrency limits, retries and observability.
"""

from __future__ import annotations

import asyncio
import json
import random
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from urllib.parse import urlparse

import aiohttp
import structlog

from siteprobe.config.config import HttpConfig
from siteprobe.errors import CollaboratorError
from siteprobe.observability import increment, observe

logger = structlog.get_logger(__name__)

RETRYABLE_STATUSES = frozenset({429, 502, 503, 504})


@dataclass
class CrawlerResponse:
    """Response with timing and attempt information; status 0 means no response was received."""

    status: int
    headers: Dict[str, str]
    body: bytes
    start_ts: float
    end_ts: float
    attempts: int
    url: str
    final_url: str
    error: Optional[str] = field(default=None)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def json(self) -> Any:
        return json.loads(self.body.decode("utf-8", errors="replace"))


class HttpClient:
    """aiohttp session wrapper used by every collaborator."""

    def __init__(self, config: HttpConfig):
        self.config = config

        # Per-domain semaphores for concurrency control
        self._domain_semaphores: Dict[str, asyncio.Semaphore] = {}
        self._semaphore_lock = asyncio.Lock()

        self.session: Optional[aiohttp.ClientSession] = None
        self._is_initialized = False

        logger.debug(
            "HTTP client created",
            max_concurrency_per_domain=config.max_concurrency_per_domain,
            max_retries=config.max_retries,
            user_agent=config.user_agent,
        )

    async def initialize(self) -> None:
        """Initialize the HTTP client session."""
        if self.session is None:
            connector = aiohttp.TCPConnector(
                limit=0,
                ttl_dns_cache=30,
                keepalive_timeout=30,
            )
            self.session = aiohttp.ClientSession(
                connector=connector,
                timeout=aiohttp.ClientTimeout(total=self.config.timeout),
                headers={"User-Agent": self.config.user_agent},
            )
            self._is_initialized = True
            logger.debug("HTTP client session initialized")

    async def close(self) -> None:
        """Close the session and clean up resources."""
        if self.session:
            await self.session.close()
            self.session = None
        self._domain_semaphores.clear()
        self._is_initialized = False
        logger.debug("HTTP client closed")

    async def __aenter__(self) -> "HttpClient":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def _get_domain_semaphore(self, domain: str) -> asyncio.Semaphore:
        async with self._semaphore_lock:
            if domain not in self._domain_semaphores:
                self._domain_semaphores[domain] = asyncio.Semaphore(self.config.max_concurrency_per_domain)
            return self._domain_semaphores[domain]

    def _should_retry(self, status: int, attempt: int, max_retries: int) -> bool:
        return attempt <= max_retries and status in RETRYABLE_STATUSES

    def _calculate_backoff_delay(self, attempt: int) -> float:
        """Exponential backoff with ±20% jitter."""
        base_delay = self.config.backoff_base * 2 ** (attempt - 1)
        jitter = random.uniform(0.8, 1.2)
        return base_delay * jitter

    async def request(
        self,
        method: str,
        url: str,
        *,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        allow_redirects: bool = True,
        headers: Optional[Dict[str, str]] = None,
        json_body: Any = None,
    ) -> CrawlerResponse:
        """
        Perform a request with retries on 429/502/503/504 and transport errors.

        Args:
            method: HTTP method
            url: absolute URL
            timeout: per-attempt timeout in seconds (None = config default)
            max_retries: retries after the first attempt (None = config default)
            allow_redirects: follow redirects
            headers: extra request headers
            json_body: JSON payload for POST requests

        Returns:
            CrawlerResponse. When every attempt failed without a response the
            status is 0 and ``error`` holds the last failure.
        """
        if not self._is_initialized or self.session is None:
            raise RuntimeError("HTTP client not initialized. Call initialize() first.")

        start_time = time.time()
        parsed_url = urlparse(url)
        if not parsed_url.scheme or not parsed_url.netloc:
            logger.warning("Malformed URL", url=url)
            return CrawlerResponse(0, {}, b"", start_time, time.time(), 0, url, url, error="Malformed URL")

        domain = parsed_url.hostname or "unknown"
        timeout = self.config.timeout if timeout is None else timeout
        max_retries = self.config.max_retries if max_retries is None else max_retries

        semaphore = await self._get_domain_semaphore(domain)
        last_error: Optional[str] = None
        attempt = 0

        async with semaphore:
            while attempt < max_retries + 1:
                attempt += 1
                try:
                    async with asyncio.timeout(timeout):
                        async with self.session.request(
                            method,
                            url,
                            allow_redirects=allow_redirects,
                            timeout=aiohttp.ClientTimeout(total=timeout),
                            headers=headers,
                            json=json_body,
                        ) as response:
                            if self._should_retry(response.status, attempt, max_retries):
                                logger.info(
                                    "Retrying request",
                                    method=method,
                                    url=url,
                                    status=response.status,
                                    attempt=attempt,
                                    max_retries=max_retries,
                                )
                                last_error = f"HTTP {response.status}"
                                retry = True
                            else:
                                retry = False
                                body = await response.read() if method != "HEAD" else b""
                                result = CrawlerResponse(
                                    status=response.status,
                                    headers=dict(response.headers),
                                    body=body,
                                    start_ts=start_time,
                                    end_ts=time.time(),
                                    attempts=attempt,
                                    url=url,
                                    final_url=str(response.url),
                                )
                    if retry:
                        await asyncio.sleep(self._calculate_backoff_delay(attempt))
                        continue

                    increment("http_responses_total", labels={"status_class": f"{result.status // 100}xx"})
                    observe("http_fetch_latency_seconds", result.end_ts - start_time)
                    return result

                except TimeoutError:
                    last_error = f"Request timed out after {timeout}s"
                    logger.warning("Request timed out", method=method, url=url, attempt=attempt, timeout=timeout)
                except aiohttp.ClientError as e:
                    last_error = str(e) or type(e).__name__
                    logger.warning("Request failed", method=method, url=url, attempt=attempt, error=last_error)

                if attempt < max_retries + 1:
                    await asyncio.sleep(self._calculate_backoff_delay(attempt))

        increment("http_responses_total", labels={"status_class": "error"})
        return CrawlerResponse(
            status=0,
            headers={},
            body=b"",
            start_ts=start_time,
            end_ts=time.time(),
            attempts=attempt,
            url=url,
            final_url=url,
            error=last_error,
        )

    async def fetch(self, url: str, *, timeout: Optional[float] = None, max_retries: Optional[int] = None) -> CrawlerResponse:
        """GET ``url`` following redirects."""
        return await self.request("GET", url, timeout=timeout, max_retries=max_retries)

    async def head_status(self, url: str, *, timeout: Optional[float] = None) -> int:
        """
        Status of a HEAD request without following redirects.

        Raises:
            CollaboratorError: no response was received.
        """
        response = await self.request(
            "HEAD",
            url,
            timeout=self.config.head_timeout if timeout is None else timeout,
            max_retries=0,
            allow_redirects=False,
        )
        if response.status == 0:
            raise CollaboratorError("http", response.error or "no response", status=0)
        return response.status

    async def exists(self, url: str) -> bool:
        """True when a HEAD on ``url`` answers 2xx; any failure counts as absent."""
        try:
            response = await self.request(
                "HEAD", url, timeout=self.config.head_timeout, max_retries=0, allow_redirects=True
            )
        except Exception as e:
            logger.debug("Existence check failed", url=url, error=str(e))
            return False
        return response.ok
