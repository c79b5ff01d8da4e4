"""
Probe contract and the guard that settles every probe into a ProbeResult.
"""

from __future__ import annotations

import asyncio
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Awaitable
from urllib.parse import urlparse

import structlog

from siteprobe.config.config import AuditConfig
from siteprobe.extractor.html_parser import ParsedPage
from siteprobe.observability import increment, observe
from siteprobe.protocols import FetchedPage, ProbeKind, ProbeResult, ProbeStatus

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ProbeContext:
    """Inputs shared by every first-phase probe."""

    url: str
    page: FetchedPage
    parsed: ParsedPage
    config: AuditConfig

    @property
    def base_url(self) -> str:
        """Scheme and host of the audited URL, without a trailing slash."""
        parts = urlparse(self.url)
        return f"{parts.scheme}://{parts.netloc}"


class Probe(ABC):
    """One independent, individually time-boxed audit check."""

    kind: ProbeKind

    @abstractmethod
    def default(self) -> Any:
        """Value reported when the probe fails or times out."""

    @abstractmethod
    async def run(self, context: Any) -> Any:
        """Perform the check and return the section value."""


async def guard_probe(kind: ProbeKind, default: Any, operation: Awaitable[Any], timeout: float) -> ProbeResult:
    """
    Await ``operation`` under a deadline and settle it into a ProbeResult.

    An exception becomes ``failed`` and an elapsed deadline becomes
    ``timeout``, both carrying ``default``. Cancellation of the caller still
    propagates.
    """
    start = time.perf_counter()
    deadline = asyncio.timeout(timeout)
    status = ProbeStatus.OK
    value = default
    reason = None

    try:
        async with deadline:
            value = await operation
    except TimeoutError as e:
        if deadline.expired():
            status, reason = ProbeStatus.TIMEOUT, f"Timed out after {timeout:g}s"
        else:
            status, reason = ProbeStatus.FAILED, f"TimeoutError: {e}"
        value = default
    except Exception as e:
        status, reason = ProbeStatus.FAILED, f"{type(e).__name__}: {e}"
        value = default

    duration = time.perf_counter() - start
    increment("probe_outcomes_total", labels={"probe": kind.value, "status": status.value})
    observe("probe_duration_seconds", duration, labels={"probe": kind.value})

    if status is ProbeStatus.OK:
        logger.info("Probe completed", probe=kind.value, duration_ms=round(duration * 1000, 1))
    else:
        logger.warning("Probe did not complete", probe=kind.value, status=status.value, reason=reason)

    return ProbeResult(kind=kind, status=status, value=value, failure_reason=reason, duration_ms=duration * 1000)
