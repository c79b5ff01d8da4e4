"""
Ask the text-analysis collaborator and report why its answer was not usable.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Optional

import structlog

from siteprobe.errors import SiteProbeError
from siteprobe.observability import increment
from siteprobe.protocols import TextAnalyzer

from .parsing import AnalysisPayload, Unparsable, parse_analysis

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class AnalysisAttempt:
    """Either a payload or the reason the heuristic branch must be taken."""

    payload: Optional[AnalysisPayload] = None
    fallback_reason: Optional[str] = None


async def run_analysis(
    analyzer: Optional[TextAnalyzer],
    system: str,
    prompt: str,
    *,
    name: str,
    timeout: Optional[float] = None,
) -> AnalysisAttempt:
    """
    ``timeout`` bounds the collaborator call in seconds. It must stay below the
    calling probe's deadline so a slow answer still leaves room for the heuristic.
    """
    if analyzer is None:
        increment("analysis_fallbacks_total", labels={"analysis": name, "reason": "unavailable"})
        return AnalysisAttempt(fallback_reason="text analysis is not configured")

    try:
        async with asyncio.timeout(timeout):
            raw = await analyzer.complete(system, prompt)
    except TimeoutError:
        reason = f"text analysis timed out after {timeout:g}s"
        logger.warning("Text analysis timed out, using heuristic", analysis=name, timeout=timeout)
        increment("analysis_fallbacks_total", labels={"analysis": name, "reason": "timeout"})
        return AnalysisAttempt(fallback_reason=reason)
    except SiteProbeError as e:
        logger.warning("Text analysis failed, using heuristic", analysis=name, error=str(e))
        increment("analysis_fallbacks_total", labels={"analysis": name, "reason": "error"})
        return AnalysisAttempt(fallback_reason=str(e))

    parsed = parse_analysis(raw)
    if isinstance(parsed, Unparsable):
        logger.warning("Unparsable text analysis, using heuristic", analysis=name, reason=parsed.reason)
        increment("analysis_fallbacks_total", labels={"analysis": name, "reason": "unparsable"})
        return AnalysisAttempt(fallback_reason=parsed.reason)

    return AnalysisAttempt(payload=parsed.value)
