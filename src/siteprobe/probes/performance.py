"""
PageSpeed Insights lookup for desktop and mobile.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import urlencode

import structlog

from siteprobe.config.config import PageSpeedConfig
from siteprobe.crawler.http_client import HttpClient
from siteprobe.errors import CollaboratorError, ConfigurationError
from siteprobe.protocols import CategoryScores, Opportunity, PageSpeedDetails, ProbeKind, SpeedSection
from siteprobe.recovery import Ok, settle_all

from .base import Probe, ProbeContext

logger = structlog.get_logger(__name__)

SERVICE = "pagespeed"
STRATEGIES = ("desktop", "mobile")

METRIC_AUDITS = {
    "lcp": ("largest-contentful-paint",),
    "fcp": ("first-contentful-paint",),
    "cls": ("cumulative-layout-shift",),
    "tbt": ("total-blocking-time",),
    "si": ("speed-index",),
    "tti": ("interactive",),
    "ttfb": ("server-response-time", "time-to-first-byte"),
}


def _percent(value: Any) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return int(value * 100 + 0.5)


def _numeric(audits: Mapping[str, Any], ids: tuple) -> Optional[float]:
    for audit_id in ids:
        audit = audits.get(audit_id) or {}
        value = audit.get("numericValue")
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
    return None


def _opportunities(audits: Mapping[str, Any], limit: int) -> List[Opportunity]:
    found: List[Opportunity] = []
    for audit_id, audit in audits.items():
        if not isinstance(audit, dict):
            continue
        score = _percent(audit.get("score"))
        if score is None or score >= 100:
            continue
        items = (audit.get("details") or {}).get("items") or []
        first = items[0] if items and isinstance(items[0], dict) else {}
        savings, unit = None, None
        if first.get("wastedBytes"):
            savings, unit = float(first["wastedBytes"]), "bytes"
        elif first.get("wastedMs"):
            savings, unit = float(first["wastedMs"]), "ms"
        found.append(
            Opportunity(id=audit_id, title=audit.get("title") or audit_id, score=score, savings=savings, savings_unit=unit)
        )
    found.sort(key=lambda o: o.score)
    return found[:limit]


def parse_pagespeed(payload: Mapping[str, Any], max_opportunities: int = 10) -> Optional[PageSpeedDetails]:
    """Extract scores and Core Web Vitals; None when no performance score is reported."""
    lighthouse = payload.get("lighthouseResult") or {}
    categories = lighthouse.get("categories") or {}

    def category(name: str) -> Optional[int]:
        return _percent((categories.get(name) or {}).get("score"))

    score = category("performance")
    if score is None:
        return None

    audits = lighthouse.get("audits") or {}
    metrics = {name: _numeric(audits, ids) for name, ids in METRIC_AUDITS.items()}
    return PageSpeedDetails(
        score=score,
        opportunities=tuple(_opportunities(audits, max_opportunities)),
        categories=CategoryScores(
            performance=score,
            accessibility=category("accessibility"),
            best_practices=category("best-practices"),
            seo=category("seo"),
        ),
        **metrics,
    )


class PerformanceProbe(Probe):
    kind = ProbeKind.PERFORMANCE

    def __init__(self, client: HttpClient, config: PageSpeedConfig) -> None:
        self.client = client
        self.config = config

    def default(self) -> SpeedSection:
        return SpeedSection()

    async def fetch_strategy(self, url: str, strategy: str) -> PageSpeedDetails:
        query: Dict[str, str] = {"url": url, "key": self.config.api_key or "", "strategy": strategy}
        response = await self.client.fetch(f"{self.config.endpoint}?{urlencode(query)}", timeout=self.config.timeout)
        if not response.ok:
            raise CollaboratorError(
                SERVICE, response.error or f"HTTP {response.status}: {response.text[:200]}", status=response.status
            )
        details = parse_pagespeed(response.json(), self.config.max_opportunities)
        if details is None:
            raise CollaboratorError(SERVICE, f"No {strategy} performance score in response", status=response.status)
        logger.info("PageSpeed score", strategy=strategy, score=details.score, lcp=details.lcp, cls=details.cls)
        return details

    async def run(self, context: ProbeContext) -> SpeedSection:
        if not self.config.api_key:
            raise ConfigurationError("PageSpeed API key is not configured")

        settled = await settle_all([self.fetch_strategy(context.url, strategy) for strategy in STRATEGIES])
        details: Dict[str, Optional[PageSpeedDetails]] = {}
        for strategy, result in zip(STRATEGIES, settled):
            if isinstance(result, Ok):
                details[strategy] = result.value
            else:
                logger.warning("PageSpeed strategy failed", strategy=strategy, error=str(result.error))
                details[strategy] = None

        if not any(details.values()):
            first_error = next(r.error for r in settled if not isinstance(r, Ok))
            raise first_error

        desktop, mobile = details["desktop"], details["mobile"]
        return SpeedSection(
            desktop=desktop.score if desktop else None,
            mobile=mobile.score if mobile else None,
            desktop_details=desktop,
            mobile_details=mobile,
        )
