"""
sitemap.xml completeness scoring.
"""

from __future__ import annotations

from typing import List, Optional, Union

import structlog
from lxml import etree

from siteprobe.protocols import SitemapAnalysis

logger = structlog.get_logger(__name__)

IMAGE_NS = "http://www.google.com/schemas/sitemap-image/1.1"

MISSING = SitemapAnalysis(
    issues=("Sitemap not found or unavailable",),
    recommendations=("Create a sitemap.xml in the site root",),
)

_PARSER = etree.XMLParser(resolve_entities=False, no_network=True, huge_tree=False)


def _coverage_points(percent: float, high: int, medium: int, low: int = 0) -> int:
    if percent >= 80:
        return high
    if percent >= 50:
        return medium
    if percent > 0:
        return low
    return 0


def analyze_sitemap(content: Optional[Union[str, bytes]]) -> SitemapAnalysis:
    """
    Score sitemap ``content``; ``None`` means the file was not found.

    Invalid XML scores 10 and a sitemap without ``<url>`` entries scores 20.
    Otherwise the base is 50 plus points for URL count, lastmod, priority,
    changefreq coverage and image entries, capped at 100.
    """
    if content is None:
        return MISSING

    raw = content.encode("utf-8") if isinstance(content, str) else content
    try:
        root = etree.fromstring(raw, parser=_PARSER)
    except etree.XMLSyntaxError as e:
        logger.info("Sitemap is not valid XML", error=str(e))
        return SitemapAnalysis(
            present=True,
            issues=("Sitemap XML structure is invalid",),
            recommendations=("Validate the XML in sitemap.xml",),
            score=10,
        )

    urls = list(root.iter("{*}url"))
    url_count = len(urls)
    if url_count == 0:
        return SitemapAnalysis(
            present=True,
            valid=True,
            issues=("Sitemap contains no URLs",),
            recommendations=("Add at least 10 URLs to the sitemap",),
            score=20,
        )

    with_lastmod = sum(1 for url in urls if url.find("{*}lastmod") is not None)
    with_priority = sum(1 for url in urls if url.find("{*}priority") is not None)
    with_changefreq = sum(1 for url in urls if url.find("{*}changefreq") is not None)
    image_count = sum(len(list(url.iter(f"{{{IMAGE_NS}}}image"))) for url in urls)

    lastmod_pct = with_lastmod / url_count * 100
    priority_pct = with_priority / url_count * 100
    changefreq_pct = with_changefreq / url_count * 100

    score = 50
    if url_count >= 50:
        score += 10
    elif url_count >= 10:
        score += round(url_count / 50 * 10)
    score += _coverage_points(lastmod_pct, 15, 10, 5)
    score += _coverage_points(priority_pct, 10, 5)
    score += _coverage_points(changefreq_pct, 10, 5)
    if image_count > 0:
        score += 5

    issues: List[str] = []
    recommendations: List[str] = []
    if lastmod_pct < 50:
        issues.append(f"Only {round(lastmod_pct)}% of URLs have a lastmod tag")
        recommendations.append("Add lastmod to every URL so crawlers know when content changed")
    if priority_pct < 50:
        issues.append(f"Only {round(priority_pct)}% of URLs have a priority")
        recommendations.append("Add priority tags (0.0-1.0) for important pages")
    if changefreq_pct < 50:
        issues.append(f"Only {round(changefreq_pct)}% of URLs have a changefreq")
        recommendations.append("Add changefreq (daily, weekly, monthly) to guide the crawl budget")
    if image_count == 0:
        recommendations.append("Add image entries to the sitemap for better image indexing")
    if url_count < 10:
        recommendations.append(f"Consider adding more URLs (currently {url_count})")

    return SitemapAnalysis(
        present=True,
        valid=True,
        url_count=url_count,
        with_lastmod=with_lastmod,
        with_priority=with_priority,
        with_changefreq=with_changefreq,
        image_count=image_count,
        issues=tuple(issues),
        recommendations=tuple(recommendations),
        score=min(100, score),
    )
