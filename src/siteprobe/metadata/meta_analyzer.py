"""
Quality scoring for title, meta description and canonical URL.

All functions are pure and return a 0-100 score with issues and
recommendations.
"""

from __future__ import annotations

import re
from typing import List, Optional
from urllib.parse import urlparse

from siteprobe.protocols import CanonicalAnalysis, DescriptionAnalysis, TitleAnalysis

GENERIC_TITLES = re.compile(r"^(home|homepage|main|index|untitled|website|new page|welcome)$", re.IGNORECASE)
GENERIC_DESCRIPTIONS = re.compile(r"^(description|about|about us|home)$", re.IGNORECASE)
BRAND_SEPARATOR = re.compile(r"[-|–—]")

CTA_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"call (us|now|today)",
        r"book (now|online|an appointment|a consultation)",
        r"schedule",
        r"contact us",
        r"learn more",
        r"get started",
        r"sign up",
        r"request a",
        r"free consultation",
        r"order (now|online)",
        r"try (it )?free",
    )
]

BENEFIT_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"\d+\s*\+?\s*years?",
        r"\d+\s*\+?\s*(patients|clients|customers)",
        r"\d+\s*\+?\s*(doctors|specialists|experts)",
        r"\d+\s*%",
        r"\bfree\b",
        r"\bdiscount",
        r"\bmodern\b",
        r"\bprofessional",
        r"\bcertified\b",
        r"\blicensed\b",
        r"\bexperience",
        r"\bexpert",
    )
]


def _clamp(score: int) -> int:
    return max(0, min(100, score))


def analyze_title(title: Optional[str]) -> TitleAnalysis:
    clean = (title or "").strip()
    if not clean:
        return TitleAnalysis(
            issues=("Title is missing",),
            recommendations=("Add a unique, descriptive page title",),
        )

    length = len(clean)
    issues: List[str] = []
    recommendations: List[str] = []
    score = 0

    is_optimal = 50 <= length <= 60
    is_too_short = length < 30
    is_too_long = length > 70
    if is_optimal:
        score += 30
    elif is_too_short:
        issues.append(f"Title is too short ({length} chars, aim for 50-60)")
        recommendations.append("Expand the title with the main keyword and location")
        score += 10
    elif is_too_long:
        issues.append(f"Title is too long ({length} chars, aim for 50-60)")
        recommendations.append("Shorten the title to 60 characters")
        score += 15
    else:
        score += 20

    is_generic = bool(GENERIC_TITLES.match(clean)) or length < 10
    if is_generic:
        issues.append("Title is too generic")
        recommendations.append("Replace it with a descriptive title naming the service or topic")
        score -= 20
    else:
        score += 35

    has_separator = bool(BRAND_SEPARATOR.search(clean))
    if has_separator:
        score += 15
    else:
        recommendations.append("Separate the brand name with '|' or '-'")

    if not issues:
        score += 20

    return TitleAnalysis(
        title=clean,
        length=length,
        is_optimal_length=is_optimal,
        is_too_short=is_too_short,
        is_too_long=is_too_long,
        is_generic=is_generic,
        has_brand_separator=has_separator,
        issues=tuple(issues),
        recommendations=tuple(recommendations),
        score=_clamp(score),
    )


def analyze_description(description: Optional[str], title: Optional[str]) -> DescriptionAnalysis:
    clean = (description or "").strip()
    clean_title = (title or "").strip()
    if not clean:
        return DescriptionAnalysis(
            issues=("Meta description is missing",),
            recommendations=("Add a unique meta description",),
        )

    length = len(clean)
    issues: List[str] = []
    recommendations: List[str] = []
    score = 0

    is_optimal = 150 <= length <= 160
    is_too_short = length < 100
    is_too_long = length > 200
    if is_optimal:
        score += 30
    elif is_too_short:
        issues.append(f"Description is too short ({length} chars, aim for 150-160)")
        recommendations.append("Expand the description with details and benefits")
        score += 10
    elif is_too_long:
        issues.append(f"Description is too long ({length} chars, aim for 150-160)")
        recommendations.append("Shorten the description to 160 characters to avoid truncation")
        score += 15
    else:
        score += 20

    has_cta = any(p.search(clean) for p in CTA_PATTERNS)
    if has_cta:
        score += 20
    else:
        issues.append("No call to action")
        recommendations.append('Add a call to action such as "Book now" or "Learn more"')

    has_benefits = any(p.search(clean) for p in BENEFIT_PATTERNS)
    if has_benefits:
        score += 20
    else:
        issues.append("No concrete benefits or figures")
        recommendations.append("Mention concrete benefits: experience, ratings, numbers")

    lowered, lowered_title = clean.lower(), clean_title.lower()
    is_different = lowered != lowered_title and not (lowered_title and lowered.startswith(lowered_title))
    if is_different:
        score += 15
    else:
        issues.append("Description repeats the title")
        recommendations.append("Make the description complement the title instead of repeating it")

    is_generic = length < 50 or bool(GENERIC_DESCRIPTIONS.match(clean))
    if is_generic:
        issues.append("Description is too generic")
        score -= 15
    else:
        score += 15

    return DescriptionAnalysis(
        description=clean,
        length=length,
        is_optimal_length=is_optimal,
        is_too_short=is_too_short,
        is_too_long=is_too_long,
        has_call_to_action=has_cta,
        has_benefits=has_benefits,
        is_different_from_title=is_different,
        is_generic=is_generic,
        issues=tuple(issues),
        recommendations=tuple(recommendations),
        score=_clamp(score),
    )


def _bare_host(hostname: Optional[str]) -> str:
    host = (hostname or "").lower()
    return host[4:] if host.startswith("www.") else host


def analyze_canonical(canonical: Optional[str], page_url: str) -> CanonicalAnalysis:
    if not canonical or not canonical.strip():
        return CanonicalAnalysis(
            issues=("Canonical URL is missing",),
            recommendations=('Add <link rel="canonical"> pointing at the preferred version of the page',),
        )

    clean = canonical.strip()
    target = urlparse(clean)
    is_absolute = clean.startswith(("http://", "https://"))
    if not is_absolute or not target.netloc:
        return CanonicalAnalysis(
            canonical=clean,
            has_canonical=True,
            issues=("Canonical URL is not an absolute URL",),
            recommendations=("Use an absolute https:// URL for the canonical link",),
            score=10,
        )

    current = urlparse(page_url)
    if not current.netloc:
        current = target

    issues: List[str] = []
    recommendations: List[str] = []

    has_query = bool(target.query)
    different_protocol = target.scheme != current.scheme
    different_domain = _bare_host(target.hostname) != _bare_host(current.hostname)
    target_path = target.path.rstrip("/")
    current_path = current.path.rstrip("/")
    trailing_slash_issue = (
        target.path.endswith("/") != current.path.endswith("/") and target_path == current_path
    )
    matches_current = not different_domain and target_path == current_path
    self_referencing = matches_current and not has_query

    score = 30 + 15
    if self_referencing:
        score += 25
    elif matches_current and has_query:
        score += 15
        issues.append("Canonical URL contains query parameters")
        recommendations.append("Remove query parameters from the canonical URL")

    if different_protocol:
        issues.append("Canonical URL uses a different protocol")
        recommendations.append("Use HTTPS for the canonical URL")
    else:
        score += 10

    if different_domain:
        issues.append("Canonical URL points to a different domain")
        recommendations.append("Make sure the canonical points to the right domain")
    else:
        score += 10

    if trailing_slash_issue:
        issues.append("Trailing slash differs between canonical and page URL")
        recommendations.append("Use trailing slashes consistently")
    else:
        score += 10

    if not issues:
        score = 100

    return CanonicalAnalysis(
        canonical=clean,
        has_canonical=True,
        is_self_referencing=self_referencing,
        is_absolute_url=True,
        matches_current_url=matches_current,
        has_different_protocol=different_protocol,
        has_different_domain=different_domain,
        has_trailing_slash_issue=trailing_slash_issue,
        has_query_params=has_query,
        issues=tuple(issues),
        recommendations=tuple(recommendations),
        score=_clamp(score),
    )
