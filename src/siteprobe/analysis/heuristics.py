"""
Locally computed fallbacks used when text analysis is unavailable or its
output cannot be parsed.
"""

from __future__ import annotations

import re
from typing import List, Optional

from siteprobe.protocols import AnalysisMethod, AuditAnalysis, AuditFacts, ContentQuality, VariantVerdict

_HEADING = re.compile(r"(^|\n)#+\s+\w+", re.MULTILINE)
_ORGANIZATION = re.compile(r"organization|organization name|clinic|hospital|medical", re.IGNORECASE)
_PEOPLE = re.compile(r"doctor|dr\.|physician|specialist|licen(s|c)e|license", re.IGNORECASE)
_ADDRESS = re.compile(r"\b\d{1,4}\s+\w+|address:|street|city|postcode|postal code|zip", re.IGNORECASE)
_PHONE = re.compile(r"\+?\d{5,15}|phone:", re.IGNORECASE)
_SERVICES = re.compile(r"service|procedure|conditions treated|conditions|treat(s|ment)", re.IGNORECASE)
_DATES = re.compile(r"updated|updated:\s*\d{4}|\b20\d{2}\b|\b\d{4}-\d{2}-\d{2}\b", re.IGNORECASE)

LOW_SCORE_NOTICE = (
    "File exists but lacks critical GEO/E-E-A-T sections, follow the recommendations below to reach a baseline score."
)


def heuristic_llms_analysis(content: str, note: Optional[str] = None) -> ContentQuality:
    """Keyword and structure based scoring of an llms.txt file."""
    has_heading = bool(_HEADING.search(content))
    has_organization = bool(_ORGANIZATION.search(content))
    has_people = bool(_PEOPLE.search(content))
    has_address = bool(_ADDRESS.search(content))
    has_phone = bool(_PHONE.search(content))
    has_services = bool(_SERVICES.search(content))
    has_dates = bool(_DATES.search(content))

    score = 0
    if has_organization:
        score += 20
    if has_address and has_phone:
        score += 25
    if has_people:
        score += 25
    if has_services:
        score += 20
    if has_heading and has_dates:
        score += 10

    missing: List[str] = []
    recommendations: List[str] = []
    if not has_organization:
        missing.append("Organization identity (name, aliases)")
        recommendations.append('Add an "Organization" section: full legal name, aliases and geographic focus.')
    if not has_address:
        missing.append("Office locations with full addresses")
        recommendations.append("List each office with its full address and postal code.")
    if not has_phone:
        missing.append("Phone numbers")
        recommendations.append("Add phone numbers in international format.")
    if not has_people:
        missing.append("Specialist profiles with credentials")
        recommendations.append('Create a "Doctors" or "Team" section with names, degrees, specializations and licenses.')
    if not has_services:
        missing.append("Service definitions (descriptions, conditions treated)")
        recommendations.append("Describe each service with the conditions treated and expected outcomes.")
    if not has_heading:
        missing.append("Structured headings (H1/H2/H3)")
        recommendations.append("Use Markdown headings to structure llms.txt for easier parsing by LLMs.")
    if not has_dates:
        recommendations.append("Add last-updated dates as a freshness signal.")

    if score < 30 and content.strip():
        recommendations.insert(0, LOW_SCORE_NOTICE)

    if note:
        summary = f"Heuristic analysis applied ({note}). See missing sections and recommendations."
    else:
        summary = "Heuristic analysis: basic llms.txt checks completed."

    return ContentQuality(
        present=True,
        score=min(100, score),
        summary=summary,
        missing_sections=tuple(missing),
        recommendations=tuple(recommendations),
        method=AnalysisMethod.HEURISTIC,
        fallback_reason=note,
    )


def heuristic_audit_summary(facts: AuditFacts, note: Optional[str] = None) -> AuditAnalysis:
    """
    Rule-based audit score out of 100.

    Performance contributes up to 20 points (10 when no speed data is
    available), security 15, crawl files 30, structured data 15, meta tags
    15 and duplicate content 5.
    """
    issues: List[str] = []
    recommendations: List[str] = []
    strengths: List[str] = []
    quick_wins: List[str] = []
    score = 0.0

    speeds = [s for s in (facts.speed.desktop, facts.speed.mobile) if s is not None]
    if speeds:
        average = sum(speeds) / len(speeds)
        score += average / 100 * 20
        if average >= 90:
            strengths.append(f"Fast pages (average PageSpeed score {round(average)})")
        elif average < 50:
            issues.append(f"Slow pages (average PageSpeed score {round(average)})")
            recommendations.append("Address the top PageSpeed opportunities, starting with LCP and blocking time")
    else:
        score += 10

    if facts.security.https:
        score += 10
        strengths.append("Served over HTTPS")
    else:
        issues.append("Site is not served over HTTPS")
        recommendations.append("Serve every page over HTTPS and redirect HTTP to HTTPS")
    if facts.security.mobile_friendly:
        score += 5
    else:
        issues.append("No viewport meta tag, the page is not mobile friendly")
        quick_wins.append('Add <meta name="viewport" content="width=device-width, initial-scale=1">')

    robots = facts.files.robots_txt
    if robots.present and not robots.blocks_ai_bots and not robots.disallow_all:
        score += 10
    elif robots.blocks_ai_bots or robots.disallow_all:
        issues.append("robots.txt blocks crawlers: " + (", ".join(robots.blocked_ai_bots) or "all paths"))
        recommendations.append("Allow search and AI crawlers in robots.txt")
    else:
        quick_wins.append("Add a robots.txt with a Sitemap directive")
    if facts.files.sitemap.present:
        score += 10
        if facts.files.sitemap.valid:
            strengths.append(f"sitemap.xml lists {facts.files.sitemap.url_count} URLs")
    else:
        issues.append("sitemap.xml is missing")
        quick_wins.append("Publish a sitemap.xml and reference it from robots.txt")
    if facts.content_quality.present:
        score += 5 + 5 * facts.content_quality.score / 100
        strengths.append("llms.txt is published")
    else:
        recommendations.append("Add an llms.txt describing the organization, services, team and contacts")

    schema = facts.schema
    if schema.has_medical_org or schema.has_local_business:
        score += 10
        strengths.append("Organization structured data present")
    else:
        issues.append("No organization or local business structured data")
        recommendations.append("Add Organization or LocalBusiness JSON-LD with address and phone")
    if schema.has_physician or schema.has_medical_procedure or schema.has_faq_page:
        score += 5
    else:
        recommendations.append("Mark up people, services or FAQs with schema.org types")

    meta = facts.meta
    if meta.title and meta.description:
        score += 5
    else:
        issues.append("Title or meta description is missing")
        quick_wins.append("Write a unique title and meta description")
    if meta.h1:
        score += 5
    else:
        quick_wins.append("Add a single descriptive H1")
    if meta.canonical:
        score += 5
    else:
        quick_wins.append("Add a self-referencing canonical link")
    if meta.has_noindex:
        issues.append("The page is marked noindex")
        recommendations.insert(0, "Remove noindex from pages that should appear in search results")

    if facts.images.missing_alt:
        quick_wins.append(f"Add alt text to {facts.images.missing_alt} of {facts.images.total} images")

    variants = facts.url_variants
    for label, verdict in (
        ("www and non-www", variants.www_redirect),
        ("trailing slash", variants.trailing_slash),
        ("HTTP and HTTPS", variants.http_redirect),
    ):
        if verdict is VariantVerdict.DUPLICATE:
            issues.append(f"Both {label} URL variants answer 200")
            recommendations.append(f"Redirect one {label} variant to the other with a 301")

    duplicates = facts.duplicates
    if duplicates.duplicates_found:
        issues.append(f"{duplicates.duplicates_found} near-duplicate page pairs found")
        recommendations.append("Consolidate or rewrite near-duplicate pages and point canonicals at the preferred URL")
    else:
        score += 5

    final = max(0, min(100, round(score)))
    if note:
        summary = f"Heuristic audit summary ({note}): score {final}/100 with {len(issues)} issues found."
    else:
        summary = f"Heuristic audit summary: score {final}/100 with {len(issues)} issues found."

    return AuditAnalysis(
        score=final,
        summary=summary,
        issues=tuple(issues),
        recommendations=tuple(recommendations),
        strengths=tuple(strengths),
        quick_wins=tuple(quick_wins),
        method=AnalysisMethod.HEURISTIC,
        fallback_reason=note,
    )
