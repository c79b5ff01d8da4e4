"""
Prompts for the text-analysis collaborator.
"""

from __future__ import annotations

from typing import List, Optional

from siteprobe.protocols import AuditFacts, PageSpeedDetails

LLMS_SYSTEM_PROMPT = """You are an expert in Generative Engine Optimization (GEO). Analyze the provided llms.txt file content against these criteria:

- Markdown structure (headers, lists)
- Key information, in any format:
  * About: organization, mission, background
  * Services: services or procedures offered
  * Staff: specialists, doctors or team members with credentials
  * Contact information: addresses, phone numbers, email
- Clear descriptions and unique selling points
- Up-to-date contact info
- No noise or ads

Information may be embedded in descriptions, metadata fields or language-specific sections. Be flexible in recognizing it."""

LLMS_USER_PROMPT = """Analyze the following llms.txt content and respond with JSON:
- score: number 0-100, how well the file meets the criteria
- summary: 1-2 sentence verdict
- missing_sections: array of strings, what is genuinely missing
- recommendations: array of actionable improvements

llms.txt content:
{content}

Return only valid JSON:
{{"score": number, "summary": string, "missing_sections": string[], "recommendations": string[]}}"""

AUDIT_SYSTEM_PROMPT = """You are a professional SEO and GEO (Generative Engine Optimization) specialist. Analyze technical audit data and give actionable insights prioritized by their impact on visibility in search engines and LLM answers.

Priorities:
1. LLM crawlability: llms.txt, robots.txt allowing AI crawlers
2. Authority signals: structured data for the organization, people and services
3. Local precision: address, phone and service area markup
4. Duplicate content risk: duplicate pages confuse search engines and AI models
5. Performance: mobile speed, LCP and FCP, image alt text

Scoring framework:
- 80-100: excellent foundation, all critical elements present
- 60-79: good structure with 1-2 gaps
- 40-59: multiple issues
- 20-39: severe problems such as blocked crawlers or no structured data
- 0-19: critical blockers"""

AUDIT_USER_PROMPT = """Analyze this technical audit and provide specific, quantified recommendations ranked by impact.

Return JSON with:
{{
  "overallScore": number (0-100),
  "summary": string (2-3 sentences),
  "criticalIssues": string[] (max 5),
  "priorityRecommendations": string[] (5-7 specific actions),
  "strengths": string[] (3-5),
  "quickWins": string[] (2-4)
}}

Technical audit data:
{facts}"""

TOP_DUPLICATES = 5


def _ms(value: Optional[float]) -> str:
    return f"{round(value)}ms" if value else "N/A"


def _yes_no(flag: bool) -> str:
    return "Yes" if flag else "No"


def _speed_lines(label: str, details: Optional[PageSpeedDetails]) -> List[str]:
    if details is None:
        return []
    lines = [
        f"{label} LCP: {_ms(details.lcp)}",
        f"{label} FCP: {_ms(details.fcp)}",
        f"{label} CLS: {details.cls:.3f}" if details.cls is not None else f"{label} CLS: N/A",
        f"{label} TBT: {_ms(details.tbt)}",
    ]
    if details.opportunities:
        lines.append(f"{label} Opportunities: {', '.join(o.title for o in details.opportunities[:3])}")
    return lines


def format_audit_facts(facts: AuditFacts) -> str:
    """Render audit facts as the markdown block sent with the summary prompt."""
    speed, files, schema, meta, images = facts.speed, facts.files, facts.schema, facts.meta, facts.images
    parts: List[str] = [f"URL: {facts.url}", "", "## Performance Metrics"]
    parts.append(f"Desktop Speed: {speed.desktop if speed.desktop is not None else 'N/A'}/100")
    parts.append(f"Mobile Speed: {speed.mobile if speed.mobile is not None else 'N/A'}/100")
    parts.extend(_speed_lines("Desktop", speed.desktop_details))
    parts.extend(_speed_lines("Mobile", speed.mobile_details))

    parts.append("\n## Security & Mobile")
    parts.append(f"HTTPS: {_yes_no(facts.security.https)}")
    parts.append(f"HSTS: {_yes_no(facts.security.hsts)}")
    parts.append(f"Mobile Friendly: {_yes_no(facts.security.mobile_friendly)}")

    parts.append("\n## Core Files")
    robots = files.robots_txt
    if robots.present:
        parts.append(f"robots.txt: Present (Score: {robots.score}/100)")
        if robots.blocks_ai_bots:
            parts.append(f"Blocked AI crawlers: {', '.join(robots.blocked_ai_bots)}")
    else:
        parts.append("robots.txt: Missing")
    sitemap = files.sitemap
    parts.append(f"sitemap.xml: Present ({sitemap.url_count} URLs, Score: {sitemap.score}/100)" if sitemap.present else "sitemap.xml: Missing")
    quality = facts.content_quality
    parts.append(f"llms.txt: Present (Score: {quality.score}/100)" if quality.present else "llms.txt: Missing")

    parts.append("\n## Schema Markup")
    parts.append(f"Medical Organization: {_yes_no(schema.has_medical_org)}")
    parts.append(f"Physician: {_yes_no(schema.has_physician)}")
    parts.append(f"Medical Procedure: {_yes_no(schema.has_medical_procedure)}")
    parts.append(f"Local Business: {_yes_no(schema.has_local_business)}")
    parts.append(f"FAQ: {_yes_no(schema.has_faq_page)}")
    parts.append(f"Reviews: {_yes_no(schema.has_review)}")
    parts.append(f"Breadcrumb List: {_yes_no(schema.has_breadcrumb_list)}")

    parts.append("\n## Meta Tags & SEO")
    parts.append(f'Title: {len(meta.title)} chars - "{meta.title[:60]}"' if meta.title else "Title: Missing")
    parts.append(f"Description: {len(meta.description)} chars" if meta.description else "Description: Missing")
    parts.append(f"H1: {'Present' if meta.h1 else 'Missing'}")
    parts.append(f"Canonical: {'Present' if meta.canonical else 'Missing'}")
    parts.append(f"Lang: {meta.lang or 'Missing'}")
    parts.append(f"Noindex: {_yes_no(meta.has_noindex)}")

    parts.append("\n## Images")
    missing_pct = round(images.missing_alt / images.total * 100) if images.total else 0
    parts.append(f"Total: {images.total}")
    parts.append(f"Missing Alt: {images.missing_alt} ({missing_pct}%)")

    variants = facts.url_variants
    parts.append("\n## Duplicate Prevention")
    parts.append(f"WWW Redirect: {variants.www_redirect.value}")
    parts.append(f"Trailing Slash: {variants.trailing_slash.value}")
    parts.append(f"HTTP -> HTTPS: {variants.http_redirect.value}")

    duplicates = facts.duplicates
    parts.append("\n## Deep Content Analysis - Duplicate Content")
    parts.append(f"Pages Scanned: {duplicates.pages_scanned}")
    parts.append(f"Duplicates Found: {duplicates.duplicates_found}")
    if duplicates.duplicates_found:
        parts.append(f"Duplicate Pairs (showing top {TOP_DUPLICATES}):")
        for index, pair in enumerate(duplicates.results[:TOP_DUPLICATES], start=1):
            parts.append(f'  {index}. "{pair.title_a}" <-> "{pair.title_b}" ({pair.similarity_percent}% similarity)')
        if duplicates.duplicates_found > TOP_DUPLICATES:
            parts.append(f"  ... and {duplicates.duplicates_found - TOP_DUPLICATES} more duplicate pairs")
    elif duplicates.pages_scanned:
        parts.append("No duplicate content detected")
    else:
        parts.append("Not available (no pages were crawled)")

    return "\n".join(parts)


def llms_prompt(content: str, max_chars: int) -> str:
    return LLMS_USER_PROMPT.format(content=content[:max_chars])


def audit_prompt(facts: AuditFacts) -> str:
    return AUDIT_USER_PROMPT.format(facts=format_audit_facts(facts))
