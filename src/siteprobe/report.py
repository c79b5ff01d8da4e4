"""
Report assembly: a pure merge of settled probe results into one AuditReport.
"""

from __future__ import annotations

import dataclasses
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional
from urllib.parse import urlparse

from siteprobe.extractor.html_parser import ParsedPage
from siteprobe.metadata.meta_analyzer import analyze_canonical, analyze_description, analyze_title
from siteprobe.protocols import (
    AuditAnalysis,
    AuditFacts,
    AuditReport,
    ContentQuality,
    DuplicateAnalysis,
    FetchedPage,
    FilesSection,
    ImagesSection,
    MetaSection,
    ProbeKind,
    ProbeOutcome,
    ProbeResult,
    SchemaSection,
    SecuritySection,
    SpeedSection,
    UrlVariantSection,
)

SECTION_DEFAULTS: Dict[ProbeKind, Callable[[], Any]] = {
    ProbeKind.PERFORMANCE: SpeedSection,
    ProbeKind.FILES: FilesSection,
    ProbeKind.STRUCTURED_DATA: SchemaSection,
    ProbeKind.URL_VARIANTS: UrlVariantSection,
    ProbeKind.CONTENT_QUALITY: ContentQuality,
    ProbeKind.DUPLICATE_CONTENT: DuplicateAnalysis,
}


class ReportAssembler:
    """Builds report sections from settled results. Performs no I/O."""

    @staticmethod
    def _value(results: Mapping[ProbeKind, ProbeResult], kind: ProbeKind) -> Any:
        result = results.get(kind)
        if result is None or result.value is None:
            return SECTION_DEFAULTS[kind]()
        return result.value

    @staticmethod
    def security(page: FetchedPage, parsed: ParsedPage) -> SecuritySection:
        headers = {name.lower() for name in page.headers}
        return SecuritySection(
            https=urlparse(page.final_url or page.url).scheme == "https",
            mobile_friendly=parsed.viewport,
            hsts="strict-transport-security" in headers,
        )

    @staticmethod
    def meta(url: str, parsed: ParsedPage) -> MetaSection:
        return MetaSection(
            title=parsed.title,
            description=parsed.description,
            h1=parsed.h1,
            canonical=parsed.canonical,
            robots=parsed.robots,
            lang=parsed.lang,
            hreflangs=parsed.hreflangs,
            has_noindex=parsed.has_noindex,
            title_analysis=analyze_title(parsed.title),
            description_analysis=analyze_description(parsed.description, parsed.title),
            canonical_analysis=analyze_canonical(parsed.canonical, url),
        )

    def facts(
        self,
        url: str,
        page: FetchedPage,
        parsed: ParsedPage,
        results: Mapping[ProbeKind, ProbeResult],
    ) -> AuditFacts:
        files: FilesSection = self._value(results, ProbeKind.FILES)
        content_quality: ContentQuality = self._value(results, ProbeKind.CONTENT_QUALITY)
        if content_quality.present and not files.llms_txt_present:
            files = dataclasses.replace(files, llms_txt_present=True)

        return AuditFacts(
            url=url,
            speed=self._value(results, ProbeKind.PERFORMANCE),
            security=self.security(page, parsed),
            files=files,
            content_quality=content_quality,
            schema=self._value(results, ProbeKind.STRUCTURED_DATA),
            meta=self.meta(page.final_url or url, parsed),
            images=ImagesSection(total=parsed.images_total, missing_alt=parsed.images_missing_alt),
            url_variants=self._value(results, ProbeKind.URL_VARIANTS),
            duplicates=self._value(results, ProbeKind.DUPLICATE_CONTENT),
        )

    def assemble(
        self,
        facts: AuditFacts,
        results: Mapping[ProbeKind, ProbeResult],
        summary: Optional[ProbeResult] = None,
        generated_at: Optional[datetime] = None,
    ) -> AuditReport:
        settled = dict(results)
        if summary is not None:
            settled[summary.kind] = summary
        analysis: Optional[AuditAnalysis] = summary.value if summary is not None else None

        return AuditReport(
            url=facts.url,
            generated_at=generated_at or datetime.now(timezone.utc),
            speed=facts.speed,
            security=facts.security,
            files=facts.files,
            content_quality=facts.content_quality,
            schema=facts.schema,
            meta=facts.meta,
            images=facts.images,
            url_variants=facts.url_variants,
            duplicates=facts.duplicates,
            analysis=analysis,
            probe_outcomes={
                kind: ProbeOutcome(result.status, result.failure_reason, round(result.duration_ms, 1))
                for kind, result in settled.items()
            },
        )


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _plain(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {_camel(f.name): _plain(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Mapping):
        return {(k.value if isinstance(k, Enum) else str(k)): _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    return value


def report_to_dict(report: AuditReport) -> Dict[str, Any]:
    """JSON-ready nested dict with camelCase keys."""
    data = _plain(report)
    data["files"]["robotsTxt"]["hasSitemap"] = report.files.robots_txt.has_sitemap
    data["failedProbes"] = [kind.value for kind in report.failed_probes]
    data["hasNoindex"] = report.has_noindex
    return data
