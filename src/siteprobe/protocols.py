"""
Core contracts and data structures for SiteProbe.

This module defines the immutable report types produced by an audit and the
protocols the orchestrator depends on for page retrieval, multi-page crawling
and text analysis.

Architecture Overview:
- One fatal step (the primary page fetch), everything else is a probe
- Probes run concurrently and always settle into a ProbeResult
- Near-duplicate detection over shingle sets with subset containment
- Reports are assembled exactly once from settled results
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol, Tuple

# ============================================================================
# Enums and Constants
# ============================================================================


class ProbeStatus(Enum):
    """Terminal status of a single probe."""

    OK = "ok"
    FAILED = "failed"
    TIMEOUT = "timeout"


class ProbeKind(Enum):
    """Independent checks launched by the orchestrator."""

    PERFORMANCE = "performance"
    FILES = "files"
    STRUCTURED_DATA = "structured_data"
    URL_VARIANTS = "url_variants"
    CONTENT_QUALITY = "content_quality"
    DUPLICATE_CONTENT = "duplicate_content"
    AUDIT_SUMMARY = "audit_summary"


class DetectionMethod(Enum):
    """How a near-duplicate pair was detected."""

    JACCARD = "jaccard"
    SUBSET_A_IN_B = "subset-A-in-B"
    SUBSET_B_IN_A = "subset-B-in-A"

    def mirrored(self) -> DetectionMethod:
        if self is DetectionMethod.SUBSET_A_IN_B:
            return DetectionMethod.SUBSET_B_IN_A
        if self is DetectionMethod.SUBSET_B_IN_A:
            return DetectionMethod.SUBSET_A_IN_B
        return self


class VariantVerdict(Enum):
    """Outcome of a URL-variant consistency check."""

    OK = "ok"
    DUPLICATE = "duplicate"
    ERROR = "error"


class AnalysisMethod(Enum):
    """Which branch produced a text analysis."""

    AI = "ai"
    HEURISTIC = "heuristic"
    NONE = "none"


class CrawlState(Enum):
    """States reported by the multi-page crawl service."""

    ACTIVE = "active"
    SCRAPING = "scraping"
    COMPLETED = "completed"
    FAILED = "failed"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Any) -> CrawlState:
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.UNKNOWN


# ============================================================================
# Collaborator Payloads
# ============================================================================


@dataclass(frozen=True)
class FetchedPage:
    """A successfully retrieved primary page."""

    url: str
    final_url: str
    status: int
    html: str
    headers: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Page:
    """A crawled page used for duplicate detection."""

    url: str
    text: str
    title: Optional[str] = None
    word_count: int = 0


@dataclass(frozen=True)
class CrawlStatus:
    """One poll of a crawl job."""

    state: CrawlState
    pages: Tuple[Page, ...] = ()
    error: Optional[str] = None


class PageFetcher(Protocol):
    """Retrieves the primary page of an audit."""

    async def fetch(self, url: str) -> FetchedPage:
        """Return the page or raise ``CollaboratorError``."""
        ...


class SiteCrawler(Protocol):
    """Multi-page crawl service driven by submit-then-poll."""

    async def start(self, url: str, limit: int) -> str:
        """Submit a crawl job and return its identifier."""
        ...

    async def status(self, job_id: str) -> CrawlStatus:
        """Return the current state of a crawl job."""
        ...


class TextAnalyzer(Protocol):
    """Chat-completion style text analysis."""

    async def complete(self, system: str, prompt: str) -> str:
        """Return the raw model output."""
        ...


# ============================================================================
# Duplicate Detection
# ============================================================================


@dataclass(frozen=True)
class DuplicatePair:
    """Two pages whose content similarity exceeded the duplicate threshold."""

    url_a: str
    url_b: str
    similarity_percent: int
    method: DetectionMethod
    title_a: str
    title_b: str


@dataclass(frozen=True)
class DuplicateAnalysis:
    """Outcome of a pairwise duplicate scan."""

    pages_scanned: int = 0
    duplicates_found: int = 0
    results: Tuple[DuplicatePair, ...] = ()


# ============================================================================
# Report Sections
# ============================================================================


@dataclass(frozen=True)
class Opportunity:
    id: str
    title: str
    score: int
    savings: Optional[float] = None
    savings_unit: Optional[str] = None


@dataclass(frozen=True)
class CategoryScores:
    performance: Optional[int] = None
    accessibility: Optional[int] = None
    best_practices: Optional[int] = None
    seo: Optional[int] = None


@dataclass(frozen=True)
class PageSpeedDetails:
    """Lighthouse measurements for one strategy (milliseconds except CLS)."""

    score: int
    lcp: Optional[float] = None
    fcp: Optional[float] = None
    cls: Optional[float] = None
    tbt: Optional[float] = None
    si: Optional[float] = None
    tti: Optional[float] = None
    ttfb: Optional[float] = None
    opportunities: Tuple[Opportunity, ...] = ()
    categories: CategoryScores = field(default_factory=CategoryScores)


@dataclass(frozen=True)
class SpeedSection:
    desktop: Optional[int] = None
    mobile: Optional[int] = None
    desktop_details: Optional[PageSpeedDetails] = None
    mobile_details: Optional[PageSpeedDetails] = None


@dataclass(frozen=True)
class SecuritySection:
    https: bool = False
    mobile_friendly: bool = False
    hsts: bool = False


@dataclass(frozen=True)
class RobotsRule:
    user_agent: str
    disallow: Tuple[str, ...] = ()
    allow: Tuple[str, ...] = ()


@dataclass(frozen=True)
class RobotsTxtAnalysis:
    present: bool = False
    content: str = ""
    sitemap_urls: Tuple[str, ...] = ()
    rules: Tuple[RobotsRule, ...] = ()
    disallow_all: bool = False
    blocks_ai_bots: bool = False
    blocked_ai_bots: Tuple[str, ...] = ()
    has_wildcard_user_agent: bool = False
    issues: Tuple[str, ...] = ()
    recommendations: Tuple[str, ...] = ()
    score: int = 0

    @property
    def has_sitemap(self) -> bool:
        return bool(self.sitemap_urls)


@dataclass(frozen=True)
class SitemapAnalysis:
    present: bool = False
    valid: bool = False
    url_count: int = 0
    with_lastmod: int = 0
    with_priority: int = 0
    with_changefreq: int = 0
    image_count: int = 0
    issues: Tuple[str, ...] = ()
    recommendations: Tuple[str, ...] = ()
    score: int = 0


@dataclass(frozen=True)
class FilesSection:
    robots_txt: RobotsTxtAnalysis = field(default_factory=RobotsTxtAnalysis)
    sitemap: SitemapAnalysis = field(default_factory=SitemapAnalysis)
    llms_txt_present: bool = False


@dataclass(frozen=True)
class ContentQuality:
    """Assessment of the site's llms.txt."""

    present: bool = False
    score: int = 0
    summary: str = ""
    missing_sections: Tuple[str, ...] = ()
    recommendations: Tuple[str, ...] = ()
    method: AnalysisMethod = AnalysisMethod.NONE
    fallback_reason: Optional[str] = None


@dataclass(frozen=True)
class SchemaSection:
    has_medical_org: bool = False
    has_local_business: bool = False
    has_physician: bool = False
    has_medical_procedure: bool = False
    has_medical_specialty: bool = False
    has_faq_page: bool = False
    has_review: bool = False
    has_breadcrumb_list: bool = False
    types: Tuple[str, ...] = ()


@dataclass(frozen=True)
class TitleAnalysis:
    title: str = ""
    length: int = 0
    is_optimal_length: bool = False
    is_too_short: bool = True
    is_too_long: bool = False
    is_generic: bool = True
    has_brand_separator: bool = False
    issues: Tuple[str, ...] = ()
    recommendations: Tuple[str, ...] = ()
    score: int = 0


@dataclass(frozen=True)
class DescriptionAnalysis:
    description: str = ""
    length: int = 0
    is_optimal_length: bool = False
    is_too_short: bool = True
    is_too_long: bool = False
    has_call_to_action: bool = False
    has_benefits: bool = False
    is_different_from_title: bool = True
    is_generic: bool = True
    issues: Tuple[str, ...] = ()
    recommendations: Tuple[str, ...] = ()
    score: int = 0


@dataclass(frozen=True)
class CanonicalAnalysis:
    canonical: Optional[str] = None
    has_canonical: bool = False
    is_self_referencing: bool = False
    is_absolute_url: bool = False
    matches_current_url: bool = False
    has_different_protocol: bool = False
    has_different_domain: bool = False
    has_trailing_slash_issue: bool = False
    has_query_params: bool = False
    issues: Tuple[str, ...] = ()
    recommendations: Tuple[str, ...] = ()
    score: int = 0


@dataclass(frozen=True)
class Hreflang:
    lang: str
    url: str


@dataclass(frozen=True)
class MetaSection:
    title: str = ""
    description: str = ""
    h1: Optional[str] = None
    canonical: Optional[str] = None
    robots: Optional[str] = None
    lang: Optional[str] = None
    hreflangs: Tuple[Hreflang, ...] = ()
    has_noindex: bool = False
    title_analysis: TitleAnalysis = field(default_factory=TitleAnalysis)
    description_analysis: DescriptionAnalysis = field(default_factory=DescriptionAnalysis)
    canonical_analysis: CanonicalAnalysis = field(default_factory=CanonicalAnalysis)


@dataclass(frozen=True)
class ImagesSection:
    total: int = 0
    missing_alt: int = 0


@dataclass(frozen=True)
class UrlVariantSection:
    www_redirect: VariantVerdict = VariantVerdict.ERROR
    trailing_slash: VariantVerdict = VariantVerdict.ERROR
    http_redirect: VariantVerdict = VariantVerdict.ERROR


@dataclass(frozen=True)
class AuditAnalysis:
    """Whole-audit assessment from the text-analysis collaborator or heuristics."""

    score: int
    summary: str
    issues: Tuple[str, ...] = ()
    recommendations: Tuple[str, ...] = ()
    strengths: Tuple[str, ...] = ()
    quick_wins: Tuple[str, ...] = ()
    method: AnalysisMethod = AnalysisMethod.HEURISTIC
    fallback_reason: Optional[str] = None


# ============================================================================
# Probe Results and the Report
# ============================================================================


@dataclass(frozen=True)
class ProbeResult:
    """Settled outcome of one probe; ``value`` is the default unless status is OK."""

    kind: ProbeKind
    status: ProbeStatus
    value: Any
    failure_reason: Optional[str] = None
    duration_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return self.status is ProbeStatus.OK


@dataclass(frozen=True)
class ProbeOutcome:
    status: ProbeStatus
    failure_reason: Optional[str] = None
    duration_ms: float = 0.0


@dataclass(frozen=True)
class AuditFacts:
    """Report sections derived from settled probes, before the summary is attached."""

    url: str
    speed: SpeedSection
    security: SecuritySection
    files: FilesSection
    content_quality: ContentQuality
    schema: SchemaSection
    meta: MetaSection
    images: ImagesSection
    url_variants: UrlVariantSection
    duplicates: DuplicateAnalysis


@dataclass(frozen=True)
class AuditReport:
    """The single immutable result of an audit."""

    url: str
    generated_at: datetime
    speed: SpeedSection
    security: SecuritySection
    files: FilesSection
    content_quality: ContentQuality
    schema: SchemaSection
    meta: MetaSection
    images: ImagesSection
    url_variants: UrlVariantSection
    duplicates: DuplicateAnalysis
    analysis: Optional[AuditAnalysis] = None
    probe_outcomes: Dict[ProbeKind, ProbeOutcome] = field(default_factory=dict)

    @property
    def failed_probes(self) -> List[ProbeKind]:
        return [kind for kind, outcome in self.probe_outcomes.items() if outcome.status is not ProbeStatus.OK]

    @property
    def has_noindex(self) -> bool:
        return self.meta.has_noindex
