"""
Tests for the individual probes and the guard that settles them.
"""

import asyncio
import re

import aiohttp
import pytest
from aioresponses import aioresponses

from siteprobe.config import LLMConfig, PageSpeedConfig
from siteprobe.errors import CollaboratorError, ConfigurationError
from siteprobe.probes import (
    AuditSummaryProbe,
    ContentQualityProbe,
    DuplicateContentProbe,
    FilesProbe,
    PerformanceProbe,
    StructuredDataProbe,
    UrlVariantsProbe,
    guard_probe,
    parse_pagespeed,
)
from siteprobe.probes.content_quality import EMPTY, NOT_FOUND
from siteprobe.protocols import (
    AnalysisMethod,
    DetectionMethod,
    DuplicateAnalysis,
    Page,
    ProbeKind,
    ProbeStatus,
    SpeedSection,
    VariantVerdict,
)

from tests.helpers import FakeAnalyzer, FakeCrawler, metric_delta, word_text
from tests.helpers.facts import RICH_LLMS_TXT, healthy_facts

PAGESPEED = re.compile(r"^https://www\.googleapis\.com/pagespeedonline/v5/runPagespeed\?.*")


def pagespeed_payload(score=0.87):
    return {
        "lighthouseResult": {
            "categories": {
                "performance": {"score": score},
                "accessibility": {"score": 0.95},
                "best-practices": {"score": 1},
                "seo": {"score": 0.9},
            },
            "audits": {
                "largest-contentful-paint": {"numericValue": 2500.4},
                "first-contentful-paint": {"numericValue": 1200},
                "cumulative-layout-shift": {"numericValue": 0},
                "total-blocking-time": {"numericValue": 150},
                "server-response-time": {"numericValue": 320},
                "render-blocking-resources": {
                    "score": 0.4,
                    "title": "Eliminate render-blocking resources",
                    "details": {"items": [{"wastedMs": 640}]},
                },
                "unused-javascript": {
                    "score": 0.2,
                    "title": "Reduce unused JavaScript",
                    "details": {"items": [{"wastedBytes": 120000}]},
                },
            },
        }
    }


@pytest.mark.unit
class TestGuardProbe:
    @pytest.mark.asyncio
    async def test_success(self):
        async def work():
            return "value"

        with metric_delta("siteprobe_probe_outcomes_total", {"probe": "files", "status": "ok"}):
            result = await guard_probe(ProbeKind.FILES, "default", work(), timeout=1.0)

        assert result.ok
        assert result.value == "value"
        assert result.failure_reason is None
        assert result.duration_ms >= 0

    @pytest.mark.asyncio
    async def test_exception_becomes_failed_with_default(self):
        async def work():
            raise ValueError("boom")

        result = await guard_probe(ProbeKind.FILES, "default", work(), timeout=1.0)
        assert result.status is ProbeStatus.FAILED
        assert result.value == "default"
        assert result.failure_reason == "ValueError: boom"

    @pytest.mark.asyncio
    async def test_deadline_becomes_timeout(self):
        with metric_delta("siteprobe_probe_outcomes_total", {"probe": "performance", "status": "timeout"}):
            result = await guard_probe(ProbeKind.PERFORMANCE, "default", asyncio.sleep(5), timeout=0.05)

        assert result.status is ProbeStatus.TIMEOUT
        assert result.value == "default"
        assert result.failure_reason == "Timed out after 0.05s"

    @pytest.mark.asyncio
    async def test_inner_timeout_is_a_failure(self):
        async def work():
            raise TimeoutError("upstream timed out")

        result = await guard_probe(ProbeKind.FILES, "default", work(), timeout=5.0)
        assert result.status is ProbeStatus.FAILED


@pytest.mark.unit
class TestPerformanceProbe:
    def test_parse_pagespeed(self):
        details = parse_pagespeed(pagespeed_payload())

        assert details.score == 87
        assert details.lcp == 2500.4
        assert details.cls == 0.0
        assert details.ttfb == 320
        assert details.tti is None
        assert details.categories.best_practices == 100
        assert [o.id for o in details.opportunities] == ["unused-javascript", "render-blocking-resources"]
        assert details.opportunities[0].savings == 120000
        assert details.opportunities[0].savings_unit == "bytes"
        assert details.opportunities[1].savings_unit == "ms"

    def test_parse_without_score(self):
        assert parse_pagespeed({"lighthouseResult": {"categories": {}}}) is None
        assert parse_pagespeed({}) is None

    @pytest.mark.asyncio
    async def test_requires_api_key(self, http_client, probe_context):
        probe = PerformanceProbe(http_client, PageSpeedConfig())
        with pytest.raises(ConfigurationError):
            await probe.run(probe_context)

    @pytest.mark.asyncio
    async def test_both_strategies(self, http_client, probe_context):
        probe = PerformanceProbe(http_client, PageSpeedConfig(api_key="ps-key"))
        with aioresponses() as m:
            m.get(PAGESPEED, payload=pagespeed_payload(), repeat=True)
            section = await probe.run(probe_context)

        assert section.desktop == 87
        assert section.mobile == 87
        assert section.mobile_details.fcp == 1200

    @pytest.mark.asyncio
    async def test_one_strategy_failing_keeps_the_other(self, http_client, probe_context):
        probe = PerformanceProbe(http_client, PageSpeedConfig(api_key="ps-key"))
        with aioresponses() as m:
            m.get(re.compile(r".*strategy=desktop.*"), payload=pagespeed_payload(0.5))
            m.get(re.compile(r".*strategy=mobile.*"), status=400, body="bad request")
            section = await probe.run(probe_context)

        assert section == SpeedSection(desktop=50, desktop_details=section.desktop_details)
        assert section.mobile_details is None

    @pytest.mark.asyncio
    async def test_both_strategies_failing_raises(self, http_client, probe_context):
        probe = PerformanceProbe(http_client, PageSpeedConfig(api_key="ps-key"))
        with aioresponses() as m:
            m.get(PAGESPEED, status=403, body="forbidden", repeat=True)
            with pytest.raises(CollaboratorError):
                await probe.run(probe_context)


@pytest.mark.unit
class TestFilesProbe:
    @pytest.mark.asyncio
    async def test_all_files_present(self, http_client, probe_context):
        with aioresponses() as m:
            m.get("https://example.com/robots.txt", body="User-agent: *\nSitemap: https://example.com/sitemap.xml\n")
            m.get(
                "https://example.com/sitemap.xml",
                body='<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9"><url><loc>https://example.com/</loc></url></urlset>',
            )
            m.head("https://example.com/llms.txt", status=200)
            section = await FilesProbe(http_client).run(probe_context)

        assert section.robots_txt.present
        assert section.robots_txt.has_sitemap
        assert section.sitemap.url_count == 1
        assert section.llms_txt_present

    @pytest.mark.asyncio
    async def test_missing_files(self, http_client, probe_context):
        with aioresponses() as m:
            m.get("https://example.com/robots.txt", status=404)
            m.get("https://example.com/sitemap.xml", status=404)
            m.head("https://example.com/llms.txt", status=404)
            section = await FilesProbe(http_client).run(probe_context)

        assert not section.robots_txt.present
        assert not section.sitemap.present
        assert not section.llms_txt_present

    @pytest.mark.asyncio
    async def test_unreachable_host_reports_absent_files(self, http_client, probe_context, deterministic_jitter):
        error = aiohttp.ClientConnectionError("refused")
        with aioresponses() as m:
            m.get("https://example.com/robots.txt", exception=error, repeat=True)
            m.get("https://example.com/sitemap.xml", exception=error, repeat=True)
            m.head("https://example.com/llms.txt", exception=error, repeat=True)
            section = await FilesProbe(http_client).run(probe_context)

        assert not section.robots_txt.present
        assert "robots.txt is missing" in section.robots_txt.issues
        assert not section.sitemap.present
        assert not section.llms_txt_present

    @pytest.mark.asyncio
    async def test_one_unreachable_file_keeps_the_others(self, http_client, probe_context, deterministic_jitter):
        with aioresponses() as m:
            m.get(
                "https://example.com/robots.txt",
                exception=aiohttp.ClientConnectionError("connection reset"),
                repeat=True,
            )
            m.get(
                "https://example.com/sitemap.xml",
                body='<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9"><url><loc>https://example.com/</loc></url></urlset>',
            )
            m.head("https://example.com/llms.txt", status=200)
            section = await FilesProbe(http_client).run(probe_context)

        assert not section.robots_txt.present
        assert section.sitemap.present
        assert section.sitemap.url_count == 1
        assert section.llms_txt_present


@pytest.mark.unit
class TestStructuredDataProbe:
    @pytest.mark.asyncio
    async def test_detects_json_ld(self, probe_context):
        section = await StructuredDataProbe().run(probe_context)
        assert section.has_medical_org
        assert "medicalclinic" in section.types


@pytest.mark.unit
class TestUrlVariantsProbe:
    @pytest.mark.asyncio
    async def test_root_url(self, http_client, probe_context):
        with aioresponses() as m:
            m.head("https://www.example.com/", status=200)
            m.head("https://example.com/", status=200)
            m.head("http://example.com/", status=301)
            section = await UrlVariantsProbe(http_client).run(probe_context)

        assert section.www_redirect is VariantVerdict.DUPLICATE
        assert section.trailing_slash is VariantVerdict.OK
        assert section.http_redirect is VariantVerdict.OK

    @pytest.mark.asyncio
    async def test_trailing_slash_duplicate(self, http_client):
        probe = UrlVariantsProbe(http_client)
        with aioresponses() as m:
            m.head("https://example.com/about/", status=200)
            m.head("https://example.com/about", status=200)
            assert await probe.trailing_slash("https://example.com/about") is VariantVerdict.DUPLICATE

    @pytest.mark.asyncio
    async def test_http_served_twice(self, http_client):
        with aioresponses() as m:
            m.head("http://example.com/", status=200)
            assert await UrlVariantsProbe(http_client).http_redirect("https://example.com/") is VariantVerdict.DUPLICATE

    @pytest.mark.asyncio
    async def test_unreachable_variant_is_error(self, http_client):
        with aioresponses() as m:
            m.head("https://www.example.com/", exception=aiohttp.ClientConnectionError("dns failure"))
            m.head("https://example.com/", status=301)
            assert await UrlVariantsProbe(http_client).www_redirect("https://example.com/") is VariantVerdict.ERROR

    @pytest.mark.asyncio
    async def test_unreachable_http_endpoint_is_ok(self, http_client):
        with aioresponses() as m:
            m.head("http://example.com/", exception=aiohttp.ClientConnectionError("refused"))
            assert await UrlVariantsProbe(http_client).http_redirect("https://example.com/") is VariantVerdict.OK


@pytest.mark.unit
class TestContentQualityProbe:
    @pytest.mark.asyncio
    async def test_not_found(self, http_client, probe_context):
        with aioresponses() as m:
            m.get("https://example.com/llms.txt", status=404)
            quality = await ContentQualityProbe(http_client, None, LLMConfig()).run(probe_context)
        assert quality == NOT_FOUND

    @pytest.mark.asyncio
    async def test_empty(self, http_client, probe_context):
        with aioresponses() as m:
            m.get("https://example.com/llms.txt", body="  \n")
            quality = await ContentQualityProbe(http_client, None, LLMConfig()).run(probe_context)
        assert quality == EMPTY

    @pytest.mark.asyncio
    async def test_heuristic_without_analyzer(self, http_client, probe_context):
        with aioresponses() as m:
            m.get("https://example.com/llms.txt", body=RICH_LLMS_TXT)
            quality = await ContentQualityProbe(http_client, None, LLMConfig()).run(probe_context)

        assert quality.present
        assert quality.method is AnalysisMethod.HEURISTIC
        assert quality.score == 100
        assert quality.fallback_reason == "text analysis is not configured"

    @pytest.mark.asyncio
    async def test_ai_analysis(self, http_client, probe_context):
        analyzer = FakeAnalyzer('{"score": 82, "summary": "Clear.", "missing_sections": [], "recommendations": ["Add dates"]}')
        with aioresponses() as m:
            m.get("https://example.com/llms.txt", body=RICH_LLMS_TXT)
            quality = await ContentQualityProbe(http_client, analyzer, LLMConfig()).run(probe_context)

        assert quality.method is AnalysisMethod.AI
        assert quality.score == 82
        assert quality.recommendations == ("Add dates",)
        assert "Heart Care Clinic" in analyzer.prompts[0]

    @pytest.mark.asyncio
    async def test_unparsable_analysis_falls_back(self, http_client, probe_context):
        with aioresponses() as m:
            m.get("https://example.com/llms.txt", body=RICH_LLMS_TXT)
            quality = await ContentQualityProbe(http_client, FakeAnalyzer("I think it is fine"), LLMConfig()).run(
                probe_context
            )

        assert quality.method is AnalysisMethod.HEURISTIC
        assert quality.fallback_reason == "response is not a JSON object"

    @pytest.mark.asyncio
    async def test_analyzer_failure_falls_back(self, http_client, probe_context):
        analyzer = FakeAnalyzer(CollaboratorError("text-analysis", "HTTP 503", status=503))
        with aioresponses() as m:
            m.get("https://example.com/llms.txt", body=RICH_LLMS_TXT)
            quality = await ContentQualityProbe(http_client, analyzer, LLMConfig()).run(probe_context)

        assert quality.method is AnalysisMethod.HEURISTIC
        assert quality.fallback_reason == "text-analysis: HTTP 503"

    @pytest.mark.asyncio
    async def test_slow_analysis_falls_back(self, http_client, probe_context):
        analyzer = FakeAnalyzer('{"score": 82}', delay=5)
        with metric_delta("siteprobe_analysis_fallbacks_total", {"analysis": "llms_txt", "reason": "timeout"}):
            with aioresponses() as m:
                m.get("https://example.com/llms.txt", body=RICH_LLMS_TXT)
                quality = await ContentQualityProbe(http_client, analyzer, LLMConfig(analysis_timeout=0.05)).run(
                    probe_context
                )

        assert quality.method is AnalysisMethod.HEURISTIC
        assert quality.score == 100
        assert quality.fallback_reason == "text analysis timed out after 0.05s"


@pytest.mark.unit
class TestDuplicateContentProbe:
    @pytest.mark.asyncio
    async def test_completed_crawl(self, probe_context):
        text = word_text(60)
        crawler = FakeCrawler.completed([Page("https://example.com/a", text), Page("https://example.com/b", text)])
        analysis = await DuplicateContentProbe(crawler).run(probe_context)

        assert analysis.duplicates_found == 1
        assert analysis.results[0].method is DetectionMethod.JACCARD

    @pytest.mark.asyncio
    async def test_crawl_that_cannot_start(self, probe_context):
        crawler = FakeCrawler(start_error=ConfigurationError("Crawl service API key is not configured"))
        assert await DuplicateContentProbe(crawler).run(probe_context) == DuplicateAnalysis()


@pytest.mark.unit
class TestAuditSummaryProbe:
    @pytest.mark.asyncio
    async def test_heuristic_without_analyzer(self):
        analysis = await AuditSummaryProbe(None).run(healthy_facts())
        assert analysis.method is AnalysisMethod.HEURISTIC
        assert analysis.score == 95

    @pytest.mark.asyncio
    async def test_ai_summary(self):
        analyzer = FakeAnalyzer(
            '{"overallScore": 71, "summary": "Good base.", "criticalIssues": ["Slow mobile"],'
            ' "priorityRecommendations": ["Compress images"], "strengths": ["HTTPS"], "quickWins": ["Add alt text"]}'
        )
        analysis = await AuditSummaryProbe(analyzer).run(healthy_facts())

        assert analysis.method is AnalysisMethod.AI
        assert analysis.score == 71
        assert analysis.issues == ("Slow mobile",)
        assert analysis.quick_wins == ("Add alt text",)
        assert "Duplicates Found: 0" in analyzer.prompts[0]

    @pytest.mark.asyncio
    async def test_slow_summary_falls_back(self):
        analyzer = FakeAnalyzer('{"overallScore": 71}', delay=5)
        analysis = await AuditSummaryProbe(analyzer, LLMConfig(analysis_timeout=0.05)).run(healthy_facts())

        assert analysis.method is AnalysisMethod.HEURISTIC
        assert analysis.score == 95
        assert analysis.fallback_reason == "text analysis timed out after 0.05s"

    def test_default_is_none(self):
        assert AuditSummaryProbe(None).default() is None
