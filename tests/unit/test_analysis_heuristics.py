"""
Tests for the heuristic analysis fallbacks and the audit facts prompt.
"""

import dataclasses

import pytest

from siteprobe.analysis.heuristics import LOW_SCORE_NOTICE, heuristic_audit_summary, heuristic_llms_analysis
from siteprobe.analysis.prompts import audit_prompt, format_audit_facts, llms_prompt
from siteprobe.protocols import (
    AnalysisMethod,
    DetectionMethod,
    DuplicateAnalysis,
    DuplicatePair,
    FilesSection,
    MetaSection,
    RobotsTxtAnalysis,
    UrlVariantSection,
    VariantVerdict,
)

from tests.helpers.facts import RICH_LLMS_TXT, empty_facts, healthy_facts


@pytest.mark.unit
class TestHeuristicLlmsAnalysis:
    def test_complete_file_scores_full_marks(self):
        quality = heuristic_llms_analysis(RICH_LLMS_TXT)
        assert quality.present
        assert quality.score == 100
        assert quality.method is AnalysisMethod.HEURISTIC
        assert quality.missing_sections == ()
        assert quality.fallback_reason is None

    def test_bare_file_gets_low_score_notice(self):
        quality = heuristic_llms_analysis("hello world", note="text analysis is not configured")
        assert quality.score == 0
        assert quality.recommendations[0] == LOW_SCORE_NOTICE
        assert "Phone numbers" in quality.missing_sections
        assert quality.fallback_reason == "text analysis is not configured"
        assert "text analysis is not configured" in quality.summary

    def test_partial_file(self):
        quality = heuristic_llms_analysis("Our clinic offers cardiology services.")
        # organization (clinic) and services only
        assert quality.score == 40
        assert LOW_SCORE_NOTICE not in quality.recommendations


@pytest.mark.unit
class TestHeuristicAuditSummary:
    def test_healthy_site(self):
        analysis = heuristic_audit_summary(healthy_facts())
        assert analysis.score == 95
        assert analysis.method is AnalysisMethod.HEURISTIC
        assert analysis.issues == ()
        assert "Served over HTTPS" in analysis.strengths

    def test_empty_facts(self):
        analysis = heuristic_audit_summary(empty_facts(), note="response is not a JSON object")
        # Neutral performance credit and the duplicate-free bonus only
        assert analysis.score == 15
        assert "Site is not served over HTTPS" in analysis.issues
        assert analysis.fallback_reason == "response is not a JSON object"
        assert "response is not a JSON object" in analysis.summary

    def test_noindex_and_variant_duplicates_are_issues(self):
        facts = dataclasses.replace(
            healthy_facts(),
            meta=MetaSection(title="T", description="D", has_noindex=True),
            url_variants=UrlVariantSection(VariantVerdict.DUPLICATE, VariantVerdict.OK, VariantVerdict.DUPLICATE),
        )
        analysis = heuristic_audit_summary(facts)
        assert "The page is marked noindex" in analysis.issues
        assert "Both www and non-www URL variants answer 200" in analysis.issues
        assert "Both HTTP and HTTPS URL variants answer 200" in analysis.issues
        assert analysis.recommendations[0].startswith("Remove noindex")

    def test_blocked_crawlers(self):
        robots = RobotsTxtAnalysis(present=True, blocks_ai_bots=True, blocked_ai_bots=("gptbot",))
        facts = dataclasses.replace(healthy_facts(), files=FilesSection(robots_txt=robots))
        analysis = heuristic_audit_summary(facts)
        assert "robots.txt blocks crawlers: gptbot" in analysis.issues


@pytest.mark.unit
class TestPrompts:
    def test_duplicates_section_lists_top_pairs(self):
        pairs = tuple(
            DuplicatePair(f"https://e.com/{i}", f"https://e.com/{i}b", 90, DetectionMethod.JACCARD, f"A{i}", f"B{i}")
            for i in range(7)
        )
        facts = empty_facts(duplicates=DuplicateAnalysis(pages_scanned=20, duplicates_found=7, results=pairs))
        text = format_audit_facts(facts)

        assert "Pages Scanned: 20" in text
        assert "Duplicates Found: 7" in text
        assert '1. "A0" <-> "B0" (90% similarity)' in text
        assert '"A5"' not in text
        assert "... and 2 more duplicate pairs" in text

    def test_no_crawl(self):
        assert "Not available (no pages were crawled)" in format_audit_facts(empty_facts())

    def test_audit_prompt_embeds_facts(self):
        prompt = audit_prompt(healthy_facts())
        assert "Desktop Speed: 90/100" in prompt
        assert "HTTPS: Yes" in prompt
        assert '"overallScore"' in prompt

    def test_llms_prompt_truncates_content(self):
        prompt = llms_prompt("x" * 50, max_chars=10)
        assert "x" * 10 in prompt
        assert "x" * 11 not in prompt
