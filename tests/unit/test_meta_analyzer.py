"""
Tests for title, description and canonical scoring.
"""

import pytest

from siteprobe.metadata.meta_analyzer import analyze_canonical, analyze_description, analyze_title


@pytest.mark.unit
class TestAnalyzeTitle:
    def test_optimal_branded_title(self):
        analysis = analyze_title("Cardiology Clinic in Springfield | Heart Care Center")
        assert analysis.length == 52
        assert analysis.is_optimal_length
        assert analysis.has_brand_separator
        assert analysis.score == 100

    def test_generic_title(self):
        analysis = analyze_title("Home")
        assert analysis.is_generic
        assert analysis.is_too_short
        assert analysis.score == 0
        assert "Title is too generic" in analysis.issues

    def test_missing_title(self):
        analysis = analyze_title(None)
        assert analysis.score == 0
        assert analysis.issues == ("Title is missing",)

    def test_mid_length_title_without_brand(self):
        analysis = analyze_title("Affordable dental implants in Springfield")
        assert not analysis.has_brand_separator
        assert analysis.issues == ()
        assert analysis.score == 75

    def test_long_title(self):
        analysis = analyze_title("A" * 40 + " | " + "B" * 40)
        assert analysis.is_too_long
        assert analysis.issues[0].startswith("Title is too long")


@pytest.mark.unit
class TestAnalyzeDescription:
    def test_missing(self):
        analysis = analyze_description("", "Title")
        assert analysis.score == 0
        assert analysis.issues == ("Meta description is missing",)

    def test_short_call_to_action(self):
        analysis = analyze_description("Book now", "Dental Clinic")
        assert analysis.has_call_to_action
        assert not analysis.has_benefits
        assert analysis.is_generic
        assert analysis.score == 30

    def test_persuasive_description(self):
        description = (
            "Expert cardiologists with 20 years of experience in Springfield. "
            "Book an appointment online today and get a free consultation for new patients."
        )
        analysis = analyze_description(description, "Heart Care Center")
        assert analysis.has_call_to_action
        assert analysis.has_benefits
        assert analysis.is_different_from_title
        assert not analysis.is_generic

    def test_repeats_title(self):
        analysis = analyze_description("Heart Care Center", "Heart Care Center")
        assert not analysis.is_different_from_title
        assert "Description repeats the title" in analysis.issues


@pytest.mark.unit
class TestAnalyzeCanonical:
    def test_missing(self):
        assert analyze_canonical(None, "https://example.com/").score == 0

    def test_relative(self):
        analysis = analyze_canonical("/page", "https://example.com/page")
        assert analysis.has_canonical
        assert not analysis.is_absolute_url
        assert analysis.score == 10

    @pytest.mark.parametrize(
        "canonical,page_url",
        [
            ("https://example.com/", "https://example.com/"),
            ("https://www.example.com/about", "https://example.com/about"),
        ],
    )
    def test_self_referencing(self, canonical, page_url):
        analysis = analyze_canonical(canonical, page_url)
        assert analysis.is_self_referencing
        assert analysis.score == 100

    def test_different_protocol(self):
        analysis = analyze_canonical("http://example.com/", "https://example.com/")
        assert analysis.has_different_protocol
        assert analysis.score == 90

    def test_different_domain(self):
        analysis = analyze_canonical("https://other.com/", "https://example.com/")
        assert analysis.has_different_domain
        assert not analysis.matches_current_url
        assert analysis.score == 65

    def test_query_parameters(self):
        analysis = analyze_canonical("https://example.com/page?ref=1", "https://example.com/page")
        assert analysis.has_query_params
        assert not analysis.is_self_referencing
        assert analysis.score == 90

    def test_trailing_slash_mismatch(self):
        analysis = analyze_canonical("https://example.com/page/", "https://example.com/page")
        assert analysis.has_trailing_slash_issue
        assert analysis.score == 90
