"""
Shared fixtures for SiteProbe tests.

Every test runs without network access: HTTP is mocked with aioresponses and
the page fetcher, crawl service and text analyzer are replaced by fakes.
"""

import asyncio
from typing import AsyncGenerator
from unittest.mock import patch

import pytest
import pytest_asyncio

from siteprobe.config import AuditConfig, Config, HttpConfig
from siteprobe.crawler.http_client import HttpClient
from siteprobe.extractor.html_parser import parse_html
from siteprobe.probes.base import ProbeContext
from siteprobe.protocols import FetchedPage

# ============================================================================
# Pytest Configuration
# ============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests for individual components")
    config.addinivalue_line("markers", "integration: Integration tests across modules")
    config.addinivalue_line("markers", "slow: Tests that take >10 seconds")


@pytest_asyncio.fixture(autouse=True)
async def cleanup_tasks() -> AsyncGenerator[None, None]:
    """Cancel any task a test leaves running so it cannot leak into the next one."""
    tasks_before = asyncio.all_tasks()
    yield
    for task in asyncio.all_tasks() - tasks_before:
        if not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass


# ============================================================================
# Sample Content
# ============================================================================


@pytest.fixture
def sample_html():
    """A page carrying every on-page signal the report reads."""
    return """
    <!DOCTYPE html>
    <html lang="en">
    <head>
        <title>Cardiology Clinic in Springfield | Heart Care Center</title>
        <meta name="description" content="Expert cardiologists with 20 years of experience. Book an appointment online today and get a free consultation for new patients at our modern Springfield clinic.">
        <meta name="viewport" content="width=device-width, initial-scale=1">
        <meta name="robots" content="index, follow">
        <link rel="canonical" href="https://example.com/">
        <link rel="alternate" hreflang="de" href="https://example.com/de/">
        <script type="application/ld+json">
        {"@context": "https://schema.org", "@type": "MedicalClinic", "name": "Heart Care Center"}
        </script>
    </head>
    <body>
        <h1>Heart Care Center</h1>
        <h2>Our Services</h2>
        <p>We treat arrhythmia and heart failure.</p>
        <img src="/team.jpg" alt="Our team">
        <img src="/building.jpg">
        <script>var tracking = "not page text";</script>
    </body>
    </html>
    """


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def audit_config() -> AuditConfig:
    """Audit settings with fast crawl polling."""
    return AuditConfig(
        probe_timeout_ms=2_000,
        probe_timeouts_ms={"duplicate_content": 3_000},
        crawl_poll_interval_ms=10,
        crawl_timeout_ms=2_000,
        crawl_error_backoff_ms=0,
        crawl_max_consecutive_errors=3,
    )


@pytest.fixture
def test_config(audit_config) -> Config:
    config = Config(audit=audit_config, http=HttpConfig(max_retries=2, backoff_base=0.01, timeout=5.0))
    config.monitoring.metrics_enabled = False
    return config


# ============================================================================
# HTTP Fixtures
# ============================================================================


@pytest.fixture
def deterministic_jitter():
    """Remove jitter from retry backoff."""
    with patch("siteprobe.crawler.http_client.random.uniform", return_value=1.0):
        yield


@pytest_asyncio.fixture
async def http_client(test_config) -> AsyncGenerator[HttpClient, None]:
    client = HttpClient(test_config.http)
    await client.initialize()
    try:
        yield client
    finally:
        await client.close()


# ============================================================================
# Probe Fixtures
# ============================================================================


@pytest.fixture
def fetched_page(sample_html) -> FetchedPage:
    return FetchedPage(
        url="https://example.com/",
        final_url="https://example.com/",
        status=200,
        html=sample_html,
        headers={"Content-Type": "text/html; charset=utf-8", "Strict-Transport-Security": "max-age=31536000"},
    )


@pytest.fixture
def probe_context(fetched_page, audit_config) -> ProbeContext:
    return ProbeContext(
        url="https://example.com/",
        page=fetched_page,
        parsed=parse_html(fetched_page.html),
        config=audit_config,
    )
