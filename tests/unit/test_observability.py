"""
Tests for audit-scoped logging context and metric helpers.
"""

import pytest
import structlog

from siteprobe.config import MonitoringConfig
from siteprobe.observability import audit_context, increment, observe, start_metrics_server
from siteprobe.observability.logging import add_audit_id

from tests.helpers import histogram_observes, metric_delta


@pytest.mark.unit
class TestAuditContext:
    def test_binds_and_resets(self):
        with audit_context("https://example.com") as audit_id:
            ctx = structlog.contextvars.get_contextvars()
            assert ctx["audit_id"] == audit_id
            assert ctx["audit_url"] == "https://example.com"
            assert add_audit_id(None, "info", {"event": "x"})["audit_id"] == audit_id

        assert "audit_id" not in structlog.contextvars.get_contextvars()
        assert "audit_id" not in add_audit_id(None, "info", {"event": "x"})

    def test_nested_audits_get_distinct_ids(self):
        with audit_context("https://a.example") as outer:
            with audit_context("https://b.example") as inner:
                assert inner != outer
            assert structlog.contextvars.get_contextvars()["audit_id"] == outer


@pytest.mark.unit
class TestMetricHelpers:
    def test_labelled_counter(self):
        with metric_delta("siteprobe_probe_outcomes_total", {"probe": "files", "status": "ok"}, expected_delta=2):
            increment("probe_outcomes_total", labels={"probe": "files", "status": "ok"})
            increment("probe_outcomes_total", labels={"probe": "files", "status": "ok"})

    def test_histogram(self):
        with histogram_observes("siteprobe_audit_duration_seconds"):
            observe("audit_duration_seconds", 1.5)

    def test_unknown_metric_is_ignored(self):
        increment("no_such_metric")
        observe("no_such_histogram", 1.0)

    def test_metrics_server_disabled_without_port(self, monkeypatch):
        def fail(port):
            raise AssertionError("exporter must not start")

        monkeypatch.setattr("siteprobe.observability.metrics.start_http_server", fail)
        start_metrics_server(MonitoringConfig(prometheus_port=None))
        start_metrics_server(MonitoringConfig(metrics_enabled=False, prometheus_port=9100))
