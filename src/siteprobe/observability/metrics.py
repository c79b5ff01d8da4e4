"""
Defines and manages Prometheus metrics for SiteProbe.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Optional

import structlog
from prometheus_client import REGISTRY as _PROM_REGISTRY
from prometheus_client import Counter as _OrigCounter
from prometheus_client import Histogram as _OrigHistogram
from prometheus_client import start_http_server

if TYPE_CHECKING:
    from siteprobe.config.config import MonitoringConfig

logger = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# Duplicate-safe Prometheus metric wrappers
# ---------------------------------------------------------------------------
# Importing this module twice (test reloads, multiple containers) must not
# raise "Duplicated timeseries in CollectorRegistry".


def _duplicate_safe_factory(metric_cls):
    """Return a factory that reuses an existing collector if already present."""

    def _factory(name: str, documentation: str, *args, **kwargs):  # type: ignore[override]
        # Counters register under both "x" and "x_total"
        existing = _PROM_REGISTRY._names_to_collectors.get(name)
        if existing is not None:
            return existing  # type: ignore[return-value]

        try:
            return metric_cls(name, documentation, *args, **kwargs)  # type: ignore[call-arg]
        except ValueError:
            return _PROM_REGISTRY._names_to_collectors[name]  # type: ignore[return-value]

    return _factory


Counter = _duplicate_safe_factory(_OrigCounter)  # type: ignore[assignment]
Histogram = _duplicate_safe_factory(_OrigHistogram)  # type: ignore[assignment]


def _create_metrics() -> Dict[str, Any]:
    return {
        "audits_total": Counter(
            "siteprobe_audits_total",
            "Audits started, by outcome",
            ["outcome"],
        ),
        "audit_duration_seconds": Histogram(
            "siteprobe_audit_duration_seconds",
            "Wall-clock duration of a full audit",
            buckets=[1, 5, 10, 30, 60, 120, 180, 300],
        ),
        "probe_outcomes_total": Counter(
            "siteprobe_probe_outcomes_total",
            "Settled probes, by probe kind and status",
            ["probe", "status"],
        ),
        "probe_duration_seconds": Histogram(
            "siteprobe_probe_duration_seconds",
            "Probe duration until settlement",
            ["probe"],
            buckets=[0.1, 0.5, 1, 2.5, 5, 10, 30, 60, 150],
        ),
        "http_responses_total": Counter(
            "siteprobe_http_responses_total",
            "HTTP responses received, by status class",
            ["status_class"],
        ),
        "http_fetch_latency_seconds": Histogram(
            "siteprobe_http_fetch_latency_seconds",
            "Latency of HTTP fetches including retries",
            buckets=[0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10, 30],
        ),
        "duplicate_pairs_total": Counter(
            "siteprobe_duplicate_pairs_total",
            "Near-duplicate page pairs reported",
            ["method"],
        ),
        "analysis_fallbacks_total": Counter(
            "siteprobe_analysis_fallbacks_total",
            "Text analyses answered by heuristics instead of the collaborator",
            ["analysis", "reason"],
        ),
    }


METRICS: Dict[str, Any] = _create_metrics()

_server_port: Optional[int] = None


def start_metrics_server(config: MonitoringConfig) -> None:
    """Expose METRICS over HTTP when a port is configured; idempotent."""
    global _server_port
    if not config.metrics_enabled or config.prometheus_port is None:
        return
    if _server_port == config.prometheus_port:
        return
    start_http_server(config.prometheus_port)
    _server_port = config.prometheus_port
    logger.info("Prometheus exporter started", port=config.prometheus_port)
