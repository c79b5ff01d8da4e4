"""Configuration models for SiteProbe."""

from __future__ import annotations

from .config import (
    DEFAULT_PROBES,
    AuditConfig,
    Config,
    CrawlServiceConfig,
    HttpConfig,
    LLMConfig,
    MonitoringConfig,
    PageSpeedConfig,
)

__all__ = [
    "DEFAULT_PROBES",
    "AuditConfig",
    "Config",
    "CrawlServiceConfig",
    "HttpConfig",
    "LLMConfig",
    "MonitoringConfig",
    "PageSpeedConfig",
]
