"""
Configuration management for SiteProbe using Pydantic.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# --- Setup Logging ---
log = logging.getLogger(__name__)

DEFAULT_PROBES = [
    "performance",
    "files",
    "structured_data",
    "url_variants",
    "content_quality",
    "duplicate_content",
]

# --- Nested Configuration Models ---


class AuditConfig(BaseModel):
    """Tunables for a single audit run."""

    probe_timeout_ms: int = Field(default=60_000, description="Default per-probe deadline in milliseconds.")
    probe_timeouts_ms: Dict[str, int] = Field(
        default_factory=lambda: {"duplicate_content": 150_000},
        description="Per-probe deadline overrides keyed by probe kind.",
    )
    probes: List[str] = Field(default_factory=lambda: list(DEFAULT_PROBES), description="Probes to launch.")
    summary_enabled: bool = Field(default=True, description="Run the whole-audit summary after probes settle.")

    min_words: int = Field(default=50, description="Pages with fewer words are never compared.")
    min_shingles: int = Field(default=10, description="Shingle sets smaller than this are discarded.")
    min_size_ratio: float = Field(default=0.6, description="Smallest size ratio eligible for subset containment.")
    duplicate_threshold: float = Field(default=0.85, description="Similarity that must be exceeded to report a pair.")
    shingle_size: int = Field(default=3, description="Tokens per shingle.")

    crawl_page_limit: int = Field(default=50, description="Maximum pages requested from the crawl service.")
    crawl_poll_interval_ms: int = Field(default=2_000, description="Delay between crawl status polls.")
    crawl_timeout_ms: int = Field(default=120_000, description="Wall-clock budget for a crawl job.")
    crawl_max_consecutive_errors: int = Field(default=10, description="Polling errors tolerated in a row.")
    crawl_error_backoff_ms: int = Field(default=3_000, description="Extra wait after a failed poll.")

    @field_validator("duplicate_threshold", "min_size_ratio")
    @classmethod
    def validate_ratio(cls, v: float) -> float:
        if not 0.0 < v < 1.0:
            raise ValueError("must be between 0 and 1 (exclusive)")
        return v

    @field_validator(
        "probe_timeout_ms",
        "min_words",
        "min_shingles",
        "shingle_size",
        "crawl_poll_interval_ms",
        "crawl_timeout_ms",
        "crawl_max_consecutive_errors",
    )
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be positive")
        return v

    @field_validator("crawl_page_limit")
    @classmethod
    def validate_page_limit(cls, v: int) -> int:
        if not 1 <= v <= 100:
            raise ValueError("crawl_page_limit must be between 1 and 100")
        return v

    @field_validator("probes")
    @classmethod
    def validate_probes(cls, v: List[str]) -> List[str]:
        unknown = [name for name in v if name not in DEFAULT_PROBES]
        if unknown:
            raise ValueError(f"Unknown probes: {unknown}. Valid options: {DEFAULT_PROBES}")
        return v

    def timeout_for(self, kind: str) -> float:
        """Deadline in seconds for the named probe."""
        return self.probe_timeouts_ms.get(kind, self.probe_timeout_ms) / 1000.0


class HttpConfig(BaseModel):
    """HTTP client configuration."""

    timeout: float = Field(default=30.0, description="HTTP request timeout in seconds.")
    head_timeout: float = Field(default=5.0, description="Timeout for HEAD existence and redirect probes.")
    user_agent: str = Field(
        default="Mozilla/5.0 (compatible; SiteProbeBot/1.0)",
        description="User-Agent string for HTTP requests.",
    )
    max_concurrency_per_domain: int = Field(default=4, description="Maximum concurrent requests per domain.")
    max_retries: int = Field(default=2, description="Maximum retry attempts for retryable failures.")
    backoff_base: float = Field(default=1.0, description="First retry delay in seconds; doubles per attempt.")


class PageSpeedConfig(BaseModel):
    api_key: Optional[str] = Field(default=None, description="Google PageSpeed Insights API key.")
    endpoint: str = "https://www.googleapis.com/pagespeedonline/v5/runPagespeed"
    timeout: float = Field(default=60.0, description="Per-strategy request timeout in seconds.")
    max_opportunities: int = 10


class CrawlServiceConfig(BaseModel):
    """Multi-page crawl service (Firecrawl-compatible API)."""

    api_key: Optional[str] = None
    base_url: str = "https://api.firecrawl.dev/v1"
    timeout: float = 30.0


class LLMConfig(BaseModel):
    """OpenAI-compatible chat completions endpoint."""

    api_key: Optional[str] = None
    base_url: str = "https://api.openai.com/v1"
    model: str = "gpt-4o-mini"
    temperature: float = 0.3
    timeout: float = 60.0
    max_attempts: int = Field(default=3, description="Attempts for transient failures.")
    max_input_chars: int = Field(default=20_000, description="Longer inputs are truncated before analysis.")
    analysis_timeout: float = Field(
        default=45.0,
        description="Seconds one analysis may take, retries included, before the heuristic is used.",
    )

    @field_validator("temperature")
    @classmethod
    def validate_temperature(cls, v: float) -> float:
        if not 0.0 <= v <= 2.0:
            raise ValueError("temperature must be between 0 and 2")
        return v

    @field_validator("analysis_timeout")
    @classmethod
    def validate_analysis_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("analysis_timeout must be positive")
        return v


class MonitoringConfig(BaseModel):
    """Configuration for logging and metrics."""

    log_level: str = Field(default="INFO", description="Logging level (e.g., DEBUG, INFO, WARNING).")
    log_file: str | None = Field(default=None, description="Path to log file. If None, logs to console.")
    metrics_enabled: bool = True
    prometheus_port: int | None = Field(default=None, description="Port for Prometheus exporter. None to disable.")

    @field_validator("log_file", mode="before")
    @classmethod
    def create_parent_dir(cls, v: str | Path | None) -> str | None:
        if v is None:
            return None
        path = Path(v)
        path.parent.mkdir(parents=True, exist_ok=True)
        return str(path)


# --- Main Configuration Class ---


class Config(BaseSettings):
    project_name: str = "SiteProbe"
    audit: AuditConfig = Field(default_factory=AuditConfig)
    http: HttpConfig = Field(default_factory=HttpConfig)
    pagespeed: PageSpeedConfig = Field(default_factory=PageSpeedConfig)
    crawl_service: CrawlServiceConfig = Field(default_factory=CrawlServiceConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    monitoring: MonitoringConfig = Field(default_factory=MonitoringConfig)

    model_config = SettingsConfigDict(env_prefix="SITEPROBE_", env_nested_delimiter="__", case_sensitive=False)

    @model_validator(mode="after")
    def check_crawl_budget(self) -> Config:
        crawl_deadline = self.audit.probe_timeouts_ms.get("duplicate_content", self.audit.probe_timeout_ms)
        if crawl_deadline < self.audit.crawl_timeout_ms:
            log.warning(
                "duplicate_content probe deadline (%sms) is shorter than crawl_timeout_ms (%sms); "
                "partial crawls will be reported as timeouts",
                crawl_deadline,
                self.audit.crawl_timeout_ms,
            )
        return self

    @model_validator(mode="after")
    def check_analysis_budget(self) -> Config:
        analysis_ms = self.llm.analysis_timeout * 1000
        for kind in ("content_quality", "audit_summary"):
            deadline = self.audit.probe_timeouts_ms.get(kind, self.audit.probe_timeout_ms)
            if analysis_ms >= deadline:
                log.warning(
                    "%s probe deadline (%sms) does not exceed llm.analysis_timeout (%sms); "
                    "slow analyses will be reported as timeouts instead of heuristic results",
                    kind,
                    deadline,
                    int(analysis_ms),
                )
        return self

    @classmethod
    def from_yaml(cls, path: Path) -> Config:
        log.debug("Loading configuration from YAML file: %s", path)
        if not path.is_file():
            raise FileNotFoundError(f"Configuration file not found or is not a file: {path}")
        with open(path, "r", encoding="utf-8") as f:
            yaml_data = yaml.safe_load(f)
        if not yaml_data:
            log.warning("Configuration file is empty: %s. Using default settings.", path)
            return cls.model_validate({})
        return cls.model_validate(yaml_data)
