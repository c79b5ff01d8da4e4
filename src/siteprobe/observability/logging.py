"""
Configures structured logging for SiteProbe using structlog.
"""
from __future__ import annotations

import logging
import sys
import uuid
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Dict, Iterator, List

import structlog

if TYPE_CHECKING:
    from siteprobe.config.config import MonitoringConfig

# --- Custom Processors ---


def add_audit_id(logger: logging.Logger, method_name: str, event_dict: Dict[Any, Any]) -> Dict[Any, Any]:
    """
    Adds the audit_id bound by ``audit_context`` to every record emitted
    while an audit is in flight.
    """
    ctx = structlog.contextvars.get_contextvars()
    if "audit_id" in ctx:
        event_dict["audit_id"] = ctx["audit_id"]
    return event_dict


@contextmanager
def audit_context(url: str) -> Iterator[str]:
    """Bind a fresh audit_id and the audited URL for the duration of the block."""
    audit_id = uuid.uuid4().hex[:12]
    tokens = structlog.contextvars.bind_contextvars(audit_id=audit_id, audit_url=url)
    try:
        yield audit_id
    finally:
        structlog.contextvars.reset_contextvars(**tokens)


# --- Configuration ---


def configure_logging(config: MonitoringConfig) -> None:
    """
    Sets up structlog to handle all logging for the application.
    """
    shared_processors: List[Any] = [
        structlog.contextvars.merge_contextvars,
        add_audit_id,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    log_renderer: Any
    if config.log_file:
        # Structured JSON for files
        log_renderer = structlog.processors.JSONRenderer()
        handler: logging.Handler = logging.FileHandler(config.log_file)
    else:
        log_renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())
        handler = logging.StreamHandler(sys.stdout)

    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                log_renderer,
            ],
        )
    )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(config.log_level.upper())

    structlog.configure(
        processors=shared_processors
        + [
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    structlog.get_logger(__name__).info(
        "Logging configured", log_level=config.log_level, log_file=config.log_file
    )
