"""
Exception hierarchy for SiteProbe.

Only ``FatalFetchError`` ever escapes ``run_audit``. Everything raised by a
collaborator is caught at the probe boundary and recorded as a failed probe.
"""

from __future__ import annotations

from typing import Optional


class SiteProbeError(Exception):
    """Base class for all SiteProbe errors."""


class FatalFetchError(SiteProbeError):
    """The primary page could not be retrieved, so no audit is possible."""

    def __init__(self, url: str, reason: str, status: Optional[int] = None) -> None:
        self.url = url
        self.reason = reason
        self.status = status
        super().__init__(f"Failed to fetch {url}: {reason}")


class CollaboratorError(SiteProbeError):
    """An external collaborator answered with a non-success response or was unreachable."""

    def __init__(self, service: str, message: str, status: Optional[int] = None) -> None:
        self.service = service
        self.status = status
        super().__init__(f"{service}: {message}")


class ConfigurationError(SiteProbeError):
    """A collaborator was invoked without the settings it needs."""
