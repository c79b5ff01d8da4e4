"""
SiteProbe - concurrent website audits for search and AI discoverability.
"""

from siteprobe.config import Config
from siteprobe.errors import CollaboratorError, ConfigurationError, FatalFetchError, SiteProbeError
from siteprobe.orchestrator import AuditOrchestrator, run_audit
from siteprobe.protocols import AuditReport, ProbeKind, ProbeStatus
from siteprobe.report import report_to_dict

__version__ = "0.1.0"

__all__ = [
    "AuditOrchestrator",
    "AuditReport",
    "CollaboratorError",
    "Config",
    "ConfigurationError",
    "FatalFetchError",
    "ProbeKind",
    "ProbeStatus",
    "SiteProbeError",
    "report_to_dict",
    "run_audit",
]
