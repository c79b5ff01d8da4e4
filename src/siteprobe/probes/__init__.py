"""Independent audit checks and the guard that settles them."""

from .audit_summary import AuditSummaryProbe
from .base import Probe, ProbeContext, guard_probe
from .content_quality import ContentQualityProbe
from .duplicate_content import DuplicateContentProbe
from .files import FilesProbe
from .performance import PerformanceProbe, parse_pagespeed
from .structured_data import StructuredDataProbe
from .url_variants import UrlVariantsProbe

__all__ = [
    "AuditSummaryProbe",
    "ContentQualityProbe",
    "DuplicateContentProbe",
    "FilesProbe",
    "PerformanceProbe",
    "Probe",
    "ProbeContext",
    "StructuredDataProbe",
    "UrlVariantsProbe",
    "guard_probe",
    "parse_pagespeed",
]
