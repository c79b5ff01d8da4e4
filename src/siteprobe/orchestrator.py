"""
Audit orchestration: one fatal fetch, a concurrent fan-out of guarded probes,
a second-phase summary, and a single report assembly.
"""

from __future__ import annotations

import asyncio
import time
from typing import Dict, List, Optional, Sequence

import structlog

from siteprobe.config.config import AuditConfig, Config
from siteprobe.errors import CollaboratorError, FatalFetchError
from siteprobe.extractor.html_parser import parse_html
from siteprobe.observability import audit_context, increment, observe
from siteprobe.probes.audit_summary import AuditSummaryProbe
from siteprobe.probes.base import Probe, ProbeContext, guard_probe
from siteprobe.protocols import AuditReport, PageFetcher, ProbeKind, ProbeResult, ProbeStatus
from siteprobe.recovery import Ok, settle_all
from siteprobe.report import ReportAssembler

logger = structlog.get_logger(__name__)


def normalize_url(url: str) -> str:
    """Trim and default the scheme to https."""
    trimmed = url.strip()
    if trimmed.startswith(("http://", "https://")):
        return trimmed
    return f"https://{trimmed}"


class AuditOrchestrator:
    """
    Runs a complete audit.

    Only the primary page fetch is fatal. Every probe is time-boxed and
    settles into a ProbeResult; the orchestrator waits for all of them before
    assembling the report, so a failing probe never affects its siblings.
    """

    def __init__(
        self,
        fetcher: PageFetcher,
        probes: Sequence[Probe],
        summary_probe: Optional[AuditSummaryProbe] = None,
        assembler: Optional[ReportAssembler] = None,
    ) -> None:
        self.fetcher = fetcher
        self.probes = list(probes)
        self.summary_probe = summary_probe
        self.assembler = assembler or ReportAssembler()

    def _selected(self, config: AuditConfig) -> List[Probe]:
        wanted = set(config.probes)
        return [probe for probe in self.probes if probe.kind.value in wanted]

    async def run_audit(self, url: str, config: AuditConfig) -> AuditReport:
        """
        Audit ``url`` and return the fully populated report.

        Raises:
            FatalFetchError: the primary page could not be retrieved.
        """
        normalized = normalize_url(url)
        start = time.perf_counter()

        with audit_context(normalized):
            logger.info("Audit started", url=normalized, probes=config.probes)
            try:
                page = await self.fetcher.fetch(normalized)
            except CollaboratorError as e:
                increment("audits_total", labels={"outcome": "fatal"})
                logger.error("Primary page fetch failed", url=normalized, error=str(e))
                raise FatalFetchError(normalized, str(e), status=e.status) from e
            except Exception as e:
                increment("audits_total", labels={"outcome": "fatal"})
                logger.error("Primary page fetch crashed", url=normalized, error=str(e), exc_info=True)
                raise FatalFetchError(normalized, f"{type(e).__name__}: {e}") from e

            parsed = await asyncio.to_thread(parse_html, page.html)
            context = ProbeContext(url=normalized, page=page, parsed=parsed, config=config)
            probes = self._selected(config)

            settled = await settle_all(
                [
                    guard_probe(probe.kind, probe.default(), probe.run(context), config.timeout_for(probe.kind.value))
                    for probe in probes
                ]
            )
            results: Dict[ProbeKind, ProbeResult] = {}
            for probe, outcome in zip(probes, settled):
                if isinstance(outcome, Ok):
                    results[probe.kind] = outcome.value
                else:
                    results[probe.kind] = ProbeResult(
                        kind=probe.kind,
                        status=ProbeStatus.FAILED,
                        value=probe.default(),
                        failure_reason=f"{type(outcome.error).__name__}: {outcome.error}",
                    )

            facts = self.assembler.facts(normalized, page, parsed, results)

            summary: Optional[ProbeResult] = None
            if config.summary_enabled and self.summary_probe is not None:
                summary_probe = self.summary_probe
                summary = await guard_probe(
                    summary_probe.kind,
                    summary_probe.default(),
                    summary_probe.run(facts),
                    config.timeout_for(summary_probe.kind.value),
                )

            report = self.assembler.assemble(facts, results, summary)

            duration = time.perf_counter() - start
            failed = [kind.value for kind in report.failed_probes]
            increment("audits_total", labels={"outcome": "degraded" if failed else "complete"})
            observe("audit_duration_seconds", duration)
            logger.info(
                "Audit completed",
                url=normalized,
                duration_s=round(duration, 2),
                failed_probes=failed,
                duplicates_found=report.duplicates.duplicates_found,
            )
            return report


async def run_audit(url: str, config: Optional[Config] = None) -> AuditReport:
    """Audit ``url`` with collaborators built from ``config``."""
    # Local import: the container imports this module
    from siteprobe.container import AuditContainer

    config = config or Config()
    async with AuditContainer(config) as container:
        return await container.orchestrator.run_audit(url, config.audit)
