"""
Whole-audit summary, run after every first-phase probe has settled.
"""

from __future__ import annotations

from typing import Optional

import structlog

from siteprobe.analysis.heuristics import heuristic_audit_summary
from siteprobe.analysis.prompts import AUDIT_SYSTEM_PROMPT, audit_prompt
from siteprobe.analysis.runner import run_analysis
from siteprobe.config.config import LLMConfig
from siteprobe.protocols import AnalysisMethod, AuditAnalysis, AuditFacts, ProbeKind, TextAnalyzer

from .base import Probe

logger = structlog.get_logger(__name__)


class AuditSummaryProbe(Probe):
    kind = ProbeKind.AUDIT_SUMMARY

    def __init__(self, analyzer: Optional[TextAnalyzer], config: Optional[LLMConfig] = None) -> None:
        self.analyzer = analyzer
        self.config = config or LLMConfig()

    def default(self) -> Optional[AuditAnalysis]:
        return None

    async def run(self, context: AuditFacts) -> AuditAnalysis:
        attempt = await run_analysis(
            self.analyzer,
            AUDIT_SYSTEM_PROMPT,
            audit_prompt(context),
            name="audit_summary",
            timeout=self.config.analysis_timeout,
        )
        if attempt.payload is None:
            analysis = heuristic_audit_summary(context, attempt.fallback_reason)
        else:
            payload = attempt.payload
            analysis = AuditAnalysis(
                score=payload.score,
                summary=payload.summary,
                issues=payload.issues,
                recommendations=payload.recommendations,
                strengths=payload.strengths,
                quick_wins=payload.quick_wins,
                method=AnalysisMethod.AI,
            )
        logger.info("Audit summary ready", score=analysis.score, method=analysis.method.value)
        return analysis
