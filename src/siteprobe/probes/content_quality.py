"""
llms.txt content quality, analysed by the text-analysis collaborator with a
local heuristic fallback.
"""

from __future__ import annotations

from typing import Optional

import structlog

from siteprobe.analysis.heuristics import heuristic_llms_analysis
from siteprobe.analysis.prompts import LLMS_SYSTEM_PROMPT, llms_prompt
from siteprobe.analysis.runner import run_analysis
from siteprobe.config.config import LLMConfig
from siteprobe.crawler.http_client import HttpClient
from siteprobe.crawler.page_fetcher import decode_body
from siteprobe.errors import CollaboratorError
from siteprobe.protocols import AnalysisMethod, ContentQuality, ProbeKind, TextAnalyzer

from .base import Probe, ProbeContext

logger = structlog.get_logger(__name__)

ADD_LLMS_TXT = "Add an llms.txt file to help AI systems understand your content structure."

NOT_FOUND = ContentQuality(
    summary="llms.txt not found",
    missing_sections=("llms.txt missing",),
    recommendations=(ADD_LLMS_TXT,),
)

EMPTY = ContentQuality(
    summary="llms.txt file is empty",
    missing_sections=("llms.txt is empty",),
    recommendations=("llms.txt exists but is empty. Add content to help AI systems understand your site.",),
)


class ContentQualityProbe(Probe):
    kind = ProbeKind.CONTENT_QUALITY

    def __init__(self, client: HttpClient, analyzer: Optional[TextAnalyzer], config: LLMConfig) -> None:
        self.client = client
        self.analyzer = analyzer
        self.config = config

    def default(self) -> ContentQuality:
        return ContentQuality()

    async def analyze(self, content: str) -> ContentQuality:
        attempt = await run_analysis(
            self.analyzer,
            LLMS_SYSTEM_PROMPT,
            llms_prompt(content, self.config.max_input_chars),
            name="llms_txt",
            timeout=self.config.analysis_timeout,
        )
        if attempt.payload is None:
            return heuristic_llms_analysis(content, attempt.fallback_reason)

        payload = attempt.payload
        return ContentQuality(
            present=True,
            score=payload.score,
            summary=payload.summary,
            missing_sections=payload.issues,
            recommendations=payload.recommendations,
            method=AnalysisMethod.AI,
        )

    async def run(self, context: ProbeContext) -> ContentQuality:
        url = f"{context.base_url}/llms.txt"
        response = await self.client.fetch(url)
        if response.status == 0:
            raise CollaboratorError("llms.txt", response.error or "no response", status=0)
        if not response.ok:
            logger.info("llms.txt not found", url=url, status=response.status)
            return NOT_FOUND

        content = decode_body(response)
        if not content.strip():
            return EMPTY

        quality = await self.analyze(content)
        logger.info("llms.txt analysed", score=quality.score, method=quality.method.value, chars=len(content))
        return quality
