"""
Schema.org markup detection on the primary page.
"""

from __future__ import annotations

import asyncio

import structlog

from siteprobe.metadata.structured_data import extract_schema_types, schema_section
from siteprobe.protocols import ProbeKind, SchemaSection

from .base import Probe, ProbeContext

logger = structlog.get_logger(__name__)


class StructuredDataProbe(Probe):
    kind = ProbeKind.STRUCTURED_DATA

    def default(self) -> SchemaSection:
        return SchemaSection()

    async def run(self, context: ProbeContext) -> SchemaSection:
        # BeautifulSoup parsing is CPU bound; keep it off the event loop
        types = await asyncio.to_thread(extract_schema_types, context.page.html)
        section = schema_section(types)
        if not types:
            logger.info("No schema.org types found", url=context.url)
        else:
            logger.info("Schema.org types found", url=context.url, types=sorted(types))
        return section
