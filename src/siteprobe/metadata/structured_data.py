"""
Schema.org type detection from JSON-LD and Microdata.

Extracts every declared ``@type`` (including list-valued types and ``@graph``
members) and every Microdata ``itemtype``, then maps them onto the schema
flags reported by an audit.
"""

from __future__ import annotations

import json
from typing import Any, Iterable, List, Set

import structlog
from bs4 import BeautifulSoup

from siteprobe.protocols import SchemaSection

logger = structlog.get_logger(__name__)

# Flag -> lowercase schema.org types that satisfy it
SCHEMA_FLAGS = {
    "has_medical_org": ("medicalorganization", "hospital", "medicalclinic", "dentist"),
    "has_physician": ("physician", "doctor"),
    "has_medical_procedure": ("medicalprocedure", "therapeuticprocedure", "diagnosticprocedure"),
    "has_local_business": ("localbusiness", "medicalbusiness", "healthandbeautybusiness"),
    "has_faq_page": ("faqpage",),
    "has_review": ("review", "aggregaterating"),
    "has_medical_specialty": ("medicalspecialty",),
    "has_breadcrumb_list": ("breadcrumblist",),
}


class SchemaOrgParser:
    """Collects schema.org type names from a document."""

    @staticmethod
    def parse_json_ld(soup: BeautifulSoup) -> List[Any]:
        """Decoded JSON-LD blocks; invalid blocks are skipped."""
        blocks: List[Any] = []
        for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
            json_text = script.get_text().strip()
            if not json_text:
                continue
            try:
                blocks.append(json.loads(json_text))
            except json.JSONDecodeError as e:
                logger.debug("Invalid JSON-LD block", error=str(e))
        return blocks

    @staticmethod
    def json_ld_types(data: Any) -> Set[str]:
        found: Set[str] = set()

        def visit(node: Any) -> None:
            if isinstance(node, list):
                for item in node:
                    visit(item)
            elif isinstance(node, dict):
                declared = node.get("@type")
                if declared:
                    for value in declared if isinstance(declared, list) else [declared]:
                        found.add(_type_name(str(value)))
                graph = node.get("@graph")
                if isinstance(graph, list):
                    for item in graph:
                        visit(item)

        visit(data)
        return found

    @staticmethod
    def microdata_types(soup: BeautifulSoup) -> Set[str]:
        found: Set[str] = set()
        for item in soup.find_all(attrs={"itemtype": True}):
            for value in str(item.get("itemtype", "")).split():
                found.add(_type_name(value))
        return found


def _type_name(value: str) -> str:
    """``https://schema.org/Physician`` and ``schema:Physician`` both become ``physician``."""
    name = value.strip().rstrip("/")
    for separator in ("/", ":", "#"):
        if separator in name:
            name = name.rsplit(separator, 1)[-1]
    return name.lower()


def extract_schema_types(html: str) -> Set[str]:
    if not html or not html.strip():
        return set()
    soup = BeautifulSoup(html, "html.parser")
    types: Set[str] = set()
    for block in SchemaOrgParser.parse_json_ld(soup):
        types |= SchemaOrgParser.json_ld_types(block)
    types |= SchemaOrgParser.microdata_types(soup)
    types.discard("")
    return types


def schema_section(types: Iterable[str]) -> SchemaSection:
    """Map detected type names onto report flags."""
    lowered = {t.lower() for t in types}
    flags = {flag: any(t in lowered for t in candidates) for flag, candidates in SCHEMA_FLAGS.items()}
    return SchemaSection(types=tuple(sorted(lowered)), **flags)
