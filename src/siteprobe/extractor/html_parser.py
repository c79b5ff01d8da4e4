"""
On-page signal extraction from the primary page HTML.

Uses the selectolax lexbor backend for speed; structured data (JSON-LD and
microdata) lives in ``siteprobe.metadata.structured_data`` and uses BeautifulSoup.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

import structlog
from selectolax.lexbor import LexborHTMLParser, LexborNode

from siteprobe.protocols import Hreflang

logger = structlog.get_logger(__name__)

_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class ParsedPage:
    """Everything the report needs from the primary page markup."""

    title: str = ""
    description: str = ""
    h1: Optional[str] = None
    canonical: Optional[str] = None
    robots: Optional[str] = None
    lang: Optional[str] = None
    viewport: bool = False
    hreflangs: Tuple[Hreflang, ...] = ()
    images_total: int = 0
    images_missing_alt: int = 0

    @property
    def has_noindex(self) -> bool:
        return bool(self.robots) and "noindex" in self.robots.lower()


def _clean(text: Optional[str]) -> str:
    if not text:
        return ""
    return _WHITESPACE.sub(" ", text).strip()


def _meta_content(tree: LexborHTMLParser, name: str) -> Optional[str]:
    for node in tree.css("meta[name]"):
        if (node.attributes.get("name") or "").strip().lower() == name:
            content = node.attributes.get("content")
            return _clean(content) or None
    return None


def _link_rel(node: LexborNode) -> List[str]:
    return (node.attributes.get("rel") or "").lower().split()


def parse_html(html: str) -> ParsedPage:
    """Parse ``html``; malformed markup yields whatever could be recovered."""
    if not html or not html.strip():
        return ParsedPage()

    tree = LexborHTMLParser(html)

    title_node = tree.css_first("title")
    title = _clean(title_node.text()) if title_node else ""

    h1_node = tree.css_first("h1")
    h1 = _clean(h1_node.text()) if h1_node else ""

    canonical: Optional[str] = None
    hreflangs: List[Hreflang] = []
    for link in tree.css("link[rel]"):
        rel = _link_rel(link)
        href = (link.attributes.get("href") or "").strip()
        if "canonical" in rel and canonical is None and href:
            canonical = href
        elif "alternate" in rel and href:
            hreflang = (link.attributes.get("hreflang") or "").strip()
            if hreflang:
                hreflangs.append(Hreflang(lang=hreflang, url=href))

    html_node = tree.css_first("html")
    lang = ((html_node.attributes.get("lang") or "").strip() or None) if html_node else None
    viewport = any((n.attributes.get("name") or "").strip().lower() == "viewport" for n in tree.css("meta[name]"))

    images = tree.css("img")
    missing_alt = sum(1 for img in images if not (img.attributes.get("alt") or "").strip())

    return ParsedPage(
        title=title,
        description=_meta_content(tree, "description") or "",
        h1=h1 or None,
        canonical=canonical,
        robots=_meta_content(tree, "robots"),
        lang=lang,
        viewport=viewport,
        hreflangs=tuple(hreflangs),
        images_total=len(images),
        images_missing_alt=missing_alt,
    )
