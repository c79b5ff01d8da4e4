"""HTML parsing for the primary page."""

from .html_parser import ParsedPage, parse_html

__all__ = ["ParsedPage", "parse_html"]
