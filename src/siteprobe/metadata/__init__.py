"""Site metadata analysis: meta tags, structured data, robots.txt and sitemap.xml."""

from .meta_analyzer import analyze_canonical, analyze_description, analyze_title
from .robots_analyzer import AI_BOT_USER_AGENTS, analyze_robots_txt, parse_robots_txt
from .sitemap_analyzer import analyze_sitemap
from .structured_data import SchemaOrgParser, extract_schema_types, schema_section

__all__ = [
    "AI_BOT_USER_AGENTS",
    "SchemaOrgParser",
    "analyze_canonical",
    "analyze_description",
    "analyze_robots_txt",
    "analyze_sitemap",
    "analyze_title",
    "extract_schema_types",
    "parse_robots_txt",
    "schema_section",
]
