"""HTTP access: the shared client, the primary page fetcher and the crawl service."""

from .http_client import CrawlerResponse, HttpClient
from .page_fetcher import HttpPageFetcher, decode_body
from .site_crawler import CrawlServiceClient, harvest_pages, parse_documents

__all__ = [
    "CrawlServiceClient",
    "CrawlerResponse",
    "HttpClient",
    "HttpPageFetcher",
    "decode_body",
    "harvest_pages",
    "parse_documents",
]
