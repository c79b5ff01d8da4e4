"""
URL-variant consistency: www, trailing slash and HTTP to HTTPS redirects.

Each variant pair is requested with HEAD without following redirects. Both
variants answering 200 means the same content is served twice.
"""

from __future__ import annotations

from urllib.parse import urlparse

import structlog

from siteprobe.crawler.http_client import HttpClient
from siteprobe.protocols import ProbeKind, UrlVariantSection, VariantVerdict
from siteprobe.recovery import Ok, settle_all

from .base import Probe, ProbeContext

logger = structlog.get_logger(__name__)


def pair_verdict(first: int, second: int) -> VariantVerdict:
    if first == 200 and second == 200:
        return VariantVerdict.DUPLICATE
    return VariantVerdict.OK


class UrlVariantsProbe(Probe):
    kind = ProbeKind.URL_VARIANTS

    def __init__(self, client: HttpClient) -> None:
        self.client = client

    def default(self) -> UrlVariantSection:
        return UrlVariantSection()

    async def _pair(self, first_url: str, second_url: str) -> VariantVerdict:
        first, second = await settle_all([self.client.head_status(first_url), self.client.head_status(second_url)])
        if not (isinstance(first, Ok) and isinstance(second, Ok)):
            logger.info("Variant request failed", first=first_url, second=second_url)
            return VariantVerdict.ERROR
        return pair_verdict(first.value, second.value)

    async def www_redirect(self, url: str) -> VariantVerdict:
        parts = urlparse(url)
        host = parts.hostname or ""
        bare = host[4:] if host.startswith("www.") else host
        port = f":{parts.port}" if parts.port else ""
        tail = parts.path + (f"?{parts.query}" if parts.query else "")
        return await self._pair(
            f"{parts.scheme}://www.{bare}{port}{tail}",
            f"{parts.scheme}://{bare}{port}{tail}",
        )

    async def trailing_slash(self, url: str) -> VariantVerdict:
        parts = urlparse(url)
        if not parts.path or parts.path == "/":
            return VariantVerdict.OK
        stem = parts.path.rstrip("/")
        query = f"?{parts.query}" if parts.query else ""
        origin = f"{parts.scheme}://{parts.netloc}"
        return await self._pair(f"{origin}{stem}/{query}", f"{origin}{stem}{query}")

    async def http_redirect(self, url: str) -> VariantVerdict:
        parts = urlparse(url)
        if parts.scheme != "https":
            return VariantVerdict.OK
        http_url = parts._replace(scheme="http").geturl()
        try:
            status = await self.client.head_status(http_url)
        except Exception as e:
            # An HTTP endpoint that does not answer means the site is HTTPS only
            logger.info("HTTP variant unreachable", url=http_url, error=str(e))
            return VariantVerdict.OK
        if status == 200:
            return VariantVerdict.DUPLICATE
        return VariantVerdict.OK

    async def run(self, context: ProbeContext) -> UrlVariantSection:
        www, slash, http = await settle_all(
            [self.www_redirect(context.url), self.trailing_slash(context.url), self.http_redirect(context.url)]
        )
        section = UrlVariantSection(
            www_redirect=www.value if isinstance(www, Ok) else VariantVerdict.ERROR,
            trailing_slash=slash.value if isinstance(slash, Ok) else VariantVerdict.ERROR,
            http_redirect=http.value if isinstance(http, Ok) else VariantVerdict.ERROR,
        )
        logger.info(
            "URL variants checked",
            www=section.www_redirect.value,
            trailing_slash=section.trailing_slash.value,
            http=section.http_redirect.value,
        )
        return section
