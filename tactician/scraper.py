"""
Strategy Scraper - fetches strategy guides from trusted sites.

Policy, in order:
    1. Host must be on the allowlist (checked before any network call)
    2. Cached copies are served for cache_ttl seconds
    3. robots.txt is honored; if it cannot be fetched the page is allowed
    4. A fixed minimum interval separates successive fetches, whatever the host
"""

import asyncio
import logging
import re
import time
from typing import Dict, Iterable, Optional
from urllib.parse import urlsplit
from urllib.robotparser import RobotFileParser

import httpx
import lxml.html
from lxml import etree

from config.constants import (
    CACHE_TTL_SECONDS,
    SCRAPE_MAX_CONTENT_CHARS,
    SCRAPE_MAX_TIPS,
    SCRAPE_MIN_INTERVAL_SECONDS,
    SCRAPE_TIMEOUT_SECONDS,
    SCRAPER_USER_AGENT,
    TRUSTED_SOURCES,
)

from .cache import TextCache
from .errors import ScrapeError, UntrustedSourceError
from .models import ScrapedContent

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Evony Strategy"
TIP_MIN_CHARS = 20
TIP_MAX_CHARS = 500

_WS_RE = re.compile(r"\s+")


def is_trusted_url(url: str, trusted_sources: Iterable[str] = TRUSTED_SOURCES) -> bool:
    """True if url is http(s) on an allowlisted domain or one of its subdomains."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return False
    if parts.scheme not in ("http", "https"):
        return False
    host = (parts.hostname or "").lower()
    if not host:
        return False
    return any(host == d or host.endswith("." + d) for d in (s.lower() for s in trusted_sources))


def extract_content(html: str, url: str) -> ScrapedContent:
    """Title, main text excerpt and list-item tips from a strategy page."""
    try:
        doc = lxml.html.document_fromstring(html)
    except (etree.ParserError, ValueError) as e:
        raise ScrapeError(f"Unparseable page {url}: {e}") from e

    for element in doc.xpath("//script | //style | //nav | //footer"):
        element.drop_tree()

    title = ""
    for h1 in doc.xpath("//h1"):
        title = _clean(h1.text_content())
        break
    if not title:
        title = _clean(doc.findtext(".//title") or "") or DEFAULT_TITLE

    containers = doc.xpath(
        "//article | //main"
        " | //*[contains(concat(' ', normalize-space(@class), ' '), ' content ')]"
    )
    content = _clean(containers[0].text_content()) if containers else ""
    if not content:
        body = doc.find("body")
        content = _clean((body if body is not None else doc).text_content())

    tips = []
    for li in doc.xpath("//ul/li | //ol/li"):
        tip = _clean(li.text_content())
        if TIP_MIN_CHARS < len(tip) < TIP_MAX_CHARS:
            tips.append(tip)

    return ScrapedContent(
        title=title,
        content=content[:SCRAPE_MAX_CONTENT_CHARS],
        tips=tuple(tips[:SCRAPE_MAX_TIPS]),
        url=url,
    )


def _clean(text: str) -> str:
    return _WS_RE.sub(" ", text).strip()


class StrategyScraper:
    """
    Polite async fetcher for strategy pages.

    Usage:
        async with StrategyScraper(TextCache()) as scraper:
            page = await scraper.fetch("https://evonyguidewiki.com/en/troops/")
    """

    def __init__(
        self,
        cache: TextCache,
        client: Optional[httpx.AsyncClient] = None,
        trusted_sources: Iterable[str] = TRUSTED_SOURCES,
        min_interval: float = SCRAPE_MIN_INTERVAL_SECONDS,
        cache_ttl: float = CACHE_TTL_SECONDS,
        user_agent: str = SCRAPER_USER_AGENT,
        timeout: float = SCRAPE_TIMEOUT_SECONDS,
    ):
        self.cache = cache
        self.trusted_sources = list(trusted_sources)
        self.min_interval = min_interval
        self.cache_ttl = cache_ttl
        self.user_agent = user_agent

        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=timeout, follow_redirects=True)

        self._lock = asyncio.Lock()
        self._last_request: Optional[float] = None
        self._robots: Dict[str, Optional[RobotFileParser]] = {}

    def is_trusted(self, url: str) -> bool:
        return is_trusted_url(url, self.trusted_sources)

    async def fetch(self, url: str) -> ScrapedContent:
        """
        Fetch and extract one strategy page.

        Raises:
            UntrustedSourceError: Host is not on the allowlist
            ScrapeError: robots.txt disallows the page or the request failed
        """
        if not self.is_trusted(url):
            raise UntrustedSourceError(f"Untrusted source: {url}")

        cache_key = f"scrape:{url}"
        cached = self.cache.get(cache_key, ttl=self.cache_ttl)
        if cached is not None:
            logger.debug(f"Scrape cache hit: {url}")
            return cached

        if not await self._robots_allowed(url):
            raise ScrapeError(f"Blocked by robots.txt: {url}")

        html = await self._get(url)
        result = extract_content(html, url)
        self.cache.set(cache_key, result)
        logger.info(f"Scraped {url}: '{result.title}' ({len(result.tips)} tips)")
        return result

    async def _get(self, url: str) -> str:
        async with self._lock:
            await self._enforce_rate_limit()
            try:
                response = await self.client.get(url, headers={"User-Agent": self.user_agent})
            except httpx.HTTPError as e:
                raise ScrapeError(f"Request failed for {url}: {e}") from e

        if response.status_code >= 400:
            raise ScrapeError(f"HTTP {response.status_code} for {url}")
        return response.text

    async def _enforce_rate_limit(self) -> None:
        if self._last_request is not None:
            wait = self.min_interval - (time.monotonic() - self._last_request)
            if wait > 0:
                await asyncio.sleep(wait)
        self._last_request = time.monotonic()

    async def _robots_allowed(self, url: str) -> bool:
        parts = urlsplit(url)
        origin = f"{parts.scheme}://{parts.netloc}"

        if origin not in self._robots:
            self._robots[origin] = await self._load_robots(origin)

        parser = self._robots[origin]
        if parser is None:
            return True
        return parser.can_fetch(self.user_agent, url)

    async def _load_robots(self, origin: str) -> Optional[RobotFileParser]:
        robots_url = f"{origin}/robots.txt"
        try:
            response = await self.client.get(robots_url, headers={"User-Agent": self.user_agent})
        except httpx.HTTPError as e:
            logger.debug(f"robots.txt unavailable at {robots_url}: {e}")
            return None

        if response.status_code != 200:
            return None

        parser = RobotFileParser(robots_url)
        parser.parse(response.text.splitlines())
        return parser

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self) -> "StrategyScraper":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()
