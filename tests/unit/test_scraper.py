"""
Unit tests for tactician/scraper.py - StrategyScraper with httpx.MockTransport
"""
import time

import httpx
import pytest

from tactician.cache import TextCache
from tactician.errors import ScrapeError, UntrustedSourceError
from tactician.models import ScrapedContent
from tactician.scraper import StrategyScraper, extract_content, is_trusted_url

GUIDE_URL = "https://evonyguidewiki.com/en/troops/"

GUIDE_HTML = """
<html>
  <head><title>Troops - Evony Guide Wiki</title><script>var x = 1;</script></head>
  <body>
    <nav><ul><li>Home page navigation link here</li></ul></nav>
    <h1>  Troop   Counters </h1>
    <article>
      <p>Ground beats Mounted.</p>
      <p>Ranged beats Ground.</p>
      <ul>
        <li>Lead with T14 Ground against Mounted-heavy attackers.</li>
        <li>short</li>
        <li>Keep Siege behind the wall when defending the keep.</li>
      </ul>
    </article>
    <footer><ul><li>Copyright notice for the whole site</li></ul></footer>
  </body>
</html>
"""


class _Site:
    """Request recorder backing a MockTransport."""

    def __init__(self, pages=None, robots=None, robots_status=200):
        self.pages = pages or {}
        self.robots = robots
        self.robots_status = robots_status
        self.requests = []
        self.page_times = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == "/robots.txt":
            if self.robots is None:
                return httpx.Response(404)
            return httpx.Response(self.robots_status, text=self.robots)
        self.page_times.append(time.monotonic())
        url = str(request.url)
        if url not in self.pages:
            return httpx.Response(404, text="not found")
        status, body = self.pages[url]
        return httpx.Response(status, text=body)


def _scraper(site, **kwargs):
    client = httpx.AsyncClient(transport=httpx.MockTransport(site))
    kwargs.setdefault("min_interval", 0)
    return StrategyScraper(TextCache(), client=client, **kwargs)


class TestTrustedUrl:

    @pytest.mark.parametrize("url", [
        "https://evonyguidewiki.com/en/troops/",
        "http://www.gamerempire.net/evony",
        "https://EN.MrGuider.org/evony-tips",
    ])
    def test_trusted(self, url):
        assert is_trusted_url(url)

    @pytest.mark.parametrize("url", [
        "https://evil.example.com/",
        "https://evonyguidewiki.com.evil.net/",
        "https://notevonyguidewiki.com/",
        "ftp://evonyguidewiki.com/file",
        "evonyguidewiki.com/en/troops",
        "",
    ])
    def test_untrusted(self, url):
        assert not is_trusted_url(url)


class TestExtractContent:

    def test_extracts_title_content_and_tips(self):
        page = extract_content(GUIDE_HTML, GUIDE_URL)

        assert page.title == "Troop Counters"
        assert page.content.startswith("Ground beats Mounted. Ranged beats Ground.")
        assert "var x" not in page.content
        assert page.tips == (
            "Lead with T14 Ground against Mounted-heavy attackers.",
            "Keep Siege behind the wall when defending the keep.",
        )
        assert page.url == GUIDE_URL

    def test_title_falls_back_to_title_tag(self):
        page = extract_content("<html><head><title>Tips</title></head><body><p>x</p></body></html>", GUIDE_URL)
        assert page.title == "Tips"

    def test_default_title_and_body_content(self):
        page = extract_content("<html><body><p>Just   a body</p></body></html>", GUIDE_URL)

        assert page.title == "Evony Strategy"
        assert page.content == "Just a body"
        assert page.tips == ()

    def test_content_and_tips_are_capped(self):
        items = "".join(f"<li>Tip number {i} with enough characters</li>" for i in range(30))
        html = f"<html><body><main>{'word ' * 2000}</main><ul>{items}</ul></body></html>"

        page = extract_content(html, GUIDE_URL)

        assert len(page.content) == 5000
        assert len(page.tips) == 15

    def test_empty_document(self):
        with pytest.raises(ScrapeError):
            extract_content("", GUIDE_URL)


class TestFetch:

    @pytest.mark.asyncio
    async def test_untrusted_host_makes_no_request(self):
        site = _Site()
        scraper = _scraper(site)

        with pytest.raises(UntrustedSourceError):
            await scraper.fetch("https://evil.example.com/guide")

        assert site.requests == []
        await scraper.client.aclose()

    @pytest.mark.asyncio
    async def test_fetch_and_cache(self):
        site = _Site(pages={GUIDE_URL: (200, GUIDE_HTML)})
        scraper = _scraper(site)

        first = await scraper.fetch(GUIDE_URL)
        second = await scraper.fetch(GUIDE_URL)

        assert isinstance(first, ScrapedContent)
        assert second == first
        assert len(site.page_times) == 1
        assert scraper.cache.get(f"scrape:{GUIDE_URL}") == first
        await scraper.client.aclose()

    @pytest.mark.asyncio
    async def test_sends_user_agent(self):
        site = _Site(pages={GUIDE_URL: (200, GUIDE_HTML)})
        scraper = _scraper(site, user_agent="TestBot/2.0")

        await scraper.fetch(GUIDE_URL)

        assert all(r.headers["User-Agent"] == "TestBot/2.0" for r in site.requests)
        await scraper.client.aclose()

    @pytest.mark.asyncio
    async def test_expired_cache_refetches(self):
        site = _Site(pages={GUIDE_URL: (200, GUIDE_HTML)})
        clock = [1000.0]
        client = httpx.AsyncClient(transport=httpx.MockTransport(site))
        scraper = StrategyScraper(
            TextCache(clock=lambda: clock[0]), client=client, min_interval=0, cache_ttl=60
        )

        await scraper.fetch(GUIDE_URL)
        clock[0] += 61
        await scraper.fetch(GUIDE_URL)

        assert len(site.page_times) == 2
        await client.aclose()

    @pytest.mark.asyncio
    async def test_robots_disallow(self):
        site = _Site(
            pages={GUIDE_URL: (200, GUIDE_HTML)},
            robots="User-agent: *\nDisallow: /en/\n",
        )
        scraper = _scraper(site)

        with pytest.raises(ScrapeError, match="robots"):
            await scraper.fetch(GUIDE_URL)

        assert site.page_times == []
        await scraper.client.aclose()

    @pytest.mark.asyncio
    async def test_robots_allows_other_paths(self):
        site = _Site(
            pages={GUIDE_URL: (200, GUIDE_HTML)},
            robots="User-agent: *\nDisallow: /admin/\n",
        )
        scraper = _scraper(site)

        page = await scraper.fetch(GUIDE_URL)

        assert page.title == "Troop Counters"
        await scraper.client.aclose()

    @pytest.mark.asyncio
    async def test_missing_robots_allows(self):
        site = _Site(pages={GUIDE_URL: (200, GUIDE_HTML)}, robots=None)
        scraper = _scraper(site)

        page = await scraper.fetch(GUIDE_URL)

        assert page.title == "Troop Counters"
        await scraper.client.aclose()

    @pytest.mark.asyncio
    async def test_robots_fetched_once_per_origin(self):
        other = "https://evonyguidewiki.com/en/buildings/"
        site = _Site(pages={GUIDE_URL: (200, GUIDE_HTML), other: (200, GUIDE_HTML)})
        scraper = _scraper(site)

        await scraper.fetch(GUIDE_URL)
        await scraper.fetch(other)

        robots_requests = [r for r in site.requests if r.url.path == "/robots.txt"]
        assert len(robots_requests) == 1
        await scraper.client.aclose()

    @pytest.mark.asyncio
    async def test_http_error_status(self):
        site = _Site(pages={GUIDE_URL: (503, "maintenance")})
        scraper = _scraper(site)

        with pytest.raises(ScrapeError, match="503"):
            await scraper.fetch(GUIDE_URL)

        assert scraper.cache.get(f"scrape:{GUIDE_URL}") is None
        await scraper.client.aclose()

    @pytest.mark.asyncio
    async def test_network_error(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(refuse))
        scraper = StrategyScraper(TextCache(), client=client, min_interval=0)

        with pytest.raises(ScrapeError):
            await scraper.fetch(GUIDE_URL)
        await client.aclose()

    @pytest.mark.asyncio
    async def test_min_interval_between_fetches(self):
        other = "https://gamerempire.net/evony"
        site = _Site(pages={GUIDE_URL: (200, GUIDE_HTML), other: (200, GUIDE_HTML)})
        scraper = _scraper(site, min_interval=0.2)

        await scraper.fetch(GUIDE_URL)
        await scraper.fetch(other)

        assert len(site.page_times) == 2
        assert site.page_times[1] - site.page_times[0] >= 0.19
        await scraper.client.aclose()

    @pytest.mark.asyncio
    async def test_context_manager_keeps_injected_client_open(self):
        site = _Site(pages={GUIDE_URL: (200, GUIDE_HTML)})
        client = httpx.AsyncClient(transport=httpx.MockTransport(site))

        async with StrategyScraper(TextCache(), client=client, min_interval=0) as scraper:
            await scraper.fetch(GUIDE_URL)

        assert not client.is_closed
        await client.aclose()
