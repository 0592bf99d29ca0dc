"""Tests for per-frame extraction and the HTTP frame source."""

import asyncio

import pytest

from linkgrab.discovery import HttpFrameSource, StaticFrameExtractor, discover_frame_urls
from linkgrab.discovery.link_extractors import FrameDocument
from linkgrab.exceptions import FrameUnavailable, PageFetchError
from linkgrab.http import HttpResponse
from linkgrab.models.links import SourceKind


class MockHttpClient:
    """Mock HTTP client for testing."""

    def __init__(self, responses: dict[str, tuple[int, str, bytes]] | None = None, delays=None):
        """
        Initialize mock client.

        Args:
            responses: Dict mapping URLs to (status_code, content_type, content)
            delays: Dict mapping URLs to seconds to sleep before answering
        """
        self.responses = responses or {}
        self.delays = delays or {}
        self.requested: list[str] = []

    async def get(self, url: str, *, timeout: float | None = None, headers=None) -> HttpResponse:
        """Mock GET request."""
        self.requested.append(url)
        if url in self.delays:
            await asyncio.sleep(self.delays[url])
        if url in self.responses:
            status, content_type, content = self.responses[url]
            return HttpResponse(status, content, content_type, url)
        return HttpResponse(404, b"Not found", "text/html", url)

    def decode_content(self, response: HttpResponse) -> str:
        return response.content.decode("utf-8", errors="replace")


def hrefs(links):
    return [link.href for link in links]


class TestStaticFrameExtractor:
    """Tests for StaticFrameExtractor."""

    @pytest.fixture
    def extractor(self):
        return StaticFrameExtractor(http_client=None)

    @pytest.mark.asyncio
    async def test_extracts_anchors_with_text(self, extractor):
        """Test that anchors are resolved and their text collapsed."""
        html = """
        <a href="/about">  About
            us </a>
        <area href="https://maps.site.org/m" alt="map">
        <a href="javascript:void(0)">Nope</a>
        <a href="mailto:hi@site.org">Mail</a>
        """
        links = await extractor.extract_frame(FrameDocument(url="https://site.org/", html=html))

        assert hrefs(links) == ["https://site.org/about", "https://maps.site.org/m", "mailto:hi@site.org"]
        assert links[0].text == "About us"
        assert all(link.source == SourceKind.ANCHOR for link in links)
        assert all(link.frame_url == "https://site.org/" for link in links)

    @pytest.mark.asyncio
    async def test_extracts_images_and_srcset(self, extractor):
        """Test that img src and every srcset candidate are collected."""
        html = """
        <img src="/logo.png" alt="Logo">
        <img src="data:image/png;base64,AAAA">
        <picture><source srcset="/hero-1x.webp 1x, /hero-2x.webp 2x"></picture>
        <img srcset="https://img.site.org/a.jpg 480w,https://img.site.org/b.jpg 800w">
        """
        links = await extractor.extract_frame(FrameDocument(url="https://site.org/", html=html))

        assert hrefs(links) == [
            "https://site.org/logo.png",
            "https://site.org/hero-1x.webp",
            "https://site.org/hero-2x.webp",
            "https://img.site.org/a.jpg",
            "https://img.site.org/b.jpg",
        ]
        assert links[0].text == "Logo"
        assert all(link.source == SourceKind.IMAGE for link in links)

    @pytest.mark.asyncio
    async def test_inline_script_urls_skip_own_host(self, extractor):
        """Test that inline script URLs on the frame's host are dropped."""
        html = """
        <script>
          const api = "https://api.partner.net/v1";
          const self = 'https://site.org/internal';
          fetch(`https://unpkg.com/lib`);
        </script>
        """
        links = await extractor.extract_frame(FrameDocument(url="https://site.org/", html=html))

        assert hrefs(links) == ["https://api.partner.net/v1"]
        assert links[0].source == SourceKind.SCRIPT

    @pytest.mark.asyncio
    async def test_dedup_within_frame(self, extractor):
        """Test that a frame reports each dedup key once, first sighting kept."""
        html = """
        <a href="https://other.org/a">First</a>
        <a href="http://other.org/a">Second</a>
        <img src="https://other.org/a">
        """
        links = await extractor.extract_frame(FrameDocument(url="https://site.org/", html=html))

        assert hrefs(links) == ["https://other.org/a"]
        assert links[0].text == "First"

    @pytest.mark.asyncio
    async def test_filters_noise(self, extractor):
        """Test that noise URLs never leave the extractor."""
        html = """
        <a href="https://developer.mozilla.org/docs">MDN</a>
        <a href="https://fonts.googleapis.com/css">Fonts</a>
        <a href="https://news.ycombinator.com/">HN</a>
        """
        links = await extractor.extract_frame(FrameDocument(url="https://site.org/", html=html))
        assert hrefs(links) == ["https://news.ycombinator.com/"]

    @pytest.mark.asyncio
    async def test_base_href(self, extractor):
        """Test that <base href> changes relative resolution."""
        html = '<base href="https://cdn.site.org/v2/"><a href="page">P</a>'
        links = await extractor.extract_frame(FrameDocument(url="https://site.org/", html=html))
        assert hrefs(links) == ["https://cdn.site.org/v2/page"]

    @pytest.mark.asyncio
    async def test_malformed_image_urls_are_skipped(self, extractor):
        """Test that a broken img src or srcset candidate costs only itself."""
        html = """
        <a href="https://good.org/a">A</a>
        <img src="http://[broken/x.png">
        <img srcset="http://[broken/y.png 1x, /ok.png 2x">
        """
        links = await extractor.extract_frame(FrameDocument(url="https://site.org/", html=html))
        assert hrefs(links) == ["https://good.org/a", "https://site.org/ok.png"]

    @pytest.mark.asyncio
    async def test_malformed_base_href(self, extractor):
        """Test that an unusable <base href> falls back to the document URL."""
        html = '<base href="http://[broken/"><a href="page">P</a>'
        links = await extractor.extract_frame(FrameDocument(url="https://site.org/docs/", html=html))
        assert hrefs(links) == ["https://site.org/docs/page"]

    @pytest.mark.asyncio
    async def test_empty_document(self, extractor):
        """Test that a document without links yields an empty list."""
        links = await extractor.extract_frame(FrameDocument(url="https://site.org/", html="<p>nothing</p>"))
        assert links == []


class TestExternalScripts:
    """Tests for same-origin external script scanning."""

    @pytest.mark.asyncio
    async def test_scans_same_origin_scripts_only(self):
        """Test that only same-origin scripts are fetched and scanned."""
        client = MockHttpClient(
            {
                "https://site.org/app.js": (200, "application/javascript", b'x("https://api.partner.net/data")'),
                "https://third.net/t.js": (200, "application/javascript", b'x("https://tracker.net/p")'),
            }
        )
        extractor = StaticFrameExtractor(http_client=client)
        html = '<script src="/app.js"></script><script src="https://third.net/t.js"></script>'

        links = await extractor.extract_frame(FrameDocument(url="https://site.org/", html=html))

        assert hrefs(links) == ["https://api.partner.net/data"]
        assert client.requested == ["https://site.org/app.js"]

    @pytest.mark.asyncio
    async def test_failed_and_slow_scripts_contribute_nothing(self):
        """Test that errors and timeouts only cost that script's links."""
        client = MockHttpClient(
            {
                "https://site.org/ok.js": (200, "application/javascript", b'"https://ok.partner.net/"'),
                "https://site.org/slow.js": (200, "application/javascript", b'"https://slow.partner.net/"'),
            },
            delays={"https://site.org/slow.js": 1.0},
        )
        extractor = StaticFrameExtractor(http_client=client, script_timeout=0.05)
        html = """
        <script src="/slow.js"></script>
        <script src="/missing.js"></script>
        <script src="/ok.js"></script>
        """

        links = await extractor.extract_frame(FrameDocument(url="https://site.org/", html=html))

        assert hrefs(links) == ["https://ok.partner.net/"]

    @pytest.mark.asyncio
    async def test_fetch_limit(self):
        """Test that at most max_script_fetches scripts are requested."""
        client = MockHttpClient()
        extractor = StaticFrameExtractor(http_client=client, max_script_fetches=2)
        html = "".join(f'<script src="/s{i}.js"></script>' for i in range(5))

        await extractor.extract_frame(FrameDocument(url="https://site.org/", html=html))

        assert client.requested == ["https://site.org/s0.js", "https://site.org/s1.js"]

    @pytest.mark.asyncio
    async def test_disabled(self):
        """Test that fetch_external_scripts=False skips the fan-out."""
        client = MockHttpClient()
        extractor = StaticFrameExtractor(http_client=client, fetch_external_scripts=False)

        await extractor.extract_frame(FrameDocument(url="https://site.org/", html='<script src="/a.js"></script>'))

        assert client.requested == []


class TestDiscoverFrameUrls:
    """Tests for discover_frame_urls."""

    def test_lists_iframes_and_frames(self):
        """Test that iframe/frame sources are resolved and deduplicated."""
        html = """
        <iframe src="/embed/1"></iframe>
        <iframe src="https://video.partner.net/e"></iframe>
        <frame src="/embed/1">
        <iframe src="about:blank"></iframe>
        <iframe></iframe>
        """
        assert discover_frame_urls(html, "https://site.org/") == [
            "https://site.org/embed/1",
            "https://video.partner.net/e",
        ]


class TestHttpFrameSource:
    """Tests for HttpFrameSource."""

    PAGE = b'<a href="/top">Top</a><iframe src="/frame"></iframe><iframe src="/broken"></iframe>'

    @pytest.mark.asyncio
    async def test_loaders_per_frame(self):
        """Test that the page yields one loader per frame, top first."""
        client = MockHttpClient(
            {
                "https://site.org/": (200, "text/html; charset=utf-8", self.PAGE),
                "https://site.org/frame": (200, "text/html", b'<a href="https://inner.net/">In</a>'),
            }
        )
        source = HttpFrameSource(client)

        async with source.open("https://site.org/") as page:
            assert page.url == "https://site.org/"
            assert page.frame_count == 3

            top = await page.loaders[0]()
            frame = await page.loaders[1]()
            with pytest.raises(FrameUnavailable):
                await page.loaders[2]()

        assert top.url == "https://site.org/"
        assert frame.url == "https://site.org/frame"
        assert "inner.net" in frame.html

    @pytest.mark.asyncio
    async def test_frames_disabled_and_capped(self):
        """Test include_frames=False and the max_frames cap."""
        client = MockHttpClient({"https://site.org/": (200, "text/html", self.PAGE)})

        async with HttpFrameSource(client, include_frames=False).open("https://site.org/") as page:
            assert page.frame_count == 1

        async with HttpFrameSource(client, max_frames=2).open("https://site.org/") as page:
            assert page.frame_count == 2

    @pytest.mark.asyncio
    async def test_page_errors(self):
        """Test that an unusable top-level page raises PageFetchError."""
        client = MockHttpClient({"https://site.org/img.png": (200, "image/png", b"\x89PNG")})
        source = HttpFrameSource(client)

        with pytest.raises(PageFetchError, match="HTTP 404"):
            async with source.open("https://site.org/missing"):
                pass

        with pytest.raises(PageFetchError, match="not an HTML document"):
            async with source.open("https://site.org/img.png"):
                pass
