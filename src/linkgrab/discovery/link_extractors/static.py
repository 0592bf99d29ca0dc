"""Static per-frame link extraction using BeautifulSoup."""

import asyncio
import logging
import re
from typing import Optional

from bs4 import BeautifulSoup

from ...http.protocols import HttpClient
from ...models.links import LinkRecord, SourceKind
from ..noise import NoiseFilter
from ..normalizer import UrlNormalizer, build_record, normalize_href
from .protocols import FrameDocument

logger = logging.getLogger(__name__)

# URLs embedded in script text
SCRIPT_URL_PATTERN = re.compile(r"https?://[^\s\"'`<>\\]+")


def _parse(html: "str | bytes") -> Optional[BeautifulSoup]:
    try:
        return BeautifulSoup(html, "html.parser")
    except Exception as e:
        logger.debug(f"Failed to parse HTML: {e}")
        return None


def _document_base(soup: BeautifulSoup, url: str) -> str:
    """Resolve the document base URL from ``<base href>`` if present."""
    base = soup.find("base", href=True)
    if base is None:
        return url
    resolved = normalize_href(base["href"], url)
    if resolved is None or not resolved.startswith(("http://", "https://")):
        return url
    return resolved


def discover_frame_urls(html: "str | bytes", base_url: str) -> list[str]:
    """
    List the nested frame documents of a page.

    Args:
        html: Page markup
        base_url: Page URL for resolving relative ``src`` values

    Returns:
        Unique absolute http(s) URLs of ``<iframe>``/``<frame>`` sources,
        in document order
    """
    soup = _parse(html)
    if soup is None:
        return []

    base = _document_base(soup, base_url)
    frames: list[str] = []
    for elem in soup.find_all(["iframe", "frame"], src=True):
        resolved = normalize_href(elem["src"], base)
        if resolved and resolved.startswith(("http://", "https://")) and resolved not in frames:
            frames.append(resolved)
    return frames


class StaticFrameExtractor:
    """
    Extract a frame's links from its HTML document.

    Sources, in discovery order:
    - ``<a href>``/``<area href>`` that are not ``javascript:`` URLs
    - ``<img src>`` (http(s) only)
    - every ``srcset`` candidate
    - URLs in inline ``<script>`` bodies on a different host than the frame
    - URLs in same-origin external scripts, fetched concurrently with a
      per-fetch timeout

    Each call gets its own UrlNormalizer, so deduplication is per frame.

    Example:
        extractor = StaticFrameExtractor(http_client, script_timeout=3.0)
        links = await extractor.extract_frame(FrameDocument(url=url, html=html))
    """

    def __init__(
        self,
        http_client: Optional[HttpClient] = None,
        noise_filter: Optional[NoiseFilter] = None,
        script_timeout: float = 3.0,
        max_script_fetches: int = 20,
        max_concurrent_fetches: int = 6,
        fetch_external_scripts: bool = True,
    ):
        """
        Initialize the static frame extractor.

        Args:
            http_client: HTTP client for external scripts (None disables fetching)
            noise_filter: Noise rules shared by every frame
            script_timeout: Seconds allowed per external script fetch
            max_script_fetches: Maximum external scripts fetched per frame
            max_concurrent_fetches: Maximum concurrent script fetches
            fetch_external_scripts: Scan same-origin external scripts
        """
        self._client = http_client
        self._noise = noise_filter or NoiseFilter()
        self._script_timeout = script_timeout
        self._max_script_fetches = max_script_fetches
        self._max_concurrent = max_concurrent_fetches
        self._fetch_scripts = fetch_external_scripts and http_client is not None

    async def extract_frame(self, document: FrameDocument) -> list[LinkRecord]:
        """
        Extract deduplicated link records from one frame.

        Args:
            document: The frame document

        Returns:
            Anchors, then images, then script-derived links
        """
        soup = _parse(document.html)
        if soup is None:
            return []

        base_url = document.base_url or _document_base(soup, document.url)
        normalizer = UrlNormalizer(base_url, self._noise, frame_url=document.url)
        frame = build_record(normalize_href(document.url) or document.url)

        links = self._extract_anchors(soup, normalizer)
        links.extend(self._extract_images(soup, normalizer, base_url))

        candidates = self._inline_script_urls(soup)
        if self._fetch_scripts:
            candidates.extend(await self._external_script_urls(soup, base_url, frame.origin))

        links.extend(self._script_links(candidates, normalizer, frame.hostname))

        logger.debug(f"Extracted {len(links)} links from frame {document.url}")
        return links

    def _extract_anchors(self, soup: BeautifulSoup, normalizer: UrlNormalizer) -> list[LinkRecord]:
        links = []
        for anchor in soup.find_all(["a", "area"], href=True):
            href = anchor["href"].strip()
            if href.lower().startswith("javascript:"):
                continue
            text = " ".join(anchor.get_text().split())
            record = normalizer.normalize(href, text=text, source=SourceKind.ANCHOR)
            if record:
                links.append(record)
        return links

    def _extract_images(
        self,
        soup: BeautifulSoup,
        normalizer: UrlNormalizer,
        base_url: str,
    ) -> list[LinkRecord]:
        links = []
        for img in soup.find_all("img", src=True):
            src = normalize_href(img["src"], base_url)
            if not src or not src.startswith("http"):
                continue
            record = normalizer.normalize(src, text=img.get("alt", ""), source=SourceKind.IMAGE)
            if record:
                links.append(record)

        for elem in soup.find_all(srcset=True):
            for candidate in elem["srcset"].split(","):
                parts = candidate.split()
                if not parts:
                    continue
                url = normalize_href(parts[0], base_url)
                if not url or not url.startswith("http"):
                    continue
                record = normalizer.normalize(url, source=SourceKind.IMAGE)
                if record:
                    links.append(record)
        return links

    def _inline_script_urls(self, soup: BeautifulSoup) -> list[str]:
        urls: list[str] = []
        for script in soup.find_all("script", src=False):
            urls.extend(SCRIPT_URL_PATTERN.findall(script.get_text()))
        return urls

    async def _external_script_urls(
        self,
        soup: BeautifulSoup,
        base_url: str,
        frame_origin: str,
    ) -> list[str]:
        """
        Fetch same-origin external scripts and collect the URLs they contain.

        Every fetch is an independent task returning its own list; the lists
        are merged in document order once all tasks have settled.
        """
        sources: list[str] = []
        for script in soup.find_all("script", src=True):
            src = normalize_href(script["src"], base_url)
            if src and build_record(src).origin == frame_origin and src not in sources:
                sources.append(src)

        if len(sources) > self._max_script_fetches:
            logger.debug(f"Limiting script fetches to {self._max_script_fetches} of {len(sources)}")
            sources = sources[: self._max_script_fetches]

        if not sources:
            return []

        semaphore = asyncio.Semaphore(self._max_concurrent)
        results = await asyncio.gather(
            *(self._fetch_script_urls(src, semaphore) for src in sources),
            return_exceptions=True,
        )

        urls: list[str] = []
        for src, result in zip(sources, results):
            if isinstance(result, BaseException):
                logger.debug(f"Script scan failed for {src}: {result}")
                continue
            urls.extend(result)
        return urls

    async def _fetch_script_urls(self, url: str, semaphore: asyncio.Semaphore) -> list[str]:
        """
        Fetch one script and scan its text.

        Returns:
            URLs found in the script, or an empty list on failure or timeout
        """
        if self._client is None:
            return []

        async with semaphore:
            try:
                response = await asyncio.wait_for(
                    self._client.get(url, timeout=self._script_timeout),
                    timeout=self._script_timeout,
                )
            except asyncio.TimeoutError:
                logger.debug(f"Script fetch timed out after {self._script_timeout}s: {url}")
                return []
            except Exception as e:
                logger.debug(f"Script fetch failed for {url}: {e}")
                return []

        if response.status_code != 200:
            logger.debug(f"Script fetch for {url} returned {response.status_code}")
            return []

        return SCRIPT_URL_PATTERN.findall(self._client.decode_content(response))

    def _script_links(
        self,
        candidates: list[str],
        normalizer: UrlNormalizer,
        frame_hostname: str,
    ) -> list[LinkRecord]:
        """Keep script-derived URLs whose host differs from the frame's own host."""
        links = []
        for url in candidates:
            href = normalize_href(url)
            if href is None or build_record(href).hostname == frame_hostname:
                continue
            record = normalizer.normalize(url, source=SourceKind.SCRIPT)
            if record:
                links.append(record)
        return links
