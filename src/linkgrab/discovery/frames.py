"""Page and frame loading over plain HTTP."""

import functools
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Optional

from ..exceptions import FrameUnavailable, PageFetchError
from ..http.protocols import HttpClient, HttpResponse
from .link_extractors.protocols import FrameDocument, PageFrames
from .link_extractors.static import discover_frame_urls

logger = logging.getLogger(__name__)

HTML_CONTENT_TYPES = ("text/html", "application/xhtml")


def _is_html(response: HttpResponse) -> bool:
    content_type = response.content_type.lower()
    # Servers that omit Content-Type usually send HTML for frame documents
    return not content_type or any(t in content_type for t in HTML_CONTENT_TYPES)


class HttpFrameSource:
    """
    Load a page and its ``<iframe>``/``<frame>`` documents without a browser.

    The top document is fetched when the page is opened; each nested frame
    is fetched lazily by its loader, so a slow frame counts against the
    collection deadline rather than delaying the start of the collection.
    Only frames declared directly in the top document are found.

    Example:
        source = HttpFrameSource(http_client, max_frames=10)
        async with source.open("https://example.com") as page:
            for load in page.loaders:
                document = await load()
    """

    def __init__(
        self,
        http_client: HttpClient,
        include_frames: bool = True,
        max_frames: int = 25,
        frame_timeout: Optional[float] = None,
    ):
        """
        Initialize the frame source.

        Args:
            http_client: HTTP client for page and frame documents
            include_frames: Whether to collect nested frames at all
            max_frames: Maximum frames per page, top document included
            frame_timeout: Timeout for each nested frame fetch
        """
        self._client = http_client
        self._include_frames = include_frames
        self._max_frames = max_frames
        self._frame_timeout = frame_timeout

    @asynccontextmanager
    async def open(self, url: str) -> AsyncIterator[PageFrames]:
        """
        Fetch the top-level page and prepare a loader per frame.

        Raises:
            PageFetchError: If the top-level page cannot be fetched
        """
        try:
            response = await self._client.get(url)
        except Exception as e:
            raise PageFetchError(url, str(e) or type(e).__name__) from e

        if response.status_code >= 400:
            raise PageFetchError(url, f"HTTP {response.status_code}")
        if not _is_html(response):
            raise PageFetchError(url, f"not an HTML document ({response.content_type})")

        page_url = response.url or url
        top = FrameDocument(url=page_url, html=self._client.decode_content(response))

        async def load_top() -> FrameDocument:
            return top

        loaders = [load_top]
        if self._include_frames and self._max_frames > 1:
            frame_urls = discover_frame_urls(top.html, page_url)
            if len(frame_urls) > self._max_frames - 1:
                logger.info(f"Page has {len(frame_urls)} frames, collecting {self._max_frames - 1}")
                frame_urls = frame_urls[: self._max_frames - 1]
            loaders.extend(functools.partial(self._load_frame, frame_url) for frame_url in frame_urls)

        logger.debug(f"Opened {page_url} with {len(loaders)} frames")
        yield PageFrames(url=page_url, loaders=loaders)

    async def _load_frame(self, url: str) -> FrameDocument:
        try:
            response = await self._client.get(url, timeout=self._frame_timeout)
        except Exception as e:
            raise FrameUnavailable(url, str(e) or type(e).__name__) from e

        if response.status_code != 200:
            raise FrameUnavailable(url, f"HTTP {response.status_code}")
        if not _is_html(response):
            raise FrameUnavailable(url, f"not an HTML document ({response.content_type})")

        return FrameDocument(url=response.url or url, html=self._client.decode_content(response))
