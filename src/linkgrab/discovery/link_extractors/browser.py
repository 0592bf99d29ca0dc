"""Browser-based page loading that exposes every live frame."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from types import TracebackType
from typing import TYPE_CHECKING

from ...exceptions import BrowserUnavailableError, FrameUnavailable, PageFetchError
from .protocols import FrameDocument, FrameLoader, PageFrames

logger = logging.getLogger(__name__)

# Check for Playwright availability
PLAYWRIGHT_AVAILABLE = False
try:
    from playwright.async_api import async_playwright

    PLAYWRIGHT_AVAILABLE = True
except ImportError:
    pass

if TYPE_CHECKING:
    from playwright.async_api import Browser, Frame, Playwright


class BrowserFrameSource:
    """
    Load a page in headless Chromium and read the DOM of every frame.

    Unlike HttpFrameSource this sees frames injected by JavaScript and
    nested at any depth. Frames whose document cannot be read (detached,
    crashed, blocked) raise from their loader and so never report.

    Example:
        async with BrowserFrameSource() as source:
            async with source.open("https://example.com") as page:
                print(page.frame_count)

    Requires: pip install linkgrab[js]
    """

    def __init__(
        self,
        headless: bool = True,
        user_agent: str | None = None,
        timeout: float = 30.0,
        wait_until: str = "load",
        max_frames: int = 25,
    ) -> None:
        """
        Initialize the browser frame source.

        Args:
            headless: Run browser in headless mode
            user_agent: Custom user agent string
            timeout: Navigation timeout (seconds)
            wait_until: Wait condition for page load
            max_frames: Maximum frames per page, main frame included
        """
        if not PLAYWRIGHT_AVAILABLE:
            raise BrowserUnavailableError()

        self._headless = headless
        self._user_agent = user_agent
        self._timeout = timeout * 1000  # Playwright uses milliseconds
        self._wait_until = wait_until
        self._max_frames = max_frames

        self._playwright: Playwright | None = None
        self._browser: Browser | None = None

    async def __aenter__(self) -> BrowserFrameSource:
        """Start Playwright and launch the browser."""
        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(headless=self._headless)
        logger.debug("Browser launched")
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Close the browser and stop Playwright."""
        if self._browser:
            await self._browser.close()
            self._browser = None

        if self._playwright:
            await self._playwright.stop()
            self._playwright = None

    @asynccontextmanager
    async def open(self, url: str) -> AsyncIterator[PageFrames]:
        """
        Navigate to a page and prepare a loader per frame.

        Raises:
            PageFetchError: If navigation fails
        """
        if self._browser is None:
            raise RuntimeError("Browser not initialized. Use 'async with' context manager.")

        context_options: dict[str, object] = {"ignore_https_errors": True}
        if self._user_agent:
            context_options["user_agent"] = self._user_agent

        context = await self._browser.new_context(**context_options)  # type: ignore[arg-type]
        context.set_default_timeout(self._timeout)
        try:
            page = await context.new_page()
            try:
                response = await page.goto(url, wait_until=self._wait_until)  # type: ignore[arg-type]
            except Exception as e:
                logger.warning(f"Failed to load {url}: {e}")
                raise PageFetchError(url, str(e)) from e

            if response is not None and response.status >= 400:
                raise PageFetchError(url, f"HTTP {response.status}")

            frames = page.frames
            if len(frames) > self._max_frames:
                logger.info(f"Page has {len(frames)} frames, collecting {self._max_frames}")
                frames = frames[: self._max_frames]

            yield PageFrames(url=page.url, loaders=[self._loader(frame) for frame in frames])
        finally:
            await context.close()

    @staticmethod
    def _loader(frame: Frame) -> FrameLoader:  # type: ignore[no-any-unimported]
        async def load() -> FrameDocument:
            frame_url = frame.url
            if frame.is_detached():
                raise FrameUnavailable(frame_url, "detached")
            try:
                html = await frame.content()
            except Exception as e:
                raise FrameUnavailable(frame_url, str(e)) from e
            return FrameDocument(url=frame_url, html=html)

        return load
