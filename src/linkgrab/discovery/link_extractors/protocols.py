"""Protocol definitions for per-frame link extraction."""

from collections.abc import Awaitable
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass, field
from typing import Callable, Optional, Protocol, Union

from ...models.links import LinkRecord


@dataclass(frozen=True)
class FrameDocument:
    """
    One frame's document, as handed to a frame extractor.

    Attributes:
        url: URL of the frame document
        html: Document markup
        base_url: Base URL override (defaults to ``<base href>`` or ``url``)
    """

    url: str
    html: Union[str, bytes]
    base_url: Optional[str] = None


class FrameExtractor(Protocol):
    """
    Protocol for extracting the links of a single frame.

    Implementations run to completion, including any script fetches,
    before returning, and never raise for unreachable resources.
    """

    async def extract_frame(self, document: FrameDocument) -> list[LinkRecord]:
        """
        Extract deduplicated link records from one frame.

        Args:
            document: The frame document

        Returns:
            Link records: anchors, then images, then script-derived URLs
        """
        ...


# Loads one frame's document; raising means the frame never reports
FrameLoader = Callable[[], Awaitable[FrameDocument]]


@dataclass
class PageFrames:
    """
    The frames of one loaded page.

    Attributes:
        url: Final top-level page URL
        loaders: One loader per frame, top document first
    """

    url: str
    loaders: list[FrameLoader] = field(default_factory=list)

    @property
    def frame_count(self) -> int:
        return len(self.loaders)


class FrameSource(Protocol):
    """
    Protocol for loading a page and enumerating its frames.

    The page stays available until the context manager exits, so frame
    loaders may be awaited inside the block.
    """

    def open(self, url: str) -> AbstractAsyncContextManager[PageFrames]:
        """
        Load a page.

        Args:
            url: The page URL

        Returns:
            Async context manager yielding the page's frames
        """
        ...
