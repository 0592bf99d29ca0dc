"""Exceptions raised by linkgrab."""


class LinkGrabError(Exception):
    """Base class for linkgrab errors."""


class CollectionAborted(LinkGrabError):
    """A pending collection was superseded, cancelled, or its tab closed."""

    def __init__(self, tab_id: int, reason: str = "superseded"):
        self.tab_id = tab_id
        self.reason = reason
        super().__init__(f"Collection for tab {tab_id} aborted: {reason}")


class PageFetchError(LinkGrabError):
    """The top-level page could not be fetched."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to fetch {url}: {reason}")


class BrowserUnavailableError(ImportError, LinkGrabError):
    """Browser collection was requested but Playwright is not installed."""

    def __init__(self) -> None:
        super().__init__("Browser collection requires Playwright. Install with: pip install linkgrab[js]")


class FrameUnavailable(LinkGrabError):
    """A frame document could not be loaded; the frame never reports."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Frame {url} unavailable: {reason}")
