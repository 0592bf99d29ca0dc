"""Link records and collection results shared by every stage of the engine."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

_SCHEME_PREFIX = re.compile(r"^https?://")


def dedup_key(href: str) -> str:
    """
    Return the deduplication key for an href.

    The leading ``http://`` or ``https://`` is stripped so that the two
    schemes never produce separate entries for the same resource.

    Examples:
        >>> dedup_key("https://x.com/a")
        'x.com/a'
        >>> dedup_key("http://x.com/a")
        'x.com/a'
    """
    return _SCHEME_PREFIX.sub("", href, count=1)


class SourceKind(str, Enum):
    """How a link was discovered inside a frame."""

    ANCHOR = "anchor"
    IMAGE = "image"
    SCRIPT = "script"


@dataclass(frozen=True)
class LinkRecord:
    """
    One discovered reference.

    Attributes:
        href: Canonical absolute URL (scheme and host lower-cased,
            query and fragment preserved)
        hostname: Host without port
        host: Host including a non-default port
        origin: ``scheme://host``
        pathname: Path component (``/`` when empty)
        search: Query string including the leading ``?`` (or empty)
        hash: Fragment including the leading ``#`` (or empty)
        text: Anchor text or image alt text
        source: How the link was discovered
        frame_url: URL of the frame document that produced the record
    """

    href: str
    hostname: str
    host: str
    origin: str
    pathname: str = "/"
    search: str = ""
    hash: str = ""
    text: str = ""
    source: SourceKind = SourceKind.ANCHOR
    frame_url: str = ""

    @property
    def dedup_key(self) -> str:
        """Href with the http/https scheme stripped."""
        return dedup_key(self.href)

    def to_dict(self) -> dict[str, str]:
        """Convert to the wire form used by frame reports and stored results."""
        return {
            "href": self.href,
            "hostname": self.hostname,
            "host": self.host,
            "origin": self.origin,
            "pathname": self.pathname,
            "search": self.search,
            "hash": self.hash,
            "text": self.text,
            "source": self.source.value,
            "frame_url": self.frame_url,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LinkRecord:
        """Rebuild a record from its wire form."""
        return cls(
            href=data["href"],
            hostname=data.get("hostname", ""),
            host=data.get("host", ""),
            origin=data.get("origin", ""),
            pathname=data.get("pathname", "/"),
            search=data.get("search", ""),
            hash=data.get("hash", ""),
            text=data.get("text", ""),
            source=SourceKind(data.get("source", SourceKind.ANCHOR.value)),
            frame_url=data.get("frame_url", ""),
        )


@dataclass(frozen=True)
class FrameReport:
    """The one-shot report a frame extraction sends to the aggregator."""

    tab_id: int
    frame_url: str
    links: list[LinkRecord] = field(default_factory=list)


@dataclass
class CollectionResult:
    """
    Finalized links for one page collection.

    ``timed_out`` is True when the deadline, rather than the last frame
    report, finalized the collection.
    """

    tab_id: int
    source_url: str
    links: list[LinkRecord] = field(default_factory=list)
    frames_expected: int = 1
    frames_received: int = 0
    links_reported: int = 0
    timed_out: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "tab_id": self.tab_id,
            "source": self.source_url,
            "links": [link.to_dict() for link in self.links],
            "frames_expected": self.frames_expected,
            "frames_received": self.frames_received,
            "links_reported": self.links_reported,
            "timed_out": self.timed_out,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CollectionResult:
        return cls(
            tab_id=data["tab_id"],
            source_url=data.get("source", ""),
            links=[LinkRecord.from_dict(item) for item in data.get("links", [])],
            frames_expected=data.get("frames_expected", 1),
            frames_received=data.get("frames_received", 0),
            links_reported=data.get("links_reported", 0),
            timed_out=data.get("timed_out", False),
        )
