"""URL canonicalization and per-scope deduplication."""

import logging
from typing import Optional
from urllib.parse import quote, urljoin, urlsplit

from ..models.links import LinkRecord, SourceKind, dedup_key
from .noise import NoiseFilter

logger = logging.getLogger(__name__)

# Schemes that must carry a host; "https://" alone is unparseable
NETWORK_SCHEMES = frozenset({"http", "https", "ftp", "ws", "wss"})

# Never a link: running code, not a reference
SCRIPT_SCHEMES = frozenset({"javascript", "vbscript"})

DEFAULT_PORTS = {"http": 80, "https": 443, "ftp": 21, "ws": 80, "wss": 443}

# Characters left untouched when re-quoting; "%" keeps existing escapes stable
_PATH_SAFE = "/%:@!$&'()*+,;=-._~"
_QUERY_SAFE = _PATH_SAFE + "?"


def normalize_href(url: str, base_url: Optional[str] = None) -> Optional[str]:
    """
    Resolve a URL against ``base_url`` and return its canonical form.

    Scheme and hostname are lower-cased, default ports dropped and an empty
    path becomes ``/``. Query and fragment are preserved. Hostless URLs such
    as ``mailto:`` and ``tel:`` keep everything after the scheme verbatim.
    Applying the function to its own output returns the same string.

    Args:
        url: Raw URL (absolute or relative)
        base_url: Document URL used to resolve relative URLs

    Returns:
        Canonical absolute URL, or None if it cannot be parsed, is a
        ``javascript:`` URL, or uses a network scheme without a host
    """
    url = url.strip()
    if not url:
        return None

    try:
        absolute = urljoin(base_url, url) if base_url else url
        parts = urlsplit(absolute)
        scheme = parts.scheme.lower()
        if not scheme or scheme in SCRIPT_SCHEMES:
            return None
        if scheme not in NETWORK_SCHEMES:
            return f"{scheme}:{absolute.strip()[len(scheme) + 1 :]}"
        hostname = parts.hostname
        if not hostname:
            return None
        port = parts.port
    except ValueError:
        return None

    if ":" in hostname:
        hostname = f"[{hostname}]"

    host = hostname
    if port is not None and port != DEFAULT_PORTS.get(scheme):
        host = f"{hostname}:{port}"

    userinfo, sep, _ = parts.netloc.rpartition("@")
    netloc = f"{userinfo}@{host}" if sep else host

    path = quote(parts.path, safe=_PATH_SAFE) or "/"
    href = f"{scheme}://{netloc}{path}"
    if parts.query:
        href += "?" + quote(parts.query, safe=_QUERY_SAFE)
    if parts.fragment:
        href += "#" + quote(parts.fragment, safe=_QUERY_SAFE)
    return href


def build_record(
    href: str,
    *,
    text: str = "",
    source: SourceKind = SourceKind.ANCHOR,
    frame_url: str = "",
) -> LinkRecord:
    """Split a canonical href into the components of a LinkRecord."""
    parts = urlsplit(href)
    scheme = parts.scheme
    host = parts.netloc.rpartition("@")[2]
    return LinkRecord(
        href=href,
        hostname=parts.hostname or "",
        host=host,
        origin=f"{scheme}://{host}" if host else "null",
        pathname=parts.path or "/",
        search=f"?{parts.query}" if parts.query else "",
        hash=f"#{parts.fragment}" if parts.fragment else "",
        text=text,
        source=source,
        frame_url=frame_url,
    )


class UrlNormalizer:
    """
    Turns raw URL strings into LinkRecords for one extraction scope.

    Rejected URLs (noise, unparseable, script URLs, or already seen in this
    scope under the same dedup key) come back as None; rejection is never
    an error.

    Example:
        normalizer = UrlNormalizer("https://example.org/page")
        record = normalizer.normalize("/about", text="About")
        normalizer.normalize("http://example.org/about")  # None, same dedup key
    """

    def __init__(
        self,
        base_url: str = "",
        noise_filter: Optional[NoiseFilter] = None,
        frame_url: Optional[str] = None,
    ):
        """
        Initialize the normalizer.

        Args:
            base_url: Base URL for resolving relative URLs
            noise_filter: Noise rules (defaults to the built-in tables)
            frame_url: URL recorded on each LinkRecord (defaults to base_url)
        """
        self.base_url = base_url
        self.frame_url = frame_url if frame_url is not None else base_url
        self._noise = noise_filter or NoiseFilter()
        self._seen: set[str] = set()

    def normalize(
        self,
        raw_url: str,
        *,
        text: str = "",
        source: SourceKind = SourceKind.ANCHOR,
    ) -> Optional[LinkRecord]:
        """
        Normalize a raw URL into a LinkRecord.

        Args:
            raw_url: The URL as found in the document
            text: Anchor or alt text
            source: How the URL was discovered

        Returns:
            LinkRecord, or None if the URL was rejected
        """
        if not raw_url or self._noise.is_noise(raw_url.strip()):
            return None

        href = normalize_href(raw_url, self.base_url)
        if href is None:
            return None

        if self._noise.is_noise(href):
            logger.debug(f"Noise URL dropped: {href}")
            return None

        key = dedup_key(href)
        if key in self._seen:
            return None
        self._seen.add(key)

        return build_record(href, text=text, source=source, frame_url=self.frame_url)

    def is_seen(self, url: str) -> bool:
        """Check whether a URL's dedup key was already accepted in this scope."""
        href = normalize_href(url, self.base_url)
        return href is not None and dedup_key(href) in self._seen

    def reset(self) -> None:
        """Forget every seen key."""
        self._seen.clear()

    def __len__(self) -> int:
        return len(self._seen)
