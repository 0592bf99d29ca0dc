"""Link discovery for linkgrab (normalization, noise filtering, frame extraction)."""

from .frames import HttpFrameSource
from .link_extractors import (
    PLAYWRIGHT_AVAILABLE,
    BrowserFrameSource,
    FrameDocument,
    FrameExtractor,
    FrameSource,
    PageFrames,
    StaticFrameExtractor,
    discover_frame_urls,
)
from .noise import IGNORED_PATTERNS, IGNORED_PREFIXES, NoiseFilter, NoiseRule
from .normalizer import UrlNormalizer, build_record, normalize_href

__all__ = [
    # Protocols
    "FrameExtractor",
    "FrameSource",
    # Frames
    "BrowserFrameSource",
    "FrameDocument",
    "HttpFrameSource",
    "PageFrames",
    "PLAYWRIGHT_AVAILABLE",
    "StaticFrameExtractor",
    "discover_frame_urls",
    # Noise
    "IGNORED_PATTERNS",
    "IGNORED_PREFIXES",
    "NoiseFilter",
    "NoiseRule",
    # Normalization
    "UrlNormalizer",
    "build_record",
    "normalize_href",
]
