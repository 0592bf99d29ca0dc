"""Classification, ranking and grouping of collected links."""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional
from urllib.parse import urlsplit

from ..discovery.normalizer import build_record, normalize_href
from ..models.config import ClassifyOptions
from ..models.links import LinkRecord, SourceKind
from .domains import BlockedDomainMatcher, base_domain, reversed_hostname
from .tiers import CURRENT_DOMAIN_TIER, LinkTag, link_tags, priority_tier

IMAGE_EXTENSIONS = re.compile(r"\.(jpe?g|png|gif|webp|svg|ico|bmp|tiff?|avif)(\?|#|$)", re.IGNORECASE)


class LinkCategory(str, Enum):
    """Display bucket of a link."""

    ANCHOR = "anchor"
    IMAGE = "image"
    SCRIPT = "script"


def link_category(link: LinkRecord) -> LinkCategory:
    if link.source == SourceKind.IMAGE or IMAGE_EXTENSIONS.search(link.href):
        return LinkCategory.IMAGE
    if link.source == SourceKind.SCRIPT:
        return LinkCategory.SCRIPT
    return LinkCategory.ANCHOR


@dataclass(frozen=True)
class ClassifiedLink:
    """
    A LinkRecord with the flags computed by the pipeline.

    Attributes:
        link: The underlying record
        index: Position of the record in the pipeline input
        is_blocked: Hostname or a parent domain is blocked
        is_duplicate: An earlier link in the sequence has the same href
        is_same_origin: Same origin as the source page (scheme-sensitive)
        is_current_domain: Same base registrable domain as the source page
        priority_tier: 1 for current-domain links, otherwise the rule tier
        category: Display bucket
        tags: Badges for the link
    """

    link: LinkRecord
    index: int
    is_blocked: bool = False
    is_duplicate: bool = False
    is_same_origin: bool = False
    is_current_domain: bool = False
    priority_tier: int = 5
    category: LinkCategory = LinkCategory.ANCHOR
    tags: frozenset[LinkTag] = field(default_factory=frozenset)

    @property
    def href(self) -> str:
        return self.link.href

    @property
    def hostname(self) -> str:
        return self.link.hostname

    @property
    def text(self) -> str:
        return self.link.text

    def to_dict(self) -> dict:
        data: dict = self.link.to_dict()
        data.update(
            {
                "index": self.index,
                "is_blocked": self.is_blocked,
                "is_duplicate": self.is_duplicate,
                "is_same_origin": self.is_same_origin,
                "is_current_domain": self.is_current_domain,
                "priority_tier": self.priority_tier,
                "category": self.category.value,
                "tags": sorted(tag.value for tag in self.tags),
            }
        )
        return data


@dataclass(frozen=True)
class ClassificationResult:
    """
    Output of ``classify``.

    Attributes:
        links: Every link after the same-origin filter and sort, flagged
        visible: Links left after duplicate/blocked hiding and the text filter
        anchors: Visible anchor links, in display order
        images: Visible image links, in display order
        scripts: Visible script-derived links, in display order
        total: Number of links given to the pipeline
    """

    links: tuple[ClassifiedLink, ...] = ()
    visible: tuple[ClassifiedLink, ...] = ()
    anchors: tuple[ClassifiedLink, ...] = ()
    images: tuple[ClassifiedLink, ...] = ()
    scripts: tuple[ClassifiedLink, ...] = ()
    total: int = 0

    @property
    def items(self) -> tuple[ClassifiedLink, ...]:
        """All visible links, bucket by bucket: anchors, images, scripts."""
        return self.anchors + self.images + self.scripts

    @property
    def is_empty(self) -> bool:
        """True when the collection itself found no links."""
        return self.total == 0


def source_origin(source_url: Optional[str]) -> Optional[str]:
    """Origin of the source page, or None unless it is an http(s) URL."""
    if not source_url or not source_url.startswith(("http://", "https://")):
        return None
    href = normalize_href(source_url)
    if href is None:
        return None
    return build_record(href).origin


def _source_base_domain(source_url: Optional[str]) -> str:
    if not source_url:
        return ""
    try:
        return base_domain(urlsplit(source_url).hostname or "")
    except ValueError:
        return ""


def classify(
    links: Iterable[LinkRecord],
    source_url: Optional[str],
    blocked_domains: Iterable[str],
    options: Optional[ClassifyOptions] = None,
) -> ClassificationResult:
    """
    Flag, rank and group links for display.

    The function is pure: the inputs are never mutated and the blocked-domain
    memo lives only for this call.

    Args:
        links: Collected links, in collection order
        source_url: URL of the page the links were collected from
        blocked_domains: Domains whose links (and subdomain links) are blocked
        options: Display toggles

    Returns:
        ClassificationResult with flagged links and display buckets
    """
    options = options or ClassifyOptions()
    records = list(links)
    total = len(records)

    origin = source_origin(source_url)
    current_base = _source_base_domain(source_url)

    indexed = list(enumerate(records))
    if options.hide_same_origin and origin is not None:
        indexed = [(i, link) for i, link in indexed if link.origin != origin]

    is_current = {i: bool(current_base) and base_domain(link.hostname) == current_base for i, link in indexed}
    tiers = {i: priority_tier(link) for i, link in indexed}

    if options.group_by_domain:
        indexed.sort(
            key=lambda item: (
                not is_current[item[0]],
                tiers[item[0]],
                reversed_hostname(item[1].hostname),
                item[0],
            )
        )

    matcher = BlockedDomainMatcher(blocked_domains)
    seen_hrefs: set[str] = set()
    classified = []
    for i, link in indexed:
        is_duplicate = link.href in seen_hrefs
        seen_hrefs.add(link.href)
        classified.append(
            ClassifiedLink(
                link=link,
                index=i,
                is_blocked=matcher.is_blocked(link.hostname),
                is_duplicate=is_duplicate,
                is_same_origin=origin is not None and link.origin == origin,
                is_current_domain=is_current[i],
                priority_tier=CURRENT_DOMAIN_TIER if is_current[i] else tiers[i],
                category=link_category(link),
                tags=link_tags(link),
            )
        )

    needle = options.filter_text.strip().lower()
    visible = []
    for item in classified:
        if options.hide_duplicates and item.is_duplicate:
            continue
        if options.hide_blocked_domains and item.is_blocked:
            continue
        if needle and needle not in item.href.lower():
            continue
        visible.append(item)

    return ClassificationResult(
        links=tuple(classified),
        visible=tuple(visible),
        anchors=tuple(c for c in visible if c.category == LinkCategory.ANCHOR),
        images=tuple(c for c in visible if c.category == LinkCategory.IMAGE),
        scripts=tuple(c for c in visible if c.category == LinkCategory.SCRIPT),
        total=total,
    )
