"""Classification, ranking and grouping of collected links."""

from .domains import TWO_PART_SUFFIXES, BlockedDomainMatcher, base_domain, reversed_hostname
from .pipeline import (
    IMAGE_EXTENSIONS,
    ClassificationResult,
    ClassifiedLink,
    LinkCategory,
    classify,
    link_category,
    source_origin,
)
from .tiers import (
    CURRENT_DOMAIN_TIER,
    DEFAULT_TIER,
    TIER_RULES,
    LinkTag,
    TierRule,
    link_tags,
    priority_tier,
)

__all__ = [
    # Pipeline
    "ClassificationResult",
    "ClassifiedLink",
    "IMAGE_EXTENSIONS",
    "LinkCategory",
    "classify",
    "link_category",
    "source_origin",
    # Domains
    "BlockedDomainMatcher",
    "TWO_PART_SUFFIXES",
    "base_domain",
    "reversed_hostname",
    # Tiers
    "CURRENT_DOMAIN_TIER",
    "DEFAULT_TIER",
    "LinkTag",
    "TIER_RULES",
    "TierRule",
    "link_tags",
    "priority_tier",
]
