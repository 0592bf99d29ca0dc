"""Priority tiers and badge tags for links."""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from ..models.links import LinkRecord

# Links on the page's own base domain; applied by the sort, not by TIER_RULES
CURRENT_DOMAIN_TIER = 1
DEFAULT_TIER = 5

SOCIAL_HOSTS = frozenset({"x.com", "twitter.com", "t.me", "discord.gg"})
SOCIAL_HOST_MARKERS = ("discord.com",)
DOCS_HOST_MARKERS = ("github.com", "gitbook", "docs.", "whitepaper")

SOLANA_ADDRESS = re.compile(r"^[1-9A-HJ-NP-Za-km-z]{32,44}$")
SOLANA_PREFIXED_ADDRESS = re.compile(r"^(So|sol)[1-9A-HJ-NP-Za-km-z]{32,44}$", re.IGNORECASE)
ETH_ADDRESS = re.compile(r"^(0x)?[0-9a-fA-F]{40}$")


def last_path_segment(link: LinkRecord) -> str:
    return link.pathname.rsplit("/", 1)[-1]


def is_social(link: LinkRecord) -> bool:
    hostname = link.hostname.lower()
    return hostname in SOCIAL_HOSTS or any(m in hostname for m in SOCIAL_HOST_MARKERS)


def is_solana_address(link: LinkRecord) -> bool:
    segment = last_path_segment(link)
    return bool(SOLANA_ADDRESS.match(segment) or SOLANA_PREFIXED_ADDRESS.match(segment))


def is_eth_address(link: LinkRecord) -> bool:
    return ETH_ADDRESS.match(last_path_segment(link)) is not None


def is_onchain_address(link: LinkRecord) -> bool:
    segment = last_path_segment(link)
    return bool(SOLANA_ADDRESS.match(segment) or ETH_ADDRESS.match(segment))


def is_documentation(link: LinkRecord) -> bool:
    hostname = link.hostname.lower()
    return any(m in hostname for m in DOCS_HOST_MARKERS)


@dataclass(frozen=True)
class TierRule:
    """Links matching ``predicate`` get ``tier``; lower tiers sort first."""

    tier: int
    name: str
    predicate: Callable[[LinkRecord], bool]


# Checked in order, first match wins
TIER_RULES: tuple[TierRule, ...] = (
    TierRule(2, "social", is_social),
    TierRule(3, "onchain-address", is_onchain_address),
    TierRule(4, "documentation", is_documentation),
)


def priority_tier(link: LinkRecord, rules: tuple[TierRule, ...] = TIER_RULES) -> int:
    """Return the priority tier of a link (ignoring current-domain promotion)."""
    for rule in rules:
        if rule.predicate(link):
            return rule.tier
    return DEFAULT_TIER


class LinkTag(str, Enum):
    """Badges shown next to a link."""

    TWITTER = "twitter"
    TELEGRAM = "telegram"
    DISCORD = "discord"
    INSTAGRAM = "instagram"
    SOLANA = "solana"
    ETH = "eth"
    DOCS = "docs"


def _host_in(*hosts: str) -> Callable[[LinkRecord], bool]:
    return lambda link: link.hostname.lower() in hosts


def _host_contains(*markers: str) -> Callable[[LinkRecord], bool]:
    return lambda link: any(m in link.hostname.lower() for m in markers)


TAG_RULES: tuple[tuple[LinkTag, Callable[[LinkRecord], bool]], ...] = (
    (LinkTag.TWITTER, _host_in("x.com", "twitter.com")),
    (LinkTag.TELEGRAM, _host_in("t.me")),
    (LinkTag.DISCORD, lambda link: _host_contains("discord.com")(link) or _host_in("discord.gg")(link)),
    (LinkTag.INSTAGRAM, _host_contains("instagram.com")),
    (LinkTag.SOLANA, is_solana_address),
    (LinkTag.ETH, is_eth_address),
    (LinkTag.DOCS, is_documentation),
)


def link_tags(link: LinkRecord) -> frozenset[LinkTag]:
    """Every badge that applies to a link."""
    return frozenset(tag for tag, predicate in TAG_RULES if predicate(link))
