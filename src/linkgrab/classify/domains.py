"""Hostname helpers: base registrable domain, sort keys, blocked domains."""

from collections.abc import Iterable

# Public suffixes made of two labels; a base domain under these keeps three labels
TWO_PART_SUFFIXES = frozenset({"co.uk", "com.au", "co.nz", "co.jp", "com.br", "co.kr"})


def base_domain(hostname: str) -> str:
    """
    Return the base registrable domain of a hostname.

    Examples:
        >>> base_domain("app.lighter.xyz")
        'lighter.xyz'
        >>> base_domain("shop.example.co.uk")
        'example.co.uk'
    """
    hostname = hostname.lower()
    labels = hostname.split(".")
    if len(labels) <= 2:
        return hostname
    if ".".join(labels[-2:]) in TWO_PART_SUFFIXES:
        return ".".join(labels[-3:])
    return ".".join(labels[-2:])


def reversed_hostname(hostname: str) -> str:
    """``a.b.example.com`` -> ``com.example.b.a``; clusters subdomains under their parent."""
    return ".".join(reversed(hostname.lower().split(".")))


class BlockedDomainMatcher:
    """
    Hierarchical blocked-domain check.

    A hostname is blocked when it, or any parent domain of it, is in the
    blocked set. Hostnames blocked through a parent are remembered so the
    next check for the same hostname is a single set lookup. The matcher
    copies the input set; the caller's set is never modified.

    Example:
        matcher = BlockedDomainMatcher({"example.com"})
        matcher.is_blocked("a.example.com")  # True
        matcher.is_blocked("notexample.com")  # False
    """

    def __init__(self, blocked_domains: Iterable[str]):
        self._blocked: set[str] = {d.lower() for d in blocked_domains}

    def is_blocked(self, hostname: str) -> bool:
        hostname = hostname.lower()
        if hostname in self._blocked:
            return True

        dot = hostname.find(".")
        while dot != -1:
            if hostname[dot + 1 :] in self._blocked:
                self._blocked.add(hostname)
                return True
            dot = hostname.find(".", dot + 1)
        return False

    def __contains__(self, hostname: str) -> bool:
        return self.is_blocked(hostname)

    def __len__(self) -> int:
        return len(self._blocked)
