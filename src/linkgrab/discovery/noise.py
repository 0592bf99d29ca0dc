"""Noise suppression for library, CDN, documentation and tracking URLs."""

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NoiseRule:
    """A named regular expression; any URL it matches is noise."""

    name: str
    pattern: re.Pattern

    @classmethod
    def compile(cls, name: str, pattern: str, flags: int = 0) -> "NoiseRule":
        return cls(name=name, pattern=re.compile(pattern, flags))

    def matches(self, url: str) -> bool:
        return self.pattern.search(url) is not None


# Literal prefixes checked before any regex; covers most noise on real pages
IGNORED_PREFIXES: tuple[str, ...] = (
    "https://fonts.googleapis.com",
    "https://fonts.gstatic.com",
    "https://cdn.jsdelivr.net",
    "https://unpkg.com",
    "https://cdnjs.cloudflare.com",
    "https://developer.mozilla.org",
    "https://reactjs.org",
    "https://react.dev/errors",
    "https://nextjs.org/docs",
    "https://www.w3.org",
    "http://www.w3.org",
    "https://registry.npmjs.org",
    "https://localhost",
    "http://localhost",
)

_R = NoiseRule.compile

# Ordered slow-path rules
IGNORED_PATTERNS: tuple[NoiseRule, ...] = (
    # Template literal URLs (unresolved variables)
    _R("template-escaped", r"\$%7B.*%7D"),
    _R("template-literal", r"\$\{"),
    # W3C/standards
    _R("w3c", r"^https?://(www\.)?w3\.org/"),
    # Documentation sites
    _R("mdn", r"^https?://developer\.mozilla\.org/"),
    _R("bugzilla", r"^https?://bugzilla\.mozilla\.org/"),
    _R("react-error-decoder", r"^https?://reactjs\.org/docs/error-decoder"),
    _R("react-errors", r"^https?://react\.dev/errors"),
    _R("prosemirror-docs", r"^https?://prosemirror\.net/docs/"),
    _R("webglfundamentals", r"^https?://webglfundamentals\.org/"),
    # Package registries
    _R("npm-registry", r"^https?://registry\.npmjs\.org/"),
    _R("tarball", r"\.tgz$"),
    # License/open source
    _R("opensource-org", r"^https?://(www\.)?opensource\.org/"),
    _R("feross", r"^https?://feross\.org/"),
    _R("license-path", r"/licenses?/", re.IGNORECASE),
    # Library repos/sites
    _R("react-repo", r"^https?://(www\.)?github\.com/facebook/react"),
    _R("classnames", r"^https?://jedwatson\.github\.io/classnames"),
    # CDNs and fonts
    _R("unpkg", r"^https?://unpkg\.com/"),
    _R("jsdelivr", r"^https?://cdn\.jsdelivr\.net/"),
    _R("cdnjs", r"^https?://cdnjs\.cloudflare\.com/"),
    _R("google-fonts", r"^https?://fonts\.googleapis\.com(/|$)"),
    _R("google-fonts-static", r"^https?://fonts\.gstatic\.com(/|$)"),
    _R("growthbook-cdn", r"^https?://cdn\.growthbook\.io/"),
    _R("wordpress-static", r"^https?://s\.w\.org/"),
    # Package manager docs
    _R("yarn", r"^https?://yarnpkg\.com/"),
    # Library/framework docs
    _R("formatjs", r"^https?://formatjs\.io/"),
    _R("mozilla-github", r"^https?://mozilla\.github\.io/"),
    _R("nextjs-docs", r"^https?://nextjs\.org/docs/"),
    _R("jqueryui", r"^https?://(api\.)?jqueryui\.com/"),
    _R("jquery-org", r"^https?://jquery\.org/"),
    # SDK/init scripts
    _R("framer-edit", r"^https?://framer\.com/edit/"),
    # Ad/tracking/internal services
    _R("aboutads", r"^https?://(www\.)?aboutads\.info/"),
    _R("conde-internal", r"^https?://.*\.conde\.(digital|io)/"),
    _R("beop-widget", r"^https?://widget\.beop\.io/"),
    _R("facebook-connect", r"^https?://connect\.facebook\.net/"),
    _R("posthog-ingest", r"^https?://(us\.i\.|us\.)?posthog\.com/"),
    _R("posthog-app", r"^https?://(app\.)?posthog\.com/"),
    _R("sentry-ingest", r"^https?://.*\.ingest\.(us\.)?sentry\.io/"),
    _R("sentry-organizations", r"^https?://sentry\.io/organizations/"),
    _R("sentry-docs", r"^https?://docs\.sentry\.io/"),
    # URL shorteners
    _R("git-io", r"^https?://git\.io/"),
    # Docs/tutorials
    _R("tanstack", r"^https?://tanstack\.com/"),
    # Bots/crawlers
    _R("yandex-bots", r"^https?://(www\.)?yandex\.com/bots"),
    # Localhost/dev
    _R("localhost", r"^https?://localhost(:\d+)?/"),
    _R("example-com", r"^https?://(www\.)?example\.com/"),
    # Vercel/React internal
    _R("vercel-live", r"^https?://vercel\.live/_next-live/"),
    _R("react-link", r"^https?://reactjs\.org/link/"),
    # Invalid/test URLs
    _R("single-letter-host", r"^https?://[a-z](/|#|\?|$)", re.IGNORECASE),
    _R("userinfo-host", r"^https?://[^@/]+@[^/]+"),
    _R("punycode-host", r"^https?://xn--", re.IGNORECASE),
)


class NoiseFilter:
    """
    Two-tier noise check: literal prefixes first, then ordered regex rules.

    The rule tables are plain data. Pass ``prefixes``/``patterns`` to replace
    them or ``extra_prefixes``/``extra_patterns`` to extend the defaults.

    Example:
        noise = NoiseFilter(extra_prefixes=["https://static.example.net"])
        noise.is_noise("https://unpkg.com/react")   # True
        noise.is_noise("https://news.ycombinator.com/")  # False
    """

    def __init__(
        self,
        prefixes: Optional[Iterable[str]] = None,
        patterns: Optional[Iterable[NoiseRule]] = None,
        extra_prefixes: Optional[Iterable[str]] = None,
        extra_patterns: Optional[Iterable[str]] = None,
    ):
        base_prefixes = IGNORED_PREFIXES if prefixes is None else tuple(prefixes)
        base_patterns = IGNORED_PATTERNS if patterns is None else tuple(patterns)

        self.prefixes: tuple[str, ...] = base_prefixes + tuple(extra_prefixes or ())
        self.patterns: tuple[NoiseRule, ...] = base_patterns + tuple(
            NoiseRule.compile(f"custom-{i}", p) for i, p in enumerate(extra_patterns or ())
        )

    def matching_rule(self, url: str) -> Optional[str]:
        """
        Name the rule that marks ``url`` as noise.

        Returns:
            ``"prefix:<prefix>"`` for a prefix hit, the rule name for a pattern
            hit, or None when the URL is not noise
        """
        if url.startswith(self.prefixes):
            for prefix in self.prefixes:
                if url.startswith(prefix):
                    return f"prefix:{prefix}"

        for rule in self.patterns:
            if rule.matches(url):
                return rule.name

        return None

    def is_noise(self, url: str) -> bool:
        """Check whether a URL matches any prefix or pattern."""
        if url.startswith(self.prefixes):
            return True
        return any(rule.matches(url) for rule in self.patterns)

    def __len__(self) -> int:
        return len(self.prefixes) + len(self.patterns)
