"""Tests for URL normalization and noise filtering."""

import pytest

from linkgrab.discovery.noise import IGNORED_PATTERNS, IGNORED_PREFIXES, NoiseFilter
from linkgrab.discovery.normalizer import UrlNormalizer, build_record, normalize_href
from linkgrab.models.links import SourceKind, dedup_key


class TestNormalizeHref:
    """Tests for normalize_href."""

    def test_lowercases_scheme_and_host(self):
        """Test that scheme and hostname are lower-cased."""
        assert normalize_href("HTTPS://News.Example.ORG/Path") == "https://news.example.org/Path"

    def test_drops_default_port(self):
        """Test that default ports are removed and others kept."""
        assert normalize_href("https://site.org:443/a") == "https://site.org/a"
        assert normalize_href("http://site.org:80/a") == "http://site.org/a"
        assert normalize_href("https://site.org:8443/a") == "https://site.org:8443/a"

    def test_empty_path_becomes_slash(self):
        """Test that a bare host gets a root path."""
        assert normalize_href("https://site.org") == "https://site.org/"

    def test_preserves_query_and_fragment(self):
        """Test that query and fragment survive normalization."""
        assert normalize_href("https://site.org/p?q=1&b=2#top") == "https://site.org/p?q=1&b=2#top"

    def test_resolves_relative(self):
        """Test resolution against the base URL."""
        assert normalize_href("../b/c", "https://site.org/a/x/") == "https://site.org/a/b/c"
        assert normalize_href("//cdn.site.org/i.png", "https://site.org/") == "https://cdn.site.org/i.png"

    @pytest.mark.parametrize(
        "url",
        ["", "   ", "javascript:void(0)", "JavaScript:alert(1)", "no-scheme/path", "https://", "http://[::1"],
    )
    def test_rejects_unusable(self, url):
        """Test that script, scheme-less, hostless-network or malformed URLs return None."""
        assert normalize_href(url) is None

    def test_keeps_hostless_schemes(self):
        """Test that mailto: and tel: links survive with their address intact."""
        assert normalize_href("MAILTO:Hi@Site.org", "https://site.org/") == "mailto:Hi@Site.org"
        assert normalize_href("tel:+1-555-0100") == "tel:+1-555-0100"
        assert normalize_href("mailto:hi@site.org") == "mailto:hi@site.org"

    def test_hostless_record(self):
        """Test the record fields of a mailto: link."""
        record = build_record("mailto:hi@site.org")
        assert record.hostname == ""
        assert record.origin == "null"
        assert record.pathname == "hi@site.org"

    @pytest.mark.parametrize(
        "url",
        [
            "HTTPS://Site.org:443",
            "https://site.org/a b/ü?x=ä y#frag ment",
            "https://user:pw@site.org:8080/p%20q",
            "http://[2001:db8::1]:8080/x",
        ],
    )
    def test_idempotent(self, url):
        """Test that normalizing a normalized URL changes nothing."""
        once = normalize_href(url)
        assert once is not None
        assert normalize_href(once) == once


class TestBuildRecord:
    """Tests for build_record."""

    def test_components(self):
        """Test that a canonical href is split into record fields."""
        record = build_record("https://shop.site.org:8080/cart?id=3#x", text="Cart", frame_url="https://site.org/")

        assert record.hostname == "shop.site.org"
        assert record.host == "shop.site.org:8080"
        assert record.origin == "https://shop.site.org:8080"
        assert record.pathname == "/cart"
        assert record.search == "?id=3"
        assert record.hash == "#x"
        assert record.text == "Cart"
        assert record.source == SourceKind.ANCHOR
        assert record.frame_url == "https://site.org/"

    def test_round_trip_dict(self):
        """Test to_dict/from_dict."""
        record = build_record("https://site.org/a", text="A", source=SourceKind.IMAGE)
        assert type(record).from_dict(record.to_dict()) == record


class TestDedupKey:
    """Tests for the dedup key."""

    def test_strips_http_and_https(self):
        """Test that both schemes share a key."""
        assert dedup_key("https://site.org/a") == dedup_key("http://site.org/a") == "site.org/a"

    def test_other_schemes_untouched(self):
        """Test that non-http schemes keep their prefix."""
        assert dedup_key("ftp://site.org/a") == "ftp://site.org/a"


class TestNoiseFilter:
    """Tests for NoiseFilter."""

    @pytest.fixture
    def noise(self):
        return NoiseFilter()

    @pytest.mark.parametrize(
        "url",
        [
            "https://fonts.googleapis.com/css?family=Inter",
            "https://unpkg.com/react@18/umd/react.js",
            "http://www.w3.org/2000/svg",
            "http://localhost:3000/api",
        ],
    )
    def test_prefix_noise(self, noise, url):
        """Test that the literal prefixes catch common noise."""
        assert noise.is_noise(url)
        assert noise.matching_rule(url).startswith("prefix:")

    @pytest.mark.parametrize(
        "url, rule",
        [
            ("https://api.site.org/${id}/x", "template-literal"),
            ("https://api.site.org/$%7Bid%7D/x", "template-escaped"),
            ("https://github.com/facebook/react/issues", "react-repo"),
            ("https://site.org/LICENSE/mit", "license-path"),
            ("https://o1.ingest.sentry.io/api/1", "sentry-ingest"),
            ("https://a/", "single-letter-host"),
            ("https://user@site.org/", "userinfo-host"),
            ("https://xn--80ak6aa92e.com/", "punycode-host"),
            ("https://example.com/anything", "example-com"),
            ("https://registry.yarnpkg.com/pkg.tgz", "tarball"),
        ],
    )
    def test_pattern_noise(self, noise, url, rule):
        """Test that the named regex rules catch the slow-path noise."""
        assert noise.matching_rule(url) == rule

    @pytest.mark.parametrize(
        "url",
        [
            "https://news.ycombinator.com/",
            "https://github.com/psf/requests",
            "https://x.com/someone",
            "https://docs.python.org/3/",
            "https://notexample.com/page",
        ],
    )
    def test_real_links_pass(self, noise, url):
        """Test that ordinary outbound links are not noise."""
        assert not noise.is_noise(url)
        assert noise.matching_rule(url) is None

    def test_extra_rules(self):
        """Test that configured prefixes and patterns extend the defaults."""
        noise = NoiseFilter(extra_prefixes=["https://static.site.org"], extra_patterns=[r"/tracking/"])

        assert noise.is_noise("https://static.site.org/app.js")
        assert noise.matching_rule("https://site.org/tracking/pixel") == "custom-0"
        assert noise.is_noise("https://unpkg.com/x")
        assert len(noise) == len(IGNORED_PREFIXES) + len(IGNORED_PATTERNS) + 2

    def test_replaced_tables(self):
        """Test that passing tables replaces the defaults."""
        noise = NoiseFilter(prefixes=[], patterns=[])
        assert not noise.is_noise("https://unpkg.com/x")
        assert len(noise) == 0


class TestUrlNormalizer:
    """Tests for UrlNormalizer."""

    @pytest.fixture
    def normalizer(self):
        return UrlNormalizer("https://site.org/docs/")

    def test_normalizes_relative(self, normalizer):
        """Test that relative URLs resolve against the scope base."""
        record = normalizer.normalize("intro?x=1", text="Intro")

        assert record is not None
        assert record.href == "https://site.org/docs/intro?x=1"
        assert record.text == "Intro"
        assert record.frame_url == "https://site.org/docs/"

    def test_dedupes_across_schemes(self, normalizer):
        """Test that http and https forms of one URL are accepted once."""
        assert normalizer.normalize("https://other.org/a") is not None
        assert normalizer.normalize("http://other.org/a") is None
        assert normalizer.is_seen("https://other.org/a")
        assert len(normalizer) == 1

    def test_rejects_noise_and_garbage(self, normalizer):
        """Test that noise and unusable URLs come back as None."""
        assert normalizer.normalize("https://cdn.jsdelivr.net/npm/x") is None
        assert normalizer.normalize("javascript:alert(1)") is None
        assert normalizer.normalize("") is None
        assert len(normalizer) == 0

    def test_accepts_mailto(self, normalizer):
        """Test that mailto: anchors become records."""
        record = normalizer.normalize("mailto:hi@site.org", text="Mail")

        assert record.href == "mailto:hi@site.org"
        assert record.text == "Mail"
        assert normalizer.normalize("mailto:hi@site.org") is None

    def test_reset(self, normalizer):
        """Test that reset forgets seen keys."""
        normalizer.normalize("https://other.org/a")
        normalizer.reset()
        assert normalizer.normalize("https://other.org/a") is not None
