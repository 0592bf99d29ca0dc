"""Tests for classification, ranking and grouping."""

import pytest

from linkgrab.classify import (
    BlockedDomainMatcher,
    LinkCategory,
    LinkTag,
    base_domain,
    classify,
    link_tags,
    priority_tier,
    reversed_hostname,
    source_origin,
)
from linkgrab.discovery.normalizer import build_record
from linkgrab.models.config import ClassifyOptions
from linkgrab.models.links import SourceKind

SOL = "9xQeWvG816bUx9EPjHmaT23yvVM2ZWbrrpZb9PusVFin"
ETH = "0x" + "ab" * 20


def link(href: str, source: SourceKind = SourceKind.ANCHOR):
    return build_record(href, source=source)


def hrefs(items):
    return [item.href for item in items]


class TestDomains:
    """Tests for hostname helpers."""

    @pytest.mark.parametrize(
        "hostname, expected",
        [
            ("app.lighter.xyz", "lighter.xyz"),
            ("example.com", "example.com"),
            ("a.b.example.com", "example.com"),
            ("shop.example.co.uk", "example.co.uk"),
            ("example.co.uk", "example.co.uk"),
            ("localhost", "localhost"),
        ],
    )
    def test_base_domain(self, hostname, expected):
        """Test base registrable domain extraction."""
        assert base_domain(hostname) == expected

    def test_reversed_hostname(self):
        """Test the grouping sort key."""
        assert reversed_hostname("a.b.example.com") == "com.example.b.a"

    def test_blocked_hierarchy(self):
        """Test that parent domains block their subdomains only."""
        blocked = {"example.com"}
        matcher = BlockedDomainMatcher(blocked)

        assert matcher.is_blocked("example.com")
        assert matcher.is_blocked("a.b.example.com")
        assert "a.b.example.com" in matcher
        assert not matcher.is_blocked("notexample.com")
        assert not matcher.is_blocked("example.com.evil.net")
        # The caller's set is never touched by the memo
        assert blocked == {"example.com"}


class TestTiers:
    """Tests for priority tiers and tags."""

    @pytest.mark.parametrize(
        "href, tier",
        [
            ("https://x.com/someone", 2),
            ("https://t.me/group", 2),
            ("https://discord.com/invite/abc", 2),
            (f"https://solscan.io/token/{SOL}", 3),
            (f"https://etherscan.io/address/{ETH}", 3),
            (f"https://etherscan.io/address/{ETH[2:]}", 3),
            ("https://docs.github.com/en", 4),
            ("https://team.gitbook.io/", 4),
            ("https://news.ycombinator.com/", 5),
        ],
    )
    def test_priority_tier(self, href, tier):
        """Test that the first matching rule decides the tier."""
        assert priority_tier(link(href)) == tier

    def test_address_checks_path_only(self):
        """Test that an address in the query string does not count."""
        assert priority_tier(link(f"https://scan.net/?a={SOL}")) == 5

    def test_tags(self):
        """Test badge computation."""
        assert link_tags(link("https://twitter.com/a")) == {LinkTag.TWITTER}
        assert link_tags(link("https://discord.gg/x")) == {LinkTag.DISCORD}
        assert link_tags(link("https://www.instagram.com/p")) == {LinkTag.INSTAGRAM}
        assert link_tags(link(f"https://solscan.io/token/{SOL}")) == {LinkTag.SOLANA}
        assert link_tags(link(f"https://docs.site.org/{ETH}")) == {LinkTag.ETH, LinkTag.DOCS}
        assert link_tags(link("https://news.ycombinator.com/")) == frozenset()


class TestClassify:
    """Tests for the classification pipeline."""

    def test_end_to_end_ordering(self):
        """Test current domain, then social, then docs, with duplicates flagged."""
        links = [
            link("https://x.com/u1"),
            link("https://docs.github.com/g"),
            link("https://x.com/u1"),
            link("https://app.example.com/p"),
        ]
        options = ClassifyOptions(hide_duplicates=False)

        result = classify(links, "https://example.com", set(), options)

        assert hrefs(result.links) == [
            "https://app.example.com/p",
            "https://x.com/u1",
            "https://x.com/u1",
            "https://docs.github.com/g",
        ]
        assert [item.is_duplicate for item in result.links] == [False, False, True, False]
        assert [item.priority_tier for item in result.links] == [1, 2, 2, 4]
        assert result.links[0].is_current_domain
        assert not result.links[0].is_same_origin
        assert result.total == 4

        hidden = classify(links, "https://example.com", set(), ClassifyOptions())
        assert hrefs(hidden.visible) == [
            "https://app.example.com/p",
            "https://x.com/u1",
            "https://docs.github.com/g",
        ]

    def test_stable_within_group(self):
        """Test that equal keys keep their input order."""
        links = [link("https://b.org/2"), link("https://b.org/1"), link("https://a.org/")]
        result = classify(links, "https://site.net", set())

        assert hrefs(result.links) == ["https://a.org/", "https://b.org/2", "https://b.org/1"]

    def test_subdomains_cluster(self):
        """Test that reversed hostnames group subdomains under their parent."""
        links = [link("https://z.org/"), link("https://docs2.b.org/"), link("https://b.org/"), link("https://a.b.org/")]
        result = classify(links, "https://site.net", set())

        assert hrefs(result.links) == ["https://b.org/", "https://a.b.org/", "https://docs2.b.org/", "https://z.org/"]

    def test_grouping_off_keeps_order(self):
        """Test that group_by_domain=False keeps collection order."""
        links = [link("https://z.org/"), link("https://app.site.net/"), link("https://a.org/")]
        result = classify(links, "https://site.net", set(), ClassifyOptions(group_by_domain=False))

        assert hrefs(result.links) == ["https://z.org/", "https://app.site.net/", "https://a.org/"]
        assert result.links[1].priority_tier == 1

    def test_blocked_hidden_and_flagged(self):
        """Test blocked flags and hiding."""
        links = [link("https://ads.tracker.net/p"), link("https://ok.org/")]

        shown = classify(links, "https://site.net", {"tracker.net"}, ClassifyOptions(hide_blocked_domains=False))
        assert [item.is_blocked for item in shown.links] == [True, False]
        assert len(shown.visible) == 2

        hidden = classify(links, "https://site.net", {"tracker.net"})
        assert hrefs(hidden.visible) == ["https://ok.org/"]

    def test_hide_duplicates_and_blocked_together(self):
        """Test that both hiding options remove exactly the union of flagged links."""
        links = [
            link("https://bad.org/x"),
            link("https://bad.org/x"),
            link("https://ok.org/"),
            link("https://dup.org/a"),
            link("https://dup.org/a"),
        ]
        plain = ClassifyOptions(group_by_domain=False)

        both = classify(links, "https://site.net", {"bad.org"}, plain)
        assert hrefs(both.visible) == ["https://ok.org/", "https://dup.org/a"]
        assert [(item.is_duplicate, item.is_blocked) for item in both.links] == [
            (False, True),
            (True, True),
            (False, False),
            (False, False),
            (True, False),
        ]

        keep_blocked = plain.model_copy(update={"hide_blocked_domains": False})
        only_dupes = classify(links, "https://site.net", {"bad.org"}, keep_blocked)
        assert hrefs(only_dupes.visible) == ["https://bad.org/x", "https://ok.org/", "https://dup.org/a"]

        keep_dupes = plain.model_copy(update={"hide_duplicates": False})
        only_blocked = classify(links, "https://site.net", {"bad.org"}, keep_dupes)
        assert hrefs(only_blocked.visible) == ["https://ok.org/", "https://dup.org/a", "https://dup.org/a"]

    def test_hostless_links(self):
        """Test that mailto: links are classified like any other link."""
        links = [link("mailto:hi@site.org"), link("https://ok.org/")]
        result = classify(links, "https://site.net", {"site.org"}, ClassifyOptions(hide_same_origin=True))

        assert set(hrefs(result.visible)) == {"mailto:hi@site.org", "https://ok.org/"}
        assert not any(item.is_blocked for item in result.links)

    def test_same_origin_is_scheme_sensitive(self):
        """Test that http and https are different origins."""
        links = [link("https://site.net/a"), link("http://site.net/b"), link("https://other.org/")]

        result = classify(links, "https://site.net/page", set(), ClassifyOptions(hide_same_origin=True))

        assert hrefs(result.links) == ["http://site.net/b", "https://other.org/"]
        assert result.total == 3

    def test_same_origin_ignored_for_non_http_source(self):
        """Test that a non-http source never hides anything."""
        links = [link("https://site.net/a")]
        result = classify(links, "file:///tmp/page.html", set(), ClassifyOptions(hide_same_origin=True))

        assert len(result.links) == 1
        assert source_origin("file:///tmp/page.html") is None

    def test_duplicates_are_exact_href(self):
        """Test that duplicate detection compares full hrefs."""
        links = [link("https://a.org/x"), link("http://a.org/x"), link("https://a.org/x")]
        result = classify(links, "https://site.net", set(), ClassifyOptions(group_by_domain=False))

        assert [item.is_duplicate for item in result.links] == [False, False, True]

    def test_text_filter(self):
        """Test the case-insensitive href filter."""
        links = [link("https://github.com/Repo"), link("https://gitlab.com/b")]
        result = classify(links, "https://site.net", set(), ClassifyOptions(filter_text="  REPO "))

        assert hrefs(result.visible) == ["https://github.com/Repo"]

    def test_buckets(self):
        """Test the anchor/image/script split and items order."""
        links = [
            link("https://s.org/api", SourceKind.SCRIPT),
            link("https://i.org/pic.PNG?v=2"),
            link("https://a.org/page"),
            link("https://i.org/raw", SourceKind.IMAGE),
        ]
        result = classify(links, "https://site.net", set(), ClassifyOptions(group_by_domain=False))

        assert hrefs(result.anchors) == ["https://a.org/page"]
        assert hrefs(result.images) == ["https://i.org/pic.PNG?v=2", "https://i.org/raw"]
        assert hrefs(result.scripts) == ["https://s.org/api"]
        assert hrefs(result.items) == hrefs(result.anchors + result.images + result.scripts)
        assert result.images[0].category == LinkCategory.IMAGE

    def test_empty(self):
        """Test that an empty collection is a valid, empty result."""
        result = classify([], "https://site.net", set())

        assert result.is_empty
        assert result.items == ()

    def test_inputs_untouched(self):
        """Test that classify never mutates its inputs."""
        links = [link("https://b.org/"), link("https://a.org/")]
        blocked = {"b.org"}
        before = list(links)

        classify(links, "https://site.net", blocked)

        assert links == before
        assert blocked == {"b.org"}
