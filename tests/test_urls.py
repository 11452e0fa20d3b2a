"""Tests for URL normalization, fingerprinting and link resolution.

Everything under test is pure, so no fixtures or mocks are needed.
"""

from __future__ import annotations

import hashlib

import pytest

from linkray.errors import InvalidURLError
from linkray.urls import (
    fingerprint,
    normalize_url,
    resolve_link,
    same_site,
    screenshot_url,
    site_key,
)


# ---------------------------------------------------------------------------
# normalize_url
# ---------------------------------------------------------------------------

class TestNormalizeUrl:
    def test_bare_domain_gets_https_and_root_path(self) -> None:
        assert normalize_url("example.com") == "https://example.com/"

    def test_surrounding_whitespace_is_trimmed(self) -> None:
        assert normalize_url("   example.com/page  ") == "https://example.com/page"

    def test_scheme_and_host_lowercased_path_preserved(self) -> None:
        assert normalize_url("HTTP://Example.COM/Path?q=1") == "http://example.com/Path?q=1"

    def test_default_ports_are_dropped(self) -> None:
        assert normalize_url("https://example.com:443/a") == "https://example.com/a"
        assert normalize_url("http://example.com:80") == "http://example.com/"

    def test_non_default_port_is_kept(self) -> None:
        assert normalize_url("https://example.com:8443/a") == "https://example.com:8443/a"

    def test_fragment_is_kept(self) -> None:
        assert normalize_url("https://example.com/a#top") == "https://example.com/a#top"

    def test_internationalized_host_is_punycoded(self) -> None:
        assert normalize_url("https://münchen.de") == "https://xn--mnchen-3ya.de/"

    def test_ipv6_literal(self) -> None:
        assert normalize_url("http://[::1]:8080/") == "http://[::1]:8080/"

    def test_query_spaces_are_percent_encoded(self) -> None:
        assert normalize_url("example.com/search?q=a b") == "https://example.com/search?q=a%20b"

    def test_raw_and_escaped_query_share_a_fingerprint(self) -> None:
        raw = normalize_url("example.com/search?q=a b&lang=en")
        escaped = normalize_url("example.com/search?q=a%20b&lang=en")
        assert raw == escaped
        assert fingerprint(raw) == fingerprint(escaped)

    def test_idempotent(self) -> None:
        once = normalize_url("Example.com:443/Docs?x=1")
        assert normalize_url(once) == once

    @pytest.mark.parametrize(
        "raw",
        ["", "   ", "not a url!!", "https://exa mple.com", "https://-bad-.com", "https://example.com:99999"],
    )
    def test_invalid_inputs_raise(self, raw: str) -> None:
        with pytest.raises(InvalidURLError):
            normalize_url(raw)

    @pytest.mark.parametrize("raw", ["ftp://example.com/file", "javascript://alert(1)", "file:///etc/passwd"])
    def test_other_schemes_are_rejected(self, raw: str) -> None:
        with pytest.raises(InvalidURLError) as exc_info:
            normalize_url(raw)
        assert exc_info.value.message == "Only HTTP and HTTPS URLs are supported"
        assert exc_info.value.status_code == 400

    def test_invalid_url_default_message(self) -> None:
        with pytest.raises(InvalidURLError) as exc_info:
            normalize_url("not a url!!")
        assert exc_info.value.message == "Invalid URL format"


# ---------------------------------------------------------------------------
# fingerprint
# ---------------------------------------------------------------------------

class TestFingerprint:
    def test_md5_of_lowercased_url(self) -> None:
        expected = hashlib.md5(b"https://example.com/").hexdigest()
        assert fingerprint("https://example.com/") == expected

    def test_case_and_whitespace_insensitive(self) -> None:
        assert fingerprint("  HTTPS://Example.com/  ") == fingerprint("https://example.com/")

    def test_different_urls_differ(self) -> None:
        assert fingerprint("https://example.com/a") != fingerprint("https://example.com/b")

    def test_is_hex_digest(self) -> None:
        value = fingerprint("https://example.com/")
        assert len(value) == 32
        int(value, 16)


# ---------------------------------------------------------------------------
# screenshot_url
# ---------------------------------------------------------------------------

class TestScreenshotUrl:
    def test_url_is_fully_percent_encoded(self) -> None:
        shot = screenshot_url("https://example.com/a?b=c", "https://shots.test/?url={url}&x=1")
        assert shot == "https://shots.test/?url=https%3A%2F%2Fexample.com%2Fa%3Fb%3Dc&x=1"

    def test_template_without_placeholder_is_returned_unchanged(self) -> None:
        assert screenshot_url("https://example.com/", "https://static.test/img.png") == (
            "https://static.test/img.png"
        )


# ---------------------------------------------------------------------------
# resolve_link / site_key
# ---------------------------------------------------------------------------

class TestResolveLink:
    def test_relative_path(self) -> None:
        assert resolve_link("page2", "https://example.com/dir/page1") == "https://example.com/dir/page2"

    def test_root_relative_drops_fragment(self) -> None:
        assert resolve_link("/about#team", "https://example.com/x") == "https://example.com/about"

    def test_absolute_link_is_canonicalized(self) -> None:
        assert resolve_link("HTTPS://Other.COM:443", "https://example.com/") == "https://other.com/"

    @pytest.mark.parametrize("href", ["#top", "", "mailto:a@b.com", "javascript:void(0)", "tel:+123"])
    def test_non_crawlable_hrefs_return_none(self, href: str) -> None:
        assert resolve_link(href, "https://example.com/") is None


class TestSiteKey:
    def test_strips_www(self) -> None:
        assert site_key("https://www.example.com/a") == "example.com"

    def test_same_site_ignores_www_and_scheme(self) -> None:
        assert same_site("https://www.example.com/", "http://example.com/x") is True

    def test_subdomain_is_a_different_site(self) -> None:
        assert same_site("https://blog.example.com/", "https://example.com/") is False
