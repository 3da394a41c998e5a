"""Tests for privacygrade.utils.url: hostname and scheme helpers."""

from __future__ import annotations

import pytest

from privacygrade.utils import url as url_utils
from privacygrade.utils.errors import InvalidUrlError

# ── parse_hostname ──────────────────────────────────────────────


class TestParseHostname:
    """Tests for parse_hostname()."""

    def test_simple_url(self) -> None:
        assert url_utils.parse_hostname("https://example.com/path") == "example.com"

    def test_port_and_credentials(self) -> None:
        assert url_utils.parse_hostname("https://user:pw@Example.COM:8080/x") == "example.com"

    def test_subdomain_kept(self) -> None:
        assert url_utils.parse_hostname("https://a.b.example.co.uk/") == "a.b.example.co.uk"

    @pytest.mark.parametrize("url", ["", "not a url", "example.com", "about:blank"])
    def test_no_hostname_raises(self, url: str) -> None:
        with pytest.raises(InvalidUrlError) as excinfo:
            url_utils.parse_hostname(url)
        assert excinfo.value.url == url

    def test_malformed_ipv6_raises(self) -> None:
        with pytest.raises(InvalidUrlError):
            url_utils.parse_hostname("https://[::1/")


class TestExtractHostname:
    """Tests for extract_hostname()."""

    def test_valid(self) -> None:
        assert url_utils.extract_hostname("http://cdn.example.net/a.js") == "cdn.example.net"

    def test_invalid_returns_empty(self) -> None:
        assert url_utils.extract_hostname("not a url") == ""


# ── Schemes ─────────────────────────────────────────────────────


class TestSchemes:
    """Tests for get_scheme() and is_internal_url()."""

    @pytest.mark.parametrize(
        ("url", "scheme"),
        [
            ("https://example.com", "https"),
            ("CHROME://settings", "chrome"),
            ("about:blank", "about"),
            ("example.com/path:1", ""),
            ("", ""),
        ],
    )
    def test_get_scheme(self, url: str, scheme: str) -> None:
        assert url_utils.get_scheme(url) == scheme

    def test_internal(self) -> None:
        schemes = ("chrome", "about")
        assert url_utils.is_internal_url("chrome://newtab/", schemes)
        assert url_utils.is_internal_url("about:blank", schemes)
        assert not url_utils.is_internal_url("https://example.com/", schemes)


# ── Third party and queries ─────────────────────────────────────


class TestThirdParty:
    """Tests for is_third_party()."""

    def test_same_host(self) -> None:
        assert not url_utils.is_third_party("example.com", "Example.com")

    def test_subdomain_is_third_party(self) -> None:
        assert url_utils.is_third_party("cdn.example.com", "example.com")


class TestQueryParamNames:
    """Tests for query_param_names()."""

    def test_names_lowercased(self) -> None:
        assert url_utils.query_param_names("https://x.test/?UTM_Source=a&id=&q=1") == ["utm_source", "id", "q"]

    def test_no_query(self) -> None:
        assert url_utils.query_param_names("https://x.test/") == []
