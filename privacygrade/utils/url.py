"""
URL and hostname helpers for request attribution.
"""

from __future__ import annotations

from collections.abc import Iterable
from urllib import parse

from privacygrade.utils.errors import InvalidUrlError


def parse_hostname(url: str) -> str:
    """Return the lower-cased hostname of *url*.

    Raises:
        InvalidUrlError: The URL cannot be parsed or has no host
            (``"example.com"`` without a scheme, ``"about:blank"``).
    """
    try:
        parsed = parse.urlsplit(url)
        hostname = parsed.hostname
    except ValueError as exc:
        raise InvalidUrlError(url, str(exc)) from exc
    if not hostname:
        raise InvalidUrlError(url, "URL has no hostname")
    return hostname.lower()


def extract_hostname(url: str) -> str:
    """Extract the hostname from a URL string, or ``""`` when there is none."""
    try:
        return parse_hostname(url)
    except InvalidUrlError:
        return ""


def get_scheme(url: str) -> str:
    """Return the lower-cased scheme of *url* (``""`` when absent)."""
    head, sep, _ = url.strip().partition(":")
    if not sep or "/" in head:
        return ""
    return head.lower()


def is_internal_url(url: str, internal_schemes: Iterable[str]) -> bool:
    """True for browser-internal pages that are never tracked."""
    return get_scheme(url) in {s.lower() for s in internal_schemes}


def is_third_party(request_hostname: str, page_domain: str) -> bool:
    """A request is third party when its hostname differs from the page's."""
    return request_hostname.lower() != page_domain.lower()


def query_param_names(url: str) -> list[str]:
    """Return the lower-cased parameter names of the URL's query string."""
    try:
        query = parse.urlsplit(url).query
    except ValueError:
        return []
    return [name.lower() for name, _ in parse.parse_qsl(query, keep_blank_values=True)]
