"""Cookie classification and ``Set-Cookie`` parsing.

A cookie is *tracking* when its ``name=value`` string carries a known
analytics or advertising signature, and *long-term* when it expires
more than ``long_term_days`` (30 by default) in the future.  Session
cookies (no expiry) are short-term by convention, and an expiry that
cannot be parsed is treated as short-term too.
"""

from __future__ import annotations

import time
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime

from privacygrade.analysis import tracker_lists
from privacygrade.models import detection, observation
from privacygrade.utils import logger

log = logger.create_logger("Cookies")

_SECONDS_PER_DAY = 24 * 60 * 60


def is_tracking_cookie(cookie: observation.Cookie) -> bool:
    """True when ``name=value`` matches a tracking signature (case-insensitive)."""
    cookie_string = f"{cookie.name}={cookie.value}".lower()
    return any(p.search(cookie_string) for p in tracker_lists.TRACKING_COOKIE_PATTERNS)


def expiry_timestamp(expiry: float | datetime | str | None) -> float | None:
    """Convert a cookie expiry to epoch seconds.

    Accepts epoch seconds, ``datetime`` (naive values are taken as
    UTC), RFC 1123 HTTP dates and ISO-8601 strings.

    Returns:
        Epoch seconds, or ``None`` for session cookies and values that
        cannot be parsed.
    """
    if expiry is None or expiry == "":
        return None
    if isinstance(expiry, bool):
        return None
    if isinstance(expiry, (int, float)):
        return float(expiry)
    if isinstance(expiry, datetime):
        parsed = expiry
    else:
        text = expiry.strip()
        try:
            return float(text)
        except ValueError:
            pass
        try:
            parsed = parsedate_to_datetime(text)
        except (TypeError, ValueError, IndexError):
            try:
                parsed = datetime.fromisoformat(text)
            except ValueError:
                log.debug("Unparseable cookie expiry", {"expiry": text})
                return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.timestamp()


def is_long_term(cookie: observation.Cookie, long_term_days: int = 30, now: float | None = None) -> bool:
    """True when the cookie expires more than *long_term_days* from *now*."""
    expires_at = expiry_timestamp(cookie.expiry)
    if expires_at is None:
        return False
    current = time.time() if now is None else now
    return (expires_at - current) / _SECONDS_PER_DAY > long_term_days


def classify(cookie: observation.Cookie, long_term_days: int = 30, now: float | None = None) -> detection.CookieClassification:
    """Classify a single cookie."""
    return detection.CookieClassification(
        is_tracking=is_tracking_cookie(cookie),
        is_long_term=is_long_term(cookie, long_term_days, now),
    )


def parse_set_cookie(header: str | None, now: float | None = None) -> observation.Cookie:
    """Parse a raw ``Set-Cookie`` header value.

    The name and value are the text before and after the first ``=``
    of the first ``;``-delimited segment; either defaults to ``""``.
    ``Max-Age`` and ``Expires`` attributes populate the expiry, with
    ``Max-Age`` taking precedence.
    """
    if not header:
        return observation.Cookie()

    first, *attributes = header.split(";")
    name, _, value = first.partition("=")

    expires: str | None = None
    max_age: float | None = None
    for attribute in attributes:
        key, _, attr_value = attribute.partition("=")
        key = key.strip().lower()
        if key == "expires":
            expires = attr_value.strip() or None
        elif key == "max-age":
            try:
                max_age = float(attr_value.strip())
            except ValueError:
                log.debug("Ignoring malformed Max-Age", {"value": attr_value.strip()})

    expiry: float | str | None = expires
    if max_age is not None:
        expiry = (time.time() if now is None else now) + max_age

    return observation.Cookie(name=name.strip(), value=value.strip(), expiry=expiry)
