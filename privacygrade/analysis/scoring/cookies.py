"""Cookie scoring.

Points out of 20 based on cookie volume, capped when known
tracking cookies are present or many cookies are long-lived.
"""

from __future__ import annotations

from collections.abc import Sequence

from privacygrade.analysis import cookie_analyzer
from privacygrade.models import observation, scoring
from privacygrade.utils import logger

log = logger.create_logger("Score-Cookies")

MAX_POINTS = 20
TRACKING_CAP = 1
LONG_TERM_CAP = 2
LONG_TERM_LIMIT = 5


def count_points(cookie_count: int) -> int:
    """Volume-based points before caps."""
    if cookie_count >= 20:
        return 0
    if cookie_count >= 10:
        return 1
    if cookie_count >= 6:
        return 2
    if cookie_count >= 1:
        return 4
    return MAX_POINTS


def calculate(
    cookies: Sequence[observation.Cookie],
    long_term_days: int = 30,
    now: float | None = None,
) -> scoring.CategoryScore:
    """Score the cookies set for the page.

    The result is the minimum of the volume points and every cap
    that applies.

    Args:
        cookies: Cookies observed on the page.
        long_term_days: Expiry horizon that makes a cookie long-lived.
        now: Reference epoch time (defaults to the current time).

    Returns:
        CategoryScore out of 20.
    """
    issues: list[str] = []
    points = count_points(len(cookies))

    classified = [cookie_analyzer.classify(c, long_term_days, now) for c in cookies]
    tracking = sum(1 for c in classified if c.is_tracking)
    long_term = sum(1 for c in classified if c.is_long_term)

    if len(cookies) >= 10:
        issues.append(f"{len(cookies)} cookies set")
    if tracking > 0:
        points = min(points, TRACKING_CAP)
        issues.append(f"{tracking} tracking cookies detected")
    if long_term > LONG_TERM_LIMIT:
        points = min(points, LONG_TERM_CAP)
        issues.append(f"{long_term} cookies persist over {long_term_days} days")

    log.debug(
        "Cookie score",
        {"cookies": len(cookies), "tracking": tracking, "longTerm": long_term, "points": points},
    )
    return scoring.CategoryScore(points=points, max_points=MAX_POINTS, issues=issues)
