"""Tracker scoring.

Points out of 40 based on the number of distinct tracker tags.  Any
advertising or fingerprinting tracker pins the category at 5,
whatever the count alone would have given.
"""

from __future__ import annotations

from collections.abc import Iterable

from privacygrade.analysis import domain_classifier, tracker_lists
from privacygrade.models import scoring
from privacygrade.utils import logger

log = logger.create_logger("Score-Trackers")

MAX_POINTS = 40
HIGH_RISK_CAP = 5


def count_points(tracker_count: int) -> int:
    """Count-based points, used when no high-risk tracker is present."""
    if tracker_count >= 10:
        return 0
    if tracker_count >= 6:
        return 8
    if tracker_count >= 3:
        return 12
    return MAX_POINTS


def calculate(trackers: Iterable[str]) -> scoring.CategoryScore:
    """Score the page's ``category:hostname`` tracker tags.

    Args:
        trackers: Distinct tracker tags.

    Returns:
        CategoryScore out of 40.
    """
    tags = set(trackers)
    issues: list[str] = []
    points = count_points(len(tags))

    high_risk = sorted(t for t in tags if domain_classifier.category_of_tag(t) in tracker_lists.HIGH_RISK_CATEGORIES)
    if high_risk:
        points = HIGH_RISK_CAP
        issues.append(f"{len(high_risk)} advertising or fingerprinting trackers")

    if len(tags) >= 10:
        issues.append(f"{len(tags)} trackers detected (heavy)")
    elif len(tags) >= 3:
        issues.append(f"{len(tags)} trackers detected")

    log.debug("Tracker score", {"trackers": len(tags), "highRisk": len(high_risk), "points": points})
    return scoring.CategoryScore(points=points, max_points=MAX_POINTS, issues=issues)
