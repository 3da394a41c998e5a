"""Device permission scoring (out of 10)."""

from __future__ import annotations

from collections.abc import Iterable

from privacygrade.analysis import tracker_lists
from privacygrade.models import scoring

MAX_POINTS = 10


def calculate(permissions: Iterable[str]) -> scoring.CategoryScore:
    """Score the permissions the page requested."""
    requested = {p.lower() for p in permissions}

    sensitive = sorted(requested & tracker_lists.SENSITIVE_PERMISSIONS)
    if sensitive:
        return scoring.CategoryScore(
            points=0,
            max_points=MAX_POINTS,
            issues=[f"Sensitive permissions requested ({', '.join(sensitive)})"],
        )

    moderate = sorted(requested & tracker_lists.MODERATE_PERMISSIONS)
    if moderate:
        return scoring.CategoryScore(
            points=2,
            max_points=MAX_POINTS,
            issues=[f"Permissions requested ({', '.join(moderate)})"],
        )

    return scoring.CategoryScore(points=MAX_POINTS, max_points=MAX_POINTS)
