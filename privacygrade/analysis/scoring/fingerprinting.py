"""Fingerprinting scoring.

Any strong technique (canvas, WebGL, audio) is an automatic zero;
otherwise the number of moderate techniques in use decides.
"""

from __future__ import annotations

from collections.abc import Mapping

from privacygrade.analysis import fingerprint_tracker
from privacygrade.models import scoring
from privacygrade.utils import logger

log = logger.create_logger("Score-Fingerprinting")

MAX_POINTS = 20


def calculate(signals: Mapping[str, int]) -> scoring.CategoryScore:
    """Score fingerprinting signal counts.

    Args:
        signals: Technique → occurrence count.

    Returns:
        CategoryScore out of 20.
    """
    strong = [t for t in fingerprint_tracker.STRONG_TECHNIQUES if signals.get(t, 0) > 0]
    moderate = [t for t in fingerprint_tracker.MODERATE_TECHNIQUES if signals.get(t, 0) > 0]

    if strong:
        points = 0
        issues = [f"Strong fingerprinting in use ({', '.join(strong)})"]
    elif len(moderate) >= 3:
        points = 3
        issues = [f"{len(moderate)} fingerprinting techniques in use ({', '.join(moderate)})"]
    elif moderate:
        points = 6
        issues = [f"Fingerprinting signals observed ({', '.join(moderate)})"]
    else:
        points = MAX_POINTS
        issues = []

    log.debug("Fingerprinting score", {"strong": strong, "moderate": moderate, "points": points})
    return scoring.CategoryScore(points=points, max_points=MAX_POINTS, issues=issues)
