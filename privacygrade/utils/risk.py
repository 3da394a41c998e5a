"""Grade presentation helpers shared by the scoring engine and badge sink."""

from __future__ import annotations

_RISK_BY_GRADE = {
    "A+": "minimal",
    "A": "low",
    "B": "moderate",
    "C": "concerning",
    "D": "high",
    "F": "severe",
}

_BADGE_COLOURS = {
    "A+": "#4CAF50",
    "A": "#8BC34A",
    "B": "#FFC107",
    "C": "#FF9800",
    "D": "#FF5722",
    "F": "#F44336",
}


def risk_level(grade: str) -> str:
    """Map a letter grade to a human risk level."""
    return _RISK_BY_GRADE.get(grade, "unknown")


def badge_colour(grade: str) -> str:
    """Return the badge background colour for *grade*."""
    return _BADGE_COLOURS.get(grade, "#666666")


def category_level(percentage: int) -> str:
    """Bucket a percentage-of-max into a qualitative level."""
    if percentage >= 80:
        return "excellent"
    if percentage >= 60:
        return "good"
    if percentage >= 40:
        return "moderate"
    if percentage >= 20:
        return "concerning"
    return "poor"
