"""Privacy score calculator: orchestrator.

Runs each category scorer over a page snapshot, sums the kept
points (higher is more private, 100 at most), subtracts the
third-party request penalty, clamps to 0–100 and maps the result to
a letter grade.

The penalty table is a parameter rather than a constant: the
on-demand UI query and the background badge repaint grade with
different tables (see :mod:`privacygrade.config`).
"""

from __future__ import annotations

import math
from datetime import UTC, datetime

from privacygrade import config
from privacygrade.analysis.scoring import cookies, fingerprinting, forms, permissions, trackers
from privacygrade.models import observation, scoring
from privacygrade.utils import logger, risk

log = logger.create_logger("PrivacyScore")

MAX_POINTS: dict[str, int] = {
    "trackers": trackers.MAX_POINTS,
    "cookies": cookies.MAX_POINTS,
    "fingerprinting": fingerprinting.MAX_POINTS,
    "permissions": permissions.MAX_POINTS,
    "forms": forms.MAX_POINTS,
}

# Lower bounds, checked top-down.
_GRADE_THRESHOLDS: tuple[tuple[int, scoring.Grade], ...] = (
    (90, "A+"),
    (80, "A"),
    (70, "B"),
    (60, "C"),
    (50, "D"),
)

_RECOMMENDATIONS: dict[str, tuple[scoring.Severity, str]] = {
    "trackers": ("high", "Consider using an ad blocker or privacy-focused browser"),
    "fingerprinting": ("high", "This site may be fingerprinting your device"),
    "cookies": ("medium", "Review and clear cookies regularly"),
    "permissions": ("medium", "Be cautious about granting device permissions"),
    "forms": ("medium", "Think twice before entering personal details on this site"),
}


def score_to_grade(final_score: float) -> scoring.Grade:
    """Map a 0–100 score to a letter grade (lower bounds inclusive)."""
    for threshold, grade in _GRADE_THRESHOLDS:
        if final_score >= threshold:
            return grade
    return "F"


def third_party_penalty(third_party_count: int, table: config.PenaltyTable) -> int:
    """Return the penalty of the first row whose threshold is exceeded."""
    for threshold, penalty in sorted(table, key=lambda row: row[0], reverse=True):
        if third_party_count > threshold:
            return penalty
    return 0


def _breakdown(categories: dict[str, scoring.CategoryScore]) -> dict[str, scoring.CategoryBreakdown]:
    result: dict[str, scoring.CategoryBreakdown] = {}
    for name, cat in categories.items():
        # Halves round up.
        percentage = math.floor(cat.points / cat.max_points * 100 + 0.5) if cat.max_points else 0
        result[name] = scoring.CategoryBreakdown(
            points=cat.points,
            max_points=cat.max_points,
            percentage=percentage,
            level=risk.category_level(percentage),
        )
    return result


def _recommendations(
    categories: dict[str, scoring.CategoryScore],
    ratio: float,
) -> list[scoring.Recommendation]:
    """Advise on every category that kept less than *ratio* of its max."""
    recommendations: list[scoring.Recommendation] = []
    for name, (severity, message) in _RECOMMENDATIONS.items():
        cat = categories.get(name)
        if cat is not None and cat.points < cat.max_points * ratio:
            recommendations.append(scoring.Recommendation(category=name, severity=severity, message=message))
    return recommendations


# ── Public API ──────────────────────────────────────────────


def score(
    snapshot: observation.PageSnapshot,
    penalties: config.PenaltyTable = config.ON_DEMAND_PENALTIES,
    settings: config.EngineSettings | None = None,
    now: float | None = None,
) -> scoring.ScoreResult:
    """Score one page snapshot.

    Args:
        snapshot: Finalised observation of the page.
        penalties: Third-party request penalty table.
        settings: Engine settings; the process settings by default.
        now: Reference epoch time for cookie expiry checks.

    Returns:
        A fresh :class:`ScoreResult`.
    """
    settings = settings or config.get_settings()

    categories = {
        "trackers": trackers.calculate(snapshot.trackers),
        "cookies": cookies.calculate(snapshot.cookies, settings.long_term_cookie_days, now),
        "fingerprinting": fingerprinting.calculate(snapshot.fingerprint_signals),
        "permissions": permissions.calculate(snapshot.permissions),
        "forms": forms.calculate(snapshot.forms),
    }

    raw_score = sum(cat.points for cat in categories.values())
    penalty = third_party_penalty(snapshot.requests.third_party, penalties)
    final_score = max(0, min(100, raw_score - penalty))
    grade = score_to_grade(final_score)

    log.debug(
        "Privacy score calculated",
        {
            "domain": snapshot.domain,
            "raw": raw_score,
            "penalty": penalty,
            "final": final_score,
            "grade": grade,
        },
    )

    return scoring.ScoreResult(
        categories=categories,
        raw_score=raw_score,
        third_party_penalty=penalty,
        final_score=final_score,
        grade=grade,
        breakdown=_breakdown(categories),
        recommendations=_recommendations(categories, settings.recommendation_ratio),
    )


def default_score() -> scoring.ScoreResult:
    """The "no data" result for untracked tabs: every category at max, A+."""
    categories = {name: scoring.CategoryScore(points=pts, max_points=pts) for name, pts in MAX_POINTS.items()}
    return scoring.ScoreResult(
        categories=categories,
        raw_score=100,
        third_party_penalty=0,
        final_score=100,
        grade="A+",
        breakdown=_breakdown(categories),
        recommendations=[],
    )


def build_report(result: scoring.ScoreResult, snapshot: observation.PageSnapshot | None) -> scoring.DetailedReport:
    """Wrap a score in the detailed report shown by the UI."""
    summary = scoring.ReportSummary(
        grade=result.grade,
        trackers=len(snapshot.trackers) if snapshot else 0,
        cookies=len(snapshot.cookies) if snapshot else 0,
        fingerprinting=sum(snapshot.fingerprint_signals.values()) if snapshot else 0,
        permissions=len(snapshot.permissions) if snapshot else 0,
        risk_level=risk.risk_level(result.grade),
    )
    return scoring.DetailedReport(
        grade=result.grade,
        final_score=result.final_score,
        categories=result.individual,
        breakdown=result.breakdown,
        recommendations=result.recommendations,
        summary=summary,
        timestamp=datetime.now(UTC).isoformat(),
    )


def detailed_report(
    snapshot: observation.PageSnapshot,
    penalties: config.PenaltyTable = config.ON_DEMAND_PENALTIES,
    settings: config.EngineSettings | None = None,
    now: float | None = None,
) -> scoring.DetailedReport:
    """Score *snapshot* and build the detailed report."""
    return build_report(score(snapshot, penalties, settings, now), snapshot)
