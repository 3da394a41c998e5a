"""Tests for the privacy score calculator and category modules.

Covers each category's ``calculate()`` function, the third-party
penalty tables, grade mapping and the top-level orchestrator.
"""

from __future__ import annotations

import time
from datetime import datetime

import pytest

from privacygrade import config
from privacygrade.analysis.scoring import calculator, cookies, fingerprinting, forms, permissions, trackers
from privacygrade.models import observation

_DAY = 24 * 60 * 60


# ── Helpers ─────────────────────────────────────────────────────


def _cookie(name: str = "c", *, expiry: float | None = None) -> observation.Cookie:
    return observation.Cookie(name=name, value="v", expiry=expiry)


def _snapshot(**kwargs: object) -> observation.PageSnapshot:
    return observation.PageSnapshot(page_id="p1", url="https://example.com/", domain="example.com", **kwargs)


# ── Tracker scoring ─────────────────────────────────────────────


class TestTrackerScoring:
    """Tests for the tracker category scorer."""

    @pytest.mark.parametrize(
        ("count", "expected"),
        [(0, 40), (1, 40), (2, 40), (3, 12), (5, 12), (6, 8), (9, 8), (10, 0), (25, 0)],
    )
    def test_count_boundaries(self, count: int, expected: int) -> None:
        tags = {f"analytics:t{i}.example" for i in range(count)}
        assert trackers.calculate(tags).points == expected

    def test_no_trackers_no_issues(self) -> None:
        result = trackers.calculate(set())
        assert result.points == 40
        assert result.max_points == 40
        assert result.issues == []

    def test_fingerprinting_tracker_caps_score(self) -> None:
        result = trackers.calculate({"fingerprinting:evil.com"})
        assert result.points == 5
        assert any("advertising or fingerprinting" in issue for issue in result.issues)

    def test_advertising_tracker_caps_score(self) -> None:
        result = trackers.calculate({"advertising:ads.example", "analytics:a.example"})
        assert result.points == 5

    def test_high_risk_overrides_heavy_count(self) -> None:
        tags = {"advertising:ads.example"} | {f"heuristic:t{i}.example" for i in range(11)}
        assert trackers.calculate(tags).points == 5

    def test_heavy_issue(self) -> None:
        tags = {f"heuristic:t{i}.example" for i in range(10)}
        assert any("heavy" in issue for issue in trackers.calculate(tags).issues)


# ── Cookie scoring ──────────────────────────────────────────────


class TestCookieScoring:
    """Tests for the cookie category scorer."""

    @pytest.mark.parametrize(
        ("count", "expected"),
        [(0, 20), (1, 4), (5, 4), (6, 2), (9, 2), (10, 1), (19, 1), (20, 0)],
    )
    def test_count_boundaries(self, count: int, expected: int) -> None:
        items = [_cookie(f"c{i}") for i in range(count)]
        assert cookies.calculate(items).points == expected

    def test_tracking_cookie_caps_at_one(self) -> None:
        result = cookies.calculate([_cookie("_ga")])
        assert result.points == 1
        assert any("tracking cookies" in issue for issue in result.issues)

    def test_tracking_cap_with_many_cookies(self) -> None:
        items = [_cookie("_ga")] + [_cookie(f"c{i}") for i in range(24)]
        assert cookies.calculate(items).points == 0

    def test_long_lived_cookies_reported(self) -> None:
        now = time.time()
        items = [_cookie(f"c{i}", expiry=now + 400 * _DAY) for i in range(6)]
        result = cookies.calculate(items, 30, now)
        assert result.points == 2
        assert any("persist" in issue for issue in result.issues)

    def test_five_long_lived_cookies_not_capped(self) -> None:
        now = time.time()
        items = [_cookie(f"c{i}", expiry=now + 400 * _DAY) for i in range(5)]
        result = cookies.calculate(items, 30, now)
        assert result.points == 4
        assert not any("persist" in issue for issue in result.issues)

    def test_session_cookies_are_short_term(self) -> None:
        items = [_cookie(f"c{i}") for i in range(8)]
        result = cookies.calculate(items)
        assert not any("persist" in issue for issue in result.issues)


# ── Fingerprinting scoring ──────────────────────────────────────


class TestFingerprintingScoring:
    """Tests for the fingerprinting category scorer."""

    @pytest.mark.parametrize("technique", ["canvas", "webgl", "audio"])
    def test_strong_technique_zeroes_category(self, technique: str) -> None:
        assert fingerprinting.calculate({technique: 1}).points == 0

    def test_three_moderate_techniques(self) -> None:
        result = fingerprinting.calculate({"fonts": 1, "navigator": 1, "screen": 1})
        assert result.points == 3

    def test_one_moderate_technique(self) -> None:
        assert fingerprinting.calculate({"timezone": 2}).points == 6

    def test_nothing_observed(self) -> None:
        result = fingerprinting.calculate({})
        assert result.points == 20
        assert result.issues == []

    def test_zero_counts_ignored(self) -> None:
        assert fingerprinting.calculate({"canvas": 0, "fonts": 1}).points == 6

    def test_unknown_technique_ignored(self) -> None:
        assert fingerprinting.calculate({"battery": 3}).points == 20


# ── Permission scoring ──────────────────────────────────────────


class TestPermissionScoring:
    """Tests for the permission category scorer."""

    @pytest.mark.parametrize("permission", ["geolocation", "camera", "microphone", "clipboard"])
    def test_sensitive(self, permission: str) -> None:
        assert permissions.calculate({permission}).points == 0

    def test_moderate(self) -> None:
        assert permissions.calculate({"notifications"}).points == 2

    def test_sensitive_wins_over_moderate(self) -> None:
        assert permissions.calculate({"notifications", "camera"}).points == 0

    def test_none_requested(self) -> None:
        assert permissions.calculate(set()).points == 10

    def test_unlisted_permission(self) -> None:
        assert permissions.calculate({"midi"}).points == 10

    def test_case_insensitive(self) -> None:
        assert permissions.calculate({"Geolocation"}).points == 0


# ── Form scoring ────────────────────────────────────────────────


class TestFormScoring:
    """Tests for the form data-collection scorer."""

    @pytest.mark.parametrize(
        ("fields", "sensitive", "expected"),
        [
            (0, 0, 10),
            (10, 0, 10),
            (11, 0, 5),
            (1, 1, 3),
            (3, 2, 3),
            (3, 3, 1),
            (5, 5, 1),
            (6, 6, 0),
            (40, 1, 3),
        ],
    )
    def test_points(self, fields: int, sensitive: int, expected: int) -> None:
        assert forms.calculate(observation.FormSignal(fields=fields, sensitive=sensitive)).points == expected


# ── Penalties and grades ────────────────────────────────────────


class TestThirdPartyPenalty:
    """Tests for third_party_penalty()."""

    @pytest.mark.parametrize(
        ("count", "expected"),
        [(0, 0), (8, 0), (9, 10), (15, 10), (16, 20), (100, 20)],
    )
    def test_on_demand_table(self, count: int, expected: int) -> None:
        assert calculator.third_party_penalty(count, config.ON_DEMAND_PENALTIES) == expected

    @pytest.mark.parametrize(
        ("count", "expected"),
        [(6, 0), (7, 3), (12, 3), (13, 8), (20, 8), (21, 15)],
    )
    def test_background_table(self, count: int, expected: int) -> None:
        assert calculator.third_party_penalty(count, config.BACKGROUND_PENALTIES) == expected

    def test_unsorted_table_uses_strictest_row(self) -> None:
        assert calculator.third_party_penalty(30, ((8, 10), (15, 20))) == 20

    def test_empty_table(self) -> None:
        assert calculator.third_party_penalty(50, ()) == 0


class TestScoreToGrade:
    """Tests for score_to_grade()."""

    @pytest.mark.parametrize(
        ("value", "grade"),
        [(100, "A+"), (90, "A+"), (89, "A"), (80, "A"), (79, "B"), (70, "B"), (69, "C"), (60, "C"),
         (59, "D"), (50, "D"), (49, "F"), (0, "F")],
    )
    def test_boundaries(self, value: int, grade: str) -> None:
        assert calculator.score_to_grade(value) == grade


# ── Orchestrator ────────────────────────────────────────────────


class TestScore:
    """Tests for the top-level score()."""

    def test_empty_page_is_perfect(
        self, empty_snapshot: observation.PageSnapshot, settings: config.EngineSettings
    ) -> None:
        result = calculator.score(empty_snapshot, settings=settings)
        assert result.raw_score == 100
        assert result.third_party_penalty == 0
        assert result.final_score == 100
        assert result.grade == "A+"
        assert result.recommendations == []

    def test_heavy_page_clamps_to_zero(
        self, heavy_snapshot: observation.PageSnapshot, settings: config.EngineSettings
    ) -> None:
        result = calculator.score(heavy_snapshot, settings=settings)
        assert result.individual == {
            "trackers": 5,
            "cookies": 0,
            "fingerprinting": 0,
            "permissions": 0,
            "forms": 0,
        }
        assert result.raw_score == 5
        assert result.third_party_penalty == 20
        assert result.final_score == 0
        assert result.grade == "F"

    def test_heavy_page_background_table(
        self, heavy_snapshot: observation.PageSnapshot, settings: config.EngineSettings
    ) -> None:
        result = calculator.score(heavy_snapshot, config.BACKGROUND_PENALTIES, settings)
        assert result.third_party_penalty == 8
        assert result.final_score == 0

    def test_penalty_lands_on_grade_boundary(self, settings: config.EngineSettings) -> None:
        snapshot = _snapshot(requests=observation.RequestCounts(total=9, third_party=9))
        result = calculator.score(snapshot, settings=settings)
        assert result.final_score == 90
        assert result.grade == "A+"

    def test_custom_penalty_table(self, settings: config.EngineSettings) -> None:
        snapshot = _snapshot(requests=observation.RequestCounts(total=1, third_party=1))
        result = calculator.score(snapshot, ((0, 50),), settings)
        assert result.final_score == 50
        assert result.grade == "D"

    def test_final_score_never_exceeds_raw(
        self, heavy_snapshot: observation.PageSnapshot, settings: config.EngineSettings
    ) -> None:
        result = calculator.score(heavy_snapshot, settings=settings)
        assert 0 <= result.final_score <= result.raw_score <= 100

    def test_score_is_pure(self, heavy_snapshot: observation.PageSnapshot, settings: config.EngineSettings) -> None:
        first = calculator.score(heavy_snapshot, settings=settings)
        second = calculator.score(heavy_snapshot, settings=settings)
        assert first == second

    def test_long_term_cookies_use_reference_time(self, settings: config.EngineSettings) -> None:
        now = datetime(2026, 1, 1).timestamp()
        snapshot = _snapshot(cookies=tuple(_cookie(f"c{i}", expiry=now + 60 * _DAY) for i in range(6)))
        result = calculator.score(snapshot, settings=settings, now=now)
        assert any("persist" in issue for issue in result.categories["cookies"].issues)


class TestBreakdown:
    """Tests for the per-category breakdown."""

    def test_perfect_page(self, empty_snapshot: observation.PageSnapshot, settings: config.EngineSettings) -> None:
        breakdown = calculator.score(empty_snapshot, settings=settings).breakdown
        assert set(breakdown) == {"trackers", "cookies", "fingerprinting", "permissions", "forms"}
        assert all(b.percentage == 100 and b.level == "excellent" for b in breakdown.values())

    def test_levels(self, settings: config.EngineSettings) -> None:
        snapshot = _snapshot(
            trackers=frozenset({"analytics:a.example", "analytics:b.example", "analytics:c.example"}),
            cookies=(_cookie("c0"),),
            fingerprint_signals={"timezone": 1},
            permissions=frozenset({"notifications"}),
        )
        breakdown = calculator.score(snapshot, settings=settings).breakdown
        assert breakdown["trackers"].percentage == 30
        assert breakdown["trackers"].level == "concerning"
        assert breakdown["cookies"].percentage == 20
        assert breakdown["cookies"].level == "concerning"
        assert breakdown["fingerprinting"].percentage == 30
        assert breakdown["permissions"].level == "concerning"
        assert breakdown["forms"].level == "excellent"

    @pytest.mark.parametrize(
        ("tag", "percentage"),
        [("advertising:ads.example", 13), ("fingerprinting:fp.example", 13)],
    )
    def test_half_percent_rounds_up(self, settings: config.EngineSettings, tag: str, percentage: int) -> None:
        breakdown = calculator.score(_snapshot(trackers=frozenset({tag})), settings=settings).breakdown
        assert breakdown["trackers"].points == 5
        assert breakdown["trackers"].percentage == percentage


class TestRecommendations:
    """Tests for recommendations attached to weak categories."""

    def test_every_weak_category_recommended(
        self, heavy_snapshot: observation.PageSnapshot, settings: config.EngineSettings
    ) -> None:
        result = calculator.score(heavy_snapshot, settings=settings)
        by_category = {r.category: r for r in result.recommendations}
        assert set(by_category) == {"trackers", "cookies", "fingerprinting", "permissions", "forms"}
        assert by_category["trackers"].severity == "high"
        assert by_category["fingerprinting"].severity == "high"
        assert by_category["cookies"].severity == "medium"

    def test_half_points_not_recommended(self, settings: config.EngineSettings) -> None:
        snapshot = _snapshot(forms=observation.FormSignal(fields=11, sensitive=0))
        result = calculator.score(snapshot, settings=settings)
        assert result.categories["forms"].points == 5
        assert all(r.category != "forms" for r in result.recommendations)

    def test_ratio_is_configurable(self) -> None:
        strict = config.EngineSettings(recommendation_ratio=1.0)
        snapshot = _snapshot(forms=observation.FormSignal(fields=11, sensitive=0))
        result = calculator.score(snapshot, settings=strict)
        assert [r.category for r in result.recommendations] == ["forms"]


class TestDefaultScore:
    """Tests for the "no data" result."""

    def test_default_score(self) -> None:
        result = calculator.default_score()
        assert result.final_score == 100
        assert result.grade == "A+"
        assert result.individual == calculator.MAX_POINTS
        assert result.recommendations == []


class TestDetailedReport:
    """Tests for detailed_report()."""

    def test_summary_counts(
        self, heavy_snapshot: observation.PageSnapshot, settings: config.EngineSettings
    ) -> None:
        report = calculator.detailed_report(heavy_snapshot, settings=settings)
        assert report.grade == "F"
        assert report.summary.trackers == 12
        assert report.summary.cookies == 25
        assert report.summary.fingerprinting == 1
        assert report.summary.permissions == 1
        assert report.summary.risk_level == "severe"
        assert report.categories["trackers"] == 5

    def test_timestamp_is_iso(self, empty_snapshot: observation.PageSnapshot, settings: config.EngineSettings) -> None:
        report = calculator.detailed_report(empty_snapshot, settings=settings)
        assert datetime.fromisoformat(report.timestamp).tzinfo is not None

    def test_serialises_with_camel_case(
        self, empty_snapshot: observation.PageSnapshot, settings: config.EngineSettings
    ) -> None:
        data = calculator.detailed_report(empty_snapshot, settings=settings).model_dump(by_alias=True)
        assert data["finalScore"] == 100
        assert data["summary"]["riskLevel"] == "minimal"
        assert data["breakdown"]["trackers"]["maxPoints"] == 40
