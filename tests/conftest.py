"""Shared fixtures for the test suite."""

from __future__ import annotations

import pytest

from privacygrade import config, engine
from privacygrade.analysis import aggregator
from privacygrade.models import observation

# ── Clock ───────────────────────────────────────────────────────


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


# ── Engine Components ───────────────────────────────────────────


@pytest.fixture()
def settings() -> config.EngineSettings:
    """Default settings, built explicitly so the environment cannot leak in."""
    return config.EngineSettings(
        repaint_debounce_seconds=5.0,
        long_term_cookie_days=30,
        merge_strategy="larger",
    )


@pytest.fixture()
def registry(settings: config.EngineSettings, clock: FakeClock) -> aggregator.PageRegistry:
    return aggregator.PageRegistry(settings, clock=clock)


@pytest.fixture()
def badge_calls() -> list[tuple[int, str, str]]:
    return []


@pytest.fixture()
def privacy_engine(
    settings: config.EngineSettings,
    registry: aggregator.PageRegistry,
    badge_calls: list[tuple[int, str, str]],
) -> engine.PrivacyEngine:
    """Engine wired to the fake-clock registry, recording badge paints."""
    return engine.PrivacyEngine(
        settings,
        registry=registry,
        badge_sink=lambda tab_id, grade, colour: badge_calls.append((tab_id, grade, colour)),
    )


# ── Observation Factories ───────────────────────────────────────


@pytest.fixture()
def empty_snapshot() -> observation.PageSnapshot:
    """A page where nothing was observed."""
    return observation.PageSnapshot(page_id="p1", url="https://example.com/", domain="example.com")


@pytest.fixture()
def heavy_snapshot() -> observation.PageSnapshot:
    """A page that trips every category at once."""
    trackers = {"advertising:ads.example"} | {f"heuristic:t{i}.example" for i in range(11)}
    return observation.PageSnapshot(
        page_id="p1",
        url="https://news.example.com/",
        domain="news.example.com",
        trackers=frozenset(trackers),
        cookies=tuple(observation.Cookie(name=f"c{i}", value="v") for i in range(25)),
        fingerprint_signals={"canvas": 1},
        permissions=frozenset({"geolocation"}),
        forms=observation.FormSignal(fields=8, sensitive=8),
        requests=observation.RequestCounts(total=30, third_party=18),
    )
