"""
Engine facade.

Implements the event and query interface consumed by the browser
integration: request, response-header, tab lifecycle and content
signal events go into the page registry, and score/report queries
come out of the scoring engine.

Whenever an event adds new evidence (a new tracker, a new cookie, a
fingerprinting alert), the tab's grade is recomputed with the
background penalty table and handed to the badge sink, at most once
per debounce interval per page.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence

from privacygrade import config
from privacygrade.analysis import aggregator, scoring
from privacygrade.analysis.scoring import calculator
from privacygrade.models import detection, observation
from privacygrade.models import scoring as scoring_models
from privacygrade.utils import errors, logger, risk

log = logger.create_logger("Engine")

BadgeSink = Callable[[int, str, str], None]


def log_badge(tab_id: int, grade: str, colour: str) -> None:
    """Default badge sink: log the grade that would be painted."""
    log.info("Badge updated", {"tabId": tab_id, "grade": grade, "colour": colour})


class PrivacyEngine:
    """Observer-and-scorer for the pages open in a browser.

    Args:
        settings: Engine settings; the process settings by default.
        registry: Page registry to use; a new one is created otherwise.
        badge_sink: Called with ``(tab_id, grade, colour)`` whenever a
            debounced repaint produces a grade.
        tab_url_resolver: Current-URL lookup used to re-open pages for
            tabs whose load event was missed.
    """

    def __init__(
        self,
        settings: config.EngineSettings | None = None,
        registry: aggregator.PageRegistry | None = None,
        badge_sink: BadgeSink | None = None,
        tab_url_resolver: aggregator.TabUrlResolver | None = None,
    ) -> None:
        self.settings = settings or config.get_settings()
        self.registry = registry or aggregator.PageRegistry(self.settings, tab_url_resolver=tab_url_resolver)
        self._badge_sink = badge_sink or log_badge

    # ── Consumed events ─────────────────────────────────────

    def on_tab_load_started(self, tab_id: int, url: str) -> str | None:
        """A tab began loading *url*; returns the new page id."""
        return self.registry.open(tab_id, url)

    def on_tab_closed(self, tab_id: int) -> None:
        self.registry.close(tab_id)

    def on_request_observed(self, tab_id: int, url: str, tab_url: str | None = None) -> bool:
        """Attribute a request to the tab; returns ``True`` for a new tracker.

        *tab_url* is the tab's current top-level URL when the caller
        knows it; it re-opens a page whose load event was missed.
        """
        found = self.registry.record_request(tab_id, url, tab_url)
        if found:
            self._repaint(tab_id)
        return found

    def on_response_headers_observed(self, tab_id: int, headers: aggregator.HeaderList) -> int:
        """Record ``Set-Cookie`` headers; returns the number of new cookies."""
        added = self.registry.record_response_headers(tab_id, headers)
        if added:
            self._repaint(tab_id)
        return added

    def on_fingerprint_signal(self, tab_id: int, technique: str) -> detection.FingerprintEvaluation | None:
        evaluation = self.registry.record_fingerprint_signal(tab_id, technique)
        if evaluation is not None and evaluation.detected:
            self._repaint(tab_id)
        return evaluation

    def on_canvas_operation(
        self,
        tab_id: int,
        width: int,
        height: int,
        pixels: bytes | Sequence[int] | None = None,
    ) -> detection.FingerprintEvaluation | None:
        evaluation = self.registry.record_canvas_operation(tab_id, width, height, pixels)
        if evaluation is not None and evaluation.detected:
            self._repaint(tab_id)
        return evaluation

    def on_forms_observed(self, tab_id: int, fields: int, sensitive: int) -> None:
        if self.registry.record_form_signal(tab_id, fields, sensitive):
            self._repaint(tab_id)

    def on_permission_requested(self, tab_id: int, permission: str) -> None:
        if self.registry.record_permission(tab_id, permission):
            self._repaint(tab_id)

    # ── Queries ─────────────────────────────────────────────

    def collect_fresh(
        self,
        tab_id: int,
        page_url: str,
        script_urls: Iterable[str] = (),
        cookies: Iterable[observation.Cookie] = (),
        forms: observation.FormSignal | None = None,
        fingerprint_signals: Mapping[str, int] | None = None,
        permissions: Iterable[str] = (),
        page_id: str | None = None,
    ) -> observation.PageSnapshot | None:
        """Build a fresh observation for :meth:`get_score` (see :meth:`PageRegistry.collect_fresh`)."""
        return self.registry.collect_fresh(
            tab_id, page_url, script_urls, cookies, forms, fingerprint_signals, permissions, page_id
        )

    def _current_snapshot(
        self,
        tab_id: int,
        fresh: observation.PageSnapshot | None,
    ) -> observation.PageSnapshot | None:
        return self.registry.reconcile(tab_id, fresh)

    def get_score(self, tab_id: int, fresh: observation.PageSnapshot | None = None) -> scoring_models.ScoreResult:
        """Grade the tab on demand.

        Untracked tabs get the "no data" A+/100 result.
        """
        snapshot = self._current_snapshot(tab_id, fresh)
        if snapshot is None:
            return calculator.default_score()
        return scoring.score(snapshot, self.settings.on_demand_penalties, self.settings)

    def get_detailed_report(
        self,
        tab_id: int,
        fresh: observation.PageSnapshot | None = None,
    ) -> scoring_models.DetailedReport:
        """Grade the tab and build the detailed UI report."""
        snapshot = self._current_snapshot(tab_id, fresh)
        if snapshot is None:
            return calculator.build_report(calculator.default_score(), None)
        result = scoring.score(snapshot, self.settings.on_demand_penalties, self.settings)
        log.info(
            "Report generated",
            {"tabId": tab_id, "domain": snapshot.domain, "grade": result.grade, "score": result.final_score},
        )
        return calculator.build_report(result, snapshot)

    # ── Background repaint ──────────────────────────────────

    def _repaint(self, tab_id: int) -> None:
        """Recompute and paint the tab's grade unless debounced."""
        snapshot = self.registry.claim_repaint(tab_id)
        if snapshot is None:
            return
        result = scoring.score(snapshot, self.settings.background_penalties, self.settings)
        if not self.registry.set_last_grade(tab_id, snapshot.page_id, result.grade):
            return
        try:
            self._badge_sink(tab_id, result.grade, risk.badge_colour(result.grade))
        except Exception as exc:
            log.error("Badge sink failed", {"tabId": tab_id, "error": errors.get_error_message(exc)})
