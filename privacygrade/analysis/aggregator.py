"""Observation aggregation.

:class:`PageRegistry` owns one :class:`TrackedPage` per browser tab
and is the only component that mutates them.  Request, cookie and
signal events are attributed to the tab's current page visit and
folded in incrementally; snapshots are handed to the scoring engine.

The registry also reconciles a background observation with a fresh,
point-in-time collection of the same page (:func:`merge`), and
discards fresh collections that belong to a page visit that has
since been closed or navigated away from.

All public methods are safe to call from multiple threads; updates
are serialised by a single re-entrant lock.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Iterable, Mapping, Sequence

from privacygrade import config
from privacygrade.analysis import cookie_analyzer, domain_classifier, fingerprint_tracker, tracker_lists
from privacygrade.models import detection, observation
from privacygrade.utils import errors, logger
from privacygrade.utils import url as url_utils

log = logger.create_logger("Aggregator")

TabUrlResolver = Callable[[int], str | None]
HeaderList = Iterable[tuple[str, str]] | Mapping[str, str]


def is_sensitive_field(field_type: str = "", name: str = "", field_id: str = "") -> bool:
    """True when a form field's type, name or id suggests personal data."""
    text = f"{field_type} {name} {field_id}".lower()
    return any(keyword in text for keyword in tracker_lists.SENSITIVE_FIELD_KEYWORDS)


def count_form_fields(fields: Iterable[observation.FormField]) -> observation.FormSignal:
    """Total and sensitive counts over a page's form fields."""
    total = 0
    sensitive = 0
    for form_field in fields:
        total += 1
        if is_sensitive_field(form_field.type, form_field.name, form_field.id):
            sensitive += 1
    return observation.FormSignal(fields=total, sensitive=sensitive)


def merge(
    live: observation.PageSnapshot | None,
    fresh: observation.PageSnapshot,
    strategy: config.MergeStrategy = "larger",
) -> observation.PageSnapshot:
    """Reconcile the background snapshot with a fresh collection.

    With the ``larger`` strategy the tracker set and the cookie list
    are each taken whole from whichever snapshot holds strictly more
    entries (the fresh one on ties).  The ``union`` strategy combines
    tracker tags and name-deduplicated cookies instead.

    Counters take the per-field maximum and permissions are united,
    so the merge never reports less evidence than either input.
    """
    if live is None:
        return fresh

    if strategy == "union":
        trackers = live.trackers | fresh.trackers
        fresh_names = {c.name for c in fresh.cookies}
        cookies = fresh.cookies + tuple(c for c in live.cookies if c.name not in fresh_names)
    else:
        trackers = live.trackers if len(live.trackers) > len(fresh.trackers) else fresh.trackers
        cookies = live.cookies if len(live.cookies) > len(fresh.cookies) else fresh.cookies

    signals = dict(live.fingerprint_signals)
    for technique, count in fresh.fingerprint_signals.items():
        signals[technique] = max(signals.get(technique, 0), count)

    return fresh.model_copy(
        update={
            "page_id": fresh.page_id or live.page_id,
            "url": fresh.url or live.url,
            "domain": fresh.domain or live.domain,
            "trackers": trackers,
            "cookies": cookies,
            "fingerprint_signals": signals,
            "permissions": live.permissions | fresh.permissions,
            "forms": observation.FormSignal(
                fields=max(live.forms.fields, fresh.forms.fields),
                sensitive=max(live.forms.sensitive, fresh.forms.sensitive),
            ),
            "requests": observation.RequestCounts(
                total=max(live.requests.total, fresh.requests.total),
                third_party=max(live.requests.third_party, fresh.requests.third_party),
            ),
            "last_grade": live.last_grade,
            "last_update": live.last_update,
        }
    )


class PageRegistry:
    """Registry of tracked pages keyed by tab id.

    Args:
        settings: Engine settings; the process settings by default.
        classifier: Domain classifier used for third-party requests.
        tab_url_resolver: Returns a tab's current URL, used to lazily
            re-open a page when a request arrives for an unknown tab.
        clock: Monotonic clock in seconds (injectable for tests).
    """

    def __init__(
        self,
        settings: config.EngineSettings | None = None,
        classifier: domain_classifier.DomainClassifier | None = None,
        tab_url_resolver: TabUrlResolver | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._settings = settings or config.get_settings()
        self._classifier = classifier or domain_classifier.DomainClassifier()
        self._resolve_tab_url = tab_url_resolver
        self._clock = clock
        self._pages: dict[int, observation.TrackedPage] = {}
        self._lock = threading.RLock()

    @property
    def settings(self) -> config.EngineSettings:
        return self._settings

    # ── Lifecycle ───────────────────────────────────────────

    def open(self, tab_id: int, url: str) -> str | None:
        """Start tracking a new page visit in *tab_id*.

        Any previous page of the tab is replaced.  Internal and
        unparseable URLs leave the tab untracked.

        Returns:
            The new page id, or ``None`` when the tab is untracked.
        """
        with self._lock:
            self._pages.pop(tab_id, None)
            if url_utils.is_internal_url(url, self._settings.internal_schemes):
                log.debug("Internal page not tracked", {"tabId": tab_id, "url": url})
                return None
            try:
                domain = url_utils.parse_hostname(url)
            except errors.InvalidUrlError as exc:
                log.warn("Page not tracked", {"tabId": tab_id, "error": errors.get_error_message(exc)})
                return None

            page = observation.TrackedPage(
                url=url,
                domain=domain,
                fingerprint=fingerprint_tracker.FingerprintActivityTracker(self._settings.canvas_entropy_threshold),
                last_update=self._clock(),
            )
            self._pages[tab_id] = page
            log.info("Tracking page", {"tabId": tab_id, "domain": domain, "pageId": page.page_id})
            return page.page_id

    def close(self, tab_id: int) -> bool:
        """Stop tracking *tab_id*; later events for it are dropped."""
        with self._lock:
            page = self._pages.pop(tab_id, None)
        if page is not None:
            log.info("Stopped tracking page", {"tabId": tab_id, "domain": page.domain})
        return page is not None

    def is_tracked(self, tab_id: int) -> bool:
        with self._lock:
            return tab_id in self._pages

    def page_id(self, tab_id: int) -> str | None:
        """Id of the tab's current page visit."""
        with self._lock:
            page = self._pages.get(tab_id)
            return page.page_id if page else None

    def tab_ids(self) -> list[int]:
        with self._lock:
            return list(self._pages)

    def _reopen(self, tab_id: int, tab_url: str | None = None) -> None:
        """Lazily re-open a page for an untracked tab.

        The URL is *tab_url* when the caller knows it, otherwise the
        resolver's answer.  The lookup runs outside the registry lock;
        the tab is re-checked once the lock is held.
        """
        current_url = tab_url
        if not current_url and self._resolve_tab_url is not None:
            try:
                current_url = self._resolve_tab_url(tab_id)
            except Exception as exc:
                log.warn("Tab URL lookup failed", {"tabId": tab_id, "error": errors.get_error_message(exc)})
                return
        if not current_url:
            return
        with self._lock:
            if tab_id not in self._pages:
                self.open(tab_id, current_url)

    # ── Events ──────────────────────────────────────────────

    def record_request(self, tab_id: int, url: str, tab_url: str | None = None) -> bool:
        """Count a request and classify it when it is third party.

        A request for an untracked tab re-opens the tab's page first
        (see :meth:`_reopen`) and is then counted against it.

        Returns:
            ``True`` when a tracker not seen before on this page was found.
        """
        if tab_id < 0:
            return False
        if not self.is_tracked(tab_id):
            self._reopen(tab_id, tab_url)
        with self._lock:
            page = self._pages.get(tab_id)
            if page is None:
                return False
            try:
                hostname = url_utils.parse_hostname(url)
            except errors.InvalidUrlError as exc:
                log.debug("Ignoring request", {"tabId": tab_id, "error": errors.get_error_message(exc)})
                return False

            page.requests_total += 1
            third_party = url_utils.is_third_party(hostname, page.domain)
            if not third_party:
                return False

            page.requests_third_party += 1
            result = self._classifier.classify(hostname, True, url)
            tag = result.tag
            if tag is None or tag in page.trackers:
                return False

            page.trackers.add(tag)
            log.debug(
                "Tracker found",
                {"tabId": tab_id, "tag": tag, "risk": result.risk, "trackers": len(page.trackers)},
            )
            return True

    def record_set_cookie(self, tab_id: int, header: str | None) -> bool:
        """Parse a ``Set-Cookie`` value and keep it if its name is new.

        Returns:
            ``True`` when the cookie was appended.
        """
        with self._lock:
            page = self._pages.get(tab_id)
            if page is None:
                return False
            cookie = cookie_analyzer.parse_set_cookie(header)
            if page.has_cookie(cookie.name):
                return False
            page.cookies.append(cookie)
            log.debug("Cookie recorded", {"tabId": tab_id, "name": cookie.name, "cookies": len(page.cookies)})
            return True

    def record_response_headers(self, tab_id: int, headers: HeaderList) -> int:
        """Record every ``Set-Cookie`` header of a response.

        Returns:
            Number of new cookies.
        """
        items = headers.items() if isinstance(headers, Mapping) else headers
        added = 0
        for name, value in items:
            if name.lower() == "set-cookie" and self.record_set_cookie(tab_id, value):
                added += 1
        return added

    def record_fingerprint_signal(self, tab_id: int, technique: str) -> detection.FingerprintEvaluation | None:
        """Count one fingerprinting signal and re-evaluate the technique."""
        technique = technique.strip().lower()
        if not technique:
            return None
        with self._lock:
            page = self._pages.get(tab_id)
            if page is None:
                return None
            page.fingerprint.record_signal(technique)
            return self._evaluate(tab_id, page, technique)

    def record_canvas_operation(
        self,
        tab_id: int,
        width: int,
        height: int,
        pixels: bytes | Sequence[int] | None = None,
    ) -> detection.FingerprintEvaluation | None:
        """Record a canvas draw/read, subject to the canvas size gate.

        Returns:
            The canvas evaluation, or ``None`` when the tab is untracked
            or the canvas is too small to count.
        """
        with self._lock:
            page = self._pages.get(tab_id)
            if page is None:
                return None
            counted = page.fingerprint.record_canvas_operation(
                width, height, pixels, self._settings.canvas_min_dimension
            )
            if not counted:
                return None
            return self._evaluate(tab_id, page, "canvas")

    def _evaluate(
        self,
        tab_id: int,
        page: observation.TrackedPage,
        technique: str,
    ) -> detection.FingerprintEvaluation:
        evaluation = page.fingerprint.evaluate(technique)
        if page.fingerprint.check_alert(technique):
            log.warn(
                "Fingerprinting detected",
                {
                    "tabId": tab_id,
                    "domain": page.domain,
                    "technique": technique,
                    "count": evaluation.count,
                    "confidence": round(evaluation.confidence, 2),
                },
            )
        return evaluation

    def record_form_signal(self, tab_id: int, fields: int, sensitive: int) -> bool:
        """Record form field counts, keeping the largest totals seen."""
        with self._lock:
            page = self._pages.get(tab_id)
            if page is None:
                return False
            page.form_fields = max(page.form_fields, max(fields, 0))
            page.form_sensitive = max(page.form_sensitive, max(sensitive, 0))
            return True

    def record_permission(self, tab_id: int, name: str) -> bool:
        """Record a permission request; returns ``True`` if it is new."""
        permission = name.strip().lower()
        with self._lock:
            page = self._pages.get(tab_id)
            if page is None or not permission or permission in page.permissions:
                return False
            page.permissions.add(permission)
            log.debug("Permission requested", {"tabId": tab_id, "permission": permission})
            return True

    # ── Queries ─────────────────────────────────────────────

    def snapshot(self, tab_id: int) -> observation.PageSnapshot | None:
        with self._lock:
            page = self._pages.get(tab_id)
            return page.snapshot() if page else None

    def fingerprint_report(self, tab_id: int) -> detection.FingerprintReport | None:
        with self._lock:
            page = self._pages.get(tab_id)
            return page.fingerprint.report() if page else None

    def tracker_stats(self, tab_id: int) -> detection.TrackerStats | None:
        """Tracker totals by category and risk for the tab's page."""
        with self._lock:
            page = self._pages.get(tab_id)
            if page is None:
                return None
            tags = list(page.trackers)
        return domain_classifier.tracker_stats(domain_classifier.result_from_tag(tag) for tag in tags)

    # ── Repaint debounce ────────────────────────────────────

    def claim_repaint(self, tab_id: int) -> observation.PageSnapshot | None:
        """Claim the right to recompute and repaint the tab's grade.

        Returns a snapshot when at least the debounce interval has
        passed since the last recorded update (and stamps the update
        time), otherwise ``None``.  Data accumulation is unaffected.
        """
        with self._lock:
            page = self._pages.get(tab_id)
            if page is None:
                return None
            now = self._clock()
            if now - page.last_update < self._settings.repaint_debounce_seconds:
                return None
            page.last_update = now
            return page.snapshot()

    def set_last_grade(self, tab_id: int, page_id: str, grade: str) -> bool:
        """Store the painted grade unless the page visit has changed."""
        with self._lock:
            page = self._pages.get(tab_id)
            if page is None or page.page_id != page_id:
                return False
            page.last_grade = grade
            return True

    # ── Fresh observations ──────────────────────────────────

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
        """Build a fresh snapshot from a point-in-time page collection.

        Script URLs are counted and classified against the page's own
        hostname exactly as live requests are.  The snapshot is bound
        to *page_id* (the tab's current visit when omitted) so that a
        collection finishing after navigation can be recognised.

        Returns:
            The fresh snapshot, or ``None`` when *page_url* is unusable.
        """
        try:
            domain = url_utils.parse_hostname(page_url)
        except errors.InvalidUrlError as exc:
            log.warn("Fresh collection ignored", {"tabId": tab_id, "error": errors.get_error_message(exc)})
            return None

        trackers: set[str] = set()
        total = 0
        third_party = 0
        for script_url in script_urls:
            hostname = url_utils.extract_hostname(script_url)
            if not hostname:
                continue
            total += 1
            if url_utils.is_third_party(hostname, domain):
                third_party += 1
                tag = self._classifier.classify(hostname, True, script_url).tag
                if tag is not None:
                    trackers.add(tag)

        deduplicated: dict[str, observation.Cookie] = {}
        for cookie in cookies:
            deduplicated.setdefault(cookie.name, cookie)

        signals = {k.strip().lower(): max(v, 0) for k, v in (fingerprint_signals or {}).items()}

        return observation.PageSnapshot(
            page_id=page_id if page_id is not None else (self.page_id(tab_id) or ""),
            url=page_url,
            domain=domain,
            trackers=frozenset(trackers),
            cookies=tuple(deduplicated.values()),
            fingerprint_signals=signals,
            permissions=frozenset(p.strip().lower() for p in permissions if p.strip()),
            forms=forms or observation.FormSignal(),
            requests=observation.RequestCounts(total=total, third_party=third_party),
        )

    def reconcile(self, tab_id: int, fresh: observation.PageSnapshot | None) -> observation.PageSnapshot | None:
        """Merge a fresh collection into the tab's live snapshot.

        A fresh snapshot bound to a page visit other than the tab's
        current one, or collected from a different domain than the
        live page, is stale and discarded; the live snapshot alone is
        returned in that case.
        """
        live = self.snapshot(tab_id)
        if fresh is None:
            return live
        if live is not None and fresh.domain != live.domain:
            log.info(
                "Discarding fresh collection for another domain",
                {"tabId": tab_id, "domain": fresh.domain, "liveDomain": live.domain},
            )
            return live
        if live is not None and fresh.page_id and fresh.page_id != live.page_id:
            log.info("Discarding stale fresh collection", {"tabId": tab_id, "pageId": fresh.page_id})
            return live
        if live is None and fresh.page_id:
            log.info("Discarding fresh collection for closed page", {"tabId": tab_id, "pageId": fresh.page_id})
            return None
        return merge(live, fresh, self._settings.merge_strategy)
