"""Observation data: cookies, per-page counters, the mutable tracked
page record, and its immutable snapshot."""

from __future__ import annotations

import dataclasses
import time
import uuid
from datetime import datetime

import pydantic

from privacygrade.analysis import fingerprint_tracker
from privacygrade.models.base import CamelModel


class Cookie(CamelModel):
    """A cookie seen on the page.

    ``expiry`` is kept as delivered (epoch seconds, HTTP date or ISO
    string); ``None`` marks a session cookie.
    """

    name: str = ""
    value: str = ""
    expiry: float | datetime | str | None = None


class FormSignal(CamelModel):
    """Aggregate form field counts reported for a page."""

    fields: int = pydantic.Field(default=0, ge=0)
    sensitive: int = pydantic.Field(default=0, ge=0)


class RequestCounts(CamelModel):
    """Requests observed for a page."""

    total: int = pydantic.Field(default=0, ge=0)
    third_party: int = pydantic.Field(default=0, ge=0)


class PageSnapshot(CamelModel):
    """Immutable point-in-time copy of a tracked page.

    This is the only shape the scoring engine reads.
    """

    page_id: str = ""
    url: str = ""
    domain: str = ""
    trackers: frozenset[str] = frozenset()
    cookies: tuple[Cookie, ...] = ()
    fingerprint_signals: dict[str, int] = pydantic.Field(default_factory=dict)
    permissions: frozenset[str] = frozenset()
    forms: FormSignal = FormSignal()
    requests: RequestCounts = RequestCounts()
    last_grade: str = "A+"
    last_update: float = 0.0


@dataclasses.dataclass
class TrackedPage:
    """Mutable evidence accumulated for one tab's current page visit.

    Owned exclusively by :class:`~privacygrade.analysis.aggregator.PageRegistry`.
    ``trackers`` only grows and every counter is non-decreasing for
    the lifetime of the record.
    """

    url: str
    domain: str
    page_id: str = dataclasses.field(default_factory=lambda: uuid.uuid4().hex)
    trackers: set[str] = dataclasses.field(default_factory=set)
    cookies: list[Cookie] = dataclasses.field(default_factory=list)
    fingerprint: fingerprint_tracker.FingerprintActivityTracker = dataclasses.field(
        default_factory=fingerprint_tracker.FingerprintActivityTracker
    )
    permissions: set[str] = dataclasses.field(default_factory=set)
    form_fields: int = 0
    form_sensitive: int = 0
    requests_total: int = 0
    requests_third_party: int = 0
    last_grade: str = "A+"
    last_update: float = dataclasses.field(default_factory=time.monotonic)

    def has_cookie(self, name: str) -> bool:
        return any(c.name == name for c in self.cookies)

    def snapshot(self) -> PageSnapshot:
        """Copy the accumulated fields into an immutable snapshot."""
        return PageSnapshot(
            page_id=self.page_id,
            url=self.url,
            domain=self.domain,
            trackers=frozenset(self.trackers),
            cookies=tuple(self.cookies),
            fingerprint_signals=self.fingerprint.counts,
            permissions=frozenset(self.permissions),
            forms=FormSignal(fields=self.form_fields, sensitive=self.form_sensitive),
            requests=RequestCounts(total=self.requests_total, third_party=self.requests_third_party),
            last_grade=self.last_grade,
            last_update=self.last_update,
        )


class FormField(CamelModel):
    """One input/select/textarea found in a page form."""

    type: str = ""
    name: str = ""
    id: str = ""
