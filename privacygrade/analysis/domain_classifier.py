"""Domain classification of third-party requests.

Maps a request hostname to a tracker category in three stages:

1. **Curated lists** checked in category priority order (analytics,
   advertising, social, fingerprinting, heatmaps).  Exact and
   dot-boundary subdomain matches across every category are tried
   before the looser substring containment, which exists to catch
   regional variants such as ``adsystem.amazon.co.uk``.
2. **Heuristic patterns** over the hostname and full URL, yielding
   the ``heuristic`` category.  Ordinary words on an allow-list
   (``static``, ``uploads`` …) are blanked out first.
3. **Tracking query parameters** (``utm_*``, ``gclid`` …), yielding
   ``tracking_params``.

First-party requests are never classified.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import get_args

from privacygrade.analysis import tracker_lists
from privacygrade.models import detection
from privacygrade.utils import url as url_utils

_NOT_A_TRACKER = detection.ClassificationResult(is_tracker=False)
_KNOWN_CATEGORIES = frozenset(get_args(detection.TrackerCategory))

# Confidence per matching stage.
_EXACT_CONFIDENCE = 1.0
_SUBSTRING_CONFIDENCE = 0.75
_HEURISTIC_CONFIDENCE = 0.5
_PARAMS_CONFIDENCE = 0.25


def assess_risk(category: str | None) -> detection.RiskLevel:
    """Risk level of a tracker category."""
    if category in tracker_lists.HIGH_RISK_CATEGORIES:
        return "high"
    if category in tracker_lists.MEDIUM_RISK_CATEGORIES:
        return "medium"
    return "low"


def matches_domain(hostname: str, domain: str) -> bool:
    """Exact match or subdomain of *domain* on a dot boundary."""
    return hostname == domain or hostname.endswith("." + domain)


def _without_allowed_words(text: str) -> str:
    return tracker_lists.HEURISTIC_ALLOWED_PATTERN.sub(" ", text)


class DomainClassifier:
    """Classifies request hostnames against category domain tables.

    Args:
        domain_lists: Category → domains mapping; iteration order is
            the tie-breaking priority.  Defaults to the built-in lists.
    """

    def __init__(self, domain_lists: Mapping[str, Iterable[str]] | None = None) -> None:
        source = domain_lists if domain_lists is not None else tracker_lists.TRACKER_DOMAINS
        self._lists: list[tuple[str, frozenset[str]]] = [
            (category, frozenset(d.lower() for d in domains)) for category, domains in source.items()
        ]

    def classify(self, hostname: str, is_third_party: bool, url: str = "") -> detection.ClassificationResult:
        """Classify one request.

        Args:
            hostname: Request hostname.
            is_third_party: Whether the hostname differs from the page's.
            url: Full request URL, used by the heuristic and parameter
                stages.  Defaults to the bare hostname.

        Returns:
            A fresh :class:`ClassificationResult`.
        """
        if not is_third_party or not hostname:
            return _NOT_A_TRACKER

        hostname = hostname.lower()
        full_url = url or hostname

        listed = self._match_lists(hostname)
        if listed is not None:
            return listed

        host_text = _without_allowed_words(hostname)
        url_text = _without_allowed_words(full_url)
        for pattern in tracker_lists.HEURISTIC_PATTERNS:
            if pattern.search(host_text) or pattern.search(url_text):
                return detection.ClassificationResult(
                    is_tracker=True,
                    category="heuristic",
                    domain=hostname,
                    risk="medium",
                    confidence=_HEURISTIC_CONFIDENCE,
                    pattern=pattern.pattern,
                )

        if has_tracking_params(full_url):
            return detection.ClassificationResult(
                is_tracker=True,
                category="tracking_params",
                domain=hostname,
                risk="low",
                confidence=_PARAMS_CONFIDENCE,
            )

        return _NOT_A_TRACKER

    def _match_lists(self, hostname: str) -> detection.ClassificationResult | None:
        for category, domains in self._lists:
            if any(matches_domain(hostname, d) for d in domains):
                return self._listed(category, hostname, _EXACT_CONFIDENCE)
        for category, domains in self._lists:
            if any(d in hostname for d in domains):
                return self._listed(category, hostname, _SUBSTRING_CONFIDENCE)
        return None

    @staticmethod
    def _listed(category: str, hostname: str, confidence: float) -> detection.ClassificationResult:
        known = category if category in _KNOWN_CATEGORIES else "heuristic"
        return detection.ClassificationResult(
            is_tracker=True,
            category=known,
            domain=hostname,
            risk=assess_risk(category),
            confidence=confidence,
        )


def has_tracking_params(url: str) -> bool:
    """True when the URL's query string carries a known tracking parameter."""
    for name in url_utils.query_param_names(url):
        if name in tracker_lists.TRACKING_PARAMS or name.startswith(tracker_lists.TRACKING_PARAM_PREFIXES):
            return True
    return False


def tracker_stats(results: Iterable[detection.ClassificationResult]) -> detection.TrackerStats:
    """Aggregate tracker results by category, risk and unique domain."""
    by_category: dict[str, int] = {}
    by_risk = {"low": 0, "medium": 0, "high": 0}
    domains: set[str] = set()
    total = 0
    for result in results:
        if not result.is_tracker:
            continue
        total += 1
        key = result.category or "heuristic"
        by_category[key] = by_category.get(key, 0) + 1
        by_risk[result.risk] += 1
        domains.add(result.domain)
    return detection.TrackerStats(total=total, by_category=by_category, by_risk=by_risk, unique_domains=len(domains))


def category_of_tag(tag: str) -> str:
    """Category part of a ``category:hostname`` tag (``heuristic`` if malformed)."""
    category, sep, _ = tag.partition(":")
    return category if sep and category else "heuristic"


def result_from_tag(tag: str) -> detection.ClassificationResult:
    """Rebuild the classification a stored tracker tag stands for."""
    category, _, hostname = tag.partition(":")
    known = category if category in _KNOWN_CATEGORIES else "heuristic"
    return detection.ClassificationResult(
        is_tracker=True,
        category=known,
        domain=hostname,
        risk=assess_risk(known),
    )
