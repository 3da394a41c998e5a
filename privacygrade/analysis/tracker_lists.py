"""
Known tracker domains and heuristic patterns.

Curated category → domain tables used by the domain classifier,
the heuristic URL/hostname patterns applied when no list matches,
the query parameters that mark a tracking link, and the cookie
signatures used by the cookie analyzer.
"""

from __future__ import annotations

import re

# ============================================================================
# Category Domain Lists
# ============================================================================

# Insertion order is the classification priority: when a hostname
# appears under several categories the first one listed here wins.
TRACKER_DOMAINS: dict[str, frozenset[str]] = {
    "analytics": frozenset([
        "google-analytics.com", "googletagmanager.com", "adobe.com", "omniture.com",
        "scorecardresearch.com", "quantserve.com", "chartbeat.com", "newrelic.com",
        "hotjar.com", "fullstory.com", "mixpanel.com", "segment.com", "amplitude.com",
        "heap.io",
    ]),
    "advertising": frozenset([
        "doubleclick.net", "googlesyndication.com", "googleadservices.com",
        "facebook.com", "amazon-adsystem.com", "adsystem.amazon.com",
        "adsystem.amazon.co.uk", "bing.com", "yahoo.com", "outbrain.com",
        "taboola.com", "criteo.com", "pubmatic.com", "rubiconproject.com",
        "openx.com",
    ]),
    "social": frozenset([
        "facebook.net", "facebook.com", "twitter.com", "linkedin.com",
        "pinterest.com", "instagram.com", "youtube.com", "tiktok.com",
        "snapchat.com", "reddit.com", "tumblr.com",
    ]),
    "fingerprinting": frozenset([
        "fingerprintjs.com", "maxmind.com", "device-api.com", "trustpilot.com",
        "iovation.com", "threatmetrix.com", "white-ops.com", "perimeterx.com",
    ]),
    "heatmaps": frozenset([
        "hotjar.com", "crazyegg.com", "mouseflow.com", "luckyorange.com",
        "inspectlet.com", "clicktale.com", "sessioncam.com",
    ]),
}

HIGH_RISK_CATEGORIES = frozenset(["fingerprinting", "advertising"])
MEDIUM_RISK_CATEGORIES = frozenset(["analytics", "heatmaps", "heuristic"])

# ============================================================================
# Heuristic Patterns
# ============================================================================

# Applied to the hostname and the full URL of third-party requests
# that matched no list.  Keywords match anywhere in the text.
HEURISTIC_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"analytics?", re.I),
    re.compile(r"tracking?|tracker", re.I),
    re.compile(r"metrics?", re.I),
    re.compile(r"stats?", re.I),
    re.compile(r"pixel", re.I),
    re.compile(r"beacon", re.I),
    re.compile(r"collect", re.I),
    re.compile(r"event", re.I),
    re.compile(r"ads?", re.I),
    re.compile(r"advertisement", re.I),
    re.compile(r"doubleclick", re.I),
    re.compile(r"gtag", re.I),
    re.compile(r"gtm", re.I),
]

# Ordinary words that contain a heuristic keyword ("static" holds
# "stat", "uploads" holds "ads").  They are blanked out before the
# heuristics run.
HEURISTIC_ALLOWED_WORDS: tuple[str, ...] = (
    "static", "status", "load", "head", "read", "shadow", "gradient",
)
HEURISTIC_ALLOWED_PATTERN = re.compile("|".join(HEURISTIC_ALLOWED_WORDS), re.I)

# ============================================================================
# Tracking Query Parameters
# ============================================================================

TRACKING_PARAM_PREFIXES: tuple[str, ...] = ("utm_",)
TRACKING_PARAMS = frozenset(["fbclid", "gclid", "msclkid", "_ga", "mc_eid"])

# ============================================================================
# Cookie Signatures
# ============================================================================

# Matched against the lower-cased "name=value" string of a cookie.
TRACKING_COOKIE_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"_ga"),
    re.compile(r"_gid"),
    re.compile(r"_gat"),
    re.compile(r"utm_"),
    re.compile(r"fbp"),
    re.compile(r"fbc"),
    re.compile(r"_fbp"),
    re.compile(r"doubleclick"),
    re.compile(r"adsystem"),
    re.compile(r"analytics"),
    re.compile(r"tracking"),
]

# ============================================================================
# Permission and Form Signals
# ============================================================================

SENSITIVE_PERMISSIONS = frozenset(["geolocation", "camera", "microphone", "clipboard"])
MODERATE_PERMISSIONS = frozenset(["notifications", "persistent-storage"])

# Substrings of "type name id" that mark a form field as sensitive.
SENSITIVE_FIELD_KEYWORDS: tuple[str, ...] = (
    "ssn", "social", "phone", "mobile", "address", "birth", "income",
    "salary", "credit", "card", "passport", "license",
)
