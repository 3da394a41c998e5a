"""Pydantic models for classifier and detector results."""

from __future__ import annotations

from typing import Literal

import pydantic

from privacygrade.models.base import CamelModel

TrackerCategory = Literal[
    "analytics",
    "advertising",
    "social",
    "fingerprinting",
    "heatmaps",
    "heuristic",
    "tracking_params",
]

RiskLevel = Literal["low", "medium", "high"]

FingerprintTechnique = Literal["canvas", "webgl", "audio", "fonts", "navigator", "screen", "timezone"]


class ClassificationResult(CamelModel):
    """Verdict of the domain classifier for one request hostname."""

    is_tracker: bool
    category: TrackerCategory | None = None
    domain: str = ""
    risk: RiskLevel = "low"
    confidence: float | None = pydantic.Field(default=None, ge=0, le=1)
    pattern: str | None = None

    @property
    def tag(self) -> str | None:
        """The ``category:hostname`` tracker tag, or ``None`` for non-trackers."""
        if not self.is_tracker or self.category is None:
            return None
        return f"{self.category}:{self.domain}"


class TrackerStats(CamelModel):
    """Totals over a collection of classification results."""

    total: int = 0
    by_category: dict[str, int] = pydantic.Field(default_factory=dict)
    by_risk: dict[str, int] = pydantic.Field(default_factory=lambda: {"low": 0, "medium": 0, "high": 0})
    unique_domains: int = 0


class CookieClassification(CamelModel):
    """Derived properties of a single cookie."""

    is_tracking: bool
    is_long_term: bool


class FingerprintEvaluation(CamelModel):
    """Detection state of one fingerprinting technique on a page."""

    technique: str
    count: int
    threshold: int
    detected: bool
    confidence: float = pydantic.Field(ge=0, le=1)


class DetectedTechnique(CamelModel):
    """A technique that crossed its threshold, as listed in a report."""

    technique: str
    count: int
    confidence: float
    risk_level: RiskLevel


class FingerprintReport(CamelModel):
    """Summary of all fingerprinting activity seen on a page."""

    total_techniques: int = 0
    detected: list[DetectedTechnique] = pydantic.Field(default_factory=list)
    risk_score: int = 0
    confidence: float = 0.0
