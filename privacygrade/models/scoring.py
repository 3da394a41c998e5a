"""Pydantic models for scores, breakdowns and detailed reports."""

from __future__ import annotations

from typing import Literal

import pydantic

from privacygrade.models.base import CamelModel

Grade = Literal["A+", "A", "B", "C", "D", "F"]

CategoryLevel = Literal["excellent", "good", "moderate", "concerning", "poor"]

Severity = Literal["low", "medium", "high"]


class CategoryScore(CamelModel):
    """Points kept by one category (higher is more private)."""

    points: int = 0
    max_points: int = 0
    issues: list[str] = pydantic.Field(default_factory=list)


class CategoryBreakdown(CamelModel):
    """Percentage-of-max view of a category score."""

    points: int
    max_points: int
    percentage: int
    level: CategoryLevel


class Recommendation(CamelModel):
    """Advice attached to a weak category."""

    category: str
    severity: Severity
    message: str


class ScoreResult(CamelModel):
    """Complete, immutable result of scoring one page snapshot."""

    categories: dict[str, CategoryScore] = pydantic.Field(default_factory=dict)
    raw_score: int = 0
    third_party_penalty: int = 0
    final_score: int = 100
    grade: Grade = "A+"
    breakdown: dict[str, CategoryBreakdown] = pydantic.Field(default_factory=dict)
    recommendations: list[Recommendation] = pydantic.Field(default_factory=list)

    @property
    def individual(self) -> dict[str, int]:
        """Category name to points."""
        return {name: cat.points for name, cat in self.categories.items()}


class ReportSummary(CamelModel):
    """Headline counts shown next to the grade."""

    grade: Grade
    trackers: int
    cookies: int
    fingerprinting: int
    permissions: int
    risk_level: str


class DetailedReport(CamelModel):
    """Full report returned to the UI for one tab."""

    grade: Grade
    final_score: int
    categories: dict[str, int]
    breakdown: dict[str, CategoryBreakdown]
    recommendations: list[Recommendation]
    summary: ReportSummary
    timestamp: str
