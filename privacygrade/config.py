"""
Engine configuration.

Centralises every tunable constant of the detection and scoring
engine: third-party penalty tables, the repaint debounce, cookie
and canvas thresholds, merge strategy, and the schemes treated as
browser-internal.

Uses ``pydantic_settings.BaseSettings`` so each value can be
overridden with a ``PRIVACYGRADE_``-prefixed environment variable
(tables as JSON, e.g. ``PRIVACYGRADE_BACKGROUND_PENALTIES='[[20,15]]'``).
"""

from __future__ import annotations

import functools
from typing import Literal

import pydantic
import pydantic_settings

from privacygrade.utils import logger

log = logger.create_logger("Config")

MergeStrategy = Literal["larger", "union"]

# (threshold, penalty) pairs; a penalty applies when the third-party
# request count is strictly greater than its threshold.  The first
# matching row wins, so rows are kept in descending threshold order.
PenaltyTable = tuple[tuple[int, int], ...]

# Table used when a grade is computed on demand for the UI.
ON_DEMAND_PENALTIES: PenaltyTable = ((15, 20), (8, 10))

# Table used by the continuously running background repaint.  It is
# deliberately different from the on-demand table; both are kept
# until the two grading paths are reconciled.
BACKGROUND_PENALTIES: PenaltyTable = ((20, 15), (12, 8), (6, 3))


class EngineSettings(pydantic_settings.BaseSettings):
    """Tunables for detection, aggregation and scoring.

    Attributes:
        repaint_debounce_seconds: Minimum time between two grade
            repaints of the same page.
        long_term_cookie_days: Cookies expiring later than this are
            long-lived.
        canvas_min_dimension: A canvas must exceed this width and
            height before its draw/read operations count.
        canvas_entropy_threshold: Pixel entropy above this value
            corroborates canvas fingerprinting.
        on_demand_penalties: Third-party penalty table for UI queries.
        background_penalties: Third-party penalty table for the
            background repaint.
        merge_strategy: ``larger`` keeps the bigger tracker/cookie
            collection whole; ``union`` combines both.
        recommendation_ratio: A recommendation is emitted when a
            category keeps less than this fraction of its max points.
        internal_schemes: URL schemes of pages that are never tracked.
    """

    model_config = pydantic_settings.SettingsConfigDict(env_prefix="PRIVACYGRADE_", extra="ignore")

    repaint_debounce_seconds: float = pydantic.Field(default=5.0, ge=0)
    long_term_cookie_days: int = pydantic.Field(default=30, ge=0)
    canvas_min_dimension: int = pydantic.Field(default=16, ge=0)
    canvas_entropy_threshold: float = pydantic.Field(default=0.5, ge=0, le=1)
    on_demand_penalties: PenaltyTable = ON_DEMAND_PENALTIES
    background_penalties: PenaltyTable = BACKGROUND_PENALTIES
    merge_strategy: MergeStrategy = "larger"
    recommendation_ratio: float = pydantic.Field(default=0.5, gt=0, le=1)
    internal_schemes: tuple[str, ...] = (
        "chrome",
        "chrome-extension",
        "edge",
        "about",
        "moz-extension",
        "view-source",
        "devtools",
        "data",
        "file",
    )

    @pydantic.field_validator("on_demand_penalties", "background_penalties")
    @classmethod
    def _sort_penalties(cls, table: PenaltyTable) -> PenaltyTable:
        """Order rows by descending threshold so the first match is the strictest."""
        for threshold, penalty in table:
            if threshold < 0 or penalty < 0:
                raise ValueError("penalty thresholds and amounts must be non-negative")
        return tuple(sorted(table, key=lambda row: row[0], reverse=True))


@functools.lru_cache(maxsize=1)
def get_settings() -> EngineSettings:
    """Load settings from the environment once per process."""
    settings = EngineSettings()
    log.info(
        "Engine settings loaded",
        {
            "debounceSeconds": settings.repaint_debounce_seconds,
            "mergeStrategy": settings.merge_strategy,
            "onDemandPenalties": str(settings.on_demand_penalties),
            "backgroundPenalties": str(settings.background_penalties),
        },
    )
    return settings
