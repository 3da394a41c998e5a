"""Privacy scoring package.

Splits the grade calculation into one module per category.  The
public API is :func:`score`, :func:`detailed_report` and
:func:`default_score`.
"""

from __future__ import annotations

from privacygrade.analysis.scoring.calculator import default_score, detailed_report, score, score_to_grade

__all__ = ["default_score", "detailed_report", "score", "score_to_grade"]
