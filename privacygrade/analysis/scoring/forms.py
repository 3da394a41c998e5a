"""Form data-collection scoring (out of 10)."""

from __future__ import annotations

from privacygrade.models import observation, scoring

MAX_POINTS = 10


def calculate(forms: observation.FormSignal) -> scoring.CategoryScore:
    """Score form field counts; sensitive fields dominate."""
    if forms.sensitive > 5:
        points = 0
    elif forms.sensitive > 2:
        points = 1
    elif forms.sensitive > 0:
        points = 3
    elif forms.fields > 10:
        points = 5
    else:
        points = MAX_POINTS

    issues: list[str] = []
    if forms.sensitive:
        issues.append(f"{forms.sensitive} sensitive form fields")
    elif forms.fields > 10:
        issues.append(f"{forms.fields} form fields")
    return scoring.CategoryScore(points=points, max_points=MAX_POINTS, issues=issues)
