"""
Engine exception types and message extraction.

Nothing raised here is allowed to escape an event handler: the
registry catches these at its boundary, logs them and drops the
event, because a privacy grade must always render.
"""

from __future__ import annotations


class PrivacyGradeError(Exception):
    """Base class for all engine errors."""


class InvalidUrlError(PrivacyGradeError):
    """A URL could not be parsed or has no usable hostname."""

    def __init__(self, url: str, reason: str = "unparseable URL") -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"{reason}: {url[:200]!r}")


def get_error_message(error: BaseException | object) -> str:
    """
    Safely extract an error message from an unknown error type.
    """
    if isinstance(error, Exception):
        return str(error) or type(error).__name__
    return "Unknown error"
