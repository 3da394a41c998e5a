"""Base model with camelCase JSON aliases for values leaving the engine."""

from __future__ import annotations

import pydantic


def snake_to_camel(name: str) -> str:
    """Convert a snake_case string to camelCase (``final_score`` → ``finalScore``)."""
    head, *rest = name.split("_")
    return head + "".join(w.capitalize() for w in rest)


class CamelModel(pydantic.BaseModel):
    """Immutable model serialised with camelCase keys.

    Accepts both the field name and its alias on input so that
    collaborators can post either ``thirdParty`` or ``third_party``.
    """

    model_config = pydantic.ConfigDict(
        alias_generator=snake_to_camel,
        populate_by_name=True,
        frozen=True,
    )
