"""Shared type aliases and small typing helpers."""

from __future__ import annotations

from typing import Annotated

from msgspec import Meta

TAG_PATTERN = "^[A-Za-z_][A-Za-z0-9_.:/-]{0,127}$"

NonNegativeInt = Annotated[int, Meta(ge=0)]

TagStr = Annotated[
    str,
    Meta(
        pattern=TAG_PATTERN,
        title="Type Tag",
        description="Name under which a schema type is written by the codec.",
    ),
]
FieldKeyStr = Annotated[
    str,
    Meta(
        min_length=1,
        title="Field Key",
        description="Backing map key for a schema field.",
    ),
]


def normalize_key(name: str) -> str:
    """Return a backing map key with any leading ``:`` sigil removed.

    Parameters
    ----------
    name
        Declared key or accessor name.

    Returns
    -------
    str
        Normalized map key.
    """
    return name[1:] if name.startswith(":") else name


__all__ = [
    "TAG_PATTERN",
    "FieldKeyStr",
    "NonNegativeInt",
    "TagStr",
    "normalize_key",
]
