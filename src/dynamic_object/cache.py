"""Per-instance memo of converted getter values."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ResolvedNull:
    """Entry for a getter whose converted value is None."""


@dataclass(frozen=True, slots=True)
class ResolvedValue:
    """Entry holding a converted getter value."""

    value: object


type CacheEntry = ResolvedNull | ResolvedValue

RESOLVED_NULL = ResolvedNull()


class ValueCache:
    """Converted values for one instance, keyed by accessor name.

    A missing entry means the getter has not been resolved yet. Filling an
    entry is first-write-wins: callers racing on the same field may each run
    the conversion, but all of them return whichever result was installed
    first.
    """

    __slots__ = ("_entries",)

    def __init__(self) -> None:
        self._entries: dict[str, CacheEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def lookup(self, name: str) -> CacheEntry | None:
        """Return the entry for ``name``, or None when unresolved.

        Returns
        -------
        CacheEntry | None
            Installed entry.
        """
        return self._entries.get(name)

    def resolve(self, name: str, compute: Callable[[], object]) -> object:
        """Return the cached value for ``name``, computing and installing it if needed.

        Parameters
        ----------
        name
            Accessor name.
        compute
            Pure function producing the converted value.

        Returns
        -------
        object
            The installed value, which may be None.
        """
        entry = self._entries.get(name)
        if entry is None:
            computed = compute()
            candidate = RESOLVED_NULL if computed is None else ResolvedValue(computed)
            entry = self._entries.setdefault(name, candidate)
        match entry:
            case ResolvedValue(value=value):
                return value
            case _:
                return None


__all__ = [
    "RESOLVED_NULL",
    "CacheEntry",
    "ResolvedNull",
    "ResolvedValue",
    "ValueCache",
]
