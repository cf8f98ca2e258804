"""Immutable backing map with a metadata side-channel."""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from types import MappingProxyType

TYPE_METADATA_KEY = "__dynamic_object_type__"

_EMPTY: Mapping[str, object] = MappingProxyType({})


class FrozenMap(Mapping[str, object]):
    """Immutable string-keyed mapping carrying a separate metadata mapping.

    Every update returns a new map and leaves the receiver untouched. The
    metadata mapping rides along with the data but never takes part in
    equality or hashing, so two maps holding the same entries compare equal
    regardless of what either one records about itself.
    """

    __slots__ = ("_data", "_hash", "_meta")

    def __init__(
        self,
        data: Mapping[str, object] | None = None,
        *,
        meta: Mapping[str, object] | None = None,
    ) -> None:
        self._data: Mapping[str, object] = MappingProxyType(dict(data)) if data else _EMPTY
        self._meta: Mapping[str, object] = MappingProxyType(dict(meta)) if meta else _EMPTY
        self._hash: int | None = None

    @classmethod
    def _adopt(cls, data: dict[str, object], meta: Mapping[str, object]) -> FrozenMap:
        # Takes ownership of ``data``; callers must not retain it.
        frozen = cls.__new__(cls)
        frozen._data = MappingProxyType(data) if data else _EMPTY
        frozen._meta = meta
        frozen._hash = None
        return frozen

    def __getitem__(self, key: str) -> object:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def get(self, key: str, default: object = None) -> object:
        """Return the value stored under ``key`` or ``default``.

        Returns
        -------
        object
            Stored value or the default.
        """
        return self._data.get(key, default)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, FrozenMap):
            return self._data == other._data
        if isinstance(other, Mapping):
            return dict(self._data) == dict(other)
        return NotImplemented

    def __hash__(self) -> int:
        if self._hash is None:
            self._hash = hash(frozenset(self._data.items()))
        return self._hash

    def __repr__(self) -> str:
        return f"FrozenMap({dict(self._data)!r})"

    def __str__(self) -> str:
        return str(dict(self._data))

    def __reduce__(self) -> tuple[object, ...]:
        return (_rebuild, (dict(self._data), dict(self._meta)))

    @property
    def meta(self) -> Mapping[str, object]:
        """Return the metadata side-channel."""
        return self._meta

    def assoc(self, key: str, value: object) -> FrozenMap:
        """Return a copy with ``key`` set to ``value``, replacing any prior value.

        Returns
        -------
        FrozenMap
            Updated map sharing this map's metadata.
        """
        updated = dict(self._data)
        updated[key] = value
        return FrozenMap._adopt(updated, self._meta)

    def dissoc(self, key: str) -> FrozenMap:
        """Return a copy without ``key``.

        Returns
        -------
        FrozenMap
            Updated map, or this map when the key is absent.
        """
        if key not in self._data:
            return self
        updated = dict(self._data)
        del updated[key]
        return FrozenMap._adopt(updated, self._meta)

    def merge_with(
        self,
        combine: Callable[[object, object], object],
        other: Mapping[str, object],
    ) -> FrozenMap:
        """Fold ``other`` into this map, resolving shared keys with ``combine``.

        Parameters
        ----------
        combine
            Called as ``combine(mine, theirs)`` for keys present in both maps.
        other
            Mapping whose entries are folded in.

        Returns
        -------
        FrozenMap
            Merged map carrying this map's metadata.
        """
        merged = dict(self._data)
        for key, value in other.items():
            merged[key] = combine(merged[key], value) if key in merged else value
        return FrozenMap._adopt(merged, self._meta)

    def with_meta(self, meta: Mapping[str, object]) -> FrozenMap:
        """Return the same entries carrying ``meta`` as metadata.

        Returns
        -------
        FrozenMap
            Map with replaced metadata.
        """
        frozen = FrozenMap._adopt(dict(self._data), MappingProxyType(dict(meta)))
        frozen._hash = self._hash
        return frozen

    def vary_meta(self, key: str, value: object) -> FrozenMap:
        """Return the same entries with one metadata key set.

        Returns
        -------
        FrozenMap
            Map with updated metadata.
        """
        meta = dict(self._meta)
        meta[key] = value
        return self.with_meta(meta)


def _rebuild(data: dict[str, object], meta: dict[str, object]) -> FrozenMap:
    return FrozenMap(data, meta=meta)


EMPTY_MAP = FrozenMap()


def type_metadata(value: FrozenMap) -> type | None:
    """Return the schema type recorded on a map, if any.

    Returns
    -------
    type | None
        Recorded schema type.
    """
    recorded = value.meta.get(TYPE_METADATA_KEY)
    return recorded if isinstance(recorded, type) else None


def with_type_metadata(value: FrozenMap, schema: type) -> FrozenMap:
    """Record ``schema`` as the type of ``value``.

    Returns
    -------
    FrozenMap
        Map whose metadata names ``schema``.
    """
    if value.meta.get(TYPE_METADATA_KEY) is schema:
        return value
    return value.vary_meta(TYPE_METADATA_KEY, schema)


def diff_maps(
    left: Mapping[str, object],
    right: Mapping[str, object],
) -> tuple[FrozenMap, FrozenMap, FrozenMap]:
    """Split two maps into entries only in ``left``, only in ``right``, and shared.

    A key whose values differ lands on both sides with each side's value.
    Values are compared whole; nested maps are not descended into.

    Parameters
    ----------
    left
        First map.
    right
        Second map.

    Returns
    -------
    tuple[FrozenMap, FrozenMap, FrozenMap]
        ``(only_left, only_right, shared)``.
    """
    only_left: dict[str, object] = {}
    only_right: dict[str, object] = {}
    shared: dict[str, object] = {}
    for key, value in left.items():
        if key in right and right[key] == value:
            shared[key] = value
        else:
            only_left[key] = value
    for key, value in right.items():
        if key not in shared:
            only_right[key] = value
    return (
        FrozenMap._adopt(only_left, _EMPTY),  # noqa: SLF001
        FrozenMap._adopt(only_right, _EMPTY),  # noqa: SLF001
        FrozenMap._adopt(shared, _EMPTY),  # noqa: SLF001
    )


__all__ = [
    "EMPTY_MAP",
    "TYPE_METADATA_KEY",
    "FrozenMap",
    "diff_maps",
    "type_metadata",
    "with_type_metadata",
]
