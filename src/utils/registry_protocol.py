"""Registry protocols shared by process-wide lookup tables."""

from __future__ import annotations

from abc import abstractmethod
from collections.abc import Iterator, Mapping
from typing import Protocol, TypeVar, runtime_checkable

K = TypeVar("K")
V = TypeVar("V")


@runtime_checkable
class Registry(Protocol[K, V]):
    """Protocol for registry implementations."""

    @abstractmethod
    def register(self, key: K, value: V) -> None:
        """Register a value with the given key."""

    @abstractmethod
    def get(self, key: K) -> V | None:
        """Retrieve a value by key, or None if not found."""

    @abstractmethod
    def __contains__(self, key: K) -> bool:
        """Check if key is registered."""

    @abstractmethod
    def __iter__(self) -> Iterator[K]:
        """Iterate over registered keys."""

    @abstractmethod
    def __len__(self) -> int:
        """Return count of registered items."""


@runtime_checkable
class SnapshotRegistry(Protocol[K, V]):
    """Protocol for registries that support snapshot/restore."""

    @abstractmethod
    def snapshot(self) -> Mapping[K, V]:
        """Return a snapshot of the registry state."""

    @abstractmethod
    def restore(self, snapshot: Mapping[K, V]) -> None:
        """Restore the registry state from a snapshot."""


__all__ = ["Registry", "SnapshotRegistry"]
