"""Base type for schemas declared as accessor signatures."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Self

if TYPE_CHECKING:
    from dynamic_object.cache import ValueCache
    from dynamic_object.frozen_map import FrozenMap


class DynamicObject:
    """Base class for schema types backed by an immutable map.

    Subclasses declare accessors as stub methods::

        class Person(DynamicObject):
            @required
            def name(self) -> str: ...

            def age(self) -> int | None: ...

            def with_name(self, name: str) -> Person: ...

    Calling the schema creates an instance: ``Person()`` is empty and
    ``Person({"name": "Ada"})`` wraps the given mapping. Instances are
    immutable; builders return new instances. The public methods below are
    the structural operations every schema shares.
    """

    __slots__ = ("_backing", "_cache", "_schema")

    _backing: FrozenMap
    _cache: ValueCache
    _schema: type[Self]

    def __new__(cls, data: Mapping[str, object] | None = None) -> Self:
        from dynamic_object.runtime import wrap

        return wrap({} if data is None else data, cls)

    def __init__(self, data: Mapping[str, object] | None = None) -> None:  # noqa: ARG002
        """Accept the constructor argument; the runtime binds state in ``__new__``."""

    def __setattr__(self, name: str, value: object) -> None:
        msg = f"{type(self).__name__} instances are immutable"
        raise AttributeError(msg)

    def __delattr__(self, name: str) -> None:
        msg = f"{type(self).__name__} instances are immutable"
        raise AttributeError(msg)

    def get_map(self) -> FrozenMap:
        """Return the backing map."""
        return self._backing

    def get_type(self) -> type[Self]:
        """Return the schema type of this instance."""
        return self._schema

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DynamicObject):
            return NotImplemented
        return self._schema is other._schema and self._backing == other._backing

    def __hash__(self) -> int:
        return hash(self._backing)

    def __str__(self) -> str:
        return str(self._backing)

    def __repr__(self) -> str:
        return f"{self._schema.__name__}({dict(self._backing)!r})"

    def __reduce__(self) -> tuple[object, ...]:
        from dynamic_object.runtime import wrap

        return (wrap, (self._backing, self._schema))

    def __copy__(self) -> Self:
        return self

    def __deepcopy__(self, memo: dict[int, object]) -> Self:
        return self

    def merge(self, other: Self) -> Self:
        """Combine field-wise with ``other``, preferring its non-null values.

        Returns
        -------
        Self
            New instance of this schema.
        """
        from dynamic_object.diff import merge

        return merge(self, other)

    def intersect(self, other: Self) -> Self:
        """Keep only the fields whose values are equal in both instances.

        Returns
        -------
        Self
            New instance of this schema.
        """
        from dynamic_object.diff import intersect

        return intersect(self, other)

    def subtract(self, other: Self) -> Self:
        """Keep only the fields that are absent from or differ in ``other``.

        Returns
        -------
        Self
            New instance of this schema.
        """
        from dynamic_object.diff import subtract

        return subtract(self, other)

    def validate(self) -> Self:
        """Check every field against its declared type.

        Returns
        -------
        Self
            This instance, unchanged, so calls can be chained.

        Raises
        ------
        ValidationFailedError
            If any required field is missing or any value has the wrong shape.
        """
        from dynamic_object.validation import validate_instance

        validate_instance(self)
        return self

    def to_formatted_string(self) -> str:
        """Return the backing map rendered as indented text.

        Returns
        -------
        str
            Pretty-printed payload.
        """
        from dynamic_object.codec import serialize_pretty

        return serialize_pretty(self)

    def pretty_print(self) -> None:
        """Write the formatted backing map to standard output."""
        print(self.to_formatted_string())  # noqa: T201


__all__ = ["DynamicObject"]
