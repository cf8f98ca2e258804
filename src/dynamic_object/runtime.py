"""Adapter types and call dispatch for schema instances.

Each schema gets one derived adapter class, built on first use and cached
for the life of the process. The adapter overrides every stub accessor with
a dispatcher chosen by the accessor's classified kind; default methods and
structural operations are inherited unchanged.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable, Mapping
from typing import cast

from dynamic_object.cache import ValueCache
from dynamic_object.conversion import to_declared_type, to_raw_value
from dynamic_object.errors import RequiredFieldMissingError
from dynamic_object.frozen_map import EMPTY_MAP, FrozenMap, with_type_metadata
from dynamic_object.introspection import Accessor, AccessorKind, classify
from dynamic_object.schema import DynamicObject
from serde_msgspec import to_builtins as _to_builtins

_LOGGER = logging.getLogger(__name__)

_ADAPTER_ATTR = "__dynamic_object_adapter__"
_SCHEMA_ATTR = "__dynamic_object_schema__"

_ADAPTERS: dict[type[DynamicObject], type[DynamicObject]] = {}


def schema_of[S: DynamicObject](schema: type[S]) -> type[S]:
    """Return the declared schema behind ``schema``, which may be an adapter.

    Returns
    -------
    type[S]
        Declared schema type.
    """
    if getattr(schema, _ADAPTER_ATTR, False):
        return cast("type[S]", getattr(schema, _SCHEMA_ATTR))
    return schema


def adapter_for[S: DynamicObject](schema: type[S]) -> type[S]:
    """Return the adapter class that instances of ``schema`` are created from.

    Parameters
    ----------
    schema
        Declared schema type.

    Returns
    -------
    type[S]
        Cached adapter subclass of ``schema``.
    """
    schema = schema_of(schema)
    cached = _ADAPTERS.get(schema)
    if cached is not None:
        return cast("type[S]", cached)
    descriptor = classify(schema)
    namespace: dict[str, object] = {
        "__slots__": (),
        "__module__": schema.__module__,
        "__qualname__": schema.__qualname__,
        "__doc__": schema.__doc__,
        _ADAPTER_ATTR: True,
        _SCHEMA_ATTR: schema,
    }
    for accessor in descriptor.accessors.values():
        if accessor.dispatched:
            namespace[accessor.name] = _dispatcher(accessor)
    adapter = type(schema)(schema.__name__, (schema,), namespace)
    _LOGGER.debug("Derived adapter for schema %s", schema.__qualname__)
    return cast("type[S]", _ADAPTERS.setdefault(schema, adapter))


def _dispatcher(accessor: Accessor) -> Callable[..., object]:
    match accessor.kind:
        case AccessorKind.GETTER:

            def dispatch(self: DynamicObject) -> object:
                return read_field(self, accessor)

        case AccessorKind.META_GETTER:

            def dispatch(self: DynamicObject) -> object:
                return self.get_map().meta.get(accessor.key)

        case AccessorKind.BUILDER:

            def dispatch(self: DynamicObject, value: object) -> DynamicObject:
                updated = self.get_map().assoc(accessor.key, to_raw_value(value))
                return _bind(updated, self.get_type())

        case AccessorKind.META_BUILDER:

            def dispatch(self: DynamicObject, value: object) -> DynamicObject:
                return _bind(self.get_map().vary_meta(accessor.key, value), self.get_type())

        case _:
            msg = f"Accessor {accessor.name} is not dispatched"
            raise ValueError(msg)
    if accessor.function is None:
        return dispatch
    return functools.wraps(accessor.function)(dispatch)


def resolve_field(instance: DynamicObject, accessor: Accessor) -> object:
    """Return the converted value of a field getter, memoized on the instance.

    Returns
    -------
    object
        Converted value, or None when the field is absent or null.
    """
    backing = instance.get_map()
    cache: ValueCache = instance._cache  # noqa: SLF001
    return cache.resolve(
        accessor.name,
        lambda: to_declared_type(backing.get(accessor.key), accessor.declared_type),
    )


def read_field(instance: DynamicObject, accessor: Accessor) -> object:
    """Return a field getter's value, enforcing its required marker.

    Returns
    -------
    object
        Converted value.

    Raises
    ------
    RequiredFieldMissingError
        If the getter is required and the value is None.
    """
    value = resolve_field(instance, accessor)
    if value is None and accessor.required:
        raise RequiredFieldMissingError(accessor.name, schema=instance.get_type().__name__)
    return value


def _bind[S: DynamicObject](backing: FrozenMap, schema: type[S]) -> S:
    instance = object.__new__(adapter_for(schema))
    object.__setattr__(instance, "_backing", backing)
    object.__setattr__(instance, "_cache", ValueCache())
    object.__setattr__(instance, "_schema", schema)
    return cast("S", instance)


def wrap[S: DynamicObject](data: Mapping[str, object], schema: type[S]) -> S:
    """Return an instance of ``schema`` backed by ``data``.

    Parameters
    ----------
    data
        Backing map. Plain mappings are frozen; nested values are converted
        to the raw domain.
    schema
        Schema type (or its adapter).

    Returns
    -------
    S
        Instance whose backing map records ``schema`` as its type.

    Raises
    ------
    TypeError
        If ``data`` is not a mapping.
    """
    schema = schema_of(schema)
    if isinstance(data, DynamicObject):
        data = data.get_map()
    if not isinstance(data, Mapping):
        msg = f"Cannot wrap {type(data).__name__} as {schema.__name__}; expected a mapping."
        raise TypeError(msg)
    backing = data if isinstance(data, FrozenMap) else cast("FrozenMap", to_raw_value(data))
    return _bind(with_type_metadata(backing, schema), schema)


def new_instance[S: DynamicObject](schema: type[S]) -> S:
    """Return an empty instance of ``schema``.

    Returns
    -------
    S
        Instance backed by an empty map.
    """
    return wrap(EMPTY_MAP, schema)


def to_builtins(instance: DynamicObject) -> dict[str, object]:
    """Return the backing map of ``instance`` as plain dicts and lists.

    Returns
    -------
    dict[str, object]
        Builtin payload.
    """
    return cast("dict[str, object]", _to_builtins(instance.get_map()))


__all__ = [
    "adapter_for",
    "new_instance",
    "read_field",
    "resolve_field",
    "schema_of",
    "to_builtins",
    "wrap",
]
