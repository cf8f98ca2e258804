"""Conversion between backing map values and declared accessor types.

Reads convert a raw map value into the type a getter declares; builders
convert a Python value into the raw domain stored in the map (JSON
primitives, tuples and ``FrozenMap``). Conversion never fails on a shape
mismatch: a value that cannot be coerced is returned unchanged and left
for validation to report.
"""

from __future__ import annotations

import datetime as dt
import decimal
import typing
import uuid
from collections import abc
from collections.abc import Mapping
from dataclasses import dataclass, is_dataclass
from enum import Enum, StrEnum
from types import MappingProxyType, NoneType, UnionType
from typing import Annotated, Any, Literal, TypeAliasType, TypeVar, Union, get_args, get_origin

import msgspec

from dynamic_object.frozen_map import FrozenMap, type_metadata
from dynamic_object.schema import DynamicObject
from serde_msgspec import convert, dumps_json_sorted, to_builtins


class ShapeKind(StrEnum):
    """How a declared type is converted and validated."""

    ANY = "any"
    OPTIONAL = "optional"
    SCHEMA = "schema"
    SEQUENCE = "sequence"
    SET = "set"
    MAPPING = "mapping"
    UNION = "union"
    SCALAR = "scalar"


@dataclass(frozen=True, slots=True)
class DeclaredShape:
    """Classified form of a declared type."""

    kind: ShapeKind
    declared: object
    origin: type | None = None
    args: tuple[object, ...] = ()

    def element_types(self, length: int) -> tuple[object, ...] | None:
        """Return the declared type of each element of a sequence of ``length`` items.

        Returns
        -------
        tuple[object, ...] | None
            Element types, or None when a fixed-length tuple has another length.
        """
        if not self.args:
            return (Any,) * length
        if self.origin is tuple:
            if len(self.args) == 2 and self.args[1] is Ellipsis:
                return (self.args[0],) * length
            return self.args if len(self.args) == length else None
        return (self.args[0],) * length


# Declared container origin -> concrete type built on read.
_SEQUENCE_BUILDERS: Mapping[object, type] = {
    list: list,
    tuple: tuple,
    abc.Sequence: tuple,
    abc.MutableSequence: list,
}
_SET_BUILDERS: Mapping[object, type] = {
    set: set,
    frozenset: frozenset,
    abc.Set: frozenset,
    abc.MutableSet: set,
}
_MAPPING_BUILDERS: Mapping[object, type] = {
    dict: dict,
    abc.Mapping: MappingProxyType,
    abc.MutableMapping: dict,
}

_COERCIBLE_SCALARS: frozenset[type] = frozenset(
    {
        float,
        bytes,
        bytearray,
        dt.datetime,
        dt.date,
        dt.time,
        dt.timedelta,
        uuid.UUID,
        decimal.Decimal,
    }
)

_SHAPES: dict[object, DeclaredShape] = {}


def declared_shape(declared: object) -> DeclaredShape:
    """Classify a declared type, caching the result when the type is hashable.

    Returns
    -------
    DeclaredShape
        Shape used by conversion and validation.
    """
    try:
        cached = _SHAPES.get(declared)
    except TypeError:
        return _compute_shape(declared)
    if cached is None:
        cached = _SHAPES.setdefault(declared, _compute_shape(declared))
    return cached


def _compute_shape(declared: object) -> DeclaredShape:  # noqa: PLR0911
    if declared is Any or declared is object or isinstance(declared, TypeVar):
        return DeclaredShape(ShapeKind.ANY, declared)
    if isinstance(declared, TypeAliasType):
        return _compute_shape(declared.__value__)
    origin = get_origin(declared)
    if origin is Annotated:
        inner = _compute_shape(get_args(declared)[0])
        if inner.kind is ShapeKind.SCALAR:
            return DeclaredShape(ShapeKind.SCALAR, declared)
        return inner
    if origin is Union or origin is UnionType:
        members = get_args(declared)
        present = tuple(member for member in members if member is not NoneType)
        if len(present) < len(members):
            inner = present[0] if len(present) == 1 else Union[present]  # noqa: UP007
            return DeclaredShape(ShapeKind.OPTIONAL, declared, args=(inner,))
        return DeclaredShape(ShapeKind.UNION, declared, args=present)
    if origin is Literal:
        return DeclaredShape(ShapeKind.SCALAR, declared)
    base = declared if origin is None else origin
    args = () if origin is None else get_args(declared)
    if base in _SEQUENCE_BUILDERS:
        return DeclaredShape(ShapeKind.SEQUENCE, declared, origin=base, args=args)
    if base in _SET_BUILDERS:
        return DeclaredShape(ShapeKind.SET, declared, origin=base, args=args)
    if base in _MAPPING_BUILDERS:
        return DeclaredShape(ShapeKind.MAPPING, declared, origin=base, args=args)
    if isinstance(base, type) and issubclass(base, DynamicObject):
        return DeclaredShape(ShapeKind.SCHEMA, declared, origin=base)
    return DeclaredShape(ShapeKind.SCALAR, declared, origin=base if isinstance(base, type) else None)


def type_name(declared: object) -> str:
    """Return a short display name for a declared type.

    Returns
    -------
    str
        Display name.
    """
    if isinstance(declared, type):
        return declared.__name__
    return repr(declared).replace("typing.", "")


def shape_name(value: object) -> str:
    """Return the display name of a value's runtime shape.

    Returns
    -------
    str
        Schema name for instances, otherwise the value's class name.
    """
    if isinstance(value, DynamicObject):
        return value.get_type().__name__
    return type(value).__name__


def is_instance_of(value: object, cls: type) -> bool:
    """Return True when ``value`` is an instance of ``cls``, not counting bools as numbers.

    Returns
    -------
    bool
        True when the value already has the declared class.
    """
    if isinstance(value, bool) and cls in {int, float}:
        return False
    return isinstance(value, cls)


# ---------------------------------------------------------------------------
# Map domain -> declared type
# ---------------------------------------------------------------------------


def to_declared_type(raw: object, declared: object) -> object:  # noqa: PLR0911
    """Convert a raw map value into the declared type.

    Parameters
    ----------
    raw
        Value read from the backing map.
    declared
        Declared return type of the getter (or element type).

    Returns
    -------
    object
        Converted value, or ``raw`` unchanged when it cannot be coerced.
    """
    if raw is None:
        return None
    shape = declared_shape(declared)
    match shape.kind:
        case ShapeKind.ANY:
            return raw
        case ShapeKind.OPTIONAL:
            return to_declared_type(raw, shape.args[0])
        case ShapeKind.SCHEMA:
            return _to_instance(raw, typing.cast("type[DynamicObject]", shape.origin))
        case ShapeKind.SEQUENCE:
            return _to_sequence(raw, shape)
        case ShapeKind.SET:
            return _to_set(raw, shape)
        case ShapeKind.MAPPING:
            return _to_mapping(raw, shape)
        case ShapeKind.UNION:
            return _to_union(raw, shape)
        case _:
            return _to_scalar(raw, shape.declared)


def _to_instance(raw: object, schema: type[DynamicObject]) -> object:
    if isinstance(raw, DynamicObject) or not isinstance(raw, Mapping):
        return raw
    from dynamic_object.runtime import wrap

    backing = raw if isinstance(raw, FrozenMap) else typing.cast("FrozenMap", to_raw_value(raw))
    recorded = type_metadata(backing)
    target = recorded if recorded is not None and issubclass(recorded, schema) else schema
    return wrap(backing, target)


def _to_union(raw: object, shape: DeclaredShape) -> object:
    if isinstance(raw, Mapping):
        schemas = [
            member_shape.origin
            for member_shape in map(declared_shape, shape.args)
            if member_shape.kind is ShapeKind.SCHEMA and member_shape.origin is not None
        ]
        if schemas:
            # A recorded type picks its member; otherwise the first schema wins.
            recorded = type_metadata(raw) if isinstance(raw, FrozenMap) else None
            target = next(
                (schema for schema in schemas if recorded is not None and issubclass(recorded, schema)),
                schemas[0],
            )
            return _to_instance(raw, typing.cast("type[DynamicObject]", target))
    return _to_scalar(raw, shape.declared)


def _to_sequence(raw: object, shape: DeclaredShape) -> object:
    if not isinstance(raw, (tuple, list)):
        return raw
    element_types = shape.element_types(len(raw))
    if element_types is None:
        return raw
    builder = _SEQUENCE_BUILDERS[shape.origin]
    return builder(
        to_declared_type(item, element) for item, element in zip(raw, element_types, strict=True)
    )


def _to_set(raw: object, shape: DeclaredShape) -> object:
    if not isinstance(raw, (tuple, list, abc.Set)):
        return raw
    element = shape.args[0] if shape.args else Any
    builder = _SET_BUILDERS[shape.origin]
    try:
        return builder(to_declared_type(item, element) for item in raw)
    except TypeError:
        return raw


def _to_mapping(raw: object, shape: DeclaredShape) -> object:
    if not isinstance(raw, Mapping):
        return raw
    key_type, value_type = (*shape.args, Any, Any)[:2]
    converted = {
        _to_scalar(item_key, key_type, strict=False): to_declared_type(item_value, value_type)
        for item_key, item_value in raw.items()
    }
    return _MAPPING_BUILDERS[shape.origin](converted)


def _to_scalar(raw: object, declared: object, *, strict: bool = True) -> object:
    if declared is Any or declared is object:
        return raw
    if isinstance(declared, type):
        if is_instance_of(raw, declared):
            return raw
        if isinstance(raw, Mapping) and (
            issubclass(declared, msgspec.Struct) or is_dataclass(declared)
        ):
            raw_payload = to_builtins(raw)
        elif declared in _COERCIBLE_SCALARS or issubclass(declared, Enum) or not strict:
            raw_payload = raw
        else:
            return raw
    else:
        raw_payload = to_builtins(raw) if isinstance(raw, (Mapping, tuple)) else raw
    try:
        return convert(raw_payload, target_type=typing.cast("type[object]", declared), strict=strict)
    except (msgspec.ValidationError, TypeError):
        return raw


# ---------------------------------------------------------------------------
# Python value -> map domain
# ---------------------------------------------------------------------------


def to_raw_value(value: object) -> object:  # noqa: PLR0911
    """Convert a builder argument into the raw domain stored in a backing map.

    Instances unwrap to their backing maps, mappings become ``FrozenMap`` with
    string keys, lists and tuples become tuples, sets become tuples in a
    canonical order, and other scalars take their msgspec builtin form.

    Returns
    -------
    object
        Raw value.
    """
    if value is None:
        return None
    if isinstance(value, Enum):
        return to_raw_value(value.value)
    if isinstance(value, (str, bool, int, float)):
        return value
    if isinstance(value, DynamicObject):
        return value.get_map()
    if isinstance(value, FrozenMap):
        return value
    if isinstance(value, Mapping):
        return FrozenMap({raw_key(item_key): to_raw_value(item) for item_key, item in value.items()})
    if isinstance(value, abc.Set):
        return tuple(sorted((to_raw_value(item) for item in value), key=canonical_sort_key))
    if isinstance(value, (list, tuple)):
        return tuple(to_raw_value(item) for item in value)
    builtins = to_builtins(value)
    if builtins is None or isinstance(builtins, (str, bool, int, float)):
        return builtins
    return to_raw_value(builtins)


def raw_key(key: object) -> str:
    """Return the string form of a mapping key.

    Returns
    -------
    str
        Key as stored in the raw domain.
    """
    if isinstance(key, Enum):
        key = key.value
    if isinstance(key, str):
        return key
    builtins = to_builtins(key)
    return builtins if isinstance(builtins, str) else str(builtins)


def canonical_sort_key(raw: object) -> bytes:
    """Return a total-order key for raw values of mixed types.

    Returns
    -------
    bytes
        Sorted-key JSON encoding of the value.
    """
    return dumps_json_sorted(raw)


__all__ = [
    "DeclaredShape",
    "ShapeKind",
    "canonical_sort_key",
    "declared_shape",
    "is_instance_of",
    "raw_key",
    "shape_name",
    "to_declared_type",
    "to_raw_value",
    "type_name",
]
