"""Schema classification for dynamic object types.

A schema is a ``DynamicObject`` subclass whose accessors are declared as
stub methods. Classification looks at each method's shape (stub or real
body, parameter count, return annotation) and at the markers left by the
``required``, ``meta`` and ``key`` decorators. The result is computed once per
schema type and shared by every instance for the life of the process.
"""

from __future__ import annotations

import dis
import inspect
import logging
import typing
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType

import msgspec

from core_types import FieldKeyStr, normalize_key
from dynamic_object.config import runtime_config
from dynamic_object.errors import SchemaDefinitionError
from dynamic_object.schema import DynamicObject
from serde_msgspec import convert

_LOGGER = logging.getLogger(__name__)

_REQUIRED_ATTR = "__dynamic_object_required__"
_META_ATTR = "__dynamic_object_meta__"
_KEY_ATTR = "__dynamic_object_key__"

STRUCTURAL_OPERATIONS: frozenset[str] = frozenset(
    name for name in vars(DynamicObject) if not name.startswith("_")
)


# Opcodes skipped when looking for a stub body.
_NOOP_OPS = frozenset({"RESUME", "NOP", "CACHE", "NOT_TAKEN"})


class AccessorKind(StrEnum):
    """Shapes a schema method can take."""

    GETTER = "getter"
    BUILDER = "builder"
    META_GETTER = "meta_getter"
    META_BUILDER = "meta_builder"
    DEFAULT = "default"


@dataclass(frozen=True)
class Accessor:
    """One classified schema method."""

    name: str
    kind: AccessorKind
    key: str
    declared_type: object = object
    required: bool = False
    function: Callable[..., object] | None = field(default=None, compare=False, repr=False)

    @property
    def dispatched(self) -> bool:
        """Return True when calls go through the runtime instead of the method body."""
        return self.kind is not AccessorKind.DEFAULT


@dataclass(frozen=True)
class SchemaDescriptor:
    """Cached classification of a schema type."""

    schema: type[DynamicObject]
    accessors: Mapping[str, Accessor]

    @property
    def field_getters(self) -> tuple[Accessor, ...]:
        """Return field getters in declaration order."""
        return tuple(
            accessor for accessor in self.accessors.values() if accessor.kind is AccessorKind.GETTER
        )

    @property
    def required_fields(self) -> tuple[Accessor, ...]:
        """Return the field getters marked required."""
        return tuple(accessor for accessor in self.field_getters if accessor.required)

    @property
    def metadata_accessors(self) -> tuple[Accessor, ...]:
        """Return metadata getters and builders."""
        return tuple(
            accessor
            for accessor in self.accessors.values()
            if accessor.kind in {AccessorKind.META_GETTER, AccessorKind.META_BUILDER}
        )

    @property
    def builder_fields(self) -> Mapping[str, str]:
        """Return the map key written by each field builder."""
        return {
            accessor.name: accessor.key
            for accessor in self.accessors.values()
            if accessor.kind is AccessorKind.BUILDER
        }

    def accessor(self, name: str) -> Accessor | None:
        """Return the accessor declared under ``name``.

        Returns
        -------
        Accessor | None
            Classified accessor, or None when the schema declares no such method.
        """
        return self.accessors.get(name)


def required[F: Callable[..., object]](func: F) -> F:
    """Mark a field getter as required.

    Returns
    -------
    F
        The same function, marked.
    """
    setattr(func, _REQUIRED_ATTR, True)
    return func


def meta[F: Callable[..., object]](func: F) -> F:
    """Mark a getter or builder as reading or writing instance metadata.

    Returns
    -------
    F
        The same function, marked.
    """
    setattr(func, _META_ATTR, True)
    return func


def key[F: Callable[..., object]](name: str) -> Callable[[F], F]:
    """Store a getter or builder under an explicit map key.

    Parameters
    ----------
    name
        Backing map key. A leading ``:`` is ignored.

    Returns
    -------
    Callable[[F], F]
        Decorator recording the key.

    Raises
    ------
    SchemaDefinitionError
        If ``name`` is empty.
    """
    try:
        checked = convert(normalize_key(name), target_type=FieldKeyStr)
    except msgspec.ValidationError as exc:
        msg = f"Invalid field key {name!r}: {exc}"
        raise SchemaDefinitionError(msg) from exc

    def _decorate(func: F) -> F:
        setattr(func, _KEY_ATTR, checked)
        return func

    return _decorate


def is_stub(func: Callable[..., object]) -> bool:
    """Return True when a function body does nothing (``...``, ``pass`` or a docstring).

    Returns
    -------
    bool
        True for stub bodies.
    """
    code = getattr(func, "__code__", None)
    if code is None:
        return False
    ops = [ins for ins in dis.get_instructions(code) if ins.opname not in _NOOP_OPS]
    match ops:
        case [ret]:
            return ret.opname == "RETURN_CONST" and ret.argval is None
        case [load, ret]:
            return load.opname == "LOAD_CONST" and load.argval is None and ret.opname == "RETURN_VALUE"
        case _:
            return False


_DESCRIPTORS: dict[type, SchemaDescriptor] = {}


def classify(schema: type[DynamicObject]) -> SchemaDescriptor:
    """Return the cached classification for ``schema``, computing it on first use.

    Parameters
    ----------
    schema
        Schema type to classify.

    Returns
    -------
    SchemaDescriptor
        Classification shared by every instance of the schema.

    Raises
    ------
    SchemaDefinitionError
        If ``schema`` is not a ``DynamicObject`` subclass or its annotations
        cannot be resolved.
    """
    cached = _DESCRIPTORS.get(schema)
    if cached is not None:
        return cached
    if not isinstance(schema, type) or not issubclass(schema, DynamicObject) or schema is DynamicObject:
        msg = f"{schema!r} is not a DynamicObject schema."
        raise SchemaDefinitionError(msg)
    descriptor = _build_descriptor(schema)
    return _DESCRIPTORS.setdefault(schema, descriptor)


def _declared_methods(schema: type[DynamicObject]) -> dict[str, Callable[..., object]]:
    methods: dict[str, Callable[..., object]] = {}
    for klass in reversed(schema.__mro__):
        if not issubclass(klass, DynamicObject) or klass is DynamicObject:
            continue
        if getattr(klass, "__dynamic_object_adapter__", False):
            continue
        for name, member in vars(klass).items():
            if name.startswith("_") or name in STRUCTURAL_OPERATIONS:
                continue
            if inspect.isfunction(member):
                methods[name] = member
            elif name in methods:
                # A non-function attribute shadows an inherited accessor.
                del methods[name]
    return methods


def _build_descriptor(schema: type[DynamicObject]) -> SchemaDescriptor:
    prefix = runtime_config().builder_prefix
    accessors: dict[str, Accessor] = {}
    for name, func in _declared_methods(schema).items():
        accessors[name] = _classify_method(schema, name, func, prefix)
    descriptor = SchemaDescriptor(schema=schema, accessors=MappingProxyType(accessors))
    _LOGGER.debug(
        "Classified schema %s: %d getters, %d builders, %d metadata accessors",
        schema.__qualname__,
        len(descriptor.field_getters),
        len(descriptor.builder_fields),
        len(descriptor.metadata_accessors),
    )
    return descriptor


def _type_hints(schema: type[DynamicObject], func: Callable[..., object]) -> dict[str, object]:
    try:
        return typing.get_type_hints(
            func,
            localns={schema.__name__: schema},
            include_extras=True,
        )
    except (NameError, TypeError) as exc:
        msg = f"Cannot resolve annotations of {schema.__qualname__}.{func.__name__}: {exc}"
        raise SchemaDefinitionError(msg) from exc


def _returns_schema(schema: type[DynamicObject], hint: object) -> bool:
    if hint is typing.Self:
        return True
    return isinstance(hint, type) and issubclass(hint, DynamicObject) and issubclass(schema, hint)


def _classify_method(
    schema: type[DynamicObject],
    name: str,
    func: Callable[..., object],
    builder_prefix: str,
) -> Accessor:
    if not is_stub(func):
        return Accessor(name=name, kind=AccessorKind.DEFAULT, key=name, function=func)
    parameters = list(inspect.signature(func).parameters.values())[1:]
    hints = _type_hints(schema, func)
    is_meta = bool(getattr(func, _META_ATTR, False))
    explicit_key = getattr(func, _KEY_ATTR, None)
    if not parameters:
        return Accessor(
            name=name,
            kind=AccessorKind.META_GETTER if is_meta else AccessorKind.GETTER,
            key=explicit_key or normalize_key(name),
            declared_type=hints.get("return", object),
            required=bool(getattr(func, _REQUIRED_ATTR, False)),
            function=func,
        )
    if len(parameters) == 1 and _returns_schema(schema, hints.get("return")):
        field_name = name.removeprefix(builder_prefix) or name
        return Accessor(
            name=name,
            kind=AccessorKind.META_BUILDER if is_meta else AccessorKind.BUILDER,
            key=explicit_key or normalize_key(field_name),
            declared_type=hints.get(parameters[0].name, object),
            function=func,
        )
    _LOGGER.debug("Method %s.%s matches no accessor shape", schema.__qualname__, name)
    return Accessor(name=name, kind=AccessorKind.DEFAULT, key=name, function=func)


def schema_descriptor(schema: type[DynamicObject]) -> SchemaDescriptor:
    """Return the classification for ``schema``.

    Returns
    -------
    SchemaDescriptor
        Cached classification.
    """
    return classify(schema)


__all__ = [
    "STRUCTURAL_OPERATIONS",
    "Accessor",
    "AccessorKind",
    "SchemaDescriptor",
    "classify",
    "is_stub",
    "key",
    "meta",
    "required",
    "schema_descriptor",
]
