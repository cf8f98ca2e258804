"""Process-wide registry binding schema types to codec type tags.

The registry starts empty and changes only through ``register_tag`` and
``deregister_tag``. Each change swaps in new immutable lookup tables under a
lock, so a codec call in flight sees either the old or the new bindings.
Registering while other threads encode or decode is otherwise left to the
caller to coordinate.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

import msgspec

from core_types import TagStr
from dynamic_object.errors import TagRegistryError
from dynamic_object.runtime import schema_of
from dynamic_object.schema import DynamicObject
from serde_msgspec import convert
from utils.registry_protocol import Registry, SnapshotRegistry

_LOGGER = logging.getLogger(__name__)

type SchemaType = type[DynamicObject]


@dataclass
class TagRegistry(Registry[SchemaType, str], SnapshotRegistry[SchemaType, str]):
    """Bidirectional schema/tag bindings."""

    _tags: Mapping[SchemaType, str] = field(default_factory=lambda: MappingProxyType({}))
    _schemas: Mapping[str, SchemaType] = field(default_factory=lambda: MappingProxyType({}))
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def register(self, key: SchemaType, value: str, *, overwrite: bool = False) -> None:
        """Bind ``key`` to the tag ``value``.

        Parameters
        ----------
        key
            Schema type.
        value
            Tag name.
        overwrite
            Whether to take the tag over from a different schema.

        Raises
        ------
        TagRegistryError
            If the tag is invalid, or bound to another schema and ``overwrite`` is False.
        """
        schema = _checked_schema(key)
        tag = _checked_tag(value)
        with self._lock:
            tags = dict(self._tags)
            schemas = dict(self._schemas)
            holder = schemas.get(tag)
            if holder is not None and holder is not schema:
                if not overwrite:
                    msg = f"Tag {tag!r} is already bound to {holder.__qualname__}."
                    raise TagRegistryError(msg)
                _LOGGER.warning(
                    "Tag %r rebound from %s to %s", tag, holder.__qualname__, schema.__qualname__
                )
                del tags[holder]
            previous = tags.get(schema)
            if previous is not None and previous != tag:
                _LOGGER.warning(
                    "Schema %s retagged from %r to %r", schema.__qualname__, previous, tag
                )
                del schemas[previous]
            tags[schema] = tag
            schemas[tag] = schema
            self._publish(tags, schemas)
        _LOGGER.debug("Registered tag %r for %s", tag, schema.__qualname__)

    def deregister(self, key: SchemaType) -> str | None:
        """Remove the binding for ``key``.

        Returns
        -------
        str | None
            Tag that was bound, or None when the schema had no tag.
        """
        schema = schema_of(key)
        with self._lock:
            tag = self._tags.get(schema)
            if tag is None:
                return None
            tags = dict(self._tags)
            schemas = dict(self._schemas)
            del tags[schema]
            del schemas[tag]
            self._publish(tags, schemas)
        _LOGGER.debug("Deregistered tag %r for %s", tag, schema.__qualname__)
        return tag

    def get(self, key: SchemaType) -> str | None:
        """Return the tag bound to ``key``, or None."""
        return self._tags.get(schema_of(key))

    def schema_for(self, tag: str) -> SchemaType | None:
        """Return the schema bound to ``tag``, or None."""
        return self._schemas.get(tag)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, type) and schema_of(key) in self._tags

    def __iter__(self) -> Iterator[SchemaType]:
        return iter(self._tags)

    def __len__(self) -> int:
        return len(self._tags)

    def snapshot(self) -> Mapping[SchemaType, str]:
        """Return the current bindings keyed by schema.

        Returns
        -------
        Mapping[SchemaType, str]
            Read-only view of the bindings.
        """
        return self._tags

    def restore(self, snapshot: Mapping[SchemaType, str]) -> None:
        """Replace every binding with those in ``snapshot``."""
        tags = dict(snapshot)
        schemas = {tag: schema for schema, tag in tags.items()}
        if len(schemas) != len(tags):
            msg = "Snapshot binds one tag to more than one schema."
            raise TagRegistryError(msg)
        with self._lock:
            self._publish(tags, schemas)

    def clear(self) -> None:
        """Remove every binding."""
        with self._lock:
            self._publish({}, {})

    def _publish(self, tags: dict[SchemaType, str], schemas: dict[str, SchemaType]) -> None:
        self._tags = MappingProxyType(tags)
        self._schemas = MappingProxyType(schemas)


def _checked_schema(schema: object) -> SchemaType:
    if not isinstance(schema, type) or not issubclass(schema, DynamicObject) or schema is DynamicObject:
        msg = f"{schema!r} is not a DynamicObject schema."
        raise TagRegistryError(msg)
    return schema_of(schema)


def _checked_tag(tag: object) -> str:
    try:
        return convert(tag, target_type=TagStr)
    except msgspec.ValidationError as exc:
        msg = f"Invalid type tag {tag!r}: {exc}"
        raise TagRegistryError(msg) from exc


TAG_REGISTRY = TagRegistry()


def register_tag(schema: SchemaType, tag: str, *, overwrite: bool = False) -> None:
    """Bind ``schema`` to ``tag`` in the process-wide registry."""
    TAG_REGISTRY.register(schema, tag, overwrite=overwrite)


def deregister_tag(schema: SchemaType) -> str | None:
    """Remove the process-wide binding for ``schema``.

    Returns
    -------
    str | None
        Tag that was bound, or None.
    """
    return TAG_REGISTRY.deregister(schema)


def registered_tag(schema: SchemaType) -> str | None:
    """Return the tag bound to ``schema``, or None."""
    return TAG_REGISTRY.get(schema)


def registered_schema(tag: str) -> SchemaType | None:
    """Return the schema bound to ``tag``, or None."""
    return TAG_REGISTRY.schema_for(tag)


__all__ = [
    "TAG_REGISTRY",
    "TagRegistry",
    "deregister_tag",
    "register_tag",
    "registered_schema",
    "registered_tag",
]
