"""Typed views over immutable maps, declared as accessor signatures."""

from __future__ import annotations

import importlib
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from dynamic_object.codec import (
        deserialize,
        deserialize_lines,
        from_msgpack,
        serialize,
        serialize_lines,
        serialize_pretty,
        to_msgpack,
    )
    from dynamic_object.config import (
        RuntimeConfigSpec,
        configure_runtime,
        reset_runtime_config,
        runtime_config,
    )
    from dynamic_object.errors import (
        CodecError,
        ConfigurationError,
        DynamicObjectError,
        RequiredFieldMissingError,
        SchemaDefinitionError,
        ShapeMismatch,
        TagRegistryError,
        ValidationFailedError,
        ValidationReport,
    )
    from dynamic_object.frozen_map import FrozenMap, diff_maps
    from dynamic_object.introspection import (
        AccessorKind,
        SchemaDescriptor,
        key,
        meta,
        required,
        schema_descriptor,
    )
    from dynamic_object.runtime import new_instance, to_builtins, wrap
    from dynamic_object.schema import DynamicObject
    from dynamic_object.tags import (
        deregister_tag,
        register_tag,
        registered_schema,
        registered_tag,
    )

_EXPORT_MAP: dict[str, tuple[str, str]] = {
    "AccessorKind": ("dynamic_object.introspection", "AccessorKind"),
    "CodecError": ("dynamic_object.errors", "CodecError"),
    "ConfigurationError": ("dynamic_object.errors", "ConfigurationError"),
    "DynamicObject": ("dynamic_object.schema", "DynamicObject"),
    "DynamicObjectError": ("dynamic_object.errors", "DynamicObjectError"),
    "FrozenMap": ("dynamic_object.frozen_map", "FrozenMap"),
    "RequiredFieldMissingError": ("dynamic_object.errors", "RequiredFieldMissingError"),
    "RuntimeConfigSpec": ("dynamic_object.config", "RuntimeConfigSpec"),
    "SchemaDefinitionError": ("dynamic_object.errors", "SchemaDefinitionError"),
    "SchemaDescriptor": ("dynamic_object.introspection", "SchemaDescriptor"),
    "ShapeMismatch": ("dynamic_object.errors", "ShapeMismatch"),
    "TagRegistryError": ("dynamic_object.errors", "TagRegistryError"),
    "ValidationFailedError": ("dynamic_object.errors", "ValidationFailedError"),
    "ValidationReport": ("dynamic_object.errors", "ValidationReport"),
    "configure_runtime": ("dynamic_object.config", "configure_runtime"),
    "deregister_tag": ("dynamic_object.tags", "deregister_tag"),
    "deserialize": ("dynamic_object.codec", "deserialize"),
    "deserialize_lines": ("dynamic_object.codec", "deserialize_lines"),
    "diff_maps": ("dynamic_object.frozen_map", "diff_maps"),
    "from_msgpack": ("dynamic_object.codec", "from_msgpack"),
    "key": ("dynamic_object.introspection", "key"),
    "meta": ("dynamic_object.introspection", "meta"),
    "new_instance": ("dynamic_object.runtime", "new_instance"),
    "register_tag": ("dynamic_object.tags", "register_tag"),
    "registered_schema": ("dynamic_object.tags", "registered_schema"),
    "registered_tag": ("dynamic_object.tags", "registered_tag"),
    "required": ("dynamic_object.introspection", "required"),
    "reset_runtime_config": ("dynamic_object.config", "reset_runtime_config"),
    "runtime_config": ("dynamic_object.config", "runtime_config"),
    "schema_descriptor": ("dynamic_object.introspection", "schema_descriptor"),
    "serialize": ("dynamic_object.codec", "serialize"),
    "serialize_lines": ("dynamic_object.codec", "serialize_lines"),
    "serialize_pretty": ("dynamic_object.codec", "serialize_pretty"),
    "to_builtins": ("dynamic_object.runtime", "to_builtins"),
    "to_msgpack": ("dynamic_object.codec", "to_msgpack"),
    "wrap": ("dynamic_object.runtime", "wrap"),
}


def __getattr__(name: str) -> object:
    target = _EXPORT_MAP.get(name)
    if target is None:
        msg = f"module {__name__!r} has no attribute {name!r}"
        raise AttributeError(msg)
    module_name, attr_name = target
    module = importlib.import_module(module_name)
    value = getattr(module, attr_name)
    globals()[name] = value
    return value


def __dir__() -> list[str]:
    return sorted(__all__)


__all__ = (
    "AccessorKind",
    "CodecError",
    "ConfigurationError",
    "DynamicObject",
    "DynamicObjectError",
    "FrozenMap",
    "RequiredFieldMissingError",
    "RuntimeConfigSpec",
    "SchemaDefinitionError",
    "SchemaDescriptor",
    "ShapeMismatch",
    "TagRegistryError",
    "ValidationFailedError",
    "ValidationReport",
    "configure_runtime",
    "deregister_tag",
    "deserialize",
    "deserialize_lines",
    "diff_maps",
    "from_msgpack",
    "key",
    "meta",
    "new_instance",
    "register_tag",
    "registered_schema",
    "registered_tag",
    "required",
    "reset_runtime_config",
    "runtime_config",
    "schema_descriptor",
    "serialize",
    "serialize_lines",
    "serialize_pretty",
    "to_builtins",
    "to_msgpack",
    "wrap",
)
