"""Tests for schema classification."""

from __future__ import annotations

import pytest

from dynamic_object import DynamicObject
from dynamic_object.errors import SchemaDefinitionError
from dynamic_object.introspection import (
    STRUCTURAL_OPERATIONS,
    AccessorKind,
    classify,
    is_stub,
    key,
    schema_descriptor,
)
from tests.test_helpers.schemas import Employee, Person


def _ellipsis(self: object) -> int: ...


def _docstring(self: object) -> int:
    """Only a docstring."""


def _real(self: object) -> int:
    return 1


def test_is_stub_recognizes_stub_bodies() -> None:
    """Treat ellipsis, pass and docstring-only bodies as stubs."""
    assert is_stub(_ellipsis)
    assert is_stub(_docstring)
    assert is_stub(Employee.employee_id)
    assert not is_stub(_real)


def test_field_getters_and_builders() -> None:
    """Classify stub getters and builders with their map keys."""
    descriptor = schema_descriptor(Person)
    name = descriptor.accessors["name"]
    assert name.kind is AccessorKind.GETTER
    assert name.required
    assert name.key == "name"
    assert name.declared_type is str
    with_name = descriptor.accessors["with_name"]
    assert with_name.kind is AccessorKind.BUILDER
    assert with_name.key == "name"
    assert descriptor.builder_fields["with_age"] == "age"


def test_explicit_keys() -> None:
    """Use the key given to the key decorator."""
    descriptor = schema_descriptor(Person)
    assert descriptor.accessors["birth_date"].key == "birth-date"
    assert descriptor.accessors["with_birth_date"].key == "birth-date"


def test_metadata_accessors() -> None:
    """Classify metadata-marked getters and builders."""
    descriptor = schema_descriptor(Person)
    assert descriptor.accessors["source"].kind is AccessorKind.META_GETTER
    builder = descriptor.accessors["with_source"]
    assert builder.kind is AccessorKind.META_BUILDER
    assert builder.key == "source"
    assert {accessor.name for accessor in descriptor.metadata_accessors} == {"source", "with_source"}


def test_default_methods_are_not_dispatched() -> None:
    """Leave methods with real bodies to run as written."""
    accessor = schema_descriptor(Person).accessors["display_name"]
    assert accessor.kind is AccessorKind.DEFAULT
    assert not accessor.dispatched


def test_structural_operations_are_excluded() -> None:
    """Never classify the shared structural operations as fields."""
    accessors = schema_descriptor(Person).accessors
    assert {"merge", "intersect", "subtract", "validate", "get_map"} <= STRUCTURAL_OPERATIONS
    assert STRUCTURAL_OPERATIONS.isdisjoint(accessors)


def test_subclass_inherits_accessors() -> None:
    """Include inherited accessors and Self-returning builders."""
    descriptor = schema_descriptor(Employee)
    assert descriptor.accessors["name"].required
    assert descriptor.accessors["employee_id"].kind is AccessorKind.GETTER
    assert descriptor.accessors["with_employee_id"].kind is AccessorKind.BUILDER
    assert descriptor.accessors["with_name"].kind is AccessorKind.BUILDER


def test_required_fields_in_declaration_order() -> None:
    """List required getters only."""
    assert [accessor.name for accessor in schema_descriptor(Person).required_fields] == ["name"]


def test_classification_is_cached() -> None:
    """Return the same descriptor for repeated lookups."""
    assert classify(Person) is classify(Person)


def test_classify_rejects_non_schema() -> None:
    """Reject types that are not schemas."""
    with pytest.raises(SchemaDefinitionError):
        classify(int)  # type: ignore[arg-type]
    with pytest.raises(SchemaDefinitionError):
        classify(DynamicObject)


def test_unshaped_stub_is_default() -> None:
    """Leave stubs matching no accessor shape undispatched."""

    class Odd(DynamicObject):
        def combine(self, left: int, right: int) -> int: ...

    assert schema_descriptor(Odd).accessors["combine"].kind is AccessorKind.DEFAULT


def test_key_rejects_empty_name() -> None:
    """Reject empty explicit keys."""
    with pytest.raises(SchemaDefinitionError):
        key(":")
