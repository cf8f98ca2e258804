"""Tests for the schema tag registry."""

from __future__ import annotations

import logging

import pytest

from dynamic_object import TagRegistryError
from dynamic_object.runtime import adapter_for
from dynamic_object.tags import (
    TAG_REGISTRY,
    TagRegistry,
    deregister_tag,
    register_tag,
    registered_schema,
    registered_tag,
)
from tests.test_helpers.schemas import Address, Person
from utils.registry_protocol import Registry, SnapshotRegistry


def test_registry_starts_empty() -> None:
    """Start without bindings."""
    assert len(TAG_REGISTRY) == 0
    assert registered_tag(Person) is None
    assert registered_schema("person") is None


def test_register_binds_both_directions() -> None:
    """Resolve the tag from the schema and the schema from the tag."""
    register_tag(Person, "person")
    assert registered_tag(Person) == "person"
    assert registered_schema("person") is Person
    assert Person in TAG_REGISTRY
    assert list(TAG_REGISTRY) == [Person]


def test_adapter_resolves_to_schema() -> None:
    """Treat an adapter class like its schema."""
    register_tag(adapter_for(Person), "person")
    assert registered_schema("person") is Person
    assert registered_tag(adapter_for(Person)) == "person"


def test_conflicting_tag_rejected() -> None:
    """Reject binding a tag held by another schema."""
    register_tag(Person, "shared")
    with pytest.raises(TagRegistryError):
        register_tag(Address, "shared")
    assert registered_schema("shared") is Person


def test_overwrite_rebinds_tag(caplog: pytest.LogCaptureFixture) -> None:
    """Move a tag to another schema when asked, with a warning."""
    register_tag(Person, "shared")
    with caplog.at_level(logging.WARNING, logger="dynamic_object.tags"):
        register_tag(Address, "shared", overwrite=True)
    assert registered_schema("shared") is Address
    assert registered_tag(Person) is None
    assert any(record.levelno == logging.WARNING for record in caplog.records)


def test_retagging_drops_previous_tag() -> None:
    """Keep one tag per schema."""
    register_tag(Person, "old")
    register_tag(Person, "new")
    assert registered_tag(Person) == "new"
    assert registered_schema("old") is None


def test_deregister() -> None:
    """Remove both directions and report the removed tag."""
    register_tag(Person, "person")
    assert deregister_tag(Person) == "person"
    assert registered_tag(Person) is None
    assert registered_schema("person") is None
    assert deregister_tag(Person) is None


@pytest.mark.parametrize("tag", ["", "1person", "has space"])
def test_invalid_tags_rejected(tag: str) -> None:
    """Reject tags outside the tag pattern."""
    with pytest.raises(TagRegistryError):
        register_tag(Person, tag)


def test_non_schema_rejected() -> None:
    """Reject types that are not schemas."""
    with pytest.raises(TagRegistryError):
        register_tag(dict, "dict")  # type: ignore[arg-type]


def test_snapshot_and_restore() -> None:
    """Restore bindings captured in a snapshot."""
    registry = TagRegistry()
    registry.register(Person, "person")
    snapshot = dict(registry.snapshot())
    registry.register(Address, "address")
    registry.restore(snapshot)
    assert registry.get(Person) == "person"
    assert registry.get(Address) is None
    assert registry.schema_for("address") is None


def test_registry_protocols() -> None:
    """Satisfy the shared registry protocols."""
    registry = TagRegistry()
    assert isinstance(registry, Registry)
    assert isinstance(registry, SnapshotRegistry)
