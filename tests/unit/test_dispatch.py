"""Tests for getter, builder and structural dispatch on instances."""

from __future__ import annotations

import copy
import datetime as dt
import pickle

import pytest

from dynamic_object import (
    RequiredFieldMissingError,
    new_instance,
    to_builtins,
    wrap,
)
from dynamic_object.frozen_map import FrozenMap, type_metadata
from dynamic_object.runtime import adapter_for
from tests.test_helpers.immutability import assert_immutable_instance
from tests.test_helpers.schemas import Address, Employee, Person


def test_new_instance_is_empty() -> None:
    """Create an empty instance with its schema recorded."""
    person = new_instance(Person)
    assert person.get_map() == {}
    assert person.get_type() is Person
    assert isinstance(person, Person)
    assert type_metadata(person.get_map()) is Person


def test_calling_schema_wraps_mapping() -> None:
    """Construct instances by calling the schema."""
    assert Person() == new_instance(Person)
    assert Person({"name": "Ada"}) == wrap({"name": "Ada"}, Person)


def test_builder_returns_new_instance() -> None:
    """Leave the receiver unchanged when building."""
    empty = Person()
    ada = empty.with_name("Ada").with_age(36)
    assert ada.name() == "Ada"
    assert ada.age() == 36
    assert empty.get_map() == {}
    assert ada.get_map() == {"name": "Ada", "age": 36}


def test_builder_replaces_field() -> None:
    """Overwrite an existing field."""
    person = Person().with_name("Ada").with_name("Grace")
    assert person.name() == "Grace"


def test_builder_stores_null() -> None:
    """Store None for a builder called with None."""
    person = Person({"age": 3}).with_age(None)
    assert "age" in person.get_map()
    assert person.age() is None


def test_required_getter_raises_when_null() -> None:
    """Name the field when a required getter resolves to None."""
    with pytest.raises(RequiredFieldMissingError) as excinfo:
        Person().name()
    assert excinfo.value.field_name == "name"
    assert "name" in str(excinfo.value)


def test_optional_getter_returns_none() -> None:
    """Return None for absent optional fields."""
    assert Person().age() is None


def test_getter_never_raises_on_shape() -> None:
    """Return the raw value when conversion is impossible."""
    assert Person({"age": "old"}).age() == "old"


def test_collections_round_trip_through_builders() -> None:
    """Store collections as tuples and read them back as declared."""
    person = Person().with_nicknames(["a", "b"]).with_tags({"y", "x"}).with_scores({"m": 1})
    raw = person.get_map()
    assert raw["nicknames"] == ("a", "b")
    assert raw["tags"] == ("x", "y")
    assert isinstance(raw["scores"], FrozenMap)
    assert person.nicknames() == ["a", "b"]
    assert person.tags() == frozenset({"x", "y"})
    assert person.scores() == {"m": 1}


def test_null_collection_is_not_empty() -> None:
    """Keep absence distinct from an empty collection."""
    assert Person().nicknames() is None
    assert Person({"nicknames": []}).nicknames() == []


def test_nested_schema_values() -> None:
    """Wrap nested maps in their declared schema."""
    person = Person({"name": "Ada", "address": {"street": "Main"}})
    address = person.address()
    assert isinstance(address, Address)
    assert address.street() == "Main"
    assert address == Address().with_street("Main")


def test_nested_builder_unwraps_instance() -> None:
    """Store a nested instance as its backing map."""
    address = Address().with_street("Main")
    person = Person().with_address(address)
    assert person.get_map()["address"] == {"street": "Main"}
    assert person.address() == address


def test_explicit_key_and_scalar_conversion() -> None:
    """Store dates in builtin form under the explicit key."""
    person = Person().with_birth_date(dt.date(1815, 12, 10))
    assert person.get_map() == {"birth-date": "1815-12-10"}
    assert person.birth_date() == dt.date(1815, 12, 10)


def test_metadata_builders_and_getters() -> None:
    """Write metadata without touching field data or equality."""
    person = Person().with_name("Ada")
    sourced = person.with_source("import")
    assert sourced.source() == "import"
    assert person.source() is None
    assert sourced.get_map() == person.get_map()
    assert sourced == person
    assert sourced.get_type() is Person


def test_default_method_runs_body() -> None:
    """Run default-bodied methods against dispatched getters."""
    assert Person({"name": "Ada", "age": 36}).display_name() == "Ada (36)"
    assert Person({"name": "Ada"}).display_name() == "Ada"


def test_subclass_builders_keep_schema() -> None:
    """Return instances of the receiver's schema from inherited builders."""
    employee = Employee().with_name("Ada").with_employee_id(7)
    assert employee.get_type() is Employee
    assert isinstance(employee, Person)
    assert employee.employee_id() == 7


def test_equality_is_per_schema() -> None:
    """Compare schema and backing map, never raw mappings."""
    assert Person({"name": "Ada"}) == Person().with_name("Ada")
    assert hash(Person({"name": "Ada"})) == hash(Person().with_name("Ada"))
    assert Person({"name": "Ada"}) != Employee({"name": "Ada"})
    assert Person({"name": "Ada"}) != {"name": "Ada"}
    assert Person({"name": "Ada"}) != Person({"name": "Grace"})


def test_string_forms() -> None:
    """Render the backing map."""
    person = Person({"name": "Ada"})
    assert str(person) == "{'name': 'Ada'}"
    assert repr(person) == "Person({'name': 'Ada'})"


def test_instances_are_immutable() -> None:
    """Reject attribute assignment and deletion."""
    assert_immutable_instance(
        factory=lambda: Person({"name": "Ada"}),
        attribute="_backing",
        attempted_value=FrozenMap(),
    )
    assert_immutable_instance(
        factory=Person,
        attribute="name",
        attempted_value="Grace",
    )


def test_pickle_and_copy() -> None:
    """Restore equal instances from pickles and share them on copy."""
    person = Person({"name": "Ada", "address": {"street": "Main"}})
    restored = pickle.loads(pickle.dumps(person))  # noqa: S301
    assert restored == person
    assert restored.get_type() is Person
    assert copy.copy(person) is person
    assert copy.deepcopy(person) is person


def test_adapter_is_cached_per_schema() -> None:
    """Derive one adapter per schema."""
    assert adapter_for(Person) is adapter_for(Person)
    assert type(Person()) is adapter_for(Person)
    assert adapter_for(adapter_for(Person)) is adapter_for(Person)


def test_wrap_rejects_non_mapping() -> None:
    """Reject non-mapping backing values."""
    with pytest.raises(TypeError):
        wrap([1, 2], Person)  # type: ignore[arg-type]


def test_to_builtins() -> None:
    """Return plain dicts and lists."""
    person = Person({"name": "Ada", "nicknames": ["a"], "address": {"street": "Main"}})
    assert to_builtins(person) == {
        "name": "Ada",
        "nicknames": ["a"],
        "address": {"street": "Main"},
    }
