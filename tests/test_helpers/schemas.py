"""Schemas shared by the dynamic object tests."""

from __future__ import annotations

import datetime as dt
import uuid
from collections.abc import Mapping
from enum import StrEnum
from typing import Annotated, Self

import msgspec

from dynamic_object import DynamicObject, key, meta, required


class Color(StrEnum):
    RED = "red"
    GREEN = "green"


class Address(DynamicObject):
    @required
    def street(self) -> str: ...

    def city(self) -> str | None: ...

    def with_street(self, street: str) -> Address: ...

    def with_city(self, city: str | None) -> Address: ...


class Person(DynamicObject):
    """A person record."""

    @required
    def name(self) -> str: ...

    def age(self) -> int | None: ...

    def nicknames(self) -> list[str] | None: ...

    def tags(self) -> frozenset[str] | None: ...

    def scores(self) -> dict[str, int] | None: ...

    def address(self) -> Address | None: ...

    @key("birth-date")
    def birth_date(self) -> dt.date | None: ...

    @meta
    def source(self) -> str | None: ...

    def with_name(self, name: str) -> Person: ...

    def with_age(self, age: int | None) -> Person: ...

    def with_nicknames(self, nicknames: list[str]) -> Person: ...

    def with_tags(self, tags: set[str]) -> Person: ...

    def with_scores(self, scores: Mapping[str, int]) -> Person: ...

    def with_address(self, address: Address) -> Person: ...

    @key("birth-date")
    def with_birth_date(self, birth_date: dt.date) -> Person: ...

    @meta
    def with_source(self, source: str) -> Person: ...

    def display_name(self) -> str:
        age = self.age()
        return self.name() if age is None else f"{self.name()} ({age})"


class Employee(Person):
    def employee_id(self) -> int | None:
        pass

    def with_employee_id(self, employee_id: int) -> Self:
        """Set the employee id."""


class Numbers(DynamicObject):
    def ints(self) -> list[int] | None: ...

    def pair(self) -> tuple[int, str] | None: ...

    def counts(self) -> Mapping[str, int] | None: ...

    def level(self) -> Annotated[int, msgspec.Meta(ge=0)] | None: ...

    def color(self) -> Color | None: ...

    def ratio(self) -> float | None: ...

    def identifier(self) -> uuid.UUID | None: ...

    def people(self) -> list[Person] | None: ...

    def with_ints(self, ints: list[int]) -> Numbers: ...

    def with_color(self, color: Color) -> Numbers: ...

    def with_identifier(self, identifier: uuid.UUID) -> Numbers: ...

    def with_people(self, people: list[Person]) -> Numbers: ...


class Badge(DynamicObject):
    def name(self) -> str | None: ...

    @meta
    def type(self) -> str | None: ...

    def with_name(self, name: str) -> Badge: ...

    @meta
    def with_type(self, kind: str) -> Badge: ...


class Contact(DynamicObject):
    def party(self) -> Address | Person | None: ...

    def with_party(self, party: Address | Person) -> Contact: ...


__all__ = ["Address", "Badge", "Color", "Contact", "Employee", "Numbers", "Person"]
