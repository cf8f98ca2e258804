"""Structural validation of instances against their declared schemas."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import msgspec

from dynamic_object.conversion import (
    DeclaredShape,
    ShapeKind,
    declared_shape,
    is_instance_of,
    shape_name,
    type_name,
)
from dynamic_object.errors import ShapeMismatch, ValidationFailedError, ValidationReport
from dynamic_object.introspection import classify
from dynamic_object.runtime import resolve_field
from dynamic_object.schema import DynamicObject
from serde_msgspec import convert, validation_error_payload

_LOGGER = logging.getLogger(__name__)


def collect_faults(instance: DynamicObject) -> ValidationReport:
    """Check every field getter of ``instance`` and report all faults found.

    Values are read through the instance cache, so a validated field is
    already converted for later reads.

    Parameters
    ----------
    instance
        Instance to check.

    Returns
    -------
    ValidationReport
        Missing required fields and mismatched values, in declaration order.
    """
    schema = instance.get_type()
    missing: list[str] = []
    mismatched: list[ShapeMismatch] = []
    for accessor in classify(schema).field_getters:
        value = resolve_field(instance, accessor)
        if value is None:
            if accessor.required:
                missing.append(accessor.name)
            continue
        mismatched.extend(_check(value, accessor.declared_type, accessor.name))
    return ValidationReport(
        schema=schema.__name__,
        missing=tuple(missing),
        mismatched=tuple(mismatched),
    )


def validate_instance(instance: DynamicObject) -> ValidationReport:
    """Validate ``instance``.

    Returns
    -------
    ValidationReport
        Empty report when the instance is valid.

    Raises
    ------
    ValidationFailedError
        If any required field is missing or any value has the wrong shape.
    """
    report = collect_faults(instance)
    if report.ok:
        return report
    _LOGGER.debug("Validation failed: %s", report.summary())
    raise ValidationFailedError(report)


def _mismatch(path: str, declared: object, value: object, detail: str | None = None) -> ShapeMismatch:
    return ShapeMismatch(
        field=path,
        expected=type_name(declared),
        actual=shape_name(value),
        detail=detail,
    )


def _check(value: object, declared: object, path: str) -> list[ShapeMismatch]:  # noqa: PLR0911
    shape = declared_shape(declared)
    match shape.kind:
        case ShapeKind.ANY:
            return []
        case ShapeKind.OPTIONAL:
            return [] if value is None else _check(value, shape.args[0], path)
        case _ if value is None:
            return [_mismatch(path, declared, value)]
        case ShapeKind.SCHEMA:
            return _check_instance(value, shape, path)
        case ShapeKind.SEQUENCE:
            return _check_sequence(value, shape, path)
        case ShapeKind.SET:
            return _check_set(value, shape, path)
        case ShapeKind.MAPPING:
            return _check_mapping(value, shape, path)
        case ShapeKind.UNION:
            if any(not _check(value, member, path) for member in shape.args):
                return []
            return [_mismatch(path, declared, value)]
        case _:
            return _check_scalar(value, shape, path)


def _check_instance(value: object, shape: DeclaredShape, path: str) -> list[ShapeMismatch]:
    if not isinstance(value, DynamicObject) or shape.origin is None or not isinstance(value, shape.origin):
        return [_mismatch(path, shape.declared, value)]
    try:
        value.validate()
    except ValidationFailedError as exc:
        return [_mismatch(path, shape.declared, value, exc.report.summary())]
    return []


def _check_sequence(value: object, shape: DeclaredShape, path: str) -> list[ShapeMismatch]:
    if (
        shape.origin is None
        or isinstance(value, (str, bytes))
        or not isinstance(value, shape.origin)
    ):
        return [_mismatch(path, shape.declared, value)]
    items = list(value)  # type: ignore[call-overload]
    element_types = shape.element_types(len(items))
    if element_types is None:
        detail = f"expected {len(shape.args)} items, got {len(items)}"
        return [_mismatch(path, shape.declared, value, detail)]
    faults: list[ShapeMismatch] = []
    for index, (item, element) in enumerate(zip(items, element_types, strict=True)):
        faults.extend(_check(item, element, f"{path}[{index}]"))
    return faults


def _check_set(value: object, shape: DeclaredShape, path: str) -> list[ShapeMismatch]:
    if shape.origin is None or not isinstance(value, shape.origin):
        return [_mismatch(path, shape.declared, value)]
    element = shape.args[0] if shape.args else Any
    faults: list[ShapeMismatch] = []
    for item in value:  # type: ignore[attr-defined]
        faults.extend(_check(item, element, f"{path}[{item!r}]"))
    return faults


def _check_mapping(value: object, shape: DeclaredShape, path: str) -> list[ShapeMismatch]:
    if shape.origin is None or not isinstance(value, Mapping) or not isinstance(value, shape.origin):
        return [_mismatch(path, shape.declared, value)]
    key_type, value_type = (*shape.args, Any, Any)[:2]
    faults: list[ShapeMismatch] = []
    for item_key, item_value in value.items():
        item_path = f"{path}[{item_key!r}]"
        if _check(item_key, key_type, item_path):
            faults.append(_mismatch(item_path, key_type, item_key, "key"))
        faults.extend(_check(item_value, value_type, item_path))
    return faults


def _check_scalar(value: object, shape: DeclaredShape, path: str) -> list[ShapeMismatch]:
    if shape.origin is not None:
        if is_instance_of(value, shape.origin):
            return []
        return [_mismatch(path, shape.declared, value)]
    try:
        convert(value, target_type=shape.declared, strict=True)  # type: ignore[arg-type]
    except msgspec.ValidationError as exc:
        details = validation_error_payload(exc)
        return [_mismatch(path, shape.declared, value, details.get("summary"))]
    except TypeError:
        # msgspec cannot check this annotation; accept the value.
        return []
    return []


__all__ = ["collect_faults", "validate_instance"]
