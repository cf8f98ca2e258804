"""Shared msgspec policy and helpers."""

from __future__ import annotations

import re
from collections.abc import Mapping, Set
from typing import Literal

import msgspec


class StructBaseStrict(
    msgspec.Struct,
    frozen=True,
    kw_only=True,
    omit_defaults=True,
    repr_omit_defaults=True,
    forbid_unknown_fields=True,
):
    """Base struct for strict contracts."""


type EncodeOrder = Literal["deterministic", "sorted"]

_DEFAULT_ORDER: EncodeOrder = "deterministic"

_VALIDATION_RE = re.compile(r"^(?P<summary>.*?)(?:\s+-\s+at\s+`(?P<path>[^`]+)`)?$")


def builtin_enc_hook(obj: object) -> object:
    """Map non-native containers onto the builtin types msgspec encodes.

    Parameters
    ----------
    obj
        Object msgspec could not encode natively.

    Returns
    -------
    object
        Encodable replacement.

    Raises
    ------
    TypeError
        If the object has no builtin representation.
    """
    if isinstance(obj, Mapping):
        return dict(obj)
    if isinstance(obj, Set):
        return list(obj)
    if isinstance(obj, type):
        return f"{obj.__module__}.{obj.__qualname__}"
    msg = f"Object of type {type(obj).__name__} has no builtin representation"
    raise TypeError(msg)


JSON_ENCODER_SORTED = msgspec.json.Encoder(
    enc_hook=builtin_enc_hook,
    order="sorted",
    decimal_format="string",
    uuid_format="canonical",
)


def dumps_json_sorted(obj: object, *, pretty: bool = False, indent: int = 2) -> bytes:
    """Serialize an object to JSON bytes with sorted keys.

    Parameters
    ----------
    obj
        Object to serialize.
    pretty
        Whether to format with indentation.
    indent
        Indentation width used when ``pretty`` is set.

    Returns
    -------
    bytes
        JSON payload with sorted keys.
    """
    raw = JSON_ENCODER_SORTED.encode(obj)
    if not pretty:
        return raw
    return msgspec.json.format(raw, indent=indent)


def convert[T](obj: object, *, target_type: type[T], strict: bool = True) -> T:
    """Convert an object into a target type.

    Parameters
    ----------
    obj
        Object to convert.
    target_type
        Target type for conversion.
    strict
        Whether to enforce strict conversion.

    Returns
    -------
    T
        Converted payload.
    """
    return msgspec.convert(obj, type=target_type, strict=strict)


def to_builtins(obj: object, *, str_keys: bool = True, order: EncodeOrder = _DEFAULT_ORDER) -> object:
    """Convert an object into builtin JSON-friendly types.

    Parameters
    ----------
    obj
        Object to convert.
    str_keys
        Whether to coerce mapping keys to strings.
    order
        Key ordering for mappings and sets.

    Returns
    -------
    object
        Builtin-friendly representation with every array as a list.
    """
    raw = msgspec.to_builtins(
        obj,
        order=order,
        str_keys=str_keys,
        enc_hook=builtin_enc_hook,
    )
    return _arrays_as_lists(raw)


def _arrays_as_lists(value: object) -> object:
    # Tuples survive msgspec.to_builtins on newer releases.
    if isinstance(value, dict):
        return {key: _arrays_as_lists(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_arrays_as_lists(item) for item in value]
    return value


def validation_error_payload(exc: msgspec.ValidationError) -> dict[str, str]:
    """Normalize a msgspec ValidationError for diagnostics.

    Parameters
    ----------
    exc
        ValidationError raised by msgspec decoding/conversion.

    Returns
    -------
    dict[str, str]
        Normalized error payload containing type, summary, and optional path.
    """
    message = str(exc).strip()
    match = _VALIDATION_RE.match(message)
    payload: dict[str, str] = {"type": exc.__class__.__name__}
    if match:
        summary = (match.group("summary") or "").strip()
        if summary:
            payload["summary"] = summary
        path = match.group("path")
        if path:
            payload["path"] = path
        return payload
    payload["summary"] = message
    return payload


__all__ = [
    "JSON_ENCODER_SORTED",
    "EncodeOrder",
    "StructBaseStrict",
    "builtin_enc_hook",
    "convert",
    "dumps_json_sorted",
    "to_builtins",
    "validation_error_payload",
]
