"""JSON and MessagePack codecs for backing maps and instances.

Maps whose recorded schema type is a registered schema are written with
their tag: in JSON as an extra ``tag_field`` entry on the object, in
MessagePack as an extension value wrapping ``[tag, fields]``. Decoding a
tagged value yields a ``FrozenMap`` recording the registered schema, so a
nested field converts to the right schema without being told.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import overload

import msgspec

from dynamic_object.config import runtime_config
from dynamic_object.errors import CodecError
from dynamic_object.frozen_map import FrozenMap, type_metadata, with_type_metadata
from dynamic_object.runtime import wrap
from dynamic_object.schema import DynamicObject
from dynamic_object.tags import registered_schema, registered_tag
from serde_msgspec import builtin_enc_hook

_LOGGER = logging.getLogger(__name__)

MSGPACK_TAG_EXT_CODE = 42

_JSON_DECODER = msgspec.json.Decoder()


def _tag_of(value: FrozenMap) -> str | None:
    schema = type_metadata(value)
    if schema is None:
        return None
    return registered_tag(schema)


def _json_enc_hook(obj: object) -> object:
    if isinstance(obj, DynamicObject):
        obj = obj.get_map()
    if isinstance(obj, FrozenMap):
        tag = _tag_of(obj)
        if tag is None:
            return dict(obj)
        tag_field = runtime_config().tag_field
        if tag_field in obj:
            msg = f"Field {tag_field!r} collides with the tag field of {tag!r} values."
            raise CodecError(msg)
        return {tag_field: tag, **obj}
    return builtin_enc_hook(obj)


def _msgpack_enc_hook(obj: object) -> object:
    if isinstance(obj, DynamicObject):
        obj = obj.get_map()
    if isinstance(obj, FrozenMap):
        tag = _tag_of(obj)
        if tag is None:
            return dict(obj)
        body = msgspec.msgpack.encode([tag, dict(obj)], enc_hook=_msgpack_enc_hook)
        return msgspec.msgpack.Ext(MSGPACK_TAG_EXT_CODE, body)
    return builtin_enc_hook(obj)


_JSON_ENCODER = msgspec.json.Encoder(enc_hook=_json_enc_hook)
_JSON_ENCODER_SORTED = msgspec.json.Encoder(enc_hook=_json_enc_hook, order="sorted")


def _json_encoder() -> msgspec.json.Encoder:
    return _JSON_ENCODER_SORTED if runtime_config().sort_keys else _JSON_ENCODER


def _freeze(value: object, tag_field: str) -> object:
    if isinstance(value, FrozenMap):
        return value
    if isinstance(value, dict):
        tag = value.get(tag_field)
        schema = registered_schema(tag) if isinstance(tag, str) else None
        if schema is None:
            return FrozenMap({key: _freeze(item, tag_field) for key, item in value.items()})
        fields = {key: _freeze(item, tag_field) for key, item in value.items() if key != tag_field}
        return with_type_metadata(FrozenMap(fields), schema)
    if isinstance(value, list):
        return tuple(_freeze(item, tag_field) for item in value)
    return value


def _ext_hook(code: int, data: memoryview) -> object:
    if code != MSGPACK_TAG_EXT_CODE:
        return msgspec.msgpack.Ext(code, bytes(data))
    tag, fields = msgspec.msgpack.decode(data, type=tuple[str, dict], ext_hook=_ext_hook)
    tag_field = runtime_config().tag_field
    frozen = {key: _freeze(item, tag_field) for key, item in fields.items()}
    schema = registered_schema(tag)
    if schema is None:
        _LOGGER.debug("Decoded unregistered tag %r as a plain map", tag)
        return FrozenMap({tag_field: tag, **frozen})
    return with_type_metadata(FrozenMap(frozen), schema)


@overload
def _as_schema(value: object, schema: None) -> object: ...


@overload
def _as_schema[S: DynamicObject](value: object, schema: type[S]) -> S: ...


def _as_schema(value: object, schema: type[DynamicObject] | None) -> object:
    if schema is None:
        if isinstance(value, FrozenMap):
            recorded = type_metadata(value)
            if recorded is not None:
                return wrap(value, recorded)
        return value
    if not isinstance(value, FrozenMap):
        msg = f"Expected an object for {schema.__name__}, got {type(value).__name__}."
        raise CodecError(msg)
    recorded = type_metadata(value)
    target = recorded if recorded is not None and issubclass(recorded, schema) else schema
    return wrap(value, target)


# ---------------------------------------------------------------------------
# JSON
# ---------------------------------------------------------------------------


def encode_json(value: object) -> bytes:
    """Encode an instance, map, or raw value as JSON bytes.

    Returns
    -------
    bytes
        JSON payload.

    Raises
    ------
    CodecError
        If the value has no JSON representation.
    """
    try:
        return _json_encoder().encode(value)
    except (msgspec.EncodeError, TypeError) as exc:
        msg = f"Cannot encode {type(value).__name__}: {exc}"
        raise CodecError(msg) from exc


def serialize(value: object) -> str:
    """Return the JSON text of an instance, map, or raw value.

    Returns
    -------
    str
        JSON text.
    """
    return encode_json(value).decode()


def serialize_pretty(value: object) -> str:
    """Return indented JSON text using the configured indent.

    Returns
    -------
    str
        Pretty-printed JSON text.
    """
    indent = runtime_config().pretty_indent
    return msgspec.json.format(encode_json(value), indent=indent).decode()


@overload
def deserialize(payload: str | bytes, schema: None = None) -> object: ...


@overload
def deserialize[S: DynamicObject](payload: str | bytes, schema: type[S]) -> S: ...


def deserialize(payload: str | bytes, schema: type[DynamicObject] | None = None) -> object:
    """Decode JSON text into raw values or an instance.

    Parameters
    ----------
    payload
        JSON text.
    schema
        Schema for the top-level object. When omitted, a tagged top-level
        object decodes to its registered schema and anything else to raw values.

    Returns
    -------
    object
        Instance of ``schema`` (or a registered subclass), or raw values.

    Raises
    ------
    CodecError
        If the payload is malformed, or not an object when a schema is given.
    """
    try:
        decoded = _JSON_DECODER.decode(payload)
    except msgspec.DecodeError as exc:
        raise CodecError.from_msgspec(exc) from exc
    return _as_schema(_freeze(decoded, runtime_config().tag_field), schema)


def serialize_lines(values: Iterable[object]) -> str:
    """Return newline-delimited JSON for ``values``.

    Returns
    -------
    str
        One JSON document per line.

    Raises
    ------
    CodecError
        If any value has no JSON representation.
    """
    items = list(values)
    try:
        return _json_encoder().encode_lines(items).decode()
    except (msgspec.EncodeError, TypeError) as exc:
        msg = f"Cannot encode line values: {exc}"
        raise CodecError(msg) from exc


@overload
def deserialize_lines(payload: str | bytes, schema: None = None) -> list[object]: ...


@overload
def deserialize_lines[S: DynamicObject](payload: str | bytes, schema: type[S]) -> list[S]: ...


def deserialize_lines(
    payload: str | bytes,
    schema: type[DynamicObject] | None = None,
) -> list[object]:
    """Decode newline-delimited JSON, one value per non-empty line.

    Returns
    -------
    list[object]
        Decoded values in order.

    Raises
    ------
    CodecError
        If any line is malformed, or not an object when a schema is given.
    """
    try:
        decoded = _JSON_DECODER.decode_lines(payload)
    except msgspec.DecodeError as exc:
        raise CodecError.from_msgspec(exc) from exc
    tag_field = runtime_config().tag_field
    return [_as_schema(_freeze(item, tag_field), schema) for item in decoded]


# ---------------------------------------------------------------------------
# MessagePack
# ---------------------------------------------------------------------------


def to_msgpack(value: object) -> bytes:
    """Encode an instance, map, or raw value as MessagePack.

    Returns
    -------
    bytes
        MessagePack payload.

    Raises
    ------
    CodecError
        If the value has no MessagePack representation.
    """
    try:
        return msgspec.msgpack.encode(value, enc_hook=_msgpack_enc_hook)
    except (msgspec.EncodeError, TypeError) as exc:
        msg = f"Cannot encode {type(value).__name__}: {exc}"
        raise CodecError(msg) from exc


@overload
def from_msgpack(payload: bytes, schema: None = None) -> object: ...


@overload
def from_msgpack[S: DynamicObject](payload: bytes, schema: type[S]) -> S: ...


def from_msgpack(payload: bytes, schema: type[DynamicObject] | None = None) -> object:
    """Decode MessagePack into raw values or an instance.

    Returns
    -------
    object
        Instance of ``schema`` (or a registered subclass), or raw values.

    Raises
    ------
    CodecError
        If the payload is malformed, or not an object when a schema is given.
    """
    try:
        decoded = msgspec.msgpack.decode(payload, ext_hook=_ext_hook)
    except (msgspec.DecodeError, msgspec.ValidationError) as exc:
        raise CodecError.from_msgspec(exc) from exc
    return _as_schema(_freeze(decoded, runtime_config().tag_field), schema)


__all__ = [
    "MSGPACK_TAG_EXT_CODE",
    "deserialize",
    "deserialize_lines",
    "encode_json",
    "from_msgpack",
    "serialize",
    "serialize_lines",
    "serialize_pretty",
    "to_msgpack",
]
