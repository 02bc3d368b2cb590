"""
MessagePack Wire Codec.

Binary encoding of FrcValue trees. Every variant maps to a native
MessagePack kind:

    Bool            bool
    Int64           int (smallest int encoding; decodes back to Int64)
    Float64         float 64 (never downcast to float 32)
    String          str
    Bytes           bin
    non-empty array array of the element kind
    empty array     {"$empty": "<kind>[]"}
    Struct          {type_name: {field: value, ...}}

Encoding is deterministic: equal values always produce identical bytes.

Examples:
    >>> to_msgpack(FrcInt64(42))
    b'*'
    >>> from_msgpack(b'*')
    FrcInt64(42)
"""
from typing import Any, Union

import msgpack
from msgpack.exceptions import UnpackException

from .basic_types import (
    FrcValue, TypeTag,
    FrcBool, FrcInt64, FrcFloat64, FrcString, FrcBytes,
)
from .compound_types import ARRAY_TYPES, RESERVED_PREFIX
from .errors import MalformedWire, SchemaMismatch
from .wire import (
    EMPTY_HINT, MapPairs,
    classify_array, decode_empty_array, decode_struct, empty_array_hint, single_entry,
)

BytesLike = Union[bytes, bytearray, memoryview]


# ============================================================================
# Encoding
# ============================================================================

def to_msgpack(value: FrcValue) -> bytes:
    """
    Serialize an FrcValue to MessagePack bytes.

    Args:
        value: Any FrcValue, struct or primitive.

    Returns:
        bytes: The MessagePack encoding.

    Raises:
        TypeError: If ``value`` is not an FrcValue.
    """
    if not isinstance(value, FrcValue):
        raise TypeError(f"Expected an FrcValue, got {type(value).__name__}")
    return msgpack.packb(_to_tree(value), use_bin_type=True, use_single_float=False)


def _to_tree(value: FrcValue) -> Any:
    tag = value.tag
    if tag is TypeTag.STRUCT:
        return {value.name: {field: _to_tree(item) for field, item in value}}
    if tag.is_array:
        if not len(value):
            return empty_array_hint(value)
        return list(value.value)
    return value.value


# ============================================================================
# Decoding
# ============================================================================

def from_msgpack(data: BytesLike) -> FrcValue:
    """
    Deserialize MessagePack bytes to an FrcValue.

    Args:
        data: Exactly one MessagePack object.

    Returns:
        FrcValue: The decoded value.

    Raises:
        MalformedWire: If ``data`` is not a single valid MessagePack object.
        SchemaMismatch: If it is valid MessagePack that has no FrcValue shape
            (nil, ext types, non-string keys, mixed arrays, ...).
    """
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise TypeError(f"Expected bytes, got {type(data).__name__}")
    try:
        tree = msgpack.unpackb(
            data,
            raw=False,
            strict_map_key=False,
            object_pairs_hook=MapPairs,
        )
    except (ValueError, UnpackException) as exc:
        raise MalformedWire(f"Invalid MessagePack data: {exc}") from exc
    except RecursionError:
        raise MalformedWire("MessagePack data is nested too deeply") from None
    try:
        return _from_tree(tree)
    except RecursionError:
        raise SchemaMismatch("MessagePack value is nested too deeply") from None


def _from_tree(node: Any) -> FrcValue:
    if isinstance(node, bool):
        return FrcBool(node)
    if isinstance(node, int):
        return _checked(FrcInt64, node)
    if isinstance(node, float):
        return FrcFloat64(node)
    if isinstance(node, str):
        return FrcString(node)
    if isinstance(node, bytes):
        return FrcBytes(node)
    # MapPairs is a list subclass, so maps are checked first
    if isinstance(node, MapPairs):
        key, payload = single_entry(node)
        if key == EMPTY_HINT:
            return decode_empty_array(payload)
        if key.startswith(RESERVED_PREFIX):
            raise SchemaMismatch(f"Unknown type hint {key!r}")
        return decode_struct(key, payload, _from_tree)
    if isinstance(node, list):
        return _checked(ARRAY_TYPES[classify_array(node)], node)
    raise SchemaMismatch(f"MessagePack {type(node).__name__} has no FrcValue representation")


def _checked(value_type, payload: Any) -> FrcValue:
    # Integers outside int64 parse fine but are not values
    try:
        return value_type(payload)
    except (ValueError, OverflowError) as exc:
        raise SchemaMismatch(str(exc)) from None
