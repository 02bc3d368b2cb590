"""
JSON Wire Codec.

Text encoding of FrcValue trees. The layout matches the MessagePack codec
(see wire.py) except for two leaves JSON cannot carry natively:

    Int64 with |n| > 2**53 - 1   {"$int64": "<decimal>"}
    Bytes                        {"$bytes": "<base64>"}

JSON numbers are IEEE 754 doubles for most consumers, so large integers are
string-wrapped to stay exact. This is the one place where the two codecs
are not isomorphic: MessagePack always writes a plain integer.

Output is compact, keeps non-ASCII characters as-is, and writes non-finite
floats as NaN / Infinity / -Infinity (the Python json dialect).

Structs are externally tagged: the field map sits one level down, under
the type name, so the type survives the round trip without a registry.

Examples:
    >>> to_json(FrcStruct("Telemetry", [("speed", FrcFloat64(3.5)), ("name", FrcString("left"))]))
    '{"Telemetry":{"speed":3.5,"name":"left"}}'
    >>> to_json(FrcInt64(2 ** 60))
    '{"$int64":"1152921504606846976"}'
"""
import base64
import binascii
import json
import re
from typing import Any, List, Optional, Union

from .basic_types import (
    FrcValue, TypeTag,
    FrcBool, FrcInt64, FrcFloat64, FrcString, FrcBytes,
)
from .compound_types import ARRAY_TYPES, RESERVED_PREFIX
from .errors import MalformedWire, SchemaMismatch
from .serialization import DEFAULT_CONTEXT, SerializationContext
from .wire import (
    BYTES_HINT, EMPTY_HINT, INT64_HINT, MapPairs,
    classify_array, decode_empty_array, decode_struct, empty_array_hint, single_entry,
)

_DECIMAL = re.compile(r"-?[0-9]+")


# ============================================================================
# Encoding
# ============================================================================

def to_json(value: FrcValue, context: Optional[SerializationContext] = None) -> str:
    """
    Serialize an FrcValue to JSON text.

    Args:
        value: Any FrcValue, struct or primitive.
        context: Supplies the safe-integer bound (default 2**53 - 1).

    Returns:
        str: Compact JSON text.
    """
    if not isinstance(value, FrcValue):
        raise TypeError(f"Expected an FrcValue, got {type(value).__name__}")
    context = context or DEFAULT_CONTEXT
    tree = _to_tree(value, context.max_safe_integer)
    return json.dumps(tree, separators=(",", ":"), ensure_ascii=False, allow_nan=True)


def _to_tree(value: FrcValue, max_safe: int) -> Any:
    tag = value.tag
    if tag is TypeTag.STRUCT:
        return {value.name: {field: _to_tree(item, max_safe) for field, item in value}}
    if tag is TypeTag.INT64:
        return _int_leaf(value.value, max_safe)
    if tag is TypeTag.BYTES:
        return {BYTES_HINT: base64.b64encode(value.value).decode("ascii")}
    if tag.is_array:
        if not len(value):
            return empty_array_hint(value)
        if tag is TypeTag.INT64_ARRAY:
            return [_int_leaf(item, max_safe) for item in value]
        return list(value.value)
    return value.value


def _int_leaf(val: int, max_safe: int) -> Any:
    if abs(val) > max_safe:
        return {INT64_HINT: str(val)}
    return val


# ============================================================================
# Decoding
# ============================================================================

def from_json(data: Union[str, bytes, bytearray]) -> FrcValue:
    """
    Deserialize JSON text to an FrcValue.

    Args:
        data: JSON text, as str or UTF-8/16/32 encoded bytes.

    Returns:
        FrcValue: The decoded value.

    Raises:
        MalformedWire: If ``data`` is not valid JSON.
        SchemaMismatch: If it is valid JSON that has no FrcValue shape
            (null, multi-entry objects, mixed arrays, bad hints, ...).
    """
    if isinstance(data, memoryview):
        data = data.tobytes()
    if not isinstance(data, (str, bytes, bytearray)):
        raise TypeError(f"Expected str or bytes, got {type(data).__name__}")
    try:
        tree = json.loads(data, object_pairs_hook=MapPairs)
    except ValueError as exc:
        raise MalformedWire(f"Invalid JSON data: {exc}") from exc
    except RecursionError:
        raise MalformedWire("JSON data is nested too deeply") from None
    try:
        return _from_tree(tree)
    except RecursionError:
        raise SchemaMismatch("JSON value is nested too deeply") from None


def _from_tree(node: Any) -> FrcValue:
    if isinstance(node, bool):
        return FrcBool(node)
    if isinstance(node, int):
        return _checked(FrcInt64, node)
    if isinstance(node, float):
        return FrcFloat64(node)
    if isinstance(node, str):
        return _checked(FrcString, node)
    # MapPairs is a list subclass, so maps are checked first
    if isinstance(node, MapPairs):
        key, payload = single_entry(node)
        if key == EMPTY_HINT:
            return decode_empty_array(payload)
        if key == INT64_HINT:
            return _checked(FrcInt64, _decode_int64(payload))
        if key == BYTES_HINT:
            return FrcBytes(_decode_bytes(payload))
        if key.startswith(RESERVED_PREFIX):
            raise SchemaMismatch(f"Unknown type hint {key!r}")
        return decode_struct(key, payload, _from_tree)
    if isinstance(node, list):
        return _decode_array(node)
    raise SchemaMismatch(f"JSON {type(node).__name__} has no FrcValue representation")


def _decode_array(node: List[Any]) -> FrcValue:
    items = []
    wrapped = False
    for item in node:
        if isinstance(item, MapPairs):
            key, payload = single_entry(item)
            if key != INT64_HINT:
                raise SchemaMismatch("Arrays may only contain scalars")
            items.append(_decode_int64(payload))
            wrapped = True
        else:
            items.append(item)
    try:
        tag = classify_array(items)
    except SchemaMismatch:
        # Producers that drop ".0" on whole floats still mean a float array
        if not wrapped and items and all(_is_number(item) for item in items):
            tag = TypeTag.FLOAT64_ARRAY
        else:
            raise
    return _checked(ARRAY_TYPES[tag], items)


def _decode_int64(payload: Any) -> int:
    if not isinstance(payload, str) or not _DECIMAL.fullmatch(payload):
        raise SchemaMismatch(f"{INT64_HINT} hint needs a decimal string, got {payload!r}")
    return int(payload)


def _decode_bytes(payload: Any) -> bytes:
    if not isinstance(payload, str):
        raise SchemaMismatch(f"{BYTES_HINT} hint needs a base64 string, got {type(payload).__name__}")
    try:
        return base64.b64decode(payload, validate=True)
    except binascii.Error as exc:
        raise SchemaMismatch(f"Invalid base64 payload: {exc}") from None


def _is_number(item: Any) -> bool:
    return isinstance(item, (int, float)) and not isinstance(item, bool)


def _checked(value_type, payload: Any) -> FrcValue:
    try:
        return value_type(payload)
    except (ValueError, OverflowError) as exc:
        raise SchemaMismatch(str(exc)) from None
