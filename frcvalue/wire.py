"""
Wire Layout shared by the MessagePack and JSON codecs.

Both codecs encode a value tree the same way and differ only in leaves:

    Struct          {type_name: {field: value, ...}}   (single-entry map)
    empty array     {"$empty": "int64[]"}              (kind is otherwise lost)
    other values    native scalar / array kinds of the format

A single-entry map whose key starts with "$" is a type hint. Struct type
names can never start with "$", so hints and structs do not collide.
"""
from typing import Any, Callable, List, Tuple

from .basic_types import FrcValue, TypeTag
from .compound_types import ARRAY_TYPES, FrcArray, FrcStruct, RESERVED_PREFIX
from .errors import SchemaMismatch

EMPTY_HINT = RESERVED_PREFIX + "empty"
INT64_HINT = RESERVED_PREFIX + "int64"
BYTES_HINT = RESERVED_PREFIX + "bytes"


class MapPairs(list):
    """Decoded wire map, kept as ordered (key, value) pairs.

    Used as ``object_pairs_hook`` so duplicate and non-string keys survive
    parsing and can be reported as SchemaMismatch.
    """


def empty_array_hint(value: FrcArray) -> dict:
    return {EMPTY_HINT: value.tag.wire_name}


def single_entry(pairs: MapPairs) -> Tuple[str, Any]:
    """Unpack a map that must hold exactly one string-keyed entry."""
    if len(pairs) != 1:
        raise SchemaMismatch(f"Expected a single-entry map, got {len(pairs)} entries")
    key, payload = pairs[0]
    if not isinstance(key, str):
        raise SchemaMismatch(f"Map keys must be strings, got {type(key).__name__}")
    return key, payload


def decode_empty_array(payload: Any) -> FrcArray:
    if not isinstance(payload, str):
        raise SchemaMismatch(f"{EMPTY_HINT} hint needs a type name, got {type(payload).__name__}")
    try:
        tag = TypeTag.from_wire_name(payload)
    except ValueError as exc:
        raise SchemaMismatch(str(exc)) from None
    if not tag.is_array:
        raise SchemaMismatch(f"{EMPTY_HINT} hint names non-array type {payload!r}")
    return ARRAY_TYPES[tag](())


def decode_struct(name: str, payload: Any, decode: Callable[[Any], FrcValue]) -> FrcStruct:
    """Build a struct from its wire field map, decoding each field with ``decode``."""
    if not isinstance(payload, MapPairs):
        raise SchemaMismatch(f"Fields of struct {name!r} must be a map, got {type(payload).__name__}")
    fields: List[Tuple[str, FrcValue]] = []
    for field, item in payload:
        if not isinstance(field, str):
            raise SchemaMismatch(f"Field names of struct {name!r} must be strings, got {type(field).__name__}")
        fields.append((field, decode(item)))
    try:
        return FrcStruct(name, fields)
    except ValueError as exc:
        raise SchemaMismatch(str(exc)) from None


def classify_array(items: List[Any]) -> TypeTag:
    """Tag of a non-empty, homogeneous wire array of native scalars."""
    if not items:
        raise SchemaMismatch("Empty array without an element type hint is ambiguous")
    kinds = {_scalar_kind(item) for item in items}
    if len(kinds) != 1 or None in kinds:
        raise SchemaMismatch("Arrays must hold bool, int64, float64 or string elements of a single kind")
    return kinds.pop()


def _scalar_kind(item: Any):
    if isinstance(item, bool):
        return TypeTag.BOOL_ARRAY
    if isinstance(item, int):
        return TypeTag.INT64_ARRAY
    if isinstance(item, float):
        return TypeTag.FLOAT64_ARRAY
    if isinstance(item, str):
        return TypeTag.STRING_ARRAY
    return None
