"""
Public API for FRC Value Serialization.

This module provides the main entry points for turning Python data,
FrcValue trees and @frcstruct instances into wire bytes and back.

Functions:
    frcflatten: Serialize to MessagePack bytes or JSON text
    frcunflatten: Deserialize (automatic class detection for struct types)
    frcpack: Serialize a struct to the WPILib packed layout
    frcunpack: Deserialize a struct from the WPILib packed layout
"""

import warnings
from typing import Any, Optional, Type, Union

from .auto_flatten import infer_value
from .basic_types import FrcValue, TypeTag
from .compound_types import FrcStruct
from .decorators import get_frcstruct_by_name
from .errors import SchemaMismatch, TypeMismatch
from .json_codec import from_json, to_json
from .msgpack_codec import from_msgpack, to_msgpack
from .packed import pack, unpack
from .registry import StructRegistry
from .serialization import SerializationContext

MSGPACK = "msgpack"
JSON = "json"
FORMATS = (MSGPACK, JSON)


def frcflatten(data: Any, fmt: str = MSGPACK,
               context: Optional[SerializationContext] = None) -> Union[bytes, str]:
    """
    Serialize Python data to a wire format.

    Args:
        data: Data to serialize. Supported inputs:
            - FrcValue: serialized as-is
            - @frcstruct decorated object: serialized via to_value()
            - bool, int, float, str, bytes, lists and 1-D numpy arrays:
              inferred (see auto_flatten.infer_value)
        fmt: "msgpack" (returns bytes) or "json" (returns str).
        context: Serialization settings (JSON safe-integer bound).

    Returns:
        bytes or str: The encoded value.

    Raises:
        TypeError: If the data has no FrcValue representation.
        ValueError: If ``fmt`` is unknown.

    Examples:
        >>> frcflatten(42)
        b'*'
        >>> frcflatten([1.5, 2.5], fmt="json")
        '[1.5,2.5]'
        >>> @frcstruct
        ... class Telemetry:
        ...     speed: float
        ...     name: str
        >>> frcflatten(Telemetry(3.5, "left"), fmt="json")
        '{"Telemetry":{"speed":3.5,"name":"left"}}'
    """
    value = infer_value(data)
    if fmt == MSGPACK:
        return to_msgpack(value)
    if fmt == JSON:
        return to_json(value, context)
    raise ValueError(f"Unknown wire format {fmt!r}. Supported formats: {', '.join(FORMATS)}")


def frcunflatten(data: Union[bytes, str], fmt: str = MSGPACK, type_hint: Optional[Type] = None,
                 context: Optional[SerializationContext] = None) -> Any:
    """
    Deserialize wire data.

    Without a type_hint, struct values whose type name belongs to an
    @frcstruct class come back as instances of that class; everything else
    comes back as an FrcValue (with a warning for struct types that have no
    class).

    Args:
        data: Encoded data.
        fmt: "msgpack" or "json".
        type_hint: Optional expected type:
            - an @frcstruct class (or any FrcStructure): returns an instance
            - an FrcValue subclass: returns the value, checked to be of that kind
        context: Unknown-field policy for struct decoding.

    Raises:
        MalformedWire, SchemaMismatch: If the data cannot be decoded.
        MissingField, FieldTypeMismatch: If a struct does not fit its class.
        TypeMismatch: If the value is not of the FrcValue kind requested.

    Examples:
        >>> restored = frcunflatten(frcflatten(Telemetry(3.5, "left")))
        >>> assert isinstance(restored, Telemetry)
        >>> frcunflatten(b'*')
        FrcInt64(42)
    """
    if fmt == MSGPACK:
        value = from_msgpack(data)
    elif fmt == JSON:
        value = from_json(data)
    else:
        raise ValueError(f"Unknown wire format {fmt!r}. Supported formats: {', '.join(FORMATS)}")

    if type_hint is None:
        if value.tag is TypeTag.STRUCT:
            target = get_frcstruct_by_name(value.name)
            if target is not None:
                return target.from_value(value, context)
            warnings.warn(f"Struct type '{value.name}' not found in registry. Returning FrcStruct.")
        return value

    if isinstance(type_hint, type) and issubclass(type_hint, FrcValue):
        if not isinstance(value, type_hint):
            raise TypeMismatch(getattr(type_hint, "tag", type_hint.__name__), value.tag)
        return value

    if hasattr(type_hint, "from_value"):
        return type_hint.from_value(value, context)

    raise TypeError(f"Unsupported type_hint: {type_hint!r}")


# ============================================================================
# Packed Layout
# ============================================================================

def frcpack(data: Any, registry: Optional[StructRegistry] = None) -> bytes:
    """
    Serialize a struct to the WPILib packed layout.

    Args:
        data: An @frcstruct instance or an FrcStruct value of a registered type.
        registry: Registry holding the descriptors (defaults to the global one).
    """
    value = infer_value(data)
    if not isinstance(value, FrcStruct):
        raise SchemaMismatch(f"Only structs can be packed, got {value.tag.wire_name}")
    return pack(value, registry)


def frcunpack(data: bytes, type_hint: Union[str, Type],
              registry: Optional[StructRegistry] = None) -> Any:
    """
    Deserialize a struct from the WPILib packed layout.

    Args:
        data: Packed bytes of exactly one struct.
        type_hint: A struct type name (returns an FrcStruct) or an
                   @frcstruct class (returns an instance).
        registry: Registry holding the descriptors (defaults to the global one).
    """
    if isinstance(type_hint, str):
        return unpack(data, type_hint, registry)
    type_name = getattr(type_hint, "__frc_type_name__", None)
    if type_name is None:
        raise TypeError(f"type_hint must be a struct type name or an @frcstruct class, got {type_hint!r}")
    return type_hint.from_value(unpack(data, type_name, registry))
