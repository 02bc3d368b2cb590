"""
FRC Value Basic Types.

This module defines the tag vocabulary shared by values, descriptors and
codecs, the FrcValue base class, and the scalar value variants.

A value is an immutable, tagged snapshot of one wire-transmissible datum.
The tag fully determines the payload's shape, and every value owns its
payload exclusively (mutable inputs are copied on construction).

Supported Types:
    - FrcBool: boolean
    - FrcInt64: signed 64-bit integer
    - FrcFloat64: 64-bit IEEE 754 float
    - FrcString: unicode string
    - FrcBytes: raw bytes

Array variants and FrcStruct live in compound_types.py.

Examples:
    >>> FrcInt64(42).as_int64()
    42
    >>> FrcInt64(42).as_string()
    Traceback (most recent call last):
        ...
    frcvalue.errors.TypeMismatch: Expected string value, got int64
"""

import math
import struct
from enum import IntEnum
from typing import Any, ClassVar, Optional, Tuple, TypeAlias, Annotated

import numpy as np

from .errors import TypeMismatch

# ============================================================================
# Type Aliases for Type Hints
# ============================================================================

Int64Type: TypeAlias = Annotated[int, "FRC Int64 (signed 64-bit integer)"]
Float64Type: TypeAlias = Annotated[float, "FRC Float64 (64-bit IEEE 754)"]
BoolType: TypeAlias = Annotated[bool, "FRC Bool"]
StringType: TypeAlias = Annotated[str, "FRC String (UTF-8)"]
BytesType: TypeAlias = Annotated[bytes, "FRC Bytes (raw binary)"]

_INT64 = np.iinfo(np.int64)
INT64_MIN = int(_INT64.min)
INT64_MAX = int(_INT64.max)


# ============================================================================
# Type Tags
# ============================================================================

class TypeTag(IntEnum):
    """Tags for every value variant, shared by values and descriptors."""
    BOOL = 0x01
    INT64 = 0x02
    FLOAT64 = 0x03
    STRING = 0x04
    BYTES = 0x05
    BOOL_ARRAY = 0x11
    INT64_ARRAY = 0x12
    FLOAT64_ARRAY = 0x13
    STRING_ARRAY = 0x14
    STRUCT = 0x20

    @property
    def wire_name(self) -> str:
        """Name used in published schemas and wire type hints."""
        return _WIRE_NAMES[self]

    @property
    def is_array(self) -> bool:
        return self in _ELEMENT_TAGS

    @property
    def element_tag(self) -> Optional["TypeTag"]:
        """Scalar tag of an array tag's elements, None for non-array tags."""
        return _ELEMENT_TAGS.get(self)

    @classmethod
    def from_wire_name(cls, name: str) -> "TypeTag":
        """Inverse of wire_name. Raises ValueError for unknown names."""
        try:
            return _TAGS_BY_WIRE_NAME[name]
        except KeyError:
            raise ValueError(f"Unknown type tag name: {name!r}") from None

    def __str__(self) -> str:
        return self.wire_name


_WIRE_NAMES = {
    TypeTag.BOOL: "bool",
    TypeTag.INT64: "int64",
    TypeTag.FLOAT64: "float64",
    TypeTag.STRING: "string",
    TypeTag.BYTES: "bytes",
    TypeTag.BOOL_ARRAY: "bool[]",
    TypeTag.INT64_ARRAY: "int64[]",
    TypeTag.FLOAT64_ARRAY: "float64[]",
    TypeTag.STRING_ARRAY: "string[]",
    TypeTag.STRUCT: "struct",
}

_TAGS_BY_WIRE_NAME = {name: tag for tag, name in _WIRE_NAMES.items()}

_ELEMENT_TAGS = {
    TypeTag.BOOL_ARRAY: TypeTag.BOOL,
    TypeTag.INT64_ARRAY: TypeTag.INT64,
    TypeTag.FLOAT64_ARRAY: TypeTag.FLOAT64,
    TypeTag.STRING_ARRAY: TypeTag.STRING,
}


# ============================================================================
# Payload Coercion
# ============================================================================

def coerce_bool(val: Any) -> bool:
    if isinstance(val, (bool, np.bool_)):
        return bool(val)
    raise TypeError(f"Cannot convert {type(val).__name__} to bool value")


def coerce_int64(val: Any) -> int:
    # bool is a subclass of int, but True is not an Int64
    if isinstance(val, (bool, np.bool_)) or not isinstance(val, (int, np.integer)):
        raise TypeError(f"Cannot convert {type(val).__name__} to int64 value")
    val = int(val)
    if not INT64_MIN <= val <= INT64_MAX:
        raise ValueError(f"Integer {val} does not fit in a signed 64-bit value")
    return val


def coerce_float64(val: Any) -> float:
    if isinstance(val, (bool, np.bool_)) or not isinstance(val, (int, float, np.integer, np.floating)):
        raise TypeError(f"Cannot convert {type(val).__name__} to float64 value")
    try:
        return float(val)
    except OverflowError:
        raise ValueError("Integer is too large for a float64 value") from None


def coerce_string(val: Any) -> str:
    if isinstance(val, (str, np.str_)):
        return check_utf8(str(val))
    raise TypeError(f"Cannot convert {type(val).__name__} to string value")


def check_utf8(val: str) -> str:
    """Reject strings that have no UTF-8 encoding (lone surrogates)."""
    try:
        val.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise ValueError(f"String {val!r} is not valid Unicode: {exc.reason}") from None
    return val


def coerce_bytes(val: Any) -> bytes:
    if isinstance(val, (bytes, bytearray, memoryview)):
        return bytes(val)
    raise TypeError(f"Cannot convert {type(val).__name__} to bytes value")


def float_key(val: float) -> Any:
    """Equality key for floats: exact bit pattern, with every NaN equal."""
    if math.isnan(val):
        return "nan"
    return struct.pack("<d", val)


# ============================================================================
# Value Base Class
# ============================================================================

class FrcValue:
    """
    Base class for all FRC values.

    Subclasses set ``tag`` and implement ``_coerce`` to validate and copy
    the payload. Values are immutable: the payload is only exposed through
    the read-only ``value`` property and the typed ``as_*`` accessors.
    """

    __slots__ = ("_value",)

    tag: ClassVar[TypeTag]

    def __init__(self, value: Any):
        object.__setattr__(self, "_value", self._coerce(value))

    def _coerce(self, value: Any) -> Any:
        return value

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"{self.__class__.__name__} is immutable")

    @property
    def value(self) -> Any:
        return self._value

    def _expect(self, tag: TypeTag) -> Any:
        if self.tag is not tag:
            raise TypeMismatch(tag, self.tag)
        return self._value

    def as_bool(self) -> bool:
        return self._expect(TypeTag.BOOL)

    def as_int64(self) -> int:
        return self._expect(TypeTag.INT64)

    def as_float64(self) -> float:
        return self._expect(TypeTag.FLOAT64)

    def as_string(self) -> str:
        return self._expect(TypeTag.STRING)

    def as_bytes(self) -> bytes:
        return self._expect(TypeTag.BYTES)

    def as_bool_array(self) -> Tuple[bool, ...]:
        return self._expect(TypeTag.BOOL_ARRAY)

    def as_int64_array(self) -> Tuple[int, ...]:
        return self._expect(TypeTag.INT64_ARRAY)

    def as_float64_array(self) -> Tuple[float, ...]:
        return self._expect(TypeTag.FLOAT64_ARRAY)

    def as_string_array(self) -> Tuple[str, ...]:
        return self._expect(TypeTag.STRING_ARRAY)

    def as_struct(self) -> "FrcValue":
        """Return this value if it is a struct, raise TypeMismatch otherwise."""
        self._expect(TypeTag.STRUCT)
        return self

    def _key(self) -> Any:
        return self._value

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FrcValue):
            return NotImplemented
        return type(self) is type(other) and self._key() == other._key()

    def __hash__(self) -> int:
        return hash((self.tag, self._key()))

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._value!r})"


# ============================================================================
# Scalar Types
# ============================================================================

class FrcBool(FrcValue):
    """Boolean value."""
    __slots__ = ()
    tag = TypeTag.BOOL

    def _coerce(self, value: Any) -> bool:
        return coerce_bool(value)


class FrcInt64(FrcValue):
    """Signed 64-bit integer value. Rejects bool and out-of-range integers."""
    __slots__ = ()
    tag = TypeTag.INT64

    def _coerce(self, value: Any) -> int:
        return coerce_int64(value)


class FrcFloat64(FrcValue):
    """
    64-bit float value.

    Equality compares bit patterns, so ``FrcFloat64(0.0) != FrcFloat64(-0.0)``,
    while any two NaNs compare equal.
    """
    __slots__ = ()
    tag = TypeTag.FLOAT64

    def _coerce(self, value: Any) -> float:
        return coerce_float64(value)

    def _key(self) -> Any:
        return float_key(self._value)


class FrcString(FrcValue):
    """Unicode string value."""
    __slots__ = ()
    tag = TypeTag.STRING

    def _coerce(self, value: Any) -> str:
        return coerce_string(value)


class FrcBytes(FrcValue):
    """Raw bytes value. bytearray and memoryview inputs are copied."""
    __slots__ = ()
    tag = TypeTag.BYTES

    def _coerce(self, value: Any) -> bytes:
        return coerce_bytes(value)
