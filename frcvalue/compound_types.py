"""
FRC Compound Value Types.

This module implements the homogeneous array variants and the struct
variant of FrcValue.

Supported Types:
    - FrcBoolArray, FrcInt64Array, FrcFloat64Array, FrcStringArray:
      homogeneous arrays, stored as tuples. Any iterable or 1-D numpy
      array is accepted as input.
    - FrcStruct: a named, ordered list of (field name, FrcValue) pairs.
      Field order is preserved and significant for equality; field names
      are the identity used for lookup.

Examples:
    >>> arr = FrcInt64Array(np.arange(3))
    >>> arr.as_int64_array()
    (0, 1, 2)
    >>> s = FrcStruct("Telemetry", [("speed", FrcFloat64(3.5)), ("name", FrcString("left"))])
    >>> s["speed"].as_float64()
    3.5
"""

from typing import Any, Callable, Iterable, Iterator, Mapping, Optional, Tuple, Union

import numpy as np

from .basic_types import (
    FrcValue, TypeTag,
    coerce_bool, coerce_int64, coerce_float64, coerce_string, check_utf8, float_key,
)
from .errors import FieldNotFound

# Prefix reserved for wire-format type hints; no struct type may use it
RESERVED_PREFIX = "$"


def validate_type_name(name: Any) -> str:
    """Check that ``name`` can identify a struct type on the wire."""
    if not isinstance(name, str) or not name:
        raise ValueError(f"Struct type name must be a non-empty string, got {name!r}")
    if name.startswith(RESERVED_PREFIX):
        raise ValueError(f"Struct type name {name!r} must not start with {RESERVED_PREFIX!r}")
    return check_utf8(name)


# ============================================================================
# Array Types
# ============================================================================

class FrcArray(FrcValue):
    """Base class for homogeneous array values."""

    __slots__ = ()

    _element: Callable[[Any], Any]

    def _coerce(self, value: Any) -> Tuple[Any, ...]:
        if isinstance(value, np.ndarray):
            if value.ndim != 1:
                raise ValueError(f"Only 1-D arrays are supported, got shape {value.shape}")
            value = value.tolist()
        elif isinstance(value, (str, bytes, bytearray)) or not isinstance(value, Iterable):
            raise TypeError(f"{self.__class__.__name__} needs an iterable, got {type(value).__name__}")
        return tuple(self._element(item) for item in value)

    def __len__(self) -> int:
        return len(self._value)

    def __iter__(self) -> Iterator[Any]:
        return iter(self._value)

    def __getitem__(self, index: int) -> Any:
        return self._value[index]

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({list(self._value)!r})"


class FrcBoolArray(FrcArray):
    __slots__ = ()
    tag = TypeTag.BOOL_ARRAY
    _element = staticmethod(coerce_bool)

    def to_numpy(self) -> np.ndarray:
        return np.array(self._value, dtype=np.bool_)


class FrcInt64Array(FrcArray):
    __slots__ = ()
    tag = TypeTag.INT64_ARRAY
    _element = staticmethod(coerce_int64)

    def to_numpy(self) -> np.ndarray:
        return np.array(self._value, dtype=np.int64)


class FrcFloat64Array(FrcArray):
    __slots__ = ()
    tag = TypeTag.FLOAT64_ARRAY
    _element = staticmethod(coerce_float64)

    def to_numpy(self) -> np.ndarray:
        return np.array(self._value, dtype=np.float64)

    def _key(self) -> Any:
        return tuple(float_key(item) for item in self._value)


class FrcStringArray(FrcArray):
    __slots__ = ()
    tag = TypeTag.STRING_ARRAY
    _element = staticmethod(coerce_string)


ARRAY_TYPES = {
    TypeTag.BOOL_ARRAY: FrcBoolArray,
    TypeTag.INT64_ARRAY: FrcInt64Array,
    TypeTag.FLOAT64_ARRAY: FrcFloat64Array,
    TypeTag.STRING_ARRAY: FrcStringArray,
}


# ============================================================================
# Struct Type
# ============================================================================

FieldsType = Union[Mapping[str, FrcValue], Iterable[Tuple[str, FrcValue]]]


class FrcStruct(FrcValue):
    """
    A named structure of FRC values.

    Args:
        name: Type name of the structure (e.g. "Telemetry"). Must be
              non-empty and must not start with "$".
        fields: Ordered (field name, FrcValue) pairs, or a mapping whose
                iteration order is used.

    Raises:
        ValueError: On an invalid type name, empty or duplicate field names.
        TypeError: If a field value is not an FrcValue.
    """

    __slots__ = ("_name", "_index")
    tag = TypeTag.STRUCT

    def __init__(self, name: str, fields: FieldsType = ()):
        object.__setattr__(self, "_name", validate_type_name(name))
        super().__init__(fields)
        object.__setattr__(self, "_index", {field: i for i, (field, _) in enumerate(self._value)})

    def _coerce(self, value: FieldsType) -> Tuple[Tuple[str, FrcValue], ...]:
        pairs = value.items() if isinstance(value, Mapping) else value
        result = []
        seen = set()
        for field, item in pairs:
            if not isinstance(field, str) or not field:
                raise ValueError(f"Field names of {self._name!r} must be non-empty strings, got {field!r}")
            if field in seen:
                raise ValueError(f"Duplicate field {field!r} in struct {self._name!r}")
            check_utf8(field)
            if not isinstance(item, FrcValue):
                raise TypeError(f"Field {field!r} of {self._name!r} must be an FrcValue, got {type(item).__name__}")
            seen.add(field)
            result.append((field, item))
        return tuple(result)

    @property
    def name(self) -> str:
        return self._name

    @property
    def fields(self) -> Tuple[Tuple[str, FrcValue], ...]:
        return self._value

    @property
    def field_names(self) -> Tuple[str, ...]:
        return tuple(field for field, _ in self._value)

    def get_field(self, field: str) -> FrcValue:
        """Look up a field by name, raising FieldNotFound if it is absent."""
        try:
            return self._value[self._index[field]][1]
        except KeyError:
            raise FieldNotFound(self._name, field) from None

    __getitem__ = get_field

    def get(self, field: str, default: Optional[FrcValue] = None) -> Optional[FrcValue]:
        index = self._index.get(field)
        return default if index is None else self._value[index][1]

    def __contains__(self, field: object) -> bool:
        return field in self._index

    def __len__(self) -> int:
        return len(self._value)

    def __iter__(self) -> Iterator[Tuple[str, FrcValue]]:
        return iter(self._value)

    def _key(self) -> Any:
        return (self._name, self._value)

    def __repr__(self) -> str:
        return f"FrcStruct({self._name!r}, {list(self._value)!r})"
