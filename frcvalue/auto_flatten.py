"""
Auto-Flatten - automatic FrcValue inference from Python data.
"""
from typing import Any, Optional

import numpy as np

from .basic_types import FrcBool, FrcBytes, FrcFloat64, FrcInt64, FrcString, FrcValue
from .compound_types import (
    FrcBoolArray, FrcFloat64Array, FrcInt64Array, FrcStringArray, FrcStruct,
)

_NDARRAY_TYPES = {
    "b": FrcBoolArray,
    "i": FrcInt64Array,
    "u": FrcInt64Array,
    "f": FrcFloat64Array,
    "U": FrcStringArray,
}


def infer_value(data: Any, type_name: Optional[str] = None) -> FrcValue:
    """
    Infer an FrcValue from plain Python or numpy data.

    Inference rules:
    - FrcValue -> returned as-is
    - object with to_value() (e.g. @frcstruct) -> its struct value
    - bool -> FrcBool (checked before int, bool is a subclass of int)
    - int / numpy integer -> FrcInt64
    - float / numpy floating -> FrcFloat64
    - str -> FrcString
    - bytes / bytearray / memoryview -> FrcBytes
    - 1-D numpy array -> array of the matching element kind
    - non-empty list/tuple -> homogeneous array; ints mixed with floats
      become a float64 array
    - dict -> FrcStruct named ``type_name`` (required), values inferred

    Raises:
        TypeError: If no value kind fits the data.
        ValueError: If the data is an empty sequence (element kind unknown)
            or an integer out of int64 range.
    """
    if isinstance(data, FrcValue):
        return data
    to_value = getattr(data, "to_value", None)
    if callable(to_value) and not isinstance(data, type):
        return to_value()

    if isinstance(data, (bool, np.bool_)):
        return FrcBool(data)
    if isinstance(data, (int, np.integer)):
        return FrcInt64(data)
    if isinstance(data, (float, np.floating)):
        return FrcFloat64(data)
    if isinstance(data, str):
        return FrcString(data)
    if isinstance(data, (bytes, bytearray, memoryview)):
        return FrcBytes(data)

    if isinstance(data, np.ndarray):
        array_type = _NDARRAY_TYPES.get(data.dtype.kind)
        if array_type is None:
            raise TypeError(f"Cannot infer an array value from numpy dtype {data.dtype}")
        return array_type(data)

    if isinstance(data, (list, tuple)):
        if not data:
            raise ValueError(f"Cannot infer type from empty {type(data).__name__}")
        if all(isinstance(x, (bool, np.bool_)) for x in data):
            return FrcBoolArray(data)
        if any(isinstance(x, (bool, np.bool_)) for x in data):
            raise TypeError("Cannot mix booleans with other elements in an array")
        if all(isinstance(x, (int, np.integer)) for x in data):
            return FrcInt64Array(data)
        if all(isinstance(x, (int, float, np.integer, np.floating)) for x in data):
            return FrcFloat64Array(data)
        if all(isinstance(x, str) for x in data):
            return FrcStringArray(data)
        raise TypeError("Arrays must hold booleans, numbers or strings of a single kind")

    if isinstance(data, dict):
        if type_name is None:
            raise TypeError("A type_name is required to infer a struct from a dict")
        return FrcStruct(type_name, [(key, infer_value(item)) for key, item in data.items()])

    raise TypeError(f"Cannot auto-infer an FRC value from {type(data).__name__}")
