"""
FRC Value Serialization.

This package provides a self-describing, strongly-typed value model for
robot telemetry and configuration, with interchangeable MessagePack and
JSON wire codecs and a registry of struct schemas.

Key Features:
    - Immutable, tagged values (FrcValue) with typed accessors
    - Two wire formats with the same layout: MessagePack (binary) and JSON (text)
    - Externally tagged structs: {"TypeName": {field: value, ...}}
    - Struct types derived from annotated classes with @frcstruct
    - Process-wide struct registry with an explicit initialization phase
    - WPILib packed struct layout (fixed-size binary) using Construct

Public API:
    - frcflatten: Serialize Python data to MessagePack or JSON
    - frcunflatten: Deserialize (automatic class detection for struct types)
    - frcpack / frcunpack: WPILib packed struct layout

Value Types:
    - FrcBool, FrcInt64, FrcFloat64, FrcString, FrcBytes
    - FrcBoolArray, FrcInt64Array, FrcFloat64Array, FrcStringArray
    - FrcStruct

Usage:
    >>> from frcvalue import frcstruct, frcflatten, frcunflatten, initialize_registry
    >>>
    >>> @frcstruct
    ... class Telemetry:
    ...     speed: float
    ...     name: str
    >>>
    >>> initialize_registry()
    >>> data = frcflatten(Telemetry(3.5, "left"), fmt="json")
    >>> data
    '{"Telemetry":{"speed":3.5,"name":"left"}}'
    >>> restored = frcunflatten(data, fmt="json")   # Automatically returns Telemetry
    >>> assert restored == Telemetry(3.5, "left")
"""

from .api import (
    frcflatten,
    frcunflatten,
    frcpack,
    frcunpack,
    FORMATS,
)

from .auto_flatten import infer_value

from .basic_types import (
    TypeTag,
    FrcValue,
    FrcBool,
    FrcInt64,
    FrcFloat64,
    FrcString,
    FrcBytes,
    INT64_MIN,
    INT64_MAX,
    # Type aliases
    Int64Type, Float64Type, BoolType, StringType, BytesType,
)

from .compound_types import (
    FrcArray,
    FrcBoolArray,
    FrcInt64Array,
    FrcFloat64Array,
    FrcStringArray,
    FrcStruct,
)

from .descriptors import (
    FieldDescriptor,
    StructDescriptor,
    resolve_fields,
)

from .errors import (
    FrcValueError,
    TypeMismatch,
    FieldNotFound,
    DecodeError,
    MalformedWire,
    SchemaMismatch,
    UnknownField,
    MissingField,
    FieldTypeMismatch,
    SchemaConflict,
    RegistryNotInitialized,
    UnsupportedLayout,
)

from .json_codec import to_json, from_json
from .msgpack_codec import to_msgpack, from_msgpack

from .packed import (
    pack,
    unpack,
    packed_size,
    packed_struct,
    wpilib_schema,
    StructureBytes,
)

from .registry import (
    StructRegistry,
    REGISTRY,
    initialize_registry,
    lookup,
    register,
    submit,
)

from .serialization import (
    SerializationContext,
    UnknownFieldPolicy,
    DEFAULT_CONTEXT,
    JSON_MAX_SAFE_INTEGER,
)

from .decorators import (
    # Decorators
    frcstruct,
    frcfield,
    # Helper functions
    is_frcstruct,
    get_frcstruct_by_name,
    FrcStructure,
    # Registry (for testing/debugging)
    _FRCSTRUCT_REGISTRY,
)

__all__ = [
    # Main API
    "frcflatten",
    "frcunflatten",
    "frcpack",
    "frcunpack",
    "FORMATS",
    "infer_value",
    # Codecs
    "to_msgpack", "from_msgpack",
    "to_json", "from_json",
    # Value types
    "TypeTag",
    "FrcValue",
    "FrcBool", "FrcInt64", "FrcFloat64", "FrcString", "FrcBytes",
    "FrcArray",
    "FrcBoolArray", "FrcInt64Array", "FrcFloat64Array", "FrcStringArray",
    "FrcStruct",
    "INT64_MIN", "INT64_MAX",
    # Type aliases
    "Int64Type", "Float64Type", "BoolType", "StringType", "BytesType",
    # Descriptors
    "FieldDescriptor",
    "StructDescriptor",
    "resolve_fields",
    # Registry
    "StructRegistry",
    "REGISTRY",
    "initialize_registry",
    "lookup",
    "register",
    "submit",
    # Packed layout
    "pack", "unpack",
    "packed_size", "packed_struct", "wpilib_schema",
    "StructureBytes",
    # Configuration
    "SerializationContext",
    "UnknownFieldPolicy",
    "DEFAULT_CONTEXT",
    "JSON_MAX_SAFE_INTEGER",
    # Errors
    "FrcValueError",
    "TypeMismatch",
    "FieldNotFound",
    "DecodeError",
    "MalformedWire",
    "SchemaMismatch",
    "UnknownField",
    "MissingField",
    "FieldTypeMismatch",
    "SchemaConflict",
    "RegistryNotInitialized",
    "UnsupportedLayout",
    # Decorators and helpers
    "frcstruct",
    "frcfield",
    "is_frcstruct",
    "get_frcstruct_by_name",
    "FrcStructure",
    "_FRCSTRUCT_REGISTRY",
]

__version__ = "0.1.0"
