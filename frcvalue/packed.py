"""
WPILib Packed Struct Layout using Construct Library.

This module lays registered struct types out in the fixed-size binary
WPILib struct format, so dashboards that speak that format can read them
without MessagePack or JSON.

Format Details:
    - Fields are packed back to back in declared order, no padding
    - Little-endian byte order
    - bool: 1 byte (0x00 or 0x01), int64: 8 bytes, double: 8 bytes
    - Nested structs are inlined
    - Schema string: "<type> <name>" entries joined by ";", e.g.
      "double speed;int64 count;bool enabled;Pose pose"

Only Bool, Int64, Float64 and nested struct fields have a packed form, and
optional fields cannot be packed; anything else raises UnsupportedLayout.

Examples:
    >>> registry.register(StructDescriptor("Pair", [
    ...     FieldDescriptor("x", TypeTag.FLOAT64), FieldDescriptor("n", TypeTag.INT64)]))
    >>> wpilib_schema(registry.lookup("Pair"))
    'double x;int64 n'
    >>> pack(FrcStruct("Pair", [("x", FrcFloat64(1.0)), ("n", FrcInt64(2))]), registry).hex()
    '000000000000f03f0200000000000000'
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from construct import (
    Adapter, Array, Byte, Construct, ConstructError, Float64l, Int64sl, Struct, ValidationError,
)

from .basic_types import FrcBool, FrcFloat64, FrcInt64, TypeTag
from .compound_types import FrcStruct
from .descriptors import StructDescriptor, resolve_fields
from .errors import MalformedWire, SchemaMismatch, UnsupportedLayout
from .registry import REGISTRY, StructRegistry


# ============================================================================
# Boolean Adapter with Validation
# ============================================================================

class BooleanAdapter(Adapter):
    """
    Adapter for packed booleans.

    A packed boolean is a single byte:
    - 0x00 = False
    - 0x01 = True

    Any other byte value is rejected with ValidationError.
    """

    def _decode(self, obj: int, context, path) -> bool:
        if obj not in (0, 1):
            raise ValidationError(f"Invalid boolean value: {obj:#04x}. Must be 0x00 or 0x01.", path=path)
        return bool(obj)

    def _encode(self, obj: bool, context, path) -> int:
        return 1 if obj else 0


PackedBool = BooleanAdapter(Byte)
"""Packed bool: 1 byte with validation (0x00 or 0x01)."""

PackedInt64 = Int64sl
"""Packed int64: signed 64-bit integer, little-endian."""

PackedDouble = Float64l
"""Packed double: 64-bit IEEE 754 float, little-endian."""

# tag -> (construct, schema type name, value class)
_PACKED_LEAVES = {
    TypeTag.BOOL: (PackedBool, "bool", FrcBool),
    TypeTag.INT64: (PackedInt64, "int64", FrcInt64),
    TypeTag.FLOAT64: (PackedDouble, "double", FrcFloat64),
}


# ============================================================================
# Layout
# ============================================================================

def wpilib_schema(descriptor: StructDescriptor) -> str:
    """
    Render a descriptor as a WPILib struct schema string.

    Raises:
        UnsupportedLayout: If a field has no packed representation.
    """
    entries = []
    for field in descriptor:
        _check_packable(descriptor, field)
        kind = field.type_name if field.tag is TypeTag.STRUCT else _PACKED_LEAVES[field.tag][1]
        entries.append(f"{kind} {field.name}")
    return ";".join(entries)


def packed_struct(descriptor: StructDescriptor, registry: Optional[StructRegistry] = None) -> Construct:
    """
    Build the Construct definition of a descriptor's packed layout.

    Nested struct fields are resolved through ``registry``.

    Raises:
        UnsupportedLayout: If a field (at any depth) has no packed form, or a
            nested type is not registered.
    """
    registry = REGISTRY if registry is None else registry
    subcons = []
    for field in descriptor:
        _check_packable(descriptor, field)
        if field.tag is TypeTag.STRUCT:
            nested = registry.lookup(field.type_name)
            if nested is None:
                raise UnsupportedLayout(
                    f"{descriptor.type_name}.{field.name}: nested type {field.type_name!r} is not registered"
                )
            subcons.append(field.name / packed_struct(nested, registry))
        else:
            subcons.append(field.name / _PACKED_LEAVES[field.tag][0])
    return Struct(*subcons)


def packed_size(descriptor: StructDescriptor, registry: Optional[StructRegistry] = None) -> int:
    """Size in bytes of one packed instance of ``descriptor``."""
    return packed_struct(descriptor, registry).sizeof()


def _check_packable(descriptor: StructDescriptor, field) -> None:
    if field.optional:
        raise UnsupportedLayout(f"{descriptor.type_name}.{field.name}: optional fields cannot be packed")
    if field.tag is not TypeTag.STRUCT and field.tag not in _PACKED_LEAVES:
        raise UnsupportedLayout(
            f"{descriptor.type_name}.{field.name}: {field.tag.wire_name} fields cannot be packed"
        )


def _descriptor_for(type_name: str, registry: StructRegistry) -> StructDescriptor:
    descriptor = registry.lookup(type_name)
    if descriptor is None:
        raise SchemaMismatch(f"Struct type {type_name!r} is not registered")
    return descriptor


# ============================================================================
# Conversion between FrcStruct and Construct containers
# ============================================================================

def _to_container(value: FrcStruct, descriptor: StructDescriptor, registry: StructRegistry) -> Dict[str, Any]:
    resolved = resolve_fields(value, descriptor)
    data = {}
    for field in descriptor:
        item = resolved[field.name]
        if field.tag is TypeTag.STRUCT:
            data[field.name] = _to_container(item, _descriptor_for(field.type_name, registry), registry)
        else:
            data[field.name] = item.value
    return data


def _from_container(container, descriptor: StructDescriptor, registry: StructRegistry) -> FrcStruct:
    fields = []
    for field in descriptor:
        raw = container[field.name]
        if field.tag is TypeTag.STRUCT:
            fields.append((field.name, _from_container(raw, _descriptor_for(field.type_name, registry), registry)))
        else:
            fields.append((field.name, _PACKED_LEAVES[field.tag][2](raw)))
    return FrcStruct(descriptor.type_name, fields)


# ============================================================================
# Packing
# ============================================================================

def pack(value: FrcStruct, registry: Optional[StructRegistry] = None) -> bytes:
    """
    Pack a struct value into its WPILib binary layout.

    The value is checked against its registered descriptor first; unknown
    extra fields are ignored.

    Raises:
        SchemaMismatch, MissingField, FieldTypeMismatch: If ``value`` does not
            fit its registered descriptor.
        UnsupportedLayout: If the type has no packed form.
    """
    registry = REGISTRY if registry is None else registry
    if value.tag is not TypeTag.STRUCT:
        raise SchemaMismatch(f"Only struct values can be packed, got {value.tag.wire_name}")
    descriptor = _descriptor_for(value.name, registry)
    layout = packed_struct(descriptor, registry)
    return layout.build(_to_container(value, descriptor, registry))


def unpack(data: bytes, type_name: str, registry: Optional[StructRegistry] = None) -> FrcStruct:
    """
    Unpack one struct of type ``type_name`` from its WPILib binary layout.

    Raises:
        MalformedWire: If ``data`` has the wrong size or invalid contents.
        SchemaMismatch: If ``type_name`` is not registered.
        UnsupportedLayout: If the type has no packed form.
    """
    registry = REGISTRY if registry is None else registry
    descriptor = _descriptor_for(type_name, registry)
    layout = packed_struct(descriptor, registry)
    size = layout.sizeof()
    if len(data) != size:
        raise MalformedWire(f"Packed {type_name!r} is {size} bytes, got {len(data)}")
    try:
        container = layout.parse(data)
    except ConstructError as exc:
        raise MalformedWire(f"Invalid packed {type_name!r}: {exc}") from exc
    return _from_container(container, descriptor, registry)


@dataclass(frozen=True)
class StructureBytes:
    """
    Any number of same-typed packed structs in one binary blob.

    The type description and struct count travel with the data, so a
    receiver can unpack it with nothing but a registry.

    Attributes:
        descriptor: Descriptor of the packed struct type.
        count: Number of structs in ``data``.
        data: The packed structs, back to back.
    """
    descriptor: StructDescriptor
    count: int
    data: bytes

    def __post_init__(self):
        if self.count < 0:
            raise ValueError(f"count must not be negative, got {self.count}")
        object.__setattr__(self, "data", bytes(self.data))

    @property
    def schema(self) -> str:
        return wpilib_schema(self.descriptor)

    @classmethod
    def from_values(cls, values: Iterable[FrcStruct],
                    registry: Optional[StructRegistry] = None) -> "StructureBytes":
        """
        Pack a non-empty sequence of struct values of one type.

        Raises:
            ValueError: If ``values`` is empty.
            SchemaMismatch: If the values are not all of the same type.
        """
        registry = REGISTRY if registry is None else registry
        values = list(values)
        if not values:
            raise ValueError("StructureBytes needs at least one value to know its type")
        type_name = getattr(values[0], "name", None)
        for value in values:
            if value.tag is not TypeTag.STRUCT or value.name != type_name:
                raise SchemaMismatch(f"All packed values must be {type_name!r} structs")
        descriptor = _descriptor_for(type_name, registry)
        layout = Array(len(values), packed_struct(descriptor, registry))
        data = layout.build([_to_container(value, descriptor, registry) for value in values])
        return cls(descriptor, len(values), data)

    def values(self, registry: Optional[StructRegistry] = None) -> List[FrcStruct]:
        """Unpack every struct in ``data``."""
        registry = REGISTRY if registry is None else registry
        element = packed_struct(self.descriptor, registry)
        expected = element.sizeof() * self.count
        if len(self.data) != expected:
            raise MalformedWire(f"{self.count} packed {self.descriptor.type_name!r} need {expected} bytes, "
                                f"got {len(self.data)}")
        try:
            containers = Array(self.count, element).parse(self.data)
        except ConstructError as exc:
            raise MalformedWire(f"Invalid packed {self.descriptor.type_name!r}: {exc}") from exc
        return [_from_container(container, self.descriptor, registry) for container in containers]
