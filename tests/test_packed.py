"""
Unit tests for the WPILib packed struct layout.

Expected bytes are little-endian, fields back to back without padding.
"""

import pytest
from construct import Struct

from frcvalue import (
    TypeTag, FieldDescriptor, StructDescriptor, StructRegistry,
    FrcBool, FrcInt64, FrcFloat64, FrcString, FrcStruct,
    pack, unpack, packed_size, packed_struct, wpilib_schema, StructureBytes,
    MalformedWire, MissingField, SchemaMismatch, UnsupportedLayout,
)


def pair_descriptor():
    return StructDescriptor("Pair", [
        FieldDescriptor("x", TypeTag.FLOAT64),
        FieldDescriptor("n", TypeTag.INT64),
        FieldDescriptor("on", TypeTag.BOOL),
    ])


def make_pair(x=1.0, n=2, on=True):
    return FrcStruct("Pair", [("x", FrcFloat64(x)), ("n", FrcInt64(n)), ("on", FrcBool(on))])


PAIR_HEX = "000000000000f03f" + "0200000000000000" + "01"


@pytest.fixture
def registry():
    registry = StructRegistry()
    registry.register(pair_descriptor())
    registry.register(StructDescriptor("Vec", [
        FieldDescriptor("x", TypeTag.FLOAT64),
        FieldDescriptor("y", TypeTag.FLOAT64),
    ]))
    registry.register(StructDescriptor("Pose", [
        FieldDescriptor("position", TypeTag.STRUCT, type_name="Vec"),
        FieldDescriptor("heading", TypeTag.FLOAT64),
    ]))
    registry.initialize()
    return registry


# ============================================================================
# Schema and Layout Tests
# ============================================================================

def test_wpilib_schema_string(registry):
    assert wpilib_schema(registry.lookup("Pair")) == "double x;int64 n;bool on"
    assert wpilib_schema(registry.lookup("Pose")) == "Vec position;double heading"


def test_packed_size(registry):
    assert packed_size(registry.lookup("Pair"), registry) == 17
    assert packed_size(registry.lookup("Pose"), registry) == 24


def test_packed_struct_is_a_construct(registry):
    layout = packed_struct(registry.lookup("Pair"), registry)
    assert isinstance(layout, Struct)
    assert layout.parse(bytes.fromhex(PAIR_HEX)).n == 2


def test_unpackable_field_kinds():
    """Only bool, int64, double and nested structs have a packed form."""
    desc = StructDescriptor("Named", [FieldDescriptor("name", TypeTag.STRING)])
    with pytest.raises(UnsupportedLayout):
        wpilib_schema(desc)
    desc = StructDescriptor("Maybe", [FieldDescriptor("n", TypeTag.INT64, optional=True)])
    with pytest.raises(UnsupportedLayout):
        packed_struct(desc, StructRegistry())


def test_unregistered_nested_type_has_no_layout():
    registry = StructRegistry()
    registry.register(StructDescriptor("Pose", [
        FieldDescriptor("position", TypeTag.STRUCT, type_name="Vec"),
    ]))
    registry.initialize()
    with pytest.raises(UnsupportedLayout):
        packed_struct(registry.lookup("Pose"), registry)


# ============================================================================
# Pack / Unpack Tests
# ============================================================================

def test_pack_layout(registry):
    assert pack(make_pair(), registry).hex() == PAIR_HEX


def test_pack_negative_values(registry):
    data = pack(make_pair(x=-2.0, n=-1, on=False), registry)
    assert data.hex() == "00000000000000c0" + "ffffffffffffffff" + "00"


def test_unpack(registry):
    assert unpack(bytes.fromhex(PAIR_HEX), "Pair", registry) == make_pair()


def test_nested_round_trip(registry):
    value = FrcStruct("Pose", [
        ("position", FrcStruct("Vec", [("x", FrcFloat64(1.5)), ("y", FrcFloat64(-3.0))])),
        ("heading", FrcFloat64(0.25)),
    ])
    data = pack(value, registry)
    assert len(data) == 24
    assert unpack(data, "Pose", registry) == value


def test_pack_orders_fields_by_descriptor(registry):
    """Packing resolves fields by name and ignores unknown extras."""
    value = FrcStruct("Pair", [
        ("on", FrcBool(True)), ("extra", FrcString("x")), ("n", FrcInt64(2)), ("x", FrcFloat64(1.0)),
    ])
    assert pack(value, registry).hex() == PAIR_HEX


def test_pack_missing_field(registry):
    value = FrcStruct("Pair", [("x", FrcFloat64(1.0)), ("n", FrcInt64(2))])
    with pytest.raises(MissingField):
        pack(value, registry)


def test_pack_unregistered_or_non_struct(registry):
    with pytest.raises(SchemaMismatch):
        pack(FrcStruct("Unknown"), registry)
    with pytest.raises(SchemaMismatch):
        pack(FrcInt64(1), registry)
    with pytest.raises(SchemaMismatch):
        unpack(b"", "Unknown", registry)


def test_unpack_wrong_size(registry):
    with pytest.raises(MalformedWire):
        unpack(bytes.fromhex(PAIR_HEX)[:-1], "Pair", registry)
    with pytest.raises(MalformedWire):
        unpack(bytes.fromhex(PAIR_HEX) + b"\x00", "Pair", registry)


def test_unpack_invalid_boolean(registry):
    """A packed bool byte must be 0x00 or 0x01."""
    data = bytes.fromhex(PAIR_HEX[:-2] + "02")
    with pytest.raises(MalformedWire):
        unpack(data, "Pair", registry)


# ============================================================================
# StructureBytes Tests
# ============================================================================

def test_structure_bytes_round_trip(registry):
    values = [make_pair(n=1), make_pair(n=2, on=False), make_pair(x=0.5, n=3)]
    blob = StructureBytes.from_values(values, registry)
    assert blob.count == 3
    assert len(blob.data) == 51
    assert blob.descriptor == pair_descriptor()
    assert blob.schema == "double x;int64 n;bool on"
    assert blob.values(registry) == values


def test_structure_bytes_concatenates_packed_structs(registry):
    blob = StructureBytes.from_values([make_pair(), make_pair()], registry)
    assert blob.data.hex() == PAIR_HEX * 2


def test_structure_bytes_needs_values(registry):
    with pytest.raises(ValueError):
        StructureBytes.from_values([], registry)


def test_structure_bytes_rejects_mixed_types(registry):
    vec = FrcStruct("Vec", [("x", FrcFloat64(1.0)), ("y", FrcFloat64(2.0))])
    with pytest.raises(SchemaMismatch):
        StructureBytes.from_values([make_pair(), vec], registry)


def test_structure_bytes_size_check(registry):
    blob = StructureBytes(pair_descriptor(), 2, bytes.fromhex(PAIR_HEX))
    with pytest.raises(MalformedWire):
        blob.values(registry)


def test_structure_bytes_rejects_negative_count():
    with pytest.raises(ValueError):
        StructureBytes(pair_descriptor(), -1, b"")
