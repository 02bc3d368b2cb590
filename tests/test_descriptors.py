"""
Unit tests for FieldDescriptor, StructDescriptor and resolve_fields.
"""

import pytest

from frcvalue import (
    TypeTag, FieldDescriptor, StructDescriptor, StructRegistry, resolve_fields,
    FrcBool, FrcInt64, FrcFloat64, FrcString, FrcStruct,
    SerializationContext, UnknownFieldPolicy,
    FieldNotFound, MissingField, FieldTypeMismatch, SchemaMismatch, UnknownField,
)


def telemetry_descriptor():
    return StructDescriptor("Telemetry", [
        FieldDescriptor("speed", TypeTag.FLOAT64, unit="m/s"),
        FieldDescriptor("name", TypeTag.STRING),
    ])


def make_telemetry(**overrides):
    fields = {"speed": FrcFloat64(3.5), "name": FrcString("left")}
    fields.update(overrides)
    return FrcStruct("Telemetry", [(k, v) for k, v in fields.items() if v is not None])


# ============================================================================
# FieldDescriptor Tests
# ============================================================================

def test_field_descriptor_defaults():
    field = FieldDescriptor("x", TypeTag.INT64)
    assert field.type_name is None
    assert field.optional is False
    assert field.unit is None
    assert field.kind == "int64"


def test_field_descriptor_accepts_int_tags():
    """Plain integers are converted to TypeTag."""
    assert FieldDescriptor("x", 0x03).tag is TypeTag.FLOAT64


def test_struct_field_requires_type_name():
    with pytest.raises(ValueError):
        FieldDescriptor("pose", TypeTag.STRUCT)
    with pytest.raises(ValueError):
        FieldDescriptor("x", TypeTag.INT64, type_name="Pose")
    assert FieldDescriptor("pose", TypeTag.STRUCT, type_name="Pose").kind == "Pose"


def test_field_descriptor_rejects_empty_name():
    with pytest.raises(ValueError):
        FieldDescriptor("", TypeTag.INT64)


def test_field_accepts():
    field = FieldDescriptor("pose", TypeTag.STRUCT, type_name="Pose")
    assert field.accepts(FrcStruct("Pose"))
    assert not field.accepts(FrcStruct("Other"))
    assert not field.accepts(FrcInt64(1))


# ============================================================================
# StructDescriptor Tests
# ============================================================================

def test_struct_descriptor_fields():
    desc = telemetry_descriptor()
    assert desc.field_names == ("speed", "name")
    assert len(desc) == 2
    assert desc.field("speed").unit == "m/s"
    assert [field.name for field in desc] == ["speed", "name"]


def test_struct_descriptor_missing_field():
    with pytest.raises(FieldNotFound):
        telemetry_descriptor().field("missing")


def test_struct_descriptor_rejects_duplicates():
    with pytest.raises(ValueError):
        StructDescriptor("P", [FieldDescriptor("x", TypeTag.INT64), FieldDescriptor("x", TypeTag.FLOAT64)])


def test_struct_descriptor_rejects_reserved_name():
    with pytest.raises(ValueError):
        StructDescriptor("$int64")


def test_struct_descriptor_equality_is_structural():
    """Descriptors built separately from the same fields are equal and hashable."""
    assert telemetry_descriptor() == telemetry_descriptor()
    assert hash(telemetry_descriptor()) == hash(telemetry_descriptor())
    other = StructDescriptor("Telemetry", [FieldDescriptor("speed", TypeTag.FLOAT64)])
    assert telemetry_descriptor() != other


def test_struct_descriptor_is_frozen():
    desc = telemetry_descriptor()
    with pytest.raises(AttributeError):
        desc.type_name = "Other"


def test_nested_type_names():
    desc = StructDescriptor("Robot", [
        FieldDescriptor("pose", TypeTag.STRUCT, type_name="Pose"),
        FieldDescriptor("id", TypeTag.INT64),
    ])
    assert desc.nested_type_names == ("Pose",)


def test_struct_descriptor_str():
    desc = StructDescriptor("P", [
        FieldDescriptor("x", TypeTag.INT64),
        FieldDescriptor("note", TypeTag.STRING, optional=True),
    ])
    assert str(desc) == "P {x: int64, note: string?}"


def test_dict_round_trip():
    desc = StructDescriptor("Robot", [
        FieldDescriptor("pose", TypeTag.STRUCT, type_name="Pose"),
        FieldDescriptor("speed", TypeTag.FLOAT64, unit="m/s"),
        FieldDescriptor("label", TypeTag.STRING, optional=True),
    ])
    data = desc.to_dict()
    assert data["fields"][0] == {"name": "pose", "tag": "struct", "type_name": "Pose"}
    assert data["fields"][2] == {"name": "label", "tag": "string", "optional": True}
    assert StructDescriptor.from_dict(data) == desc


def test_from_dict_rejects_malformed_input():
    with pytest.raises(SchemaMismatch):
        StructDescriptor.from_dict({"type_name": "P"})
    with pytest.raises(SchemaMismatch):
        StructDescriptor.from_dict({"type_name": "P", "fields": [{"name": "x", "tag": "uint8"}]})


# ============================================================================
# matches() Tests
# ============================================================================

def test_matches_well_formed_value():
    assert telemetry_descriptor().matches(make_telemetry())


def test_matches_rejects_wrong_shape():
    desc = telemetry_descriptor()
    assert not desc.matches(FrcInt64(1))
    assert not desc.matches(FrcStruct("Other", make_telemetry().fields))
    assert not desc.matches(make_telemetry(name=None))
    assert not desc.matches(make_telemetry(extra=FrcBool(True)))
    assert not desc.matches(make_telemetry(speed=FrcInt64(3)))
    swapped = FrcStruct("Telemetry", [("name", FrcString("left")), ("speed", FrcFloat64(3.5))])
    assert not desc.matches(swapped)


def test_matches_optional_field():
    desc = StructDescriptor("P", [
        FieldDescriptor("x", TypeTag.INT64),
        FieldDescriptor("note", TypeTag.STRING, optional=True),
    ])
    assert desc.matches(FrcStruct("P", [("x", FrcInt64(1))]))
    assert desc.matches(FrcStruct("P", [("x", FrcInt64(1)), ("note", FrcString("hi"))]))


def test_matches_nested_through_registry():
    registry = StructRegistry()
    vec = StructDescriptor("Vec", [FieldDescriptor("x", TypeTag.FLOAT64)])
    pose = StructDescriptor("Pose", [FieldDescriptor("position", TypeTag.STRUCT, type_name="Vec")])
    registry.register(vec)
    registry.register(pose)
    registry.initialize()

    good = FrcStruct("Pose", [("position", FrcStruct("Vec", [("x", FrcFloat64(1.0))]))])
    bad = FrcStruct("Pose", [("position", FrcStruct("Vec", [("x", FrcInt64(1))]))])
    assert pose.matches(good, registry)
    assert pose.matches(bad)
    assert not pose.matches(bad, registry)


# ============================================================================
# resolve_fields() Tests
# ============================================================================

def test_resolve_fields_by_name():
    """Field order does not matter when resolving."""
    swapped = FrcStruct("Telemetry", [("name", FrcString("left")), ("speed", FrcFloat64(3.5))])
    resolved = resolve_fields(swapped, telemetry_descriptor())
    assert resolved == {"speed": FrcFloat64(3.5), "name": FrcString("left")}


def test_resolve_fields_missing():
    with pytest.raises(MissingField) as exc_info:
        resolve_fields(make_telemetry(name=None), telemetry_descriptor())
    assert exc_info.value.field == "name"


def test_resolve_fields_wrong_tag():
    with pytest.raises(FieldTypeMismatch) as exc_info:
        resolve_fields(make_telemetry(speed=FrcString("fast")), telemetry_descriptor())
    assert exc_info.value.expected is TypeTag.FLOAT64
    assert exc_info.value.actual is TypeTag.STRING


def test_resolve_fields_wrong_struct_type():
    with pytest.raises(SchemaMismatch):
        resolve_fields(FrcStruct("Other"), telemetry_descriptor())
    with pytest.raises(SchemaMismatch):
        resolve_fields(FrcInt64(1), telemetry_descriptor())


def test_resolve_fields_unknown_field_policy():
    """Unknown fields are ignored by default and rejected on request."""
    value = make_telemetry(extra=FrcBool(True))
    assert "extra" not in resolve_fields(value, telemetry_descriptor())

    strict = SerializationContext(unknown_fields=UnknownFieldPolicy.REJECT)
    with pytest.raises(UnknownField) as exc_info:
        resolve_fields(value, telemetry_descriptor(), strict)
    assert exc_info.value.field == "extra"


def test_resolve_fields_absent_optional_is_none():
    desc = StructDescriptor("P", [FieldDescriptor("note", TypeTag.STRING, optional=True)])
    assert resolve_fields(FrcStruct("P"), desc) == {"note": None}
