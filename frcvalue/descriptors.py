"""
Structure Descriptors - schema objects for FRC struct types.

A StructDescriptor names a type and lists its fields in wire order. Each
FieldDescriptor carries the field's TypeTag and, for nested structs, the
type name of the nested descriptor. Descriptors are immutable and compare
structurally, which is what the registry uses to tell an idempotent
re-registration from a conflict.
"""
from dataclasses import dataclass
from typing import Any, Dict, Iterator, Optional, Tuple, TYPE_CHECKING

from .basic_types import FrcValue, TypeTag
from .compound_types import FrcStruct, validate_type_name
from .errors import FieldNotFound, FieldTypeMismatch, MissingField, SchemaMismatch, UnknownField
from .serialization import DEFAULT_CONTEXT, SerializationContext

if TYPE_CHECKING:
    from .registry import StructRegistry


@dataclass(frozen=True)
class FieldDescriptor:
    """
    One field of a struct type.

    Attributes:
        name: Field name as it appears on the wire.
        tag: TypeTag of the field's value.
        type_name: Nested struct type name; required iff tag is STRUCT.
        optional: Whether the field may be absent from a struct value.
        unit: Out-of-band unit label (e.g. "m/s"). Never part of the value.
    """
    name: str
    tag: TypeTag
    type_name: Optional[str] = None
    optional: bool = False
    unit: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.name, str) or not self.name:
            raise ValueError(f"Field name must be a non-empty string, got {self.name!r}")
        object.__setattr__(self, "tag", TypeTag(self.tag))
        if self.tag is TypeTag.STRUCT:
            validate_type_name(self.type_name)
        elif self.type_name is not None:
            raise ValueError(f"Field {self.name!r} of kind {self.tag.wire_name} cannot name a struct type")

    @property
    def kind(self) -> str:
        """Human-readable kind: the nested type name, or the tag's wire name."""
        return self.type_name if self.tag is TypeTag.STRUCT else self.tag.wire_name

    def accepts(self, value: FrcValue) -> bool:
        """Whether ``value`` has this field's tag (and nested type name)."""
        if value.tag is not self.tag:
            return False
        return self.tag is not TypeTag.STRUCT or value.name == self.type_name

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"name": self.name, "tag": self.tag.wire_name}
        if self.type_name is not None:
            data["type_name"] = self.type_name
        if self.optional:
            data["optional"] = True
        if self.unit is not None:
            data["unit"] = self.unit
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FieldDescriptor":
        return cls(
            name=data["name"],
            tag=TypeTag.from_wire_name(data["tag"]),
            type_name=data.get("type_name"),
            optional=bool(data.get("optional", False)),
            unit=data.get("unit"),
        )


@dataclass(frozen=True)
class StructDescriptor:
    """
    Schema of a struct type: its name and ordered fields.

    Examples:
        >>> desc = StructDescriptor("Telemetry", [
        ...     FieldDescriptor("speed", TypeTag.FLOAT64),
        ...     FieldDescriptor("name", TypeTag.STRING),
        ... ])
        >>> desc.field_names
        ('speed', 'name')
    """
    type_name: str
    fields: Tuple[FieldDescriptor, ...] = ()

    def __post_init__(self):
        validate_type_name(self.type_name)
        fields = tuple(self.fields)
        names = set()
        for field in fields:
            if not isinstance(field, FieldDescriptor):
                raise TypeError(f"Expected FieldDescriptor, got {type(field).__name__}")
            if field.name in names:
                raise ValueError(f"Duplicate field {field.name!r} in {self.type_name!r}")
            names.add(field.name)
        object.__setattr__(self, "fields", fields)

    @property
    def field_names(self) -> Tuple[str, ...]:
        return tuple(field.name for field in self.fields)

    @property
    def nested_type_names(self) -> Tuple[str, ...]:
        return tuple(field.type_name for field in self.fields if field.tag is TypeTag.STRUCT)

    def field(self, name: str) -> FieldDescriptor:
        for field in self.fields:
            if field.name == name:
                return field
        raise FieldNotFound(self.type_name, name)

    def __iter__(self) -> Iterator[FieldDescriptor]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    def matches(self, value: FrcValue, registry: Optional["StructRegistry"] = None) -> bool:
        """
        Whether ``value`` is a well-formed instance of this type.

        Well-formed means a struct with this type name and exactly the
        declared fields, in declared order, each with the declared tag.
        Optional fields may be left out. With a registry, nested struct
        fields are checked against their own descriptors as well.
        """
        if not isinstance(value, FrcStruct) or value.name != self.type_name:
            return False
        expected = [field for field in self.fields if not field.optional or field.name in value]
        if value.field_names != tuple(field.name for field in expected):
            return False
        for field in expected:
            item = value[field.name]
            if not field.accepts(item):
                return False
            if registry is not None and field.tag is TypeTag.STRUCT:
                nested = registry.lookup(field.type_name)
                if nested is None or not nested.matches(item, registry):
                    return False
        return True

    def to_dict(self) -> Dict[str, Any]:
        """Plain-data form for publishing the schema to external tooling."""
        return {"type_name": self.type_name, "fields": [field.to_dict() for field in self.fields]}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StructDescriptor":
        """Inverse of to_dict. Raises SchemaMismatch on malformed input."""
        try:
            return cls(data["type_name"], tuple(FieldDescriptor.from_dict(f) for f in data["fields"]))
        except (KeyError, TypeError, ValueError) as exc:
            raise SchemaMismatch(f"Invalid struct descriptor: {exc}") from exc

    def __str__(self) -> str:
        body = ", ".join(f"{field.name}: {field.kind}{'?' if field.optional else ''}" for field in self.fields)
        return f"{self.type_name} {{{body}}}"


def resolve_fields(value: FrcValue, descriptor: StructDescriptor,
                   context: Optional[SerializationContext] = None) -> Dict[str, Optional[FrcValue]]:
    """
    Check a struct value against a descriptor and pick out its fields.

    Fields are matched by name, so field order does not matter here.
    Nested struct fields are only checked for their type name; callers
    recurse into them with the nested descriptor.

    Returns:
        dict: Declared field name -> value, or None for an absent optional field.

    Raises:
        SchemaMismatch: If ``value`` is not a struct of this type.
        MissingField: If a required field is absent.
        FieldTypeMismatch: If a field holds the wrong kind of value.
        UnknownField: If the context rejects unknown fields and one is present.
    """
    context = context or DEFAULT_CONTEXT
    if not isinstance(value, FrcStruct):
        raise SchemaMismatch(f"Expected a {descriptor.type_name!r} struct, got {value.tag.wire_name} value")
    if value.name != descriptor.type_name:
        raise SchemaMismatch(f"Expected a {descriptor.type_name!r} struct, got {value.name!r}")
    resolved: Dict[str, Optional[FrcValue]] = {}
    for field in descriptor.fields:
        item = value.get(field.name)
        if item is None:
            if not field.optional:
                raise MissingField(descriptor.type_name, field.name)
        elif not field.accepts(item):
            actual = item.name if item.tag is TypeTag.STRUCT else item.tag
            expected = field.type_name if field.tag is TypeTag.STRUCT else field.tag
            raise FieldTypeMismatch(descriptor.type_name, field.name, expected, actual)
        resolved[field.name] = item
    if context.rejects_unknown_fields:
        for name in value.field_names:
            if name not in resolved:
                raise UnknownField(descriptor.type_name, name)
    return resolved
