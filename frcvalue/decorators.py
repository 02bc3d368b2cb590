"""
Decorators for FRC Struct Support.

This module provides the derivation mechanism: a decorator that turns a
plain annotated Python class into a struct type with a descriptor and
FrcValue (de)serializers, without hand-written per-type codecs.

A struct type is anything that implements the FrcStructure protocol:

    descriptor()                  -> StructDescriptor   (classmethod)
    to_value()                    -> FrcStruct
    from_value(value, context)    -> instance           (classmethod)

@frcstruct implements all three from the class annotations and submits the
descriptor to the registry. Hand-written implementations are equally valid;
they call ``registry.submit(MyType.descriptor)`` themselves.
"""

import dataclasses
import logging
import types
from collections.abc import Sequence
from typing import (
    Any, Annotated, Callable, Dict, NamedTuple, Optional, Protocol, Tuple, Type, Union,
    get_args, get_origin, get_type_hints, runtime_checkable,
)

import numpy as np

from .basic_types import FrcBool, FrcBytes, FrcFloat64, FrcInt64, FrcString, FrcValue, TypeTag
from .compound_types import ARRAY_TYPES, FrcStruct, validate_type_name
from .descriptors import FieldDescriptor, StructDescriptor, resolve_fields
from .registry import REGISTRY, StructRegistry
from .serialization import SerializationContext

logger = logging.getLogger(__name__)


# ============================================================================
# Class Registry
# ============================================================================

_FRCSTRUCT_REGISTRY: Dict[str, Type] = {}
"""Global table mapping struct type names to @frcstruct classes."""


def get_frcstruct_by_name(type_name: str) -> Optional[Type]:
    """
    Lookup an @frcstruct decorated class by its struct type name.

    Args:
        type_name: The struct type name (e.g. "Telemetry")

    Returns:
        The Python class if found, None otherwise
    """
    return _FRCSTRUCT_REGISTRY.get(type_name)


@runtime_checkable
class FrcStructure(Protocol):
    """Capability interface of every struct type."""

    @classmethod
    def descriptor(cls) -> StructDescriptor: ...

    def to_value(self) -> FrcStruct: ...

    @classmethod
    def from_value(cls, value: FrcValue, context: Optional[SerializationContext] = None) -> Any: ...


# ============================================================================
# Field Conversion
# ============================================================================

_VALUE_TYPES: Dict[TypeTag, Type[FrcValue]] = {
    TypeTag.BOOL: FrcBool,
    TypeTag.INT64: FrcInt64,
    TypeTag.FLOAT64: FrcFloat64,
    TypeTag.STRING: FrcString,
    TypeTag.BYTES: FrcBytes,
    **ARRAY_TYPES,
}

_SCALAR_TAGS = {
    bool: TypeTag.BOOL,
    int: TypeTag.INT64,
    float: TypeTag.FLOAT64,
    str: TypeTag.STRING,
    bytes: TypeTag.BYTES,
}

_ARRAY_TAGS = {
    bool: TypeTag.BOOL_ARRAY,
    int: TypeTag.INT64_ARRAY,
    float: TypeTag.FLOAT64_ARRAY,
    str: TypeTag.STRING_ARRAY,
}

_FIELD_META = "frcvalue"

Encoder = Callable[[Any], FrcValue]
Decoder = Callable[[FrcValue, Optional[SerializationContext]], Any]


class _FieldPlan(NamedTuple):
    """How one dataclass attribute maps to one struct field."""
    attr: str
    field: FieldDescriptor
    encode: Encoder
    decode: Decoder


def _is_union(hint: Any) -> bool:
    origin = get_origin(hint)
    if origin is Union:
        return True
    union_type = getattr(types, "UnionType", None)
    return union_type is not None and origin is union_type


def _unwrap_optional(hint: Any, owner: Type, attr: str) -> Tuple[Any, bool]:
    if not _is_union(hint):
        return hint, False
    args = [arg for arg in get_args(hint) if arg is not type(None)]
    if len(args) != 1 or len(get_args(hint)) != 2:
        raise TypeError(f"{owner.__name__}.{attr}: only Optional[X] unions are supported, got {hint!r}")
    return args[0], True


def _convert(hint: Any, owner: Type, attr: str) -> Tuple[TypeTag, Optional[str], bool, Optional[str], Encoder, Decoder]:
    """Work out tag, nested type name, optionality, unit and converters for a hint."""
    hint, optional = _unwrap_optional(hint, owner, attr)

    forced = None
    if get_origin(hint) is Annotated:
        hint, *extras = get_args(hint)
        forced = next((extra for extra in extras if isinstance(extra, TypeTag)), None)
        # Annotated[Optional[X], ...]
        hint, inner_optional = _unwrap_optional(hint, owner, attr)
        optional = optional or inner_optional

    origin = get_origin(hint)

    # Nested struct types
    if isinstance(hint, type) and getattr(hint, "__is_frc_struct__", False):
        nested = hint
        return (TypeTag.STRUCT, nested.__frc_type_name__, optional, None,
                lambda obj: obj.to_value(),
                lambda value, context: nested.from_value(value, context))

    # Leaves supplied by a units subsystem
    if isinstance(hint, type) and hasattr(hint, "__frc_unit__"):
        unit_type = hint
        tag = TypeTag(unit_type.__frc_unit_tag__)
        if tag is TypeTag.FLOAT64:
            return (tag, None, optional, unit_type.__frc_unit__,
                    lambda obj: FrcFloat64(float(obj)),
                    lambda value, context: unit_type(value.as_float64()))
        if tag is TypeTag.INT64:
            return (tag, None, optional, unit_type.__frc_unit__,
                    lambda obj: FrcInt64(int(obj)),
                    lambda value, context: unit_type(value.as_int64()))
        raise TypeError(f"{owner.__name__}.{attr}: unit types must be int64 or float64, got {tag.wire_name}")

    tag = forced
    container: Callable[[Tuple[Any, ...]], Any] = list
    if tag is None:
        if hint in _SCALAR_TAGS:
            tag = _SCALAR_TAGS[hint]
        elif origin in (list, tuple, Sequence):
            args = get_args(hint)
            if origin is tuple and (len(args) != 2 or args[1] is not Ellipsis):
                raise TypeError(f"{owner.__name__}.{attr}: use Tuple[X, ...] for array fields, got {hint!r}")
            tag = _ARRAY_TAGS.get(args[0]) if args else None
            if origin is tuple:
                container = tuple
        if tag is None:
            raise TypeError(f"{owner.__name__}.{attr}: cannot derive a field type from {hint!r}")
    if tag is TypeTag.STRUCT:
        raise TypeError(f"{owner.__name__}.{attr}: struct fields must be annotated with an @frcstruct class")

    value_type = _VALUE_TYPES[tag]
    if not tag.is_array:
        return tag, None, optional, None, value_type, lambda value, context: value.value
    if hint is np.ndarray and hasattr(value_type, "to_numpy"):
        return tag, None, optional, None, value_type, lambda value, context: value.to_numpy()
    return tag, None, optional, None, value_type, lambda value, context: container(value.value)


def _resolve_hints(cls: Type) -> Dict[str, Any]:
    try:
        return get_type_hints(cls, include_extras=True)
    except NameError as exc:
        raise TypeError(f"Cannot resolve annotations of {cls.__name__}: {exc}") from exc


def _plan(cls: Type) -> Tuple[_FieldPlan, ...]:
    plan = cls.__dict__.get("__frc_plan__")
    if plan is not None:
        return plan
    hints = _resolve_hints(cls)
    plans = []
    for field in dataclasses.fields(cls):
        if not field.init:
            continue
        meta = field.metadata.get(_FIELD_META, {})
        tag, type_name, optional, unit, encode, decode = _convert(hints[field.name], cls, field.name)
        descriptor = FieldDescriptor(
            name=meta.get("name") or field.name,
            tag=tag,
            type_name=type_name,
            optional=optional,
            unit=meta.get("unit") or unit,
        )
        plans.append(_FieldPlan(field.name, descriptor, encode, decode))
    plan = tuple(plans)
    cls.__frc_plan__ = plan
    cls.__frc_descriptor__ = StructDescriptor(cls.__frc_type_name__, tuple(p.field for p in plan))
    return plan


# ============================================================================
# Decorators
# ============================================================================

def frcfield(*, name: Optional[str] = None, unit: Optional[str] = None, **kwargs) -> Any:
    """
    Declare wire details for one field of an @frcstruct class.

    Args:
        name: Field name on the wire, if different from the attribute name.
        unit: Out-of-band unit label published in the descriptor.
        **kwargs: Passed through to ``dataclasses.field`` (default, ...).

    Examples:
        >>> @frcstruct
        ... class Drive:
        ...     left_speed: float = frcfield(name="leftSpeed", unit="m/s", default=0.0)
    """
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[_FIELD_META] = {"name": name, "unit": unit}
    return dataclasses.field(metadata=metadata, **kwargs)


def frcstruct(cls: Optional[Type] = None, *, type_name: Optional[str] = None,
              registry: Optional[StructRegistry] = None):
    """
    Decorator to mark a Python class as an FRC struct type.

    Fields come from the class annotations, in definition order. The class
    is turned into a dataclass unless it already is one.

    Supported annotations:
        - bool, int, float, str, bytes
        - List[X], Sequence[X], Tuple[X, ...] of bool/int/float/str
        - another @frcstruct class (nested struct)
        - Optional[...] of any of these: the field may be None, and is then
          left out of the struct value
        - Annotated[..., TypeTag.X] to force a tag (e.g. numpy arrays)
        - units-subsystem leaves: classes with ``__frc_unit__`` and
          ``__frc_unit_tag__``, converted with float()/int() and rebuilt
          with ``cls(raw)``

    Args:
        type_name: Struct type name on the wire. Defaults to the class name.
        registry: Registry to submit the descriptor to. Defaults to the
                  process-wide registry; it is registered by the next
                  ``initialize_registry()`` call.

    The decorator:
    - Adds ``descriptor()``, ``to_value()`` and ``from_value()``
    - Submits the descriptor supplier to the registry
    - Records the class in the name -> class table used by frcunflatten()

    Examples:
        >>> @frcstruct
        ... class Telemetry:
        ...     speed: float
        ...     name: str
        >>> Telemetry(3.5, "left").to_value()
        FrcStruct('Telemetry', [('speed', FrcFloat64(3.5)), ('name', FrcString('left'))])
    """
    def decorator(cls: Type) -> Type:
        if not dataclasses.is_dataclass(cls):
            cls = dataclasses.dataclass(cls)

        cls.__frc_type_name__ = validate_type_name(type_name or cls.__name__)
        cls.__is_frc_struct__ = True

        cls.descriptor = classmethod(_descriptor)
        cls.to_value = _to_value
        cls.from_value = classmethod(_from_value)

        previous = _FRCSTRUCT_REGISTRY.get(cls.__frc_type_name__)
        if previous is not None and previous is not cls:
            logger.debug("Struct type %r redefined by %s.%s", cls.__frc_type_name__,
                         cls.__module__, cls.__qualname__)
        _FRCSTRUCT_REGISTRY[cls.__frc_type_name__] = cls

        (REGISTRY if registry is None else registry).submit(cls.descriptor)
        return cls

    return decorator if cls is None else decorator(cls)


def _descriptor(cls) -> StructDescriptor:
    """Structure descriptor of this type, built once from its annotations."""
    _plan(cls)
    return cls.__dict__["__frc_descriptor__"]


def _to_value(self) -> FrcStruct:
    """Convert this instance to an FrcStruct, fields in declared order."""
    fields = []
    for plan in _plan(type(self)):
        attr = getattr(self, plan.attr)
        if attr is None and plan.field.optional:
            continue
        fields.append((plan.field.name, plan.encode(attr)))
    return FrcStruct(type(self).__frc_type_name__, fields)


def _from_value(cls, value: FrcValue, context: Optional[SerializationContext] = None):
    """
    Build an instance from an FrcStruct.

    Raises:
        SchemaMismatch: If ``value`` is not a struct of this type.
        MissingField: If a required field is absent.
        FieldTypeMismatch: If a field holds the wrong kind of value.
        UnknownField: If ``context`` rejects unknown fields and one is present.
    """
    plans = _plan(cls)
    resolved = resolve_fields(value, cls.__dict__["__frc_descriptor__"], context)
    kwargs = {}
    for plan in plans:
        item = resolved[plan.field.name]
        kwargs[plan.attr] = None if item is None else plan.decode(item, context)
    return cls(**kwargs)


# Helper function to check if an object is an FRC struct instance
def is_frcstruct(obj: Any) -> bool:
    """
    Check if an object is an instance of an @frcstruct decorated class.

    Args:
        obj: Object to check

    Returns:
        True if object is an FRC struct instance
    """
    return getattr(obj.__class__, "__is_frc_struct__", False) is True
