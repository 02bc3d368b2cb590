"""
Error Types for FRC Value Serialization.

Every error raised by this package derives from FrcValueError. Each error
also derives from the closest builtin exception, so callers that only know
about TypeError / KeyError / ValueError keep working.

Taxonomy:
    - TypeMismatch: a value was accessed as the wrong variant
    - FieldNotFound: a struct value has no field with the requested name
    - DecodeError: base for every recoverable decode-time failure
        - MalformedWire: bytes/text do not parse as the wire format at all
        - SchemaMismatch: input parses but does not describe a valid value
            - UnknownField: extra struct field under the REJECT policy
        - MissingField: required struct field absent
        - FieldTypeMismatch: struct field present with the wrong tag
    - SchemaConflict: two different descriptors claim one type name
    - RegistryNotInitialized: lookup before initialize_registry()
    - UnsupportedLayout: descriptor cannot be laid out as a packed struct
"""

from typing import Any, Optional


class FrcValueError(Exception):
    """Base class for all frcvalue errors."""


# ============================================================================
# Value Access Errors
# ============================================================================

class TypeMismatch(FrcValueError, TypeError):
    """A value was accessed as a variant it does not hold."""

    def __init__(self, expected: Any, actual: Any):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Expected {_tag_name(expected)} value, got {_tag_name(actual)}")


class FieldNotFound(FrcValueError, KeyError):
    """A struct value has no field with the requested name."""

    def __init__(self, type_name: str, field: str):
        self.type_name = type_name
        self.field = field
        super().__init__(f"Struct {type_name!r} has no field {field!r}")

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.args[0]


# ============================================================================
# Decode Errors
# ============================================================================

class DecodeError(FrcValueError, ValueError):
    """Base class for recoverable decode-time failures."""


class MalformedWire(DecodeError):
    """The input does not parse as the target wire format."""


class SchemaMismatch(DecodeError):
    """The input parses but does not resolve to a valid value shape."""


class UnknownField(SchemaMismatch):
    """A struct value carries a field its descriptor does not declare."""

    def __init__(self, type_name: str, field: str):
        self.type_name = type_name
        self.field = field
        super().__init__(f"Struct {type_name!r} has unknown field {field!r}")


class MissingField(DecodeError):
    """A required struct field is absent."""

    def __init__(self, type_name: str, field: str):
        self.type_name = type_name
        self.field = field
        super().__init__(f"Struct {type_name!r} is missing required field {field!r}")


class FieldTypeMismatch(DecodeError):
    """A struct field is present but holds the wrong kind of value."""

    def __init__(self, type_name: str, field: str, expected: Any, actual: Any):
        self.type_name = type_name
        self.field = field
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Field {field!r} of struct {type_name!r} should be "
            f"{_tag_name(expected)}, got {_tag_name(actual)}"
        )


# ============================================================================
# Registry and Layout Errors
# ============================================================================

class SchemaConflict(FrcValueError):
    """Two different descriptors were registered under one type name."""

    def __init__(self, type_name: str, existing: Any = None, incoming: Any = None):
        self.type_name = type_name
        self.existing = existing
        self.incoming = incoming
        super().__init__(
            f"Type name {type_name!r} is already registered with a different descriptor"
        )


class RegistryNotInitialized(FrcValueError, RuntimeError):
    """The registry was queried before initialize_registry() ran."""


class UnsupportedLayout(FrcValueError, TypeError):
    """A descriptor contains fields that have no packed representation."""


def _tag_name(tag: Optional[Any]) -> str:
    if tag is None:
        return "nothing"
    wire_name = getattr(tag, "wire_name", None)
    return wire_name if wire_name else str(tag)
