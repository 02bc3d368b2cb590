"""
Serialization Context - configuration shared by codecs and struct decoding.
"""
from enum import Enum

# Largest integer a JSON consumer using IEEE 754 doubles holds exactly
JSON_MAX_SAFE_INTEGER = 2 ** 53 - 1


class UnknownFieldPolicy(Enum):
    """What struct decoding does with fields the descriptor does not declare."""
    IGNORE = "ignore"
    REJECT = "reject"


class SerializationContext:
    """Serialization configuration."""

    def __init__(self,
                 unknown_fields: UnknownFieldPolicy = UnknownFieldPolicy.IGNORE,
                 max_safe_integer: int = JSON_MAX_SAFE_INTEGER):
        """
        Args:
            unknown_fields: Policy for struct fields missing from the
                descriptor. IGNORE keeps decoding forward compatible.
            max_safe_integer: Integers with a larger magnitude are written
                by the JSON codec as string-wrapped numerals.
        """
        self.unknown_fields = UnknownFieldPolicy(unknown_fields)
        if max_safe_integer < 0:
            raise ValueError("max_safe_integer must not be negative")
        self.max_safe_integer = max_safe_integer

    @property
    def rejects_unknown_fields(self) -> bool:
        return self.unknown_fields is UnknownFieldPolicy.REJECT

    def __repr__(self) -> str:
        return (f"SerializationContext(unknown_fields={self.unknown_fields.value!r}, "
                f"max_safe_integer={self.max_safe_integer})")


DEFAULT_CONTEXT = SerializationContext()
