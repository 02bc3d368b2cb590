"""
Unit tests for SerializationContext.
"""

import pytest

from frcvalue import (
    SerializationContext, UnknownFieldPolicy, DEFAULT_CONTEXT, JSON_MAX_SAFE_INTEGER,
)


def test_default_context():
    assert DEFAULT_CONTEXT.unknown_fields is UnknownFieldPolicy.IGNORE
    assert DEFAULT_CONTEXT.max_safe_integer == JSON_MAX_SAFE_INTEGER == 2 ** 53 - 1
    assert not DEFAULT_CONTEXT.rejects_unknown_fields


def test_policy_from_string():
    context = SerializationContext(unknown_fields="reject")
    assert context.unknown_fields is UnknownFieldPolicy.REJECT
    assert context.rejects_unknown_fields


def test_invalid_settings():
    with pytest.raises(ValueError):
        SerializationContext(unknown_fields="warn")
    with pytest.raises(ValueError):
        SerializationContext(max_safe_integer=-1)


def test_repr():
    assert repr(SerializationContext()) == (
        "SerializationContext(unknown_fields='ignore', max_safe_integer=9007199254740991)"
    )
