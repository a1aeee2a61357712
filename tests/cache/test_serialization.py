"""
Tests for value serialization.
"""

import pytest

from porpoise.cache.serialization import JsonSerializer
from porpoise.core.error_handling import SerializationError


@pytest.fixture
def serializer():
    return JsonSerializer()


def test_integers_are_bare_digits(serializer):
    """Test integers encode as plain decimal text usable by INCRBY."""
    assert serializer.dumps(6) == b"6"
    assert serializer.dumps(-42) == b"-42"
    assert serializer.loads(b"9") == 9


def test_strings_are_quoted(serializer):
    assert serializer.dumps("bar") == b'"bar"'


def test_compact_encoding(serializer):
    assert serializer.dumps({"a": [1, 2]}) == b'{"a":[1,2]}'


def test_unicode_values(serializer):
    data = serializer.dumps("héllo ☃")

    assert isinstance(data, bytes)
    assert serializer.loads(data) == "héllo ☃"


def test_none_is_a_value(serializer):
    assert serializer.dumps(None) == b"null"
    assert serializer.loads(b"null") is None


def test_tuple_becomes_list(serializer):
    assert serializer.loads(serializer.dumps((1, "a"))) == [1, "a"]


@pytest.mark.parametrize("value", [object(), b"raw", {1, 2}, float("nan")])
def test_unserializable_values(serializer, value):
    """Test values JSON cannot represent raise SerializationError."""
    with pytest.raises(SerializationError) as exc_info:
        serializer.dumps(value)

    assert exc_info.value.component == "serializer"


@pytest.mark.parametrize("data", [b"{not json", b"\xff\xfe", b""])
def test_undecodable_data(serializer, data):
    with pytest.raises(SerializationError):
        serializer.loads(data)
