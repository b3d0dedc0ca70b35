"""
Tests for tracker initial values.

Validates that:
1. Each scalar type accepts exactly the text it can encode
2. Encoded values have the engine's byte layout
3. Mapped trackers pair keys and values one to one
"""

import pytest
from eth_abi import decode

from rcl.codec.trackers import encode_mapped_tracker_values, encode_tracker_value, validate_tracker_value


class TestValidateTrackerValue:
    """Type checks for initial values."""

    @pytest.mark.parametrize("type_name,value", [
        ("uint256", "0"),
        ("uint256", 42),
        ("uint256", str(2**256 - 1)),
        ("address", "0x1234567890123456789012345678901234567890"),
        ("bool", "true"),
        ("bool", False),
        ("string", "anything at all"),
        ("bytes", "0xdead"),
    ])
    def test_accepts(self, type_name, value):
        assert validate_tracker_value(type_name, value)

    @pytest.mark.parametrize("type_name,value", [
        ("uint256", "-1"),
        ("uint256", "1.5"),
        ("uint256", str(2**256)),
        ("address", "0x1234"),
        ("bool", "yes"),
        ("int8", "1"),
        ("uint256", None),
    ])
    def test_rejects(self, type_name, value):
        assert not validate_tracker_value(type_name, value)


class TestEncodeTrackerValue:
    """Byte layouts."""

    def test_uint256_word(self):
        assert encode_tracker_value("uint256", "258") == (258).to_bytes(32, "big")

    def test_bool_word(self):
        assert encode_tracker_value("bool", "true") == (1).to_bytes(32, "big")
        assert encode_tracker_value("bool", "false") == bytes(32)

    def test_address_abi(self):
        encoded = encode_tracker_value("address", "0x00000000000000000000000000000000000000aA")
        assert encoded == bytes(31) + b"\xaa"

    def test_string_abi(self):
        """Strings decode back through the ABI."""
        (value,) = decode(["string"], encode_tracker_value("string", "open"))
        assert value == "open"

    def test_bytes_are_utf8_text(self):
        (value,) = decode(["bytes"], encode_tracker_value("bytes", "abc"))
        assert value == b"abc"

    def test_mismatch_raises(self):
        with pytest.raises(ValueError):
            encode_tracker_value("bool", "2")


class TestMappedTrackerValues:
    """Element-wise encoding of initial entries."""

    def test_pairs(self):
        keys, values = encode_mapped_tracker_values(
            "address", "uint256",
            ["0x00000000000000000000000000000000000000aA"], ["100"],
        )
        assert keys == (bytes(31) + b"\xaa",)
        assert values == ((100).to_bytes(32, "big"),)

    def test_count_mismatch(self):
        with pytest.raises(ValueError, match="initial value"):
            encode_mapped_tracker_values("uint256", "uint256", ["1", "2"], ["1"])

    def test_duplicate_keys(self):
        with pytest.raises(ValueError, match="unique"):
            encode_mapped_tracker_values("uint256", "bool", ["1", "1"], ["true", "false"])

    def test_bad_element(self):
        with pytest.raises(ValueError):
            encode_mapped_tracker_values("uint256", "bool", ["1"], ["maybe"])

    def test_empty(self):
        assert encode_mapped_tracker_values("uint256", "uint256", [], []) == ((), ())
