"""
Tracker initial values.

Policy documents declare tracker initial values as text. Validation checks
the text against the tracker type; encoding produces the bytes the engine
stores:

    uint256   32-byte big-endian word
    address   abi.encode(address)
    bool      32-byte word, 1 or 0
    string    abi.encode(string)
    bytes     abi.encode(bytes) of the UTF-8 text
"""

from __future__ import annotations

import re
from typing import Any, Sequence

from eth_abi import encode
from eth_utils import to_checksum_address

from ..config.constants import SUPPORTED_TRACKER_TYPES, UINT256_MAX

_ADDRESS = re.compile(r"^0x[0-9a-fA-F]{40}$")


def _as_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value).strip()


def validate_tracker_value(type_name: str, value: Any) -> bool:
    """
    Check that an initial value fits a scalar tracker type.

    Args:
        type_name: Tracker type (uint256, address, bool, string, bytes)
        value: Initial value as written in the policy

    Returns:
        True if the value can be encoded as that type
    """
    type_name = (type_name or "").strip()
    if type_name not in SUPPORTED_TRACKER_TYPES or value is None:
        return False
    text = _as_text(value)

    if type_name == "uint256":
        return text.isascii() and text.isdigit() and int(text) <= UINT256_MAX
    if type_name == "address":
        return bool(_ADDRESS.match(text))
    if type_name == "bool":
        return text in ("true", "false")
    # string and bytes accept any text
    return True


def encode_tracker_value(type_name: str, value: Any) -> bytes:
    """
    Encode a scalar tracker initial value.

    Raises:
        ValueError: If the value does not fit the type
    """
    if not validate_tracker_value(type_name, value):
        raise ValueError(f"Initial value {value!r} does not match tracker type '{type_name}'")
    type_name = type_name.strip()
    text = _as_text(value)

    if type_name == "uint256":
        return int(text).to_bytes(32, "big")
    if type_name == "address":
        return encode(["address"], [to_checksum_address(text)])
    if type_name == "bool":
        return (1 if text == "true" else 0).to_bytes(32, "big")
    if type_name == "string":
        return encode(["string"], [text])
    return encode(["bytes"], [text.encode("utf-8")])


def encode_mapped_tracker_values(
    key_type: str,
    value_type: str,
    keys: Sequence[Any],
    values: Sequence[Any],
) -> tuple[tuple[bytes, ...], tuple[bytes, ...]]:
    """
    Encode a mapped tracker's initial entries element-wise.

    Returns:
        (encoded keys, encoded values)

    Raises:
        ValueError: On a count mismatch or an element that does not fit its type
    """
    if len(keys) != len(values):
        raise ValueError(
            f"Mapped tracker has {len(keys)} initial key(s) but {len(values)} initial value(s)"
        )
    if len(set(_as_text(k) for k in keys)) != len(keys):
        raise ValueError("Mapped tracker initial keys must be unique")
    return (
        tuple(encode_tracker_value(key_type, k) for k in keys),
        tuple(encode_tracker_value(value_type, v) for v in values),
    )
