"""
Literal encoding.

Literals occupy one unsigned 256-bit word in the instruction set:
- numbers and hex literals are stored as their value
- true/false are stored as 1/0
- quoted strings are stored as keccak256(abi.encode(string))
- quoted 0x-hex text is a bytes literal, stored as keccak256(abi.encode(bytes))

Hashed literals are recovered through RawDataReplacement entries.
"""

from __future__ import annotations

import re

from Crypto.Hash import keccak
from eth_abi import encode
from eth_utils import to_checksum_address

from ..config.constants import ADDRESS_MAX, UINT256_MAX
from .errors import LiteralRangeError, TypeCoercionError
from .lexer import Token, TokenKind
from .types import PType

_BYTES_LITERAL = re.compile(r"^0x(?:[0-9a-fA-F]{2})*$")


def keccak256(data: bytes) -> bytes:
    """Keccak-256 digest (the pre-standard SHA-3 padding used on-chain)."""
    digest = keccak.new(digest_bits=256)
    digest.update(data)
    return digest.digest()


def is_bytes_literal(text: str) -> bool:
    """Quoted text of the form 0x<even number of hex digits>."""
    return bool(_BYTES_LITERAL.match(text))


def hash_string_literal(text: str) -> int:
    return int.from_bytes(keccak256(encode(["string"], [text])), "big")


def hash_bytes_literal(text: str) -> int:
    return int.from_bytes(keccak256(encode(["bytes"], [bytes.fromhex(text[2:])])), "big")


def encode_literal(token: Token) -> tuple[int, PType | None]:
    """
    Encode a literal token as an instruction word.

    Args:
        token: NUMBER, HEX, BOOLEAN or STRING token

    Returns:
        Tuple of (word, raw data type). The raw data type is PType.STRING or
        PType.BYTES for hashed literals and None otherwise.

    Raises:
        LiteralRangeError: If a number does not fit in 256 bits
        ValueError: If the token is not a literal
    """
    if token.kind in (TokenKind.NUMBER, TokenKind.HEX):
        if token.value > UINT256_MAX:
            raise LiteralRangeError(token.text, column=token.column)
        return token.value, None
    if token.kind == TokenKind.BOOLEAN:
        return (1 if token.value else 0), None
    if token.kind == TokenKind.STRING:
        if is_bytes_literal(token.value):
            return hash_bytes_literal(token.value), PType.BYTES
        return hash_string_literal(token.value), PType.STRING
    raise ValueError(f"Token {token.text!r} is not a literal")


def format_address(value: int) -> str:
    """
    Render a word as a checksummed 20-byte address.

    Raises:
        TypeCoercionError: If the value does not fit in 160 bits
    """
    if not 0 <= value <= ADDRESS_MAX:
        raise TypeCoercionError("address", f"value {value} does not fit in 20 bytes")
    return to_checksum_address(value.to_bytes(20, "big"))


def can_coerce_literal(value: int, type_name: str) -> bool:
    """True when coerce_literal has a rendering for value in that type."""
    if type_name == "bool":
        return value in (0, 1)
    if type_name == "address":
        return 0 <= value <= ADDRESS_MAX
    return False


def coerce_literal(value: int, type_name: str) -> str:
    """
    Render a literal word next to a re-typed placeholder.

    Args:
        value: Literal word
        type_name: Suffix type of the partner placeholder ("bool" or "address")

    Returns:
        "true"/"false" or a checksummed address

    Raises:
        TypeCoercionError: If the value has no representation in that type
    """
    if type_name == "bool":
        if value not in (0, 1):
            raise TypeCoercionError("bool", f"value {value} is neither 0 nor 1")
        return "true" if value == 1 else "false"
    if type_name == "address":
        return format_address(value)
    raise TypeCoercionError(type_name, "only bool and address literals can be re-typed")
