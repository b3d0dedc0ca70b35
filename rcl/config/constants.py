"""
Centralized constants for the rule codec.

Word sizes, reference prefixes and the type names accepted in policy
documents. Everything the execution engine depends on lives in
rcl.codec.types; this module holds the textual side of the language.
"""

from typing import List


# ==================== Word Sizes ====================

UINT256_MAX = 2**256 - 1
ADDRESS_MAX = 2**160 - 1


# ==================== Reference Syntax ====================

FOREIGN_CALL_PREFIX = "FC:"
TRACKER_PREFIX = "TR:"
TRACKER_UPDATE_PREFIX = "TRU:"
GLOBAL_VARIABLE_PREFIX = "GV:"

# token!type
RETYPE_SEPARATOR = "!"

# TR:name~index, internal to decompilation
MAPPED_INDEX_SEPARATOR = "~"

# Static event parameter holding a byte string
BYTES_SUFFIX = ":bytes"

# Suffixes the decompiler emits on foreign calls whose literal partner
# needs re-typing to survive re-compilation.
COERCIBLE_TYPES = ("address", "bool")


# ==================== Policy Types ====================

SUPPORTED_TRACKER_TYPES: List[str] = [
    "uint256",
    "string",
    "address",
    "bytes",
    "bool",
]

SUPPORTED_ARRAY_TYPES: List[str] = [
    "uint256[]",
    "address[]",
    "bool[]",
    "string[]",
    "bytes[]",
]

SUPPORTED_PARAMETER_TYPES: List[str] = SUPPORTED_TRACKER_TYPES + SUPPORTED_ARRAY_TYPES


def split_function_parameters(signature: str) -> List[str]:
    """
    Extract the parameter types from a function signature.

    Args:
        signature: e.g. "transfer(address,uint256)"

    Returns:
        Parameter type names in order; empty for "fn()" or a bare name
    """
    start = signature.find("(")
    end = signature.rfind(")")
    if start == -1 or end <= start:
        return []
    inner = signature[start + 1:end].strip()
    if not inner:
        return []
    return [part.strip() for part in inner.split(",")]
