"""
Opcode Registry - single source of truth for instruction semantics.

Used by:
- The compiler (operator token -> opcode)
- The decompiler (operand arity, rendered symbol, compound symbol)

The engine consumes the numbering in types.Opcode. An older positional
numbering of the same set exists in historical bytecode dumps; only the
named enum is supported here.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto

from .types import Opcode


class OpcodeCategory(Enum):
    """How an opcode's operands are interpreted and rendered."""
    LITERAL = auto()      # operand is a raw word
    PLACEHOLDER = auto()  # operand is a placeholder-table index
    MAPPED = auto()       # tracker index + key address
    UNARY = auto()        # one memory address
    ARITHMETIC = auto()   # two memory addresses, rendered inline
    COMPARISON = auto()   # two memory addresses, rendered inline
    LOGICAL = auto()      # two memory addresses, rendered parenthesized
    ASSIGNMENT = auto()   # target address + value address
    UPDATE = auto()       # rewrites the previous cell into a tracker update


@dataclass(frozen=True)
class OpcodeSpec:
    """
    Specification for a single opcode.

    Attributes:
        opcode: Wire value
        arity: Number of operand cells following the opcode cell
        category: Operand interpretation
        symbol: Rendered RCL token ("" for non-operators)
        compound_symbol: Compound-assignment form for tracker updates
    """
    opcode: Opcode
    arity: int
    category: OpcodeCategory
    symbol: str = ""
    compound_symbol: str | None = None


# =============================================================================
# OPCODE REGISTRY
# =============================================================================

OPCODE_REGISTRY: dict[Opcode, OpcodeSpec] = {
    Opcode.NUM: OpcodeSpec(Opcode.NUM, 1, OpcodeCategory.LITERAL),
    Opcode.NOT: OpcodeSpec(Opcode.NOT, 1, OpcodeCategory.UNARY, "NOT"),
    Opcode.PLH: OpcodeSpec(Opcode.PLH, 1, OpcodeCategory.PLACEHOLDER),
    Opcode.ASSIGN: OpcodeSpec(Opcode.ASSIGN, 2, OpcodeCategory.ASSIGNMENT, "=", "="),
    Opcode.PLHM: OpcodeSpec(Opcode.PLHM, 2, OpcodeCategory.MAPPED),

    # Arithmetic
    Opcode.ADD: OpcodeSpec(Opcode.ADD, 2, OpcodeCategory.ARITHMETIC, "+", "+="),
    Opcode.SUB: OpcodeSpec(Opcode.SUB, 2, OpcodeCategory.ARITHMETIC, "-", "-="),
    Opcode.MUL: OpcodeSpec(Opcode.MUL, 2, OpcodeCategory.ARITHMETIC, "*", "*="),
    Opcode.DIV: OpcodeSpec(Opcode.DIV, 2, OpcodeCategory.ARITHMETIC, "/", "/="),

    # Comparison
    Opcode.LT: OpcodeSpec(Opcode.LT, 2, OpcodeCategory.COMPARISON, "<"),
    Opcode.GT: OpcodeSpec(Opcode.GT, 2, OpcodeCategory.COMPARISON, ">"),
    Opcode.EQ: OpcodeSpec(Opcode.EQ, 2, OpcodeCategory.COMPARISON, "=="),
    Opcode.GTEQL: OpcodeSpec(Opcode.GTEQL, 2, OpcodeCategory.COMPARISON, ">="),
    Opcode.LTEQL: OpcodeSpec(Opcode.LTEQL, 2, OpcodeCategory.COMPARISON, "<="),
    Opcode.NOTEQ: OpcodeSpec(Opcode.NOTEQ, 2, OpcodeCategory.COMPARISON, "!="),

    # Logical
    Opcode.AND: OpcodeSpec(Opcode.AND, 2, OpcodeCategory.LOGICAL, "AND"),
    Opcode.OR: OpcodeSpec(Opcode.OR, 2, OpcodeCategory.LOGICAL, "OR"),

    # Tracker updates
    Opcode.TRU: OpcodeSpec(Opcode.TRU, 3, OpcodeCategory.UPDATE),
    Opcode.TRUM: OpcodeSpec(Opcode.TRUM, 4, OpcodeCategory.UPDATE),
}

_OPCODE_BY_SYMBOL: dict[str, Opcode] = {
    spec.symbol: spec.opcode
    for spec in OPCODE_REGISTRY.values()
    if spec.symbol and spec.category != OpcodeCategory.UNARY
}

_OPCODE_BY_COMPOUND: dict[str, Opcode] = {
    spec.compound_symbol: spec.opcode
    for spec in OPCODE_REGISTRY.values()
    if spec.compound_symbol
}


# =============================================================================
# Lookup helpers
# =============================================================================

def is_known_opcode(value: int) -> bool:
    """Check whether a raw word is a valid opcode."""
    return value in Opcode._value2member_map_


def get_opcode_spec(opcode: Opcode | int) -> OpcodeSpec:
    """
    Get the spec for an opcode.

    Raises:
        KeyError: If the value is not an opcode
    """
    return OPCODE_REGISTRY[Opcode(opcode)]


def opcode_for_symbol(symbol: str) -> Opcode:
    """
    Map a binary operator token (e.g., "+", "==", "AND") to its opcode.

    Raises:
        KeyError: If the symbol is not a binary operator
    """
    return _OPCODE_BY_SYMBOL[symbol]


def opcode_for_compound(symbol: str) -> Opcode:
    """
    Map an assignment token ("=", "+=", ...) to the opcode computing its value.

    Raises:
        KeyError: If the symbol is not an assignment operator
    """
    return _OPCODE_BY_COMPOUND[symbol]


def compound_symbol(opcode: Opcode) -> str:
    """
    Compound-assignment form of an arithmetic/assignment opcode.

    Raises:
        ValueError: If the opcode has no compound form
    """
    spec = OPCODE_REGISTRY[opcode]
    if spec.compound_symbol is None:
        raise ValueError(f"Opcode {opcode.name} has no compound assignment form")
    return spec.compound_symbol
