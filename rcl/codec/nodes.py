"""
RCL AST node types.

Produced by parser.parse_condition, consumed by the compiler:
- Literal: number, hex, bool, string or bytes literal
- Reference: FC:/TR:/TRU:/GV: reference or argument name
- MappedReference: TR:name(key) / TRU:name(key)
- UnaryOp: NOT
- BinaryOp: arithmetic, comparison and AND/OR
- TrackerUpdate: TRU:name op= value
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from .lexer import Token, TokenKind


# =============================================================================
# Operand Nodes
# =============================================================================

@dataclass(frozen=True)
class Literal:
    """
    A literal operand.

    Attributes:
        token: NUMBER, HEX, BOOLEAN or STRING token

    Examples:
        Literal(<NUMBER 10>)
        Literal(<STRING "abc">)      # stored hashed, recovered from raw data
        Literal(<STRING "0x12ab">)   # bytes literal
    """
    token: Token

    def __post_init__(self):
        if not self.token.is_literal:
            raise ValueError(f"Literal: expected a literal token, got {self.token.kind.name}")

    def __repr__(self) -> str:
        return f"Lit({self.token.text})"


@dataclass(frozen=True)
class Reference:
    """
    A scalar reference: argument, foreign call, tracker or global value.

    Attributes:
        token: FOREIGN_CALL, TRACKER, TRACKER_UPDATE, GLOBAL_VARIABLE
            or IDENTIFIER token
    """
    token: Token

    @property
    def name(self) -> str:
        return self.token.value

    @property
    def kind(self) -> TokenKind:
        return self.token.kind

    def __repr__(self) -> str:
        return f"Ref({self.token.text})"


@dataclass(frozen=True)
class MappedReference:
    """
    A mapped tracker read (or update target) with exactly one key.

    Attributes:
        token: MAPPED_TRACKER token
        key: Key sub-expression
    """
    token: Token
    key: "Expr"

    @property
    def name(self) -> str:
        return self.token.value

    @property
    def update(self) -> bool:
        return self.token.update

    def __repr__(self) -> str:
        return f"MappedRef({self.name}, key={self.key!r})"


# =============================================================================
# Operator Nodes
# =============================================================================

@dataclass(frozen=True)
class UnaryOp:
    """Logical negation."""
    operand: "Expr"

    def __repr__(self) -> str:
        return f"Not({self.operand!r})"


@dataclass(frozen=True)
class BinaryOp:
    """
    A binary operation.

    Attributes:
        op: Operator text ("+", "==", "AND", ...)
        left: Left operand
        right: Right operand
    """
    op: str
    left: "Expr"
    right: "Expr"

    def __repr__(self) -> str:
        return f"({self.left!r} {self.op} {self.right!r})"


@dataclass(frozen=True)
class TrackerUpdate:
    """
    Assignment to a tracker.

    Attributes:
        target: TRU:name reference or TRU:name(key) mapped reference
        op: Assignment operator ("=", "+=", "-=", "*=", "/=")
        value: Value expression
    """
    target: Union[Reference, MappedReference]
    op: str
    value: "Expr"

    def __repr__(self) -> str:
        return f"Update({self.target!r} {self.op} {self.value!r})"


Expr = Union[Literal, Reference, MappedReference, UnaryOp, BinaryOp, TrackerUpdate]
