"""
Codec error taxonomy.

Validation collects violations into ValidationResult; these exceptions are
raised when a caller asks for a compile/decompile that cannot proceed.
"""

from __future__ import annotations

from typing import Sequence


class RclError(Exception):
    """Base class for all codec errors."""


class GrammarError(RclError):
    """Malformed parentheses, operator arity, or unlexable text."""

    def __init__(self, message: str, column: int | None = None, errors: Sequence = ()):
        self.column = column
        self.errors = tuple(errors)
        if column is not None:
            message = f"{message} (column {column})"
        super().__init__(message)


class LiteralRangeError(GrammarError):
    """Numeric literal does not fit in an unsigned 256-bit word."""

    def __init__(self, literal: str, column: int | None = None):
        self.literal = literal
        super().__init__(f"Literal '{literal}' exceeds uint256 range", column=column)


class UnresolvedReferenceError(RclError):
    """A name in a condition, effect, or value list has no declaration."""

    def __init__(
        self,
        message: str,
        name: str | None = None,
        kind: str | None = None,
        errors: Sequence = (),
    ):
        self.name = name
        self.kind = kind
        self.errors = tuple(errors)
        super().__init__(message)


class UnknownOpcodeError(RclError):
    """The decompiler met an opcode outside the instruction table."""

    def __init__(self, opcode: int, position: int):
        self.opcode = opcode
        self.position = position
        super().__init__(f"Unknown opcode {opcode} at instruction position {position}")


class PlaceholderResolutionError(RclError):
    """An index is out of range for its table."""

    def __init__(self, table: str, index: int, size: int):
        self.table = table
        self.index = index
        self.size = size
        super().__init__(
            f"Index {index} out of range for {table} table (size {size})"
        )


class TypeCoercionError(RclError):
    """A re-typing suffix or literal requests an unrepresentable type."""

    def __init__(self, type_name: str, message: str, errors: Sequence = ()):
        self.type_name = type_name
        self.errors = tuple(errors)
        super().__init__(f"Cannot coerce to '{type_name}': {message}")


class MalformedInstructionSetError(RclError):
    """Bytecode that does not reduce to a single value."""

    def __init__(self, position: int, message: str):
        self.position = position
        super().__init__(f"Malformed instruction set at position {position}: {message}")
