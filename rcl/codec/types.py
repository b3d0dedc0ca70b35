"""
Codec type definitions.

Enums and frozen dataclasses shared by the compiler, decompiler and
validators. Enum values are wire values consumed by the execution engine
and must not be renumbered.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum, IntEnum
from typing import Any

from .errors import GrammarError, TypeCoercionError, UnresolvedReferenceError


# =============================================================================
# Parameter types
# =============================================================================

class PType(IntEnum):
    """
    Parameter type enumeration used by placeholders, trackers and effects.

    Array types collapse into two buckets: arrays of fixed-width elements
    (uint256[], address[], bool[]) and arrays of dynamic elements
    (string[], bytes[]).
    """

    ADDRESS = 0
    STRING = 1
    UINT256 = 2
    BOOL = 3
    VOID = 4
    BYTES = 5
    STATIC_TYPE_ARRAY = 6
    DYNAMIC_TYPE_ARRAY = 7

    @classmethod
    def from_name(cls, name: str) -> "PType":
        """
        Resolve a Solidity-style type name.

        Args:
            name: Type name (e.g., "uint256", "address[]")

        Returns:
            Matching PType

        Raises:
            TypeCoercionError: If the name is not a supported type
        """
        key = name.strip() if isinstance(name, str) else name
        if key in _PTYPE_BY_NAME:
            return _PTYPE_BY_NAME[key]
        raise TypeCoercionError(str(name), "unsupported type name")

    @property
    def type_name(self) -> str:
        """Canonical type name (scalar types only; arrays return the bucket name)."""
        return _NAME_BY_PTYPE[self]


_PTYPE_BY_NAME: dict[str, PType] = {
    "address": PType.ADDRESS,
    "string": PType.STRING,
    "uint256": PType.UINT256,
    "bool": PType.BOOL,
    "void": PType.VOID,
    "bytes": PType.BYTES,
    "uint256[]": PType.STATIC_TYPE_ARRAY,
    "address[]": PType.STATIC_TYPE_ARRAY,
    "bool[]": PType.STATIC_TYPE_ARRAY,
    "string[]": PType.DYNAMIC_TYPE_ARRAY,
    "bytes[]": PType.DYNAMIC_TYPE_ARRAY,
}

_NAME_BY_PTYPE: dict[PType, str] = {
    PType.ADDRESS: "address",
    PType.STRING: "string",
    PType.UINT256: "uint256",
    PType.BOOL: "bool",
    PType.VOID: "void",
    PType.BYTES: "bytes",
    PType.STATIC_TYPE_ARRAY: "static_type_array",
    PType.DYNAMIC_TYPE_ARRAY: "dynamic_type_array",
}


# =============================================================================
# Opcodes
# =============================================================================

class Opcode(IntEnum):
    """
    Canonical opcode numbering of the instruction set.

    Operand arity and rendering live in opcodes.OPCODE_REGISTRY.
    """

    NUM = 0       # literal
    NOT = 1
    PLH = 2       # placeholder reference
    ASSIGN = 3
    PLHM = 4      # mapped placeholder (tracker index, key address)
    ADD = 5
    SUB = 6
    MUL = 7
    DIV = 8
    LT = 9
    GT = 10
    EQ = 11
    AND = 12
    OR = 13
    GTEQL = 14
    LTEQL = 15
    NOTEQ = 16
    TRU = 17      # tracker update
    TRUM = 18     # mapped-tracker update


# =============================================================================
# Placeholders
# =============================================================================

class PlaceholderKind(str, Enum):
    """Reference kinds that share the placeholder encoding."""

    ARGUMENT = "argument"
    FOREIGN_CALL = "foreign_call"
    TRACKER = "tracker"
    MAPPED_TRACKER = "mapped_tracker"
    GLOBAL_VARIABLE = "global_variable"


class PlaceholderFlag(IntEnum):
    """Flag values for non-global placeholder kinds."""

    ARGUMENT = 0x00
    FOREIGN_CALL = 0x01
    TRACKER = 0x02


class GlobalVariable(IntEnum):
    """
    Fixed global values. The enum value is the placeholder flag.
    """

    MSG_SENDER = 0x04
    BLOCK_TIMESTAMP = 0x08
    MSG_DATA = 0x0C
    BLOCK_NUMBER = 0x10
    TX_ORIGIN = 0x14

    @property
    def p_type(self) -> PType:
        if self in (GlobalVariable.MSG_SENDER, GlobalVariable.TX_ORIGIN):
            return PType.ADDRESS
        if self == GlobalVariable.MSG_DATA:
            return PType.BYTES
        return PType.UINT256


@dataclass(frozen=True)
class Placeholder:
    """
    A typed reference cell substituted into an expression at run time.

    Attributes:
        kind: Which symbol table the index addresses
        type_specific_index: Index within that table (argument position,
            foreign call index, tracker index; 0 for globals)
        p_type: Value type the engine will load
        global_variable: Which global value (GLOBAL_VARIABLE kind only)
        mapped_tracker_key_index: Placeholder-table index of the key
            reference for mapped trackers keyed by a reference, else None
    """

    kind: PlaceholderKind
    type_specific_index: int
    p_type: PType
    global_variable: GlobalVariable | None = None
    mapped_tracker_key_index: int | None = None

    def __post_init__(self):
        if (self.kind == PlaceholderKind.GLOBAL_VARIABLE) != (self.global_variable is not None):
            raise ValueError(
                f"Placeholder kind {self.kind.value} is inconsistent with "
                f"global_variable={self.global_variable!r}"
            )
        if self.type_specific_index < 0:
            raise ValueError(f"type_specific_index must be >= 0, got {self.type_specific_index}")

    @property
    def flags(self) -> int:
        """Engine-side flag value for this placeholder."""
        if self.kind == PlaceholderKind.ARGUMENT:
            return int(PlaceholderFlag.ARGUMENT)
        if self.kind == PlaceholderKind.FOREIGN_CALL:
            return int(PlaceholderFlag.FOREIGN_CALL)
        if self.kind in (PlaceholderKind.TRACKER, PlaceholderKind.MAPPED_TRACKER):
            return int(PlaceholderFlag.TRACKER)
        return int(self.global_variable)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "kind": self.kind.value,
            "typeSpecificIndex": self.type_specific_index,
            "pType": int(self.p_type),
            "flags": self.flags,
        }
        if self.global_variable is not None:
            result["globalVariable"] = self.global_variable.name
        if self.mapped_tracker_key_index is not None:
            result["mappedTrackerKeyIndex"] = self.mapped_tracker_key_index
        return result

    @classmethod
    def from_flags(cls, flags: int, index: int, p_type: PType) -> "Placeholder":
        """
        Build a placeholder from engine-side fields.

        Flag 0x02 yields TRACKER; only a symbol context can tell whether the
        index names a mapped tracker (see placeholders.placeholder_from_flags).
        Any flag that is neither a call, a tracker nor a global value
        addresses an argument.
        """
        if flags == PlaceholderFlag.FOREIGN_CALL:
            return cls(PlaceholderKind.FOREIGN_CALL, index, p_type)
        if flags == PlaceholderFlag.TRACKER:
            return cls(PlaceholderKind.TRACKER, index, p_type)
        if flags in GlobalVariable._value2member_map_:
            return cls(PlaceholderKind.GLOBAL_VARIABLE, 0, p_type, global_variable=GlobalVariable(flags))
        return cls(PlaceholderKind.ARGUMENT, index, p_type)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Placeholder":
        """Create from dict; entries without "kind" are read by their flags."""
        if "kind" not in data:
            placeholder = cls.from_flags(
                int(data["flags"]), int(data["typeSpecificIndex"]), PType(int(data["pType"]))
            )
            key_index = data.get("mappedTrackerKeyIndex")
            if key_index is None:
                return placeholder
            return replace(placeholder, mapped_tracker_key_index=key_index)
        global_name = data.get("globalVariable")
        return cls(
            kind=PlaceholderKind(data["kind"]),
            type_specific_index=int(data["typeSpecificIndex"]),
            p_type=PType(int(data["pType"])),
            global_variable=GlobalVariable[global_name] if global_name else None,
            mapped_tracker_key_index=data.get("mappedTrackerKeyIndex"),
        )


# =============================================================================
# Compiled artifacts
# =============================================================================

@dataclass(frozen=True)
class RawDataReplacement:
    """
    Original text of a string/bytes literal stored as a hash in the bytecode.

    Attributes:
        instruction_set_index: Position of the literal's operand cell
        argument_type: PType.STRING or PType.BYTES
        original_data: Literal text without quotes
    """

    instruction_set_index: int
    argument_type: PType
    original_data: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "instructionSetIndex": self.instruction_set_index,
            "argumentType": int(self.argument_type),
            "originalData": self.original_data,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RawDataReplacement":
        return cls(
            instruction_set_index=int(data["instructionSetIndex"]),
            argument_type=PType(int(data["argumentType"])),
            original_data=str(data["originalData"]),
        )


@dataclass(frozen=True)
class CompiledExpression:
    """The {InstructionSet, Placeholders, RawData} triple."""

    instruction_set: tuple[int, ...]
    placeholders: tuple[Placeholder, ...] = ()
    raw_data: tuple[RawDataReplacement, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "instructionSet": list(self.instruction_set),
            "placeholders": [p.to_dict() for p in self.placeholders],
            "rawData": [r.to_dict() for r in self.raw_data],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CompiledExpression":
        return cls(
            instruction_set=tuple(int(cell) for cell in data.get("instructionSet", [])),
            placeholders=tuple(Placeholder.from_dict(p) for p in data.get("placeholders", [])),
            raw_data=tuple(RawDataReplacement.from_dict(r) for r in data.get("rawData", [])),
        )


# =============================================================================
# Effects
# =============================================================================

class EffectKind(IntEnum):
    """Effect kinds (wire values)."""

    REVERT = 0
    EVENT = 1
    EXPRESSION = 2


@dataclass(frozen=True)
class Effect:
    """
    A rule side-effect.

    Attributes:
        kind: REVERT, EVENT or EXPRESSION
        text: 0x-prefixed hex of the UTF-8 message (REVERT/EVENT)
        dynamic_param: True when the event parameter is a placeholder
        p_type: Type of the event parameter (VOID when there is none)
        param: ABI-encoded static value, or ABI-encoded placeholder index
        expression: Private compiled expression (EXPRESSION effects, and
            the placeholder table of dynamic events)
    """

    kind: EffectKind
    text: str = "0x"
    dynamic_param: bool = False
    p_type: PType = PType.VOID
    param: bytes = b""
    expression: CompiledExpression | None = None

    @property
    def has_param(self) -> bool:
        return self.p_type != PType.VOID

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": int(self.kind),
            "text": self.text,
            "dynamicParam": self.dynamic_param,
            "pType": int(self.p_type),
            "param": "0x" + self.param.hex(),
            "expression": self.expression.to_dict() if self.expression else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Effect":
        param = str(data.get("param", "0x"))
        expression = data.get("expression")
        return cls(
            kind=EffectKind(int(data["kind"])),
            text=str(data.get("text", "0x")),
            dynamic_param=bool(data.get("dynamicParam", False)),
            p_type=PType(int(data.get("pType", PType.VOID))),
            param=bytes.fromhex(param[2:] if param.startswith("0x") else param),
            expression=CompiledExpression.from_dict(expression) if expression else None,
        )


# =============================================================================
# Validation results
# =============================================================================

class ValidationErrorCode(str, Enum):
    """Error codes for grammar/reference validation."""

    GRAMMAR = "GRAMMAR"
    REFERENCE = "REFERENCE"
    TYPE_COERCION = "TYPE_COERCION"
    TRACKER_VALUE = "TRACKER_VALUE"
    UNSUPPORTED_TYPE = "UNSUPPORTED_TYPE"


@dataclass(frozen=True)
class ValidationError:
    """A single validation violation."""

    code: ValidationErrorCode
    message: str
    location: str | None = None
    token: str | None = None
    suggestions: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "code": self.code.value,
            "message": self.message,
        }
        if self.location:
            result["location"] = self.location
        if self.token:
            result["token"] = self.token
        if self.suggestions:
            result["suggestions"] = list(self.suggestions)
        return result

    def __str__(self) -> str:
        s = self.message
        if self.suggestions:
            s += f" (did you mean: {', '.join(self.suggestions)}?)"
        if self.location:
            s += f": Field {self.location}"
        return s


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating one field or a whole document."""

    is_valid: bool
    errors: tuple[ValidationError, ...] = field(default_factory=tuple)

    @classmethod
    def from_errors(cls, errors) -> "ValidationResult":
        errors = tuple(errors)
        return cls(is_valid=not errors, errors=errors)

    @property
    def message(self) -> str:
        """One message per violation, newline separated."""
        return "\n".join(str(e) for e in self.errors)

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "errors": [e.to_dict() for e in self.errors],
        }

    def raise_for_errors(self) -> None:
        """
        Raise the error type of the first violation, carrying all of them.

        Raises:
            GrammarError, UnresolvedReferenceError or TypeCoercionError
        """
        if self.is_valid:
            return
        first = self.errors[0].code
        if first == ValidationErrorCode.GRAMMAR:
            raise GrammarError(self.message, errors=self.errors)
        if first == ValidationErrorCode.TYPE_COERCION:
            raise TypeCoercionError(self.errors[0].token or "", self.message, errors=self.errors)
        raise UnresolvedReferenceError(self.message, errors=self.errors)


def format_validation_errors(errors) -> str:
    """
    Format validation errors for display.

    Args:
        errors: Iterable of ValidationError

    Returns:
        Formatted string for display
    """
    errors = list(errors)
    if not errors:
        return "No errors."

    lines = [
        "=" * 60,
        "RULE VALIDATION FAILED",
        "=" * 60,
    ]
    for i, error in enumerate(errors, 1):
        lines.append(f"\n{i}. [{error.code.value}]")
        lines.append(f"   {error.message}")
        if error.location:
            lines.append(f"   Field: {error.location}")
        if error.token:
            lines.append(f"   Token: {error.token}")
        if error.suggestions:
            lines.append(f"   Suggestions: {list(error.suggestions)}")
    lines.append("\n" + "=" * 60)
    return "\n".join(lines)
