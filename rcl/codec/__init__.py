"""
Rule Condition Language codec.

Text -> bytecode:
    validate_condition -> compile_condition -> CompiledExpression

Bytecode -> text:
    decompile(CompiledExpression, SymbolContext)

Design principles:
- Validation collects every violation, each naming its field
- Compilation refuses invalid text (raises with all violations attached)
- Decompiled text re-compiles to identical bytecode
- Everything is a frozen value object; no shared mutable state
"""

from .errors import (
    RclError,
    GrammarError,
    LiteralRangeError,
    UnresolvedReferenceError,
    UnknownOpcodeError,
    PlaceholderResolutionError,
    TypeCoercionError,
    MalformedInstructionSetError,
)
from .types import (
    PType,
    Opcode,
    PlaceholderKind,
    PlaceholderFlag,
    GlobalVariable,
    Placeholder,
    RawDataReplacement,
    CompiledExpression,
    EffectKind,
    Effect,
    ValidationErrorCode,
    ValidationError,
    ValidationResult,
    format_validation_errors,
)
from .opcodes import (
    OpcodeCategory,
    OpcodeSpec,
    OPCODE_REGISTRY,
    get_opcode_spec,
    is_known_opcode,
)
from .symbols import (
    ArgumentSymbol,
    ForeignCallSymbol,
    TrackerSymbol,
    MappedTrackerSymbol,
    CallingFunctionSymbol,
    SymbolContext,
    SymbolRegistry,
    parse_function_arguments,
)
from .lexer import Token, TokenKind, tokenize
from .grammar import GrammarResult, check_grammar, validate_grammar
from .parser import parse_condition
from .references import validate_references, validate_values_to_pass
from .placeholders import (
    decode_placeholder,
    encode_placeholder,
    placeholder_from_flags,
    split_retype_suffix,
)
from .validation import validate_condition
from .compiler import compile_condition
from .decompiler import decompile
from .effects import decode_effect, encode_effect, validate_effect
from .trackers import (
    encode_mapped_tracker_values,
    encode_tracker_value,
    validate_tracker_value,
)

__all__ = [
    # Errors
    "RclError",
    "GrammarError",
    "LiteralRangeError",
    "UnresolvedReferenceError",
    "UnknownOpcodeError",
    "PlaceholderResolutionError",
    "TypeCoercionError",
    "MalformedInstructionSetError",
    # Types
    "PType",
    "Opcode",
    "PlaceholderKind",
    "PlaceholderFlag",
    "GlobalVariable",
    "Placeholder",
    "RawDataReplacement",
    "CompiledExpression",
    "EffectKind",
    "Effect",
    "ValidationErrorCode",
    "ValidationError",
    "ValidationResult",
    "format_validation_errors",
    # Opcodes
    "OpcodeCategory",
    "OpcodeSpec",
    "OPCODE_REGISTRY",
    "get_opcode_spec",
    "is_known_opcode",
    # Symbols
    "ArgumentSymbol",
    "ForeignCallSymbol",
    "TrackerSymbol",
    "MappedTrackerSymbol",
    "CallingFunctionSymbol",
    "SymbolContext",
    "SymbolRegistry",
    "parse_function_arguments",
    # Text
    "Token",
    "TokenKind",
    "tokenize",
    "GrammarResult",
    "check_grammar",
    "validate_grammar",
    "parse_condition",
    # Validation
    "validate_condition",
    "validate_references",
    "validate_values_to_pass",
    # Placeholders
    "decode_placeholder",
    "encode_placeholder",
    "placeholder_from_flags",
    "split_retype_suffix",
    # Compile / decompile
    "compile_condition",
    "decompile",
    # Effects
    "encode_effect",
    "decode_effect",
    "validate_effect",
    # Trackers
    "validate_tracker_value",
    "encode_tracker_value",
    "encode_mapped_tracker_values",
]
