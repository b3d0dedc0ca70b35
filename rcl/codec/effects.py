"""
Effect Codec.

A rule carries positive and negative effects, each one of:

    revert("message")            REVERT; message stored as 0x-hex UTF-8
    emit "message"               EVENT without a parameter
    emit "message", <param>      EVENT with a static or dynamic parameter
    <expression>                 EXPRESSION; compiled like a condition

Event parameters:
    FC:x, TR:x, GV:X, argName    dynamic: param is abi.encode(uint256 index)
                                 into the effect's private placeholder table
    0x<40 hex>                   ADDRESS
    0x<hex>:bytes                BYTES
    123                          UINT256
    true / false                 BOOL
    anything else                STRING (surrounding double quotes dropped)

Static parameters are ABI-encoded with eth_abi.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from eth_abi import decode, encode
from eth_utils import to_checksum_address

from ..config.constants import BYTES_SUFFIX, UINT256_MAX
from .compiler import compile_condition
from .decompiler import decompile
from .errors import GrammarError, LiteralRangeError, PlaceholderResolutionError
from .lexer import Token, TokenKind, tokenize
from .placeholders import decode_placeholder, encode_placeholder
from .references import check_reference_tokens
from .symbols import SymbolContext
from .types import (
    CompiledExpression,
    Effect,
    EffectKind,
    PType,
    ValidationError,
    ValidationErrorCode,
    ValidationResult,
)
from .validation import validate_condition

logger = logging.getLogger(__name__)

_REVERT = re.compile(r"""^revert\s*\(\s*(?:"([^"]*)"|'([^']*)')\s*\)$""", re.DOTALL)
_ADDRESS = re.compile(r"^0x[0-9a-fA-F]{40}$")
_BYTES_PARAM = re.compile(r"^0x((?:[0-9a-fA-F]{2})*)" + re.escape(BYTES_SUFFIX) + r"$")
_DECIMAL = re.compile(r"^[0-9]+$")

# Reference kinds that fit in a single event placeholder
_DYNAMIC_PARAM_KINDS = (
    TokenKind.FOREIGN_CALL,
    TokenKind.TRACKER,
    TokenKind.GLOBAL_VARIABLE,
)

_STATIC_ABI_TYPES = {
    PType.ADDRESS: "address",
    PType.STRING: "string",
    PType.UINT256: "uint256",
    PType.BOOL: "bool",
    PType.BYTES: "bytes",
}


# =============================================================================
# Parsing
# =============================================================================

@dataclass(frozen=True)
class EffectText:
    """
    Effect text split into its parts.

    Attributes:
        kind: Effect kind
        message: Revert/event message (REVERT and EVENT)
        param: Raw event parameter text, or None
        expression: Expression text (EXPRESSION)
    """
    kind: EffectKind
    message: str = ""
    param: str | None = None
    expression: str = ""


def parse_effect_text(text: str) -> EffectText:
    """
    Split effect text by kind.

    Raises:
        GrammarError: For malformed revert/emit forms
    """
    if not isinstance(text, str) or not text.strip():
        raise GrammarError("Effect is empty")
    stripped = text.strip()

    if stripped.startswith("revert"):
        match = _REVERT.match(stripped)
        if match is None:
            raise GrammarError(f"Malformed revert effect '{stripped}'; expected revert(\"message\")")
        message = match.group(1) if match.group(1) is not None else match.group(2)
        return EffectText(EffectKind.REVERT, message=message)

    if stripped == "emit" or stripped.startswith(("emit ", "emit\t")):
        return _parse_event(stripped[len("emit"):].strip())

    return EffectText(EffectKind.EXPRESSION, expression=stripped)


def _parse_event(body: str) -> EffectText:
    if not body:
        raise GrammarError("Event effect has no message")

    if body.startswith('"'):
        end = body.find('"', 1)
        if end == -1:
            raise GrammarError("Unterminated event message")
        message = body[1:end]
        rest = body[end + 1:].strip()
        if not rest:
            return EffectText(EffectKind.EVENT, message=message)
        if not rest.startswith(","):
            raise GrammarError(f"Unexpected text after event message: '{rest}'")
        param = rest[1:].strip()
    else:
        message, sep, param = body.partition(",")
        message = message.strip()
        if not sep:
            return EffectText(EffectKind.EVENT, message=message)
        param = param.strip()

    if not param:
        raise GrammarError("Event parameter is empty")
    return EffectText(EffectKind.EVENT, message=message, param=param)


def _reference_param(param: str, context: SymbolContext) -> Token | None:
    """Return the token when the parameter is a single placeholder reference."""
    try:
        tokens = tokenize(param)
    except GrammarError:
        return None
    if len(tokens) != 1:
        return None
    token = tokens[0]
    if token.kind in _DYNAMIC_PARAM_KINDS:
        return token
    if token.kind == TokenKind.IDENTIFIER and context.argument(token.value) is not None:
        return token
    return None


def _static_param(param: str) -> tuple[PType, object]:
    if _ADDRESS.match(param):
        return PType.ADDRESS, to_checksum_address(param)
    bytes_match = _BYTES_PARAM.match(param)
    if bytes_match:
        return PType.BYTES, bytes.fromhex(bytes_match.group(1))
    if _DECIMAL.match(param):
        value = int(param)
        if value > UINT256_MAX:
            raise LiteralRangeError(param)
        return PType.UINT256, value
    if param in ("true", "false"):
        return PType.BOOL, param == "true"
    if len(param) >= 2 and param.startswith('"') and param.endswith('"'):
        return PType.STRING, param[1:-1]
    return PType.STRING, param


# =============================================================================
# Encode / decode
# =============================================================================

def _hex_text(message: str) -> str:
    return "0x" + message.encode("utf-8").hex()


def encode_effect(text: str, context: SymbolContext) -> Effect:
    """
    Encode effect text.

    Args:
        text: Effect text (revert, emit or expression)
        context: Symbol tables of the rule's calling function

    Returns:
        Effect

    Raises:
        GrammarError: Malformed effect or expression
        UnresolvedReferenceError: Undeclared name in a parameter or expression
        TypeCoercionError: Unrepresentable re-typing suffix
    """
    parsed = parse_effect_text(text)

    if parsed.kind == EffectKind.REVERT:
        return Effect(EffectKind.REVERT, text=_hex_text(parsed.message))

    if parsed.kind == EffectKind.EXPRESSION:
        return Effect(EffectKind.EXPRESSION, expression=compile_condition(parsed.expression, context))

    if parsed.param is None:
        return Effect(EffectKind.EVENT, text=_hex_text(parsed.message))

    token = _reference_param(parsed.param, context)
    if token is not None:
        placeholder = encode_placeholder(token, context)
        return Effect(
            EffectKind.EVENT,
            text=_hex_text(parsed.message),
            dynamic_param=True,
            p_type=placeholder.p_type,
            param=encode(["uint256"], [0]),
            expression=CompiledExpression(instruction_set=(), placeholders=(placeholder,)),
        )

    p_type, value = _static_param(parsed.param)
    return Effect(
        EffectKind.EVENT,
        text=_hex_text(parsed.message),
        p_type=p_type,
        param=encode([_STATIC_ABI_TYPES[p_type]], [value]),
    )


def decode_hex_text(text: str) -> str:
    """
    Decode a 0x-hex UTF-8 message, dropping trailing NUL padding.

    Text that is not hex is returned unchanged.
    """
    body = text[2:] if text.startswith("0x") else text
    if not re.fullmatch(r"[0-9a-fA-F]*", body):
        return text
    try:
        return bytes.fromhex(body).decode("utf-8").rstrip("\0")
    except ValueError:
        return text


def _render_static_param(effect: Effect) -> str:
    abi_type = _STATIC_ABI_TYPES.get(effect.p_type)
    if abi_type is None:
        raise ValueError(f"Event parameter type {effect.p_type.name} is not supported")
    (value,) = decode([abi_type], effect.param)
    match effect.p_type:
        case PType.ADDRESS:
            return to_checksum_address(value)
        case PType.UINT256:
            return str(value)
        case PType.BOOL:
            return "true" if value else "false"
        case PType.BYTES:
            return "0x" + value.hex() + BYTES_SUFFIX
        case _:
            return f'"{value}"'


def _render_dynamic_param(effect: Effect, context: SymbolContext) -> str:
    (index,) = decode(["uint256"], effect.param)
    placeholders = effect.expression.placeholders if effect.expression else ()
    if not 0 <= index < len(placeholders):
        raise PlaceholderResolutionError("event placeholder", index, len(placeholders))
    return decode_placeholder(placeholders[index], context)


def decode_effect(effect: Effect, context: SymbolContext) -> str:
    """
    Render an effect as text.

    Args:
        effect: Encoded effect
        context: Symbol tables of the rule's calling function

    Returns:
        `revert('msg')`, `emit "msg"[, param]` or decompiled expression text
    """
    match effect.kind:
        case EffectKind.REVERT:
            message = decode_hex_text(effect.text)
            quote = '"' if "'" in message else "'"
            return f"revert({quote}{message}{quote})"
        case EffectKind.EVENT:
            text = f'emit "{decode_hex_text(effect.text)}"'
            if not effect.has_param:
                return text
            if effect.dynamic_param:
                return f"{text}, {_render_dynamic_param(effect, context)}"
            return f"{text}, {_render_static_param(effect)}"
        case EffectKind.EXPRESSION:
            if effect.expression is None:
                raise ValueError("Expression effect has no instruction set")
            return decompile(effect.expression, context)
    raise ValueError(f"Unknown effect kind {effect.kind!r}")


def validate_effect(text: str, context: SymbolContext, field: str = "effect") -> ValidationResult:
    """
    Validate effect text without encoding it.

    Returns:
        ValidationResult; every violation names `field`
    """
    try:
        parsed = parse_effect_text(text)
    except GrammarError as e:
        return ValidationResult.from_errors([
            ValidationError(code=ValidationErrorCode.GRAMMAR, message=str(e), location=field)
        ])

    if parsed.kind == EffectKind.EXPRESSION:
        return validate_condition(parsed.expression, context, field)
    if parsed.kind == EffectKind.REVERT or parsed.param is None:
        return ValidationResult.from_errors([])

    token = _reference_param(parsed.param, context)
    if token is not None:
        return ValidationResult.from_errors(check_reference_tokens([token], context, field))
    try:
        _static_param(parsed.param)
    except LiteralRangeError as e:
        return ValidationResult.from_errors([
            ValidationError(
                code=ValidationErrorCode.GRAMMAR,
                message=str(e),
                location=field,
                token=parsed.param,
            )
        ])
    return ValidationResult.from_errors([])
