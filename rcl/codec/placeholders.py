"""
Placeholder Codec.

Converts between reference text and typed placeholder records.

Decoded text forms:
    FC:<name>[!address|!bool]   foreign call, suffixed when its return type
                                needs literal re-typing
    TR:<name>                   tracker
    TR:<name>~<index>           mapped tracker (paired with its key later
                                by the decompiler)
    GV:<NAME>                   one of the five global values
    <argName>!<argType>         calling-function argument
"""

from __future__ import annotations

from dataclasses import replace

from ..config.constants import (
    COERCIBLE_TYPES,
    FOREIGN_CALL_PREFIX,
    GLOBAL_VARIABLE_PREFIX,
    MAPPED_INDEX_SEPARATOR,
    RETYPE_SEPARATOR,
    TRACKER_PREFIX,
)
from .errors import TypeCoercionError, UnresolvedReferenceError
from .lexer import Token, TokenKind
from .symbols import SymbolContext
from .types import GlobalVariable, Placeholder, PlaceholderKind, PType


# =============================================================================
# Suffix helpers
# =============================================================================

def split_retype_suffix(text: str) -> tuple[str, str | None]:
    """
    Split `token!type` into its parts.

    Examples:
        split_retype_suffix("FC:Owner!address")  # ("FC:Owner", "address")
        split_retype_suffix("TR:Count")          # ("TR:Count", None)
    """
    base, sep, suffix = text.rpartition(RETYPE_SEPARATOR)
    if not sep or not base or not suffix:
        return text, None
    return base, suffix


def validate_retype(type_name: str) -> PType:
    """
    Check that a re-typing suffix names a representable type.

    Raises:
        TypeCoercionError: For unknown types and void
    """
    p_type = PType.from_name(type_name)
    if p_type == PType.VOID:
        raise TypeCoercionError(type_name, "void has no values")
    return p_type


def parse_mapped_index(text: str) -> tuple[str, int] | None:
    """
    Parse decoded mapped tracker text `TR:<name>~<index>`.

    Returns:
        (name, index), or None when the text is not a mapped tracker
    """
    if not text.startswith(TRACKER_PREFIX) or MAPPED_INDEX_SEPARATOR not in text:
        return None
    name, _, index = text[len(TRACKER_PREFIX):].rpartition(MAPPED_INDEX_SEPARATOR)
    if not name or not index.isdigit():
        return None
    return name, int(index)


# =============================================================================
# Encode: reference token -> Placeholder
# =============================================================================

def _unresolved(kind: str, name: str) -> UnresolvedReferenceError:
    return UnresolvedReferenceError(
        f"{kind.replace('_', ' ').capitalize()} '{name}' is not declared",
        name=name,
        kind=kind,
    )


def encode_placeholder(
    token: Token,
    context: SymbolContext,
    mapped_tracker_key_index: int | None = None,
) -> Placeholder:
    """
    Resolve a reference token to its placeholder.

    The re-typing suffix is validated and then dropped: it only affects how
    literals are rendered, never the placeholder itself.

    Args:
        token: Reference token (FC:, TR:, TRU:, mapped, GV: or argument name)
        context: Symbol tables of the rule's calling function
        mapped_tracker_key_index: Placeholder index of a mapped tracker's key

    Returns:
        Placeholder record

    Raises:
        UnresolvedReferenceError: If the name is not declared
        TypeCoercionError: If the suffix names an unrepresentable type
    """
    if token.retype is not None:
        validate_retype(token.retype)

    name = token.value
    if token.kind == TokenKind.FOREIGN_CALL:
        fc = context.foreign_call(name)
        if fc is None:
            raise _unresolved("foreign_call", name)
        return Placeholder(PlaceholderKind.FOREIGN_CALL, fc.index, fc.return_type)

    if token.kind in (TokenKind.TRACKER, TokenKind.TRACKER_UPDATE):
        tracker = context.tracker(name)
        if tracker is None:
            raise _unresolved("tracker", name)
        return Placeholder(PlaceholderKind.TRACKER, tracker.index, tracker.p_type)

    if token.kind == TokenKind.MAPPED_TRACKER:
        mapped = context.mapped_tracker(name)
        if mapped is None:
            raise _unresolved("mapped_tracker", name)
        return Placeholder(
            PlaceholderKind.MAPPED_TRACKER,
            mapped.index,
            mapped.value_type,
            mapped_tracker_key_index=mapped_tracker_key_index,
        )

    if token.kind == TokenKind.GLOBAL_VARIABLE:
        if name not in GlobalVariable.__members__:
            raise _unresolved("global_variable", name)
        gv = GlobalVariable[name]
        return Placeholder(PlaceholderKind.GLOBAL_VARIABLE, 0, gv.p_type, global_variable=gv)

    if token.kind == TokenKind.IDENTIFIER:
        argument = context.argument(name)
        if argument is None:
            raise _unresolved("argument", name)
        return Placeholder(PlaceholderKind.ARGUMENT, argument.position, argument.p_type)

    raise ValueError(f"Token {token.text!r} is not a reference")


def placeholder_from_flags(flags: int, index: int, p_type: PType, context: SymbolContext) -> Placeholder:
    """
    Rebuild a placeholder from engine-side fields.

    Flag 0x02 covers both tracker kinds; the context decides which one the
    index belongs to.
    """
    placeholder = Placeholder.from_flags(flags, index, p_type)
    if placeholder.kind == PlaceholderKind.TRACKER and context.is_mapped_tracker_index(index):
        return replace(placeholder, kind=PlaceholderKind.MAPPED_TRACKER)
    return placeholder


# =============================================================================
# Decode: Placeholder -> reference text
# =============================================================================

def decode_placeholder(placeholder: Placeholder, context: SymbolContext) -> str:
    """
    Render a placeholder as RCL reference text.

    Raises:
        PlaceholderResolutionError: If the index is out of range in its table
    """
    index = placeholder.type_specific_index
    match placeholder.kind:
        case PlaceholderKind.FOREIGN_CALL:
            fc = context.foreign_call_at(index)
            text = f"{FOREIGN_CALL_PREFIX}{fc.name}"
            if fc.return_type.type_name in COERCIBLE_TYPES:
                text += f"{RETYPE_SEPARATOR}{fc.return_type.type_name}"
            return text
        case PlaceholderKind.TRACKER:
            return f"{TRACKER_PREFIX}{context.tracker_at(index).name}"
        case PlaceholderKind.MAPPED_TRACKER:
            mapped = context.mapped_tracker_at(index)
            return f"{TRACKER_PREFIX}{mapped.name}{MAPPED_INDEX_SEPARATOR}{mapped.index}"
        case PlaceholderKind.GLOBAL_VARIABLE:
            return f"{GLOBAL_VARIABLE_PREFIX}{placeholder.global_variable.name}"
        case PlaceholderKind.ARGUMENT:
            argument = context.argument_at(index)
            return f"{argument.name}{RETYPE_SEPARATOR}{argument.type_name}"
