"""
Reference Validator.

Resolves every reference token (FC:, TR:, TRU:, mapped trackers, GV: and
argument names) against a SymbolContext. Violations are collected, not
raised; any violation invalidates the document.
"""

from __future__ import annotations

import difflib
import logging
from typing import Iterable, Iterator

from .errors import GrammarError, TypeCoercionError
from .lexer import Token, TokenKind, tokenize
from .placeholders import validate_retype
from .symbols import SymbolContext
from .types import GlobalVariable, ValidationError, ValidationErrorCode, ValidationResult

logger = logging.getLogger(__name__)


def _suggest(name: str, candidates: list[str]) -> tuple[str, ...]:
    return tuple(difflib.get_close_matches(name, candidates, n=3, cutoff=0.6))


def _reference_error(message: str, field: str, token: Token, suggestions=()) -> ValidationError:
    return ValidationError(
        code=ValidationErrorCode.REFERENCE,
        message=message,
        location=field,
        token=token.value,
        suggestions=tuple(suggestions),
    )


def check_reference_tokens(
    tokens: Iterable[Token],
    context: SymbolContext,
    field: str,
) -> Iterator[ValidationError]:
    """
    Yield one ValidationError per unresolved reference in a token stream.

    Args:
        tokens: Lexed tokens (mapped tracker keys are checked recursively)
        context: Symbol tables of the active calling function
        field: Field name reported with each violation
    """
    for token in tokens:
        if not token.is_reference:
            continue

        if token.retype is not None:
            try:
                validate_retype(token.retype)
            except TypeCoercionError as e:
                yield ValidationError(
                    code=ValidationErrorCode.TYPE_COERCION,
                    message=str(e),
                    location=field,
                    token=token.text,
                )

        name = token.value
        match token.kind:
            case TokenKind.FOREIGN_CALL:
                if context.foreign_call(name) is None:
                    yield _reference_error(
                        f"Foreign call '{name}' is not declared",
                        field, token, _suggest(name, context.names("foreign_call")),
                    )
            case TokenKind.TRACKER | TokenKind.TRACKER_UPDATE:
                if context.tracker(name) is None:
                    if context.mapped_tracker(name) is not None:
                        yield _reference_error(
                            f"Mapped tracker '{name}' is used without a key; write {token.text}(key)",
                            field, token,
                        )
                    else:
                        yield _reference_error(
                            f"Tracker '{name}' is not declared",
                            field, token, _suggest(name, context.names("tracker")),
                        )
            case TokenKind.MAPPED_TRACKER:
                if context.mapped_tracker(name) is None:
                    if context.tracker(name) is not None:
                        yield _reference_error(
                            f"Tracker '{name}' is not a mapped tracker and takes no key",
                            field, token,
                        )
                    else:
                        yield _reference_error(
                            f"Mapped tracker '{name}' is not declared",
                            field, token, _suggest(name, context.names("mapped_tracker")),
                        )
                yield from check_reference_tokens(token.key, context, field)
            case TokenKind.GLOBAL_VARIABLE:
                if name not in GlobalVariable.__members__:
                    yield _reference_error(
                        f"Unknown global value 'GV:{name}'",
                        field, token, _suggest(name, list(GlobalVariable.__members__)),
                    )
            case TokenKind.IDENTIFIER:
                if context.argument(name) is None:
                    yield _reference_error(
                        f"Argument '{name}' is not declared for calling function "
                        f"'{context.calling_function}'",
                        field, token, _suggest(name, context.names("argument")),
                    )


def _grammar_error(error: GrammarError, field: str) -> ValidationError:
    return ValidationError(code=ValidationErrorCode.GRAMMAR, message=str(error), location=field)


def validate_references(text: str, context: SymbolContext, field: str = "condition") -> ValidationResult:
    """
    Validate every reference in condition or expression text.

    Args:
        text: RCL text
        context: Symbol tables of the rule's calling function
        field: Field name reported with each violation

    Returns:
        ValidationResult; unlexable text yields a single GRAMMAR error
    """
    try:
        tokens = tokenize(text)
    except GrammarError as e:
        return ValidationResult.from_errors([_grammar_error(e, field)])
    errors = list(check_reference_tokens(tokens, context, field))
    if errors:
        logger.debug("%d unresolved reference(s) in %s", len(errors), field)
    return ValidationResult.from_errors(errors)


def validate_values_to_pass(values: str, context: SymbolContext, field: str = "valuesToPass") -> ValidationResult:
    """
    Validate a foreign call's comma-separated value list.

    Each entry is a single reference (FC:, TR:, TRU:, TR:name(key), GV:)
    or a bare name matching a calling-function argument.

    Examples:
        validate_values_to_pass("to, FC:Score, TR:Limit", context)
    """
    errors: list[ValidationError] = []
    if not values or not values.strip():
        return ValidationResult.from_errors(errors)

    for position, entry in enumerate(values.split(",")):
        entry = entry.strip()
        entry_field = f"{field}[{position}]"
        try:
            tokens = tokenize(entry)
        except GrammarError as e:
            errors.append(_grammar_error(e, entry_field))
            continue
        if len(tokens) != 1 or not tokens[0].is_reference:
            errors.append(ValidationError(
                code=ValidationErrorCode.REFERENCE,
                message=f"Value '{entry}' must be a single reference or argument name",
                location=entry_field,
                token=entry,
            ))
            continue
        errors.extend(check_reference_tokens(tokens, context, entry_field))

    return ValidationResult.from_errors(errors)
