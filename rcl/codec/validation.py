"""
Condition validation: grammar, structure and references in one pass.

Pure function: (text, context) -> ValidationResult. Used by the compiler
before emitting bytecode and by the policy validator for every string
field it owns.
"""

from __future__ import annotations

from typing import Iterable, Iterator

from ..config.constants import UINT256_MAX
from .errors import GrammarError
from .grammar import check_grammar
from .lexer import Token, TokenKind, tokenize
from .parser import parse_tokens
from .references import check_reference_tokens
from .symbols import SymbolContext
from .types import ValidationError, ValidationErrorCode, ValidationResult


def _literal_range_errors(tokens: Iterable[Token], field: str) -> Iterator[ValidationError]:
    for token in tokens:
        if token.kind in (TokenKind.NUMBER, TokenKind.HEX) and token.value > UINT256_MAX:
            yield ValidationError(
                code=ValidationErrorCode.GRAMMAR,
                message=f"Literal '{token.text}' exceeds uint256 range",
                location=field,
                token=token.text,
            )
        if token.key:
            yield from _literal_range_errors(token.key, field)


def validate_condition(text: str, context: SymbolContext, field: str = "condition") -> ValidationResult:
    """
    Validate condition or expression text against a calling function's symbols.

    Grammar problems stop validation (references in malformed text are not
    meaningful); otherwise every reference and literal violation is reported.

    Args:
        text: RCL text
        context: Symbol tables of the rule's calling function
        field: Field name reported with each violation

    Returns:
        ValidationResult
    """
    grammar = check_grammar(text)
    if not grammar.valid:
        return ValidationResult.from_errors([ValidationError(
            code=ValidationErrorCode.GRAMMAR,
            message=grammar.reason or "Invalid grammar",
            location=field,
        )])

    tokens = tokenize(text)
    try:
        parse_tokens(tokens)
    except GrammarError as e:
        return ValidationResult.from_errors([ValidationError(
            code=ValidationErrorCode.GRAMMAR,
            message=str(e),
            location=field,
        )])

    errors = list(_literal_range_errors(tokens, field))
    errors.extend(check_reference_tokens(tokens, context, field))
    return ValidationResult.from_errors(errors)
