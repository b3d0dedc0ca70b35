"""
Grammar Validator.

Checks parenthesis grouping and logical-operator arity of condition text.
Operator precedence in RCL comes only from grouping: every group may hold
at most one AND or OR, splitting it into exactly two operands.

Algorithm:
    The whole condition is an implicit root group. Tokens are folded left
    to right over a stack of open groups: "(" opens a group, ")" closes the
    innermost one, records it as finalized and leaves a single PAREN_GROUP
    placeholder in its parent; any other token joins the current group.

    - A ")" with no open group, a group left open, or empty text: invalid.
    - Groups that are exactly one PAREN_GROUP only add redundant wrapping
      and are skipped (this includes the root of "(A AND B)").
    - A single remaining group without AND/OR is a bare condition: valid.
    - Otherwise each group needs exactly one AND or OR with non-empty
      operands on both sides, or must be "NOT PAREN_GROUP".

Examples:
    validate_grammar("A AND B")          # True
    validate_grammar("A AND B OR C")     # False
    validate_grammar("(A AND B) OR C")   # True
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .errors import GrammarError
from .lexer import Token, TokenKind, tokenize

logger = logging.getLogger(__name__)

PAREN_GROUP = "PAREN_GROUP"

# An element of a group: a lexed token, or PAREN_GROUP for a closed subgroup
GroupItem = Token | str


@dataclass(frozen=True)
class GrammarResult:
    """
    Result of grammar validation.

    Attributes:
        valid: Whether the text is well grouped
        groups: Finalized groups, innermost first
        reason: Why the text is invalid (None when valid)
        column: Source offset of the violation, when known
    """
    valid: bool
    groups: tuple[tuple[GroupItem, ...], ...] = ()
    reason: str | None = None
    column: int | None = None

    def __bool__(self) -> bool:
        return self.valid


def _is_logical(item: GroupItem) -> bool:
    return isinstance(item, Token) and item.kind in (TokenKind.AND, TokenKind.OR)


def _render(group: tuple[GroupItem, ...]) -> str:
    return " ".join(item if isinstance(item, str) else item.text for item in group)


def _fold_groups(tokens: list[Token]) -> tuple[list[tuple[GroupItem, ...]], str | None, int | None]:
    """Fold tokens into finalized groups. Returns (groups, reason, column)."""
    root: list[GroupItem] = []
    stack: list[list[GroupItem]] = [root]
    opened_at: list[int] = []
    finalized: list[tuple[GroupItem, ...]] = []

    for token in tokens:
        if token.kind == TokenKind.LPAREN:
            stack.append([])
            opened_at.append(token.column)
        elif token.kind == TokenKind.RPAREN:
            if len(stack) == 1:
                return finalized, "Closing parenthesis without matching opening parenthesis", token.column
            group = stack.pop()
            opened_at.pop()
            if not group:
                return finalized, "Empty parenthesis group", token.column
            finalized.append(tuple(group))
            stack[-1].append(PAREN_GROUP)
        else:
            stack[-1].append(token)

    if len(stack) != 1:
        return finalized, "Unclosed parenthesis", opened_at[-1]

    if root != [PAREN_GROUP]:
        finalized.append(tuple(root))
    return finalized, None, None


def _check_group(group: tuple[GroupItem, ...]) -> str | None:
    """Check a finalized group holding more than a bare operand."""
    if len(group) == 2 and isinstance(group[0], Token) and group[0].kind == TokenKind.NOT \
            and group[1] == PAREN_GROUP:
        return None

    logical = [i for i, item in enumerate(group) if _is_logical(item)]
    if not logical:
        return f"Group '{_render(group)}' has no AND/OR operator"
    if len(logical) > 1:
        kinds = {group[i].kind for i in logical}
        if len(kinds) > 1:
            return f"Group '{_render(group)}' mixes AND and OR; add parentheses"
        return f"Group '{_render(group)}' has more than one {group[logical[0]].text}; add parentheses"

    split = logical[0]
    if split == 0 or split == len(group) - 1:
        return f"Group '{_render(group)}' is missing an operand for {group[split].text}"
    return None


def check_grammar(text: str) -> GrammarResult:
    """
    Validate grouping and logical-operator arity.

    Total over any input: never raises.

    Args:
        text: Condition text

    Returns:
        GrammarResult with the finalized groups or the first violation
    """
    try:
        tokens = tokenize(text)
    except GrammarError as e:
        return GrammarResult(valid=False, reason=str(e), column=e.column)

    if not tokens:
        return GrammarResult(valid=False, reason="Condition is empty")

    finalized, reason, column = _fold_groups(tokens)
    if reason is not None:
        return GrammarResult(valid=False, groups=tuple(finalized), reason=reason, column=column)

    groups = [g for g in finalized if g != (PAREN_GROUP,)]
    if not groups:
        return GrammarResult(valid=False, reason="Condition has no terms")

    if len(groups) == 1 and not any(_is_logical(item) for item in groups[0]):
        return GrammarResult(valid=True, groups=tuple(groups))

    for group in groups:
        problem = _check_group(group)
        if problem is not None:
            logger.debug("Grammar check failed: %s", problem)
            return GrammarResult(valid=False, groups=tuple(groups), reason=problem)

    return GrammarResult(valid=True, groups=tuple(groups))


def validate_grammar(text: str) -> bool:
    """Boolean form of check_grammar."""
    return check_grammar(text).valid
