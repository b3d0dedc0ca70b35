"""
RCL Parser: token stream to AST.

Recursive descent over the lexer's tokens. Precedence comes only from
grouping: a group holds one logical operator at most, comparisons do not
chain, and arithmetic is flat and left-associative with square brackets
for sub-expressions.

Grammar:
    condition := logical END
    logical   := unary ((AND | OR) unary)?
    unary     := NOT unary | "(" logical ")" | relation
    relation  := update | comparison
    update    := (TRU:name | TRU:name(key)) ASSIGNMENT arith
    comparison:= arith (COMPARISON arith)?
    arith     := term (ARITHMETIC term)*
    term      := "[" comparison "]" | operand
    operand   := literal | reference | TR:name(key)

Usage:
    expr = parse_condition("FC:Score + [TR:Bonus * 2] > 10 AND NOT paused!bool")
"""

from __future__ import annotations

from .errors import GrammarError
from .lexer import Token, TokenKind, tokenize
from .nodes import BinaryOp, Expr, Literal, MappedReference, Reference, TrackerUpdate, UnaryOp


_LOGICAL = (TokenKind.AND, TokenKind.OR)

_SCALAR_REFERENCES = (
    TokenKind.FOREIGN_CALL,
    TokenKind.TRACKER,
    TokenKind.TRACKER_UPDATE,
    TokenKind.GLOBAL_VARIABLE,
    TokenKind.IDENTIFIER,
)


def _is_update_target(token: Token) -> bool:
    return token.kind == TokenKind.TRACKER_UPDATE or (
        token.kind == TokenKind.MAPPED_TRACKER and token.update
    )


class _Parser:
    """Parser state over one token list."""

    def __init__(self, tokens: list[Token]):
        end_column = tokens[-1].column + len(tokens[-1].text) if tokens else 0
        self.tokens = list(tokens) + [Token(TokenKind.END, "", end_column)]
        self.pos = 0

    # ==================== Cursor ====================

    def _peek(self) -> Token:
        return self.tokens[self.pos]

    def _advance(self) -> Token:
        token = self.tokens[self.pos]
        if token.kind != TokenKind.END:
            self.pos += 1
        return token

    def _expect(self, kind: TokenKind, what: str) -> Token:
        token = self._peek()
        if token.kind != kind:
            raise GrammarError(f"Expected {what}, got {_describe(token)}", column=token.column)
        return self._advance()

    def _expect_end(self) -> None:
        token = self._peek()
        if token.kind != TokenKind.END:
            raise GrammarError(f"Unexpected {_describe(token)}", column=token.column)

    # ==================== Productions ====================

    def condition(self) -> Expr:
        expr = self._logical()
        self._expect_end()
        return expr

    def key(self) -> Expr:
        expr = self._arith()
        self._expect_end()
        return expr

    def _logical(self) -> Expr:
        left = self._unary()
        if self._peek().kind not in _LOGICAL:
            return left
        op = self._advance()
        right = self._unary()
        extra = self._peek()
        if extra.kind in _LOGICAL:
            raise GrammarError(
                f"Group has more than one logical operator ('{op.text}' and '{extra.text}'); add parentheses",
                column=extra.column,
            )
        return BinaryOp(op.value, left, right)

    def _unary(self) -> Expr:
        token = self._peek()
        if token.kind == TokenKind.NOT:
            self._advance()
            return UnaryOp(self._unary())
        if token.kind == TokenKind.LPAREN:
            self._advance()
            expr = self._logical()
            self._expect(TokenKind.RPAREN, "')'")
            return expr
        return self._relation()

    def _relation(self) -> Expr:
        if _is_update_target(self._peek()):
            return self._update()
        expr = self._comparison()
        token = self._peek()
        if token.kind == TokenKind.ASSIGNMENT:
            raise GrammarError(
                f"Assignment '{token.text}' requires a TRU: tracker target",
                column=token.column,
            )
        return expr

    def _update(self) -> Expr:
        target = self._operand(allow_update=True)
        token = self._peek()
        if token.kind != TokenKind.ASSIGNMENT:
            raise GrammarError(
                f"Tracker update needs an assignment operator, got {_describe(token)}",
                column=token.column,
            )
        self._advance()
        value = self._arith()
        return TrackerUpdate(target=target, op=token.value, value=value)

    def _comparison(self) -> Expr:
        left = self._arith()
        if self._peek().kind != TokenKind.COMPARISON:
            return left
        op = self._advance()
        right = self._arith()
        extra = self._peek()
        if extra.kind == TokenKind.COMPARISON:
            raise GrammarError("Comparisons do not chain; use AND", column=extra.column)
        return BinaryOp(op.value, left, right)

    def _arith(self) -> Expr:
        left = self._term()
        while self._peek().kind == TokenKind.ARITHMETIC:
            op = self._advance()
            right = self._term()
            left = BinaryOp(op.value, left, right)
        return left

    def _term(self) -> Expr:
        if self._peek().kind == TokenKind.LBRACKET:
            self._advance()
            expr = self._comparison()
            self._expect(TokenKind.RBRACKET, "']'")
            return expr
        return self._operand()

    def _operand(self, allow_update: bool = False) -> Expr:
        token = self._peek()
        if token.is_literal:
            self._advance()
            return Literal(token)
        if _is_update_target(token) and not allow_update:
            raise GrammarError(
                f"'{token.text}' may only appear as the target of a tracker update",
                column=token.column,
            )
        if token.kind == TokenKind.MAPPED_TRACKER:
            self._advance()
            return MappedReference(token=token, key=_Parser(list(token.key)).key())
        if token.kind in _SCALAR_REFERENCES:
            self._advance()
            return Reference(token)
        raise GrammarError(f"Expected an operand, got {_describe(token)}", column=token.column)


def _describe(token: Token) -> str:
    if token.kind == TokenKind.END:
        return "end of text"
    return f"'{token.text}'"


def parse_tokens(tokens: list[Token]) -> Expr:
    """
    Parse an already-lexed condition.

    Raises:
        GrammarError: If the tokens do not form a condition
    """
    if not tokens:
        raise GrammarError("Condition is empty")
    return _Parser(tokens).condition()


def parse_condition(text: str) -> Expr:
    """
    Parse condition or expression text into an AST.

    Args:
        text: RCL text

    Returns:
        Root expression node

    Raises:
        GrammarError: If the text is not a well-formed condition
    """
    return parse_tokens(tokenize(text))
