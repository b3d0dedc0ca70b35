"""
RCL tokenizer.

Turns condition text into a typed token stream. Whitespace only separates
tokens; parentheses and operators need no padding. Mapped tracker syntax
`TR:Name(key)` is a single token carrying the key's own tokens, so its
parentheses never take part in grouping.

Usage:
    tokens = tokenize("FC:IsActive!bool == true AND TR:Balances(to) > 10")
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Any

from ..config.constants import (
    FOREIGN_CALL_PREFIX,
    GLOBAL_VARIABLE_PREFIX,
    RETYPE_SEPARATOR,
    TRACKER_PREFIX,
    TRACKER_UPDATE_PREFIX,
)
from .errors import GrammarError


class TokenKind(Enum):
    """Token categories."""
    LPAREN = auto()
    RPAREN = auto()
    LBRACKET = auto()
    RBRACKET = auto()
    COMMA = auto()
    AND = auto()
    OR = auto()
    NOT = auto()
    COMPARISON = auto()
    ARITHMETIC = auto()
    ASSIGNMENT = auto()
    FOREIGN_CALL = auto()
    TRACKER = auto()
    TRACKER_UPDATE = auto()
    MAPPED_TRACKER = auto()
    GLOBAL_VARIABLE = auto()
    NUMBER = auto()
    HEX = auto()
    BOOLEAN = auto()
    STRING = auto()
    IDENTIFIER = auto()
    END = auto()


# Token kinds that name a declared symbol
REFERENCE_KINDS = frozenset({
    TokenKind.FOREIGN_CALL,
    TokenKind.TRACKER,
    TokenKind.TRACKER_UPDATE,
    TokenKind.MAPPED_TRACKER,
    TokenKind.GLOBAL_VARIABLE,
    TokenKind.IDENTIFIER,
})

LITERAL_KINDS = frozenset({
    TokenKind.NUMBER,
    TokenKind.HEX,
    TokenKind.BOOLEAN,
    TokenKind.STRING,
})


@dataclass(frozen=True)
class Token:
    """
    A lexed token.

    Attributes:
        kind: Token category
        text: Source text of the token
        column: Zero-based offset in the source
        value: Name for references, int for numbers, str for strings,
            bool for booleans, operator text for operators
        retype: Re-typing suffix (`token!type`), if any
        key: Key tokens of a mapped tracker reference
        update: True for `TRU:` mapped references
    """
    kind: TokenKind
    text: str
    column: int
    value: Any = None
    retype: str | None = None
    key: tuple["Token", ...] = ()
    update: bool = False

    @property
    def is_reference(self) -> bool:
        return self.kind in REFERENCE_KINDS

    @property
    def is_literal(self) -> bool:
        return self.kind in LITERAL_KINDS


_TWO_CHAR_OPERATORS = {
    "==": TokenKind.COMPARISON,
    "!=": TokenKind.COMPARISON,
    ">=": TokenKind.COMPARISON,
    "<=": TokenKind.COMPARISON,
    "+=": TokenKind.ASSIGNMENT,
    "-=": TokenKind.ASSIGNMENT,
    "*=": TokenKind.ASSIGNMENT,
    "/=": TokenKind.ASSIGNMENT,
}

_ONE_CHAR_TOKENS = {
    "(": TokenKind.LPAREN,
    ")": TokenKind.RPAREN,
    "[": TokenKind.LBRACKET,
    "]": TokenKind.RBRACKET,
    ",": TokenKind.COMMA,
    "<": TokenKind.COMPARISON,
    ">": TokenKind.COMPARISON,
    "+": TokenKind.ARITHMETIC,
    "-": TokenKind.ARITHMETIC,
    "*": TokenKind.ARITHMETIC,
    "/": TokenKind.ARITHMETIC,
    "=": TokenKind.ASSIGNMENT,
}

_KEYWORDS = {
    "AND": TokenKind.AND,
    "OR": TokenKind.OR,
    "NOT": TokenKind.NOT,
}

_PREFIX_KINDS = {
    FOREIGN_CALL_PREFIX: TokenKind.FOREIGN_CALL,
    TRACKER_PREFIX: TokenKind.TRACKER,
    TRACKER_UPDATE_PREFIX: TokenKind.TRACKER_UPDATE,
    GLOBAL_VARIABLE_PREFIX: TokenKind.GLOBAL_VARIABLE,
}


def _is_name_start(ch: str) -> bool:
    return ch.isascii() and (ch.isalpha() or ch == "_")


def _is_name_char(ch: str) -> bool:
    return ch.isascii() and (ch.isalnum() or ch == "_")


def _is_type_char(ch: str) -> bool:
    return _is_name_char(ch) or ch in "[]"


class _Scanner:
    """Single-pass scanner over one source string."""

    def __init__(self, text: str, offset: int = 0):
        self.text = text
        self.offset = offset
        self.pos = 0

    def _column(self, pos: int | None = None) -> int:
        return self.offset + (self.pos if pos is None else pos)

    def _peek(self, ahead: int = 0) -> str:
        index = self.pos + ahead
        return self.text[index] if index < len(self.text) else ""

    def _scan_while(self, predicate) -> str:
        start = self.pos
        while self.pos < len(self.text) and predicate(self.text[self.pos]):
            self.pos += 1
        return self.text[start:self.pos]

    def _scan_retype(self) -> str | None:
        # "!=" is an operator, not a suffix
        if self._peek() == RETYPE_SEPARATOR and _is_name_start(self._peek(1)):
            self.pos += 1
            return self._scan_while(_is_type_char)
        return None

    def _expect_boundary(self, start: int) -> None:
        nxt = self._peek()
        if nxt and (_is_name_char(nxt) or nxt in "\"'"):
            raise GrammarError(
                f"Unexpected character '{nxt}' after '{self.text[start:self.pos]}'",
                column=self._column(),
            )

    def tokens(self) -> list[Token]:
        result: list[Token] = []
        while self.pos < len(self.text):
            ch = self.text[self.pos]
            if ch.isspace():
                self.pos += 1
                continue
            result.append(self._next_token(ch))
        return result

    def _next_token(self, ch: str) -> Token:
        start = self.pos
        pair = self.text[start:start + 2]
        if pair in _TWO_CHAR_OPERATORS:
            self.pos += 2
            return Token(_TWO_CHAR_OPERATORS[pair], pair, self._column(start), value=pair)
        if ch in _ONE_CHAR_TOKENS:
            self.pos += 1
            return Token(_ONE_CHAR_TOKENS[ch], ch, self._column(start), value=ch)
        if ch == '"':
            return self._string()
        if ch in "0123456789":
            return self._number()
        if _is_name_start(ch):
            return self._word()
        raise GrammarError(f"Unexpected character '{ch}'", column=self._column(start))

    def _string(self) -> Token:
        start = self.pos
        end = self.text.find('"', start + 1)
        if end == -1:
            raise GrammarError("Unterminated string literal", column=self._column(start))
        self.pos = end + 1
        self._expect_boundary(start)
        return Token(
            TokenKind.STRING,
            self.text[start:self.pos],
            self._column(start),
            value=self.text[start + 1:end],
        )

    def _number(self) -> Token:
        start = self.pos
        if self.text[start:start + 2] in ("0x", "0X"):
            self.pos += 2
            digits = self._scan_while(lambda c: c in "0123456789abcdefABCDEF")
            if not digits:
                raise GrammarError("Hex literal has no digits", column=self._column(start))
            self._expect_boundary(start)
            text = self.text[start:self.pos]
            return Token(TokenKind.HEX, text, self._column(start), value=int(digits, 16))
        digits = self._scan_while(lambda c: c in "0123456789")
        self._expect_boundary(start)
        return Token(TokenKind.NUMBER, digits, self._column(start), value=int(digits))

    def _word(self) -> Token:
        start = self.pos
        word = self._scan_while(_is_name_char)

        if self._peek() == ":":
            prefix = word + ":"
            if prefix not in _PREFIX_KINDS:
                raise GrammarError(f"Unknown reference prefix '{prefix}'", column=self._column(start))
            self.pos += 1
            return self._reference(start, prefix)

        if word in _KEYWORDS:
            self._expect_boundary(start)
            return Token(_KEYWORDS[word], word, self._column(start), value=word)
        if word in ("true", "false"):
            self._expect_boundary(start)
            return Token(TokenKind.BOOLEAN, word, self._column(start), value=word == "true")

        retype = self._scan_retype()
        self._expect_boundary(start)
        return Token(
            TokenKind.IDENTIFIER,
            self.text[start:self.pos],
            self._column(start),
            value=word,
            retype=retype,
        )

    def _reference(self, start: int, prefix: str) -> Token:
        if not _is_name_start(self._peek()):
            raise GrammarError(f"Reference '{prefix}' has no name", column=self._column(start))
        name = self._scan_while(_is_name_char)
        kind = _PREFIX_KINDS[prefix]

        key: tuple[Token, ...] = ()
        if self._peek() == "(" and kind in (TokenKind.TRACKER, TokenKind.TRACKER_UPDATE):
            key = self._mapped_key(start)

        retype = self._scan_retype()
        self._expect_boundary(start)
        text = self.text[start:self.pos]
        if key:
            return Token(
                TokenKind.MAPPED_TRACKER,
                text,
                self._column(start),
                value=name,
                retype=retype,
                key=key,
                update=kind == TokenKind.TRACKER_UPDATE,
            )
        return Token(kind, text, self._column(start), value=name, retype=retype)

    def _mapped_key(self, start: int) -> tuple[Token, ...]:
        open_pos = self.pos
        depth = 0
        while self.pos < len(self.text):
            ch = self.text[self.pos]
            if ch == '"':
                # parentheses inside a string key are data
                end = self.text.find('"', self.pos + 1)
                if end == -1:
                    raise GrammarError("Unterminated string literal", column=self._column())
                self.pos = end + 1
                continue
            if ch == "(":
                depth += 1
            elif ch == ")":
                depth -= 1
                if depth == 0:
                    break
            self.pos += 1
        if depth != 0:
            raise GrammarError("Unclosed mapped tracker key", column=self._column(start))
        inner = self.text[open_pos + 1:self.pos]
        self.pos += 1
        key = _Scanner(inner, offset=self._column(open_pos + 1)).tokens()
        if not key:
            raise GrammarError("Mapped tracker key is empty", column=self._column(start))
        return tuple(key)


def tokenize(text: str) -> list[Token]:
    """
    Tokenize RCL text.

    Args:
        text: Condition or expression text

    Returns:
        Tokens in source order (no END token)

    Raises:
        GrammarError: On characters or literals the language does not allow
    """
    if not isinstance(text, str):
        raise GrammarError(f"Expected text, got {type(text).__name__}")
    return _Scanner(text).tokens()
