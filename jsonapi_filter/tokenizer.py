"""
Tokenizer for the `q` filter expression.

The expression is a whitespace-delimited sequence of identifiers and the
case-insensitive keywords `and`, `or`, `not`. Identifiers are not validated here;
an unknown identifier fails later when its parameter group is resolved.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum, auto

KEYWORD_AND = "and"
KEYWORD_OR = "or"
KEYWORD_NOT = "not"


class TokenKind(Enum):
    """Token kinds for the filter expression."""

    AND = auto()
    OR = auto()
    NOT = auto()
    VARIABLE = auto()  # Identifier referencing a filter[<id>] parameter group

    @property
    def is_operator(self) -> bool:
        return self is not TokenKind.VARIABLE

    @property
    def is_binary(self) -> bool:
        return self in (TokenKind.AND, TokenKind.OR)

    @property
    def precedence(self) -> int:
        """Binding strength; higher binds tighter. -1 for non-operators."""
        return _PRECEDENCE.get(self, -1)

    @property
    def right_associative(self) -> bool:
        # All operators are left-associative
        return False


_PRECEDENCE = {
    TokenKind.NOT: 3,
    TokenKind.AND: 2,
    TokenKind.OR: 1,
}

_KEYWORDS = {
    KEYWORD_AND: TokenKind.AND,
    KEYWORD_OR: TokenKind.OR,
    KEYWORD_NOT: TokenKind.NOT,
}


@dataclass(frozen=True, slots=True)
class Token:
    """A token from the filter expression."""

    text: str
    kind: TokenKind
    pos: int  # Index in the token stream, for error messages

    @classmethod
    def from_text(cls, text: str, pos: int = 0) -> Token:
        kind = _KEYWORDS.get(text.lower(), TokenKind.VARIABLE)
        return cls(text=text, kind=kind, pos=pos)


def split_expression(expression: str) -> list[str]:
    """Split a raw `q` value into whitespace-delimited words."""
    return expression.split()


class Tokenizer:
    """Cursor over a sequence of words.

    `peek()` never moves the cursor; `next()` returns the current token and advances.
    Both return None once the input is exhausted.
    """

    def __init__(self, words: Iterable[str]):
        self.words = list(words)
        self.pos = 0

    def __len__(self) -> int:
        return len(self.words)

    @property
    def exhausted(self) -> bool:
        return self.pos >= len(self.words)

    def peek(self) -> Token | None:
        """Return the current token without consuming it."""
        if self.exhausted:
            return None
        return Token.from_text(self.words[self.pos], self.pos)

    def next(self) -> Token | None:
        """Consume and return the current token."""
        token = self.peek()
        if token is not None:
            self.pos += 1
        return token

    def tokens(self) -> list[Token]:
        """Classify every word without touching the cursor."""
        return [Token.from_text(word, i) for i, word in enumerate(self.words)]
