"""Tests for the filter expression tokenizer."""

from __future__ import annotations

import pytest

from jsonapi_filter.tokenizer import Token, Tokenizer, TokenKind, split_expression


@pytest.mark.parametrize(
    ("text", "kind"),
    [
        ("and", TokenKind.AND),
        ("AND", TokenKind.AND),
        ("And", TokenKind.AND),
        ("or", TokenKind.OR),
        ("OR", TokenKind.OR),
        ("not", TokenKind.NOT),
        ("NoT", TokenKind.NOT),
        ("p1", TokenKind.VARIABLE),
        ("andy", TokenKind.VARIABLE),
        ("!!garbage", TokenKind.VARIABLE),
    ],
)
def test_token_classification(text: str, kind: TokenKind) -> None:
    """Keywords are case-insensitive; everything else is a variable."""
    assert Token.from_text(text).kind is kind


def test_precedence_table() -> None:
    """NOT binds tighter than AND, which binds tighter than OR."""
    assert TokenKind.NOT.precedence > TokenKind.AND.precedence > TokenKind.OR.precedence
    assert TokenKind.VARIABLE.precedence == -1
    assert TokenKind.AND.is_binary
    assert TokenKind.OR.is_binary
    assert not TokenKind.NOT.is_binary
    assert not TokenKind.VARIABLE.is_operator


def test_peek_does_not_advance() -> None:
    """peek() returns the current token without moving the cursor."""
    lexer = Tokenizer(["p1", "and", "p2"])
    first = lexer.peek()
    again = lexer.peek()
    assert first == again
    assert first is not None
    assert first.text == "p1"
    assert lexer.pos == 0


def test_next_advances_until_exhausted() -> None:
    """next() walks the stream and returns None once exhausted."""
    lexer = Tokenizer(["p1", "OR", "p2"])
    kinds = []
    while (token := lexer.next()) is not None:
        kinds.append(token.kind)
    assert kinds == [TokenKind.VARIABLE, TokenKind.OR, TokenKind.VARIABLE]
    assert lexer.exhausted
    assert lexer.next() is None
    assert lexer.peek() is None


def test_token_positions() -> None:
    """Tokens record their index in the stream."""
    tokens = Tokenizer(["NOT", "p1"]).tokens()
    assert [t.pos for t in tokens] == [0, 1]


def test_split_expression_collapses_whitespace() -> None:
    """Any run of whitespace separates words."""
    assert split_expression("  p1   AND\tp2\n") == ["p1", "AND", "p2"]
    assert split_expression("   ") == []
