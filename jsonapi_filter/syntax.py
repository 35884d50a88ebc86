"""
Precedence-climbing parser for the `q` filter expression.

Builds a binary tree of tokens. Grouping is implied by operator precedence only
(NOT > AND > OR, all left-associative); there is no parenthesized syntax.

Examples:
    p1 OR p2 AND p3        -> OR(p1, AND(p2, p3))
    p1 AND p2 AND p3       -> AND(AND(p1, p2), p3)
    NOT p1 AND NOT p2      -> AND(NOT(p1), NOT(p2))
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from .exceptions import FilterSyntaxError
from .tokenizer import Token, Tokenizer, TokenKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Node:
    """A node in the expression tree. NOT nodes keep their operand in `left`."""

    token: Token
    left: Node | None = None
    right: Node | None = None

    @property
    def kind(self) -> TokenKind:
        return self.token.kind

    def variables(self) -> Iterator[str]:
        """Yield identifier names in pre-order."""
        stack: list[Node] = [self]
        while stack:
            node = stack.pop()
            if node.kind is TokenKind.VARIABLE:
                yield node.token.text
                continue
            if node.right is not None:
                stack.append(node.right)
            if node.left is not None:
                stack.append(node.left)

    def __str__(self) -> str:
        stack: list[tuple[Node, bool]] = [(self, False)]
        parts: list[str] = []
        while stack:
            node, expanded = stack.pop()
            if node.kind is TokenKind.VARIABLE:
                parts.append(node.token.text)
                continue
            if not expanded:
                stack.append((node, True))
                if node.right is not None:
                    stack.append((node.right, False))
                if node.left is not None:
                    stack.append((node.left, False))
                continue
            if node.kind is TokenKind.NOT:
                parts.append(f"NOT({parts.pop()})")
            else:
                right = parts.pop()
                left = parts.pop()
                parts.append(f"{node.kind.name}({left}, {right})")
        return parts[0]


class AstBuilder:
    """Recursive descent parser using precedence climbing."""

    def __init__(self, words: Iterable[str], *, max_tokens: int = 0):
        self.lexer = Tokenizer(words)
        self.max_tokens = max_tokens

    def build(self) -> Node:
        """Parse the whole token stream into a tree."""
        if len(self.lexer) == 0:
            raise FilterSyntaxError("Empty filter expression", position=0)
        if self.max_tokens and len(self.lexer) > self.max_tokens:
            raise FilterSyntaxError(
                f"Filter expression has {len(self.lexer)} tokens; "
                f"the limit is {self.max_tokens}",
                position=self.max_tokens,
            )

        root = self._parse_node(self._primary(), 0)

        leftover = self.lexer.peek()
        if leftover is not None:
            if leftover.kind is TokenKind.VARIABLE:
                raise FilterSyntaxError(
                    f"Unexpected identifier '{leftover.text}' at position {leftover.pos}. "
                    "Hint: Join identifiers with AND or OR",
                    position=leftover.pos,
                )
            raise FilterSyntaxError(
                f"Unexpected operator '{leftover.text}' at position {leftover.pos}",
                position=leftover.pos,
            )

        logger.debug("Parsed filter expression of %d tokens: %s", len(self.lexer), root)
        return root

    def _parse_node(self, left: Node, min_precedence: int) -> Node:
        while True:
            operator = self.lexer.peek()
            if (
                operator is None
                or not operator.kind.is_binary
                or operator.kind.precedence < min_precedence
            ):
                break
            self.lexer.next()  # consume operator

            right = self._primary()

            while True:
                lookahead = self.lexer.peek()
                if lookahead is None or not lookahead.kind.is_binary:
                    break
                op_prec = operator.kind.precedence
                la_prec = lookahead.kind.precedence
                if not (
                    la_prec > op_prec
                    or (lookahead.kind.right_associative and la_prec == op_prec)
                ):
                    break
                right = self._parse_node(right, la_prec)

            left = Node(operator, left, right)

        return left

    def _primary(self) -> Node:
        """Parse an identifier, optionally preceded by any number of NOTs."""
        negations: list[Token] = []
        while True:
            token = self.lexer.next()
            if token is None:
                raise FilterSyntaxError(
                    "Unexpected end of expression", position=self.lexer.pos
                )
            if token.kind is TokenKind.NOT:
                negations.append(token)
                continue
            if token.kind is TokenKind.VARIABLE:
                break
            raise FilterSyntaxError(
                f"Expected identifier at position {token.pos}, "
                f"got operator '{token.text}'",
                position=token.pos,
            )

        node = Node(token)
        # NOT captures only the primary that follows it
        for negation in reversed(negations):
            node = Node(negation, node)
        return node


def build_ast(words: Iterable[str], *, max_tokens: int = 0) -> Node:
    """Parse whitespace-delimited words into an expression tree."""
    return AstBuilder(words, max_tokens=max_tokens).build()
