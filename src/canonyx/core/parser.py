"""Infix text to expression trees.

Grammar::

    expression := unary (OPERATOR unary)*      # precedence climbing
    unary      := "-" NUMBER | "-" unary | primary
    primary    := NUMBER | IDENT | "(" expression ")"

Binary operators are looked up in the registry by symbol. Operators of equal
precedence group to the left unless they are right associative, so
``a-b-c`` is ``(a-b)-c`` and ``a^b^c`` is ``a^(b^c)``. A minus sign in front
of a number gives a negative literal; in front of anything else it gives
``-1*operand``, binding tighter than every binary operator.

Example:
    >>> str(parse("2*(x+1)^-2"))
    '2*(x+1)^(-2)'
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from canonyx.core.errors import ParseError, UnknownOperatorError
from canonyx.core.operands import BinaryGrouping, Integer, Operand, Real, Variable
from canonyx.core.operations import (
    Operation,
    OperationRegistry,
    Precedence,
    standard_registry,
)


class TokenKind(Enum):
    INTEGER = "INTEGER"
    REAL = "REAL"
    IDENT = "IDENT"
    OPERATOR = "OPERATOR"
    LPAREN = "("
    RPAREN = ")"
    EOF = "EOF"


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    value: str
    position: int


# Order matters: reals before integers.
_PATTERNS = [
    (re.compile(r"\d*\.\d+(?:[eE][+-]?\d+)?|\d+\.(?:[eE][+-]?\d+)?|\d+[eE][+-]?\d+"), TokenKind.REAL),
    (re.compile(r"\d+"), TokenKind.INTEGER),
    (re.compile(r"[A-Za-z_][A-Za-z0-9_]*"), TokenKind.IDENT),
    (re.compile(r"\("), TokenKind.LPAREN),
    (re.compile(r"\)"), TokenKind.RPAREN),
    (re.compile(r"[^\w\s().]"), TokenKind.OPERATOR),
]


def tokenize(text: str) -> list[Token]:
    """Split ``text`` into tokens, ending with an EOF token.

    Every punctuation character other than parentheses is a single-character
    operator token; whether it is a known operator is decided by the parser.

    Raises:
        ParseError: On a character that starts no token.
    """
    tokens: list[Token] = []
    pos = 0
    while pos < len(text):
        if text[pos].isspace():
            pos += 1
            continue
        for pattern, kind in _PATTERNS:
            match = pattern.match(text, pos)
            if match:
                tokens.append(Token(kind, match.group(0), pos))
                pos = match.end()
                break
        else:
            raise ParseError(pos, f"unexpected character {text[pos]!r}")
    tokens.append(Token(TokenKind.EOF, "", pos))
    return tokens


class Parser:
    """Precedence-climbing parser over a token list."""

    def __init__(self, tokens: list[Token], registry: OperationRegistry | None = None):
        self.tokens = tokens
        self.registry = registry or standard_registry()
        self.pos = 0

    def current(self) -> Token:
        return self.tokens[self.pos]

    def advance(self) -> Token:
        tok = self.current()
        self.pos += 1
        return tok

    def expect(self, kind: TokenKind, what: str) -> Token:
        tok = self.current()
        if tok.kind != kind:
            raise ParseError(tok.position, f"expected {what}, got {_describe(tok)}")
        return self.advance()

    def parse(self) -> Operand:
        """Parse the whole token list as one expression."""
        operand = self.parse_expression(Precedence.ADDITIVE)
        self.expect(TokenKind.EOF, "end of input")
        return operand

    def parse_expression(self, min_precedence: int) -> Operand:
        left = self.parse_unary()
        while self.current().kind == TokenKind.OPERATOR:
            tok = self.current()
            operation = self._operation(tok)
            if operation.precedence < min_precedence:
                break
            self.advance()
            if operation.is_right_associative:
                next_precedence = int(operation.precedence)
            else:
                next_precedence = int(operation.precedence) + 1
            right = self.parse_expression(next_precedence)
            left = BinaryGrouping(operation, left, right)
        return left

    def parse_unary(self) -> Operand:
        tok = self.current()
        if tok.kind != TokenKind.OPERATOR or tok.value != "-":
            return self.parse_primary()

        self.advance()
        following = self.current()
        if following.kind == TokenKind.INTEGER:
            self.advance()
            return Integer(-int(following.value))
        if following.kind == TokenKind.REAL:
            self.advance()
            return Real(-float(following.value))

        multiplicative = self.registry.multiplicative
        if multiplicative is None:
            raise ParseError(tok.position, "unary minus needs a multiplicative operation")
        operand = self.parse_unary()
        # Bind the negated operand through any exponentiation: -x^2 is -(x^2).
        exponential = self.registry.exponential
        while (
            exponential is not None
            and self.current().kind == TokenKind.OPERATOR
            and self.current().value == exponential.symbol
        ):
            self.advance()
            operand = BinaryGrouping(
                exponential, operand, self.parse_expression(int(exponential.precedence))
            )
        return BinaryGrouping(multiplicative, Integer(-1), operand)

    def parse_primary(self) -> Operand:
        tok = self.current()
        if tok.kind == TokenKind.INTEGER:
            self.advance()
            return Integer(int(tok.value))
        if tok.kind == TokenKind.REAL:
            self.advance()
            return Real(float(tok.value))
        if tok.kind == TokenKind.IDENT:
            self.advance()
            return Variable(tok.value)
        if tok.kind == TokenKind.LPAREN:
            self.advance()
            operand = self.parse_expression(Precedence.ADDITIVE)
            self.expect(TokenKind.RPAREN, "')'")
            return operand
        raise ParseError(tok.position, f"expected an operand, got {_describe(tok)}")

    def _operation(self, tok: Token) -> Operation:
        try:
            return self.registry.lookup(tok.value)
        except UnknownOperatorError:
            raise ParseError(tok.position, f"unknown operator {tok.value!r}") from None


def parse(text: str, registry: OperationRegistry | None = None) -> Operand:
    """Parse infix ``text`` into an expression tree.

    Args:
        text: The expression, e.g. ``"2*x + y^2"``.
        registry: Operations available by symbol (defaults to the standard
            ones).

    Raises:
        ParseError: With the character position and reason of the failure.
    """
    return Parser(tokenize(text), registry).parse()


def _describe(tok: Token) -> str:
    if tok.kind == TokenKind.EOF:
        return "end of input"
    return repr(tok.value)
