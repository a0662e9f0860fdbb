"""Tests for the tokenizer and parser."""

import numpy as np
import pytest

from canonyx.core.errors import ParseError
from canonyx.core.operands import BinaryGrouping, Integer, Real, Variable
from canonyx.core.operations import (
    ADD,
    DIV,
    MUL,
    POW,
    SUB,
    Classification,
    Operation,
    OperationRegistry,
    Precedence,
)
from canonyx.core.parser import TokenKind, parse, tokenize


class TestTokenize:
    """Splitting text into tokens."""

    def test_kinds_and_positions(self):
        tokens = tokenize("2*x_1")
        assert [t.kind for t in tokens] == [
            TokenKind.INTEGER,
            TokenKind.OPERATOR,
            TokenKind.IDENT,
            TokenKind.EOF,
        ]
        assert [t.position for t in tokens] == [0, 1, 2, 5]
        assert tokens[2].value == "x_1"

    def test_real_literals(self):
        tokens = tokenize("1.5 .5 2e3 3. 1e-05")
        assert [t.kind for t in tokens[:-1]] == [TokenKind.REAL] * 5

    def test_parentheses(self):
        kinds = [t.kind for t in tokenize("(a)")]
        assert kinds == [TokenKind.LPAREN, TokenKind.IDENT, TokenKind.RPAREN, TokenKind.EOF]

    def test_unexpected_character(self):
        with pytest.raises(ParseError) as exc_info:
            tokenize("x.y")
        assert exc_info.value.position == 1


class TestParse:
    """Building trees from infix text."""

    def test_leaves(self):
        assert parse("42") == Integer(42)
        assert parse("2.5") == Real(2.5)
        assert parse("rate") == Variable("rate")

    def test_precedence(self):
        assert parse("1+2*3") == Integer(1) + Integer(2) * Integer(3)
        assert parse("2*x^2") == BinaryGrouping(
            MUL, Integer(2), BinaryGrouping(POW, Variable("x"), Integer(2))
        )

    def test_left_associative(self):
        a, b, c = Variable("a"), Variable("b"), Variable("c")
        assert parse("a-b-c") == BinaryGrouping(SUB, BinaryGrouping(SUB, a, b), c)
        assert parse("a/b*c") == BinaryGrouping(MUL, BinaryGrouping(DIV, a, b), c)

    def test_right_associative(self):
        a, b, c = Variable("a"), Variable("b"), Variable("c")
        assert parse("a^b^c") == BinaryGrouping(POW, a, BinaryGrouping(POW, b, c))

    def test_parentheses(self):
        a, b, c = Variable("a"), Variable("b"), Variable("c")
        assert parse("(a+b)*c") == BinaryGrouping(MUL, BinaryGrouping(ADD, a, b), c)
        assert parse("((a))") == a

    def test_negative_literals(self):
        assert parse("-3") == Integer(-3)
        assert parse("-2.5") == Real(-2.5)
        assert parse("x^-2") == BinaryGrouping(POW, Variable("x"), Integer(-2))

    def test_unary_minus(self):
        x = Variable("x")
        assert parse("-x") == BinaryGrouping(MUL, Integer(-1), x)
        assert parse("-x^2") == BinaryGrouping(
            MUL, Integer(-1), BinaryGrouping(POW, x, Integer(2))
        )
        assert parse("2*-x") == BinaryGrouping(
            MUL, Integer(2), BinaryGrouping(MUL, Integer(-1), x)
        )

    def test_whitespace(self):
        assert parse("  x  +\t1 ") == Variable("x") + 1

    def test_long_chain(self):
        result = parse("+".join(["x"] * 2000))
        assert result.operation is ADD


class TestParseErrors:
    """Failures carry a position and a reason."""

    @pytest.mark.parametrize(
        "text, position",
        [
            ("", 0),
            ("2 +", 3),
            ("(x", 2),
            ("x $ y", 2),
            ("2 x", 2),
            ("x + )", 4),
        ],
    )
    def test_position(self, text, position):
        with pytest.raises(ParseError) as exc_info:
            parse(text)
        assert exc_info.value.position == position

    def test_reasons(self):
        with pytest.raises(ParseError, match="unknown operator '\\$'"):
            parse("x $ y")
        with pytest.raises(ParseError, match="expected '\\)'"):
            parse("(x")
        with pytest.raises(ParseError, match="end of input"):
            parse("2 +")

    def test_is_value_error(self):
        with pytest.raises(ValueError):
            parse("(")


class TestRoundTrip:
    """Printed trees parse back to the same tree."""

    @pytest.mark.parametrize(
        "text",
        [
            "a-(b-c)",
            "(a-b)-c",
            "(a^b)^c",
            "a^b^c",
            "a/(b*c)",
            "a*b/c",
            "2*(x+1)^-2",
            "-x^2",
            "x*-3.5",
            "2+5^z^2",
        ],
    )
    def test_round_trip(self, text):
        tree = parse(text)
        assert parse(str(tree)) == tree


class TestCustomRegistry:
    """Operators come from the registry."""

    def test_extra_operator(self):
        mod = Operation(
            6, "%", Precedence.MULTIPLICATIVE, Classification.NONE,
            lambda a, b: a % b, np.mod,
        )
        registry = OperationRegistry()
        for operation in (ADD, SUB, MUL, DIV, POW, mod):
            registry.register(operation)

        tree = parse("x % 3 + 1", registry)
        assert tree.operation is ADD
        assert tree.left.operation is mod

    def test_missing_operator(self):
        registry = OperationRegistry()
        registry.register(ADD)
        with pytest.raises(ParseError, match="unknown operator"):
            parse("x * y", registry)
