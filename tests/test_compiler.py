"""Tests for expression compilation."""

import numpy as np
import pytest

from canonyx.core.compiler import (
    CompiledExpression,
    _build_evaluator,
    collect_variables,
    compile_expression,
    compile_to_dict_function,
)
from canonyx.core.errors import (
    InvalidExpressionError,
    UnknownOperandError,
    UnknownVariableError,
)
from canonyx.core.operands import BinaryGrouping, Blank, Integer, Variable
from canonyx.core.operations import ADD
from canonyx.core.parser import parse
from canonyx.core.simplify import simplify


class TestCollectVariables:
    """Variable ordering."""

    def test_sorted_and_deduplicated(self):
        assert collect_variables(parse("y + x*y + z")) == ["x", "y", "z"]

    def test_constant(self):
        assert collect_variables(Integer(3)) == []


class TestCompileExpression:
    """Tests for compile_expression function."""

    def test_simple_expression(self):
        f = compile_expression(parse("x + y"), ["x", "y"])
        assert f(np.array([3.0, 4.0])) == 7.0

    def test_complex_expression(self):
        f = compile_expression(parse("2*x + 3*y^2 - x*y"), ["x", "y"])
        # 2*1 + 3*4 - 1*2 = 12
        assert f(np.array([1.0, 2.0])) == 12.0

    def test_variable_order_matters(self):
        x = Variable("x")
        y = Variable("y")
        expr = x - y

        f_xy = compile_expression(expr, [x, y])
        f_yx = compile_expression(expr, [y, x])

        assert f_xy(np.array([3.0, 4.0])) == -1.0
        assert f_yx(np.array([3.0, 4.0])) == 1.0

    def test_negative_integer_exponent(self):
        f = compile_expression(parse("2^-1 + x"), ["x"])
        np.testing.assert_almost_equal(f(np.array([1.0])), 1.5)

    def test_vectorized(self):
        f = compile_expression(parse("x^2"), ["x"])
        result = f(np.array([[1.0, 2.0, 3.0]]))
        np.testing.assert_array_almost_equal(result, [1.0, 4.0, 9.0])

    def test_matches_tree_evaluation(self):
        expr = parse("(x+y)^2 - x*y/3")
        f = compile_expression(expr, ["x", "y"])
        for x_val, y_val in [(0.5, 1.5), (2.0, -3.0), (10.0, 0.1)]:
            np.testing.assert_almost_equal(
                f(np.array([x_val, y_val])),
                expr.evaluate({"x": x_val, "y": y_val}),
            )

    def test_memoized(self):
        first = compile_expression(parse("x*2"), ["x"])
        second = compile_expression(parse("x*2"), ["x"])
        assert first is second

    def test_duplicate_variables(self):
        with pytest.raises(ValueError, match="Duplicate"):
            compile_expression(parse("x"), ["x", "x"])

    def test_unknown_variable(self):
        with pytest.raises(UnknownVariableError) as exc_info:
            compile_expression(parse("x + z"), ["x"])
        assert exc_info.value.name == "z"

    def test_blank(self):
        with pytest.raises(InvalidExpressionError):
            compile_expression(BinaryGrouping(ADD, Variable("x"), Blank()), ["x"])

    def test_non_operand(self):
        with pytest.raises(UnknownOperandError):
            compile_expression(BinaryGrouping(ADD, Variable("x"), "y"), ["x"])
        with pytest.raises(UnknownOperandError, match="compile_expression"):
            _build_evaluator(BinaryGrouping(ADD, Variable("x"), 2.5), {"x": 0}, ["x"])


class TestCompileToDict:
    """Tests for compile_to_dict_function."""

    def test_dict_input(self):
        fn = compile_to_dict_function(parse("x*y + 2"), ["x", "y"])
        assert fn({"x": 2.0, "y": 3.0}) == 8.0

    def test_missing_value(self):
        fn = compile_to_dict_function(parse("x*y"), ["x", "y"])
        with pytest.raises(KeyError):
            fn({"x": 2.0})


class TestCompiledExpression:
    """Tests for CompiledExpression class."""

    def test_properties(self):
        compiled = CompiledExpression(parse("x^2 + y"))
        assert compiled.n_variables == 2
        assert compiled.variable_names == ["x", "y"]

    def test_value(self):
        compiled = CompiledExpression(parse("x^2 + y"))
        result = compiled.value(np.array([3.0, 1.0]))
        assert isinstance(result, float)
        assert result == 10.0

    def test_call(self):
        compiled = CompiledExpression(parse("x^2 + y"), ["y", "x"])
        assert compiled(1.0, 3.0) == 10.0

    def test_wrong_argument_count(self):
        compiled = CompiledExpression(parse("x + y"))
        with pytest.raises(TypeError, match="Expected 2 arguments"):
            compiled(1.0)

    def test_constant(self):
        assert CompiledExpression(Integer(4))() == 4.0

    def test_simplified_golden(self):
        expr = simplify(parse("2 + 6 + 5*(x-x) + 6/y*y + 5^(z*z) - 12"))
        compiled = CompiledExpression(expr)
        assert compiled.variable_names == ["z"]
        assert compiled(1.0) == 7.0
        assert compiled(2.0) == 627.0

    def test_variable_names_is_copy(self):
        compiled = CompiledExpression(parse("x"))
        compiled.variable_names.append("y")
        assert compiled.variable_names == ["x"]
