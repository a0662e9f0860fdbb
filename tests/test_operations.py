"""Tests for operation descriptors and the registry."""

import logging

import numpy as np
import pytest

from canonyx.core.errors import EvaluationError, UnknownOperatorError
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
    negate,
    reciprocal,
    standard_registry,
)


MOD = Operation(
    6, "%", Precedence.MULTIPLICATIVE, Classification.NONE,
    lambda a, b: a % b, np.mod,
)


class TestOperation:
    """Descriptor flags."""

    def test_classification(self):
        assert ADD.is_commutative
        assert MUL.is_commutative
        assert not SUB.is_commutative
        assert not DIV.is_commutative
        assert POW.is_right_associative
        assert not ADD.is_right_associative

    def test_precedence_order(self):
        assert ADD.precedence < MUL.precedence < POW.precedence
        assert SUB.precedence == ADD.precedence
        assert DIV.precedence == MUL.precedence


class TestStandardRegistry:
    """The registry of the five arithmetic operations."""

    def test_cached(self):
        assert standard_registry() is standard_registry()

    def test_lookup_and_get(self):
        registry = standard_registry()
        assert registry.lookup("+") is ADD
        assert registry.get(5) is POW
        assert registry.symbols == ["+", "-", "*", "/", "^"]
        assert MUL in registry

    def test_unknown_operator(self):
        registry = standard_registry()
        with pytest.raises(UnknownOperatorError) as exc_info:
            registry.lookup("%")
        assert exc_info.value.key == "%"
        with pytest.raises(LookupError):
            registry.get(42)

    def test_inverses(self):
        registry = standard_registry()
        assert registry.inverse_of(ADD).operation is SUB
        assert registry.inverse_of(MUL).operation is DIV
        assert registry.inverse_of(POW) is None
        assert registry.base_of(SUB) is ADD
        assert registry.base_of(DIV) is MUL
        assert registry.base_of(ADD) is None

    def test_promotion(self):
        registry = standard_registry()
        assert registry.promote(ADD) is MUL
        assert registry.promote(MUL) is POW

    def test_unsupported_promotion_warns(self, caplog):
        with caplog.at_level(logging.WARNING):
            assert standard_registry().promote(POW) is POW
        assert "No promotion rule for '^'" in caplog.text

    def test_identity(self, caplog):
        registry = standard_registry()
        assert registry.identity(ADD) == Integer(0)
        assert registry.identity(MUL) == Integer(1)
        with caplog.at_level(logging.WARNING):
            assert registry.identity(POW) is None
        assert "No identity element" in caplog.text

    def test_role_properties(self):
        registry = standard_registry()
        assert registry.additive is ADD
        assert registry.multiplicative is MUL
        assert registry.exponential is POW


class TestCustomRegistry:
    """Registries built by hand."""

    def test_register_duplicate(self):
        registry = OperationRegistry()
        registry.register(ADD)
        with pytest.raises(ValueError, match="id 1"):
            registry.register(ADD)

    def test_register_duplicate_symbol(self):
        registry = OperationRegistry()
        registry.register(ADD)
        clash = Operation(
            7, "+", Precedence.ADDITIVE, Classification.NONE,
            lambda a, b: a + b, np.add,
        )
        with pytest.raises(ValueError, match="'\\+'"):
            registry.register(clash)

    def test_relation_requires_registered_operations(self):
        registry = OperationRegistry()
        registry.register(ADD)
        with pytest.raises(UnknownOperatorError):
            registry.register_inverse(ADD, SUB, negate)

    def test_extra_operation(self):
        registry = OperationRegistry()
        for operation in (ADD, SUB, MUL, DIV, POW, MOD):
            registry.register(operation)
        assert registry.lookup("%") is MOD
        assert registry.evaluate(MOD, Integer(7), Integer(3)) == Integer(1)

    def test_missing_roles(self):
        registry = OperationRegistry()
        registry.register(SUB)
        assert registry.additive is None
        assert registry.multiplicative is None
        assert registry.exponential is None


class TestEvaluate:
    """Constant evaluation through the registry."""

    def test_integer_arithmetic(self):
        registry = standard_registry()
        result = registry.evaluate(ADD, Integer(2), Integer(3))
        assert isinstance(result, Integer)
        assert result == Integer(5)
        assert registry.evaluate(SUB, Integer(2), Integer(3)) == Integer(-1)
        assert registry.evaluate(MUL, Integer(4), Integer(3)) == Integer(12)

    def test_mixed_arithmetic_is_real(self):
        result = standard_registry().evaluate(ADD, Integer(2), Real(0.5))
        assert isinstance(result, Real)
        assert result.value == 2.5

    def test_division(self):
        registry = standard_registry()
        assert registry.evaluate(DIV, Integer(6), Integer(3)) == Integer(2)
        assert registry.evaluate(DIV, Integer(1), Integer(2)) == Real(0.5)
        assert registry.evaluate(DIV, Integer(-6), Integer(4)) == Real(-1.5)

    def test_division_by_zero(self):
        with pytest.raises(EvaluationError) as exc_info:
            standard_registry().evaluate(DIV, Integer(1), Integer(0))
        assert isinstance(exc_info.value.original_error, ZeroDivisionError)
        assert exc_info.value.operation == "/"

    def test_power(self):
        registry = standard_registry()
        assert registry.evaluate(POW, Integer(2), Integer(10)) == Integer(1024)
        assert registry.evaluate(POW, Integer(2), Integer(-1)) == Real(0.5)
        assert registry.evaluate(POW, Real(4.0), Real(0.5)) == Real(2.0)

    def test_power_failures(self):
        registry = standard_registry()
        with pytest.raises(EvaluationError, match="complex"):
            registry.evaluate(POW, Integer(-8), Real(0.5))
        with pytest.raises(EvaluationError):
            registry.evaluate(POW, Integer(0), Integer(-1))
        with pytest.raises(EvaluationError):
            registry.evaluate(POW, Real(10.0), Integer(400))

    def test_non_constant_operands(self):
        with pytest.raises(EvaluationError, match="must be constants"):
            standard_registry().evaluate(ADD, Variable("x"), Integer(1))


class TestTransforms:
    """Term transforms used when unfolding inverse operations."""

    def test_negate(self):
        x = Variable("x")
        assert negate(Integer(3)) == Integer(-3)
        assert negate(Real(0.5)) == Real(-0.5)
        assert negate(x) == BinaryGrouping(MUL, Integer(-1), x)

    def test_negate_keeps_nested_difference(self):
        difference = Variable("a") - Variable("b")
        assert negate(difference) is difference

    def test_reciprocal(self):
        x = Variable("x")
        assert reciprocal(Integer(4)) == Real(0.25)
        assert reciprocal(Integer(1)) == Integer(1)
        assert reciprocal(x) == BinaryGrouping(POW, x, Integer(-1))

    def test_reciprocal_keeps_nested_quotient(self):
        quotient = Variable("a") / Variable("b")
        assert reciprocal(quotient) is quotient

    def test_reciprocal_of_zero(self):
        with pytest.raises(EvaluationError):
            reciprocal(Integer(0))
