"""Operation descriptors and the operation registry.

Operations are plain descriptor records. The registry binds them together:
which operation is the inverse of which (with the term transform unfold
uses), the promotion chain add -> mul -> exp, identity elements, and numeric
evaluation of constant pairs. Registries are constructed and passed to the
engine explicitly; :func:`standard_registry` builds the usual one.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Flag, IntEnum, auto
from functools import lru_cache
from typing import Callable

import numpy as np

from canonyx.core.errors import EvaluationError, UnknownOperatorError
from canonyx.core.operands import (
    BinaryGrouping,
    Constant,
    Integer,
    Operand,
    Real,
)

logger = logging.getLogger(__name__)

Number = int | float


class Precedence(IntEnum):
    """Binding strength of an operation."""

    ADDITIVE = 0
    MULTIPLICATIVE = 1
    EXPONENTIAL = 2


class Classification(Flag):
    """Algebraic properties of an operation."""

    NONE = 0
    COMMUTATIVE = auto()
    RIGHT_ASSOCIATIVE = auto()


@dataclass(frozen=True, eq=False)
class Operation:
    """Descriptor of a binary operation.

    Attributes:
        id: Unique integer id (also the hash token of the operation).
        symbol: Display and parse symbol.
        precedence: Precedence tier.
        classification: Algebraic property flags.
        evaluator: Scalar evaluation on Python numbers.
        array_function: numpy evaluation used by compiled code.
    """

    id: int
    symbol: str
    precedence: Precedence
    classification: Classification
    evaluator: Callable[[Number, Number], Number] = field(repr=False)
    array_function: Callable = field(repr=False)

    @property
    def is_commutative(self) -> bool:
        return Classification.COMMUTATIVE in self.classification

    @property
    def is_right_associative(self) -> bool:
        return Classification.RIGHT_ASSOCIATIVE in self.classification


@dataclass(frozen=True)
class Inverse:
    """Registered inverse of a base operation.

    Attributes:
        operation: The inverse operation (e.g. subtraction for addition).
        transform: Turns the right operand of an inverse grouping into a term
            of the base operation (e.g. negation for subtraction).
    """

    operation: Operation
    transform: Callable[[Operand], Operand]


class OperationRegistry:
    """Operation table with inverse, promotion and identity relations."""

    def __init__(self) -> None:
        self._by_id: dict[int, Operation] = {}
        self._by_symbol: dict[str, Operation] = {}
        self._inverses: dict[int, Inverse] = {}
        self._bases: dict[int, Operation] = {}
        self._promotions: dict[int, Operation] = {}
        self._identities: dict[int, Operand] = {}

    def register(self, operation: Operation) -> Operation:
        """Add an operation to the registry.

        Raises:
            ValueError: If the id or symbol is already taken.
        """
        if operation.id in self._by_id:
            raise ValueError(f"Operation id {operation.id} is already registered")
        if operation.symbol in self._by_symbol:
            raise ValueError(f"Operation '{operation.symbol}' is already registered")
        self._by_id[operation.id] = operation
        self._by_symbol[operation.symbol] = operation
        return operation

    def register_inverse(
        self,
        base: Operation,
        inverse: Operation,
        transform: Callable[[Operand], Operand],
    ) -> None:
        """Record ``inverse`` as the inverse of ``base``."""
        self._require(base)
        self._require(inverse)
        self._inverses[base.id] = Inverse(inverse, transform)
        self._bases[inverse.id] = base

    def register_promotion(self, operation: Operation, promoted: Operation) -> None:
        """Record the operation that combines repeated terms of ``operation``."""
        self._require(operation)
        self._require(promoted)
        self._promotions[operation.id] = promoted

    def register_identity(self, operation: Operation, value: Operand) -> None:
        """Record the identity element of ``operation``."""
        self._require(operation)
        self._identities[operation.id] = value

    def get(self, id: int) -> Operation:
        try:
            return self._by_id[id]
        except KeyError:
            raise UnknownOperatorError(id, self.symbols) from None

    def lookup(self, symbol: str) -> Operation:
        try:
            return self._by_symbol[symbol]
        except KeyError:
            raise UnknownOperatorError(symbol, self.symbols) from None

    def __contains__(self, operation: Operation) -> bool:
        return self._by_id.get(operation.id) is operation

    def __iter__(self):
        return iter(self._by_id.values())

    @property
    def symbols(self) -> list[str]:
        return list(self._by_symbol)

    def inverse_of(self, operation: Operation) -> Inverse | None:
        return self._inverses.get(operation.id)

    def base_of(self, operation: Operation) -> Operation | None:
        """Return the operation that ``operation`` is the inverse of, if any."""
        return self._bases.get(operation.id)

    def promote(self, operation: Operation) -> Operation:
        """Return the promoted operation (add -> mul -> exp).

        Operations without a promotion are returned unchanged.
        """
        promoted = self._promotions.get(operation.id)
        if promoted is None:
            logger.warning("No promotion rule for '%s'", operation.symbol)
            return operation
        return promoted

    def identity(self, operation: Operation) -> Operand | None:
        """Return the identity element of ``operation``, or None."""
        value = self._identities.get(operation.id)
        if value is None:
            logger.warning("No identity element for '%s'", operation.symbol)
        return value

    @property
    def additive(self) -> Operation | None:
        return self._find(Precedence.ADDITIVE, commutative=True)

    @property
    def multiplicative(self) -> Operation | None:
        return self._find(Precedence.MULTIPLICATIVE, commutative=True)

    @property
    def exponential(self) -> Operation | None:
        return self._find(Precedence.EXPONENTIAL, commutative=False)

    def evaluate(self, operation: Operation, a: Operand, b: Operand) -> Operand:
        """Evaluate an operation on two constants.

        Raises:
            EvaluationError: If either operand is not a constant or the
                evaluator fails (e.g. division by zero).
        """
        if not (isinstance(a, Constant) and isinstance(b, Constant)):
            raise EvaluationError(
                operation.symbol, (a, b), reason="operands must be constants"
            )
        try:
            value = operation.evaluator(a.value, b.value)
        except (ArithmeticError, ValueError) as exc:
            raise EvaluationError(operation.symbol, (a.value, b.value), exc) from exc

        if isinstance(value, complex):
            raise EvaluationError(
                operation.symbol, (a.value, b.value), reason="result is complex"
            )
        if isinstance(value, (int, np.integer)):
            return Integer(int(value))
        return Real(float(value))

    def _find(self, precedence: Precedence, commutative: bool) -> Operation | None:
        for operation in self._by_id.values():
            if (
                operation.precedence == precedence
                and operation.is_commutative == commutative
            ):
                return operation
        return None

    def _require(self, operation: Operation) -> None:
        if operation not in self:
            raise UnknownOperatorError(operation.symbol, self.symbols)

    def __repr__(self) -> str:
        return f"OperationRegistry({', '.join(self.symbols)})"


# =============================================================================
# Standard operations
# =============================================================================


def _divide(a: Number, b: Number) -> Number:
    if isinstance(a, int) and isinstance(b, int) and b != 0 and a % b == 0:
        return a // b
    return a / b


def _power(a: Number, b: Number) -> Number:
    if isinstance(a, int) and isinstance(b, int) and b >= 0:
        return a**b
    return float(a) ** b


ADD = Operation(
    1, "+", Precedence.ADDITIVE, Classification.COMMUTATIVE,
    lambda a, b: a + b, np.add,
)
SUB = Operation(
    2, "-", Precedence.ADDITIVE, Classification.NONE,
    lambda a, b: a - b, np.subtract,
)
MUL = Operation(
    3, "*", Precedence.MULTIPLICATIVE, Classification.COMMUTATIVE,
    lambda a, b: a * b, np.multiply,
)
DIV = Operation(
    4, "/", Precedence.MULTIPLICATIVE, Classification.NONE,
    _divide, np.divide,
)
POW = Operation(
    5, "^", Precedence.EXPONENTIAL, Classification.RIGHT_ASSOCIATIVE,
    _power, np.power,
)


def negate(operand: Operand) -> Operand:
    """Negate a term of a sum.

    A nested difference is returned as is: unfold tracks its sign with the
    parity flag and swaps its operands.
    """
    if isinstance(operand, Constant):
        return type(operand)(-operand.value)
    if isinstance(operand, BinaryGrouping) and operand.operation is SUB:
        return operand
    return BinaryGrouping(MUL, Integer(-1), operand)


def reciprocal(operand: Operand) -> Operand:
    """Invert a factor of a product.

    A nested quotient is returned as is, like :func:`negate` does for
    differences.
    """
    if isinstance(operand, Constant):
        return standard_registry().evaluate(DIV, Integer(1), operand)
    if isinstance(operand, BinaryGrouping) and operand.operation is DIV:
        return operand
    return BinaryGrouping(POW, operand, Integer(-1))


@lru_cache(maxsize=None)
def standard_registry() -> OperationRegistry:
    """Build the registry of the five arithmetic operations.

    The result is cached; treat it as read-only and build a fresh
    :class:`OperationRegistry` for custom operation sets.
    """
    registry = OperationRegistry()
    for operation in (ADD, SUB, MUL, DIV, POW):
        registry.register(operation)

    registry.register_inverse(ADD, SUB, negate)
    registry.register_inverse(MUL, DIV, reciprocal)

    registry.register_promotion(ADD, MUL)
    registry.register_promotion(MUL, POW)

    registry.register_identity(ADD, Integer(0))
    registry.register_identity(MUL, Integer(1))
    return registry
