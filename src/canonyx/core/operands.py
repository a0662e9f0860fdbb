"""Expression tree operands.

An operand is one of :class:`Blank`, :class:`Integer`, :class:`Real`,
:class:`Variable` or :class:`BinaryGrouping`. Operands are immutable values:
rewriting a tree always builds new nodes, and nodes may be shared between
several parents. Equality and hashing are structural.

Example:
    >>> x = Variable("x")
    >>> expr = 2 * x + 1
    >>> str(expr)
    '2*x+1'
    >>> expr.evaluate({"x": 3.0})  # 7.0
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Mapping

import numpy as np

from canonyx.core.errors import InvalidExpressionError, InvalidOperationError

if TYPE_CHECKING:
    from numpy.typing import ArrayLike, NDArray

    from canonyx.core.operations import Operation


class Operand(ABC):
    """Base class for all expression tree nodes.

    Abstract: trees are built from the concrete subclasses only.
    """

    __slots__ = ()

    # Structural queries; subclasses override the ones that apply.
    @property
    def is_constant(self) -> bool:
        return False

    @property
    def is_blank(self) -> bool:
        return False

    @property
    def is_zero(self) -> bool:
        return False

    @property
    def is_one(self) -> bool:
        return False

    @property
    def is_variable(self) -> bool:
        return False

    @property
    def is_binary_grouping(self) -> bool:
        return False

    def get_variables(self) -> set[str]:
        """Return the names of all variables in this tree."""
        return set()

    def substitute(self, values: Mapping[str, Operand | int | float]) -> Operand:
        """Replace variables by the given values, returning a new tree."""
        return self

    @abstractmethod
    def evaluate(
        self, values: Mapping[str, ArrayLike | float]
    ) -> NDArray[np.floating] | float:
        """Evaluate the tree numerically.

        Args:
            values: Mapping from variable name to value (scalar or array).

        Returns:
            The value of the expression.

        Raises:
            KeyError: If a variable is missing from ``values``.
            InvalidExpressionError: If the tree contains a Blank.
        """

    @abstractmethod
    def pretty(self, indent: int = 0) -> str:
        """Indented tree dump, one node per line."""

    @abstractmethod
    def _render(self, parent: Operation | None, is_right: bool) -> str: ...

    def __str__(self) -> str:
        return self._render(None, False)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Operand):
            return NotImplemented
        from canonyx.core.hashing import structural_equal

        return structural_equal(self, other)

    def __ne__(self, other: object) -> bool:
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def __hash__(self) -> int:
        from canonyx.core.hashing import expression_hash

        return hash(expression_hash(self))

    # Arithmetic builds new groupings over the standard operations.
    def __add__(self, other: Any) -> BinaryGrouping:
        return _binary("+", self, other)

    def __radd__(self, other: Any) -> BinaryGrouping:
        return _binary("+", other, self)

    def __sub__(self, other: Any) -> BinaryGrouping:
        return _binary("-", self, other)

    def __rsub__(self, other: Any) -> BinaryGrouping:
        return _binary("-", other, self)

    def __mul__(self, other: Any) -> BinaryGrouping:
        return _binary("*", self, other)

    def __rmul__(self, other: Any) -> BinaryGrouping:
        return _binary("*", other, self)

    def __truediv__(self, other: Any) -> BinaryGrouping:
        return _binary("/", self, other)

    def __rtruediv__(self, other: Any) -> BinaryGrouping:
        return _binary("/", other, self)

    def __pow__(self, other: Any) -> BinaryGrouping:
        return _binary("^", self, other)

    def __rpow__(self, other: Any) -> BinaryGrouping:
        return _binary("^", other, self)

    def __neg__(self) -> Operand:
        from canonyx.core.operations import MUL

        return BinaryGrouping(MUL, Integer(-1), self)


class Blank(Operand):
    """Absence of a value."""

    __slots__ = ()

    @property
    def is_blank(self) -> bool:
        return True

    def evaluate(
        self, values: Mapping[str, ArrayLike | float]
    ) -> NDArray[np.floating] | float:
        raise InvalidExpressionError("Cannot evaluate a blank operand")

    def pretty(self, indent: int = 0) -> str:
        return "    " * indent + "<blank>"

    def _render(self, parent: Operation | None, is_right: bool) -> str:
        return "_"

    def __repr__(self) -> str:
        return "Blank()"


class Constant(Operand):
    """Common base of :class:`Integer` and :class:`Real`."""

    __slots__ = ("value",)

    value: int | float

    @property
    def is_constant(self) -> bool:
        return True

    @property
    def is_zero(self) -> bool:
        return self.value == 0

    @property
    def is_one(self) -> bool:
        return self.value == 1

    def evaluate(
        self, values: Mapping[str, ArrayLike | float]
    ) -> NDArray[np.floating] | float:
        return self.value

    def _render(self, parent: Operation | None, is_right: bool) -> str:
        text = repr(self.value)
        if parent is not None and self.value < 0:
            return f"({text})"
        return text

    def __neg__(self) -> Operand:
        return type(self)(-self.value)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.value!r})"


class Integer(Constant):
    """Integer constant."""

    __slots__ = ()

    def __init__(self, value: int) -> None:
        self.value = int(value)

    def pretty(self, indent: int = 0) -> str:
        return "    " * indent + f"<integer:{self.value}>"


class Real(Constant):
    """Real (floating point) constant."""

    __slots__ = ()

    def __init__(self, value: float) -> None:
        self.value = float(value)

    def pretty(self, indent: int = 0) -> str:
        return "    " * indent + f"<real:{self.value!r}>"


class Variable(Operand):
    """A named unknown.

    Args:
        name: Identifier of the variable.
    """

    __slots__ = ("name",)

    def __init__(self, name: str) -> None:
        self.name = name

    @property
    def is_variable(self) -> bool:
        return True

    def get_variables(self) -> set[str]:
        return {self.name}

    def substitute(self, values: Mapping[str, Operand | int | float]) -> Operand:
        if self.name in values:
            return _ensure_operand(values[self.name])
        return self

    def evaluate(
        self, values: Mapping[str, ArrayLike | float]
    ) -> NDArray[np.floating] | float:
        return values[self.name]  # type: ignore[return-value]

    def pretty(self, indent: int = 0) -> str:
        return "    " * indent + f"<variable:{self.name}>"

    def _render(self, parent: Operation | None, is_right: bool) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"Variable({self.name!r})"


class BinaryGrouping(Operand):
    """Two operands combined by an operation.

    A grouping without a right operand is degenerate: it only wraps ``left``
    and carries no semantic operation.

    Args:
        operation: The operation descriptor (ignored when degenerate).
        left: First operand.
        right: Second operand, or None for a degenerate grouping.
    """

    __slots__ = ("operation", "left", "right")

    def __init__(
        self,
        operation: Operation | None,
        left: Operand,
        right: Operand | None = None,
    ) -> None:
        self.operation = operation if right is not None else None
        self.left = left
        self.right = right

    @property
    def is_binary_grouping(self) -> bool:
        return True

    @property
    def is_degenerate(self) -> bool:
        return self.right is None

    def with_children(self, left: Operand, right: Operand) -> BinaryGrouping:
        """Return a new grouping with the same operation and new children."""
        return BinaryGrouping(self.operation, left, right)

    def get_variables(self) -> set[str]:
        if self.right is None:
            return self.left.get_variables()
        return self.left.get_variables() | self.right.get_variables()

    def substitute(self, values: Mapping[str, Operand | int | float]) -> Operand:
        left = self.left.substitute(values)
        if self.right is None:
            return BinaryGrouping(None, left)
        return BinaryGrouping(self.operation, left, self.right.substitute(values))

    def evaluate(
        self, values: Mapping[str, ArrayLike | float]
    ) -> NDArray[np.floating] | float:
        left = self.left.evaluate(values)
        if self.right is None:
            return left
        right = self.right.evaluate(values)
        return self.operation.array_function(left, right)  # type: ignore[union-attr]

    def pretty(self, indent: int = 0) -> str:
        if self.right is None:
            return self.left.pretty(indent)

        header = "    " * indent + f"<op:{self.operation.symbol}>"  # type: ignore[union-attr]
        return "\n".join(
            [header, self.left.pretty(indent + 1), self.right.pretty(indent + 1)]
        )

    def _render(self, parent: Operation | None, is_right: bool) -> str:
        if self.right is None:
            return self.left._render(parent, is_right)

        op = self.operation
        text = (
            self.left._render(op, False)
            + op.symbol  # type: ignore[union-attr]
            + self.right._render(op, True)
        )
        if parent is not None and _needs_parentheses(parent, op, is_right):  # type: ignore[arg-type]
            return f"({text})"
        return text

    def __repr__(self) -> str:
        if self.right is None:
            return f"BinaryGrouping(None, {self.left!r})"
        return (
            f"BinaryGrouping({self.operation.symbol!r}, "  # type: ignore[union-attr]
            f"{self.left!r}, {self.right!r})"
        )


def _needs_parentheses(parent: Operation, child: Operation, is_right: bool) -> bool:
    """Check whether a child grouping must be parenthesised under its parent."""
    if child.precedence < parent.precedence:
        return True
    if child.precedence > parent.precedence:
        return False
    # Equal precedence: keep the tree shape the parser would rebuild.
    if is_right:
        return not parent.is_right_associative
    return parent.is_right_associative


def _ensure_operand(value: Any) -> Operand:
    """Convert a Python number to a constant operand (operands pass through)."""
    if isinstance(value, Operand):
        return value
    if isinstance(value, (bool, np.bool_)):
        raise InvalidOperationError(
            "operand", type(value), reason="booleans are not numbers"
        )
    if isinstance(value, (int, np.integer)):
        return Integer(int(value))
    if isinstance(value, (float, np.floating)):
        return Real(float(value))
    raise InvalidOperationError(
        "operand", type(value), reason="expected an operand, int or float"
    )


def _binary(symbol: str, left: Any, right: Any) -> BinaryGrouping:
    from canonyx.core.operations import standard_registry

    try:
        a = _ensure_operand(left)
        b = _ensure_operand(right)
    except InvalidOperationError:
        raise InvalidOperationError(symbol, (type(left), type(right))) from None
    return BinaryGrouping(standard_registry().lookup(symbol), a, b)
