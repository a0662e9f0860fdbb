"""Expression compiler for fast evaluation.

Compiles simplified expression trees into closures over numpy operations.
The compiled callable takes one array of variable values, in a fixed order,
and avoids walking the tree or looking up names on each call.
"""

from __future__ import annotations

from functools import lru_cache
from typing import TYPE_CHECKING, Callable, Sequence

import numpy as np

from canonyx.core.errors import (
    InvalidExpressionError,
    UnknownOperandError,
    UnknownVariableError,
)

if TYPE_CHECKING:
    from numpy.typing import ArrayLike, NDArray

    from canonyx.core.operands import Operand, Variable

Evaluator = Callable[["NDArray[np.floating]"], "NDArray[np.floating] | float"]


def collect_variables(operand: Operand) -> list[str]:
    """Sorted, deduplicated names of the variables in ``operand``."""
    return sorted(operand.get_variables())


def compile_expression(
    operand: Operand,
    variables: Sequence[str | Variable],
) -> Evaluator:
    """Compile an expression tree into a fast callable.

    The returned function takes a 1D numpy array of variable values
    (in the order specified by ``variables``) and returns the expression value.

    Args:
        operand: The expression to compile.
        variables: Ordered variable names (or Variables). The compiled
            function expects values in this order.

    Returns:
        A callable that evaluates the expression given variable values as an array.

    Raises:
        ValueError: If ``variables`` names a variable twice.
        UnknownVariableError: If the expression uses a variable that is not
            in ``variables``.
        InvalidExpressionError: If the expression contains a Blank.

    Example:
        >>> x = Variable("x")
        >>> y = Variable("y")
        >>> f = compile_expression(x**2 + y**2, ["x", "y"])
        >>> f(np.array([3.0, 4.0]))  # Returns 25.0
    """
    names = _variable_names(variables)
    return _compile_cached(operand, names)


@lru_cache(maxsize=1024)
def _compile_cached(operand: Operand, names: tuple[str, ...]) -> Evaluator:
    """Cached compilation; structurally equal trees share one closure."""
    indices = {name: i for i, name in enumerate(names)}
    return _build_evaluator(operand, indices, list(names))


def _build_evaluator(
    operand: Operand,
    indices: dict[str, int],
    names: list[str],
) -> Evaluator:
    """Recursively build an evaluator function for a tree.

    Array indices are resolved here, once, and captured by the closures.
    """
    from canonyx.core.operands import BinaryGrouping, Blank, Constant, Variable

    if isinstance(operand, Constant):
        value = np.float64(operand.value)
        return lambda x: value

    elif isinstance(operand, Variable):
        if operand.name not in indices:
            raise UnknownVariableError(operand.name, names)
        idx = indices[operand.name]
        return lambda x, i=idx: x[i]

    elif isinstance(operand, BinaryGrouping):
        if operand.right is None:
            return _build_evaluator(operand.left, indices, names)
        left_fn = _build_evaluator(operand.left, indices, names)
        right_fn = _build_evaluator(operand.right, indices, names)
        fn = operand.operation.array_function  # type: ignore[union-attr]
        return lambda x, l=left_fn, r=right_fn, f=fn: f(l(x), r(x))

    elif isinstance(operand, Blank):
        raise InvalidExpressionError("Cannot compile a blank operand")

    else:
        raise UnknownOperandError("compile_expression", operand)


def compile_to_dict_function(
    operand: Operand,
    variables: Sequence[str | Variable],
) -> Callable[[dict[str, ArrayLike | float]], NDArray[np.floating] | float]:
    """Compile an expression to a function that takes a dict of values.

    Accepts the same mapping as :meth:`Operand.evaluate` but runs the
    compiled closure.
    """
    array_fn = compile_expression(operand, variables)
    names = _variable_names(variables)

    def dict_fn(values: dict[str, ArrayLike | float]) -> NDArray[np.floating] | float:
        arr = np.array([values[name] for name in names], dtype=float)
        return array_fn(arr)

    return dict_fn


def _variable_names(variables: Sequence[str | Variable]) -> tuple[str, ...]:
    names = tuple(v if isinstance(v, str) else v.name for v in variables)
    if len(set(names)) != len(names):
        duplicates = sorted({n for n in names if names.count(n) > 1})
        raise ValueError(f"Duplicate variables in ordering: {duplicates}")
    return names


class CompiledExpression:
    """A compiled expression bound to its variable ordering.

    Args:
        operand: The expression to compile (normally a simplified one).
        variables: Variable ordering; defaults to the sorted variable
            names of ``operand``.
    """

    __slots__ = ("_operand", "_var_names", "_value_fn")

    def __init__(
        self,
        operand: Operand,
        variables: Sequence[str | Variable] | None = None,
    ) -> None:
        if variables is None:
            variables = collect_variables(operand)
        self._operand = operand
        self._var_names = list(_variable_names(variables))
        self._value_fn = compile_expression(operand, self._var_names)

    @property
    def operand(self) -> Operand:
        return self._operand

    @property
    def n_variables(self) -> int:
        """Number of variables."""
        return len(self._var_names)

    @property
    def variable_names(self) -> list[str]:
        """Names of the variables in order."""
        return self._var_names.copy()

    def value(self, x: NDArray[np.floating]) -> float:
        """Evaluate the expression at point x."""
        result = self._value_fn(np.asarray(x, dtype=float))
        return float(result) if np.isscalar(result) else float(result.item())

    def __call__(self, *args: float) -> float:
        if len(args) != self.n_variables:
            raise TypeError(
                f"Expected {self.n_variables} arguments "
                f"({', '.join(self._var_names)}), got {len(args)}"
            )
        return self.value(np.array(args, dtype=float))

    def __repr__(self) -> str:
        return f"CompiledExpression({self._operand}, variables={self._var_names})"
