"""Flattening of commutative chains into term lists and back."""

from __future__ import annotations

import logging

from canonyx.core.errors import EmptyFoldError, UnknownOperandError
from canonyx.core.operands import BinaryGrouping, Blank, Constant, Operand, Variable
from canonyx.core.operations import Operation, OperationRegistry, standard_registry

logger = logging.getLogger(__name__)


def unfold(
    focus: Operation,
    root: Operand,
    registry: OperationRegistry | None = None,
) -> list[Operand]:
    """Flatten a chain of a commutative operation into its terms.

    Groupings of ``focus`` are opened up, and so are groupings of its
    registered inverse: ``a - b`` under addition yields ``a`` and the
    transformed ``-1*b``. Every other operand is a term.

    Uses an explicit stack so that deep chains do not hit the recursion
    limit. Terms come out in left-to-right order.

    Each stack entry carries a parity flag. It flips below the right operand
    of an inverse grouping, and a nested inverse grouping reached with odd
    parity has its operands swapped: ``a - (b - c)`` yields ``a, c, -1*b``.
    Only one level of this correction is exact; ``a - (b - (c - d))`` yields
    ``a, d, -1*c, -1*b``.

    Args:
        focus: A commutative operation.
        root: The tree to flatten.
        registry: Registry used to look up the inverse of ``focus``.

    Returns:
        The terms, left to right.

    Raises:
        ValueError: If ``focus`` is not commutative.
    """
    if not focus.is_commutative:
        raise ValueError(f"Cannot unfold non-commutative operation '{focus.symbol}'")

    registry = registry or standard_registry()
    inverse = registry.inverse_of(focus)
    if inverse is None:
        logger.warning(
            "No registered inverse for commutative operation '%s'", focus.symbol
        )

    terms: list[Operand] = []
    stack: list[tuple[Operand, bool]] = [(root, True)]

    while stack:
        node, parity = stack.pop()

        if isinstance(node, (Constant, Variable)):
            terms.append(node)
        elif isinstance(node, Blank):
            continue
        elif isinstance(node, BinaryGrouping):
            if node.right is None:
                stack.append((node.left, parity))
            elif node.operation.id == focus.id:
                # Push right then left so left is popped first.
                stack.append((node.right, parity))
                stack.append((node.left, parity))
            elif inverse is not None and node.operation.id == inverse.operation.id:
                left, right = node.left, node.right
                if not parity:
                    left, right = right, left
                stack.append((inverse.transform(right), not parity))
                stack.append((left, parity))
            else:
                terms.append(node)
        else:
            raise UnknownOperandError("unfold", node)

    return terms


def fold(
    operation: Operation,
    terms: list[Operand],
    registry: OperationRegistry | None = None,
) -> Operand:
    """Combine terms with ``operation`` into a balanced tree.

    Adjacent pairs are combined round by round (an odd trailing term is
    carried into the next round), so the depth is logarithmic in the number
    of terms. Two constants are evaluated immediately.

    Raises:
        EmptyFoldError: If ``terms`` is empty.
        EvaluationError: If evaluating two constants fails.
    """
    if not terms:
        raise EmptyFoldError(operation.symbol)

    registry = registry or standard_registry()
    current = list(terms)

    while len(current) > 1:
        combined: list[Operand] = []
        for i in range(0, len(current) - 1, 2):
            a, b = current[i], current[i + 1]
            if a.is_constant and b.is_constant:
                combined.append(registry.evaluate(operation, a, b))
            else:
                combined.append(BinaryGrouping(operation, a, b))
        if len(current) % 2:
            combined.append(current[-1])
        current = combined

    return current[0]
