"""Factor matching between two terms of a commutative chain.

Given a ``base`` term and a ``target`` term, a matcher returns the factor by
which ``target`` repeats ``base`` under the promoted operation, or None:

- under multiplication, ``factor_match(mul, x, 3*x)`` is ``3``;
- under exponentiation, ``factor_match(pow, x, x^3)`` is ``3`` and
  ``factor_match(pow, x^2, x^6)`` is ``3``.

Only exact cases are resolved. Real exponents and exponent ratios that are
not whole numbers never match.
"""

from __future__ import annotations

import logging

from canonyx.core.context import SimplificationContext
from canonyx.core.folding import fold, unfold
from canonyx.core.hashing import structural_equal
from canonyx.core.operands import BinaryGrouping, Integer, Operand
from canonyx.core.operations import Operation, OperationRegistry

logger = logging.getLogger(__name__)


def factor_match(
    operation: Operation,
    base: Operand,
    target: Operand,
    context: SimplificationContext | None = None,
) -> Operand | None:
    """Match ``target`` against ``base`` under the promoted ``operation``.

    Args:
        operation: The promoted operation of the chain being gathered
            (multiplication for sums, exponentiation for products).
        base: The term being collected.
        target: A later term of the same chain.
        context: Simplification context; a fresh one is used if omitted.

    Returns:
        The matched factor, or None if ``target`` does not repeat ``base``
        or the operation is not supported.
    """
    if context is None:
        context = SimplificationContext()
    registry = context.registry

    if _same(operation, registry.multiplicative):
        return multiplicative_factor_match(operation, base, target, registry)
    if _same(operation, registry.exponential):
        return exponential_factor_match(base, target, context)

    logger.warning("Factor matching is not supported for '%s'", operation.symbol)
    return None


def multiplicative_factor_match(
    operation: Operation,
    base: Operand,
    target: Operand,
    registry: OperationRegistry | None = None,
) -> Operand | None:
    """Remove ``base`` from the factors of ``target``.

    Returns what is left of ``target``: ``1`` if nothing is, the single
    remaining factor, or the remaining factors folded back together.
    """
    factors = unfold(operation, target, registry)

    for index, factor in enumerate(factors):
        if structural_equal(factor, base):
            break
    else:
        return None

    remainder = factors[:index] + factors[index + 1 :]
    if not remainder:
        return Integer(1)
    if len(remainder) == 1:
        return remainder[0]
    return fold(operation, remainder, registry)


def exponential_factor_match(
    base: Operand,
    target: Operand,
    context: SimplificationContext | None = None,
) -> Operand | None:
    """Match two powers of the same inner base.

    With ``base = b^m`` and ``target = b^n`` (a bare operand has exponent
    1), the match is ``n`` when ``m`` is one, or ``n / m`` when both are
    integers and ``m`` divides ``n``. The match is simplified before it is
    returned.
    """
    if context is None:
        context = SimplificationContext()
    exponential = context.registry.exponential

    inner_base, base_exponent = _decompose(base, exponential)
    inner_target, target_exponent = _decompose(target, exponential)
    if not structural_equal(inner_base, inner_target):
        return None

    if base_exponent.is_one:
        match = target_exponent
    elif (
        isinstance(base_exponent, Integer)
        and isinstance(target_exponent, Integer)
        and base_exponent.value != 0
        and target_exponent.value % base_exponent.value == 0
    ):
        match = Integer(target_exponent.value // base_exponent.value)
    else:
        return None

    from canonyx.core.simplify import simplify_in_context

    return simplify_in_context(match, context)


def _decompose(operand: Operand, exponential: Operation | None) -> tuple[Operand, Operand]:
    """Split a power into ``(inner_base, exponent)``."""
    while isinstance(operand, BinaryGrouping) and operand.right is None:
        operand = operand.left
    if isinstance(operand, BinaryGrouping) and _same(operand.operation, exponential):
        return operand.left, operand.right  # type: ignore[return-value]
    return operand, Integer(1)


def _same(operation: Operation | None, other: Operation | None) -> bool:
    return operation is not None and other is not None and operation.id == other.id
