"""Simplification engine.

:func:`simplify` rewrites an expression tree into a reduced canonical form:

- constant subtrees are evaluated;
- commutative chains (including their inverses, so ``a - b`` is treated as
  ``a + -1*b``) are flattened, repeated terms are gathered and the chain is
  folded back into a balanced tree with its constant first;
- identity and absorbing elements are removed (``x+0``, ``x*1``, ``x*0``,
  ``x^0``, ``x^1``, ``0^x``, ``1^x``) and negative exponents become
  quotients.

Each grouping is rewritten until a pass produces a tree with the same hash as
its input, or a tree that was already seen in the current branch.

Example:
    >>> from canonyx import parse, simplify
    >>> str(simplify(parse("x + x + y*0")))
    '2*x'
    >>> str(simplify(parse("2 + 6 + 5*(x-x) + 6/y*y + 5^(z*z) - 12")))
    '2+5^z^2'
"""

from __future__ import annotations

import logging

from canonyx.core.context import (
    DEFAULT_MAX_DEPTH,
    DEFAULT_MAX_ITERATIONS,
    SimplificationContext,
)
from canonyx.core.errors import ConvergenceError, UnknownOperandError
from canonyx.core.folding import fold, unfold
from canonyx.core.gathering import gather
from canonyx.core.hashing import distance, expression_hash
from canonyx.core.operands import (
    BinaryGrouping,
    Blank,
    Constant,
    Integer,
    Operand,
    Variable,
)
from canonyx.core.operations import Operation, OperationRegistry

logger = logging.getLogger(__name__)


def simplify(
    operand: Operand,
    registry: OperationRegistry | None = None,
    *,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
    max_depth: int = DEFAULT_MAX_DEPTH,
    collision_fallback: bool = True,
) -> Operand:
    """Simplify an expression tree.

    Args:
        operand: The tree to simplify. It is never modified.
        registry: Operation registry (defaults to the standard one).
        max_iterations: Rewrite passes allowed per grouping.
        max_depth: Nested simplification levels allowed.
        collision_fallback: Reuse a cached result whose tree merely has the
            same hash when no structurally equal tree was cached. Faster,
            but wrong if two different subtrees collide.

    Returns:
        The simplified tree.

    Raises:
        ConvergenceError: If a bound is exceeded.
        EvaluationError: If a constant subexpression cannot be evaluated
            (e.g. division by zero).
        UnknownOperandError: If the tree contains a non-operand object.

    Example:
        >>> from canonyx import Variable
        >>> x = Variable("x")
        >>> str(simplify(x * x))
        'x^2'
    """
    context = SimplificationContext(
        registry,
        max_iterations=max_iterations,
        max_depth=max_depth,
        collision_fallback=collision_fallback,
    )
    return simplify_in_context(operand, context)


def simplify_in_context(operand: Operand, context: SimplificationContext) -> Operand:
    """Simplify ``operand`` sharing the cache and limits of ``context``."""
    with context.descend(operand):
        if isinstance(operand, (Constant, Variable, Blank)):
            return operand
        if isinstance(operand, BinaryGrouping):
            if operand.right is None:
                return simplify_in_context(operand.left, context)
            return _simplify_grouping(operand, context)
        raise UnknownOperandError("simplify", operand)


def is_constant_tree(operand: Operand) -> bool:
    """Check whether every leaf of ``operand`` is a constant."""
    stack = [operand]
    while stack:
        node = stack.pop()
        if isinstance(node, BinaryGrouping):
            stack.append(node.left)
            if node.right is not None:
                stack.append(node.right)
        elif not isinstance(node, Constant):
            return False
    return True


def _simplify_grouping(node: BinaryGrouping, context: SimplificationContext) -> Operand:
    key = expression_hash(node)
    cached = context.lookup(key, node)
    if cached is not None:
        logger.debug("Cache hit for <%s>", node)
        return cached

    branch = context
    current: BinaryGrouping = node
    for _ in range(context.max_iterations):
        result, candidate = _rewrite(current, branch)
        if candidate is None:
            break

        candidate_key = expression_hash(candidate)
        previous = branch.find(candidate_key, candidate)
        if previous is not None:
            logger.debug("Rewrite of <%s> returned to <%s>", node, previous)
            result = previous
            break

        # Speculative pass: its entries must not reach the caller.
        logger.debug("Rewrote <%s> to <%s>", current, candidate)
        branch = branch.copy()
        branch.record(candidate_key, candidate, candidate)
        current = candidate
    else:
        raise ConvergenceError("maximum iterations exceeded", context.max_iterations, node)

    context.record(key, node, result, front=True)
    return result


def _rewrite(
    node: BinaryGrouping, context: SimplificationContext
) -> tuple[Operand, BinaryGrouping | None]:
    """One rewrite pass over a grouping.

    Returns the rewritten tree and, when its hash differs from the hash of
    ``node``, the same tree as the candidate for another pass.
    """
    registry = context.registry
    operation: Operation = node.operation  # type: ignore[assignment]
    focus = registry.base_of(operation) or operation
    key = expression_hash(node)

    grouping = node
    if focus.is_commutative and not _is_reciprocal(node, focus, registry):
        combined = _reduce_commutative(node, focus, context)
        if not isinstance(combined, BinaryGrouping):
            return simplify_in_context(combined, context), None
        if combined.right is None:
            return simplify_in_context(combined.left, context), None
        grouping = combined

    left = simplify_in_context(grouping.left, context)
    right = simplify_in_context(grouping.right, context)  # type: ignore[arg-type]
    if isinstance(left, Constant) and isinstance(right, Constant):
        return registry.evaluate(grouping.operation, left, right), None  # type: ignore[arg-type]

    rebuilt = grouping.with_children(left, right)
    context.record(key, node, rebuilt)

    result = _apply_aggressive_rules(rebuilt, context)
    if isinstance(result, BinaryGrouping) and distance(expression_hash(result), key) != 0:
        return result, result
    return result, None


def _reduce_commutative(
    node: BinaryGrouping, focus: Operation, context: SimplificationContext
) -> Operand:
    """Flatten a chain, evaluate its constants and gather the rest.

    Returns the constant, the residue, or ``focus(constant, residue)``.
    """
    registry = context.registry
    terms = unfold(focus, node, registry)
    logger.debug("Unfolded <%s> into %d terms", node, len(terms))

    constants: list[Operand] = []
    unresolved: list[Operand] = []
    for term in terms:
        if is_constant_tree(term):
            value = simplify_in_context(term, context)
            if isinstance(value, Constant):
                constants.append(value)
                continue
            term = value
        unresolved.append(term)

    residue: Operand | None = None
    if len(unresolved) == 1:
        residue = simplify_in_context(unresolved[0], context)
    elif unresolved:
        gathered = gather(focus, unresolved, context)
        if gathered:
            residue = fold(focus, gathered, registry)

    if isinstance(residue, Constant):
        constants.append(residue)
        residue = None

    constant = fold(focus, constants, registry) if constants else None

    if constant is None:
        return residue if residue is not None else Blank()
    if residue is None:
        return constant
    return BinaryGrouping(focus, constant, residue)


def _is_reciprocal(
    node: BinaryGrouping, focus: Operation, registry: OperationRegistry
) -> bool:
    """Check for ``1/y``, the form negative exponents are rewritten into.

    Unfolding it would give ``y^(-1)`` back, so it is left as it is. A
    constant ``y`` or a nested quotient still goes through the chain.
    """
    right = node.right
    return (
        _same(focus, registry.multiplicative)
        and node.operation.id != focus.id
        and node.left.is_one
        and not isinstance(right, Constant)
        and not (
            isinstance(right, BinaryGrouping) and right.operation.id == node.operation.id
        )
    )


def _apply_aggressive_rules(
    grouping: BinaryGrouping, context: SimplificationContext
) -> Operand:
    """Remove identity and absorbing elements, one rule at most."""
    registry = context.registry
    operation = grouping.operation
    left = grouping.left
    right: Operand = grouping.right  # type: ignore[assignment]
    result: Operand = grouping

    if _same(operation, registry.additive):
        if right.is_zero:
            result = left
        elif left.is_zero:
            result = right
    elif _same(operation, registry.multiplicative):
        if left.is_zero or right.is_zero:
            result = Integer(0)
        elif right.is_one:
            result = left
        elif left.is_one:
            result = right
    elif _same(operation, registry.exponential):
        result = _power_rules(grouping, registry)

    if isinstance(result, BinaryGrouping) and result.right is not None:
        result = result.with_children(
            simplify_in_context(result.left, context),
            simplify_in_context(result.right, context),
        )
    return result


def _power_rules(grouping: BinaryGrouping, registry: OperationRegistry) -> Operand:
    base = grouping.left
    exponent: Operand = grouping.right  # type: ignore[assignment]

    if exponent.is_zero:
        return Integer(1)
    if base.is_zero:
        return Integer(0)
    if base.is_one:
        return Integer(1)
    if exponent.is_one:
        return base

    if isinstance(exponent, Constant) and exponent.value < 0:
        multiplicative = registry.multiplicative
        inverse = registry.inverse_of(multiplicative) if multiplicative else None
        if inverse is not None:
            positive = BinaryGrouping(
                grouping.operation, base, type(exponent)(-exponent.value)
            )
            return BinaryGrouping(inverse.operation, Integer(1), positive)

    return grouping


def _same(operation: Operation | None, other: Operation | None) -> bool:
    return operation is not None and other is not None and operation.id == other.id
