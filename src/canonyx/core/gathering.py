"""Collection of repeated terms in a commutative chain."""

from __future__ import annotations

import logging

from canonyx.core.context import SimplificationContext
from canonyx.core.factoring import factor_match
from canonyx.core.hashing import expression_hash
from canonyx.core.operands import BinaryGrouping, Integer, Operand
from canonyx.core.operations import Operation, OperationRegistry

logger = logging.getLogger(__name__)


def gather(
    focus: Operation,
    terms: list[Operand],
    context: SimplificationContext | None = None,
) -> list[Operand]:
    """Combine repeated terms of a ``focus`` chain.

    Terms are sorted by hash length (stable), then swept once: each term not
    yet consumed collects every later term that repeats it, adding up the
    matched factors into a coefficient. ``x + x + 3*x`` under addition gives
    ``[x*5]`` and ``x * x`` under multiplication gives ``[x^2]``.

    A term whose coefficient adds up to zero is dropped. If every term is
    dropped the result is the identity of ``focus``. The sweep is greedy: it
    does not look for a globally best grouping.

    Args:
        focus: The commutative operation of the chain.
        terms: The terms of the chain (see :func:`~canonyx.core.folding.unfold`).
        context: Simplification context; a fresh one is used if omitted.

    Returns:
        The gathered terms.

    Raises:
        ValueError: If ``terms`` is empty.
    """
    if not terms:
        raise ValueError("Cannot gather an empty list of terms")

    if context is None:
        context = SimplificationContext()
    registry = context.registry

    promoted = registry.promote(focus)
    additive = registry.additive
    if promoted.id == focus.id or additive is None:
        return list(terms)

    ordered = sorted(terms, key=lambda term: len(expression_hash(term)))
    consumed = [False] * len(ordered)
    gathered: list[Operand] = []

    for i, term in enumerate(ordered):
        if consumed[i]:
            continue

        coefficient: Operand = Integer(1)
        for j in range(i + 1, len(ordered)):
            if consumed[j]:
                continue
            factor = factor_match(promoted, term, ordered[j], context)
            if factor is None:
                continue
            consumed[j] = True
            coefficient = _accumulate(additive, coefficient, factor, registry)

        if coefficient.is_zero:
            continue
        if coefficient.is_one:
            gathered.append(term)
        else:
            gathered.append(BinaryGrouping(promoted, term, coefficient))

    if not gathered:
        identity = registry.identity(focus)
        if identity is not None:
            gathered.append(identity)

    logger.debug("Gathered %d terms into %d", len(terms), len(gathered))
    return gathered


def _accumulate(
    additive: Operation,
    coefficient: Operand,
    factor: Operand,
    registry: OperationRegistry,
) -> Operand:
    if coefficient.is_constant and factor.is_constant:
        return registry.evaluate(additive, coefficient, factor)
    return BinaryGrouping(additive, coefficient, factor)
