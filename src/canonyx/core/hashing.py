"""Structural fingerprints of expression trees.

An :data:`ExpressionHash` is a flat tuple of integer tokens. It is cheap to
build and compare, but it is only an approximate identity: trees of different
shape can produce the same tokens (the integer 120 and the variable ``x``
both hash to ``(120,)``). :func:`structural_equal` is the exact check and must
confirm any hash match before results are treated as interchangeable.
"""

from __future__ import annotations

import numpy as np

from canonyx.core.errors import UnknownOperandError
from canonyx.core.operands import (
    BinaryGrouping,
    Blank,
    Integer,
    Operand,
    Real,
    Variable,
)

ExpressionHash = tuple[int, ...]


def expression_hash(operand: Operand) -> ExpressionHash:
    """Linear token encoding of a tree.

    - Integer: its value.
    - Real: the IEEE-754 bit pattern of the double as a signed 64-bit integer.
    - Variable: one token per character of its name.
    - BinaryGrouping: the operation id followed by the hashes of both
      children (a degenerate grouping hashes as its operand).
    - Blank: no tokens.
    """
    tokens: list[int] = []

    # Pre-order walk; right child pushed first so left is encoded first.
    stack: list[Operand] = [operand]
    while stack:
        node = stack.pop()

        if isinstance(node, Integer):
            tokens.append(node.value)
        elif isinstance(node, Real):
            tokens.append(int(np.float64(node.value).view(np.int64)))
        elif isinstance(node, Variable):
            tokens.extend(ord(c) for c in node.name)
        elif isinstance(node, BinaryGrouping):
            if node.right is None:
                stack.append(node.left)
                continue
            tokens.append(node.operation.id)
            stack.append(node.right)
            stack.append(node.left)
        elif isinstance(node, Blank):
            continue
        else:
            raise UnknownOperandError("expression_hash", node)

    return tuple(tokens)


def distance(a: ExpressionHash, b: ExpressionHash) -> int:
    """Token-wise distance between two hashes.

    Sum of absolute differences over the shared prefix plus the absolute
    values of the remaining tokens of the longer hash. Zero only signals a
    candidate match; see :func:`structural_equal`.
    """
    shared = min(len(a), len(b))
    total = sum(abs(x - y) for x, y in zip(a[:shared], b[:shared]))
    total += sum(abs(x) for x in a[shared:])
    total += sum(abs(x) for x in b[shared:])
    return total


def structural_equal(a: Operand, b: Operand) -> bool:
    """Exact recursive comparison of two trees.

    Constants must have the same type and bit-identical values, variables the
    same name, and groupings the same operation id with equal children.
    Degenerate groupings compare as their operand.
    """
    stack = [(a, b)]
    while stack:
        x, y = stack.pop()
        x = _unwrap(x)
        y = _unwrap(y)

        if isinstance(x, BinaryGrouping):
            if not isinstance(y, BinaryGrouping):
                _check(y)
                return False
            if x.operation.id != y.operation.id:
                return False
            stack.append((x.right, y.right))
            stack.append((x.left, y.left))
            continue

        _check(x)
        _check(y)
        if type(x) is not type(y):
            return False
        if isinstance(x, Integer):
            if x.value != y.value:
                return False
        elif isinstance(x, Real):
            if _bits(x.value) != _bits(y.value):
                return False
        elif isinstance(x, Variable):
            if x.name != y.name:
                return False

    return True


def _unwrap(operand: Operand) -> Operand:
    while isinstance(operand, BinaryGrouping) and operand.right is None:
        operand = operand.left
    return operand


def _check(operand: object) -> None:
    if not isinstance(operand, (Integer, Real, Variable, BinaryGrouping, Blank)):
        raise UnknownOperandError("structural_equal", operand)


def _bits(value: float) -> int:
    return int(np.float64(value).view(np.int64))
