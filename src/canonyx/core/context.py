"""Simplification context: registry, limits and the memoization cache."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator

from canonyx.core.errors import ConvergenceError
from canonyx.core.hashing import ExpressionHash, structural_equal
from canonyx.core.operands import Operand
from canonyx.core.operations import OperationRegistry, standard_registry

logger = logging.getLogger(__name__)

# Candidate rewrite passes allowed per grouping before giving up.
DEFAULT_MAX_ITERATIONS = 64

# Nested simplify calls allowed before giving up.
DEFAULT_MAX_DEPTH = 100


@dataclass(frozen=True)
class CacheEntry:
    """A tree that was simplified and the result produced for it."""

    source: Operand
    result: Operand


class SimplificationContext:
    """State shared by one simplification call.

    The cache maps an expression hash to the entries recorded for trees with
    that hash, oldest first unless recorded at the front. It only grows. Use
    :meth:`copy` before exploring a speculative rewrite so that its entries
    stay out of this context.

    Args:
        registry: Operation registry (defaults to the standard one).
        max_iterations: Candidate passes allowed per grouping.
        max_depth: Nested simplify calls allowed.
        collision_fallback: On a hash hit without a structurally equal
            source, return the bucket's first result anyway.
    """

    __slots__ = (
        "registry",
        "max_iterations",
        "max_depth",
        "collision_fallback",
        "depth",
        "_cache",
    )

    def __init__(
        self,
        registry: OperationRegistry | None = None,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
        max_depth: int = DEFAULT_MAX_DEPTH,
        collision_fallback: bool = True,
    ) -> None:
        if max_iterations < 1:
            raise ValueError(f"max_iterations must be at least 1, got {max_iterations}")
        if max_depth < 1:
            raise ValueError(f"max_depth must be at least 1, got {max_depth}")

        self.registry = registry or standard_registry()
        self.max_iterations = max_iterations
        self.max_depth = max_depth
        self.collision_fallback = collision_fallback
        self.depth = 0
        self._cache: dict[ExpressionHash, list[CacheEntry]] = {}

    def lookup(self, key: ExpressionHash, source: Operand) -> Operand | None:
        """Return the cached result for ``source``.

        Falls back to the first result of the bucket when no entry matches
        structurally and ``collision_fallback`` is on.
        """
        entries = self._cache.get(key)
        if not entries:
            return None

        for entry in entries:
            if structural_equal(entry.source, source):
                return entry.result

        if self.collision_fallback:
            logger.debug("Hash collision for <%s>, reusing <%s>", source, entries[0].result)
            return entries[0].result
        return None

    def find(self, key: ExpressionHash, source: Operand) -> Operand | None:
        """Return the cached result for a structurally equal source only."""
        for entry in self._cache.get(key, ()):
            if structural_equal(entry.source, source):
                return entry.result
        return None

    def record(
        self,
        key: ExpressionHash,
        source: Operand,
        result: Operand,
        front: bool = False,
    ) -> None:
        """Add an entry under ``key``; ``front`` makes it the preferred one."""
        entries = self._cache.setdefault(key, [])
        entry = CacheEntry(source, result)
        if front:
            entries.insert(0, entry)
        else:
            entries.append(entry)

    def copy(self) -> SimplificationContext:
        """Independent context with the same settings and cache contents."""
        other = SimplificationContext(
            self.registry,
            self.max_iterations,
            self.max_depth,
            self.collision_fallback,
        )
        other.depth = self.depth
        other._cache = {key: list(entries) for key, entries in self._cache.items()}
        return other

    @contextmanager
    def descend(self, operand: Operand) -> Iterator[None]:
        """Track one level of nested simplification.

        Raises:
            ConvergenceError: If ``max_depth`` levels are already active.
        """
        if self.depth >= self.max_depth:
            raise ConvergenceError("maximum depth exceeded", self.max_depth, operand)
        self.depth += 1
        try:
            yield
        finally:
            self.depth -= 1

    def __len__(self) -> int:
        return len(self._cache)

    def __contains__(self, key: ExpressionHash) -> bool:
        return key in self._cache

    def __repr__(self) -> str:
        entries = sum(len(v) for v in self._cache.values())
        return (
            f"SimplificationContext(buckets={len(self._cache)}, "
            f"entries={entries}, depth={self.depth})"
        )
