"""Exception hierarchy for canonyx.

Every error derives from :class:`CanonyxError` and from the closest builtin
exception, so callers can catch either.
"""

from __future__ import annotations

from typing import Any


class CanonyxError(Exception):
    """Base class for all canonyx errors."""


class InvalidExpressionError(CanonyxError, ValueError):
    """An expression tree is not valid for the requested operation.

    Args:
        message: Description of the problem.
        expression: The offending tree (if available).
    """

    def __init__(self, message: str, expression: Any = None) -> None:
        self.expression = expression
        if expression is not None:
            message = f"{message}: <{expression}>"
        super().__init__(message)


class UnknownOperandError(CanonyxError, TypeError):
    """An object that is not an operand reached the engine.

    This is an internal invariant violation; it is never recovered from.
    """

    def __init__(self, where: str, operand: Any) -> None:
        self.where = where
        self.operand = operand
        super().__init__(
            f"{where}: unsupported operand type {type(operand).__name__!r}"
        )


class InvalidOperationError(CanonyxError, TypeError):
    """Operator applied to operand types it does not support.

    Args:
        operation: Symbol or name of the operation.
        operand_types: Type or tuple of types involved.
        reason: Optional extra explanation.
    """

    def __init__(
        self,
        operation: str,
        operand_types: type | tuple[type, ...],
        reason: str | None = None,
    ) -> None:
        self.operation = operation
        if not isinstance(operand_types, tuple):
            operand_types = (operand_types,)
        self.operand_types = operand_types
        self.reason = reason

        names = ", ".join(t.__name__ for t in operand_types)
        message = f"Invalid operation '{operation}' for types ({names})"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class EmptyFoldError(CanonyxError, ValueError):
    """Fold was asked to combine an empty list of terms."""

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(f"Cannot fold an empty list of terms with '{operation}'")


class EvaluationError(CanonyxError, ArithmeticError):
    """Numeric evaluation of two constants failed.

    Args:
        operation: Symbol of the operation being evaluated.
        operands: The constant values that were combined.
        original_error: The underlying exception, if any.
    """

    def __init__(
        self,
        operation: str,
        operands: tuple[Any, ...],
        original_error: BaseException | None = None,
        reason: str | None = None,
    ) -> None:
        self.operation = operation
        self.operands = operands
        self.original_error = original_error

        values = f" {operation} ".join(repr(v) for v in operands)
        message = f"Cannot evaluate {values}"
        if reason:
            message += f": {reason}"
        if original_error is not None:
            message += f" (Original error: {original_error})"
        super().__init__(message)


class ConvergenceError(CanonyxError, RuntimeError):
    """Simplification did not reach a fixed point within its bounds.

    Args:
        reason: Which bound was hit.
        limit: The configured bound.
        expression: The tree being simplified when the bound was hit.
    """

    def __init__(self, reason: str, limit: int, expression: Any = None) -> None:
        self.reason = reason
        self.limit = limit
        self.expression = expression

        message = f"Simplification did not converge: {reason} (limit {limit})"
        if expression is not None:
            message += f" while simplifying <{expression}>"
        super().__init__(message)


class UnknownOperatorError(CanonyxError, LookupError):
    """Operation id or symbol not present in the registry."""

    def __init__(self, key: Any, available: list[str] | None = None) -> None:
        self.key = key
        self.available = available or []

        message = f"Unknown operator: {key!r}"
        if self.available:
            message += f". Available: {', '.join(self.available)}"
        super().__init__(message)


class UnknownVariableError(CanonyxError, LookupError):
    """Expression references a variable missing from the variable ordering."""

    def __init__(self, name: str, known: list[str]) -> None:
        self.name = name
        self.known = known
        super().__init__(
            f"Variable '{name}' is not in the variable ordering {known}"
        )


class ParseError(CanonyxError, ValueError):
    """Text could not be parsed into an expression.

    Args:
        position: Character offset where parsing failed.
        reason: What went wrong.
    """

    def __init__(self, position: int, reason: str) -> None:
        self.position = position
        self.reason = reason
        super().__init__(f"Parse error at position {position}: {reason}")
