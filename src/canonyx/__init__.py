"""Canonyx: canonical simplification of arithmetic expression trees."""

from canonyx.core.errors import (
    CanonyxError,
    ConvergenceError,
    EvaluationError,
    ParseError,
)
from canonyx.core.operands import (
    Operand,
    Blank,
    Integer,
    Real,
    Variable,
    BinaryGrouping,
)
from canonyx.core.operations import OperationRegistry, standard_registry
from canonyx.core.simplify import simplify
from canonyx.core.parser import parse
from canonyx.core.compiler import CompiledExpression, compile_expression

__version__ = "1.0.0"

__all__ = [
    # Core
    "Operand",
    "Blank",
    "Integer",
    "Real",
    "Variable",
    "BinaryGrouping",
    "OperationRegistry",
    "standard_registry",
    # Simplification
    "simplify",
    "parse",
    # Compilation
    "CompiledExpression",
    "compile_expression",
    # Errors
    "CanonyxError",
    "ConvergenceError",
    "EvaluationError",
    "ParseError",
]
