"""Core expression and simplification system for canonyx."""

from canonyx.core.errors import (
    CanonyxError,
    InvalidExpressionError,
    UnknownOperandError,
    InvalidOperationError,
    EmptyFoldError,
    EvaluationError,
    ConvergenceError,
    UnknownOperatorError,
    UnknownVariableError,
    ParseError,
)
from canonyx.core.operands import (
    Operand,
    Blank,
    Constant,
    Integer,
    Real,
    Variable,
    BinaryGrouping,
)
from canonyx.core.operations import (
    Operation,
    OperationRegistry,
    Inverse,
    Precedence,
    Classification,
    ADD,
    SUB,
    MUL,
    DIV,
    POW,
    negate,
    reciprocal,
    standard_registry,
)
from canonyx.core.hashing import (
    ExpressionHash,
    expression_hash,
    distance,
    structural_equal,
)
from canonyx.core.folding import fold, unfold
from canonyx.core.context import (
    DEFAULT_MAX_DEPTH,
    DEFAULT_MAX_ITERATIONS,
    SimplificationContext,
)
from canonyx.core.factoring import (
    factor_match,
    multiplicative_factor_match,
    exponential_factor_match,
)
from canonyx.core.gathering import gather
from canonyx.core.simplify import simplify, simplify_in_context
from canonyx.core.parser import parse, tokenize
from canonyx.core.compiler import (
    collect_variables,
    compile_expression,
    compile_to_dict_function,
    CompiledExpression,
)

__all__ = [
    # Errors
    "CanonyxError",
    "InvalidExpressionError",
    "UnknownOperandError",
    "InvalidOperationError",
    "EmptyFoldError",
    "EvaluationError",
    "ConvergenceError",
    "UnknownOperatorError",
    "UnknownVariableError",
    "ParseError",
    # Operands
    "Operand",
    "Blank",
    "Constant",
    "Integer",
    "Real",
    "Variable",
    "BinaryGrouping",
    # Operations
    "Operation",
    "OperationRegistry",
    "Inverse",
    "Precedence",
    "Classification",
    "ADD",
    "SUB",
    "MUL",
    "DIV",
    "POW",
    "negate",
    "reciprocal",
    "standard_registry",
    # Hashing
    "ExpressionHash",
    "expression_hash",
    "distance",
    "structural_equal",
    # Engine
    "fold",
    "unfold",
    "DEFAULT_MAX_DEPTH",
    "DEFAULT_MAX_ITERATIONS",
    "SimplificationContext",
    "factor_match",
    "multiplicative_factor_match",
    "exponential_factor_match",
    "gather",
    "simplify",
    "simplify_in_context",
    # Parser
    "parse",
    "tokenize",
    # Compiler
    "collect_variables",
    "compile_expression",
    "compile_to_dict_function",
    "CompiledExpression",
]
