"""Command-line interface.

Usage:
    canonyx "2 + 6 + 5*(x-x) + 6/y*y + 5^(z*z) - 12"
    canonyx "x*x + 2*x*x" --tree
    canonyx "x^2 + y" --eval x=3 --eval y=0.5
"""

from __future__ import annotations

import argparse
import logging
import sys

from canonyx import __version__
from canonyx.core.compiler import CompiledExpression
from canonyx.core.context import DEFAULT_MAX_DEPTH, DEFAULT_MAX_ITERATIONS
from canonyx.core.errors import CanonyxError, UnknownVariableError
from canonyx.core.parser import parse
from canonyx.core.simplify import simplify

logger = logging.getLogger(__name__)


def _assignment(text: str) -> tuple[str, float]:
    name, sep, value = text.partition("=")
    if not sep or not name.strip():
        raise argparse.ArgumentTypeError(f"expected NAME=VALUE, got {text!r}")
    try:
        return name.strip(), float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}") from None


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="canonyx",
        description="Simplify an arithmetic expression into canonical form",
        epilog="Examples:\n"
               "  canonyx 'x + x'                   Prints 2*x\n"
               "  canonyx 'x*x' --tree              Also prints the tree\n"
               "  canonyx 'x^2 + y' --eval x=3 --eval y=1  Prints 10.0\n",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "expression",
        help="Expression to simplify, e.g. '2*x + x'"
    )

    parser.add_argument(
        "--tree",
        action="store_true",
        help="Print the simplified tree, one node per line"
    )

    parser.add_argument(
        "--eval",
        dest="assignments",
        metavar="NAME=VALUE",
        type=_assignment,
        action="append",
        default=[],
        help="Evaluate the result with NAME bound to VALUE (repeatable)"
    )

    parser.add_argument(
        "--max-iterations",
        type=int,
        default=DEFAULT_MAX_ITERATIONS,
        help=f"Rewrite passes allowed per subexpression (default {DEFAULT_MAX_ITERATIONS})"
    )

    parser.add_argument(
        "--max-depth",
        type=int,
        default=DEFAULT_MAX_DEPTH,
        help=f"Nested simplification levels allowed (default {DEFAULT_MAX_DEPTH})"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log the simplification steps"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    return parser


def run(args: argparse.Namespace) -> None:
    """Parse, simplify and print as requested by ``args``."""
    expression = parse(args.expression)
    logger.debug("Parsed <%s>", expression)

    result = simplify(
        expression,
        max_iterations=args.max_iterations,
        max_depth=args.max_depth,
    )
    print(result)

    if args.tree:
        print(result.pretty())

    if args.assignments:
        values = dict(args.assignments)
        compiled = CompiledExpression(result)
        for name in compiled.variable_names:
            if name not in values:
                raise UnknownVariableError(name, sorted(values))
        print(compiled(*(values[name] for name in compiled.variable_names)))


def main(argv: list[str] | None = None) -> int:
    """Main entry point. Returns the process exit status."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.max_iterations < 1 or args.max_depth < 1:
        parser.error("--max-iterations and --max-depth must be at least 1")

    try:
        run(args)
    except CanonyxError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
