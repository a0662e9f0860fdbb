"""Walk through the stages of simplifying one expression."""

import numpy as np

from canonyx import CompiledExpression, compile_expression, parse, simplify
from canonyx.core.folding import fold, unfold
from canonyx.core.operations import standard_registry
from canonyx.core.simplify import is_constant_tree

print("=" * 60)
print("CANONYX - Simplification walkthrough")
print("=" * 60)

text = "2 + 6 + 5 * (x - x) + 6/y * y + 5^(z * z) - 12"
expr = parse(text)
print(f"\nParsed:     {expr}")

# =============================================================================
# Flattening the top-level sum
# =============================================================================
print("\n-- Unfold / fold")
print("-" * 40)

focus = standard_registry().base_of(expr.operation) or expr.operation
terms = unfold(focus, expr)
print(f"Unfolded into {len(terms)} terms:")
for term in terms:
    print(f"  constant? {is_constant_tree(term)!s:5}  {term}")

folded = fold(focus, terms)
print(f"Folded:     {folded}")
print(folded.pretty(1))

# =============================================================================
# Simplification
# =============================================================================
print("\n-- Simplify")
print("-" * 40)

result = simplify(expr)
print(f"Simplified: {result}")
print(result.pretty(1))

# =============================================================================
# Partial evaluation and compilation
# =============================================================================
print("\n-- Evaluate")
print("-" * 40)

print(f"z=3 substituted: {simplify(result.substitute({'z': 3}))}")

compiled = CompiledExpression(result)
print(f"Variables: {compiled.variable_names}")
print(f"f(1) = {compiled(1.0)}, f(2) = {compiled(2.0)}")

points = np.array([[0.0, 0.5, 1.0, 1.5]])
f = compile_expression(result, compiled.variable_names)
print(f"Vectorized over z={points[0]}: {f(points)}")
