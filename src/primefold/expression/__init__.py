"""Expression trees over the integer variable n.

This module provides:
1. Immutable AST nodes with vectorized evaluation
2. An infix parser with explicit success/failure results
3. Random generation, mutation and crossover operators
4. Symmetric transforms for pairs of coordinate functions
"""

from primefold.expression.nodes import (
    BINARY_OPS,
    UNARY_OPS,
    Binary,
    Const,
    Expr,
    Id,
    Mod,
    Unary,
)
from primefold.expression.parser import (
    ExpressionSyntaxError,
    ParseError,
    ParseResult,
    parse,
    parse_expression,
)
from primefold.expression.generation import (
    crossover_trees,
    is_polynomial,
    mutate_tree,
    random_tree,
)
from primefold.expression.symmetry import (
    SYMMETRIC_TRANSFORMS,
    SymmetricTransform,
    apply_transform,
    derive_symmetric_pair,
    symmetric_mutation,
)

__all__ = [
    # Nodes
    "BINARY_OPS",
    "UNARY_OPS",
    "Binary",
    "Const",
    "Expr",
    "Id",
    "Mod",
    "Unary",
    # Parser
    "ExpressionSyntaxError",
    "ParseError",
    "ParseResult",
    "parse",
    "parse_expression",
    # Generation
    "crossover_trees",
    "is_polynomial",
    "mutate_tree",
    "random_tree",
    # Symmetry
    "SYMMETRIC_TRANSFORMS",
    "SymmetricTransform",
    "apply_transform",
    "derive_symmetric_pair",
    "symmetric_mutation",
]
