"""Symmetric transforms between the two coordinate functions of a fold.

A transform maps a trigonometric node to a related one: a sin/cos swap,
a quarter-period phase shift, a negation or a reciprocal. Applied to a
whole tree it derives g(n) from f(n); applied to single nodes it gives a
structure-preserving mutation of an (f, g) pair.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from primefold.expression.generation import random_tree
from primefold.expression.nodes import (
    Binary,
    Const,
    Expr,
    Unary,
    get_node,
    iter_nodes,
    rand_choice,
    replace_node,
)

TRIG_OPS = ("sin", "cos", "sind", "cosd")

_SWAPS = {"sin": "cos", "cos": "sin", "sind": "cosd", "cosd": "sind"}
_PHASES = {"sin": math.pi / 2, "cos": math.pi / 2, "sind": 90.0, "cosd": 90.0}


@dataclass(frozen=True)
class SymmetricTransform:
    """Rewrite rule taking a `source` trig node to a `target` one.

    Attributes:
        name: Label reported with mutations, e.g. ``"sin->cos"``.
        source: Trig operator the rule applies to.
        target: Operator of the rewritten node.
        phase: Added to the argument of the rewritten node.
        negate: Multiply the result by -1.
        reciprocal: Take 1 / result.
    """

    name: str
    source: str
    target: str
    phase: float = 0.0
    negate: bool = False
    reciprocal: bool = False

    def rewrite(self, node: Unary) -> Expr:
        """Apply the rule to a single node whose op is `source`."""
        child = node.child
        if self.phase:
            child = Binary("+", child, Const(self.phase))
        result: Expr = Unary(self.target, child)
        if self.negate:
            result = Binary("*", Const(-1), result)
        if self.reciprocal:
            result = Binary("/", Const(1), result)
        return result


def _build_transforms() -> tuple[SymmetricTransform, ...]:
    transforms = []
    for op in TRIG_OPS:
        transforms.append(SymmetricTransform(f"{op}->{_SWAPS[op]}", op, _SWAPS[op]))
    for op in TRIG_OPS:
        transforms.append(SymmetricTransform(f"{op}+phase", op, op, phase=_PHASES[op]))
    for op in TRIG_OPS:
        transforms.append(SymmetricTransform(f"-{op}", op, op, negate=True))
    for op in TRIG_OPS:
        transforms.append(SymmetricTransform(f"1/{op}", op, op, reciprocal=True))
    return tuple(transforms)


SYMMETRIC_TRANSFORMS = _build_transforms()


def _matching_paths(tree: Expr, transform: SymmetricTransform) -> list[tuple[int, ...]]:
    return [
        path for path, node in iter_nodes(tree)
        if isinstance(node, Unary) and node.op == transform.source
    ]


def apply_transform(tree: Expr, transform: SymmetricTransform) -> Expr:
    """Derive a related function from tree.

    Swaps and phase shifts rewrite every node matching the transform's
    source operator. Negation and reciprocal act on the whole function.
    """
    whole = transform.negate or transform.reciprocal

    def rewrite(node: Expr) -> Expr:
        if node.children:
            node = node.with_children([rewrite(child) for child in node.children])
        if not whole and isinstance(node, Unary) and node.op == transform.source:
            return transform.rewrite(node)
        return node

    result = rewrite(tree)
    if transform.negate:
        result = Binary("*", Const(-1), result)
    if transform.reciprocal:
        result = Binary("/", Const(1), result)
    return result


def derive_symmetric_pair(
    base: Expr, rng: np.random.Generator
) -> tuple[Expr, Expr, str]:
    """Return (base, T(base), name) for a random transform T."""
    transform = rand_choice(rng, SYMMETRIC_TRANSFORMS)
    return base, apply_transform(base, transform), transform.name


def create_symmetric_pair(
    rng: np.random.Generator, max_depth: int = 2
) -> tuple[Expr, Expr, str]:
    """Build a fresh pair (source(b), T(source(b))) from a random base b."""
    transform = rand_choice(rng, SYMMETRIC_TRANSFORMS)
    base = random_tree(rng, max_depth)
    f = Unary(transform.source, base)
    return f, transform.rewrite(f), transform.name


def symmetric_mutation(
    f: Expr, g: Expr, rng: np.random.Generator
) -> tuple[Expr, Expr, str]:
    """Mutate an (f, g) pair by rewriting one matching node in each.

    When neither function contains a node the chosen transform applies to,
    a fresh symmetric pair is created instead.

    Returns:
        Tuple of (new_f, new_g, transform name).
    """
    transform = rand_choice(rng, SYMMETRIC_TRANSFORMS)
    f_paths = _matching_paths(f, transform)
    g_paths = _matching_paths(g, transform)

    if not f_paths and not g_paths:
        return create_symmetric_pair(rng)

    if f_paths:
        path = rand_choice(rng, f_paths)
        f = replace_node(f, path, transform.rewrite(get_node(f, path)))
    if g_paths:
        path = rand_choice(rng, g_paths)
        g = replace_node(g, path, transform.rewrite(get_node(g, path)))
    return f, g, transform.name
