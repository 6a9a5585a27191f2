"""Random generation, mutation and crossover of expression trees."""

from __future__ import annotations

import numpy as np

from primefold.expression.nodes import (
    BINARY_OPS,
    MAX_MODULUS,
    MIN_MODULUS,
    NAMED_CONSTANTS,
    UNARY_OPS,
    Binary,
    Const,
    Expr,
    Id,
    Mod,
    Unary,
    get_node,
    iter_nodes,
    pick_random_subtree,
    rand_choice,
    rand_int,
    replace_matching,
    replace_node,
)

IRRATIONAL_CONSTANTS = tuple(NAMED_CONSTANTS.values())
POLYNOMIAL_BINARY_OPS = ("+", "-", "*")
POLYNOMIAL_UNARY_OPS = ("square", "cube")


def random_leaf(rng: np.random.Generator) -> Expr:
    """n (40%), an irrational constant (20%) or an integer 1..10 (40%)."""
    r = rng.random()
    if r < 0.4:
        return Id()
    if r < 0.6:
        return Const(rand_choice(rng, IRRATIONAL_CONSTANTS))
    return Const(rand_int(rng, 1, 10))


def random_tree(rng: np.random.Generator, max_depth: int = 3) -> Expr:
    """Generate a random expression of at most max_depth operator levels."""
    if max_depth <= 0:
        return random_leaf(rng)

    r = rng.random()
    if r < 0.2:
        return Mod(random_tree(rng, max_depth - 1), rand_int(rng, MIN_MODULUS, MAX_MODULUS))
    if r < 0.5:
        return Unary(rand_choice(rng, UNARY_OPS), random_tree(rng, max_depth - 1))
    return Binary(
        rand_choice(rng, BINARY_OPS),
        random_tree(rng, max_depth - 1),
        random_tree(rng, max_depth - 1),
    )


def is_polynomial(tree: Expr) -> bool:
    """True for trees built only from + - * square cube and mod over n and constants."""
    if isinstance(tree, (Const, Id)):
        return True
    if isinstance(tree, Binary):
        return (
            tree.op in POLYNOMIAL_BINARY_OPS
            and is_polynomial(tree.left)
            and is_polynomial(tree.right)
        )
    if isinstance(tree, Unary):
        return tree.op in POLYNOMIAL_UNARY_OPS and is_polynomial(tree.child)
    if isinstance(tree, Mod):
        return is_polynomial(tree.child)
    return False


def perturb_coefficient(value: float, rng: np.random.Generator) -> float:
    """Nudge a polynomial coefficient without collapsing it to zero."""
    if float(value).is_integer():
        perturbed = value + rand_int(rng, -2, 2)
        if perturbed == 0 and abs(value) > 1:
            perturbed = 1.0 if rng.random() < 0.5 else -1.0
        return float(perturbed)

    perturbed = value * (1 + rng.uniform(-0.1, 0.1))
    if abs(perturbed) < 1e-6:
        perturbed = 0.1 if rng.random() < 0.5 else -0.1
    return float(perturbed)


def _perturb_polynomial(tree: Expr, rng: np.random.Generator) -> Expr:
    constants = [node for _, node in iter_nodes(tree) if isinstance(node, Const)]
    if not constants:
        return tree
    target = rand_choice(rng, constants)
    return replace_matching(tree, target, Const(perturb_coefficient(target.value, rng)))


def mutate_tree(tree: Expr, rng: np.random.Generator, max_depth: int = 3) -> Expr:
    """Apply one randomly chosen mutation operator.

    Operators, by draw a ~ U(0, 1):
        a < 0.15 on a polynomial: perturb one coefficient (every equal
            constant node changes together).
        a < 0.35: replace a random subtree with a fresh random tree.
        a < 0.70: node-level mutation of the root.
        a < 0.85 with a binary root: swap the operands.
        otherwise a unary root is unwrapped; anything else is unchanged.

    Args:
        tree: Tree to mutate; it is not modified.
        rng: Random generator.
        max_depth: Depth of replacement subtrees.

    Returns:
        The mutated tree.
    """
    action = rng.random()

    if action < 0.15 and is_polynomial(tree):
        return _perturb_polynomial(tree, rng)
    if action < 0.35:
        path = pick_random_subtree(tree, rng)
        return replace_node(tree, path, random_tree(rng, max_depth))
    if action < 0.70:
        return tree.mutate(rng)
    if action < 0.85 and isinstance(tree, Binary):
        return Binary(tree.op, tree.right, tree.left)
    if isinstance(tree, Unary):
        return tree.child
    return tree


def crossover_trees(
    first: Expr, second: Expr, rng: np.random.Generator
) -> tuple[Expr, Expr]:
    """Swap one uniformly chosen subtree between two parents.

    Any node, including either root, may be chosen. The parents are left
    unchanged.
    """
    first_paths = [path for path, _ in iter_nodes(first)]
    second_paths = [path for path, _ in iter_nodes(second)]
    first_path = rand_choice(rng, first_paths)
    second_path = rand_choice(rng, second_paths)

    return (
        replace_node(first, first_path, get_node(second, second_path)),
        replace_node(second, second_path, get_node(first, first_path)),
    )
