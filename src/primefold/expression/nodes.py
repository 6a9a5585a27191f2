"""Expression tree nodes for candidate functions of one integer variable n.

Trees are immutable: every structural operation (mutation, subtree
replacement, crossover) builds a new tree and leaves its inputs untouched.
Evaluation is vectorized over NumPy arrays and never raises for numeric
problems; out-of-domain results follow IEEE semantics (nan/inf) and callers
decide how to treat non-finite values.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterator, Sequence

import numpy as np

UNARY_OPS = (
    "sin", "cos", "sind", "cosd", "sqrt", "log",
    "abs", "floor", "ceil", "square", "cube",
)
BINARY_OPS = ("+", "-", "*", "/", "mod", "^")

NAMED_CONSTANTS = {
    "pi": math.pi,
    "e": math.e,
    "sqrt2": math.sqrt(2),
    "phi": (1 + math.sqrt(5)) / 2,
}

MIN_MODULUS = 2
MAX_MODULUS = 101
POWER_OPERAND_LIMIT = 1e6

Path = tuple[int, ...]

_UNARY_FUNCTIONS = {
    "sin": np.sin,
    "cos": np.cos,
    "sind": lambda v: np.sin(np.deg2rad(v)),
    "cosd": lambda v: np.cos(np.deg2rad(v)),
    "sqrt": np.sqrt,
    "log": np.log,
    "abs": np.abs,
    "floor": np.floor,
    "ceil": np.ceil,
    "square": np.square,
    "cube": lambda v: v * v * v,
}


def rand_int(rng: np.random.Generator, low: int, high: int) -> int:
    """Uniform integer in [low, high], both ends inclusive."""
    return int(rng.integers(low, high + 1))


def rand_choice(rng: np.random.Generator, options: Sequence):
    """Uniform pick from a non-empty sequence."""
    return options[int(rng.integers(len(options)))]


def safe_power(base, exponent):
    """Elementwise power with the search's domain rules.

    0^0 is 1; a negative base with a non-integer exponent, an operand of
    magnitude above 1e6, or a non-finite result all give nan.
    """
    base, exponent = np.broadcast_arrays(
        np.asarray(base, dtype=np.float64), np.asarray(exponent, dtype=np.float64)
    )
    with np.errstate(all="ignore"):
        result = np.power(base, exponent)
    invalid = (
        (np.abs(base) > POWER_OPERAND_LIMIT)
        | (np.abs(exponent) > POWER_OPERAND_LIMIT)
        | ((base < 0) & (exponent != np.floor(exponent)))
        | ~np.isfinite(result)
    )
    return np.where(invalid, np.nan, result)


def truncated_mod(value, modulus):
    """Remainder with the sign of the dividend; a zero modulus returns value."""
    value = np.asarray(value, dtype=np.float64)
    modulus = np.asarray(modulus, dtype=np.float64)
    with np.errstate(all="ignore"):
        return np.where(modulus != 0, np.fmod(value, modulus), value)


def _format_number(value: float) -> str:
    if value.is_integer() and abs(value) < 1e16:
        return str(int(value))
    return repr(value)


def _operand(expr: Expr) -> str:
    text = expr.to_str()
    return f"({text})" if isinstance(expr, Binary) else text


class Expr(ABC):
    """Base class for expression tree nodes."""

    @property
    @abstractmethod
    def children(self) -> tuple[Expr, ...]:
        """Direct subtrees, left to right."""

    @abstractmethod
    def with_children(self, children: Sequence[Expr]) -> Expr:
        """Return a copy of this node with its children replaced."""

    @abstractmethod
    def _evaluate(self, n: np.ndarray) -> np.ndarray:
        ...

    @abstractmethod
    def to_str(self) -> str:
        """Canonical text form, parseable back to an equivalent tree."""

    @abstractmethod
    def mutate(self, rng: np.random.Generator) -> Expr:
        """Return a locally perturbed variant of this node."""

    def evaluate(self, n):
        """Evaluate the expression at n.

        Args:
            n: Integer or array of integers.

        Returns:
            A float for scalar input, otherwise a float64 array of the same
            shape. Out-of-domain results are nan or +/-inf.
        """
        values = np.asarray(n, dtype=np.float64)
        with np.errstate(all="ignore"):
            result = np.broadcast_to(self._evaluate(values), values.shape)
        if result.ndim == 0:
            return float(result)
        return np.array(result, dtype=np.float64)

    def size(self) -> int:
        """Number of nodes in the tree."""
        return 1 + sum(child.size() for child in self.children)

    def depth(self) -> int:
        """Length of the longest root-to-leaf path, counting nodes."""
        return 1 + max((child.depth() for child in self.children), default=0)

    def __str__(self) -> str:
        return self.to_str()


@dataclass(frozen=True)
class Const(Expr):
    """Numeric literal or named constant."""

    value: float

    def __post_init__(self):
        object.__setattr__(self, "value", float(self.value))

    @property
    def children(self) -> tuple[Expr, ...]:
        return ()

    def with_children(self, children: Sequence[Expr]) -> Expr:
        return self

    def _evaluate(self, n: np.ndarray) -> np.ndarray:
        return np.full_like(n, self.value)

    def to_str(self) -> str:
        for name, constant in NAMED_CONSTANTS.items():
            if self.value == constant:
                return name
        text = _format_number(abs(self.value))
        if math.copysign(1.0, self.value) < 0:
            return f"(-{text})"
        return text

    def mutate(self, rng: np.random.Generator) -> Expr:
        if self.value.is_integer():
            return Const(self.value + rand_int(rng, -2, 2))
        return Const(self.value + rng.uniform(-0.5, 0.5))


@dataclass(frozen=True)
class Id(Expr):
    """The free variable n."""

    @property
    def children(self) -> tuple[Expr, ...]:
        return ()

    def with_children(self, children: Sequence[Expr]) -> Expr:
        return self

    def _evaluate(self, n: np.ndarray) -> np.ndarray:
        return n

    def to_str(self) -> str:
        return "n"

    def mutate(self, rng: np.random.Generator) -> Expr:
        if rng.random() < 0.3:
            return Const(rand_int(rng, 1, 10))
        return self


@dataclass(frozen=True)
class Mod(Expr):
    """Child expression reduced modulo a small integer."""

    child: Expr
    modulus: int

    def __post_init__(self):
        if not MIN_MODULUS <= self.modulus <= MAX_MODULUS:
            raise ValueError(
                f"modulus must be in [{MIN_MODULUS}, {MAX_MODULUS}], got {self.modulus}"
            )

    @property
    def children(self) -> tuple[Expr, ...]:
        return (self.child,)

    def with_children(self, children: Sequence[Expr]) -> Expr:
        (child,) = children
        return Mod(child, self.modulus)

    def _evaluate(self, n: np.ndarray) -> np.ndarray:
        return truncated_mod(self.child._evaluate(n), self.modulus)

    def to_str(self) -> str:
        return f"({_operand(self.child)} % {self.modulus})"

    def mutate(self, rng: np.random.Generator) -> Expr:
        if rng.random() < 0.3:
            modulus = self.modulus + rand_int(rng, -5, 5)
            modulus = min(MAX_MODULUS, max(MIN_MODULUS, modulus))
            return Mod(self.child.mutate(rng), modulus)
        return self.child.mutate(rng)


@dataclass(frozen=True)
class Unary(Expr):
    """Single-argument function application."""

    op: str
    child: Expr

    def __post_init__(self):
        if self.op not in UNARY_OPS:
            raise ValueError(f"Unknown unary operator: {self.op!r}")

    @property
    def children(self) -> tuple[Expr, ...]:
        return (self.child,)

    def with_children(self, children: Sequence[Expr]) -> Expr:
        (child,) = children
        return Unary(self.op, child)

    def _evaluate(self, n: np.ndarray) -> np.ndarray:
        return _UNARY_FUNCTIONS[self.op](self.child._evaluate(n))

    def to_str(self) -> str:
        return f"{self.op}({self.child.to_str()})"

    def mutate(self, rng: np.random.Generator) -> Expr:
        if rng.random() < 0.3:
            return Unary(rand_choice(rng, UNARY_OPS), self.child)
        if rng.random() < 0.5:
            return Unary(self.op, self.child.mutate(rng))
        return self.child


@dataclass(frozen=True)
class Binary(Expr):
    """Two-argument arithmetic operation."""

    op: str
    left: Expr
    right: Expr

    def __post_init__(self):
        if self.op not in BINARY_OPS:
            raise ValueError(f"Unknown binary operator: {self.op!r}")

    @property
    def children(self) -> tuple[Expr, ...]:
        return (self.left, self.right)

    def with_children(self, children: Sequence[Expr]) -> Expr:
        left, right = children
        return Binary(self.op, left, right)

    def _evaluate(self, n: np.ndarray) -> np.ndarray:
        left = self.left._evaluate(n)
        right = self.right._evaluate(n)
        if self.op == "+":
            return left + right
        if self.op == "-":
            return left - right
        if self.op == "*":
            return left * right
        if self.op == "/":
            return np.divide(left, right)
        if self.op == "mod":
            return truncated_mod(left, right)
        return safe_power(left, right)

    def to_str(self) -> str:
        symbol = "%" if self.op == "mod" else self.op
        return f"{_operand(self.left)} {symbol} {_operand(self.right)}"

    def mutate(self, rng: np.random.Generator) -> Expr:
        r = rng.random()
        if r < 0.4:
            return Binary(self.op, self.left.mutate(rng), self.right)
        if r < 0.8:
            return Binary(self.op, self.left, self.right.mutate(rng))
        return Binary(rand_choice(rng, BINARY_OPS), self.left, self.right)


def iter_nodes(tree: Expr, path: Path = ()) -> Iterator[tuple[Path, Expr]]:
    """Yield (path, node) pairs in pre-order.

    A path is the tuple of child indices leading from the root to the node;
    the root has the empty path.
    """
    yield path, tree
    for index, child in enumerate(tree.children):
        yield from iter_nodes(child, path + (index,))


def get_node(tree: Expr, path: Path) -> Expr:
    node = tree
    for index in path:
        node = node.children[index]
    return node


def replace_node(tree: Expr, path: Path, replacement: Expr) -> Expr:
    """Return a copy of tree with the node at path replaced."""
    if not path:
        return replacement
    head, rest = path[0], path[1:]
    children = list(tree.children)
    children[head] = replace_node(children[head], rest, replacement)
    return tree.with_children(children)


def replace_matching(tree: Expr, target: Expr, replacement: Expr) -> Expr:
    """Replace every subtree structurally equal to target."""
    if tree == target:
        return replacement
    if not tree.children:
        return tree
    return tree.with_children(
        [replace_matching(child, target, replacement) for child in tree.children]
    )


def pick_random_subtree(tree: Expr, rng: np.random.Generator) -> Path:
    """Pick a subtree by random descent.

    At each node the descent stops with probability 1/size of that node's
    subtree; otherwise it moves to a uniformly chosen child.
    """
    path: Path = ()
    node = tree
    while node.children:
        if rng.random() < 1.0 / node.size():
            break
        index = int(rng.integers(len(node.children)))
        path += (index,)
        node = node.children[index]
    return path
