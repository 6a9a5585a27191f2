"""Search candidates and the operators that act on whole candidates.

A PrimeGen candidate is one function f(n); a PrimeFold candidate is a
coordinate pair (f(n), g(n)). Candidates are immutable and identified by
their canonical text, which doubles as the deduplication key.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any

import numpy as np

from primefold.expression.generation import crossover_trees, mutate_tree, random_tree
from primefold.expression.nodes import Expr
from primefold.expression.parser import ExpressionSyntaxError, parse_expression
from primefold.expression.symmetry import derive_symmetric_pair, symmetric_mutation

_LABELS = ("f", "g")
_LABEL_RE = re.compile(r"^\s*([fg])\s*\(\s*n\s*\)\s*=\s*")


class SearchMode(str, Enum):
    PRIME_GEN = "primegen"
    PRIME_FOLD = "primefold"

    @property
    def arity(self) -> int:
        return 1 if self is SearchMode.PRIME_GEN else 2


@dataclass(frozen=True)
class Candidate:
    """One point of the search space.

    Attributes:
        exprs: (f,) for PrimeGen or (f, g) for PrimeFold.
    """

    exprs: tuple[Expr, ...]

    def __post_init__(self):
        if len(self.exprs) not in (1, 2):
            raise ValueError(f"A candidate holds 1 or 2 expressions, got {len(self.exprs)}")

    @property
    def mode(self) -> SearchMode:
        return SearchMode.PRIME_GEN if len(self.exprs) == 1 else SearchMode.PRIME_FOLD

    @property
    def f(self) -> Expr:
        return self.exprs[0]

    @property
    def g(self) -> Expr:
        if len(self.exprs) < 2:
            raise AttributeError("PrimeGen candidates have no g(n)")
        return self.exprs[1]

    @property
    def key(self) -> str:
        """Canonical text, e.g. ``"f(n) = n + 1, g(n) = sin(n)"``."""
        return ", ".join(
            f"{label}(n) = {expr.to_str()}" for label, expr in zip(_LABELS, self.exprs)
        )

    def size(self) -> int:
        return sum(expr.size() for expr in self.exprs)

    def __str__(self) -> str:
        return self.key

    def to_dict(self) -> dict[str, Any]:
        return {label: expr.to_str() for label, expr in zip(_LABELS, self.exprs)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Candidate:
        exprs = [parse_expression(data["f"])]
        if data.get("g") is not None:
            exprs.append(parse_expression(data["g"]))
        return cls(tuple(exprs))

    @classmethod
    def parse(cls, text: str) -> Candidate:
        """Parse ``"f(n) = ..., g(n) = ..."`` or a bare expression.

        The f/g labels are optional. Two functions must be separated by a
        comma.

        Raises:
            ExpressionSyntaxError: If any part fails to parse.
        """
        parts = [part for part in text.split(",") if part.strip()]
        if not 1 <= len(parts) <= 2:
            raise ExpressionSyntaxError(f"Expected one or two functions, got {len(parts)}")
        exprs = tuple(parse_expression(_LABEL_RE.sub("", part)) for part in parts)
        return cls(exprs)


class CandidateOperators:
    """Random generation, mutation and crossover for one search mode.

    With enforce_symmetry, PrimeFold candidates are always built as
    (f, T(f)) for a random symmetric transform T.
    """

    def __init__(
        self,
        mode: SearchMode,
        rng: np.random.Generator,
        max_depth: int = 3,
        enforce_symmetry: bool = False,
    ):
        self.mode = SearchMode(mode)
        self.rng = rng
        self.max_depth = max_depth
        self.enforce_symmetry = enforce_symmetry and self.mode is SearchMode.PRIME_FOLD

    def _symmetric(self, f: Expr) -> Candidate:
        f, g, _ = derive_symmetric_pair(f, self.rng)
        return Candidate((f, g))

    def random(self) -> Candidate:
        f = random_tree(self.rng, self.max_depth)
        if self.mode is SearchMode.PRIME_GEN:
            return Candidate((f,))
        if self.enforce_symmetry:
            return self._symmetric(f)
        return Candidate((f, random_tree(self.rng, self.max_depth)))

    def mutate_expr(self, expr: Expr) -> Expr:
        return mutate_tree(expr, self.rng, self.max_depth)

    def symmetric_mutation(self, candidate: Candidate) -> Candidate:
        f, g, _ = symmetric_mutation(candidate.f, candidate.g, self.rng)
        return Candidate((f, g))

    def mutate(
        self,
        candidate: Candidate,
        symmetric_rate: float = 0.0,
        mutate_both: bool = True,
    ) -> Candidate:
        """Mutate a candidate.

        Args:
            candidate: Candidate to mutate; it is not modified.
            symmetric_rate: Probability of a symmetric pair mutation
                (PrimeFold only).
            mutate_both: Mutate f and g together; otherwise mutate one of
                them, chosen at random.
        """
        if self.mode is SearchMode.PRIME_GEN:
            return Candidate((self.mutate_expr(candidate.f),))
        if self.enforce_symmetry:
            return self._symmetric(self.mutate_expr(candidate.f))
        if self.rng.random() < symmetric_rate:
            return self.symmetric_mutation(candidate)
        if mutate_both:
            return Candidate((self.mutate_expr(candidate.f), self.mutate_expr(candidate.g)))
        if self.rng.random() < 0.5:
            return Candidate((self.mutate_expr(candidate.f), candidate.g))
        return Candidate((candidate.f, self.mutate_expr(candidate.g)))

    def crossover(self, first: Candidate, second: Candidate) -> tuple[Candidate, Candidate]:
        """Produce two children; the parents are left unchanged."""
        if self.mode is SearchMode.PRIME_GEN:
            a, b = crossover_trees(first.f, second.f, self.rng)
            return Candidate((a,)), Candidate((b,))

        if self.enforce_symmetry:
            a, b = crossover_trees(first.f, second.f, self.rng)
            return self._symmetric(a), self._symmetric(b)

        if self.rng.random() < 0.5:
            return Candidate((first.f, second.g)), Candidate((second.f, first.g))

        f1, f2 = crossover_trees(first.f, second.f, self.rng)
        g1, g2 = crossover_trees(first.g, second.g, self.rng)
        return Candidate((f1, g1)), Candidate((f2, g2))
