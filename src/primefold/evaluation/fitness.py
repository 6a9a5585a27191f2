"""Fitness evaluators for the two search modes.

PrimeGen scores a single function f by how many distinct primes appear in
its rounded outputs over 1..sample_size. PrimeFold scores a pair (f, g) by
how differently it embeds primes and composites in the plane.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Sequence

import numpy as np

from primefold.core.sieve import PrimeCache
from primefold.evaluation.baseline import generate_random_baseline, image_points
from primefold.evaluation.config import METRIC_NAMES, FitnessConfig
from primefold.evaluation.geometry import area_coverage_score, normalize_coordinates
from primefold.evaluation.metrics import (
    pattern_specificity,
    separation_score,
    statistical_significance,
    structural_contrast_score,
)
from primefold.expression.nodes import Expr

logger = logging.getLogger(__name__)

PRIME_GEN_COMPONENTS = ("unique_numbers", "unique_primes", "hit_ratio", "complexity")
PRIME_FOLD_COMPONENTS = METRIC_NAMES

# Rounded outputs beyond this are not exactly representable integers.
MAX_EXACT_INTEGER = 2 ** 53
MIN_FOLD_POINTS = 10
GATED_SCALE = 0.1

COMPLEXITY_TOKENS = ("sin", "cos", "sqrt", "log", "abs", "+", "-", "*", "/", "%", "^")


@dataclass
class Score:
    """Fitness of one candidate.

    Attributes:
        total: Scalar fitness used by the search strategies.
        components: Named sub-scores.
        valid: False when the candidate could not be scored at all.
    """

    total: float
    components: dict[str, float] = field(default_factory=dict)
    valid: bool = True

    @classmethod
    def zero(cls, names: Sequence[str], valid: bool = False) -> Score:
        return cls(total=0.0, components=dict.fromkeys(names, 0.0), valid=valid)

    def to_dict(self) -> dict:
        return {"total": self.total, "components": dict(self.components), "valid": self.valid}


def round_half_up(values: np.ndarray) -> np.ndarray:
    return np.floor(np.asarray(values, dtype=np.float64) + 0.5)


def expression_complexity(text: str) -> float:
    """1 + operator/function occurrences + 0.01 per character."""
    return 1.0 + sum(text.count(token) for token in COMPLEXITY_TOKENS) + 0.01 * len(text)


class PrimeGenEvaluator:
    """Score f by the share of distinct primes among f(1..sample_size).

    Example:
        >>> from primefold.expression.parser import parse_expression
        >>> evaluator = PrimeGenEvaluator(PrimeCache(), sample_size=10)
        >>> evaluator.score(parse_expression("n")).total
        0.4
    """

    def __init__(self, oracle: PrimeCache, sample_size: int = 200):
        if sample_size < 1:
            raise ValueError(f"sample_size must be >= 1, got {sample_size}")
        self.oracle = oracle
        self.sample_size = sample_size

    def sequence(self, expr: Expr) -> np.ndarray:
        """Rounded outputs over 1..sample_size, non-finite values as 0."""
        values = expr.evaluate(np.arange(1, self.sample_size + 1))
        values = np.where(np.isfinite(values), values, 0.0)
        return round_half_up(values)

    def score(self, expr: Expr) -> Score:
        try:
            return self._score(expr)
        except Exception:
            logger.warning("PrimeGen evaluation failed for %s", expr, exc_info=True)
            return Score.zero(PRIME_GEN_COMPONENTS)

    def _score(self, expr: Expr) -> Score:
        sequence = self.sequence(expr)
        distinct = np.unique(sequence)

        magnitudes = np.unique(np.abs(distinct))
        magnitudes = magnitudes[(magnitudes >= 2) & (magnitudes <= MAX_EXACT_INTEGER)]
        unique_primes = sum(1 for value in magnitudes if self.oracle.is_prime(int(value)))

        hit_ratio = min(1.0, unique_primes / self.sample_size)
        return Score(
            total=hit_ratio,
            components={
                "unique_numbers": float(len(distinct)),
                "unique_primes": float(unique_primes),
                "hit_ratio": hit_ratio,
                "complexity": expression_complexity(expr.to_str()),
            },
        )


class PrimeFoldEvaluator:
    """Score a coordinate pair (f, g) by how it separates primes from composites.

    The evaluator holds the fixed prime and composite samples. A random
    baseline, drawn fresh per evaluation from 1..max(primes), is only built
    when a component that needs it is enabled.
    """

    def __init__(
        self,
        primes: np.ndarray,
        composites: np.ndarray,
        config: FitnessConfig | None = None,
        rng: np.random.Generator | None = None,
    ):
        self.primes = np.asarray(primes, dtype=np.int64)
        self.composites = np.asarray(composites, dtype=np.int64)
        if len(self.primes) == 0:
            raise ValueError("PrimeFold evaluation needs a non-empty prime sample")
        self.config = config if config is not None else FitnessConfig()
        self.rng = rng if rng is not None else np.random.default_rng()

    def score(self, f: Expr, g: Expr) -> Score:
        try:
            return self._score(f, g)
        except Exception:
            logger.warning(
                "PrimeFold evaluation failed for f(n) = %s, g(n) = %s", f, g, exc_info=True
            )
            return Score.zero(PRIME_FOLD_COMPONENTS)

    def _score(self, f: Expr, g: Expr) -> Score:
        raw_primes = image_points(f, g, self.primes)
        raw_composites = image_points(f, g, self.composites)
        if len(raw_primes) < MIN_FOLD_POINTS or len(raw_composites) < MIN_FOLD_POINTS:
            return Score.zero(PRIME_FOLD_COMPONENTS)

        primes, composites = normalize_coordinates(raw_primes, raw_composites)
        components = dict.fromkeys(PRIME_FOLD_COMPONENTS, 0.0)
        config = self.config

        if config.area_coverage.enabled:
            coverage = area_coverage_score(raw_primes, primes)
            components["area_coverage"] = coverage
            if coverage < config.area_threshold:
                return Score(total=coverage * GATED_SCALE, components=components)

        if config.separation.enabled:
            components["separation"] = separation_score(primes, composites)
        if config.contrast.enabled:
            components["contrast"] = structural_contrast_score(primes, composites)

        if config.significance.enabled or config.specificity.enabled:
            raw_baseline = generate_random_baseline(
                f, g, int(self.primes.max()), len(self.primes), self.rng
            )
            baseline, _ = normalize_coordinates(raw_baseline, raw_primes)
            if config.significance.enabled:
                components["significance"] = statistical_significance(
                    primes, composites, baseline
                )
            if config.specificity.enabled:
                components["specificity"] = pattern_specificity(primes, composites, baseline)

        total = sum(
            config.metric(name).weight * components[name]
            for name in config.enabled_metrics()
        )
        return Score(total=max(0.0, total), components=components)
