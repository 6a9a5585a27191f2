"""Fitness evaluation for candidate functions.

This module provides tools to:
1. Score single functions by the distinct primes they produce (PrimeGen)
2. Score coordinate pairs by how they embed primes vs composites (PrimeFold)
3. Measure point-cloud geometry and structure against a random baseline
4. Configure which components count and with what weight
"""

from primefold.evaluation.config import FitnessConfig, MetricConfig
from primefold.evaluation.fitness import (
    PRIME_FOLD_COMPONENTS,
    PRIME_GEN_COMPONENTS,
    PrimeFoldEvaluator,
    PrimeGenEvaluator,
    Score,
    expression_complexity,
)
from primefold.evaluation.baseline import generate_random_baseline, image_points
from primefold.evaluation.geometry import (
    area_coverage_score,
    convex_hull,
    hull_area,
    normalize_coordinates,
)

__all__ = [
    # Config
    "FitnessConfig",
    "MetricConfig",
    # Fitness
    "PRIME_FOLD_COMPONENTS",
    "PRIME_GEN_COMPONENTS",
    "PrimeFoldEvaluator",
    "PrimeGenEvaluator",
    "Score",
    "expression_complexity",
    # Baseline
    "generate_random_baseline",
    "image_points",
    # Geometry
    "area_coverage_score",
    "convex_hull",
    "hull_area",
    "normalize_coordinates",
]
