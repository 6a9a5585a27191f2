"""Random baseline generation for pattern comparison.

The baseline is the image of randomly drawn integers under the same
coordinate pair (f, g). Comparing prime and composite images against it
measures how much of a pattern is specific to primes rather than a
property of (f, g) over all integers.
"""

from __future__ import annotations

import numpy as np

from primefold.expression.nodes import Expr

# Larger coordinates overflow covariance and hull computations.
MAX_COORDINATE = 1e150


def sample_random_integers(
    max_value: int, count: int, rng: np.random.Generator
) -> np.ndarray:
    """Draw count integers uniformly from 1..max_value (with replacement)."""
    if max_value < 1:
        raise ValueError(f"max_value must be >= 1, got {max_value}")
    return rng.integers(1, max_value + 1, size=count)


def image_points(f: Expr, g: Expr, values: np.ndarray) -> np.ndarray:
    """Evaluate (f, g) at values, keeping rows that are finite and bounded.

    Returns:
        (N, 2) float array of (f(v), g(v)).
    """
    values = np.asarray(values)
    if len(values) == 0:
        return np.empty((0, 2))
    points = np.column_stack([f.evaluate(values), g.evaluate(values)])
    keep = np.all(np.isfinite(points) & (np.abs(points) <= MAX_COORDINATE), axis=1)
    return points[keep]


def generate_random_baseline(
    f: Expr,
    g: Expr,
    max_value: int,
    sample_size: int,
    rng: np.random.Generator,
) -> np.ndarray:
    """Generate the (f, g) image of sample_size random integers.

    Args:
        f: First coordinate function.
        g: Second coordinate function.
        max_value: Largest integer to draw (usually the largest sampled prime).
        sample_size: Number of integers to draw.
        rng: Random generator.

    Returns:
        (N, 2) array of finite points, N <= sample_size.
    """
    return image_points(f, g, sample_random_integers(max_value, sample_size, rng))
