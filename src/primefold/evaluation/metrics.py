"""Structure metrics for PrimeFold point clouds.

Provides quantitative measures used by the PrimeFold fitness, including:
- Separation: How far prime images sit from composite images
- Structural contrast: Variation of local density, primes vs composites
- Distribution difference: Centroid, spread and Jensen-Shannon distance
- Specificity: Clustering, linearity and quadrant entropy relative to
  a random baseline

All functions take (N, 2) arrays of normalized points and return 0 when
there are too few points to say anything.
"""

from __future__ import annotations

import numpy as np
from scipy import ndimage
from scipy.spatial import cKDTree
from scipy.spatial.distance import cdist, jensenshannon
from scipy.stats import entropy as scipy_entropy

from primefold.evaluation.geometry import EIGEN_EPS, pca_eigenvalues

DENSITY_RADIUS = 0.1
DENSITY_SAMPLE = 200
CLUSTER_SAMPLE = 150
HISTOGRAM_BINS = 25
HOUGH_GRID = 32
HOUGH_ANGLES = 90
HOUGH_PEAKS = 5


def separation_score(primes: np.ndarray, composites: np.ndarray) -> float:
    """Mean distance from each prime point to its nearest composite point."""
    if len(primes) == 0 or len(composites) == 0:
        return 0.0
    distances, _ = cKDTree(composites).query(primes, k=1)
    return float(np.mean(distances))


def local_density_variation(
    points: np.ndarray,
    radius: float = DENSITY_RADIUS,
    max_points: int = DENSITY_SAMPLE,
) -> float:
    """Coefficient of variation of neighbour counts within radius.

    Neighbours are counted for (at most) the first max_points points,
    against the whole cloud, excluding coincident points.
    """
    if len(points) < 5:
        return 0.0
    distances = cdist(points[:max_points], points)
    counts = ((distances > 0) & (distances <= radius)).sum(axis=1)
    mean = counts.mean()
    if mean <= 0:
        return 0.0
    return float(counts.std() / mean)


def structural_contrast_score(primes: np.ndarray, composites: np.ndarray) -> float:
    """Ratio of prime to composite local density variation."""
    prime_cv = local_density_variation(primes)
    composite_cv = local_density_variation(composites)
    if composite_cv <= EIGEN_EPS:
        return 1.0 if prime_cv > EIGEN_EPS else 0.0
    return prime_cv / composite_cv


def spread(points: np.ndarray) -> float:
    """Standard deviation of distances from the centroid."""
    if len(points) == 0:
        return 0.0
    offsets = points - points.mean(axis=0)
    return float(np.std(np.hypot(offsets[:, 0], offsets[:, 1])))


def jensen_shannon_divergence(
    first: np.ndarray, second: np.ndarray, bins: int = HISTOGRAM_BINS
) -> float:
    """Base-2 Jensen-Shannon divergence of two 2-D histograms, in [0, 1].

    Both histograms share bounds taken from the union of the two clouds.
    """
    if len(first) == 0 or len(second) == 0:
        return 0.0

    combined = np.vstack([first, second])
    bounds = []
    for axis in range(2):
        low, high = float(combined[:, axis].min()), float(combined[:, axis].max())
        if high <= low:
            low, high = low - 0.5, high + 0.5
        bounds.append((low, high))

    p, _, _ = np.histogram2d(first[:, 0], first[:, 1], bins=bins, range=bounds)
    q, _, _ = np.histogram2d(second[:, 0], second[:, 1], bins=bins, range=bounds)
    if p.sum() == 0 or q.sum() == 0:
        return 0.0

    distance = jensenshannon(p.ravel(), q.ravel(), base=2)
    return float(distance ** 2)


def distribution_difference(first: np.ndarray, second: np.ndarray) -> float:
    """Centroid distance + spread difference + Jensen-Shannon divergence."""
    if len(first) == 0 or len(second) == 0:
        return 0.0
    centroid_distance = float(np.linalg.norm(first.mean(axis=0) - second.mean(axis=0)))
    spread_difference = abs(spread(first) - spread(second))
    return centroid_distance + spread_difference + jensen_shannon_divergence(first, second)


def statistical_significance(
    primes: np.ndarray, composites: np.ndarray, baseline: np.ndarray
) -> float:
    """How much further primes stray from random than composites do."""
    prime_difference = distribution_difference(primes, baseline)
    composite_difference = distribution_difference(composites, baseline)
    return max(0.0, prime_difference - composite_difference)


def clustering_quality(points: np.ndarray, max_points: int = CLUSTER_SAMPLE) -> float:
    """1 - mean nearest-neighbour distance, floored at 0."""
    if len(points) < 10:
        return 0.0
    sample = points[:max_points]
    distances, _ = cKDTree(sample).query(sample, k=2)
    return max(0.0, 1.0 - float(distances[:, 1].mean()))


def rasterize(points: np.ndarray, grid_size: int = HOUGH_GRID) -> np.ndarray:
    """Unique (x, y) pixel coordinates of normalized points on a square grid."""
    pixels = np.rint((np.clip(points, -1.0, 1.0) + 1.0) / 2.0 * (grid_size - 1))
    return np.unique(pixels.astype(np.int64), axis=0)


def hough_line_strength(
    points: np.ndarray,
    grid_size: int = HOUGH_GRID,
    num_angles: int = HOUGH_ANGLES,
    num_peaks: int = HOUGH_PEAKS,
) -> float:
    """Share of occupied pixels lying on the strongest Hough lines.

    Points are rasterized, every pixel votes in a (rho, theta)
    accumulator, local maxima are found with a maximum filter, and the
    votes of the top num_peaks peaks are summed relative to the number of
    occupied pixels (capped at 1).
    """
    if len(points) < 2:
        return 0.0
    pixels = rasterize(points, grid_size)
    if len(pixels) < 2:
        return 0.0

    diag = int(np.ceil(np.hypot(grid_size, grid_size)))
    thetas = np.linspace(0, np.pi, num_angles, endpoint=False)
    rhos = np.rint(
        pixels[:, :1] * np.cos(thetas) + pixels[:, 1:] * np.sin(thetas)
    ).astype(np.int64) + diag

    accumulator = np.zeros((2 * diag + 1, num_angles), dtype=np.float64)
    angle_index = np.broadcast_to(np.arange(num_angles), rhos.shape)
    np.add.at(accumulator, (rhos, angle_index), 1.0)

    local_max = ndimage.maximum_filter(accumulator, size=5)
    peaks = accumulator[(accumulator == local_max) & (accumulator > 0)]
    top = np.sort(peaks)[::-1][:num_peaks]
    return min(1.0, float(top.sum()) / len(pixels))


def pca_linearity(points: np.ndarray) -> float:
    """1 - minor/major PCA eigenvalue ratio; 1 for a perfect line."""
    major, minor = pca_eigenvalues(points)
    if major <= EIGEN_EPS:
        return 0.0
    return 1.0 - minor / major


def linear_structure(points: np.ndarray) -> float:
    return (hough_line_strength(points) + pca_linearity(points)) / 2.0


def quadrant_entropy(points: np.ndarray) -> float:
    """Shannon entropy (nats) of the point counts per quadrant."""
    if len(points) < 5:
        return 0.0
    right = points[:, 0] >= 0
    upper = points[:, 1] >= 0
    counts = np.array([
        np.sum(right & upper),
        np.sum(~right & upper),
        np.sum(~right & ~upper),
        np.sum(right & ~upper),
    ])
    return float(scipy_entropy(counts))


def pattern_specificity(
    primes: np.ndarray, composites: np.ndarray, baseline: np.ndarray
) -> float:
    """Mean of three prime-vs-composite contrasts measured against random.

    Clustering and linearity reward primes exceeding composites in excess
    of the random baseline; quadrant entropy rewards primes departing from
    random more than composites do.
    """
    prime_cluster = clustering_quality(primes)
    composite_cluster = clustering_quality(composites)
    random_cluster = clustering_quality(baseline)
    cluster_term = max(
        0.0, (prime_cluster - random_cluster) - (composite_cluster - random_cluster)
    )

    prime_linear = linear_structure(primes)
    composite_linear = linear_structure(composites)
    random_linear = linear_structure(baseline)
    linear_term = max(
        0.0, (prime_linear - random_linear) - (composite_linear - random_linear)
    )

    prime_entropy = quadrant_entropy(primes)
    composite_entropy = quadrant_entropy(composites)
    random_entropy = quadrant_entropy(baseline)
    entropy_term = max(
        0.0, abs(prime_entropy - random_entropy) - abs(composite_entropy - random_entropy)
    )

    return (cluster_term + linear_term + entropy_term) / 3.0
