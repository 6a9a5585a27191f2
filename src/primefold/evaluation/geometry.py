"""Planar geometry of point clouds produced by a coordinate pair (f, g).

Points are (N, 2) float arrays. Normalized clouds live in [-1, 1]^2, so a
hull covering the whole square has area 4.
"""

from __future__ import annotations

import math

import numpy as np

EIGEN_EPS = 1e-9


def _sigmoid(x: float) -> float:
    return 1.0 / (1.0 + math.exp(-x))


def normalize_coordinates(
    points: np.ndarray, other: np.ndarray | None = None
) -> tuple[np.ndarray, np.ndarray]:
    """Min-max normalize points (and other) jointly into [-1, 1]^2.

    Bounds are computed over both sets together so the two clouds stay
    comparable. An axis with zero range is divided by 1 instead.

    Args:
        points: (N, 2) array.
        other: Optional (M, 2) array normalized with the same bounds.

    Returns:
        Tuple of (normalized points, normalized other). The second entry is
        an empty (0, 2) array when other is None.
    """
    points = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    other = (
        np.empty((0, 2)) if other is None
        else np.asarray(other, dtype=np.float64).reshape(-1, 2)
    )
    combined = np.vstack([points, other])
    if len(combined) == 0:
        return points, other

    low = combined.min(axis=0)
    span = combined.max(axis=0) - low
    span[span == 0] = 1.0

    def scale(values: np.ndarray) -> np.ndarray:
        return 2.0 * (values - low) / span - 1.0

    return scale(points), scale(other)


def _cross(o: np.ndarray, a: np.ndarray, b: np.ndarray) -> float:
    return (a[0] - o[0]) * (b[1] - o[1]) - (a[1] - o[1]) * (b[0] - o[0])


def convex_hull(points: np.ndarray) -> np.ndarray:
    """Convex hull by Graham scan, counter-clockwise from the lowest point.

    Collinear boundary points are dropped.
    """
    points = np.unique(np.asarray(points, dtype=np.float64).reshape(-1, 2), axis=0)
    if len(points) < 3:
        return points

    pivot_index = np.lexsort((points[:, 0], points[:, 1]))[0]
    pivot = points[pivot_index]
    rest = np.delete(points, pivot_index, axis=0)

    offsets = rest - pivot
    angles = np.arctan2(offsets[:, 1], offsets[:, 0])
    distances = np.hypot(offsets[:, 0], offsets[:, 1])
    order = np.lexsort((distances, angles))

    hull = [pivot]
    for point in rest[order]:
        while len(hull) > 1 and _cross(hull[-2], hull[-1], point) <= 0:
            hull.pop()
        hull.append(point)

    return np.array(hull)


def polygon_area(vertices: np.ndarray) -> float:
    """Shoelace area of a simple polygon given in order."""
    vertices = np.asarray(vertices, dtype=np.float64).reshape(-1, 2)
    if len(vertices) < 3:
        return 0.0
    x, y = vertices[:, 0], vertices[:, 1]
    return 0.5 * abs(float(np.dot(x, np.roll(y, -1)) - np.dot(y, np.roll(x, -1))))


def hull_area(points: np.ndarray) -> float:
    return polygon_area(convex_hull(points))


def pca_eigenvalues(points: np.ndarray) -> tuple[float, float]:
    """Eigenvalues (major, minor) of the population covariance matrix."""
    points = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    if len(points) < 2:
        return 0.0, 0.0
    covariance = np.cov(points, rowvar=False, bias=True)
    minor, major = np.linalg.eigvalsh(covariance)
    return float(major), float(max(minor, 0.0))


def isotropy_score(points: np.ndarray) -> float:
    """Sigmoid of the PCA eigenvalue ratio; 0 for degenerate clouds."""
    major, minor = pca_eigenvalues(points)
    if major <= EIGEN_EPS:
        return 0.0
    return _sigmoid(3.0 * (minor / major - 0.1))


def scale_balance_score(points: np.ndarray) -> float:
    """Sigmoid of the ratio between the smaller and larger coordinate range."""
    points = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    if len(points) == 0:
        return 0.0
    ranges = np.ptp(points, axis=0)
    max_range = float(ranges.max())
    if max_range == 0:
        return 0.0
    return _sigmoid(5.0 * (float(ranges.min()) / max_range - 0.3))


def area_coverage_score(raw_points: np.ndarray, normalized_points: np.ndarray) -> float:
    """Share of the normalized square covered, damped by shape balance.

    Args:
        raw_points: Prime images before normalization (for scale balance).
        normalized_points: The same points in [-1, 1]^2.

    Returns:
        min(1, hull / 4) * isotropy * scale balance, or 0 for fewer than
        3 points.
    """
    if len(normalized_points) < 3:
        return 0.0
    coverage = min(1.0, hull_area(normalized_points) / 4.0)
    return coverage * isotropy_score(normalized_points) * scale_balance_score(raw_points)
