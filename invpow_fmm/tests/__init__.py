"""
Series Expansion Test Suite

Tests for the inverse-power-distance far-field and local expansions.
Shared helpers for building source clusters live here.
"""

import numpy as np


def random_cluster(center, radius: float, n_points: int, seed: int = 42) -> np.ndarray:
    """
    Random points strictly inside a ball.

    Args:
        center: Ball center (3D)
        radius: Ball radius
        n_points: Number of points
        seed: Random seed

    Returns:
        Array of points (n_points x 3)
    """
    np.random.seed(seed)
    directions = np.random.randn(n_points, 3)
    directions /= np.linalg.norm(directions, axis=1)[:, np.newaxis]
    radii = radius * np.random.rand(n_points) ** (1.0 / 3.0)
    return np.asarray(center, dtype=np.float64) + directions * radii[:, np.newaxis]


def random_weights(n_points: int, seed: int = 7) -> np.ndarray:
    """Positive random weights in [0.5, 1.5)."""
    np.random.seed(seed)
    return 0.5 + np.random.rand(n_points)


def relative_error(approx: float, exact: float) -> float:
    """Relative error |approx - exact| / |exact|."""
    return abs(approx - exact) / abs(exact)
