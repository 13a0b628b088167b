"""
FMM Kernels Module

Direct (exact) evaluation of the inverse-power-distance kernel family,
used as the reference the series expansions approximate.
"""

import numpy as np
from abc import ABC, abstractmethod


class Kernel(ABC):
    """Abstract base class for kernel functions."""

    @abstractmethod
    def __call__(self, x: np.ndarray, y: np.ndarray) -> float:
        """
        Evaluate kernel G(x, y).

        Args:
            x: Source point coordinates
            y: Target point coordinates

        Returns:
            Kernel value
        """
        pass

    @abstractmethod
    def gradient(self, x: np.ndarray, y: np.ndarray) -> np.ndarray:
        """
        Compute gradient of kernel with respect to target point.

        Args:
            x: Source point coordinates
            y: Target point coordinates

        Returns:
            Gradient vector
        """
        pass

    def potential(self, sources: np.ndarray, weights: np.ndarray,
                  target: np.ndarray) -> float:
        """
        Direct sum of weighted kernel values at a target point.

        Args:
            sources: Source points (N x 3)
            weights: Source strengths (N,)
            target: Evaluation point

        Returns:
            sum_i w_i G(x_i, target)
        """
        sources = np.asarray(sources, dtype=np.float64)
        if sources.ndim == 1:
            sources = sources.reshape(1, -1)
        weights = np.asarray(weights, dtype=np.float64).reshape(-1)

        total = 0.0
        for source, weight in zip(sources, weights):
            total += weight * self(source, target)
        return total


class InversePowDistKernel(Kernel):
    """
    Inverse-power-distance kernel.

    G(x, y) = 1 / |x - y|^lambda

    lambda = 1 gives the Coulomb / Newtonian potential.
    """

    def __init__(self, power: float = 1.0):
        """
        Initialize the kernel.

        Args:
            power: Exponent lambda (> 0)
        """
        if power <= 0:
            raise ValueError("Kernel power must be positive")
        self.power = power

    def __call__(self, x: np.ndarray, y: np.ndarray) -> float:
        """Evaluate the kernel."""
        x = np.asarray(x)
        y = np.asarray(y)
        r = np.linalg.norm(x - y)

        if r < 1e-14:
            return 0.0  # Self-interaction

        return 1.0 / r ** self.power

    def gradient(self, x: np.ndarray, y: np.ndarray) -> np.ndarray:
        """Compute gradient of the kernel with respect to the target."""
        x = np.asarray(x, dtype=np.float64)
        y = np.asarray(y, dtype=np.float64)
        r = np.linalg.norm(x - y)

        if r < 1e-14:
            return np.zeros_like(x)

        return self.power * (x - y) / r ** (self.power + 2)

    def __repr__(self) -> str:
        return f"InversePowDistKernel(power={self.power})"


def create_kernel(name: str, **kwargs) -> Kernel:
    """
    Factory function to create kernel instances.

    Args:
        name: Kernel type name ('inverse_pow_dist', 'coulomb')
        **kwargs: Kernel-specific parameters

    Returns:
        Kernel instance
    """
    name = name.lower()

    if name == 'inverse_pow_dist':
        power = kwargs.get('power', 1.0)
        return InversePowDistKernel(power)
    elif name == 'coulomb':
        return InversePowDistKernel(1.0)
    else:
        raise ValueError(f"Unknown kernel type: {name}")


__all__ = [
    'Kernel',
    'InversePowDistKernel',
    'create_kernel',
]
