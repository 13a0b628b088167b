"""
Auxiliary Module

Shared, read-only tables for the inverse-power-distance expansions of the
kernel K(x, y) = 1 / |x - y|^lambda.

Coefficient (n, a, b) of an expansion multiplies the monomial

    z^(n-a) * u^b * conj(u)^(a-b),    u = x + iy,

of the offset from the expansion center. The kernel derivatives matching
those monomials are Wirtinger derivatives d_z^k d_w^p d_wbar^q with
k = n - a, p = b, q = a - b, which reduce to Gegenbauer polynomials
C_k^(lambda/2 + i)(cos theta) of the polar angle.
"""

import cmath
import logging
import math
from dataclasses import dataclass
from typing import List, Optional

import numpy as np
from scipy.special import eval_gegenbauer, poch

from .coordinates import pow_with_root_of_unity
from .exceptions import ExpansionDomainError, ExpansionOrderError

logger = logging.getLogger(__name__)


@dataclass
class ExpansionConfig:
    """Configuration for the series expansion auxiliary."""
    power: float = 1.0           # Exponent lambda of the 1/r^lambda kernel
    max_order: int = 6           # Highest expansion order the tables support

    def __post_init__(self):
        """Validate configuration."""
        if self.power <= 0:
            raise ValueError("Kernel power must be positive")
        if self.max_order < 0:
            raise ValueError("Max order must be non-negative")


class SeriesExpansionAux:
    """
    Precomputed constants shared by every expansion of one tree.

    The object is never mutated after construction, so many expansions
    (possibly on different threads) may reference it at once.
    """

    def __init__(self, config: Optional[ExpansionConfig] = None):
        """
        Initialize the auxiliary tables.

        Args:
            config: Expansion configuration (optional)
        """
        if config is None:
            config = ExpansionConfig()

        self.config = config
        self.power = float(config.power)
        self.max_order = int(config.max_order)

        # Gegenbauer parameter for 1/r^lambda
        self._alpha = 0.5 * self.power

        self._multiplicative_constants = self._compute_multiplicative_constants()

        # (lambda/2)_m for every shift reachable by a combined M2L index
        self._pochhammer = [poch(self._alpha, m)
                            for m in range(2 * self.max_order + 2)]

        logger.debug("initialized series expansion aux: power=%g, max_order=%d",
                     self.power, self.max_order)

    def _compute_multiplicative_constants(self) -> List[np.ndarray]:
        """
        Build M[n][a, b] = 1 / ((n-a)! b! (a-b)!) for 0 <= b <= a <= n.

        Entries outside the lower triangle stay zero.
        """
        constants = []
        for n in range(self.max_order + 1):
            table = np.zeros((n + 1, n + 1), dtype=np.float64)
            for a in range(n + 1):
                for b in range(a + 1):
                    table[a, b] = 1.0 / (math.factorial(n - a) *
                                         math.factorial(b) *
                                         math.factorial(a - b))
            constants.append(table)
        return constants

    def get_max_order(self) -> int:
        """Return the highest order supported by the tables."""
        return self.max_order

    def get_multiplicative_constants(self) -> List[np.ndarray]:
        """Return the shared multiplicative constant table (not a copy)."""
        return self._multiplicative_constants

    def gegenbauer_polynomials(self, cos_theta: float, out: np.ndarray) -> np.ndarray:
        """
        Fill a Gegenbauer table in place.

        out[i, k] = C_k^(lambda/2 + i)(cos_theta) for every entry of ``out``.

        Args:
            cos_theta: Argument of the polynomials
            out: Real 2-D array sized by the caller

        Returns:
            The filled ``out`` array
        """
        rows, cols = out.shape
        degrees = np.arange(cols)[np.newaxis, :]
        alphas = self._alpha + np.arange(rows, dtype=np.float64)[:, np.newaxis]
        eval_gegenbauer(degrees, alphas, cos_theta, out=out)
        return out

    def compute_partial_derivative_factor(self, n: int, a: int, b: int,
                                          radius: float, theta: float,
                                          phi: float,
                                          gegenbauer_table: np.ndarray) -> complex:
        """
        Derivative of the kernel with respect to the source position.

        Equals (-1)^n d_z^k d_w^p d_wbar^q |v|^(-lambda) at the offset v
        with spherical coordinates (radius, theta, phi), where k = n - a,
        p = b and q = a - b:

            k! r^-(n+lambda) e^{i(q-p)phi} *
                sum_j (-1)^j C(p,j) q!/(q-j)! (lambda/2)_(a-j)
                      sin^(a-2j)(theta) C_k^(lambda/2+a-j)(cos theta)

        Args:
            n, a, b: Coefficient index with 0 <= b <= a <= n
            radius, theta, phi: Spherical coordinates of the offset
            gegenbauer_table: Table filled by gegenbauer_polynomials at
                cos(theta), with at least n + 1 rows and columns

        Returns:
            Complex derivative factor
        """
        if radius <= 0.0:
            raise ExpansionDomainError(
                "Derivative factor is singular at zero radius")
        rows, cols = gegenbauer_table.shape
        if n >= rows or n >= cols:
            raise ExpansionOrderError(
                f"Gegenbauer table of shape {gegenbauer_table.shape} "
                f"is too small for order {n}")

        p = b
        q = a - b
        k = n - a
        sin_theta = math.sin(theta)

        total = 0.0
        for j in range(min(p, q) + 1):
            sign = -1.0 if j % 2 else 1.0
            total += (sign * math.comb(p, j) * math.perm(q, j) *
                      self._pochhammer[a - j] *
                      sin_theta ** (a - 2 * j) *
                      gegenbauer_table[a - j, k])

        azimuthal = pow_with_root_of_unity(cmath.exp(1j * phi), q - p)
        return (math.factorial(k) * radius ** (-(n + self.power)) *
                total * azimuthal)

    def __repr__(self) -> str:
        return f"SeriesExpansionAux(power={self.power}, max_order={self.max_order})"
