"""
Expansion Module

Far-field (multipole) and local expansions of the inverse-power-distance
kernel, together with their translation operators:

- FarFieldExpansion.accumulate               P2M
- FarFieldExpansion.evaluate_field           M2P
- FarFieldExpansion.translate_from_far_field M2M
- FarFieldExpansion.translate_to_local       M2L
- LocalExpansion.accumulate                  P2L
- LocalExpansion.evaluate_field              L2P
- LocalExpansion.translate_to_local          L2L
"""

import logging
import math
import sys
from abc import ABC, abstractmethod
from typing import Optional, TextIO

import numpy as np

from .auxiliary import SeriesExpansionAux
from .coefficients import CoefficientTable
from .coordinates import (
    convert_cartesian_to_spherical,
    convert_to_complex_form,
    pow_with_root_of_unity,
)
from .exceptions import ExpansionOrderError

logger = logging.getLogger(__name__)

# Centers closer than this in every component are treated as identical
CENTER_EPSILON = np.finfo(np.float64).eps


def farfield_translation_a_range(n_prime: int, a_prime: int, n: int) -> range:
    """Source rows a feeding destination row a_prime in far-to-far translation."""
    return range(max(0, a_prime + n - n_prime), min(n, a_prime) + 1)


def farfield_translation_b_range(a_prime: int, b_prime: int, a: int) -> range:
    """Source columns b feeding destination column b_prime in far-to-far translation."""
    return range(max(0, b_prime + a - a_prime), min(a, b_prime) + 1)


def local_translation_a_range(n_prime: int, a_prime: int, n: int) -> range:
    """Source rows a feeding destination row a_prime in local-to-local translation."""
    return range(a_prime, min(n, a_prime + n - n_prime) + 1)


def local_translation_b_range(a_prime: int, b_prime: int, a: int) -> range:
    """Source columns b feeding destination column b_prime in local-to-local translation."""
    return range(b_prime, a - a_prime + b_prime + 1)


def _planar_power(root: complex, rho: float, k: int) -> complex:
    # (rho * root)^k for a unit root, i.e. (x + iy)^k or (x - iy)^k
    return pow_with_root_of_unity(root, k) * rho ** k


def _offset(point: np.ndarray, center: np.ndarray):
    diff = np.asarray(point, dtype=np.float64).reshape(-1) - center
    if diff.shape != (3,):
        raise ValueError("Points must be 3-dimensional")
    return float(diff[0]), float(diff[1]), float(diff[2])


class Expansion(ABC):
    """
    Abstract base class for series expansions around a fixed center.

    Holds the center, the triangular coefficient table and the current
    order (-1 while empty). The auxiliary object is shared, not owned.
    """

    kind = "expansion"

    def __init__(self, center: np.ndarray, aux: SeriesExpansionAux):
        """
        Initialize an empty expansion.

        Args:
            center: Center of the expansion (3D)
            aux: Shared auxiliary tables; must outlive this expansion
        """
        self.center = np.array(center, dtype=np.float64).reshape(-1)
        if self.center.shape != (3,):
            raise ValueError("Expansion center must be 3-dimensional")
        self.aux = aux
        self.order = -1
        self.coeffs = CoefficientTable(aux.get_max_order())

    @property
    def max_order(self) -> int:
        """Highest order the coefficient table can hold."""
        return self.coeffs.max_order

    @property
    def is_empty(self) -> bool:
        """True until something has been accumulated or translated in."""
        return self.order < 0

    def get_center(self) -> np.ndarray:
        return self.center

    def get_coeffs(self) -> CoefficientTable:
        return self.coeffs

    def get_order(self) -> int:
        return self.order

    def set_order(self, order: int):
        """
        Set the current order.

        The order only grows; lowering it would discard accumulated moments.
        """
        if order < self.order:
            raise ValueError(
                f"Order cannot decrease (current {self.order}, requested {order})")
        self._check_order(order)
        self.order = order

    def _check_order(self, order: int):
        if not 0 <= order <= self.max_order:
            raise ExpansionOrderError(
                f"Order {order} outside supported range [0, {self.max_order}]")

    def _check_compatible(self, other: 'Expansion'):
        if other.aux.power != self.aux.power:
            raise ValueError(
                f"Cannot combine expansions of kernel powers {other.aux.power} "
                f"and {self.aux.power}")

    @abstractmethod
    def accumulate(self, point: np.ndarray, weight: float, order: int):
        """
        Add one weighted source point.

        Args:
            point: Source coordinates (3D)
            weight: Source strength
            order: Highest order to update
        """
        pass

    @abstractmethod
    def evaluate_field(self, point: np.ndarray, order: int) -> float:
        """
        Evaluate the truncated expansion at a single point.

        Args:
            point: Evaluation coordinates (3D)
            order: Truncation order

        Returns:
            Field value
        """
        pass

    def accumulate_coeffs(self, data: np.ndarray, weights: np.ndarray,
                          begin: int = 0, end: Optional[int] = None,
                          order: Optional[int] = None):
        """
        Accumulate the rows begin..end-1 of ``data``, each with its own weight.

        Args:
            data: Source points (N x 3)
            weights: Source strengths (N,)
            begin: First row to accumulate
            end: One past the last row (defaults to N)
            order: Highest order to update (defaults to max order)
        """
        data = np.asarray(data, dtype=np.float64)
        if data.ndim == 1:
            data = data.reshape(1, -1)
        weights = np.asarray(weights, dtype=np.float64).reshape(-1)
        if len(weights) != data.shape[0]:
            raise ValueError("Need one weight per point")

        if end is None:
            end = data.shape[0]
        if order is None:
            order = self.max_order

        for i in range(begin, end):
            self.accumulate(data[i], weights[i], order)

    def evaluate(self, points: np.ndarray, order: Optional[int] = None) -> np.ndarray:
        """
        Evaluate the expansion at several points.

        Args:
            points: Array of points (N x 3)
            order: Truncation order (defaults to the current order)

        Returns:
            Array of field values
        """
        points = np.asarray(points, dtype=np.float64)
        if points.ndim == 1:
            points = points.reshape(1, -1)

        result = np.zeros(points.shape[0], dtype=np.float64)
        if self.is_empty:
            return result

        if order is None:
            order = self.order
        for i, point in enumerate(points):
            result[i] = self.evaluate_field(point, order)
        return result

    def print_debug(self, name: str = "", stream: Optional[TextIO] = None):
        """Write the center and the valid coefficients in readable form."""
        if stream is None:
            stream = sys.stdout

        print(f"----- SERIESEXPANSION {name} ------", file=stream)
        print(f"{self.kind} expansion (order {self.order})", file=stream)
        print("Center: " + " ".join(f"{c:g}" for c in self.center), file=stream)
        for n in range(self.order + 1):
            matrix = self.coeffs[n]
            for a in range(n + 1):
                row = " ".join(f"{matrix[a, b]:.6g}" for b in range(a + 1))
                print(f"  n={n} a={a}: {row}", file=stream)

    def __repr__(self) -> str:
        return (f"{type(self).__name__}(center={self.center.tolist()}, "
                f"order={self.order}, max_order={self.max_order})")


class FarFieldExpansion(Expansion):
    """
    Far-field expansion of a cluster of weighted points.

    Valid OUTSIDE a ball around the center that contains the sources.
    """

    kind = "Far field"

    def accumulate(self, point: np.ndarray, weight: float, order: int):
        """
        Add one weighted point to the moments of orders 0..order.

        Coefficient (n, a, b) receives weight * z^(n-a) * u^b * conj(u)^(a-b)
        for the offset (x, y, z) from the center and u = x + iy.
        """
        self._check_order(order)

        x_coord, y_coord, z_coord = _offset(point, self.center)
        rho, eta, xi = convert_to_complex_form(x_coord, y_coord)

        for n in range(order + 1):
            n_th_order_matrix = self.coeffs[n]

            for a in range(n + 1):
                power_of_z_coord = z_coord ** (n - a)

                for b in range(a + 1):
                    power_of_eta = _planar_power(eta, rho, b)
                    power_of_xi = _planar_power(xi, rho, a - b)

                    n_th_order_matrix[a, b] += (weight * power_of_z_coord *
                                                power_of_eta * power_of_xi)

        self.order = max(self.order, order)

        # Complexity: O(p³) per point

    def evaluate_field(self, point: np.ndarray, order: int) -> float:
        """
        Evaluate the far-field expansion at a point outside the cluster.

        Returns 0 while no moments have been accumulated.
        """
        if self.order < 0:
            return 0.0
        self._check_order(order)

        multiplicative_constants = self.aux.get_multiplicative_constants()

        x_diff, y_diff, z_diff = _offset(point, self.center)
        radius, theta, phi = convert_cartesian_to_spherical(x_diff, y_diff, z_diff)

        evaluated_polynomials = np.zeros((order + 1, order + 1), dtype=np.float64)
        self.aux.gegenbauer_polynomials(math.cos(theta), evaluated_polynomials)

        result = 0.0
        for n in range(order + 1):
            n_th_order_matrix = self.coeffs[n]
            n_th_multiplicative_constants = multiplicative_constants[n]

            for a in range(n + 1):
                for b in range(a + 1):
                    partial_derivative = self.aux.compute_partial_derivative_factor(
                        n, a, b, radius, theta, phi, evaluated_polynomials)

                    product = n_th_order_matrix[a, b] * partial_derivative
                    result += n_th_multiplicative_constants[a, b] * product.real

        return result

    def translate_from_far_field(self, child: 'FarFieldExpansion'):
        """
        Merge another far-field expansion into this one (M2M).

        The child's moments about its own center are re-expressed about this
        center using the binomial addition theorem and added in.

        Args:
            child: Far-field expansion to absorb; left unchanged
        """
        if child.order < 0:
            return
        self._check_compatible(child)
        self._check_order(child.order)

        coeffs_to_be_translated = child.coeffs

        # Offset of the old center as seen from the new one
        x_diff, y_diff, z_diff = _offset(child.center, self.center)

        if (abs(x_diff) < CENTER_EPSILON and abs(y_diff) < CENTER_EPSILON and
                abs(z_diff) < CENTER_EPSILON):
            self.coeffs.add_table(coeffs_to_be_translated, child.order)
            self.order = max(self.order, child.order)
            return

        logger.debug("M2M translation of order %d by offset (%g, %g, %g)",
                     child.order, x_diff, y_diff, z_diff)

        multiplicative_constants = self.aux.get_multiplicative_constants()
        rho, eta, xi = convert_to_complex_form(x_diff, y_diff)

        for n_prime in range(child.order + 1):
            nprime_th_order_destination_matrix = self.coeffs[n_prime]
            n_prime_th_order_multiplicative_constants = multiplicative_constants[n_prime]

            for a_prime in range(n_prime + 1):
                for b_prime in range(a_prime + 1):
                    contribution = 0j

                    for n in range(n_prime + 1):
                        n_th_order_source_matrix = coeffs_to_be_translated[n]
                        n_th_order_multiplicative_constants = multiplicative_constants[n]
                        nprime_minus_n_th_order_multiplicative_constants = (
                            multiplicative_constants[n_prime - n])

                        for a in farfield_translation_a_range(n_prime, a_prime, n):
                            power_of_z_coord = z_diff ** (n_prime - n - a_prime + a)

                            for b in farfield_translation_b_range(a_prime, b_prime, a):
                                power_of_eta = _planar_power(eta, rho, b_prime - b)
                                power_of_xi = _planar_power(
                                    xi, rho, a_prime - a - b_prime + b)

                                contribution += (
                                    n_th_order_source_matrix[a, b] *
                                    n_th_order_multiplicative_constants[a, b] *
                                    nprime_minus_n_th_order_multiplicative_constants[
                                        a_prime - a, b_prime - b] /
                                    n_prime_th_order_multiplicative_constants[a_prime, b_prime] *
                                    power_of_z_coord * power_of_eta * power_of_xi)

                    nprime_th_order_destination_matrix[a_prime, b_prime] += contribution

        self.order = max(self.order, child.order)

        # Complexity: O(p⁶) scalar terms in the worst case, bounded by the
        # triangular index ranges

    def translate_to_local(self, target: 'LocalExpansion', truncation_order: int):
        """
        Convert this far-field expansion into a local expansion (M2L).

        Args:
            target: Local expansion receiving the contributions
            truncation_order: Highest source and destination order used
        """
        if self.order < 0:
            return
        self._check_order(truncation_order)
        self._check_compatible(target)
        target._check_order(truncation_order)

        local_moments = target.coeffs
        multiplicative_constants = self.aux.get_multiplicative_constants()

        x_diff, y_diff, z_diff = _offset(self.center, target.center)
        radius, theta, phi = convert_cartesian_to_spherical(x_diff, y_diff, z_diff)

        # Combined indices n + n' reach twice the truncation order
        table_size = 2 * (truncation_order + 1)
        evaluated_polynomials = np.zeros((table_size, table_size), dtype=np.float64)
        self.aux.gegenbauer_polynomials(math.cos(theta), evaluated_polynomials)

        logger.debug("M2L translation of order %d over distance %g",
                     truncation_order, radius)

        partial_derivatives = self._partial_derivative_table(
            2 * truncation_order, radius, theta, phi, evaluated_polynomials)

        for n_prime in range(truncation_order + 1):
            local_n_th_order_matrix = local_moments[n_prime]
            local_n_th_multiplicative_constants = multiplicative_constants[n_prime]

            for a_prime in range(n_prime + 1):
                for b_prime in range(a_prime + 1):
                    contribution = 0j

                    for n in range(truncation_order + 1):
                        farfield_n_th_order_matrix = self.coeffs[n]
                        farfield_n_th_multiplicative_constants = multiplicative_constants[n]
                        combined_derivatives = partial_derivatives[n + n_prime]

                        # The derivative factor is taken w.r.t. the source
                        # position; moving it onto the local center flips
                        # odd source orders.
                        parity = -1.0 if n % 2 else 1.0

                        for a in range(n + 1):
                            for b in range(a + 1):
                                contribution += (
                                    parity *
                                    farfield_n_th_order_matrix[a, b] *
                                    farfield_n_th_multiplicative_constants[a, b] *
                                    combined_derivatives[a + a_prime, b + b_prime])

                    local_n_th_order_matrix[a_prime, b_prime] += (
                        local_n_th_multiplicative_constants[a_prime, b_prime] *
                        contribution)

        target.set_order(max(target.order, truncation_order))

    def _partial_derivative_table(self, order: int, radius: float, theta: float,
                                  phi: float, evaluated_polynomials: np.ndarray):
        """Query the derivative factor once for every index up to ``order``."""
        table = []
        for n in range(order + 1):
            matrix = np.zeros((n + 1, n + 1), dtype=np.complex128)
            for a in range(n + 1):
                for b in range(a + 1):
                    matrix[a, b] = self.aux.compute_partial_derivative_factor(
                        n, a, b, radius, theta, phi, evaluated_polynomials)
            table.append(matrix)
        return table


class LocalExpansion(Expansion):
    """
    Local (Taylor) expansion of the field of distant sources.

    Valid INSIDE a ball around the center that excludes the sources.
    Coefficient (n, a, b) multiplies z^(n-a) * u^b * conj(u)^(a-b) of the
    offset from the center.
    """

    kind = "Local"

    def accumulate(self, point: np.ndarray, weight: float, order: int):
        """
        Add the Taylor coefficients of a single distant source (P2L).
        """
        self._check_order(order)

        multiplicative_constants = self.aux.get_multiplicative_constants()

        x_diff, y_diff, z_diff = _offset(point, self.center)
        radius, theta, phi = convert_cartesian_to_spherical(x_diff, y_diff, z_diff)

        evaluated_polynomials = np.zeros((order + 1, order + 1), dtype=np.float64)
        self.aux.gegenbauer_polynomials(math.cos(theta), evaluated_polynomials)

        for n in range(order + 1):
            n_th_order_matrix = self.coeffs[n]
            n_th_multiplicative_constants = multiplicative_constants[n]

            for a in range(n + 1):
                for b in range(a + 1):
                    partial_derivative = self.aux.compute_partial_derivative_factor(
                        n, a, b, radius, theta, phi, evaluated_polynomials)
                    n_th_order_matrix[a, b] += (
                        weight * n_th_multiplicative_constants[a, b] *
                        partial_derivative)

        self.order = max(self.order, order)

    def evaluate_field(self, point: np.ndarray, order: int) -> float:
        """Evaluate the Taylor sum at a point near the center."""
        if self.order < 0:
            return 0.0
        self._check_order(order)

        x_coord, y_coord, z_coord = _offset(point, self.center)
        rho, eta, xi = convert_to_complex_form(x_coord, y_coord)

        result = 0.0
        for n in range(order + 1):
            n_th_order_matrix = self.coeffs[n]

            for a in range(n + 1):
                power_of_z_coord = z_coord ** (n - a)

                for b in range(a + 1):
                    power_of_eta = _planar_power(eta, rho, b)
                    power_of_xi = _planar_power(xi, rho, a - b)

                    product = (n_th_order_matrix[a, b] * power_of_z_coord *
                               power_of_eta * power_of_xi)
                    result += product.real

        return result

    def translate_to_local(self, target: 'LocalExpansion'):
        """
        Re-center this local expansion onto ``target`` (L2L).

        Shifting a polynomial is exact, so the translated expansion agrees
        with this one everywhere up to rounding.

        Args:
            target: Local expansion receiving the contributions
        """
        if self.order < 0:
            return
        target._check_order(self.order)
        self._check_compatible(target)

        # Offset of the new center as seen from the old one
        x_diff, y_diff, z_diff = _offset(target.center, self.center)

        if (abs(x_diff) < CENTER_EPSILON and abs(y_diff) < CENTER_EPSILON and
                abs(z_diff) < CENTER_EPSILON):
            target.coeffs.add_table(self.coeffs, self.order)
            target.set_order(max(target.order, self.order))
            return

        logger.debug("L2L translation of order %d by offset (%g, %g, %g)",
                     self.order, x_diff, y_diff, z_diff)

        multiplicative_constants = self.aux.get_multiplicative_constants()
        rho, eta, xi = convert_to_complex_form(x_diff, y_diff)

        for n_prime in range(self.order + 1):
            nprime_th_order_destination_matrix = target.coeffs[n_prime]
            n_prime_th_order_multiplicative_constants = multiplicative_constants[n_prime]

            for a_prime in range(n_prime + 1):
                for b_prime in range(a_prime + 1):
                    contribution = 0j

                    for n in range(n_prime, self.order + 1):
                        n_th_order_source_matrix = self.coeffs[n]
                        n_th_order_multiplicative_constants = multiplicative_constants[n]
                        n_minus_nprime_th_order_multiplicative_constants = (
                            multiplicative_constants[n - n_prime])

                        for a in local_translation_a_range(n_prime, a_prime, n):
                            power_of_z_coord = z_diff ** ((n - a) - (n_prime - a_prime))

                            for b in local_translation_b_range(a_prime, b_prime, a):
                                power_of_eta = _planar_power(eta, rho, b - b_prime)
                                power_of_xi = _planar_power(
                                    xi, rho, (a - b) - (a_prime - b_prime))

                                contribution += (
                                    n_th_order_source_matrix[a, b] *
                                    n_prime_th_order_multiplicative_constants[a_prime, b_prime] *
                                    n_minus_nprime_th_order_multiplicative_constants[
                                        a - a_prime, b - b_prime] /
                                    n_th_order_multiplicative_constants[a, b] *
                                    power_of_z_coord * power_of_eta * power_of_xi)

                    nprime_th_order_destination_matrix[a_prime, b_prime] += contribution

        target.set_order(max(target.order, self.order))
