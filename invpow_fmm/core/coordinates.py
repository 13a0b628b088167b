"""
Coordinates Module

Conversions between Cartesian offsets and the complex-plane / spherical
representations used by the inverse-power-distance expansions.

The xy-part of an offset (x, y) is stored as a magnitude rho and a pair of
unit complex numbers eta = (x + iy)/rho and xi = (x - iy)/rho, so that

    (x + iy)^k = eta^k * rho^k,    (x - iy)^k = xi^k * rho^k

without repeated trigonometric calls.
"""

import math
from typing import Tuple

from .exceptions import ExpansionDomainError


def convert_to_complex_form(dx: float, dy: float) -> Tuple[float, complex, complex]:
    """
    Convert an xy-offset into (rho, eta, xi).

    Args:
        dx: Offset along x
        dy: Offset along y

    Returns:
        Tuple (rho, eta, xi) with rho = |(dx, dy)| and eta, xi unit complex
        numbers. For rho = 0 both are 1+0j: only rho^0 survives then, and
        it must multiply to 1.
    """
    rho = math.hypot(dx, dy)

    # Zero magnitude: no direction to divide out
    if rho == 0.0:
        return 0.0, complex(1.0, 0.0), complex(1.0, 0.0)

    eta = complex(dx / rho, dy / rho)
    xi = complex(dx / rho, -dy / rho)
    return rho, eta, xi


def convert_cartesian_to_spherical(dx: float, dy: float,
                                   dz: float) -> Tuple[float, float, float]:
    """
    Convert a Cartesian offset into spherical coordinates.

    Args:
        dx, dy, dz: Cartesian offset components

    Returns:
        Tuple (radius, theta, phi) where theta is the polar angle measured
        from the z-axis and phi = atan2(dy, dx). The origin maps to (0, 0, 0).
    """
    radius = math.sqrt(dx * dx + dy * dy + dz * dz)
    if radius == 0.0:
        return 0.0, 0.0, 0.0

    theta = math.acos(min(1.0, max(-1.0, dz / radius)))
    phi = math.atan2(dy, dx)
    return radius, theta, phi


def pow_with_root_of_unity(z: complex, k: int) -> complex:
    """
    Integer power of a unit-magnitude complex number.

    Negative powers use the conjugate, which is the exact inverse on the
    unit circle.

    Args:
        z: Complex number with |z| = 1
        k: Integer exponent (may be negative)

    Returns:
        z^k
    """
    if k == 0:
        return complex(1.0, 0.0)
    if z == 0:
        if k < 0:
            raise ExpansionDomainError("Negative power of zero is undefined")
        return complex(0.0, 0.0)
    if k < 0:
        z = z.conjugate()
        k = -k
    return complex(z) ** k
