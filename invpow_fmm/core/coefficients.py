"""
Coefficients Module

Per-order triangular storage for expansion coefficients.
"""

from typing import Iterator

import numpy as np


class CoefficientTable:
    """
    Complex coefficients indexed (order n, row a, column b).

    Order n owns an (n+1) x (n+1) matrix of which only the lower triangle
    0 <= b <= a <= n is meaningful; the rest stays zero.
    """

    def __init__(self, max_order: int):
        """
        Allocate a zero table.

        Args:
            max_order: Highest order stored
        """
        if max_order < 0:
            raise ValueError("Max order must be non-negative")
        self.max_order = max_order
        self._matrices = [np.zeros((n + 1, n + 1), dtype=np.complex128)
                          for n in range(max_order + 1)]

    def _check_index(self, n: int, a: int, b: int):
        if not (0 <= n <= self.max_order and 0 <= b <= a <= n):
            raise IndexError(
                f"Coefficient index ({n}, {a}, {b}) outside triangular table "
                f"of max order {self.max_order}")

    def get(self, n: int, a: int, b: int) -> complex:
        """Return coefficient (n, a, b)."""
        self._check_index(n, a, b)
        return complex(self._matrices[n][a, b])

    def add(self, n: int, a: int, b: int, value: complex):
        """Add ``value`` into coefficient (n, a, b)."""
        self._check_index(n, a, b)
        self._matrices[n][a, b] += value

    def add_table(self, other: 'CoefficientTable', up_to_order: int):
        """Element-wise add the orders 0..up_to_order of another table."""
        if up_to_order > min(self.max_order, other.max_order):
            raise IndexError(f"Cannot add order {up_to_order} between tables "
                             f"of max order {self.max_order} and {other.max_order}")
        for n in range(up_to_order + 1):
            self._matrices[n] += other._matrices[n]

    def __getitem__(self, n: int) -> np.ndarray:
        """Return the matrix of order n (a live view, not a copy)."""
        if not 0 <= n <= self.max_order:
            raise IndexError(f"Order {n} outside table of max order {self.max_order}")
        return self._matrices[n]

    def __len__(self) -> int:
        return self.max_order + 1

    def __iter__(self) -> Iterator[np.ndarray]:
        return iter(self._matrices)

    def __repr__(self) -> str:
        return f"CoefficientTable(max_order={self.max_order})"
