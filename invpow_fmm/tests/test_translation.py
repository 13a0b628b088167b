"""
Tests for Far-Field Translation

Index ranges of the translation operators and far-to-far re-centering
(M2M) of the inverse-power-distance expansion.
"""

import pytest
import numpy as np

from invpow_fmm.core.auxiliary import ExpansionConfig, SeriesExpansionAux
from invpow_fmm.core.expansion import (
    FarFieldExpansion,
    farfield_translation_a_range,
    farfield_translation_b_range,
    local_translation_a_range,
    local_translation_b_range,
)
from invpow_fmm.core.exceptions import ExpansionOrderError
from invpow_fmm.kernels import InversePowDistKernel
from invpow_fmm.tests import random_cluster, random_weights, relative_error


def assert_same_coeffs(first, second, order, rtol=1e-10, atol=1e-12):
    for n in range(order + 1):
        np.testing.assert_allclose(first.get_coeffs()[n], second.get_coeffs()[n],
                                   rtol=rtol, atol=atol)


class TestTranslationRanges:
    """Test the index ranges against brute-force enumeration."""

    MAX_ORDER = 6

    def test_farfield_ranges(self):
        """Test that far-to-far ranges cover exactly the valid source indices."""
        for n_prime in range(self.MAX_ORDER + 1):
            for a_prime in range(n_prime + 1):
                for b_prime in range(a_prime + 1):
                    for n in range(n_prime + 1):
                        # Source (n, a, b) feeds (n', a', b') iff every
                        # exponent difference is non-negative
                        expected = {
                            (a, b)
                            for a in range(n + 1) for b in range(a + 1)
                            if a <= a_prime and b <= b_prime
                            and a - b <= a_prime - b_prime
                            and n - a <= n_prime - a_prime
                        }
                        actual = {
                            (a, b)
                            for a in farfield_translation_a_range(n_prime, a_prime, n)
                            for b in farfield_translation_b_range(a_prime, b_prime, a)
                        }
                        assert actual == expected

    def test_local_ranges(self):
        """Test that local-to-local ranges cover exactly the valid source indices."""
        for n_prime in range(self.MAX_ORDER + 1):
            for a_prime in range(n_prime + 1):
                for b_prime in range(a_prime + 1):
                    for n in range(n_prime, self.MAX_ORDER + 1):
                        expected = {
                            (a, b)
                            for a in range(n + 1) for b in range(a + 1)
                            if a >= a_prime and b >= b_prime
                            and a - b >= a_prime - b_prime
                            and n - a >= n_prime - a_prime
                        }
                        actual = {
                            (a, b)
                            for a in local_translation_a_range(n_prime, a_prime, n)
                            for b in local_translation_b_range(a_prime, b_prime, a)
                        }
                        assert actual == expected

    def test_farfield_boundaries(self):
        """Test a few explicit bounds."""
        assert list(farfield_translation_a_range(4, 2, 4)) == [2]
        assert list(farfield_translation_a_range(4, 2, 1)) == [0, 1]
        assert list(farfield_translation_a_range(3, 0, 2)) == [0]
        assert list(farfield_translation_b_range(3, 1, 2)) == [0, 1]
        assert list(farfield_translation_b_range(3, 3, 1)) == [1]

    def test_local_boundaries(self):
        """Test a few explicit bounds."""
        assert list(local_translation_a_range(2, 1, 4)) == [1, 2, 3]
        assert list(local_translation_a_range(2, 2, 2)) == [2]
        assert list(local_translation_b_range(1, 1, 3)) == [1, 2, 3]
        assert list(local_translation_b_range(2, 0, 2)) == [0]


class TestFarFieldTranslation:
    """Test M2M re-centering."""

    @pytest.fixture
    def aux(self):
        return SeriesExpansionAux(ExpansionConfig(power=1.0, max_order=6))

    @pytest.fixture
    def cluster(self):
        points = random_cluster([0.3, -0.2, 0.25], 0.2, 15)
        weights = random_weights(15)
        return points, weights

    def test_matches_direct_accumulation(self, aux, cluster):
        """Test that translated moments equal moments accumulated at the new center."""
        points, weights = cluster
        child = FarFieldExpansion(np.array([0.3, -0.2, 0.25]), aux)
        child.accumulate_coeffs(points, weights, order=6)

        parent = FarFieldExpansion(np.zeros(3), aux)
        parent.translate_from_far_field(child)

        direct = FarFieldExpansion(np.zeros(3), aux)
        direct.accumulate_coeffs(points, weights, order=6)

        assert parent.get_order() == 6
        assert_same_coeffs(parent, direct, 6)

    @pytest.mark.parametrize("power", [1.0, 1.7])
    def test_translated_field(self, power, cluster):
        """Test that the translated expansion still approximates the field."""
        aux = SeriesExpansionAux(ExpansionConfig(power=power, max_order=6))
        kernel = InversePowDistKernel(power)
        points, weights = cluster

        child = FarFieldExpansion(np.array([0.3, -0.2, 0.25]), aux)
        child.accumulate_coeffs(points, weights, order=6)
        parent = FarFieldExpansion(np.zeros(3), aux)
        parent.translate_from_far_field(child)

        target = np.array([-4.0, 4.5, 3.0])
        exact = kernel.potential(points, weights, target)
        assert relative_error(parent.evaluate_field(target, 6), exact) < 1e-5

    def test_several_children_add_up(self, aux):
        """Test that merging two children equals accumulating both clusters."""
        first_points = random_cluster([0.25, 0.0, 0.0], 0.15, 6, seed=1)
        second_points = random_cluster([-0.25, 0.1, 0.0], 0.15, 6, seed=2)
        weights = random_weights(6)

        parent = FarFieldExpansion(np.zeros(3), aux)
        direct = FarFieldExpansion(np.zeros(3), aux)
        for center, points in (([0.25, 0.0, 0.0], first_points),
                               ([-0.25, 0.1, 0.0], second_points)):
            child = FarFieldExpansion(np.array(center), aux)
            child.accumulate_coeffs(points, weights, order=5)
            parent.translate_from_far_field(child)
            direct.accumulate_coeffs(points, weights, order=5)

        assert parent.get_order() == 5
        assert_same_coeffs(parent, direct, 5)

    def test_child_left_unchanged(self, aux, cluster):
        """Test that the source expansion is read-only."""
        points, weights = cluster
        child = FarFieldExpansion(np.array([0.3, -0.2, 0.25]), aux)
        child.accumulate_coeffs(points, weights, order=4)
        before = [matrix.copy() for matrix in child.get_coeffs()]

        FarFieldExpansion(np.zeros(3), aux).translate_from_far_field(child)

        for matrix, saved in zip(child.get_coeffs(), before):
            assert np.array_equal(matrix, saved)
        assert child.get_order() == 4

    def test_same_center_adds_coefficients(self, aux, cluster):
        """Test the coincident-center path."""
        points, weights = cluster
        child = FarFieldExpansion(np.zeros(3), aux)
        child.accumulate_coeffs(points, weights, order=3)

        parent = FarFieldExpansion(np.zeros(3), aux)
        parent.accumulate(np.array([0.1, 0.1, 0.1]), 1.0, 2)
        expected = [parent.get_coeffs()[n] + child.get_coeffs()[n] for n in range(4)]

        parent.translate_from_far_field(child)

        assert parent.get_order() == 3
        for n in range(4):
            np.testing.assert_array_equal(parent.get_coeffs()[n], expected[n])

    def test_tiny_offset_matches_same_center(self, aux, cluster):
        """Test that the general path agrees with the coincident-center path."""
        points, weights = cluster
        child = FarFieldExpansion(np.zeros(3), aux)
        child.accumulate_coeffs(points, weights, order=4)

        coincident = FarFieldExpansion(np.zeros(3), aux)
        coincident.translate_from_far_field(child)
        shifted = FarFieldExpansion(np.array([1e-9, 0.0, 0.0]), aux)
        shifted.translate_from_far_field(child)

        assert_same_coeffs(shifted, coincident, 4, rtol=1e-6, atol=1e-8)

    def test_empty_child_is_noop(self, aux):
        """Test that merging an empty expansion changes nothing."""
        parent = FarFieldExpansion(np.zeros(3), aux)
        parent.translate_from_far_field(FarFieldExpansion(np.ones(3), aux))

        assert parent.get_order() == -1
        for matrix in parent.get_coeffs():
            assert np.all(matrix == 0)

    def test_kernel_power_mismatch(self, aux):
        """Test that expansions of different kernels cannot be combined."""
        other_aux = SeriesExpansionAux(ExpansionConfig(power=2.0, max_order=6))
        child = FarFieldExpansion(np.ones(3), other_aux)
        child.accumulate(np.array([1.1, 1.0, 1.0]), 1.0, 2)

        with pytest.raises(ValueError):
            FarFieldExpansion(np.zeros(3), aux).translate_from_far_field(child)

    def test_child_order_too_large(self):
        """Test that the destination must hold the child's order."""
        small = SeriesExpansionAux(ExpansionConfig(power=1.0, max_order=3))
        large = SeriesExpansionAux(ExpansionConfig(power=1.0, max_order=6))
        child = FarFieldExpansion(np.ones(3), large)
        child.accumulate(np.array([1.1, 1.0, 1.0]), 1.0, 5)

        with pytest.raises(ExpansionOrderError):
            FarFieldExpansion(np.zeros(3), small).translate_from_far_field(child)
