"""
Tests for Direct Kernel Evaluation
"""

import pytest
import numpy as np

from invpow_fmm.kernels import InversePowDistKernel, create_kernel


class TestInversePowDistKernel:
    """Test the reference kernel the expansions approximate."""

    def test_value(self):
        """Test 1 / r^lambda on a 3-4-5 offset."""
        x = np.array([0.0, 0.0, 0.0])
        y = np.array([3.0, 4.0, 0.0])

        assert InversePowDistKernel(1.0)(x, y) == pytest.approx(0.2)
        assert InversePowDistKernel(2.0)(x, y) == pytest.approx(0.04)

    def test_self_interaction(self):
        """Test that coincident points contribute nothing."""
        x = np.array([1.0, 1.0, 1.0])
        kernel = InversePowDistKernel(1.0)

        assert kernel(x, x) == 0.0
        np.testing.assert_array_equal(kernel.gradient(x, x), np.zeros(3))

    def test_gradient_matches_finite_differences(self):
        """Test the analytic target gradient."""
        kernel = InversePowDistKernel(1.5)
        x = np.array([0.2, -0.1, 0.3])
        y = np.array([1.0, 0.5, -0.4])
        h = 1e-6

        numeric = np.zeros(3)
        for i in range(3):
            step = np.zeros(3)
            step[i] = h
            numeric[i] = (kernel(x, y + step) - kernel(x, y - step)) / (2 * h)

        np.testing.assert_allclose(kernel.gradient(x, y), numeric, rtol=1e-6)

    def test_potential_sums_weights(self):
        """Test the weighted direct sum."""
        kernel = InversePowDistKernel(1.0)
        sources = np.array([[1.0, 0.0, 0.0], [0.0, 2.0, 0.0]])
        weights = np.array([2.0, 4.0])

        assert kernel.potential(sources, weights, np.zeros(3)) == pytest.approx(4.0)

    def test_invalid_power(self):
        """Test that non-positive powers are rejected."""
        with pytest.raises(ValueError):
            InversePowDistKernel(0.0)


class TestCreateKernel:
    """Test the kernel factory."""

    def test_names(self):
        """Test the supported kernel names."""
        assert create_kernel('coulomb').power == 1.0
        assert create_kernel('inverse_pow_dist', power=2.5).power == 2.5
        assert create_kernel('Inverse_Pow_Dist').power == 1.0

    def test_unknown_name(self):
        """Test that unknown kernels are rejected."""
        with pytest.raises(ValueError):
            create_kernel('helmholtz')
