# -- Kernel Function Tests -- #

'''
Support, boundary continuity and batch/scalar agreement of the
Poly6, spiky-gradient and viscosity-Laplacian kernels.
'''

import math

import numpy as np
import pytest

from FluidSim.sph.kernels import MullerKernels, normalize


H = 0.16


@pytest.fixture
def kernels() -> MullerKernels:
    return MullerKernels(H)


class TestConstants:
    '''Normalization constants are computed from h once.'''

    def testConstantValues(self, kernels):
        assert kernels.poly6Constant == pytest.approx(315.0 / (64.0 * math.pi * H ** 9))
        assert kernels.spikyGradConstant == pytest.approx(-45.0 / (math.pi * H ** 6))
        assert kernels.viscosityLaplacianConstant == pytest.approx(45.0 / (math.pi * H ** 6))

    @pytest.mark.parametrize('h', [0.0, -0.1])
    def testRejectsNonPositiveRadius(self, h):
        with pytest.raises(ValueError):
            MullerKernels(h)


class TestSupport:
    '''All kernels vanish beyond the smoothing radius.'''

    @pytest.mark.parametrize('r', [H * 1.0001, 0.2, 1.0, 10.0])
    def testZeroBeyondSupport(self, kernels, r):
        direction = np.array([1.0, 0.0, 0.0])
        assert kernels.poly6(r) == 0.0
        assert np.array_equal(kernels.spikyGrad(r, direction), np.zeros(3))
        assert kernels.viscosityLaplacian(r) == 0.0

    def testPoly6VanishesAtRadius(self, kernels):
        assert kernels.poly6(H) == 0.0

    def testViscosityLaplacianVanishesAtRadius(self, kernels):
        assert kernels.viscosityLaplacian(H) == pytest.approx(0.0, abs=1e-9)

    def testSpikyGradientFadesTowardRadius(self, kernels):
        direction = np.array([0.0, 1.0, 0.0])
        magnitudes = [
            np.linalg.norm(kernels.spikyGrad(H - delta, direction))
            for delta in (1e-2, 1e-3, 1e-4, 1e-6)
        ]
        assert all(a > b for a, b in zip(magnitudes, magnitudes[1:]))
        assert magnitudes[-1] < 1e-3

    def testSpikyGradientGuardedNearZero(self, kernels):
        direction = np.array([1.0, 0.0, 0.0])
        assert np.array_equal(kernels.spikyGrad(0.0, direction), np.zeros(3))
        assert np.array_equal(kernels.spikyGrad(5e-5, direction), np.zeros(3))

    def testPoly6PeakAtOrigin(self, kernels):
        assert kernels.poly6(0.0) == pytest.approx(kernels.poly6Constant * H ** 6)
        assert kernels.poly6(0.0) > kernels.poly6(0.05) > kernels.poly6(0.1) > 0.0


class TestSpikyDirection:
    '''Gradient is the direction scaled by C_s (h - r)^2 / r.'''

    def testGradientScalesDirection(self, kernels):
        r = 0.05
        direction = np.array([0.0, 0.0, 1.0])
        expected = kernels.spikyGradConstant * (H - r) ** 2 / r
        grad = kernels.spikyGrad(r, direction)
        assert grad[0] == 0.0 and grad[1] == 0.0
        assert grad[2] == pytest.approx(expected)
        # C_s is negative, so the gradient points away from the neighbor
        assert grad[2] < 0.0


class TestBatch:
    '''Batch evaluation matches the single-pair functions.'''

    def testBatchMatchesScalar(self, kernels):
        distances = np.array([0.0, 5e-5, 1e-4, 0.03, 0.08, 0.12, H, 0.2])
        directions = normalize(np.array([
            [1.0, 0.0, 0.0],
            [0.0, 1.0, 0.0],
            [1.0, 1.0, 0.0],
            [0.0, 0.0, -1.0],
            [1.0, 2.0, 3.0],
            [-1.0, 0.5, 0.0],
            [0.0, 1.0, 1.0],
            [1.0, 0.0, 0.0],
        ]))

        poly6 = kernels.poly6Batch(distances)
        grads = kernels.spikyGradBatch(distances, directions)
        laps = kernels.viscosityLaplacianBatch(distances)

        for k, r in enumerate(distances):
            assert poly6[k] == pytest.approx(kernels.poly6(r))
            assert np.allclose(grads[k], kernels.spikyGrad(r, directions[k]))
            assert laps[k] == pytest.approx(kernels.viscosityLaplacian(r), abs=1e-9)


class TestNormalize:

    def testZeroVectorStaysZero(self):
        assert np.array_equal(normalize(np.zeros(3)), np.zeros(3))

    def testRowsAreUnitLength(self):
        rows = normalize(np.array([[3.0, 4.0, 0.0], [0.0, 0.0, 2.0], [0.0, 0.0, 0.0]]))
        assert np.allclose(np.linalg.norm(rows[:2], axis=1), 1.0)
        assert np.array_equal(rows[2], np.zeros(3))
