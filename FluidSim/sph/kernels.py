# -- SPH Smoothing Kernels -- #

'''
Smoothing kernel functions for SPH interpolation.

Implements the three kernels of Muller et al. (2003), each with
compact support at the smoothing radius h:

- Poly6: density estimation
    W(r, h) = 315 / (64 * pi * h^9) * (h^2 - r^2)^3
- Spiky gradient: pressure force and surface normal
    grad_W(r, h) = dir * (-45 / (pi * h^6)) * (h - r)^2 / r
- Viscosity Laplacian: viscosity force and color-field Laplacian
    lap_W(r, h) = 45 / (pi * h^6) * (h - r)

The normalization constants depend only on h and are computed once
when the kernel object is built.

References:
-----------
Muller, Charypar & Gross (2003) -- Particle-Based Fluid Simulation
    for Interactive Applications
Desbrun & Gascuel (1996) -- Smoothed Particles: A new paradigm for
    animating highly deformable bodies
'''

from __future__ import annotations

import math

import numpy as np

from FluidSim import constants as const


def normalize(vectors: np.ndarray) -> np.ndarray:
    '''
    Normalize a vector or each row of an (N, 3) array.

    Zero-length vectors map to the zero vector.

    Parameters:
    -----------
    vectors : np.ndarray
        Vector, shape (3,), or rows of vectors, shape (N, 3)

    Returns:
    --------
    np.ndarray : Unit vectors with the input shape
    '''
    vectors = np.asarray(vectors, dtype=float)
    lengths = np.linalg.norm(vectors, axis=-1, keepdims=True)
    safeLengths = np.where(lengths > 0.0, lengths, 1.0)
    return np.where(lengths > 0.0, vectors / safeLengths, 0.0)


######################################################################
# -- Muller Kernel Set -- #
######################################################################

class MullerKernels:
    '''
    Poly6, spiky-gradient and viscosity-Laplacian kernels for one h.

    Parameters:
    -----------
    h : float
        Smoothing radius [m], must be positive
    epsilon : float
        Distances below this give a zero spiky gradient
    '''

    def __init__(self, h: float, epsilon: float = const.kernelEpsilon) -> None:
        if not h > 0.0:
            raise ValueError(f'Smoothing radius must be positive, got {h}')

        self._h = h
        self._hSq = h * h
        self._epsilon = epsilon

        self._poly6Constant = 315.0 / (64.0 * math.pi * h ** 9)
        self._spikyGradConstant = -45.0 / (math.pi * h ** 6)
        self._viscosityLaplacianConstant = 45.0 / (math.pi * h ** 6)

    @property
    def h(self) -> float:
        '''Smoothing radius [m].'''
        return self._h

    @property
    def poly6Constant(self) -> float:
        '''315 / (64 pi h^9).'''
        return self._poly6Constant

    @property
    def spikyGradConstant(self) -> float:
        '''-45 / (pi h^6).'''
        return self._spikyGradConstant

    @property
    def viscosityLaplacianConstant(self) -> float:
        '''45 / (pi h^6).'''
        return self._viscosityLaplacianConstant

    ######################################################################
    # -- Single-Pair Evaluation -- #
    ######################################################################

    def poly6(self, r: float) -> float:
        '''
        Evaluate the Poly6 density kernel W(r, h).

        Parameters:
        -----------
        r : float
            Distance between particles [m]

        Returns:
        --------
        float : Kernel value, zero beyond h
        '''
        if r > self._h:
            return 0.0
        term = self._hSq - r * r
        return self._poly6Constant * term * term * term

    def spikyGrad(self, r: float, direction: np.ndarray) -> np.ndarray:
        '''
        Evaluate the spiky kernel gradient.

        Parameters:
        -----------
        r : float
            Distance between particles [m]
        direction : np.ndarray
            Unit vector from the particle toward its neighbor

        Returns:
        --------
        np.ndarray : Gradient vector, zero beyond h or for r < epsilon
        '''
        if r > self._h or r < self._epsilon:
            return np.zeros(3)
        term = self._h - r
        scale = self._spikyGradConstant * term * term / r
        return np.asarray(direction, dtype=float) * scale

    def viscosityLaplacian(self, r: float) -> float:
        '''
        Evaluate the viscosity kernel Laplacian.

        Parameters:
        -----------
        r : float
            Distance between particles [m]

        Returns:
        --------
        float : Laplacian value, zero beyond h
        '''
        if r > self._h:
            return 0.0
        return self._viscosityLaplacianConstant * (self._h - r)

    ######################################################################
    # -- Vectorized (Batch) Operations -- #
    ######################################################################

    def poly6Batch(self, distances: np.ndarray) -> np.ndarray:
        '''
        Evaluate Poly6 for an array of distances.

        Parameters:
        -----------
        distances : np.ndarray
            Pair distances [m], shape (N,)

        Returns:
        --------
        np.ndarray : Kernel values, shape (N,)
        '''
        term = self._hSq - distances * distances
        values = self._poly6Constant * term * term * term
        return np.where(distances > self._h, 0.0, values)

    def spikyGradBatch(self, distances: np.ndarray, directions: np.ndarray) -> np.ndarray:
        '''
        Evaluate the spiky gradient for arrays of pairs.

        Parameters:
        -----------
        distances : np.ndarray
            Pair distances [m], shape (N,)
        directions : np.ndarray
            Unit vectors from particle to neighbor, shape (N, 3)

        Returns:
        --------
        np.ndarray : Gradient vectors, shape (N, 3)
        '''
        valid = (distances <= self._h) & (distances >= self._epsilon)
        safeDist = np.where(valid, distances, 1.0)
        term = self._h - safeDist
        scale = np.where(valid, self._spikyGradConstant * term * term / safeDist, 0.0)
        return directions * scale[:, np.newaxis]

    def viscosityLaplacianBatch(self, distances: np.ndarray) -> np.ndarray:
        '''
        Evaluate the viscosity Laplacian for an array of distances.

        Parameters:
        -----------
        distances : np.ndarray
            Pair distances [m], shape (N,)

        Returns:
        --------
        np.ndarray : Laplacian values, shape (N,)
        '''
        values = self._viscosityLaplacianConstant * (self._h - distances)
        return np.where(distances > self._h, 0.0, values)
