# -- SPH Particle System -- #

'''
Dataclass representing the SPH particle system state.

Stores positions, velocities, accelerations, accumulated forces and
masses as contiguous NumPy arrays for vectorized operations. A single
particle is a row index into these arrays; neighbor lists refer to
particles by that index.

Density and pressure are not stored here. They are recomputed every
step and live in the solver's step-scoped StepFields.
'''

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np


@dataclass
class ParticleSystem:
    '''
    SPH particle system state.

    All vector arrays have shape (nParticles, 3) and scalar arrays
    shape (nParticles,).

    Parameters:
    -----------
    positions : np.ndarray
        Particle positions [m], shape (N, 3)
    velocities : np.ndarray
        Particle velocities [m/s], shape (N, 3)
    accelerations : np.ndarray
        Particle accelerations [m/s^2], shape (N, 3)
    forces : np.ndarray
        Accumulated forces [N], shape (N, 3)
    masses : np.ndarray
        Particle masses [kg], shape (N,)
    '''

    positions: np.ndarray
    velocities: np.ndarray
    accelerations: np.ndarray
    forces: np.ndarray
    masses: np.ndarray

    @property
    def nParticles(self) -> int:
        '''Total number of particles.'''
        return self.positions.shape[0]

    def __len__(self) -> int:
        return self.nParticles

    ######################################################################
    # -- Construction -- #
    ######################################################################

    @classmethod
    def empty(cls) -> ParticleSystem:
        '''Particle system with no particles.'''
        return cls.fromPositions(np.zeros((0, 3)), mass=1.0)

    @classmethod
    def fromPositions(cls, positions: np.ndarray, mass: float) -> ParticleSystem:
        '''
        Create particles at rest at the given positions.

        Parameters:
        -----------
        positions : np.ndarray
            Initial positions, shape (N, 3)
        mass : float
            Mass assigned to every particle

        Returns:
        --------
        ParticleSystem : Particles with zero velocity and force
        '''
        positions = np.array(positions, dtype=float).reshape(-1, 3)
        nParticles = positions.shape[0]

        return cls(
            positions=positions,
            velocities=np.zeros((nParticles, 3)),
            accelerations=np.zeros((nParticles, 3)),
            forces=np.zeros((nParticles, 3)),
            masses=np.full(nParticles, float(mass)),
        )

    @classmethod
    def createGrid(
        cls,
        count: int,
        regionMin: np.ndarray,
        regionMax: np.ndarray,
        spacing: float,
        mass: float,
    ) -> ParticleSystem:
        '''
        Place up to count particles on a regular grid inside a region.

        The grid starts at regionMin and holds floor(extent / spacing)
        points per axis. Points are generated x outer, y middle, z inner
        and generation stops once count particles exist, so a region
        too small for count is under-filled.

        Parameters:
        -----------
        count : int
            Requested number of particles
        regionMin : np.ndarray
            Lower corner of the fill region [m]
        regionMax : np.ndarray
            Upper corner of the fill region [m]
        spacing : float
            Grid spacing [m]
        mass : float
            Particle mass

        Returns:
        --------
        ParticleSystem : Grid particles at rest
        '''
        regionMin = np.asarray(regionMin, dtype=float).reshape(3)
        regionMax = np.asarray(regionMax, dtype=float).reshape(3)

        nx, ny, nz = (
            max(0, math.floor((regionMax[d] - regionMin[d]) / spacing))
            for d in range(3)
        )

        # indexing='ij' keeps x outermost and z innermost when flattened
        ii, jj, kk = np.meshgrid(
            np.arange(nx), np.arange(ny), np.arange(nz), indexing='ij',
        )
        indices = np.column_stack([ii.ravel(), jj.ravel(), kk.ravel()])
        indices = indices[:max(0, int(count))]

        positions = regionMin + indices * spacing
        return cls.fromPositions(positions, mass)

    def addParticle(self, position: np.ndarray, mass: float) -> int:
        '''
        Append one particle at rest.

        Parameters:
        -----------
        position : np.ndarray
            Particle position, shape (3,)
        mass : float
            Particle mass

        Returns:
        --------
        int : Index of the new particle
        '''
        position = np.asarray(position, dtype=float).reshape(1, 3)
        self.positions = np.vstack([self.positions, position])
        self.velocities = np.vstack([self.velocities, np.zeros((1, 3))])
        self.accelerations = np.vstack([self.accelerations, np.zeros((1, 3))])
        self.forces = np.vstack([self.forces, np.zeros((1, 3))])
        self.masses = np.append(self.masses, float(mass))
        return self.nParticles - 1

    ######################################################################
    # -- Force Accumulation -- #
    ######################################################################

    def resetForces(self) -> None:
        '''Zero the accumulated force on every particle.'''
        self.forces[:] = 0.0

    def addForces(self, forces: np.ndarray) -> None:
        '''
        Accumulate a force contribution.

        Parameters:
        -----------
        forces : np.ndarray
            Per-particle forces, shape (N, 3), or one force applied
            to every particle, shape (3,)
        '''
        self.forces += forces

    ######################################################################
    # -- Diagnostics -- #
    ######################################################################

    def kineticEnergy(self) -> float:
        '''
        Total kinetic energy.

        KE = (1/2) * sum_i m_i * |v_i|^2

        Returns:
        --------
        float : Kinetic energy [J]
        '''
        speedsSq = np.sum(self.velocities * self.velocities, axis=1)
        return float(0.5 * np.sum(self.masses * speedsSq))

    def potentialEnergy(self, gravity: np.ndarray) -> float:
        '''
        Total gravitational potential energy.

        PE = -sum_i m_i * (g . x_i), zero at the origin.

        Parameters:
        -----------
        gravity : np.ndarray
            Gravity vector [m/s^2], shape (3,)

        Returns:
        --------
        float : Potential energy [J]
        '''
        return float(-np.sum(self.masses * (self.positions @ gravity)))

    def maxSpeed(self) -> float:
        '''
        Maximum velocity magnitude.

        Returns:
        --------
        float : Maximum speed [m/s]
        '''
        if self.nParticles == 0:
            return 0.0
        return float(np.max(np.linalg.norm(self.velocities, axis=1)))

    def isFinite(self) -> bool:
        '''True when no position or velocity component is NaN or infinite.'''
        return bool(
            np.all(np.isfinite(self.positions)) and np.all(np.isfinite(self.velocities))
        )
