# -- Particle Time Stepping -- #

'''
Fixed-step time integration for the SPH particle system.

SymplecticEuler converts the accumulated forces to accelerations,
kicks the velocities and then drifts the positions with the new
velocities. The step size comes from SimulationConfig.timeStep and is
never subdivided, and velocities are not clamped.

References:
-----------
Hairer et al. (2003) -- Geometric Numerical Integration
'''

from __future__ import annotations

from typing import Protocol

import numpy as np

from FluidSim.sph.particles import ParticleSystem


class TimeIntegrator(Protocol):
    '''Advances every particle by one step from its accumulated force.'''

    def integrate(self, particles: ParticleSystem, dt: float) -> None:
        ...


######################################################################
# -- Symplectic Euler -- #
######################################################################

class SymplecticEuler:
    '''
    Semi-implicit Euler step applied to all particles.

        a      = F / m
        v_new  = v + a * dt
        x_new  = x + v_new * dt
    '''

    @staticmethod
    def accelerations(particles: ParticleSystem) -> np.ndarray:
        '''Per-particle acceleration F / m, shape (N, 3).'''
        return particles.forces / particles.masses[:, np.newaxis]

    def integrate(self, particles: ParticleSystem, dt: float) -> None:
        '''
        Update accelerations, velocities and positions in place.

        Parameters:
        -----------
        particles : ParticleSystem
            Particles with forces already accumulated for this step
        dt : float
            Fixed step size [s]
        '''
        particles.accelerations[:] = self.accelerations(particles)
        particles.velocities += particles.accelerations * dt
        particles.positions += particles.velocities * dt
