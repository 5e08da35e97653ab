# -- SPH Boundary Conditions -- #

'''
Bounding-box wall enforcement for SPH particles.

The fluid is confined to an axis-aligned box. After integration, any
particle that has left the box is clamped back onto the violated face
and the velocity component normal to that face is reflected and
damped. Each axis is treated independently, so a particle leaving
through a corner is corrected on every axis it violated.
'''

from __future__ import annotations

import numpy as np

from FluidSim import constants as const
from FluidSim.sph.protocols import BoundingBox
from FluidSim.sph.particles import ParticleSystem


class BoundaryHandler:
    '''
    Clamp-and-reflect walls for a rectangular container.

    Parameters:
    -----------
    boundingBox : BoundingBox
        Container walls
    damping : float
        Velocity scale on wall contact (v_axis *= -damping)
    '''

    def __init__(
        self,
        boundingBox: BoundingBox,
        damping: float = const.collisionDamping,
    ) -> None:
        self._boundingBox = boundingBox
        self._damping = damping

    @property
    def boundingBox(self) -> BoundingBox:
        '''Container walls.'''
        return self._boundingBox

    def enforceBoundary(self, particles: ParticleSystem) -> None:
        '''
        Enforce the bounding-box walls on all particles.

        For each axis, a position below min is clamped to min and a
        position above max is clamped to max; in both cases the
        velocity component on that axis is negated and scaled by the
        damping factor.

        Parameters:
        -----------
        particles : ParticleSystem
            The particle system to enforce boundaries on
        '''
        positions = particles.positions
        velocities = particles.velocities
        boxMin = self._boundingBox.min
        boxMax = self._boundingBox.max

        for d in range(3):
            # Check lower wall
            belowMin = positions[:, d] < boxMin[d]
            positions[belowMin, d] = boxMin[d]
            velocities[belowMin, d] *= -self._damping

            # Check upper wall
            aboveMax = positions[:, d] > boxMax[d]
            positions[aboveMax, d] = boxMax[d]
            velocities[aboveMax, d] *= -self._damping
