# -- Collision Obstacles -- #

'''
Static or externally moved obstacles that particles collide against.

Obstacles form a closed set of variants (sphere, box), each tagged
with an ObstacleKind. resolveCollision dispatches on the tag to the
matching handler, which works on every particle at once:

1. Detect penetrating particles
2. Push them to the nearest point on the obstacle surface
3. If a particle moves into the obstacle (v . n < 0), reflect the
   normal velocity component and scale the whole velocity by the
   damping factor:  v = (v - 2 (v . n) n) * damping

Obstacle geometry may be moved between steps with moveTo; the solver
reads it fresh on every collision pass.
'''

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Union

import numpy as np

from FluidSim import constants as const
from FluidSim.sph.particles import ParticleSystem


class ObstacleKind(Enum):
    '''Tag identifying an obstacle variant.'''

    SPHERE = 'sphere'
    BOX = 'box'


# Outward face normals in tie-break order: -x, +x, -y, +y, -z, +z
_BOX_FACE_NORMALS = np.array([
    [-1.0, 0.0, 0.0],
    [1.0, 0.0, 0.0],
    [0.0, -1.0, 0.0],
    [0.0, 1.0, 0.0],
    [0.0, 0.0, -1.0],
    [0.0, 0.0, 1.0],
])

# Push-out direction for a particle exactly at a sphere center
_SPHERE_FALLBACK_NORMAL = np.array([0.0, 1.0, 0.0])


######################################################################
# -- Obstacle Variants -- #
######################################################################

@dataclass(eq=False)
class SphereObstacle:
    '''
    Spherical obstacle.

    Particles are treated as discs of radius contactRadius, so contact
    happens at distance radius + contactRadius from the center.

    Parameters:
    -----------
    center : np.ndarray
        Sphere center, shape (3,)
    radius : float
        Sphere radius [m]
    contactRadius : float
        Particle contact radius [m]
    '''

    center: np.ndarray
    radius: float
    contactRadius: float = const.particleContactRadius
    kind: ObstacleKind = field(default=ObstacleKind.SPHERE, init=False)

    def __post_init__(self) -> None:
        self.center = np.array(self.center, dtype=float).reshape(3)

    @property
    def contactDistance(self) -> float:
        '''Minimum allowed particle distance from the center.'''
        return self.radius + self.contactRadius

    def moveTo(self, center: np.ndarray) -> None:
        '''Reposition the sphere.'''
        self.center = np.array(center, dtype=float).reshape(3)

    def toDict(self) -> dict:
        return {
            'kind': self.kind.value,
            'center': self.center.tolist(),
            'radius': self.radius,
        }


@dataclass(eq=False)
class BoxObstacle:
    '''
    Axis-aligned box obstacle.

    Parameters:
    -----------
    center : np.ndarray
        Box center, shape (3,)
    halfExtents : np.ndarray
        Half the box size along each axis, shape (3,)
    '''

    center: np.ndarray
    halfExtents: np.ndarray
    kind: ObstacleKind = field(default=ObstacleKind.BOX, init=False)

    def __post_init__(self) -> None:
        self.center = np.array(self.center, dtype=float).reshape(3)
        self.halfExtents = np.array(self.halfExtents, dtype=float).reshape(3)
        self._updateBounds()

    @classmethod
    def fromSize(cls, center: np.ndarray, size: np.ndarray) -> BoxObstacle:
        '''Build a box from its full edge lengths.'''
        return cls(center=center, halfExtents=0.5 * np.asarray(size, dtype=float))

    def _updateBounds(self) -> None:
        self.min = self.center - self.halfExtents
        self.max = self.center + self.halfExtents

    @property
    def size(self) -> np.ndarray:
        '''Full edge lengths.'''
        return 2.0 * self.halfExtents

    def moveTo(self, center: np.ndarray) -> None:
        '''Reposition the box, keeping its size.'''
        self.center = np.array(center, dtype=float).reshape(3)
        self._updateBounds()

    def toDict(self) -> dict:
        return {
            'kind': self.kind.value,
            'center': self.center.tolist(),
            'size': self.size.tolist(),
        }


Obstacle = Union[SphereObstacle, BoxObstacle]


######################################################################
# -- Collision Handlers -- #
######################################################################

def _reflectAndDamp(
    velocities: np.ndarray,
    normals: np.ndarray,
    damping: float,
) -> np.ndarray:
    '''
    Reflect velocities moving into the surface and scale by damping.

    Velocities already leaving the surface are returned unchanged.
    '''
    vDotN = np.sum(velocities * normals, axis=1)
    approaching = vDotN < 0.0
    reflected = (velocities - 2.0 * vDotN[:, np.newaxis] * normals) * damping
    return np.where(approaching[:, np.newaxis], reflected, velocities)


def _collideSphere(
    sphere: SphereObstacle,
    particles: ParticleSystem,
    damping: float,
) -> int:
    '''Push particles out of a sphere. Returns the number corrected.'''
    offsets = particles.positions - sphere.center
    distances = np.linalg.norm(offsets, axis=1)
    minDistance = sphere.contactDistance

    hit = distances < minDistance
    if not np.any(hit):
        return 0

    hitOffsets = offsets[hit]
    hitDist = distances[hit]

    # Unit normal from center to particle, fallback at the exact center
    safeDist = np.where(hitDist > 0.0, hitDist, 1.0)
    normals = np.where(
        (hitDist > 0.0)[:, np.newaxis],
        hitOffsets / safeDist[:, np.newaxis],
        _SPHERE_FALLBACK_NORMAL,
    )

    particles.positions[hit] = sphere.center + normals * minDistance
    particles.velocities[hit] = _reflectAndDamp(particles.velocities[hit], normals, damping)
    return int(np.count_nonzero(hit))


def _collideBox(
    box: BoxObstacle,
    particles: ParticleSystem,
    damping: float,
) -> int:
    '''Push particles out of a box through the nearest face. Returns the number corrected.'''
    positions = particles.positions
    inside = np.all((positions > box.min) & (positions < box.max), axis=1)
    if not np.any(inside):
        return 0

    hitPos = positions[inside]

    # Face distances in tie-break order -x, +x, -y, +y, -z, +z
    faceDistances = np.column_stack([
        hitPos[:, 0] - box.min[0],
        box.max[0] - hitPos[:, 0],
        hitPos[:, 1] - box.min[1],
        box.max[1] - hitPos[:, 1],
        hitPos[:, 2] - box.min[2],
        box.max[2] - hitPos[:, 2],
    ])
    # argmin returns the first minimum, which applies the tie-break
    nearestFace = np.argmin(faceDistances, axis=1)
    normals = _BOX_FACE_NORMALS[nearestFace]

    # Snap onto the chosen face
    axes = nearestFace // 2
    faceValues = np.where(nearestFace % 2 == 0, box.min[axes], box.max[axes])
    rows = np.arange(len(hitPos))
    hitPos[rows, axes] = faceValues

    particles.positions[inside] = hitPos
    particles.velocities[inside] = _reflectAndDamp(particles.velocities[inside], normals, damping)
    return int(np.count_nonzero(inside))


_COLLISION_HANDLERS: dict[ObstacleKind, Callable[..., int]] = {
    ObstacleKind.SPHERE: _collideSphere,
    ObstacleKind.BOX: _collideBox,
}


def resolveCollision(
    obstacle: Obstacle,
    particles: ParticleSystem,
    damping: float = const.collisionDamping,
) -> int:
    '''
    Resolve penetration of all particles into one obstacle.

    Parameters:
    -----------
    obstacle : Obstacle
        Sphere or box obstacle
    particles : ParticleSystem
        Particles to correct in place
    damping : float
        Velocity scale applied on reflection

    Returns:
    --------
    int : Number of particles corrected

    Raises:
    -------
    TypeError : If the obstacle has no recognised kind tag
    '''
    handler = _COLLISION_HANDLERS.get(getattr(obstacle, 'kind', None))
    if handler is None:
        raise TypeError(f'Unsupported obstacle: {obstacle!r}')
    if particles.nParticles == 0:
        return 0
    return handler(obstacle, particles, damping)
