# -- Wall and Obstacle Collision Tests -- #

'''
Bounding-box clamp-and-reflect, sphere push-out, box nearest-face
resolution with its tie-break order, and obstacle dispatch.
'''

import numpy as np
import pytest

from FluidSim.sph.protocols import BoundingBox
from FluidSim.sph.particles import ParticleSystem
from FluidSim.sph.boundaryHandling import BoundaryHandler
from FluidSim.sph.obstacles import SphereObstacle, BoxObstacle, ObstacleKind, resolveCollision


def singleParticle(position, velocity=(0.0, 0.0, 0.0)) -> ParticleSystem:
    particles = ParticleSystem.fromPositions(np.array([position], dtype=float), mass=1.0)
    particles.velocities[0] = velocity
    return particles


######################################################################
# -- Bounding Box Walls -- #
######################################################################

class TestWalls:

    @pytest.fixture
    def handler(self) -> BoundaryHandler:
        return BoundaryHandler(BoundingBox(), damping=0.5)

    def testParticleAtRestIsClamped(self, handler):
        particles = singleParticle((1.01, 0.0, 0.0))
        handler.enforceBoundary(particles)

        assert particles.positions[0, 0] == 1.0
        assert particles.velocities[0, 0] == 0.0

    def testOutgoingVelocityIsReflectedAndDamped(self, handler):
        particles = singleParticle((1.01, 0.0, 0.0), velocity=(1.0, 0.0, 0.0))
        handler.enforceBoundary(particles)

        assert particles.positions[0, 0] == 1.0
        assert particles.velocities[0, 0] == -0.5

    def testLowerWall(self, handler):
        particles = singleParticle((0.0, -1.2, 0.0), velocity=(0.3, -2.0, 0.0))
        handler.enforceBoundary(particles)

        assert np.allclose(particles.positions[0], [0.0, -1.0, 0.0])
        assert np.allclose(particles.velocities[0], [0.3, 1.0, 0.0])

    def testCornerIsCorrectedOnEveryAxis(self, handler):
        particles = singleParticle((1.5, -1.5, 1.5), velocity=(2.0, -2.0, 2.0))
        handler.enforceBoundary(particles)

        assert np.allclose(particles.positions[0], [1.0, -1.0, 1.0])
        assert np.allclose(particles.velocities[0], [-1.0, 1.0, -1.0])

    def testInsideParticleIsUntouched(self, handler):
        particles = singleParticle((0.2, 0.3, -0.4), velocity=(1.0, 1.0, 1.0))
        handler.enforceBoundary(particles)

        assert np.allclose(particles.positions[0], [0.2, 0.3, -0.4])
        assert np.allclose(particles.velocities[0], [1.0, 1.0, 1.0])


######################################################################
# -- Sphere Obstacle -- #
######################################################################

class TestSphere:

    @pytest.fixture
    def sphere(self) -> SphereObstacle:
        return SphereObstacle(center=np.array([0.2, 0.1, 0.0]), radius=0.3)

    def testParticleAtCenterIsPushedToContactDistance(self, sphere):
        particles = singleParticle(sphere.center, velocity=(0.0, -1.0, 0.0))
        assert resolveCollision(sphere, particles, damping=0.5) == 1

        distance = np.linalg.norm(particles.positions[0] - sphere.center)
        assert distance == pytest.approx(sphere.radius + 0.05)

        normal = (particles.positions[0] - sphere.center) / distance
        assert np.dot(particles.velocities[0], normal) >= 0.0

    def testIncomingVelocityIsReflectedAndDamped(self, sphere):
        start = sphere.center + np.array([0.1, 0.0, 0.0])
        particles = singleParticle(start, velocity=(-1.0, 0.0, 0.0))
        resolveCollision(sphere, particles, damping=0.5)

        assert np.allclose(particles.positions[0], sphere.center + [0.35, 0.0, 0.0])
        assert np.allclose(particles.velocities[0], [0.5, 0.0, 0.0])

    def testOutgoingVelocityIsKept(self, sphere):
        start = sphere.center + np.array([0.0, 0.0, 0.2])
        particles = singleParticle(start, velocity=(0.1, 0.0, 1.0))
        resolveCollision(sphere, particles, damping=0.5)

        assert np.allclose(particles.positions[0], sphere.center + [0.0, 0.0, 0.35])
        assert np.allclose(particles.velocities[0], [0.1, 0.0, 1.0])

    def testTangentialVelocityIsDampedOnReflection(self, sphere):
        start = sphere.center + np.array([0.0, 0.2, 0.0])
        particles = singleParticle(start, velocity=(1.0, -2.0, 0.0))
        resolveCollision(sphere, particles, damping=0.5)

        assert np.allclose(particles.velocities[0], [0.5, 1.0, 0.0])

    def testParticleOutsideContactIsUntouched(self, sphere):
        start = sphere.center + np.array([0.36, 0.0, 0.0])
        particles = singleParticle(start, velocity=(-1.0, 0.0, 0.0))
        assert resolveCollision(sphere, particles, damping=0.5) == 0

        assert np.allclose(particles.positions[0], start)
        assert np.allclose(particles.velocities[0], [-1.0, 0.0, 0.0])

    def testMoveTo(self, sphere):
        sphere.moveTo(np.array([-0.5, 0.0, 0.0]))
        particles = singleParticle((-0.5, 0.1, 0.0))
        resolveCollision(sphere, particles, damping=0.5)

        assert np.allclose(particles.positions[0], [-0.5, 0.35, 0.0])


######################################################################
# -- Box Obstacle -- #
######################################################################

class TestBox:

    @pytest.fixture
    def box(self) -> BoxObstacle:
        return BoxObstacle(center=np.zeros(3), halfExtents=np.ones(3))

    def testDerivedBounds(self, box):
        assert np.array_equal(box.min, [-1.0, -1.0, -1.0])
        assert np.array_equal(box.max, [1.0, 1.0, 1.0])
        assert np.array_equal(box.size, [2.0, 2.0, 2.0])

        moved = BoxObstacle.fromSize(center=[1.0, 0.0, 0.0], size=[0.5, 0.5, 0.5])
        moved.moveTo(np.array([2.0, 2.0, 2.0]))
        assert np.allclose(moved.min, [1.75, 1.75, 1.75])
        assert np.allclose(moved.max, [2.25, 2.25, 2.25])

    def testSnapsToNearestFace(self, box):
        particles = singleParticle((0.5, 0.9, 0.0), velocity=(0.0, -1.0, 0.0))
        assert resolveCollision(box, particles, damping=0.5) == 1

        assert np.allclose(particles.positions[0], [0.5, 1.0, 0.0])
        assert np.allclose(particles.velocities[0], [0.0, 0.5, 0.0])

    def testTieBreakPrefersNegativeX(self, box):
        particles = singleParticle((0.0, 0.0, 0.0), velocity=(1.0, 0.0, 0.0))
        resolveCollision(box, particles, damping=0.5)

        assert np.allclose(particles.positions[0], [-1.0, 0.0, 0.0])
        assert np.allclose(particles.velocities[0], [-0.5, 0.0, 0.0])

    def testTieBreakPrefersPositiveXOverY(self, box):
        particles = singleParticle((0.5, 0.5, 0.0))
        resolveCollision(box, particles, damping=0.5)

        assert np.allclose(particles.positions[0], [1.0, 0.5, 0.0])

    def testSurfaceIsNotInside(self, box):
        particles = singleParticle((1.0, 0.0, 0.0), velocity=(-1.0, 0.0, 0.0))
        assert resolveCollision(box, particles, damping=0.5) == 0
        assert np.allclose(particles.velocities[0], [-1.0, 0.0, 0.0])

    def testOutgoingVelocityIsKept(self, box):
        particles = singleParticle((0.0, 0.0, -0.8), velocity=(0.2, 0.0, -1.0))
        resolveCollision(box, particles, damping=0.5)

        assert np.allclose(particles.positions[0], [0.0, 0.0, -1.0])
        assert np.allclose(particles.velocities[0], [0.2, 0.0, -1.0])


######################################################################
# -- Dispatch -- #
######################################################################

class TestDispatch:

    def testKindsAreTagged(self):
        assert SphereObstacle(center=np.zeros(3), radius=1.0).kind is ObstacleKind.SPHERE
        assert BoxObstacle(center=np.zeros(3), halfExtents=np.ones(3)).kind is ObstacleKind.BOX

    def testUnknownObstacleRaises(self):
        particles = singleParticle((0.0, 0.0, 0.0))
        with pytest.raises(TypeError):
            resolveCollision(object(), particles)

    def testOnlyPenetratingParticlesAreCorrected(self):
        sphere = SphereObstacle(center=np.zeros(3), radius=0.2)
        positions = np.array([[0.1, 0.0, 0.0], [0.9, 0.0, 0.0], [0.0, -0.1, 0.0]])
        particles = ParticleSystem.fromPositions(positions, mass=1.0)

        assert resolveCollision(sphere, particles) == 2
        assert np.allclose(particles.positions[1], [0.9, 0.0, 0.0])
        assert np.allclose(np.linalg.norm(particles.positions[[0, 2]], axis=1), 0.25)
