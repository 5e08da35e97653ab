# -- SPH Engine Package -- #

'''
Core Smoothed Particle Hydrodynamics (SPH) engine.

Provides the Muller kernel set, particle system, brute-force
neighbor search, wall and obstacle collision handling, time
integration, and the SPH solver.
'''

from FluidSim.sph.protocols import BoundingBox, FluidSolver, SimulationConfig, SimulationState
from FluidSim.sph.kernels import MullerKernels
from FluidSim.sph.particles import ParticleSystem
from FluidSim.sph.obstacles import ObstacleKind, SphereObstacle, BoxObstacle, resolveCollision
from FluidSim.sph.sphSolver import SphSolver, StepFields
