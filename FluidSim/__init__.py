# -- FluidSim Package -- #

'''
Interactive particle fluid simulation using Smoothed Particle
Hydrodynamics (SPH).

A fixed-step SPH solver with density, pressure, viscosity and
surface-tension forces, bounding-box walls and movable sphere/box
obstacles. Particle positions are exported as JSON frames for
external renderers.
'''

__version__ = '0.1.0'

from FluidSim.sph.protocols import BoundingBox, SimulationConfig, SimulationState
from FluidSim.sph.sphSolver import SphSolver
from FluidSim.sph.obstacles import SphereObstacle, BoxObstacle
from FluidSim.scenarios.fluidBlock import FluidBlockConfig, createFluidBlock
from FluidSim.export.frameExporter import FrameExporter
