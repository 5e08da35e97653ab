# -- Shared Test Fixtures -- #

'''
Pytest fixtures shared across the FluidSim test suite.
'''

import numpy as np
import pytest

from FluidSim.sph.protocols import SimulationConfig
from FluidSim.sph.sphSolver import SphSolver


@pytest.fixture
def defaultConfig() -> SimulationConfig:
    '''Solver configuration with every default value.'''
    return SimulationConfig()


@pytest.fixture
def solver(defaultConfig) -> SphSolver:
    '''Solver with no particles and no obstacles.'''
    return SphSolver(defaultConfig)


@pytest.fixture
def pairSolver(defaultConfig) -> SphSolver:
    '''Two particles 0.05 m apart along x, well inside the walls.'''
    solver = SphSolver(defaultConfig)
    solver.addParticle(np.array([0.0, 0.0, 0.0]))
    solver.addParticle(np.array([0.05, 0.0, 0.0]))
    return solver


@pytest.fixture
def blockSolver(defaultConfig) -> SphSolver:
    '''1000 particles on a grid in [-0.5, 0.5]^3.'''
    solver = SphSolver(defaultConfig)
    solver.initializeParticles(1000, np.full(3, -0.5), np.full(3, 0.5))
    return solver
