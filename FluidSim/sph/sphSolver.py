# -- SPH Fluid Solver -- #

'''
Smoothed Particle Hydrodynamics solver for interactive fluid flow.

Follows the particle-based fluid model of Muller et al. (2003):
density by Poly6 summation, pressure from a linear equation of
state, symmetric pressure forces with the spiky kernel gradient,
viscosity with the viscosity-kernel Laplacian, and color-field
surface tension. Particles are confined by bounding-box walls and
pushed out of sphere and box obstacles.

All pair computations are vectorized with NumPy over the directed
neighbor pairs of the step and scatter-added to particles.

Algorithm per time step (each phase completes for every particle
before the next one starts):
    1. Neighbor search (brute force, O(N^2))
    2. Density and pressure
    3. Forces (gravity + pressure + viscosity + surface tension)
    4. Integrate (Symplectic Euler, fixed dt)
    5. Collisions (bounding box walls, then obstacles in list order)

Neighbors, densities and pressures are only meaningful within the
step that produced them and are carried in a StepFields object
rather than stored on the particles.

References:
-----------
Muller, Charypar & Gross (2003) -- Particle-Based Fluid Simulation
    for Interactive Applications
Monaghan (1992) -- Smoothed Particle Hydrodynamics
'''

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from FluidSim.sph.protocols import SimulationConfig, SimulationState
from FluidSim.sph.kernels import MullerKernels
from FluidSim.sph.particles import ParticleSystem
from FluidSim.sph.neighborSearch import NeighborList, NeighborSearch, BruteForceNeighborSearch
from FluidSim.sph.boundaryHandling import BoundaryHandler
from FluidSim.sph.obstacles import Obstacle, resolveCollision
from FluidSim.sph.timeIntegration import TimeIntegrator, SymplecticEuler


@dataclass
class StepFields:
    '''
    Per-step derived fields.

    Parameters:
    -----------
    neighbors : NeighborList
        Directed neighbor pairs of this step
    densities : np.ndarray
        Particle densities, shape (N,)
    pressures : np.ndarray
        Particle pressures, shape (N,)
    '''

    neighbors: NeighborList
    densities: np.ndarray
    pressures: np.ndarray


class SphSolver:
    '''
    SPH fluid solver.

    Owns the particle system and an ordered list of obstacles, and
    runs the fixed-step simulation loop one step at a time. The host
    application reads positions after each step and may move
    obstacles between steps.

    Parameters:
    -----------
    config : SimulationConfig | None
        Solver configuration (defaults to SimulationConfig())
    neighborSearch : NeighborSearch | None
        Neighbor search (defaults to BruteForceNeighborSearch)
    integrator : TimeIntegrator | None
        Time integrator (defaults to SymplecticEuler)
    '''

    def __init__(
        self,
        config: SimulationConfig | None = None,
        neighborSearch: NeighborSearch | None = None,
        integrator: TimeIntegrator | None = None,
    ) -> None:
        self._config = config or SimulationConfig()
        self._config.validate()

        self._kernels = MullerKernels(self._config.smoothingRadius)
        self._neighborSearch = neighborSearch or BruteForceNeighborSearch()
        self._integrator = integrator or SymplecticEuler()
        self._boundaryHandler = BoundaryHandler(
            self._config.boundingBox,
            damping=self._config.collisionDamping,
        )

        self._particles = ParticleSystem.empty()
        self._obstacles: list[Obstacle] = []
        self._lastFields: StepFields | None = None
        self._time: float = 0.0
        self._step: int = 0
        self._inStep = False

    ######################################################################
    # -- Scene Setup -- #
    ######################################################################

    def addParticle(self, position: np.ndarray) -> int:
        '''
        Add one particle at rest with the configured mass.

        Returns:
        --------
        int : Index of the new particle
        '''
        self._checkIdle('addParticle')
        self._lastFields = None
        return self._particles.addParticle(position, self._config.particleMass)

    def addObstacle(self, obstacle: Obstacle) -> None:
        '''Append an obstacle; obstacles collide in insertion order.'''
        self._checkIdle('addObstacle')
        self._obstacles.append(obstacle)

    def removeObstacle(self, obstacle: Obstacle) -> None:
        '''Remove a previously added obstacle.'''
        self._checkIdle('removeObstacle')
        self._obstacles.remove(obstacle)

    def initializeParticles(
        self,
        count: int,
        regionMin: np.ndarray,
        regionMax: np.ndarray,
    ) -> int:
        '''
        Add up to count particles on a regular grid inside a region.

        Grid spacing is 0.5 * h. Fewer particles are created when the
        region cannot hold count grid points.

        Parameters:
        -----------
        count : int
            Requested number of particles
        regionMin : np.ndarray
            Lower corner of the region
        regionMax : np.ndarray
            Upper corner of the region

        Returns:
        --------
        int : Number of particles created
        '''
        self._checkIdle('initializeParticles')
        grid = ParticleSystem.createGrid(
            count,
            regionMin,
            regionMax,
            spacing=self._config.gridSpacing,
            mass=self._config.particleMass,
        )

        if self._particles.nParticles == 0:
            self._particles = grid
        else:
            p = self._particles
            self._particles = ParticleSystem(
                positions=np.vstack([p.positions, grid.positions]),
                velocities=np.vstack([p.velocities, grid.velocities]),
                accelerations=np.vstack([p.accelerations, grid.accelerations]),
                forces=np.vstack([p.forces, grid.forces]),
                masses=np.concatenate([p.masses, grid.masses]),
            )
        self._lastFields = None
        return grid.nParticles

    def reset(self, count: int, regionMin: np.ndarray, regionMax: np.ndarray) -> int:
        '''
        Discard all particles and refill a region with a fresh grid.

        Obstacles are kept. Time and step counters restart at zero.

        Returns:
        --------
        int : Number of particles created
        '''
        self._checkIdle('reset')
        self._particles = ParticleSystem.empty()
        self._lastFields = None
        self._time = 0.0
        self._step = 0
        return self.initializeParticles(count, regionMin, regionMax)

    ######################################################################
    # -- Main Time Step -- #
    ######################################################################

    def step(self) -> SimulationState:
        '''
        Advance the simulation by one fixed time step.

        Returns:
        --------
        SimulationState : Simulation state after the step

        Raises:
        -------
        RuntimeError : If called while a step is already running
        '''
        self._checkIdle('step')
        self._inStep = True
        try:
            # 1. Neighbor search
            neighbors = self.findNeighbors()

            # 2. Density and pressure
            fields = self.computeDensityPressure(neighbors)

            # 3. Forces
            self.computeForces(fields)

            # 4. Integrate
            self.integrate()

            # 5. Walls and obstacles
            self.handleCollisions()

            self._lastFields = fields
            self._time += self._config.timeStep
            self._step += 1
        finally:
            self._inStep = False

        return self.currentState

    ######################################################################
    # -- Step Phases -- #
    ######################################################################

    def findNeighbors(self) -> NeighborList:
        '''Find all particle pairs closer than h.'''
        return self._neighborSearch.build(
            self._particles.positions, self._config.smoothingRadius,
        )

    def computeDensityPressure(self, neighbors: NeighborList) -> StepFields:
        '''
        Estimate density by Poly6 summation and pressure by the
        linear equation of state.

        rho_i = m_i * W(0, h) + sum_j m_j * W(r_ij, h)
        p_i   = k * (rho_i - rho_0)

        The self-term keeps every density strictly positive. Negative
        pressures are kept.

        Parameters:
        -----------
        neighbors : NeighborList
            Neighbor pairs of the current step

        Returns:
        --------
        StepFields : Neighbors, densities and pressures of this step
        '''
        p = self._particles
        cfg = self._config

        densities = p.masses * self._kernels.poly6(0.0)

        iIdx = neighbors.selfIndices
        jIdx = neighbors.neighborIndices
        if len(iIdx) > 0:
            wij = self._kernels.poly6Batch(neighbors.distances)
            np.add.at(densities, iIdx, p.masses[jIdx] * wij)

        pressures = cfg.gasConstant * (densities - cfg.restDensity)

        return StepFields(neighbors=neighbors, densities=densities, pressures=pressures)

    def computePressureForces(self, fields: StepFields) -> np.ndarray:
        '''
        Symmetric SPH pressure force.

        f_i = -sum_j m_j * (p_i + p_j) / (2 * rho_j) * gradW_spiky(r_ij)

        Averaging the two pressures makes the pair forces equal and
        opposite for equal masses and densities.

        Returns:
        --------
        np.ndarray : Pressure forces, shape (N, 3)
        '''
        p = self._particles
        forces = np.zeros_like(p.positions)
        nb = fields.neighbors
        if nb.nPairs == 0:
            return forces

        iIdx, jIdx = nb.selfIndices, nb.neighborIndices
        gradW = self._kernels.spikyGradBatch(nb.distances, nb.directions)

        pressureTerm = (fields.pressures[iIdx] + fields.pressures[jIdx]) / (
            2.0 * fields.densities[jIdx]
        )
        coeff = -p.masses[jIdx] * pressureTerm
        np.add.at(forces, iIdx, coeff[:, np.newaxis] * gradW)
        return forces

    def computeViscosityForces(self, fields: StepFields) -> np.ndarray:
        '''
        Viscosity force from the viscosity-kernel Laplacian.

        f_i = mu * m_i * sum_j (v_j - v_i) * (m_j / rho_j) * lapW(r_ij)

        Returns:
        --------
        np.ndarray : Viscosity forces, shape (N, 3)
        '''
        p = self._particles
        forces = np.zeros_like(p.positions)
        nb = fields.neighbors
        if nb.nPairs == 0:
            return forces

        iIdx, jIdx = nb.selfIndices, nb.neighborIndices
        lapW = self._kernels.viscosityLaplacianBatch(nb.distances)
        weight = p.masses[jIdx] / fields.densities[jIdx] * lapW
        relativeVelocity = p.velocities[jIdx] - p.velocities[iIdx]

        np.add.at(forces, iIdx, relativeVelocity * weight[:, np.newaxis])
        forces *= self._config.viscosity * p.masses[:, np.newaxis]
        return forces

    def computeSurfaceTensionForces(self, fields: StepFields) -> np.ndarray:
        '''
        Color-field surface tension.

        n_i   = sum_j (m_j / rho_j) * gradW_spiky(r_ij)
        lap_i = sum_j (m_j / rho_j) * lapW(r_ij)
        f_i   = -sigma * lap_i * n_i / |n_i|    where |n_i| > threshold

        Below the threshold (fluid interior) no force is applied.

        Returns:
        --------
        np.ndarray : Surface tension forces, shape (N, 3)
        '''
        p = self._particles
        cfg = self._config
        forces = np.zeros_like(p.positions)
        nb = fields.neighbors
        if nb.nPairs == 0:
            return forces

        iIdx, jIdx = nb.selfIndices, nb.neighborIndices
        volume = p.masses[jIdx] / fields.densities[jIdx]
        gradW = self._kernels.spikyGradBatch(nb.distances, nb.directions)
        lapW = self._kernels.viscosityLaplacianBatch(nb.distances)

        surfaceNormals = np.zeros_like(p.positions)
        np.add.at(surfaceNormals, iIdx, gradW * volume[:, np.newaxis])
        colorLaplacian = np.zeros(p.nParticles)
        np.add.at(colorLaplacian, iIdx, volume * lapW)

        normalLength = np.linalg.norm(surfaceNormals, axis=1)
        atSurface = normalLength > cfg.surfaceThreshold
        if np.any(atSurface):
            unitNormals = surfaceNormals[atSurface] / normalLength[atSurface, np.newaxis]
            forces[atSurface] = (
                -cfg.surfaceTension * colorLaplacian[atSurface, np.newaxis] * unitNormals
            )
        return forces

    def computeForces(self, fields: StepFields) -> None:
        '''
        Reset and accumulate the total force on every particle.

        Order: gravity, pressure, viscosity, surface tension.

        Parameters:
        -----------
        fields : StepFields
            Densities and pressures of the current step, already
            final for every particle
        '''
        p = self._particles
        p.resetForces()
        p.addForces(p.masses[:, np.newaxis] * self._config.gravity)
        p.addForces(self.computePressureForces(fields))
        p.addForces(self.computeViscosityForces(fields))
        p.addForces(self.computeSurfaceTensionForces(fields))

    def integrate(self) -> None:
        '''Advance velocities and positions by one fixed step.'''
        self._integrator.integrate(self._particles, self._config.timeStep)

    def handleCollisions(self) -> None:
        '''
        Apply bounding-box walls, then every obstacle in list order.

        Each obstacle corrects particles independently; later
        obstacles do not re-check corrections made by earlier ones.
        '''
        self._boundaryHandler.enforceBoundary(self._particles)

        damping = self._config.collisionDamping
        for obstacle in self._obstacles:
            resolveCollision(obstacle, self._particles, damping)

    ######################################################################
    # -- Helpers -- #
    ######################################################################

    def _checkIdle(self, operation: str) -> None:
        if self._inStep:
            raise RuntimeError(f'Cannot {operation} while a step is in progress')

    ######################################################################
    # -- Properties -- #
    ######################################################################

    @property
    def currentState(self) -> SimulationState:
        '''Current simulation state snapshot.'''
        p = self._particles
        cfg = self._config

        maxDensityError = 0.0
        if self._lastFields is not None and len(self._lastFields.densities) > 0:
            errors = np.abs(self._lastFields.densities - cfg.restDensity) / cfg.restDensity
            maxDensityError = float(np.max(errors))

        return SimulationState(
            time=self._time,
            step=self._step,
            dt=cfg.timeStep,
            nParticles=p.nParticles,
            kineticEnergy=p.kineticEnergy(),
            potentialEnergy=p.potentialEnergy(cfg.gravity),
            maxVelocity=p.maxSpeed(),
            maxDensityError=maxDensityError,
        )

    @property
    def positions(self) -> np.ndarray:
        '''Read-only view of particle positions for renderers.'''
        view = self._particles.positions.view()
        view.flags.writeable = False
        return view

    @property
    def particles(self) -> ParticleSystem:
        '''Access the particle system.'''
        return self._particles

    @property
    def obstacles(self) -> list[Obstacle]:
        '''Obstacles in collision order.'''
        return self._obstacles

    @property
    def config(self) -> SimulationConfig:
        '''Solver configuration.'''
        return self._config

    @property
    def kernels(self) -> MullerKernels:
        '''Kernel set built from h.'''
        return self._kernels

    @property
    def lastFields(self) -> StepFields | None:
        '''Densities, pressures and neighbors of the most recent step.'''
        return self._lastFields

    @property
    def time(self) -> float:
        '''Current simulation time [s].'''
        return self._time

    @property
    def stepCount(self) -> int:
        '''Number of completed steps.'''
        return self._step
