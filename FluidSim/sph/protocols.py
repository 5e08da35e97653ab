# -- SPH Simulation Protocols -- #

'''
Configuration, state dataclasses and the solver protocol for the
SPH fluid solver.

SimulationConfig holds every tunable parameter of the solver and is
validated once at construction. SimulationState is the per-step
diagnostic snapshot returned by the solver.
'''

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Protocol, TYPE_CHECKING, runtime_checkable

import numpy as np

from FluidSim import constants as const

if TYPE_CHECKING:
    from FluidSim.sph.particles import ParticleSystem


######################################################################
# -- Bounding Box -- #
######################################################################

@dataclass
class BoundingBox:
    '''
    Axis-aligned box bounding the simulation.

    Parameters:
    -----------
    min : np.ndarray
        Lower corner, shape (3,)
    max : np.ndarray
        Upper corner, shape (3,)
    '''

    min: np.ndarray = field(
        default_factory=lambda: np.full(3, -const.boundingBoxHalfExtent)
    )
    max: np.ndarray = field(
        default_factory=lambda: np.full(3, const.boundingBoxHalfExtent)
    )

    def __post_init__(self) -> None:
        self.min = np.asarray(self.min, dtype=float).reshape(3)
        self.max = np.asarray(self.max, dtype=float).reshape(3)

    @property
    def size(self) -> np.ndarray:
        '''Box extent along each axis.'''
        return self.max - self.min

    @property
    def center(self) -> np.ndarray:
        '''Box center point.'''
        return 0.5 * (self.min + self.max)

    def contains(self, positions: np.ndarray) -> np.ndarray:
        '''
        Test which positions lie inside the box (faces included).

        Parameters:
        -----------
        positions : np.ndarray
            Points, shape (N, 3)

        Returns:
        --------
        np.ndarray : Boolean mask, shape (N,)
        '''
        positions = np.atleast_2d(positions)
        return np.all((positions >= self.min) & (positions <= self.max), axis=1)


######################################################################
# -- Simulation Configuration -- #
######################################################################

@dataclass
class SimulationConfig:
    '''
    Configuration for the SPH fluid solver.

    Every field is optional and defaults to the values in
    FluidSim.constants. The configuration is treated as immutable
    once a solver has been built from it.

    Parameters:
    -----------
    smoothingRadius : float
        Kernel support radius h, must be positive
    particleMass : float
        Mass of each particle, must be positive
    restDensity : float
        Rest density rho_0 of the equation of state
    gasConstant : float
        Stiffness k of the equation of state
    viscosity : float
        Viscosity coefficient mu
    timeStep : float
        Fixed integration step dt [s]
    gravity : np.ndarray
        Gravity vector, shape (3,)
    boundingBox : BoundingBox
        Walls confining the particles
    surfaceTension : float
        Surface tension coefficient sigma
    surfaceThreshold : float
        Color-field gradient magnitude above which surface tension acts
    collisionDamping : float
        Velocity scale on wall and obstacle contact, in [0, 1]
    '''

    smoothingRadius: float = const.smoothingRadius
    particleMass: float = const.particleMass
    restDensity: float = const.restDensity
    gasConstant: float = const.gasConstant
    viscosity: float = const.viscosity
    timeStep: float = const.timeStep
    gravity: np.ndarray = field(
        default_factory=lambda: np.array([0.0, -const.gravity, 0.0])
    )
    boundingBox: BoundingBox = field(default_factory=BoundingBox)
    surfaceTension: float = const.surfaceTension
    surfaceThreshold: float = const.surfaceThreshold
    collisionDamping: float = const.collisionDamping

    def __post_init__(self) -> None:
        self.gravity = np.asarray(self.gravity, dtype=float)
        self.validate()

    def validate(self) -> None:
        '''
        Reject configurations that leave the kernels or integrator undefined.

        Raises:
        -------
        ValueError : If any parameter is out of range
        '''
        if not self.smoothingRadius > 0.0:
            raise ValueError(
                f'smoothingRadius must be positive, got {self.smoothingRadius}'
            )
        if not self.particleMass > 0.0:
            raise ValueError(
                f'particleMass must be positive, got {self.particleMass}'
            )
        if not self.timeStep > 0.0:
            raise ValueError(f'timeStep must be positive, got {self.timeStep}')
        if self.gravity.shape != (3,):
            raise ValueError(
                f'gravity must have 3 components, got shape {self.gravity.shape}'
            )
        if not 0.0 <= self.collisionDamping <= 1.0:
            raise ValueError(
                f'collisionDamping must lie in [0, 1], got {self.collisionDamping}'
            )
        if np.any(self.boundingBox.min >= self.boundingBox.max):
            raise ValueError(
                'boundingBox min must be below max on every axis, got '
                f'min={self.boundingBox.min.tolist()} max={self.boundingBox.max.tolist()}'
            )

    @property
    def gridSpacing(self) -> float:
        '''Initial particle grid spacing, 0.5 * h.'''
        return const.gridSpacingRatio * self.smoothingRadius

    def toDict(self) -> dict:
        '''JSON-serialisable view of the configuration.'''
        return {
            'smoothingRadius': self.smoothingRadius,
            'particleMass': self.particleMass,
            'restDensity': self.restDensity,
            'gasConstant': self.gasConstant,
            'viscosity': self.viscosity,
            'timeStep': self.timeStep,
            'gravity': self.gravity.tolist(),
            'boundingBox': {
                'min': self.boundingBox.min.tolist(),
                'max': self.boundingBox.max.tolist(),
            },
            'surfaceTension': self.surfaceTension,
            'surfaceThreshold': self.surfaceThreshold,
            'collisionDamping': self.collisionDamping,
        }

    @classmethod
    def fromJson(cls, configPath: str) -> SimulationConfig:
        '''
        Load configuration from a JSON file.

        Reads the 'sph', 'fluid', 'domain' and 'collision' sections.
        Missing sections or keys fall back to the defaults.

        Parameters:
        -----------
        configPath : str
            Path to the JSON configuration file

        Returns:
        --------
        SimulationConfig : Loaded configuration
        '''
        with open(configPath, 'r') as f:
            data = json.load(f)

        return cls.fromDict(data)

    @classmethod
    def fromDict(cls, data: dict) -> SimulationConfig:
        '''
        Build a configuration from parsed JSON sections.

        Gravity may be given as a magnitude (applied along -y) or as
        a full 3-vector.

        Parameters:
        -----------
        data : dict
            Parsed configuration document

        Returns:
        --------
        SimulationConfig : Validated configuration
        '''
        sphSection = data.get('sph', {})
        fluidSection = data.get('fluid', {})
        domainSection = data.get('domain', {})
        collisionSection = data.get('collision', {})

        gravityValue = fluidSection.get('gravity', const.gravity)
        if np.isscalar(gravityValue):
            gravityVec = np.array([0.0, -float(gravityValue), 0.0])
        else:
            gravityVec = np.asarray(gravityValue, dtype=float)

        halfExtent = const.boundingBoxHalfExtent
        boundingBox = BoundingBox(
            min=domainSection.get('min', [-halfExtent] * 3),
            max=domainSection.get('max', [halfExtent] * 3),
        )

        return cls(
            smoothingRadius=sphSection.get('smoothingRadius', const.smoothingRadius),
            timeStep=sphSection.get('timeStep', const.timeStep),
            surfaceThreshold=sphSection.get('surfaceThreshold', const.surfaceThreshold),
            particleMass=fluidSection.get('particleMass', const.particleMass),
            restDensity=fluidSection.get('restDensity', const.restDensity),
            gasConstant=fluidSection.get('gasConstant', const.gasConstant),
            viscosity=fluidSection.get('viscosity', const.viscosity),
            surfaceTension=fluidSection.get('surfaceTension', const.surfaceTension),
            gravity=gravityVec,
            boundingBox=boundingBox,
            collisionDamping=collisionSection.get('damping', const.collisionDamping),
        )


######################################################################
# -- Simulation State -- #
######################################################################

@dataclass
class SimulationState:
    '''
    Snapshot of the simulation after a step.

    Parameters:
    -----------
    time : float
        Simulated time [s]
    step : int
        Number of completed steps
    dt : float
        Time step size [s]
    nParticles : int
        Number of particles
    kineticEnergy : float
        Total kinetic energy
    potentialEnergy : float
        Total gravitational potential energy
    maxVelocity : float
        Maximum particle speed
    maxDensityError : float
        Maximum relative density error |rho - rho_0| / rho_0
    '''

    time: float
    step: int
    dt: float
    nParticles: int
    kineticEnergy: float
    potentialEnergy: float
    maxVelocity: float
    maxDensityError: float

    @property
    def totalEnergy(self) -> float:
        '''Total mechanical energy (KE + PE).'''
        return self.kineticEnergy + self.potentialEnergy


######################################################################
# -- Solver Protocol -- #
######################################################################

@runtime_checkable
class FluidSolver(Protocol):
    '''Protocol for particle fluid solvers driven by a host loop.'''

    def step(self) -> SimulationState:
        '''Advance one time step and return the new state.'''
        ...

    def reset(self, count: int, regionMin: np.ndarray, regionMax: np.ndarray) -> int:
        '''Replace all particles with a fresh grid.'''
        ...

    @property
    def currentState(self) -> SimulationState:
        '''Current simulation state snapshot.'''
        ...

    @property
    def particles(self) -> ParticleSystem:
        '''Access the particle system.'''
        ...
