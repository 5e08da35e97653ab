# -- Particle Frame Export -- #

'''
Hand-off of simulated particle frames to external renderers.

The solver itself never draws anything. FrameExporter snapshots the
particle cloud at chosen steps and writes the snapshots, the scene's
obstacles and a short energy / density-error history to one compact
JSON document that a point-cloud player can replay.

Document layout:

    meta       type, dimensions, frame and particle counts, timestamp
    config     SimulationConfig.toDict()
    obstacles  [obstacle.toDict(), ...] in collision order
    frames     [{time, step, positions, velocityMagnitudes[, densities]}, ...]
    history    {times, kinetic, potential, total, maxDensityError}
'''

from __future__ import annotations

import json
import os
from datetime import datetime

import numpy as np

from FluidSim.sph.protocols import SimulationConfig, SimulationState
from FluidSim.sph.particles import ParticleSystem


HISTORY_KEYS = ('times', 'kinetic', 'potential', 'total', 'maxDensityError')


class FrameExporter:
    '''
    Accumulates particle snapshots during a run and writes them as JSON.

    Typical use inside a host loop:

        exporter = FrameExporter()
        exporter.addFrame(solver.currentState, solver.particles)
        for _ in range(nSteps):
            state = solver.step()
            exporter.addFrame(state, solver.particles, solver.lastFields.densities)
        exporter.export(solver.config, obstacles=solver.obstacles)
    '''

    def __init__(self) -> None:
        self._frames: list[dict] = []
        self._history: dict[str, list[float]] = {key: [] for key in HISTORY_KEYS}

    @property
    def nFrames(self) -> int:
        return len(self._frames)

    @property
    def frames(self) -> list[dict]:
        '''Snapshots recorded so far, oldest first.'''
        return self._frames

    @property
    def history(self) -> dict[str, list[float]]:
        '''Per-frame energies and density error, keyed by HISTORY_KEYS.'''
        return self._history

    def addFrame(
        self,
        state: SimulationState,
        particles: ParticleSystem,
        densities: np.ndarray | None = None,
    ) -> None:
        '''
        Snapshot the particle cloud.

        Positions and speeds are rounded to 6 decimals and densities
        to 2 to keep the document small.

        Parameters:
        -----------
        state : SimulationState
            Solver state at the snapshot
        particles : ParticleSystem
            Particles to copy positions and speeds from
        densities : np.ndarray | None
            Densities from the step that produced the snapshot; omitted
            for the initial frame, which has no step behind it
        '''
        speeds = np.linalg.norm(particles.velocities, axis=1)
        time = round(state.time, 6)

        snapshot = {
            'time': time,
            'step': state.step,
            'positions': np.round(particles.positions, 6).tolist(),
            'velocityMagnitudes': np.round(speeds, 6).tolist(),
        }
        if densities is not None:
            snapshot['densities'] = np.round(densities, 2).tolist()
        self._frames.append(snapshot)

        values = (
            time,
            state.kineticEnergy,
            state.potentialEnergy,
            state.totalEnergy,
            state.maxDensityError,
        )
        for key, value in zip(HISTORY_KEYS, values):
            self._history[key].append(round(value, 6))

    def toDocument(self, config: SimulationConfig, obstacles: list | None = None) -> dict:
        '''Assemble the JSON-serialisable export document.'''
        nParticles = len(self._frames[0]['positions']) if self._frames else 0
        return {
            'meta': {
                'type': 'fluidSim',
                'dimensions': 3,
                'nFrames': self.nFrames,
                'nParticles': nParticles,
                'created': datetime.now().isoformat(),
            },
            'config': config.toDict(),
            'obstacles': [obstacle.toDict() for obstacle in (obstacles or [])],
            'frames': self._frames,
            'history': self._history,
        }

    def export(
        self,
        config: SimulationConfig,
        outputDir: str = 'FluidSim/output',
        scenarioName: str = 'fluidBlock',
        obstacles: list | None = None,
    ) -> str:
        '''
        Write the export document to outputDir.

        The file is named fluidSim_<scenarioName>_<YYYYmmdd_HHMMSS>.json.

        Parameters:
        -----------
        config : SimulationConfig
            Configuration the frames were produced with
        outputDir : str
            Directory to write into, created if missing
        scenarioName : str
            Scenario label used in the file name
        obstacles : list | None
            Scene obstacles, in collision order

        Returns:
        --------
        str : Path of the written file
        '''
        os.makedirs(outputDir, exist_ok=True)
        stamp = datetime.now().strftime('%Y%m%d_%H%M%S')
        path = os.path.join(outputDir, f'fluidSim_{scenarioName}_{stamp}.json')

        with open(path, 'w') as f:
            json.dump(self.toDocument(config, obstacles), f, separators=(',', ':'))

        return path
