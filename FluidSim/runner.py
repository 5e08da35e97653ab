# -- Fluid Simulation Runner -- #

'''
Command-line entry point for running SPH fluid simulations.

Builds a fluid block scenario, steps the solver, displays progress,
and optionally exports frame data for an external renderer and
Plotly diagnostics.

Usage:
    python -m FluidSim.runner                              # Default 1000-particle block
    python -m FluidSim.runner --preset demo                # Demo scene with a sphere obstacle
    python -m FluidSim.runner --preset small --steps 20
    python -m FluidSim.runner --config configs/block.json
    python -m FluidSim.runner --no-export --plot           # Only write diagnostics HTML
'''

from __future__ import annotations

import argparse
import json
import os
import time as timeModule

from FluidSim.sph.protocols import SimulationConfig
from FluidSim.scenarios.fluidBlock import FluidBlockConfig, OBSTACLE_CHOICES, createFluidBlock
from FluidSim.export.frameExporter import FrameExporter


PRESETS = {
    'small': FluidBlockConfig.small,
    'standard': FluidBlockConfig.standard,
    'demo': FluidBlockConfig.demo,
}


#--------------------------------------------------------------------#
# -- CLI Argument Parser -- #
#--------------------------------------------------------------------#

def buildParser() -> argparse.ArgumentParser:
    '''Build the CLI argument parser.'''
    parser = argparse.ArgumentParser(
        description='FluidSim -- SPH particle fluid simulation',
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        '--config', type=str, default=None,
        help='Path to JSON configuration file',
    )
    parser.add_argument(
        '--preset', type=str, default='standard',
        choices=sorted(PRESETS),
        help='Scenario preset (default: standard)',
    )
    parser.add_argument(
        '--steps', type=int, default=None,
        help='Number of solver steps (overrides the preset)',
    )
    parser.add_argument(
        '--obstacle', type=str, default=None,
        choices=OBSTACLE_CHOICES,
        help='Obstacles to place in the flow (overrides the preset)',
    )
    parser.add_argument(
        '--no-export', action='store_true',
        help='Skip frame data export',
    )
    parser.add_argument(
        '--output-dir', type=str, default='FluidSim/output',
        help='Output directory for exported frames (default: FluidSim/output)',
    )
    parser.add_argument(
        '--plot', action='store_true',
        help='Write Plotly diagnostics HTML to the output directory',
    )
    parser.add_argument(
        '--quiet', action='store_true',
        help='Suppress the per-step progress table',
    )

    return parser


def _banner(title: str, rule: str = '-') -> None:
    print(rule * 62)
    print(f'  {title}')
    print(rule * 62)


#--------------------------------------------------------------------#
# -- Runner Class -- #
#--------------------------------------------------------------------#

class FluidSimRunner:
    '''
    Drives one fluid block run from setup to export.

    Frames recorded during the run stay available on the exporter
    after run() returns.
    '''

    def __init__(self) -> None:
        self._exporter: FrameExporter = FrameExporter()

    @property
    def exporter(self) -> FrameExporter:
        '''Frame exporter holding the recorded frames.'''
        return self._exporter

    def runFromConfig(
        self,
        configPath: str,
        nSteps: int | None = None,
        obstacles: str | None = None,
        **kwargs,
    ) -> dict:
        '''
        Load a JSON scene description and run it.

        Solver parameters come from the 'sph', 'fluid', 'domain' and
        'collision' sections; the 'scenario' section overrides the
        fluid block settings. nSteps and obstacles, when given, take
        precedence over the 'scenario' section.

        Parameters:
        -----------
        configPath : str
            JSON scene description
        nSteps : int | None
            Number of solver steps override
        obstacles : str | None
            Obstacle choice override
        **kwargs :
            Forwarded to run()

        Returns:
        --------
        dict : Simulation results summary
        '''
        with open(configPath, 'r') as f:
            data = json.load(f)

        simConfig = SimulationConfig.fromDict(data)
        scenarioSection = data.get('scenario', {})
        defaults = FluidBlockConfig()

        blockConfig = FluidBlockConfig(
            particleCount=scenarioSection.get('particleCount', defaults.particleCount),
            regionMin=scenarioSection.get('regionMin', defaults.regionMin),
            regionMax=scenarioSection.get('regionMax', defaults.regionMax),
            smoothingRadius=simConfig.smoothingRadius,
            nSteps=nSteps if nSteps is not None else scenarioSection.get('nSteps', defaults.nSteps),
            outputInterval=scenarioSection.get('outputInterval', defaults.outputInterval),
            obstacles=obstacles or scenarioSection.get('obstacles', defaults.obstacles),
            sphereCenter=scenarioSection.get('sphereCenter', defaults.sphereCenter),
            sphereRadius=scenarioSection.get('sphereRadius', defaults.sphereRadius),
            boxCenter=scenarioSection.get('boxCenter', defaults.boxCenter),
            boxSize=scenarioSection.get('boxSize', defaults.boxSize),
        )

        return self.run(blockConfig, simConfig=simConfig, **kwargs)

    def run(
        self,
        blockConfig: FluidBlockConfig,
        simConfig: SimulationConfig | None = None,
        doExport: bool = True,
        exportDir: str = 'FluidSim/output',
        doPlot: bool = False,
        quiet: bool = False,
    ) -> dict:
        '''
        Run a fluid block simulation.

        Parameters:
        -----------
        blockConfig : FluidBlockConfig
            Scenario configuration
        simConfig : SimulationConfig | None
            Solver configuration (defaults from blockConfig)
        doExport : bool
            Whether to export frame data
        exportDir : str
            Output directory for exports
        doPlot : bool
            Whether to write diagnostics HTML
        quiet : bool
            Suppress the progress table

        Returns:
        --------
        dict : Simulation results summary
        '''
        print()
        _banner('FLUIDSIM -- SPH FLUID BLOCK SIMULATION', '=')
        print()

        #--------------------------------------------------------------------#
        # Scenario Setup
        #--------------------------------------------------------------------#
        _banner('SCENARIO SETUP')

        solver, nCreated = createFluidBlock(blockConfig, simConfig)
        cfg = solver.config
        kernels = solver.kernels

        print(f'  Requested Particles:{blockConfig.particleCount:7d}')
        print(f'  Created Particles: {nCreated:8d}')
        print(f'  Smoothing Radius:  {cfg.smoothingRadius:8.4f} m')
        print(f'  Grid Spacing:      {cfg.gridSpacing:8.4f} m')
        print(f'  Time Step:         {cfg.timeStep:8.4f} s')
        print(f'  Steps:             {blockConfig.nSteps:8d}')
        print(f'  Obstacles:         {len(solver.obstacles):8d}')
        print(f'  Poly6 Constant:    {kernels.poly6Constant:12.4e}')
        print(f'  Spiky Constant:    {kernels.spikyGradConstant:12.4e}')
        print(f'  Viscosity Constant:{kernels.viscosityLaplacianConstant:12.4e}')
        print()

        # Record initial frame
        self._exporter.addFrame(solver.currentState, solver.particles)

        #--------------------------------------------------------------------#
        # Simulation Loop
        #--------------------------------------------------------------------#
        if not quiet:
            _banner('RUNNING SIMULATION')
            print()
            print(f'  {"Time":>8}  {"Step":>8}  {"MaxVel":>10}  {"DensErr":>10}  {"Energy":>12}')
            print(f'  {"(s)":>8}  {"":>8}  {"(m/s)":>10}  {"(%)":>10}  {"(J)":>12}')
            print('  ' + '-' * 58)

        wallClockStart = timeModule.time()
        printInterval = max(1, blockConfig.nSteps // 20)
        outputInterval = max(1, blockConfig.outputInterval)

        for _ in range(blockConfig.nSteps):
            state = solver.step()

            # Export frame at output intervals
            if state.step % outputInterval == 0:
                self._exporter.addFrame(state, solver.particles, solver.lastFields.densities)

            # Print progress at regular intervals
            if not quiet and state.step % printInterval == 0:
                print(
                    f'  {state.time:8.4f}  {state.step:8d}  {state.maxVelocity:10.3e}  '
                    f'{state.maxDensityError * 100:10.3f}  {state.totalEnergy:12.4e}'
                )

        wallClockSeconds = timeModule.time() - wallClockStart
        finalState = solver.currentState

        print()
        print('  Simulation complete.')
        print(f'  Total steps:       {finalState.step:8d}')
        print(f'  Wall-clock time:   {wallClockSeconds:8.1f} s')
        print(f'  Frames recorded:   {self._exporter.nFrames:8d}')
        print()

        #--------------------------------------------------------------------#
        # Export
        #--------------------------------------------------------------------#
        exportPath = None
        if doExport:
            _banner('EXPORTING FRAME DATA')

            exportPath = self._exporter.export(
                config=cfg,
                outputDir=exportDir,
                scenarioName='fluidBlock',
                obstacles=solver.obstacles,
            )
            print(f'  Exported to: {exportPath}')
            print()

        plotPath = None
        if doPlot:
            from FluidSim.visualization.diagnosticPlots import createDiagnosticsFigure

            os.makedirs(exportDir, exist_ok=True)
            plotPath = os.path.join(exportDir, 'fluidSim_diagnostics.html')
            createDiagnosticsFigure(self._exporter.history).write_html(plotPath)
            print(f'  Diagnostics plot: {plotPath}')
            print()

        #--------------------------------------------------------------------#
        # Summary
        #--------------------------------------------------------------------#
        _banner('SIMULATION SUMMARY', '=')
        print(f'  Final KE:          {finalState.kineticEnergy:12.4e} J')
        print(f'  Final PE:          {finalState.potentialEnergy:12.4e} J')
        print(f'  Final Total E:     {finalState.totalEnergy:12.4e} J')
        print(f'  Max Density Error: {finalState.maxDensityError * 100:8.3f} %')
        print(f'  Max Velocity:      {finalState.maxVelocity:12.4e} m/s')
        print(f'  Finite State:      {str(solver.particles.isFinite()):>8}')
        print('=' * 62)
        print()

        return {
            'finalState': finalState,
            'nCreated': nCreated,
            'wallClockSeconds': wallClockSeconds,
            'nFrames': self._exporter.nFrames,
            'exportPath': exportPath,
            'plotPath': plotPath,
        }


#--------------------------------------------------------------------#
# -- CLI Entry Point -- #
#--------------------------------------------------------------------#

def main(argv: list[str] | None = None) -> None:
    '''CLI entry point.'''
    parser = buildParser()
    args = parser.parse_args(argv)

    runner = FluidSimRunner()
    runOptions = dict(
        doExport=not args.no_export,
        exportDir=args.output_dir,
        doPlot=args.plot,
        quiet=args.quiet,
    )

    if args.config:
        runner.runFromConfig(
            args.config,
            nSteps=args.steps,
            obstacles=args.obstacle,
            **runOptions,
        )
        return

    blockConfig = PRESETS[args.preset]()
    if args.steps is not None:
        blockConfig.nSteps = args.steps
    if args.obstacle is not None:
        blockConfig.obstacles = args.obstacle

    runner.run(blockConfig, **runOptions)


if __name__ == '__main__':
    main()
