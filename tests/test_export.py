# -- Export, Diagnostics and Runner Tests -- #

'''
Frame export to JSON, Plotly diagnostics figures and the CLI runner.
'''

import json

import numpy as np
import pytest

from FluidSim.export.frameExporter import FrameExporter
from FluidSim.runner import FluidSimRunner, buildParser, main
from FluidSim.scenarios.fluidBlock import FluidBlockConfig
from FluidSim.sph.obstacles import SphereObstacle
from FluidSim.visualization.diagnosticPlots import (
    createDiagnosticsFigure,
    plotDensityError,
    plotEnergyHistory,
)


class TestFrameExporter:

    def testAddFrameRecordsPositionsAndHistory(self, pairSolver):
        exporter = FrameExporter()
        exporter.addFrame(pairSolver.currentState, pairSolver.particles)
        state = pairSolver.step()
        exporter.addFrame(state, pairSolver.particles, pairSolver.lastFields.densities)

        assert exporter.nFrames == 2
        first, second = exporter.frames
        assert first['step'] == 0
        assert first['positions'] == [[0.0, 0.0, 0.0], [0.05, 0.0, 0.0]]
        assert 'densities' not in first
        assert second['step'] == 1
        assert len(second['densities']) == 2

        history = exporter.history
        assert history['times'] == [0.0, 0.004]
        assert len(history['kinetic']) == 2
        assert history['total'][1] == pytest.approx(
            history['kinetic'][1] + history['potential'][1], abs=1e-5,
        )

    def testExportWritesJson(self, pairSolver, tmp_path):
        sphere = SphereObstacle(center=np.zeros(3), radius=0.3)
        exporter = FrameExporter()
        exporter.addFrame(pairSolver.currentState, pairSolver.particles)

        path = exporter.export(
            pairSolver.config,
            outputDir=str(tmp_path / 'frames'),
            scenarioName='pair',
            obstacles=[sphere],
        )

        with open(path, 'r') as f:
            data = json.load(f)

        assert data['meta']['type'] == 'fluidSim'
        assert data['meta']['nFrames'] == 1
        assert data['meta']['nParticles'] == 2
        assert data['config']['smoothingRadius'] == 0.16
        assert data['obstacles'] == [
            {'kind': 'sphere', 'center': [0.0, 0.0, 0.0], 'radius': 0.3},
        ]
        assert len(data['frames']) == 1
        assert 'fluidSim_pair_' in path

    def testExportWithoutFrames(self, defaultConfig, tmp_path):
        path = FrameExporter().export(defaultConfig, outputDir=str(tmp_path))
        with open(path, 'r') as f:
            data = json.load(f)
        assert data['meta']['nParticles'] == 0
        assert data['frames'] == []


class TestDiagnosticPlots:

    @pytest.fixture
    def history(self):
        return {
            'times': [0.0, 0.004, 0.008],
            'kinetic': [0.0, 0.5, 1.0],
            'potential': [0.0, -0.5, -1.0],
            'total': [0.0, 0.0, 0.0],
            'maxDensityError': [0.0, 0.2, 0.3],
        }

    def testEnergyFigure(self, history):
        fig = plotEnergyHistory(history)
        assert [trace.name for trace in fig.data] == ['Kinetic', 'Potential', 'Total']

    def testDensityErrorIsInPercent(self, history):
        fig = plotDensityError(history, tolerance=0.01)
        assert list(fig.data[0].y) == pytest.approx([0.0, 20.0, 30.0])

    def testDiagnosticsFigureCombinesBoth(self, history):
        fig = createDiagnosticsFigure(history)
        assert len(fig.data) == 4


class TestRunner:

    @pytest.fixture
    def tinyBlock(self) -> FluidBlockConfig:
        blockConfig = FluidBlockConfig.small()
        blockConfig.nSteps = 3
        blockConfig.outputInterval = 1
        return blockConfig

    def testRunExportsEveryFrame(self, tinyBlock, tmp_path):
        runner = FluidSimRunner()
        results = runner.run(tinyBlock, exportDir=str(tmp_path), quiet=True)

        assert results['nCreated'] == 216
        assert results['nFrames'] == 4
        assert results['finalState'].step == 3
        assert results['plotPath'] is None

        with open(results['exportPath'], 'r') as f:
            data = json.load(f)
        assert [frame['step'] for frame in data['frames']] == [0, 1, 2, 3]

    def testRunWritesDiagnosticsHtml(self, tinyBlock, tmp_path):
        results = FluidSimRunner().run(
            tinyBlock, doExport=False, exportDir=str(tmp_path), doPlot=True, quiet=True,
        )
        assert results['exportPath'] is None
        assert (tmp_path / 'fluidSim_diagnostics.html').exists()

    def testRunFromConfig(self, tmp_path):
        path = tmp_path / 'scene.json'
        path.write_text(json.dumps({
            'sph': {'smoothingRadius': 0.2},
            'scenario': {
                'particleCount': 27,
                'regionMin': [-0.3, -0.3, -0.3],
                'regionMax': [0.3, 0.3, 0.3],
                'nSteps': 2,
                'outputInterval': 2,
                'obstacles': 'sphere',
                'sphereCenter': [0.0, -0.6, 0.0],
                'sphereRadius': 0.2,
            },
        }))

        results = FluidSimRunner().runFromConfig(str(path), doExport=False, quiet=True)
        assert results['nCreated'] == 27
        assert results['finalState'].step == 2
        assert results['nFrames'] == 2

    def testCliOverridesApplyToConfigFile(self, tmp_path, capsys):
        path = tmp_path / 'scene.json'
        path.write_text(json.dumps({
            'scenario': {'particleCount': 8, 'nSteps': 5, 'obstacles': 'none'},
        }))

        results = FluidSimRunner().runFromConfig(
            str(path), nSteps=1, obstacles='both', doExport=False, quiet=True,
        )
        assert results['finalState'].step == 1

        main(['--config', str(path), '--steps', '2', '--obstacle', 'sphere', '--no-export', '--quiet'])
        output = capsys.readouterr().out
        stepsLine = next(line for line in output.splitlines() if 'Total steps:' in line)
        assert stepsLine.split()[-1] == '2'
        obstaclesLine = next(line for line in output.splitlines() if 'Obstacles:' in line)
        assert obstaclesLine.split()[-1] == '1'

    def testParserDefaults(self):
        args = buildParser().parse_args([])
        assert args.preset == 'standard'
        assert args.steps is None
        assert args.no_export is False

    def testMainRunsPreset(self, capsys, tmp_path):
        main([
            '--preset', 'small', '--steps', '2', '--obstacle', 'box',
            '--no-export', '--quiet', '--output-dir', str(tmp_path),
        ])
        captured = capsys.readouterr().out
        assert 'SIMULATION SUMMARY' in captured
        assert 'RUNNING SIMULATION' not in captured
