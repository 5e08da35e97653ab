# -- Visualization Subpackage -- #

'''
Plotly-based diagnostics for SPH runs: energy history and
density error over time.
'''

from FluidSim.visualization.diagnosticPlots import (
    plotEnergyHistory,
    plotDensityError,
    createDiagnosticsFigure,
)
