# -- Export Package -- #

'''
Data export utilities for SPH simulation results.

Exports particle positions per frame as JSON for external
renderers and offline plotting.
'''

from FluidSim.export.frameExporter import FrameExporter
