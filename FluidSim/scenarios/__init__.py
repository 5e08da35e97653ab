# -- Simulation Scenarios Package -- #

'''
Pre-configured simulation scenarios for the SPH fluid solver.

Each scenario provides initial conditions (particle block,
obstacles) and the solver configuration for a specific setup.
'''

from FluidSim.scenarios.fluidBlock import FluidBlockConfig, createFluidBlock, resetFluidBlock
