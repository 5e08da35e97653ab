# -- Diagnostics Theme -- #

'''
Colors and template shared by the FluidSim Plotly diagnostics.
'''

TEMPLATE = 'plotly_dark'

# Energy history traces
KINETIC = '#42A5F5'
POTENTIAL = '#66BB6A'
TOTAL = '#E0E0E0'

# Density error trace and its tolerance line
DENSITY_ERROR = '#FFA726'
TOLERANCE_LINE = '#888888'
