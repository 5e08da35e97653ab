# -- Default Constants for the SPH Fluid Solver -- #

'''
Default physical and numerical constants for the SPH fluid solver.
Values are in the solver's scene units (unit particle mass, metres,
seconds) and match the defaults of the interactive demo.

References:
-----------
Muller, Charypar & Gross (2003) -- Particle-Based Fluid Simulation
    for Interactive Applications
'''

#--------------------------------------------------------------------#
# -- Fluid Properties -- #
#--------------------------------------------------------------------#

# Mass of a single fluid particle
particleMass: float = 1.0

# Rest density rho_0 of the fluid
restDensity: float = 1000.0

# Stiffness k of the linear equation of state p = k * (rho - rho_0)
gasConstant: float = 2000.0

# Viscosity coefficient mu
viscosity: float = 0.018

# Surface tension coefficient sigma
surfaceTension: float = 0.0728

# Minimum color-field gradient magnitude for surface tension to act.
# Interior particles have a near-zero (noisy) gradient and get no force.
surfaceThreshold: float = 7.065

# Gravitational acceleration [m/s^2], applied along -y
gravity: float = 9.8

#--------------------------------------------------------------------#
# -- SPH Numerical Parameters -- #
#--------------------------------------------------------------------#

# Kernel smoothing radius h (support radius of all three kernels)
smoothingRadius: float = 0.16

# Fixed time step [s], never adapted
timeStep: float = 0.004

# Initial grid spacing as a fraction of h
gridSpacingRatio: float = 0.5

# Distances below this give a zero spiky gradient
kernelEpsilon: float = 1.0e-4

#--------------------------------------------------------------------#
# -- Collision Response -- #
#--------------------------------------------------------------------#

# Velocity scale applied on wall and obstacle contact
collisionDamping: float = 0.5

# Contact radius of a particle against sphere obstacles
particleContactRadius: float = 0.05

# Default bounding box half-extent, box is [-b, b]^3
boundingBoxHalfExtent: float = 1.0
