"""
The `constants` module defines the mathematical and physical constants used by keplerjax.
"""

from jax.numpy import pi as PI

# Mathematical Constants
"""
Full turn in radians. Units: *rad*
"""
TWO_PI = 2.0 * PI

"""
Constant to convert degrees to radians. Equal to 2pi/360. Units: *rad/deg*
"""
DEG2RAD = 2.0 * PI / 360.0

"""
Constant to convert radians to degrees. Equal to 360/2pi. Units: *deg/rad*
"""
RAD2DEG = 360.0 / (PI * 2.0)

# Physical Constants
"""
Newtonian constant of gravitation. Units: *m^3 kg^-1 s^-2*

References:

1. CODATA 2018 recommended value
"""
G = 6.67430e-11

"""
Astronomical Unit. Units: *m*

References:

1. IAU 2012 Resolution B2
"""
AU = 1.49597870700e11

# Solver Constants
"""
Iteration cap for the elliptic and hyperbolic Kepler equation solvers.
"""
MAX_ANOMALY_ITERATIONS = 100_000

"""
Iteration cap for the universal-variable Newton loop.
"""
MAX_PROPAGATION_ITERATIONS = 500

"""
Half-width of the band around psi = 0 where the Stumpff coefficients
are evaluated from their power series instead of the closed forms,
which lose digits to cancellation as psi approaches zero.
"""
STUMPFF_EPSILON = 1e-2

"""
Dimensionless band on alpha * r0 inside which the propagator seeds
the universal anomaly with the parabolic (Barker) estimate.
"""
PARABOLIC_ALPHA_EPSILON = 1e-6
