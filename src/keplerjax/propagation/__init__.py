"""Two-body state propagation.

- :func:`propagate` / :func:`try_propagate` -- universal-variable
  propagation of a state vector by an arbitrary time step
- :func:`sample_orbit` -- positions over one period of a bound orbit
- :func:`stumpff_c2c3` -- Stumpff coefficients used by the propagator
"""

from keplerjax.propagation.universal import (
    UniversalSolution,
    propagate,
    propagate_kernel,
    sample_orbit,
    stumpff_c2c3,
    try_propagate,
)

__all__ = [
    "UniversalSolution",
    "propagate",
    "propagate_kernel",
    "sample_orbit",
    "stumpff_c2c3",
    "try_propagate",
]
