"""
keplerjax is a two-body Keplerian orbital mechanics library implemented in JAX.
"""

from .constants import (
    AU,
    DEG2RAD,
    G,
    PI,
    RAD2DEG,
    TWO_PI,
)

from .config import set_dtype, get_dtype, get_degeneracy_epsilon, get_default_tolerance
from .errors import ConvergenceError, KeplerError, PropagationError
from ._types import KeplerianElements, StateVectors

from .orbits import (
    standard_gravitational_parameter,
    orbital_period,
    orbital_period_from_state,
    semimajor_axis_from_state,
    semimajor_axis_from_orbital_period,
    mean_motion,
    periapsis_distance,
    apoapsis_distance,
    sphere_of_influence,
    soi,
)

from .coordinates import (
    OrbitGeometry,
    classify_geometry,
    state_at_epoch,
    elements_from_state,
    position_at_true_anomaly,
    velocity_at_true_anomaly,
    true_anomaly_at_epoch,
    periapsis,
    apoapsis,
    ascending_node,
    descending_node,
    orbit_normal,
)

from .propagation import (
    propagate,
    try_propagate,
    sample_orbit,
)

from .frames import zup_to_yup, yup_to_zup, state_zup_to_yup

__all__ = [
    # Constants
    "AU",
    "DEG2RAD",
    "G",
    "PI",
    "RAD2DEG",
    "TWO_PI",
    # Config
    "set_dtype",
    "get_dtype",
    "get_degeneracy_epsilon",
    "get_default_tolerance",
    # Errors
    "ConvergenceError",
    "KeplerError",
    "PropagationError",
    # Types
    "KeplerianElements",
    "StateVectors",
    # Orbits
    "standard_gravitational_parameter",
    "orbital_period",
    "orbital_period_from_state",
    "semimajor_axis_from_state",
    "semimajor_axis_from_orbital_period",
    "mean_motion",
    "periapsis_distance",
    "apoapsis_distance",
    "sphere_of_influence",
    "soi",
    # Coordinates
    "OrbitGeometry",
    "classify_geometry",
    "state_at_epoch",
    "elements_from_state",
    "position_at_true_anomaly",
    "velocity_at_true_anomaly",
    "true_anomaly_at_epoch",
    "periapsis",
    "apoapsis",
    "ascending_node",
    "descending_node",
    "orbit_normal",
    # Propagation
    "propagate",
    "try_propagate",
    "sample_orbit",
    # Frames
    "zup_to_yup",
    "yup_to_zup",
    "state_zup_to_yup",
]
