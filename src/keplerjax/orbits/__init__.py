"""Keplerian orbital mechanics functions.

This sub-module provides:

- **Astro formulas**: gravitational parameter, orbital period, semi-major
  axis, mean motion, apsis distances and sphere-of-influence radius.
- **Anomaly models**: Kepler's equation solvers and true/mean anomaly
  relations for elliptic (:mod:`~keplerjax.orbits.elliptic`) and
  hyperbolic (:mod:`~keplerjax.orbits.hyperbolic`) orbits, with
  orbit-class dispatch in :mod:`~keplerjax.orbits.anomaly`.
"""

from .keplerian import (
    apoapsis_distance,
    mean_motion,
    orbital_period,
    orbital_period_from_state,
    periapsis_distance,
    semimajor_axis_from_orbital_period,
    semimajor_axis_from_state,
    soi,
    sphere_of_influence,
    standard_gravitational_parameter,
)
from . import elliptic, hyperbolic
from .anomaly import (
    is_hyperbolic,
    mean_anomaly_at,
    mean_anomaly_from_true,
    true_anomaly_from_mean,
)

__all__ = [
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
    "elliptic",
    "hyperbolic",
    "is_hyperbolic",
    "mean_anomaly_at",
    "mean_anomaly_from_true",
    "true_anomaly_from_mean",
]
