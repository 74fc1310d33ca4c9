"""Conversions between Keplerian elements and Cartesian state vectors.

Provides the forward transform (:func:`state_at_epoch`), the inverse
transform (:func:`elements_from_state`), the apsis and node helpers, and
the degenerate-geometry classification used by the inverse transform.
"""

from .keplerian import (
    OrbitGeometry,
    apoapsis,
    ascending_node,
    classify_geometry,
    descending_node,
    elements_from_state,
    mean_anomaly_at,
    orbit_normal,
    periapsis,
    perifocal_to_inertial,
    position_at_true_anomaly,
    specific_angular_momentum,
    state_at_epoch,
    true_anomaly_at_epoch,
    velocity_at_true_anomaly,
)

__all__ = [
    "OrbitGeometry",
    "apoapsis",
    "ascending_node",
    "classify_geometry",
    "descending_node",
    "elements_from_state",
    "mean_anomaly_at",
    "orbit_normal",
    "periapsis",
    "perifocal_to_inertial",
    "position_at_true_anomaly",
    "specific_angular_momentum",
    "state_at_epoch",
    "true_anomaly_at_epoch",
    "velocity_at_true_anomaly",
]
