"""Multi-body trajectories stitched from two-body arcs (patched conics).

- :class:`CelestialBody` and :class:`BodySystem` describe the hierarchy
  of gravitating bodies.
- :func:`simulate_trajectory` propagates a massless body and re-bases it
  whenever it crosses a sphere-of-influence boundary.
"""

from keplerjax.trajectory._types import CelestialBody, TrajectoryConfig, TrajectorySegment
from keplerjax.trajectory.patched_conics import BodySystem, segment_state, simulate_trajectory

__all__ = [
    "BodySystem",
    "CelestialBody",
    "TrajectoryConfig",
    "TrajectorySegment",
    "segment_state",
    "simulate_trajectory",
]
