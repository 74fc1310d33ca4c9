"""Data types for patched-conic trajectories."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import NamedTuple

from keplerjax._types import KeplerianElements, StateVectors
from keplerjax.config import get_default_tolerance


@dataclass(frozen=True)
class CelestialBody:
    """A gravitating body in a hierarchical system.

    Args:
        name: Unique body name.
        mass: Body mass. Units: *kg*
        parent: Name of the body it orbits, ``None`` for the root.
        elements: Orbit about ``parent``; required unless the body is the
            root.
    """

    name: str
    mass: float
    parent: str | None = None
    elements: KeplerianElements | None = None

    def __post_init__(self) -> None:
        if not self.mass > 0.0:
            raise ValueError(f"mass of {self.name!r} must be positive, got {self.mass}")
        if self.parent is not None and self.elements is None:
            raise ValueError(f"body {self.name!r} has a parent but no orbital elements")


class TrajectorySegment(NamedTuple):
    """One conic arc of a trajectory, inside the SOI of ``parent``.

    Attributes:
        entry_epoch: Time the arc starts. Units: *s*
        entry_state: State at ``entry_epoch`` relative to ``parent``.
        parent: Name of the body whose sphere of influence contains the arc.
    """

    entry_epoch: float
    entry_state: StateVectors
    parent: str


@dataclass(frozen=True)
class TrajectoryConfig:
    """Stepping parameters for :func:`~keplerjax.trajectory.simulate_trajectory`.

    Sphere-of-influence crossings are detected at step boundaries, so the
    step must be small compared to the time spent crossing the smallest
    sphere of influence of interest.

    Args:
        step: Time between boundary checks. Units: *s*
        max_steps: Number of steps to simulate.
        tolerance: Tolerance passed to the propagator and anomaly solvers.
            Defaults to :func:`~keplerjax.config.get_default_tolerance`
            for the dtype selected when the config is created.
    """

    step: float = 3600.0
    max_steps: int = 1000
    tolerance: float = field(default_factory=get_default_tolerance)

    def __post_init__(self) -> None:
        if not (self.step > 0.0 and math.isfinite(self.step)):
            raise ValueError(f"step must be positive and finite, got {self.step}")
        if self.max_steps < 1:
            raise ValueError(f"max_steps must be at least 1, got {self.max_steps}")
        if not self.tolerance > 0.0:
            raise ValueError(f"tolerance must be strictly positive, got {self.tolerance}")
