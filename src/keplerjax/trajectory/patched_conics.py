"""Patched-conic trajectories across spheres of influence.

A trajectory is a chain of :class:`TrajectorySegment` arcs.  Each arc is
a two-body conic about a single parent body, i.e. the spacecraft is in
the state *InSOI(parent)*.  :func:`simulate_trajectory` steps the
universal-variable propagator and checks at every step for two
transitions:

- **exit**: the distance to the parent exceeds the parent's sphere of
  influence, so the state is re-based into the grandparent frame by
  adding the parent's own state;
- **entry**: the distance to one of the parent's children is inside that
  child's sphere of influence, so the state is re-based into the child's
  frame by subtracting the child's state.

Every transition starts a new segment at the step where it was detected.
Crossings are only resolved to the step size.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Iterator

import jax.numpy as jnp

from keplerjax._types import StateVectors
from keplerjax.config import get_dtype
from keplerjax.coordinates import state_at_epoch
from keplerjax.orbits.keplerian import sphere_of_influence
from keplerjax.propagation import propagate
from keplerjax.trajectory._types import CelestialBody, TrajectoryConfig, TrajectorySegment

logger = logging.getLogger(__name__)


class BodySystem:
    """A hierarchy of bodies, each orbiting its parent on a fixed conic.

    Args:
        bodies: The bodies.  Exactly one must have no parent.

    Raises:
        ValueError: On duplicate names, unknown parents, a missing or
            repeated root, or a cycle in the parent chain.

    Examples:
        ```python
        from keplerjax import KeplerianElements
        from keplerjax.constants import AU
        from keplerjax.trajectory import BodySystem, CelestialBody
        system = BodySystem([
            CelestialBody("sun", 1.989e30),
            CelestialBody("earth", 5.972e24, "sun",
                          KeplerianElements(0.0167, AU, 0.0, 0.0, 1.8, 0.0)),
        ])
        ```
    """

    def __init__(self, bodies: Iterable[CelestialBody]):
        self._bodies: dict[str, CelestialBody] = {}
        for body in bodies:
            if body.name in self._bodies:
                raise ValueError(f"duplicate body name {body.name!r}")
            self._bodies[body.name] = body

        roots = [b.name for b in self._bodies.values() if b.parent is None]
        if len(roots) != 1:
            raise ValueError(f"expected exactly one root body, found {roots}")
        self._root = roots[0]

        for body in self._bodies.values():
            if body.parent is not None and body.parent not in self._bodies:
                raise ValueError(f"body {body.name!r} has unknown parent {body.parent!r}")

        for name in self._bodies:
            seen = {name}
            current = self._bodies[name].parent
            while current is not None:
                if current in seen:
                    raise ValueError(f"cycle in parent chain of {name!r}")
                seen.add(current)
                current = self._bodies[current].parent

    def __getitem__(self, name: str) -> CelestialBody:
        try:
            return self._bodies[name]
        except KeyError:
            raise KeyError(f"Unknown body: {name!r}") from None

    def __contains__(self, name: object) -> bool:
        return name in self._bodies

    def __iter__(self) -> Iterator[CelestialBody]:
        return iter(self._bodies.values())

    def __len__(self) -> int:
        return len(self._bodies)

    @property
    def root(self) -> CelestialBody:
        return self._bodies[self._root]

    def children(self, name: str) -> list[CelestialBody]:
        """Bodies whose parent is *name*."""
        if name not in self._bodies:
            raise KeyError(f"Unknown body: {name!r}")
        return [b for b in self._bodies.values() if b.parent == name]

    def state_in_parent(self, name: str, epoch: float, tolerance: float) -> StateVectors:
        """State of *name* relative to its parent; zero for the root."""
        body = self[name]
        if body.parent is None:
            zero = jnp.zeros(3, dtype=get_dtype())
            return StateVectors(position=zero, velocity=zero)
        return state_at_epoch(body.elements, self[body.parent].mass, epoch, tolerance)

    def soi_radius(self, name: str, epoch: float, tolerance: float) -> float:
        """Sphere-of-influence radius of *name* at *epoch*; infinite for the root."""
        body = self[name]
        if body.parent is None:
            return math.inf
        r = jnp.linalg.norm(self.state_in_parent(name, epoch, tolerance).position)
        return float(sphere_of_influence(r, body.mass, self[body.parent].mass))


def _detect_crossing(
    system: BodySystem, parent: str, state: StateVectors, epoch: float, tolerance: float
) -> tuple[str, StateVectors] | None:
    body = system[parent]

    if body.parent is not None:
        r = float(jnp.linalg.norm(state.position))
        if r > system.soi_radius(parent, epoch, tolerance):
            offset = system.state_in_parent(parent, epoch, tolerance)
            return body.parent, StateVectors(
                position=state.position + offset.position,
                velocity=state.velocity + offset.velocity,
            )

    for child in system.children(parent):
        offset = system.state_in_parent(child.name, epoch, tolerance)
        relative = state.position - offset.position
        if float(jnp.linalg.norm(relative)) < system.soi_radius(child.name, epoch, tolerance):
            return child.name, StateVectors(
                position=relative,
                velocity=state.velocity - offset.velocity,
            )

    return None


def simulate_trajectory(
    system: BodySystem,
    parent: str,
    state: StateVectors,
    epoch: float,
    config: TrajectoryConfig | None = None,
) -> list[TrajectorySegment]:
    """Propagate a massless body through a hierarchy of spheres of influence.

    Args:
        system: The gravitating bodies.
        parent: Body whose sphere of influence contains the initial state.
        state: Initial state relative to *parent*.
        epoch: Time of *state*. Units: *s*
        config: Stepping parameters; defaults to :class:`TrajectoryConfig`.

    Returns:
        list[TrajectorySegment]: The arcs in time order.  The first starts
        at *epoch* with *state*.

    Raises:
        KeyError: If *parent* is not in *system*.
        ConvergenceError: If a propagation or anomaly solve fails to converge.
        PropagationError: If a propagated state is non-finite.
    """
    config = TrajectoryConfig() if config is None else config
    if parent not in system:
        raise KeyError(f"Unknown body: {parent!r}")

    current = TrajectorySegment(entry_epoch=epoch, entry_state=state, parent=parent)
    segments = [current]

    for i in range(1, config.max_steps + 1):
        t = epoch + i * config.step
        mass = system[current.parent].mass
        sv = propagate(current.entry_state, t - current.entry_epoch, mass, config.tolerance)

        crossing = _detect_crossing(system, current.parent, sv, t, config.tolerance)
        if crossing is None:
            continue

        new_parent, new_state = crossing
        logger.info("SOI transition %s -> %s at epoch %s", current.parent, new_parent, t)
        current = TrajectorySegment(entry_epoch=t, entry_state=new_state, parent=new_parent)
        segments.append(current)

    return segments


def segment_state(
    system: BodySystem, segment: TrajectorySegment, epoch: float, tolerance: float
) -> StateVectors:
    """State on *segment* at *epoch*, relative to the segment's parent."""
    mass = system[segment.parent].mass
    return propagate(segment.entry_state, epoch - segment.entry_epoch, mass, tolerance)
