"""Value types shared across keplerjax.

- :class:`StateVectors`: position and velocity relative to the central
  body.  A :class:`~typing.NamedTuple`, so JAX treats it as a pytree and
  it can be passed straight through ``jax.jit`` and ``jax.vmap``.
- :class:`KeplerianElements`: classical orbital elements with the mean
  anomaly at a reference epoch.  A frozen dataclass that validates its
  fields on construction.

Neither type stores the central-body mass or the evaluation time; both
are passed explicitly to every conversion and propagation call.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import NamedTuple

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from keplerjax.config import get_dtype


class StateVectors(NamedTuple):
    """Cartesian state of a body in an inertial frame centered on its parent.

    Attributes:
        position: Position vector ``[x, y, z]``. Units: *m*
        velocity: Velocity vector ``[vx, vy, vz]``. Units: *m/s*
    """

    position: Array
    velocity: Array

    @classmethod
    def from_array(cls, x: ArrayLike) -> StateVectors:
        """Build from a 6-element ``[x, y, z, vx, vy, vz]`` array."""
        x = jnp.asarray(x, dtype=get_dtype())
        return cls(position=x[:3], velocity=x[3:6])

    def to_array(self) -> Array:
        """Return the state as a 6-element ``[x, y, z, vx, vy, vz]`` array."""
        return jnp.concatenate([jnp.asarray(self.position), jnp.asarray(self.velocity)])

    def abs_diff(self, other: StateVectors) -> Array:
        """Position distance plus velocity distance to *other*."""
        dr = jnp.linalg.norm(jnp.asarray(self.position) - jnp.asarray(other.position))
        dv = jnp.linalg.norm(jnp.asarray(self.velocity) - jnp.asarray(other.velocity))
        return dr + dv


@dataclass(frozen=True)
class KeplerianElements:
    """Osculating Keplerian elements referenced to an epoch.

    The semi-major axis is signed: positive for elliptic orbits
    (``e < 1``) and negative for hyperbolic ones (``e >= 1``), so that
    ``1 / a`` always equals the vis-viva quantity ``2/r - v^2/mu``.  The
    parabolic case ``e == 1`` is not supported and is handled by the
    hyperbolic formulas.

    Args:
        eccentricity: Eccentricity ``e``. Dimensionless, ``>= 0``.
        semi_major_axis: Semi-major axis ``a``. Units: *m*
        inclination: Inclination ``i`` in ``[0, pi]``. Units: *rad*
        raan: Right ascension of the ascending node ``Omega``. Units: *rad*
        argument_of_periapsis: Argument of periapsis ``omega``. ``0`` for
            circular orbits. Units: *rad*
        mean_anomaly_at_epoch: Mean anomaly ``M0`` at ``epoch``. Units: *rad*
        epoch: Reference time for ``M0``. Units: *s*

    Raises:
        ValueError: If the eccentricity or inclination is negative, the
            inclination exceeds ``pi``, the semi-major axis is zero, or its sign disagrees with the orbit
            class implied by the eccentricity.
    """

    eccentricity: float
    semi_major_axis: float
    inclination: float
    raan: float
    argument_of_periapsis: float
    mean_anomaly_at_epoch: float
    epoch: float = 0.0

    def __post_init__(self) -> None:
        e = float(self.eccentricity)
        a = float(self.semi_major_axis)
        if e < 0.0:
            raise ValueError(f"eccentricity must be non-negative, got {e}")
        i = float(self.inclination)
        if i < 0.0:
            raise ValueError(f"inclination must be non-negative, got {i}")
        # float32 pi rounds above math.pi
        if i > math.pi + 1e-6:
            raise ValueError(f"inclination must not exceed pi, got {i}")
        if a == 0.0:
            raise ValueError("semi_major_axis must be non-zero")
        if e < 1.0 and a < 0.0:
            raise ValueError(
                f"elliptic orbit (e = {e}) requires a positive semi_major_axis, got {a}"
            )
        if e > 1.0 and a > 0.0:
            raise ValueError(
                f"hyperbolic orbit (e = {e}) requires a negative semi_major_axis, got {a}"
            )

    @property
    def is_elliptic(self) -> bool:
        return bool(self.eccentricity < 1.0)

    @property
    def is_hyperbolic(self) -> bool:
        # e == 1 (parabolic) is folded into the hyperbolic branch
        return bool(self.eccentricity >= 1.0)

    @classmethod
    def from_array(cls, x_oe: ArrayLike, epoch: float = 0.0) -> KeplerianElements:
        """Build from ``[a, e, i, RAAN, omega, M]``.

        Args:
            x_oe: Orbital elements in the order listed above.
            epoch: Reference epoch of the mean anomaly. Units: *s*

        Returns:
            KeplerianElements: The corresponding elements.
        """
        x_oe = jnp.asarray(x_oe, dtype=get_dtype())
        return cls(
            eccentricity=x_oe[1],
            semi_major_axis=x_oe[0],
            inclination=x_oe[2],
            raan=x_oe[3],
            argument_of_periapsis=x_oe[4],
            mean_anomaly_at_epoch=x_oe[5],
            epoch=epoch,
        )

    def to_array(self) -> Array:
        """Return ``[a, e, i, RAAN, omega, M0]``; the epoch is dropped."""
        return jnp.array(
            [
                self.semi_major_axis,
                self.eccentricity,
                self.inclination,
                self.raan,
                self.argument_of_periapsis,
                self.mean_anomaly_at_epoch,
            ],
            dtype=get_dtype(),
        )

    def angle_abs_diff(self, other: KeplerianElements) -> Array:
        """Sum of absolute differences of ``e``, ``i``, ``Omega``, ``omega`` and ``M0``."""
        diff = jnp.abs(self.eccentricity - other.eccentricity)
        diff += jnp.abs(self.inclination - other.inclination)
        diff += jnp.abs(self.raan - other.raan)
        diff += jnp.abs(self.argument_of_periapsis - other.argument_of_periapsis)
        diff += jnp.abs(self.mean_anomaly_at_epoch - other.mean_anomaly_at_epoch)
        return diff
