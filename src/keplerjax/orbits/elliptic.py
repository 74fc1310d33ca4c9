"""Kepler's equation and anomaly relations for elliptic orbits (``e < 1``).

The eccentric anomaly ``E`` is defined by Kepler's equation

    M = E - e * sin(E)

which is solved for ``E`` by Newton-Raphson iteration seeded with
``E0 = M``.

References:
    1. H. Curtis, *Orbital Mechanics for Engineering Students*, Sec. 3.4.
"""

from __future__ import annotations

from functools import partial

import jax
import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from keplerjax.config import get_dtype
from keplerjax.constants import MAX_ANOMALY_ITERATIONS
from keplerjax.orbits.keplerian import standard_gravitational_parameter
from keplerjax.solvers import NewtonResult, check_convergence, newton_raphson
from keplerjax.utils import wrap_to_pi


def mean_motion(h: ArrayLike, e: ArrayLike, mass: ArrayLike) -> Array:
    """Mean motion of an elliptic orbit.

    ``n = (mu^2 / h^3) * ((1 - e^2)^3)^(1/2)``

    Args:
        h: Specific angular momentum. Units: *m^2/s*
        e: Eccentricity. Dimensionless.
        mass: Central body mass. Units: *kg*

    Returns:
        Mean motion. Units: *rad/s*
    """
    h = jnp.asarray(h, dtype=get_dtype())
    e = jnp.asarray(e, dtype=get_dtype())
    mu = standard_gravitational_parameter(mass)
    return (mu / h) ** 2 / h * jnp.sqrt((1.0 - e**2) ** 3)


@partial(jax.jit, static_argnames=("max_iter",))
def solve_eccentric_anomaly(
    M: ArrayLike, e: ArrayLike, tol: ArrayLike, max_iter: int = MAX_ANOMALY_ITERATIONS
) -> NewtonResult:
    """JAX-traceable Kepler equation solve, ``M -> E``.

    ``M`` is wrapped into ``[-pi, pi)`` before solving; the resulting ``E``
    differs from the unwrapped solution by a multiple of ``2 pi`` and maps
    to the same true anomaly.

    Args:
        M: Mean anomaly. Units: *rad*
        e: Eccentricity. Dimensionless.
        tol: Absolute tolerance on the Newton step. Units: *rad*
        max_iter: Iteration cap.

    Returns:
        NewtonResult: Eccentric anomaly and convergence information.
    """
    M = jnp.asarray(M, dtype=get_dtype())
    e = jnp.asarray(e, dtype=get_dtype())
    M = wrap_to_pi(M)

    return newton_raphson(
        lambda E: E - e * jnp.sin(E) - M,
        lambda E: 1.0 - e * jnp.cos(E),
        M,
        tol,
        max_iter,
    )


def estimate_anomaly(M: ArrayLike, e: ArrayLike, tolerance: ArrayLike) -> Array:
    """Solve Kepler's equation for the eccentric anomaly.

    Args:
        M: Mean anomaly. Units: *rad*
        e: Eccentricity, ``0 <= e < 1``. Dimensionless.
        tolerance: Absolute tolerance on the Newton step. Units: *rad*

    Returns:
        Eccentric anomaly ``E``. Units: *rad*

    Raises:
        ConvergenceError: If the solve exceeds the iteration cap.

    Examples:
        ```python
        from keplerjax.orbits.elliptic import estimate_anomaly
        E = estimate_anomaly(1.0, 0.1, 1e-6)
        ```
    """
    return check_convergence(
        solve_eccentric_anomaly(M, e, tolerance), M, what="Elliptic Kepler equation"
    )


def true_anomaly(E: ArrayLike, e: ArrayLike) -> Array:
    """True anomaly from eccentric anomaly.

    Evaluates ``tan(nu/2) = sqrt((1 + e) / (1 - e)) * tan(E/2)`` in
    ``atan2`` form so the quadrant is preserved for any ``E``.

    Args:
        E: Eccentric anomaly. Units: *rad*
        e: Eccentricity. Dimensionless.

    Returns:
        True anomaly in ``(-pi, pi]``. Units: *rad*
    """
    E = jnp.asarray(E, dtype=get_dtype())
    e = jnp.asarray(e, dtype=get_dtype())
    return jnp.arctan2(jnp.sqrt(1.0 - e**2) * jnp.sin(E), jnp.cos(E) - e)


def eccentric_anomaly_from_true(nu: ArrayLike, e: ArrayLike) -> Array:
    """Eccentric anomaly from true anomaly.

    Args:
        nu: True anomaly. Units: *rad*
        e: Eccentricity. Dimensionless.

    Returns:
        Eccentric anomaly in ``(-pi, pi]``. Units: *rad*

    References:
        D. Vallado, *Fundamentals of Astrodynamics and Applications
        (4th Ed.)*, pp. 47, eq. 2-9, 2010.
    """
    nu = jnp.asarray(nu, dtype=get_dtype())
    e = jnp.asarray(e, dtype=get_dtype())
    return jnp.arctan2(jnp.sqrt(1.0 - e**2) * jnp.sin(nu), jnp.cos(nu) + e)


def mean_anomaly_from_eccentric(E: ArrayLike, e: ArrayLike) -> Array:
    """Kepler's equation, ``M = E - e sin(E)``."""
    E = jnp.asarray(E, dtype=get_dtype())
    e = jnp.asarray(e, dtype=get_dtype())
    return E - e * jnp.sin(E)


def mean_anomaly_from_true(nu: ArrayLike, e: ArrayLike) -> Array:
    """Closed-form mean anomaly from true anomaly (true -> eccentric -> mean).

    Args:
        nu: True anomaly. Units: *rad*
        e: Eccentricity. Dimensionless.

    Returns:
        Mean anomaly in ``(-pi, pi]``. Units: *rad*
    """
    return mean_anomaly_from_eccentric(eccentric_anomaly_from_true(nu, e), e)
