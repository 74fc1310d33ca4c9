"""Kepler's equation and anomaly relations for hyperbolic orbits (``e >= 1``).

The hyperbolic anomaly ``F`` satisfies

    M = e * sinh(F) - F

where ``M`` is the hyperbolic mean anomaly.  Unlike the elliptic case,
``M`` is not periodic and is never wrapped.

References:
    1. H. Curtis, *Orbital Mechanics for Engineering Students*, Sec. 3.7.
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


def mean_motion(h: ArrayLike, e: ArrayLike, mass: ArrayLike) -> Array:
    """Hyperbolic mean motion, ``n = (mu^2 / h^3) * ((e^2 - 1)^3)^(1/2)``.

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
    return (mu / h) ** 2 / h * jnp.sqrt((e**2 - 1.0) ** 3)


@partial(jax.jit, static_argnames=("max_iter",))
def solve_hyperbolic_anomaly(
    M: ArrayLike, e: ArrayLike, tol: ArrayLike, max_iter: int = MAX_ANOMALY_ITERATIONS
) -> NewtonResult:
    """JAX-traceable hyperbolic Kepler equation solve, ``M -> F``.

    Starts from ``F = M`` for small ``|M|``.  For large ``|M|`` that seed
    overflows ``sinh``, so the solve starts from the asymptotic root
    ``sign(M) ln(2|M| / e + 1)`` instead.
    """
    M = jnp.asarray(M, dtype=get_dtype())
    e = jnp.asarray(e, dtype=get_dtype())
    F0 = jnp.where(jnp.abs(M) < 6.0, M, jnp.sign(M) * jnp.log(2.0 * jnp.abs(M) / e + 1.0))

    return newton_raphson(
        lambda F: e * jnp.sinh(F) - F - M,
        lambda F: e * jnp.cosh(F) - 1.0,
        F0,
        tol,
        max_iter,
    )


def estimate_anomaly(M: ArrayLike, e: ArrayLike, tolerance: ArrayLike) -> Array:
    """Solve the hyperbolic Kepler equation for the hyperbolic anomaly.

    Args:
        M: Hyperbolic mean anomaly. Units: *rad*
        e: Eccentricity, ``e >= 1``. Dimensionless.
        tolerance: Absolute tolerance on the Newton step.

    Returns:
        Hyperbolic anomaly ``F``.

    Raises:
        ConvergenceError: If the solve exceeds the iteration cap.
    """
    return check_convergence(
        solve_hyperbolic_anomaly(M, e, tolerance), M, what="Hyperbolic Kepler equation"
    )


def true_anomaly(F: ArrayLike, e: ArrayLike) -> Array:
    """True anomaly from hyperbolic anomaly.

    ``nu = 2 atan(tanh(F/2) * sqrt((e + 1) / (e - 1)))``

    Args:
        F: Hyperbolic anomaly.
        e: Eccentricity. Dimensionless.

    Returns:
        True anomaly, bounded by the asymptote angle ``acos(-1/e)``.
        Units: *rad*
    """
    F = jnp.asarray(F, dtype=get_dtype())
    e = jnp.asarray(e, dtype=get_dtype())
    return 2.0 * jnp.arctan(jnp.tanh(F / 2.0) * jnp.sqrt((e + 1.0) / (e - 1.0)))


def hyperbolic_anomaly_from_true(nu: ArrayLike, e: ArrayLike) -> Array:
    """Hyperbolic anomaly from true anomaly.

    ``F = 2 atanh(sqrt((e - 1) / (e + 1)) * tan(nu/2))``

    Only defined for true anomalies between the asymptotes.
    """
    nu = jnp.asarray(nu, dtype=get_dtype())
    e = jnp.asarray(e, dtype=get_dtype())
    return 2.0 * jnp.arctanh(jnp.sqrt((e - 1.0) / (e + 1.0)) * jnp.tan(nu / 2.0))


def mean_anomaly_from_hyperbolic(F: ArrayLike, e: ArrayLike) -> Array:
    """Hyperbolic Kepler's equation, ``M = e sinh(F) - F``."""
    F = jnp.asarray(F, dtype=get_dtype())
    e = jnp.asarray(e, dtype=get_dtype())
    return e * jnp.sinh(F) - F


def mean_anomaly_from_true(nu: ArrayLike, e: ArrayLike) -> Array:
    """Closed-form hyperbolic mean anomaly from true anomaly."""
    return mean_anomaly_from_hyperbolic(hyperbolic_anomaly_from_true(nu, e), e)
