"""Orbit-class dispatch for the anomaly models.

Eccentricities below one route to :mod:`keplerjax.orbits.elliptic`, the
rest to :mod:`keplerjax.orbits.hyperbolic`.  The parabolic boundary
``e == 1`` is not supported and falls into the hyperbolic branch.
"""

from __future__ import annotations

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from keplerjax.config import get_dtype
from keplerjax.orbits import elliptic, hyperbolic


def is_hyperbolic(e: ArrayLike) -> bool:
    """``True`` if the eccentricity selects the hyperbolic branch."""
    return bool(e >= 1.0)


def mean_motion(h: ArrayLike, e: ArrayLike, mass: ArrayLike) -> Array:
    """Mean motion for either orbit class."""
    if is_hyperbolic(e):
        return hyperbolic.mean_motion(h, e, mass)
    return elliptic.mean_motion(h, e, mass)


def mean_anomaly_at(M0: ArrayLike, n: ArrayLike, t0: ArrayLike, t: ArrayLike) -> Array:
    """Mean anomaly at ``t``, ``M(t) = M0 + n (t - t0)``.

    Args:
        M0: Mean anomaly at the reference epoch. Units: *rad*
        n: Mean motion. Units: *rad/s*
        t0: Reference epoch. Units: *s*
        t: Evaluation time. Units: *s*

    Returns:
        Mean anomaly at ``t``. Units: *rad*
    """
    M0 = jnp.asarray(M0, dtype=get_dtype())
    n = jnp.asarray(n, dtype=get_dtype())
    dt = jnp.asarray(t, dtype=get_dtype()) - jnp.asarray(t0, dtype=get_dtype())
    return M0 + n * dt


def true_anomaly_from_mean(M: ArrayLike, e: ArrayLike, tolerance: ArrayLike) -> Array:
    """Solve Kepler's equation and convert the result to true anomaly.

    Raises:
        ConvergenceError: If the anomaly solve exceeds its iteration cap.
    """
    if is_hyperbolic(e):
        F = hyperbolic.estimate_anomaly(M, e, tolerance)
        return hyperbolic.true_anomaly(F, e)
    E = elliptic.estimate_anomaly(M, e, tolerance)
    return elliptic.true_anomaly(E, e)


def mean_anomaly_from_true(nu: ArrayLike, e: ArrayLike) -> Array:
    """Closed-form inversion of the true-anomaly relation for either orbit class."""
    if is_hyperbolic(e):
        return hyperbolic.mean_anomaly_from_true(nu, e)
    return elliptic.mean_anomaly_from_true(nu, e)
