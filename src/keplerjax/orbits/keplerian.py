"""Scalar two-body formulas parameterized by the central body mass.

This module provides the auxiliary quantities the presentation layer
consumes directly: standard gravitational parameter, orbital period,
semi-major axis, mean motion, apsis distances and the Laplace
sphere-of-influence radius.

Semi-major axes are signed: positive for elliptic orbits and negative for
hyperbolic ones.  Period and mean motion are only meaningful for elliptic
orbits; guarding against hyperbolic input is the caller's responsibility.
"""

from __future__ import annotations

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from keplerjax._types import StateVectors
from keplerjax.config import get_dtype
from keplerjax.constants import G
from keplerjax.utils import from_radians

# ──────────────────────────────────────────────
# Gravitational parameter
# ──────────────────────────────────────────────


def standard_gravitational_parameter(mass: ArrayLike) -> Array:
    """Standard gravitational parameter ``mu = G * mass``.

    Args:
        mass: Central body mass. Units: *kg*

    Returns:
        Gravitational parameter. Units: *m^3/s^2*
    """
    mass = jnp.asarray(mass, dtype=get_dtype())
    return G * mass


# ──────────────────────────────────────────────
# Orbital period and semi-major axis
# ──────────────────────────────────────────────


def orbital_period(a: ArrayLike, mass: ArrayLike) -> Array:
    """Compute the orbital period, ``T = 2 pi sqrt(a^3 / mu)``.

    Args:
        a: Semi-major axis. Units: *m*
        mass: Central body mass. Units: *kg*

    Returns:
        Orbital period. Units: *s*. NaN for hyperbolic (negative) ``a``.

    Examples:
        ```python
        from keplerjax.orbits import orbital_period
        T = orbital_period(6.878e6, 5.972e24)
        ```
    """
    a = jnp.asarray(a, dtype=get_dtype())
    return 2.0 * jnp.pi * jnp.sqrt(a**3 / standard_gravitational_parameter(mass))


def semimajor_axis_from_state(state: StateVectors, mass: ArrayLike) -> Array:
    """Semi-major axis from the vis-viva equation, ``a = 1 / (2/r - v^2/mu)``.

    Args:
        state: Position and velocity relative to the central body.
        mass: Central body mass. Units: *kg*

    Returns:
        Semi-major axis, negative for hyperbolic states. Units: *m*
    """
    r = jnp.linalg.norm(jnp.asarray(state.position, dtype=get_dtype()))
    v_sq = jnp.sum(jnp.asarray(state.velocity, dtype=get_dtype()) ** 2)
    return 1.0 / (2.0 / r - v_sq / standard_gravitational_parameter(mass))


def orbital_period_from_state(state: StateVectors, mass: ArrayLike) -> Array:
    """Compute the orbital period of a state vector using the vis-viva equation.

    Args:
        state: Position and velocity relative to the central body.
        mass: Central body mass. Units: *kg*

    Returns:
        Orbital period. Units: *s*
    """
    return orbital_period(semimajor_axis_from_state(state, mass), mass)


def semimajor_axis_from_orbital_period(period: ArrayLike, mass: ArrayLike) -> Array:
    """Compute semi-major axis from orbital period.

    Args:
        period: Orbital period. Units: *s*
        mass: Central body mass. Units: *kg*

    Returns:
        Semi-major axis. Units: *m*
    """
    period = jnp.asarray(period, dtype=get_dtype())
    mu = standard_gravitational_parameter(mass)
    return (period**2 * mu / (4.0 * jnp.pi**2)) ** (1.0 / 3.0)


def mean_motion(a: ArrayLike, mass: ArrayLike, use_degrees: bool = False) -> Array:
    """Mean motion from the semi-major axis, ``n = sqrt(mu / |a|^3)``.

    Args:
        a: Semi-major axis. Units: *m*
        mass: Central body mass. Units: *kg*
        use_degrees: If ``True``, return mean motion in degrees per second.

    Returns:
        Mean motion. Units: *rad/s* or *deg/s*
    """
    a = jnp.asarray(a, dtype=get_dtype())
    n = jnp.sqrt(standard_gravitational_parameter(mass) / jnp.abs(a) ** 3)
    return from_radians(n, use_degrees)


# ──────────────────────────────────────────────
# Distances
# ──────────────────────────────────────────────


def periapsis_distance(a: ArrayLike, e: ArrayLike) -> Array:
    """Distance at periapsis, ``a (1 - e)``; valid for both orbit classes.

    Args:
        a: Semi-major axis (signed). Units: *m*
        e: Eccentricity. Dimensionless.

    Returns:
        Periapsis distance. Units: *m*
    """
    a = jnp.asarray(a, dtype=get_dtype())
    e = jnp.asarray(e, dtype=get_dtype())
    return a * (1.0 - e)


def apoapsis_distance(a: ArrayLike, e: ArrayLike) -> Array:
    """Distance at apoapsis, ``a (1 + e)``.

    Args:
        a: Semi-major axis. Units: *m*
        e: Eccentricity. Dimensionless.

    Returns:
        Apoapsis distance. Units: *m*. Negative (meaningless) for
        hyperbolic orbits.
    """
    a = jnp.asarray(a, dtype=get_dtype())
    e = jnp.asarray(e, dtype=get_dtype())
    return a * (1.0 + e)


# ──────────────────────────────────────────────
# Sphere of influence
# ──────────────────────────────────────────────


def sphere_of_influence(r: ArrayLike, m_small: ArrayLike, m_large: ArrayLike) -> Array:
    """Laplace sphere-of-influence radius, ``r (m_small / m_large)^(2/5)``.

    Valid when ``m_small`` is much smaller than ``m_large``.

    Args:
        r: Distance between the two bodies. Units: *m*
        m_small: Mass of the orbiting body. Units: *kg*
        m_large: Mass of the central body. Units: *kg*

    Returns:
        Sphere-of-influence radius of the smaller body. Units: *m*

    Examples:
        ```python
        from keplerjax.constants import AU
        from keplerjax.orbits import sphere_of_influence
        r_soi = sphere_of_influence(AU, 5.972e24, 1.989e30)
        ```
    """
    r = jnp.asarray(r, dtype=get_dtype())
    m_small = jnp.asarray(m_small, dtype=get_dtype())
    m_large = jnp.asarray(m_large, dtype=get_dtype())
    return r * (m_small / m_large) ** (2.0 / 5.0)


soi = sphere_of_influence
