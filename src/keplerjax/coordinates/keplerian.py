"""Keplerian orbital element ↔ Cartesian state vector conversions.

Converts between :class:`~keplerjax.KeplerianElements` and
:class:`~keplerjax.StateVectors` about a central body of given mass.

Forward (elements → state): the mean anomaly is advanced to the requested
epoch, Kepler's equation is solved for the true anomaly, and the
perifocal position and velocity are rotated into the inertial frame by
the 3-1-3 sequence ``Rz(Omega) Rx(i) Rz(omega)``.  The same rotation is
used by the apsis and node helpers.

Inverse (state → elements): angular momentum, node and eccentricity
vectors.  Circular and equatorial orbits, where some angles are
undefined, are classified up front by :func:`classify_geometry` and
resolved with fixed defaults:

| Geometry                | Omega      | omega | nu measured from |
|-------------------------|------------|-------|------------------|
| ``GENERAL``             | node line  | e_vec | e_vec            |
| ``CIRCULAR``            | node line  | 0     | node line        |
| ``EQUATORIAL``          | 0          | e_vec | e_vec            |
| ``CIRCULAR_EQUATORIAL`` | 0          | 0     | inertial X       |

References:
    1. H. Curtis, *Orbital Mechanics for Engineering Students*, Alg. 4.2, 4.5.
    2. D. Vallado, *Fundamentals of Astrodynamics and Applications
       (4th Ed.)*, Alg. 9, 10, 2010.
"""

from __future__ import annotations

import enum
import logging

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from keplerjax._types import KeplerianElements, StateVectors
from keplerjax.config import get_degeneracy_epsilon, get_dtype
from keplerjax.constants import PI, TWO_PI
from keplerjax.orbits import anomaly
from keplerjax.orbits.keplerian import standard_gravitational_parameter
from keplerjax.rotations import rotation_perifocal_to_inertial
from keplerjax.utils import clamped_arccos, wrap_to_2pi

logger = logging.getLogger(__name__)


def _check_tolerance(tolerance: float) -> None:
    if not tolerance > 0.0:
        raise ValueError(f"tolerance must be strictly positive, got {tolerance}")


# ──────────────────────────────────────────────
# Elements → state
# ──────────────────────────────────────────────


def specific_angular_momentum(elements: KeplerianElements, mass: ArrayLike) -> Array:
    """Specific angular momentum ``h = sqrt(mu a (1 - e^2))``.

    With the negative semi-major axis convention for hyperbolic orbits the
    same expression equals ``sqrt(mu |a| (e^2 - 1))``.

    Args:
        elements: Orbital elements.
        mass: Central body mass. Units: *kg*

    Returns:
        Specific angular momentum. Units: *m^2/s*
    """
    mu = standard_gravitational_parameter(mass)
    a = jnp.asarray(elements.semi_major_axis, dtype=get_dtype())
    e = jnp.asarray(elements.eccentricity, dtype=get_dtype())
    return jnp.sqrt(mu * a * (1.0 - e**2))


def perifocal_to_inertial(elements: KeplerianElements, perifocal: ArrayLike) -> Array:
    """Rotate a perifocal-frame vector into the inertial frame.

    Args:
        elements: Orbital elements providing ``Omega``, ``i`` and ``omega``.
        perifocal: Vector in the perifocal frame.

    Returns:
        The vector in the inertial frame.
    """
    R = rotation_perifocal_to_inertial(
        elements.raan, elements.inclination, elements.argument_of_periapsis
    )
    return R @ jnp.asarray(perifocal, dtype=get_dtype())


def position_at_true_anomaly(elements: KeplerianElements, mass: ArrayLike, nu: ArrayLike) -> Array:
    """Inertial position at a given true anomaly.

    Args:
        elements: Orbital elements.
        mass: Central body mass. Units: *kg*
        nu: True anomaly. Units: *rad*

    Returns:
        Position ``[x, y, z]``. Units: *m*

    Examples:
        ```python
        from keplerjax import KeplerianElements
        from keplerjax.constants import G
        from keplerjax.coordinates import position_at_true_anomaly
        oe = KeplerianElements(0.0, 1.0, 0.0, 0.0, 0.0, 0.0)
        position_at_true_anomaly(oe, 1.0 / G, 0.0)  # [1, 0, 0]
        ```
    """
    mu = standard_gravitational_parameter(mass)
    h = specific_angular_momentum(elements, mass)
    e = jnp.asarray(elements.eccentricity, dtype=get_dtype())
    nu = jnp.asarray(nu, dtype=get_dtype())

    r = (h**2 / mu) / (1.0 + e * jnp.cos(nu))

    # Perifocal coordinates
    p = r * jnp.cos(nu)
    q = r * jnp.sin(nu)

    return perifocal_to_inertial(elements, jnp.array([p, q, 0.0]))


def velocity_at_true_anomaly(elements: KeplerianElements, mass: ArrayLike, nu: ArrayLike) -> Array:
    """Inertial velocity at a given true anomaly.

    Args:
        elements: Orbital elements.
        mass: Central body mass. Units: *kg*
        nu: True anomaly. Units: *rad*

    Returns:
        Velocity ``[vx, vy, vz]``. Units: *m/s*
    """
    mu = standard_gravitational_parameter(mass)
    h = specific_angular_momentum(elements, mass)
    e = jnp.asarray(elements.eccentricity, dtype=get_dtype())
    nu = jnp.asarray(nu, dtype=get_dtype())

    vp = -(mu / h) * jnp.sin(nu)
    vq = (mu / h) * (e + jnp.cos(nu))

    return perifocal_to_inertial(elements, jnp.array([vp, vq, 0.0]))


def mean_anomaly_at(elements: KeplerianElements, mass: ArrayLike, epoch: ArrayLike) -> Array:
    """Mean anomaly (elliptic or hyperbolic) at *epoch*.

    Args:
        elements: Orbital elements.
        mass: Central body mass. Units: *kg*
        epoch: Evaluation time. Units: *s*

    Returns:
        Mean anomaly. Units: *rad*
    """
    h = specific_angular_momentum(elements, mass)
    n = anomaly.mean_motion(h, elements.eccentricity, mass)
    return anomaly.mean_anomaly_at(elements.mean_anomaly_at_epoch, n, elements.epoch, epoch)


def true_anomaly_at_epoch(
    elements: KeplerianElements, mass: ArrayLike, epoch: ArrayLike, tolerance: float
) -> Array:
    """True anomaly at *epoch*, solving Kepler's equation.

    Args:
        elements: Orbital elements.
        mass: Central body mass. Units: *kg*
        epoch: Evaluation time. Units: *s*
        tolerance: Absolute tolerance of the anomaly solve. Units: *rad*

    Returns:
        True anomaly. Units: *rad*

    Raises:
        ConvergenceError: If the anomaly solve exceeds its iteration cap.
        ValueError: If *tolerance* is not strictly positive.
    """
    _check_tolerance(tolerance)
    M = mean_anomaly_at(elements, mass, epoch)
    return anomaly.true_anomaly_from_mean(M, elements.eccentricity, tolerance)


def state_at_epoch(
    elements: KeplerianElements, mass: ArrayLike, epoch: ArrayLike, tolerance: float
) -> StateVectors:
    """Convert Keplerian elements to a state vector at *epoch*.

    Args:
        elements: Orbital elements.
        mass: Central body mass. Units: *kg*
        epoch: Evaluation time. Units: *s*
        tolerance: Absolute tolerance of the anomaly solve. Units: *rad*

    Returns:
        StateVectors: Position and velocity in the inertial frame.

    Raises:
        ConvergenceError: If the anomaly solve exceeds its iteration cap.
        ValueError: If *tolerance* is not strictly positive.

    Examples:
        ```python
        from keplerjax import KeplerianElements, state_at_epoch
        oe = KeplerianElements(0.1, 7.0e6, 0.5, 1.0, 0.3, 0.0, epoch=0.0)
        sv = state_at_epoch(oe, 5.972e24, 600.0, 1e-8)
        ```
    """
    nu = true_anomaly_at_epoch(elements, mass, epoch, tolerance)
    return StateVectors(
        position=position_at_true_anomaly(elements, mass, nu),
        velocity=velocity_at_true_anomaly(elements, mass, nu),
    )


# ──────────────────────────────────────────────
# Apsides, nodes and orbit normal
# ──────────────────────────────────────────────


def periapsis(elements: KeplerianElements, mass: ArrayLike) -> Array:
    """Inertial position of periapsis (``nu = 0``)."""
    return position_at_true_anomaly(elements, mass, 0.0)


def apoapsis(elements: KeplerianElements, mass: ArrayLike) -> Array:
    """Inertial position of apoapsis (``nu = pi``).

    Non-finite or meaningless for hyperbolic orbits, which have no apoapsis.
    """
    return position_at_true_anomaly(elements, mass, PI)


def ascending_node(elements: KeplerianElements, mass: ArrayLike) -> Array:
    """Inertial position of the ascending node (``nu = -omega``)."""
    return position_at_true_anomaly(elements, mass, -jnp.asarray(elements.argument_of_periapsis))


def descending_node(elements: KeplerianElements, mass: ArrayLike) -> Array:
    """Inertial position of the descending node (``nu = pi - omega``)."""
    return position_at_true_anomaly(
        elements, mass, PI - jnp.asarray(elements.argument_of_periapsis)
    )


def orbit_normal(elements: KeplerianElements) -> Array:
    """Unit normal of the orbital plane (direction of the angular momentum)."""
    return perifocal_to_inertial(elements, jnp.array([0.0, 0.0, 1.0]))


# ──────────────────────────────────────────────
# State → elements
# ──────────────────────────────────────────────


class OrbitGeometry(enum.Enum):
    """Degenerate-geometry tag used by :func:`elements_from_state`."""

    GENERAL = "general"
    CIRCULAR = "circular"
    EQUATORIAL = "equatorial"
    CIRCULAR_EQUATORIAL = "circular_equatorial"

    @property
    def is_circular(self) -> bool:
        return self in (OrbitGeometry.CIRCULAR, OrbitGeometry.CIRCULAR_EQUATORIAL)

    @property
    def is_equatorial(self) -> bool:
        return self in (OrbitGeometry.EQUATORIAL, OrbitGeometry.CIRCULAR_EQUATORIAL)


def _orbit_vectors(state: StateVectors, mu: Array) -> tuple[Array, Array, Array, Array, Array]:
    r_vec = jnp.asarray(state.position, dtype=get_dtype())
    v_vec = jnp.asarray(state.velocity, dtype=get_dtype())
    r = jnp.linalg.norm(r_vec)
    v = jnp.linalg.norm(v_vec)

    # Angular momentum, normal to the orbital plane
    h_vec = jnp.cross(r_vec, v_vec)

    # Node vector, along the line of nodes toward the ascending node
    n_vec = jnp.cross(jnp.array([0.0, 0.0, 1.0], dtype=r_vec.dtype), h_vec)

    e_vec = ((v**2 - mu / r) * r_vec - jnp.dot(r_vec, v_vec) * v_vec) / mu
    return r_vec, v_vec, h_vec, n_vec, e_vec


def classify_geometry(state: StateVectors, mass: ArrayLike) -> OrbitGeometry:
    """Classify a state as general, circular, equatorial or both.

    An orbit is circular when its eccentricity is below
    :func:`~keplerjax.config.get_degeneracy_epsilon`, and equatorial when
    the node vector is shorter than that fraction of the angular momentum
    (``sin(i) < eps``, prograde or retrograde).

    Args:
        state: Position and velocity relative to the central body.
        mass: Central body mass. Units: *kg*

    Returns:
        OrbitGeometry: The geometry tag.
    """
    mu = standard_gravitational_parameter(mass)
    _, _, h_vec, n_vec, e_vec = _orbit_vectors(state, mu)
    eps = get_degeneracy_epsilon()

    circular = bool(jnp.linalg.norm(e_vec) < eps)
    equatorial = bool(jnp.linalg.norm(n_vec) < eps * jnp.linalg.norm(h_vec))

    if circular and equatorial:
        return OrbitGeometry.CIRCULAR_EQUATORIAL
    if circular:
        return OrbitGeometry.CIRCULAR
    if equatorial:
        return OrbitGeometry.EQUATORIAL
    return OrbitGeometry.GENERAL


def _angle_from(reference: Array, vec: Array, reflect: Array) -> Array:
    """Angle from unit vector *reference* to *vec*, reflected into ``(pi, 2pi)``."""
    angle = clamped_arccos(jnp.dot(reference, vec / jnp.linalg.norm(vec)))
    return jnp.where(reflect, TWO_PI - angle, angle)


def elements_from_state(state: StateVectors, mass: ArrayLike, epoch: ArrayLike) -> KeplerianElements:
    """Convert a state vector to Keplerian elements referenced to *epoch*.

    The returned ``mean_anomaly_at_epoch`` is the mean anomaly of the
    state itself, so ``state_at_epoch(elements_from_state(s, m, t), m, t,
    tol)`` reproduces ``s``.  Degenerate geometry never raises; see the
    module docstring for the defaults.

    Args:
        state: Position and velocity relative to the central body.
        mass: Central body mass. Units: *kg*
        epoch: Time of the state. Units: *s*

    Returns:
        KeplerianElements: Osculating elements.  The semi-major axis is
        negative for hyperbolic states.

    Examples:
        ```python
        import jax.numpy as jnp
        from keplerjax import StateVectors, elements_from_state
        from keplerjax.constants import G
        mass = 5.972e24
        r = 7.0e6
        v = jnp.sqrt(G * mass / r)
        sv = StateVectors(jnp.array([r, 0.0, 0.0]), jnp.array([0.0, v, 0.0]))
        oe = elements_from_state(sv, mass, 0.0)
        ```
    """
    mu = standard_gravitational_parameter(mass)
    r_vec, v_vec, h_vec, n_vec, e_vec = _orbit_vectors(state, mu)
    geometry = classify_geometry(state, mass)
    logger.debug("State classified as %s", geometry.value)

    h = jnp.linalg.norm(h_vec)
    e = jnp.linalg.norm(e_vec)
    retrograde = h_vec[2] < 0.0

    # Inclination
    i = clamped_arccos(h_vec[2] / h)

    # Node direction; the reference X axis stands in when the plane is equatorial
    if geometry.is_equatorial:
        n_hat = jnp.array([1.0, 0.0, 0.0], dtype=r_vec.dtype)
        raan = jnp.zeros_like(i)
    else:
        n_hat = n_vec / jnp.linalg.norm(n_vec)
        raan = _angle_from(jnp.array([1.0, 0.0, 0.0], dtype=r_vec.dtype), n_hat, n_hat[1] < 0.0)

    # Argument of periapsis. In the equatorial plane e_vec.z vanishes and the
    # quadrant comes from e_vec.y, mirrored for retrograde orbits.
    if geometry.is_circular:
        omega = jnp.zeros_like(i)
    elif geometry.is_equatorial:
        omega = _angle_from(n_hat, e_vec, (e_vec[1] < 0.0) != retrograde)
    else:
        omega = _angle_from(n_hat, e_vec, e_vec[2] < 0.0)

    # True anomaly. For circular orbits it is measured from the node direction
    # (argument of latitude, or true longitude when also equatorial).
    if geometry.is_circular:
        if geometry.is_equatorial:
            reflect = (r_vec[1] < 0.0) != retrograde
        else:
            reflect = r_vec[2] < 0.0
        nu = _angle_from(n_hat, r_vec, reflect)
    else:
        nu = _angle_from(e_vec / e, r_vec, jnp.dot(r_vec, v_vec) < 0.0)

    # Semi-major axis, negative for hyperbolic orbits
    p = h**2 / mu
    a = p / (1.0 - e**2)

    M = anomaly.mean_anomaly_from_true(nu, e)

    return KeplerianElements(
        eccentricity=e,
        semi_major_axis=a,
        inclination=i,
        raan=wrap_to_2pi(raan),
        argument_of_periapsis=wrap_to_2pi(omega),
        mean_anomaly_at_epoch=M,
        epoch=epoch,
    )
