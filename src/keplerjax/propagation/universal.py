"""Universal-variable Kepler propagation.

Advances a state vector by an arbitrary (signed) time step using the
universal anomaly ``x`` and the Stumpff coefficients ``c2(psi)`` and
``c3(psi)``.  The same Newton iteration covers elliptic, parabolic and
hyperbolic motion; only the initial guess depends on the orbit regime.

The iteration itself runs in a ``jax.jit``-compiled kernel built on
:func:`keplerjax.solvers.newton_raphson`; :func:`propagate` checks the
kernel's convergence flag and the finiteness of the result on the eager
side and raises accordingly.

References:
    1. D. Vallado, *Fundamentals of Astrodynamics and Applications
       (4th Ed.)*, Alg. 8 (KEPLER), 2010.
    2. H. Curtis, *Orbital Mechanics for Engineering Students*, Sec. 3.7.
"""

from __future__ import annotations

import logging
import math
from functools import partial
from typing import NamedTuple

import jax
import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from keplerjax._types import StateVectors
from keplerjax.config import get_default_tolerance, get_dtype
from keplerjax.constants import (
    MAX_PROPAGATION_ITERATIONS,
    PARABOLIC_ALPHA_EPSILON,
    STUMPFF_EPSILON,
)
from keplerjax.errors import ConvergenceError, KeplerError, PropagationError
from keplerjax.orbits.keplerian import (
    orbital_period,
    semimajor_axis_from_state,
    standard_gravitational_parameter,
)
from keplerjax.solvers import newton_raphson

logger = logging.getLogger(__name__)


class UniversalSolution(NamedTuple):
    """Output of the universal-variable kernel.

    Attributes:
        position: Propagated position.
        velocity: Propagated velocity.
        x0: Initial guess of the universal anomaly.
        x: Converged universal anomaly.
        iterations: Newton iterations performed.
        converged: Whether the Newton loop met its tolerance.
    """

    position: Array
    velocity: Array
    x0: Array
    x: Array
    iterations: Array
    converged: Array


# Power-series coefficients, c2 = sum (-psi)^k / (2k+2)!, c3 = sum (-psi)^k / (2k+3)!
_C2_SERIES = tuple((-1) ** k / math.factorial(2 * k + 2) for k in range(6))
_C3_SERIES = tuple((-1) ** k / math.factorial(2 * k + 3) for k in range(6))


def _horner(psi: Array, coefficients: tuple[float, ...]) -> Array:
    result = jnp.full_like(psi, coefficients[-1])
    for c in reversed(coefficients[:-1]):
        result = result * psi + c
    return result


def stumpff_c2c3(psi: ArrayLike) -> tuple[Array, Array]:
    """Stumpff coefficients ``c2(psi)`` and ``c3(psi)``.

    Three branches: circular functions for ``psi > eps``, hyperbolic
    functions for ``psi < -eps`` and the power series in between, where
    the closed forms divide by a vanishing ``psi`` and lose their leading
    digits to cancellation.  With ``eps = 1e-2`` the truncated series is
    exact to double precision across the band.

    Args:
        psi: ``x^2 * alpha``. Dimensionless.

    Returns:
        tuple: ``(c2, c3)``.
    """
    psi = jnp.asarray(psi, dtype=get_dtype())
    positive = psi > STUMPFF_EPSILON
    negative = psi < -STUMPFF_EPSILON
    regular = positive | negative

    # Substitute harmless values in the series band so no branch divides by zero
    safe_psi = jnp.where(regular, psi, 1.0)
    sq = jnp.sqrt(jnp.abs(safe_psi))

    # 1 - cos(s) = 2 sin^2(s/2) and cosh(s) - 1 = 2 sinh^2(s/2) avoid cancellation
    c2_pos = 2.0 * jnp.sin(sq / 2.0) ** 2 / safe_psi
    c3_pos = (sq - jnp.sin(sq)) / sq**3
    c2_neg = -2.0 * jnp.sinh(sq / 2.0) ** 2 / safe_psi
    c3_neg = (jnp.sinh(sq) - sq) / sq**3

    c2 = jnp.where(positive, c2_pos, jnp.where(negative, c2_neg, _horner(psi, _C2_SERIES)))
    c3 = jnp.where(positive, c3_pos, jnp.where(negative, c3_neg, _horner(psi, _C3_SERIES)))
    return c2, c3


def _initial_guess(r0_vec: Array, v0_vec: Array, dt: Array, mu: Array, alpha: Array) -> Array:
    sqrt_mu = jnp.sqrt(mu)
    r0 = jnp.linalg.norm(r0_vec)
    rdotv = jnp.dot(r0_vec, v0_vec)
    scaled_alpha = alpha * r0

    # Elliptic
    x_ell = sqrt_mu * dt * alpha

    # Hyperbolic
    a = 1.0 / jnp.where(scaled_alpha < -PARABOLIC_ALPHA_EPSILON, alpha, -1.0)
    sign = jnp.sign(dt)
    x_hyp = (
        sign
        * jnp.sqrt(-a)
        * jnp.log(
            (-2.0 * mu * alpha * dt)
            / (rdotv + sign * jnp.sqrt(-mu * a) * (1.0 - r0 * alpha))
        )
    )

    # Parabolic (Barker's equation)
    h = jnp.linalg.norm(jnp.cross(r0_vec, v0_vec))
    p = h**2 / mu
    s = 0.5 * jnp.arctan(1.0 / (3.0 * jnp.sqrt(mu / p**3) * dt))
    w = jnp.arctan(jnp.cbrt(jnp.tan(s)))
    x_par = jnp.sqrt(p) * 2.0 / jnp.tan(2.0 * w)

    x0 = jnp.where(
        scaled_alpha > PARABOLIC_ALPHA_EPSILON,
        x_ell,
        jnp.where(scaled_alpha < -PARABOLIC_ALPHA_EPSILON, x_hyp, x_par),
    )
    # The closed-form seeds break down for some geometries; fall back to the
    # first-order estimate x ~ sqrt(mu) dt / r0.
    return jnp.where(jnp.isfinite(x0), x0, sqrt_mu * dt / r0)


@partial(jax.jit, static_argnames=("max_iter",))
def propagate_kernel(
    r0_vec: ArrayLike,
    v0_vec: ArrayLike,
    dt: ArrayLike,
    mu: ArrayLike,
    tol: ArrayLike,
    max_iter: int = MAX_PROPAGATION_ITERATIONS,
) -> UniversalSolution:
    """JAX-traceable universal-variable propagation.

    Does not raise; callers must inspect ``converged`` and the finiteness
    of the output.

    Args:
        r0_vec: Initial position. Units: *m*
        v0_vec: Initial velocity. Units: *m/s*
        dt: Time step, either sign. Units: *s*
        mu: Gravitational parameter. Units: *m^3/s^2*
        tol: Tolerance on the universal anomaly step, relative to
            ``max(1, |x|)``.
        max_iter: Iteration cap.

    Returns:
        UniversalSolution: Propagated state and solver diagnostics.
    """
    r0_vec = jnp.asarray(r0_vec, dtype=get_dtype())
    v0_vec = jnp.asarray(v0_vec, dtype=get_dtype())
    dt = jnp.asarray(dt, dtype=get_dtype())
    mu = jnp.asarray(mu, dtype=get_dtype())

    sqrt_mu = jnp.sqrt(mu)
    r0 = jnp.linalg.norm(r0_vec)
    v0 = jnp.linalg.norm(v0_vec)
    rdotv = jnp.dot(r0_vec, v0_vec)

    # Reciprocal semi-major axis from vis-viva
    alpha = 2.0 / r0 - v0**2 / mu

    # Whole revolutions of a bound orbit do not change the state
    period = 2.0 * jnp.pi / jnp.sqrt(mu * jnp.where(alpha > 0.0, alpha, 1.0) ** 3)
    bound = alpha * r0 > PARABOLIC_ALPHA_EPSILON
    dt = jnp.where(bound & (jnp.abs(dt) > period), jnp.fmod(dt, period), dt)

    def terms(x):
        psi = x**2 * alpha
        c2, c3 = stumpff_c2c3(psi)
        r = x**2 * c2 + rdotv / sqrt_mu * x * (1.0 - psi * c3) + r0 * (1.0 - psi * c2)
        return psi, c2, c3, r

    def residual(x):
        psi, c2, c3, _ = terms(x)
        return (
            x**3 * c3
            + rdotv / sqrt_mu * x**2 * c2
            + r0 * x * (1.0 - psi * c3)
            - sqrt_mu * dt
        )

    def residual_prime(x):
        return terms(x)[3]

    x0 = _initial_guess(r0_vec, v0_vec, dt, mu, alpha)
    x, iterations, converged = newton_raphson(residual, residual_prime, x0, tol, max_iter, relative=True)
    psi, c2, c3, r = terms(x)

    # Lagrange coefficients
    f = 1.0 - x**2 / r0 * c2
    g = dt - x**3 / sqrt_mu * c3
    g_dot = 1.0 - x**2 / r * c2
    f_dot = sqrt_mu / (r * r0) * x * (psi * c3 - 1.0)

    return UniversalSolution(
        position=f * r0_vec + g * v0_vec,
        velocity=f_dot * r0_vec + g_dot * v0_vec,
        x0=x0,
        x=x,
        iterations=iterations,
        converged=converged,
    )


def _check_solution(solution: UniversalSolution, state: StateVectors, dt: float) -> StateVectors:
    if not bool(solution.converged):
        raise ConvergenceError(
            int(solution.iterations), float(solution.x0), float(solution.x), what="Universal-variable Kepler"
        )
    result = StateVectors(position=solution.position, velocity=solution.velocity)
    if not bool(jnp.all(jnp.isfinite(result.to_array()))):
        raise PropagationError(state, dt)
    return result


def propagate(
    state: StateVectors, dt: ArrayLike, mass: ArrayLike, tolerance: float | None = None
) -> StateVectors:
    """Advance a state vector by ``dt`` under two-body motion.

    Args:
        state: Initial position and velocity relative to the central body.
        dt: Elapsed time, positive or negative. Units: *s*
        mass: Central body mass. Units: *kg*
        tolerance: Relative tolerance on the universal anomaly step.
            Must be strictly positive. Defaults to
            :func:`~keplerjax.config.get_default_tolerance`.

    Returns:
        StateVectors: The state ``dt`` later.

    Raises:
        ConvergenceError: If the Newton loop exceeds 500 iterations.
        PropagationError: If the propagated state has non-finite
            components.
        ValueError: If *tolerance* is not strictly positive.

    Examples:
        ```python
        import jax.numpy as jnp
        from keplerjax import StateVectors, propagate
        sv = StateVectors(jnp.array([7.0e6, 0.0, 0.0]), jnp.array([0.0, 7.5e3, 0.0]))
        later = propagate(sv, 600.0, 5.972e24)
        ```
    """
    if tolerance is None:
        tolerance = get_default_tolerance()
    if not tolerance > 0.0:
        raise ValueError(f"tolerance must be strictly positive, got {tolerance}")

    if float(dt) == 0.0:
        return StateVectors(
            position=jnp.asarray(state.position, dtype=get_dtype()),
            velocity=jnp.asarray(state.velocity, dtype=get_dtype()),
        )

    mu = standard_gravitational_parameter(mass)
    solution = propagate_kernel(state.position, state.velocity, dt, mu, tolerance)
    logger.debug("Universal-variable solve took %d iterations", int(solution.iterations))
    return _check_solution(solution, state, dt)


def try_propagate(
    state: StateVectors, dt: ArrayLike, mass: ArrayLike, tolerance: float | None = None
) -> StateVectors | None:
    """Like :func:`propagate`, but return ``None`` on a numerical failure.

    Intended for callers that abandon a trajectory segment when
    propagation fails.  Invalid arguments still raise ``ValueError``.
    """
    try:
        return propagate(state, dt, mass, tolerance)
    except KeplerError as exc:
        logger.warning("Propagation by dt = %s failed: %s", dt, exc)
        return None


def sample_orbit(
    state: StateVectors, mass: ArrayLike, num_points: int, tolerance: float | None = None
) -> Array:
    """Positions at evenly spaced times over one orbital period.

    Args:
        state: Position and velocity on a bound orbit.
        mass: Central body mass. Units: *kg*
        num_points: Number of samples; the first is *state* itself.
        tolerance: Relative tolerance on the universal anomaly step.
            Defaults to :func:`~keplerjax.config.get_default_tolerance`.

    Returns:
        Array of shape ``(num_points, 3)``. Units: *m*

    Raises:
        ValueError: If the state is not on a bound orbit, *num_points* is
            not positive, or *tolerance* is not strictly positive.
        ConvergenceError: If any sample fails to converge.
        PropagationError: If any sample is non-finite.
    """
    if num_points < 1:
        raise ValueError(f"num_points must be positive, got {num_points}")
    if tolerance is None:
        tolerance = get_default_tolerance()
    if not tolerance > 0.0:
        raise ValueError(f"tolerance must be strictly positive, got {tolerance}")

    a = semimajor_axis_from_state(state, mass)
    if not bool(a > 0.0):
        raise ValueError("sample_orbit requires a bound (elliptic) orbit")

    period = orbital_period(a, mass)
    times = jnp.arange(num_points, dtype=get_dtype()) * period / num_points
    mu = standard_gravitational_parameter(mass)

    batched = jax.vmap(propagate_kernel, in_axes=(None, None, 0, None, None))
    solution = batched(state.position, state.velocity, times, mu, tolerance)

    if not bool(jnp.all(solution.converged)):
        worst = int(jnp.argmax(~solution.converged))
        raise ConvergenceError(
            int(solution.iterations[worst]), float(solution.x0[worst]), float(solution.x[worst]),
            what="Universal-variable Kepler",
        )
    if not bool(jnp.all(jnp.isfinite(solution.position))):
        raise PropagationError(state, float(period))
    return solution.position
