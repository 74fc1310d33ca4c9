"""Newton-Raphson root finding.

:func:`newton_raphson` is the JAX-traceable kernel, built on
``jax.lax.while_loop`` so it can run inside ``jax.jit``.  It reports
whether the stopping test was met instead of raising, because a traced
function cannot raise on a runtime value.  :func:`check_convergence`
turns a non-converged :class:`NewtonResult` into a
:class:`~keplerjax.errors.ConvergenceError` on the eager side.

The stopping test is ``|x_{n+1} - x_n| < tol``, or with ``relative=True``
``|x_{n+1} - x_n| < tol * max(1, |x_{n+1}|)``.  A non-finite iterate
never satisfies it, so NaN input always ends in a convergence failure
rather than a silently returned NaN.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import NamedTuple

import jax
import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from keplerjax.config import get_dtype
from keplerjax.errors import ConvergenceError

logger = logging.getLogger(__name__)


class NewtonResult(NamedTuple):
    """Outcome of a Newton-Raphson solve.

    Attributes:
        root: Last iterate ``x_{n+1}``.
        iterations: Number of iterations performed.
        converged: ``True`` if the stopping test was met within the
            iteration cap.
    """

    root: Array
    iterations: Array
    converged: Array


def newton_raphson(
    f: Callable[[Array], Array],
    f_prime: Callable[[Array], Array],
    x0: ArrayLike,
    tol: ArrayLike,
    max_iter: int,
    relative: bool = False,
) -> NewtonResult:
    """Find a root of ``f`` by Newton-Raphson iteration.

    Iterates ``x_{n+1} = x_n - f(x_n) / f'(x_n)`` until the step size
    drops below ``tol`` or ``max_iter`` iterations have been performed.

    Args:
        f: Residual function.
        f_prime: Derivative of the residual.
        x0: Initial guess.
        tol: Tolerance on the step size. Must be positive.
        max_iter: Maximum number of iterations.
        relative: Scale *tol* by ``max(1, |x_{n+1}|)``, for roots whose
            magnitude depends on the units of the problem.

    Returns:
        NewtonResult: Final iterate, iteration count and convergence flag.
    """
    x0 = jnp.asarray(x0, dtype=get_dtype())
    tol = jnp.asarray(tol, dtype=x0.dtype)

    def cond(carry):
        _, step, i = carry
        return (i < max_iter) & ~(step < tol)

    def body(carry):
        x, _, i = carry
        x_next = (x - f(x) / f_prime(x)).astype(x.dtype)
        step = jnp.abs(x_next - x)
        if relative:
            step = step / jnp.maximum(1.0, jnp.abs(x_next))
        return x_next, step, i + 1

    init = (x0, jnp.asarray(jnp.inf, dtype=x0.dtype), jnp.asarray(0, dtype=jnp.int32))
    root, step, iterations = jax.lax.while_loop(cond, body, init)
    return NewtonResult(root=root, iterations=iterations, converged=step < tol)


def check_convergence(result: NewtonResult, x0: ArrayLike, what: str = "Newton-Raphson") -> Array:
    """Return the root of a converged solve or raise.

    Args:
        result: Output of :func:`newton_raphson`.
        x0: Initial guess, reported in the error message.
        what: Name of the solve, reported in the error message.

    Returns:
        The converged root.

    Raises:
        ConvergenceError: If the solve hit its iteration cap.
    """
    if not bool(result.converged):
        raise ConvergenceError(
            int(result.iterations), float(jnp.asarray(x0)), float(result.root), what=what
        )
    logger.debug("%s converged in %d iterations", what, int(result.iterations))
    return result.root


def solve_newton(
    f: Callable[[Array], Array],
    f_prime: Callable[[Array], Array],
    x0: ArrayLike,
    tol: ArrayLike,
    max_iter: int,
) -> Array:
    """Eager Newton-Raphson solve that raises on failure.

    Args:
        f: Residual function.
        f_prime: Derivative of the residual.
        x0: Initial guess.
        tol: Absolute tolerance on the step size.
        max_iter: Maximum number of iterations.

    Returns:
        The root.

    Raises:
        ConvergenceError: If ``max_iter`` is exceeded.

    Examples:
        ```python
        import jax.numpy as jnp
        from keplerjax.solvers import solve_newton
        solve_newton(lambda x: x**2 - 2.0, lambda x: 2.0 * x, 1.0, 1e-6, 50)
        ```
    """
    return check_convergence(newton_raphson(f, f_prime, x0, tol, max_iter), x0)
