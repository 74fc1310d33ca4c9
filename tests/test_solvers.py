"""Tests for the Newton-Raphson root solver."""

import math

import jax
import jax.numpy as jnp
import pytest

from keplerjax.errors import ConvergenceError
from keplerjax.solvers import NewtonResult, check_convergence, newton_raphson, solve_newton


def _square(x):
    return x**2 - 2.0


def _square_prime(x):
    return 2.0 * x


class TestNewtonRaphson:
    def test_sqrt_two(self):
        root = solve_newton(_square, _square_prime, 1.0, 1e-12, 50)
        assert jnp.abs(root - math.sqrt(2.0)) < 1e-12

    def test_result_fields(self):
        result = newton_raphson(_square, _square_prime, 1.0, 1e-12, 50)
        assert isinstance(result, NewtonResult)
        assert bool(result.converged)
        assert 0 < int(result.iterations) < 50

    def test_exact_initial_guess_converges_in_one_step(self):
        result = newton_raphson(lambda x: x - 3.0, lambda x: jnp.ones_like(x), 3.0, 1e-12, 10)
        assert bool(result.converged)
        assert int(result.iterations) == 1
        assert float(result.root) == 3.0

    def test_deterministic(self):
        a = solve_newton(jnp.cos, lambda x: -jnp.sin(x), 1.0, 1e-12, 50)
        b = solve_newton(jnp.cos, lambda x: -jnp.sin(x), 1.0, 1e-12, 50)
        assert float(a) == float(b)

    def test_jit_compatible(self):
        solve = jax.jit(lambda x0: newton_raphson(_square, _square_prime, x0, 1e-12, 50).root)
        assert jnp.abs(solve(3.0) - math.sqrt(2.0)) < 1e-12

    def test_vmap_compatible(self):
        x0 = jnp.array([1.0, 2.0, 5.0])
        roots = jax.vmap(lambda x: newton_raphson(_square, _square_prime, x, 1e-12, 50).root)(x0)
        assert jnp.all(jnp.abs(roots - math.sqrt(2.0)) < 1e-12)

    def test_relative_step_scales_with_root(self):
        result = newton_raphson(lambda x: x**2 - 2.0e24, lambda x: 2.0 * x, 1.0e12, 1e-12, 50, relative=True)
        assert bool(result.converged)
        assert jnp.abs(result.root - math.sqrt(2.0) * 1e12) / (math.sqrt(2.0) * 1e12) < 1e-12

    def test_relative_step_matches_absolute_below_one(self):
        absolute = newton_raphson(lambda x: x**2 - 0.25, lambda x: 2.0 * x, 1.0, 1e-12, 50)
        relative = newton_raphson(lambda x: x**2 - 0.25, lambda x: 2.0 * x, 1.0, 1e-12, 50, relative=True)
        assert int(relative.iterations) == int(absolute.iterations)
        assert float(relative.root) == float(absolute.root)


class TestConvergenceFailure:
    def test_no_real_root_raises(self):
        with pytest.raises(ConvergenceError):
            solve_newton(lambda x: x**2 + 1.0, lambda x: 2.0 * x, 0.5, 1e-12, 50)

    def test_cap_reported(self):
        result = newton_raphson(lambda x: x**2 + 1.0, lambda x: 2.0 * x, 0.5, 1e-12, 50)
        assert not bool(result.converged)
        assert int(result.iterations) == 50

    def test_nan_guess_raises(self):
        with pytest.raises(ConvergenceError):
            solve_newton(_square, _square_prime, float("nan"), 1e-12, 20)

    def test_error_attributes(self):
        result = newton_raphson(lambda x: x**2 + 1.0, lambda x: 2.0 * x, 0.5, 1e-12, 25)
        with pytest.raises(ConvergenceError) as excinfo:
            check_convergence(result, 0.5)
        assert excinfo.value.iterations == 25
        assert excinfo.value.x0 == 0.5
        assert "25 iterations" in str(excinfo.value)
