"""Tests for the universal-variable propagator."""

import logging
import math

import jax
import jax.numpy as jnp
import pytest

from keplerjax import KeplerianElements, StateVectors, state_at_epoch
from keplerjax.constants import G
from keplerjax.errors import ConvergenceError, KeplerError, PropagationError
from keplerjax.orbits import orbital_period
from keplerjax.propagation import (
    UniversalSolution,
    propagate,
    propagate_kernel,
    sample_orbit,
    stumpff_c2c3,
    try_propagate,
)
from keplerjax.propagation import universal

MASS_EARTH = 5.972e24
MU_EARTH = G * MASS_EARTH
R_LEO = 7.0e6

_POS_TOL = 1.0
_VEL_TOL = 1e-3


def _circular_state(r=R_LEO):
    v = math.sqrt(MU_EARTH / r)
    return StateVectors(jnp.array([r, 0.0, 0.0]), jnp.array([0.0, v, 0.0]))


def _assert_states_close(a, b, pos_tol=_POS_TOL, vel_tol=_VEL_TOL):
    assert jnp.linalg.norm(a.position - b.position) < pos_tol
    assert jnp.linalg.norm(a.velocity - b.velocity) < vel_tol


class TestStumpff:
    def test_zero(self):
        c2, c3 = stumpff_c2c3(0.0)
        assert c2 == 0.5
        assert c3 == 1.0 / 6.0

    def test_positive(self):
        c2, c3 = stumpff_c2c3(math.pi**2)
        assert jnp.abs(c2 - 2.0 / math.pi**2) < 1e-14
        assert jnp.abs(c3 - 1.0 / math.pi**2) < 1e-14

    def test_negative(self):
        c2, c3 = stumpff_c2c3(-1.0)
        assert jnp.abs(c2 - (math.cosh(1.0) - 1.0)) < 1e-14
        assert jnp.abs(c3 - (math.sinh(1.0) - 1.0)) < 1e-14

    @pytest.mark.parametrize("psi", [-1.1e-2, -9e-3, 9e-3, 1.1e-2])
    def test_series_matches_closed_form_at_band_edge(self, psi):
        s = math.sqrt(abs(psi))
        if psi > 0.0:
            c2_ref, c3_ref = (1.0 - math.cos(s)) / psi, (s - math.sin(s)) / s**3
        else:
            c2_ref, c3_ref = (math.cosh(s) - 1.0) / -psi, (math.sinh(s) - s) / s**3
        c2, c3 = stumpff_c2c3(psi)
        assert abs(float(c2) - c2_ref) / c2_ref < 1e-10
        assert abs(float(c3) - c3_ref) / c3_ref < 1e-10

    @pytest.mark.parametrize("psi", [-2e-6, -1e-9, 1e-9, 2e-6])
    def test_no_cancellation_near_zero(self, psi):
        c2, c3 = stumpff_c2c3(psi)
        assert abs(float(c2) - (0.5 - psi / 24.0 + psi**2 / 720.0)) < 1e-15
        assert abs(float(c3) - (1.0 / 6.0 - psi / 120.0 + psi**2 / 5040.0)) < 1e-15

    def test_vectorized(self):
        c2, c3 = stumpff_c2c3(jnp.array([-4.0, 0.0, 4.0]))
        assert c2.shape == (3,)
        assert jnp.all(jnp.isfinite(c2))
        assert jnp.all(jnp.isfinite(c3))

    def test_gradient_finite_at_zero(self):
        grad = jax.grad(lambda p: stumpff_c2c3(p)[0])(0.0)
        assert jnp.isfinite(grad)


class TestPropagateElliptic:
    def test_quarter_period(self):
        period = float(orbital_period(R_LEO, MASS_EARTH))
        sv = propagate(_circular_state(), period / 4.0, MASS_EARTH)
        assert jnp.allclose(sv.position, jnp.array([0.0, R_LEO, 0.0]), atol=_POS_TOL)

    def test_full_period(self):
        state = _circular_state()
        period = float(orbital_period(R_LEO, MASS_EARTH))
        _assert_states_close(propagate(state, period, MASS_EARTH), state)

    def test_many_revolutions(self):
        period = float(orbital_period(R_LEO, MASS_EARTH))
        sv = propagate(_circular_state(), 10.25 * period, MASS_EARTH)
        assert jnp.allclose(sv.position, jnp.array([0.0, R_LEO, 0.0]), atol=10.0)

    @pytest.mark.parametrize("dt", [60.0, 1800.0, -900.0, 20000.0])
    def test_matches_elements(self, dt):
        oe = KeplerianElements(0.3, 1.0e7, 0.8, 2.0, 0.6, 0.4)
        start = state_at_epoch(oe, MASS_EARTH, 0.0, 1e-12)
        expected = state_at_epoch(oe, MASS_EARTH, dt, 1e-12)
        _assert_states_close(propagate(start, dt, MASS_EARTH), expected)

    def test_conserves_energy_and_momentum(self):
        oe = KeplerianElements(0.6, 2.0e7, 1.0, 0.5, 2.5, 1.0)
        start = state_at_epoch(oe, MASS_EARTH, 0.0, 1e-12)
        end = propagate(start, 12345.0, MASS_EARTH)

        def energy(sv):
            return jnp.dot(sv.velocity, sv.velocity) / 2.0 - MU_EARTH / jnp.linalg.norm(sv.position)

        h0 = jnp.cross(start.position, start.velocity)
        h1 = jnp.cross(end.position, end.velocity)
        assert jnp.abs(energy(end) - energy(start)) / jnp.abs(energy(start)) < 1e-9
        assert jnp.linalg.norm(h1 - h0) / jnp.linalg.norm(h0) < 1e-9


class TestPropagateHyperbolic:
    oe = KeplerianElements(1.5, -1.0e7, 0.4, 2.0, 0.7, 0.0)

    def test_matches_elements(self):
        start = state_at_epoch(self.oe, MASS_EARTH, 0.0, 1e-12)
        expected = state_at_epoch(self.oe, MASS_EARTH, 5000.0, 1e-12)
        _assert_states_close(propagate(start, 5000.0, MASS_EARTH), expected)

    def test_matches_elements_far_from_periapsis(self):
        start = state_at_epoch(self.oe, MASS_EARTH, 0.0, 1e-12)
        expected = state_at_epoch(self.oe, MASS_EARTH, 1.0e7, 1e-12)
        end = propagate(start, 1.0e7, MASS_EARTH)
        r = jnp.linalg.norm(expected.position)
        assert jnp.linalg.norm(end.position - expected.position) / r < 1e-6

    def test_escape_radius_increases(self):
        start = state_at_epoch(self.oe, MASS_EARTH, 0.0, 1e-12)
        radii = [
            float(jnp.linalg.norm(propagate(start, dt, MASS_EARTH).position))
            for dt in (1.0e3, 1.0e4, 1.0e5, 1.0e6)
        ]
        assert radii == sorted(radii)
        assert radii[-1] > 1.0e9

    def test_inbound_leg(self):
        start = state_at_epoch(self.oe, MASS_EARTH, 0.0, 1e-12)
        expected = state_at_epoch(self.oe, MASS_EARTH, -3000.0, 1e-12)
        _assert_states_close(propagate(start, -3000.0, MASS_EARTH), expected)


class TestTimeReversal:
    @pytest.mark.parametrize(
        "speed_factor",
        [0.8, 1.0, math.sqrt(2.0) * (1.0 + 1e-9), 2.0],
        ids=["elliptic", "circular", "near-parabolic", "hyperbolic"],
    )
    def test_forward_backward(self, speed_factor):
        v = speed_factor * math.sqrt(MU_EARTH / R_LEO)
        state = StateVectors(jnp.array([R_LEO, 0.0, 0.0]), jnp.array([0.0, v * 0.8, v * 0.6]))
        forward = propagate(state, 5000.0, MASS_EARTH)
        back = propagate(forward, -5000.0, MASS_EARTH)
        _assert_states_close(back, state, 1e-3 * R_LEO / 1e3, 1e-6 * v)

    def test_zero_step_is_identity(self):
        state = _circular_state()
        sv = propagate(state, 0.0, MASS_EARTH)
        assert jnp.array_equal(sv.position, state.position)
        assert jnp.array_equal(sv.velocity, state.velocity)


class TestNearParabolic:
    @staticmethod
    def _state(offset):
        v = math.sqrt(2.0 * MU_EARTH / R_LEO) * (1.0 + offset)
        return StateVectors(jnp.array([R_LEO, 0.0, 0.0]), jnp.array([0.0, v * 0.8, v * 0.6]))

    @pytest.mark.parametrize("offset", [-1e-9, 1e-9], ids=["bound", "unbound"])
    @pytest.mark.parametrize("dt", [1.0e6, 1.0e7, 1.0e8])
    def test_long_step_conserves_integrals(self, offset, dt):
        start = self._state(offset)
        end = propagate(start, dt, MASS_EARTH)

        def energy(sv):
            return jnp.dot(sv.velocity, sv.velocity) / 2.0 - MU_EARTH / jnp.linalg.norm(sv.position)

        h0 = jnp.cross(start.position, start.velocity)
        h1 = jnp.cross(end.position, end.velocity)
        assert jnp.linalg.norm(h1 - h0) / jnp.linalg.norm(h0) < 1e-8
        assert jnp.abs(energy(end) - energy(start)) < 1e-8 * MU_EARTH / R_LEO
        assert jnp.linalg.norm(end.position) > 5.0e8

    @pytest.mark.parametrize("offset", [-1e-9, 1e-9], ids=["bound", "unbound"])
    def test_long_step_reverses(self, offset):
        start = self._state(offset)
        back = propagate(propagate(start, 1.0e6, MASS_EARTH), -1.0e6, MASS_EARTH)
        _assert_states_close(back, start, 10.0, _VEL_TOL)


class TestFailures:
    def test_nan_state_raises_convergence_error(self):
        state = StateVectors(jnp.array([jnp.nan, 0.0, 0.0]), jnp.array([0.0, 7.5e3, 0.0]))
        with pytest.raises(ConvergenceError):
            propagate(state, 100.0, MASS_EARTH)

    def test_non_finite_result_raises_propagation_error(self, monkeypatch):
        def fake_kernel(r0, v0, dt, mu, tol):
            inf = jnp.full(3, jnp.inf)
            zero = jnp.zeros(())
            return UniversalSolution(inf, inf, zero, zero, jnp.array(1), jnp.array(True))

        monkeypatch.setattr(universal, "propagate_kernel", fake_kernel)
        state = _circular_state()
        with pytest.raises(PropagationError) as excinfo:
            propagate(state, 100.0, MASS_EARTH)
        assert excinfo.value.dt == 100.0
        assert excinfo.value.state is state

    def test_errors_share_base(self):
        assert issubclass(ConvergenceError, KeplerError)
        assert issubclass(PropagationError, KeplerError)

    @pytest.mark.parametrize("tolerance", [0.0, -1.0])
    def test_invalid_tolerance(self, tolerance):
        with pytest.raises(ValueError, match="tolerance"):
            propagate(_circular_state(), 100.0, MASS_EARTH, tolerance)

    def test_iteration_cap(self):
        r0 = jnp.array([R_LEO, 0.0, 0.0])
        v0 = jnp.array([0.0, 7.0e3, 1.0e3])
        solution = propagate_kernel(r0, v0, 3000.0, MU_EARTH, 1e-30, max_iter=2)
        assert not bool(solution.converged)
        assert int(solution.iterations) == 2


class TestTryPropagate:
    def test_success(self):
        state = _circular_state()
        _assert_states_close(try_propagate(state, 600.0, MASS_EARTH), propagate(state, 600.0, MASS_EARTH))

    def test_failure_returns_none_and_logs(self, caplog):
        state = StateVectors(jnp.array([jnp.nan, 0.0, 0.0]), jnp.array([0.0, 7.5e3, 0.0]))
        with caplog.at_level(logging.WARNING, logger="keplerjax.propagation.universal"):
            assert try_propagate(state, 100.0, MASS_EARTH) is None
        assert "failed" in caplog.text

    def test_invalid_tolerance_still_raises(self):
        with pytest.raises(ValueError):
            try_propagate(_circular_state(), 100.0, MASS_EARTH, 0.0)


class TestKernel:
    def test_jit_and_vmap(self):
        state = _circular_state()
        dts = jnp.array([100.0, 200.0, 300.0])
        batched = jax.vmap(propagate_kernel, in_axes=(None, None, 0, None, None))
        solution = batched(state.position, state.velocity, dts, MU_EARTH, 1e-10)
        assert solution.position.shape == (3, 3)
        assert bool(jnp.all(solution.converged))
        for k, dt in enumerate(dts):
            expected = propagate(state, float(dt), MASS_EARTH)
            assert jnp.linalg.norm(solution.position[k] - expected.position) < 1e-6


class TestSampleOrbit:
    def test_samples_stay_on_ellipse(self):
        oe = KeplerianElements(0.4, 1.0e7, 0.5, 1.0, 2.0, 0.3)
        state = state_at_epoch(oe, MASS_EARTH, 0.0, 1e-12)
        points = sample_orbit(state, MASS_EARTH, 64)
        assert points.shape == (64, 3)
        assert jnp.allclose(points[0], state.position, atol=1e-6)
        radii = jnp.linalg.norm(points, axis=1)
        assert jnp.all(radii > 6.0e6 - _POS_TOL)
        assert jnp.all(radii < 1.4e7 + _POS_TOL)

    def test_hyperbolic_rejected(self):
        v = 2.0 * math.sqrt(MU_EARTH / R_LEO)
        state = StateVectors(jnp.array([R_LEO, 0.0, 0.0]), jnp.array([0.0, v, 0.0]))
        with pytest.raises(ValueError, match="bound"):
            sample_orbit(state, MASS_EARTH, 16)

    def test_invalid_count(self):
        with pytest.raises(ValueError, match="num_points"):
            sample_orbit(_circular_state(), MASS_EARTH, 0)
