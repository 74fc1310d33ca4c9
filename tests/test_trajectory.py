"""Tests for patched-conic trajectories."""

import logging
import math

import jax.numpy as jnp
import pytest

from keplerjax import KeplerianElements, StateVectors, propagate
from keplerjax.constants import AU, G
from keplerjax.trajectory import (
    BodySystem,
    CelestialBody,
    TrajectoryConfig,
    TrajectorySegment,
    segment_state,
    simulate_trajectory,
)

MASS_SUN = 1.989e30
MASS_EARTH = 5.972e24
MASS_MOON = 7.342e22

_TOL = 1e-10


@pytest.fixture
def system():
    return BodySystem(
        [
            CelestialBody("sun", MASS_SUN),
            CelestialBody("earth", MASS_EARTH, "sun", KeplerianElements(0.0, AU, 0.0, 0.0, 0.0, 0.0)),
            CelestialBody(
                "moon", MASS_MOON, "earth", KeplerianElements(0.0, 3.844e8, 0.09, 0.0, 0.0, 4.0)
            ),
        ]
    )


class TestCelestialBody:
    def test_root(self):
        body = CelestialBody("sun", MASS_SUN)
        assert body.parent is None
        assert body.elements is None

    @pytest.mark.parametrize("mass", [0.0, -1.0])
    def test_invalid_mass(self, mass):
        with pytest.raises(ValueError, match="mass"):
            CelestialBody("rock", mass)

    def test_parent_requires_elements(self):
        with pytest.raises(ValueError, match="elements"):
            CelestialBody("earth", MASS_EARTH, "sun")


class TestBodySystem:
    def test_lookup(self, system):
        assert len(system) == 3
        assert "earth" in system
        assert "mars" not in system
        assert system["earth"].mass == MASS_EARTH
        assert system.root.name == "sun"
        assert [b.name for b in system] == ["sun", "earth", "moon"]

    def test_unknown_body(self, system):
        with pytest.raises(KeyError, match="Unknown body"):
            system["mars"]
        with pytest.raises(KeyError, match="Unknown body"):
            system.children("mars")

    def test_children(self, system):
        assert [b.name for b in system.children("sun")] == ["earth"]
        assert [b.name for b in system.children("earth")] == ["moon"]
        assert system.children("moon") == []

    def test_root_state_is_zero(self, system):
        sv = system.state_in_parent("sun", 123.0, 1e-10)
        assert jnp.all(sv.position == 0.0)
        assert jnp.all(sv.velocity == 0.0)

    def test_state_in_parent(self, system):
        sv = system.state_in_parent("moon", 0.0, 1e-10)
        assert jnp.abs(jnp.linalg.norm(sv.position) - 3.844e8) < 1e-3

    def test_soi_radius(self, system):
        assert system.soi_radius("sun", 0.0, 1e-10) == math.inf
        assert abs(system.soi_radius("earth", 0.0, 1e-10) - 9.245e8) / 9.245e8 < 1e-3
        assert abs(system.soi_radius("moon", 0.0, 1e-10) - 6.617e7) / 6.617e7 < 1e-3

    def test_duplicate_names(self):
        with pytest.raises(ValueError, match="duplicate"):
            BodySystem([CelestialBody("sun", MASS_SUN), CelestialBody("sun", MASS_SUN)])

    def test_requires_single_root(self):
        with pytest.raises(ValueError, match="root"):
            BodySystem([CelestialBody("sun", MASS_SUN), CelestialBody("vega", MASS_SUN)])
        with pytest.raises(ValueError, match="root"):
            BodySystem([])

    def test_unknown_parent(self):
        oe = KeplerianElements(0.0, AU, 0.0, 0.0, 0.0, 0.0)
        with pytest.raises(ValueError, match="unknown parent"):
            BodySystem([CelestialBody("sun", MASS_SUN), CelestialBody("earth", MASS_EARTH, "sol", oe)])

    def test_cycle(self):
        oe = KeplerianElements(0.0, 1.0e9, 0.0, 0.0, 0.0, 0.0)
        with pytest.raises(ValueError, match="cycle"):
            BodySystem(
                [
                    CelestialBody("sun", MASS_SUN),
                    CelestialBody("a", 1.0e20, "b", oe),
                    CelestialBody("b", 1.0e20, "a", oe),
                ]
            )


class TestTrajectoryConfig:
    def test_defaults(self):
        config = TrajectoryConfig()
        assert config.step > 0.0
        assert config.max_steps >= 1
        assert config.tolerance > 0.0

    @pytest.mark.parametrize(
        "kwargs",
        [{"step": 0.0}, {"step": -1.0}, {"step": math.inf}, {"max_steps": 0}, {"tolerance": 0.0}],
    )
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            TrajectoryConfig(**kwargs)


class TestSimulateTrajectory:
    def test_bound_orbit_stays_in_soi(self, system):
        r = 7.0e6
        v = math.sqrt(G * MASS_EARTH / r)
        state = StateVectors(jnp.array([r, 0.0, 0.0]), jnp.array([0.0, v, 0.0]))
        segments = simulate_trajectory(system, "earth", state, 0.0, TrajectoryConfig(step=600.0, max_steps=10))
        assert len(segments) == 1
        assert segments[0].parent == "earth"
        assert segments[0].entry_epoch == 0.0
        assert segments[0].entry_state is state

    def test_escape_rebases_into_parent(self, system, caplog):
        state = StateVectors(jnp.array([7.0e6, 0.0, 0.0]), jnp.array([0.0, 1.2e4, 0.0]))
        config = TrajectoryConfig(step=6.0 * 3600.0, max_steps=20)
        with caplog.at_level(logging.INFO, logger="keplerjax.trajectory.patched_conics"):
            segments = simulate_trajectory(system, "earth", state, 0.0, config)

        assert [s.parent for s in segments] == ["earth", "sun"]
        assert "earth -> sun" in caplog.text

        exit_segment = segments[1]
        t = exit_segment.entry_epoch
        inside = propagate(state, t, MASS_EARTH, config.tolerance)
        earth = system.state_in_parent("earth", t, config.tolerance)
        assert jnp.linalg.norm(exit_segment.entry_state.position - (inside.position + earth.position)) < 1e-3
        assert jnp.linalg.norm(exit_segment.entry_state.velocity - (inside.velocity + earth.velocity)) < 1e-6
        assert jnp.linalg.norm(inside.position) > system.soi_radius("earth", t, config.tolerance)

    def test_approach_enters_child_soi(self, system):
        config = TrajectoryConfig(step=3600.0, max_steps=30)
        earth = system.state_in_parent("earth", 0.0, config.tolerance)
        state = StateVectors(
            earth.position + jnp.array([1.5e9, 2.0e8, 0.0]),
            earth.velocity + jnp.array([-1.0e4, 0.0, 0.0]),
        )
        segments = simulate_trajectory(system, "sun", state, 0.0, config)

        assert [s.parent for s in segments] == ["sun", "earth"]
        entry = segments[1]
        r_soi = system.soi_radius("earth", entry.entry_epoch, config.tolerance)
        distance = jnp.linalg.norm(entry.entry_state.position)
        assert distance < r_soi
        assert distance > r_soi - 1.0e4 * config.step * 1.1

    def test_unknown_parent(self, system):
        state = StateVectors(jnp.zeros(3), jnp.zeros(3))
        with pytest.raises(KeyError):
            simulate_trajectory(system, "mars", state, 0.0)


class TestSegmentState:
    def test_at_entry_epoch(self, system):
        state = StateVectors(jnp.array([7.0e6, 0.0, 0.0]), jnp.array([0.0, 7.5e3, 0.0]))
        segment = TrajectorySegment(100.0, state, "earth")
        sv = segment_state(system, segment, 100.0, 1e-8)
        assert jnp.allclose(sv.position, state.position, atol=_TOL)

    def test_matches_propagate(self, system):
        state = StateVectors(jnp.array([7.0e6, 0.0, 0.0]), jnp.array([0.0, 7.5e3, 0.0]))
        segment = TrajectorySegment(100.0, state, "earth")
        sv = segment_state(system, segment, 1100.0, 1e-8)
        expected = propagate(state, 1000.0, MASS_EARTH, 1e-8)
        assert jnp.allclose(sv.position, expected.position, atol=_TOL)
