# /// script
# requires-python = ">=3.11"
# dependencies = ["typer>=0.9.0", "keplerjax"]
#
# [tool.uv.sources]
# keplerjax = { path = ".." }
# ///
"""Tour of the two-body engine: conversions, propagation and patched conics.

Builds a Sun-Earth-Moon hierarchy, converts a spacecraft orbit between
elements and state vectors, samples it over one period with the batched
universal-variable kernel, and finally follows an Earth escape trajectory
across the Earth's sphere of influence.

Requires keplerjax to be installed (``uv pip install -e .`` from the repo root).

Usage:
    uv run examples/orbit_tour.py [OPTIONS]

Examples:
    # Default low Earth orbit and a 12 km/s escape burn
    uv run examples/orbit_tour.py

    # Eccentric orbit, finer sampling, float32 precision
    uv run examples/orbit_tour.py --eccentricity 0.6 --samples 512 --single-precision

    # Longer escape simulation with 1 hour steps
    uv run examples/orbit_tour.py --escape-speed 11500 --step 3600 --steps 240
"""

import time
from typing import Annotated

import jax.numpy as jnp
import typer

from keplerjax import (
    AU,
    KeplerianElements,
    StateVectors,
    classify_geometry,
    elements_from_state,
    orbital_period,
    propagate,
    sample_orbit,
    set_dtype,
    sphere_of_influence,
    state_at_epoch,
    zup_to_yup,
)
from keplerjax.trajectory import BodySystem, CelestialBody, TrajectoryConfig, simulate_trajectory

MASS_SUN = 1.989e30
MASS_EARTH = 5.972e24
MASS_MOON = 7.342e22


def _build_system() -> BodySystem:
    return BodySystem(
        [
            CelestialBody("sun", MASS_SUN),
            CelestialBody(
                "earth", MASS_EARTH, "sun", KeplerianElements(0.0167, AU, 0.0, 0.0, 1.796, 0.0)
            ),
            CelestialBody(
                "moon", MASS_MOON, "earth", KeplerianElements(0.0549, 3.844e8, 0.0898, 2.18, 5.55, 1.0)
            ),
        ]
    )


def main(
    semi_major_axis: Annotated[float, typer.Option(help="Spacecraft semi-major axis in meters")] = 7.0e6,
    eccentricity: Annotated[float, typer.Option(help="Spacecraft eccentricity")] = 0.05,
    inclination: Annotated[float, typer.Option(help="Spacecraft inclination in radians")] = 0.9,
    samples: Annotated[int, typer.Option(help="Points sampled over one period")] = 128,
    escape_speed: Annotated[float, typer.Option(help="Periapsis speed of the escape orbit (m/s)")] = 1.2e4,
    step: Annotated[float, typer.Option(help="Trajectory step in seconds")] = 6.0 * 3600.0,
    steps: Annotated[int, typer.Option(help="Number of trajectory steps")] = 40,
    single_precision: Annotated[bool, typer.Option(help="Run in float32 instead of float64")] = False,
) -> None:
    """Walk through the keplerjax public API."""
    set_dtype(jnp.float32 if single_precision else jnp.float64)  # Must be before any JIT compilation
    tolerance = 1e-4 if single_precision else 1e-10

    # ── Stage 1: Elements -> state -> elements ───────────────────────────
    print("── Stage 1: Element/state conversion ──")
    oe = KeplerianElements(eccentricity, semi_major_axis, inclination, 0.4, 1.2, 0.0)
    sv = state_at_epoch(oe, MASS_EARTH, 900.0, tolerance)
    back = elements_from_state(sv, MASS_EARTH, 900.0)
    print(f"  Position: {sv.position}")
    print(f"  Velocity: {sv.velocity}")
    print(f"  Geometry: {classify_geometry(sv, MASS_EARTH).value}")
    print(f"  Recovered e = {float(back.eccentricity):.6f}, a = {float(back.semi_major_axis):.1f} m")

    # ── Stage 2: Sampling one period ─────────────────────────────────────
    print("\n── Stage 2: Sampling one period ──")
    period = float(orbital_period(semi_major_axis, MASS_EARTH))
    t0 = time.perf_counter()
    points = sample_orbit(sv, MASS_EARTH, samples, tolerance).block_until_ready()
    print(f"  Period: {period / 60.0:.2f} min")
    print(f"  Sampled {points.shape[0]} points in {time.perf_counter() - t0:.3f}s")
    radii = jnp.linalg.norm(points, axis=1)
    print(f"  Radius range: {float(radii.min()):.1f} .. {float(radii.max()):.1f} m")
    print(f"  First point (Y-up): {zup_to_yup(points[0])}")

    later = propagate(sv, 0.5 * period, MASS_EARTH, tolerance)
    print(f"  Half a period later: r = {float(jnp.linalg.norm(later.position)):.1f} m")

    # ── Stage 3: Patched-conic escape ────────────────────────────────────
    print("\n── Stage 3: Patched-conic escape ──")
    system = _build_system()
    r_soi = float(sphere_of_influence(AU, MASS_EARTH, MASS_SUN))
    print(f"  Earth SOI: {r_soi:.3e} m")

    start = StateVectors(jnp.array([7.0e6, 0.0, 0.0]), jnp.array([0.0, escape_speed, 0.0]))
    config = TrajectoryConfig(step=step, max_steps=steps, tolerance=tolerance)
    t0 = time.perf_counter()
    segments = simulate_trajectory(system, "earth", start, 0.0, config)
    print(f"  Simulated {steps} steps in {time.perf_counter() - t0:.1f}s")
    for segment in segments:
        r = float(jnp.linalg.norm(segment.entry_state.position))
        print(f"  t = {segment.entry_epoch / 3600.0:8.1f} h  parent = {segment.parent:<6} r = {r:.3e} m")

    print("\nDone.")


if __name__ == "__main__":
    typer.run(main)
