"""Angle helpers.

Conversion to degrees follows the ``use_degrees`` flag convention and
stays JAX-traceable via ``jnp.where``.  The clamped inverse cosine guards
against dot-product ratios that floating-point error pushes marginally
outside ``[-1, 1]``, which would otherwise produce NaN.
"""

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from keplerjax.constants import PI, TWO_PI


def from_radians(angle: ArrayLike, use_degrees: bool) -> Array:
    """Return *angle* (radians) in degrees when ``use_degrees`` is set."""
    return jnp.where(use_degrees, jnp.rad2deg(angle), angle)


def clamped_arccos(x: ArrayLike) -> Array:
    """``arccos`` with its argument clamped to ``[-1, 1]``."""
    return jnp.arccos(jnp.clip(x, -1.0, 1.0))


def wrap_to_2pi(angle: ArrayLike) -> Array:
    """Wrap an angle into ``[0, 2pi)``."""
    return jnp.mod(angle, TWO_PI)


def wrap_to_pi(angle: ArrayLike) -> Array:
    """Wrap an angle into ``[-pi, pi)``."""
    return jnp.mod(angle + PI, TWO_PI) - PI
