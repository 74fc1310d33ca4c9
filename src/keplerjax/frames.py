"""Axis-convention adapters for presentation layers.

The physics core works in a right-handed inertial frame with +Z along
the reference pole.  Scene graphs commonly use +Y as "up"; these
stateless helpers swap the Y and Z components at that boundary and are
never called from inside the core.  Swapping two axes is its own
inverse, so both directions share one implementation.
"""

from __future__ import annotations

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from keplerjax._types import StateVectors
from keplerjax.config import get_dtype

_SWAP_YZ = jnp.array([0, 2, 1])


def zup_to_yup(vec: ArrayLike) -> Array:
    """Map a Z-up vector ``[x, y, z]`` to Y-up ``[x, z, y]``."""
    vec = jnp.asarray(vec, dtype=get_dtype())
    return vec[..., _SWAP_YZ]


def yup_to_zup(vec: ArrayLike) -> Array:
    """Map a Y-up vector ``[x, y, z]`` back to Z-up ``[x, z, y]``."""
    return zup_to_yup(vec)


def state_zup_to_yup(state: StateVectors) -> StateVectors:
    """Apply :func:`zup_to_yup` to both position and velocity."""
    return StateVectors(position=zup_to_yup(state.position), velocity=zup_to_yup(state.velocity))
