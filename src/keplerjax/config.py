"""Working precision of keplerjax.

Every public function casts its inputs to the dtype returned by
:func:`get_dtype`.  The default, ``jnp.float32``, is enough to draw
orbits; element round trips, tight solver tolerances and interplanetary
distances need ``jnp.float64``, which :func:`set_dtype` enables in JAX
(``jax_enable_x64``) on demand.

Select the precision once, before the first solve.  The Newton kernels
are ``jax.jit``-compiled on first use and retraced when their input
dtype changes, so a later switch is still correct, only slower.

Degenerate orbit geometry is decided against a threshold that tracks the
precision, see :func:`get_degeneracy_epsilon`.
"""

from __future__ import annotations

import jax
import jax.numpy as jnp

# Circular/equatorial threshold per supported dtype
_DEGENERACY_EPSILON = {
    jnp.float64: 1e-10,
    jnp.float32: 1e-5,
    jnp.float16: 1e-2,
    jnp.bfloat16: 1e-2,
}

_dtype = jnp.float32


def set_dtype(dtype) -> None:
    """Select the float dtype used by all keplerjax computations.

    Args:
        dtype: ``jnp.float64``, ``jnp.float32``, ``jnp.float16`` or
            ``jnp.bfloat16``.  Choosing ``jnp.float64`` switches on JAX's
            64-bit mode.

    Raises:
        ValueError: If *dtype* is not one of the supported float types.

    Examples:
        ```python
        import jax.numpy as jnp
        import keplerjax
        keplerjax.set_dtype(jnp.float64)
        ```
    """
    global _dtype
    if dtype not in _DEGENERACY_EPSILON:
        supported = ", ".join(f"jnp.{d.__name__}" for d in _DEGENERACY_EPSILON)
        raise ValueError(f"Unsupported dtype {dtype}; expected one of {supported}")
    if dtype == jnp.float64:
        jax.config.update("jax_enable_x64", True)
    _dtype = dtype


def get_dtype():
    """The float dtype currently in use (``jnp.float32`` unless changed)."""
    return _dtype


def get_degeneracy_epsilon() -> float:
    """Threshold below which an orbit counts as circular or equatorial.

    :func:`~keplerjax.coordinates.elements_from_state` treats an orbit as
    circular when its eccentricity is below this value, and as equatorial
    when the node vector is shorter than this fraction of the angular
    momentum.  The value follows the working precision: ``1e-10`` for
    float64, ``1e-5`` for float32, ``1e-2`` for the 16-bit types.

    Returns:
        float: Dimensionless threshold.
    """
    return _DEGENERACY_EPSILON[_dtype]


# Default Newton tolerance per supported dtype
_DEFAULT_TOLERANCE = {
    jnp.float64: 1e-10,
    jnp.float32: 1e-5,
    jnp.float16: 1e-2,
    jnp.bfloat16: 1e-2,
}


def get_default_tolerance() -> float:
    """Default Newton tolerance for the working precision.

    Used when :func:`~keplerjax.propagation.propagate`,
    :func:`~keplerjax.propagation.sample_orbit` or
    :class:`~keplerjax.trajectory.TrajectoryConfig` are not given an
    explicit tolerance.  The propagator applies it to the universal
    anomaly step relative to the size of the iterate, so the same value
    serves any length scale: ``1e-10`` for float64, ``1e-5`` for float32,
    ``1e-2`` for the 16-bit types.

    Returns:
        float: Dimensionless tolerance.
    """
    return _DEFAULT_TOLERANCE[_dtype]
