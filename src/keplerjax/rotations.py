"""Elementary rotation matrices.

The matrices rotate the *coordinate frame* (passive convention): ``Rz(a)
@ v`` expresses ``v`` in a frame rotated counter-clockwise by ``a`` about
the z-axis.  The perifocal-to-inertial transform is therefore the
transpose of the 3-1-3 sequence ``Rz(omega) Rx(i) Rz(Omega)``.

References:

    1. O. Montenbruck, and E. Gill, *Satellite Orbits: Models, Methods and Applications*, 2012, p.27.
"""

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from keplerjax.config import get_dtype


def Rx(angle: ArrayLike) -> Array:
    """Frame rotation about the x-axis.

    Args:
        angle: Counter-clockwise angle of rotation. Units: *rad*

    Returns:
        3x3 rotation matrix.
    """
    angle = jnp.asarray(angle, dtype=get_dtype())
    c = jnp.cos(angle)
    s = jnp.sin(angle)

    return jnp.array([[1.0, 0.0, 0.0],
                      [0.0,  +c,  +s],
                      [0.0,  -s,  +c]], dtype=get_dtype())


def Rz(angle: ArrayLike) -> Array:
    """Frame rotation about the z-axis.

    Args:
        angle: Counter-clockwise angle of rotation. Units: *rad*

    Returns:
        3x3 rotation matrix.
    """
    angle = jnp.asarray(angle, dtype=get_dtype())
    c = jnp.cos(angle)
    s = jnp.sin(angle)

    return jnp.array([[ +c,  +s, 0.0],
                      [ -s,  +c, 0.0],
                      [0.0, 0.0, 1.0]], dtype=get_dtype())


def rotation_perifocal_to_inertial(raan: ArrayLike, inclination: ArrayLike, arg_periapsis: ArrayLike) -> Array:
    """Rotation from the perifocal (PQW) frame to the inertial frame.

    Equivalent to the active sequence ``Rz(Omega) Rx(i) Rz(omega)``:
    first rotate by the argument of periapsis about the orbit normal, then
    tilt by the inclination about the node line, then turn by the RAAN
    about the inertial z-axis.

    Args:
        raan: Right ascension of the ascending node. Units: *rad*
        inclination: Inclination. Units: *rad*
        arg_periapsis: Argument of periapsis. Units: *rad*

    Returns:
        3x3 rotation matrix mapping perifocal vectors to inertial ones.
    """
    return (Rz(arg_periapsis) @ Rx(inclination) @ Rz(raan)).T
