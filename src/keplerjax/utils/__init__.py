"""Shared utility functions for keplerjax.

Provides degree conversion, angle wrapping and a range-safe inverse cosine.
"""

from keplerjax.utils._angle import (
    clamped_arccos,
    from_radians,
    wrap_to_2pi,
    wrap_to_pi,
)

__all__ = [
    "clamped_arccos",
    "from_radians",
    "wrap_to_2pi",
    "wrap_to_pi",
]
