import jax.numpy as jnp
import pytest

from keplerjax.config import set_dtype


@pytest.fixture(autouse=True)
def _ensure_float64():
    """Set float64 precision before every test.

    Tests that exercise other dtypes (test_config.py) override this with
    their own autouse fixture.
    """
    set_dtype(jnp.float64)
