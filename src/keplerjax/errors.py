"""Exception types raised by keplerjax.

Degenerate geometry (circular or equatorial orbits) never raises; it is
resolved inside :func:`keplerjax.coordinates.elements_from_state` with
documented defaults.  The failures below are surfaced to the caller.
"""

from __future__ import annotations


class KeplerError(RuntimeError):
    """Base class for numerical failures in keplerjax."""


class ConvergenceError(KeplerError):
    """A Newton-Raphson iteration exceeded its iteration cap.

    Usually caused by malformed elements, a tolerance tighter than the
    working precision allows, or non-finite input.

    Attributes:
        iterations: Number of iterations performed.
        x0: Initial guess.
        last: Last iterate before giving up.
    """

    def __init__(self, iterations: int, x0: float, last: float, what: str = "Newton-Raphson"):
        self.iterations = iterations
        self.x0 = x0
        self.last = last
        super().__init__(
            f"{what} failed to converge after {iterations} iterations "
            f"(x0 = {x0}, x = {last})"
        )


class PropagationError(KeplerError):
    """Propagation produced a state with non-finite components.

    Attributes:
        state: The initial state that was propagated.
        dt: The requested time step.
    """

    def __init__(self, state, dt: float):
        self.state = state
        self.dt = dt
        super().__init__(f"Propagation by dt = {dt} produced a non-finite state")
