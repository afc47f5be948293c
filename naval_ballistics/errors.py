"""
Ballistic Errors
================
Failures raised by the public entry points of the integrator and the
engagement evaluator. The penetration model never raises.
"""

from typing import Optional


class BallisticError(Exception):
    """Base class for every failure originating in the ballistic core."""


class InvalidProfile(BallisticError, ValueError):
    """A physical constant of a BallisticProfile fails its invariant."""


class NoSolution(BallisticError):
    """No elevation reaches the requested range (or flight time)."""

    def __init__(self, message: str, target: Optional[float] = None,
                 max_reachable: Optional[float] = None):
        super().__init__(message)
        self.target = target
        self.max_reachable = max_reachable
