"""
Aerodynamic Drag Model
======================
Drag law used by the game's shell ballistics.

The retarding acceleration has a quadratic and a linear term in speed and
always opposes the velocity vector:

    a_drag = -k · ρ · (cw1 · |v| + cw2) · v

with

    k   = ½ · Cd · A / m        A = π (d/2)²  (reference area, m²)
    cw1 = 1
    cw2 = 100 + 1000/3 · d      d in meters

so the magnitude is k · ρ · (cw1 · v² + cw2 · v). Cd is the per-shell drag
coefficient from the game data; it is constant over the flight (there is no
Mach dependence in this law).
"""

import math
from typing import Tuple

import numpy as np


QUADRATIC_WEIGHT = 1.0


class DragModel:
    """
    Drag law for one shell.

    Built from caliber (mm), mass (kg) and drag coefficient. Holds only
    derived constants, so an instance can be shared between threads.
    """

    def __init__(self, caliber_mm: float, mass: float, drag_coefficient: float):
        diameter = caliber_mm / 1000.0
        self.area = math.pi * (diameter / 2.0) ** 2
        self.k = 0.5 * drag_coefficient * self.area / mass
        self.cw_quadratic = QUADRATIC_WEIGHT
        self.cw_linear = 100.0 + 1000.0 / 3.0 * diameter

    @classmethod
    def for_profile(cls, profile) -> 'DragModel':
        return cls(profile.caliber, profile.mass, profile.drag_coefficient)

    def acceleration(self, vx: float, vy: float, rho: float) -> Tuple[float, float]:
        """Drag acceleration components (m/s²) for velocity (vx, vy)."""
        speed = math.hypot(vx, vy)
        if speed < 1e-10:
            return 0.0, 0.0
        scale = self.k * rho * (self.cw_quadratic * speed + self.cw_linear)
        return -scale * vx, -scale * vy

    def deceleration(self, speed: np.ndarray, rho: float) -> np.ndarray:
        """Vectorized drag deceleration magnitude (m/s²) against speed."""
        speed = np.clip(np.asarray(speed, dtype=float), 0.0, None)
        return self.k * rho * (self.cw_quadratic * speed ** 2 + self.cw_linear * speed)

    def terminal_velocity(self, rho: float, gravity: float) -> float:
        """Speed at which drag balances gravity in a vertical fall (m/s)."""
        if self.k == 0.0:
            return math.inf
        # cw1 v² + cw2 v − g/(kρ) = 0
        c = gravity / (self.k * rho)
        a, b = self.cw_quadratic, self.cw_linear
        return (-b + math.sqrt(b * b + 4.0 * a * c)) / (2.0 * a)
