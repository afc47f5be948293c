"""
Elevation Solver
================
Wraps the forward integrator in an outer search over barrel elevation:

  - find_max_range            : bounded maximisation of landing range over
                                elevation (the reachable envelope)
  - solve_elevation           : Brent root find of range(e) − target on the
                                low arc [0°, elevation of max range]
  - integrate                 : profile + range → ImpactState
  - integrate_for_flight_time : profile + flight time → ImpactState
  - step_convergence          : impact-angle change when the step doubles

The low arc is always chosen, so impact angle and time of flight increase
with range.
"""

import logging
import math
from typing import Optional, Tuple

from scipy.optimize import brentq, minimize_scalar

from .errors import NoSolution
from .integrator import DEFAULT_MAX_TIME, DEFAULT_TIME_STEP, ImpactState, fly
from .projectile import BallisticProfile

logger = logging.getLogger(__name__)

MAX_ELEVATION_DEG = 89.9
RANGE_TOLERANCE_M = 1.0
MAX_ITERATIONS = 60
ENVELOPE_TOLERANCE_DEG = 1e-3
ANGLE_CONVERGENCE_TOLERANCE_DEG = 0.05

Envelope = Tuple[float, float]  # (max range m, elevation deg)


def _landing_range(profile, elevation_deg, dt, method, atmosphere, max_time) -> float:
    return fly(profile, elevation_deg, dt=dt, method=method,
               max_time=max_time, atmosphere=atmosphere).range_total


def find_max_range(profile: BallisticProfile, dt: float = DEFAULT_TIME_STEP,
                   method: str = 'rk4', atmosphere: str = 'isa',
                   max_time: float = DEFAULT_MAX_TIME) -> Envelope:
    """
    Maximum landing range of a profile and the elevation that achieves it.

    Range is unimodal in elevation, so a bounded Brent / golden-section
    search over [0°, 89.9°] finds the peak.
    """
    profile.validate()
    calls = 0

    def negative_range(elevation_deg: float) -> float:
        nonlocal calls
        calls += 1
        distance = _landing_range(profile, elevation_deg, dt, method, atmosphere, max_time)
        return -distance if math.isfinite(distance) else math.inf

    result = minimize_scalar(
        negative_range,
        bounds=(0.0, MAX_ELEVATION_DEG),
        method='bounded',
        options={'xatol': ENVELOPE_TOLERANCE_DEG, 'maxiter': 200},
    )
    elevation = float(result.x)
    max_range = _landing_range(profile, elevation, dt, method, atmosphere, max_time)
    logger.debug("Envelope of %s: %.0f m at %.3f° (%d trajectories)",
                 profile.name, max_range, elevation, calls)
    return max_range, elevation


def solve_elevation(profile: BallisticProfile, target_range_m: float,
                    dt: float = DEFAULT_TIME_STEP, method: str = 'rk4',
                    atmosphere: str = 'isa', max_time: float = DEFAULT_MAX_TIME,
                    tolerance: float = RANGE_TOLERANCE_M,
                    max_iterations: int = MAX_ITERATIONS,
                    envelope: Optional[Envelope] = None) -> float:
    """
    Barrel elevation (degrees) on the low arc that lands at ``target_range_m``.

    Raises
    ------
    InvalidProfile : a constant of the profile is out of range
    NoSolution : the range is negative, beyond the envelope, or the search
                 did not land within ``tolerance``
    """
    profile.validate()
    if not math.isfinite(target_range_m) or target_range_m < 0:
        raise NoSolution(f"Target range must be a finite non-negative distance, "
                         f"got {target_range_m}", target=target_range_m)
    if target_range_m <= tolerance:
        return 0.0

    if envelope is None:
        envelope = find_max_range(profile, dt, method, atmosphere, max_time)
    max_range, elevation_at_max = envelope

    if target_range_m > max_range + tolerance:
        raise NoSolution(
            f"{profile.name}: range {target_range_m:.0f} m is unreachable "
            f"(maximum {max_range:.0f} m)",
            target=target_range_m, max_reachable=max_range,
        )
    if abs(target_range_m - max_range) <= tolerance:
        return elevation_at_max

    def miss(elevation_deg: float) -> float:
        return _landing_range(profile, elevation_deg, dt, method, atmosphere, max_time) - target_range_m

    if miss(0.0) > 0.0 or miss(elevation_at_max) < 0.0:
        raise NoSolution(
            f"{profile.name}: range {target_range_m:.0f} m is not bracketed by "
            f"elevations 0° and {elevation_at_max:.3f}°",
            target=target_range_m, max_reachable=max_range,
        )

    elevation, result = brentq(
        miss, 0.0, elevation_at_max,
        xtol=1e-9, maxiter=max_iterations, full_output=True, disp=False,
    )
    residual = abs(miss(elevation))
    logger.debug("Elevation for %.0f m: %.5f° after %d iterations (miss %.3f m)",
                 target_range_m, elevation, result.iterations, residual)
    if not result.converged or residual > tolerance:
        raise NoSolution(
            f"{profile.name}: elevation search for {target_range_m:.0f} m did not "
            f"converge (miss {residual:.2f} m after {result.iterations} iterations)",
            target=target_range_m, max_reachable=max_range,
        )
    return float(elevation)


def integrate(profile: BallisticProfile, target_range_m: float,
              dt: float = DEFAULT_TIME_STEP, method: str = 'rk4',
              atmosphere: str = 'isa', max_time: float = DEFAULT_MAX_TIME,
              tolerance: float = RANGE_TOLERANCE_M,
              max_iterations: int = MAX_ITERATIONS,
              envelope: Optional[Envelope] = None) -> ImpactState:
    """Impact state of ``profile`` fired at ``target_range_m``."""
    elevation = solve_elevation(profile, target_range_m, dt=dt, method=method,
                                atmosphere=atmosphere, max_time=max_time,
                                tolerance=tolerance, max_iterations=max_iterations,
                                envelope=envelope)
    trajectory = fly(profile, elevation, dt=dt, method=method,
                     max_time=max_time, atmosphere=atmosphere)
    return trajectory.impact_state()


def integrate_for_flight_time(profile: BallisticProfile, flight_time_s: float,
                              dt: float = DEFAULT_TIME_STEP, method: str = 'rk4',
                              atmosphere: str = 'isa', max_time: float = DEFAULT_MAX_TIME,
                              tolerance: float = 0.01,
                              max_iterations: int = MAX_ITERATIONS) -> ImpactState:
    """
    Impact state of the flight lasting ``flight_time_s`` seconds.

    Flight time grows monotonically with elevation, so the whole
    [0°, 89.9°] bracket is searched.
    """
    profile.validate()
    if not math.isfinite(flight_time_s) or flight_time_s < 0:
        raise NoSolution(f"Flight time must be finite and non-negative, got {flight_time_s}",
                         target=flight_time_s)

    def flight_time(elevation_deg: float) -> float:
        return fly(profile, elevation_deg, dt=dt, method=method,
                   max_time=max_time, atmosphere=atmosphere).flight_time

    longest = flight_time(MAX_ELEVATION_DEG)
    if flight_time_s > longest + tolerance:
        raise NoSolution(
            f"{profile.name}: no flight lasts {flight_time_s:.1f} s "
            f"(longest {longest:.1f} s)",
            target=flight_time_s, max_reachable=longest,
        )
    if flight_time_s <= tolerance:
        elevation = 0.0
    elif abs(flight_time_s - longest) <= tolerance:
        elevation = MAX_ELEVATION_DEG
    else:
        if flight_time(0.0) > flight_time_s:
            raise NoSolution(
                f"{profile.name}: flight time {flight_time_s:.2f} s is shorter than "
                "a flat shot",
                target=flight_time_s, max_reachable=longest,
            )
        elevation, result = brentq(
            lambda e: flight_time(e) - flight_time_s, 0.0, MAX_ELEVATION_DEG,
            xtol=1e-9, maxiter=max_iterations, full_output=True, disp=False,
        )
        if not result.converged:
            raise NoSolution(
                f"{profile.name}: elevation search for {flight_time_s:.1f} s did not converge",
                target=flight_time_s, max_reachable=longest,
            )
    trajectory = fly(profile, float(elevation), dt=dt, method=method,
                     max_time=max_time, atmosphere=atmosphere)
    return trajectory.impact_state()


def step_convergence(profile: BallisticProfile, target_range_m: float,
                     dt: float = DEFAULT_TIME_STEP, method: str = 'rk4',
                     atmosphere: str = 'isa') -> float:
    """
    Absolute change of the impact angle (degrees) when the step doubles.

    A step is acceptable when this stays under
    ANGLE_CONVERGENCE_TOLERANCE_DEG.
    """
    fine = integrate(profile, target_range_m, dt=dt, method=method, atmosphere=atmosphere)
    coarse = integrate(profile, target_range_m, dt=2.0 * dt, method=method, atmosphere=atmosphere)
    return abs(fine.impact_angle_deg - coarse.impact_angle_deg)
