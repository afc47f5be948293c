"""
Validation
==========
Checks of the integrator against things we know independently:

  - Vacuum flight (Cd = 0) against the closed-form parabola
      R = v² sin 2θ / g      T = 2 v sin θ / g      impact angle = θ
  - Step-size convergence: the impact angle must not move by more than
    ANGLE_CONVERGENCE_TOLERANCE_DEG when the time step is doubled.

Reference shells are game-data values for well-known battleship AP rounds
(caliber converted to mm).
"""

import math
from dataclasses import dataclass
from typing import Dict, List, Sequence

import numpy as np

from .integrator import DEFAULT_TIME_STEP, fly
from .projectile import GRAVITY, BallisticProfile, ShellType
from .solver import ANGLE_CONVERGENCE_TOLERANCE_DEG, step_convergence


# ══════════════════════════════════════════════════════════════════════════
#  Reference shells
# ══════════════════════════════════════════════════════════════════════════

REFERENCE_SHELLS: Dict[str, BallisticProfile] = {
    'yamato': BallisticProfile(
        name='460mm Type 91 AP (Yamato)', caliber=460.0, mass=1460.0,
        muzzle_velocity=780.0, drag_coefficient=0.292, krupp=2574.0,
        fuze_threshold=76.0, fuze_time=0.033,
        ricochet_start_deg=45.0, ricochet_always_deg=60.0,
    ),
    'thunderer': BallisticProfile(
        name='457mm AP (Thunderer)', caliber=457.0, mass=1506.0,
        muzzle_velocity=762.0, drag_coefficient=0.2897, krupp=2485.0,
        fuze_threshold=76.0, fuze_time=0.033,
        ricochet_start_deg=45.0, ricochet_always_deg=60.0,
    ),
    'slava': BallisticProfile(
        name='406mm AP (Slava)', caliber=406.0, mass=890.0,
        muzzle_velocity=870.0, drag_coefficient=0.2, krupp=2890.0,
        fuze_threshold=68.0, fuze_time=0.033,
        ricochet_start_deg=45.0, ricochet_always_deg=60.0,
    ),
    'vermont': BallisticProfile(
        name='457mm AP (Vermont)', caliber=457.0, mass=1746.0,
        muzzle_velocity=732.0, drag_coefficient=0.37, krupp=2400.0,
        fuze_threshold=76.0, fuze_time=0.033,
    ),
    'iowa_he': BallisticProfile(
        name='406mm HC Mk13 (Iowa)', caliber=406.0, mass=862.0,
        muzzle_velocity=820.0, drag_coefficient=0.3, shell_type=ShellType.HE,
        he_penetration=68.0,
    ),
}


@dataclass
class VacuumCheck:
    """Result of one closed-form comparison."""
    elevation_deg: float
    ref_range: float
    sim_range: float
    range_error_pct: float
    ref_tof: float
    sim_tof: float
    tof_error_pct: float
    ref_angle: float
    sim_angle: float


@dataclass
class ConvergenceCheck:
    """Impact-angle change when doubling the step at one range."""
    profile_name: str
    target_range: float
    dt: float
    angle_change_deg: float

    @property
    def passed(self) -> bool:
        return self.angle_change_deg <= ANGLE_CONVERGENCE_TOLERANCE_DEG


def validate_against_vacuum(muzzle_velocity: float = 300.0,
                            elevations: Sequence[float] = (10.0, 20.0, 30.0, 45.0, 60.0),
                            dt: float = DEFAULT_TIME_STEP, method: str = 'rk4',
                            verbose: bool = True) -> List[VacuumCheck]:
    """Fly a drag-free shell and compare against the analytic parabola."""
    shell = BallisticProfile(name='Vacuum reference', caliber=100.0, mass=10.0,
                             muzzle_velocity=muzzle_velocity, drag_coefficient=0.0)
    results = []

    if verbose:
        print(f"\n{'='*70}")
        print(f"  VACUUM CHECK: v0 = {muzzle_velocity:.0f} m/s, {method.upper()}, dt = {dt}")
        print(f"{'='*70}")
        print(f"{'Elev°':>6} {'Ref R (m)':>11} {'Sim R (m)':>11} {'Err %':>8} "
              f"{'Ref T':>8} {'Sim T':>8} {'Ref °':>7} {'Sim °':>7}")
        print("-" * 70)

    for elev in elevations:
        rad = math.radians(elev)
        ref_range = muzzle_velocity ** 2 * math.sin(2 * rad) / GRAVITY
        ref_tof = 2 * muzzle_velocity * math.sin(rad) / GRAVITY

        traj = fly(shell, elev, dt=dt, method=method, atmosphere='constant')
        check = VacuumCheck(
            elevation_deg=elev,
            ref_range=ref_range,
            sim_range=traj.range_total,
            range_error_pct=100.0 * (traj.range_total - ref_range) / ref_range,
            ref_tof=ref_tof,
            sim_tof=traj.flight_time,
            tof_error_pct=100.0 * (traj.flight_time - ref_tof) / ref_tof,
            ref_angle=elev,
            sim_angle=traj.impact_angle_deg,
        )
        results.append(check)

        if verbose:
            print(f"{elev:>6.0f} {ref_range:>11.1f} {check.sim_range:>11.1f} "
                  f"{check.range_error_pct:>+8.3f} {ref_tof:>8.2f} {check.sim_tof:>8.2f} "
                  f"{elev:>7.2f} {check.sim_angle:>7.2f}")

    if verbose:
        worst = max(abs(c.range_error_pct) for c in results)
        status = "✓ PASS" if worst < 0.1 else "✗ CHECK STEP SIZE"
        print("-" * 70)
        print(f"  Worst range error: {worst:.4f}%  Status: {status}")
        print(f"{'='*70}\n")

    return results


def check_step_convergence(profile: BallisticProfile, ranges: Sequence[float],
                           dt: float = DEFAULT_TIME_STEP, method: str = 'rk4',
                           verbose: bool = True) -> List[ConvergenceCheck]:
    """Run step_convergence at each range; a check passes under the tolerance."""
    results = [
        ConvergenceCheck(
            profile_name=profile.name,
            target_range=float(r),
            dt=dt,
            angle_change_deg=step_convergence(profile, r, dt=dt, method=method),
        )
        for r in ranges
    ]
    if verbose:
        print(f"  {profile.name}  ({method.upper()}, dt = {dt} s vs {2 * dt} s)")
        for c in results:
            mark = '✓' if c.passed else '✗'
            print(f"    {mark} {c.target_range / 1000:>6.1f} km  "
                  f"Δangle = {c.angle_change_deg:.4f}°")
    return results


def run_all_validations(dt: float = DEFAULT_TIME_STEP, verbose: bool = True) -> dict:
    """Vacuum check plus step convergence for every reference shell."""
    all_results = {'vacuum': validate_against_vacuum(dt=dt, verbose=verbose)}
    ranges = np.array([5000.0, 15000.0])
    for key, shell in REFERENCE_SHELLS.items():
        all_results[key] = check_step_convergence(shell, ranges, dt=dt, verbose=verbose)
    return all_results
