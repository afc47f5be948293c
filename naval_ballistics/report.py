"""
Text Reports
============
Human-readable rendering of trajectories and engagement reports for the
console runner. Nothing in the ballistic core depends on this module.
"""

from typing import Sequence, Union

from .engagement import EngagementReport
from .errors import BallisticError
from .integrator import Trajectory


def trajectory_summary(result: Trajectory) -> str:
    """Boxed summary of one forward integration."""
    lines = [
        f"╔══════════════════════════════════════════════════════╗",
        f"║  TRAJECTORY SUMMARY — {result.profile.name[:30]:<30s} ║",
        f"╠══════════════════════════════════════════════════════╣",
        f"║  Method       : {result.method.upper():<36s} ║",
        f"║  Timestep     : {result.dt:<36.4f} ║",
        f"║  Atmosphere   : {result.atmosphere:<36s} ║",
        f"╠══════════════════════════════════════════════════════╣",
        f"║  Muzzle vel   : {result.profile.muzzle_velocity:>10.1f} m/s{'':<22s} ║",
        f"║  Elevation    : {result.elevation_deg:>10.3f} °{'':<24s} ║",
        f"╠══════════════════════════════════════════════════════╣",
        f"║  Range        : {result.range_total:>10.1f} m  ({result.range_total/1000:>7.2f} km){'':<6s} ║",
        f"║  Max altitude : {result.max_altitude:>10.1f} m  ({result.max_altitude/1000:>7.2f} km){'':<6s} ║",
        f"║  Flight time  : {result.flight_time:>10.2f} s{'':<24s} ║",
        f"║  Impact vel   : {result.impact_velocity:>10.1f} m/s{'':<22s} ║",
        f"║  Impact angle : {result.impact_angle_deg:>10.2f} °{'':<24s} ║",
        f"╚══════════════════════════════════════════════════════╝",
    ]
    return '\n'.join(lines)


def engagement_summary(report: EngagementReport) -> str:
    """Boxed summary of one engagement."""
    impact, outcome = report.impact, report.outcome
    fuze = '—' if outcome.fuze_armed is None else ('armed' if outcome.fuze_armed else 'not armed')
    lines = [
        f"╔══════════════════════════════════════════════════════╗",
        f"║  ENGAGEMENT — {report.profile.name[:38]:<38s} ║",
        f"╠══════════════════════════════════════════════════════╣",
        f"║  Range        : {report.target_range/1000:>10.2f} km{'':<23s} ║",
        f"║  Elevation    : {impact.elevation_deg:>10.3f} °{'':<24s} ║",
        f"║  Flight time  : {impact.time_of_flight:>10.2f} s{'':<24s} ║",
        f"║  Impact vel   : {impact.velocity:>10.1f} m/s{'':<22s} ║",
        f"║  Impact angle : {impact.impact_angle_deg:>10.2f} °{'':<24s} ║",
        f"╠══════════════════════════════════════════════════════╣",
        f"║  Armor        : {report.query.thickness:>10.1f} mm @ {report.query.obliquity_deg:>5.1f}°{'':<13s} ║",
        f"║  Eff. angle   : {outcome.effective_angle_deg:>10.2f} °{'':<24s} ║",
        f"║  Raw pen      : {outcome.raw_penetration:>10.1f} mm{'':<23s} ║",
        f"║  Eff. pen     : {outcome.effective_penetration:>10.1f} mm{'':<23s} ║",
        f"║  Ricochet     : {100 * outcome.ricochet_chance:>10.0f} %{'':<24s} ║",
        f"║  Fuze         : {fuze:<36s} ║",
        f"╠══════════════════════════════════════════════════════╣",
        f"║  OUTCOME      : {outcome.kind.value.upper():<36s} ║",
        f"╚══════════════════════════════════════════════════════╝",
    ]
    return '\n'.join(lines)


def sweep_table(results: Sequence[Union[EngagementReport, BallisticError]],
                ranges: Sequence[float]) -> str:
    """One line per range of a sweep, unreachable ranges included."""
    lines = [f"  {'Range km':>9} {'Elev°':>7} {'ToF s':>7} {'V m/s':>7} "
             f"{'Angle°':>7} {'Pen mm':>8}  Outcome",
             "  " + "-" * 64]
    for distance, result in zip(ranges, results):
        if isinstance(result, BallisticError):
            lines.append(f"  {distance/1000:>9.1f}  unreachable: {result}")
            continue
        impact, outcome = result.impact, result.outcome
        lines.append(
            f"  {distance/1000:>9.1f} {impact.elevation_deg:>7.2f} "
            f"{impact.time_of_flight:>7.1f} {impact.velocity:>7.0f} "
            f"{outcome.effective_angle_deg:>7.2f} {outcome.effective_penetration:>8.0f}  "
            f"{outcome.kind.value}"
        )
    return '\n'.join(lines)
