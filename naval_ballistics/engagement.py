"""
Engagement Evaluator
====================
Composes the integrator and the penetration model into one report per
(profile, range, armor) query, plus batch drivers that fan independent
queries out to a worker pool.

Every evaluation is a pure function of its inputs, so the batch drivers
need no locking; results are returned in input order.
"""

import logging
from concurrent.futures import ProcessPoolExecutor, ThreadPoolExecutor
from dataclasses import dataclass
from typing import List, Optional, Sequence, Union

from .calibration import DEFAULT_CALIBRATION, CalibrationTable
from .errors import BallisticError
from .integrator import DEFAULT_TIME_STEP, ImpactState
from .penetration import ArmorQuery, PenetrationOutcome, evaluate
from .projectile import BallisticProfile
from .solver import Envelope, find_max_range, integrate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EngagementReport:
    profile: BallisticProfile
    target_range: float
    query: ArmorQuery
    impact: ImpactState
    outcome: PenetrationOutcome


def evaluate_engagement(profile: BallisticProfile, target_range_m: float,
                        armor_query: ArmorQuery,
                        calibration: CalibrationTable = DEFAULT_CALIBRATION,
                        dt: float = DEFAULT_TIME_STEP, method: str = 'rk4',
                        atmosphere: str = 'isa',
                        envelope: Optional[Envelope] = None) -> EngagementReport:
    """
    Integrate to ``target_range_m`` and evaluate the hit on ``armor_query``.

    InvalidProfile and NoSolution from the integrator propagate unchanged.
    """
    impact = integrate(profile, target_range_m, dt=dt, method=method,
                       atmosphere=atmosphere, envelope=envelope)
    outcome = evaluate(profile, impact, armor_query, calibration)
    logger.debug("%s at %.0f m vs %.0f mm: %s (%.0f mm effective, %.1f°)",
                 profile.name, target_range_m, armor_query.thickness,
                 outcome.kind.value, outcome.effective_penetration,
                 outcome.effective_angle_deg)
    return EngagementReport(
        profile=profile,
        target_range=target_range_m,
        query=armor_query,
        impact=impact,
        outcome=outcome,
    )


def _evaluate_or_error(profile, target_range_m, armor_query, calibration,
                       dt, method, atmosphere, envelope):
    try:
        return evaluate_engagement(profile, target_range_m, armor_query, calibration,
                                   dt=dt, method=method, atmosphere=atmosphere,
                                   envelope=envelope)
    except BallisticError as exc:
        return exc


def sweep_ranges(profile: BallisticProfile, ranges: Sequence[float],
                 armor_query: ArmorQuery,
                 calibration: CalibrationTable = DEFAULT_CALIBRATION,
                 dt: float = DEFAULT_TIME_STEP, method: str = 'rk4',
                 atmosphere: str = 'isa', max_workers: Optional[int] = None,
                 processes: bool = False) -> List[Union[EngagementReport, BallisticError]]:
    """
    Evaluate one armor query over many ranges in parallel.

    The envelope is searched once and shared by every query. Each slot of
    the result holds either the report or the BallisticError its query
    raised. An invalid profile raises immediately.
    """
    envelope = find_max_range(profile, dt=dt, method=method, atmosphere=atmosphere)
    pool_class = ProcessPoolExecutor if processes else ThreadPoolExecutor
    count = len(ranges)
    with pool_class(max_workers=max_workers) as pool:
        results = list(pool.map(
            _evaluate_or_error,
            [profile] * count, list(ranges), [armor_query] * count,
            [calibration] * count, [dt] * count, [method] * count,
            [atmosphere] * count, [envelope] * count,
        ))
    failures = sum(isinstance(r, BallisticError) for r in results)
    logger.debug("Range sweep of %s: %d queries, %d unreachable", profile.name, count, failures)
    return results


def sweep_armor(profile: BallisticProfile, target_range_m: float,
                thicknesses: Sequence[float], obliquity_deg: float = 0.0,
                calibration: CalibrationTable = DEFAULT_CALIBRATION,
                dt: float = DEFAULT_TIME_STEP, method: str = 'rk4',
                atmosphere: str = 'isa',
                envelope: Optional[Envelope] = None) -> List[EngagementReport]:
    """Integrate once, then evaluate every plate thickness at that range."""
    impact = integrate(profile, target_range_m, dt=dt, method=method,
                       atmosphere=atmosphere, envelope=envelope)
    reports = []
    for thickness in thicknesses:
        query = ArmorQuery(thickness=float(thickness), obliquity_deg=obliquity_deg)
        reports.append(EngagementReport(
            profile=profile,
            target_range=target_range_m,
            query=query,
            impact=impact,
            outcome=evaluate(profile, impact, query, calibration),
        ))
    return reports
