"""
Penetration Model
=================
Turns an impact state into a penetration outcome against one armor plate.

  1. Effective angle θ: impact angle combined with plate obliquity, clamped
     to [0°, 90°] (0° = perpendicular to the plate).
  2. Base penetration from the shell-type formula (calibration table).
  3. Effective penetration = base × cos(θ − normalization).
  4. Regime, first match wins:
       Overmatch → Ricochet → Shatter → Penetration / NonPenetration

Overmatch is checked first: an oversized caliber goes through without
ricocheting at any angle.

The model is total: every input combination yields an outcome.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .calibration import DEFAULT_CALIBRATION, CalibrationTable, ShellCalibration
from .integrator import ImpactState
from .projectile import BallisticProfile


class OutcomeKind(Enum):
    PENETRATION = 'penetration'
    RICOCHET = 'ricochet'
    OVERMATCH = 'overmatch'
    SHATTER = 'shatter'
    NON_PENETRATION = 'non_penetration'


@dataclass(frozen=True)
class ArmorQuery:
    """Target plate: thickness in mm, obliquity in degrees from vertical."""
    thickness: float
    obliquity_deg: float = 0.0

    def __post_init__(self):
        if not math.isfinite(self.thickness) or self.thickness < 0:
            raise ValueError(f"Armor thickness must be finite and >= 0, got {self.thickness}")
        if not math.isfinite(self.obliquity_deg):
            raise ValueError(f"Obliquity must be finite, got {self.obliquity_deg}")


@dataclass(frozen=True)
class PenetrationOutcome:
    kind: OutcomeKind
    effective_penetration: float     # mm, always computed
    raw_penetration: float           # mm, before the angle adjustment
    effective_angle_deg: float
    armor_thickness: float
    line_of_sight_thickness: float
    ricochet_chance: float           # 0..1 position inside the ricochet band
    fuze_armed: Optional[bool] = None
    fuze_distance: float = 0.0       # m travelled during the fuze delay

    @property
    def penetrated(self) -> bool:
        return self.kind in (OutcomeKind.PENETRATION, OutcomeKind.OVERMATCH)

    @property
    def depth(self) -> Optional[float]:
        return self.effective_penetration if self.penetrated else None


def effective_angle(impact_angle_deg: float, obliquity_deg: float) -> float:
    """Combined angle of attack against the plate, clamped to [0°, 90°]."""
    return min(abs(impact_angle_deg + obliquity_deg), 90.0)


def base_penetration(profile: BallisticProfile, velocity: float,
                     calibration: ShellCalibration) -> float:
    """Penetration (mm) against a perpendicular plate."""
    if calibration.caliber_fraction is not None:
        if profile.he_penetration is not None:
            return profile.he_penetration
        return profile.caliber * calibration.caliber_fraction
    return (calibration.penetration_coefficient
            * (profile.krupp / calibration.krupp_reference)
            * max(velocity, 0.0) ** calibration.velocity_exponent
            * profile.mass ** calibration.mass_exponent
            / profile.caliber ** calibration.caliber_exponent)


def ricochet_band(profile: BallisticProfile, calibration: ShellCalibration):
    """(start, always) ricochet angles, profile overrides first."""
    start = calibration.ricochet_start_deg
    always = calibration.ricochet_always_deg
    if profile.ricochet_start_deg is not None:
        start = profile.ricochet_start_deg
    if profile.ricochet_always_deg is not None:
        always = profile.ricochet_always_deg
    return min(start, always), always


def evaluate(profile: BallisticProfile, impact: ImpactState, query: ArmorQuery,
             calibration: CalibrationTable = DEFAULT_CALIBRATION) -> PenetrationOutcome:
    """Classify the hit of ``profile`` arriving with ``impact`` on ``query``."""
    row = calibration.for_shell(profile.shell_type)

    theta = effective_angle(impact.impact_angle_deg, query.obliquity_deg)
    normalized = max(theta - row.normalization_deg, 0.0)
    cosine = math.cos(math.radians(normalized))

    raw = base_penetration(profile, impact.velocity, row)
    effective = raw * cosine
    line_of_sight = query.thickness / cosine if cosine > 1e-12 else math.inf

    start, always = ricochet_band(profile, row)
    if always > start:
        chance = min(max((theta - start) / (always - start), 0.0), 1.0)
    else:
        chance = 1.0 if theta > always else 0.0

    if profile.caliber >= row.overmatch_ratio * query.thickness:
        kind = OutcomeKind.OVERMATCH
    elif theta > always:
        kind = OutcomeKind.RICOCHET
    elif impact.velocity < row.shatter_velocity:
        kind = OutcomeKind.SHATTER
    elif effective >= query.thickness:
        kind = OutcomeKind.PENETRATION
    else:
        kind = OutcomeKind.NON_PENETRATION

    fuze_armed = None
    fuze_distance = 0.0
    if profile.fuze_threshold is not None:
        fuze_armed = kind in (OutcomeKind.PENETRATION, OutcomeKind.OVERMATCH) \
            and line_of_sight >= profile.fuze_threshold
        if fuze_armed:
            fuze_distance = impact.velocity * profile.fuze_time

    return PenetrationOutcome(
        kind=kind,
        effective_penetration=effective,
        raw_penetration=raw,
        effective_angle_deg=theta,
        armor_thickness=query.thickness,
        line_of_sight_thickness=line_of_sight,
        ricochet_chance=chance,
        fuze_armed=fuze_armed,
        fuze_distance=fuze_distance,
    )
