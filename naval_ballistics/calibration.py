"""
Penetration Calibration Table
=============================
Empirical, game-specific constants of the penetration model, keyed by shell
type. The table is plain data: it is loaded once (defaults below, or a JSON
file) and passed by reference into the penetration model, so recalibrating
never touches the model's logic.

AP penetration:

    pen = C · (krupp / krupp_ref) · v^a · m^b / caliber^c

HE / SAP penetration is a flat fraction of the caliber.

JSON layout accepted by ``load_calibration``::

    {
      "AP":  {"velocity_exponent": 1.1, "ricochet_always_deg": 60.0},
      "SAP": {"caliber_fraction": 0.25}
    }

Rows and fields that are left out keep their default values.
"""

import json
from dataclasses import asdict, dataclass, fields, replace
from typing import Dict, Optional

from .projectile import ShellType


@dataclass(frozen=True)
class ShellCalibration:
    penetration_coefficient: float = 0.5561613
    krupp_reference: float = 2400.0
    velocity_exponent: float = 1.1
    mass_exponent: float = 0.55
    caliber_exponent: float = 0.65
    caliber_fraction: Optional[float] = None   # flat penetration (HE/SAP)
    normalization_deg: float = 0.0
    ricochet_start_deg: float = 45.0
    ricochet_always_deg: float = 60.0
    overmatch_ratio: float = 14.3
    shatter_velocity: float = 0.0               # m/s

    def __post_init__(self):
        if not (0.0 <= self.ricochet_start_deg <= self.ricochet_always_deg <= 90.0):
            raise ValueError(
                f"Ricochet band must satisfy 0 <= start <= always <= 90, got "
                f"({self.ricochet_start_deg}, {self.ricochet_always_deg})"
            )
        if self.overmatch_ratio <= 0:
            raise ValueError(f"overmatch_ratio must be positive, got {self.overmatch_ratio}")
        if self.shatter_velocity < 0:
            raise ValueError(f"shatter_velocity must be >= 0, got {self.shatter_velocity}")
        if self.caliber_fraction is not None and self.caliber_fraction < 0:
            raise ValueError(f"caliber_fraction must be >= 0, got {self.caliber_fraction}")


@dataclass(frozen=True)
class CalibrationTable:
    """Per-shell-type calibration rows. Treat as read-only."""
    shells: Dict[ShellType, ShellCalibration]

    def for_shell(self, shell_type: ShellType) -> ShellCalibration:
        try:
            return self.shells[shell_type]
        except KeyError:
            raise KeyError(f"No calibration row for shell type {shell_type.value}") from None

    @classmethod
    def from_dict(cls, data: dict, base: Optional['CalibrationTable'] = None) -> 'CalibrationTable':
        """Merge a ``{shell_type: {field: value}}`` mapping onto ``base``."""
        base = base or DEFAULT_CALIBRATION
        known = {f.name for f in fields(ShellCalibration)}
        shells = dict(base.shells)
        for key, row in data.items():
            try:
                shell_type = ShellType(str(key).upper())
            except ValueError:
                raise ValueError(f"Unknown shell type '{key}' in calibration data") from None
            unknown = set(row) - known
            if unknown:
                raise ValueError(
                    f"Unknown calibration field(s) for {key}: {sorted(unknown)}"
                )
            shells[shell_type] = replace(shells.get(shell_type, ShellCalibration()), **row)
        return cls(shells=shells)

    def to_dict(self) -> dict:
        return {shell_type.value: asdict(row) for shell_type, row in self.shells.items()}


DEFAULT_CALIBRATION = CalibrationTable(shells={
    ShellType.AP: ShellCalibration(
        ricochet_start_deg=45.0,
        ricochet_always_deg=60.0,
        shatter_velocity=100.0,
    ),
    ShellType.HE: ShellCalibration(
        caliber_fraction=1.0 / 6.0,
        ricochet_start_deg=90.0,
        ricochet_always_deg=90.0,
    ),
    ShellType.SAP: ShellCalibration(
        caliber_fraction=0.25,
        ricochet_start_deg=60.0,
        ricochet_always_deg=75.0,
    ),
})


def load_calibration(path: str, base: Optional[CalibrationTable] = None) -> CalibrationTable:
    """Read a JSON calibration file and merge it onto the defaults."""
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Calibration file {path} must contain a JSON object")
    return CalibrationTable.from_dict(data, base=base)
