"""
Shell Definition & Forces
=========================
Defines the immutable BallisticProfile of a naval shell and the equations
of motion used by the integrator:
  - Gravity (constant, 9.81 m/s²)
  - Aerodynamic drag (game drag law, see drag_model)

Coordinate system (2-D, firing plane):
  x = downrange (horizontal)
  y = height above the gun line (up positive)

Also hosts the adapter from raw game-data ammo entries to profiles.
"""

import logging
import math
import numbers
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from .drag_model import DragModel
from .errors import InvalidProfile

logger = logging.getLogger(__name__)

GRAVITY = 9.81  # m/s²


class ShellType(Enum):
    AP = 'AP'
    HE = 'HE'
    SAP = 'SAP'

    @classmethod
    def parse(cls, value) -> 'ShellType':
        """Accept a ShellType, its value, or the game's ammo code."""
        if isinstance(value, cls):
            return value
        key = str(value).strip().upper()
        if key == 'CS':
            return cls.SAP
        try:
            return cls(key)
        except ValueError:
            raise InvalidProfile(f"Unknown shell type '{value}'") from None


@dataclass(frozen=True)
class BallisticProfile:
    """
    Physical constants of one shell.

    Units: caliber in mm, mass in kg, muzzle velocity in m/s, fuze threshold
    and HE penetration in mm, fuze time in s, ricochet angles in degrees from
    the plate normal.
    """
    caliber: float
    mass: float
    muzzle_velocity: float
    drag_coefficient: float = 0.3
    shell_type: ShellType = ShellType.AP
    name: str = "Shell"
    krupp: float = 2400.0
    fuze_threshold: Optional[float] = None
    fuze_time: float = 0.033
    ricochet_start_deg: Optional[float] = None
    ricochet_always_deg: Optional[float] = None
    he_penetration: Optional[float] = None

    @property
    def diameter(self) -> float:
        """Caliber in meters."""
        return self.caliber / 1000.0

    def validate(self) -> 'BallisticProfile':
        """Raise InvalidProfile if any constant breaks its invariant."""
        for field_name in ('caliber', 'mass', 'muzzle_velocity', 'krupp'):
            _require_positive(field_name, getattr(self, field_name))
        _require_non_negative('drag_coefficient', self.drag_coefficient)
        _require_non_negative('fuze_time', self.fuze_time)
        if self.fuze_threshold is not None:
            _require_non_negative('fuze_threshold', self.fuze_threshold)
        if self.he_penetration is not None:
            _require_non_negative('he_penetration', self.he_penetration)
        if not isinstance(self.shell_type, ShellType):
            raise InvalidProfile(f"shell_type must be a ShellType, got {self.shell_type!r}")

        for field_name in ('ricochet_start_deg', 'ricochet_always_deg'):
            value = getattr(self, field_name)
            if value is not None and not (0.0 <= value <= 90.0):
                raise InvalidProfile(f"{field_name} must lie in [0, 90], got {value}")
        if (self.ricochet_start_deg is not None and self.ricochet_always_deg is not None
                and self.ricochet_start_deg > self.ricochet_always_deg):
            raise InvalidProfile(
                f"ricochet_start_deg ({self.ricochet_start_deg}) exceeds "
                f"ricochet_always_deg ({self.ricochet_always_deg})"
            )
        return self


def _require_positive(name: str, value) -> None:
    if not isinstance(value, numbers.Real) or not math.isfinite(value) or value <= 0:
        raise InvalidProfile(f"{name} must be a positive finite number, got {value!r}")


def _require_non_negative(name: str, value) -> None:
    if not isinstance(value, numbers.Real) or not math.isfinite(value) or value < 0:
        raise InvalidProfile(f"{name} must be a non-negative finite number, got {value!r}")


def compute_acceleration(vx: float, vy: float, height: float,
                         drag: DragModel, density) -> Tuple[float, float]:
    """
    Total acceleration (m/s²) acting on the shell.

    Parameters
    ----------
    vx, vy : velocity components (m/s)
    height : height above the gun line (m); the atmosphere is clipped at 0
    drag : DragModel of the shell
    density : callable rho(altitude) from the atmosphere module

    Returns
    -------
    (ax, ay)
    """
    rho = density(max(height, 0.0))
    ax, ay = drag.acceleration(vx, vy, rho)
    return ax, ay - GRAVITY


# ══════════════════════════════════════════════════════════════════════════
#  Game-data adapter
# ══════════════════════════════════════════════════════════════════════════

_REQUIRED_GAME_KEYS = ('bulletMass', 'bulletDiametr', 'bulletSpeed', 'bulletAirDrag')


def profile_from_game_params(ammo: dict, name: Optional[str] = None) -> BallisticProfile:
    """
    Build a profile from one ammo entry of the game data.

    ``bulletDiametr`` is in meters in the game data and is converted to mm.
    """
    missing = [key for key in _REQUIRED_GAME_KEYS if key not in ammo]
    if missing:
        raise InvalidProfile(f"Ammo entry is missing {', '.join(missing)}")

    ammo_type = ammo.get('ammoType', 'AP')
    shell_type = ShellType.parse(ammo_type)
    if str(ammo_type).upper() == 'CS':
        logger.warning("Ammo type CS mapped to SAP penetration rules")

    fuze_threshold = None
    if shell_type is ShellType.AP and 'bulletDetonatorThreshold' in ammo:
        fuze_threshold = float(ammo['bulletDetonatorThreshold'])

    he_penetration = None
    if shell_type is not ShellType.AP and 'alphaPiercingHE' in ammo:
        he_penetration = float(ammo['alphaPiercingHE'])

    profile = BallisticProfile(
        name=name or ammo.get('name', 'Shell'),
        caliber=float(ammo['bulletDiametr']) * 1000.0,
        mass=float(ammo['bulletMass']),
        muzzle_velocity=float(ammo['bulletSpeed']),
        drag_coefficient=float(ammo['bulletAirDrag']),
        shell_type=shell_type,
        krupp=float(ammo.get('bulletKrupp', 2400.0)),
        fuze_threshold=fuze_threshold,
        fuze_time=float(ammo.get('bulletDetonator', 0.033)),
        ricochet_start_deg=_optional_float(ammo, 'bulletRicochetAt'),
        ricochet_always_deg=_optional_float(ammo, 'bulletAlwaysRicochetAt'),
        he_penetration=he_penetration,
    )
    logger.debug("Parsed %s ammo '%s' (%.0f mm)", shell_type.value, profile.name, profile.caliber)
    return profile.validate()


def _optional_float(ammo: dict, key: str) -> Optional[float]:
    value = ammo.get(key)
    return None if value is None else float(value)
