"""
Naval Shell Ballistics & Penetration Engine
===========================================
Computes naval-artillery shell trajectories and armor-penetration outcomes
for a simulated combat game:
  - Gravity and the game's quadratic + linear drag law
  - ISA or constant-density atmosphere
  - Euler and RK4 forward integration with an elevation root-find
  - Penetration model with overmatch, ricochet and shatter regimes

Given a shell profile, a target range and an armor plate, the engagement
evaluator reports impact conditions and the penetration outcome.
"""

from .errors import BallisticError, InvalidProfile, NoSolution
from .atmosphere import isa_density, isa_pressure, isa_temperature, density_function
from .drag_model import DragModel
from .projectile import (
    BallisticProfile, ShellType, GRAVITY,
    compute_acceleration, profile_from_game_params,
)
from .calibration import (
    CalibrationTable, ShellCalibration, DEFAULT_CALIBRATION, load_calibration,
)
from .integrator import (
    ImpactState, Trajectory, TrajectorySample,
    fly, simulate_euler, simulate_rk4, DEFAULT_TIME_STEP,
)
from .solver import (
    find_max_range, solve_elevation, integrate, integrate_for_flight_time,
    step_convergence, ANGLE_CONVERGENCE_TOLERANCE_DEG, RANGE_TOLERANCE_M,
)
from .penetration import (
    ArmorQuery, OutcomeKind, PenetrationOutcome, evaluate, effective_angle,
)
from .engagement import EngagementReport, evaluate_engagement, sweep_ranges, sweep_armor
from .validation import (
    REFERENCE_SHELLS, validate_against_vacuum, check_step_convergence,
    run_all_validations,
)

__version__ = "1.0.0"
__all__ = [
    'BallisticError', 'InvalidProfile', 'NoSolution',
    'isa_density', 'isa_pressure', 'isa_temperature', 'density_function',
    'DragModel',
    'BallisticProfile', 'ShellType', 'GRAVITY',
    'compute_acceleration', 'profile_from_game_params',
    'CalibrationTable', 'ShellCalibration', 'DEFAULT_CALIBRATION', 'load_calibration',
    'ImpactState', 'Trajectory', 'TrajectorySample',
    'fly', 'simulate_euler', 'simulate_rk4', 'DEFAULT_TIME_STEP',
    'find_max_range', 'solve_elevation', 'integrate', 'integrate_for_flight_time',
    'step_convergence', 'ANGLE_CONVERGENCE_TOLERANCE_DEG', 'RANGE_TOLERANCE_M',
    'ArmorQuery', 'OutcomeKind', 'PenetrationOutcome', 'evaluate', 'effective_angle',
    'EngagementReport', 'evaluate_engagement', 'sweep_ranges', 'sweep_armor',
    'REFERENCE_SHELLS', 'validate_against_vacuum', 'check_step_convergence',
    'run_all_validations',
]
