"""
Numerical Integration Engine
=============================
Forward integration of one shell flight at a fixed barrel elevation.

Two time-stepping methods:

1. **Euler Method** (1st order): the scheme the game client uses; cheap,
   but its error grows with the step.
2. **Runge-Kutta 4th Order (RK4)**: default; accurate at the same step.

Both integrate the planar equations of motion

    dx/dt = v
    dv/dt = a(h, v)        (from compute_acceleration)

from the muzzle until the shell falls through the gun line. Before each
step the height is extrapolated quadratically from the current state; when
that crossing falls inside the step the landing is placed there, so a shell
that lands within its first step still gets a non-zero range. The landing
state is the last sample of the history.

Output: Trajectory dataclass with the full state history.
"""

import math
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .atmosphere import density_function
from .drag_model import DragModel
from .projectile import BallisticProfile, compute_acceleration


DEFAULT_TIME_STEP = 0.05     # s, RK4
DEFAULT_MAX_TIME = 600.0     # s
INTEGRATION_METHODS = ('rk4', 'euler')


@dataclass(frozen=True)
class TrajectorySample:
    """Shell state at one instant."""
    time: float
    x: float
    height: float      # negative = below the gun line
    vx: float
    vy: float

    @property
    def speed(self) -> float:
        return math.hypot(self.vx, self.vy)

    @property
    def descent_angle_deg(self) -> float:
        """Angle of the velocity below horizontal (negative while climbing)."""
        return math.degrees(math.atan2(-self.vy, self.vx))

    @staticmethod
    def interpolate(a: 'TrajectorySample', b: 'TrajectorySample',
                    fraction: float) -> 'TrajectorySample':
        """Linear interpolation, fraction 0 → a, 1 → b."""
        def lerp(p, q):
            return p + (q - p) * fraction
        return TrajectorySample(
            time=lerp(a.time, b.time),
            x=lerp(a.x, b.x),
            height=lerp(a.height, b.height),
            vx=lerp(a.vx, b.vx),
            vy=lerp(a.vy, b.vy),
        )


@dataclass(frozen=True)
class ImpactState:
    """Terminal state of a shell at the queried range."""
    velocity: float             # m/s, magnitude
    impact_angle_deg: float     # below horizontal, in [0, 90]
    time_of_flight: float       # s
    horizontal_velocity: float
    vertical_velocity: float
    distance: float             # m
    elevation_deg: float        # barrel elevation that produced it

    @classmethod
    def from_sample(cls, sample: TrajectorySample, elevation_deg: float) -> 'ImpactState':
        angle = min(max(sample.descent_angle_deg, 0.0), 90.0)
        return cls(
            velocity=sample.speed,
            impact_angle_deg=angle,
            time_of_flight=max(sample.time, 0.0),
            horizontal_velocity=sample.vx,
            vertical_velocity=sample.vy,
            distance=sample.x,
            elevation_deg=elevation_deg,
        )


@dataclass
class Trajectory:
    """Complete output of one forward integration."""
    profile: BallisticProfile
    elevation_deg: float
    method: str               # 'euler' or 'rk4'
    dt: float                 # timestep used
    atmosphere: str
    landed: bool

    # Arrays, each of shape (N,)
    time: np.ndarray
    x: np.ndarray             # downrange
    y: np.ndarray             # height above gun line
    vx: np.ndarray
    vy: np.ndarray
    speed: np.ndarray
    density_history: np.ndarray

    def sample(self, index: int) -> TrajectorySample:
        return TrajectorySample(
            time=float(self.time[index]), x=float(self.x[index]),
            height=float(self.y[index]),
            vx=float(self.vx[index]), vy=float(self.vy[index]),
        )

    def landing(self) -> Optional[TrajectorySample]:
        """State where the shell crosses the gun line on the way down."""
        if not self.landed:
            return None
        return self.sample(-1)

    def sample_at_range(self, distance: float) -> Optional[TrajectorySample]:
        """Interpolated state at a downrange distance, None if never reached."""
        if distance < self.x[0] or distance > self.x[-1]:
            return None
        i = int(np.searchsorted(self.x, distance, side='left'))
        if i == 0:
            return self.sample(0)
        span = self.x[i] - self.x[i - 1]
        fraction = (distance - self.x[i - 1]) / span if span > 0 else 0.0
        return TrajectorySample.interpolate(self.sample(i - 1), self.sample(i), fraction)

    def sample_at_time(self, t: float) -> Optional[TrajectorySample]:
        if t < 0 or t > self.time[-1]:
            return None
        i = int(np.searchsorted(self.time, t, side='left'))
        if i == 0:
            return self.sample(0)
        fraction = (t - self.time[i - 1]) / (self.time[i] - self.time[i - 1])
        return TrajectorySample.interpolate(self.sample(i - 1), self.sample(i), fraction)

    @property
    def range_total(self) -> float:
        """Horizontal range at the gun line (m); -inf if the shell never landed."""
        landing = self.landing()
        return landing.x if landing is not None else -math.inf

    @property
    def max_altitude(self) -> float:
        """Maximum height reached (m)."""
        return float(np.max(self.y))

    @property
    def flight_time(self) -> float:
        """Time to fall back to the gun line (s)."""
        landing = self.landing()
        return landing.time if landing is not None else math.inf

    @property
    def impact_velocity(self) -> float:
        """Speed at impact (m/s)."""
        return self.landing().speed

    @property
    def impact_angle_deg(self) -> float:
        """Angle of descent at impact (degrees below horizontal)."""
        return self.landing().descent_angle_deg

    def impact_state(self) -> Optional[ImpactState]:
        landing = self.landing()
        if landing is None:
            return None
        return ImpactState.from_sample(landing, self.elevation_deg)


def _initial_state(profile: BallisticProfile, elevation_deg: float):
    elev = math.radians(elevation_deg)
    return 0.0, 0.0, profile.muzzle_velocity * math.cos(elev), profile.muzzle_velocity * math.sin(elev)


def crossing_time(height: float, vy: float, ay: float, dt: float) -> Optional[float]:
    """
    First τ in [0, dt] at which h + vy·τ + ½·ay·τ² falls through the gun line.

    Returns None if the shell stays above the gun line for the whole step.
    A shell already at or below the gun line and not climbing lands at τ = 0.
    """
    if height <= 0.0 and vy <= 0.0:
        return 0.0
    if abs(ay) < 1e-12:
        roots = [-height / vy] if vy < 0.0 else []
    else:
        disc = vy * vy - 2.0 * ay * height
        if disc < 0.0:
            return None
        root = math.sqrt(disc)
        roots = [(-vy - root) / ay, (-vy + root) / ay]
    descending = [tau for tau in roots if 0.0 < tau <= dt and vy + ay * tau < 0.0]
    return min(descending) if descending else None


def _touchdown(t, x, y, vx, vy, ax, ay, tau, density):
    """History row of the landing, extrapolated τ seconds past (t, x, y, vx, vy)."""
    return (t + tau, x + vx * tau + 0.5 * ax * tau * tau, 0.0,
            vx + ax * tau, vy + ay * tau, density(0.0))


def _interpolated_touchdown(before, after):
    """History row where the straight line between two rows meets the gun line."""
    fraction = before[2] / (before[2] - after[2])
    row = [p + (q - p) * fraction for p, q in zip(before, after)]
    row[2] = 0.0
    return tuple(row)


def simulate_euler(profile: BallisticProfile, elevation_deg: float,
                   dt: float = DEFAULT_TIME_STEP, max_time: float = DEFAULT_MAX_TIME,
                   atmosphere: str = 'isa') -> Trajectory:
    """
    Forward Euler integration.

    x_{n+1} = x_n + v_n * dt
    v_{n+1} = v_n + a(x_n, v_n) * dt
    """
    drag = DragModel.for_profile(profile)
    density = density_function(atmosphere)
    x, y, vx, vy = _initial_state(profile, elevation_deg)
    t = 0.0

    history = [(t, x, y, vx, vy, density(0.0))]
    landed = False

    while t < max_time:
        ax, ay = compute_acceleration(vx, vy, y, drag, density)

        tau = crossing_time(y, vy, ay, dt)
        if tau is not None:
            history.append(_touchdown(t, x, y, vx, vy, ax, ay, tau, density))
            landed = True
            break

        x, y = x + vx * dt, y + vy * dt
        vx, vy = vx + ax * dt, vy + ay * dt
        t += dt

        row = (t, x, y, vx, vy, density(max(y, 0.0)))
        if y < 0.0:
            history.append(_interpolated_touchdown(history[-1], row))
            landed = True
            break
        history.append(row)

    return _build_result(history, profile, elevation_deg, 'euler', dt, atmosphere, landed)


def simulate_rk4(profile: BallisticProfile, elevation_deg: float,
                 dt: float = DEFAULT_TIME_STEP, max_time: float = DEFAULT_MAX_TIME,
                 atmosphere: str = 'isa') -> Trajectory:
    """
    4th-order Runge-Kutta integration.

    Much more accurate than Euler at the same timestep.
    """
    drag = DragModel.for_profile(profile)
    density = density_function(atmosphere)
    x, y, vx, vy = _initial_state(profile, elevation_deg)
    t = 0.0
    half = 0.5 * dt

    def accel(h, u, w):
        return compute_acceleration(u, w, h, drag, density)

    history = [(t, x, y, vx, vy, density(0.0))]
    landed = False

    while t < max_time:
        # RK4 stages; position derivative is the velocity itself
        k1ax, k1ay = accel(y, vx, vy)

        tau = crossing_time(y, vy, k1ay, dt)
        if tau is not None:
            history.append(_touchdown(t, x, y, vx, vy, k1ax, k1ay, tau, density))
            landed = True
            break

        k2vx, k2vy = vx + half * k1ax, vy + half * k1ay
        k2ax, k2ay = accel(y + half * vy, k2vx, k2vy)

        k3vx, k3vy = vx + half * k2ax, vy + half * k2ay
        k3ax, k3ay = accel(y + half * k2vy, k3vx, k3vy)

        k4vx, k4vy = vx + dt * k3ax, vy + dt * k3ay
        k4ax, k4ay = accel(y + dt * k3vy, k4vx, k4vy)

        x += (dt / 6.0) * (vx + 2 * k2vx + 2 * k3vx + k4vx)
        y += (dt / 6.0) * (vy + 2 * k2vy + 2 * k3vy + k4vy)
        vx += (dt / 6.0) * (k1ax + 2 * k2ax + 2 * k3ax + k4ax)
        vy += (dt / 6.0) * (k1ay + 2 * k2ay + 2 * k3ay + k4ay)
        t += dt

        row = (t, x, y, vx, vy, density(max(y, 0.0)))
        if y < 0.0:
            history.append(_interpolated_touchdown(history[-1], row))
            landed = True
            break
        history.append(row)

    return _build_result(history, profile, elevation_deg, 'rk4', dt, atmosphere, landed)


def fly(profile: BallisticProfile, elevation_deg: float,
        dt: float = DEFAULT_TIME_STEP, method: str = 'rk4',
        max_time: float = DEFAULT_MAX_TIME, atmosphere: str = 'isa') -> Trajectory:
    """Integrate one flight at a fixed elevation with the chosen method."""
    if dt <= 0 or not math.isfinite(dt):
        raise ValueError(f"Time step must be positive, got {dt}")
    if method == 'rk4':
        return simulate_rk4(profile, elevation_deg, dt, max_time, atmosphere)
    if method == 'euler':
        return simulate_euler(profile, elevation_deg, dt, max_time, atmosphere)
    raise ValueError(
        f"Unknown integration method '{method}'. "
        f"Available: {list(INTEGRATION_METHODS)}"
    )


def _build_result(history, profile, elevation_deg, method, dt, atmosphere, landed):
    """Convert history list to Trajectory."""
    times, xs, ys, vxs, vys, rhos = (np.array(column) for column in zip(*history))

    return Trajectory(
        profile=profile,
        elevation_deg=elevation_deg,
        method=method,
        dt=dt,
        atmosphere=atmosphere,
        landed=landed,
        time=times,
        x=xs,
        y=ys,
        vx=vxs,
        vy=vys,
        speed=np.hypot(vxs, vys),
        density_history=rhos,
    )
