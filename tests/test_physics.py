"""
Unit Tests for the Naval Ballistics Core
========================================
Atmosphere, drag law, shell profiles and the forward integrators.
Run: python -m pytest tests/ -v
"""

import sys
import os
import logging
import math
import numpy as np
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from naval_ballistics.atmosphere import (
    isa_temperature, isa_pressure, isa_density, constant_density,
    density_function, density_profile, SEA_LEVEL_DENSITY,
)
from naval_ballistics.drag_model import DragModel
from naval_ballistics.errors import BallisticError, InvalidProfile
from naval_ballistics.integrator import crossing_time, fly, simulate_euler, simulate_rk4
from naval_ballistics.projectile import (
    GRAVITY, BallisticProfile, ShellType, compute_acceleration, profile_from_game_params,
)
from naval_ballistics.validation import REFERENCE_SHELLS


YAMATO = REFERENCE_SHELLS['yamato']
SLAVA = REFERENCE_SHELLS['slava']
VACUUM = BallisticProfile(name='vacuum', caliber=100.0, mass=10.0,
                          muzzle_velocity=300.0, drag_coefficient=0.0)


class TestAtmosphere:
    """Verify ISA model against known standard values."""

    def test_sea_level_temperature(self):
        assert abs(isa_temperature(0) - 288.15) < 0.01

    def test_sea_level_pressure(self):
        assert abs(isa_pressure(0) - 101325.0) < 1.0

    def test_sea_level_density(self):
        assert abs(isa_density(0) - 1.225) < 0.01

    def test_tropopause_temperature(self):
        """Temperature at 11 km should be ~216.65 K."""
        assert abs(isa_temperature(11000) - 216.65) < 0.5

    def test_density_decreases_with_altitude(self):
        rho_0 = isa_density(0)
        rho_5 = isa_density(5000)
        rho_10 = isa_density(10000)
        rho_15 = isa_density(15000)
        assert rho_0 > rho_5 > rho_10 > rho_15

    def test_pressure_decreases_with_altitude(self):
        assert isa_pressure(5000) < isa_pressure(0)
        assert isa_pressure(10000) < isa_pressure(5000)

    def test_below_gun_line_clipped(self):
        assert isa_density(-50.0) == isa_density(0.0)

    def test_constant_model(self):
        assert constant_density(12000.0) == SEA_LEVEL_DENSITY
        assert density_function('constant') is constant_density
        assert density_function('isa') is isa_density

    def test_unknown_model_rejected(self):
        with pytest.raises(ValueError):
            density_function('mars')

    def test_density_profile_shape(self):
        rho = density_profile(np.linspace(0, 20000, 11))
        assert rho.shape == (11,)
        assert np.all(np.diff(rho) < 0)


class TestDragModel:
    """Verify the quadratic + linear drag law."""

    def test_constants(self):
        drag = DragModel(460.0, 1460.0, 0.292)
        area = math.pi * 0.23 ** 2
        assert drag.area == pytest.approx(area)
        assert drag.k == pytest.approx(0.5 * 0.292 * area / 1460.0)
        assert drag.cw_quadratic == 1.0
        assert drag.cw_linear == pytest.approx(100.0 + 1000.0 / 3.0 * 0.46)

    def test_drag_opposes_motion(self):
        drag = DragModel.for_profile(YAMATO)
        ax, ay = drag.acceleration(500.0, -200.0, 1.0)
        assert ax < 0
        assert ay > 0

    def test_drag_parallel_to_velocity(self):
        drag = DragModel.for_profile(YAMATO)
        ax, ay = drag.acceleration(600.0, 300.0, 1.0)
        assert ay / ax == pytest.approx(0.5)

    def test_drag_zero_at_rest(self):
        drag = DragModel.for_profile(YAMATO)
        assert drag.acceleration(0.0, 0.0, SEA_LEVEL_DENSITY) == (0.0, 0.0)

    def test_zero_drag_coefficient(self):
        drag = DragModel.for_profile(VACUUM)
        assert drag.acceleration(300.0, 100.0, SEA_LEVEL_DENSITY) == (0.0, 0.0)
        assert drag.terminal_velocity(SEA_LEVEL_DENSITY, GRAVITY) == math.inf

    def test_deceleration_matches_vector_form(self):
        drag = DragModel.for_profile(YAMATO)
        ax, ay = drag.acceleration(300.0, 400.0, SEA_LEVEL_DENSITY)
        magnitude = drag.deceleration(np.array([500.0]), SEA_LEVEL_DENSITY)[0]
        assert magnitude == pytest.approx(math.hypot(ax, ay))

    def test_deceleration_grows_with_speed(self):
        drag = DragModel.for_profile(YAMATO)
        decel = drag.deceleration(np.linspace(0, 1000, 50), SEA_LEVEL_DENSITY)
        assert decel[0] == 0.0
        assert np.all(np.diff(decel) > 0)

    def test_terminal_velocity_balances_gravity(self):
        drag = DragModel.for_profile(YAMATO)
        vt = drag.terminal_velocity(SEA_LEVEL_DENSITY, GRAVITY)
        assert drag.deceleration(vt, SEA_LEVEL_DENSITY) == pytest.approx(GRAVITY)


class TestProfile:
    """Profile invariants and the game-data adapter."""

    def test_reference_shells_valid(self):
        for shell in REFERENCE_SHELLS.values():
            assert shell.validate() is shell

    def test_diameter(self):
        assert YAMATO.diameter == pytest.approx(0.46)

    @pytest.mark.parametrize('changes', [
        {'muzzle_velocity': 0.0},
        {'mass': -1.0},
        {'caliber': float('nan')},
        {'muzzle_velocity': float('inf')},
        {'krupp': 0.0},
        {'drag_coefficient': -0.1},
        {'fuze_time': -0.01},
        {'ricochet_start_deg': 95.0},
        {'ricochet_start_deg': 60.0, 'ricochet_always_deg': 45.0},
    ])
    def test_invalid_constants_rejected(self, changes):
        fields = dict(caliber=406.0, mass=1225.0, muzzle_velocity=762.0)
        fields.update(changes)
        with pytest.raises(InvalidProfile):
            BallisticProfile(**fields).validate()

    def test_invalid_profile_is_value_error(self):
        assert issubclass(InvalidProfile, ValueError)
        assert issubclass(InvalidProfile, BallisticError)

    def test_shell_type_parse(self):
        assert ShellType.parse('ap') is ShellType.AP
        assert ShellType.parse(ShellType.HE) is ShellType.HE
        assert ShellType.parse('CS') is ShellType.SAP
        with pytest.raises(InvalidProfile):
            ShellType.parse('torpedo')

    def test_gravity_only_at_rest(self):
        drag = DragModel.for_profile(YAMATO)
        ax, ay = compute_acceleration(0.0, 0.0, 1000.0, drag, isa_density)
        assert ax == 0.0
        assert ay == pytest.approx(-GRAVITY)

    def test_game_params_ap(self):
        ammo = {
            'name': 'PJPA001_460_AP_Type91',
            'ammoType': 'AP',
            'bulletMass': 1460.0,
            'bulletDiametr': 0.46,
            'bulletSpeed': 780.0,
            'bulletAirDrag': 0.292,
            'bulletKrupp': 2574.0,
            'bulletDetonator': 0.033,
            'bulletDetonatorThreshold': 76.0,
            'bulletRicochetAt': 45.0,
            'bulletAlwaysRicochetAt': 60.0,
        }
        profile = profile_from_game_params(ammo)
        assert profile.caliber == pytest.approx(460.0)
        assert profile.shell_type is ShellType.AP
        assert profile.fuze_threshold == 76.0
        assert profile.ricochet_always_deg == 60.0
        assert profile.name == 'PJPA001_460_AP_Type91'

    def test_game_params_he(self):
        ammo = {'ammoType': 'HE', 'bulletMass': 862.0, 'bulletDiametr': 0.406,
                'bulletSpeed': 820.0, 'bulletAirDrag': 0.3, 'alphaPiercingHE': 68.0,
                'bulletDetonatorThreshold': 76.0}
        profile = profile_from_game_params(ammo, name='Iowa HE')
        assert profile.shell_type is ShellType.HE
        assert profile.he_penetration == 68.0
        assert profile.fuze_threshold is None
        assert profile.name == 'Iowa HE'

    def test_game_params_cs_warns(self, caplog):
        ammo = {'ammoType': 'CS', 'bulletMass': 25.0, 'bulletDiametr': 0.152,
                'bulletSpeed': 900.0, 'bulletAirDrag': 0.3}
        with caplog.at_level(logging.WARNING, logger='naval_ballistics.projectile'):
            profile = profile_from_game_params(ammo)
        assert profile.shell_type is ShellType.SAP
        assert 'CS' in caplog.text

    def test_game_params_missing_key(self):
        with pytest.raises(InvalidProfile, match='bulletAirDrag'):
            profile_from_game_params({'bulletMass': 1.0, 'bulletDiametr': 0.1,
                                      'bulletSpeed': 800.0})


class TestIntegrators:
    """Verify forward integration produces physically sensible results."""

    def test_euler_runs(self):
        result = simulate_euler(YAMATO, 10.0)
        assert result.landed
        assert result.range_total > 0
        assert result.method == 'euler'

    def test_rk4_runs(self):
        result = simulate_rk4(YAMATO, 10.0)
        assert result.landed
        assert result.range_total > 0
        assert result.method == 'rk4'

    def test_shell_lands_at_gun_line(self):
        result = fly(YAMATO, 15.0)
        assert result.y[-1] == 0.0
        assert np.all(result.y[:-1] >= 0.0)
        assert result.landing().height == 0.0
        assert result.range_total == result.x[-1]

    @pytest.mark.parametrize('method', ['rk4', 'euler'])
    def test_flat_shot_lands_at_muzzle(self, method):
        result = fly(SLAVA, 0.0, method=method)
        assert result.landed
        assert result.range_total == 0.0
        assert result.flight_time == 0.0

    @pytest.mark.parametrize('method', ['rk4', 'euler'])
    def test_landing_inside_first_step(self, method):
        """A lob shorter than one step lands where the parabola says, not at the muzzle."""
        elevation = 0.01
        exact = VACUUM.muzzle_velocity ** 2 * math.sin(math.radians(2 * elevation)) / GRAVITY
        result = fly(VACUUM, elevation, method=method, atmosphere='constant')
        assert result.flight_time < result.dt
        assert result.range_total == pytest.approx(exact, rel=1e-6)

    @pytest.mark.parametrize('method', ['rk4', 'euler'])
    def test_range_continuous_near_flat(self, method):
        elevations = [0.0, 0.001, 0.005, 0.01, 0.02, 0.05, 0.1]
        ranges = [fly(SLAVA, e, method=method).range_total for e in elevations]
        assert ranges[0] == 0.0
        assert 0.0 < ranges[1] < 10.0
        assert ranges == sorted(ranges)

    def test_rk4_more_accurate_than_euler(self):
        """In vacuum RK4 should match v² sin 2θ / g much closer than Euler."""
        exact = VACUUM.muzzle_velocity ** 2 * math.sin(math.radians(60)) / GRAVITY
        euler = fly(VACUUM, 30.0, method='euler', atmosphere='constant').range_total
        rk4 = fly(VACUUM, 30.0, method='rk4', atmosphere='constant').range_total
        assert abs(rk4 - exact) < abs(euler - exact)
        assert abs(rk4 - exact) / exact < 1e-3

    def test_vacuum_impact_angle_mirrors_elevation(self):
        result = fly(VACUUM, 30.0, atmosphere='constant')
        assert result.impact_angle_deg == pytest.approx(30.0, abs=0.05)
        assert result.impact_velocity == pytest.approx(300.0, rel=1e-3)

    def test_higher_drag_reduces_range(self):
        low = BallisticProfile(caliber=406.0, mass=1225.0, muzzle_velocity=762.0,
                               drag_coefficient=0.2)
        high = BallisticProfile(caliber=406.0, mass=1225.0, muzzle_velocity=762.0,
                                drag_coefficient=0.4)
        assert fly(low, 20.0).range_total > fly(high, 20.0).range_total

    def test_thin_air_extends_range(self):
        isa = fly(YAMATO, 30.0, atmosphere='isa').range_total
        dense = fly(YAMATO, 30.0, atmosphere='constant').range_total
        assert isa > dense

    def test_drag_slows_shell(self):
        result = fly(YAMATO, 20.0)
        assert result.impact_velocity < YAMATO.muzzle_velocity
        assert result.impact_angle_deg > 20.0

    def test_sample_at_range(self):
        result = fly(YAMATO, 10.0)
        mid = result.sample_at_range(result.range_total / 2)
        assert mid.x == pytest.approx(result.range_total / 2)
        assert mid.height > 0
        assert result.sample_at_range(result.range_total * 2) is None

    def test_sample_at_time(self):
        result = fly(YAMATO, 10.0)
        state = result.sample_at_time(1.0)
        assert state.time == pytest.approx(1.0)
        assert result.sample_at_time(-1.0) is None

    def test_timeout_never_lands(self):
        result = fly(YAMATO, 45.0, max_time=1.0)
        assert not result.landed
        assert result.range_total == -math.inf
        assert result.flight_time == math.inf
        assert result.impact_state() is None

    def test_impact_state(self):
        impact = fly(YAMATO, 10.0).impact_state()
        assert 0.0 <= impact.impact_angle_deg <= 90.0
        assert impact.velocity > 0
        assert impact.time_of_flight > 0
        assert impact.elevation_deg == 10.0
        assert impact.vertical_velocity < 0

    def test_invalid_step_rejected(self):
        with pytest.raises(ValueError):
            fly(YAMATO, 10.0, dt=0.0)
        with pytest.raises(ValueError):
            fly(YAMATO, 10.0, dt=float('nan'))

    def test_unknown_method_rejected(self):
        with pytest.raises(ValueError, match='Unknown integration method'):
            fly(YAMATO, 10.0, method='leapfrog')


class TestCrossingTime:
    """Gun-line crossing of the quadratic height model within one step."""

    def test_at_rest_on_gun_line(self):
        assert crossing_time(0.0, 0.0, -GRAVITY, 0.05) == 0.0

    def test_lob_from_gun_line(self):
        assert crossing_time(0.0, 0.1, -GRAVITY, 0.05) == pytest.approx(0.2 / GRAVITY)

    def test_descending_close_to_gun_line(self):
        tau = crossing_time(0.1, -10.0, -GRAVITY, 0.05)
        assert tau == pytest.approx(0.01, rel=0.01)

    def test_no_acceleration(self):
        assert crossing_time(0.1, -10.0, 0.0, 0.05) == pytest.approx(0.01)

    def test_stays_above_gun_line(self):
        assert crossing_time(100.0, 10.0, -GRAVITY, 0.05) is None
        assert crossing_time(100.0, -10.0, -GRAVITY, 0.05) is None
        assert crossing_time(0.0, 10.0, -GRAVITY, 0.05) is None
