"""
Tests for the engagement evaluator, batch sweeps and text reports.
Run: python -m pytest tests/ -v
"""

import sys
import os
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from naval_ballistics.engagement import (
    EngagementReport, evaluate_engagement, sweep_armor, sweep_ranges,
)
from naval_ballistics.errors import InvalidProfile, NoSolution
from naval_ballistics.penetration import ArmorQuery, OutcomeKind
from naval_ballistics.projectile import BallisticProfile
from naval_ballistics.report import engagement_summary, sweep_table, trajectory_summary
from naval_ballistics.integrator import fly
from naval_ballistics.solver import find_max_range
from naval_ballistics.validation import REFERENCE_SHELLS


SLAVA = REFERENCE_SHELLS['slava']


@pytest.fixture(scope='module')
def envelope():
    return find_max_range(SLAVA)


@pytest.fixture(scope='module')
def report(envelope):
    return evaluate_engagement(SLAVA, 10000.0, ArmorQuery(250.0), envelope=envelope)


class TestEvaluateEngagement:

    def test_report_fields(self, report):
        assert isinstance(report, EngagementReport)
        assert report.target_range == 10000.0
        assert report.query.thickness == 250.0
        assert report.impact.distance == pytest.approx(10000.0, abs=1.0)

    def test_heavy_shell_penetrates_at_short_range(self, report):
        assert report.outcome.kind is OutcomeKind.PENETRATION
        assert report.outcome.effective_penetration > 250.0
        assert report.outcome.fuze_armed is True

    def test_overmatch_thin_plate(self, envelope):
        result = evaluate_engagement(SLAVA, 10000.0, ArmorQuery(25.0, 60.0), envelope=envelope)
        assert result.outcome.kind is OutcomeKind.OVERMATCH

    @pytest.mark.parametrize('method', ['rk4', 'euler'])
    def test_point_blank_range(self, method):
        result = evaluate_engagement(SLAVA, 20.0, ArmorQuery(100.0), method=method)
        assert result.impact.distance == pytest.approx(20.0, abs=1.0)
        assert 0.0 <= result.impact.impact_angle_deg < 1.0
        assert result.outcome.kind is OutcomeKind.PENETRATION

    def test_unreachable_range(self, envelope):
        max_range, _ = envelope
        with pytest.raises(NoSolution):
            evaluate_engagement(SLAVA, 10 * max_range, ArmorQuery(250.0), envelope=envelope)

    def test_invalid_profile(self):
        bad = BallisticProfile(caliber=406.0, mass=890.0, muzzle_velocity=0.0)
        with pytest.raises(InvalidProfile):
            evaluate_engagement(bad, 10000.0, ArmorQuery(250.0))


class TestSweeps:

    def test_sweep_ranges_in_order(self, envelope):
        max_range, _ = envelope
        ranges = [5000.0, 15000.0, 10 * max_range, 25000.0]
        results = sweep_ranges(SLAVA, ranges, ArmorQuery(250.0), max_workers=4)
        assert len(results) == 4
        assert isinstance(results[2], NoSolution)
        reached = [r for r in results if isinstance(r, EngagementReport)]
        assert [r.target_range for r in reached] == [5000.0, 15000.0, 25000.0]
        assert reached[0].impact.impact_angle_deg < reached[1].impact.impact_angle_deg \
            < reached[2].impact.impact_angle_deg

    def test_no_penetration_recovery_with_range(self):
        shell = BallisticProfile(name='406mm AP', caliber=406.0, mass=860.0,
                                 muzzle_velocity=800.0)
        max_range, _ = find_max_range(shell)
        ranges = [r for r in range(5000, 30001, 2500) if r <= 0.9 * max_range]
        results = sweep_ranges(shell, ranges, ArmorQuery(400.0))
        penetrated = [r.outcome.penetrated for r in results]
        assert penetrated[0]
        if False in penetrated:
            first_fail = penetrated.index(False)
            assert not any(penetrated[first_fail:])

        at_15km = evaluate_engagement(shell, 15000.0, ArmorQuery(250.0))
        assert 0.0 < at_15km.impact.impact_angle_deg < 90.0
        assert 0.0 < at_15km.impact.elevation_deg < 89.9

    def test_sweep_ranges_in_processes(self, envelope):
        max_range, _ = envelope
        results = sweep_ranges(SLAVA, [5000.0, 10 * max_range], ArmorQuery(100.0),
                               max_workers=2, processes=True)
        assert isinstance(results[0], EngagementReport)
        assert results[0].impact.distance == pytest.approx(5000.0, abs=1.0)
        assert isinstance(results[1], NoSolution)
        assert results[1].max_reachable == pytest.approx(max_range)
        assert results[1].target == pytest.approx(10 * max_range)

    def test_sweep_ranges_invalid_profile(self):
        bad = BallisticProfile(caliber=406.0, mass=890.0, muzzle_velocity=-1.0)
        with pytest.raises(InvalidProfile):
            sweep_ranges(bad, [5000.0], ArmorQuery(100.0))

    def test_sweep_armor_shares_impact(self, envelope):
        reports = sweep_armor(SLAVA, 12000.0, [25.0, 100.0, 400.0, 900.0],
                              obliquity_deg=10.0, envelope=envelope)
        assert len(reports) == 4
        assert len({r.impact for r in reports}) == 1
        assert reports[0].outcome.kind is OutcomeKind.OVERMATCH
        assert reports[-1].outcome.kind is OutcomeKind.NON_PENETRATION
        assert all(r.query.obliquity_deg == 10.0 for r in reports)


class TestReports:

    def test_trajectory_summary(self):
        text = trajectory_summary(fly(SLAVA, 10.0))
        assert 'TRAJECTORY SUMMARY' in text
        assert 'RK4' in text

    def test_engagement_summary(self, report):
        text = engagement_summary(report)
        assert 'PENETRATION' in text
        assert 'armed' in text

    def test_sweep_table_marks_unreachable(self, report):
        failure = NoSolution("too far", target=1e6, max_reachable=5e4)
        text = sweep_table([report, failure], [10000.0, 1e6])
        assert 'unreachable' in text
        assert 'penetration' in text

    def test_atmosphere_plot_saved(self, tmp_path):
        from naval_ballistics import visualization as viz
        flights = [fly(SLAVA, e) for e in (5.0, 15.0)]
        assert all(len(f.density_history) == len(f.time) for f in flights)
        path = tmp_path / 'atmosphere.png'
        fig = viz.plot_atmosphere(flights, save_path=str(path))
        viz.plt.close(fig)
        assert path.exists()
