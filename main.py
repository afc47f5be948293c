#!/usr/bin/env python3
"""
═══════════════════════════════════════════════════════════════════════════════
  NAVAL BALLISTICS — Engagement Runner
═══════════════════════════════════════════════════════════════════════════════

  Executes the engagement analysis pipeline for one shell:
    1. Shell profile & reachable envelope
    2. Single engagement (range, armor, obliquity)
    3. Range sweep against the same plate
    4. Armor sweep / outcome map
    5. Step-size convergence and vacuum validation

  Plots are saved to the outputs/ directory unless --quick is given.

  Usage:
    python main.py                                  # Yamato AP, 15 km, 250 mm
    python main.py --shell slava --range 20000 --armor 410 --obliquity 10
    python main.py --caliber 406 --mass 860 --velocity 800 --drag 0.3
    python main.py --calibration calibration.json --log-level DEBUG
    python main.py --quick                          # text only, no plots
═══════════════════════════════════════════════════════════════════════════════
"""

import argparse
import logging
import os
import sys
import time

import numpy as np

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from naval_ballistics.calibration import DEFAULT_CALIBRATION, load_calibration
from naval_ballistics.engagement import evaluate_engagement, sweep_armor, sweep_ranges
from naval_ballistics.errors import BallisticError
from naval_ballistics.integrator import DEFAULT_TIME_STEP, INTEGRATION_METHODS, fly
from naval_ballistics.atmosphere import ATMOSPHERE_MODELS
from naval_ballistics.penetration import ArmorQuery
from naval_ballistics.projectile import BallisticProfile, ShellType
from naval_ballistics.report import engagement_summary, sweep_table, trajectory_summary
from naval_ballistics.solver import find_max_range
from naval_ballistics.validation import (
    REFERENCE_SHELLS, check_step_convergence, run_all_validations, validate_against_vacuum,
)

logger = logging.getLogger('naval_ballistics.main')


def section(title):
    print(f"\n{'─'*60}")
    print(f"  {title}")
    print(f"{'─'*60}")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Naval shell trajectory and armor penetration calculator")
    shell = parser.add_argument_group('shell')
    shell.add_argument('--shell', choices=sorted(REFERENCE_SHELLS), default='yamato',
                       help="reference shell (ignored when --caliber is given)")
    shell.add_argument('--caliber', type=float, help="caliber (mm)")
    shell.add_argument('--mass', type=float, help="shell mass (kg)")
    shell.add_argument('--velocity', type=float, help="muzzle velocity (m/s)")
    shell.add_argument('--drag', type=float, default=0.3, help="drag coefficient")
    shell.add_argument('--krupp', type=float, default=2400.0)
    shell.add_argument('--type', dest='shell_type', default='AP',
                       choices=[t.value for t in ShellType])

    target = parser.add_argument_group('target')
    target.add_argument('--range', dest='target_range', type=float, default=15000.0,
                        help="target range (m)")
    target.add_argument('--armor', type=float, default=250.0, help="armor thickness (mm)")
    target.add_argument('--obliquity', type=float, default=0.0,
                        help="plate obliquity (degrees from vertical)")

    numerics = parser.add_argument_group('integration')
    numerics.add_argument('--dt', type=float, default=DEFAULT_TIME_STEP)
    numerics.add_argument('--method', choices=INTEGRATION_METHODS, default='rk4')
    numerics.add_argument('--atmosphere', choices=ATMOSPHERE_MODELS, default='isa')
    numerics.add_argument('--calibration', help="JSON calibration table")

    parser.add_argument('--workers', type=int, default=None)
    parser.add_argument('--outputs', default='outputs')
    parser.add_argument('--quick', action='store_true', help="skip plots and validation")
    parser.add_argument('--validate-all', action='store_true',
                        help="run the step-convergence check for every reference shell")
    parser.add_argument('--log-level', default='WARNING',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'])
    return parser.parse_args(argv)


def build_profile(args) -> BallisticProfile:
    if args.caliber is None:
        return REFERENCE_SHELLS[args.shell]
    if args.mass is None or args.velocity is None:
        raise SystemExit("--caliber needs --mass and --velocity")
    return BallisticProfile(
        name=f"{args.caliber:.0f}mm {args.shell_type}",
        caliber=args.caliber,
        mass=args.mass,
        muzzle_velocity=args.velocity,
        drag_coefficient=args.drag,
        shell_type=ShellType.parse(args.shell_type),
        krupp=args.krupp,
    )


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level),
                        format='%(asctime)s %(levelname)s %(name)s: %(message)s')
    start_time = time.time()

    profile = build_profile(args)
    calibration = load_calibration(args.calibration) if args.calibration else DEFAULT_CALIBRATION
    options = dict(dt=args.dt, method=args.method, atmosphere=args.atmosphere)
    query = ArmorQuery(thickness=args.armor, obliquity_deg=args.obliquity)

    # ══════════════════════════════════════════════════════════════════════
    #  PHASE 1: Profile & envelope
    # ══════════════════════════════════════════════════════════════════════
    section(f"PHASE 1: {profile.name}")
    print(f"  Caliber {profile.caliber:.0f} mm | Mass {profile.mass:.0f} kg | "
          f"v0 {profile.muzzle_velocity:.0f} m/s | Cd {profile.drag_coefficient:.3f} | "
          f"{profile.shell_type.value}")
    try:
        max_range, elevation_at_max = find_max_range(profile, **options)
    except BallisticError as exc:
        print(f"  ✗ {exc}")
        return 1
    print(f"  Maximum range: {max_range/1000:.2f} km at {elevation_at_max:.2f}°")
    print(trajectory_summary(fly(profile, elevation_at_max, **options)))

    # ══════════════════════════════════════════════════════════════════════
    #  PHASE 2: Single engagement
    # ══════════════════════════════════════════════════════════════════════
    section("PHASE 2: Engagement")
    try:
        report = evaluate_engagement(profile, args.target_range, query, calibration,
                                     envelope=(max_range, elevation_at_max), **options)
        print(engagement_summary(report))
    except BallisticError as exc:
        print(f"  ✗ {exc}")

    # ══════════════════════════════════════════════════════════════════════
    #  PHASE 3: Range sweep
    # ══════════════════════════════════════════════════════════════════════
    section(f"PHASE 3: Range Sweep vs {query.thickness:.0f} mm")
    ranges = np.arange(2000.0, max_range, 2000.0)
    sweep = sweep_ranges(profile, ranges, query, calibration,
                         max_workers=args.workers, **options)
    print(sweep_table(sweep, ranges))

    if not args.quick:
        from naval_ballistics import visualization as viz
        out = viz.ensure_output_dir(args.outputs)

        fig = viz.plot_penetration_curve(sweep, save_path=f'{out}/01_penetration_vs_range.png')
        viz.plt.close(fig)
        print(f"\n  ✓ Saved: {out}/01_penetration_vs_range.png")

        elevations = [5.0, 10.0, elevation_at_max]
        flights = [fly(profile, e, **options) for e in elevations]
        fig = viz.plot_trajectories(flights, save_path=f'{out}/02_trajectories.png')
        viz.plt.close(fig)
        print(f"  ✓ Saved: {out}/02_trajectories.png")

        # ══════════════════════════════════════════════════════════════════
        #  PHASE 4: Outcome map
        # ══════════════════════════════════════════════════════════════════
        section("PHASE 4: Outcome Map")
        thicknesses = np.arange(25.0, 650.0, 25.0)
        grid = {}
        for distance in ranges[::2]:
            try:
                grid[distance] = sweep_armor(profile, distance, thicknesses,
                                             args.obliquity, calibration,
                                             envelope=(max_range, elevation_at_max),
                                             **options)
            except BallisticError as exc:
                grid[distance] = exc
        fig = viz.plot_outcome_map(grid, thicknesses, save_path=f'{out}/03_outcome_map.png')
        viz.plt.close(fig)
        print(f"  ✓ Saved: {out}/03_outcome_map.png")

        fig = viz.plot_drag_curves(list(REFERENCE_SHELLS.values()) + [profile],
                                   save_path=f'{out}/04_drag_curves.png')
        viz.plt.close(fig)
        print(f"  ✓ Saved: {out}/04_drag_curves.png")

        fig = viz.plot_atmosphere(flights, save_path=f'{out}/05_atmosphere.png')
        viz.plt.close(fig)
        print(f"  ✓ Saved: {out}/05_atmosphere.png")

        # ══════════════════════════════════════════════════════════════════
        #  PHASE 5: Validation
        # ══════════════════════════════════════════════════════════════════
        section("PHASE 5: Validation")
        if args.validate_all:
            run_all_validations(dt=args.dt)
        else:
            validate_against_vacuum(dt=args.dt, method=args.method)
            check_step_convergence(profile, [5000.0, min(15000.0, 0.9 * max_range)],
                                   dt=args.dt, method=args.method)
    else:
        section("PHASES 4-5: SKIPPED (--quick mode)")

    elapsed = time.time() - start_time
    section("COMPLETE")
    print(f"  Total runtime: {elapsed:.1f} seconds")
    logger.info("Finished %s in %.1f s", profile.name, elapsed)
    return 0


if __name__ == "__main__":
    sys.exit(main())
