"""
Visualization Engine
====================
Plots for engagement analysis:
  1. Trajectory (height vs range) for one or more elevations
  2. Penetration vs range against an armor thickness
  3. Outcome map over range × armor thickness
  4. Drag deceleration vs speed
  5. Air density models and density along each flight
"""

import os
from typing import Dict, List, Sequence

import numpy as np
import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
from matplotlib.colors import ListedColormap
from matplotlib.patches import Patch

from .drag_model import DragModel
from .atmosphere import SEA_LEVEL_DENSITY, density_profile
from .engagement import EngagementReport
from .errors import BallisticError
from .integrator import Trajectory
from .penetration import OutcomeKind
from .projectile import BallisticProfile


# ── Style Configuration ───────────────────────────────────────────────────
STYLE = {
    'bg_color': '#0a0a0a',
    'text_color': '#e0e0e0',
    'grid_color': '#333333',
    'accent_colors': ['#00d4ff', '#ff6b35', '#00e676', '#ffeb3b',
                      '#e040fb', '#ff5252'],
}

OUTCOME_COLORS = {
    OutcomeKind.PENETRATION: '#00e676',
    OutcomeKind.OVERMATCH: '#00d4ff',
    OutcomeKind.NON_PENETRATION: '#ff5252',
    OutcomeKind.RICOCHET: '#ffeb3b',
    OutcomeKind.SHATTER: '#e040fb',
}


def _apply_dark_style(fig, axes):
    """Apply consistent dark theme to figure and axes."""
    fig.patch.set_facecolor(STYLE['bg_color'])
    if not isinstance(axes, np.ndarray):
        axes = [axes]
    else:
        axes = axes.flatten()

    for ax in axes:
        ax.set_facecolor(STYLE['bg_color'])
        ax.tick_params(colors=STYLE['text_color'])
        ax.xaxis.label.set_color(STYLE['text_color'])
        ax.yaxis.label.set_color(STYLE['text_color'])
        ax.title.set_color(STYLE['text_color'])
        ax.grid(True, color=STYLE['grid_color'], alpha=0.4, linewidth=0.5)
        for spine in ax.spines.values():
            spine.set_color(STYLE['grid_color'])


def _legend(ax):
    ax.legend(fontsize=10, facecolor='#1a1a1a', edgecolor='#444',
              labelcolor=STYLE['text_color'])


def _finish(fig, save_path):
    plt.tight_layout()
    if save_path:
        fig.savefig(save_path, dpi=150, bbox_inches='tight',
                    facecolor=STYLE['bg_color'])
    return fig


def ensure_output_dir(path: str = 'outputs'):
    os.makedirs(path, exist_ok=True)
    return path


# ══════════════════════════════════════════════════════════════════════════
#  1. Trajectories
# ══════════════════════════════════════════════════════════════════════════

def plot_trajectories(results: List[Trajectory], save_path: str = None) -> plt.Figure:
    """Height vs downrange for each trajectory, landing points marked."""
    fig, ax = plt.subplots(figsize=(12, 6))
    _apply_dark_style(fig, ax)

    for i, result in enumerate(results):
        color = STYLE['accent_colors'][i % len(STYLE['accent_colors'])]
        ax.plot(result.x / 1000, result.y / 1000, color=color, linewidth=2,
                label=f'{result.elevation_deg:.1f}° → {result.range_total/1000:.1f} km')
        ax.plot(result.range_total / 1000, 0, 'x', color=color,
                markersize=10, markeredgewidth=2)

    ax.set_xlabel('Downrange (km)', fontsize=12)
    ax.set_ylabel('Height (km)', fontsize=12)
    if results:
        ax.set_title(f'Trajectories — {results[0].profile.name}',
                     fontsize=13, fontweight='bold')
    _legend(ax)
    ax.set_ylim(bottom=0)
    ax.set_xlim(left=0)
    return _finish(fig, save_path)


# ══════════════════════════════════════════════════════════════════════════
#  2. Penetration vs range
# ══════════════════════════════════════════════════════════════════════════

def plot_penetration_curve(reports: Sequence, save_path: str = None) -> plt.Figure:
    """Raw and effective penetration over range with the plate thickness."""
    reports = [r for r in reports if isinstance(r, EngagementReport)]
    fig, axes = plt.subplots(1, 2, figsize=(16, 6))
    _apply_dark_style(fig, axes)
    if not reports:
        return _finish(fig, save_path)

    ranges = np.array([r.target_range for r in reports]) / 1000
    raw = [r.outcome.raw_penetration for r in reports]
    eff = [r.outcome.effective_penetration for r in reports]
    thickness = reports[0].query.thickness

    ax = axes[0]
    ax.plot(ranges, raw, color='#ff6b35', linewidth=2, linestyle='--', label='Raw')
    ax.plot(ranges, eff, color='#00d4ff', linewidth=2.5, label='Effective')
    ax.axhline(y=thickness, color='#ff5252', linestyle=':', label=f'Armor {thickness:.0f} mm')
    for r, x, y in zip(reports, ranges, eff):
        ax.plot(x, y, 'o', color=OUTCOME_COLORS[r.outcome.kind], markersize=6)
    ax.set_xlabel('Range (km)')
    ax.set_ylabel('Penetration (mm)')
    ax.set_title('Penetration vs Range', fontweight='bold')
    _legend(ax)

    ax = axes[1]
    ax.plot(ranges, [r.impact.impact_angle_deg for r in reports],
            color='#00e676', linewidth=2, label='Impact angle (°)')
    ax.plot(ranges, [r.impact.time_of_flight for r in reports],
            color='#ffeb3b', linewidth=2, label='Flight time (s)')
    ax.set_xlabel('Range (km)')
    ax.set_title('Impact Geometry', fontweight='bold')
    _legend(ax)

    fig.suptitle(f'{reports[0].profile.name} vs {thickness:.0f} mm '
                 f'@ {reports[0].query.obliquity_deg:.0f}°',
                 fontsize=14, fontweight='bold', color=STYLE['text_color'], y=1.02)
    return _finish(fig, save_path)


# ══════════════════════════════════════════════════════════════════════════
#  3. Outcome map
# ══════════════════════════════════════════════════════════════════════════

def plot_outcome_map(grid: Dict[float, Sequence], thicknesses: Sequence[float],
                     save_path: str = None) -> plt.Figure:
    """
    Outcome over range × thickness.

    ``grid`` maps each range to the list of sweep_armor reports (or the
    BallisticError for an unreachable range).
    """
    kinds = list(OutcomeKind)
    ranges = sorted(grid)
    cells = np.full((len(thicknesses), len(ranges)), np.nan)
    for j, distance in enumerate(ranges):
        column = grid[distance]
        if isinstance(column, BallisticError):
            continue
        for i, report in enumerate(column):
            cells[i, j] = kinds.index(report.outcome.kind)

    fig, ax = plt.subplots(figsize=(12, 7))
    _apply_dark_style(fig, ax)
    cmap = ListedColormap([OUTCOME_COLORS[k] for k in kinds])
    ax.pcolormesh(np.array(ranges) / 1000, thicknesses, cells, cmap=cmap,
                  vmin=-0.5, vmax=len(kinds) - 0.5, shading='nearest')
    ax.set_xlabel('Range (km)')
    ax.set_ylabel('Armor thickness (mm)')
    ax.set_title('Engagement Outcome Map', fontweight='bold')
    ax.legend(handles=[Patch(color=OUTCOME_COLORS[k], label=k.value) for k in kinds],
              fontsize=9, facecolor='#1a1a1a', edgecolor='#444',
              labelcolor=STYLE['text_color'], loc='upper right')
    return _finish(fig, save_path)


# ══════════════════════════════════════════════════════════════════════════
#  4. Drag curve
# ══════════════════════════════════════════════════════════════════════════

def plot_drag_curves(profiles: Sequence[BallisticProfile], save_path: str = None) -> plt.Figure:
    """Sea-level drag deceleration vs speed for each shell."""
    fig, ax = plt.subplots(figsize=(11, 6))
    _apply_dark_style(fig, ax)

    speeds = np.linspace(0, 1000, 400)
    for i, profile in enumerate(profiles):
        drag = DragModel.for_profile(profile)
        ax.plot(speeds, drag.deceleration(speeds, SEA_LEVEL_DENSITY),
                color=STYLE['accent_colors'][i % len(STYLE['accent_colors'])],
                linewidth=2, label=profile.name)

    ax.set_xlabel('Speed (m/s)', fontsize=12)
    ax.set_ylabel('Drag deceleration (m/s²)', fontsize=12)
    ax.set_title('Drag Deceleration at Sea Level', fontsize=14, fontweight='bold')
    _legend(ax)
    return _finish(fig, save_path)


# ══════════════════════════════════════════════════════════════════════════
#  5. Atmosphere along the flight
# ══════════════════════════════════════════════════════════════════════════

def plot_atmosphere(results: List[Trajectory], save_path: str = None) -> plt.Figure:
    """Density models vs altitude, and the density each shell flew through."""
    fig, axes = plt.subplots(1, 2, figsize=(16, 6))
    _apply_dark_style(fig, axes)

    ax = axes[0]
    apex = max([r.max_altitude for r in results] + [1000.0])
    altitudes = np.linspace(0, 1.2 * apex, 300)
    for model, color in (('isa', '#00e676'), ('constant', '#ff6b35')):
        ax.plot(density_profile(altitudes, model), altitudes / 1000,
                color=color, linewidth=2, label=model.upper())
    ax.set_xlabel('Density (kg/m³)')
    ax.set_ylabel('Altitude (km)')
    ax.set_title('Atmosphere Models', fontweight='bold')
    _legend(ax)

    ax = axes[1]
    for i, result in enumerate(results):
        ax.plot(result.time, result.density_history,
                color=STYLE['accent_colors'][i % len(STYLE['accent_colors'])],
                linewidth=2, label=f'{result.elevation_deg:.1f}°')
    ax.set_xlabel('Time (s)')
    ax.set_ylabel('ρ (kg/m³)')
    ax.set_title('Air Density Along the Flight', fontweight='bold')
    if results:
        _legend(ax)
    return _finish(fig, save_path)
