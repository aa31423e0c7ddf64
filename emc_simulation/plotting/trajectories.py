"""
Electron trajectory visualization module.

This module provides functions and classes for visualizing electron
trajectories inside a sample, including 3D plots, 2D side views and energy
versus depth.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional, Union

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
from mpl_toolkits.mplot3d import Axes3D  # noqa: F401
from matplotlib.colors import Normalize
from matplotlib.cm import ScalarMappable
from matplotlib.lines import Line2D

from .. import config


# Type alias for trajectory data
TrajectoryDict = Dict[int, List[dict]]

# Points far from the sample (gun position, chamber wall) are not drawn
HIDDEN_EVENTS = ('start', 'exit')


def load_trajectory_data(csv_file: Union[str, Path]) -> TrajectoryDict:
    """Load electron trajectory data from CSV file.

    Parameters
    ----------
    csv_file : str or Path
        Path to the trajectory CSV written by ``export_trajectories_to_csv``.

    Returns
    -------
    dict
        Dictionary mapping trajectory_id to list of trajectory points.
        Each point is a dict with keys: step_id, event_type, position, energy

    Example
    -------
    >>> trajectories = load_trajectory_data('Data/electron_trajectories.csv')
    >>> print(f"Loaded {len(trajectories)} trajectories")
    """
    df = pd.read_csv(csv_file)
    df = df.sort_values(['trajectory_id', 'step_id'])

    trajectories: TrajectoryDict = {}
    for trajectory_id, group in df.groupby('trajectory_id'):
        positions = group[['position_x_m', 'position_y_m', 'position_z_m']].to_numpy(dtype=float)
        trajectories[int(trajectory_id)] = [
            {
                'step_id': int(step_id),
                'event_type': event_type,
                'position': position,
                'energy': float(energy),
            }
            for step_id, event_type, position, energy in zip(
                group['step_id'], group['event_type'], positions, group['energy_eV'],
            )
        ]
    return trajectories


def _visible_points(traj: List[dict]):
    """Positions (nm) and energies (keV) of the points drawn for one trajectory."""
    points = [p for p in traj if p['event_type'] not in HIDDEN_EVENTS]
    if not points:
        return np.empty((0, 3)), np.empty(0)
    positions = np.array([p['position'] for p in points]) * config.M_TO_NM
    energies = np.array([p['energy'] for p in points]) * config.EV_TO_KEV
    return positions, energies


def _save_or_show(fig, save_path: Optional[str], suffix: str, dpi: int, show: bool, label: str):
    if save_path:
        output_path = Path(save_path).parent
        output_path.mkdir(parents=True, exist_ok=True)
        plt.savefig(f'{save_path}_{suffix}.png', dpi=dpi, bbox_inches='tight')
        print(f"[info] Saved {label} to {save_path}_{suffix}.png")
        plt.close(fig)
        return None
    elif show:
        plt.show()
        return None
    else:
        return fig


def plot_trajectories_3d(
    trajectories: TrajectoryDict,
    max_trajectories: int = config.MAX_TRAJECTORIES_TO_PLOT,
    save_path: Optional[str] = None,
    show_surface: bool = True,
    figsize: tuple = config.TRAJECTORY_3D_FIGSIZE,
    dpi: int = config.PLOT_DPI,
    show: bool = False
) -> Optional[plt.Figure]:
    """Plot electron trajectories in 3D with energy-based coloring.

    Parameters
    ----------
    trajectories : dict
        Dictionary of trajectory data from load_trajectory_data.
    max_trajectories : int
        Maximum number of trajectories to plot.
    save_path : str, optional
        Path to save the figure. If None and show=False, returns figure.
    show_surface : bool
        Whether to draw the sample surface plane z = 0.
    figsize : tuple
        Figure size (width, height) in inches.
    dpi : int
        Resolution for saved figure.
    show : bool
        Whether to display the figure interactively.

    Returns
    -------
    fig : matplotlib.figure.Figure or None
        The figure object if save_path is None and show is False.
    """
    fig = plt.figure(figsize=figsize)
    ax = fig.add_subplot(111, projection='3d')

    trajectory_ids = sorted(trajectories.keys())[:max_trajectories]
    visible = {tid: _visible_points(trajectories[tid]) for tid in trajectory_ids}

    all_energies = np.concatenate([e for _, e in visible.values()]) if visible else np.empty(0)
    if all_energies.size == 0:
        print("[warning] No trajectory data to plot.")
        plt.close(fig)
        return None

    all_positions = np.concatenate([p for p, _ in visible.values()])
    energy_min = float(all_energies.min())
    energy_max = float(all_energies.max())
    norm = Normalize(vmin=energy_min, vmax=energy_max)
    cmap = plt.cm.plasma

    for trajectory_id in trajectory_ids:
        positions, energies = visible[trajectory_id]
        if len(positions) < 2:
            continue
        for i in range(len(positions) - 1):
            mid_energy = (energies[i] + energies[i + 1]) / 2
            ax.plot(positions[i:i + 2, 0], positions[i:i + 2, 1], positions[i:i + 2, 2],
                    color=cmap(norm(mid_energy)), linewidth=0.8, alpha=0.6)
        ax.scatter(*positions[0], c='green', marker='o', s=20, alpha=0.8)

    lower = all_positions.min(axis=0)
    upper = all_positions.max(axis=0)
    half = 0.5 * max(float(np.max(upper - lower)), 1.0)
    center = 0.5 * (lower + upper)

    if show_surface:
        xs = np.array([center[0] - half, center[0] + half])
        ys = np.array([center[1] - half, center[1] + half])
        xx, yy = np.meshgrid(xs, ys)
        ax.plot_surface(xx, yy, np.zeros_like(xx), color=config.SAMPLE_COLOR, alpha=config.SAMPLE_ALPHA)

    sm = ScalarMappable(cmap=cmap, norm=norm)
    sm.set_array([])
    cbar = plt.colorbar(sm, ax=ax, pad=0.05, shrink=0.5, aspect=30)
    cbar.set_label('Electron Energy (keV)', fontsize=12)

    ax.set_xlabel('X Position (nm)', fontsize=12)
    ax.set_ylabel('Y Position (nm)', fontsize=12)
    ax.set_zlabel('Depth Z (nm)', fontsize=12)
    ax.set_title(f'Electron Trajectories (n={len(trajectory_ids)})', fontsize=14, fontweight='bold')

    legend_elements = [
        Line2D([0], [0], marker='o', color='w', markerfacecolor='green',
               markersize=8, label='Beam Entry'),
        Line2D([0], [0], color=cmap(norm(energy_max)), linewidth=2,
               label=f'High Energy (~{energy_max:.2f} keV)'),
        Line2D([0], [0], color=cmap(norm(energy_min)), linewidth=2,
               label=f'Low Energy (~{energy_min:.2f} keV)'),
    ]
    ax.legend(handles=legend_elements, loc='upper left', fontsize=9, frameon=True)

    ax.set_xlim(center[0] - half, center[0] + half)
    ax.set_ylim(center[1] - half, center[1] + half)
    ax.set_zlim(center[2] + half, center[2] - half)
    ax.view_init(elev=20, azim=45)

    return _save_or_show(fig, save_path, '3d', dpi, show, "3D trajectory plot")


def plot_trajectories_2d(
    trajectories: TrajectoryDict,
    max_trajectories: int = config.MAX_TRAJECTORIES_TO_PLOT,
    save_path: Optional[str] = None,
    figsize: tuple = config.TRAJECTORY_2D_FIGSIZE,
    dpi: int = config.PLOT_DPI,
    show: bool = False
) -> Optional[plt.Figure]:
    """Plot side views of electron trajectories.

    Creates XZ and YZ projections with depth pointing down, and energy
    versus depth.

    Parameters
    ----------
    trajectories : dict
        Dictionary of trajectory data from load_trajectory_data.
    max_trajectories : int
        Maximum number of trajectories to plot.
    save_path : str, optional
        Path to save the figure.
    figsize : tuple
        Figure size (width, height) in inches.
    dpi : int
        Resolution for saved figure.
    show : bool
        Whether to display the figure interactively.

    Returns
    -------
    fig : matplotlib.figure.Figure or None
        The figure object if save_path is None and show is False.
    """
    fig, axes = plt.subplots(1, 3, figsize=figsize)

    trajectory_ids = sorted(trajectories.keys())[:max_trajectories]
    visible = {tid: _visible_points(trajectories[tid]) for tid in trajectory_ids}

    all_energies = np.concatenate([e for _, e in visible.values()]) if visible else np.empty(0)
    if all_energies.size == 0:
        print("[warning] No trajectory data to plot.")
        plt.close(fig)
        return None

    norm = Normalize(vmin=float(all_energies.min()), vmax=float(all_energies.max()))
    cmap = plt.cm.plasma

    projections = [
        (axes[0], 0, 'X Position (nm)', 'XZ Projection (Side View)'),
        (axes[1], 1, 'Y Position (nm)', 'YZ Projection (Side View)'),
    ]
    for ax, idx, xlabel, title in projections:
        for trajectory_id in trajectory_ids:
            positions, energies = visible[trajectory_id]
            for i in range(len(positions) - 1):
                mid_energy = (energies[i] + energies[i + 1]) / 2
                ax.plot(positions[i:i + 2, idx], positions[i:i + 2, 2],
                        color=cmap(norm(mid_energy)), linewidth=0.8, alpha=0.5)
        ax.axhline(0.0, color='black', linewidth=1.0, alpha=0.6)
        ax.set_xlabel(xlabel, fontsize=11)
        ax.set_ylabel('Depth Z (nm)', fontsize=11)
        ax.set_title(title, fontsize=12, fontweight='bold')
        ax.invert_yaxis()
        ax.grid(True, alpha=0.3)

    ax_ez = axes[2]
    for trajectory_id in trajectory_ids:
        positions, energies = visible[trajectory_id]
        if len(positions) < 2:
            continue
        backscattered = any(p['event_type'] == 'exit' for p in trajectories[trajectory_id])
        color = 'red' if backscattered else 'gray'
        alpha = 0.6 if backscattered else 0.2
        ax_ez.plot(positions[:, 2], energies, color=color, linewidth=1.0, alpha=alpha)

    ax_ez.set_xlabel('Depth Z (nm)', fontsize=11)
    ax_ez.set_ylabel('Energy (keV)', fontsize=11)
    ax_ez.set_title('Energy vs Depth', fontsize=12, fontweight='bold')
    ax_ez.grid(True, alpha=0.3)
    ax_ez.legend(handles=[
        Line2D([0], [0], color='red', linewidth=2, label='Backscattered'),
        Line2D([0], [0], color='gray', linewidth=2, label='Absorbed'),
    ], fontsize=9)

    sm = ScalarMappable(cmap=cmap, norm=norm)
    sm.set_array([])
    cbar = fig.colorbar(sm, ax=axes[:2], pad=0.02, shrink=0.8, aspect=40)
    cbar.set_label('Electron Energy (keV)', fontsize=12)

    plt.suptitle(f'Electron Trajectory Projections (n={len(trajectory_ids)})',
                 fontsize=14, fontweight='bold')

    return _save_or_show(fig, save_path, '2d_projections', dpi, show, "2D projection plots")


class TrajectoryPlotter:
    """Class-based interface for trajectory plotting with persistent settings.

    Example
    -------
    >>> plotter = TrajectoryPlotter(max_trajectories=50)
    >>> plotter.load('Data/electron_trajectories.csv')
    >>> plotter.plot_all(save_path='Figures/electron_trajectories')
    """

    def __init__(
        self,
        max_trajectories: int = config.MAX_TRAJECTORIES_TO_PLOT,
        figsize_3d: tuple = config.TRAJECTORY_3D_FIGSIZE,
        figsize_2d: tuple = config.TRAJECTORY_2D_FIGSIZE,
        dpi: int = config.PLOT_DPI
    ):
        self.max_trajectories = max_trajectories
        self.figsize_3d = figsize_3d
        self.figsize_2d = figsize_2d
        self.dpi = dpi
        self.trajectories: Optional[TrajectoryDict] = None

    def load(self, csv_file: Union[str, Path]) -> 'TrajectoryPlotter':
        """Load trajectory data from CSV file (returns self for chaining)."""
        self.trajectories = load_trajectory_data(csv_file)
        print(f"[info] Loaded {len(self.trajectories)} trajectories")
        return self

    def plot_3d(self, save_path: Optional[str] = None, show: bool = False, **kwargs) -> Optional[plt.Figure]:
        if self.trajectories is None:
            raise ValueError("No trajectory data loaded. Call load() first.")
        return plot_trajectories_3d(
            self.trajectories,
            max_trajectories=kwargs.get('max_trajectories', self.max_trajectories),
            save_path=save_path,
            show_surface=kwargs.get('show_surface', True),
            figsize=kwargs.get('figsize', self.figsize_3d),
            dpi=kwargs.get('dpi', self.dpi),
            show=show
        )

    def plot_2d(self, save_path: Optional[str] = None, show: bool = False, **kwargs) -> Optional[plt.Figure]:
        if self.trajectories is None:
            raise ValueError("No trajectory data loaded. Call load() first.")
        return plot_trajectories_2d(
            self.trajectories,
            max_trajectories=kwargs.get('max_trajectories', self.max_trajectories),
            save_path=save_path,
            figsize=kwargs.get('figsize', self.figsize_2d),
            dpi=kwargs.get('dpi', self.dpi),
            show=show
        )

    def plot_all(self, save_path: Optional[str] = None, show: bool = False, **kwargs) -> None:
        """Create both 3D and 2D plots."""
        self.plot_3d(save_path=save_path, show=show, **kwargs)
        self.plot_2d(save_path=save_path, show=show, **kwargs)
