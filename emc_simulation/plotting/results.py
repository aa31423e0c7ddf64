"""
Simulation results visualization.

This module provides visualization functions for electron simulation
results, including energy distributions, backscatter spectra and
statistical summaries.
"""

from __future__ import annotations

from typing import List, Optional

import numpy as np
import matplotlib.pyplot as plt

from .. import config
from ..core.data_classes import TrajectoryRecord


def visualize_trajectory_results(
    records: List[TrajectoryRecord],
    save_path: Optional[str] = None,
    show: bool = False,
):
    """Create comprehensive visualizations of electron simulation results.

    Parameters
    ----------
    records : List[TrajectoryRecord]
        List of ALL trajectory records from simulation.
    save_path : str, optional
        Base path for saving figures.
    show : bool
        Whether to display the figure interactively.
    """
    if not records:
        print("[warning] No trajectory records to visualize.")
        return

    bins = config.HISTOGRAM_BINS
    final_energies = np.array([r.final_energy for r in records]) * config.EV_TO_KEV
    path_lengths = np.array([r.path_length for r in records]) * config.M_TO_NM
    steps = np.array([r.step_count for r in records])
    backscattered = np.array([r.status == 'backscattered' for r in records])
    absorbed_depths = np.array([
        r.final_position[2] for r in records
        if r.status == 'absorbed' and r.final_position is not None
    ]) * config.M_TO_NM

    fig, axes = plt.subplots(2, 2, figsize=config.ANALYSIS_FIGSIZE)

    # 1. Backscattered energy spectrum (top-left)
    ax1 = axes[0, 0]
    if np.any(backscattered):
        ax1.hist(final_energies[backscattered], bins=bins, color='red', alpha=0.7)
    ax1.set_xlabel('Energy (keV)')
    ax1.set_ylabel('Count')
    ax1.set_title(f'Backscattered Energy (η = {np.mean(backscattered):.3f})')
    ax1.grid(True, alpha=0.3)

    # 2. Path length distribution (top-right)
    ax2 = axes[0, 1]
    ax2.hist(path_lengths, bins=bins, color='teal', alpha=0.7)
    ax2.axvline(np.mean(path_lengths), color='red', linestyle='--', linewidth=2,
                label=f'Mean: {np.mean(path_lengths):.1f} nm')
    ax2.axvline(np.median(path_lengths), color='blue', linestyle=':', linewidth=2,
                label=f'Median: {np.median(path_lengths):.1f} nm')
    ax2.set_xlabel('Path Length (nm)')
    ax2.set_ylabel('Count')
    ax2.set_title('Path Length Distribution')
    ax2.legend()
    ax2.grid(True, alpha=0.3)

    # 3. Final depth of absorbed electrons (bottom-left)
    ax3 = axes[1, 0]
    if absorbed_depths.size:
        ax3.hist(absorbed_depths, bins=bins, color='purple', alpha=0.7)
        ax3.axvline(np.mean(absorbed_depths), color='red', linestyle='--', linewidth=2,
                    label=f'Mean: {np.mean(absorbed_depths):.1f} nm')
        ax3.legend()
    ax3.set_xlabel('Final Depth Z (nm)')
    ax3.set_ylabel('Count')
    ax3.set_title('Absorption Depth Distribution')
    ax3.grid(True, alpha=0.3)

    # 4. Steps per trajectory (bottom-right)
    ax4 = axes[1, 1]
    ax4.hist(steps, bins=bins, color='orange', alpha=0.7)
    ax4.set_xlabel('Steps per Trajectory')
    ax4.set_ylabel('Count')
    ax4.set_title('Step Count Distribution')
    ax4.grid(True, alpha=0.3)

    plt.tight_layout()

    if save_path:
        plt.savefig(f"{save_path}_comprehensive.png", dpi=config.PLOT_DPI, bbox_inches='tight')
        print(f"[info] Saved comprehensive visualization to {save_path}_comprehensive.png")

    if show:
        plt.show()
    plt.close(fig)


def print_statistics(records: List[TrajectoryRecord], n_total: int):
    """Print statistical summary of simulation results.

    Parameters
    ----------
    records : List[TrajectoryRecord]
        List of ALL trajectory records from simulation.
    n_total : int
        Total number of trajectories simulated.
    """
    if not records or n_total <= 0:
        print(f"\n[Statistics] No trajectory records to display.")
        return

    backscattered = [r for r in records if r.status == 'backscattered']
    absorbed = [r for r in records if r.status == 'absorbed']

    print("\n" + "=" * 60)
    print("ELECTRON TRAJECTORY STATISTICS")
    print("=" * 60)
    print(f"Total trajectories simulated: {n_total}")
    print(f"Backscattered electrons: {len(backscattered)} ({100 * len(backscattered) / n_total:.2f}%)")
    print(f"Absorbed electrons: {len(absorbed)} ({100 * len(absorbed) / n_total:.2f}%)")
    print()

    initial_energies = np.array([r.initial_energy for r in records]) * config.EV_TO_KEV
    path_lengths = np.array([r.path_length for r in records]) * config.M_TO_NM
    steps = np.array([r.step_count for r in records])

    print("Beam Energy (keV):")
    print(f"  Mean: {np.mean(initial_energies):.4f}, Std: {np.std(initial_energies):.4f}")
    print()
    if backscattered:
        bse = np.array([r.final_energy for r in backscattered]) * config.EV_TO_KEV
        print("Backscattered Energy (keV):")
        print(f"  Mean: {np.mean(bse):.4f}, Std: {np.std(bse):.4f}")
        print(f"  Range: [{np.min(bse):.4f}, {np.max(bse):.4f}]")
        print()
    if absorbed:
        depths = np.array([
            r.final_position[2] for r in absorbed if r.final_position is not None
        ]) * config.M_TO_NM
        if depths.size:
            print("Absorption Depth (nm):")
            print(f"  Mean: {np.mean(depths):.2f}, Std: {np.std(depths):.2f}")
            print(f"  Range: [{np.min(depths):.2f}, {np.max(depths):.2f}]")
            print()
    print("Path Length (nm):")
    print(f"  Mean: {np.mean(path_lengths):.2f}, Std: {np.std(path_lengths):.2f}")
    print(f"  Range: [{np.min(path_lengths):.2f}, {np.max(path_lengths):.2f}]")
    print()
    print("Steps per Trajectory:")
    print(f"  Mean: {np.mean(steps):.1f}, Max: {np.max(steps)}")
    print("=" * 60 + "\n")
