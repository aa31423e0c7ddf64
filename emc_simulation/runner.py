"""
Electron Monte Carlo Simulation Runner Module

This module provides the main simulation runner function that can be called
from scripts or imported directly.
"""

from __future__ import annotations

from functools import partial
from pathlib import Path
from typing import List, Optional

import numpy as np

from . import config
from .core.constants import print_boundary_stats, reset_boundary_stats
from .core.data_classes import TrajectoryRecord
from .core.io_utils import export_trajectory_records_to_csv, export_trajectories_to_csv
from .core.listeners import standard_listeners
from .core.parallel import merge_records, run_parallel_trajectories
from .plotting import (
    load_trajectory_data,
    plot_trajectories_2d,
    plot_trajectories_3d,
    print_statistics,
    visualize_trajectory_results,
)
from .testing.sample_geometry import build_default_simulation, print_region_tree


def print_run_configuration(sample: str, beam_energy: float, n_trajectories: int, workers: int, seed):
    """Print the sample tree and beam settings of a run."""
    simulation = build_default_simulation(np.random.default_rng(seed), sample=sample, beam_energy=beam_energy)
    gun = simulation.electron_gun

    print("\n" + "=" * 70)
    print("SIMULATION CONFIGURATION")
    print("=" * 70)
    print(f"Sample: {sample}")
    print_region_tree(simulation.chamber)
    print(f"Beam energy: {beam_energy * config.EV_TO_KEV:.2f} keV")
    print(f"Beam center: {gun.center} m, direction +Z")
    print(f"Beam width: {getattr(gun, 'width', 0.0) * config.M_TO_NM:.2f} nm")
    print(f"Trajectories: {n_trajectories} on {workers} worker(s), seed={seed}")
    print("=" * 70 + "\n")
    return simulation


def run_full_simulation(
    output_dir: Optional[Path] = None,
    n_trajectories: Optional[int] = None,
    sample: str = config.DEFAULT_SAMPLE,
    beam_energy: float = config.DEFAULT_BEAM_ENERGY_EV,
    workers: int = config.DEFAULT_WORKERS,
    seed: Optional[int] = config.DEFAULT_SEED,
    save_results: bool = True,
    generate_plots: bool = True,
    estimate_volume: bool = False,
) -> List[TrajectoryRecord]:
    """Run the complete electron Monte Carlo simulation.

    This is the main entry point for running simulations. It handles:
    1. Building the sample and the electron gun
    2. Running the trajectories, in parallel when asked
    3. Exporting results
    4. Generating visualization plots

    Parameters
    ----------
    output_dir : Path, optional
        Directory for output files (Data/, Figures/). If None, uses current working directory.
    n_trajectories : int, optional
        Number of trajectories to simulate. If None, uses config default.
    sample : str
        Standard sample to build ('bulk', 'film', 'particle' or 'pill').
    beam_energy : float
        Beam energy (eV).
    workers : int
        Number of worker processes.
    seed : int, optional
        Root seed of the random streams.
    save_results : bool
        Whether to save results to CSV files.
    generate_plots : bool
        Whether to generate visualization plots.
    estimate_volume : bool
        Whether to estimate the interaction volume before the run.

    Returns
    -------
    List[TrajectoryRecord]
        List of trajectory records from simulation.
    """
    if output_dir is None:
        output_dir = Path.cwd()
    else:
        output_dir = Path(output_dir)

    if n_trajectories is None:
        n_trajectories = config.DEFAULT_N_TRAJECTORIES

    simulation = print_run_configuration(sample, beam_energy, n_trajectories, workers, seed)

    if estimate_volume:
        volume = simulation.estimate_trajectory_volume(config.TRAJECTORY_VOLUME_SAMPLES)
        if volume is None:
            print("[warning] No trajectory ended inside the sample; interaction volume unknown.")
        else:
            lower, upper = volume
            extent = (upper - lower) * config.M_TO_NM
            print(f"[info] Interaction volume extent: {extent[0]:.1f} x {extent[1]:.1f} x {extent[2]:.1f} nm")

    print(f"[info] Starting simulation with {n_trajectories} electrons...")
    reset_boundary_stats()
    groups = run_parallel_trajectories(
        partial(build_default_simulation, sample=sample, beam_energy=beam_energy),
        n_trajectories,
        workers=workers,
        seed=seed,
        listener_factory=partial(standard_listeners, config.MAX_TRAJECTORIES_TO_PLOT),
    )
    records = merge_records([group['recorder'] for group in groups])

    # Print statistics
    print_statistics(records, n_trajectories)
    backscattered = sum(group['backscatter'].backscatter_count for group in groups)
    elapsed = max(group['time'].simulation_time for group in groups)
    print(f"[info] Backscatter coefficient: {backscattered / max(n_trajectories, 1):.4f}")
    print(f"[info] Simulation time: {elapsed:.2f} s")
    if workers == 1:
        print_boundary_stats()

    # Save results
    trajectory_filename = str(output_dir / config.DATA_OUTPUT_DIR / config.TRAJECTORY_DATA_CSV)
    if save_results and records:
        summary_filename = str(output_dir / config.DATA_OUTPUT_DIR / config.TRAJECTORY_SUMMARY_CSV)
        export_trajectory_records_to_csv(records, filename=summary_filename)
        export_trajectories_to_csv(records, filename=trajectory_filename)

    # Generate plots
    if generate_plots and records:
        print("[info] Generating visualizations...")
        figures_dir = output_dir / config.FIGURES_OUTPUT_DIR
        try:
            visualize_trajectory_results(records, save_path=str(figures_dir / config.ANALYSIS_FIGURE_BASE))
            if save_results:
                trajectories = load_trajectory_data(trajectory_filename)
                save_base = str(figures_dir / config.TRAJECTORY_FIGURE_BASE)
                plot_trajectories_3d(trajectories, save_path=save_base)
                plot_trajectories_2d(trajectories, save_path=save_base)
            print("[info] Visualization complete!")
        except Exception as e:
            print(f"[warning] Could not generate plots: {e}")

    return records


def main():
    """Command-line entry point."""
    import argparse

    parser = argparse.ArgumentParser(description="Run electron Monte Carlo simulation")
    parser.add_argument("-n", "--trajectories", type=int, default=None,
                        help="Number of electron trajectories to simulate")
    parser.add_argument("--sample", choices=['bulk', 'film', 'particle', 'pill'],
                        default=config.DEFAULT_SAMPLE,
                        help="Standard sample geometry")
    parser.add_argument("--energy", type=float, default=config.DEFAULT_BEAM_ENERGY_EV * config.EV_TO_KEV,
                        help="Beam energy in keV")
    parser.add_argument("--workers", type=int, default=config.DEFAULT_WORKERS,
                        help="Number of worker processes")
    parser.add_argument("--seed", type=int, default=config.DEFAULT_SEED,
                        help="Root random seed")
    parser.add_argument("--estimate-volume", action="store_true",
                        help="Estimate the interaction volume before the run")
    parser.add_argument("--no-save", action="store_true",
                        help="Don't save results to CSV")
    parser.add_argument("--no-plot", action="store_true",
                        help="Don't generate visualization plots")
    parser.add_argument("--output-dir", type=Path, default=None,
                        help="Output directory for results and figures")

    args = parser.parse_args()

    run_full_simulation(
        output_dir=args.output_dir,
        n_trajectories=args.trajectories,
        sample=args.sample,
        beam_energy=args.energy / config.EV_TO_KEV,
        workers=args.workers,
        seed=args.seed,
        save_results=not args.no_save,
        generate_plots=not args.no_plot,
        estimate_volume=args.estimate_volume,
    )


if __name__ == "__main__":
    main()
