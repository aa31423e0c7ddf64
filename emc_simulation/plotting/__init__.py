"""
Plotting subpackage for electron Monte Carlo simulation visualization.

This subpackage provides visualization tools for:
- 3D trajectory plotting and 2D side views
- Simulation result analysis plots

Example usage:
    from emc_simulation.plotting import plot_trajectories_3d, load_trajectory_data

    trajectories = load_trajectory_data('Data/electron_trajectories.csv')
    plot_trajectories_3d(trajectories, max_trajectories=50)

    # Visualize simulation results
    from emc_simulation.plotting import visualize_trajectory_results, print_statistics
    visualize_trajectory_results(records, save_path='Figures/electron_analysis')
"""

from .trajectories import (
    load_trajectory_data,
    plot_trajectories_3d,
    plot_trajectories_2d,
    TrajectoryPlotter,
)

from .results import (
    visualize_trajectory_results,
    print_statistics,
)

__all__ = [
    # Trajectory plotting
    "load_trajectory_data",
    "plot_trajectories_3d",
    "plot_trajectories_2d",
    "TrajectoryPlotter",
    # Simulation results
    "visualize_trajectory_results",
    "print_statistics",
]
