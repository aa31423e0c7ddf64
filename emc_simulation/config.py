"""
Configuration settings for the electron Monte Carlo simulation.

This module collects every tunable parameter of the default run in one place.
Users can modify these values to customize the simulation without changing
the core code. Energies are in eV and lengths in metres unless the name says
otherwise.
"""

from __future__ import annotations

# =============================================================================
# Chamber and Beam
# =============================================================================

# Radius of the spherical vacuum chamber (m)
CHAMBER_RADIUS = 0.1

# Beam starts this fraction of the chamber radius above the sample (on -z)
GUN_POSITION_FRACTION = 0.999

# Beam energy (eV)
DEFAULT_BEAM_ENERGY_EV = 20.0e3

# Gaussian beam width, one standard deviation (m)
DEFAULT_BEAM_WIDTH = 1.0e-8

# Free-flight length drawn in vacuum; longer than the chamber diameter (m)
VACUUM_PATH_LENGTH = 1.0

# Energy below which electrons in vacuum stop being tracked (eV)
VACUUM_MIN_ENERGY_EV = 0.1

# Energy below which electrons in a solid stop being tracked (eV)
DEFAULT_MIN_ENERGY_EV = 50.0

# Distance from the sample to the detector, as a fraction of the chamber radius
DETECTOR_DISTANCE_FRACTION = 0.999

# =============================================================================
# Default Sample
# =============================================================================

# Standard sample built by the runner: bulk, film, particle or pill
DEFAULT_SAMPLE = "film"

# Material of the bulk substrate (key of scatter_models.MATERIALS)
DEFAULT_SUBSTRATE_MATERIAL = "Cu"

# Material and thickness of an optional coating film (m)
DEFAULT_FILM_MATERIAL = "C"
DEFAULT_FILM_THICKNESS = 20.0e-9

# =============================================================================
# Simulation Parameters
# =============================================================================

# Number of trajectories to simulate
DEFAULT_N_TRAJECTORIES = 100

# Seed of the random stream (None draws fresh entropy)
DEFAULT_SEED = 12345

# Worker processes for parallel runs
DEFAULT_WORKERS = 1

# Trajectories run to estimate the interaction volume
TRAJECTORY_VOLUME_SAMPLES = 100

# =============================================================================
# Output
# =============================================================================

# Output directories (用户工作目录)
DATA_OUTPUT_DIR = "Data"
FIGURES_OUTPUT_DIR = "Figures"

# Output file names
TRAJECTORY_SUMMARY_CSV = "electron_trajectories_summary.csv"
TRAJECTORY_DATA_CSV = "electron_trajectories.csv"
TRAJECTORY_FIGURE_BASE = "electron_trajectories"
ANALYSIS_FIGURE_BASE = "electron_analysis"

# =============================================================================
# Visualization Settings
# =============================================================================

# Maximum number of trajectories to plot in visualizations
MAX_TRAJECTORIES_TO_PLOT = 100

# Plot DPI settings
PLOT_DPI = 300
QUICK_PLOT_DPI = 150

# Figure sizes
TRAJECTORY_3D_FIGSIZE = (11, 10)
TRAJECTORY_2D_FIGSIZE = (16, 6)
ANALYSIS_FIGSIZE = (14, 10)

# Histogram bins for energy and depth distributions
HISTOGRAM_BINS = 50

# Sample surface outline
SAMPLE_COLOR = "lightgray"
SAMPLE_ALPHA = 0.2

# =============================================================================
# Unit Conversions
# =============================================================================

M_TO_NM = 1.0e9
M_TO_UM = 1.0e6
EV_TO_KEV = 1.0e-3
