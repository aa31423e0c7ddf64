"""
Electron Monte Carlo Simulation Package
=======================================

This package provides a modular Monte-Carlo simulator for electron
trajectories in solid samples inside a vacuum chamber, as used to model
backscattered electron yields and interaction volumes in electron
microscopy.

Modules:
--------
- config: Configurable simulation parameters
- core.constants: Physical constants, tolerances and boundary statistics
- core.vector: 3D vector utilities
- core.shapes: Analytic shapes (sphere, cylinder, block, polytope, union)
- core.region: Region tree and containment queries
- core.data_classes: Data structures (Electron, TrajectoryRecord)
- core.sampling: Random sampling utilities
- core.kinematics: Direction and deflection calculations
- core.scatter_models: Material scatter models
- core.guns: Electron guns
- core.events: Step event types
- core.simulation: Trajectory stepping engine
- core.listeners: Event listeners and statistics
- core.parallel: Multi-process trajectory runs
- core.io_utils: Data export utilities
- plotting: Trajectory and result visualization
- testing: Standard samples, validation and comparison tools
- runner: Command-line runner
"""

from . import config
from .core import *
from .core import __all__ as _core_all

__version__ = "1.0.0"
__all__ = ["config"] + list(_core_all)
