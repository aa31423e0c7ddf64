"""
Testing subpackage for electron Monte Carlo simulation.

This subpackage provides tools for testing and debugging the simulation:
- Standard sample geometries (bulk, film, particle, capsule on a substrate)
- Validation functions for shapes and region trees
- Comparison utilities for runs on different samples

Example usage:
    from emc_simulation.testing import build_default_simulation, compare_samples

    # Build a ready-to-run engine with a carbon film on copper
    simulation = build_default_simulation(sample='film')

    # Compare backscatter yields
    results = compare_samples(('bulk', 'film'), n_trajectories=100)
"""

from .sample_geometry import (
    create_pill,
    add_bulk_sample,
    add_film_on_substrate,
    add_particle_on_substrate,
    add_pill_on_substrate,
    build_default_simulation,
    print_region_tree,
)

from .validation import (
    sample_points,
    validate_shape,
    validate_region_tree,
    validate_geometry_module,
    run_quick_test,
)

from .comparison import (
    compare_samples,
    load_statistics,
    print_comparison,
)

__all__ = [
    # Sample geometry
    "create_pill",
    "add_bulk_sample",
    "add_film_on_substrate",
    "add_particle_on_substrate",
    "add_pill_on_substrate",
    "build_default_simulation",
    "print_region_tree",
    # Validation
    "sample_points",
    "validate_shape",
    "validate_region_tree",
    "validate_geometry_module",
    "run_quick_test",
    # Comparison
    "compare_samples",
    "load_statistics",
    "print_comparison",
]
