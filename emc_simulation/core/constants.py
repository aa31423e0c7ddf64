"""
Physical constants, numerical tolerances and boundary statistics.
"""

import sys

# Physical constants
AVOGADRO_CONSTANT = 6.02214076e23  # mol⁻¹
ELECTRON_CHARGE = 1.602176634e-19  # C
ELECTRON_REST_ENERGY_KEV = 510.99895  # keV

# Unit conversions
EV_TO_JOULE = ELECTRON_CHARGE
KEV_TO_EV = 1.0e3
CM_TO_M = 1.0e-2
G_CM3_TO_KG_M3 = 1.0e3

# Sentinel returned by first_intersection when the ray never meets a shape
NO_INTERSECTION = sys.float_info.max

# Smallest displacement used to step over a boundary (1 fm)
SMALL_DISP = 1.0e-15

# Relative tolerance of contains(), scaled by a shape's characteristic size
CONTAINS_TOLERANCE = 1.0e-12

# Characteristic size of a half-space with no extent of its own (1 µm)
PLANE_REFERENCE_SIZE = 1.0e-6

# Rays with |sin|² of the axis angle below this are treated as axis-parallel
PARALLEL_EPSILON = 1.0e-14

# Upper bound on seam hops inside a union before giving up
MAX_UNION_ITERATIONS = 1000

# Debug flag
DEBUG = False

# Global statistics for boundary handling
BOUNDARY_STATS = {
    'crossings': 0,
    'chamber_exits': 0,
    'relocations': 0,
    'union_walk_overflows': 0,
}


def step_over_distance(point, tolerance: float = 0.0) -> float:
    """Distance needed to move a boundary point strictly past the boundary.

    The result is never smaller than ``SMALL_DISP``, exceeds the contains
    tolerance of the crossed shape, and is large enough not to vanish in the
    floating point representation of ``point``.
    """
    scale = max(abs(float(point[0])), abs(float(point[1])), abs(float(point[2])))
    return max(SMALL_DISP, 4.0 * tolerance, 64.0 * sys.float_info.epsilon * scale)


def reset_boundary_stats():
    """Reset boundary statistics counters."""
    for key in BOUNDARY_STATS:
        BOUNDARY_STATS[key] = 0


def print_boundary_stats():
    """Print statistics about region boundary handling.

    A large number of relocations means electrons frequently found themselves
    outside the region they were assigned to, which usually points at child
    regions that are not fully inside their parent.
    """
    stats = BOUNDARY_STATS
    total = stats['crossings']

    if total == 0:
        print("No boundary crossings recorded.")
        return

    print("\n" + "="*60)
    print("REGION BOUNDARY STATISTICS")
    print("="*60)
    print(f"Boundary crossings:        {total:,}")
    print(f"Chamber exits:             {stats['chamber_exits']:,} "
          f"({100*stats['chamber_exits']/total:.2f}%)")
    print(f"Region relocations:        {stats['relocations']:,} "
          f"({100*stats['relocations']/total:.2f}%)")
    print(f"Union walk overflows:      {stats['union_walk_overflows']:,}")
    print("="*60)

    if stats['relocations'] > 0.01 * total:
        print("WARNING: High relocation rate (>1%)")
        print("   Check that every sub-region lies inside its parent")
    else:
        print("Region tree appears consistent")
    print()
