"""
Direction bookkeeping for scattered electrons.
"""

from __future__ import annotations

import math
from typing import Tuple

import numpy as np


def direction_from_angles(theta: float, phi: float) -> np.ndarray:
    """Unit vector with polar angle ``theta`` from +z and azimuth ``phi``."""
    st = math.sin(theta)
    return np.array([st * math.cos(phi), st * math.sin(phi), math.cos(theta)], dtype=float)


def angles_from_direction(direction: np.ndarray) -> Tuple[float, float]:
    """Polar angle from +z and azimuth of a direction vector."""
    dx, dy, dz = float(direction[0]), float(direction[1]), float(direction[2])
    return math.atan2(math.hypot(dx, dy), dz), math.atan2(dy, dx)


def deflect_direction(direction: np.ndarray, d_theta: float, d_phi: float) -> np.ndarray:
    """Deflect a unit direction by ``d_theta`` and rotate the result by ``d_phi``.

    The new direction makes an angle ``d_theta`` with the incident one; ``d_phi``
    is the azimuth of the deflection about the incident direction.

    Parameters
    ----------
    direction : np.ndarray, shape (3,)
        Incident unit vector.
    d_theta : float
        Deflection (scattering) angle in radians.
    d_phi : float
        Azimuthal angle of the deflection in radians.

    Returns
    -------
    np.ndarray
        Outgoing unit vector.
    """
    z_axis = np.array(direction, dtype=float)
    z_axis /= np.linalg.norm(z_axis)

    if abs(z_axis[2]) < 0.9:
        x_axis = np.array([0.0, 0.0, 1.0], dtype=float)
    else:
        x_axis = np.array([1.0, 0.0, 0.0], dtype=float)

    x_axis = x_axis - np.dot(x_axis, z_axis) * z_axis
    x_axis /= np.linalg.norm(x_axis)

    y_axis = np.cross(z_axis, x_axis)

    sin_theta = math.sin(d_theta)
    direction_out = (
        sin_theta * math.cos(d_phi) * x_axis +
        sin_theta * math.sin(d_phi) * y_axis +
        math.cos(d_theta) * z_axis
    )

    direction_out /= np.linalg.norm(direction_out)
    return direction_out
