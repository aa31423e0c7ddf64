"""
Three dimensional vector helpers shared by the geometry and transport code.
"""

from __future__ import annotations

import math
from typing import Sequence, Tuple

import numpy as np


def as_point(values: Sequence[float], name: str = "point") -> np.ndarray:
    """Convert ``values`` to a float64 array of shape (3,).

    Raises
    ------
    ValueError
        If the input does not have three finite components.
    """
    point = np.array(values, dtype=float).reshape(-1)
    if point.shape != (3,):
        raise ValueError(f"{name} must have exactly three components, got {point.shape}")
    if not np.all(np.isfinite(point)):
        raise ValueError(f"{name} must be finite, got {point}")
    return point


def dot(a: np.ndarray, b: np.ndarray) -> float:
    return float(a[0] * b[0] + a[1] * b[1] + a[2] * b[2])


def cross(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    return np.cross(a, b)


def norm(a: np.ndarray) -> float:
    return math.sqrt(dot(a, a))


def distance(a: np.ndarray, b: np.ndarray) -> float:
    return norm(np.asarray(b) - np.asarray(a))


def normalize(a: np.ndarray) -> np.ndarray:
    """Return ``a`` scaled to unit length (zero vectors are returned unchanged)."""
    length = norm(a)
    if length == 0.0:
        return np.array(a, dtype=float)
    return np.asarray(a, dtype=float) / length


def point_between(a: np.ndarray, b: np.ndarray, t: float) -> np.ndarray:
    """Point ``a + t (b - a)`` on the line through ``a`` and ``b``."""
    return a + t * (b - a)


def build_orthonormal_frame(axis: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Build an orthonormal coordinate frame from a given axis."""
    axis = np.array(axis, dtype=float)
    length = np.linalg.norm(axis)
    if length == 0.0:
        raise ValueError("Axis vector must be non-zero")
    axis /= length
    up = np.array([0.0, 0.0, 1.0])
    if abs(np.dot(axis, up)) > 0.99:
        up = np.array([1.0, 0.0, 0.0])
    u = np.cross(up, axis)
    u /= np.linalg.norm(u)
    v = np.cross(axis, u)
    return axis, u, v


def euler_rotation_matrix(phi: float, theta: float, psi: float) -> np.ndarray:
    """Rotation by ``phi`` about z, then ``theta`` about y, then ``psi`` about z.

    Returns
    -------
    np.ndarray
        3x3 matrix ``R`` such that ``R @ v`` is the rotated vector.
    """
    def about_z(angle: float) -> np.ndarray:
        c, s = math.cos(angle), math.sin(angle)
        return np.array([[c, -s, 0.0], [s, c, 0.0], [0.0, 0.0, 1.0]])

    c, s = math.cos(theta), math.sin(theta)
    about_y = np.array([[c, 0.0, s], [0.0, 1.0, 0.0], [-s, 0.0, c]])
    return about_z(psi) @ about_y @ about_z(phi)


def rotate_point(
    point: np.ndarray,
    pivot: Sequence[float],
    phi: float,
    theta: float,
    psi: float,
) -> np.ndarray:
    """Rotate ``point`` about ``pivot`` by the Euler angles of ``euler_rotation_matrix``."""
    pivot = np.asarray(pivot, dtype=float)
    return pivot + euler_rotation_matrix(phi, theta, psi) @ (np.asarray(point, dtype=float) - pivot)
