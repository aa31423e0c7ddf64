"""
Random sampling utilities for electron transport.

Every sampler takes an explicit ``numpy.random.Generator`` so that each
simulation (or parallel worker) owns its own random stream.
"""

from __future__ import annotations

import math
from typing import Tuple

import numpy as np


def exp_rand(rng: np.random.Generator) -> float:
    """Exponentially distributed number with unit mean."""
    return float(-math.log(1.0 - rng.random()))


def sample_azimuth(rng: np.random.Generator) -> float:
    """Uniform azimuthal angle on [0, 2π)."""
    return 2.0 * math.pi * float(rng.random())


def sample_gaussian_offset(width: float, rng: np.random.Generator) -> Tuple[float, float]:
    """Sample a transverse (x, y) beam offset from a 2D Gaussian.

    Parameters
    ----------
    width : float
        Standard deviation of the beam profile along each axis (m).
    rng : numpy.random.Generator
        Random stream.

    Returns
    -------
    tuple of float
        Offsets along x and y in metres.
    """
    r = math.sqrt(-2.0 * math.log(1.0 - rng.random())) * width
    theta = sample_azimuth(rng)
    return r * math.cos(theta), r * math.sin(theta)


def sample_uniform_rectangle(
    x_dim: float,
    y_dim: float,
    rng: np.random.Generator,
) -> Tuple[float, float]:
    """Sample a point uniformly over an ``x_dim`` by ``y_dim`` rectangle centered on 0."""
    return (float(rng.random()) - 0.5) * x_dim, (float(rng.random()) - 0.5) * y_dim
