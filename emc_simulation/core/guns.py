"""
Electron guns: produce the initial electron state for each trajectory.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from typing import Optional, Sequence

import numpy as np

from .data_classes import Electron
from .sampling import sample_gaussian_offset, sample_uniform_rectangle
from .vector import as_point

# Beams narrower than this are treated as this wide (m)
MIN_BEAM_WIDTH = 5.0e-12

BEAM_DIRECTION = np.array([0.0, 0.0, 1.0])


class ElectronGun(ABC):
    """Source of beam electrons travelling along +z.

    Parameters
    ----------
    center : array_like
        Beam origin (m).
    beam_energy : float
        Kinetic energy of created electrons (eV).
    """

    def __init__(self, center: Sequence[float], beam_energy: float):
        self.center = center
        self.beam_energy = beam_energy

    @property
    def center(self) -> np.ndarray:
        return self._center.copy()

    @center.setter
    def center(self, value: Sequence[float]):
        self._center = as_point(value, "Gun center")

    @property
    def beam_energy(self) -> float:
        return self._beam_energy

    @beam_energy.setter
    def beam_energy(self, value: float):
        value = float(value)
        if not math.isfinite(value) or value < 0.0:
            raise ValueError(f"Beam energy must be finite and non-negative, got {value}")
        self._beam_energy = value

    @abstractmethod
    def create_electron(self, rng: np.random.Generator) -> Electron:
        """Create the electron for the next trajectory."""


class GaussianBeam(ElectronGun):
    """Beam with a circular Gaussian intensity profile.

    Parameters
    ----------
    width : float
        Standard deviation of the profile along x and y (m).
    center : array_like
        Beam origin (m).
    beam_energy : float
        Electron energy (eV).
    """

    def __init__(self, width: float, center: Sequence[float], beam_energy: float):
        super().__init__(center, beam_energy)
        self.width = width

    @property
    def width(self) -> float:
        return self._width

    @width.setter
    def width(self, value: float):
        value = float(value)
        if not math.isfinite(value) or value < 0.0:
            raise ValueError(f"Beam width must be finite and non-negative, got {value}")
        self._width = max(value, MIN_BEAM_WIDTH)

    def create_electron(self, rng: np.random.Generator) -> Electron:
        dx, dy = sample_gaussian_offset(self._width, rng)
        position = self._center + np.array([dx, dy, 0.0])
        return Electron(position=position, direction=BEAM_DIRECTION, energy=self._beam_energy)


class OverscanElectronGun(ElectronGun):
    """Beam rastered uniformly over a rectangle, optionally rotated about z.

    Parameters
    ----------
    x_dim, y_dim : float
        Size of the scanned rectangle (m).
    center : array_like
        Center of the rectangle (m).
    beam_energy : float
        Electron energy (eV).
    rotation : float
        Rotation of the rectangle about the beam axis (radians).
    """

    def __init__(
        self,
        x_dim: float,
        y_dim: float,
        center: Sequence[float],
        beam_energy: float,
        rotation: float = 0.0,
    ):
        super().__init__(center, beam_energy)
        if x_dim < 0.0 or y_dim < 0.0:
            raise ValueError(f"Scan dimensions must be non-negative, got {x_dim} x {y_dim}")
        self.x_dim = float(x_dim)
        self.y_dim = float(y_dim)
        self.rotation = float(rotation)

    def create_electron(self, rng: np.random.Generator) -> Electron:
        x, y = sample_uniform_rectangle(self.x_dim, self.y_dim, rng)
        c, s = math.cos(self.rotation), math.sin(self.rotation)
        position = self._center + np.array([c * x - s * y, s * x + c * y, 0.0])
        return Electron(position=position, direction=BEAM_DIRECTION, energy=self._beam_energy)


def default_gun_center(chamber_radius: float, fraction: float = 0.99) -> np.ndarray:
    """Beam origin on the -z axis just inside a chamber of ``chamber_radius``."""
    return np.array([0.0, 0.0, -fraction * chamber_radius])


def make_gaussian_beam(
    width: float,
    beam_energy: float,
    chamber_radius: float,
    center: Optional[Sequence[float]] = None,
) -> GaussianBeam:
    """Gaussian beam starting at the default position inside the chamber."""
    if center is None:
        center = default_gun_center(chamber_radius)
    return GaussianBeam(width, center, beam_energy)
