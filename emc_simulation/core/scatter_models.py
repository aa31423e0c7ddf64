"""
Material scatter models: the physics filling each region.

The transport engine only talks to the ``MaterialScatterModel`` interface.
Three implementations are provided:

- ``VacuumModel``: free flight, no scattering, no energy loss.
- ``BlackBodyModel``: absorbs every electron on contact. It is a boundary
  condition fixture, not a physical material.
- ``ScreenedRutherfordModel``: single scattering with the screened
  Rutherford cross-section and continuous (Joy-Luo modified Bethe) energy
  loss.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, Optional

import numpy as np

from .constants import AVOGADRO_CONSTANT, CM_TO_M, ELECTRON_REST_ENERGY_KEV, KEV_TO_EV
from .kinematics import deflect_direction
from .sampling import exp_rand, sample_azimuth

if TYPE_CHECKING:
    from .data_classes import Electron
    from .region import Region


@dataclass(frozen=True)
class Material:
    """Bulk material properties.

    Attributes
    ----------
    name : str
        Label used in reports.
    density : float
        Mass density (kg/m³).
    atomic_number : float
        Atomic number Z (mean value for compounds).
    atomic_weight : float
        Molar mass A (g/mol).
    """

    name: str
    density: float = 0.0
    atomic_number: float = 0.0
    atomic_weight: float = 0.0

    @property
    def density_g_cm3(self) -> float:
        return self.density * 1.0e-3

    @property
    def mean_ionization_kev(self) -> float:
        """Mean ionisation potential J (keV), Berger-Seltzer fit."""
        z = self.atomic_number
        return (9.76 * z + 58.5 / z**0.19) * 1.0e-3


VACUUM = Material("vacuum")

# Common pure-element samples (density kg/m³, Z, A g/mol)
MATERIALS: Dict[str, Material] = {
    'C': Material('C', 2260.0, 6, 12.011),
    'Al': Material('Al', 2700.0, 13, 26.982),
    'Si': Material('Si', 2330.0, 14, 28.086),
    'Cu': Material('Cu', 8960.0, 29, 63.546),
    'Ag': Material('Ag', 10490.0, 47, 107.868),
    'Au': Material('Au', 19320.0, 79, 196.967),
}


class MaterialScatterModel(ABC):
    """Interface between the transport engine and a material's physics.

    Parameters
    ----------
    material : Material
        The material filling the region.
    min_energy_for_tracking : float
        Electrons at or below this energy (eV) stop being tracked.
    """

    def __init__(self, material: Material, min_energy_for_tracking: float):
        self._material = material
        self.min_energy_for_tracking = min_energy_for_tracking

    @property
    def material(self) -> Material:
        return self._material

    @property
    def min_energy_for_tracking(self) -> float:
        return self._min_energy_for_tracking

    @min_energy_for_tracking.setter
    def min_energy_for_tracking(self, value: float):
        value = float(value)
        if not value >= 0.0:
            raise ValueError(f"Minimum tracking energy must be >= 0, got {value}")
        self._min_energy_for_tracking = value

    @abstractmethod
    def random_mean_path_length(self, electron: "Electron", rng: np.random.Generator) -> float:
        """Random distance (m) to the next scattering event."""

    @abstractmethod
    def scatter(self, electron: "Electron", rng: np.random.Generator) -> Optional[np.ndarray]:
        """New direction after a scattering event, or None to keep the current one."""

    @abstractmethod
    def calculate_energy_loss(self, path_length: float, electron: "Electron") -> float:
        """Energy (eV, >= 0) lost while travelling ``path_length`` metres."""

    def barrier_scatter(self, electron: "Electron", next_region: "Region") -> Optional["Electron"]:
        """Hook called when the electron crosses into ``next_region``.

        The default moves the electron into the new region and creates no
        secondary electron.
        """
        electron.set_current_region(next_region)
        return None

    def secondary_electron(self, electron: "Electron", rng: np.random.Generator) -> Optional["Electron"]:
        """Secondary electron produced by the last scattering event, if any."""
        return None

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._material.name})"


class VacuumModel(MaterialScatterModel):
    """Empty space: straight flight to the next boundary."""

    def __init__(self, path_length: float = 1.0, min_energy_for_tracking: float = 0.1):
        super().__init__(VACUUM, min_energy_for_tracking)
        self.path_length = path_length

    def random_mean_path_length(self, electron, rng):
        return self.path_length

    def scatter(self, electron, rng):
        return None

    def calculate_energy_loss(self, path_length, electron):
        return 0.0


class BlackBodyModel(MaterialScatterModel):
    """Perfect absorber: zero path length and infinite energy loss."""

    def __init__(self, material: Material = Material("black body"), min_energy_for_tracking: float = 0.0):
        super().__init__(material, min_energy_for_tracking)

    def random_mean_path_length(self, electron, rng):
        return 0.0

    def scatter(self, electron, rng):
        return None

    def calculate_energy_loss(self, path_length, electron):
        return math.inf


class ScreenedRutherfordModel(MaterialScatterModel):
    """Elastic screened Rutherford scattering with continuous Bethe energy loss.

    All formulas work in keV, g/cm³ and cm internally, following the
    single-scattering model of Joy (1995) with the Joy-Luo low energy
    correction to the Bethe stopping power.

    Parameters
    ----------
    material : Material
        Must have positive density, atomic number and atomic weight.
    min_energy_for_tracking : float
        Cutoff energy in eV (default 50 eV). Must lie above
        ``zero_loss_energy``, below which the stopping power vanishes and
        an electron would never reach the cutoff.
    """

    def __init__(self, material: Material, min_energy_for_tracking: float = 50.0):
        if material.density <= 0.0 or material.atomic_number <= 0.0 or material.atomic_weight <= 0.0:
            raise ValueError(f"Material '{material.name}' needs positive density, Z and A")
        self._ionization_kev = material.mean_ionization_kev
        super().__init__(material, min_energy_for_tracking)

    @property
    def zero_loss_energy(self) -> float:
        """Energy (eV) at which the Joy-Luo stopping power falls to zero."""
        return self._ionization_kev * (1.0 / 1.166 - 0.85) * KEV_TO_EV

    @MaterialScatterModel.min_energy_for_tracking.setter
    def min_energy_for_tracking(self, value: float):
        value = float(value)
        if not value > self.zero_loss_energy:
            raise ValueError(
                f"Minimum tracking energy for {self._material.name} "
                f"must exceed {self.zero_loss_energy:.3g} eV, got {value}"
            )
        self._min_energy_for_tracking = value

    def screening_parameter(self, energy_kev: float) -> float:
        return 3.4e-3 * self._material.atomic_number**0.67 / energy_kev

    def total_cross_section(self, energy_kev: float) -> float:
        """Screened Rutherford total elastic cross-section (cm²)."""
        z = self._material.atomic_number
        alpha = self.screening_parameter(energy_kev)
        relativistic = ((energy_kev + ELECTRON_REST_ENERGY_KEV) / (energy_kev + 2.0 * ELECTRON_REST_ENERGY_KEV))**2
        return 5.21e-21 * (z * z / (energy_kev * energy_kev)) * (4.0 * math.pi / (alpha * (1.0 + alpha))) * relativistic

    def mean_free_path(self, energy_ev: float) -> float:
        """Elastic mean free path (m) at ``energy_ev``."""
        energy_kev = max(energy_ev, 1.0e-3) / KEV_TO_EV
        sigma = self.total_cross_section(energy_kev)
        lambda_cm = self._material.atomic_weight / (AVOGADRO_CONSTANT * self._material.density_g_cm3 * sigma)
        return lambda_cm * CM_TO_M

    def stopping_power(self, energy_ev: float) -> float:
        """Continuous energy loss rate (eV/m), never negative."""
        energy_kev = energy_ev / KEV_TO_EV
        if energy_kev <= 0.0:
            return 0.0
        mat = self._material
        j = self._ionization_kev
        log_term = math.log(1.166 * (energy_kev + 0.85 * j) / j)
        kev_per_cm = 78500.0 * mat.density_g_cm3 * mat.atomic_number / (mat.atomic_weight * energy_kev) * log_term
        return max(0.0, kev_per_cm * KEV_TO_EV / CM_TO_M)

    def random_mean_path_length(self, electron, rng):
        return self.mean_free_path(electron.energy) * exp_rand(rng)

    def scatter(self, electron, rng):
        if electron.energy <= 0.0:
            return None
        alpha = self.screening_parameter(electron.energy / KEV_TO_EV)
        r = float(rng.random())
        cos_theta = 1.0 - 2.0 * alpha * r / (1.0 + alpha - r)
        theta = math.acos(max(-1.0, min(1.0, cos_theta)))
        return deflect_direction(electron.direction, theta, sample_azimuth(rng))

    def calculate_energy_loss(self, path_length, electron):
        return self.stopping_power(electron.energy) * path_length
