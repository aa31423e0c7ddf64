"""
Data classes for the electron Monte Carlo simulation.
"""

from __future__ import annotations

import itertools
import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional, Tuple

import numpy as np

from .kinematics import angles_from_direction
from .vector import as_point

if TYPE_CHECKING:
    from .region import Region

_ELECTRON_IDS = itertools.count(1)


@dataclass(eq=False)
class Electron:
    """Mutable state of one electron being tracked.

    Attributes
    ----------
    position : np.ndarray
        Current position (m).
    direction : np.ndarray
        Unit vector of travel.
    energy : float
        Kinetic energy (eV), never negative.
    previous_position : np.ndarray
        Position before the last step (m).
    previous_energy : float
        Energy before the last step (eV).
    step_count : int
        Number of steps taken so far.
    current_region, previous_region : Region or None
        Region the electron is in now and was in before the last crossing.
    trajectory_complete : bool
        Set once the electron stops being tracked.
    ident : int
        Process-unique identifier.
    parent_id : int
        ``ident`` of the electron that produced this one, 0 for primaries.
    generation : int
        0 for beam electrons, parent generation + 1 for secondaries.
    """

    position: np.ndarray
    direction: np.ndarray
    energy: float
    previous_position: Optional[np.ndarray] = None
    previous_energy: Optional[float] = None
    step_count: int = 0
    current_region: Optional["Region"] = None
    previous_region: Optional["Region"] = None
    trajectory_complete: bool = False
    ident: int = field(default_factory=lambda: next(_ELECTRON_IDS))
    parent_id: int = 0
    generation: int = 0

    def __post_init__(self):
        self.position = as_point(self.position, "Electron position")
        self.set_direction(self.direction)
        self.energy = float(self.energy)
        if not math.isfinite(self.energy) or self.energy < 0.0:
            raise ValueError(f"Electron energy must be finite and non-negative, got {self.energy}")
        if self.previous_position is None:
            self.previous_position = self.position.copy()
        if self.previous_energy is None:
            self.previous_energy = self.energy

    @classmethod
    def secondary(
        cls,
        parent: "Electron",
        direction: np.ndarray,
        energy: float,
        position: Optional[np.ndarray] = None,
    ) -> "Electron":
        """Create a secondary electron born at the parent's position."""
        child = cls(
            position=parent.position.copy() if position is None else position,
            direction=direction,
            energy=energy,
            parent_id=parent.ident,
            generation=parent.generation + 1,
        )
        child.current_region = parent.current_region
        return child

    @property
    def theta(self) -> float:
        """Polar angle of the direction measured from +z."""
        return angles_from_direction(self.direction)[0]

    @property
    def phi(self) -> float:
        """Azimuth of the direction."""
        return angles_from_direction(self.direction)[1]

    def set_direction(self, direction: np.ndarray):
        vec = as_point(direction, "Electron direction")
        length = np.linalg.norm(vec)
        if length == 0.0:
            raise ValueError("Electron direction must be non-zero")
        self.direction = vec / length

    def candidate_point(self, distance: float) -> np.ndarray:
        """Point reached by travelling ``distance`` along the current direction."""
        return self.position + distance * self.direction

    def move(self, new_point: np.ndarray, energy_loss: float):
        """Move to ``new_point`` losing ``energy_loss`` eV on the way.

        The energy is clamped at zero and the step counter is incremented.
        """
        self.previous_position = self.position
        self.previous_energy = self.energy
        self.position = np.array(new_point, dtype=float)
        self.energy = max(0.0, self.energy - max(0.0, float(energy_loss)))
        self.step_count += 1

    def set_current_region(self, region: Optional["Region"]):
        self.previous_region = self.current_region
        self.current_region = region


@dataclass
class TrajectoryRecord:
    """Record of one electron trajectory.

    Attributes
    ----------
    trajectory_index : int
        Index of the trajectory within its run (0-based).
    electron_id : int
        ``Electron.ident`` of the tracked electron. ``merge_records``
        renumbers it so that ids stay unique across workers.
    generation : int
        0 for primaries, > 0 for secondaries.
    initial_energy : float
        Energy at the gun (eV).
    final_energy : float
        Energy when tracking stopped (eV).
    final_position : np.ndarray
        Position when tracking stopped (m).
    status : str
        'backscattered' (left the chamber) or 'absorbed' (fell below the
        tracking energy or was otherwise stopped).
    step_count : int
        Steps taken.
    path_length : float
        Total distance travelled (m).
    trajectory_points : list
        List of (position, energy, event_type) tuples.
    """

    trajectory_index: int
    electron_id: int
    initial_energy: float
    final_energy: float = 0.0
    final_position: Optional[np.ndarray] = None
    status: str = "unknown"
    step_count: int = 0
    path_length: float = 0.0
    generation: int = 0
    trajectory_points: List[Tuple[np.ndarray, float, str]] = field(default_factory=list)
