"""
Electron trajectory engine.

``MonteCarloSS`` owns the chamber (the root region), an electron gun and a
random stream. Each step asks the current region's scatter model for a free
path, clips the step at the first region boundary, and then either scatters
the electron or moves it into the neighbouring region. Listeners are told
about every step in the order the steps happen.
"""

from __future__ import annotations

import math
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np
from tqdm import tqdm

from .. import config
from .constants import BOUNDARY_STATS, DEBUG, step_over_distance
from .data_classes import Electron
from .events import EventKind, StepEvent
from .guns import ElectronGun, default_gun_center, make_gaussian_beam
from .region import Region
from .scatter_models import Material, MaterialScatterModel, VacuumModel
from .shapes import Shape, Sphere
from .vector import as_point, distance, dot, normalize

Listener = Callable[[StepEvent], None]


class MonteCarloSS:
    """Single-scattering electron Monte Carlo engine.

    Parameters
    ----------
    chamber_radius : float
        Radius of the spherical vacuum chamber centered on the origin (m).
    seed : int, optional
        Seed for a new ``numpy.random.Generator``. Ignored when ``rng`` is given.
    rng : numpy.random.Generator, optional
        Random stream to use. Each engine (and each parallel worker) must
        own its stream.

    Notes
    -----
    The sample should be placed so that the beam, which travels along +z
    from just inside the chamber wall, hits it near the origin.
    """

    def __init__(
        self,
        chamber_radius: float = config.CHAMBER_RADIUS,
        seed: Optional[int] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        chamber_model = VacuumModel(config.VACUUM_PATH_LENGTH, config.VACUUM_MIN_ENERGY_EV)
        self._chamber = Region(None, chamber_model, Sphere(np.zeros(3), chamber_radius))
        center = default_gun_center(chamber_radius, config.GUN_POSITION_FRACTION)
        self._gun: ElectronGun = make_gaussian_beam(
            config.DEFAULT_BEAM_WIDTH, config.DEFAULT_BEAM_ENERGY_EV, chamber_radius, center=center,
        )
        self._listeners: List[Listener] = []
        self._events_enabled = True
        self._electron: Optional[Electron] = None
        self._electron_stack: List[Electron] = []
        self._trajectory_index = -1

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @property
    def chamber(self) -> Region:
        return self._chamber

    def add_sub_region(self, parent: Region, scatter_model: MaterialScatterModel, shape: Shape) -> Region:
        """Add a region filled with ``scatter_model`` inside ``parent``."""
        return Region(parent, scatter_model, shape)

    @property
    def electron_gun(self) -> ElectronGun:
        return self._gun

    def set_electron_gun(self, gun: ElectronGun):
        if not isinstance(gun, ElectronGun):
            raise ValueError(f"Electron gun must be an ElectronGun, got {type(gun).__name__}")
        self._gun = gun

    @property
    def beam_energy(self) -> float:
        return self._gun.beam_energy

    def set_beam_energy(self, beam_energy: float):
        self._gun.beam_energy = beam_energy
        self._fire(EventKind.BEAM_ENERGY_CHANGED)

    def replace_scatter_model(self, old_model: MaterialScatterModel, new_model: MaterialScatterModel) -> int:
        """Swap a scatter model throughout the region tree (between runs only)."""
        return self._chamber.replace_scatter_model(old_model, new_model)

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def add_listener(self, listener: Listener):
        if not callable(listener):
            raise TypeError("Listener must be callable")
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _fire(self, kind: EventKind):
        if not self._events_enabled or not self._listeners:
            return
        electron = self._electron
        if electron is None:
            event = StepEvent(kind=kind, source=self, trajectory_index=self._trajectory_index)
        else:
            event = StepEvent(
                kind=kind,
                source=self,
                region=electron.current_region,
                position=electron.position.copy(),
                energy=electron.energy,
                direction=electron.direction.copy(),
                previous_position=electron.previous_position.copy(),
                previous_energy=electron.previous_energy,
                step_count=electron.step_count,
                trajectory_index=self._trajectory_index,
                generation=electron.generation,
                electron_id=electron.ident,
            )
        for listener in list(self._listeners):
            listener(event)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def electron(self) -> Optional[Electron]:
        return self._electron

    @property
    def electron_generation(self) -> int:
        """Number of parent electrons waiting on the secondary stack."""
        return len(self._electron_stack)

    @property
    def trajectory_index(self) -> int:
        return self._trajectory_index

    def find_region_containing(self, point: Sequence[float]) -> Optional[Region]:
        """Most deeply nested region containing ``point``, or None outside the chamber."""
        return self._chamber.containing_sub_region(as_point(point))

    def material_at(self, point: Sequence[float]) -> Optional[Material]:
        region = self.find_region_containing(point)
        return None if region is None else region.material

    def get_material_map(self, start: Sequence[float], end: Sequence[float]) -> Dict[Material, float]:
        """Path length (m) through each material along the segment ``start -> end``.

        Used to work out how strongly x-rays generated at ``start`` are
        absorbed on their way to a detector at ``end``.
        """
        start = as_point(start, "start")
        end = as_point(end, "end")
        lengths: Dict[Material, float] = {}
        unit = normalize(end - start)
        if not np.any(unit):
            return lengths
        region = self._chamber.containing_sub_region(start)
        while region is not None and dot(end - start, unit) > 0.0:
            next_region, stop = region.find_end_of_step(start, end)
            travelled = distance(start, stop)
            if travelled > 0.0:
                lengths[region.material] = lengths.get(region.material, 0.0) + travelled
            if next_region is region and distance(stop, end) == 0.0:
                break
            start = stop + step_over_distance(stop, region.shape.tolerance) * unit
            region = next_region
        return lengths

    def compute_detector_position(self, elevation: float, azimuth: float) -> np.ndarray:
        """Point just inside the chamber wall at ``elevation`` above the sample plane.

        Parameters
        ----------
        elevation : float
            Take-off angle above the x-y plane (radians). The detector sits on
            the beam side of the sample (negative z).
        azimuth : float
            Angle about the beam axis (radians).
        """
        radius = config.CHAMBER_RADIUS
        if isinstance(self._chamber.shape, Sphere):
            radius = self._chamber.shape.radius
        r = config.DETECTOR_DISTANCE_FRACTION * radius
        return np.array([
            r * math.cos(elevation) * math.cos(azimuth),
            r * math.cos(elevation) * math.sin(azimuth),
            -r * math.sin(elevation),
        ])

    # ------------------------------------------------------------------
    # Stepping
    # ------------------------------------------------------------------

    def initialize_trajectory(self):
        """Create the next beam electron and place it in the region tree."""
        if self._gun is None:
            raise ValueError("No electron gun configured")
        self._electron_stack.clear()
        electron = self._gun.create_electron(self.rng)
        electron.set_current_region(self._chamber.containing_sub_region(electron.position))
        if electron.current_region is None:
            print(f"[warning] Electron gun at {electron.position} lies outside the chamber")
            electron.trajectory_complete = True
        self._electron = electron

    def take_step(self):
        """Advance the current electron by one step.

        A step either ends inside the current region, in which case the
        electron scatters, or on a region boundary, in which case it moves
        into the neighbouring region without scattering. Either way it loses
        the energy corresponding to the distance actually travelled.
        """
        electron = self._electron
        pos0 = electron.position
        region = electron.current_region
        if region is None or not region.contains(pos0):
            if region is not None:
                BOUNDARY_STATS['relocations'] += 1
                located = region.locate(pos0)
            else:
                located = self._chamber.containing_sub_region(pos0)
            electron.set_current_region(located)
            region = located
            if region is None:
                electron.trajectory_complete = True
                return

        model = region.scatter_model
        pos1 = electron.candidate_point(model.random_mean_path_length(electron, self.rng))
        next_region, end = region.find_end_of_step(pos0, pos1)
        electron.move(end, model.calculate_energy_loss(distance(pos0, end), electron))
        electron.trajectory_complete = electron.energy <= model.min_energy_for_tracking

        if next_region is region:
            if not electron.trajectory_complete:
                self._fire(EventKind.SCATTER)
                direction = model.scatter(electron, self.rng)
                if direction is not None:
                    electron.set_direction(direction)
                secondary = model.secondary_electron(electron, self.rng)
                self._fire(EventKind.POST_SCATTER)
                if secondary is not None:
                    self.track_secondary_electron(secondary)
        elif next_region is not None:
            self._fire(EventKind.NON_SCATTER)
            secondary = model.barrier_scatter(electron, next_region)
            tolerance = max(region.shape.tolerance, next_region.shape.tolerance)
            electron.position = electron.candidate_point(step_over_distance(end, tolerance))
            current = electron.current_region
            if current is not None and not current.contains(electron.position):
                electron.set_current_region(current.locate(electron.position))
            if electron.current_region is not region:
                self._fire(EventKind.EXIT_MATERIAL)
            if secondary is not None:
                self.track_secondary_electron(secondary)
        else:
            self._fire(EventKind.BACKSCATTER)
            electron.set_current_region(None)
            electron.trajectory_complete = True

    def track_secondary_electron(self, secondary: Electron):
        """Suspend the current electron and follow ``secondary`` until it stops."""
        if secondary.current_region is None:
            secondary.set_current_region(self._chamber.containing_sub_region(secondary.position))
        self._electron_stack.append(self._electron)
        self._electron = secondary
        self._fire(EventKind.START_SECONDARY)

    def all_electrons_complete(self) -> bool:
        """True once the current electron and every suspended parent are done."""
        while self._electron.trajectory_complete and self._electron_stack:
            self._fire(EventKind.END_SECONDARY)
            self._electron = self._electron_stack.pop()
        return self._electron.trajectory_complete

    def run_trajectory(self):
        """Run one complete trajectory, secondaries included."""
        self._trajectory_index += 1
        self.initialize_trajectory()
        self._fire(EventKind.TRAJECTORY_START)
        while not self.all_electrons_complete():
            self.take_step()
        self._fire(EventKind.TRAJECTORY_END)

    def run_trajectories(self, n: int, progress: bool = False):
        """Run ``n`` independent trajectories.

        Parameters
        ----------
        n : int
            Number of trajectories (>= 0).
        progress : bool
            Show a tqdm progress bar.
        """
        if n < 0:
            raise ValueError(f"Number of trajectories must be non-negative, got {n}")
        self._fire(EventKind.FIRST_TRAJECTORY)
        iterator = range(n)
        if progress:
            iterator = tqdm(iterator, desc="Simulating Electrons", unit="traj")
        for _ in iterator:
            self.run_trajectory()
        self._fire(EventKind.LAST_TRAJECTORY)

        if DEBUG:
            print(f"[debug] Ran {n} trajectories, "
                  f"{BOUNDARY_STATS['crossings']} boundary crossings, "
                  f"{BOUNDARY_STATS['chamber_exits']} chamber exits")

    def estimate_trajectory_volume(
        self,
        n: int = config.TRAJECTORY_VOLUME_SAMPLES,
    ) -> Optional[Tuple[np.ndarray, np.ndarray]]:
        """Bounding box of the steps that end inside the sample.

        Runs ``n`` trajectories with events disabled. The trajectory counter
        is left untouched.

        Returns
        -------
        tuple of np.ndarray or None
            Lower and upper corners, or None if no step ended in a sub-region.
        """
        lower = np.full(3, np.inf)
        upper = np.full(3, -np.inf)
        self._events_enabled = False
        try:
            for _ in range(n):
                self.initialize_trajectory()
                while not self.all_electrons_complete():
                    self.take_step()
                    point = self._electron.position
                    region = self._chamber.containing_sub_region(point)
                    if region is not None and region is not self._chamber:
                        lower = np.minimum(lower, point)
                        upper = np.maximum(upper, point)
        finally:
            self._events_enabled = True
        if not np.all(np.isfinite(lower)):
            return None
        return lower, upper
