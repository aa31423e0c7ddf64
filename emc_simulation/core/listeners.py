"""
Standard event listeners: timing, step statistics, backscatter, scattering
angles, deposited energy and trajectory recording.

Listeners are plain callables taking a ``StepEvent``. They only read event
data and never change the engine state.
"""

from __future__ import annotations

import time
from typing import Dict, List, Optional

import numpy as np

from .data_classes import TrajectoryRecord
from .events import EventKind, StepEvent
from .vector import distance

# Events that end a step and carry the step's start and end points
STEP_EVENTS = (EventKind.SCATTER, EventKind.NON_SCATTER, EventKind.BACKSCATTER)


class TimeListener:
    """Wall-clock time of the whole run and of each trajectory."""

    def __init__(self):
        self._run_start: Optional[float] = None
        self._trajectory_start: Optional[float] = None
        self.simulation_time = 0.0
        self.trajectory_times: List[float] = []

    def __call__(self, event: StepEvent):
        now = time.perf_counter()
        if event.kind == EventKind.FIRST_TRAJECTORY:
            self._run_start = now
        elif event.kind == EventKind.TRAJECTORY_START:
            self._trajectory_start = now
        elif event.kind == EventKind.TRAJECTORY_END and self._trajectory_start is not None:
            self.trajectory_times.append(now - self._trajectory_start)
            self._trajectory_start = None
        elif event.kind == EventKind.LAST_TRAJECTORY and self._run_start is not None:
            self.simulation_time = now - self._run_start
            self._run_start = None

    @property
    def mean_trajectory_time(self) -> float:
        return float(np.mean(self.trajectory_times)) if self.trajectory_times else 0.0

    @property
    def std_trajectory_time(self) -> float:
        return float(np.std(self.trajectory_times)) if self.trajectory_times else 0.0

    def summary(self) -> Dict[str, float]:
        return {
            'simulation_time_s': self.simulation_time,
            'trajectories': len(self.trajectory_times),
            'mean_trajectory_time_s': self.mean_trajectory_time,
            'std_trajectory_time_s': self.std_trajectory_time,
        }


class ScatterStats:
    """Scattering count, boundary crossings and path length of every beam electron."""

    def __init__(self):
        self.scatter_counts: List[int] = []
        self.path_lengths: List[float] = []
        self.boundary_crossings: List[int] = []
        self._scatters = 0
        self._crossings = 0
        self._path = 0.0
        self._last: Optional[np.ndarray] = None

    def __call__(self, event: StepEvent):
        kind = event.kind
        if kind == EventKind.TRAJECTORY_START:
            self._scatters = 0
            self._crossings = 0
            self._path = 0.0
            self._last = event.position
        elif event.generation != 0 or self._last is None:
            return
        elif kind in STEP_EVENTS:
            self._path += distance(self._last, event.position)
            self._last = event.position
            if kind == EventKind.SCATTER:
                self._scatters += 1
            elif kind == EventKind.NON_SCATTER:
                self._crossings += 1
        elif kind == EventKind.TRAJECTORY_END:
            self._path += distance(self._last, event.position)
            self.scatter_counts.append(self._scatters)
            self.boundary_crossings.append(self._crossings)
            self.path_lengths.append(self._path)
            self._last = None

    @property
    def mean_scatter_count(self) -> float:
        return float(np.mean(self.scatter_counts)) if self.scatter_counts else 0.0

    @property
    def mean_path_length(self) -> float:
        return float(np.mean(self.path_lengths)) if self.path_lengths else 0.0


class BackscatterStats:
    """Fraction and energy spectrum of beam electrons leaving the chamber.

    Parameters
    ----------
    bins : int
        Number of energy histogram bins between 0 and the beam energy.
    """

    def __init__(self, bins: int = 100):
        self.bins = bins
        self.trajectories = 0
        self.backscattered_energies: List[float] = []
        self.beam_energy: Optional[float] = None

    def __call__(self, event: StepEvent):
        kind = event.kind
        if kind == EventKind.TRAJECTORY_START:
            self.trajectories += 1
            if self.beam_energy is None:
                self.beam_energy = event.energy
        elif kind == EventKind.BACKSCATTER and event.generation == 0:
            self.backscattered_energies.append(event.energy)
        elif kind == EventKind.BEAM_ENERGY_CHANGED:
            self.beam_energy = None

    @property
    def backscatter_count(self) -> int:
        return len(self.backscattered_energies)

    @property
    def backscatter_fraction(self) -> float:
        if self.trajectories == 0:
            return 0.0
        return self.backscatter_count / self.trajectories

    def energy_histogram(self):
        """Histogram of backscattered energies.

        Returns
        -------
        counts, edges : np.ndarray
            As returned by ``numpy.histogram``.
        """
        top = self.beam_energy if self.beam_energy else 1.0
        return np.histogram(self.backscattered_energies, bins=self.bins, range=(0.0, top))


class BackscatterAngleHistogram:
    """Scattering-angle histograms of beam electrons, split by their fate.

    Every elastic deflection of a beam electron is collected for the current
    trajectory. When the trajectory ends the angles go to the backscattered
    histogram (the electron left the chamber above ``min_energy``) or to the
    not-backscattered one. The largest single deflection of each trajectory
    and the exit angle of each backscattered electron (measured from -z,
    the direction back up the beam) are histogrammed as well.

    Parameters
    ----------
    min_energy : float
        Backscattered electrons at or below this energy (eV) count as not
        backscattered.
    bins : int
        Number of bins over [0, π].
    """

    def __init__(self, min_energy: float = 50.0, bins: int = 180):
        if min_energy < 0.0:
            raise ValueError(f"min_energy must be non-negative, got {min_energy}")
        self.min_energy = min_energy
        self.bins = bins
        self.backscattered = np.zeros(bins, dtype=int)
        self.not_backscattered = np.zeros(bins, dtype=int)
        self.max_backscattered = np.zeros(bins, dtype=int)
        self.max_not_backscattered = np.zeros(bins, dtype=int)
        self.exit_angles: List[float] = []
        self._current: Optional[List[float]] = None
        self._incoming: Optional[np.ndarray] = None

    @property
    def edges(self) -> np.ndarray:
        return np.linspace(0.0, np.pi, self.bins + 1)

    def _histogram(self, angles) -> np.ndarray:
        return np.histogram(angles, bins=self.bins, range=(0.0, np.pi))[0]

    def _close(self, backscattered: bool):
        angles = self._current
        largest = max(angles) if angles else 0.0
        if backscattered:
            self.backscattered += self._histogram(angles)
            self.max_backscattered += self._histogram([largest])
        else:
            self.not_backscattered += self._histogram(angles)
            self.max_not_backscattered += self._histogram([largest])
        self._current = None

    def __call__(self, event: StepEvent):
        kind = event.kind
        if kind == EventKind.TRAJECTORY_START:
            self._current = []
            self._incoming = None
            return
        if self._current is None or event.generation != 0:
            return
        if kind == EventKind.SCATTER:
            self._incoming = event.direction
        elif kind == EventKind.POST_SCATTER and self._incoming is not None:
            cos_angle = float(np.clip(np.dot(self._incoming, event.direction), -1.0, 1.0))
            self._current.append(float(np.arccos(cos_angle)))
            self._incoming = None
        elif kind == EventKind.BACKSCATTER:
            if event.energy > self.min_energy:
                self.exit_angles.append(float(np.arccos(np.clip(-event.direction[2], -1.0, 1.0))))
                self._close(backscattered=True)
            else:
                self._close(backscattered=False)
        elif kind == EventKind.TRAJECTORY_END:
            self._close(backscattered=False)

    def exit_angle_histogram(self):
        """Histogram of exit angles of backscattered electrons over [0, π/2]."""
        return np.histogram(self.exit_angles, bins=self.bins // 2, range=(0.0, 0.5 * np.pi))


class EnergyLossListener:
    """Energy deposited by all electrons on a regular voxel grid.

    The grid has ``n`` voxels of edge ``voxel_size`` along each axis. It is
    centered on ``point`` in x and y and starts at ``point`` in z, so it
    spans depths ``point.z`` to ``point.z + n * voxel_size``. The energy lost
    over a step is spread evenly along the straight step segment.

    Parameters
    ----------
    point : array_like
        Top center of the grid (m).
    voxel_size : float
        Voxel edge length (m).
    n : int
        Voxels per axis.
    """

    def __init__(self, point, voxel_size: float, n: int):
        if voxel_size <= 0.0 or n < 1:
            raise ValueError(f"Need voxel_size > 0 and n >= 1, got {voxel_size} and {n}")
        self.voxel_size = float(voxel_size)
        self.n = int(n)
        origin = np.array(point, dtype=float)
        origin[:2] -= 0.5 * self.n * self.voxel_size
        self.origin = origin
        self.deposited = np.zeros((self.n, self.n, self.n))
        self.electron_count = 0
        self.total_energy_loss = 0.0
        self._last_step: Dict[int, int] = {}

    def reset(self):
        self.deposited[...] = 0.0
        self.electron_count = 0
        self.total_energy_loss = 0.0
        self._last_step = {}

    def voxel_edges(self, axis: int) -> np.ndarray:
        return self.origin[axis] + self.voxel_size * np.arange(self.n + 1)

    def _deposit(self, start: np.ndarray, end: np.ndarray, loss: float):
        length = float(np.linalg.norm(end - start))
        samples = min(max(1, int(np.ceil(2.0 * length / self.voxel_size))), 10000)
        t = (np.arange(samples) + 0.5) / samples
        points = start + t[:, None] * (end - start)
        index = np.floor((points - self.origin) / self.voxel_size).astype(int)
        inside = np.all((index >= 0) & (index < self.n), axis=1)
        np.add.at(self.deposited, tuple(index[inside].T), loss / samples)

    def _step(self, event: StepEvent):
        self._last_step[event.electron_id] = event.step_count
        loss = event.previous_energy - event.energy
        if loss > 0.0:
            self.total_energy_loss += loss
            self._deposit(event.previous_position, event.position, loss)

    def __call__(self, event: StepEvent):
        kind = event.kind
        if kind == EventKind.TRAJECTORY_START:
            self.electron_count += 1
            self._last_step = {}
        elif kind in STEP_EVENTS:
            self._step(event)
        elif kind in (EventKind.TRAJECTORY_END, EventKind.END_SECONDARY):
            # The step that stops an electron fires no step event of its own
            if event.step_count > self._last_step.get(event.electron_id, 0):
                self._step(event)

    def energy_per_electron(self) -> np.ndarray:
        """Deposited energy per beam electron (eV) in each voxel."""
        if self.electron_count == 0:
            return np.zeros_like(self.deposited)
        return self.deposited / self.electron_count

    def xz_projection(self) -> np.ndarray:
        """Energy per electron summed over y, indexed [x, z]."""
        return self.energy_per_electron().sum(axis=1)


class TrajectoryRecorder:
    """Collects a ``TrajectoryRecord`` for each beam electron.

    Points are taken from the beam electron only (generation 0), so each
    record traces one continuous path.

    Parameters
    ----------
    max_points_trajectories : int, optional
        Only keep the point lists of the first N trajectories (summary fields
        are kept for all). ``None`` keeps everything.
    """

    def __init__(self, max_points_trajectories: Optional[int] = None):
        self.max_points_trajectories = max_points_trajectories
        self.records: List[TrajectoryRecord] = []
        self._current: Optional[TrajectoryRecord] = None
        self._backscattered = False
        self._last: Optional[np.ndarray] = None

    def _keep_points(self) -> bool:
        limit = self.max_points_trajectories
        return limit is None or len(self.records) < limit

    def _add_point(self, event: StepEvent, label: str):
        if self._keep_points():
            self._current.trajectory_points.append((event.position, event.energy, label))

    def __call__(self, event: StepEvent):
        kind = event.kind
        if kind == EventKind.TRAJECTORY_START:
            self._current = TrajectoryRecord(
                trajectory_index=event.trajectory_index,
                electron_id=event.electron_id,
                initial_energy=event.energy,
            )
            self._backscattered = False
            self._last = event.position
            self._add_point(event, "start")
            return
        if self._current is None or event.generation != 0:
            return
        if kind in STEP_EVENTS:
            self._current.path_length += distance(self._last, event.position)
            self._last = event.position
            label = {
                EventKind.SCATTER: "scatter",
                EventKind.NON_SCATTER: "boundary",
                EventKind.BACKSCATTER: "exit",
            }[kind]
            self._add_point(event, label)
            if kind == EventKind.BACKSCATTER:
                self._backscattered = True
        elif kind == EventKind.TRAJECTORY_END:
            record = self._current
            record.path_length += distance(self._last, event.position)
            record.final_energy = event.energy
            record.final_position = event.position
            record.step_count = event.step_count
            record.status = "backscattered" if self._backscattered else "absorbed"
            if not self._backscattered:
                self._add_point(event, "final")
            self.records.append(record)
            self._current = None


class ListenerGroup:
    """Forwards every event to a set of named listeners.

    Example
    -------
    >>> group = ListenerGroup(recorder=TrajectoryRecorder(), time=TimeListener())
    >>> simulation.add_listener(group)
    >>> group['recorder'].records
    """

    def __init__(self, **listeners):
        self.listeners = dict(listeners)

    def __call__(self, event: StepEvent):
        for listener in self.listeners.values():
            listener(event)

    def __getitem__(self, name: str):
        return self.listeners[name]


def standard_listeners(max_points_trajectories: Optional[int] = None) -> ListenerGroup:
    """Timing, step statistics, backscatter and trajectory recording in one group."""
    return ListenerGroup(
        time=TimeListener(),
        scatter=ScatterStats(),
        backscatter=BackscatterStats(),
        recorder=TrajectoryRecorder(max_points_trajectories),
    )
