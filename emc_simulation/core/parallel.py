"""
Run independent trajectories across worker processes.

Each worker builds its own engine (region tree, scatter models and gun)
from a picklable factory and draws from its own random stream spawned from
a common ``numpy.random.SeedSequence``. For a given seed and worker count
the merged result is reproducible.
"""

from __future__ import annotations

from concurrent.futures import ProcessPoolExecutor
from typing import Callable, List, Optional

import numpy as np

from .data_classes import TrajectoryRecord
from .listeners import TrajectoryRecorder
from .simulation import MonteCarloSS

SimulationFactory = Callable[[np.random.Generator], MonteCarloSS]


def split_work(n: int, workers: int) -> List[int]:
    """Split ``n`` trajectories into ``workers`` near-equal shares."""
    if n < 0:
        raise ValueError(f"Number of trajectories must be non-negative, got {n}")
    if workers < 1:
        raise ValueError(f"Number of workers must be at least 1, got {workers}")
    base, extra = divmod(n, workers)
    return [base + (1 if i < extra else 0) for i in range(workers)]


def _run_worker(
    build_simulation: SimulationFactory,
    listener_factory: Callable[[], object],
    n: int,
    seed_sequence: np.random.SeedSequence,
):
    rng = np.random.default_rng(seed_sequence)
    simulation = build_simulation(rng)
    listener = listener_factory()
    simulation.add_listener(listener)
    simulation.run_trajectories(n)
    return listener


def run_parallel_trajectories(
    build_simulation: SimulationFactory,
    n: int,
    workers: int = 1,
    seed: Optional[int] = None,
    listener_factory: Callable[[], object] = TrajectoryRecorder,
) -> list:
    """Run ``n`` trajectories split over ``workers`` processes.

    Parameters
    ----------
    build_simulation : callable
        Module-level function taking a ``numpy.random.Generator`` and
        returning a fully configured ``MonteCarloSS`` that uses it.
    n : int
        Total number of trajectories.
    workers : int
        Number of worker processes. With 1 the work runs in this process.
    seed : int, optional
        Root seed. Each worker gets an independent child stream.
    listener_factory : callable
        Creates the (picklable) listener attached to each worker's engine.

    Returns
    -------
    list
        One listener per worker, in worker order.
    """
    shares = split_work(n, workers)
    streams = np.random.SeedSequence(seed).spawn(workers)

    if workers == 1:
        return [_run_worker(build_simulation, listener_factory, shares[0], streams[0])]

    print(f"[info] Running {n} trajectories on {workers} worker processes")
    with ProcessPoolExecutor(max_workers=workers) as executor:
        futures = [
            executor.submit(_run_worker, build_simulation, listener_factory, share, stream)
            for share, stream in zip(shares, streams)
        ]
        return [future.result() for future in futures]


def merge_records(recorders: List[TrajectoryRecorder]) -> List[TrajectoryRecord]:
    """Concatenate worker records and renumber them in worker order.

    Trajectory indices become 0..N-1. Electron ids are only unique within
    one process, so they are renumbered 1..N as well.
    """
    merged: List[TrajectoryRecord] = []
    for recorder in recorders:
        merged.extend(recorder.records)
    for index, record in enumerate(merged):
        record.trajectory_index = index
        record.electron_id = index + 1
    return merged
