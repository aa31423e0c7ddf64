"""
Data export utilities for electron trajectory records.
"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import List

from .data_classes import TrajectoryRecord


def export_trajectory_records_to_csv(
    records: List[TrajectoryRecord],
    filename: str = "electron_trajectories_summary.csv",
):
    """Export one summary row per trajectory to a CSV file.

    Parameters
    ----------
    records : List[TrajectoryRecord]
        Records collected by a ``TrajectoryRecorder``.
    filename : str
        Output CSV filename.
    """
    if not records:
        print("[warning] No trajectory records to export.")
        return

    output_path = Path(filename)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    headers = [
        'trajectory_id',
        'electron_id',
        'status',
        'initial_energy_eV',
        'final_energy_eV',
        'step_count',
        'path_length_m',
        'final_position_x_m',
        'final_position_y_m',
        'final_position_z_m',
    ]

    with open(filename, 'w', newline='', encoding='utf-8') as csvfile:
        writer = csv.writer(csvfile)
        writer.writerow(headers)

        for record in records:
            if record.final_position is not None:
                final_x, final_y, final_z = record.final_position[0], record.final_position[1], record.final_position[2]
            else:
                final_x = final_y = final_z = None
            writer.writerow([
                record.trajectory_index,
                record.electron_id,
                record.status,
                record.initial_energy,
                record.final_energy,
                record.step_count,
                record.path_length,
                final_x,
                final_y,
                final_z,
            ])

    print(f"[info] Trajectory summary exported to {filename}")
    print(f"[info] Total records: {len(records)}")
    print(f"[info] Backscattered: {sum(1 for r in records if r.status == 'backscattered')}")


def export_trajectories_to_csv(
    records: List[TrajectoryRecord],
    filename: str = "electron_trajectories.csv",
):
    """Export every recorded trajectory point to a CSV file.

    Parameters
    ----------
    records : List[TrajectoryRecord]
        Records collected by a ``TrajectoryRecorder``.
    filename : str
        Output CSV filename.
    """
    if not records:
        print("[warning] No trajectory records to export.")
        return

    output_path = Path(filename)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    headers = [
        'trajectory_id',
        'step_id',
        'event_type',
        'position_x_m',
        'position_y_m',
        'position_z_m',
        'energy_eV',
    ]

    with open(filename, 'w', newline='', encoding='utf-8') as csvfile:
        writer = csv.writer(csvfile)
        writer.writerow(headers)

        for record in records:
            for step_id, (position, energy, event_type) in enumerate(record.trajectory_points):
                writer.writerow([
                    record.trajectory_index,
                    step_id,
                    event_type,
                    position[0],
                    position[1],
                    position[2],
                    energy,
                ])

    print(f"[info] Electron trajectories exported to {filename}")
    total_points = sum(len(r.trajectory_points) for r in records)
    print(f"[info] Total trajectory points: {total_points}")
