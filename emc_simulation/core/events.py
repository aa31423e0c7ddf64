"""
Event kinds and the event payload delivered to simulation listeners.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import TYPE_CHECKING, Any, Optional

import numpy as np

if TYPE_CHECKING:
    from .region import Region


class EventKind(IntEnum):
    """Lifecycle events fired by ``MonteCarloSS``."""

    SCATTER = 1             # about to scatter inside a region
    NON_SCATTER = 2         # step ended on a region boundary
    BACKSCATTER = 3         # electron left the chamber
    EXIT_MATERIAL = 4       # electron moved into a different region
    TRAJECTORY_START = 5
    TRAJECTORY_END = 6
    LAST_TRAJECTORY = 7
    FIRST_TRAJECTORY = 8
    START_SECONDARY = 9     # a secondary electron takes over
    END_SECONDARY = 10      # tracking returns to the parent electron
    POST_SCATTER = 11       # scattering applied
    BEAM_ENERGY_CHANGED = 100


@dataclass(frozen=True)
class StepEvent:
    """Snapshot of the engine state when an event fires.

    Positions are copies; listeners cannot alter the electron through them.
    Fields that do not apply (for example the position of a
    ``FIRST_TRAJECTORY`` event) are ``None``.
    """

    kind: EventKind
    source: Any
    region: Optional["Region"] = None
    position: Optional[np.ndarray] = None
    energy: Optional[float] = None
    direction: Optional[np.ndarray] = None
    previous_position: Optional[np.ndarray] = None
    previous_energy: Optional[float] = None
    step_count: int = 0
    trajectory_index: int = -1
    generation: int = 0
    electron_id: int = 0
