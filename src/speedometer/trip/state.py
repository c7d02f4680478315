from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Deque, List, Optional, Tuple

import numpy as np

from speedometer.utils.types import Fix, HistoryPoint

RECENT_SPEEDS_CAP = 10
SPEED_HISTORY_CAP = 50
LOCATION_HISTORY_CAP = 20

STATUS_WAITING = "Waiting for GPS..."


@dataclass
class PipelineState:
    """Mutable per-trip state. Speeds are km/h and distances metres."""

    recent_cap: int = RECENT_SPEEDS_CAP
    history_cap: int = SPEED_HISTORY_CAP
    locations_cap: int = LOCATION_HISTORY_CAP
    last_fix: Optional[Fix] = None
    recent_speeds: Deque[float] = field(default_factory=deque)
    speed_history: Deque[HistoryPoint] = field(default_factory=deque)
    location_history: Deque[Fix] = field(default_factory=deque)
    total_distance_m: float = 0.0
    max_speed_kmh: float = 0.0
    current_speed_kmh: float = 0.0
    average_speed_kmh: float = 0.0
    accuracy_m: float = 0.0
    altitude_m: float = 0.0
    first_fix_ms: Optional[float] = None
    last_fix_ms: Optional[float] = None
    status: str = STATUS_WAITING

    def __post_init__(self) -> None:
        self.recent_speeds = deque(self.recent_speeds, maxlen=int(self.recent_cap))
        self.speed_history = deque(self.speed_history, maxlen=int(self.history_cap))
        self.location_history = deque(self.location_history, maxlen=int(self.locations_cap))

    @staticmethod
    def empty(recent_cap: int = RECENT_SPEEDS_CAP, history_cap: int = SPEED_HISTORY_CAP) -> "PipelineState":
        return PipelineState(recent_cap=recent_cap, history_cap=history_cap)

    def replace_recent(self, values: List[float]) -> None:
        self.recent_speeds = deque(values, maxlen=int(self.recent_cap))

    def elapsed_s(self) -> float:
        if self.first_fix_ms is None or self.last_fix_ms is None:
            return 0.0
        return max(0.0, (self.last_fix_ms - self.first_fix_ms) / 1000.0)


@dataclass(frozen=True)
class TripSnapshot:
    """Read-only view of a trip, in the selected display units."""

    current_speed: float
    max_speed: float
    average_speed: float
    total_distance: float
    total_distance_m: float
    speed_history: Tuple[HistoryPoint, ...]
    accuracy_m: float
    altitude_m: float
    elapsed_s: float
    status: str
    speed_unit: str
    distance_unit: str
    is_tracking: bool
    recent_locations: Tuple[Fix, ...] = ()

    def history_array(self) -> np.ndarray:
        """History as an (N, 2) float64 array of ``[timestamp_ms, speed]`` rows."""
        if not self.speed_history:
            return np.zeros((0, 2), dtype=np.float64)
        return np.asarray([(p.timestamp_ms, p.speed) for p in self.speed_history], dtype=np.float64).reshape(-1, 2)
