"""Record types shared by the successor search, segment builder and drivers.

Pings replace free-form table rows with named fields, so the core never looks
columns up by name once the input has been read.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Hashable, Optional, Tuple

import numpy as np


@dataclass(frozen=True)
class Ping:
    """One timestamped position report of a vessel."""

    vessel_id: Hashable
    latitude: float
    longitude: float
    speed: float
    heading: Optional[float]
    timestamp: Any
    index: int


class TrackState(Enum):
    """Outcome of a successor search from one start ping."""

    CONNECTED = "connected"
    GAP = "gap"
    END_OF_TRACK = "end_of_track"


@dataclass(frozen=True)
class Connection:
    """Accepted (start, end) pair of positions in the ping sequence."""

    start_index: int
    end_index: int
    vessel_id: Hashable
    elapsed_min: float


@dataclass(frozen=True)
class SplineParams:
    """Parameters of the cubic Hermite spline.

    ``fm`` scales the tangents and ``speed_band`` gives the (low, high) speed
    thresholds whose midpoint normalises recorded speed. ``distance_scale`` and
    ``sigmoid_line`` are carried for weighting logic outside the spline and are
    not used by the interpolation itself.
    """

    fm: float
    distance_scale: float
    sigmoid_line: float
    speed_band: Tuple[float, float]

    @property
    def speed_midpoint(self) -> float:
        low, high = self.speed_band
        return (high - low) / 2 + low


@dataclass(frozen=True, eq=False)
class Segment:
    """Sampled path for one connection.

    ``points`` has shape ``(resolution, 2)`` with columns longitude, latitude
    and is made read-only on construction.
    """

    connection: Connection
    points: np.ndarray = field(repr=False)

    def __post_init__(self) -> None:
        points = np.array(self.points, dtype=float)
        points.setflags(write=False)
        object.__setattr__(self, "points", points)

    @property
    def start_index(self) -> int:
        return self.connection.start_index

    @property
    def end_index(self) -> int:
        return self.connection.end_index

    @property
    def vessel_id(self) -> Hashable:
        return self.connection.vessel_id

    @property
    def longitudes(self) -> np.ndarray:
        return self.points[:, 0]

    @property
    def latitudes(self) -> np.ndarray:
        return self.points[:, 1]

    def __len__(self) -> int:
        return len(self.points)
