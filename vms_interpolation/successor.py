"""Successor search within one vessel track.

For a start ping, the successor is the later ping whose elapsed time lies in
``[interval - margin, interval + margin]`` minutes and deviates least from
``interval``. Ties go to the earliest candidate.
"""

from __future__ import annotations

from typing import Iterable, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from vms_interpolation.models import TrackState

_EPOCH = pd.Timestamp("1970-01-01", tz="UTC")
_MINUTE = pd.Timedelta(minutes=1)


def minutes_since_epoch(timestamps: Iterable) -> np.ndarray:
    """Convert datetime-likes to float minutes since the Unix epoch.

    Naive timestamps are read as UTC. Missing values become NaN. Both driver
    modes derive elapsed times from this array, so they see identical values.
    """

    stamps = pd.to_datetime(list(timestamps), utc=True)
    return np.asarray((stamps - _EPOCH) / _MINUTE, dtype=float)


def elapsed_matrix(minutes: np.ndarray) -> np.ndarray:
    """Pairwise elapsed minutes, ``M[i, j] = t[j] - t[i]``."""

    minutes = np.asarray(minutes, dtype=float)
    return minutes[np.newaxis, :] - minutes[:, np.newaxis]


def pick_candidate(elapsed: np.ndarray, interval: float, margin: float) -> Optional[int]:
    """Return the position in ``elapsed`` of the best successor, or None."""

    within = (elapsed >= interval - margin) & (elapsed <= interval + margin)
    candidates = np.flatnonzero(within)
    if candidates.size == 0:
        return None
    # argmin keeps the first of equal deviations, i.e. the earliest ping.
    return int(candidates[np.argmin(np.abs(interval - elapsed[candidates]))])


def successor_from_minutes(
    minutes: np.ndarray,
    start_index: int,
    interval: float,
    margin: float,
) -> Tuple[Optional[int], TrackState]:
    """Successor search on a precomputed minutes array of one track."""

    n = len(minutes)
    if not 0 <= start_index < n:
        raise IndexError(f"start_index {start_index} outside track of {n} pings")
    if start_index == n - 1:
        return None, TrackState.END_OF_TRACK

    elapsed = minutes[start_index + 1 :] - minutes[start_index]
    offset = pick_candidate(elapsed, interval, margin)
    if offset is None:
        return None, TrackState.GAP
    return start_index + 1 + offset, TrackState.CONNECTED


def find_successor(
    timestamps: Sequence,
    start_index: int,
    interval: float,
    margin: float,
) -> Tuple[Optional[int], TrackState]:
    """Find the successor of ``timestamps[start_index]`` within one vessel track.

    Parameters
    ----------
    timestamps:
        Ascending timestamps of a single vessel.
    start_index:
        Position of the start ping within ``timestamps``.
    interval:
        Target spacing between pings in minutes.
    margin:
        Accepted deviation from ``interval`` in minutes.

    Returns
    -------
    tuple
        ``(end_index, TrackState.CONNECTED)`` when a successor exists,
        ``(None, TrackState.GAP)`` when later pings exist but none fits, and
        ``(None, TrackState.END_OF_TRACK)`` when ``start_index`` is the final
        ping of the track.
    """

    return successor_from_minutes(minutes_since_epoch(timestamps), start_index, interval, margin)
