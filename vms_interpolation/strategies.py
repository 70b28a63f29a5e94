"""Connection strategies: sequential scan and per-vessel batch walk.

Both strategies apply the same successor rule and therefore emit the same
connections; they differ only in how much they hold in memory at a time.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Hashable, Iterator, List, Protocol, Sequence, Tuple

import numpy as np
from joblib import Parallel, delayed

from vms_interpolation.errors import PrecheckFailed
from vms_interpolation.models import Connection, Ping, TrackState
from vms_interpolation.successor import elapsed_matrix, pick_candidate, successor_from_minutes


class ConnectionStrategy(Protocol):
    name: str

    def iter_connections(
        self,
        pings: Sequence[Ping],
        minutes: np.ndarray,
        interval: float,
        margin: float,
        skipped: Dict[Hashable, str],
    ) -> Iterator[Connection]:
        ...


def track_end(pings: Sequence[Ping], start: int) -> int:
    """Return the position one past the last ping of the track starting at ``start``."""

    vessel = pings[start].vessel_id
    stop = start + 1
    while stop < len(pings) and pings[stop].vessel_id == vessel:
        stop += 1
    return stop


def track_bounds(pings: Sequence[Ping]) -> List[Tuple[Hashable, int, int]]:
    """Split a vessel-sorted sequence into ``(vessel_id, start, stop)`` runs."""

    bounds = []
    start = 0
    while start < len(pings):
        stop = track_end(pings, start)
        bounds.append((pings[start].vessel_id, start, stop))
        start = stop
    return bounds


def require_track_length(vessel_id: Hashable, n_pings: int) -> None:
    if n_pings < 2:
        raise PrecheckFailed(f"Vessel {vessel_id} has {n_pings} ping(s); at least 2 are needed")


def _skip_track(vessel_id: Hashable, exc: PrecheckFailed, skipped: Dict[Hashable, str]) -> None:
    logging.warning("Skipping vessel %s: %s", vessel_id, exc)
    skipped[vessel_id] = str(exc)


@dataclass
class SequentialStrategy:
    """Single cursor over the whole sequence, one successor search at a time."""

    name: str = "sequential"

    def iter_connections(
        self,
        pings: Sequence[Ping],
        minutes: np.ndarray,
        interval: float,
        margin: float,
        skipped: Dict[Hashable, str],
    ) -> Iterator[Connection]:
        cursor = 0
        track_start = track_stop = 0
        vessel: Hashable = None

        while cursor < len(pings):
            if cursor >= track_stop:
                track_start = cursor
                track_stop = track_end(pings, cursor)
                vessel = pings[cursor].vessel_id
                try:
                    require_track_length(vessel, track_stop - track_start)
                except PrecheckFailed as exc:
                    _skip_track(vessel, exc, skipped)
                    cursor = track_stop
                    continue

            # Final ping of a track never starts a connection.
            if cursor == track_stop - 1:
                cursor += 1
                continue

            end, state = successor_from_minutes(
                minutes[track_start:track_stop], cursor - track_start, interval, margin
            )
            if state is TrackState.CONNECTED:
                end_index = track_start + end
                yield Connection(
                    start_index=cursor,
                    end_index=end_index,
                    vessel_id=vessel,
                    elapsed_min=float(minutes[end_index] - minutes[cursor]),
                )
                cursor = end_index
            else:
                cursor += 1


def connect_track(
    minutes: np.ndarray,
    offset: int,
    vessel_id: Hashable,
    interval: float,
    margin: float,
) -> List[Connection]:
    """Greedy left-to-right walk over the elapsed-time matrix of one vessel.

    ``offset`` is the position of the track's first ping in the full sequence.
    """

    n = len(minutes)
    require_track_length(vessel_id, n)
    matrix = elapsed_matrix(minutes)

    connections: List[Connection] = []
    i = 0
    while i < n:
        pos = pick_candidate(matrix[i, i + 1 :], interval, margin)
        if pos is None:
            i += 1
            continue
        j = i + 1 + pos
        connections.append(
            Connection(
                start_index=offset + i,
                end_index=offset + j,
                vessel_id=vessel_id,
                elapsed_min=float(matrix[i, j]),
            )
        )
        i = j
    return connections


def _connect_track_or_error(minutes, offset, vessel_id, interval, margin):
    try:
        return connect_track(minutes, offset, vessel_id, interval, margin), None
    except PrecheckFailed as exc:
        return [], exc


@dataclass
class BatchStrategy:
    """Per-vessel elapsed-time matrices, processed on a bounded worker pool.

    Memory grows with the square of the longest track.
    """

    name: str = "batch"
    n_jobs: int = 1

    def iter_connections(
        self,
        pings: Sequence[Ping],
        minutes: np.ndarray,
        interval: float,
        margin: float,
        skipped: Dict[Hashable, str],
    ) -> Iterator[Connection]:
        tracks = track_bounds(pings)
        logging.info("Batch connection search over %d vessel(s) with n_jobs=%d", len(tracks), self.n_jobs)

        results = Parallel(n_jobs=self.n_jobs, prefer="threads")(
            delayed(_connect_track_or_error)(minutes[start:stop], start, vessel, interval, margin)
            for vessel, start, stop in tracks
        )
        for (vessel, _, _), (connections, error) in zip(tracks, results):
            if error is not None:
                _skip_track(vessel, error, skipped)
                continue
            yield from connections


def get_strategy(mode: str, n_jobs: int = 1) -> ConnectionStrategy:
    name = mode.lower()
    if name == "sequential":
        return SequentialStrategy()
    if name in {"batch", "fast"}:
        return BatchStrategy(n_jobs=n_jobs)
    raise ValueError(f"Unsupported execution mode: {mode}")
