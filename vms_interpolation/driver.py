"""Interpolation driver over a full, vessel-sorted ping sequence.

Validates the configuration and the sort order, lets the configured strategy
emit connections, and builds one segment per connection.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Hashable, Iterable, List, Sequence

import numpy as np

from vms_interpolation.config import InterpolationConfig
from vms_interpolation.errors import PrecheckFailed
from vms_interpolation.models import Ping, Segment
from vms_interpolation.segments import build_segment
from vms_interpolation.strategies import get_strategy
from vms_interpolation.successor import minutes_since_epoch


@dataclass
class InterpolationResult:
    """Segments of one run plus the vessels skipped by the per-track precheck."""

    segments: List[Segment] = field(default_factory=list)
    skipped: Dict[Hashable, str] = field(default_factory=dict)

    @property
    def n_segments(self) -> int:
        return len(self.segments)

    def connections(self) -> List[tuple[int, int]]:
        return [(seg.start_index, seg.end_index) for seg in self.segments]


def check_sorted(pings: Sequence[Ping], minutes: np.ndarray) -> None:
    """Raise :class:`PrecheckFailed` unless pings are sorted by vessel, then time."""

    missing = int(np.isnan(minutes).sum())
    if missing:
        raise PrecheckFailed(f"{missing} ping(s) have no timestamp")

    for pos in range(1, len(pings)):
        prev, curr = pings[pos - 1], pings[pos]
        if curr.vessel_id == prev.vessel_id:
            if minutes[pos] < minutes[pos - 1]:
                raise PrecheckFailed(
                    f"Pings of vessel {curr.vessel_id} are not in ascending time at position {pos}; "
                    "sort by vessel and timestamp first"
                )
        elif curr.vessel_id < prev.vessel_id:
            raise PrecheckFailed(
                f"Vessel {curr.vessel_id} at position {pos} follows {prev.vessel_id}; "
                "sort by vessel and timestamp first"
            )


def interpolate(pings: Iterable[Ping], config: InterpolationConfig) -> InterpolationResult:
    """Run one interpolation over ``pings`` with the strategy named by ``config.mode``.

    The configuration is validated before anything else, so an unknown method
    fails the run with :class:`UnsupportedMethod` before any segment is built.
    Segments come out grouped by vessel in input order and ordered by start
    index within a vessel.
    """

    config = config.validate()
    pings = list(pings)
    minutes = minutes_since_epoch(ping.timestamp for ping in pings)
    check_sorted(pings, minutes)

    strategy = get_strategy(config.mode, n_jobs=config.n_jobs)
    result = InterpolationResult()
    for connection in strategy.iter_connections(pings, minutes, config.interval, config.margin, result.skipped):
        result.segments.append(
            build_segment(
                config.method,
                pings,
                connection,
                config.resolution,
                config.params,
                config.heading_adjustment,
            )
        )

    if not result.segments:
        logging.info("No connections found within %s +/- %s minutes", config.interval, config.margin)
    logging.info(
        "Built %d %s segment(s) from %d pings (mode=%s, skipped vessels=%d)",
        result.n_segments,
        config.method,
        len(pings),
        strategy.name,
        len(result.skipped),
    )
    return result


def interpolate_pings(pings: Iterable[Ping], config: InterpolationConfig) -> List[Segment]:
    """Return only the ordered segments of :func:`interpolate`."""

    return interpolate(pings, config).segments
