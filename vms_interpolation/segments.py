"""Segment sampling between two connected pings.

Two methods are available: a straight line on the longitude/latitude plane
(``"SL"``) and the cubic Hermite spline of Hintzen et al. (2010) (``"cHs"``),
whose tangents are derived from the recorded heading and speed.
"""

from __future__ import annotations

import logging
import math
from typing import Optional, Sequence, Tuple

import numpy as np

from vms_interpolation.errors import UnsupportedMethod
from vms_interpolation.geometry import lon_lat_ratio
from vms_interpolation.models import Connection, Ping, Segment, SplineParams

STRAIGHT_LINE = "SL"
CUBIC_HERMITE_SPLINE = "cHs"

_METHOD_ALIASES = {
    "sl": STRAIGHT_LINE,
    "straight_line": STRAIGHT_LINE,
    "straight line": STRAIGHT_LINE,
    "chs": CUBIC_HERMITE_SPLINE,
    "cubic_hermite_spline": CUBIC_HERMITE_SPLINE,
    "cubic hermite spline": CUBIC_HERMITE_SPLINE,
}


def normalise_method(method: str) -> str:
    """Map a method name or alias to ``"SL"`` or ``"cHs"``."""

    name = _METHOD_ALIASES.get(str(method).strip().lower())
    if name is None:
        raise UnsupportedMethod(f"Unsupported interpolation method: {method}")
    return name


def _missing(value: Optional[float]) -> bool:
    return value is None or not math.isfinite(float(value))


def hermite_basis(t: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """Return the cubic Hermite basis functions (F00, F10, F01, F11) at ``t``."""

    t = np.asarray(t, dtype=float)
    t2 = t * t
    t3 = t2 * t
    f00 = 2 * t3 - 3 * t2 + 1
    f10 = t3 - 2 * t2 + t
    f01 = -2 * t3 + 3 * t2
    f11 = t3 - t2
    return f00, f10, f01, f11


def straight_line(start: Ping, end: Ping, resolution: int) -> np.ndarray:
    """Evenly spaced samples on the line from ``start`` to ``end``, both included."""

    fx = np.linspace(start.longitude, end.longitude, resolution)
    fy = np.linspace(start.latitude, end.latitude, resolution)
    return np.column_stack([fx, fy])


def _tangent(heading: Optional[float], speed: Optional[float], ratio: float, params: SplineParams) -> Tuple[float, float]:
    if _missing(heading):
        logging.debug("Missing or non-finite heading %s replaced by 0 (north)", heading)
        heading = 0.0
    if _missing(speed):
        logging.debug("Missing or non-finite speed %s replaced by 0", speed)
        speed = 0.0

    scale = params.fm * float(speed) / params.speed_midpoint
    radians = math.radians(float(heading))
    return math.sin(radians) * scale, math.cos(radians) * ratio * scale


def cubic_hermite_spline(
    start: Ping,
    end: Ping,
    resolution: int,
    params: SplineParams,
    arrival: Optional[Ping] = None,
) -> np.ndarray:
    """Sample the cubic Hermite spline between two pings.

    Longitude and latitude are treated as two scalar curves over
    ``t in [0, 1]``. The tangent at each end is the heading unit vector
    ``(sin, cos)`` scaled by ``fm`` and by the ping speed relative to the
    midpoint of the speed band; the latitude component is further scaled by
    the longitude/latitude degree ratio at that end. When given, the heading
    of ``arrival`` replaces the end ping heading in the arrival tangent.
    """

    heading_end = (arrival or end).heading
    ratio_start, ratio_end = lon_lat_ratio(
        (start.longitude, end.longitude),
        (start.latitude, end.latitude),
    )
    hx0, hy0 = _tangent(start.heading, start.speed, ratio_start, params)
    hx1, hy1 = _tangent(heading_end, end.speed, ratio_end, params)

    t = np.linspace(0.0, 1.0, resolution)
    f00, f10, f01, f11 = hermite_basis(t)
    fx = f00 * start.longitude + f10 * hx0 + f01 * end.longitude + f11 * hx1
    fy = f00 * start.latitude + f10 * hy0 + f01 * end.latitude + f11 * hy1
    return np.column_stack([fx, fy])


def build_segment(
    method: str,
    pings: Sequence[Ping],
    connection: Connection,
    resolution: int,
    params: SplineParams,
    heading_adjustment: int = 0,
) -> Segment:
    """Build the sampled segment for ``connection``.

    With ``heading_adjustment=1`` the arrival tangent uses the heading of the
    ping one position before the end ping, for data where the heading stored
    at a ping is the bearing out of it rather than into it.
    """

    method = normalise_method(method)
    if resolution < 2:
        raise ValueError(f"resolution must be >= 2, got {resolution}")

    start = pings[connection.start_index]
    end = pings[connection.end_index]
    if method == STRAIGHT_LINE:
        points = straight_line(start, end, resolution)
    else:
        arrival = pings[connection.end_index - heading_adjustment]
        points = cubic_hermite_spline(start, end, resolution, params, arrival=arrival)
    return Segment(connection=connection, points=points)
