"""
Small collection of geographic helpers shared by the successor search,
the spline builder and the segment summaries.
"""

from __future__ import annotations

import math
from typing import Optional, Sequence, Tuple

import numpy as np
from pyproj import Geod

from vms_interpolation.errors import InvalidGeometry

EARTH_RADIUS_KM = 6371.0
# Reference arc used to compare the length of a longitude and a latitude degree.
RATIO_ARC_DEG = 0.1

_GEOD = Geod(ellps="WGS84")


def planar_distance(lon1, lat1, lon2, lat2):
    """Euclidean distance on the (longitude, latitude) plane, in degrees.

    Works on scalars and numpy arrays alike; NaN input yields NaN.
    """

    return np.hypot(np.subtract(lon2, lon1), np.subtract(lat2, lat1))


def _haversine_arc(a):
    return 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))


def lon_lat_ratio(
    lons: Sequence[Optional[float]],
    lats: Sequence[Optional[float]],
) -> Tuple[float, float]:
    """Return the longitude/latitude degree ratio at the start and end latitude.

    The ratio is the haversine length of 0.1 degree of longitude at a given
    latitude divided by the length of 0.1 degree of latitude, so it shrinks
    towards the poles. ``lons`` is accepted so call sites can pass both
    coordinate pairs of a connection; the ratio only depends on latitude.

    Raises
    ------
    InvalidGeometry
        If neither latitude is given.
    """

    if lats is None or all(lat is None for lat in lats):
        raise InvalidGeometry(f"No latitude available for longitudes {lons}")

    lat = np.array([np.nan if value is None else value for value in lats], dtype=float)
    half_step = math.radians(RATIO_ARC_DEG) / 2

    a_lon = np.cos(np.radians(lat)) ** 2 * math.sin(half_step) ** 2
    dx = EARTH_RADIUS_KM * _haversine_arc(a_lon)
    dy = EARTH_RADIUS_KM * _haversine_arc(math.sin(half_step) ** 2)

    ratio = dx / dy
    return float(ratio[0]), float(ratio[-1])


def haversine_km(lon1, lat1, lon2, lat2):
    """Return great-circle distance between two WGS84 coordinates in kilometres."""

    phi1 = np.radians(lat1)
    phi2 = np.radians(lat2)
    dphi = np.radians(np.subtract(lat2, lat1))
    dlambda = np.radians(np.subtract(lon2, lon1))
    a = np.sin(dphi / 2) ** 2 + np.cos(phi1) * np.cos(phi2) * np.sin(dlambda / 2) ** 2
    return EARTH_RADIUS_KM * _haversine_arc(a)


def path_length_km(points: np.ndarray) -> float:
    """Geodesic length of a sampled (longitude, latitude) path on the WGS84 ellipsoid."""

    points = np.asarray(points, dtype=float)
    if len(points) < 2:
        return 0.0
    return float(_GEOD.line_length(points[:, 0], points[:, 1])) / 1000.0
