import math

import numpy as np
import pandas as pd
import pytest

from vms_interpolation.config import InterpolationConfig
from vms_interpolation.driver import interpolate_pings
from vms_interpolation.errors import UnsupportedMethod
from vms_interpolation.models import Connection, Ping, SplineParams
from vms_interpolation.segments import build_segment, cubic_hermite_spline, hermite_basis, normalise_method

PARAMS = SplineParams(fm=0.5, distance_scale=20, sigmoid_line=0.2, speed_band=(2.0, 6.0))
T0 = pd.Timestamp("2024-03-01 06:00")


def _ping(index, lon, lat, speed=4.0, heading=45.0, minutes=0):
    return Ping(
        vessel_id="NLD001",
        latitude=lat,
        longitude=lon,
        speed=speed,
        heading=heading,
        timestamp=T0 + pd.Timedelta(minutes=minutes),
        index=index,
    )


def _connection(start, end):
    return Connection(start_index=start, end_index=end, vessel_id="NLD001", elapsed_min=120.0)


def test_basis_at_endpoints():
    f00, f10, f01, f11 = hermite_basis(np.array([0.0, 1.0]))
    assert list(f00) == [1.0, 0.0]
    assert list(f10) == [0.0, 0.0]
    assert list(f01) == [0.0, 1.0]
    assert list(f11) == [0.0, 0.0]


@pytest.mark.parametrize("resolution", [2, 7, 100])
def test_straight_line_endpoints_exact(resolution):
    pings = [_ping(0, 3.1234, 53.5678), _ping(1, 3.9876, 54.0123, minutes=120)]
    seg = build_segment("SL", pings, _connection(0, 1), resolution, PARAMS)
    assert len(seg) == resolution
    assert tuple(seg.points[0]) == (3.1234, 53.5678)
    assert tuple(seg.points[-1]) == (3.9876, 54.0123)
    steps = np.diff(seg.longitudes)
    assert np.allclose(steps, steps[0])


def test_spline_endpoints_exact_for_any_heading_and_speed():
    rng = np.random.default_rng(7)
    for _ in range(20):
        lon0, lon1 = rng.uniform(-10, 10, size=2)
        lat0, lat1 = rng.uniform(45, 62, size=2)
        start = _ping(0, lon0, lat0, speed=rng.uniform(0, 12), heading=rng.uniform(0, 360))
        end = _ping(1, lon1, lat1, speed=rng.uniform(0, 12), heading=rng.uniform(0, 360), minutes=120)
        seg = build_segment("cHs", [start, end], _connection(0, 1), 100, PARAMS)
        assert seg.points.shape == (100, 2)
        assert seg.points[0, 0] == lon0 and seg.points[0, 1] == lat0
        assert seg.points[-1, 0] == lon1 and seg.points[-1, 1] == lat1


def test_zero_speed_gives_midpoint_halfway():
    pings = [_ping(0, 0.0, 0.0, speed=0.0), _ping(1, 2.0, 1.0, speed=0.0, minutes=120)]
    seg = build_segment("cHs", pings, _connection(0, 1), 3, PARAMS)
    assert seg.points[1] == pytest.approx([1.0, 0.5])


def test_heading_bends_the_path():
    # Departing due east at the equator pushes the first half of a northbound leg eastwards.
    pings = [_ping(0, 0.0, 0.0, heading=90.0), _ping(1, 0.0, 1.0, heading=0.0, minutes=120)]
    seg = build_segment("cHs", pings, _connection(0, 1), 11, PARAMS)
    assert seg.longitudes[3] > 0.0


def test_missing_heading_treated_as_north():
    start = _ping(0, 3.0, 54.0, heading=None)
    north = _ping(0, 3.0, 54.0, heading=0.0)
    end = _ping(1, 3.5, 54.5, heading=float("nan"), minutes=120)
    end_north = _ping(1, 3.5, 54.5, heading=0.0, minutes=120)
    missing = cubic_hermite_spline(start, end, 50, PARAMS)
    explicit = cubic_hermite_spline(north, end_north, 50, PARAMS)
    assert np.array_equal(missing, explicit)


def test_heading_adjustment_uses_previous_heading():
    pings = [
        _ping(0, 3.0, 54.0, heading=10.0),
        _ping(1, 3.2, 54.2, heading=90.0, minutes=60),
        _ping(2, 3.5, 54.5, heading=270.0, minutes=120),
    ]
    conn = _connection(0, 2)
    adjusted = build_segment("cHs", pings, conn, 30, PARAMS, heading_adjustment=1)
    expected = cubic_hermite_spline(pings[0], pings[2], 30, PARAMS, arrival=pings[1])
    plain = build_segment("cHs", pings, conn, 30, PARAMS, heading_adjustment=0)
    assert np.array_equal(adjusted.points, expected)
    assert not np.array_equal(adjusted.points, plain.points)
    assert adjusted.points[-1].tolist() == [3.5, 54.5]


def test_straight_line_ignores_heading_adjustment():
    pings = [_ping(0, 3.0, 54.0), _ping(1, 3.2, 54.2, minutes=60), _ping(2, 3.5, 54.5, minutes=120)]
    a = build_segment("SL", pings, _connection(0, 2), 10, PARAMS, heading_adjustment=0)
    b = build_segment("SL", pings, _connection(0, 2), 10, PARAMS, heading_adjustment=1)
    assert np.array_equal(a.points, b.points)


def test_segment_points_are_read_only():
    pings = [_ping(0, 3.0, 54.0), _ping(1, 3.5, 54.5, minutes=120)]
    seg = build_segment("SL", pings, _connection(0, 1), 5, PARAMS)
    with pytest.raises(ValueError):
        seg.points[0, 0] = 1.0


def test_method_aliases():
    assert normalise_method("straight_line") == "SL"
    assert normalise_method("CHS") == "cHs"
    assert normalise_method("cubic hermite spline") == "cHs"


def test_unsupported_method():
    pings = [_ping(0, 3.0, 54.0), _ping(1, 3.5, 54.5, minutes=120)]
    with pytest.raises(UnsupportedMethod):
        build_segment("bezier", pings, _connection(0, 1), 10, PARAMS)


@pytest.mark.parametrize("heading", [math.inf, -math.inf])
def test_infinite_heading_treated_as_north(heading):
    start = _ping(0, 3.0, 54.0, heading=heading)
    end = _ping(1, 3.5, 54.5, heading=heading, minutes=120)
    north = cubic_hermite_spline(_ping(0, 3.0, 54.0, heading=0.0), _ping(1, 3.5, 54.5, heading=0.0, minutes=120), 40, PARAMS)
    assert np.array_equal(cubic_hermite_spline(start, end, 40, PARAMS), north)


def test_infinite_heading_does_not_abort_run():
    pings = [_ping(0, 3.0, 54.0, heading=math.inf), _ping(1, 3.5, 54.5, minutes=120)]
    config = InterpolationConfig.from_dict({"interval": 120, "margin": 10, "resolution": 25})
    segments = interpolate_pings(pings, config)
    assert len(segments) == 1
    assert np.isfinite(segments[0].points).all()


@pytest.mark.parametrize("speed", [math.inf, -math.inf, float("nan")])
def test_non_finite_speed_keeps_endpoints_exact(speed):
    pings = [_ping(0, 3.0, 54.0, speed=speed), _ping(1, 3.5, 54.5, speed=speed, minutes=120)]
    seg = build_segment("cHs", pings, _connection(0, 1), 100, PARAMS)
    assert np.isfinite(seg.points).all()
    assert seg.points[0].tolist() == [3.0, 54.0]
    assert seg.points[-1].tolist() == [3.5, 54.5]
