from dataclasses import replace

import pytest

from vms_interpolation.config import InterpolationConfig, get_nested, load_config
from vms_interpolation.errors import UnsupportedMethod


def test_defaults_follow_original_tooling():
    cfg = InterpolationConfig.from_dict({})
    assert (cfg.interval, cfg.margin, cfg.resolution) == (120.0, 12.0, 100)
    assert cfg.method == "cHs"
    assert cfg.params.speed_band == (2.0, 6.0)
    assert cfg.params.speed_midpoint == 4.0
    assert cfg.heading_adjustment == 0
    assert cfg.mode == "sequential"


def test_load_yaml_section(tmp_path):
    path = tmp_path / "interp.yaml"
    path.write_text(
        "interpolation:\n"
        "  interval: 60\n"
        "  margin: 5\n"
        "  method: SL\n"
        "  mode: fast\n"
        "  n_jobs: 4\n"
        "  params:\n"
        "    fm: 0.3\n"
        "    speed_band: [1, 5]\n",
        encoding="utf-8",
    )
    cfg = InterpolationConfig.from_dict(load_config(path)).validate()
    assert cfg.interval == 60.0
    assert cfg.mode == "batch"
    assert cfg.n_jobs == 4
    assert cfg.params.fm == 0.3
    assert cfg.params.speed_midpoint == 3.0


def test_validate_normalises_method():
    cfg = InterpolationConfig.from_dict({"method": "straight_line"}).validate()
    assert cfg.method == "SL"


def test_validate_rejects_bad_values():
    with pytest.raises(ValueError):
        InterpolationConfig.from_dict({"heading_adjustment": 2}).validate()
    with pytest.raises(ValueError):
        InterpolationConfig.from_dict({"margin": -1}).validate()
    with pytest.raises(ValueError):
        InterpolationConfig.from_dict({"params": {"speed_band": [1, 2, 3]}})
    with pytest.raises(UnsupportedMethod):
        InterpolationConfig.from_dict({"method": "kriging"}).validate()


def test_get_nested_default():
    assert get_nested({"a": {"b": 1}}, ["a", "b"], 0) == 1
    assert get_nested({"a": {"b": 1}}, ["a", "c"], 0) == 0


@pytest.mark.parametrize("n_jobs", [0, 1.5])
def test_validate_rejects_bad_n_jobs(n_jobs):
    cfg = InterpolationConfig.from_dict({"mode": "batch"})
    with pytest.raises(ValueError):
        replace(cfg, n_jobs=n_jobs).validate()


def test_validate_accepts_all_cores():
    assert InterpolationConfig.from_dict({"n_jobs": -1}).validate().n_jobs == -1


@pytest.mark.parametrize("field", ["interval", "margin"])
def test_validate_rejects_nan_window(field):
    cfg = InterpolationConfig.from_dict({})
    with pytest.raises(ValueError):
        replace(cfg, **{field: float("nan")}).validate()
