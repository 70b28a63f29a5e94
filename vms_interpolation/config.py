"""Configuration helpers for the VMS interpolation pipeline.

Provides YAML loading, nested lookups with defaults, and the strongly-typed
:class:`InterpolationConfig` consumed by the drivers.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict

import yaml

from vms_interpolation.models import SplineParams
from vms_interpolation.segments import normalise_method

MODES = {"sequential": "sequential", "batch": "batch", "fast": "batch"}


def load_config(path: str | Path) -> Dict[str, Any]:
    """Load a YAML configuration file."""

    with Path(path).open("r", encoding="utf-8") as fh:
        return yaml.safe_load(fh) or {}


def get_nested(config: Dict[str, Any], keys: list[str], default: Any) -> Any:
    """Retrieve a nested value from a config dict with a default."""

    current: Any = config
    for key in keys:
        if not isinstance(current, dict) or key not in current:
            return default
        current = current[key]
    return current


@dataclass(frozen=True)
class InterpolationConfig:
    """All parameters of one interpolation run.

    ``interval`` and ``margin`` are minutes, ``resolution`` counts samples per
    segment including both ends, and ``n_jobs`` bounds the batch worker pool.
    """

    interval: float
    margin: float
    resolution: int
    method: str
    params: SplineParams
    heading_adjustment: int
    mode: str
    n_jobs: int = 1

    def validate(self) -> "InterpolationConfig":
        """Check parameter ranges and normalise the method and mode names."""

        method = normalise_method(self.method)
        if not math.isfinite(self.interval) or self.interval <= 0:
            raise ValueError(f"interval must be positive, got {self.interval}")
        if not math.isfinite(self.margin) or self.margin < 0:
            raise ValueError(f"margin must be non-negative, got {self.margin}")
        if int(self.resolution) != self.resolution or self.resolution < 2:
            raise ValueError(f"resolution must be an integer >= 2, got {self.resolution}")
        if self.heading_adjustment not in (0, 1):
            raise ValueError(f"heading_adjustment must be 0 or 1, got {self.heading_adjustment}")
        if int(self.n_jobs) != self.n_jobs or self.n_jobs == 0:
            raise ValueError(f"n_jobs must be a non-zero integer, got {self.n_jobs}")
        mode = MODES.get(str(self.mode).lower())
        if mode is None:
            raise ValueError(f"Unsupported execution mode: {self.mode}")
        if self.params.speed_midpoint == 0:
            raise ValueError(f"speed_band midpoint must be non-zero, got {self.params.speed_band}")
        return replace(self, method=method, mode=mode, resolution=int(self.resolution), n_jobs=int(self.n_jobs))

    @classmethod
    def from_dict(cls, cfg: Dict[str, Any]) -> "InterpolationConfig":
        """Build a config from the ``interpolation`` section of a loaded YAML file.

        Missing keys fall back to the values of the original VMS tooling
        (interval 120, margin 12, resolution 100, cHs with fm 0.5, distance
        scale 20, sigmoid line 0.2 and speed band 2-6).
        """

        section = cfg.get("interpolation", cfg) or {}
        speed_band = get_nested(section, ["params", "speed_band"], [2, 6])
        if len(speed_band) != 2:
            raise ValueError(f"speed_band needs exactly two values, got {speed_band}")

        params = SplineParams(
            fm=float(get_nested(section, ["params", "fm"], 0.5)),
            distance_scale=float(get_nested(section, ["params", "distance_scale"], 20)),
            sigmoid_line=float(get_nested(section, ["params", "sigmoid_line"], 0.2)),
            speed_band=(float(speed_band[0]), float(speed_band[1])),
        )
        return cls(
            interval=float(section.get("interval", 120)),
            margin=float(section.get("margin", 12)),
            resolution=int(section.get("resolution", 100)),
            method=str(section.get("method", "cHs")),
            params=params,
            heading_adjustment=int(section.get("heading_adjustment", 0)),
            mode=str(section.get("mode", "sequential")),
            n_jobs=int(section.get("n_jobs", 1)),
        )
