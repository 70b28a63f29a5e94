"""CLI entry point for the VMS interpolation pipeline.

Loads ping CSVs, converts them into ping records, interpolates every accepted
connection with the configured method and mode, and writes the sampled points
and a per-segment summary, honoring test-mode caps from the config.
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Any, Dict

from vms_interpolation.config import InterpolationConfig, get_nested, load_config
from vms_interpolation.driver import interpolate
from vms_interpolation.io import (
    ensure_required_columns,
    load_ping_csvs,
    pings_from_frame,
    save_dataframe,
    segments_to_frame,
    summarise_segments,
)


def configure_logging(cfg: Dict[str, Any]) -> Path:
    """Configure root logger from the ``logging`` section; returns the log file path."""

    log_dir = Path(get_nested(cfg, ["logging", "dir"], "logs"))
    log_path = log_dir / get_nested(cfg, ["logging", "filename"], "interpolation.log")
    log_path.parent.mkdir(parents=True, exist_ok=True)
    level_name = str(get_nested(cfg, ["logging", "level"], "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = "%(asctime)s - %(levelname)s - %(message)s"
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level)

    file_handler = logging.FileHandler(log_path, mode="w", encoding="utf-8")
    file_handler.setFormatter(logging.Formatter(fmt))
    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(logging.Formatter(fmt))

    root.addHandler(file_handler)
    root.addHandler(stream_handler)
    root.info("Logging to %s (level=%s)", log_path, level_name)
    return log_path


def main(config_path: str = "config/interpolation.yaml") -> None:
    cfg = load_config(config_path)

    configure_logging(cfg)
    testing_cfg = cfg.get("testing", {}) or {}
    test_mode = bool(testing_cfg.get("enabled", False))
    logging.info("Test mode: %s", test_mode)

    input_cfg = cfg.get("input", {}) or {}
    csv_glob = input_cfg.get("csv_glob", "data/tacsat_*.csv")
    column_map = input_cfg.get("columns", {}) or {}
    timestamp_col = column_map.get("timestamp", "timestamp")
    parse_dates = input_cfg.get("parse_dates", [timestamp_col])
    max_rows = testing_cfg.get("max_rows_total") if test_mode else None

    df = load_ping_csvs(csv_glob=csv_glob, parse_dates=parse_dates, max_rows_total=max_rows)
    df = ensure_required_columns(df, column_map)
    pings = pings_from_frame(df, column_map)

    config = InterpolationConfig.from_dict(cfg)
    logging.info(
        "Interpolating with method=%s mode=%s interval=%s margin=%s resolution=%d",
        config.method,
        config.mode,
        config.interval,
        config.margin,
        config.resolution,
    )
    result = interpolate(pings, config)
    if result.skipped:
        logging.warning("Skipped %d vessel(s): %s", len(result.skipped), sorted(map(str, result.skipped)))
    if not result.segments:
        logging.warning("No segments produced; nothing to write.")
        return

    output_cfg = cfg.get("output", {}) or {}
    output_dir = Path(output_cfg.get("dir", "output"))
    exp_name = str(output_cfg.get("experiment_name", f"{config.method}_{config.mode}"))
    logging.info("Writing outputs to %s (experiment=%s)", output_dir, exp_name)

    if output_cfg.get("save_points", True):
        save_dataframe(segments_to_frame(result.segments), output_dir / f"interpolated_points_{exp_name}.csv")
    if output_cfg.get("save_summary", True):
        save_dataframe(summarise_segments(result.segments, pings), output_dir / f"segment_summary_{exp_name}.csv")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="VMS track interpolation pipeline.")
    parser.add_argument(
        "-c",
        "--config",
        default="config/interpolation.yaml",
        help="Path to YAML config file.",
    )
    args = parser.parse_args()
    main(args.config)
