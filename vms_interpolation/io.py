"""Input/output helpers for the VMS interpolation pipeline.

Covers CSV loading with truncation, required-column checks, conversion of a
ping table into :class:`~vms_interpolation.models.Ping` records, tabular views
of interpolated segments, and CSV saving.
"""

from __future__ import annotations

import glob
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Sequence

import numpy as np
import pandas as pd

from vms_interpolation.geometry import haversine_km, path_length_km, planar_distance
from vms_interpolation.models import Ping, Segment

PING_FIELDS: List[str] = ["vessel_id", "latitude", "longitude", "speed", "heading", "timestamp"]
REQUIRED_FIELDS: List[str] = ["vessel_id", "latitude", "longitude", "speed", "timestamp"]

SAMPLE_COLUMNS: List[str] = [
    "segment_id",
    "vessel_id",
    "start_index",
    "end_index",
    "step",
    "t",
    "longitude",
    "latitude",
]


def resolve_columns(column_map: Mapping[str, str] | None = None) -> Dict[str, str]:
    """Return the table column used for each ping field.

    ``column_map`` maps field names to column names, e.g.
    ``{"vessel_id": "VE_REF", "latitude": "SI_LATI"}``; unmapped fields keep
    their own name.
    """

    columns = {name: name for name in PING_FIELDS}
    unknown = sorted(set(column_map or {}) - set(PING_FIELDS))
    if unknown:
        raise ValueError(f"Unknown ping fields in column map: {unknown}")
    columns.update(column_map or {})
    return columns


def load_ping_csvs(
    csv_glob: str,
    parse_dates: Iterable[str],
    max_rows_total: int | None = None,
) -> pd.DataFrame:
    """Load and concatenate CSVs matching the glob, with optional truncation.

    Requested date columns that a file does not contain are skipped with a
    warning instead of failing the load.
    """

    paths = sorted(glob.glob(csv_glob))
    if not paths:
        raise FileNotFoundError(f"No CSV files matched glob: {csv_glob}")

    frames: List[pd.DataFrame] = []
    for path in paths:
        logging.info("Reading %s", path)
        cols = pd.read_csv(path, nrows=0).columns
        to_parse = [col for col in parse_dates if col in cols]
        missing = [col for col in parse_dates if col not in cols]
        if missing:
            logging.warning("Skipping parse_dates %s not present in %s", missing, path)
        frames.append(pd.read_csv(path, parse_dates=to_parse, low_memory=False))

    combined = pd.concat(frames, ignore_index=True)
    logging.info("Loaded %d pings from %d files", len(combined), len(paths))

    if max_rows_total is not None:
        combined = combined.iloc[:max_rows_total].copy()
        logging.info("Truncated to %d pings due to test mode cap", len(combined))

    return combined


def ensure_required_columns(df: pd.DataFrame, column_map: Mapping[str, str] | None = None) -> pd.DataFrame:
    """Validate that the DataFrame contains a column for every required ping field."""

    columns = resolve_columns(column_map)
    missing = [columns[name] for name in REQUIRED_FIELDS if columns[name] not in df.columns]
    if missing:
        raise ValueError(f"Missing required columns: {missing}")
    return df


def pings_from_frame(df: pd.DataFrame, column_map: Mapping[str, str] | None = None) -> List[Ping]:
    """Convert a ping table into immutable :class:`Ping` records.

    The table is read in its current row order; it is not sorted here. An
    integer index is kept as each ping's original index, otherwise the row
    position is used. Missing headings (absent column or NaN) become ``None``.
    """

    ensure_required_columns(df, column_map)
    columns = resolve_columns(column_map)

    timestamps = pd.to_datetime(df[columns["timestamp"]])
    if columns["heading"] in df.columns:
        headings = df[columns["heading"]]
    else:
        logging.info("No heading column %r; headings treated as missing", columns["heading"])
        headings = pd.Series(np.nan, index=df.index)
    labels = df.index if pd.api.types.is_integer_dtype(df.index) else range(len(df))

    return [
        Ping(
            vessel_id=vessel,
            latitude=float(lat),
            longitude=float(lon),
            speed=float(speed),
            heading=None if pd.isna(heading) else float(heading),
            timestamp=ts,
            index=int(label),
        )
        for vessel, lat, lon, speed, heading, ts, label in zip(
            df[columns["vessel_id"]],
            df[columns["latitude"]],
            df[columns["longitude"]],
            df[columns["speed"]],
            headings,
            timestamps,
            labels,
        )
    ]


def segments_to_frame(segments: Sequence[Segment]) -> pd.DataFrame:
    """One row per sampled point, keyed by segment and step."""

    if not segments:
        return pd.DataFrame(columns=SAMPLE_COLUMNS)

    frames = []
    for segment_id, segment in enumerate(segments):
        n = len(segment)
        frames.append(
            pd.DataFrame(
                {
                    "segment_id": segment_id,
                    "vessel_id": [segment.vessel_id] * n,
                    "start_index": segment.start_index,
                    "end_index": segment.end_index,
                    "step": np.arange(n, dtype=int),
                    "t": np.linspace(0.0, 1.0, n),
                    "longitude": segment.longitudes,
                    "latitude": segment.latitudes,
                }
            )
        )
    return pd.concat(frames, ignore_index=True)


def summarise_segments(segments: Sequence[Segment], pings: Sequence[Ping]) -> pd.DataFrame:
    """One row per segment with timing, chord distances and sampled path length."""

    rows = []
    for segment_id, segment in enumerate(segments):
        start = pings[segment.start_index]
        end = pings[segment.end_index]
        rows.append(
            {
                "segment_id": segment_id,
                "vessel_id": segment.vessel_id,
                "start_index": segment.start_index,
                "end_index": segment.end_index,
                "start_ping": start.index,
                "end_ping": end.index,
                "start_time": start.timestamp,
                "end_time": end.timestamp,
                "elapsed_min": segment.connection.elapsed_min,
                "chord_deg": float(planar_distance(start.longitude, start.latitude, end.longitude, end.latitude)),
                "chord_km": float(haversine_km(start.longitude, start.latitude, end.longitude, end.latitude)),
                "path_km": path_length_km(segment.points),
            }
        )
    return pd.DataFrame(rows)


def save_dataframe(df: pd.DataFrame, path: str | Path) -> None:
    """Persist a DataFrame to CSV."""

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=False)
    logging.info("Saved %d rows to %s", len(df), path)
