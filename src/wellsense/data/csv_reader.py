"""CSV ingestion for exported well sensor dumps."""

from __future__ import annotations

import csv
from pathlib import Path

import numpy as np

from wellsense.domain.models import SensorReading


DEFAULT_VALUE_COLUMN = "value"
DEFAULT_TIMESTAMP_COLUMN = "epoch_milliseconds"

_QUOTE_CHAR = '"'


def read_sensor_csv(
    path: str | Path,
    *,
    value_column: str = DEFAULT_VALUE_COLUMN,
    timestamp_column: str = DEFAULT_TIMESTAMP_COLUMN,
    delimiter: str = ",",
) -> tuple[SensorReading, ...]:
    """Load readings from a headered CSV file, columns located by name.

    Rows must already be sorted by timestamp; the analysis relies on that order
    and this reader rejects files where it is violated.
    """
    csv_path = Path(path)
    if not csv_path.exists():
        raise FileNotFoundError(f"sensor CSV does not exist: {csv_path}")
    if not csv_path.is_file():
        raise ValueError(f"sensor CSV is not a file: {csv_path}")

    with csv_path.open("r", encoding="utf-8-sig", newline="") as handle:
        header = next(csv.reader(handle, delimiter=delimiter, quotechar=_QUOTE_CHAR), [])
    columns = [column.strip().lower() for column in header]
    value_idx = _column_index(columns, value_column, csv_path)
    timestamp_idx = _column_index(columns, timestamp_column, csv_path)

    table = np.loadtxt(
        csv_path,
        delimiter=delimiter,
        skiprows=1,
        usecols=(timestamp_idx, value_idx),
        dtype=np.float64,
        ndmin=2,
        quotechar=_QUOTE_CHAR,
        encoding="utf-8-sig",
    )
    if table.shape[0] == 0:
        return ()
    if not np.all(np.isfinite(table)):
        raise ValueError(f"sensor CSV contains non-finite values: {csv_path}")

    epoch_ms = np.rint(table[:, 0]).astype(np.int64)
    if np.any(np.diff(epoch_ms) < 0):
        raise ValueError(f"sensor CSV rows must be sorted by {timestamp_column}: {csv_path}")

    return tuple(
        SensorReading(epoch_milliseconds=int(ms), value=float(value))
        for ms, value in zip(epoch_ms, table[:, 1])
    )


def _column_index(columns: list[str], name: str, path: Path) -> int:
    try:
        return columns.index(name.lower())
    except ValueError:
        raise ValueError(f"column '{name}' not found in {path}; available: {columns}") from None
