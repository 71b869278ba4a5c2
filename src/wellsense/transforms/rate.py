"""Time-normalized rate of change for smoothed level signals."""

from __future__ import annotations

import numpy as np
import numpy.typing as npt


FloatArray = npt.NDArray[np.float64]


def rate_of_change(smoothed: npt.ArrayLike, timestamps_ms: npt.ArrayLike, index: int) -> float:
    """Level change per second between samples `index - 1` and `index`.

    Returns 0.0 when both samples share a timestamp.
    """
    x = np.asarray(smoothed, dtype=np.float64)
    t = np.asarray(timestamps_ms, dtype=np.int64)
    if index < 1 or index >= x.size:
        raise IndexError(f"index must be in [1, {x.size - 1}], got {index}")
    if t.size < x.size:
        raise ValueError("timestamps_ms must cover every smoothed sample")

    delta_seconds = float(t[index] - t[index - 1]) / 1000.0
    if delta_seconds == 0.0:
        return 0.0
    return float(x[index] - x[index - 1]) / delta_seconds


def rate_series(smoothed: npt.ArrayLike, timestamps_ms: npt.ArrayLike) -> FloatArray:
    """Rates for every consecutive pair; `result[i]` ends at sample `i + 1`."""
    x = np.asarray(smoothed, dtype=np.float64)
    t = np.asarray(timestamps_ms, dtype=np.int64)
    if x.ndim != 1 or t.ndim != 1:
        raise ValueError("smoothed and timestamps_ms must be 1D")
    if x.size != t.size:
        raise ValueError("smoothed and timestamps_ms must have equal length")
    if x.size < 2:
        return np.empty(0, dtype=np.float64)

    value_deltas = np.diff(x)
    time_deltas = np.diff(t).astype(np.float64) / 1000.0
    rates = np.zeros_like(value_deltas)
    np.divide(value_deltas, time_deltas, out=rates, where=time_deltas != 0.0)
    return rates
