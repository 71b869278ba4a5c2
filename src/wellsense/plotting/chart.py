"""PNG charts of the level curve with pump-off intervals shaded."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any, Sequence

import numpy as np
import numpy.typing as npt

from wellsense.domain.models import PumpOffInterval


_DPI = 100
_INTERVAL_COLOR = "tab:green"
_INTERVAL_ALPHA = 0.16


def plot_pump_off_intervals(
    timestamps: Sequence[datetime],
    values: npt.ArrayLike,
    intervals: Sequence[PumpOffInterval],
    output_path: str | Path,
    *,
    smoothed_timestamps: Sequence[datetime] | None = None,
    smoothed: npt.ArrayLike | None = None,
    static_level: float | None = None,
    dynamic_level: float | None = None,
    width_px: int = 2000,
    height_px: int = 1000,
) -> Path:
    """Draw the level time series, shade each pump-off interval and save a PNG."""
    y = np.asarray(values, dtype=np.float64)
    if y.ndim != 1 or y.size != len(timestamps):
        raise ValueError("values must be 1D and match timestamps length")
    if width_px <= 0 or height_px <= 0:
        raise ValueError("width_px and height_px must be > 0")

    plt, mdates = _load_pyplot()
    fig, ax = plt.subplots(figsize=(width_px / _DPI, height_px / _DPI), dpi=_DPI)
    try:
        ax.plot(list(timestamps), y, linewidth=0.8, color="tab:blue", label="level")
        if smoothed is not None:
            smoothed_y = np.asarray(smoothed, dtype=np.float64)
            smoothed_x = list(timestamps if smoothed_timestamps is None else smoothed_timestamps)
            if smoothed_y.size != len(smoothed_x):
                raise ValueError("smoothed values must match smoothed_timestamps length")
            ax.plot(smoothed_x, smoothed_y, linewidth=1.2, color="tab:orange", label="smoothed")

        for interval in intervals:
            if interval.end_time is None:
                continue
            ax.axvspan(interval.start_time, interval.end_time, color=_INTERVAL_COLOR, alpha=_INTERVAL_ALPHA)

        if static_level is not None:
            ax.axhline(static_level, linestyle="--", linewidth=1.0, color="tab:purple", label="static level")
        if dynamic_level is not None:
            ax.axhline(dynamic_level, linestyle=":", linewidth=1.0, color="tab:red", label="dynamic level")

        locator = mdates.AutoDateLocator()
        ax.xaxis.set_major_locator(locator)
        ax.xaxis.set_major_formatter(mdates.ConciseDateFormatter(locator))
        ax.set_title("Well water level")
        ax.set_xlabel("Time (UTC)")
        ax.set_ylabel("Water level")
        ax.grid(True, alpha=0.3)
        ax.legend(loc="best")

        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(path, bbox_inches="tight")
    finally:
        plt.close(fig)
    return path


def plot_rate_histogram(
    rates: npt.ArrayLike,
    output_path: str | Path,
    *,
    bin_count: int = 30,
    start_threshold: float | None = None,
    stop_threshold: float | None = None,
) -> Path:
    """Histogram of rates of change, for checking where thresholds fall."""
    r = np.asarray(rates, dtype=np.float64)
    if r.ndim != 1 or r.size == 0:
        raise ValueError("rates must be a non-empty 1D array")
    if bin_count <= 0:
        raise ValueError("bin_count must be > 0")

    plt, _ = _load_pyplot()
    fig, ax = plt.subplots(figsize=(4, 3), dpi=_DPI)
    try:
        ax.hist(r, bins=bin_count, color="tab:blue", rwidth=0.8)
        if start_threshold is not None:
            ax.axvline(start_threshold, color="tab:red", linewidth=1.0)
        if stop_threshold is not None:
            ax.axvline(stop_threshold, color="tab:green", linewidth=1.0)
        ax.set_xlabel("Rate of change (units/s)")
        ax.set_ylabel("Samples")

        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(path, bbox_inches="tight")
    finally:
        plt.close(fig)
    return path


def _load_pyplot() -> tuple[Any, Any]:
    try:
        import matplotlib  # type: ignore[import-untyped]

        matplotlib.use("Agg")
        import matplotlib.dates as mdates  # type: ignore[import-untyped]
        import matplotlib.pyplot as plt  # type: ignore[import-untyped]
    except ImportError as exc:
        raise RuntimeError(
            "matplotlib is required to render charts. Install with `pip install -e '.[plot]'`."
        ) from exc
    return plt, mdates
