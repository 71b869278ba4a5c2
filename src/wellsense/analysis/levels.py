"""Static/dynamic well level estimation from histogram peaks and stable points.

The smoothed series is binned into a fixed-count histogram; the midpoints of
the two most populated local-maximum bins give approximate static (higher)
and dynamic (lower) levels. Points whose rate of change is close to zero are
then assigned to the nearer approximate level and summarized robustly: the
static level is a high percentile of its points, the dynamic level the median
of its points.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Sequence

import numpy as np
import numpy.typing as npt

from wellsense.analysis.contracts import LevelEstimatorConfig
from wellsense.domain.models import LevelEstimate, SensorReading
from wellsense.transforms.rate import rate_series
from wellsense.transforms.smoothing import exponential_smooth
from wellsense.transforms.statistics import median, percentile


FloatArray = npt.NDArray[np.float64]

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class StabilityBand:
    """Rates strictly inside (lower, upper) around zero count as stable."""

    lower: float
    upper: float

    def contains(self, rate: float) -> bool:
        return (0.0 <= rate < self.upper) or (self.lower < rate <= 0.0)


def find_histogram_peaks(
    smoothed: npt.ArrayLike,
    *,
    bin_count: int = 10,
    minimum_point_count: int = 50,
) -> tuple[float, ...]:
    """Midpoints of the two highest-count local-maximum bins, highest first.

    A bin is a peak when its count is strictly greater than each neighbouring
    bin and than `minimum_point_count`. Returns an empty tuple when fewer than
    two bins qualify.
    """
    if bin_count < 2:
        raise ValueError("bin_count must be >= 2")
    x = np.asarray(smoothed, dtype=np.float64)
    if x.size == 0:
        return ()

    counts, edges = np.histogram(x, bins=bin_count)
    peak_indices: list[int] = []
    for idx in range(bin_count):
        count = counts[idx]
        if count <= minimum_point_count:
            continue
        if idx > 0 and count <= counts[idx - 1]:
            continue
        if idx < bin_count - 1 and count <= counts[idx + 1]:
            continue
        peak_indices.append(idx)

    if len(peak_indices) < 2:
        return ()

    top = sorted(peak_indices, key=lambda idx: int(counts[idx]), reverse=True)[:2]
    return tuple(float((edges[idx] + edges[idx + 1]) / 2.0) for idx in top)


def stability_band(smoothed: npt.ArrayLike, config: LevelEstimatorConfig) -> StabilityBand:
    """Percentile band of the smoothed series, never narrower than the configured floors."""
    upper = max(config.upper_stability_floor, percentile(smoothed, config.upper_stability_percentile))
    lower = min(config.lower_stability_floor, percentile(smoothed, config.lower_stability_percentile))
    return StabilityBand(lower=lower, upper=upper)


class LevelEstimator:
    """Estimate static and dynamic levels from a time-sorted series of readings."""

    def __init__(self, config: LevelEstimatorConfig | None = None) -> None:
        self._config = LevelEstimatorConfig() if config is None else config

    @property
    def config(self) -> LevelEstimatorConfig:
        return self._config

    def estimate(self, readings: Sequence[SensorReading]) -> LevelEstimate:
        config = self._config
        if len(readings) < 2:
            logger.debug("insufficient data for level estimation: %d readings", len(readings))
            return LevelEstimate()

        values = np.asarray([reading.value for reading in readings], dtype=np.float64)
        epoch_ms = np.asarray([reading.epoch_milliseconds for reading in readings], dtype=np.int64)
        smoothed = exponential_smooth(values, alpha=config.smoothing_alpha)

        peaks = find_histogram_peaks(
            smoothed,
            bin_count=config.bin_count,
            minimum_point_count=config.minimum_point_count,
        )
        if len(peaks) < 2:
            logger.info("level estimation found %d histogram peak(s); need 2", len(peaks))
            return LevelEstimate()

        approx_static = max(peaks[0], peaks[1])
        approx_dynamic = min(peaks[0], peaks[1])
        band = stability_band(smoothed, config)
        logger.debug(
            "approximate levels: static=%.4f dynamic=%.4f; stability band (%.6g, %.6g)",
            approx_static,
            approx_dynamic,
            band.lower,
            band.upper,
        )

        static_points, dynamic_points = classify_stable_points(
            smoothed,
            rate_series(smoothed, epoch_ms),
            band=band,
            approx_static=approx_static,
            approx_dynamic=approx_dynamic,
        )
        return LevelEstimate(
            static_level=(
                percentile(static_points, config.static_level_percentile) if static_points.size else None
            ),
            dynamic_level=median(dynamic_points) if dynamic_points.size else None,
        )


def classify_stable_points(
    smoothed: npt.ArrayLike,
    rates: npt.ArrayLike,
    *,
    band: StabilityBand,
    approx_static: float,
    approx_dynamic: float,
) -> tuple[FloatArray, FloatArray]:
    """Split stable levels into (static, dynamic) by distance to each approximate level.

    `rates[i]` describes the transition ending at `smoothed[i + 1]`; that level
    is the one classified. Ties go to the dynamic set.
    """
    levels = np.asarray(smoothed, dtype=np.float64)
    r = np.asarray(rates, dtype=np.float64)
    if r.size != max(levels.size - 1, 0):
        raise ValueError("rates must have exactly one fewer entry than smoothed")

    static_points: list[float] = []
    dynamic_points: list[float] = []
    for idx, rate in enumerate(r):
        if not band.contains(float(rate)):
            continue
        level = float(levels[idx + 1])
        if abs(level - approx_static) < abs(level - approx_dynamic):
            static_points.append(level)
        else:
            dynamic_points.append(level)
    return (
        np.asarray(static_points, dtype=np.float64),
        np.asarray(dynamic_points, dtype=np.float64),
    )


def estimate_levels(
    readings: Sequence[SensorReading],
    config: LevelEstimatorConfig | None = None,
) -> LevelEstimate:
    """Convenience wrapper around `LevelEstimator`."""
    return LevelEstimator(config).estimate(readings)
