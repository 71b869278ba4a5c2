"""Signal transform utilities for smoothing, rates and percentiles."""

from wellsense.transforms.rate import rate_of_change, rate_series
from wellsense.transforms.smoothing import (
    SmoothedSeries,
    SmoothingMethod,
    exponential_smooth,
    moving_average_smooth,
    smooth_values,
)
from wellsense.transforms.statistics import median, percentile

__all__ = [
    "SmoothedSeries",
    "SmoothingMethod",
    "exponential_smooth",
    "median",
    "moving_average_smooth",
    "percentile",
    "rate_of_change",
    "rate_series",
    "smooth_values",
]
