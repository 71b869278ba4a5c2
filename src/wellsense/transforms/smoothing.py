"""Smoothing transforms for one-dimensional level signals."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

import numpy as np
import numpy.typing as npt


FloatArray = npt.NDArray[np.float64]


class SmoothingMethod(StrEnum):
    """Supported smoothing strategies."""

    EXPONENTIAL = "exponential"
    MOVING_AVERAGE = "moving_average"


@dataclass(frozen=True, slots=True)
class SmoothedSeries:
    """Smoothed values plus the input index aligned with `values[0]`."""

    values: FloatArray
    offset: int = 0

    def __post_init__(self) -> None:
        if self.values.ndim != 1:
            raise ValueError("smoothed values must be 1D")
        if self.offset < 0:
            raise ValueError("offset must be >= 0")

    def __len__(self) -> int:
        return int(self.values.size)


def exponential_smooth(values: npt.ArrayLike, *, alpha: float) -> FloatArray:
    """Exponentially smooth `values`; output has the same length as the input."""
    _validate_alpha(alpha)
    x = _as_signal(values)
    smoothed = np.empty_like(x)
    if x.size == 0:
        return smoothed
    if alpha == 1.0:
        smoothed[:] = x
        return smoothed

    smoothed[0] = x[0]
    for idx in range(1, x.size):
        smoothed[idx] = alpha * x[idx] + (1.0 - alpha) * smoothed[idx - 1]
    return smoothed


def moving_average_smooth(values: npt.ArrayLike, *, window: int) -> FloatArray:
    """Trailing moving average; output is `window - 1` samples shorter than the input."""
    if window <= 0:
        raise ValueError("window must be > 0")
    x = _as_signal(values)
    if x.size < window:
        return np.empty(0, dtype=np.float64)
    kernel = np.full(window, 1.0 / window, dtype=np.float64)
    return np.asarray(np.convolve(x, kernel, mode="valid"), dtype=np.float64)


def smooth_values(
    values: npt.ArrayLike,
    *,
    method: SmoothingMethod = SmoothingMethod.EXPONENTIAL,
    alpha: float = 0.2,
    window: int = 1,
) -> SmoothedSeries:
    """Smooth with the selected strategy and report the alignment offset."""
    if method == SmoothingMethod.EXPONENTIAL:
        return SmoothedSeries(values=exponential_smooth(values, alpha=alpha), offset=0)
    if method == SmoothingMethod.MOVING_AVERAGE:
        return SmoothedSeries(values=moving_average_smooth(values, window=window), offset=window - 1)
    raise ValueError(f"unsupported smoothing method: {method}")


def _as_signal(values: npt.ArrayLike) -> FloatArray:
    x = np.asarray(values, dtype=np.float64)
    if x.ndim != 1:
        raise ValueError("signal must be 1D")
    return x


def _validate_alpha(alpha: float) -> None:
    if not 0.0 < alpha <= 1.0:
        raise ValueError("alpha must be in (0, 1]")
