"""Configuration contracts for pump-state and level analysis."""

from __future__ import annotations

from dataclasses import dataclass

from wellsense.transforms.smoothing import SmoothingMethod


@dataclass(frozen=True, slots=True)
class PumpStateAnalyzerConfig:
    """Smoothing, thresholding and debounce settings for pump-state detection.

    With `adaptive_thresholds` enabled the start/stop thresholds are derived
    from rate percentiles for every run and any supplied values are ignored.
    Otherwise both thresholds must be given explicitly.
    """

    smoothing_alpha: float = 0.2
    smoothing_method: SmoothingMethod = SmoothingMethod.EXPONENTIAL
    smoothing_window: int = 1
    adaptive_thresholds: bool = True
    pump_start_threshold: float | None = None
    pump_stop_threshold: float | None = None
    start_threshold_cap: float = -0.0001
    lower_percentile: int = 20
    upper_percentile: int = 95
    min_consecutive_points: int = 5

    def __post_init__(self) -> None:
        if not 0.0 < self.smoothing_alpha <= 1.0:
            raise ValueError("smoothing_alpha must be in (0, 1]")
        if self.smoothing_window <= 0:
            raise ValueError("smoothing_window must be > 0")
        if self.min_consecutive_points <= 0:
            raise ValueError("min_consecutive_points must be > 0")
        for name, value in (
            ("lower_percentile", self.lower_percentile),
            ("upper_percentile", self.upper_percentile),
        ):
            if not 0 <= value <= 100:
                raise ValueError(f"{name} must be in [0, 100]")
        if self.lower_percentile > self.upper_percentile:
            raise ValueError("lower_percentile cannot be greater than upper_percentile")
        if self.start_threshold_cap >= 0.0:
            raise ValueError("start_threshold_cap must be < 0")

        if not self.adaptive_thresholds:
            if self.pump_start_threshold is None or self.pump_stop_threshold is None:
                raise ValueError(
                    "pump_start_threshold and pump_stop_threshold are required when adaptive_thresholds is disabled"
                )
            if self.pump_start_threshold >= self.pump_stop_threshold:
                raise ValueError("pump_start_threshold must be lower than pump_stop_threshold")


@dataclass(frozen=True, slots=True)
class LevelEstimatorConfig:
    """Histogram and stability-band settings for static/dynamic level estimation."""

    smoothing_alpha: float = 0.2
    bin_count: int = 10
    minimum_point_count: int = 50
    upper_stability_floor: float = 0.001
    lower_stability_floor: float = -0.001
    upper_stability_percentile: float = 80.0
    lower_stability_percentile: float = 5.0
    static_level_percentile: float = 95.0

    def __post_init__(self) -> None:
        if not 0.0 < self.smoothing_alpha <= 1.0:
            raise ValueError("smoothing_alpha must be in (0, 1]")
        if self.bin_count < 2:
            raise ValueError("bin_count must be >= 2")
        if self.minimum_point_count < 0:
            raise ValueError("minimum_point_count must be >= 0")
        if self.upper_stability_floor <= 0.0:
            raise ValueError("upper_stability_floor must be > 0")
        if self.lower_stability_floor >= 0.0:
            raise ValueError("lower_stability_floor must be < 0")
        for name, value in (
            ("upper_stability_percentile", self.upper_stability_percentile),
            ("lower_stability_percentile", self.lower_stability_percentile),
            ("static_level_percentile", self.static_level_percentile),
        ):
            if not 0.0 <= value <= 100.0:
                raise ValueError(f"{name} must be in [0, 100]")
