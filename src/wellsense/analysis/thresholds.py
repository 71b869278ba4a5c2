"""Adaptive pump start/stop thresholds from the empirical rate distribution."""

from __future__ import annotations

from dataclasses import dataclass
import logging

import numpy.typing as npt

from wellsense.analysis.contracts import PumpStateAnalyzerConfig
from wellsense.transforms.statistics import percentile


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PumpThresholds:
    """Rate thresholds (level units per second) driving the hysteresis scan.

    A rate below `start_threshold` means the level is being drawn down (pump
    turning on); a rate above `stop_threshold` means recovery (pump turning off).
    """

    start_threshold: float
    stop_threshold: float
    adaptive: bool = False


def estimate_pump_thresholds(
    rates: npt.ArrayLike,
    *,
    lower_percentile: float = 20,
    upper_percentile: float = 95,
    start_threshold_cap: float = -0.0001,
) -> PumpThresholds:
    """Derive thresholds once from the whole rate series.

    The start threshold is capped at `start_threshold_cap` so a flat dataset
    never pushes it to zero or above.
    """
    start = min(percentile(rates, lower_percentile), start_threshold_cap)
    stop = percentile(rates, upper_percentile)
    return PumpThresholds(start_threshold=start, stop_threshold=stop, adaptive=True)


def resolve_pump_thresholds(rates: npt.ArrayLike, config: PumpStateAnalyzerConfig) -> PumpThresholds:
    """Return the thresholds a scan should use under `config`."""
    if not config.adaptive_thresholds:
        if config.pump_start_threshold is None or config.pump_stop_threshold is None:
            raise ValueError("explicit thresholds are required when adaptive_thresholds is disabled")
        thresholds = PumpThresholds(
            start_threshold=config.pump_start_threshold,
            stop_threshold=config.pump_stop_threshold,
        )
    else:
        if config.pump_start_threshold is not None or config.pump_stop_threshold is not None:
            logger.debug("adaptive thresholds enabled; ignoring configured start/stop thresholds")
        thresholds = estimate_pump_thresholds(
            rates,
            lower_percentile=config.lower_percentile,
            upper_percentile=config.upper_percentile,
            start_threshold_cap=config.start_threshold_cap,
        )
    logger.debug(
        "pump thresholds: start=%.6g stop=%.6g adaptive=%s",
        thresholds.start_threshold,
        thresholds.stop_threshold,
        thresholds.adaptive,
    )
    return thresholds
