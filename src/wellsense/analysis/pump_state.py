"""Hysteresis + debounce state machine that detects pump-off intervals.

The scan is a pure fold over the rate series. `ScanState` carries everything
that changes between samples, so running the same input twice always gives
the same intervals and there is no hidden state to reset.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
import logging
from typing import Sequence

import numpy as np
import numpy.typing as npt

from wellsense.analysis.contracts import PumpStateAnalyzerConfig
from wellsense.analysis.thresholds import PumpThresholds, resolve_pump_thresholds
from wellsense.domain.models import PumpOffInterval, PumpState, SensorReading, epoch_ms_to_datetime
from wellsense.transforms.rate import rate_series
from wellsense.transforms.smoothing import SmoothedSeries, smooth_values


FloatArray = npt.NDArray[np.float64]

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ScanState:
    """Accumulator threaded through the pump-state fold."""

    state: PumpState
    on_counter: int = 0
    off_counter: int = 0
    pending_off_start: datetime | None = None
    pending_off_end: datetime | None = None
    open_interval: PumpOffInterval | None = None


@dataclass(frozen=True, slots=True)
class PumpStateAnalysis:
    """Everything one detection run produced, for reporting and plotting."""

    timestamps: tuple[datetime, ...]
    values: FloatArray
    smoothed: SmoothedSeries
    rates: FloatArray
    thresholds: PumpThresholds | None
    intervals: tuple[PumpOffInterval, ...]

    @property
    def smoothed_timestamps(self) -> tuple[datetime, ...]:
        """Timestamps aligned index-for-index with `smoothed.values`."""
        return self.timestamps[self.smoothed.offset : self.smoothed.offset + len(self.smoothed)]


def initial_scan_state(first_rate: float, first_timestamp: datetime, thresholds: PumpThresholds) -> ScanState:
    """Start OFF, with an interval open from the first reading, if the level is already recovering."""
    if first_rate > thresholds.stop_threshold:
        return ScanState(state=PumpState.OFF, open_interval=PumpOffInterval(start_time=first_timestamp))
    return ScanState(state=PumpState.ON)


def advance_scan(
    scan: ScanState,
    rate: float,
    timestamp: datetime,
    *,
    thresholds: PumpThresholds,
    min_consecutive_points: int,
) -> tuple[ScanState, PumpOffInterval | None]:
    """Consume one rate sample and return the next state plus any interval it closed.

    `timestamp` belongs to the reading at the start of the sample's transition.
    """
    if min_consecutive_points <= 0:
        raise ValueError("min_consecutive_points must be > 0")

    if scan.state == PumpState.OFF:
        if not rate < thresholds.start_threshold:
            return replace(scan, on_counter=0, pending_off_end=None), None

        pending_off_end = timestamp if scan.on_counter == 0 else scan.pending_off_end
        on_counter = scan.on_counter + 1
        if on_counter < min_consecutive_points:
            return replace(scan, on_counter=on_counter, pending_off_end=pending_off_end), None

        closed: PumpOffInterval | None = None
        if scan.open_interval is not None:
            closed = replace(scan.open_interval, end_time=pending_off_end)
        return ScanState(state=PumpState.ON), closed

    if not rate > thresholds.stop_threshold:
        return replace(scan, off_counter=0, pending_off_start=None), None

    pending_off_start = timestamp if scan.off_counter == 0 else scan.pending_off_start
    off_counter = scan.off_counter + 1
    if off_counter < min_consecutive_points:
        return replace(scan, off_counter=off_counter, pending_off_start=pending_off_start), None

    return (
        ScanState(state=PumpState.OFF, open_interval=PumpOffInterval(start_time=pending_off_start)),
        None,
    )


def finalize_scan(scan: ScanState, last_timestamp: datetime) -> PumpOffInterval | None:
    """Close an interval still open when the data ends."""
    if scan.open_interval is None or scan.open_interval.end_time is not None:
        return None
    return replace(scan.open_interval, end_time=last_timestamp, closed_by_end_of_data=True)


def scan_rate_series(
    rates: npt.ArrayLike,
    timestamps: Sequence[datetime],
    *,
    thresholds: PumpThresholds,
    min_consecutive_points: int,
) -> tuple[PumpOffInterval, ...]:
    """Run the full fold: initialize from the first rate, scan every sample, finalize.

    `timestamps[i]` and `timestamps[i + 1]` bound the transition of `rates[i]`.
    """
    r = np.asarray(rates, dtype=np.float64)
    if r.ndim != 1:
        raise ValueError("rates must be 1D")
    if r.size == 0:
        return ()
    if len(timestamps) != r.size + 1:
        raise ValueError("timestamps must have exactly one more entry than rates")

    scan = initial_scan_state(float(r[0]), timestamps[0], thresholds)
    intervals: list[PumpOffInterval] = []
    for idx, rate in enumerate(r):
        scan, closed = advance_scan(
            scan,
            float(rate),
            timestamps[idx],
            thresholds=thresholds,
            min_consecutive_points=min_consecutive_points,
        )
        if closed is not None:
            intervals.append(closed)

    tail = finalize_scan(scan, timestamps[-1])
    if tail is not None:
        intervals.append(tail)
    return tuple(intervals)


class PumpStateAnalyzer:
    """Detect pump-off intervals in a time-sorted series of level readings."""

    def __init__(self, config: PumpStateAnalyzerConfig | None = None) -> None:
        self._config = PumpStateAnalyzerConfig() if config is None else config

    @property
    def config(self) -> PumpStateAnalyzerConfig:
        return self._config

    def analyze(self, readings: Sequence[SensorReading]) -> PumpStateAnalysis:
        """Smooth, differentiate, threshold and scan one batch of readings.

        Readings are expected in ascending time order and are not re-checked here.
        """
        config = self._config
        values = np.asarray([reading.value for reading in readings], dtype=np.float64)
        epoch_ms = np.asarray([reading.epoch_milliseconds for reading in readings], dtype=np.int64)
        timestamps = tuple(reading.timestamp for reading in readings)

        smoothed = smooth_values(
            values,
            method=config.smoothing_method,
            alpha=config.smoothing_alpha,
            window=config.smoothing_window,
        )
        if len(readings) < 2 or len(smoothed) < 2:
            logger.debug("insufficient data for pump-state scan: %d readings", len(readings))
            return PumpStateAnalysis(
                timestamps=timestamps,
                values=values,
                smoothed=smoothed,
                rates=np.empty(0, dtype=np.float64),
                thresholds=None,
                intervals=(),
            )

        aligned_ms = epoch_ms[smoothed.offset : smoothed.offset + len(smoothed)]
        rates = rate_series(smoothed.values, aligned_ms)
        thresholds = resolve_pump_thresholds(rates, config)
        intervals = scan_rate_series(
            rates,
            [epoch_ms_to_datetime(int(ms)) for ms in aligned_ms],
            thresholds=thresholds,
            min_consecutive_points=config.min_consecutive_points,
        )
        logger.info("detected %d pump-off interval(s) in %d readings", len(intervals), len(readings))
        return PumpStateAnalysis(
            timestamps=timestamps,
            values=values,
            smoothed=smoothed,
            rates=rates,
            thresholds=thresholds,
            intervals=intervals,
        )

    def detect_pump_off_intervals(self, readings: Sequence[SensorReading]) -> tuple[PumpOffInterval, ...]:
        return self.analyze(readings).intervals


def detect_pump_off_intervals(
    readings: Sequence[SensorReading],
    config: PumpStateAnalyzerConfig | None = None,
) -> tuple[PumpOffInterval, ...]:
    """Convenience wrapper around `PumpStateAnalyzer`."""
    return PumpStateAnalyzer(config).detect_pump_off_intervals(readings)
