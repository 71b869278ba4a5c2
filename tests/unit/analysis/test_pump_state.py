"""Tests for the hysteresis + debounce pump-state scan."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import numpy as np
import pytest

from wellsense.analysis import (
    PumpStateAnalyzer,
    PumpStateAnalyzerConfig,
    PumpThresholds,
    ScanState,
    advance_scan,
    detect_pump_off_intervals,
    finalize_scan,
    initial_scan_state,
    scan_rate_series,
)
from wellsense.domain import PumpOffInterval, PumpState, SensorReading, epoch_ms_to_datetime
from wellsense.transforms import SmoothingMethod


_BASE_MS = 1_754_438_400_000
_STEP_MS = 60_000
_BAND = PumpThresholds(start_threshold=-0.001, stop_threshold=0.001)


def _readings(values: list[float] | np.ndarray, *, step_ms: int = _STEP_MS) -> list[SensorReading]:
    return [
        SensorReading(epoch_milliseconds=_BASE_MS + idx * step_ms, value=float(value))
        for idx, value in enumerate(values)
    ]


def _timestamps(count: int) -> list[datetime]:
    start = datetime(2025, 8, 6, tzinfo=timezone.utc)
    return [start + timedelta(minutes=idx) for idx in range(count)]


def _scenario_a_values() -> list[float]:
    drawdown = [10.0 - 0.1 * step for step in range(1, 6)]
    return [10.0] * 5 + drawdown + [9.5, 9.5]


def _scenario_a_config() -> PumpStateAnalyzerConfig:
    return PumpStateAnalyzerConfig(
        smoothing_alpha=0.2,
        adaptive_thresholds=False,
        pump_start_threshold=-0.0008,
        pump_stop_threshold=-0.0005,
        min_consecutive_points=3,
    )


def _count_confirmed_restarts(intervals: tuple[PumpOffInterval, ...]) -> int:
    return sum(1 for interval in intervals if not interval.closed_by_end_of_data)


def test_initial_state_is_off_when_level_recovering() -> None:
    start = datetime(2025, 8, 6, tzinfo=timezone.utc)

    scan = initial_scan_state(0.002, start, _BAND)

    assert scan.state == PumpState.OFF
    assert scan.open_interval == PumpOffInterval(start_time=start)


def test_initial_state_is_on_when_rate_equals_stop_threshold() -> None:
    scan = initial_scan_state(0.001, datetime(2025, 8, 6, tzinfo=timezone.utc), _BAND)

    assert scan.state == PumpState.ON
    assert scan.open_interval is None


def test_advance_scan_tracks_first_timestamp_of_run() -> None:
    timestamps = _timestamps(4)
    scan = ScanState(state=PumpState.ON)

    for idx in range(2):
        scan, closed = advance_scan(scan, 0.01, timestamps[idx], thresholds=_BAND, min_consecutive_points=3)
        assert closed is None
    assert scan.off_counter == 2
    assert scan.pending_off_start == timestamps[0]
    assert scan.on_counter == 0

    scan, _ = advance_scan(scan, 0.01, timestamps[2], thresholds=_BAND, min_consecutive_points=3)

    assert scan.state == PumpState.OFF
    assert scan.open_interval == PumpOffInterval(start_time=timestamps[0])
    assert scan.off_counter == 0
    assert scan.pending_off_start is None


def test_advance_scan_break_in_run_resets_counter() -> None:
    timestamps = _timestamps(3)
    scan = ScanState(state=PumpState.OFF, open_interval=PumpOffInterval(start_time=timestamps[0]))

    scan, _ = advance_scan(scan, -0.01, timestamps[1], thresholds=_BAND, min_consecutive_points=3)
    assert scan.on_counter == 1
    scan, _ = advance_scan(scan, 0.0, timestamps[2], thresholds=_BAND, min_consecutive_points=3)

    assert scan.on_counter == 0
    assert scan.pending_off_end is None
    assert scan.state == PumpState.OFF


def test_threshold_comparisons_are_strict() -> None:
    timestamps = _timestamps(10)
    rates = [0.0] + [_BAND.stop_threshold] * 8

    assert scan_rate_series(rates, timestamps, thresholds=_BAND, min_consecutive_points=2) == ()


def test_finalize_scan_closes_open_interval_at_last_timestamp() -> None:
    timestamps = _timestamps(2)
    scan = ScanState(state=PumpState.OFF, open_interval=PumpOffInterval(start_time=timestamps[0]))

    closed = finalize_scan(scan, timestamps[1])

    assert closed == PumpOffInterval(start_time=timestamps[0], end_time=timestamps[1], closed_by_end_of_data=True)
    assert finalize_scan(ScanState(state=PumpState.ON), timestamps[1]) is None


def test_scenario_a_confirms_pump_on_after_three_falling_rates() -> None:
    readings = _readings(_scenario_a_values())
    analysis = PumpStateAnalyzer(_scenario_a_config()).analyze(readings)

    assert analysis.rates[5] > -0.0008
    assert analysis.rates[6] < -0.0008
    assert analysis.rates[7] < -0.0008
    assert analysis.rates[8] < -0.0008

    timestamps = [reading.timestamp for reading in readings]
    thresholds = analysis.thresholds
    assert thresholds is not None
    scan = initial_scan_state(float(analysis.rates[0]), timestamps[0], thresholds)
    assert scan.state == PumpState.OFF
    confirmed_at = None
    for idx, rate in enumerate(analysis.rates):
        scan, closed = advance_scan(scan, float(rate), timestamps[idx], thresholds=thresholds, min_consecutive_points=3)
        if closed is not None:
            confirmed_at = idx
            break
    assert confirmed_at == 8

    assert analysis.intervals == (
        PumpOffInterval(start_time=timestamps[0], end_time=timestamps[6]),
    )


def test_scenario_b_flat_rates_starting_on_yield_no_intervals() -> None:
    rng = np.random.default_rng(21)
    rates = rng.uniform(-0.0009, 0.0009, size=40)
    rates[0] = 0.0

    assert scan_rate_series(rates, _timestamps(41), thresholds=_BAND, min_consecutive_points=5) == ()


def test_scenario_b_flat_rates_starting_off_span_whole_input() -> None:
    rng = np.random.default_rng(22)
    rates = rng.uniform(-0.0009, 0.0009, size=40)
    rates[0] = 0.002
    timestamps = _timestamps(41)

    intervals = scan_rate_series(rates, timestamps, thresholds=_BAND, min_consecutive_points=5)

    assert intervals == (
        PumpOffInterval(start_time=timestamps[0], end_time=timestamps[-1], closed_by_end_of_data=True),
    )


@pytest.mark.parametrize("run_length", [1, 2, 3, 4])
def test_short_crossing_runs_are_debounced(run_length: int) -> None:
    rng = np.random.default_rng(100 + run_length)
    for start_state_rate, crossing_rate in ((0.0, 0.005), (0.002, -0.005)):
        rates = rng.uniform(-0.0005, 0.0005, size=60)
        rates[0] = start_state_rate
        rates[20 : 20 + run_length] = crossing_rate
        timestamps = _timestamps(61)

        intervals = scan_rate_series(rates, timestamps, thresholds=_BAND, min_consecutive_points=5)

        if start_state_rate > _BAND.stop_threshold:
            assert intervals == (
                PumpOffInterval(start_time=timestamps[0], end_time=timestamps[-1], closed_by_end_of_data=True),
            )
        else:
            assert intervals == ()


def test_full_length_run_fires_transition() -> None:
    rates = np.zeros(40)
    rates[10:15] = 0.005
    timestamps = _timestamps(41)

    intervals = scan_rate_series(rates, timestamps, thresholds=_BAND, min_consecutive_points=5)

    assert intervals == (
        PumpOffInterval(start_time=timestamps[10], end_time=timestamps[-1], closed_by_end_of_data=True),
    )


def test_pump_cycle_closes_interval_at_first_restart_sample() -> None:
    rates = np.zeros(60)
    rates[10:16] = 0.005
    rates[30:36] = -0.005
    timestamps = _timestamps(61)

    intervals = scan_rate_series(rates, timestamps, thresholds=_BAND, min_consecutive_points=5)

    assert intervals == (PumpOffInterval(start_time=timestamps[10], end_time=timestamps[30]),)


def test_backward_time_jump_is_not_rejected() -> None:
    rates = np.zeros(60)
    rates[10:16] = 0.005
    rates[30:36] = -0.005
    timestamps = _timestamps(61)
    timestamps[20:] = [stamp - timedelta(hours=2) for stamp in timestamps[20:]]

    intervals = scan_rate_series(rates, timestamps, thresholds=_BAND, min_consecutive_points=5)

    assert intervals == (PumpOffInterval(start_time=timestamps[10], end_time=timestamps[30]),)
    assert intervals[0].end_time < intervals[0].start_time


def test_finalization_sets_exactly_one_end_to_last_timestamp() -> None:
    rates = np.zeros(80)
    rates[5:12] = 0.004
    rates[25:31] = -0.004
    rates[50:58] = 0.004
    timestamps = _timestamps(81)

    intervals = scan_rate_series(rates, timestamps, thresholds=_BAND, min_consecutive_points=5)

    assert len(intervals) == 2
    assert [interval.end_time == timestamps[-1] for interval in intervals] == [False, True]
    assert intervals[-1].closed_by_end_of_data is True
    assert intervals[-1].start_time == timestamps[50]


def test_lowering_start_threshold_never_adds_restarts() -> None:
    start_thresholds = (-0.0002, -0.0005, -0.001, -0.002)
    for seed in range(25):
        rng = np.random.default_rng(seed)
        regimes = rng.choice([-0.002, 0.0, 0.002], size=30)
        rates = np.repeat(regimes, 10) + rng.normal(0.0, 0.0008, size=300)
        timestamps = _timestamps(301)

        restarts = []
        for start in start_thresholds:
            thresholds = PumpThresholds(start_threshold=start, stop_threshold=0.001)
            intervals = scan_rate_series(rates, timestamps, thresholds=thresholds, min_consecutive_points=3)
            restarts.append(_count_confirmed_restarts(intervals))

        assert restarts == sorted(restarts, reverse=True)


def test_detection_is_idempotent_with_fresh_analyzers() -> None:
    rng = np.random.default_rng(9)
    values = 10.0 + np.cumsum(rng.normal(0.0, 0.05, size=400))
    readings = _readings(values)
    config = PumpStateAnalyzerConfig(min_consecutive_points=3)

    first = PumpStateAnalyzer(config).detect_pump_off_intervals(readings)
    second = PumpStateAnalyzer(config).detect_pump_off_intervals(readings)
    analyzer = PumpStateAnalyzer(config)

    assert first == second
    assert analyzer.detect_pump_off_intervals(readings) == analyzer.detect_pump_off_intervals(readings)


def test_adaptive_thresholds_detect_recovery_on_synthetic_cycle() -> None:
    values = np.concatenate(
        (
            np.full(60, 10.0),
            10.0 - 0.1 * np.arange(1, 31),
            np.full(60, 7.0),
            7.0 + 0.1 * np.arange(1, 31),
            np.full(60, 10.0),
        )
    )
    readings = _readings(values)

    analysis = PumpStateAnalyzer().analyze(readings)

    assert analysis.thresholds is not None
    assert analysis.thresholds.adaptive is True
    assert analysis.thresholds.start_threshold == pytest.approx(-0.0001)
    assert analysis.thresholds.stop_threshold > 0.0015
    assert len(analysis.intervals) == 1
    interval = analysis.intervals[0]
    assert readings[150].timestamp <= interval.start_time <= readings[180].timestamp
    assert interval.end_time == readings[-1].timestamp
    assert interval.closed_by_end_of_data is True


@pytest.mark.parametrize("count", [0, 1])
def test_insufficient_readings_return_empty(count: int) -> None:
    readings = _readings([5.0] * count)

    analysis = PumpStateAnalyzer().analyze(readings)

    assert analysis.intervals == ()
    assert analysis.thresholds is None
    assert detect_pump_off_intervals(readings) == ()


def test_input_shorter_than_moving_average_window_is_empty() -> None:
    config = PumpStateAnalyzerConfig(smoothing_method=SmoothingMethod.MOVING_AVERAGE, smoothing_window=10)

    assert detect_pump_off_intervals(_readings([1.0, 2.0, 3.0, 4.0, 5.0]), config) == ()


def test_moving_average_alignment_finalizes_at_last_reading() -> None:
    values = [5.0] * 10 + [5.0 + 0.2 * step for step in range(1, 21)]
    readings = _readings(values)
    config = PumpStateAnalyzerConfig(
        smoothing_method=SmoothingMethod.MOVING_AVERAGE,
        smoothing_window=4,
        adaptive_thresholds=False,
        pump_start_threshold=-0.001,
        pump_stop_threshold=0.001,
        min_consecutive_points=3,
    )

    analysis = PumpStateAnalyzer(config).analyze(readings)

    assert analysis.smoothed.offset == 3
    assert len(analysis.smoothed_timestamps) == len(readings) - 3
    assert analysis.rates.size == len(readings) - 4
    assert len(analysis.intervals) == 1
    assert analysis.intervals[0].end_time == readings[-1].timestamp
    assert analysis.intervals[0].start_time == epoch_ms_to_datetime(readings[10].epoch_milliseconds)


def test_duplicate_timestamps_do_not_crash() -> None:
    readings = [
        SensorReading(epoch_milliseconds=_BASE_MS, value=5.0),
        SensorReading(epoch_milliseconds=_BASE_MS, value=6.0),
        SensorReading(epoch_milliseconds=_BASE_MS + _STEP_MS, value=6.0),
    ]

    analysis = PumpStateAnalyzer().analyze(readings)

    assert analysis.rates[0] == 0.0
