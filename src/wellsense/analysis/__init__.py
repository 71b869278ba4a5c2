"""Pump-state detection and well level estimation."""

from wellsense.analysis.contracts import LevelEstimatorConfig, PumpStateAnalyzerConfig
from wellsense.analysis.levels import (
    LevelEstimator,
    StabilityBand,
    classify_stable_points,
    estimate_levels,
    find_histogram_peaks,
    stability_band,
)
from wellsense.analysis.pump_state import (
    PumpStateAnalysis,
    PumpStateAnalyzer,
    ScanState,
    advance_scan,
    detect_pump_off_intervals,
    finalize_scan,
    initial_scan_state,
    scan_rate_series,
)
from wellsense.analysis.thresholds import PumpThresholds, estimate_pump_thresholds, resolve_pump_thresholds

__all__ = [
    "LevelEstimator",
    "LevelEstimatorConfig",
    "PumpStateAnalysis",
    "PumpStateAnalyzer",
    "PumpStateAnalyzerConfig",
    "PumpThresholds",
    "ScanState",
    "StabilityBand",
    "advance_scan",
    "classify_stable_points",
    "detect_pump_off_intervals",
    "estimate_levels",
    "estimate_pump_thresholds",
    "finalize_scan",
    "find_histogram_peaks",
    "initial_scan_state",
    "resolve_pump_thresholds",
    "scan_rate_series",
    "stability_band",
]
