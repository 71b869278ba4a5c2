"""CLI runner for well pump-state and level analysis of a sensor CSV dump."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Sequence

from wellsense.analysis import (
    LevelEstimator,
    LevelEstimatorConfig,
    PumpStateAnalysis,
    PumpStateAnalyzer,
    PumpStateAnalyzerConfig,
)
from wellsense.data import DEFAULT_TIMESTAMP_COLUMN, DEFAULT_VALUE_COLUMN, filter_between, read_sensor_csv
from wellsense.domain import LevelEstimate, PumpOffInterval
from wellsense.plotting import plot_pump_off_intervals
from wellsense.transforms import SmoothingMethod


logger = logging.getLogger(__name__)

REPORT_FILENAME = "analysis_report.json"
CHART_FILENAME = "pump_state.png"


@dataclass(frozen=True, slots=True)
class AnalysisCliArtifacts:
    """Outputs produced by one CLI execution."""

    report_path: Path
    chart_path: Path | None
    levels: LevelEstimate
    intervals: tuple[PumpOffInterval, ...]


def build_parser() -> argparse.ArgumentParser:
    """Create CLI parser for a single analysis run."""
    parser = argparse.ArgumentParser(
        prog="wellsense-runner",
        description="Detect pump-off intervals and estimate static/dynamic levels from a well sensor CSV.",
    )
    parser.add_argument("--csv", type=Path, required=True, help="Sensor CSV sorted by timestamp.")
    parser.add_argument("--value-column", type=str, default=DEFAULT_VALUE_COLUMN)
    parser.add_argument("--timestamp-column", type=str, default=DEFAULT_TIMESTAMP_COLUMN)
    parser.add_argument(
        "--start-date",
        type=_parse_datetime,
        default=None,
        help="Keep readings at or after this ISO-8601 time (UTC when no offset is given).",
    )
    parser.add_argument(
        "--end-date",
        type=_parse_datetime,
        default=None,
        help="Keep readings before this ISO-8601 time (UTC when no offset is given).",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path("artifacts/analysis"),
        help="Directory for analysis_report.json and pump_state.png.",
    )
    parser.add_argument("--smoothing-alpha", type=float, default=0.2, help="Exponential smoothing factor in (0, 1].")
    parser.add_argument(
        "--smoothing-method",
        choices=tuple(method.value for method in SmoothingMethod),
        default=SmoothingMethod.EXPONENTIAL.value,
    )
    parser.add_argument("--smoothing-window", type=int, default=1, help="Moving-average window size.")
    parser.add_argument("--lower-percentile", type=int, default=20, help="Rate percentile for the start threshold.")
    parser.add_argument("--upper-percentile", type=int, default=95, help="Rate percentile for the stop threshold.")
    parser.add_argument(
        "--min-consecutive-points",
        type=int,
        default=5,
        help="Consecutive threshold crossings required to confirm a state change.",
    )
    parser.add_argument(
        "--pump-start-threshold",
        type=float,
        default=None,
        help="Explicit start threshold (units/s). Needs --pump-stop-threshold; disables adaptive thresholds.",
    )
    parser.add_argument(
        "--pump-stop-threshold",
        type=float,
        default=None,
        help="Explicit stop threshold (units/s). Needs --pump-start-threshold; disables adaptive thresholds.",
    )
    parser.add_argument("--minimum-point-count", type=int, default=50, help="Histogram peak floor.")
    parser.add_argument("--bin-count", type=int, default=10, help="Histogram bin count for level estimation.")
    parser.add_argument(
        "--plot",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Render pump_state.png. Skipped with a warning when the plot extra is not installed.",
    )
    parser.add_argument(
        "--log-level",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        default="WARNING",
    )
    return parser


def run_analysis_from_args(args: argparse.Namespace) -> AnalysisCliArtifacts:
    """Read, filter, analyze and persist one CSV dump."""
    pump_config = _pump_config_from_args(args)
    level_config = LevelEstimatorConfig(
        bin_count=args.bin_count,
        minimum_point_count=args.minimum_point_count,
    )

    readings = read_sensor_csv(
        args.csv,
        value_column=args.value_column,
        timestamp_column=args.timestamp_column,
    )
    selected = filter_between(readings, args.start_date, args.end_date)
    logger.info("selected %d of %d readings from %s", len(selected), len(readings), args.csv)

    levels = LevelEstimator(level_config).estimate(selected)
    analysis = PumpStateAnalyzer(pump_config).analyze(selected)

    output_dir: Path = args.output_dir
    output_dir.mkdir(parents=True, exist_ok=True)
    report_path = output_dir / REPORT_FILENAME
    _write_json(
        report_path,
        {
            "source_csv": str(args.csv),
            "num_readings": len(readings),
            "num_selected_readings": len(selected),
            "pump_state_config": _config_to_jsonable(pump_config),
            "level_config": asdict(level_config),
            "thresholds": asdict(analysis.thresholds) if analysis.thresholds is not None else None,
            "levels": asdict(levels),
            "pump_off_intervals": [_interval_to_jsonable(interval) for interval in analysis.intervals],
        },
    )

    chart_path = None
    if args.plot and len(selected) > 0:
        try:
            chart_path = _render_chart(analysis, levels, output_dir / CHART_FILENAME)
        except RuntimeError as exc:
            logger.warning("chart skipped: %s", exc)

    return AnalysisCliArtifacts(
        report_path=report_path,
        chart_path=chart_path,
        levels=levels,
        intervals=analysis.intervals,
    )


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entrypoint."""
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
    )
    try:
        artifacts = run_analysis_from_args(args)
    except Exception as exc:
        print(f"[ERROR] well analysis failed: {exc}", file=sys.stderr)
        return 2

    print(artifacts.levels)
    for interval in artifacts.intervals:
        print(interval)
    print(f"report: {artifacts.report_path}")
    if artifacts.chart_path is not None:
        print(f"chart: {artifacts.chart_path}")
    return 0


def _pump_config_from_args(args: argparse.Namespace) -> PumpStateAnalyzerConfig:
    start = args.pump_start_threshold
    stop = args.pump_stop_threshold
    if (start is None) != (stop is None):
        raise ValueError("--pump-start-threshold and --pump-stop-threshold must be given together")
    return PumpStateAnalyzerConfig(
        smoothing_alpha=args.smoothing_alpha,
        smoothing_method=SmoothingMethod(args.smoothing_method),
        smoothing_window=args.smoothing_window,
        adaptive_thresholds=start is None,
        pump_start_threshold=start,
        pump_stop_threshold=stop,
        lower_percentile=args.lower_percentile,
        upper_percentile=args.upper_percentile,
        min_consecutive_points=args.min_consecutive_points,
    )


def _render_chart(analysis: PumpStateAnalysis, levels: LevelEstimate, path: Path) -> Path:
    return plot_pump_off_intervals(
        analysis.timestamps,
        analysis.values,
        analysis.intervals,
        path,
        smoothed_timestamps=analysis.smoothed_timestamps,
        smoothed=analysis.smoothed.values,
        static_level=levels.static_level,
        dynamic_level=levels.dynamic_level,
    )


def _parse_datetime(value: str) -> datetime:
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid ISO-8601 datetime: {value}") from exc
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed


def _interval_to_jsonable(interval: PumpOffInterval) -> dict[str, Any]:
    return {
        "start_time": interval.start_time.isoformat(),
        "end_time": interval.end_time.isoformat() if interval.end_time is not None else None,
        "closed_by_end_of_data": interval.closed_by_end_of_data,
    }


def _config_to_jsonable(config: PumpStateAnalyzerConfig) -> dict[str, Any]:
    payload = asdict(config)
    payload["smoothing_method"] = config.smoothing_method.value
    return payload


def _write_json(path: Path, payload: dict[str, Any]) -> None:
    path.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")


if __name__ == "__main__":
    raise SystemExit(main())
