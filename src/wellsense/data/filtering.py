"""Date-range filters over time-sorted readings."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Sequence

from wellsense.domain.models import SensorReading


def filter_after(readings: Sequence[SensorReading], start: datetime) -> tuple[SensorReading, ...]:
    """Keep readings at or after `start` (naive datetimes are taken as UTC)."""
    start_utc = _as_utc(start)
    return tuple(reading for reading in readings if reading.timestamp >= start_utc)


def filter_between(
    readings: Sequence[SensorReading],
    start: datetime | None = None,
    end: datetime | None = None,
) -> tuple[SensorReading, ...]:
    """Keep readings in [start, end); either bound may be omitted."""
    start_utc = _as_utc(start) if start is not None else None
    end_utc = _as_utc(end) if end is not None else None
    if start_utc is not None and end_utc is not None and start_utc > end_utc:
        raise ValueError("start cannot be later than end")

    selected: list[SensorReading] = []
    for reading in readings:
        timestamp = reading.timestamp
        if start_utc is not None and timestamp < start_utc:
            continue
        if end_utc is not None and timestamp >= end_utc:
            continue
        selected.append(reading)
    return tuple(selected)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
