"""Core domain models for wellsense."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import StrEnum


_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def epoch_ms_to_datetime(epoch_milliseconds: int) -> datetime:
    """Convert Unix epoch milliseconds to an aware UTC datetime."""
    return _EPOCH + timedelta(milliseconds=epoch_milliseconds)


class PumpState(StrEnum):
    """Binary operating state of the well pump."""

    ON = "on"
    OFF = "off"


@dataclass(frozen=True, slots=True)
class SensorReading:
    """Single water-level measurement with its source timestamp."""

    epoch_milliseconds: int
    value: float

    @property
    def timestamp(self) -> datetime:
        """Reading time as UTC civil time."""
        return epoch_ms_to_datetime(self.epoch_milliseconds)


@dataclass(frozen=True, slots=True)
class PumpOffInterval:
    """Span of time during which the pump was confirmed off.

    `end_time` is None while the interval is still open. An interval that was
    never closed by a confirmed restart is closed at the last reading and
    flagged with `closed_by_end_of_data`. Endpoints are taken from the input as
    given, so unsorted readings can yield an end earlier than the start.
    """

    start_time: datetime
    end_time: datetime | None = None
    closed_by_end_of_data: bool = False

    def __post_init__(self) -> None:
        if self.closed_by_end_of_data and self.end_time is None:
            raise ValueError("interval closed by end of data must have an end_time")

    @property
    def is_open(self) -> bool:
        return self.end_time is None

    @property
    def duration(self) -> timedelta | None:
        if self.end_time is None:
            return None
        return self.end_time - self.start_time

    def __str__(self) -> str:
        end = "open" if self.end_time is None else f"{self.end_time:%Y-%m-%d %H:%M:%S}"
        return f"pump off from {self.start_time:%Y-%m-%d %H:%M:%S} to {end}"


@dataclass(frozen=True, slots=True)
class LevelEstimate:
    """Estimated static (at rest) and dynamic (under load) well levels.

    A field is None when there was not enough stable data to estimate it.
    """

    static_level: float | None = None
    dynamic_level: float | None = None

    @property
    def is_complete(self) -> bool:
        return self.static_level is not None and self.dynamic_level is not None

    def __str__(self) -> str:
        static = "not found" if self.static_level is None else f"{self.static_level:.2f}"
        dynamic = "not found" if self.dynamic_level is None else f"{self.dynamic_level:.2f}"
        return f"static level: {static}\ndynamic level: {dynamic}"
