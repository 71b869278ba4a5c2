"""Domain models for well sensor readings, pump states and levels."""

from wellsense.domain.models import (
    LevelEstimate,
    PumpOffInterval,
    PumpState,
    SensorReading,
    epoch_ms_to_datetime,
)

__all__ = [
    "LevelEstimate",
    "PumpOffInterval",
    "PumpState",
    "SensorReading",
    "epoch_ms_to_datetime",
]
