"""Reading ingestion and date-range filtering."""

from wellsense.data.csv_reader import DEFAULT_TIMESTAMP_COLUMN, DEFAULT_VALUE_COLUMN, read_sensor_csv
from wellsense.data.filtering import filter_after, filter_between

__all__ = [
    "DEFAULT_TIMESTAMP_COLUMN",
    "DEFAULT_VALUE_COLUMN",
    "filter_after",
    "filter_between",
    "read_sensor_csv",
]
