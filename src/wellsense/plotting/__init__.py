"""Chart rendering for pump-state analysis results."""

from wellsense.plotting.chart import plot_pump_off_intervals, plot_rate_histogram

__all__ = ["plot_pump_off_intervals", "plot_rate_histogram"]
