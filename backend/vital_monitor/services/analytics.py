"""
Rolling-Window Analytics
========================

Statistics over the newest readings in the store.

WHAT IT COMPUTES:
----------------
Over the window (the newest WINDOW_SIZE readings, newest first):
- average, minimum and maximum of thermal_value, battery_level, memory_usage
- a trend per metric: the window is split into the newer half and the
  older half, and the two averages are compared

    window (newest first):  [r0, r1, r2, r3, r4]
    half = 5 // 2 = 2
    recent = [r0, r1]        older = [r2, r3, r4]
    diff = mean(recent) - mean(older)

    |diff| < epsilon  -> stable
    diff > 0          -> increasing
    otherwise         -> decreasing

Capping the window keeps the cost constant no matter how many readings
have been stored.

EMPTY WINDOW:
------------
With nothing stored every statistic is zero, every trend is
insufficient_data, and rolling_window_logs reports the configured window
size rather than 0. window_size always carries the configured size so
clients can tell the two cases apart.
"""

from typing import Callable, Sequence

from vital_monitor.config import Config
from vital_monitor.models import AnalyticsResult, Trend, VitalReading


WINDOW_SIZE = Config.WINDOW_SIZE
TREND_EPSILON = Config.TREND_EPSILON


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values)


def trend(
    window: Sequence[VitalReading],
    metric: Callable[[VitalReading], float],
    epsilon: float = TREND_EPSILON,
) -> Trend:
    """
    Direction of one metric across a newest-first window.

    Args:
        window: Readings, newest first
        metric: Picks the value to compare from a reading
        epsilon: Differences smaller than this count as stable

    Returns:
        The trend of the newer half against the older half
    """
    if len(window) < 2:
        return Trend.INSUFFICIENT_DATA

    half = len(window) // 2
    recent_avg = _mean([metric(reading) for reading in window[:half]])
    older_avg = _mean([metric(reading) for reading in window[half:]])
    diff = recent_avg - older_avg

    if abs(diff) < epsilon:
        return Trend.STABLE
    return Trend.INCREASING if diff > 0 else Trend.DECREASING


def compute_analytics(
    window: Sequence[VitalReading],
    total_logs: int,
    window_size: int = WINDOW_SIZE,
    epsilon: float = TREND_EPSILON,
) -> AnalyticsResult:
    """
    Build the analytics result for a window of readings.

    Args:
        window: The newest readings, newest first, at most window_size long
        total_logs: Number of readings stored overall
        window_size: The configured window size
        epsilon: Trend stability threshold

    Returns:
        AnalyticsResult for the window
    """
    if not window:
        return AnalyticsResult(
            total_logs=total_logs,
            rolling_window_logs=window_size,
            window_size=window_size,
        )

    thermal = [reading.thermal_value for reading in window]
    battery = [reading.battery_level for reading in window]
    memory = [reading.memory_usage for reading in window]

    return AnalyticsResult(
        total_logs=total_logs,
        rolling_window_logs=len(window),
        window_size=window_size,
        average_thermal=_mean(thermal),
        average_battery=_mean(battery),
        average_memory=_mean(memory),
        min_thermal=min(thermal),
        max_thermal=max(thermal),
        min_battery=min(battery),
        max_battery=max(battery),
        min_memory=min(memory),
        max_memory=max(memory),
        trend_thermal=trend(window, lambda r: r.thermal_value, epsilon),
        trend_battery=trend(window, lambda r: r.battery_level, epsilon),
        trend_memory=trend(window, lambda r: r.memory_usage, epsilon),
    )
