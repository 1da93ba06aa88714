"""
Trend analysis over a single measurement series.

The key metric is "distance from normal": 0 inside the reference range,
otherwise the relative overshoot past the nearest bound. A series is
IMPROVING when that distance shrinks by more than the change threshold
between an earlier and a later window, DECLINING when it grows by more than
the threshold, and STABLE otherwise (including whenever data is insufficient).

Two horizons are supported:
- analyze_trend: points within the lookback window, last third vs first two thirds
- analyze_recent_trend: points within a short window, second half vs first half

Velocity is the least-squares slope of distance against measurement order;
positive means moving away from normal.
"""

from collections.abc import Iterable, Sequence
from datetime import date, timedelta

import structlog

from core.config import TrendConfig
from core.domain.models import Measurement, Trend

logger = structlog.get_logger(__name__)


def distance_from_normal(
    value: float | None, minimum: float | None, maximum: float | None
) -> float | None:
    """
    Relative distance outside the range, 0.0 inside it, None for missing data.

    Scaled by the magnitude of the nearest bound so the result is never
    negative, including for ranges below zero (e.g. base excess -4..2).
    """
    if value is None or minimum is None or maximum is None:
        return None
    if minimum <= value <= maximum:
        return 0.0
    if value < minimum:
        return (minimum - value) / abs(minimum) if minimum else float(minimum - value)
    return (value - maximum) / abs(maximum) if maximum else float(value - maximum)


def measurement_distance(measurement: Measurement) -> float | None:
    return distance_from_normal(
        measurement.value, measurement.reference_range.min, measurement.reference_range.max
    )


def _dated_ascending(series: Iterable[Measurement]) -> list[Measurement]:
    dated = [m for m in series if m.measured_on is not None]
    return sorted(dated, key=lambda m: m.measured_on)  # type: ignore[arg-type, return-value]


def latest_measurement(series: Iterable[Measurement]) -> Measurement | None:
    """Most recent dated measurement, or None."""
    dated = _dated_ascending(series)
    return dated[-1] if dated else None


class TrendAnalyzer:
    """Stateless trend detection; `now` is injectable for reproducible results."""

    def __init__(self, config: TrendConfig | None = None) -> None:
        self.config = config or TrendConfig()
        self.logger = logger.bind(component="trend_analyzer")

    def analyze_trend(
        self,
        series: Iterable[Measurement],
        lookback_days: int | None = None,
        now: date | None = None,
    ) -> Trend:
        """Long-horizon trend: historical two thirds vs recent third."""
        lookback_days = self.config.lookback_days if lookback_days is None else lookback_days
        points = self._within_window(series, lookback_days, now)
        split_point = max(1, len(points) * 2 // 3)
        return self._compare_windows(points, split_point)

    def analyze_recent_trend(
        self,
        series: Iterable[Measurement],
        window_days: int | None = None,
        now: date | None = None,
    ) -> Trend:
        """Short-horizon trend: first half vs second half of the window."""
        window_days = self.config.recent_window_days if window_days is None else window_days
        points = self._within_window(series, window_days, now)
        return self._compare_windows(points, len(points) // 2)

    def velocity(self, series: Iterable[Measurement]) -> float:
        """
        Least-squares slope of distance from normal against measurement index.

        Points with missing value or range are skipped; fewer than the minimum
        number of usable points gives 0.0.
        """
        distances = [
            d for d in (measurement_distance(m) for m in _dated_ascending(series)) if d is not None
        ]
        n = len(distances)
        if n < self.config.min_velocity_points:
            return 0.0

        sum_x = sum_y = sum_xy = sum_xx = 0.0
        for x, y in enumerate(distances):
            sum_x += x
            sum_y += y
            sum_xy += x * y
            sum_xx += x * x

        # Strictly positive for n >= 2 distinct integer indices
        denominator = n * sum_xx - sum_x * sum_x
        return (n * sum_xy - sum_x * sum_y) / denominator

    def change_ratio(self, historical: float, recent: float) -> float:
        """Relative change in average distance, guarded against a zero baseline."""
        epsilon = self.config.zero_epsilon
        if abs(historical) < epsilon:
            # A perfect baseline makes any measurable distance significant
            return 1.0 if recent > epsilon else 0.0
        return (recent - historical) / abs(historical)

    def classify_change(self, ratio: float) -> Trend:
        threshold = self.config.change_threshold
        if ratio < -threshold:
            return Trend.IMPROVING
        if ratio > threshold:
            return Trend.DECLINING
        return Trend.STABLE

    def _within_window(
        self, series: Iterable[Measurement], days: int, now: date | None
    ) -> list[Measurement]:
        cutoff = (now or date.today()) - timedelta(days=days)
        return [m for m in _dated_ascending(series) if m.measured_on > cutoff]  # type: ignore[operator]

    def _compare_windows(self, points: Sequence[Measurement], split_point: int) -> Trend:
        if len(points) < self.config.min_data_points:
            self.logger.debug("trend_insufficient_data", points=len(points))
            return Trend.STABLE

        earlier = points[:split_point]
        later = points[split_point:]
        if not earlier or not later:
            return Trend.STABLE

        earlier_distance = self._average_distance(earlier)
        later_distance = self._average_distance(later)
        ratio = self.change_ratio(earlier_distance, later_distance)
        trend = self.classify_change(ratio)

        self.logger.debug(
            "trend_analyzed",
            points=len(points),
            earlier_distance=round(earlier_distance, 4),
            later_distance=round(later_distance, 4),
            change_ratio=round(ratio, 4),
            trend=trend.value,
        )
        return trend

    @staticmethod
    def _average_distance(points: Sequence[Measurement]) -> float:
        distances = [d for d in (measurement_distance(m) for m in points) if d is not None]
        return sum(distances) / len(distances) if distances else 0.0
