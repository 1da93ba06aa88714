"""
Tests for trend detection and velocity.

All series use a 10-20 reference range, so a value of 22 is 0.1 away from
normal and a value of 30 is 0.5 away.
"""

from datetime import date, timedelta

import pytest

from core.config import TrendConfig
from core.domain.models import Measurement, ReferenceRange, Trend
from core.services.trend_analyzer import (
    TrendAnalyzer,
    distance_from_normal,
    latest_measurement,
)

NOW = date(2025, 6, 1)
RANGE = ReferenceRange(min=10.0, max=20.0)


def _series(*points: tuple[float | None, int | None]) -> list[Measurement]:
    """(value, days_ago) pairs; days_ago None means undated."""
    return [
        Measurement(
            value=value,
            measured_on=None if days_ago is None else NOW - timedelta(days=days_ago),
            reference_range=RANGE,
        )
        for value, days_ago in points
    ]


@pytest.fixture
def analyzer() -> TrendAnalyzer:
    return TrendAnalyzer()


class TestDistanceFromNormal:
    def test_in_range_is_zero(self) -> None:
        assert distance_from_normal(15.0, 10.0, 20.0) == 0.0
        assert distance_from_normal(10.0, 10.0, 20.0) == 0.0
        assert distance_from_normal(20.0, 10.0, 20.0) == 0.0

    def test_relative_to_nearest_bound(self) -> None:
        assert distance_from_normal(5.0, 10.0, 20.0) == pytest.approx(0.5)
        assert distance_from_normal(30.0, 10.0, 20.0) == pytest.approx(0.5)

    def test_missing_data_is_none(self) -> None:
        assert distance_from_normal(None, 10.0, 20.0) is None
        assert distance_from_normal(15.0, None, 20.0) is None
        assert distance_from_normal(15.0, 10.0, None) is None

    def test_zero_bound_uses_absolute_difference(self) -> None:
        assert distance_from_normal(-2.0, 0.0, 5.0) == pytest.approx(2.0)
        assert distance_from_normal(3.0, -1.0, 0.0) == pytest.approx(3.0)


class TestAnalyzeTrend:
    def test_all_in_range_is_stable(self, analyzer: TrendAnalyzer) -> None:
        series = _series((10.0, 40), (10.0, 30), (10.0, 20), (10.0, 10))
        assert analyzer.analyze_trend(series, now=NOW) is Trend.STABLE

    def test_empty_and_single_point_are_stable(self, analyzer: TrendAnalyzer) -> None:
        assert analyzer.analyze_trend([], now=NOW) is Trend.STABLE
        assert analyzer.analyze_trend(_series((30.0, 10)), now=NOW) is Trend.STABLE

    def test_shrinking_distance_is_improving(self, analyzer: TrendAnalyzer) -> None:
        # historical average 0.5, recent 0.1: ratio -0.8
        series = _series((30.0, 90), (30.0, 60), (22.0, 30))
        assert analyzer.analyze_trend(series, now=NOW) is Trend.IMPROVING

    def test_growing_distance_is_declining(self, analyzer: TrendAnalyzer) -> None:
        series = _series((22.0, 90), (22.0, 60), (30.0, 30))
        assert analyzer.analyze_trend(series, now=NOW) is Trend.DECLINING

    def test_small_change_is_stable(self, analyzer: TrendAnalyzer) -> None:
        # 0.5 -> 0.525 is a 5% change
        series = _series((30.0, 90), (30.0, 60), (30.5, 30))
        assert analyzer.analyze_trend(series, now=NOW) is Trend.STABLE

    def test_leaving_a_perfect_baseline_is_declining(self, analyzer: TrendAnalyzer) -> None:
        series = _series((15.0, 90), (15.0, 60), (22.0, 30))
        assert analyzer.analyze_trend(series, now=NOW) is Trend.DECLINING

    def test_input_order_does_not_matter(self, analyzer: TrendAnalyzer) -> None:
        series = _series((22.0, 30), (30.0, 90), (30.0, 60))
        assert analyzer.analyze_trend(series, now=NOW) is Trend.IMPROVING

    def test_points_outside_lookback_are_ignored(self, analyzer: TrendAnalyzer) -> None:
        # Only the last point is within 180 days
        series = _series((30.0, 300), (30.0, 250), (22.0, 10))
        assert analyzer.analyze_trend(series, now=NOW) is Trend.STABLE

    def test_lookback_cutoff_is_exclusive(self, analyzer: TrendAnalyzer) -> None:
        series = _series((30.0, 180), (22.0, 100))
        assert analyzer.analyze_trend(series, now=NOW) is Trend.STABLE
        assert analyzer.analyze_trend(series, lookback_days=181, now=NOW) is Trend.IMPROVING

    def test_undated_points_are_ignored(self, analyzer: TrendAnalyzer) -> None:
        series = _series((30.0, None), (30.0, None), (22.0, 10))
        assert analyzer.analyze_trend(series, now=NOW) is Trend.STABLE

    def test_missing_values_are_excluded_from_averages(self, analyzer: TrendAnalyzer) -> None:
        # historical [30, missing] averages 0.5, recent [22] is 0.1
        series = _series((30.0, 90), (None, 60), (22.0, 30))
        assert analyzer.analyze_trend(series, now=NOW) is Trend.IMPROVING

    def test_two_points_split_one_and_one(self, analyzer: TrendAnalyzer) -> None:
        series = _series((30.0, 60), (22.0, 30))
        assert analyzer.analyze_trend(series, now=NOW) is Trend.IMPROVING

    def test_custom_threshold(self) -> None:
        analyzer = TrendAnalyzer(TrendConfig(change_threshold=0.9))
        series = _series((30.0, 90), (30.0, 60), (22.0, 30))
        assert analyzer.analyze_trend(series, now=NOW) is Trend.STABLE


class TestAnalyzeRecentTrend:
    def test_splits_window_at_midpoint(self, analyzer: TrendAnalyzer) -> None:
        series = _series((30.0, 80), (30.0, 60), (22.0, 40), (22.0, 20))
        assert analyzer.analyze_recent_trend(series, window_days=90, now=NOW) is Trend.IMPROVING

    def test_points_outside_window_are_ignored(self, analyzer: TrendAnalyzer) -> None:
        # The 120-day-old reading would make the first half look worse
        series = _series((40.0, 120), (22.0, 60), (22.0, 20))
        assert analyzer.analyze_recent_trend(series, window_days=90, now=NOW) is Trend.STABLE
        assert analyzer.analyze_trend(series, now=NOW) is Trend.IMPROVING

    def test_midpoint_split_differs_from_two_thirds_split(self, analyzer: TrendAnalyzer) -> None:
        series = _series(
            (22.0, 150), (22.0, 120), (30.0, 90), (30.0, 60), (22.0, 30), (22.0, 10)
        )
        # halves [22, 22, 30] and [30, 22, 22] have the same average distance
        assert analyzer.analyze_recent_trend(series, window_days=180, now=NOW) is Trend.STABLE
        # [22, 22, 30, 30] averages 0.3 against 0.1 for the last third
        assert analyzer.analyze_trend(series, now=NOW) is Trend.IMPROVING

    def test_insufficient_points_in_window(self, analyzer: TrendAnalyzer) -> None:
        series = _series((30.0, 200), (22.0, 10))
        assert analyzer.analyze_recent_trend(series, window_days=30, now=NOW) is Trend.STABLE

    def test_defaults_to_configured_window(self) -> None:
        analyzer = TrendAnalyzer(TrendConfig(recent_window_days=30))
        series = _series((30.0, 60), (30.0, 25), (22.0, 5))
        # Only the 25- and 5-day readings fall in the window
        assert analyzer.analyze_recent_trend(series, now=NOW) is Trend.IMPROVING


class TestVelocity:
    def test_fewer_than_three_points_is_zero(self, analyzer: TrendAnalyzer) -> None:
        assert analyzer.velocity([]) == 0.0
        assert analyzer.velocity(_series((30.0, 20), (40.0, 10))) == 0.0

    def test_worsening_series_has_positive_slope(self, analyzer: TrendAnalyzer) -> None:
        series = _series((21.0, 50), (22.0, 40), (23.0, 30), (24.0, 20), (25.0, 10))
        assert analyzer.velocity(series) == pytest.approx(0.05)

    def test_improving_series_has_negative_slope(self, analyzer: TrendAnalyzer) -> None:
        series = _series((25.0, 50), (24.0, 40), (23.0, 30), (22.0, 20), (21.0, 10))
        assert analyzer.velocity(series) == pytest.approx(-0.05)

    def test_in_range_series_has_zero_slope(self, analyzer: TrendAnalyzer) -> None:
        series = _series((12.0, 30), (18.0, 20), (15.0, 10))
        assert analyzer.velocity(series) == 0.0

    def test_sorted_by_date_before_regression(self, analyzer: TrendAnalyzer) -> None:
        series = _series((23.0, 30), (25.0, 10), (21.0, 50), (24.0, 20), (22.0, 40))
        assert analyzer.velocity(series) > 0

    def test_undated_and_missing_points_are_skipped(self, analyzer: TrendAnalyzer) -> None:
        series = _series((21.0, 50), (99.0, None), (None, 35), (22.0, 30), (23.0, 10))
        assert analyzer.velocity(series) == pytest.approx(0.05)

    @pytest.mark.parametrize("n", range(3, 60))
    def test_regression_denominator_is_positive(self, n: int) -> None:
        xs = range(n)
        assert n * sum(x * x for x in xs) - sum(xs) ** 2 > 0


class TestChangeRatio:
    def test_relative_change(self, analyzer: TrendAnalyzer) -> None:
        assert analyzer.change_ratio(0.5, 0.1) == pytest.approx(-0.8)

    def test_zero_baseline(self, analyzer: TrendAnalyzer) -> None:
        assert analyzer.change_ratio(0.0, 0.0) == 0.0
        assert analyzer.change_ratio(0.0005, 0.0009) == 0.0
        assert analyzer.change_ratio(0.0005, 0.002) == 1.0


def test_latest_measurement() -> None:
    series = _series((12.0, 30), (14.0, 5), (99.0, None), (13.0, 20))
    latest = latest_measurement(series)
    assert latest is not None and latest.value == 14.0
    assert latest_measurement(_series((12.0, None))) is None


class TestNegativeReferenceRange:
    """Base excess style range of -4..2 mmol/L."""

    BASE_EXCESS = ReferenceRange(min=-4.0, max=2.0)

    def _series(self, *points: tuple[float, int]) -> list[Measurement]:
        return [
            Measurement(
                value=value,
                measured_on=NOW - timedelta(days=days_ago),
                reference_range=self.BASE_EXCESS,
            )
            for value, days_ago in points
        ]

    def test_distance_is_never_negative(self) -> None:
        assert distance_from_normal(-10.0, -4.0, 2.0) == pytest.approx(1.5)
        assert distance_from_normal(-6.0, -4.0, 2.0) == pytest.approx(0.5)
        assert distance_from_normal(3.0, -8.0, -2.0) == pytest.approx(2.5)

    def test_moving_further_below_range_is_declining(self, analyzer: TrendAnalyzer) -> None:
        series = self._series((-6.0, 90), (-6.0, 60), (-10.0, 30))

        assert analyzer.analyze_trend(series, now=NOW) is Trend.DECLINING
        assert analyzer.velocity(series) > 0

    def test_returning_toward_range_is_improving(self, analyzer: TrendAnalyzer) -> None:
        series = self._series((-10.0, 90), (-10.0, 60), (-6.0, 30))

        assert analyzer.analyze_trend(series, now=NOW) is Trend.IMPROVING
        assert analyzer.velocity(series) < 0
