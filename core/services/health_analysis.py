"""
Patient-level health analysis combining scoring and trend detection.

Input is a patient's measurements already grouped into series by the
collaborator; output is a PatientHealthReport. One StatusCache is shared per
analysis so each measurement is classified once.
"""

from collections.abc import Mapping, Sequence
from datetime import date

import structlog

from core.config import AppConfig, get_config
from core.domain.models import (
    HealthStatus,
    Measurement,
    PatientHealthReport,
    SeriesKey,
    SeriesTrend,
    Trend,
)
from core.services.health_scorer import HealthScorer, assess
from core.services.status_classifier import StatusCache, StatusClassifier
from core.services.trend_analyzer import TrendAnalyzer, latest_measurement

logger = structlog.get_logger(__name__)

SeriesMap = Mapping[SeriesKey, Sequence[Measurement]]


class HealthAnalysisService:
    """
    Main entry point for analysing one patient.

    Wires the classifier, scorer and trend analyzer from a single AppConfig so
    every component agrees on thresholds.
    """

    def __init__(self, config: AppConfig | None = None) -> None:
        self.config = config or get_config()
        self.classifier = StatusClassifier(self.config.classification)
        self.scorer = HealthScorer(self.config.scoring, self.classifier)
        self.trends = TrendAnalyzer(self.config.trend)
        self.logger = logger.bind(component="health_analysis")

    def analyze(self, series_by_key: SeriesMap, as_of: date) -> PatientHealthReport:
        cache = StatusCache()
        measurements = [m for series in series_by_key.values() for m in series]

        summary = self.scorer.summarize(measurements, as_of, cache)
        abnormal = self.sort_by_urgency(
            self.scorer.abnormal_measurements(measurements, cache), cache
        )
        trends = [self.series_trend(key, series, as_of) for key, series in series_by_key.items()]

        self.logger.info(
            "patient_analyzed",
            series=len(series_by_key),
            measurements=summary.total,
            abnormal=summary.abnormal,
            critical=summary.critical,
            health_score=summary.health_score,
        )
        return PatientHealthReport(
            summary=summary,
            assessment=assess(summary.health_score),
            abnormal=abnormal,
            trends=trends,
            as_of=as_of,
        )

    def series_trend(
        self, key: SeriesKey, series: Sequence[Measurement], now: date
    ) -> SeriesTrend:
        return SeriesTrend(
            key=key,
            trend=self.trends.analyze_trend(series, now=now),
            recent_trend=self.trends.analyze_recent_trend(series, now=now),
            velocity=self.trends.velocity(series),
            latest=latest_measurement(series),
        )

    def patient_trends(self, series_by_key: SeriesMap, now: date) -> dict[SeriesKey, Trend]:
        return {
            key: self.trends.analyze_trend(series, now=now)
            for key, series in series_by_key.items()
        }

    def urgency(
        self, measurement: Measurement, cache: StatusCache | None = None
    ) -> tuple[int, int]:
        """Sort key: CRITICAL first, then most recent first, undated last within a group."""
        status = self.classifier.classify_measurement(measurement, cache)
        critical_first = 0 if status is HealthStatus.CRITICAL else 1
        newest_first = -measurement.measured_on.toordinal() if measurement.measured_on else 0
        return critical_first, newest_first

    def sort_by_urgency(
        self, measurements: Sequence[Measurement], cache: StatusCache | None = None
    ) -> list[Measurement]:
        return sorted(measurements, key=lambda m: self.urgency(m, cache))
