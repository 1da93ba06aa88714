"""
Health scoring: aggregate a patient's measurements into a 0-100 score.

Scoring rules:
- Start at the base score (100); no measurements means a perfect score
- LOW/HIGH deduct 5 points, CRITICAL deducts 15 points
- Each deduction is weighted by recency: 2.0x for a measurement taken on the
  scoring date, decaying linearly to 1.0x at 90 days; older or undated
  measurements weigh 1.0x
- Weighted deductions are rounded half-up one at a time, and the final score
  is floored at 0
"""

import math
from collections.abc import Iterable, Sequence
from datetime import date

import structlog

from core.config import ScoringConfig
from core.domain.models import HealthStatus, HealthSummary, Measurement
from core.services.status_classifier import StatusCache, StatusClassifier

logger = structlog.get_logger(__name__)


def _round_half_up(amount: float) -> int:
    return math.floor(amount + 0.5)


class HealthScorer:
    """Combines status severity with recency weighting."""

    def __init__(
        self,
        config: ScoringConfig | None = None,
        classifier: StatusClassifier | None = None,
    ) -> None:
        self.config = config or ScoringConfig()
        self.classifier = classifier or StatusClassifier()
        self.logger = logger.bind(component="health_scorer")

    def recency_multiplier(self, measured_on: date | None, as_of: date) -> float:
        """
        Weight for a deduction based on how long ago it was measured.

        Future-dated measurements are not special-cased and weigh more than
        the maximum multiplier.
        """
        if measured_on is None:
            return 1.0

        window = self.config.recency_window_days
        days_since = (as_of - measured_on).days
        if days_since <= window:
            extra = self.config.max_recency_multiplier - 1.0
            return self.config.max_recency_multiplier - extra * days_since / window
        return 1.0

    def deduction_for(self, status: HealthStatus) -> int:
        if status is HealthStatus.CRITICAL:
            return self.config.critical_deduction
        if status is HealthStatus.NORMAL:
            return 0
        return self.config.abnormal_deduction

    def score(
        self,
        measurements: Iterable[Measurement],
        as_of: date,
        cache: StatusCache | None = None,
    ) -> int:
        """Health score in [0, base_score]; 100 for no data."""
        running = self.config.base_score
        counted = 0

        for measurement in measurements:
            counted += 1
            status = self.classifier.classify_measurement(measurement, cache)
            if status is HealthStatus.NORMAL:
                continue

            weighted = self.deduction_for(status) * self.recency_multiplier(
                measurement.measured_on, as_of
            )
            running -= _round_half_up(weighted)

        score = max(0, running)
        self.logger.debug("health_score_calculated", measurements=counted, score=score)
        return score

    def abnormal_measurements(
        self, measurements: Iterable[Measurement], cache: StatusCache | None = None
    ) -> list[Measurement]:
        """Measurements whose status is anything but NORMAL, in input order."""
        return [
            m for m in measurements if self.classifier.classify_measurement(m, cache).is_abnormal
        ]

    def summarize(
        self,
        measurements: Sequence[Measurement],
        as_of: date,
        cache: StatusCache | None = None,
    ) -> HealthSummary:
        """Per-status counts plus the score."""
        cache = cache if cache is not None else StatusCache()
        counts = dict.fromkeys(HealthStatus, 0)
        for measurement in measurements:
            counts[self.classifier.classify_measurement(measurement, cache)] += 1

        return HealthSummary(
            health_score=self.score(measurements, as_of, cache),
            total=len(measurements),
            normal=counts[HealthStatus.NORMAL],
            low=counts[HealthStatus.LOW],
            high=counts[HealthStatus.HIGH],
            critical=counts[HealthStatus.CRITICAL],
        )


def assess(score: int) -> str:
    """Human-readable assessment band for a health score."""
    if score >= 90:
        return "Excellent health - all parameters within normal ranges"
    if score >= 75:
        return "Good health - minor abnormalities present"
    if score >= 60:
        return "Moderate health concerns - multiple abnormalities"
    return "Significant health issues - immediate attention recommended"
