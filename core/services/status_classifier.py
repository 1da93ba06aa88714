"""
Status classification of single measurements.

Fixed-threshold policy: a value is CRITICAL at or beyond 70% of the range
minimum / 130% of the range maximum, otherwise NORMAL inside the range and
LOW/HIGH outside it. Missing data classifies as NORMAL (there is no
"unknown" status).
"""

from core.config import ClassificationConfig
from core.domain.models import HealthStatus, Measurement

Fingerprint = tuple[float | None, float | None, float | None]
Thresholds = tuple[float, float]


class StatusCache:
    """
    Memoized statuses keyed by classifier thresholds and measurement fingerprint.

    The cached value is a pure function of the key, so repeated or racing
    writes always store the same status. Classifiers with different
    thresholds can share one cache without seeing each other's results.
    """

    def __init__(self) -> None:
        self._statuses: dict[tuple[Thresholds, Fingerprint], HealthStatus] = {}

    def get(self, measurement: Measurement, thresholds: Thresholds) -> HealthStatus | None:
        return self._statuses.get((thresholds, measurement.fingerprint))

    def put(self, measurement: Measurement, thresholds: Thresholds, status: HealthStatus) -> None:
        self._statuses[(thresholds, measurement.fingerprint)] = status

    def clear(self) -> None:
        self._statuses.clear()

    def __contains__(self, measurement: object) -> bool:
        """True when the measurement was classified under any thresholds."""
        if not isinstance(measurement, Measurement):
            return False
        return any(key[1] == measurement.fingerprint for key in self._statuses)

    def __len__(self) -> int:
        return len(self._statuses)


class StatusClassifier:
    """Maps a value and its reference range to a HealthStatus."""

    def __init__(self, config: ClassificationConfig | None = None) -> None:
        self.config = config or ClassificationConfig()

    @property
    def thresholds(self) -> Thresholds:
        return (self.config.critical_low_factor, self.config.critical_high_factor)

    def classify(
        self, value: float | None, minimum: float | None, maximum: float | None
    ) -> HealthStatus:
        """
        Classify one value against its reference range.

        Never raises for numeric input; an inverted range (min > max) is
        evaluated as-is.
        """
        if value is None or minimum is None or maximum is None:
            return HealthStatus.NORMAL

        critical_low = minimum * self.config.critical_low_factor
        critical_high = maximum * self.config.critical_high_factor

        # Order matters: critical bands win over the in-range check
        if value <= critical_low or value >= critical_high:
            return HealthStatus.CRITICAL
        if minimum <= value <= maximum:
            return HealthStatus.NORMAL
        if value < minimum:
            return HealthStatus.LOW
        return HealthStatus.HIGH

    def classify_measurement(
        self, measurement: Measurement, cache: StatusCache | None = None
    ) -> HealthStatus:
        """Classify a measurement, reading and filling `cache` when given."""
        if cache is not None:
            cached = cache.get(measurement, self.thresholds)
            if cached is not None:
                return cached

        status = self.classify(
            measurement.value,
            measurement.reference_range.min,
            measurement.reference_range.max,
        )
        if cache is not None:
            cache.put(measurement, self.thresholds, status)
        return status


_default_classifier = StatusClassifier()


def classify(value: float | None, minimum: float | None, maximum: float | None) -> HealthStatus:
    """Classify with the default thresholds."""
    return _default_classifier.classify(value, minimum, maximum)
