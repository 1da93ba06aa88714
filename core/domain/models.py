"""
Domain models for diagnostic health analysis.

These models represent the core business concepts and are framework-agnostic.
They use Pydantic for validation and immutability; none of them know about
storage, transport or presentation.
"""

from datetime import UTC, date, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class HealthStatus(str, Enum):
    """Health status of one measurement compared to its reference range."""

    NORMAL = "normal"
    LOW = "low"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def severity(self) -> int:
        """Severity rank used for scoring and sorting: CRITICAL > LOW/HIGH > NORMAL."""
        if self is HealthStatus.CRITICAL:
            return 2
        if self is HealthStatus.NORMAL:
            return 0
        return 1

    @property
    def is_abnormal(self) -> bool:
        return self is not HealthStatus.NORMAL


class Trend(str, Enum):
    """Direction of a measurement series relative to its normal range."""

    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"


class ReferenceRange(BaseModel):
    """Normal range for a parameter. `min <= max` is expected but not enforced."""

    model_config = ConfigDict(frozen=True)

    min: float | None = None
    max: float | None = None


class Measurement(BaseModel):
    """
    A single diagnostic reading.

    The health status is deliberately not stored here: it is always derived
    from `value` and `reference_range` (see StatusCache for memoization).
    """

    model_config = ConfigDict(frozen=True)  # Created by data entry, never mutated

    value: float | None = None
    measured_on: date | None = Field(None, description="Date the sample was taken")
    reference_range: ReferenceRange = Field(default_factory=ReferenceRange)
    source_id: str | None = Field(None, description="Identifier in the collaborator store")

    @property
    def fingerprint(self) -> tuple[float | None, float | None, float | None]:
        """Everything the status depends on."""
        return (self.value, self.reference_range.min, self.reference_range.max)


class SeriesKey(BaseModel):
    """Identity of a logical test series: one parameter of one diagnostic test."""

    model_config = ConfigDict(frozen=True)

    test_id: str
    parameter_name: str

    @property
    def label(self) -> str:
        return f"{self.test_id}/{self.parameter_name}"


class HealthSummary(BaseModel):
    """Per-status counts plus the overall score for a patient."""

    health_score: int = Field(ge=0, le=100)
    total: int = Field(ge=0)
    normal: int = Field(ge=0)
    low: int = Field(ge=0)
    high: int = Field(ge=0)
    critical: int = Field(ge=0)

    @property
    def abnormal(self) -> int:
        return self.low + self.high + self.critical


class SeriesTrend(BaseModel):
    """Trend analysis result for one series."""

    key: SeriesKey
    trend: Trend
    recent_trend: Trend
    velocity: float
    latest: Measurement | None = None


class PatientHealthReport(BaseModel):
    """Comprehensive health analysis for one patient."""

    summary: HealthSummary
    assessment: str
    abnormal: list[Measurement] = Field(default_factory=list)
    trends: list[SeriesTrend] = Field(default_factory=list)
    as_of: date
    generated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    def trend_for(self, key: SeriesKey) -> SeriesTrend | None:
        return next((t for t in self.trends if t.key == key), None)
