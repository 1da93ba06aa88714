"""
Alert generation for abnormal diagnostic results.

Turns engine statuses into human-readable alerts and ranks patients for the
clinic-wide alerts dashboard.
"""

from collections.abc import Iterable
from datetime import date

import structlog
from pydantic import BaseModel

from adapters.veterinary.domain import DiagnosticTest, Patient, Species
from core.domain.models import HealthStatus, Measurement, ReferenceRange
from core.services.health_analysis import HealthAnalysisService
from core.services.status_classifier import StatusCache

logger = structlog.get_logger(__name__)

NO_ACTIVE_ALERTS = "No active alerts"


class MeasurementAlert(BaseModel):
    """An abnormal result with its alert wording."""

    result_id: str | None
    test_name: str
    parameter_name: str
    unit: str
    value: float | None
    reference_range: ReferenceRange
    status: HealthStatus
    date_performed: date | None
    message: str


class PatientAlertSummary(BaseModel):
    """One row of the alerts dashboard."""

    patient_id: str
    patient_name: str
    species: Species
    breed: str | None
    owner_name: str | None
    owner_contact: str | None
    critical_count: int
    abnormal_count: int
    health_score: int
    last_test_date: date | None
    most_critical_alert: str


def _fmt(number: float | None, spec: str) -> str:
    return "n/a" if number is None else format(number, spec)


def alert_message(
    parameter_name: str,
    value: float | None,
    unit: str,
    reference_range: ReferenceRange,
    status: HealthStatus,
) -> str:
    """Alert wording, e.g. 'Hemoglobin below normal: 11.50 g/dL (normal: 12.0-18.0 g/dL)'."""
    shown = f"{_fmt(value, '.2f')} {unit}"
    low, high = _fmt(reference_range.min, ".1f"), _fmt(reference_range.max, ".1f")
    normal = f"(normal: {low}-{high} {unit})"

    if status is HealthStatus.CRITICAL:
        below = (
            value is not None and reference_range.min is not None and value < reference_range.min
        )
        direction = "critically low" if below else "critically high"
        return f"{parameter_name} {direction}: {shown} {normal}"
    if status is HealthStatus.LOW:
        return f"{parameter_name} below normal: {shown} {normal}"
    if status is HealthStatus.HIGH:
        return f"{parameter_name} above normal: {shown} {normal}"
    return f"{parameter_name}: {shown} (normal)"


class AlertService:
    """Builds alerts and dashboard summaries from patients."""

    def __init__(self, analysis: HealthAnalysisService | None = None) -> None:
        self.analysis = analysis or HealthAnalysisService()
        self.logger = logger.bind(component="alert_service")

    def measurement_alerts(self, patient: Patient) -> list[MeasurementAlert]:
        """Alerts for every abnormal result, CRITICAL first, then most recent."""
        cache = StatusCache()
        classifier = self.analysis.classifier

        abnormal: list[tuple[Measurement, DiagnosticTest]] = [
            (m, test)
            for test in patient.tests
            for m in test.measurements()
            if classifier.classify_measurement(m, cache).is_abnormal
        ]
        abnormal.sort(key=lambda pair: self.analysis.urgency(pair[0], cache))

        return [self._to_alert(m, test, cache) for m, test in abnormal]

    def most_critical_alert(self, patient: Patient) -> str:
        alerts = self.measurement_alerts(patient)
        return alerts[0].message if alerts else NO_ACTIVE_ALERTS

    def patient_alert_summary(self, patient: Patient, as_of: date) -> PatientAlertSummary:
        summary = self.analysis.scorer.summarize(patient.measurements(), as_of)
        return PatientAlertSummary(
            patient_id=patient.patient_id,
            patient_name=patient.name,
            species=patient.species,
            breed=patient.breed,
            owner_name=patient.owner_name,
            owner_contact=patient.owner_contact,
            critical_count=summary.critical,
            abnormal_count=summary.abnormal,
            health_score=summary.health_score,
            last_test_date=patient.last_test_date,
            most_critical_alert=self.most_critical_alert(patient),
        )

    def rank_patients(self, patients: Iterable[Patient], as_of: date) -> list[PatientAlertSummary]:
        """Patients with active alerts, most critical first, then most abnormal."""
        summaries = [self.patient_alert_summary(p, as_of) for p in patients]
        active = [s for s in summaries if s.abnormal_count > 0]
        active.sort(key=lambda s: (-s.critical_count, -s.abnormal_count))

        self.logger.info("patients_ranked", total=len(summaries), with_alerts=len(active))
        return active

    def _to_alert(
        self, measurement: Measurement, test: DiagnosticTest, cache: StatusCache
    ) -> MeasurementAlert:
        status = self.analysis.classifier.classify_measurement(measurement, cache)
        return MeasurementAlert(
            result_id=measurement.source_id,
            test_name=test.name,
            parameter_name=test.parameter_name,
            unit=test.unit,
            value=measurement.value,
            reference_range=measurement.reference_range,
            status=status,
            date_performed=measurement.measured_on,
            message=alert_message(
                test.parameter_name, measurement.value, test.unit, test.reference_range, status
            ),
        )
