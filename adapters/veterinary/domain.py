"""
Veterinary domain models built on top of the core analysis engine.

This is the collaborator side of the engine:
- Patients own diagnostic tests; each test tracks one parameter over time
- Tests are grouped into series by an explicit (test_id, parameter_name) key
- Raw result records from data entry are parsed into core Measurements

Key concepts:
- Reference range: the normal interval for a parameter, per test
- Series: all results of one parameter of one test, ordered by date
"""

from collections.abc import Iterable, Mapping
from datetime import date
from enum import Enum
from typing import Any

import structlog
from pydantic import AliasChoices, BaseModel, Field, ValidationError, computed_field

from core.domain.models import Measurement, ReferenceRange, SeriesKey
from core.result import Result

logger = structlog.get_logger(__name__)

RecordResult = Result[Measurement, ValueError]


class Species(str, Enum):
    """Species we keep reference data for."""

    CANINE = "canine"
    FELINE = "feline"
    EQUINE = "equine"
    BOVINE = "bovine"
    AVIAN = "avian"
    EXOTIC = "exotic"


class LabResult(BaseModel):
    """One recorded value of a diagnostic test parameter."""

    result_id: str
    value: float | None = None
    date_performed: date | None = None


class DiagnosticTest(BaseModel):
    """
    A diagnostic test tracking a single parameter, with its result history.

    E.g. "Complete Blood Count" / "Hemoglobin" in g/dL, range 12.0-18.0.
    """

    test_id: str
    name: str = Field(description="Test panel name, e.g. 'Complete Blood Count'")
    parameter_name: str = Field(description="Measured parameter, e.g. 'Hemoglobin'")
    unit: str = ""
    reference_range: ReferenceRange = Field(default_factory=ReferenceRange)
    results: list[LabResult] = Field(default_factory=list)

    @computed_field(return_type=str)
    def display_name(self) -> str:
        return f"{self.name} - {self.parameter_name}"

    @property
    def series_key(self) -> SeriesKey:
        return SeriesKey(test_id=self.test_id, parameter_name=self.parameter_name)

    def measurements(self) -> list[Measurement]:
        """Results as engine measurements, in recorded order."""
        return [
            Measurement(
                value=result.value,
                measured_on=result.date_performed,
                reference_range=self.reference_range,
                source_id=result.result_id,
            )
            for result in self.results
        ]


class Patient(BaseModel):
    """An animal under care, with its owner contact and diagnostic history."""

    patient_id: str
    name: str
    species: Species
    breed: str | None = None
    date_of_birth: date | None = None
    owner_name: str | None = None
    owner_contact: str | None = None
    tests: list[DiagnosticTest] = Field(default_factory=list)

    def series(self) -> dict[SeriesKey, list[Measurement]]:
        """Group all results by series key; tests sharing a key are merged."""
        grouped: dict[SeriesKey, list[Measurement]] = {}
        for test in self.tests:
            grouped.setdefault(test.series_key, []).extend(test.measurements())
        return grouped

    def test_for(self, key: SeriesKey) -> DiagnosticTest | None:
        return next((t for t in self.tests if t.series_key == key), None)

    def measurements(self) -> list[Measurement]:
        return [m for test in self.tests for m in test.measurements()]

    @computed_field(return_type=date | None)
    def last_test_date(self) -> date | None:
        dates = [r.date_performed for t in self.tests for r in t.results if r.date_performed]
        return max(dates) if dates else None


class ResultRecord(BaseModel):
    """Raw result row as supplied by data entry; every field may be missing."""

    value: float | None = None
    date_performed: date | None = Field(
        None, validation_alias=AliasChoices("date", "date_performed", "datePerformed")
    )
    reference_min: float | None = Field(
        None, validation_alias=AliasChoices("reference_min", "referenceMin")
    )
    reference_max: float | None = Field(
        None, validation_alias=AliasChoices("reference_max", "referenceMax")
    )
    source_id: str | None = None

    def to_measurement(self) -> Measurement:
        return Measurement(
            value=self.value,
            measured_on=self.date_performed,
            reference_range=ReferenceRange(min=self.reference_min, max=self.reference_max),
            source_id=self.source_id,
        )


def parse_result_record(raw: Mapping[str, Any]) -> RecordResult:
    """
    Convert one raw row into a Measurement.

    Missing fields become None; present but unparseable fields (e.g. a value
    of "n/a") produce an error Result rather than an exception.
    """
    try:
        record = ResultRecord.model_validate(dict(raw))
    except ValidationError as e:
        return RecordResult.err(e)
    return RecordResult.ok(record.to_measurement())


def parse_result_records(rows: Iterable[Mapping[str, Any]]) -> list[Measurement]:
    """Parse rows, logging and skipping the ones that fail."""
    log = logger.bind(component="result_parser")
    measurements: list[Measurement] = []

    for index, row in enumerate(rows):
        result = parse_result_record(row)
        if result.is_ok():
            measurements.append(result.unwrap())
        else:
            log.warning(
                "result_record_rejected",
                row=index,
                source_id=row.get("source_id"),
                error=str(result.unwrap_err()),
            )

    log.info("result_records_parsed", accepted=len(measurements))
    return measurements
