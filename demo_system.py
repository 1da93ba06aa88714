"""
Complete walkthrough of the health analysis business rules.

This script demonstrates:
1. Configuration loading and validation
2. Status classification against a reference range
3. Health scoring with recency weighting
4. Trend analysis per test series
5. Alert ranking across patients
6. Graceful handling of malformed result records

Run with: uv run python demo_system.py
"""

from datetime import date, timedelta

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from adapters.veterinary.alerts import AlertService
from adapters.veterinary.domain import (
    DiagnosticTest,
    LabResult,
    Patient,
    Species,
    parse_result_records,
)
from adapters.veterinary.report import STATUS_STYLES, render_alert_dashboard, render_patient_report
from core.config import get_config, validate_config
from core.domain.models import ReferenceRange
from core.log import configure_logging
from core.services.health_analysis import HealthAnalysisService

HEMOGLOBIN_RANGE = ReferenceRange(min=12.0, max=18.0)


def _test(
    test_id: str,
    name: str,
    parameter: str,
    unit: str,
    reference_range: ReferenceRange,
    as_of: date,
    readings: list[tuple[float, int]],
) -> DiagnosticTest:
    """Build a test from (value, days before as_of) readings."""
    return DiagnosticTest(
        test_id=test_id,
        name=name,
        parameter_name=parameter,
        unit=unit,
        reference_range=reference_range,
        results=[
            LabResult(
                result_id=f"{test_id}-{i}",
                value=value,
                date_performed=as_of - timedelta(days=days_ago),
            )
            for i, (value, days_ago) in enumerate(readings)
        ],
    )


def build_sample_patients(as_of: date) -> list[Patient]:
    """Three patients: healthy, mildly abnormal and critical."""
    biscuit = Patient(
        patient_id="p-001",
        name="Biscuit",
        species=Species.CANINE,
        breed="Beagle",
        date_of_birth=date(2019, 4, 2),
        owner_name="Dana Whitfield",
        owner_contact="555-0142",
        tests=[
            _test(
                "cbc-001", "Complete Blood Count", "Hemoglobin", "g/dL", HEMOGLOBIN_RANGE, as_of,
                [(14.2, 150), (15.0, 120), (13.6, 90), (14.9, 60), (15.4, 30), (14.1, 5)],
            ),
            _test(
                "chem-001", "Chemistry Panel", "Glucose", "mg/dL",
                ReferenceRange(min=70.0, max=140.0), as_of,
                [(96.0, 140), (104.0, 100), (88.0, 70), (112.0, 35)],
            ),
        ],
    )

    juniper = Patient(
        patient_id="p-002",
        name="Juniper",
        species=Species.FELINE,
        breed="Maine Coon",
        date_of_birth=date(2017, 9, 18),
        owner_name="Ravi Castellanos",
        owner_contact="555-0178",
        tests=[
            _test(
                "thy-002", "Thyroid Panel", "T4", "ug/dL",
                ReferenceRange(min=1.0, max=4.0), as_of,
                [(1.6, 170), (1.4, 140), (1.1, 110), (0.9, 80), (0.85, 45), (0.8, 15)],
            ),
            _test(
                "cbc-002", "Complete Blood Count", "Hemoglobin", "g/dL", HEMOGLOBIN_RANGE, as_of,
                [(18.6, 160), (18.9, 120), (17.2, 80), (16.4, 40), (15.8, 10)],
            ),
        ],
    )

    maple = Patient(
        patient_id="p-003",
        name="Maple",
        species=Species.CANINE,
        breed="Golden Retriever",
        date_of_birth=date(2016, 1, 27),
        owner_name="Priya Okonkwo",
        owner_contact="555-0113",
        tests=[
            _test(
                "liv-003", "Liver Function", "ALT", "U/L",
                ReferenceRange(min=10.0, max=80.0), as_of,
                [(92.0, 170), (101.0, 135), (118.0, 100), (131.0, 65), (149.0, 30), (166.0, 3)],
            ),
            _test(
                "kid-003", "Kidney Function", "Creatinine", "mg/dL",
                ReferenceRange(min=0.5, max=1.8), as_of,
                [(2.6, 160), (2.9, 110), (3.3, 60), (2.2, 20), (1.9, 2)],
            ),
        ],
    )
    return [biscuit, juniper, maple]


def show_classification_rules(console: Console, analysis: HealthAnalysisService) -> None:
    console.print(Panel("Status Classification (Hemoglobin 12.0-18.0 g/dL)", style="blue"))

    examples = [
        (15.0, "Comfortably normal"),
        (12.0, "Minimum normal value"),
        (18.0, "Maximum normal value"),
        (11.5, "Slightly low"),
        (8.0, "Below 70% of minimum"),
        (18.5, "Slightly high"),
        (25.0, "Above 130% of maximum"),
    ]
    table = Table(show_header=True)
    table.add_column("Value", justify="right")
    table.add_column("Status")
    table.add_column("Note")
    for value, note in examples:
        status = analysis.classifier.classify(value, HEMOGLOBIN_RANGE.min, HEMOGLOBIN_RANGE.max)
        table.add_row(f"{value:.1f}", f"[{STATUS_STYLES[status]}]{status.value}[/]", note)
    console.print(table)


def show_record_parsing(console: Console) -> None:
    console.print(Panel("Result Record Parsing", style="blue"))
    rows = [
        {"value": "13.2", "date": "2025-03-01", "reference_min": 12.0, "reference_max": 18.0},
        {"value": "n/a", "date": "2025-03-02", "reference_min": 12.0, "reference_max": 18.0},
        {"value": 19.4, "referenceMin": 12.0, "referenceMax": 18.0},
    ]
    measurements = parse_result_records(rows)
    console.print(f"Accepted {len(measurements)} of {len(rows)} records", style="green")


def run_demo(console: Console, as_of: date | None = None) -> None:
    as_of = as_of or date.today()
    analysis = HealthAnalysisService(get_config())
    alert_service = AlertService(analysis)

    show_classification_rules(console, analysis)

    patients = build_sample_patients(as_of)
    console.print(Panel("Patient Health Reports", style="blue"))
    for patient in patients:
        report = analysis.analyze(patient.series(), as_of)
        alerts = alert_service.measurement_alerts(patient)[:3]
        console.print(render_patient_report(patient, report, alerts))

    console.print(render_alert_dashboard(alert_service.rank_patients(patients, as_of)))
    show_record_parsing(console)


def main() -> None:
    validate_config()
    configure_logging(get_config().logging)
    run_demo(Console())


if __name__ == "__main__":
    main()
