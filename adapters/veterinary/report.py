"""Console rendering of patient health reports with rich."""

from rich.console import Group
from rich.panel import Panel
from rich.table import Table

from adapters.veterinary.alerts import MeasurementAlert, PatientAlertSummary
from adapters.veterinary.domain import Patient
from core.domain.models import HealthStatus, PatientHealthReport, Trend

STATUS_STYLES = {
    HealthStatus.NORMAL: "green",
    HealthStatus.LOW: "yellow",
    HealthStatus.HIGH: "yellow",
    HealthStatus.CRITICAL: "bold red",
}

TREND_STYLES = {
    Trend.IMPROVING: "green",
    Trend.STABLE: "white",
    Trend.DECLINING: "red",
}


def score_style(score: int) -> str:
    if score >= 90:
        return "green"
    if score >= 75:
        return "cyan"
    if score >= 60:
        return "yellow"
    return "bold red"


def render_patient_report(
    patient: Patient, report: PatientHealthReport, alerts: list[MeasurementAlert] | None = None
) -> Panel:
    """Score, status counts, per-series trends and (optionally) alert lines."""
    summary = report.summary

    counts = Table(title="Results", show_header=True)
    for column in ("Total", "Normal", "Low", "High", "Critical"):
        counts.add_column(column, justify="right")
    counts.add_row(
        str(summary.total),
        str(summary.normal),
        str(summary.low),
        str(summary.high),
        str(summary.critical),
    )

    trends = Table(title="Trends", show_header=True)
    trends.add_column("Series")
    trends.add_column("Trend")
    trends.add_column("Recent")
    trends.add_column("Velocity", justify="right")
    trends.add_column("Latest", justify="right")
    for series_trend in report.trends:
        test = patient.test_for(series_trend.key)
        label = test.display_name if test else series_trend.key.label
        latest = series_trend.latest
        latest_text = "-"
        if latest is not None and latest.value is not None:
            latest_text = f"{latest.value:g} {test.unit if test else ''}".rstrip()
        trends.add_row(
            label,
            f"[{TREND_STYLES[series_trend.trend]}]{series_trend.trend.value}[/]",
            f"[{TREND_STYLES[series_trend.recent_trend]}]{series_trend.recent_trend.value}[/]",
            f"{series_trend.velocity:+.3f}",
            latest_text,
        )

    parts: list = [
        f"Health Score: [{score_style(summary.health_score)}]{summary.health_score}/100[/]",
        f"Assessment: {report.assessment}",
        counts,
        trends,
    ]
    for alert in alerts or []:
        parts.append(f"[{STATUS_STYLES[alert.status]}]{alert.message}[/]")

    title = f"{patient.name} ({patient.species.value}) as of {report.as_of.isoformat()}"
    return Panel(Group(*parts), title=title)


def render_alert_dashboard(summaries: list[PatientAlertSummary]) -> Table:
    table = Table(title="Active Alerts", show_header=True)
    table.add_column("Patient")
    table.add_column("Owner")
    table.add_column("Critical", justify="right")
    table.add_column("Abnormal", justify="right")
    table.add_column("Score", justify="right")
    table.add_column("Most Critical Alert")

    for summary in summaries:
        table.add_row(
            summary.patient_name,
            summary.owner_name or "-",
            str(summary.critical_count),
            str(summary.abnormal_count),
            f"[{score_style(summary.health_score)}]{summary.health_score}[/]",
            summary.most_critical_alert,
        )
    return table
