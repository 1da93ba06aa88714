"""
Core services for the application.

This package contains the health analysis engine: status classification,
health scoring, trend detection and the patient-level orchestration on top.
"""

from .health_analysis import HealthAnalysisService
from .health_scorer import HealthScorer, assess
from .status_classifier import StatusCache, StatusClassifier, classify
from .trend_analyzer import TrendAnalyzer, distance_from_normal, latest_measurement

__all__ = [
    "HealthAnalysisService",
    "HealthScorer",
    "StatusCache",
    "StatusClassifier",
    "TrendAnalyzer",
    "assess",
    "classify",
    "distance_from_normal",
    "latest_measurement",
]
