from datetime import date, timedelta

import pytest

from adapters.veterinary.domain import Patient
from core.domain.models import Measurement, ReferenceRange
from demo_system import build_sample_patients

AS_OF = date(2025, 6, 1)


@pytest.fixture
def as_of() -> date:
    """Fixed analysis date so recency and lookback math is reproducible."""
    return AS_OF


@pytest.fixture
def sample_patients(as_of: date) -> list[Patient]:
    """Biscuit (healthy), Juniper (mild abnormalities) and Maple (critical)."""
    return build_sample_patients(as_of)


@pytest.fixture
def make_measurement(as_of: date):
    """Factory: value measured `days_ago` before the fixed date, range 10-20 by default."""

    def _make(
        value: float | None,
        days_ago: int | None = 0,
        minimum: float | None = 10.0,
        maximum: float | None = 20.0,
    ) -> Measurement:
        return Measurement(
            value=value,
            measured_on=None if days_ago is None else as_of - timedelta(days=days_ago),
            reference_range=ReferenceRange(min=minimum, max=maximum),
        )

    return _make
