"""Shared fixtures for water chemistry tests."""
from datetime import datetime, timezone

import pytest

from app.services.water_chemistry_models import ReadingSet

FIXED_TIMESTAMP = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_readings():
    """
    Factory for ReadingSet with detected parameters inferred from values.

    Pass detected=[...] to override the detected list explicitly.
    """
    names = {
        "free_chlorine": "Free Chlorine",
        "total_chlorine": "Total Chlorine",
        "ph": "pH",
        "total_alkalinity": "Total Alkalinity",
        "calcium_hardness": "Calcium Hardness",
        "cyanuric_acid": "Cyanuric Acid",
        "bromine": "Bromine",
        "nitrates": "Nitrates",
        "phosphates": "Phosphates",
    }

    def _make(strip_type="5-in-1", detected=None, confidence=0.9, **values):
        if detected is None:
            detected = [names[key] for key, value in values.items() if key in names and value is not None]
        return ReadingSet(
            strip_type=strip_type,
            detected_parameters=tuple(detected),
            confidence=confidence,
            timestamp=FIXED_TIMESTAMP,
            **values,
        )

    return _make
