"""Typed failures raised by the water chemistry services."""
from typing import List, Optional


class WaterChemistryError(Exception):
    """Base class for water chemistry failures."""


class UnsupportedProfileError(WaterChemistryError):
    """Sanitizer type has no target profile."""

    def __init__(self, sanitizer_type: str):
        self.sanitizer_type = sanitizer_type
        super().__init__(f"Unsupported sanitizer type: {sanitizer_type!r}")


class InvalidPoolProfileError(WaterChemistryError):
    """Pool profile cannot be used for dosing (e.g. non-positive volume)."""


class OutOfDomainReadingError(WaterChemistryError):
    """A reading lies outside physically plausible bounds."""

    def __init__(self, parameter: str, value: float, reason: str):
        self.parameter = parameter
        self.value = value
        super().__init__(f"{parameter} reading {value} is out of domain: {reason}")


class ConsistencyMismatch(WaterChemistryError):
    """Two analysis passes of the same sample disagree."""

    def __init__(self, differences: List[str]):
        self.differences = list(differences)
        super().__init__(
            "Inconsistent readings detected. Differences found in: "
            + ", ".join(self.differences)
        )


class StripAnalysisError(WaterChemistryError):
    """Inference call failed or returned an unusable payload."""

    def __init__(self, message: str, detail: Optional[str] = None):
        self.detail = detail
        super().__init__(message)


class StripAnalysisUnavailable(StripAnalysisError):
    """Inference collaborator is not configured."""
