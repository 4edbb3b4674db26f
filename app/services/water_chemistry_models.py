"""
Value objects shared by the water chemistry services.

Pool profile, test strip readings, target ranges and dosing
recommendations. Every object is immutable and built fresh per
analysis request.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Optional, Tuple


class SanitizerType(str, Enum):
    """Primary sanitizer of the water body."""
    CHLORINE = "chlorine"
    SALTWATER = "saltwater"
    BROMINE = "bromine"


class Exposure(str, Enum):
    """Pool location."""
    INDOOR = "indoor"
    OUTDOOR = "outdoor"


class ChemicalParameter(str, Enum):
    """Parameters a test strip can report, in evaluation order."""
    FREE_CHLORINE = "Free Chlorine"
    TOTAL_CHLORINE = "Total Chlorine"
    PH = "pH"
    TOTAL_ALKALINITY = "Total Alkalinity"
    CALCIUM_HARDNESS = "Calcium Hardness"
    CYANURIC_ACID = "Cyanuric Acid"
    BROMINE = "Bromine"
    NITRATES = "Nitrates"
    PHOSPHATES = "Phosphates"

    @property
    def label(self) -> str:
        """Lower-case name used in consistency reports ("pH" stays as is)."""
        if self is ChemicalParameter.PH:
            return self.value
        return self.value.lower()

    @classmethod
    def from_name(cls, name: str) -> Optional["ChemicalParameter"]:
        """Match a display name case-insensitively; None when unknown."""
        normalized = name.strip().lower()
        for parameter in cls:
            if parameter.value.lower() == normalized:
                return parameter
        return None


class Action(str, Enum):
    INCREASE = "increase"
    DECREASE = "decrease"
    MAINTAIN = "maintain"


class Priority(str, Enum):
    """Severity tier of a recommendation."""
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def weight(self) -> int:
        return PRIORITY_WEIGHTS[self]


PRIORITY_WEIGHTS = {
    Priority.CRITICAL: 4,
    Priority.HIGH: 3,
    Priority.MEDIUM: 2,
    Priority.LOW: 1,
}


class ReadingStatus(str, Enum):
    OK = "ok"
    WARNING = "warning"
    CRITICAL = "critical"


@dataclass(frozen=True)
class PoolProfile:
    """Pool setup data. Volume in gallons."""
    volume: float
    sanitizer_type: SanitizerType = SanitizerType.CHLORINE
    exposure: Exposure = Exposure.OUTDOOR


@dataclass(frozen=True)
class TargetRange:
    """Acceptable band and ideal value for one parameter."""
    min: float
    max: float
    ideal: float
    unit: str = "ppm"

    def contains(self, value: float) -> bool:
        return self.min <= value <= self.max


# Attribute on ReadingSet holding each parameter's value
READING_FIELDS = {
    ChemicalParameter.FREE_CHLORINE: "free_chlorine",
    ChemicalParameter.TOTAL_CHLORINE: "total_chlorine",
    ChemicalParameter.PH: "ph",
    ChemicalParameter.TOTAL_ALKALINITY: "total_alkalinity",
    ChemicalParameter.CALCIUM_HARDNESS: "calcium_hardness",
    ChemicalParameter.CYANURIC_ACID: "cyanuric_acid",
    ChemicalParameter.BROMINE: "bromine",
    ChemicalParameter.NITRATES: "nitrates",
    ChemicalParameter.PHOSPHATES: "phosphates",
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ReadingSet:
    """
    One test strip analysis.

    Values are None when the parameter was not measured. Only parameters
    named in detected_parameters AND carrying a value are ever used for
    dosing.
    """
    strip_type: str
    detected_parameters: Tuple[str, ...] = ()
    confidence: float = 0.0
    timestamp: datetime = field(default_factory=_utcnow)
    free_chlorine: Optional[float] = None
    total_chlorine: Optional[float] = None
    ph: Optional[float] = None
    total_alkalinity: Optional[float] = None
    calcium_hardness: Optional[float] = None
    cyanuric_acid: Optional[float] = None
    bromine: Optional[float] = None
    nitrates: Optional[float] = None
    phosphates: Optional[float] = None
    analysis_notes: Optional[str] = None

    def value_of(self, parameter: ChemicalParameter) -> Optional[float]:
        return getattr(self, READING_FIELDS[parameter])

    def detected_set(self) -> frozenset:
        """
        Detected parameters, order, duplicates and case ignored.

        Known names map to ChemicalParameter, matching detected_values();
        unknown names are kept lower-cased.
        """
        detected = set()
        for name in self.detected_parameters:
            parameter = ChemicalParameter.from_name(name)
            detected.add(parameter if parameter is not None else name.strip().lower())
        return frozenset(detected)

    def detected_values(self) -> Dict[ChemicalParameter, float]:
        """
        Values usable for dosing, in evaluation order.

        A parameter must be both listed as detected and carry a value;
        anything else is skipped.
        """
        detected = {ChemicalParameter.from_name(name) for name in self.detected_parameters}
        values = {}
        for parameter in ChemicalParameter:
            if parameter not in detected:
                continue
            value = self.value_of(parameter)
            if value is not None:
                values[parameter] = value
        return values


@dataclass(frozen=True)
class Recommendation:
    """One remediation action for one parameter."""
    parameter: ChemicalParameter
    chemical: str
    action: Action
    amount: float
    unit: str
    priority: Priority
    reason: str
    instructions: str
    cost: Optional[float] = None
    time_to_effect: Optional[str] = None
    safety_notes: Optional[str] = None
    alternative_options: Tuple[str, ...] = ()
