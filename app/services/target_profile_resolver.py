"""
Target Profile Resolver.

Acceptable ranges per chemical parameter for a sanitizer type:
- Base profile shared by every pool
- Saltwater: lower ideal free chlorine
- Bromine: free chlorine is not the sanitizer, kept near zero

A fresh profile is built on every call, so callers never share state.
"""
import logging
from typing import Dict, Optional, Union

from app.services.pool_chemistry_rules import CRITICAL_LOW_FACTOR, CRITICAL_HIGH_FACTOR
from app.services.water_chemistry_errors import UnsupportedProfileError
from app.services.water_chemistry_models import (
    ChemicalParameter,
    ReadingStatus,
    SanitizerType,
    TargetRange,
)

logger = logging.getLogger(__name__)

TargetProfile = Dict[ChemicalParameter, TargetRange]

BASE_TARGETS = {
    ChemicalParameter.FREE_CHLORINE: TargetRange(min=1.0, max=3.0, ideal=2.0, unit="ppm"),
    ChemicalParameter.PH: TargetRange(min=7.2, max=7.6, ideal=7.4, unit=""),
    ChemicalParameter.TOTAL_ALKALINITY: TargetRange(min=80, max=120, ideal=100, unit="ppm"),
    ChemicalParameter.CALCIUM_HARDNESS: TargetRange(min=150, max=300, ideal=225, unit="ppm"),
    ChemicalParameter.CYANURIC_ACID: TargetRange(min=30, max=50, ideal=40, unit="ppm"),
    ChemicalParameter.BROMINE: TargetRange(min=2.0, max=4.0, ideal=3.0, unit="ppm"),
    ChemicalParameter.NITRATES: TargetRange(min=0, max=10, ideal=0, unit="ppm"),
    ChemicalParameter.PHOSPHATES: TargetRange(min=0, max=100, ideal=0, unit="ppb"),
}

SANITIZER_OVERRIDES = {
    SanitizerType.CHLORINE: {},
    SanitizerType.SALTWATER: {
        ChemicalParameter.FREE_CHLORINE: TargetRange(min=1.0, max=3.0, ideal=1.5, unit="ppm"),
    },
    SanitizerType.BROMINE: {
        ChemicalParameter.FREE_CHLORINE: TargetRange(min=0, max=0.5, ideal=0, unit="ppm"),
    },
}

# Parameters judged against another parameter's range
SHARED_TARGETS = {
    ChemicalParameter.TOTAL_CHLORINE: ChemicalParameter.FREE_CHLORINE,
}


def normalize_sanitizer_type(sanitizer_type: Union[SanitizerType, str]) -> SanitizerType:
    """Coerce a sanitizer name into SanitizerType or raise UnsupportedProfileError."""
    if isinstance(sanitizer_type, SanitizerType):
        return sanitizer_type
    try:
        return SanitizerType(str(sanitizer_type).strip().lower())
    except ValueError:
        logger.error(f"[TargetProfile] Unsupported sanitizer type: {sanitizer_type!r}")
        raise UnsupportedProfileError(str(sanitizer_type))


def resolve_target_profile(sanitizer_type: Union[SanitizerType, str]) -> TargetProfile:
    """
    Get the target profile for a sanitizer type.

    Args:
        sanitizer_type: chlorine, saltwater or bromine

    Returns:
        Dict of parameter -> TargetRange

    Raises:
        UnsupportedProfileError: sanitizer type is not known
    """
    sanitizer = normalize_sanitizer_type(sanitizer_type)
    profile = dict(BASE_TARGETS)
    profile.update(SANITIZER_OVERRIDES[sanitizer])
    return profile


def target_for(profile: TargetProfile, parameter: ChemicalParameter) -> Optional[TargetRange]:
    """Range a parameter is judged against, or None when it has none."""
    return profile.get(SHARED_TARGETS.get(parameter, parameter))


def classify_reading(value: float, target: TargetRange) -> ReadingStatus:
    """
    Status band of a single reading.

    In range is OK; more than 20% below min or 20% above max is CRITICAL;
    anything between is WARNING.
    """
    if target.contains(value):
        return ReadingStatus.OK
    if value < target.min * CRITICAL_LOW_FACTOR or value > target.max * CRITICAL_HIGH_FACTOR:
        return ReadingStatus.CRITICAL
    return ReadingStatus.WARNING
