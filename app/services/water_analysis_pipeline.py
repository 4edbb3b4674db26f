"""
Water Analysis Pipeline.

Joins the three core services for one analysis request:
1. Consistency check of the two analysis passes (halts on mismatch)
2. Target profile for the pool's sanitizer
3. Dosing recommendations for the canonical reading
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from app.services.consistency_validator import StripAnalyzer, canonical_reading, run_dual_pass
from app.services.dosage_calculator import dosage_calculator
from app.services.strip_analysis_service import get_strip_analysis_service
from app.services.target_profile_resolver import (
    TargetProfile,
    classify_reading,
    resolve_target_profile,
    target_for,
)
from app.services.water_chemistry_errors import ConsistencyMismatch
from app.services.water_chemistry_models import (
    ChemicalParameter,
    PoolProfile,
    ReadingSet,
    ReadingStatus,
    Recommendation,
    TargetRange,
)

logger = logging.getLogger(__name__)


class AnalysisStatus(str, Enum):
    OK = "ok"
    INCONSISTENT = "inconsistent"


@dataclass(frozen=True)
class ReadingSummary:
    """One detected reading next to its target band."""
    parameter: ChemicalParameter
    value: float
    target: Optional[TargetRange]
    status: Optional[ReadingStatus]


@dataclass(frozen=True)
class AnalysisOutcome:
    """Result handed to the presentation layer."""
    status: AnalysisStatus
    differences: List[str] = field(default_factory=list)
    target_profile: Optional[TargetProfile] = None
    recommendations: List[Recommendation] = field(default_factory=list)
    reading_summary: List[ReadingSummary] = field(default_factory=list)
    canonical_readings: Optional[ReadingSet] = None
    total_estimated_cost: float = 0.0


def summarize_readings(readings: ReadingSet, profile: TargetProfile) -> List[ReadingSummary]:
    """Status of every detected reading, in evaluation order."""
    summary = []
    for parameter, value in readings.detected_values().items():
        target = target_for(profile, parameter)
        summary.append(ReadingSummary(
            parameter=parameter,
            value=value,
            target=target,
            status=classify_reading(value, target) if target else None,
        ))
    return summary


def evaluate_readings(
    pool: PoolProfile,
    readings_a: ReadingSet,
    readings_b: ReadingSet,
    tolerances: Optional[Dict[ChemicalParameter, float]] = None,
) -> AnalysisOutcome:
    """
    Full analysis of two passes of the same sample.

    Returns an INCONSISTENT outcome without any dosing when the passes
    disagree.

    Raises:
        UnsupportedProfileError: unknown sanitizer type
        InvalidPoolProfileError: non-positive volume
        OutOfDomainReadingError: implausible reading
    """
    try:
        readings = canonical_reading(readings_a, readings_b, tolerances)
    except ConsistencyMismatch as e:
        logger.warning(f"[Pipeline] Halting analysis: {e}")
        return AnalysisOutcome(status=AnalysisStatus.INCONSISTENT, differences=e.differences)

    profile = resolve_target_profile(pool.sanitizer_type)
    recommendations = dosage_calculator.recommend(readings, profile, pool.volume, pool.exposure)

    logger.info(
        f"[Pipeline] {pool.volume:g} gal pool: "
        f"{len(recommendations)} recommendations"
    )
    return AnalysisOutcome(
        status=AnalysisStatus.OK,
        target_profile=profile,
        recommendations=recommendations,
        reading_summary=summarize_readings(readings, profile),
        canonical_readings=readings,
        total_estimated_cost=dosage_calculator.estimate_total_cost(recommendations),
    )


async def analyze_strip_image(
    pool: PoolProfile,
    image_data: str,
    analyzer: Optional[StripAnalyzer] = None,
) -> AnalysisOutcome:
    """
    Dual-pass strip analysis followed by evaluate_readings.

    Raises:
        StripAnalysisError: either pass failed
    """
    analyze = analyzer or get_strip_analysis_service().analyze
    readings_a, readings_b = await run_dual_pass(analyze, image_data)
    return evaluate_readings(pool, readings_a, readings_b)
