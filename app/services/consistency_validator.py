"""
Dual-Pass Consistency Validator.

The strip analyzer is run twice on the same image. Results are only
trusted when both passes agree on:
1. Strip type identification
2. The set of detected parameters
3. Every reading present in both passes, within tolerance

There is no partial trust and no majority vote: the canonical reading is
the first pass, unmodified, and only when fully consistent.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, List, Optional, Tuple

from app.services.pool_chemistry_rules import CONSISTENCY_TOLERANCE
from app.services.water_chemistry_errors import ConsistencyMismatch
from app.services.water_chemistry_models import ChemicalParameter, ReadingSet

logger = logging.getLogger(__name__)

STRIP_TYPE_DIFFERENCE = "strip type identification"
DETECTED_PARAMETERS_DIFFERENCE = "detected parameters"


@dataclass(frozen=True)
class ConsistencyResult:
    """Outcome of comparing two analysis passes."""
    differences: List[str] = field(default_factory=list)

    @property
    def is_consistent(self) -> bool:
        return not self.differences


def validate_consistency(
    readings_a: ReadingSet,
    readings_b: ReadingSet,
    tolerances: Optional[Dict[ChemicalParameter, float]] = None,
) -> ConsistencyResult:
    """
    Compare two analysis passes of the same sample.

    Every check runs regardless of earlier failures, so the report lists
    all disagreements at once.

    Args:
        readings_a: First pass
        readings_b: Second pass
        tolerances: Optional per-parameter absolute tolerance; parameters
            not listed use CONSISTENCY_TOLERANCE

    Returns:
        ConsistencyResult with the ordered list of differing fields
    """
    differences: List[str] = []
    tolerances = tolerances or {}

    if readings_a.strip_type != readings_b.strip_type:
        differences.append(STRIP_TYPE_DIFFERENCE)

    if readings_a.detected_set() != readings_b.detected_set():
        differences.append(DETECTED_PARAMETERS_DIFFERENCE)

    for parameter in ChemicalParameter:
        value_a = readings_a.value_of(parameter)
        value_b = readings_b.value_of(parameter)
        if value_a is None or value_b is None:
            continue
        tolerance = tolerances.get(parameter, CONSISTENCY_TOLERANCE)
        if abs(value_a - value_b) > tolerance:
            differences.append(parameter.label)

    if differences:
        logger.warning(f"[Consistency] Passes disagree on: {', '.join(differences)}")
    else:
        logger.info(f"[Consistency] Passes agree ({readings_a.strip_type})")

    return ConsistencyResult(differences=differences)


def canonical_reading(
    readings_a: ReadingSet,
    readings_b: ReadingSet,
    tolerances: Optional[Dict[ChemicalParameter, float]] = None,
) -> ReadingSet:
    """
    Trusted reading for two passes of the same sample.

    Raises:
        ConsistencyMismatch: the passes disagree
    """
    result = validate_consistency(readings_a, readings_b, tolerances)
    if not result.is_consistent:
        raise ConsistencyMismatch(result.differences)
    return readings_a


StripAnalyzer = Callable[[str], Awaitable[ReadingSet]]


async def run_dual_pass(analyze: StripAnalyzer, image_data: str) -> Tuple[ReadingSet, ReadingSet]:
    """
    Run two independent analysis passes concurrently and join them.

    Both passes must complete; the first failure propagates and fails the
    whole operation. A lone successful pass is never used.
    """
    logger.info("[Consistency] Starting dual-pass analysis")
    first, second = await asyncio.gather(analyze(image_data), analyze(image_data))
    return first, second
