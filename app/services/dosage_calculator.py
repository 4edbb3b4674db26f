"""
Dosage Calculator Service.

Turns one canonical test strip reading into prioritized dosing actions:
- Only parameters actually detected on the strip are considered
- In-range readings produce nothing
- Low readings are raised toward the ideal value with a chemical dose
- High readings are lowered by acid, time or partial water replacement
- Actions are ordered critical > high > medium > low, ties keep
  evaluation order

All calculations are pure: same inputs, same list.
"""
import logging
import math
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional

from app.services.pool_chemistry_rules import (
    DEFAULT_READING_BOUNDS,
    DOSING_RULES,
    READING_BOUNDS,
    DosingMethod,
    DosingRule,
    PriorityBasis,
    format_reading,
)
from app.services.target_profile_resolver import TargetProfile, resolve_target_profile
from app.services.water_chemistry_errors import InvalidPoolProfileError, OutOfDomainReadingError
from app.services.water_chemistry_models import (
    Action,
    ChemicalParameter,
    Exposure,
    PoolProfile,
    Priority,
    ReadingSet,
    Recommendation,
    TargetRange,
)

logger = logging.getLogger(__name__)


def round_half_up(value: float, digits: int) -> float:
    """Round like a printed decimal (2.25 -> 2.3), not banker's rounding."""
    quantum = Decimal(1).scaleb(-digits)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))


class DosageCalculator:
    """
    Calculator for pool dosing recommendations.

    Methodology:
    1. Reject out-of-domain readings and malformed pool volume
    2. For each detected parameter, compare against its target range
    3. Size the dose from the distance to the ideal value and the volume
    4. Assign priority from parameter-specific breakpoints
    5. Stable sort by priority
    """

    def validate_volume(self, volume: float) -> None:
        """Volume must be a positive, finite number of gallons."""
        if volume is None or not math.isfinite(volume) or volume <= 0:
            raise InvalidPoolProfileError(f"Pool volume must be a positive number of gallons, got {volume!r}")

    def validate_readings(self, readings: ReadingSet) -> None:
        """
        Check detected values against physical bounds.

        Raises:
            OutOfDomainReadingError: pH outside 0-14, negative concentration,
                non-finite value or confidence outside 0-1
        """
        if not math.isfinite(readings.confidence) or not 0.0 <= readings.confidence <= 1.0:
            raise OutOfDomainReadingError("confidence", readings.confidence, "must be within 0-1")

        for parameter, value in readings.detected_values().items():
            if not math.isfinite(value):
                raise OutOfDomainReadingError(parameter.value, value, "must be a finite number")
            lower, upper = READING_BOUNDS.get(parameter, DEFAULT_READING_BOUNDS)
            if lower is not None and value < lower:
                raise OutOfDomainReadingError(parameter.value, value, f"must be >= {lower}")
            if upper is not None and value > upper:
                raise OutOfDomainReadingError(parameter.value, value, f"must be <= {upper}")

    def calculate_amount(self, rule: DosingRule, value: float, target: TargetRange, volume: float) -> float:
        """Dose for one rule, rounded to the rule's precision."""
        if rule.method == DosingMethod.FIXED:
            return rule.factor

        if rule.method == DosingMethod.DILUTION:
            excess_pct = ((value - target.max) / target.max) * 100
            return round_half_up(min(excess_pct, rule.factor), rule.precision)

        deviation = abs(target.ideal - value)
        return round_half_up(deviation * volume * rule.factor, rule.precision)

    def determine_priority(
        self,
        rule: DosingRule,
        value: float,
        target: TargetRange,
        exposure: Exposure,
    ) -> Priority:
        """First matching breakpoint wins; otherwise the rule's default."""
        if rule.priority_basis == PriorityBasis.EXPOSURE:
            return Priority.MEDIUM if exposure == Exposure.OUTDOOR else Priority.LOW

        deviation = abs(target.ideal - value)
        for threshold, priority in rule.breakpoints:
            if rule.priority_basis == PriorityBasis.DEVIATION_ABOVE and deviation > threshold:
                return priority
            if rule.priority_basis == PriorityBasis.VALUE_ABOVE and value > threshold:
                return priority
            if rule.priority_basis == PriorityBasis.VALUE_BELOW and value < threshold:
                return priority
        return rule.default_priority

    def calculate_cost(self, rule: DosingRule, amount: float) -> float:
        if rule.fixed_cost is not None:
            return rule.fixed_cost
        return round_half_up(amount * rule.unit_price, 2)

    def build_recommendation(
        self,
        parameter: ChemicalParameter,
        action: Action,
        value: float,
        target: TargetRange,
        volume: float,
        exposure: Exposure,
    ) -> Optional[Recommendation]:
        """Recommendation for one out-of-range parameter, None when no remedy exists."""
        rule = DOSING_RULES.get((parameter, action))
        if rule is None:
            logger.debug(f"[Dosage] No {action.value} rule for {parameter.value}, skipping")
            return None

        amount = self.calculate_amount(rule, value, target, volume)
        return Recommendation(
            parameter=parameter,
            chemical=rule.chemical,
            action=action,
            amount=amount,
            unit=rule.unit,
            priority=self.determine_priority(rule, value, target, exposure),
            reason=rule.reason.format(value=format_reading(value)),
            instructions=rule.instructions,
            cost=self.calculate_cost(rule, amount),
            time_to_effect=rule.time_to_effect,
            safety_notes=rule.safety_notes,
            alternative_options=rule.alternatives,
        )

    def recommend(
        self,
        readings: ReadingSet,
        profile: TargetProfile,
        volume: float,
        exposure: Exposure = Exposure.OUTDOOR,
    ) -> List[Recommendation]:
        """
        Ordered dosing recommendations for one canonical reading.

        Args:
            readings: Canonical reading (already consistency-checked)
            profile: Target ranges for the pool's sanitizer
            volume: Pool volume in gallons
            exposure: Indoor/outdoor, affects stabilizer priority

        Returns:
            Recommendations sorted by descending priority (stable)

        Raises:
            InvalidPoolProfileError: non-positive volume
            OutOfDomainReadingError: implausible reading
        """
        self.validate_volume(volume)
        self.validate_readings(readings)

        recommendations: List[Recommendation] = []
        for parameter, value in readings.detected_values().items():
            target = profile.get(parameter)
            if target is None or target.contains(value):
                continue

            action = Action.INCREASE if value < target.min else Action.DECREASE
            recommendation = self.build_recommendation(parameter, action, value, target, volume, exposure)
            if recommendation is not None:
                logger.info(
                    f"[Dosage] {parameter.value}={format_reading(value)} -> {action.value} "
                    f"{recommendation.amount} {recommendation.unit} ({recommendation.priority.value})"
                )
                recommendations.append(recommendation)

        # sorted() is stable: equal priorities keep evaluation order
        return sorted(recommendations, key=lambda r: r.priority.weight, reverse=True)

    def recommend_for_pool(self, readings: ReadingSet, pool: PoolProfile) -> List[Recommendation]:
        """Resolve the pool's targets and recommend in one step."""
        profile = resolve_target_profile(pool.sanitizer_type)
        return self.recommend(readings, profile, pool.volume, pool.exposure)

    def estimate_total_cost(self, recommendations: List[Recommendation]) -> float:
        return round_half_up(sum(r.cost or 0.0 for r in recommendations), 2)


dosage_calculator = DosageCalculator()
