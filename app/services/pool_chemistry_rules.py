"""
Deterministic pool chemistry rules and thresholds.

This module centralizes constants so the resolver, the consistency
validator and the dosage calculator stay deterministic, auditable and
consistent across services and tests.
"""
import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from app.services.water_chemistry_models import ChemicalParameter, Action, Priority

# ==================== CONSISTENCY ====================

# Absolute difference allowed between two passes, applied to every parameter
# in its native unit (pH points and ppm alike). Callers may pass a
# per-parameter table to validate_consistency instead.
CONSISTENCY_TOLERANCE = 0.1

# ==================== READING STATUS ====================

CRITICAL_LOW_FACTOR = 0.8
CRITICAL_HIGH_FACTOR = 1.2

# ==================== DOMAIN BOUNDS ====================

# (lower, upper) inclusive; None means unbounded
READING_BOUNDS = {
    ChemicalParameter.PH: (0.0, 14.0),
}
DEFAULT_READING_BOUNDS = (0.0, None)

# ==================== DOSING ====================


class DosingMethod(str, Enum):
    PROPORTIONAL = "proportional"  # deviation * volume * factor
    FIXED = "fixed"                # constant amount per treatment
    DILUTION = "dilution"          # % of water replaced, capped at factor


class PriorityBasis(str, Enum):
    DEVIATION_ABOVE = "deviation_above"  # deficit/excess > threshold
    VALUE_BELOW = "value_below"          # reading < threshold
    VALUE_ABOVE = "value_above"          # reading > threshold
    EXPOSURE = "exposure"                # outdoor vs indoor


@dataclass(frozen=True)
class DosingRule:
    """Static remediation record for one (parameter, direction)."""
    chemical: str
    unit: str
    method: DosingMethod
    factor: float
    reason: str
    instructions: str
    time_to_effect: str
    safety_notes: str
    alternatives: Tuple[str, ...]
    precision: int = 1
    unit_price: float = 0.0
    fixed_cost: Optional[float] = None
    priority_basis: PriorityBasis = PriorityBasis.VALUE_ABOVE
    breakpoints: Tuple[Tuple[float, Priority], ...] = ()
    default_priority: Priority = Priority.MEDIUM


DOSING_RULES = {
    (ChemicalParameter.FREE_CHLORINE, Action.INCREASE): DosingRule(
        chemical="Liquid Chlorine (12.5% Sodium Hypochlorite)",
        unit="gallons",
        method=DosingMethod.PROPORTIONAL,
        factor=0.00013,
        precision=2,
        unit_price=4.50,
        priority_basis=PriorityBasis.DEVIATION_ABOVE,
        breakpoints=((1.5, Priority.CRITICAL), (0.8, Priority.HIGH)),
        reason="Free chlorine at {value} ppm is below safe levels. Insufficient sanitization allows bacteria and algae growth.",
        instructions="Add liquid chlorine gradually around pool perimeter while pump is running. Pour slowly to avoid localized high concentrations.",
        time_to_effect="2-4 hours",
        safety_notes="Avoid swimming for at least 4 hours after addition. Ensure proper ventilation.",
        alternatives=(
            "Calcium Hypochlorite (Cal-Hypo)",
            "Trichlor tablets (slower acting)",
            "Shock treatment if severely low",
        ),
    ),
    (ChemicalParameter.FREE_CHLORINE, Action.DECREASE): DosingRule(
        chemical="Time/Sunlight Exposure",
        unit="hours",
        method=DosingMethod.FIXED,
        factor=0.0,
        fixed_cost=0.0,
        priority_basis=PriorityBasis.VALUE_ABOVE,
        breakpoints=((5.0, Priority.CRITICAL), (4.0, Priority.HIGH)),
        reason="Free chlorine at {value} ppm is too high. Can cause skin/eye irritation and equipment damage.",
        instructions="Stop adding chlorine immediately. Remove pool cover to allow UV degradation. Run pump continuously to circulate water.",
        time_to_effect="6-24 hours",
        safety_notes="Avoid swimming until levels drop below 3 ppm. Test every 2 hours.",
        alternatives=(
            "Sodium thiosulfate for rapid reduction",
            "Partial water replacement if extremely high",
        ),
    ),
    (ChemicalParameter.PH, Action.INCREASE): DosingRule(
        chemical="pH Increaser (Sodium Carbonate/Soda Ash)",
        unit="lbs",
        method=DosingMethod.PROPORTIONAL,
        factor=0.0002,
        precision=1,
        unit_price=2.25,
        priority_basis=PriorityBasis.VALUE_BELOW,
        breakpoints=((7.0, Priority.CRITICAL), (7.1, Priority.HIGH)),
        reason="pH at {value} is too acidic. Low pH corrodes equipment, irritates skin/eyes, and reduces chlorine effectiveness.",
        instructions="Pre-dissolve in bucket of pool water. Add slowly to deep end while pump runs. Wait 2 hours before retesting.",
        time_to_effect="2-6 hours",
        safety_notes="Wear gloves when handling. Avoid adding during peak sun hours.",
        alternatives=(
            "Sodium bicarbonate (slower, gentler)",
            "Borax (also raises alkalinity slightly)",
        ),
    ),
    (ChemicalParameter.PH, Action.DECREASE): DosingRule(
        chemical="pH Decreaser (Muriatic Acid)",
        unit="quarts",
        method=DosingMethod.PROPORTIONAL,
        factor=0.0003,
        precision=2,
        unit_price=3.75,
        priority_basis=PriorityBasis.VALUE_ABOVE,
        breakpoints=((8.0, Priority.CRITICAL), (7.8, Priority.HIGH)),
        reason="pH at {value} is too alkaline. High pH reduces chlorine effectiveness and can cause scaling on surfaces.",
        instructions="CRITICAL: Add acid to water, NEVER water to acid. Pour slowly into deep end with pump running. Maintain distance from pool edge.",
        time_to_effect="1-4 hours",
        safety_notes="Wear protective equipment. Ensure good ventilation. Keep acid away from metal surfaces.",
        alternatives=(
            "Dry acid (sodium bisulfate) - safer handling",
            "CO2 injection systems for frequent adjustment",
        ),
    ),
    (ChemicalParameter.TOTAL_ALKALINITY, Action.INCREASE): DosingRule(
        chemical="Alkalinity Increaser (Sodium Bicarbonate)",
        unit="lbs",
        method=DosingMethod.PROPORTIONAL,
        factor=0.000015,
        precision=1,
        unit_price=3.50,
        priority_basis=PriorityBasis.VALUE_BELOW,
        breakpoints=((60.0, Priority.HIGH),),
        reason="Total alkalinity at {value} ppm is too low. This causes pH instability and makes water balance difficult to maintain.",
        instructions="Dissolve completely in bucket first. Add gradually over 2-3 days to avoid pH spike. Test daily during adjustment.",
        time_to_effect="6-24 hours per addition",
        safety_notes="Add slowly to prevent cloudiness. Brush pool after addition to ensure mixing.",
        alternatives=(
            "Baking soda (food grade sodium bicarbonate)",
            "Alkalinity increaser with pH buffer",
        ),
    ),
    (ChemicalParameter.TOTAL_ALKALINITY, Action.DECREASE): DosingRule(
        chemical="pH Decreaser (Muriatic Acid) - Gradual Method",
        unit="quarts per treatment",
        method=DosingMethod.FIXED,
        factor=0.25,
        fixed_cost=0.95,
        priority_basis=PriorityBasis.VALUE_ABOVE,
        breakpoints=((150.0, Priority.MEDIUM),),
        default_priority=Priority.LOW,
        reason="Total alkalinity at {value} ppm is too high. This makes pH difficult to adjust and can cause scaling.",
        instructions="Lower alkalinity gradually with multiple small acid additions over several days. Monitor pH closely and adjust as needed.",
        time_to_effect="24-48 hours per treatment",
        safety_notes="This is a slow process requiring patience. Rapid alkalinity reduction can cause pH to crash.",
        alternatives=(
            "Aeration method (slower but chemical-free)",
            "Partial water replacement",
        ),
    ),
    (ChemicalParameter.CALCIUM_HARDNESS, Action.INCREASE): DosingRule(
        chemical="Calcium Chloride (Calcium Hardness Increaser)",
        unit="lbs",
        method=DosingMethod.PROPORTIONAL,
        factor=0.00001,
        precision=1,
        unit_price=4.25,
        priority_basis=PriorityBasis.VALUE_BELOW,
        breakpoints=((100.0, Priority.MEDIUM),),
        default_priority=Priority.LOW,
        reason="Calcium hardness at {value} ppm is too low. Soft water can etch plaster and corrode metal equipment.",
        instructions="Pre-dissolve completely in bucket. Add slowly while pump runs. Brush pool surfaces to prevent localized high concentrations.",
        time_to_effect="4-8 hours",
        safety_notes="Ensure complete dissolution to prevent white residue. Add during cooler parts of day.",
        alternatives=(
            "Calcium chloride dihydrate (more concentrated)",
            "Gradual increase over multiple days",
        ),
    ),
    (ChemicalParameter.CALCIUM_HARDNESS, Action.DECREASE): DosingRule(
        chemical="Fresh Water (Partial Drain & Refill)",
        unit="% of pool water",
        method=DosingMethod.DILUTION,
        factor=40.0,
        precision=0,
        fixed_cost=0.0,
        priority_basis=PriorityBasis.VALUE_ABOVE,
        breakpoints=((400.0, Priority.MEDIUM),),
        default_priority=Priority.LOW,
        reason="Calcium hardness at {value} ppm is too high. This can cause scaling on surfaces and equipment.",
        instructions="Drain calculated percentage of pool water and refill with fresh water. Test source water hardness first.",
        time_to_effect="Immediate upon refill",
        safety_notes="Check local water restrictions. Consider professional water testing for source water.",
        alternatives=(
            "Calcium reducer chemicals (specialty products)",
            "Reverse osmosis treatment",
            "Sequestering agents to prevent scaling",
        ),
    ),
    (ChemicalParameter.CYANURIC_ACID, Action.INCREASE): DosingRule(
        chemical="Cyanuric Acid (Pool Stabilizer/Conditioner)",
        unit="lbs",
        method=DosingMethod.PROPORTIONAL,
        factor=0.000013,
        precision=1,
        unit_price=6.75,
        priority_basis=PriorityBasis.EXPOSURE,
        reason="Cyanuric acid at {value} ppm is too low. Without stabilizer, chlorine degrades rapidly in sunlight.",
        instructions="Add to skimmer basket with pump running, or pre-dissolve in bucket. May take 24-48 hours to fully dissolve and register.",
        time_to_effect="24-48 hours",
        safety_notes="Undissolved stabilizer can temporarily cloud water. Be patient with dissolution process.",
        alternatives=(
            "Stabilized chlorine tablets (gradual increase)",
            "Liquid stabilizer (faster acting)",
        ),
    ),
    (ChemicalParameter.CYANURIC_ACID, Action.DECREASE): DosingRule(
        chemical="Fresh Water (Partial Drain & Refill)",
        unit="% of pool water",
        method=DosingMethod.DILUTION,
        factor=50.0,
        precision=0,
        fixed_cost=0.0,
        priority_basis=PriorityBasis.VALUE_ABOVE,
        breakpoints=((80.0, Priority.HIGH), (60.0, Priority.MEDIUM)),
        default_priority=Priority.LOW,
        reason="Cyanuric acid at {value} ppm is too high. This reduces chlorine effectiveness and can lead to chlorine lock.",
        instructions="Drain and refill calculated percentage. Cyanuric acid cannot be chemically reduced - only dilution works.",
        time_to_effect="Immediate upon refill",
        safety_notes="High CYA requires higher chlorine levels. Consider switching to unstabilized chlorine temporarily.",
        alternatives=(
            "Complete drain and refill (if extremely high)",
            "Gradual water replacement over time",
        ),
    ),
    (ChemicalParameter.BROMINE, Action.INCREASE): DosingRule(
        chemical="Bromine Tablets or Granules",
        unit="lbs",
        method=DosingMethod.PROPORTIONAL,
        factor=0.00008,
        precision=1,
        unit_price=8.50,
        priority_basis=PriorityBasis.DEVIATION_ABOVE,
        breakpoints=((1.5, Priority.HIGH),),
        reason="Bromine at {value} ppm is below effective sanitization levels.",
        instructions="Add bromine tablets to floating dispenser or use granular bromine dissolved in bucket. Maintain consistent levels.",
        time_to_effect="2-6 hours",
        safety_notes="Bromine is more stable at higher pH than chlorine. Ensure proper ventilation.",
        alternatives=(
            "Sodium bromide + chlorine shock activation",
            "Bromine granules for faster action",
        ),
    ),
}


def format_reading(value: float) -> str:
    """Render a reading the way it is printed on a strip chart (80, 7.4, 0.3)."""
    if math.isfinite(value) and value == int(value):
        return str(int(value))
    return f"{value:g}"
