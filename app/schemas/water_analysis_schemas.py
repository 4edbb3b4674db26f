"""
Pydantic schemas for the Water Analysis module.
JSON bodies use camelCase keys; Python attributes stay snake_case.
"""
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Optional, List, Dict
from datetime import datetime

from app.services.water_chemistry_models import (
    Action,
    Exposure,
    Priority,
    ReadingStatus,
    SanitizerType,
)


class CamelModel(BaseModel):
    """Base schema accepting both camelCase and snake_case keys."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ==================== REQUEST SCHEMAS ====================

class PoolProfileSchema(CamelModel):
    """Pool setup data."""
    volume: float = Field(..., gt=0, description="Pool volume in gallons")
    sanitizer_type: SanitizerType = Field(default=SanitizerType.CHLORINE, description="chlorine, saltwater or bromine")
    exposure: Exposure = Field(default=Exposure.OUTDOOR, description="indoor or outdoor")


class ReadingSetSchema(CamelModel):
    """One test strip analysis pass. Unknown keys are rejected."""
    model_config = ConfigDict(extra="forbid")

    strip_type: str = Field(..., description="Strip identification, e.g. 5-in-1")
    detected_parameters: List[str] = Field(default_factory=list, description="Parameters actually read off the strip")
    confidence: float = Field(default=0.0, ge=0, le=1, description="Reading confidence 0-1")
    timestamp: Optional[datetime] = None

    # Readings (ppm unless noted)
    free_chlorine: Optional[float] = None
    total_chlorine: Optional[float] = None
    ph: Optional[float] = Field(None, alias="pH", description="pH (unitless)")
    total_alkalinity: Optional[float] = None
    calcium_hardness: Optional[float] = None
    cyanuric_acid: Optional[float] = None
    bromine: Optional[float] = None
    nitrates: Optional[float] = None
    phosphates: Optional[float] = Field(None, description="Phosphates in ppb")

    analysis_notes: Optional[str] = Field(None, max_length=4000)


class RecommendationsRequest(CamelModel):
    """Two independent passes of the same sample plus the pool profile."""
    pool_profile: PoolProfileSchema
    reading_set_a: ReadingSetSchema
    reading_set_b: ReadingSetSchema


class AnalyzeStripRequest(CamelModel):
    """Test strip photo to analyze twice."""
    pool_profile: PoolProfileSchema
    image_data: str = Field(..., min_length=1, description="Data URL or https URL of the strip photo")


# ==================== RESPONSE SCHEMAS ====================

class TargetRangeSchema(CamelModel):
    """Acceptable band for one parameter."""
    min: float
    max: float
    ideal: float
    unit: str


class RecommendationSchema(CamelModel):
    """One remediation action."""
    parameter: str
    chemical: str
    action: Action
    amount: float = Field(ge=0)
    unit: str
    priority: Priority
    reason: str
    instructions: str
    cost: Optional[float] = Field(None, ge=0)
    time_to_effect: Optional[str] = None
    safety_notes: Optional[str] = None
    alternative_options: List[str] = Field(default_factory=list)


class ReadingSummarySchema(CamelModel):
    """Detected reading next to its target band."""
    parameter: str
    value: float
    target: Optional[TargetRangeSchema] = None
    status: Optional[ReadingStatus] = None


class WaterAnalysisResponse(CamelModel):
    """Either an inconsistent report or the full dosing result."""
    status: str = Field(..., description="ok or inconsistent")
    differences: List[str] = Field(default_factory=list)
    target_profile: Optional[Dict[str, TargetRangeSchema]] = None
    recommendations: List[RecommendationSchema] = Field(default_factory=list)
    reading_summary: List[ReadingSummarySchema] = Field(default_factory=list)
    canonical_readings: Optional[ReadingSetSchema] = None
    total_estimated_cost: float = 0.0
    strip_handling_tips: Optional[List[str]] = None


class TargetProfileResponse(CamelModel):
    """Target ranges for a sanitizer type."""
    sanitizer_type: SanitizerType
    targets: Dict[str, TargetRangeSchema]
