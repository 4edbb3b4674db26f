"""
Water Analysis Router.
Provides endpoints for consistency-checked pool dosing recommendations.
"""
from dataclasses import asdict
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException
import logging

from app.schemas.water_analysis_schemas import (
    AnalyzeStripRequest,
    PoolProfileSchema,
    ReadingSetSchema,
    ReadingSummarySchema,
    RecommendationSchema,
    RecommendationsRequest,
    TargetProfileResponse,
    TargetRangeSchema,
    WaterAnalysisResponse,
)
from app.services.strip_analysis_service import (
    STRIP_HANDLING_TIPS,
    StripAnalysisService,
    get_strip_analysis_service,
)
from app.services.target_profile_resolver import TargetProfile, resolve_target_profile
from app.services.water_analysis_pipeline import AnalysisOutcome, analyze_strip_image, evaluate_readings
from app.services.water_chemistry_errors import (
    InvalidPoolProfileError,
    OutOfDomainReadingError,
    StripAnalysisError,
    StripAnalysisUnavailable,
    UnsupportedProfileError,
)
from app.services.water_chemistry_models import PoolProfile, ReadingSet, Recommendation

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/water-analysis", tags=["water-analysis"])


def pool_schema_to_data(pool: PoolProfileSchema) -> PoolProfile:
    """Convert request schema to service data class."""
    return PoolProfile(
        volume=pool.volume,
        sanitizer_type=pool.sanitizer_type,
        exposure=pool.exposure,
    )


def reading_schema_to_data(reading: ReadingSetSchema) -> ReadingSet:
    """Convert request schema to service data class."""
    values = reading.model_dump(exclude={"timestamp", "detected_parameters"})
    if reading.timestamp is not None:
        values["timestamp"] = reading.timestamp
    return ReadingSet(detected_parameters=tuple(reading.detected_parameters), **values)


def reading_data_to_schema(reading: ReadingSet) -> ReadingSetSchema:
    values = asdict(reading)
    values["detected_parameters"] = list(reading.detected_parameters)
    return ReadingSetSchema(**values)


def profile_to_schema(profile: TargetProfile):
    return {
        parameter.value: TargetRangeSchema(**asdict(target_range))
        for parameter, target_range in profile.items()
    }


def recommendation_to_schema(recommendation: Recommendation) -> RecommendationSchema:
    return RecommendationSchema(
        parameter=recommendation.parameter.value,
        chemical=recommendation.chemical,
        action=recommendation.action,
        amount=recommendation.amount,
        unit=recommendation.unit,
        priority=recommendation.priority,
        reason=recommendation.reason,
        instructions=recommendation.instructions,
        cost=recommendation.cost,
        time_to_effect=recommendation.time_to_effect,
        safety_notes=recommendation.safety_notes,
        alternative_options=list(recommendation.alternative_options),
    )


def outcome_to_response(outcome: AnalysisOutcome, tips: Optional[list] = None) -> WaterAnalysisResponse:
    """Convert pipeline outcome to API response."""
    return WaterAnalysisResponse(
        status=outcome.status.value,
        differences=outcome.differences,
        target_profile=profile_to_schema(outcome.target_profile) if outcome.target_profile else None,
        recommendations=[recommendation_to_schema(r) for r in outcome.recommendations],
        reading_summary=[
            ReadingSummarySchema(
                parameter=item.parameter.value,
                value=item.value,
                target=TargetRangeSchema(**asdict(item.target)) if item.target else None,
                status=item.status,
            )
            for item in outcome.reading_summary
        ],
        canonical_readings=(
            reading_data_to_schema(outcome.canonical_readings) if outcome.canonical_readings else None
        ),
        total_estimated_cost=outcome.total_estimated_cost,
        strip_handling_tips=tips,
    )


@router.get("/targets/{sanitizer_type}", response_model=TargetProfileResponse)
async def get_target_profile(sanitizer_type: str):
    """Get target ranges for a sanitizer type (chlorine, saltwater, bromine)."""
    try:
        profile = resolve_target_profile(sanitizer_type)
    except UnsupportedProfileError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return TargetProfileResponse(
        sanitizer_type=sanitizer_type.strip().lower(),
        targets=profile_to_schema(profile),
    )


@router.post("/recommendations", response_model=WaterAnalysisResponse)
async def calculate_recommendations(request: RecommendationsRequest):
    """
    Calculate dosing recommendations from two analysis passes.

    Both passes must agree; otherwise the response has status
    "inconsistent" and lists the differing fields, with no dosing.
    """
    pool = pool_schema_to_data(request.pool_profile)
    readings_a = reading_schema_to_data(request.reading_set_a)
    readings_b = reading_schema_to_data(request.reading_set_b)

    try:
        outcome = evaluate_readings(pool, readings_a, readings_b)
    except UnsupportedProfileError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except (InvalidPoolProfileError, OutOfDomainReadingError) as e:
        logger.warning(f"[WaterAnalysis] Rejected request: {e}")
        raise HTTPException(status_code=422, detail=str(e))

    return outcome_to_response(outcome)


@router.post("/analyze-strip", response_model=WaterAnalysisResponse)
async def analyze_strip(
    request: AnalyzeStripRequest,
    service: StripAnalysisService = Depends(get_strip_analysis_service),
):
    """
    Analyze a test strip photo twice and calculate recommendations.

    Fails when either analysis pass fails; never uses a lone pass.
    """
    pool = pool_schema_to_data(request.pool_profile)

    try:
        outcome = await analyze_strip_image(pool, request.image_data, analyzer=service.analyze)
    except StripAnalysisUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))
    except StripAnalysisError as e:
        raise HTTPException(status_code=502, detail=str(e))
    except UnsupportedProfileError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except (InvalidPoolProfileError, OutOfDomainReadingError) as e:
        logger.warning(f"[WaterAnalysis] Rejected strip analysis: {e}")
        raise HTTPException(status_code=422, detail=str(e))

    return outcome_to_response(outcome, tips=STRIP_HANDLING_TIPS)
