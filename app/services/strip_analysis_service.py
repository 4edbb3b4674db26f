"""
Test Strip Analysis Service.

Reads a pool test strip photo with a GPT-4o vision call and returns one
ReadingSet. The dosing core never calls this service directly: it is the
inference collaborator that feeds the dual-pass consistency barrier.
"""
import os
import json
import logging
from typing import Any, Dict, Optional

from openai import AsyncOpenAI

from app.services.water_chemistry_errors import StripAnalysisError, StripAnalysisUnavailable
from app.services.water_chemistry_models import ReadingSet

logger = logging.getLogger(__name__)

AI_INTEGRATIONS_OPENAI_API_KEY = os.environ.get("AI_INTEGRATIONS_OPENAI_API_KEY")
AI_INTEGRATIONS_OPENAI_BASE_URL = os.environ.get("AI_INTEGRATIONS_OPENAI_BASE_URL")
STRIP_ANALYSIS_MODEL = os.environ.get("STRIP_ANALYSIS_MODEL", "gpt-4o")

# JSON reading keys returned by the model -> ReadingSet fields
READING_KEYS = {
    "freeChlorine": "free_chlorine",
    "totalChlorine": "total_chlorine",
    "pH": "ph",
    "totalAlkalinity": "total_alkalinity",
    "calciumHardness": "calcium_hardness",
    "cyanuricAcid": "cyanuric_acid",
    "bromine": "bromine",
    "nitrates": "nitrates",
    "phosphates": "phosphates",
}

REQUIRED_SECTIONS = ("visualDebugging", "stripIdentification", "readings")

STRIP_HANDLING_TIPS = [
    "Ensure test strip is fully submerged for exactly 2 seconds",
    "Compare colors immediately after removing from water (within 15 seconds)",
    "Use natural daylight or bright white light for best color matching",
    "Hold strip level and avoid touching the test pads",
]


def _as_number(value: Any) -> Optional[float]:
    """Numeric reading or None ("UNDETECTABLE", null, booleans)."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value).strip())
    except ValueError:
        return None


def parse_strip_analysis(analysis: Dict[str, Any]) -> ReadingSet:
    """
    Build a ReadingSet from the model's JSON answer.

    Raises:
        StripAnalysisError: required sections are missing or malformed
    """
    if not isinstance(analysis, dict):
        raise StripAnalysisError("AI response has unexpected structure")

    missing = [section for section in REQUIRED_SECTIONS if not analysis.get(section)]
    if missing:
        raise StripAnalysisError(f"AI response missing required fields: {', '.join(missing)}")

    if not isinstance(analysis["stripIdentification"], dict) or not isinstance(analysis["readings"], dict):
        raise StripAnalysisError("AI response has unexpected structure")

    readings = analysis["readings"]
    values = {field_name: _as_number(readings.get(key)) for key, field_name in READING_KEYS.items()}

    detected = analysis.get("detectedParameters") or []
    if not isinstance(detected, list):
        raise StripAnalysisError("AI response has unexpected structure")

    confidence = _as_number(analysis.get("readingConfidence"))
    notes = analysis.get("analysisNotes")
    return ReadingSet(
        strip_type=str(analysis["stripIdentification"].get("stripType") or ""),
        detected_parameters=tuple(str(name) for name in detected),
        confidence=confidence if confidence is not None else 0.0,
        analysis_notes=str(notes) if notes is not None else None,
        **values,
    )


class StripAnalysisService:
    """
    Pool test strip reader backed by GPT-4o vision.

    One call = one independent analysis pass. Failures are raised, never
    replaced by fabricated readings.
    """

    MODEL = STRIP_ANALYSIS_MODEL

    ANALYSIS_PROMPT = """You are a precise pool test strip analyzer. Follow this EXACT protocol:

STEP 1: COUNT COLOR PADS
- Count the number of distinct color pads visible on the strip and describe their arrangement.
- If you cannot clearly see individual pads, report "UNCLEAR_STRIP_VISIBILITY".

STEP 2: IDENTIFY STRIP TYPE
Based on pad count ONLY:
- 3 pads = 3-in-1 strip (Free Chlorine, pH, Total Alkalinity)
- 4 pads = 4-in-1 strip (adds Calcium Hardness OR Cyanuric Acid)
- 5 pads = 5-in-1 strip (Free Chlorine, pH, Total Alkalinity, Calcium Hardness, Cyanuric Acid)
- 6 pads = 6-in-1 strip (adds Total Chlorine OR Bromine)
- 7 pads = 7-in-1 strip (all major parameters)

STEP 3: VISUAL DEBUGGING
For each pad give position, observed color, identified parameter and confidence (high/medium/low).

STEP 4: LOCATE COLOR REFERENCE CHART
If no reference chart is visible, report "NO_REFERENCE_CHART".

STEP 5: CONSERVATIVE MATCHING
- Only provide readings for pads you can CLEARLY identify and match.
- If uncertain about any reading, mark it as "UNDETECTABLE".
- Use only standard test strip values (no interpolation).

Use these parameter names in detectedParameters: "Free Chlorine", "Total Chlorine", "pH",
"Total Alkalinity", "Calcium Hardness", "Cyanuric Acid", "Bromine".

RESPONSE FORMAT (JSON only):
{
  "visualDebugging": {"padsVisible": 0, "padArrangement": "", "padDescriptions": [], "referenceChartVisible": false},
  "stripIdentification": {"stripType": "", "identificationConfidence": 0.0, "brandDetected": null},
  "readings": {"freeChlorine": null, "pH": null, "totalAlkalinity": null, "calciumHardness": null,
               "cyanuricAcid": null, "totalChlorine": null, "bromine": null},
  "readingConfidence": 0.0,
  "detectedParameters": [],
  "undetectableParameters": [],
  "analysisNotes": "",
  "errors": []
}"""

    def __init__(self, api_key: Optional[str] = None, base_url: Optional[str] = None):
        """Initialize the vision client when an API key is configured."""
        self.client = None
        api_key = api_key or AI_INTEGRATIONS_OPENAI_API_KEY
        base_url = base_url or AI_INTEGRATIONS_OPENAI_BASE_URL

        if api_key:
            self.client = AsyncOpenAI(api_key=api_key, base_url=base_url)
            logger.info(f"✓ Strip analysis initialized with {self.MODEL}")
        else:
            logger.warning("✗ Strip analysis disabled - OpenAI integration not configured")

    @property
    def is_configured(self) -> bool:
        return self.client is not None

    async def analyze(self, image_data: str) -> ReadingSet:
        """
        Run one analysis pass on a data-URL or https image.

        Raises:
            StripAnalysisUnavailable: no API key configured
            StripAnalysisError: API error or unusable answer
        """
        if not self.client:
            raise StripAnalysisUnavailable("Strip analysis is not configured")

        try:
            response = await self.client.chat.completions.create(
                model=self.MODEL,
                messages=[{
                    "role": "user",
                    "content": [
                        {"type": "text", "text": self.ANALYSIS_PROMPT},
                        {"type": "image_url", "image_url": {"url": image_data}},
                    ],
                }],
                max_tokens=1200,
                temperature=0,
                response_format={"type": "json_object"},
            )
        except Exception as e:
            logger.error(f"[StripAnalysis] API error: {e}")
            raise StripAnalysisError("Strip analysis request failed", detail=str(e)) from e

        content = response.choices[0].message.content if response.choices else None
        if not content:
            logger.warning("[StripAnalysis] Empty response from model")
            raise StripAnalysisError("Invalid response from strip analysis model")

        try:
            analysis = json.loads(content)
        except json.JSONDecodeError as e:
            logger.error(f"[StripAnalysis] Failed to parse model response: {e}")
            raise StripAnalysisError("Failed to parse AI response as JSON", detail=str(e)) from e

        readings = parse_strip_analysis(analysis)
        logger.info(
            f"[StripAnalysis] {readings.strip_type}: {len(readings.detected_parameters)} parameters, "
            f"confidence {readings.confidence:.2f}"
        )
        return readings


# Singleton instance
_strip_analysis_service: Optional[StripAnalysisService] = None


def get_strip_analysis_service() -> StripAnalysisService:
    """Get or create strip analysis service singleton."""
    global _strip_analysis_service
    if _strip_analysis_service is None:
        _strip_analysis_service = StripAnalysisService()
    return _strip_analysis_service
