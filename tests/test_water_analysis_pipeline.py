"""
Tests for Water Analysis Pipeline.

1. Consistent passes produce targets, recommendations and a reading summary
2. Inconsistent passes halt before any dosing
3. Dual-pass strip analysis feeds the same evaluation
"""
import asyncio

import pytest

from app.services.water_analysis_pipeline import (
    AnalysisStatus,
    analyze_strip_image,
    evaluate_readings,
    summarize_readings,
)
from app.services.target_profile_resolver import resolve_target_profile
from app.services.water_chemistry_errors import StripAnalysisError, UnsupportedProfileError
from app.services.water_chemistry_models import (
    ChemicalParameter,
    PoolProfile,
    ReadingStatus,
    SanitizerType,
)


@pytest.fixture
def pool():
    return PoolProfile(volume=20000, sanitizer_type=SanitizerType.CHLORINE)


class TestEvaluateReadings:
    """Tests for evaluate_readings()."""

    def test_consistent_passes(self, pool, make_readings):
        a = make_readings(free_chlorine=0.3, ph=7.4)
        b = make_readings(free_chlorine=0.35, ph=7.4)

        outcome = evaluate_readings(pool, a, b)

        assert outcome.status == AnalysisStatus.OK
        assert outcome.differences == []
        assert outcome.canonical_readings is a
        assert outcome.target_profile == resolve_target_profile(SanitizerType.CHLORINE)
        assert [r.amount for r in outcome.recommendations] == [4.42]
        assert outcome.total_estimated_cost == 19.89

    def test_inconsistent_passes_halt(self, pool, make_readings):
        a = make_readings(free_chlorine=0.3, ph=7.4)
        b = make_readings(free_chlorine=0.3, ph=7.6)

        outcome = evaluate_readings(pool, a, b)

        assert outcome.status == AnalysisStatus.INCONSISTENT
        assert outcome.differences == ["pH"]
        assert outcome.recommendations == []
        assert outcome.target_profile is None
        assert outcome.canonical_readings is None

    def test_inconsistency_wins_over_bad_profile(self, make_readings):
        """Mismatch is reported before the sanitizer is resolved."""
        pool = PoolProfile(volume=20000, sanitizer_type="ozone")

        outcome = evaluate_readings(pool, make_readings(ph=7.4), make_readings(ph=8.0))

        assert outcome.status == AnalysisStatus.INCONSISTENT

    def test_unsupported_profile_raises(self, make_readings):
        pool = PoolProfile(volume=20000, sanitizer_type="ozone")

        with pytest.raises(UnsupportedProfileError):
            evaluate_readings(pool, make_readings(ph=7.4), make_readings(ph=7.4))


class TestSummarizeReadings:

    def test_summary_statuses(self, make_readings):
        profile = resolve_target_profile(SanitizerType.CHLORINE)
        readings = make_readings(free_chlorine=0.3, total_chlorine=0.5, ph=7.4, total_alkalinity=90)

        summary = summarize_readings(readings, profile)

        assert [(item.parameter, item.status) for item in summary] == [
            (ChemicalParameter.FREE_CHLORINE, ReadingStatus.CRITICAL),
            (ChemicalParameter.TOTAL_CHLORINE, ReadingStatus.CRITICAL),
            (ChemicalParameter.PH, ReadingStatus.OK),
            (ChemicalParameter.TOTAL_ALKALINITY, ReadingStatus.OK),
        ]
        assert summary[1].target == profile[ChemicalParameter.FREE_CHLORINE]


class TestAnalyzeStripImage:
    """Tests for analyze_strip_image()."""

    def test_agreeing_passes(self, pool, make_readings):
        async def analyze(image_data):
            return make_readings(ph=8.2)

        outcome = asyncio.run(analyze_strip_image(pool, "data:image/png;base64,AAAA", analyzer=analyze))

        assert outcome.status == AnalysisStatus.OK
        assert [r.amount for r in outcome.recommendations] == [4.8]

    def test_disagreeing_passes(self, pool, make_readings):
        passes = iter([make_readings(strip_type="5-in-1", ph=7.4), make_readings(strip_type="6-in-1", ph=7.4)])

        async def analyze(image_data):
            return next(passes)

        outcome = asyncio.run(analyze_strip_image(pool, "data:image/png;base64,AAAA", analyzer=analyze))

        assert outcome.status == AnalysisStatus.INCONSISTENT
        assert outcome.differences == ["strip type identification"]

    def test_failed_pass_propagates(self, pool):
        async def analyze(image_data):
            raise StripAnalysisError("bad answer")

        with pytest.raises(StripAnalysisError):
            asyncio.run(analyze_strip_image(pool, "data:image/png;base64,AAAA", analyzer=analyze))
