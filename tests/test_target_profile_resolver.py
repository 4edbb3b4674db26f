"""
Tests for Target Profile Resolver.

1. Base ranges for chlorine pools
2. Saltwater lowers ideal free chlorine only
3. Bromine pools keep free chlorine near zero
4. Unsupported sanitizer types are rejected
5. Reading status bands (ok / warning / critical)
"""
import pytest

from app.services.target_profile_resolver import (
    BASE_TARGETS,
    classify_reading,
    resolve_target_profile,
    target_for,
)
from app.services.water_chemistry_errors import UnsupportedProfileError
from app.services.water_chemistry_models import (
    ChemicalParameter,
    ReadingStatus,
    SanitizerType,
    TargetRange,
)


class TestResolveTargetProfile:
    """Tests for resolve_target_profile()."""

    def test_chlorine_base_profile(self):
        """Chlorine pools use the base table unchanged."""
        profile = resolve_target_profile(SanitizerType.CHLORINE)

        assert profile[ChemicalParameter.FREE_CHLORINE] == TargetRange(1.0, 3.0, 2.0, "ppm")
        assert profile[ChemicalParameter.PH] == TargetRange(7.2, 7.6, 7.4, "")
        assert profile[ChemicalParameter.TOTAL_ALKALINITY] == TargetRange(80, 120, 100, "ppm")
        assert profile[ChemicalParameter.CALCIUM_HARDNESS] == TargetRange(150, 300, 225, "ppm")
        assert profile[ChemicalParameter.CYANURIC_ACID] == TargetRange(30, 50, 40, "ppm")
        assert profile[ChemicalParameter.BROMINE] == TargetRange(2.0, 4.0, 3.0, "ppm")

    def test_saltwater_lowers_chlorine_ideal(self):
        """Saltwater only changes the free chlorine ideal."""
        profile = resolve_target_profile(SanitizerType.SALTWATER)

        free_chlorine = profile[ChemicalParameter.FREE_CHLORINE]
        assert free_chlorine.ideal == 1.5
        assert free_chlorine.min == 1.0
        assert free_chlorine.max == 3.0

        for parameter, target in BASE_TARGETS.items():
            if parameter != ChemicalParameter.FREE_CHLORINE:
                assert profile[parameter] == target

    def test_bromine_redefines_free_chlorine(self):
        """Bromine is the sanitizer, so free chlorine should stay near zero."""
        profile = resolve_target_profile(SanitizerType.BROMINE)

        assert profile[ChemicalParameter.FREE_CHLORINE] == TargetRange(0, 0.5, 0, "ppm")
        assert profile[ChemicalParameter.BROMINE] == TargetRange(2.0, 4.0, 3.0, "ppm")

    def test_accepts_plain_strings(self):
        """Sanitizer names from config/JSON are accepted case-insensitively."""
        assert resolve_target_profile(" Saltwater ") == resolve_target_profile(SanitizerType.SALTWATER)

    def test_unsupported_sanitizer_raises(self):
        """Unknown sanitizer is a configuration error."""
        with pytest.raises(UnsupportedProfileError) as exc_info:
            resolve_target_profile("ozone")

        assert exc_info.value.sanitizer_type == "ozone"

    @pytest.mark.parametrize("sanitizer", list(SanitizerType))
    def test_resolver_is_pure(self, sanitizer):
        """Same input gives equal but independent profiles."""
        first = resolve_target_profile(sanitizer)
        second = resolve_target_profile(sanitizer)

        assert first == second
        assert first is not second

        first.pop(ChemicalParameter.PH)
        assert ChemicalParameter.PH in resolve_target_profile(sanitizer)

    @pytest.mark.parametrize("sanitizer", list(SanitizerType))
    def test_ranges_are_well_formed(self, sanitizer):
        """min <= ideal <= max and nothing negative."""
        for target in resolve_target_profile(sanitizer).values():
            assert 0 <= target.min <= target.ideal <= target.max


class TestTargetFor:
    """Tests for target_for()."""

    def test_total_chlorine_uses_free_chlorine_range(self):
        profile = resolve_target_profile(SanitizerType.SALTWATER)

        assert target_for(profile, ChemicalParameter.TOTAL_CHLORINE) == profile[ChemicalParameter.FREE_CHLORINE]

    def test_direct_parameter(self):
        profile = resolve_target_profile(SanitizerType.CHLORINE)

        assert target_for(profile, ChemicalParameter.PH).ideal == 7.4


class TestClassifyReading:
    """Tests for classify_reading() status bands."""

    FREE_CHLORINE = TargetRange(1.0, 3.0, 2.0, "ppm")

    @pytest.mark.parametrize("value,expected", [
        (1.0, ReadingStatus.OK),
        (2.0, ReadingStatus.OK),
        (3.0, ReadingStatus.OK),
        (0.9, ReadingStatus.WARNING),   # below min, above 80% of min
        (3.5, ReadingStatus.WARNING),   # above max, below 120% of max
        (0.5, ReadingStatus.CRITICAL),  # below 0.8
        (3.7, ReadingStatus.CRITICAL),  # above 3.6
    ])
    def test_status_bands(self, value, expected):
        assert classify_reading(value, self.FREE_CHLORINE) == expected
