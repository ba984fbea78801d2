"""Performance benchmarks for mapping runs.

These tests verify that mapping performance meets acceptable thresholds.
Run with: pytest tests/test_performance.py -v
"""

import time

import pytest

from esas2obis import DwcConverter
from esas2obis.hierarchy import SurveyHierarchy

from .fixtures import create_full_survey, create_large_survey


@pytest.fixture(scope="module")
def large_survey():
    """20 samples x 50 positions x 5 observations = 5000 observations."""
    return create_large_survey()


class TestMappingPerformance:
    """Benchmark tests for mapping runs."""

    def test_small_survey_with_validation(self):
        """The full fixture survey should map and validate in <500ms."""
        converter = DwcConverter()

        start = time.perf_counter()
        result = converter.convert(create_full_survey())
        elapsed = time.perf_counter() - start

        assert result.is_valid, f"Mapping errors: {result.errors}"
        assert elapsed < 0.500, f"Mapping took {elapsed*1000:.1f}ms, expected <500ms"

    def test_large_survey_without_validation(self, large_survey):
        """5000 observations should map in <2s."""
        converter = DwcConverter(validate_output=False)

        start = time.perf_counter()
        result = converter.convert(large_survey)
        elapsed = time.perf_counter() - start

        assert result.is_valid, f"Mapping errors: {result.errors}"
        assert len(result.occurrence) == 5000
        assert elapsed < 2.0, f"Mapping took {elapsed:.2f}s, expected <2s"

    def test_join_scales_linearly(self, large_survey):
        """Indexed joins: 5000 observations should join in <250ms."""
        start = time.perf_counter()
        hierarchy = SurveyHierarchy(large_survey)
        elapsed = time.perf_counter() - start

        assert len(hierarchy.observations) == 5000
        assert not hierarchy.has_orphans
        assert elapsed < 0.250, f"Join took {elapsed*1000:.1f}ms, expected <250ms"

    def test_repeated_conversions(self):
        """Multiple conversions should not accumulate state."""
        converter = DwcConverter(validate_output=False)
        tables = create_full_survey()

        first = converter.convert(tables)
        for _ in range(20):
            result = converter.convert(tables)

        assert result.tables == first.tables
        assert result.warnings == first.warnings


class TestValidationPerformance:
    """Benchmark tests for schema validation."""

    def test_validate_large_emof(self):
        """Schema validation of ~6000 eMoF rows should finish in <10s."""
        converter = DwcConverter(validate_output=False)
        result = converter.convert(create_large_survey(n_samples=5))

        start = time.perf_counter()
        errors = converter.validate_rows("emof", result.emof)
        elapsed = time.perf_counter() - start

        assert errors == []
        assert elapsed < 10.0, f"Validation took {elapsed:.2f}s, expected <10s"
