"""Test fixtures for esas2obis tests."""

from .survey_tables import (
    CAMPAIGN_ID,
    SAMPLE_ID,
    create_code_lists,
    create_full_survey,
    create_large_survey,
    create_minimal_survey,
    create_species,
    write_survey_csv,
)
from .golden_rows import (
    EXPECTED_EMOF_COUNTS,
    GOLDEN_EMOF_ROWS,
    GOLDEN_EVENT_ROWS,
    GOLDEN_OCCURRENCE_ROWS,
)

__all__ = [
    "CAMPAIGN_ID",
    "SAMPLE_ID",
    "create_code_lists",
    "create_full_survey",
    "create_large_survey",
    "create_minimal_survey",
    "create_species",
    "write_survey_csv",
    "EXPECTED_EMOF_COUNTS",
    "GOLDEN_EMOF_ROWS",
    "GOLDEN_EVENT_ROWS",
    "GOLDEN_OCCURRENCE_ROWS",
]
