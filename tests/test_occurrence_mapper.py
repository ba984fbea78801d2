"""
Tests for the Occurrence extension mapper.
"""

import pytest

from esas2obis import constants
from esas2obis.constants import DEFAULT_ASSOCIATED_TAXA, OCCURRENCE_COLUMNS, OutputTable
from esas2obis.mappers import OccurrenceMapper
from esas2obis.mappers.base import MapperContext

from .fixtures import GOLDEN_OCCURRENCE_ROWS, create_full_survey, create_minimal_survey

RUN_ID = "01JFH3Q8Z1Q9F0XG3V7N4K2M8C"


def map_rows(tables, mapper=None):
    context = MapperContext.for_tables(tables, run_id=RUN_ID)
    return (mapper or OccurrenceMapper()).map(context), context


def with_observation(**columns):
    observation = {"ObservationID": "100", "PositionID": "12", "SpeciesCode": "720"}
    observation.update(columns)
    return create_minimal_survey(observations=[observation])


class TestOccurrenceMapper:
    """Tests for OccurrenceMapper."""

    def test_table_and_columns(self):
        mapper = OccurrenceMapper()

        assert mapper.table == OutputTable.OCCURRENCE
        assert mapper.columns == OCCURRENCE_COLUMNS
        assert mapper.columns[0] == "eventID"
        assert mapper.required_code_lists() == set()

    def test_full_survey_matches_golden(self):
        rows, _ = map_rows(create_full_survey())

        assert rows == GOLDEN_OCCURRENCE_ROWS

    def test_unknown_species_warns(self):
        _, context = map_rows(create_full_survey())

        assert context.warnings == [
            "1 observation(s) have a species code not in the species table"
        ]

    def test_every_row_present_animalia(self):
        rows, _ = map_rows(create_full_survey())

        for row in rows:
            assert row["occurrenceStatus"] == "present"
            assert row["kingdom"] == "Animalia"

    def test_occurrence_id_extends_event_id(self):
        rows, _ = map_rows(create_full_survey())

        for row in rows:
            assert row["occurrenceID"].startswith(row["eventID"] + ":")


class TestTermMapping:
    """Tests for sex, life stage and associated taxa terms."""

    @pytest.mark.parametrize("code,expected", [("F", "female"), ("M", "male"), ("U", None)])
    def test_sex(self, code, expected):
        rows, _ = map_rows(with_observation(Sex=code))

        assert rows[0]["sex"] == expected

    @pytest.mark.parametrize(
        "code,expected",
        [("A", "adult"), ("I", "immature"), ("1", "immature"), ("5", "immature"), ("X", None)],
    )
    def test_life_stage(self, code, expected):
        rows, _ = map_rows(with_observation(LifeStage=code))

        assert rows[0]["lifeStage"] == expected

    @pytest.mark.parametrize("code,expected", [("10", "Pisces"), ("11", "Cetacea"), ("26", None)])
    def test_associated_taxa(self, code, expected):
        rows, _ = map_rows(with_observation(Association=code))

        assert rows[0]["associatedTaxa"] == expected

    def test_associated_taxa_override(self):
        mapper = OccurrenceMapper(associated_taxa={"26": "Aves"})

        rows, _ = map_rows(with_observation(Association="26"), mapper)
        assert rows[0]["associatedTaxa"] == "Aves"

        rows, _ = map_rows(with_observation(Association="10"), mapper)
        assert rows[0]["associatedTaxa"] is None

    def test_species_without_aphia_id(self):
        rows, _ = map_rows(with_observation(SpeciesCode="6340"))

        assert rows[0]["scientificName"] == "Larus"
        assert rows[0]["scientificNameID"] is None

    def test_null_species_code(self):
        rows, context = map_rows(with_observation(SpeciesCode=None))

        assert rows[0]["scientificName"] is None
        assert context.has_warnings


class TestSpeciesJoin:
    """The species join keeps left-join multiplicity."""

    def test_duplicate_species_codes_fan_out(self):
        species = [
            {"euring_code": "720", "euring_scientific_name": "Morus bassanus", "aphia_id": "148776"},
            {"euring_code": "720", "euring_scientific_name": "Sula bassana", "aphia_id": "148776"},
        ]
        tables = create_minimal_survey(species=species)

        rows, _ = map_rows(tables)

        assert [row["scientificName"] for row in rows] == ["Morus bassanus", "Sula bassana"]
        assert len({row["occurrenceID"] for row in rows}) == 1

    def test_exact_duplicates_collapse(self):
        observation = {"ObservationID": "100", "PositionID": "12", "SpeciesCode": "720"}
        tables = create_minimal_survey(observations=[observation, dict(observation)])

        rows, _ = map_rows(tables)

        assert len(rows) == 1


class TestLimit:
    """Tests for the occurrence row cap."""

    def test_limit_truncates_in_order(self):
        rows, _ = map_rows(create_full_survey(), OccurrenceMapper(limit=2))

        assert rows == GOLDEN_OCCURRENCE_ROWS[:2]

    def test_limit_zero(self):
        rows, _ = map_rows(create_full_survey(), OccurrenceMapper(limit=0))

        assert rows == []

    def test_limit_larger_than_rows(self):
        rows, _ = map_rows(create_full_survey(), OccurrenceMapper(limit=100))

        assert len(rows) == len(GOLDEN_OCCURRENCE_ROWS)

    def test_negative_limit_rejected(self):
        with pytest.raises(ValueError, match="limit must be >= 0"):
            OccurrenceMapper(limit=-1)


class TestValidate:
    """Tests for OccurrenceMapper.validate."""

    def test_valid_rows(self):
        rows, context = map_rows(create_full_survey())

        assert OccurrenceMapper().validate(rows, context)

    def test_bad_status(self):
        rows, context = map_rows(create_minimal_survey())
        rows[0]["occurrenceStatus"] = "observed"

        assert not OccurrenceMapper().validate(rows, context)
        assert "occurrenceStatus 'observed' is not valid" in context.errors[0]


class TestAssociatedTaxaDefaults:
    """The default association table is provisional and replaceable."""

    def test_defaults_copied_per_mapper(self):
        mapper = OccurrenceMapper()
        mapper.associated_taxa["10"] = "Clupeidae"

        assert DEFAULT_ASSOCIATED_TAXA == {"10": "Pisces", "11": "Cetacea"}
        assert OccurrenceMapper().associated_taxa == DEFAULT_ASSOCIATED_TAXA

    def test_provisional_status_documented(self):
        assert "DEFAULT_ASSOCIATED_TAXA is provisional" in constants.__doc__
        assert "associated_taxa" in constants.__doc__
