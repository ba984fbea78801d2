"""
Tests for the Event core mapper.
"""

from esas2obis.constants import EVENT_COLUMNS, OutputTable
from esas2obis.mappers import EventMapper
from esas2obis.mappers.base import MapperContext
from esas2obis.mappers.event import _date_range

from .fixtures import GOLDEN_EVENT_ROWS, create_full_survey, create_minimal_survey

RUN_ID = "01JFH3Q8Z1Q9F0XG3V7N4K2M8C"


def map_rows(tables):
    context = MapperContext.for_tables(tables, run_id=RUN_ID)
    return EventMapper().map(context), context


class TestDateRange:
    """Tests for campaign date intervals."""

    def test_interval(self):
        assert _date_range("2019-06-03", "2019-06-07") == "2019-06-03/2019-06-07"

    def test_same_day(self):
        assert _date_range("2019-06-03", "2019-06-03") == "2019-06-03"

    def test_open_ended(self):
        assert _date_range("2019-06-03", None) == "2019-06-03"
        assert _date_range(None, "2019-06-07") == "2019-06-07"
        assert _date_range(None, None) is None


class TestEventMapper:
    """Tests for EventMapper."""

    def test_table_and_columns(self):
        mapper = EventMapper()

        assert mapper.table == OutputTable.EVENT
        assert mapper.columns == EVENT_COLUMNS
        assert mapper.is_required()
        assert mapper.required_code_lists() == {"bdcountmethod"}

    def test_full_survey_matches_golden(self):
        rows, context = map_rows(create_full_survey())

        assert rows == GOLDEN_EVENT_ROWS
        assert not context.has_warnings

    def test_minimal_survey(self):
        rows, _ = map_rows(create_minimal_survey())

        assert [row["eventID"] for row in rows] == [
            "110000153",
            "110000153:5",
            "110000153:5:12",
        ]
        assert [row["eventType"] for row in rows] == ["campaign", "sample", "position"]

    def test_parent_links(self):
        rows, _ = map_rows(create_full_survey())
        ids = {row["eventID"] for row in rows}

        for row in rows:
            if row["eventType"] == "campaign":
                assert row["parentEventID"] is None
            else:
                assert row["parentEventID"] in ids

    def test_position_without_coordinates(self):
        tables = create_minimal_survey(
            positions=[{"PositionID": "12", "SampleID": "5", "Latitude": "54.1"}]
        )

        rows, _ = map_rows(tables)

        position = rows[-1]
        assert position["decimalLatitude"] == "54.1"
        assert position["decimalLongitude"] is None
        assert position["geodeticDatum"] is None
        assert position["sampleSizeUnit"] is None

    def test_unknown_sampling_method(self):
        tables = create_minimal_survey(
            samples=[{"CampaignID": "110000153", "SampleID": "5", "SamplingMethod": "9"}]
        )

        rows, _ = map_rows(tables)

        assert rows[1]["samplingProtocol"] is None

    def test_orphan_position(self):
        """A position with no sample keeps a NULL eventID."""
        tables = create_minimal_survey(
            positions=[{"PositionID": "12", "SampleID": "404"}]
        )

        rows, context = map_rows(tables)

        position = rows[-1]
        assert position["eventType"] == "position"
        assert position["eventID"] is None
        assert position["parentEventID"] is None
        assert position["datasetID"] is None

        assert EventMapper().validate(rows, context)
        assert "1 event row(s) have a NULL eventID" in context.warnings

    def test_duplicate_samples_collapse(self):
        sample = {"CampaignID": "110000153", "SampleID": "5"}
        tables = create_minimal_survey(samples=[sample, dict(sample)])

        rows, _ = map_rows(tables)

        assert [row["eventType"] for row in rows].count("sample") == 1

    def test_validate_rejects_wrong_columns(self):
        mapper = EventMapper()
        context = MapperContext.for_tables(create_minimal_survey(), run_id=RUN_ID)

        assert not mapper.validate([{"eventID": "1"}], context)
        assert context.errors == ["event[0] has unexpected columns"]
