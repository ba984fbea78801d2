"""
Tests for the Darwin Core table writer.
"""

import pytest

from esas2obis.constants import EMOF_COLUMNS, EVENT_COLUMNS, OutputTable
from esas2obis.converter import DwcConverter
from esas2obis.writer import DwcWriter, read_dwc_table, write_dwc_tables

from .fixtures import GOLDEN_EVENT_ROWS, create_full_survey

RUN_ID = "01JFH3Q8Z1Q9F0XG3V7N4K2M8C"


@pytest.fixture
def full_result():
    return DwcConverter(validate_output=False).convert(create_full_survey(), run_id=RUN_ID)


class TestDwcWriter:
    """Tests for DwcWriter."""

    def test_path_for(self, tmp_path):
        writer = DwcWriter(tmp_path)

        assert writer.path_for(OutputTable.EVENT) == tmp_path / "event.csv"
        assert writer.path_for("occurrence") == tmp_path / "occurrence.csv"
        assert writer.path_for("emof") == tmp_path / "extendedmeasurementorfact.csv"

    def test_invalid_delimiter(self, tmp_path):
        with pytest.raises(ValueError, match="single character"):
            DwcWriter(tmp_path, delimiter="||")

    def test_write_all_tables(self, tmp_path, full_result):
        written = DwcWriter(tmp_path / "out").write(full_result)

        assert set(written) == set(OutputTable)
        for path in written.values():
            assert path.exists()

    def test_header_and_column_order(self, tmp_path, full_result):
        path = DwcWriter(tmp_path).write_table(OutputTable.EMOF, full_result.emof)

        header = path.read_text(encoding="utf-8").splitlines()[0]
        assert header == ",".join(EMOF_COLUMNS)

    def test_null_written_as_empty(self, tmp_path):
        row = dict.fromkeys(EVENT_COLUMNS)
        row.update(eventID="110000153", eventType="campaign")

        path = DwcWriter(tmp_path).write_table("event", [row])

        lines = path.read_text(encoding="utf-8").splitlines()
        assert lines[1] == "110000153,,campaign" + "," * 10

    def test_quotes_values_with_delimiter(self, tmp_path):
        row = dict.fromkeys(EVENT_COLUMNS)
        row.update(eventID="1", eventType="sample", samplingProtocol="Transect, snapshot")

        path = DwcWriter(tmp_path).write_table("event", [row])

        assert '"Transect, snapshot"' in path.read_text(encoding="utf-8")

    def test_tab_delimiter(self, tmp_path, full_result):
        path = DwcWriter(tmp_path, delimiter="\t").write_table("event", full_result.event)

        header = path.read_text(encoding="utf-8").splitlines()[0]
        assert header.split("\t") == list(EVENT_COLUMNS)

    def test_custom_path(self, tmp_path, full_result):
        target = tmp_path / "nested" / "events.txt"

        path = DwcWriter(tmp_path).write_table("event", full_result.event, path=target)

        assert path == target
        assert target.exists()

    def test_empty_table_has_header_only(self, tmp_path):
        path = DwcWriter(tmp_path).write_table("occurrence", [])

        assert len(path.read_text(encoding="utf-8").splitlines()) == 1


class TestReadBack:
    """Written files read back to the same rows."""

    def test_event_round_trip(self, tmp_path, full_result):
        path = DwcWriter(tmp_path).write_table("event", full_result.event)

        assert read_dwc_table(path) == GOLDEN_EVENT_ROWS

    def test_convenience_function(self, tmp_path, full_result):
        written = write_dwc_tables(full_result, tmp_path, delimiter=";")

        rows = read_dwc_table(written[OutputTable.EMOF], delimiter=";")
        assert rows == full_result.emof

    def test_converter_write(self, tmp_path, full_result):
        written = DwcConverter().write(full_result, tmp_path)

        assert read_dwc_table(written[OutputTable.OCCURRENCE]) == full_result.occurrence
