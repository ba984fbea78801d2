"""
Darwin Core table writer.

Writes the output tables of a mapping run as delimited text, one file per
table, with NULL rendered as an empty string.
"""

from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, Optional

from .constants import OUTPUT_COLUMNS, OUTPUT_FILENAMES, OutputTable
from .tables import Row, normalize_cell

if TYPE_CHECKING:
    from .converter import ConversionResult

logger = logging.getLogger(__name__)

__all__ = ["DwcWriter", "write_dwc_tables", "read_dwc_table"]


class DwcWriter:
    """Writer for Event, Occurrence and ExtendedMeasurementOrFact files."""

    def __init__(self, output_dir: str | Path, delimiter: str = ","):
        """
        Initialize the writer.

        Args:
            output_dir: Directory for output files, created if missing
            delimiter: Field delimiter (single character)
        """
        if len(delimiter) != 1:
            raise ValueError(f"delimiter must be a single character, got {delimiter!r}")
        self.output_dir = Path(output_dir)
        self.delimiter = delimiter

    def path_for(self, table: OutputTable | str) -> Path:
        """Output file path of a table."""
        return self.output_dir / OUTPUT_FILENAMES[OutputTable(table)]

    def write(self, result: ConversionResult) -> dict[OutputTable, Path]:
        """
        Write every table of a conversion result.

        Returns:
            OutputTable -> written file path
        """
        written = {}
        for table, rows in result.tables.items():
            written[table] = self.write_table(table, rows)
        return written

    def write_table(
        self,
        table: OutputTable | str,
        rows: Iterable[Row],
        path: Optional[str | Path] = None,
    ) -> Path:
        """
        Write one table with a header row in fixed column order.

        Args:
            table: Which output table the rows belong to
            rows: Output rows
            path: Output file path. If None, uses output_dir/<table file name>

        Returns:
            Path to written file
        """
        table = OutputTable(table)
        columns = OUTPUT_COLUMNS[table]
        path = Path(path) if path else self.path_for(table)
        path.parent.mkdir(parents=True, exist_ok=True)

        count = 0
        with open(path, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f, delimiter=self.delimiter, lineterminator="\n")
            writer.writerow(columns)
            for row in rows:
                writer.writerow(["" if row.get(c) is None else row[c] for c in columns])
                count += 1

        logger.info(f"Wrote {count} {table.value} row(s) to {path}")
        return path


def write_dwc_tables(
    result: ConversionResult, output_dir: str | Path, delimiter: str = ","
) -> dict[OutputTable, Path]:
    """
    Convenience function to write all tables of a conversion result.

    Args:
        result: The ConversionResult to write
        output_dir: Output directory
        delimiter: Field delimiter

    Returns:
        OutputTable -> written file path
    """
    writer = DwcWriter(output_dir, delimiter=delimiter)
    return writer.write(result)


def read_dwc_table(path: str | Path, delimiter: str = ",") -> list[Row]:
    """Read a written table back, turning empty strings into None."""
    with open(path, newline="", encoding="utf-8") as f:
        return [
            {column: normalize_cell(value) for column, value in row.items()}
            for row in csv.DictReader(f, delimiter=delimiter)
        ]
