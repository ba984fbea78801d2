"""
Command-line interface for esas2obis.

Reads the ESAS survey tables and vocabularies from a directory of
delimited files, maps them to Darwin Core and writes the Event,
Occurrence and ExtendedMeasurementOrFact files.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import click

from . import __version__
from .constants import OUTPUT_FILENAMES, OutputTable
from .converter import DwcConverter
from .tables import MissingCodeListError, load_tables
from .writer import DwcWriter, read_dwc_table


@click.group()
@click.version_option(version=__version__)
def main() -> None:
    """
    ESAS to OBIS mapper.

    Transform European Seabirds at Sea survey data into Darwin Core
    Event, Occurrence and ExtendedMeasurementOrFact tables.
    """
    pass


@main.command()
@click.argument(
    "input_dir", type=click.Path(exists=True, file_okay=False, path_type=Path)
)
@click.option(
    "-o",
    "--output",
    "output_dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("data/processed"),
    show_default=True,
    help="Directory for the Darwin Core files",
)
@click.option("--limit", type=click.IntRange(min=0), default=None, help="Cap on occurrence rows")
@click.option("--delimiter", default=",", show_default=True, help="Field delimiter")
@click.option("--no-validate", is_flag=True, help="Skip JSON schema validation of the output")
@click.option("--dry-run", is_flag=True, help="Map but don't write output")
@click.option("-v", "--verbose", is_flag=True, help="Log mapping progress")
def convert(
    input_dir: Path,
    output_dir: Path,
    limit: Optional[int],
    delimiter: str,
    no_validate: bool,
    dry_run: bool,
    verbose: bool,
) -> None:
    """Map the survey tables in INPUT_DIR to Darwin Core.

    INPUT_DIR holds campaigns.csv, samples.csv, positions.csv,
    observations.csv, an optional species.csv and one file per
    vocabulary (in INPUT_DIR or INPUT_DIR/vocab).

    Example:

        esas2obis convert data/raw --output data/processed
    """
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    if len(delimiter) != 1:
        click.echo(click.style("Delimiter must be a single character", fg="red"), err=True)
        sys.exit(1)

    try:
        tables = load_tables(input_dir, delimiter=delimiter)
    except (FileNotFoundError, OSError) as e:
        click.echo(click.style(f"Error loading tables: {e}", fg="red"), err=True)
        sys.exit(1)

    click.echo(click.style(f"Converting: {input_dir}", fg="cyan", bold=True))
    for name, count in tables.row_counts.items():
        click.echo(f"  {name}: {count}")
    click.echo(f"  code lists: {len(tables.code_lists)}")
    click.echo()

    converter = DwcConverter(validate_output=not no_validate, occurrence_limit=limit)
    try:
        result = converter.convert(tables)
    except MissingCodeListError as e:
        click.echo(click.style(f"Configuration error: {e}", fg="red"), err=True)
        sys.exit(1)

    for warning in result.warnings:
        click.echo(click.style(f"  Warning: {warning}", fg="yellow"), err=True)

    if result.has_errors:
        click.echo(click.style("  Mapping errors:", fg="red"), err=True)
        for error in result.errors:
            click.echo(f"    - {error}", err=True)
        sys.exit(1)

    click.echo(f"  Run: {result.run_id}")
    for table, count in result.row_counts.items():
        click.echo(f"  {table}: {count} row(s)")

    if dry_run:
        click.echo(click.style("Dry run complete, no files written", fg="cyan"))
        return

    written = DwcWriter(output_dir, delimiter=delimiter).write(result)
    click.echo(click.style("─" * 50, fg="cyan"))
    click.echo(click.style(f"Wrote {len(written)} file(s):", fg="green"))
    for path in written.values():
        click.echo(f"  {path}")


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--table",
    type=click.Choice([t.value for t in OutputTable]),
    default=None,
    help="Table type (inferred from the file name when omitted)",
)
@click.option("--delimiter", default=",", show_default=True, help="Field delimiter")
def validate(file: Path, table: Optional[str], delimiter: str) -> None:
    """Validate a written Darwin Core file against the schema."""
    if table is None:
        by_name = {name: t.value for t, name in OUTPUT_FILENAMES.items()}
        table = by_name.get(file.name)
        if table is None:
            click.echo(
                click.style(f"Cannot infer table type of {file.name}; pass --table", fg="red"),
                err=True,
            )
            sys.exit(1)

    rows = read_dwc_table(file, delimiter=delimiter)
    errors = DwcConverter().validate_rows(table, rows)
    if errors:
        click.echo(f"✗ Validation failed: {file}", err=True)
        for error in errors:
            click.echo(f"  - {error}", err=True)
        sys.exit(1)

    click.echo(f"✓ Valid {table} table: {file} ({len(rows)} rows)")


if __name__ == "__main__":
    main()
