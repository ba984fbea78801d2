"""
Darwin Core Converter - Main orchestration for a mapping run.

This module provides the DwcConverter class which coordinates the
conversion of the ESAS survey tables into the Event core and the
Occurrence and ExtendedMeasurementOrFact extensions.
"""

import json
import logging
import os
from collections.abc import Mapping
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Optional, Union

import jsonschema

from .constants import OutputTable
from .mappers.base import Mapper, MapperContext
from .tables import Row, SourceTables
from .ulid import generate_run_id

logger = logging.getLogger(__name__)

SCHEMA_ENV_VAR = "ESAS2OBIS_SCHEMA_PATH"
BUNDLED_SCHEMA_PATH = Path(__file__).parent / "schema" / "dwc_tables_v1.json"

# Schema errors reported per table; the rest are counted
MAX_REPORTED_SCHEMA_ERRORS = 20

# Type alias for clock function injection
ClockFunc = Callable[[], datetime]


class ConversionResult:
    """
    Result of one mapping run.

    Attributes:
        tables: OutputTable -> rows (dicts in column order)
        run_id: The ULID assigned to this run
        warnings: Non-fatal data-quality issues encountered
        errors: Issues that invalidate the output
        is_valid: Whether every table passed validation
    """

    def __init__(
        self,
        tables: dict[OutputTable, list[Row]],
        run_id: str,
        warnings: Optional[list[str]] = None,
        errors: Optional[list[str]] = None,
        is_valid: bool = True,
    ):
        self.tables = tables
        self.run_id = run_id
        self.warnings = warnings or []
        self.errors = errors or []
        self.is_valid = is_valid

    def rows(self, table: Union[OutputTable, str]) -> list[Row]:
        """Rows of one output table (empty if the table was not produced)."""
        return self.tables.get(OutputTable(table), [])

    @property
    def event(self) -> list[Row]:
        return self.rows(OutputTable.EVENT)

    @property
    def occurrence(self) -> list[Row]:
        return self.rows(OutputTable.OCCURRENCE)

    @property
    def emof(self) -> list[Row]:
        return self.rows(OutputTable.EMOF)

    @property
    def row_counts(self) -> dict[str, int]:
        return {table.value: len(rows) for table, rows in self.tables.items()}

    @property
    def has_warnings(self) -> bool:
        """Check if conversion produced warnings."""
        return len(self.warnings) > 0

    @property
    def has_errors(self) -> bool:
        """Check if conversion produced errors."""
        return len(self.errors) > 0


class DwcConverter:
    """
    Converts ESAS survey tables to Darwin Core / OBIS-ENV-DATA tables.

    The converter runs a collection of Mapper instances, one per output
    table, over a hierarchy joined once per run. The passes are independent
    of each other; each is a deterministic function of the input tables.

    Example:
        from esas2obis import DwcConverter, load_tables

        tables = load_tables("data/")
        converter = DwcConverter()
        result = converter.convert(tables)

        if result.is_valid:
            converter.write(result, "output/")
        else:
            print("Errors:", result.errors)

    Attributes:
        mappers: List of Mapper instances, one per output table
        validate_output: Whether to validate rows against the JSON schema
        schema_path: Optional custom path to the table JSON schema
        clock: Function returning current datetime (for testing)
    """

    def __init__(
        self,
        mappers: Optional[list[Mapper]] = None,
        validate_output: bool = True,
        schema_path: Optional[Union[str, Path]] = None,
        clock: Optional[ClockFunc] = None,
        occurrence_limit: Optional[int] = None,
        associated_taxa: Optional[Mapping[str, str]] = None,
    ):
        """
        Initialize the converter.

        Args:
            mappers: Optional list of Mapper instances. If None, uses
                     the default Event, Occurrence and eMoF mappers.
            validate_output: Whether to validate output against the schema
            schema_path: Optional path to the table JSON schema file
            clock: Optional function returning current datetime (for testing)
            occurrence_limit: Cap on occurrence rows (default mappers only)
            associated_taxa: Association code -> taxon (default mappers only)
        """
        self.mappers = mappers or self._default_mappers(occurrence_limit, associated_taxa)
        self.validate_output = validate_output
        self._schema: Optional[dict] = None
        self._schema_path = Path(schema_path) if schema_path else None
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def _default_mappers(
        self,
        occurrence_limit: Optional[int],
        associated_taxa: Optional[Mapping[str, str]],
    ) -> list[Mapper]:
        """Create the default mappers, one per output table."""
        from .mappers import EventMapper, MeasurementOrFactMapper, OccurrenceMapper

        return [
            EventMapper(),
            OccurrenceMapper(limit=occurrence_limit, associated_taxa=associated_taxa),
            MeasurementOrFactMapper(),
        ]

    def required_code_lists(self) -> set[str]:
        """Every vocabulary any configured mapper looks up."""
        names: set[str] = set()
        for mapper in self.mappers:
            names |= mapper.required_code_lists()
        return names

    def convert(
        self,
        tables: SourceTables,
        run_id: Optional[str] = None,
        timestamp: Optional[datetime] = None,
    ) -> ConversionResult:
        """
        Map the source tables to the Darwin Core tables.

        Args:
            tables: The pre-loaded source tables
            run_id: Optional ULID to use. If None, generates a new one.
            timestamp: Optional run start time (ULID time component)

        Returns:
            ConversionResult holding the rows of every output table

        Raises:
            MissingCodeListError: If a vocabulary the rules need is absent
        """
        # Configuration errors are fatal and raised before any mapping
        tables.require_code_lists(self.required_code_lists())

        if timestamp is None:
            timestamp = self._clock()
        if run_id is None:
            run_id = generate_run_id(timestamp)

        logger.info(f"Starting mapping run {run_id}: {tables.row_counts}")
        context = MapperContext.for_tables(tables, run_id=run_id)

        outputs: dict[OutputTable, list[Row]] = {}
        for mapper in self.mappers:
            try:
                rows = mapper.map(context)
            except Exception:
                logger.exception(f"Mapper for {mapper.table.value} raised exception")
                raise

            if not mapper.validate(rows, context):
                logger.warning(f"Mapper {mapper.table.value} validation failed")
            if not rows and mapper.is_required():
                context.add_error(f"Required table '{mapper.table.value}' has no rows")

            outputs.setdefault(mapper.table, []).extend(rows)

        is_valid = True
        if self.validate_output:
            for table, rows in outputs.items():
                schema_errors = self._validate_schema(table, rows)
                if schema_errors:
                    context.errors.extend(schema_errors)
                    is_valid = False

        result = ConversionResult(
            tables=outputs,
            run_id=run_id,
            warnings=context.warnings,
            errors=context.errors,
            is_valid=is_valid and not context.has_errors,
        )
        logger.info(f"Finished mapping run {run_id}: {result.row_counts}")
        return result

    def validate_rows(
        self, table: Union[OutputTable, str], rows: list[dict[str, Any]]
    ) -> list[str]:
        """
        Validate rows of one output table against the JSON schema.

        Returns list of validation errors (empty if valid or no schema found).
        """
        return self._validate_schema(OutputTable(table), rows)

    def _validate_schema(self, table: OutputTable, rows: list[dict[str, Any]]) -> list[str]:
        schema = self._load_schema()
        if schema is None:
            return []

        row_schema = {
            "definitions": schema.get("definitions", {}),
            "$ref": f"#/definitions/{table.value}",
        }
        validator = jsonschema.Draft7Validator(row_schema)

        errors: list[str] = []
        total = 0
        for i, row in enumerate(rows):
            for error in validator.iter_errors(row):
                total += 1
                if len(errors) < MAX_REPORTED_SCHEMA_ERRORS:
                    path = ".".join(str(p) for p in error.absolute_path)
                    location = f"{table.value}[{i}]" + (f".{path}" if path else "")
                    errors.append(f"{location}: {error.message}")

        if total > len(errors):
            errors.append(f"{table.value}: {total - len(errors)} more schema error(s)")
        return errors

    def _load_schema(self) -> Optional[dict]:
        """
        Load the table JSON schema.

        Search order:
        1. Explicitly configured schema_path
        2. Environment variable ESAS2OBIS_SCHEMA_PATH
        3. Bundled schema in package
        """
        if self._schema is not None:
            return self._schema

        if self._schema_path and self._schema_path.exists():
            return self._load_schema_from_path(self._schema_path)

        env_path = os.environ.get(SCHEMA_ENV_VAR)
        if env_path:
            env_path_obj = Path(env_path)
            if env_path_obj.exists():
                return self._load_schema_from_path(env_path_obj)

        if BUNDLED_SCHEMA_PATH.exists():
            return self._load_schema_from_path(BUNDLED_SCHEMA_PATH)

        logger.warning(
            "Could not find table JSON schema. Pass schema_path to "
            f"DwcConverter or set {SCHEMA_ENV_VAR} environment variable."
        )
        return None

    def _load_schema_from_path(self, path: Path) -> Optional[dict]:
        """Load schema from a specific path."""
        try:
            with open(path) as f:
                self._schema = json.load(f)
            logger.info(f"Loaded table schema from {path}")
            return self._schema
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Failed to load schema from {path}: {e}")
            return None

    def write(
        self,
        result: ConversionResult,
        output_dir: Union[str, Path],
        delimiter: str = ",",
    ) -> dict[OutputTable, Path]:
        """
        Write every output table of a result as delimited text.

        Args:
            result: The ConversionResult to write
            output_dir: Directory for the output files
            delimiter: Field delimiter

        Returns:
            OutputTable -> written file path
        """
        from .writer import DwcWriter

        return DwcWriter(output_dir, delimiter=delimiter).write(result)
