"""
Base mapper class and context for Darwin Core table generation.

Provides the abstract interface that all table mappers must implement,
along with a shared context carrying the joined hierarchy between mappers.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from ..constants import OutputTable
from ..hierarchy import SurveyHierarchy
from ..tables import CodeList, Row, SourceTables


@dataclass
class MapperContext:
    """
    Shared context passed to every mapper during a run.

    Holds the source tables and the hierarchy joined once for the run, and
    accumulates warnings/errors during mapping.

    Attributes:
        tables: The source tables of this run
        hierarchy: Joined Observation -> Position -> Sample hierarchy
        run_id: The ULID for this mapping run
        warnings: Non-fatal data-quality issues
        errors: Issues that invalidate the output
    """

    tables: SourceTables
    hierarchy: SurveyHierarchy
    run_id: str
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @classmethod
    def for_tables(cls, tables: SourceTables, run_id: str) -> "MapperContext":
        """Join the hierarchy for ``tables`` and wrap it in a context."""
        context = cls(
            tables=tables,
            hierarchy=SurveyHierarchy(tables),
            run_id=run_id,
        )
        hierarchy = context.hierarchy
        if hierarchy.orphan_positions:
            context.add_warning(
                f"{hierarchy.orphan_positions} position(s) have no matching sample; "
                "their eventIDs are NULL"
            )
        if hierarchy.orphan_observations:
            context.add_warning(
                f"{hierarchy.orphan_observations} observation(s) have no matching position; "
                "their eventIDs and occurrenceIDs are NULL"
            )
        return context

    def code_list(self, name: str) -> CodeList:
        """Shortcut to a vocabulary of the source tables."""
        return self.tables.code_list(name)

    def add_warning(self, message: str) -> None:
        """Add a warning message to the context."""
        self.warnings.append(message)

    def add_error(self, message: str) -> None:
        """Add an error message to the context."""
        self.errors.append(message)

    @property
    def has_warnings(self) -> bool:
        return len(self.warnings) > 0

    @property
    def has_errors(self) -> bool:
        return len(self.errors) > 0


def make_row(columns: tuple[str, ...], **values: Any) -> Row:
    """Build an output row holding exactly ``columns``, in order."""
    unknown = set(values) - set(columns)
    if unknown:
        raise ValueError(f"Unknown output column(s): {', '.join(sorted(unknown))}")
    return {column: values.get(column) for column in columns}


def unique_rows(rows: list[Row]) -> list[Row]:
    """
    Remove exact duplicate rows, keeping first-seen order.

    This is the UNION (not UNION ALL) of the individual mapping outputs.
    """
    seen: set[tuple] = set()
    result = []
    for row in rows:
        key = tuple(row.items())
        if key in seen:
            continue
        seen.add(key)
        result.append(row)
    return result


class Mapper(ABC):
    """
    Abstract base class for Darwin Core table mappers.

    Each mapper produces the rows of one output table from the joined
    survey hierarchy.

    Subclasses must implement:
    - table: The OutputTable produced
    - columns: Output column order
    - map(): The conversion logic

    Example:
        class CampaignMapper(Mapper):
            table = OutputTable.EVENT
            columns = ("eventID",)

            def map(self, context: MapperContext) -> list[Row]:
                return [
                    make_row(self.columns, eventID=row["CampaignID"])
                    for row in context.hierarchy.campaigns
                ]
    """

    @property
    @abstractmethod
    def table(self) -> OutputTable:
        """The output table this mapper produces."""
        pass

    @property
    @abstractmethod
    def columns(self) -> tuple[str, ...]:
        """Column order of the produced rows."""
        pass

    @abstractmethod
    def map(self, context: MapperContext) -> list[Row]:
        """
        Map the joined hierarchy to output rows.

        Args:
            context: The shared MapperContext with source data

        Returns:
            Rows in column order. Order of rows follows source order.
        """
        pass

    def required_code_lists(self) -> set[str]:
        """
        Vocabularies this mapper looks up.

        Checked before any mapping starts so a missing vocabulary is a
        configuration error, not a per-row failure.
        """
        return set()

    def is_required(self) -> bool:
        """Whether an empty output for this table is an error."""
        return False

    def validate(self, rows: list[Row], context: MapperContext) -> bool:
        """
        Validate mapped rows.

        Default implementation checks every row carries exactly the
        declared columns.
        """
        for i, row in enumerate(rows):
            if tuple(row) != self.columns:
                context.add_error(f"{self.table.value}[{i}] has unexpected columns")
                return False
        return True
