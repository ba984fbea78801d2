"""
ExtendedMeasurementOrFact table mapper.

Evaluates every measurement rule against the joined hierarchy and unions
the results into the eMoF extension table.
"""

import logging
from collections import Counter
from collections.abc import Iterable, Iterator
from typing import Optional, Union

from ..constants import EMOF_COLUMNS, EventLevel, OutputTable
from ..hierarchy import ObservationRecord, PositionRecord, SampleRecord
from ..tables import CodeList, Row
from .base import Mapper, MapperContext, make_row, unique_rows
from .rules import MEASUREMENT_RULES, MeasurementRule

logger = logging.getLogger(__name__)

HierarchyRecord = Union[SampleRecord, PositionRecord, ObservationRecord]


def _source_row(record: HierarchyRecord) -> Row:
    if isinstance(record, SampleRecord):
        return record.sample
    if isinstance(record, PositionRecord):
        return record.position
    return record.observation


class MeasurementOrFactMapper(Mapper):
    """
    Maps sample, position and observation attributes to eMoF rows.

    One row is produced per (record, rule) pair whose source column is not
    NULL. Sample and position rows carry a NULL occurrenceID; observation
    rows carry the observation-level composite identifier.

    Output columns:
    ```
    eventID, occurrenceID, measurementType, measurementTypeID,
    measurementValue, measurementValueID, measurementUnit, measurementUnitID
    ```

    Unknown vocabulary codes never fail the run: the row is still emitted
    with NULL value identifiers and counted in a warning.
    """

    def __init__(self, rules: Optional[Iterable[MeasurementRule]] = None):
        self.rules: tuple[MeasurementRule, ...] = (
            tuple(rules) if rules is not None else MEASUREMENT_RULES
        )

    @property
    def table(self) -> OutputTable:
        return OutputTable.EMOF

    @property
    def columns(self) -> tuple[str, ...]:
        return EMOF_COLUMNS

    def required_code_lists(self) -> set[str]:
        return {rule.code_list.value for rule in self.rules if rule.code_list is not None}

    def map(self, context: MapperContext) -> list[Row]:
        """Apply every rule at its level and union the results."""
        hierarchy = context.hierarchy
        records: dict[EventLevel, list] = {
            EventLevel.SAMPLE: hierarchy.samples,
            EventLevel.POSITION: hierarchy.positions,
            EventLevel.OBSERVATION: hierarchy.observations,
        }

        unmatched: Counter[str] = Counter()
        rows: list[Row] = []
        for rule in self.rules:
            if rule.level not in records:
                raise ValueError(
                    f"Rule '{rule.measurement_type}' targets unsupported level {rule.level.value}"
                )
            code_list = context.code_list(rule.code_list) if rule.code_list else None
            rows.extend(
                self._apply_rule(rule, records[rule.level], code_list, unmatched)
            )

        for measurement_type, count in sorted(unmatched.items()):
            message = f"{count} '{measurement_type}' value(s) have no vocabulary match"
            context.add_warning(message)
            logger.warning(message)

        result = unique_rows(rows)
        logger.info(f"Mapped {len(result)} measurement row(s) from {len(self.rules)} rules")
        return result

    def _apply_rule(
        self,
        rule: MeasurementRule,
        records: Iterable[HierarchyRecord],
        code_list: Optional[CodeList],
        unmatched: Counter,
    ) -> Iterator[Row]:
        for record in records:
            raw = _source_row(record).get(rule.column)
            measurement = rule.extract(raw, code_list)
            if measurement is None:
                continue

            if code_list is not None and not rule.raw_fallback and not code_list.matches(raw):
                unmatched[rule.measurement_type] += 1

            occurrence_id = (
                record.occurrence_id if isinstance(record, ObservationRecord) else None
            )
            yield make_row(
                self.columns,
                eventID=record.event_id,
                occurrenceID=occurrence_id,
                measurementType=rule.measurement_type,
                measurementTypeID=rule.type_id,
                measurementValue=measurement.value,
                measurementValueID=measurement.value_id,
                measurementUnit=measurement.unit,
                measurementUnitID=measurement.unit_id,
            )

    def validate(self, rows: list[Row], context: MapperContext) -> bool:
        """Check column layout and that every row names its measurement."""
        if not super().validate(rows, context):
            return False

        for i, row in enumerate(rows):
            if not row["measurementType"]:
                context.add_error(f"emof[{i}].measurementType is required")
                return False
        return True
