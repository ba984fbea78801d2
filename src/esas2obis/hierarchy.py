"""
Denormalized survey hierarchy: Observation -> Position -> Sample.

The hierarchy is joined once per run with keyed indexes and shared by every
mapper. Joins are left joins: a record whose parent cannot be resolved is kept
with a NULL ancestor rather than dropped.
"""

import logging
from collections import defaultdict
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Optional

from .constants import ID_SEPARATOR
from .tables import Row, SourceTables

logger = logging.getLogger(__name__)

Index = dict[str, list[Row]]


def compose_id(*segments: Optional[str]) -> Optional[str]:
    """
    Join identifier segments with ':'.

    Like SQL string concatenation, a single NULL segment makes the whole
    identifier NULL.

    Example:
        >>> compose_id("110000153", "5", "12")
        '110000153:5:12'
        >>> compose_id("110000153", None) is None
        True
    """
    if any(segment is None for segment in segments):
        return None
    return ID_SEPARATOR.join(segments)  # type: ignore[arg-type]


def index_rows(rows: Iterable[Row], key_column: str) -> Index:
    """Index rows by a key column. NULL keys are not indexed."""
    index: Index = defaultdict(list)
    for row in rows:
        key = row.get(key_column)
        if key is not None:
            index[key].append(row)
    return dict(index)


def _get(row: Optional[Row], column: str) -> Optional[str]:
    return row.get(column) if row is not None else None


@dataclass(frozen=True)
class SampleRecord:
    """A sample row. Its CampaignID is carried on the row itself."""

    sample: Row

    @property
    def event_id(self) -> Optional[str]:
        return compose_id(self.sample.get("CampaignID"), self.sample.get("SampleID"))

    @property
    def parent_event_id(self) -> Optional[str]:
        return self.sample.get("CampaignID")


@dataclass(frozen=True)
class PositionRecord:
    """A position row left-joined to its sample."""

    position: Row
    sample: Optional[Row]

    @property
    def event_id(self) -> Optional[str]:
        return compose_id(
            _get(self.sample, "CampaignID"),
            _get(self.sample, "SampleID"),
            self.position.get("PositionID"),
        )

    @property
    def parent_event_id(self) -> Optional[str]:
        return compose_id(_get(self.sample, "CampaignID"), _get(self.sample, "SampleID"))


@dataclass(frozen=True)
class ObservationRecord:
    """An observation row left-joined to its position and that position's sample."""

    observation: Row
    position: Optional[Row]
    sample: Optional[Row]

    @property
    def event_id(self) -> Optional[str]:
        return compose_id(
            _get(self.sample, "CampaignID"),
            _get(self.sample, "SampleID"),
            _get(self.position, "PositionID"),
        )

    @property
    def occurrence_id(self) -> Optional[str]:
        return compose_id(
            _get(self.sample, "CampaignID"),
            _get(self.sample, "SampleID"),
            _get(self.position, "PositionID"),
            self.observation.get("ObservationID"),
        )


class SurveyHierarchy:
    """
    The joined survey hierarchy for one mapping run.

    Left-join multiplicity is preserved: a child with no matching parent
    yields one record with a NULL parent, a child matching N parents yields
    N records.

    Attributes:
        campaigns: Campaign rows as supplied
        samples: One SampleRecord per sample row
        positions: PositionRecords (position LEFT JOIN sample)
        observations: ObservationRecords (observation LEFT JOIN position LEFT JOIN sample)
        orphan_positions: Positions whose SampleID matched no sample
        orphan_observations: Observations whose PositionID matched no position
    """

    def __init__(self, tables: SourceTables):
        self.campaigns: list[Row] = list(tables.campaigns)
        self.samples: list[SampleRecord] = [SampleRecord(row) for row in tables.samples]

        self._samples_by_id = index_rows(tables.samples, "SampleID")
        self._positions_by_id = index_rows(tables.positions, "PositionID")

        self.orphan_positions = 0
        self.orphan_observations = 0

        self.positions: list[PositionRecord] = list(self._join_positions(tables.positions))
        self.observations: list[ObservationRecord] = list(
            self._join_observations(tables.observations)
        )

        if self.orphan_positions:
            logger.warning(
                f"{self.orphan_positions} position(s) reference no known sample"
            )
        if self.orphan_observations:
            logger.warning(
                f"{self.orphan_observations} observation(s) reference no known position"
            )

    def _join_positions(self, positions: Iterable[Row]) -> Iterator[PositionRecord]:
        for position in positions:
            samples = self._samples_by_id.get(position.get("SampleID"), [])  # type: ignore[arg-type]
            if not samples:
                self.orphan_positions += 1
                yield PositionRecord(position, None)
                continue
            for sample in samples:
                yield PositionRecord(position, sample)

    def _join_observations(self, observations: Iterable[Row]) -> Iterator[ObservationRecord]:
        for observation in observations:
            positions = self._positions_by_id.get(observation.get("PositionID"), [])  # type: ignore[arg-type]
            if not positions:
                self.orphan_observations += 1
                yield ObservationRecord(observation, None, None)
                continue
            for position in positions:
                samples = self._samples_by_id.get(position.get("SampleID"), [None])  # type: ignore[arg-type]
                for sample in samples:
                    yield ObservationRecord(observation, position, sample)

    @property
    def has_orphans(self) -> bool:
        """Whether any record could not be linked to its parent."""
        return bool(self.orphan_positions or self.orphan_observations)
