"""
Occurrence extension mapper.

Maps observations to Darwin Core Occurrence rows decorated with
taxonomic and biological attributes.
"""

import logging
from collections.abc import Mapping
from typing import Optional

from ..constants import (
    DEFAULT_ASSOCIATED_TAXA,
    DEFAULT_KINGDOM,
    OCCURRENCE_COLUMNS,
    WORMS_LSID_PREFIX,
    OccurrenceStatus,
    OutputTable,
)
from ..hierarchy import index_rows
from ..tables import Row
from .base import Mapper, MapperContext, make_row, unique_rows

logger = logging.getLogger(__name__)

SEX_TERMS = {
    "F": "female",
    "M": "male",
}

# Coarser than the eMoF life stage measurement: numbered stages are immature
LIFE_STAGE_TERMS = {
    "A": "adult",
    "I": "immature",
    "1": "immature",
    "2": "immature",
    "3": "immature",
    "4": "immature",
    "5": "immature",
}


class OccurrenceMapper(Mapper):
    """
    Maps observations to Darwin Core Occurrence rows.

    Source fields:
    - Observation -> occurrenceID (CampaignID:SampleID:PositionID:ObservationID)
    - Observation.Sex -> sex (F/M)
    - Observation.LifeStage -> lifeStage (adult/immature)
    - Observation.Association -> associatedTaxa
    - Observation.SpeciesCode -> Species.euring_code -> scientificName, scientificNameID

    Every row is a presence: the source holds no absence records.

    Attributes:
        limit: Maximum number of rows produced (None for all)
        associated_taxa: Association code -> associated taxon name
    """

    def __init__(
        self,
        limit: Optional[int] = None,
        associated_taxa: Optional[Mapping[str, str]] = None,
    ):
        if limit is not None and limit < 0:
            raise ValueError(f"limit must be >= 0, got {limit}")
        self.limit = limit
        self.associated_taxa = dict(
            DEFAULT_ASSOCIATED_TAXA if associated_taxa is None else associated_taxa
        )

    @property
    def table(self) -> OutputTable:
        return OutputTable.OCCURRENCE

    @property
    def columns(self) -> tuple[str, ...]:
        return OCCURRENCE_COLUMNS

    def map(self, context: MapperContext) -> list[Row]:
        species_by_code = index_rows(context.tables.species, "euring_code")

        rows: list[Row] = []
        unknown_species = 0
        for record in context.hierarchy.observations:
            observation = record.observation
            matches = species_by_code.get(observation.get("SpeciesCode"), [])  # type: ignore[arg-type]
            if not matches:
                unknown_species += 1

            for species in matches or [None]:
                rows.append(
                    make_row(
                        self.columns,
                        eventID=record.event_id,
                        occurrenceID=record.occurrence_id,
                        sex=SEX_TERMS.get(observation.get("Sex")),  # type: ignore[arg-type]
                        lifeStage=LIFE_STAGE_TERMS.get(observation.get("LifeStage")),  # type: ignore[arg-type]
                        occurrenceStatus=OccurrenceStatus.PRESENT.value,
                        associatedTaxa=self.associated_taxa.get(observation.get("Association")),  # type: ignore[arg-type]
                        scientificNameID=self._scientific_name_id(species),
                        scientificName=species.get("euring_scientific_name") if species else None,
                        kingdom=DEFAULT_KINGDOM,
                    )
                )

        if unknown_species:
            context.add_warning(
                f"{unknown_species} observation(s) have a species code not in the species table"
            )

        result = unique_rows(rows)
        if self.limit is not None:
            result = result[: self.limit]
        logger.info(f"Mapped {len(result)} occurrence row(s)")
        return result

    @staticmethod
    def _scientific_name_id(species: Optional[Row]) -> Optional[str]:
        """WoRMS LSID for the species, when it has an AphiaID."""
        if species is None:
            return None
        aphia_id = species.get("aphia_id")
        if aphia_id is None:
            return None
        return WORMS_LSID_PREFIX + aphia_id

    def validate(self, rows: list[Row], context: MapperContext) -> bool:
        """Check column layout and occurrenceStatus values."""
        if not super().validate(rows, context):
            return False

        valid_statuses = {status.value for status in OccurrenceStatus}
        for i, row in enumerate(rows):
            if row["occurrenceStatus"] not in valid_statuses:
                context.add_error(
                    f"occurrence[{i}].occurrenceStatus '{row['occurrenceStatus']}' is not valid"
                )
                return False
        return True
