"""
Event core mapper.

Maps campaigns, samples and positions to the Darwin Core Event table,
using the same composite eventIDs as the eMoF and Occurrence tables.
"""

import logging
from typing import Optional

from ..constants import (
    AREA_SAMPLE_SIZE_UNIT,
    DEFAULT_GEODETIC_DATUM,
    EVENT_COLUMNS,
    CodeListName,
    EventLevel,
    OutputTable,
)
from ..tables import Row
from .base import Mapper, MapperContext, make_row, unique_rows

logger = logging.getLogger(__name__)


def _date_range(start: Optional[str], end: Optional[str]) -> Optional[str]:
    """ISO 8601 interval from campaign start/end dates."""
    if start and end:
        return start if start == end else f"{start}/{end}"
    return start or end


class EventMapper(Mapper):
    """
    Maps the survey hierarchy to Darwin Core Event rows.

    Event levels:
    - campaign: eventID = CampaignID
    - sample: eventID = CampaignID:SampleID, parent = CampaignID
    - position: eventID = CampaignID:SampleID:PositionID, parent = CampaignID:SampleID

    Source fields (all optional beyond the identifiers):
    - Campaign.StartDate/EndDate -> eventDate (interval)
    - Campaign.Notes, Sample.Notes -> eventRemarks
    - Sample.Date -> eventDate
    - Sample.SamplingMethod -> samplingProtocol (bdcountmethod description)
    - Position.Date/Time -> eventDate/eventTime
    - Position.Latitude/Longitude -> decimalLatitude/decimalLongitude
    - Position.Area -> sampleSizeValue (square kilometre)
    """

    @property
    def table(self) -> OutputTable:
        return OutputTable.EVENT

    @property
    def columns(self) -> tuple[str, ...]:
        return EVENT_COLUMNS

    def is_required(self) -> bool:
        return True

    def required_code_lists(self) -> set[str]:
        return {CodeListName.COUNT_METHOD.value}

    def map(self, context: MapperContext) -> list[Row]:
        rows: list[Row] = []
        rows.extend(self._map_campaigns(context))
        rows.extend(self._map_samples(context))
        rows.extend(self._map_positions(context))

        result = unique_rows(rows)
        logger.info(f"Mapped {len(result)} event row(s)")
        return result

    def _map_campaigns(self, context: MapperContext) -> list[Row]:
        rows = []
        for campaign in context.hierarchy.campaigns:
            campaign_id = campaign.get("CampaignID")
            rows.append(
                make_row(
                    self.columns,
                    eventID=campaign_id,
                    eventType=EventLevel.CAMPAIGN.value,
                    datasetID=campaign_id,
                    eventDate=_date_range(campaign.get("StartDate"), campaign.get("EndDate")),
                    eventRemarks=campaign.get("Notes"),
                )
            )
        return rows

    def _map_samples(self, context: MapperContext) -> list[Row]:
        methods = context.code_list(CodeListName.COUNT_METHOD.value)
        rows = []
        for record in context.hierarchy.samples:
            sample = record.sample
            rows.append(
                make_row(
                    self.columns,
                    eventID=record.event_id,
                    parentEventID=record.parent_event_id,
                    eventType=EventLevel.SAMPLE.value,
                    datasetID=sample.get("CampaignID"),
                    eventDate=sample.get("Date"),
                    samplingProtocol=methods.describe(sample.get("SamplingMethod")),
                    eventRemarks=sample.get("Notes"),
                )
            )
        return rows

    def _map_positions(self, context: MapperContext) -> list[Row]:
        rows = []
        for record in context.hierarchy.positions:
            position = record.position
            latitude = position.get("Latitude")
            longitude = position.get("Longitude")
            area = position.get("Area")
            rows.append(
                make_row(
                    self.columns,
                    eventID=record.event_id,
                    parentEventID=record.parent_event_id,
                    eventType=EventLevel.POSITION.value,
                    datasetID=record.sample.get("CampaignID") if record.sample else None,
                    eventDate=position.get("Date"),
                    eventTime=position.get("Time"),
                    sampleSizeValue=area,
                    sampleSizeUnit=AREA_SAMPLE_SIZE_UNIT if area is not None else None,
                    decimalLatitude=latitude,
                    decimalLongitude=longitude,
                    geodeticDatum=(
                        DEFAULT_GEODETIC_DATUM
                        if latitude is not None and longitude is not None
                        else None
                    ),
                )
            )
        return rows

    def validate(self, rows: list[Row], context: MapperContext) -> bool:
        """Check column layout and flag events whose identifier could not be built."""
        if not super().validate(rows, context):
            return False

        missing = sum(1 for row in rows if row["eventID"] is None)
        if missing:
            context.add_warning(f"{missing} event row(s) have a NULL eventID")
        return True
