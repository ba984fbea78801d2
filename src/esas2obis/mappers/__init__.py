"""
Mappers for converting the survey hierarchy to Darwin Core tables.

Each mapper is responsible for producing the rows of one output table
from the joined Observation -> Position -> Sample hierarchy.
"""

from .base import Mapper, MapperContext
from .emof import MeasurementOrFactMapper
from .event import EventMapper
from .occurrence import OccurrenceMapper
from .rules import MEASUREMENT_RULES, Measurement, MeasurementRule

__all__ = [
    "Mapper",
    "MapperContext",
    # Core
    "EventMapper",
    # Extensions
    "OccurrenceMapper",
    "MeasurementOrFactMapper",
    # Measurement rules
    "MeasurementRule",
    "Measurement",
    "MEASUREMENT_RULES",
]
