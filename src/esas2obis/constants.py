"""
Constants and enums for Darwin Core / OBIS-ENV-DATA generation.

Centralizes vocabulary URIs, unit URIs and output column orders so the
mapping rules read as declarations rather than string soup.

DEFAULT_ASSOCIATED_TAXA is provisional: the association code -> taxon
pairs are not confirmed against the ESAS association vocabulary. Pass
``associated_taxa`` to OccurrenceMapper or DwcConverter to supply a
checked table.
"""

from enum import Enum


class EventLevel(str, Enum):
    """Hierarchy level an event row (or measurement rule) belongs to."""

    CAMPAIGN = "campaign"
    SAMPLE = "sample"
    POSITION = "position"
    OBSERVATION = "observation"


class OutputTable(str, Enum):
    """Output tables produced by a mapping run."""

    EVENT = "event"
    OCCURRENCE = "occurrence"
    EMOF = "emof"


class OccurrenceStatus(str, Enum):
    """Darwin Core occurrenceStatus values."""

    PRESENT = "present"
    ABSENT = "absent"


# Composite identifier separator
ID_SEPARATOR = ":"

# Vocabulary collections
NERC = "http://vocab.nerc.ac.uk/collection"
ICES = "https://vocab.ices.dk/services/rdf/collection"

C17 = f"{NERC}/C17/current/"
S10 = f"{NERC}/S10/current/"
S11 = f"{NERC}/S11/current/"

SEX_FEMALE_URI = f"{S10}S102/"
SEX_MALE_URI = f"{S10}S103/"
LIFE_STAGE_ADULT_URI = f"{S11}S1116/"
LIFE_STAGE_IMMATURE_URI = f"{S11}S1171/"

# P06 units
UNIT_METRE = f"{NERC}/P06/current/ULAA/"
UNIT_KILOMETRE = f"{NERC}/P06/current/ULKM/"
UNIT_SQUARE_KILOMETRE = f"{NERC}/P06/current/SQKM/"
UNIT_DEGREE = f"{NERC}/P06/current/UAAA/"
UNIT_PERCENT = f"{NERC}/P06/current/UPCT/"
UNIT_DIMENSIONLESS = f"{NERC}/P06/current/UUUU/"
# Placeholder used where no P06 term exists for the quantity
UNIT_NOT_APPLICABLE = f"{NERC}/P06/current/XXXX/"

# The original mapping spells these two with https, kept as published
UNIT_NOT_APPLICABLE_HTTPS = "https://vocab.nerc.ac.uk/collection/P06/current/XXXX/"
UNIT_DEGREE_HTTPS = "https://vocab.nerc.ac.uk/collection/P06/current/UAAA/"

# Taxonomy
WORMS_LSID_PREFIX = "urn:lsid:marinespecies.org:taxname:"
DEFAULT_KINGDOM = "Animalia"

# Association code -> associated taxon. Code 10 was mapped twice in the
# source rules (Pisces, then Cetacea); 11 is the cetacean association code.
DEFAULT_ASSOCIATED_TAXA = {
    "10": "Pisces",
    "11": "Cetacea",
}

DEFAULT_GEODETIC_DATUM = "EPSG:4326"
AREA_SAMPLE_SIZE_UNIT = "square kilometre"


class CodeListName(str, Enum):
    """Controlled vocabularies looked up by the measurement rules."""

    SHIPC = "shipc"
    PLATFORM_CLASS = "platformclass"
    PLATFORM_SIDE = "platformside"
    COUNT_METHOD = "bdcountmethod"
    TARGET_TAXA = "targettaxa"
    USE_OF_BINOCULARS = "useofbinoculars"
    BEAUFORT = "beaufort"
    VISIBILITY = "visibility"
    GLARE = "glare"
    CLOUD_COVER = "cloudcover"
    PRECIPITATION = "precipitation"
    SIGHTABILITY = "sightability"
    OBSERVATION_DISTANCE = "observationdistance"
    LIFE_STAGE = "lifestage"
    MOULT = "moult"
    PLUMAGE = "plumage"
    SEX = "sex"
    TRAVEL_DIRECTION = "traveldirection"
    PREY_TYPE = "preytype"
    ASSOCIATION = "association"
    BEHAVIOUR = "behaviour"


# Output column orders
EVENT_COLUMNS = (
    "eventID",
    "parentEventID",
    "eventType",
    "datasetID",
    "eventDate",
    "eventTime",
    "samplingProtocol",
    "sampleSizeValue",
    "sampleSizeUnit",
    "decimalLatitude",
    "decimalLongitude",
    "geodeticDatum",
    "eventRemarks",
)

OCCURRENCE_COLUMNS = (
    "eventID",
    "occurrenceID",
    "sex",
    "lifeStage",
    "occurrenceStatus",
    "associatedTaxa",
    "scientificNameID",
    "scientificName",
    "kingdom",
)

EMOF_COLUMNS = (
    "eventID",
    "occurrenceID",
    "measurementType",
    "measurementTypeID",
    "measurementValue",
    "measurementValueID",
    "measurementUnit",
    "measurementUnitID",
)

OUTPUT_COLUMNS = {
    OutputTable.EVENT: EVENT_COLUMNS,
    OutputTable.OCCURRENCE: OCCURRENCE_COLUMNS,
    OutputTable.EMOF: EMOF_COLUMNS,
}

OUTPUT_FILENAMES = {
    OutputTable.EVENT: "event.csv",
    OutputTable.OCCURRENCE: "occurrence.csv",
    OutputTable.EMOF: "extendedmeasurementorfact.csv",
}

# Source table names
HIERARCHY_TABLES = ("campaigns", "samples", "positions", "observations")
SPECIES_TABLE = "species"
