"""
Measurement extraction rules for the ExtendedMeasurementOrFact table.

Each rule is an independent declaration: the hierarchy level it reads, the
source column, an optional vocabulary lookup, the fixed type/unit terms and,
for the handful of measurements that need it, a value transform. A rule only
contributes a row when its source column is not NULL.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Optional

from ..constants import (
    C17,
    ICES,
    LIFE_STAGE_ADULT_URI,
    LIFE_STAGE_IMMATURE_URI,
    NERC,
    S10,
    S11,
    SEX_FEMALE_URI,
    SEX_MALE_URI,
    UNIT_DEGREE,
    UNIT_DEGREE_HTTPS,
    UNIT_DIMENSIONLESS,
    UNIT_KILOMETRE,
    UNIT_METRE,
    UNIT_NOT_APPLICABLE,
    UNIT_NOT_APPLICABLE_HTTPS,
    UNIT_PERCENT,
    UNIT_SQUARE_KILOMETRE,
    CodeListName,
    EventLevel,
)
from ..tables import CodeList


@dataclass(frozen=True)
class Lookup:
    """
    A raw source code resolved against a vocabulary.

    ``key`` and ``description`` are None when the code is unmatched (or the
    rule has no vocabulary), like the columns of a failed LEFT JOIN.
    """

    raw: str
    key: Optional[str] = None
    description: Optional[str] = None

    @classmethod
    def resolve(cls, raw: str, code_list: Optional[CodeList]) -> "Lookup":
        if code_list is None or not code_list.matches(raw):
            return cls(raw=raw)
        return cls(raw=raw, key=raw, description=code_list.describe(raw))

    @property
    def matched(self) -> bool:
        return self.key is not None


@dataclass(frozen=True)
class Measurement:
    """The value half of an eMoF row."""

    value: Optional[str]
    value_id: Optional[str]
    unit: Optional[str]
    unit_id: Optional[str]


Transform = Callable[["MeasurementRule", Lookup], Measurement]


@dataclass(frozen=True)
class MeasurementRule:
    """
    Declaration of one measurement type.

    Attributes:
        measurement_type: Fixed measurementType label
        level: Hierarchy level the source column lives on
        column: Source column name
        type_id: measurementTypeID, or None when no term is registered
        code_list: Vocabulary to look the code up in, if categorical
        value_id_prefix: Collection URI the matched key is appended to
        unit: measurementUnit
        unit_id: measurementUnitID
        transform: Custom value policy; None uses the default for the rule kind
        raw_fallback: Unmatched codes are expected (raw numbers), not vocabulary gaps
    """

    measurement_type: str
    level: EventLevel
    column: str
    type_id: Optional[str] = None
    code_list: Optional[CodeListName] = None
    value_id_prefix: Optional[str] = None
    unit: Optional[str] = None
    unit_id: Optional[str] = UNIT_NOT_APPLICABLE
    transform: Optional[Transform] = None
    raw_fallback: bool = False

    @property
    def is_categorical(self) -> bool:
        return self.code_list is not None

    def value_id(self, lookup: Lookup) -> Optional[str]:
        """Collection prefix + matched key, NULL when unmatched."""
        if self.value_id_prefix is None or lookup.key is None:
            return None
        return self.value_id_prefix + lookup.key

    def extract(
        self, raw: Optional[str], code_list: Optional[CodeList] = None
    ) -> Optional[Measurement]:
        """
        Extract the measurement for one source value.

        Args:
            raw: Source column value
            code_list: The rule's vocabulary (ignored for numeric rules)

        Returns:
            The Measurement, or None when the source value is NULL
        """
        if raw is None:
            return None

        lookup = Lookup.resolve(raw, code_list if self.is_categorical else None)

        if self.transform is not None:
            return self.transform(self, lookup)

        if self.is_categorical:
            return Measurement(
                value=lookup.description,
                value_id=self.value_id(lookup),
                unit=self.unit,
                unit_id=self.unit_id,
            )

        return Measurement(value=raw, value_id=None, unit=self.unit, unit_id=self.unit_id)


# -------------------------------------------------------------------------
# Value transforms
# -------------------------------------------------------------------------

VISIBILITY_RANGES_KM = {
    "A": "0-1",
    "B": "1-5",
    "C": "5-10",
    "D": ">10",
}

OBSERVATION_DISTANCE_RANGES_M = {
    "A": "0-50",
    "B": "50-100",
    "C": "100-200",
    "D": "200-300",
    "E": ">300",
}

# F: flying, no contact with water. W: in water, distance not recorded.
OBSERVATION_DISTANCE_DESCRIBED = frozenset({"F", "W"})

LIFE_STAGE_URIS = {
    "A": LIFE_STAGE_ADULT_URI,
    "I": LIFE_STAGE_IMMATURE_URI,
}
LIFE_STAGE_ICES_KEYS = frozenset({"1", "2", "3", "4", "5"})

SEX_URIS = {
    "F": SEX_FEMALE_URI,
    "M": SEX_MALE_URI,
}

TRAVEL_DIRECTION_DEGREES = {
    "N": "0",
    "NE": "45",
    "E": "90",
    "SE": "135",
    "S": "180",
    "SW": "225",
    "W": "270",
    "NW": "315",
}
# Flying, no apparent direction
TRAVEL_DIRECTION_UNDEFINED = "U"


def visibility_value(rule: MeasurementRule, lookup: Lookup) -> Measurement:
    """Letter codes become km ranges; other keys are already km values."""
    if lookup.key is not None:
        value: Optional[str] = VISIBILITY_RANGES_KM.get(lookup.key, lookup.key)
    else:
        value = lookup.raw
    return Measurement(value, rule.value_id(lookup), rule.unit, rule.unit_id)


def observation_distance_value(rule: MeasurementRule, lookup: Lookup) -> Measurement:
    """Band codes become metre ranges, F/W keep their description, else raw metres."""
    key = lookup.key
    if key in OBSERVATION_DISTANCE_RANGES_M:
        return Measurement(
            OBSERVATION_DISTANCE_RANGES_M[key], rule.value_id(lookup), "m", UNIT_METRE
        )
    if key in OBSERVATION_DISTANCE_DESCRIBED:
        return Measurement(lookup.description, rule.value_id(lookup), None, UNIT_NOT_APPLICABLE)
    return Measurement(lookup.raw, None, "m", UNIT_METRE)


def life_stage_value(rule: MeasurementRule, lookup: Lookup) -> Measurement:
    """Adult/immature map to S11 terms, numbered stages to the ICES collection."""
    key = lookup.key
    value_id: Optional[str] = None
    if key in LIFE_STAGE_URIS:
        value_id = LIFE_STAGE_URIS[key]
    elif key in LIFE_STAGE_ICES_KEYS:
        value_id = rule.value_id(lookup)
    return Measurement(lookup.description, value_id, rule.unit, rule.unit_id)


def sex_value(rule: MeasurementRule, lookup: Lookup) -> Measurement:
    value_id = SEX_URIS.get(lookup.key) if lookup.key is not None else None
    return Measurement(lookup.description, value_id, rule.unit, rule.unit_id)


def travel_direction_value(rule: MeasurementRule, lookup: Lookup) -> Measurement:
    """Compass points become degrees, U keeps its description, else raw degrees."""
    key = lookup.key
    if key == TRAVEL_DIRECTION_UNDEFINED:
        return Measurement(
            lookup.description, rule.value_id(lookup), None, UNIT_NOT_APPLICABLE_HTTPS
        )
    if key in TRAVEL_DIRECTION_DEGREES:
        value = TRAVEL_DIRECTION_DEGREES[key]
    else:
        value = lookup.raw
    return Measurement(value, rule.value_id(lookup), "degrees", UNIT_DEGREE_HTTPS)


# -------------------------------------------------------------------------
# Rule constructors
# -------------------------------------------------------------------------


def numeric(
    measurement_type: str,
    level: EventLevel,
    column: str,
    unit: Optional[str] = None,
    unit_id: str = UNIT_NOT_APPLICABLE,
    type_id: Optional[str] = None,
) -> MeasurementRule:
    """A raw value passed straight through with a fixed unit."""
    return MeasurementRule(
        measurement_type=measurement_type,
        level=level,
        column=column,
        type_id=type_id,
        unit=unit,
        unit_id=unit_id,
    )


def ices_coded(
    measurement_type: str,
    level: EventLevel,
    column: str,
    code_list: CodeListName,
    collection: str,
    **kwargs,
) -> MeasurementRule:
    """A code looked up in an ICES collection, typed by the collection itself."""
    kwargs.setdefault("type_id", f"{ICES}/{collection}")
    return MeasurementRule(
        measurement_type=measurement_type,
        level=level,
        column=column,
        code_list=code_list,
        value_id_prefix=f"{ICES}/{collection}/",
        **kwargs,
    )


SAMPLE = EventLevel.SAMPLE
POSITION = EventLevel.POSITION
OBSERVATION = EventLevel.OBSERVATION

MEASUREMENT_RULES: tuple[MeasurementRule, ...] = (
    # Sample
    MeasurementRule(
        "platform code",
        SAMPLE,
        "PlatformCode",
        type_id=C17,
        code_list=CodeListName.SHIPC,
        value_id_prefix=C17,
    ),
    ices_coded(
        "platform class", SAMPLE, "PlatformClass", CodeListName.PLATFORM_CLASS, "Platform%20Class"
    ),
    ices_coded(
        "platform side", SAMPLE, "PlatformSide", CodeListName.PLATFORM_SIDE, "PlatformSide"
    ),
    numeric("platform height", SAMPLE, "PlatformHeight", "m", UNIT_METRE),
    numeric("transect width", SAMPLE, "TransectWidth", "m", UNIT_METRE),
    ices_coded(
        "sampling method",
        SAMPLE,
        "SamplingMethod",
        CodeListName.COUNT_METHOD,
        "BD_CountMethod",
        type_id=f"{NERC}/P01/current/SAMPPROT/",
        unit_id=UNIT_NOT_APPLICABLE_HTTPS,
    ),
    numeric("primary sampling", SAMPLE, "PrimarySampling"),
    ices_coded("target taxa", SAMPLE, "TargetTaxa", CodeListName.TARGET_TAXA, "TargetTaxa"),
    numeric("distance bins", SAMPLE, "DistanceBins"),
    ices_coded(
        "use of binoculars",
        SAMPLE,
        "UseOfBinoculars",
        CodeListName.USE_OF_BINOCULARS,
        "UseOfBinoculars",
    ),
    numeric("number of observers", SAMPLE, "NumberOfObservers", unit_id=UNIT_DIMENSIONLESS),
    # Position
    numeric(
        "distance",
        POSITION,
        "Distance",
        "km",
        UNIT_KILOMETRE,
        type_id=f"{NERC}/P01/current/DISTPHMS/",
    ),
    numeric("area", POSITION, "Area", "km2", UNIT_SQUARE_KILOMETRE),
    ices_coded(
        "wind force",
        POSITION,
        "WindForce",
        CodeListName.BEAUFORT,
        "Beaufort",
        type_id=f"{NERC}/P01/current/WMOCWFBF/",
        unit="Beaufort",
        unit_id=UNIT_DIMENSIONLESS,
    ),
    ices_coded(
        "visibility",
        POSITION,
        "Visibility",
        CodeListName.VISIBILITY,
        "Visibility",
        unit_id=UNIT_KILOMETRE,
        transform=visibility_value,
    ),
    ices_coded("glare", POSITION, "Glare", CodeListName.GLARE, "Glare"),
    numeric("sun angle", POSITION, "SunAngle", "degrees", UNIT_DEGREE),
    ices_coded(
        "cloud cover",
        POSITION,
        "CloudCover",
        CodeListName.CLOUD_COVER,
        "CloudCover",
        type_id=f"{NERC}/P02/current/CHEX/",
        unit="okta",
        unit_id=UNIT_DIMENSIONLESS,
    ),
    ices_coded(
        "precipitation", POSITION, "Precipitation", CodeListName.PRECIPITATION, "Precipitation"
    ),
    numeric(
        "ice cover",
        POSITION,
        "IceCover",
        "percent",
        UNIT_PERCENT,
        type_id=f"{NERC}/P07/current/CFSN0424/",
    ),
    ices_coded(
        "observation conditions",
        POSITION,
        "ObservationConditions",
        CodeListName.SIGHTABILITY,
        "Sightability",
    ),
    # Observation
    numeric("group identifier", OBSERVATION, "GroupID"),
    numeric("in transect", OBSERVATION, "Transect"),
    numeric(
        "individual count",
        OBSERVATION,
        "Count",
        unit_id=UNIT_DIMENSIONLESS,
        type_id=f"{NERC}/P01/current/OCOUNT01/",
    ),
    ices_coded(
        "observation distance",
        OBSERVATION,
        "ObservationDistance",
        CodeListName.OBSERVATION_DISTANCE,
        "ObservationDistance",
        transform=observation_distance_value,
        raw_fallback=True,
    ),
    ices_coded(
        "life stage",
        OBSERVATION,
        "LifeStage",
        CodeListName.LIFE_STAGE,
        "LifeStage",
        type_id=S11,
        transform=life_stage_value,
    ),
    ices_coded("moult", OBSERVATION, "Moult", CodeListName.MOULT, "Moult"),
    ices_coded("plumage", OBSERVATION, "Plumage", CodeListName.PLUMAGE, "Plumage"),
    MeasurementRule(
        "sex",
        OBSERVATION,
        "Sex",
        type_id=S10,
        code_list=CodeListName.SEX,
        transform=sex_value,
    ),
    ices_coded(
        "travel direction",
        OBSERVATION,
        "TravelDirection",
        CodeListName.TRAVEL_DIRECTION,
        "TravelDirection",
        transform=travel_direction_value,
        raw_fallback=True,
    ),
    ices_coded("prey", OBSERVATION, "Prey", CodeListName.PREY_TYPE, "PreyType"),
    ices_coded(
        "association", OBSERVATION, "Association", CodeListName.ASSOCIATION, "Association"
    ),
    ices_coded("behaviour", OBSERVATION, "Behaviour", CodeListName.BEHAVIOUR, "Behaviour"),
)


def rules_for_level(
    level: EventLevel, rules: tuple[MeasurementRule, ...] = MEASUREMENT_RULES
) -> list[MeasurementRule]:
    """Rules reading a given hierarchy level, in declaration order."""
    return [rule for rule in rules if rule.level == level]


def get_rule(
    measurement_type: str, rules: tuple[MeasurementRule, ...] = MEASUREMENT_RULES
) -> MeasurementRule:
    """
    Look up a rule by its measurementType label.

    Raises:
        KeyError: If no rule carries the label
    """
    for rule in rules:
        if rule.measurement_type == measurement_type:
            return rule
    raise KeyError(measurement_type)
