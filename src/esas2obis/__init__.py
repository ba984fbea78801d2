"""
ESAS to OBIS mapper.

Transform European Seabirds at Sea (ESAS) survey records into the Darwin
Core / OBIS-ENV-DATA format: an Event core with Occurrence and
ExtendedMeasurementOrFact extensions.

CLI usage::

    esas2obis convert data/raw --output data/processed
    esas2obis validate data/processed/extendedmeasurementorfact.csv

Programmatic usage::

    from esas2obis import DwcConverter, load_tables

    tables = load_tables("data/raw")
    result = DwcConverter().convert(tables)

    for row in result.emof:
        print(row["eventID"], row["measurementType"], row["measurementValue"])
"""

__version__ = "0.1.0"

from .converter import ConversionResult, DwcConverter
from .tables import CodeList, MissingCodeListError, SourceTables, load_tables
from .writer import DwcWriter, write_dwc_tables

__all__ = [
    "DwcConverter",
    "ConversionResult",
    "SourceTables",
    "CodeList",
    "MissingCodeListError",
    "load_tables",
    "DwcWriter",
    "write_dwc_tables",
    "__version__",
]
